import sys
import os
import shutil
import tempfile
import unittest
from collections import OrderedDict

import simplejson as json

sys.path.append(os.path.normpath(os.path.join(os.path.dirname(__file__), os.path.pardir)))

from asmscore_libs import qconfig, json_saver, score_analyzer
from asmscore_libs.assembly import load_assembly, AssemblyError
from asmscore_libs.metrics import BasicMetrics, ReadMetrics, ComparativeMetrics, MetricRecord
from asmscore_libs.scoring import InvalidMetricError, NoScorableContigsError, contig_score, score_contigs

test_data_dir = os.path.normpath(os.path.join(os.path.dirname(__file__), os.path.pardir, 'test_data'))


def make_records(values):
    records = OrderedDict()
    for name, complexity in values:
        records[name] = MetricRecord(name, 100, basic=BasicMetrics(length=100, linguistic_complexity=complexity,
                                                                   p_n=0.0))
    return records


class TestEvaluateAssembly(unittest.TestCase):
    def setUp(self):
        self.tmp_dir = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.tmp_dir)

    def test_scores_and_cutoff(self):
        records = make_records([('a', 0.81), ('b', 0.25), ('c', 1.0)])
        good_fpath = os.path.join(self.tmp_dir, 'asm.good_contigs.txt')
        scores, result = score_analyzer.evaluate_assembly(records.values(), good_contigs_fpath=good_fpath)
        self.assertAlmostEqual(0.9, scores['a'])
        self.assertAlmostEqual(0.5, scores['b'])
        self.assertEqual(1.0, scores['c'])
        self.assertEqual(['c'], result.good_contigs)
        self.assertTrue(os.path.isfile(good_fpath))

    def test_invalid_metric(self):
        records = make_records([('a', 0.5), ('b', 2.0)])
        events = []
        scores, result = score_analyzer.evaluate_assembly(records.values(), observer=events.append)
        self.assertEqual(['invalid_metric', 'cutoff_search_completed'], [e['event'] for e in events])
        # only p_n is left for b
        self.assertEqual(1.0, scores['b'])
        with self.assertRaises(InvalidMetricError):
            score_analyzer.evaluate_assembly(records.values(), strict=True)

    def test_nothing_scored(self):
        records = OrderedDict([('a', MetricRecord('a', 100))])
        with self.assertRaises(NoScorableContigsError):
            score_analyzer.evaluate_assembly(records.values())

    def test_merge_metrics(self):
        records = make_records([('a', 0.5), ('b', 0.5)])
        score_analyzer.merge_metrics(records, {'a': ComparativeMetrics(hits=1, identity_gap=50.0)})
        self.assertEqual(1, records['a'].comparative['hits'])
        self.assertIsNone(records['b'].comparative)
        self.assertIs(records, score_analyzer.merge_metrics(records, None))

    def test_contig_without_read_metrics_keeps_basic_score(self):
        records = make_records([('a', 0.81), ('b', 0.81)])
        score_analyzer.merge_metrics(records, {'a': ReadMetrics(p_good=0.64, eff_count=5)})
        self.assertIsNone(records['b'].reads)
        scores = score_contigs(list(records.values()))
        # b is scored by linguistic complexity and N fraction only
        self.assertAlmostEqual(0.9, scores['b'])
        self.assertEqual(contig_score([0.81, 1.0]), scores['b'])
        self.assertGreater(scores['b'], 0)
        self.assertAlmostEqual((0.81 * 0.64) ** 0.25, scores['a'])

    def test_log_observer_accepts_events(self):
        observer = score_analyzer.log_observer('asm')
        observer({'event': 'invalid_metric', 'contig': 'a', 'metric': 'p_n', 'value': -1, 'reason': 'negative'})
        observer({'event': 'cutoff_search_completed', 'threshold': 0.5, 'retained': 1, 'total': 2,
                  'optimal_score': 0.5})
        observer({'event': 'something_else'})


class TestOutputs(unittest.TestCase):
    def setUp(self):
        self.tmp_dir = tempfile.mkdtemp()
        self.contigs_fpath = os.path.join(test_data_dir, 'contigs.fasta')
        qconfig.assembly_labels_by_fpath[self.contigs_fpath] = 'contigs'

    def tearDown(self):
        shutil.rmtree(self.tmp_dir)

    def test_good_fasta(self):
        assembly = load_assembly(self.contigs_fpath, 'contigs')
        fasta_fpath = score_analyzer.save_good_fasta(assembly, ['contig_3', 'contig_1'],
                                                     os.path.join(self.tmp_dir, 'good.contigs.fa'))
        good = load_assembly(fasta_fpath, 'good')
        self.assertEqual(['contig_3', 'contig_1'], good.names())
        self.assertEqual(assembly['contig_1'].seq, good['contig_1'].seq)

    def test_json_scores(self):
        records = make_records([('a', 0.81), ('b', 0.25)])
        scores, result = score_analyzer.evaluate_assembly(records.values())
        fpath = json_saver.save_contig_scores(self.tmp_dir, self.contigs_fpath, records.values(), scores, result)
        with open(fpath) as in_f:
            saved = json.load(in_f)
        self.assertEqual('contigs', saved['assembly'])
        self.assertEqual(['a', 'b'], [contig['contig'] for contig in saved['contigs']])
        self.assertEqual([True, False], [contig['good'] for contig in saved['contigs']])
        self.assertEqual(result.cutoff, saved['cutoff'])


class TestLoadAssembly(unittest.TestCase):
    def setUp(self):
        self.tmp_dir = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.tmp_dir)

    def write(self, text):
        fpath = os.path.join(self.tmp_dir, 'contigs.fa')
        with open(fpath, 'w') as out_f:
            out_f.write(text)
        return fpath

    def test_load(self):
        assembly = load_assembly(os.path.join(test_data_dir, 'contigs.fasta'), 'contigs')
        self.assertEqual(3, len(assembly))
        self.assertIn('contig_2', assembly)
        self.assertEqual(124, assembly.total_length())

    def test_duplicated_names(self):
        with self.assertRaises(AssemblyError):
            load_assembly(self.write('>a\nACGT\n>a\nGGCC\n'), 'dup')

    def test_empty_file(self):
        with self.assertRaises(AssemblyError):
            load_assembly(self.write(''), 'empty')


if __name__ == '__main__':
    unittest.main()
