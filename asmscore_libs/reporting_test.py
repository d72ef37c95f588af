import sys
import os
import csv
import shutil
import tempfile
import unittest

sys.path.append(os.path.normpath(os.path.join(os.path.dirname(__file__), os.path.pardir)))

from asmscore_libs import qconfig, reporting
from asmscore_libs.metrics import BasicMetrics, ReadMetrics, MetricRecord


class TestReport(unittest.TestCase):
    def setUp(self):
        self.tmp_dir = tempfile.mkdtemp()
        self.fpaths = [os.path.join(self.tmp_dir, 'asm_1.fa'), os.path.join(self.tmp_dir, 'asm_2.fa')]
        for fpath, label in zip(self.fpaths, ['asm 1', 'asm_2']):
            qconfig.assembly_labels_by_fpath[fpath] = label
        reporting.reports.clear()
        reporting.assembly_fpaths = []

    def tearDown(self):
        reporting.reports.clear()
        reporting.assembly_fpaths = []
        shutil.rmtree(self.tmp_dir)

    def test_unknown_field(self):
        with self.assertRaises(AssertionError):
            reporting.get(self.fpaths[0]).add_field('Unknown metric', 1)

    def test_thresholds_are_expanded(self):
        report = reporting.get(self.fpaths[0])
        report.add_field(reporting.Fields.CONTIGS__FOR_THRESHOLDS, [5, 2])
        rows = reporting.table()
        names = [row['metricName'] for row in rows]
        self.assertIn('# contigs (>= 1000 bp)', names)
        self.assertIn('# contigs (>= 10000 bp)', names)

    def test_required_fields_are_always_shown(self):
        reporting.get(self.fpaths[0])
        names = [row['metricName'] for row in reporting.table()]
        self.assertIn(reporting.Fields.ASSEMBLY_SCORE, names)
        self.assertIn(reporting.Fields.CUTOFF, names)

    def test_assemblies_csv(self):
        for fpath, score in zip(self.fpaths, [0.123456789, None]):
            report = reporting.get(fpath)
            report.add_field(reporting.Fields.CONTIGS, 3)
            report.add_field(reporting.Fields.ASSEMBLY_SCORE, score)
        csv_fpath = reporting.save_assemblies_csv(self.tmp_dir)
        with open(csv_fpath) as in_f:
            rows = list(csv.reader(in_f))
        header = rows[0]
        self.assertEqual(reporting.Fields.NAME, header[0])
        self.assertEqual(['asm 1', 'asm_2'], [row[0] for row in rows[1:]])
        score_column = header.index(reporting.Fields.ASSEMBLY_SCORE)
        self.assertEqual('0.12346', rows[1][score_column])
        self.assertEqual('NA', rows[2][score_column])
        self.assertEqual('3', rows[1][header.index(reporting.Fields.CONTIGS)])

    def test_txt_uses_dash_for_missing(self):
        reporting.get(self.fpaths[0]).add_field(reporting.Fields.ASSEMBLY_SCORE, 0.5)
        reporting.get(self.fpaths[1])
        reporting.save_total(self.tmp_dir)
        with open(os.path.join(self.tmp_dir, qconfig.report_prefix + '.tsv')) as in_f:
            lines = [line.rstrip('\n').split('\t') for line in in_f]
        score_line = [line for line in lines if line[0] == reporting.Fields.ASSEMBLY_SCORE][0]
        self.assertEqual(['0.50000', '-'], score_line[1:])


class TestContigsCsv(unittest.TestCase):
    def setUp(self):
        self.tmp_dir = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.tmp_dir)

    def read(self, fpath):
        with open(fpath) as in_f:
            return list(csv.reader(in_f))

    def test_basic_only(self):
        records = [MetricRecord('contig_1', 10, basic=BasicMetrics(length=10, p_n=0.1))]
        fpath = reporting.save_contigs_csv(os.path.join(self.tmp_dir, 'a.csv'), records, {'contig_1': 0.5})
        rows = self.read(fpath)
        self.assertEqual(['contig_name'] + BasicMetrics.field_names() + ['score'], rows[0])
        self.assertEqual('contig_1', rows[1][0])
        self.assertEqual('10', rows[1][1])
        self.assertEqual('0.100000', rows[1][rows[0].index('p_n')])
        self.assertEqual('0.500000', rows[1][-1])
        self.assertEqual('NA', rows[1][rows[0].index('gc_skew')])

    def test_partial_category(self):
        records = [MetricRecord('contig_1', 10, reads=ReadMetrics(fragments=2)),
                   MetricRecord('contig_2', 10)]
        fpath = reporting.save_contigs_csv(os.path.join(self.tmp_dir, 'a.csv'), records, {'contig_1': None})
        rows = self.read(fpath)
        self.assertIn('fragments', rows[0])
        self.assertEqual('2', rows[1][rows[0].index('fragments')])
        self.assertEqual('NA', rows[2][rows[0].index('fragments')])
        self.assertEqual('NA', rows[1][-1])
        self.assertEqual('NA', rows[2][-1])


if __name__ == '__main__':
    unittest.main()
