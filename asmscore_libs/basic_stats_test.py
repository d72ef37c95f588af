import sys
import os
import unittest

sys.path.append(os.path.normpath(os.path.join(os.path.dirname(__file__), os.path.pardir)))

import asmscore_libs.basic_stats as bs
from asmscore_libs.N50 import N50, L50, N50_and_L50, Nx_list

test_data_dir = os.path.normpath(os.path.join(os.path.dirname(__file__), os.path.pardir, 'test_data'))


class TestN50(unittest.TestCase):
    def test_n50(self):
        lengths = [2, 3, 4, 5, 6, 7, 8, 9, 10]
        self.assertEqual(8, N50(lengths))
        self.assertEqual(3, L50(lengths))

    def test_empty(self):
        self.assertEqual((None, None), N50_and_L50([]))

    def test_nx_list(self):
        self.assertEqual([(90, 4, 7), (50, 8, 3)], Nx_list([2, 3, 4, 5, 6, 7, 8, 9, 10], [90, 50]))


class TestSequenceMetrics(unittest.TestCase):
    def test_orf_without_stops(self):
        self.assertEqual(3, bs.longest_orf('GGGGGGGGG'))

    def test_orf_short(self):
        self.assertEqual(0, bs.longest_orf('GG'))

    def test_linguistic_complexity(self):
        self.assertAlmostEqual(1 / 9.0, bs.linguistic_complexity('AAAAAAAAAA', k=2))
        self.assertEqual(1.0, bs.linguistic_complexity('ACGTACGT', k=1))
        self.assertIsNone(bs.linguistic_complexity('ACGT', k=6))

    def test_gc(self):
        metrics = bs.contig_metrics('GGCC')
        self.assertEqual(4, metrics['length'])
        self.assertEqual(1.0, metrics['prop_gc'])
        self.assertEqual(0.0, metrics['gc_skew'])
        self.assertIsNone(metrics['at_skew'])
        self.assertEqual(0, metrics['cpg_count'])
        self.assertEqual(0.0, metrics['p_n'])

    def test_cpg(self):
        metrics = bs.contig_metrics('acgcga')
        self.assertEqual(2, metrics['cpg_count'])
        self.assertAlmostEqual(2 * 6 / 4.0, metrics['cpg_ratio'])

    def test_only_ns(self):
        metrics = bs.contig_metrics('NNNN')
        self.assertIsNone(metrics['prop_gc'])
        self.assertEqual(1.0, metrics['p_n'])

    def test_ratios_within_bounds(self):
        for seq in ('ATGAAATAGCCC', 'TTTTTTTTTTTTTTTTTTTT', 'ACGTNNACGT', 'A'):
            metrics = bs.contig_metrics(seq)
            for name in ('p_orf', 'p_n', 'linguistic_complexity', 'prop_gc'):
                if metrics[name] is not None:
                    self.assertTrue(0.0 <= metrics[name] <= 1.0, name)


class TestProcessFile(unittest.TestCase):
    def test_contigs(self):
        metrics = bs.process_single_file(os.path.join(test_data_dir, 'contigs.fasta'), 0)
        self.assertEqual(['contig_1', 'contig_2', 'contig_3'], list(metrics.keys()))
        self.assertEqual([60, 34, 30], [m['length'] for m in metrics.values()])
        self.assertAlmostEqual(10 / 34.0, metrics['contig_2']['p_n'])
        self.assertAlmostEqual(1 / 25.0, metrics['contig_3']['linguistic_complexity'])


if __name__ == '__main__':
    unittest.main()
