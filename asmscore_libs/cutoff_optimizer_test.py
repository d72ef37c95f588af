import sys
import os
import random
import shutil
import tempfile
import unittest

sys.path.append(os.path.normpath(os.path.join(os.path.dirname(__file__), os.path.pardir)))

import asmscore_libs.cutoff_optimizer as co
from asmscore_libs.scoring import assembly_score, OptimizationUndefinedError


def random_scores(seed, n=200, with_zeros=False, with_missing=False):
    rnd = random.Random(seed)
    scores = {}
    for i in range(n):
        score = round(rnd.random(), 3)
        if with_zeros and rnd.random() < 0.05:
            score = 0.0
        if with_missing and rnd.random() < 0.1:
            score = None
        scores['contig_%d' % i] = score
    return scores


class TestRanking(unittest.TestCase):
    def test_rank(self):
        ranked = co.rank_contigs({'b': 0.5, 'a': 0.5, 'c': 0.9, 'd': None})
        self.assertEqual([('c', 0.9), ('a', 0.5), ('b', 0.5)], ranked)

    def test_passing(self):
        ranked = co.rank_contigs({'a': 0.1, 'b': 0.5, 'c': 0.9})
        self.assertEqual(['c', 'b'], co.contigs_passing(ranked, 0.5))
        self.assertEqual([], co.contigs_passing(ranked, 0.95))

    def test_monotonic(self):
        ranked = co.rank_contigs(random_scores(1))
        previous = set()
        for threshold in [1.0, 0.9, 0.7, 0.5, 0.3, 0.1, 0.0]:
            passing = set(co.contigs_passing(ranked, threshold))
            self.assertTrue(previous <= passing)
            previous = passing


class TestLogAccumulator(unittest.TestCase):
    def test_empty(self):
        self.assertIsNone(co.LogAccumulator().mean())

    def test_zero(self):
        accumulator = co.LogAccumulator()
        for score in (0.5, 0.0, 0.9):
            accumulator.add(score)
        self.assertEqual(0.0, accumulator.mean())

    def test_merge(self):
        scores = [0.2, 0.4, 0.8, 0.6]
        left, right, whole = co.LogAccumulator(), co.LogAccumulator(), co.LogAccumulator()
        for score in scores[:2]:
            left.add(score)
        for score in scores[2:]:
            right.add(score)
        for score in scores:
            whole.add(score)
        self.assertAlmostEqual(whole.mean(), left.merge(right).mean())
        self.assertEqual(4, left.count)


class TestSweep(unittest.TestCase):
    def test_distinct_thresholds(self):
        ranked = co.rank_contigs({'a': 0.9, 'b': 0.5, 'c': 0.5, 'd': 0.1})
        steps = list(co.sweep(ranked))
        self.assertEqual([0.9, 0.5, 0.1], [threshold for threshold, retained, score in steps])
        self.assertEqual([1, 3, 4], [retained for threshold, retained, score in steps])

    def test_matches_assembly_score(self):
        ranked = co.rank_contigs(random_scores(2))
        for threshold, retained, score in co.sweep(ranked):
            expected = assembly_score(s for name, s in ranked[:retained])
            self.assertAlmostEqual(expected, score, places=12)


class TestOptimize(unittest.TestCase):
    def test_best_subset(self):
        result = co.optimize({'a': 0.9, 'b': 0.8, 'c': 0.1})
        self.assertEqual(0.9, result.cutoff)
        self.assertEqual(['a'], result.good_contigs)
        self.assertAlmostEqual(0.9, result.optimal_score)
        self.assertEqual(3, result.total)

    def test_top_score_group_is_kept(self):
        result = co.optimize({'a': 0.9, 'b': 0.89, 'c': 0.88, 'd': 0.1})
        self.assertEqual(['a'], result.good_contigs)
        result = co.optimize({'a': 0.9, 'b': 0.9, 'c': 0.88, 'd': 0.1})
        self.assertEqual(['a', 'b'], result.good_contigs)

    def test_equal_scores_keep_all(self):
        result = co.optimize({'a': 0.5, 'b': 0.5, 'c': 0.5})
        self.assertEqual(0.5, result.cutoff)
        self.assertEqual(3, result.retained)
        self.assertEqual(0.5, result.optimal_score)

    def test_all_ones(self):
        result = co.optimize(dict(('c%d' % i, 1.0) for i in range(10)))
        self.assertEqual(1.0, result.optimal_score)
        self.assertEqual(10, result.retained)

    def test_zero_scores(self):
        result = co.optimize({'a': 0.5, 'b': 0.0})
        self.assertEqual(['a'], result.good_contigs)
        self.assertEqual(0.5, result.optimal_score)
        result = co.optimize({'a': 0.0, 'b': 0.0})
        self.assertEqual(0.0, result.optimal_score)
        self.assertEqual(2, result.retained)

    def test_not_worse_than_all(self):
        for seed in range(20):
            scores = random_scores(seed, with_zeros=seed % 2 == 0, with_missing=seed % 3 == 0)
            result = co.optimize(scores)
            self.assertGreaterEqual(result.optimal_score, assembly_score(scores))

    def test_good_contigs_pass_cutoff(self):
        scores = random_scores(7)
        result = co.optimize(scores)
        self.assertEqual(sorted(result.good_contigs),
                         sorted(name for name, score in scores.items() if score >= result.cutoff))

    def test_unscored_are_excluded(self):
        result = co.optimize({'a': 0.5, 'b': None})
        self.assertEqual(1, result.total)
        self.assertEqual(['a'], result.good_contigs)

    def test_nothing_scored(self):
        with self.assertRaises(OptimizationUndefinedError):
            co.optimize({'a': None})
        with self.assertRaises(OptimizationUndefinedError):
            co.optimize({})

    def test_deterministic(self):
        scores = random_scores(11)
        first = co.optimize(scores)
        second = co.optimize(dict(reversed(list(scores.items()))))
        self.assertEqual(first.optimal_score, second.optimal_score)
        self.assertEqual(first.good_contigs, second.good_contigs)

    def test_observer(self):
        events = []
        co.optimize({'a': 0.9, 'b': 0.3}, observer=events.append)
        self.assertEqual(1, len(events))
        self.assertEqual('cutoff_search_completed', events[0]['event'])
        self.assertEqual(0.9, events[0]['threshold'])
        self.assertEqual(1, events[0]['retained'])
        self.assertEqual(2, events[0]['total'])


class TestGoodContigsFile(unittest.TestCase):
    def setUp(self):
        self.tmp_dir = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.tmp_dir)

    def test_written(self):
        fpath = os.path.join(self.tmp_dir, 'asm.good_contigs.txt')
        result = co.optimize({'a': 0.9, 'b': 0.9, 'c': 0.2}, output_fpath=fpath)
        with open(fpath) as in_f:
            self.assertEqual(result.good_contigs, in_f.read().split('\n')[:-1])
        self.assertEqual(['a', 'b'], result.good_contigs)


if __name__ == '__main__':
    unittest.main()
