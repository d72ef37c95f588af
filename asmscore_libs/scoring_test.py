import sys
import os
import math
import random
import unittest

sys.path.append(os.path.normpath(os.path.join(os.path.dirname(__file__), os.path.pardir)))

import asmscore_libs.scoring as scoring
from asmscore_libs.metrics import BasicMetrics, ReadMetrics, ComparativeMetrics, MetricRecord


def basic_record(name, complexity=None, p_n=None, length=1000):
    return MetricRecord(name, length, basic=BasicMetrics(length=length, linguistic_complexity=complexity, p_n=p_n))


def reads_record(name, eff_count, eff_length=1000, p_good=None):
    record = basic_record(name, length=eff_length)
    record.add(ReadMetrics(eff_count=eff_count, eff_length=eff_length, p_good=p_good))
    return record


class TestNormalizeValue(unittest.TestCase):
    def test_ratio_pass_through(self):
        metric = BasicMetrics.get_metric('linguistic_complexity')
        self.assertEqual(0.3, scoring.normalize_value(metric, 0.3))

    def test_ratio_above_one(self):
        metric = BasicMetrics.get_metric('linguistic_complexity')
        with self.assertRaises(scoring.InvalidMetricError):
            scoring.normalize_value(metric, 1.5)

    def test_distance(self):
        metric = ComparativeMetrics.get_metric('identity_gap')
        self.assertAlmostEqual(0.75, scoring.normalize_value(metric, 25.0))
        self.assertEqual(0.0, scoring.normalize_value(metric, 250.0))
        self.assertEqual(1.0, scoring.normalize_value(metric, 0))

    def test_negative(self):
        metric = ComparativeMetrics.get_metric('identity_gap')
        with self.assertRaises(scoring.InvalidMetricError):
            scoring.normalize_value(metric, -1)

    def test_not_finite(self):
        metric = BasicMetrics.get_metric('p_n')
        with self.assertRaises(scoring.InvalidMetricError):
            scoring.normalize_value(metric, float('nan'))
        with self.assertRaises(scoring.InvalidMetricError):
            scoring.normalize_value(metric, float('inf'))

    def test_missing(self):
        metric = BasicMetrics.get_metric('p_n')
        self.assertIsNone(scoring.normalize_value(metric, None))

    def test_unscored_metric(self):
        self.assertIsNone(scoring.normalize_value(BasicMetrics.get_metric('length'), 100))

    def test_signed_metric_accepts_negative(self):
        self.assertEqual(-0.5, scoring.validate_value(BasicMetrics.get_metric('gc_skew'), -0.5))


class TestCountNormalization(unittest.TestCase):
    def test_relative_to_maximum(self):
        records = [reads_record('a', 100), reads_record('b', 10)]
        context = scoring.NormalizationContext.from_records(records)
        self.assertEqual(100.0, context.max_density['eff_count'])
        subscores = [scoring.normalize_record(record, context)['eff_count'] for record in records]
        self.assertEqual(1.0, subscores[0])
        self.assertAlmostEqual(math.log1p(10) / math.log1p(100), subscores[1])

    def test_length_relative(self):
        # the same density gives the same sub-score
        records = [reads_record('a', 100, eff_length=1000), reads_record('b', 200, eff_length=2000)]
        context = scoring.NormalizationContext.from_records(records)
        subscores = [scoring.normalize_record(record, context)['eff_count'] for record in records]
        self.assertAlmostEqual(subscores[0], subscores[1])

    def test_zero_maximum(self):
        records = [reads_record('a', 0), reads_record('b', 0)]
        context = scoring.NormalizationContext.from_records(records)
        self.assertIsNone(scoring.normalize_record(records[0], context)['eff_count'])

    def test_within_bounds(self):
        rnd = random.Random(17)
        records = [reads_record('c%d' % i, rnd.randint(0, 5000), eff_length=rnd.randint(100, 5000))
                   for i in range(50)]
        for subscores in scoring.normalize_records(records):
            self.assertTrue(0.0 <= subscores['eff_count'] <= 1.0)


class TestNormalizeRecord(unittest.TestCase):
    def test_invalid_value_is_reported(self):
        events = []
        record = basic_record('a', complexity=1.5, p_n=0.0)
        subscores = scoring.normalize_record(record, scoring.NormalizationContext(), observer=events.append)
        self.assertIsNone(subscores['linguistic_complexity'])
        self.assertEqual(1.0, subscores['p_n'])
        self.assertEqual(1, len(events))
        self.assertEqual('invalid_metric', events[0]['event'])
        self.assertEqual('a', events[0]['contig'])
        self.assertEqual('linguistic_complexity', events[0]['metric'])

    def test_strict(self):
        record = basic_record('a', complexity=1.5, p_n=0.0)
        with self.assertRaises(scoring.InvalidMetricError):
            scoring.normalize_record(record, scoring.NormalizationContext(), strict=True)

    def test_absent_categories_are_skipped(self):
        subscores = scoring.normalize_record(basic_record('a', 0.5, 0.0), scoring.NormalizationContext())
        self.assertEqual(['linguistic_complexity', 'p_n'], list(subscores.keys()))


class TestContigScore(unittest.TestCase):
    def test_all_ones(self):
        self.assertEqual(1.0, scoring.contig_score([1.0, 1.0, 1.0]))

    def test_any_zero(self):
        self.assertEqual(0.0, scoring.contig_score([0.9, 0.0, 1.0]))

    def test_missing_is_excluded(self):
        self.assertEqual(0.25, scoring.contig_score([0.25, None]))
        self.assertEqual(scoring.contig_score([0.4, 0.9]), scoring.contig_score({'a': 0.4, 'b': None, 'c': 0.9}))

    def test_nothing_present(self):
        self.assertIsNone(scoring.contig_score([None, None]))
        self.assertIsNone(scoring.contig_score([]))

    def test_geometric_mean(self):
        self.assertAlmostEqual(0.5, scoring.contig_score([0.25, 1.0]))

    def test_bounds(self):
        rnd = random.Random(3)
        for _ in range(200):
            values = [rnd.random() for _ in range(rnd.randint(1, 10))]
            score = scoring.contig_score(values)
            self.assertTrue(min(values) <= score <= max(values))

    def test_idempotent(self):
        for value in (0.1, 0.37, 0.999, 1e-9):
            self.assertEqual(value, scoring.contig_score([value] * 7))

    def test_score_contigs(self):
        records = [basic_record('a', 1.0, 0.0), basic_record('b', 0.0, 0.0), basic_record('c')]
        scores = scoring.score_contigs(records)
        self.assertEqual(['a', 'b', 'c'], list(scores.keys()))
        self.assertEqual(1.0, scores['a'])
        self.assertEqual(0.0, scores['b'])
        self.assertIsNone(scores['c'])


class TestAssemblyScore(unittest.TestCase):
    def test_order_independent(self):
        rnd = random.Random(5)
        scores = [rnd.random() for _ in range(1000)]
        expected = scoring.assembly_score(scores)
        for _ in range(5):
            rnd.shuffle(scores)
            self.assertEqual(expected, scoring.assembly_score(scores))

    def test_unscored_are_excluded(self):
        self.assertEqual(scoring.assembly_score([0.5, 0.8]), scoring.assembly_score({'a': 0.5, 'b': None, 'c': 0.8}))

    def test_zero(self):
        self.assertEqual(0.0, scoring.assembly_score([0.9, 0.0]))

    def test_all_ones(self):
        self.assertEqual(1.0, scoring.assembly_score([1.0] * 10))

    def test_nothing_scored(self):
        with self.assertRaises(scoring.NoScorableContigsError):
            scoring.assembly_score([None, None])
        with self.assertRaises(scoring.NoScorableContigsError):
            scoring.assembly_score({})

    def test_errors_share_base(self):
        self.assertTrue(issubclass(scoring.NoScorableContigsError, scoring.ScoringError))
        self.assertTrue(issubclass(scoring.InvalidMetricError, scoring.ScoringError))
        self.assertTrue(issubclass(scoring.OptimizationUndefinedError, scoring.ScoringError))


if __name__ == '__main__':
    unittest.main()
