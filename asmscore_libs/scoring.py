############################################################################
# Copyright (c) 2015-2022 Saint Petersburg State University
# Copyright (c) 2011-2015 Saint Petersburg Academic University
# All Rights Reserved
# See file LICENSE for details.
############################################################################

"""
Conversion of raw per-contig metrics into sub-scores, contig scores and the assembly score.

Sub-scores lie in [0, 1], 1 is the best. An undefined sub-score (None) means
"no evidence" and is excluded from the contig score instead of counting as 0.
The functions here never log: events are passed to an optional observer callable.
"""

from __future__ import division
import math
from collections import OrderedDict

from asmscore_libs import qconfig
from asmscore_libs.metrics import Kind


class ScoringError(Exception):
    pass


class InvalidMetricError(ScoringError):
    def __init__(self, metric, value, reason, contig=None):
        self.metric = metric
        self.value = value
        self.reason = reason
        self.contig = contig
        super(InvalidMetricError, self).__init__(
            '%s%s = %r is invalid: %s' % ((contig + ': ') if contig else '', metric.name, value, reason))


class NoScorableContigsError(ScoringError):
    pass


class OptimizationUndefinedError(ScoringError):
    pass


def notify(observer, event, **fields):
    if observer is not None:
        fields['event'] = event
        observer(fields)


def validate_value(metric, value, contig=None):
    if value is None:
        return None
    value = float(value) if isinstance(value, bool) else value
    if isinstance(value, float) and (math.isnan(value) or math.isinf(value)):
        raise InvalidMetricError(metric, value, 'value is not finite', contig)
    if value < 0 and not metric.signed:
        raise InvalidMetricError(metric, value, 'value must be non-negative', contig)
    if metric.kind == Kind.RATIO and value > 1:
        raise InvalidMetricError(metric, value, 'ratio is greater than 1', contig)
    return value


def count_density(value, length):
    # count per kbp, so long contigs do not win just by collecting more reads
    if not length or length <= 0:
        return None
    return value * qconfig.count_density_scale / length


class NormalizationContext(object):
    """
    Assembly-wide statistics needed to normalize count metrics:
    the maximal length-relative density of every count metric.
    """
    __slots__ = ("max_density",)

    def __init__(self, max_density=None):
        self.max_density = max_density or {}

    @classmethod
    def from_records(cls, records):
        max_density = {}
        for record in records:
            for metric_set in record.metric_sets():
                for metric in metric_set.scored_metrics():
                    if metric.kind != Kind.COUNT:
                        continue
                    try:
                        value = validate_value(metric, metric_set[metric.name])
                    except InvalidMetricError:
                        continue  # reported when the record itself is normalized
                    if value is None:
                        continue
                    density = count_density(value, record.effective_length())
                    if density is not None:
                        max_density[metric.name] = max(max_density.get(metric.name, 0.0), density)
        return cls(max_density)


def normalize_value(metric, value, length=None, context=None, contig=None):
    value = validate_value(metric, value, contig)
    if value is None or metric.kind is None:
        return None

    if metric.kind == Kind.RATIO:
        return float(value)

    if metric.kind == Kind.DISTANCE:
        return max(0.0, 1.0 - value / metric.scale)

    if metric.kind == Kind.COUNT:
        density = count_density(value, length)
        max_density = context.max_density.get(metric.name) if context else None
        if density is None or not max_density:
            return None
        return min(1.0, math.log1p(density) / math.log1p(max_density))

    raise ValueError('unknown metric kind: ' + str(metric.kind))


def normalize_record(record, context, strict=False, observer=None):
    """
    Returns ordered sub-scores of all scored metrics of the categories present in the record.
    With strict=False an invalid raw value becomes a missing sub-score.
    """
    subscores = OrderedDict()
    for metric_set in record.metric_sets():
        for metric in metric_set.scored_metrics():
            try:
                subscores[metric.name] = normalize_value(metric, metric_set[metric.name],
                                                         record.effective_length(), context, record.contig)
            except InvalidMetricError as e:
                if strict:
                    raise
                notify(observer, 'invalid_metric', contig=record.contig, metric=metric.name,
                       value=e.value, reason=e.reason)
                subscores[metric.name] = None
    return subscores


def normalize_records(records, strict=False, observer=None):
    context = NormalizationContext.from_records(records)
    return [normalize_record(record, context, strict, observer) for record in records]


def geometric_mean(values):
    values = list(values)
    if not values:
        return None
    if any(value == 0 for value in values):
        return 0.0
    mean = math.exp(math.fsum(math.log(value) for value in values) / len(values))
    # exp(log(x)) may differ from x in the last bit
    return min(max(mean, min(values)), max(values))


def contig_score(subscores):
    if hasattr(subscores, 'values'):
        subscores = subscores.values()
    return geometric_mean(value for value in subscores if value is not None)


def score_contigs(records, strict=False, observer=None):
    """
    Returns OrderedDict: contig name -> score, None for contigs without any sub-score.
    """
    scores = OrderedDict()
    for record, subscores in zip(records, normalize_records(records, strict, observer)):
        scores[record.contig] = contig_score(subscores)
    return scores


def assembly_score(scores):
    if hasattr(scores, 'values'):
        scores = scores.values()
    scored = [score for score in scores if score is not None]
    if not scored:
        raise NoScorableContigsError('none of the contigs has a score')
    return geometric_mean(scored)
