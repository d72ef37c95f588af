############################################################################
# Copyright (c) 2015-2022 Saint Petersburg State University
# Copyright (c) 2011-2015 Saint Petersburg Academic University
# All Rights Reserved
# See file LICENSE for details.
############################################################################

"""
Search of the contig score cutoff maximizing the assembly score of the retained contigs.

Contigs are ranked by score and the retained prefix grows one distinct score value
at a time, so every contig enters the running geometric mean exactly once.
The contig collection itself is never changed: the result only names the good contigs.

Note that the assembly score is an unweighted geometric mean, and adding a contig
scored below the current mean can only lower it. The best prefix is therefore always
the group of contigs sharing the top score: scores {0.9, 0.89, 0.88, 0.1} keep only
the 0.9 contig. Expect good.<label>.fa to be small unless many contigs tie at the top.
"""

from __future__ import division
import math

from asmscore_libs.scoring import assembly_score, notify, OptimizationUndefinedError


class LogAccumulator(object):
    """
    Running state of a geometric mean: sum of logarithms of positive scores,
    number of scores and number of zero scores.
    Accumulators of disjoint contig sets can be merged.
    """
    __slots__ = ("log_sum", "count", "zeros")

    def __init__(self):
        self.log_sum = 0.0
        self.count = 0
        self.zeros = 0

    def add(self, score):
        self.count += 1
        if score == 0:
            self.zeros += 1
        else:
            self.log_sum += math.log(score)

    def merge(self, other):
        self.log_sum += other.log_sum
        self.count += other.count
        self.zeros += other.zeros
        return self

    def mean(self):
        if not self.count:
            return None
        if self.zeros:
            return 0.0
        return math.exp(self.log_sum / self.count)


class CutoffResult(object):
    __slots__ = ("optimal_score", "cutoff", "good_contigs", "total")

    def __init__(self, optimal_score, cutoff, good_contigs, total):
        self.optimal_score = optimal_score
        self.cutoff = cutoff
        self.good_contigs = good_contigs
        self.total = total

    @property
    def retained(self):
        return len(self.good_contigs)

    def __repr__(self):
        return 'CutoffResult(optimal_score=%r, cutoff=%r, retained=%d/%d)' % \
               (self.optimal_score, self.cutoff, self.retained, self.total)


def rank_contigs(scores):
    """
    Takes contig name -> score mapping (or pairs), unscored contigs are dropped.
    Returns [(name, score)] by score descending, ties broken by name.
    """
    if hasattr(scores, 'items'):
        scores = scores.items()
    return sorted(((name, score) for name, score in scores if score is not None),
                  key=lambda x: (-x[1], x[0]))


def contigs_passing(ranked, threshold):
    return [name for name, score in ranked if score >= threshold]


def save_good_contigs(fpath, good_contigs):
    with open(fpath, 'w') as out_f:
        for name in good_contigs:
            out_f.write(name + '\n')
    return fpath


def sweep(ranked):
    """
    Takes ranked contigs, yields (threshold, retained, score) for every distinct score,
    thresholds descending. The score is the geometric mean of the contigs with score >= threshold.
    """
    accumulator = LogAccumulator()
    i = 0
    while i < len(ranked):
        threshold = ranked[i][1]
        while i < len(ranked) and ranked[i][1] == threshold:
            accumulator.add(ranked[i][1])
            i += 1
        yield threshold, i, accumulator.mean()


def optimize(scores, output_fpath=None, observer=None):
    ranked = rank_contigs(scores)
    if not ranked:
        raise OptimizationUndefinedError('none of the contigs has a score')

    best_score, best_size = None, 0
    for threshold, retained, candidate in sweep(ranked):
        if retained == len(ranked):
            break  # "keep all" is evaluated below
        # '>=' prefers the larger retained set on ties
        if best_score is None or candidate >= best_score:
            best_score, best_size = candidate, retained

    optimal_score = assembly_score(score for name, score in ranked)
    retained = len(ranked)
    if best_score is not None and best_score > optimal_score:
        exact_best = assembly_score(score for name, score in ranked[:best_size])
        if exact_best > optimal_score:
            optimal_score, retained = exact_best, best_size

    cutoff = ranked[retained - 1][1]
    result = CutoffResult(optimal_score, cutoff, [name for name, score in ranked[:retained]], len(ranked))

    if output_fpath:
        save_good_contigs(output_fpath, result.good_contigs)

    notify(observer, 'cutoff_search_completed', threshold=cutoff,
           retained=result.retained, total=result.total, optimal_score=result.optimal_score)
    return result
