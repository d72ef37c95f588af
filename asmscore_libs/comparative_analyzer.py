############################################################################
# Copyright (c) 2015-2022 Saint Petersburg State University
# Copyright (c) 2011-2015 Saint Petersburg Academic University
# All Rights Reserved
# See file LICENSE for details.
############################################################################

from __future__ import division
import os
from collections import defaultdict
from os.path import join, isdir

from asmscore_libs import fastaparser, qconfig, qutils, reporting
from asmscore_libs.metrics import ComparativeMetrics

from asmscore_libs.log import get_logger
logger = get_logger(qconfig.LOGGER_DEFAULT_NAME)


class ComparisonError(Exception):
    pass


class Hit(object):
    __slots__ = ("contig", "contig_len", "ref", "ref_len", "ref_start", "ref_end", "matches", "block_len")

    def __init__(self, contig, contig_len, ref, ref_len, ref_start, ref_end, matches, block_len):
        self.contig, self.contig_len, self.ref, self.ref_len = contig, contig_len, ref, ref_len
        self.ref_start, self.ref_end, self.matches, self.block_len = ref_start, ref_end, matches, block_len

    @classmethod
    def from_line(cls, line):
        # line from PAF file, e.g.
        # contig_1  1131  5  1120  +  chr1  500000  1020  2135  1098  1115  60  tp:A:P  cs:Z::...
        fs = line.split('\t')
        if len(fs) < 12:
            return None
        return Hit(fs[0], int(fs[1]), fs[5], int(fs[6]), int(fs[7]), int(fs[8]), int(fs[9]), int(fs[10]))

    def identity(self):
        return 100.0 * self.matches / self.block_len if self.block_len else 0.0


def parse_paf(paf_fpath):
    hits = []
    with open(paf_fpath) as paf_file:
        try:
            for line_num, line in enumerate(paf_file, start=1):
                try:
                    hit = Hit.from_line(line)
                except ValueError as e:
                    raise ComparisonError('%s, line %d: malformed alignment (%s)' % (paf_fpath, line_num, e))
                if hit is not None:
                    hits.append(hit)
        except UnicodeDecodeError as e:
            raise ComparisonError('%s is not a text PAF file (%s)' % (paf_fpath, e))
    return hits


def covered_length(intervals):
    # total length of the union of half-open intervals
    total = 0
    cur_start, cur_end = None, None
    for start, end in sorted(intervals):
        if cur_end is None or start > cur_end:
            if cur_end is not None:
                total += cur_end - cur_start
            cur_start, cur_end = start, end
        else:
            cur_end = max(cur_end, end)
    if cur_end is not None:
        total += cur_end - cur_start
    return total


def best_hits(hits, key):
    # the best hit has the largest number of matching bases, ties are broken by names for determinism
    best = dict()
    for hit in hits:
        name = key(hit)
        if name not in best or (hit.matches, hit.ref, hit.contig) > (best[name].matches, best[name].ref, best[name].contig):
            best[name] = hit
    return best


def get_comparative_metrics(contig_names, hits):
    """
    Returns dict: contig name -> ComparativeMetrics.
    Contigs without hits get hits = 0 and undefined scored fields.
    """
    hits_by_contig = defaultdict(list)
    for hit in hits:
        hits_by_contig[hit.contig].append(hit)
    best_by_contig = best_hits(hits, key=lambda hit: hit.contig)
    best_by_ref = best_hits(hits, key=lambda hit: hit.ref)

    metrics_by_contig = dict()
    for name in contig_names:
        metrics = ComparativeMetrics(hits=len(hits_by_contig[name]), has_crb=0)
        best = best_by_contig.get(name)
        if best is not None:
            intervals = [(hit.ref_start, hit.ref_end) for hit in hits_by_contig[name] if hit.ref == best.ref]
            metrics['has_crb'] = int(best_by_ref[best.ref].contig == name)
            metrics['reference_coverage'] = min(1.0, covered_length(intervals) / best.ref_len) if best.ref_len else None
            metrics['identity_gap'] = max(0.0, 100.0 - best.identity())
        metrics_by_contig[name] = metrics
    return metrics_by_contig


def run_minimap(out_fpath, ref_fpath, contigs_fpath, err_fpath, index):
    minimap_fpath = qutils.get_path_to_program('minimap2')
    if not minimap_fpath:
        raise ComparisonError('minimap2 is not found in PATH')
    cmdline = [minimap_fpath, '-c', '-x', qconfig.minimap_preset, '-t', str(qconfig.max_threads), ref_fpath, contigs_fpath]
    with open(out_fpath, 'w') as out_f, open(err_fpath, 'a') as err_f:
        return_code = qutils.call_subprocess(cmdline, stdout=out_f, stderr=err_f,
                                             indent='  ' + qutils.index_to_str(index))
    if return_code != 0:
        raise ComparisonError('minimap2 returned %d, see %s' % (return_code, err_fpath))
    return out_fpath


def add_statistics_to_report(contigs_fpath, comparative_metrics, hits, ref_lengths):
    report = reporting.get(contigs_fpath)
    num_contigs = len(comparative_metrics)
    with_hits = sum(1 for m in comparative_metrics.values() if m['hits'])
    with_crb = sum(1 for m in comparative_metrics.values() if m['has_crb'])
    refs_with_crb = len(set(hit.ref for hit in hits if comparative_metrics[hit.contig]['has_crb']
                            and comparative_metrics[hit.contig]['hits']))

    intervals_by_ref = defaultdict(list)
    for hit in hits:
        intervals_by_ref[hit.ref].append((hit.ref_start, hit.ref_end))
    covered_by_ref = dict((ref, covered_length(intervals)) for ref, intervals in intervals_by_ref.items())
    total_ref_length = sum(ref_lengths.values())

    report.add_field(reporting.Fields.REFLEN, total_ref_length)
    report.add_field(reporting.Fields.REF_FRAGMENTS, len(ref_lengths))
    report.add_field(reporting.Fields.CONTIGS_WITH_HITS, with_hits)
    report.add_field(reporting.Fields.CONTIGS_WITH_HITS_PCNT, 100.0 * with_hits / num_contigs if num_contigs else None)
    report.add_field(reporting.Fields.CONTIGS_WITH_CRB, with_crb)
    if ref_lengths:
        report.add_field(reporting.Fields.REF_WITH_CRB_PCNT, 100.0 * refs_with_crb / len(ref_lengths))
        report.add_field(reporting.Fields.REF_COVERAGE__FOR_THRESHOLDS,
                         [100.0 * sum(1 for ref, length in ref_lengths.items()
                                      if length and 100.0 * covered_by_ref.get(ref, 0) / length >= threshold) / len(ref_lengths)
                          for threshold in qconfig.reference_coverage_thresholds])
    if total_ref_length:
        report.add_field(reporting.Fields.REF_COVERED_PCNT, 100.0 * sum(covered_by_ref.values()) / total_ref_length)


def process_single_file(assembly, index, ref_fpath, ref_lengths, output_dirpath, err_fpath):
    label = qutils.label_from_fpath_for_fname(assembly.fpath)
    paf_fpath = join(output_dirpath, label + '.paf')
    logger.info('  ' + qutils.index_to_str(index) + 'Aligning contigs to the reference...')
    run_minimap(paf_fpath, ref_fpath, assembly.fpath, err_fpath, index)
    hits = [hit for hit in parse_paf(paf_fpath) if hit.contig in assembly]
    unknown_refs = set(hit.ref for hit in hits) - set(ref_lengths.keys())
    if unknown_refs:
        raise ComparisonError('%s contains unknown reference sequences: %s' % (paf_fpath, ', '.join(sorted(unknown_refs))))
    comparative_metrics = get_comparative_metrics(assembly.names(), hits)
    add_statistics_to_report(assembly.fpath, comparative_metrics, hits, ref_lengths)
    return comparative_metrics


def do(ref_fpath, assemblies, output_dirpath):
    """
    Computes reference-based metrics of every contig.
    Returns dict: contigs fpath -> dict(contig name -> ComparativeMetrics), None for failed assemblies.
    """
    logger.print_timestamp()
    logger.main_info('Running Comparative analyzer...')

    if not isdir(output_dirpath):
        os.makedirs(output_dirpath)
    err_fpath = join(output_dirpath, 'minimap.err')
    open(err_fpath, 'w').close()

    ref_lengths = fastaparser.get_chr_lengths_from_fastafile(ref_fpath)
    logger.info('  Reference: ' + os.path.basename(ref_fpath) + ', length = ' + str(sum(ref_lengths.values())) +
                ', num fragments = ' + str(len(ref_lengths)))

    comparative_metrics_by_fpath = dict()
    for index, assembly in enumerate(assemblies):
        try:
            comparative_metrics_by_fpath[assembly.fpath] = \
                process_single_file(assembly, index, ref_fpath, ref_lengths, output_dirpath, err_fpath)
        except ComparisonError as e:
            comparative_metrics_by_fpath[assembly.fpath] = None
            logger.warning(qutils.index_to_str(index) + assembly.label + ': comparison with the reference failed, ' +
                           'comparative metrics are skipped (' + str(e) + ')', indent='  ')

    logger.main_info('Done.')
    return comparative_metrics_by_fpath
