############################################################################
# Copyright (c) 2015-2022 Saint Petersburg State University
# Copyright (c) 2011-2015 Saint Petersburg Academic University
# All Rights Reserved
# See file LICENSE for details.
############################################################################

from __future__ import division
from collections import OrderedDict

from asmscore_libs import fastaparser, qconfig, qutils, reporting
from asmscore_libs.N50 import N50_and_L50, Nx_list
from asmscore_libs.metrics import BasicMetrics, MetricRecord
from asmscore_libs.log import get_logger
logger = get_logger(qconfig.LOGGER_DEFAULT_NAME)

STOP_CODONS = frozenset(['TAA', 'TAG', 'TGA'])


def get_skew(first, second):
    # (first - second) / (first + second), e.g. GC skew
    if not first + second:
        return None
    return (first - second) / (first + second)


def longest_orf(seq):
    """
    Length (in codons) of the longest stretch without stop codons
    over the three frames of both strands.
    """
    longest = 0
    for strand in (seq, fastaparser.rev_comp(seq)):
        for frame in range(3):
            current = 0
            for i in range(frame, len(strand) - 2, 3):
                if strand[i:i + 3] in STOP_CODONS:
                    longest = max(longest, current)
                    current = 0
                else:
                    current += 1
            longest = max(longest, current)
    return longest


def linguistic_complexity(seq, k=None):
    """
    Fraction of distinct k-mers among all k-mers possible for a sequence of this length.
    """
    k = k or qconfig.linguistic_complexity_k
    if len(seq) < k:
        return None
    possible = min(4 ** k, len(seq) - k + 1)
    distinct = len(set(seq[i:i + k] for i in range(len(seq) - k + 1)))
    return min(1.0, distinct / possible)


def contig_metrics(seq):
    seq = seq.upper()
    length = len(seq)
    a, c, g, t = seq.count('A'), seq.count('C'), seq.count('G'), seq.count('T')
    acgt = a + c + g + t
    cpg_count = seq.count('CG')
    orf_length = longest_orf(seq)
    return BasicMetrics(
        length=length,
        prop_gc=(g + c) / acgt if acgt else None,
        gc_skew=get_skew(g, c),
        at_skew=get_skew(a, t),
        cpg_count=cpg_count,
        cpg_ratio=cpg_count * length / (c * g) if c and g else None,
        orf_length=orf_length,
        p_orf=min(1.0, 3 * orf_length / length) if length else None,
        linguistic_complexity=linguistic_complexity(seq),
        p_n=(length - acgt) / length if length else None)


def process_single_file(contigs_fpath, index):
    # runs in a separate process, so it reads the FASTA itself
    logger.info('    ' + qutils.index_to_str(index) + 'Computing sequence statistics...')
    records = OrderedDict()
    for name, seq in fastaparser.read_fasta(contigs_fpath):
        records[name] = contig_metrics(seq)
    return records


def add_statistics_to_report(contigs_fpath, records):
    report = reporting.get(contigs_fpath)
    lengths = sorted([record.length for record in records.values()], reverse=True)
    total_length = sum(lengths)
    n50, l50 = N50_and_L50(lengths)

    report.add_field(reporting.Fields.CONTIGS, len(lengths))
    report.add_field(reporting.Fields.CONTIGS__FOR_THRESHOLDS,
                     [sum(1 for l in lengths if l >= threshold) for threshold in qconfig.contig_length_thresholds])
    report.add_field(reporting.Fields.SHORT_CONTIGS, sum(1 for l in lengths if l < qconfig.short_contig_threshold))
    report.add_field(reporting.Fields.LARGCONTIG, lengths[0] if lengths else None)
    report.add_field(reporting.Fields.TOTALLEN, total_length)
    report.add_field(reporting.Fields.MEANLEN, total_length / len(lengths) if lengths else None)
    report.add_field(reporting.Fields.N50, n50)
    report.add_field(reporting.Fields.L50, l50)
    nx_list = Nx_list(lengths, qconfig.nx_percentages)
    report.add_field(reporting.Fields.Nx__FOR_PERCENTAGES, [nx for percentage, nx, lx in nx_list])
    report.add_field(reporting.Fields.Lx__FOR_PERCENTAGES, [lx for percentage, nx, lx in nx_list])

    acgt_length, gc_length, n_length, orf_bases = 0, 0, 0, 0
    for record in records.values():
        metrics = record.basic
        if metrics['prop_gc'] is not None:
            record_acgt = record.length * (1 - metrics['p_n'])
            acgt_length += record_acgt
            gc_length += metrics['prop_gc'] * record_acgt
        n_length += record.length * metrics.get('p_n', 0)
        orf_bases += 3 * metrics['orf_length']
    if acgt_length:
        report.add_field(reporting.Fields.GC, 100.0 * gc_length / acgt_length)
    if total_length:
        report.add_field(reporting.Fields.UNCALLED_PER_100_KBP, n_length * 100000.0 / total_length)
        report.add_field(reporting.Fields.ORF_PERCENT, 100.0 * min(orf_bases, total_length) / total_length)
    complexities = [record.basic['linguistic_complexity'] for record in records.values()
                    if record.basic['linguistic_complexity'] is not None]
    if complexities:
        report.add_field(reporting.Fields.MEAN_COMPLEXITY, sum(complexities) / len(complexities))
    return n50, l50, total_length


def do(assemblies):
    """
    Computes basic metrics of every contig.
    Returns dict: contigs fpath -> OrderedDict(contig name -> MetricRecord)
    """
    logger.print_timestamp()
    logger.main_info('Running Basic statistics processor...')
    logger.info('  Contig files: ')
    for index, assembly in enumerate(assemblies):
        logger.info('    ' + qutils.index_to_str(index) + assembly.label)

    n_jobs = min(len(assemblies), qconfig.max_threads or 1)
    parallel_args = [(assembly.fpath, index) for index, assembly in enumerate(assemblies)]
    basic_metrics_list = qutils.run_parallel(process_single_file, parallel_args, n_jobs)

    logger.info('  Calculating N50 and L50...')
    records_by_fpath = dict()
    for index, (assembly, basic_metrics) in enumerate(zip(assemblies, basic_metrics_list)):
        records = OrderedDict()
        for name, metrics in basic_metrics.items():
            records[name] = MetricRecord(name, metrics['length'], basic=metrics)
        records_by_fpath[assembly.fpath] = records
        n50, l50, total_length = add_statistics_to_report(assembly.fpath, records)
        logger.info('    ' + qutils.index_to_str(index) + assembly.label +
                    ', N50 = ' + str(n50) + ', L50 = ' + str(l50) +
                    ', Total length = ' + str(total_length))

    logger.main_info('Done.')
    return records_by_fpath
