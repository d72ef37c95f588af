############################################################################
# Copyright (c) 2015-2022 Saint Petersburg State University
# Copyright (c) 2011-2015 Saint Petersburg Academic University
# All Rights Reserved
# See file LICENSE for details.
############################################################################

from __future__ import division
import os
from os.path import join, isdir

from asmscore_libs import fastaparser, qconfig, qutils, reporting
from asmscore_libs.cutoff_optimizer import optimize
from asmscore_libs.scoring import assembly_score, score_contigs, ScoringError

from asmscore_libs.log import get_logger
logger = get_logger(qconfig.LOGGER_DEFAULT_NAME)


def log_observer(label, indent='    '):
    """
    Forwards events of the scoring engine to the logger.
    """
    def observer(event):
        if event['event'] == 'invalid_metric':
            logger.warning('%s: invalid value of %s in contig %s (%r: %s), the metric is skipped' %
                           (label, event['metric'], event['contig'], event['value'], event['reason']), indent=indent)
        elif event['event'] == 'cutoff_search_completed':
            logger.info(indent + '%s: optimal cutoff = %s, %d of %d contigs retained, optimal score = %s' %
                        (label, qutils.format_float(event['threshold'], qconfig.report_txt_decimals),
                         event['retained'], event['total'],
                         qutils.format_float(event['optimal_score'], qconfig.report_txt_decimals)))
        else:
            logger.debug(indent + label + ': ' + str(event))
    return observer


def merge_metrics(records, metrics_by_contig):
    # attaches metric sets of one category (dict: contig name -> MetricSet) to the records
    if metrics_by_contig is None:
        return records
    for name, record in records.items():
        metric_set = metrics_by_contig.get(name)
        if metric_set is not None:
            record.add(metric_set)
    return records


def evaluate_assembly(records, strict=False, observer=None, good_contigs_fpath=None):
    """
    Returns contig name -> score and CutoffResult.
    Raises ScoringError subclasses when the assembly cannot be scored.
    """
    scores = score_contigs(list(records), strict=strict, observer=observer)
    # fails early if nothing is scored
    assembly_score(scores)
    cutoff_result = optimize(scores, output_fpath=good_contigs_fpath, observer=observer)
    return scores, cutoff_result


def add_statistics_to_report(contigs_fpath, scores, cutoff_result):
    report = reporting.get(contigs_fpath)
    scored = [score for score in scores.values() if score is not None]
    report.add_field(reporting.Fields.SCORED_CONTIGS, len(scored))
    report.add_field(reporting.Fields.ASSEMBLY_SCORE, assembly_score(scored))
    report.add_field(reporting.Fields.OPTIMAL_SCORE, cutoff_result.optimal_score)
    report.add_field(reporting.Fields.CUTOFF, cutoff_result.cutoff)
    report.add_field(reporting.Fields.GOOD_CONTIGS, cutoff_result.retained)
    if scores:
        report.add_field(reporting.Fields.GOOD_CONTIGS_PCNT, 100.0 * cutoff_result.retained / len(scores))


def save_good_fasta(assembly, good_contigs, fasta_fpath):
    fastaparser.write_fasta(fasta_fpath, [(name, assembly[name].seq) for name in good_contigs])
    return fasta_fpath


def do(assemblies, records_by_fpath, output_dirpath, failed_fpaths=None):
    """
    Scores contigs of every assembly and searches for the optimal score cutoff.
    Returns dict: contigs fpath -> contig scores, dict: contigs fpath -> CutoffResult.
    Assemblies which cannot be scored are absent from both.
    """
    logger.print_timestamp()
    logger.main_info('Running Score analyzer...')

    contigs_reports_dirpath = join(output_dirpath, qconfig.contigs_reports_dirname)
    if not isdir(contigs_reports_dirpath):
        os.makedirs(contigs_reports_dirpath)

    scores_by_fpath = dict()
    cutoff_results = dict()
    for index, assembly in enumerate(assemblies):
        index_str = qutils.index_to_str(index)
        label = qutils.label_from_fpath_for_fname(assembly.fpath)
        records = records_by_fpath[assembly.fpath]
        if failed_fpaths and assembly.fpath in failed_fpaths and qconfig.require_reads:
            logger.error('  ' + index_str + assembly.label + ': skipping scoring, read metrics are required '
                         'but could not be computed')
            continue

        logger.info('  ' + index_str + 'Scoring ' + str(len(records)) + ' contigs of ' + assembly.label + '...')
        good_contigs_fpath = join(output_dirpath, qconfig.good_contigs_fname_pattern % label)
        try:
            scores, cutoff_result = evaluate_assembly(records.values(), strict=qconfig.strict_metrics,
                                                      observer=log_observer(assembly.label),
                                                      good_contigs_fpath=good_contigs_fpath)
        except ScoringError as e:
            logger.error('  ' + index_str + assembly.label + ': scoring failed: ' + str(e))
            continue

        scores_by_fpath[assembly.fpath] = scores
        cutoff_results[assembly.fpath] = cutoff_result
        add_statistics_to_report(assembly.fpath, scores, cutoff_result)

        contigs_csv_fpath = join(contigs_reports_dirpath, label + qconfig.contigs_csv_suffix)
        reporting.save_contigs_csv(contigs_csv_fpath, records.values(), scores)
        logger.info('    ' + index_str + 'Contig scores saved to ' + contigs_csv_fpath)
        logger.info('    ' + index_str + 'Good contig names saved to ' + good_contigs_fpath)
        if qconfig.write_good_fasta:
            fasta_fpath = save_good_fasta(assembly, cutoff_result.good_contigs,
                                          join(output_dirpath, qconfig.good_fasta_fname_pattern % label))
            logger.info('    ' + index_str + 'Good contigs saved to ' + fasta_fpath)

    logger.main_info('Done.')
    return scores_by_fpath, cutoff_results
