#!/usr/bin/env python

############################################################################
# Copyright (c) 2015-2022 Saint Petersburg State University
# Copyright (c) 2011-2015 Saint Petersburg Academic University
# All Rights Reserved
# See file LICENSE for details.
############################################################################

import os
import sys

from asmscore_libs import qconfig, qutils
from asmscore_libs.assembly import load_assembly, AssemblyError
from asmscore_libs.options_parser import parse_options

from asmscore_libs.log import get_logger
logger = get_logger(qconfig.LOGGER_DEFAULT_NAME)
logger.set_up_console_handler()


def load_assemblies(contigs_fpaths, labels):
    from asmscore_libs import reporting
    assemblies = []
    for index, (contigs_fpath, label) in enumerate(zip(contigs_fpaths, labels)):
        qconfig.assembly_labels_by_fpath[contigs_fpath] = label
        try:
            assembly = load_assembly(contigs_fpath, label)
        except AssemblyError as e:
            logger.error('  ' + qutils.index_to_str(index) + label + ': ' + str(e) + ', skipping')
            continue
        logger.info('  ' + qutils.index_to_str(index) + contigs_fpath + ' ==> ' + label)
        reporting.get(contigs_fpath)
        assemblies.append(assembly)
    return assemblies


def main(args):
    if not args:
        qconfig.usage(stream=sys.stderr)
        sys.exit(2)

    contigs_fpaths = parse_options(logger, [__file__] + args)
    output_dirpath, ref_fpath, labels = qconfig.output_dirpath, qconfig.reference, qconfig.labels
    logger.main_info()
    logger.print_params()

    ########################################################################
    from asmscore_libs import reporting
    reporting.reports.clear()
    reporting.assembly_fpaths = []

    logger.main_info()
    logger.main_info('Contigs:')
    logger.main_info('  Pre-processing...')
    assemblies = load_assemblies(contigs_fpaths, labels)
    if not assemblies:
        logger.error("None of the assembly files contains correct contigs. "
                     "Please check the input files and try again.")
        return 4
    if qconfig.bam_fpaths:
        bam_by_fpath = dict(zip(contigs_fpaths, qconfig.bam_fpaths))
        qconfig.bam_fpaths = [bam_by_fpath[assembly.fpath] for assembly in assemblies]

    ########################################################################
    from asmscore_libs import basic_stats
    records_by_fpath = basic_stats.do(assemblies)

    ########################################################################
    failed_fpaths = []
    if qconfig.reads_provided():
        from asmscore_libs import reads_analyzer
        from asmscore_libs.score_analyzer import merge_metrics
        read_metrics_by_fpath, failed_fpaths = reads_analyzer.do(
            assemblies, os.path.join(output_dirpath, qconfig.reads_stats_dirname))
        for assembly in assemblies:
            merge_metrics(records_by_fpath[assembly.fpath], read_metrics_by_fpath.get(assembly.fpath))

    ########################################################################
    if ref_fpath:
        from asmscore_libs import comparative_analyzer
        from asmscore_libs.score_analyzer import merge_metrics
        comparative_metrics_by_fpath = comparative_analyzer.do(
            ref_fpath, assemblies, os.path.join(output_dirpath, qconfig.comparative_stats_dirname))
        for assembly in assemblies:
            merge_metrics(records_by_fpath[assembly.fpath], comparative_metrics_by_fpath.get(assembly.fpath))

    ########################################################################
    from asmscore_libs import score_analyzer
    scores_by_fpath, cutoff_results = score_analyzer.do(assemblies, records_by_fpath, output_dirpath, failed_fpaths)

    ########################################################################
    reports_fpaths, csv_fpath = reporting.save_total(output_dirpath)

    if qconfig.save_json:
        from asmscore_libs import json_saver
        json_saver.save_total_report(qconfig.json_output_dirpath, ref_fpath)
        for assembly in assemblies:
            if assembly.fpath in scores_by_fpath:
                json_saver.save_contig_scores(qconfig.json_output_dirpath, assembly.fpath,
                                              records_by_fpath[assembly.fpath].values(),
                                              scores_by_fpath[assembly.fpath], cutoff_results[assembly.fpath])

    all_pdf_fpath = None
    if qconfig.draw_plots:
        logger.print_timestamp()
        logger.main_info('Drawing plots...')
        from asmscore_libs import plotter
        scored_fpaths = [assembly.fpath for assembly in assemblies if assembly.fpath in scores_by_fpath]
        plotter.score_histogram(scored_fpaths, scores_by_fpath)
        plotter.cutoff_curve(scored_fpaths, scores_by_fpath, cutoff_results)
        plotter.assembly_scores_histogram(scored_fpaths, [reporting.get(fpath).get_field(reporting.Fields.ASSEMBLY_SCORE)
                                                          for fpath in scored_fpaths])
        all_pdf_fpath = plotter.fill_all_pdf_file(os.path.join(output_dirpath, qconfig.plots_fname))

    logger.main_info('RESULTS:')
    logger.main_info('  Text versions of total report are saved to ' + reports_fpaths)
    logger.main_info('  Assemblies summary (CSV) is saved to ' + csv_fpath)
    logger.main_info('  Contig scores are saved to ' + os.path.join(output_dirpath, qconfig.contigs_reports_dirname))
    if all_pdf_fpath:
        logger.main_info('  PDF version (plots) is saved to ' + all_pdf_fpath)
    if qconfig.save_json:
        logger.main_info('  JSON reports are saved to ' + qconfig.json_output_dirpath)

    return logger.finish_up()


if __name__ == '__main__':
    try:
        return_code = main(sys.argv[1:])
        exit(return_code)
    except Exception:
        _, exc_value, _ = sys.exc_info()
        logger.exception(exc_value)
        logger.error('exception caught!', exit_with_code=1, to_stderr=True)
