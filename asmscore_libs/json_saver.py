############################################################################
# Copyright (c) 2015-2022 Saint Petersburg State University
# Copyright (c) 2011-2015 Saint Petersburg Academic University
# All Rights Reserved
# See file LICENSE for details.
############################################################################

import datetime
import os
from os.path import join

import simplejson as json

from asmscore_libs import qutils, qconfig

from asmscore_libs.log import get_logger
log = get_logger(qconfig.LOGGER_DEFAULT_NAME)

total_report_fname = 'report.json'
scores_suffix_fn = '.scores.json'


def save(fpath, what):
    if os.path.exists(fpath):
        os.remove(fpath)

    with open(fpath, 'w') as json_file:
        json.dump(what, json_file, separators=(',', ':'))
    return fpath


def save_total_report(output_dirpath, ref_fpath):
    from asmscore_libs import reporting
    asm_names = [qutils.label_from_fpath(this) for this in reporting.assembly_fpaths]
    report = reporting.table(reporting.Fields.grouped_order)
    t = datetime.datetime.now()

    return save(join(output_dirpath, total_report_fname), {
        'date': t.strftime('%d %B %Y, %A, %H:%M:%S'),
        'version': qconfig.asmscore_version(),
        'assembliesNames': asm_names,
        'referenceName': qutils.name_from_fpath(ref_fpath) if ref_fpath else '',
        'order': [i for i, _ in enumerate(asm_names)],
        'report': report,
    })


def save_contig_scores(output_dirpath, contigs_fpath, records, scores, cutoff_result=None):
    """
    Per-contig metric records and scores of one assembly.
    Records are stored in the versioned form of MetricRecord.as_dict().
    """
    from asmscore_libs.metrics import SCHEMA_VERSION
    label = qutils.label_from_fpath_for_fname(contigs_fpath)
    good_contigs = set(cutoff_result.good_contigs) if cutoff_result else set()
    contigs = []
    for record in records:
        contig = record.as_dict()
        contig['score'] = scores.get(record.contig)
        contig['good'] = record.contig in good_contigs
        contigs.append(contig)

    what = {
        'assembly': qutils.label_from_fpath(contigs_fpath),
        'schemaVersion': SCHEMA_VERSION,
        'contigs': contigs,
    }
    if cutoff_result is not None:
        what['optimalScore'] = cutoff_result.optimal_score
        what['cutoff'] = cutoff_result.cutoff
        what['retained'] = cutoff_result.retained
        what['total'] = cutoff_result.total
    return save(join(output_dirpath, label + scores_suffix_fn), what)
