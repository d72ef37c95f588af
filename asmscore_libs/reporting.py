############################################################################
# Copyright (c) 2015-2022 Saint Petersburg State University
# Copyright (c) 2011-2015 Saint Petersburg Academic University
# All Rights Reserved
# See file LICENSE for details.
############################################################################
import csv
import os

from asmscore_libs import qconfig, qutils
from asmscore_libs.metrics import present_categories

from asmscore_libs.log import get_logger
from asmscore_libs.qutils import val_to_str, format_float

logger = get_logger(qconfig.LOGGER_DEFAULT_NAME)


# Here you can modify content and order of metrics in AsmScore reports and names of metrics as well
class Fields:

####################################################################################
###########################  CONFIGURABLE PARAMETERS  ##############################
####################################################################################
    ### for indent before submetrics
    TAB = '    '

    ### List of available fields for reports. Values (strings) should be unique! ###

    # Header
    NAME = 'Assembly'

    # Basic statistics
    CONTIGS = '# contigs'
    CONTIGS__FOR_THRESHOLDS = ('# contigs (>= %d bp)', tuple(qconfig.contig_length_thresholds))
    SHORT_CONTIGS = '# contigs (< %d bp)' % qconfig.short_contig_threshold
    LARGCONTIG = 'Largest contig'
    TOTALLEN = 'Total length'
    MEANLEN = 'Mean contig length'
    N50 = 'N50'
    L50 = 'L50'
    Nx__FOR_PERCENTAGES = ('N%d', tuple(qconfig.nx_percentages))
    Lx__FOR_PERCENTAGES = ('L%d', tuple(qconfig.nx_percentages))
    GC = 'GC (%)'
    UNCALLED_PER_100_KBP = "# N's per 100 kbp"
    ORF_PERCENT = 'Bases in ORFs (%)'
    MEAN_COMPLEXITY = 'Mean linguistic complexity'

    # Read statistics
    FRAGMENTS = '# fragments mapped'
    GOOD_FRAGMENTS = '# good fragments'
    GOOD_FRAGMENTS_PCNT = 'Good fragments (%)'
    BRIDGES = '# bridging fragments'
    DEPTH = 'Avg. coverage depth'
    UNCOVERED_BASES_PCNT = 'Uncovered bases (%)'
    CONTIGS_WITHOUT_READS = '# contigs without reads'
    LOWCOVERED_CONTIGS = '# low-covered contigs'
    EXPRESSED_CONTIGS = '# contigs with expression'

    # Comparative statistics
    REFLEN = 'Reference length'
    REF_FRAGMENTS = '# reference sequences'
    CONTIGS_WITH_HITS = '# contigs with hits'
    CONTIGS_WITH_HITS_PCNT = 'Contigs with hits (%)'
    CONTIGS_WITH_CRB = '# contigs with RBH'
    REF_WITH_CRB_PCNT = 'Reference sequences with RBH (%)'
    REF_COVERED_PCNT = 'Reference covered (%)'
    REF_COVERAGE__FOR_THRESHOLDS = ('Reference sequences covered >= %d%% (%%)',
                                    tuple(qconfig.reference_coverage_thresholds))

    # Scores
    SCORED_CONTIGS = '# scored contigs'
    ASSEMBLY_SCORE = 'Assembly score'
    OPTIMAL_SCORE = 'Optimal score'
    CUTOFF = 'Optimal cutoff'
    GOOD_CONTIGS = '# good contigs'
    GOOD_CONTIGS_PCNT = 'Good contigs (%)'

    # content and order of metrics in MAIN REPORT (<output_dir>/report.txt, .tsv, assemblies.csv)
    basic_order = [CONTIGS, CONTIGS__FOR_THRESHOLDS, SHORT_CONTIGS, LARGCONTIG, TOTALLEN, MEANLEN,
                   N50, L50, Nx__FOR_PERCENTAGES, Lx__FOR_PERCENTAGES, GC, UNCALLED_PER_100_KBP,
                   ORF_PERCENT, MEAN_COMPLEXITY]
    reads_order = [FRAGMENTS, GOOD_FRAGMENTS, GOOD_FRAGMENTS_PCNT, BRIDGES, DEPTH, UNCOVERED_BASES_PCNT,
                   CONTIGS_WITHOUT_READS, LOWCOVERED_CONTIGS, EXPRESSED_CONTIGS]
    comparative_order = [REFLEN, REF_FRAGMENTS, CONTIGS_WITH_HITS, CONTIGS_WITH_HITS_PCNT, CONTIGS_WITH_CRB,
                         REF_WITH_CRB_PCNT, REF_COVERED_PCNT, REF_COVERAGE__FOR_THRESHOLDS]
    score_order = [SCORED_CONTIGS, ASSEMBLY_SCORE, OPTIMAL_SCORE, CUTOFF, GOOD_CONTIGS, GOOD_CONTIGS_PCNT]

    order = [NAME] + basic_order + reads_order + comparative_order + score_order

    ### Grouping of metrics for JSON version of main report
    grouped_order = [
        ('Contig statistics', basic_order),
        ('Reads mapping', reads_order),
        ('Reference comparison', comparative_order),
        ('Scores', score_order),
    ]

    # always present in the main report, even if undefined for all assemblies
    required_fields = [ASSEMBLY_SCORE, OPTIMAL_SCORE, CUTOFF]

####################################################################################
########################  END OF CONFIGURABLE PARAMETERS  ##########################
####################################################################################

    class Quality:
        MORE_IS_BETTER = 'More is better'
        LESS_IS_BETTER = 'Less is better'
        EQUAL = 'Equal'

    quality_dict = {
        Quality.MORE_IS_BETTER:
            [LARGCONTIG, TOTALLEN, MEANLEN, N50, Nx__FOR_PERCENTAGES, ORF_PERCENT, MEAN_COMPLEXITY,
             FRAGMENTS, GOOD_FRAGMENTS, GOOD_FRAGMENTS_PCNT, DEPTH, EXPRESSED_CONTIGS,
             CONTIGS_WITH_HITS, CONTIGS_WITH_HITS_PCNT, CONTIGS_WITH_CRB, REF_WITH_CRB_PCNT, REF_COVERED_PCNT,
             REF_COVERAGE__FOR_THRESHOLDS,
             ASSEMBLY_SCORE, OPTIMAL_SCORE, GOOD_CONTIGS, GOOD_CONTIGS_PCNT],
        Quality.LESS_IS_BETTER:
            [L50, Lx__FOR_PERCENTAGES, SHORT_CONTIGS, UNCALLED_PER_100_KBP,
             BRIDGES, UNCOVERED_BASES_PCNT, CONTIGS_WITHOUT_READS, LOWCOVERED_CONTIGS],
        Quality.EQUAL:
            [CONTIGS, CONTIGS__FOR_THRESHOLDS, GC, REFLEN, REF_FRAGMENTS, SCORED_CONTIGS, CUTOFF],
        }


####################################################################################
# Reporting module (singleton) for AsmScore
#
# See class Fields to available fields for report.
# Usage from AsmScore modules:
#  from asmscore_libs import reporting
#  report = reporting.get(contigs_fpath)
#  report.add_field(reporting.Fields.N50, n50)
#
# Import this module only after final changes in qconfig!
#
####################################################################################

reports = {}  # abspath of contigs file -> Report
assembly_fpaths = []  # for printing in appropriate order


def get_quality(metric):
    for quality, metrics in Fields.quality_dict.items():
        if metric in metrics:
            return quality
    return Fields.Quality.EQUAL


def _check_field(field):
    assert field in Fields.__dict__.values(), 'Unknown field: %s' % str(field)


# Report for one contigs file, dict: field -> value
class Report(object):
    def __init__(self, name):
        self.d = {}
        self.add_field(Fields.NAME, name)

    def add_field(self, field, value):
        _check_field(field)
        self.d[field] = value

    def get_field(self, field):
        _check_field(field)
        return self.d.get(field, None)


def get(assembly_fpath):
    if assembly_fpath not in assembly_fpaths:
        assembly_fpaths.append(assembly_fpath)
    return reports.setdefault(os.path.abspath(assembly_fpath), Report(qutils.label_from_fpath(assembly_fpath)))


# ATTENTION! Contains numeric values, needed to be converted into strings
def table(order=Fields.order):
    if not isinstance(order[0], tuple):  # is not a groupped metrics order
        order = [('', order)]

    table = []

    def append_line(rows, field, are_multiple_thresholds=False, pattern=None, feature=None, i=None):
        quality = get_quality(field)
        values = []

        for assembly_fpath in assembly_fpaths:
            value = get(assembly_fpath).get_field(field)

            if are_multiple_thresholds:
                values.append(value[i] if (value and i < len(value)) else None)
            else:
                values.append(value)

        if any(v is not None for v in values) or field in Fields.required_fields:
            metric_name = field if (feature is None) else pattern % int(feature)
            rows.append({
                'metricName': metric_name,
                'quality': quality,
                'values': values,
            })

    for group_name, metrics in order:
        rows = []
        table.append((group_name, rows))

        for field in metrics:
            if isinstance(field, tuple):
                for i, feature in enumerate(field[1]):
                    append_line(rows, field, are_multiple_thresholds=True, pattern=field[0], feature=feature, i=i)
            else:
                append_line(rows, field)

    if len(order) == 1 and not order[0][0]:  # is not a groupped metrics order
        group_name, rows = table[0]
        return rows
    else:
        return table


def _cell(value):
    if isinstance(value, float):
        return format_float(value, qconfig.report_txt_decimals, missing='-')
    return val_to_str(value)


def save_txt(fpath, all_rows):
    # determine width of columns for nice spaces
    colwidths = [0] * (len(all_rows[0]['values']) + 1)
    for row in all_rows:
        for i, cell in enumerate([row['metricName']] + [_cell(this) for this in row['values']]):
            colwidths[i] = max(colwidths[i], len(cell))

    with open(fpath, 'w') as txt_file:
        for row in all_rows:
            txt_file.write('  '.join('%-*s' % (colwidth, cell) for colwidth, cell
                in zip(colwidths, [row['metricName']] + [_cell(this) for this in row['values']])) + "\n")


def save_tsv(fpath, all_rows):
    with open(fpath, 'w') as tsv_file:
        for row in all_rows:
            tsv_file.write('\t'.join([row['metricName']] + [_cell(this) for this in row['values']]) + "\n")


def save_assemblies_csv(output_dirpath):
    # one row per assembly, columns in the order of the main report
    all_rows = table(Fields.order)
    fpath = os.path.join(output_dirpath, qconfig.assemblies_csv_fname)
    with open(fpath, 'w') as csv_file:
        writer = csv.writer(csv_file, lineterminator='\n')
        writer.writerow([row['metricName'] for row in all_rows])
        for i in range(len(assembly_fpaths)):
            writer.writerow([all_rows[0]['values'][i]] +
                            [format_float(row['values'][i], qconfig.assembly_csv_decimals) for row in all_rows[1:]])
    return fpath


def save_contigs_csv(fpath, records, scores):
    """
    One row per contig: name, metrics of the categories present in any record, score.
    """
    records = list(records)
    categories = present_categories(records)
    with open(fpath, 'w') as csv_file:
        writer = csv.writer(csv_file, lineterminator='\n')
        writer.writerow(['contig_name'] + [name for cls in categories for name in cls.field_names()] + ['score'])
        for record in records:
            row = [record.contig]
            for cls in categories:
                metric_set = record.category(cls.CATEGORY)
                values = metric_set.values() if metric_set is not None else [None] * len(cls.FIELDS)
                row.extend(format_float(value, qconfig.contig_csv_decimals) for value in values)
            row.append(format_float(scores.get(record.contig), qconfig.contig_csv_decimals))
            writer.writerow(row)
    return fpath


def save(output_dirpath, report_name, order, silent=False):
    # Where total report will be saved
    all_rows = table(order)

    if not silent:
        logger.info('  Creating total report...')
    report_txt_fpath = os.path.join(output_dirpath, report_name) + '.txt'
    report_tsv_fpath = os.path.join(output_dirpath, report_name) + '.tsv'

    save_txt(report_txt_fpath, all_rows)
    save_tsv(report_tsv_fpath, all_rows)
    reports_fpaths = report_txt_fpath + ', ' + os.path.basename(report_tsv_fpath)
    if not silent:
        logger.info('    saved to ' + reports_fpaths)

    csv_fpath = save_assemblies_csv(output_dirpath)
    if not silent:
        logger.info('  Assemblies summary saved to ' + csv_fpath)
    return reports_fpaths, csv_fpath


def save_total(output_dirpath, silent=True):
    if not silent:
        logger.print_timestamp()
        logger.info('Summarizing...')
    return save(output_dirpath, qconfig.report_prefix, Fields.order, silent=silent)
