############################################################################
# Copyright (c) 2015-2022 Saint Petersburg State University
# Copyright (c) 2011-2015 Saint Petersburg Academic University
# All Rights Reserved
# See file LICENSE for details.
############################################################################

from __future__ import division
import os
import re
from os.path import join, isdir, abspath, getsize

from asmscore_libs import qconfig, qutils, reporting, salmon
from asmscore_libs.metrics import ReadMetrics
from asmscore_libs.qutils import is_non_empty_file

from asmscore_libs.log import get_logger
logger = get_logger(qconfig.LOGGER_DEFAULT_NAME)

CIGAR_PATTERN = re.compile(r'(\d+)([MIDNSHP=X])')
REF_CONSUMING_OPS = 'MDN=X'

# SAM flags
PAIRED = 0x1
PROPER_PAIR = 0x2
UNMAPPED = 0x4
MATE_UNMAPPED = 0x8
FIRST_IN_PAIR = 0x40
SECONDARY = 0x100
SUPPLEMENTARY = 0x800


class ReadAnalysisError(Exception):
    pass


class Mapping(object):
    __slots__ = ("flag", "ref", "start", "mapq", "cigar", "ref_next")

    def __init__(self, fields):
        self.flag, self.ref, self.start, self.mapq, self.cigar, self.ref_next = \
            int(fields[1]), fields[2], int(fields[3]), int(fields[4]), fields[5], fields[6]

    @staticmethod
    def parse(line):
        if line.startswith('@'):  # header
            return None
        fs = line.split('\t')
        if len(fs) < 11:  # not valid line
            return None
        return Mapping(fs)

    def is_primary(self):
        return not self.flag & (UNMAPPED | SECONDARY | SUPPLEMENTARY)

    def is_paired(self):
        return bool(self.flag & PAIRED)

    def mate_unmapped(self):
        return bool(self.flag & MATE_UNMAPPED)

    def mate_on_same_contig(self):
        return self.ref_next == '=' or self.ref_next == self.ref

    def ref_span(self):
        if self.cigar == '*':
            return 0
        return sum(int(length) for length, op in CIGAR_PATTERN.findall(self.cigar) if op in REF_CONSUMING_OPS)


class ContigReadStats(object):
    __slots__ = ("fragments", "good", "bridges", "depth_changes")

    def __init__(self, length):
        self.fragments = 0
        self.good = 0
        self.bridges = 0
        self.depth_changes = [0] * (length + 1)

    def add_coverage(self, start, span):
        # start is 1-based
        if span <= 0:
            return
        length = len(self.depth_changes) - 1
        begin = min(max(start - 1, 0), length)
        end = min(begin + span, length)
        self.depth_changes[begin] += 1
        self.depth_changes[end] -= 1

    def coverage_stats(self):
        length = len(self.depth_changes) - 1
        depth, covered, total_depth = 0, 0, 0
        for change in self.depth_changes[:length]:
            depth += change
            if depth > 0:
                covered += 1
                total_depth += depth
        return covered, total_depth


def parse_sam(sam_fpath, contig_lengths):
    """
    Collects per-contig fragment counts and coverage from primary alignments.
    A fragment is counted on every contig one of its reads is aligned to.
    """
    stats = dict((name, ContigReadStats(length)) for name, length in contig_lengths.items())
    with open(sam_fpath) as sam_file:
        try:
            for line_num, line in enumerate(sam_file, start=1):
                try:
                    mapping = Mapping.parse(line)
                except ValueError as e:
                    raise ReadAnalysisError('%s, line %d: malformed alignment (%s)' % (sam_fpath, line_num, e))
                if mapping is None or not mapping.is_primary():
                    continue
                contig_stats = stats.get(mapping.ref)
                if contig_stats is None:
                    raise ReadAnalysisError('contig %s from %s is not in the assembly' % (mapping.ref, sam_fpath))

                if not mapping.is_paired() or mapping.mate_unmapped():
                    contig_stats.fragments += 1
                elif mapping.mate_on_same_contig():
                    if mapping.flag & FIRST_IN_PAIR:
                        contig_stats.fragments += 1
                        if mapping.flag & PROPER_PAIR and mapping.mapq >= qconfig.MIN_MAP_QUALITY:
                            contig_stats.good += 1
                else:
                    contig_stats.fragments += 1
                    contig_stats.bridges += 1

                if mapping.mapq >= qconfig.MIN_MAP_QUALITY:
                    contig_stats.add_coverage(mapping.start, mapping.ref_span())
        except UnicodeDecodeError as e:
            raise ReadAnalysisError('%s is not a text SAM file (%s)' % (sam_fpath, e))
    return stats


def get_read_metrics(contig_lengths, stats, expression):
    metrics_by_contig = dict()
    for name, length in contig_lengths.items():
        contig_stats = stats[name]
        covered, total_depth = contig_stats.coverage_stats()
        metrics = ReadMetrics(
            fragments=contig_stats.fragments,
            good=contig_stats.good,
            bridges=contig_stats.bridges,
            p_good=contig_stats.good / contig_stats.fragments if contig_stats.fragments else None,
            bases_covered=covered,
            p_bases_covered=covered / length if length else None,
            coverage=total_depth / length if length else None)
        record = expression.get(name) if expression else None
        if record is not None:
            metrics['eff_length'] = record.eff_len
            metrics['eff_count'] = record.eff_count
            metrics['tpm'] = record.tpm
        metrics_by_contig[name] = metrics
    return metrics_by_contig


def get_program(name):
    program_fpath = qutils.get_path_to_program(name)
    if not program_fpath:
        raise ReadAnalysisError('%s is not found in PATH' % name)
    return program_fpath


def bwa_index(contigs_fpath, index_prefix, err_fpath):
    cmd = [get_program('bwa'), 'index', '-p', index_prefix, contigs_fpath]
    if getsize(contigs_fpath) > 2 * 1024 ** 3:  # if assembly size bigger than 2GB
        cmd += ['-a', 'bwtsw']
    if not is_non_empty_file(index_prefix + '.bwt'):
        with open(err_fpath, 'a') as err_f:
            return_code = qutils.call_subprocess(cmd, stdout=err_f, stderr=err_f, logger=logger)
        if return_code != 0:
            raise ReadAnalysisError('BWA failed to index %s, see %s' % (contigs_fpath, err_fpath))


def get_reads_libraries():
    libraries = [[read1, read2] for read1, read2 in zip(qconfig.forward_reads, qconfig.reverse_reads)]
    libraries.extend([reads] for reads in qconfig.unpaired_reads)
    return libraries


def align_reads(contigs_fpath, output_dirpath, sam_fpath, err_fpath):
    index_prefix = join(output_dirpath, 'bwa_index')
    bwa_index(contigs_fpath, index_prefix, err_fpath)

    lib_sam_fpaths = []
    for idx, reads in enumerate(get_reads_libraries()):
        lib_sam_fpath = qutils.add_suffix(sam_fpath, 'lib' + str(idx + 1))
        cmd = [get_program('bwa'), 'mem', '-t', str(qconfig.max_threads), index_prefix] + reads
        with open(lib_sam_fpath, 'w') as sam_f, open(err_fpath, 'a') as err_f:
            return_code = qutils.call_subprocess(cmd, stdout=sam_f, stderr=err_f, logger=logger)
        if return_code != 0 or not is_non_empty_file(lib_sam_fpath):
            raise ReadAnalysisError('BWA failed to align %s, see %s' % (', '.join(reads), err_fpath))
        lib_sam_fpaths.append(lib_sam_fpath)

    if len(lib_sam_fpaths) == 1:
        os.rename(lib_sam_fpaths[0], sam_fpath)
    else:
        merge_sam_files(lib_sam_fpaths, sam_fpath)
    return sam_fpath


def merge_sam_files(sam_fpaths, merged_sam_fpath):
    # all files are aligned to the same contigs, so the header of the first one fits all
    with open(merged_sam_fpath, 'w') as out_f:
        for i, sam_fpath in enumerate(sam_fpaths):
            with open(sam_fpath) as in_f:
                for line in in_f:
                    if line.startswith('@') and i > 0:
                        continue
                    out_f.write(line)
            os.remove(sam_fpath)
    return merged_sam_fpath


def sam_to_bam(sam_fpath, bam_fpath, err_fpath):
    cmd = [get_program('samtools'), 'view', '-b', '-@', str(qconfig.max_threads), '-o', bam_fpath, sam_fpath]
    with open(err_fpath, 'a') as err_f:
        return_code = qutils.call_subprocess(cmd, stderr=err_f, logger=logger)
    if return_code != 0 or not is_non_empty_file(bam_fpath):
        raise ReadAnalysisError('samtools failed to convert %s to BAM, see %s' % (sam_fpath, err_fpath))


def bam_to_sam(bam_fpath, sam_fpath, err_fpath):
    cmd = [get_program('samtools'), 'view', '-h', '-@', str(qconfig.max_threads), '-o', sam_fpath, bam_fpath]
    with open(err_fpath, 'a') as err_f:
        return_code = qutils.call_subprocess(cmd, stderr=err_f, logger=logger)
    if return_code != 0 or not is_non_empty_file(sam_fpath):
        raise ReadAnalysisError('samtools failed to read %s, see %s' % (bam_fpath, err_fpath))


def process_single_file(assembly, index, output_dirpath, bam_fpath=None):
    index_str = qutils.index_to_str(index)
    label = qutils.label_from_fpath_for_fname(assembly.fpath)
    assembly_dirpath = join(output_dirpath, label)
    if not isdir(assembly_dirpath):
        os.makedirs(assembly_dirpath)
    err_fpath = join(assembly_dirpath, 'reads_stats.err')
    open(err_fpath, 'w').close()

    sam_fpath = join(assembly_dirpath, label + '.sam')
    if bam_fpath:
        logger.info('  ' + index_str + 'Using alignments from ' + bam_fpath)
        if bam_fpath.endswith('.sam'):
            sam_fpath = bam_fpath
            bam_fpath = join(assembly_dirpath, label + '.bam')
            sam_to_bam(sam_fpath, bam_fpath, err_fpath)
        else:
            bam_to_sam(bam_fpath, sam_fpath, err_fpath)
    else:
        logger.info('  ' + index_str + 'Running BWA...')
        align_reads(abspath(assembly.fpath), assembly_dirpath, sam_fpath, err_fpath)
        bam_fpath = join(assembly_dirpath, label + '.bam')
        sam_to_bam(sam_fpath, bam_fpath, err_fpath)

    contig_lengths = dict((contig.name, len(contig)) for contig in assembly)
    logger.info('  ' + index_str + 'Analysing read pairs and coverage...')
    stats = parse_sam(sam_fpath, contig_lengths)

    expression = None
    logger.info('  ' + index_str + 'Running Salmon...')
    try:
        expression = salmon.run(assembly.fpath, bam_fpath, join(assembly_dirpath, 'salmon'), qconfig.max_threads)
    except salmon.QuantificationError as e:
        if qconfig.require_reads:
            raise ReadAnalysisError('quantification failed: ' + str(e))
        logger.warning(index_str + assembly.label + ': quantification failed, expression metrics are undefined (' +
                       str(e) + ')', indent='  ')
    return get_read_metrics(contig_lengths, stats, expression)


def add_statistics_to_report(assembly, read_metrics):
    report = reporting.get(assembly.fpath)
    metrics_list = [read_metrics[contig.name] for contig in assembly]
    fragments = sum(m['fragments'] for m in metrics_list)
    good = sum(m['good'] for m in metrics_list)
    total_length = assembly.total_length()
    covered = sum(m['bases_covered'] for m in metrics_list)
    total_depth = sum(m.get('coverage', 0) * len(contig) for contig, m in zip(assembly, metrics_list))

    report.add_field(reporting.Fields.FRAGMENTS, fragments)
    report.add_field(reporting.Fields.GOOD_FRAGMENTS, good)
    report.add_field(reporting.Fields.GOOD_FRAGMENTS_PCNT, 100.0 * good / fragments if fragments else None)
    report.add_field(reporting.Fields.BRIDGES, sum(m['bridges'] for m in metrics_list))
    report.add_field(reporting.Fields.CONTIGS_WITHOUT_READS, sum(1 for m in metrics_list if not m['fragments']))
    report.add_field(reporting.Fields.LOWCOVERED_CONTIGS,
                     sum(1 for m in metrics_list if m.get('coverage', 0) < qconfig.lowcovered_threshold))
    if total_length:
        report.add_field(reporting.Fields.DEPTH, total_depth / total_length)
        report.add_field(reporting.Fields.UNCOVERED_BASES_PCNT, 100.0 * (total_length - covered) / total_length)
    if any(m['eff_count'] is not None for m in metrics_list):
        report.add_field(reporting.Fields.EXPRESSED_CONTIGS, sum(1 for m in metrics_list if m.get('eff_count', 0) > 0))


def do(assemblies, output_dirpath):
    """
    Computes read-based metrics of every contig.
    Returns dict: contigs fpath -> dict(contig name -> ReadMetrics), or None for assemblies
    where the analysis failed, and the list of contigs fpaths with failed analysis.
    """
    logger.print_timestamp()
    logger.main_info('Running Reads analyzer...')

    if not isdir(output_dirpath):
        os.makedirs(output_dirpath)

    read_metrics_by_fpath = dict()
    failed_fpaths = []
    for index, assembly in enumerate(assemblies):
        bam_fpath = qconfig.bam_fpaths[index] if qconfig.bam_fpaths else None
        try:
            read_metrics = process_single_file(assembly, index, output_dirpath, bam_fpath)
        except ReadAnalysisError as e:
            read_metrics_by_fpath[assembly.fpath] = None
            failed_fpaths.append(assembly.fpath)
            if qconfig.require_reads:
                logger.error('  ' + qutils.index_to_str(index) + assembly.label + ': reads analysis failed: ' + str(e))
            else:
                logger.warning(qutils.index_to_str(index) + assembly.label + ': reads analysis failed, ' +
                               'read metrics are skipped (' + str(e) + ')', indent='  ')
            continue
        read_metrics_by_fpath[assembly.fpath] = read_metrics
        add_statistics_to_report(assembly, read_metrics)
        logger.info('  ' + qutils.index_to_str(index) + 'Analysis is finished.')

    logger.main_info('Done.')
    return read_metrics_by_fpath, failed_fpaths
