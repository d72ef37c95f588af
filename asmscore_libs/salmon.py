############################################################################
# Copyright (c) 2015-2022 Saint Petersburg State University
# Copyright (c) 2011-2015 Saint Petersburg Academic University
# All Rights Reserved
# See file LICENSE for details.
############################################################################

import os
from collections import OrderedDict

from asmscore_libs import qconfig, qutils
from asmscore_libs.log import get_logger
logger = get_logger(qconfig.LOGGER_DEFAULT_NAME)

SALMON_PROGRAM = 'salmon'


class QuantificationError(Exception):
    pass


class ExpressionRecord(object):
    __slots__ = ("name", "length", "eff_len", "tpm", "eff_count")

    def __init__(self, name, length, eff_len, tpm, eff_count):
        self.name = name
        self.length = length
        self.eff_len = eff_len
        self.tpm = tpm
        self.eff_count = eff_count

    @classmethod
    def from_line(cls, line):
        # Name  Length  EffectiveLength  TPM  NumReads
        # scaffold1  1131  1016  549.279  20690
        fs = line.rstrip('\n').split('\t')
        if len(fs) < 5:
            raise ValueError('expected 5 columns, found %d' % len(fs))
        return ExpressionRecord(fs[0], int(fs[1]), qutils.parse_str_to_num(fs[2]),
                                float(fs[3]), qutils.parse_str_to_num(fs[4]))

    def __repr__(self):
        return 'ExpressionRecord(%s, eff_len=%r, tpm=%r, eff_count=%r)' % \
               (self.name, self.eff_len, self.tpm, self.eff_count)


def get_salmon_fpath():
    return qutils.get_path_to_program(SALMON_PROGRAM)


def build_command(assembly_fpath, bam_fpath, threads=None, salmon_fpath=None):
    threads = threads or qconfig.default_salmon_threads
    return [salmon_fpath or get_salmon_fpath() or SALMON_PROGRAM, 'quant',
            '--libtype', 'IU',
            '--alignments', bam_fpath,
            '--targets', assembly_fpath,
            '--threads', str(threads),
            '--useReadCompat',
            '--useFragLenDist',
            '--sampleOut',
            '--sampleUnaligned',
            '--output', '.']


def load_expression(fpath):
    """
    Parses quant.sf: one header line, then tab-separated rows
    name, length, effective length, TPM, effective count.
    Returns OrderedDict: contig name -> ExpressionRecord
    """
    expression = OrderedDict()
    with open(fpath) as in_f:
        in_f.readline()
        for line_num, line in enumerate(in_f, start=2):
            if not line.strip():
                continue
            try:
                record = ExpressionRecord.from_line(line)
            except ValueError as e:
                raise QuantificationError('%s, line %d: %s' % (fpath, line_num, e))
            expression[record.name] = record
    return expression


def run(assembly_fpath, bam_fpath, output_dirpath, threads=None):
    salmon_fpath = get_salmon_fpath()
    if not salmon_fpath:
        raise QuantificationError('%s is not found in PATH' % SALMON_PROGRAM)
    if not os.path.isdir(output_dirpath):
        os.makedirs(output_dirpath)

    # salmon writes into the current directory, so all paths must be absolute
    cmdline = build_command(os.path.abspath(assembly_fpath), os.path.abspath(bam_fpath), threads, salmon_fpath)
    log_fpath = os.path.join(output_dirpath, 'salmon.log')
    err_fpath = os.path.join(output_dirpath, 'salmon.err')
    with open(log_fpath, 'w') as log_f, open(err_fpath, 'w') as err_f:
        return_code = qutils.call_subprocess(cmdline, stdout=log_f, stderr=err_f, cwd=output_dirpath,
                                             indent='    ')
    if return_code != 0:
        raise QuantificationError('%s returned %d, see %s' % (SALMON_PROGRAM, return_code, err_fpath))

    expression_fpath = os.path.join(output_dirpath, qconfig.expression_fname)
    if not qutils.is_non_empty_file(expression_fpath):
        raise QuantificationError('%s did not produce %s' % (SALMON_PROGRAM, expression_fpath))
    return load_expression(expression_fpath)
