############################################################################
# Copyright (c) 2015-2022 Saint Petersburg State University
# Copyright (c) 2011-2015 Saint Petersburg Academic University
# All Rights Reserved
# See file LICENSE for details.
############################################################################

import bz2
import gzip
import io
import os
import zipfile
from collections import OrderedDict

from asmscore_libs import qconfig
from asmscore_libs.log import get_logger
logger = get_logger(qconfig.LOGGER_DEFAULT_NAME)


def _open_zipped(fpath):
    try:
        zfile = zipfile.ZipFile(fpath, mode="r")
    except zipfile.BadZipfile as e:
        logger.error('Can\'t open zip file %s: %s' % (fpath, e), exit_with_code=1)
    names = zfile.namelist()
    if not names:
        logger.error('Reading %s: zip archive is empty' % fpath, exit_with_code=1)
    if len(names) > 1:
        logger.warning('Zip archive must contain exactly one file. Using %s' % names[0])
    return io.TextIOWrapper(io.BytesIO(zfile.read(names[0])))


_openers = {
    '.gz': lambda fpath: gzip.open(fpath, mode="rt"),
    '.gzip': lambda fpath: gzip.open(fpath, mode="rt"),
    '.bz2': lambda fpath: bz2.open(fpath, mode="rt"),
    '.bzip2': lambda fpath: bz2.open(fpath, mode="rt"),
    '.zip': _open_zipped,
}


def _get_fasta_file_handler(fpath):
    if not os.access(fpath, os.R_OK):
        logger.error('Permission denied accessing ' + fpath, to_stderr=True, exit_with_code=1)
    ext = os.path.splitext(fpath)[1]
    return _openers.get(ext, open)(fpath)


def __get_entry_name(line):
    """
        Extracts name from fasta entry line:
        ">contig_1  length=100500; coverage=15;" ---> "contig_1"
    """
    try:
        return line[1:].split()[0]
    except IndexError:
        return ''  # special case: line == ">"


def get_chr_lengths_from_fastafile(fpath):
    """
        Takes filename of FASTA-file
        Returns ordered dict of sequence lengths by sequence names
    """
    chr_lengths = OrderedDict()
    for name, seq in read_fasta(fpath):
        chr_lengths[name] = len(seq)
    return chr_lengths


def read_fasta(fpath):
    """
        Generator that returns FASTA entries in tuples (name, seq)
    """
    name, seq = None, []
    with _get_fasta_file_handler(fpath) as fasta_file:
        for raw_line in fasta_file:
            for line in raw_line.split('\r'):  # old Mac line endings
                if not line:
                    continue
                if line[0] == '>':
                    if name is not None:
                        yield name, ''.join(seq)
                    name, seq = __get_entry_name(line), []
                else:
                    seq.append(line.strip())
    if name is not None or seq:
        yield name or '', ''.join(seq)


def write_fasta(fpath, fasta, mode='w'):
    with open(fpath, mode) as outfile:
        for name, seq in fasta:
            outfile.write('>%s\n' % name)
            for i in range(0, len(seq), 60):
                outfile.write(seq[i:i + 60] + '\n')


def rev_comp(seq):
    c = dict(zip('ATCGNatcgn', 'TAGCNtagcn'))
    return ''.join(c.get(nucleotide, 'N') for nucleotide in reversed(seq))
