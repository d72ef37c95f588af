############################################################################
# Copyright (c) 2015-2022 Saint Petersburg State University
# Copyright (c) 2011-2015 Saint Petersburg Academic University
# All Rights Reserved
# See file LICENSE for details.
############################################################################

from collections import OrderedDict

from asmscore_libs import fastaparser


class AssemblyError(Exception):
    pass


class Contig(object):
    __slots__ = ("name", "seq")

    def __init__(self, name, seq):
        self.name = name
        self.seq = seq.upper()

    def __len__(self):
        return len(self.seq)

    def __repr__(self):
        return 'Contig(%r, %d bp)' % (self.name, len(self.seq))


class Assembly(object):
    """
    Contigs of one assembly in the order of the input file.
    The collection is never filtered: good contigs are reported next to it.
    """
    def __init__(self, label, fpath, contigs):
        self.label = label
        self.fpath = fpath
        self._contigs = OrderedDict()
        for contig in contigs:
            if contig.name in self._contigs:
                raise AssemblyError('contig name %s is used more than once in %s' % (contig.name, fpath))
            self._contigs[contig.name] = contig

    def __len__(self):
        return len(self._contigs)

    def __iter__(self):
        return iter(self._contigs.values())

    def __contains__(self, name):
        return name in self._contigs

    def __getitem__(self, name):
        return self._contigs[name]

    def names(self):
        return list(self._contigs.keys())

    def lengths(self):
        return [len(contig) for contig in self]

    def total_length(self):
        return sum(self.lengths())


def load_assembly(fpath, label):
    contigs = []
    for name, seq in fastaparser.read_fasta(fpath):
        if not name:
            raise AssemblyError('>sequence_name field is empty for the entry starting with "%s" in %s' % (seq[:20], fpath))
        contigs.append(Contig(name, seq))
    if not contigs:
        raise AssemblyError('file %s is empty' % fpath)
    return Assembly(label, fpath, contigs)
