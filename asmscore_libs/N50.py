############################################################################
# Copyright (c) 2015-2022 Saint Petersburg State University
# Copyright (c) 2011-2015 Saint Petersburg Academic University
# All Rights Reserved
# See file LICENSE for details.
############################################################################

def N50(numlist, percentage=50.0):
    """
    Abstract: Returns the N50 value of the passed list of contig lengths.
    Comments: Works for any percentage (e.g. N60, N70) with optional argument
    Usage: N50(lengths)
    """
    n50, l50 = N50_and_L50(numlist, percentage)
    return n50


def L50(numlist, percentage=50.0):
    """
    Abstract: Returns the L50 value of the passed list of contig lengths:
    the number of the longest contigs needed to reach the N50 length.
    Usage: L50(lengths)
    """
    n50, l50 = N50_and_L50(numlist, percentage)
    return l50


def N50_and_L50(numlist, percentage=50.0):
    assert percentage >= 0.0
    assert percentage <= 100.0
    lengths = sorted(numlist, reverse=True)
    total = sum(lengths)
    if not total:
        return None, None
    s = total
    limit = total * (100.0 - percentage) / 100.0
    l50 = 0
    for l in lengths:
        s -= l
        l50 += 1
        if s <= limit:
            return l, l50

    return None, None


def Nx_list(numlist, percentages):
    # [(90, N90, L90), (70, N70, L70), ...]
    return [(percentage,) + N50_and_L50(numlist, percentage) for percentage in percentages]
