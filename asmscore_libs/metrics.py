############################################################################
# Copyright (c) 2015-2022 Saint Petersburg State University
# Copyright (c) 2011-2015 Saint Petersburg Academic University
# All Rights Reserved
# See file LICENSE for details.
############################################################################

"""
Per-contig metric schema.

Each evidence source fills its own category record (basic, reads, comparative)
with a fixed ordered tuple of metrics. A MetricRecord holds one record per category,
so values of different sources never share a namespace.
"""

SCHEMA_VERSION = 1


class Kind(object):
    RATIO = 'ratio'        # already in [0, 1], higher is better
    COUNT = 'count'        # non-negative count, normalized by length and by the assembly maximum
    DISTANCE = 'distance'  # lower is better, inverted with a scale


class Metric(object):
    __slots__ = ("name", "category", "kind", "signed", "scale", "title")

    def __init__(self, name, category, kind=None, signed=False, scale=None, title=None):
        self.name = name
        self.category = category
        self.kind = kind
        self.signed = signed
        self.scale = scale
        self.title = title or name

    @property
    def is_scored(self):
        return self.kind is not None

    def __repr__(self):
        return 'Metric(%s.%s)' % (self.category, self.name)


class MetricSet(object):
    CATEGORY = None
    FIELDS = ()

    def __init__(self, **values):
        self._values = dict((metric.name, None) for metric in self.FIELDS)
        for name, value in values.items():
            self[name] = value

    @classmethod
    def field_names(cls):
        return [metric.name for metric in cls.FIELDS]

    @classmethod
    def get_metric(cls, name):
        for metric in cls.FIELDS:
            if metric.name == name:
                return metric
        raise KeyError('%s metrics have no field %s' % (cls.CATEGORY, name))

    @classmethod
    def scored_metrics(cls):
        return [metric for metric in cls.FIELDS if metric.is_scored]

    def __getitem__(self, name):
        if name not in self._values:
            raise KeyError('%s metrics have no field %s' % (self.CATEGORY, name))
        return self._values[name]

    def __setitem__(self, name, value):
        if name not in self._values:
            raise KeyError('%s metrics have no field %s' % (self.CATEGORY, name))
        self._values[name] = value

    def get(self, name, default=None):
        value = self[name]
        return default if value is None else value

    def items(self):
        return [(metric, self._values[metric.name]) for metric in self.FIELDS]

    def values(self):
        return [self._values[metric.name] for metric in self.FIELDS]

    def as_dict(self):
        return dict((metric.name, self._values[metric.name]) for metric in self.FIELDS)

    def __eq__(self, other):
        return type(self) is type(other) and self._values == other._values

    def __ne__(self, other):
        return not self == other

    def __repr__(self):
        return '%s(%s)' % (self.__class__.__name__,
                           ', '.join('%s=%r' % (metric.name, value) for metric, value in self.items()))


class BasicMetrics(MetricSet):
    CATEGORY = 'basic'
    FIELDS = (
        Metric('length', CATEGORY, title='Length'),
        Metric('prop_gc', CATEGORY, title='GC fraction'),
        Metric('gc_skew', CATEGORY, signed=True, title='GC skew'),
        Metric('at_skew', CATEGORY, signed=True, title='AT skew'),
        Metric('cpg_count', CATEGORY, title='CpG count'),
        Metric('cpg_ratio', CATEGORY, title='CpG observed/expected'),
        Metric('orf_length', CATEGORY, title='Longest ORF (codons)'),
        Metric('p_orf', CATEGORY, title='ORF fraction'),
        Metric('linguistic_complexity', CATEGORY, Kind.RATIO, title='Linguistic complexity'),
        Metric('p_n', CATEGORY, Kind.DISTANCE, scale=1.0, title='N fraction'),
    )


class ReadMetrics(MetricSet):
    CATEGORY = 'reads'
    FIELDS = (
        Metric('fragments', CATEGORY, title='Fragments'),
        Metric('good', CATEGORY, title='Good fragments'),
        Metric('bridges', CATEGORY, title='Bridging fragments'),
        Metric('p_good', CATEGORY, Kind.RATIO, title='Good fragments fraction'),
        Metric('bases_covered', CATEGORY, title='Bases covered'),
        Metric('p_bases_covered', CATEGORY, Kind.RATIO, title='Covered fraction'),
        Metric('coverage', CATEGORY, title='Mean coverage'),
        Metric('eff_length', CATEGORY, title='Effective length'),
        Metric('eff_count', CATEGORY, Kind.COUNT, title='Effective count'),
        Metric('tpm', CATEGORY, title='TPM'),
    )


class ComparativeMetrics(MetricSet):
    CATEGORY = 'comparative'
    FIELDS = (
        Metric('hits', CATEGORY, title='Reference hits'),
        Metric('has_crb', CATEGORY, title='Reciprocal best hit'),
        Metric('reference_coverage', CATEGORY, Kind.RATIO, title='Reference coverage'),
        Metric('identity_gap', CATEGORY, Kind.DISTANCE, scale=100.0, title='Identity gap (%)'),
    )


CATEGORIES = (BasicMetrics, ReadMetrics, ComparativeMetrics)


def category_class(category):
    for cls in CATEGORIES:
        if cls.CATEGORY == category:
            return cls
    raise KeyError('unknown metric category ' + str(category))


class MetricRecord(object):
    """
    All metrics of one contig. The basic category is always present,
    reads and comparative are None when their source was not supplied.
    """
    __slots__ = ("contig", "length", "basic", "reads", "comparative")

    def __init__(self, contig, length, basic=None, reads=None, comparative=None):
        self.contig = contig
        self.length = length
        self.basic = basic if basic is not None else BasicMetrics(length=length)
        self.reads = reads
        self.comparative = comparative

    def category(self, category):
        return getattr(self, category_class(category).CATEGORY)

    def add(self, metric_set):
        attr = metric_set.CATEGORY
        if attr != BasicMetrics.CATEGORY and getattr(self, attr) is not None:
            raise ValueError('%s metrics of %s are already set' % (attr, self.contig))
        setattr(self, attr, metric_set)

    def metric_sets(self):
        return [metric_set for metric_set in (self.basic, self.reads, self.comparative) if metric_set is not None]

    def effective_length(self):
        if self.reads is not None and self.reads['eff_length']:
            return self.reads['eff_length']
        return self.length

    def as_dict(self):
        result = {'contig': self.contig, 'schema_version': SCHEMA_VERSION}
        for metric_set in self.metric_sets():
            result[metric_set.CATEGORY] = metric_set.as_dict()
        return result


def present_categories(records):
    # categories in schema order, a category is reported if any record has it
    return [cls for cls in CATEGORIES
            if any(record.category(cls.CATEGORY) is not None for record in records)]
