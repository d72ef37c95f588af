############################################################################
# Copyright (c) 2015-2022 Saint Petersburg State University
# Copyright (c) 2011-2015 Saint Petersburg Academic University
# All Rights Reserved
# See file LICENSE for details.
############################################################################

from __future__ import division

####################################################################################
###########################  CONFIGURABLE PARAMETERS  ##############################
####################################################################################

# Font of plot captions, axes labels and ticks
font = {'family': 'sans-serif',
        'style': 'normal',
        'weight': 'medium',
        'size': 10}

# Line params
line_width = 2.0
primary_line_style = 'solid'  # 'solid', 'dashed', 'dashdot', or 'dotted'

# Legend params
n_columns = 4  # number of columns
with_grid = True
with_title = True
axes_fontsize = 'large'  # fontsize of axes labels and ticks

# Feel free to add more colors
colors = ['#E31A1C', '#1F78B4', '#33A02C', '#6A3D9A', '#FF7F00', '#800000', '#A6CEE3', '#B2DF8A', '#333300', '#CCCC00',
          '#000080', '#008080', '#00FF00']

# Special case: optimal cutoff marker params
cutoff_color = '#000000'
cutoff_ls = 'dashed'

####################################################################################
########################  END OF CONFIGURABLE PARAMETERS  ##########################
####################################################################################
import datetime
import math

import matplotlib
matplotlib.use('Agg')  # non-GUI backend
import matplotlib.pyplot as plt
import matplotlib.ticker
from matplotlib.backends.backend_pdf import PdfPages

from asmscore_libs import qconfig
from asmscore_libs.cutoff_optimizer import rank_contigs, sweep
from asmscore_libs.log import get_logger
from asmscore_libs.qutils import label_from_fpath

logger = get_logger(qconfig.LOGGER_DEFAULT_NAME)

# for creating PDF file with all plots
pdf_plots_figures = []
####################################################################################


class Plot(object):
    def __init__(self, x_vals, y_vals, color, ls, marker=None, markersize=1):
        self.x_vals, self.y_vals, self.color, self.ls, self.marker, self.markersize = x_vals, y_vals, color, ls, marker, markersize

    def plot(self):
        plt.plot(self.x_vals, self.y_vals, color=self.color, ls=self.ls, lw=line_width,
                 marker=self.marker, markersize=self.markersize)

    def get_max_y(self):
        return max(self.y_vals)


class Bar(object):
    def __init__(self, x_val, y_val, color, width=0.8, bottom=None, edgecolor=None, align='edge'):
        self.x_val, self.y_val, self.color, self.width, self.bottom, self.edgecolor, self.align = \
            x_val, y_val, color, width, bottom, edgecolor, align

    def plot(self):
        plt.bar(self.x_val, self.y_val, width=self.width, align=self.align, color=self.color, edgecolor=self.edgecolor,
                bottom=self.bottom)

    def get_max_y(self):
        if isinstance(self.y_val, list):
            return max(self.y_val)
        return self.y_val + (self.bottom or 0)


def get_color(index):
    return colors[index % len(colors)]


def set_ax(vertical_legend=False):
    ax = plt.gca()
    ax.set_axisbelow(True)
    # Shink current axis's height by 20% on the bottom
    box = ax.get_position()
    if vertical_legend:
        ax.set_position([box.x0, box.y0, box.width * 0.8, box.height * 1.0])
    else:
        ax.set_position([box.x0, box.y0 + box.height * 0.2, box.width, box.height * 0.8])
    ax.yaxis.grid(with_grid)
    plt.grid(with_grid)
    return ax


def add_labels(xlabel, ylabel, ax, is_histogram=False):
    if xlabel:
        plt.xlabel(xlabel, fontsize=axes_fontsize)
    if ylabel:
        plt.ylabel(ylabel, fontsize=axes_fontsize)

    ax.xaxis.set_major_locator(matplotlib.ticker.MaxNLocator(nbins=6))
    ax.yaxis.set_major_locator(matplotlib.ticker.MaxNLocator(nbins=6, integer=is_histogram))


def add_legend(ax, legend_list, n_columns=None, vertical_legend=False):
    if vertical_legend:
        ax.legend(legend_list, loc='center left', bbox_to_anchor=(1.0, 0.5), fancybox=True, shadow=True, numpoints=1)
    else:
        ax.legend(legend_list, loc='upper center', bbox_to_anchor=(0.49, -0.15), fancybox=True, shadow=True,
                  ncol=n_columns if n_columns < 3 else 3)


def create_plot(title, plots, legend_list=None, x_label=None, y_label=None, vertical_legend=False, is_histogram=False,
                x_limit=None, y_limit=None):
    figure = plt.figure()
    plt.rc('font', **font)
    max_y = 0

    ax = set_ax(vertical_legend)
    for plot in plots:
        max_y = max(max_y, plot.get_max_y())
        plot.plot()
    if legend_list:
        add_legend(ax, legend_list, n_columns=n_columns, vertical_legend=vertical_legend)
    add_labels(x_label, y_label, ax, is_histogram=is_histogram)
    if x_limit:
        plt.xlim(x_limit)
    if y_limit is None:
        y_limit = [0, max(1, int(math.ceil(max_y * 1.1)))] if is_histogram else [0, 1.05]
    plt.ylim(y_limit)
    if with_title:
        plt.title(title)

    pdf_plots_figures.append(figure)
    plt.close(figure)
    return figure


def score_histogram(contigs_fpaths, scores_by_fpath, title='Contig scores'):
    """
    Distribution of contig scores, one line per assembly, unscored contigs are skipped.
    """
    logger.info('  Drawing ' + title + ' histogram...')
    bins = qconfig.score_histogram_bins
    x_vals = [(i + 0.5) / bins for i in range(bins)]
    plots = []
    legend_list = []
    for index, contigs_fpath in enumerate(contigs_fpaths):
        scores = [score for score in scores_by_fpath.get(contigs_fpath, {}).values() if score is not None]
        if not scores:
            continue
        y_vals = [0] * bins
        for score in scores:
            y_vals[min(int(score * bins), bins - 1)] += 1
        plots.append(Plot(x_vals, y_vals, get_color(index), primary_line_style, marker='o', markersize=3))
        legend_list.append(label_from_fpath(contigs_fpath))
    if not plots:
        logger.info('    skipped (no scored contigs)')
        return None
    return create_plot(title, plots, legend_list, x_label='Contig score', y_label='# contigs',
                       is_histogram=True, x_limit=[0, 1])


def cutoff_curve(contigs_fpaths, scores_by_fpath, cutoff_results, title='Assembly score by cutoff'):
    """
    Geometric mean score of the retained contigs for every candidate cutoff,
    the chosen cutoffs are marked with vertical lines.
    """
    logger.info('  Drawing ' + title + ' plot...')
    plots = []
    legend_list = []
    for index, contigs_fpath in enumerate(contigs_fpaths):
        ranked = rank_contigs(scores_by_fpath.get(contigs_fpath, {}))
        if not ranked:
            continue
        x_vals, y_vals = [], []
        for threshold, retained, score in sweep(ranked):
            x_vals.append(threshold)
            y_vals.append(score)
        color = get_color(index)
        plots.append(Plot(x_vals, y_vals, color, primary_line_style))
        legend_list.append(label_from_fpath(contigs_fpath))
        result = cutoff_results.get(contigs_fpath)
        if result is not None:
            plots.append(Plot([result.cutoff, result.cutoff], [0, result.optimal_score], cutoff_color, cutoff_ls))
            legend_list.append(label_from_fpath(contigs_fpath) + ' cutoff')
    if not plots:
        logger.info('    skipped (no scored contigs)')
        return None
    return create_plot(title, plots, legend_list, x_label='Score cutoff', y_label='Assembly score', x_limit=[0, 1])


def assembly_scores_histogram(contigs_fpaths, values, title='Assembly score'):
    if len(contigs_fpaths) < 2:
        logger.info('  Skipping drawing ' + title + ' histogram... (less than 2 columns histogram makes no sense)')
        return None
    logger.info('  Drawing ' + title + ' histogram...')

    # bars' params
    width = 0.3
    interval = width / 3
    start_pos = interval / 2

    plots = []
    for i, val in enumerate(values):
        plots.append(Bar(start_pos + (width + interval) * i, val or 0, get_color(i), width=width))
    legend_list = [label_from_fpath(fpath) for fpath in contigs_fpaths]
    figure = create_plot(title, plots, legend_list, y_label=title,
                         x_limit=[0, start_pos + width * len(contigs_fpaths) + interval * (len(contigs_fpaths) - 1)],
                         y_limit=[0, 1.05])
    figure.axes[0].axes.get_xaxis().set_visible(False)
    return figure


def fill_all_pdf_file(all_pdf_fpath):
    if not pdf_plots_figures:
        return None
    all_pdf_file = PdfPages(all_pdf_fpath)
    for figure in pdf_plots_figures:
        all_pdf_file.savefig(figure)
    d = all_pdf_file.infodict()
    d['Title'] = 'AsmScore plots'
    d['Author'] = 'AsmScore'
    d['CreationDate'] = datetime.datetime.now()
    d['ModDate'] = datetime.datetime.now()
    all_pdf_file.close()
    del pdf_plots_figures[:]
    plt.close('all')  # closing all open figures
    logger.info('  All plots saved to ' + all_pdf_fpath)
    return all_pdf_fpath
