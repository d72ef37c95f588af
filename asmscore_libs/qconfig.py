############################################################################
# Copyright (c) 2015-2022 Saint Petersburg State University
# Copyright (c) 2011-2015 Saint Petersburg Academic University
# All Rights Reserved
# See file LICENSE for details.
############################################################################

import datetime
import os
import sys

ASMSCORE_HOME = os.path.abspath(os.path.dirname(os.path.dirname(os.path.realpath(__file__))))
PACKAGE_NAME = 'asmscore_libs'
LIBS_LOCATION = os.path.join(ASMSCORE_HOME, PACKAGE_NAME)

LOGGER_DEFAULT_NAME = 'asmscore'

# default values for options
max_threads = None
debug = False
# print in stdout only main information
silent = False
draw_plots = True
save_json = False
write_good_fasta = True
require_reads = False
strict_metrics = False
labels = None
all_labels_from_dirs = False

default_results_root_dirname = "asmscore_results"
output_dirname = "results_" + datetime.datetime.now().strftime('%Y_%m_%d_%H_%M_%S')
default_json_dirname = "json"

# names of reports, log, etc.
assemblies_csv_fname = "assemblies.csv"
report_prefix = "report"
plots_fname = "score_plots.pdf"
contigs_reports_dirname = "contigs_reports"
contigs_csv_suffix = ".contigs.csv"
good_contigs_fname_pattern = "%s.good_contigs.txt"
good_fasta_fname_pattern = "good.%s.fa"
reads_stats_dirname = "reads_stats"
comparative_stats_dirname = "comparative_stats"
expression_fname = "quant.sf"

# number formatting
contig_csv_decimals = 6
assembly_csv_decimals = 5
report_txt_decimals = 5

# basic_stats
linguistic_complexity_k = 6
short_contig_threshold = 200
contig_length_thresholds = [1000, 10000]
nx_percentages = [90, 70, 50, 30, 10]

# external tools, looked up in PATH
external_programs = ['bwa', 'samtools', 'salmon', 'minimap2']

# reads analyzer
MIN_MAP_QUALITY = 1  # reads with lower MAPQ are ignored when computing coverage
default_salmon_threads = 4
lowcovered_threshold = 1.0  # contigs with mean depth below this are "low covered"

# comparative analyzer
minimap_preset = 'asm20'
reference_coverage_thresholds = [25, 50, 75, 85, 95]

# normalization
count_density_scale = 1000.0  # count per kbp
identity_gap_scale = 100.0

# plotter
score_histogram_bins = 20

DEFAULT_MAX_THREADS = 4  # this value is used if AsmScore fails to determine number of CPUs
assemblies_num = 1
memory_efficient = False

assembly_labels_by_fpath = {}

###
output_dirpath = None
reference = None
forward_reads = []
reverse_reads = []
unpaired_reads = []
bam_fpaths = None
json_output_dirpath = None


def set_max_threads(logger):
    global max_threads
    if max_threads is None:
        try:
            import multiprocessing
            max_threads = max(1, multiprocessing.cpu_count() // 4)
        except (ImportError, NotImplementedError):
            logger.warning('Failed to determine the number of CPUs')
            max_threads = DEFAULT_MAX_THREADS
        logger.notice('Maximum number of threads is set to ' + str(max_threads) +
                      ' (use --threads option to set it manually)')


def reads_provided():
    return bool(forward_reads or unpaired_reads or bam_fpaths)


def asmscore_version():
    version_fpath = os.path.join(ASMSCORE_HOME, 'VERSION.txt')
    if not os.path.isfile(version_fpath):
        return 'unknown'
    with open(version_fpath) as version_file:
        return version_file.read().strip().split('\n')[0]


def print_version():
    sys.stdout.write('AsmScore v' + asmscore_version() + '\n')
    sys.stdout.flush()


def usage(stream=sys.stdout):
    stream.write('AsmScore: quality scoring of de novo assemblies\n')
    stream.write("Version: " + asmscore_version() + '\n')
    stream.write("\n")
    stream.write('Usage: python ' + sys.argv[0] + ' [options] <files_with_contigs>\n')
    stream.write("\n")
    stream.write("Options:\n")
    stream.write("-o  --output-dir  <dirname>       Directory to store all result files [default: asmscore_results/results_<datetime>]\n")
    stream.write("-r  --reference   <filename>      Reference sequences (FASTA) for comparative metrics\n")
    stream.write("-1  --left        <filename>      File with forward paired-end reads (FASTQ, may be gzipped)\n")
    stream.write("-2  --right       <filename>      File with reverse paired-end reads (FASTQ, may be gzipped)\n")
    stream.write("    --single      <filename>      File with unpaired reads (FASTQ, may be gzipped)\n")
    stream.write("    --bam  <filename,filename,...> Comma-separated list of BAM/SAM files with reads aligned to assemblies\n"
                 "                                  (use the same order as for files with contigs)\n")
    stream.write("-t  --threads     <int>           Maximum number of threads [default: 25% of CPUs]\n")
    stream.write("-l  --labels \"label, label, ...\"  Names of assemblies to use in reports, comma-separated. If contain spaces, use quotes\n")
    stream.write("-L                                Take assembly names from their parent directory names\n")
    stream.write("\n")
    stream.write("Advanced options:\n")
    stream.write("    --require-reads               Fail the assembly if read metrics cannot be computed\n")
    stream.write("    --strict-metrics              Fail the assembly if any metric value is invalid (negative or not finite)\n")
    stream.write("    --no-plots                    Do not draw plots\n")
    stream.write("    --no-good-fasta               Do not write FASTA files with good contigs\n")
    stream.write("-j  --save-json                   Save the output also in the JSON format\n")
    stream.write("    --memory-efficient            Run everything using one thread, separately per each assembly\n")
    stream.write("\n")
    stream.write("Other:\n")
    stream.write("    --silent                      Do not print detailed information about each step to stdout (log file is not affected)\n")
    stream.write("-d  --debug                       Run in a debug mode\n")
    stream.write("-h  --help                        Print full usage message\n")
    stream.write("-v  --version                     Print version\n")
    stream.flush()
