############################################################################
# Copyright (c) 2015-2022 Saint Petersburg State University
# Copyright (c) 2011-2015 Saint Petersburg Academic University
# All Rights Reserved
# See file LICENSE for details.
############################################################################

import os
import sys
from copy import copy
from optparse import OptionParser, Option
from os.path import abspath

from asmscore_libs import qconfig, qutils
from asmscore_libs.qutils import assert_file_exists, set_up_output_dir, check_dirpath


class AsmScoreOption(Option):
    def check_file(option, opt, value):
        assert_file_exists(value, option.dest)
        return abspath(value)
    TYPES = Option.TYPES + ('file',)
    TYPE_CHECKER = copy(Option.TYPE_CHECKER)
    TYPE_CHECKER['file'] = check_file

    ACTIONS = Option.ACTIONS + ('extend',)
    STORE_ACTIONS = Option.STORE_ACTIONS + ('extend',)
    TYPED_ACTIONS = Option.TYPED_ACTIONS + ('extend',)
    ALWAYS_TYPED_ACTIONS = Option.ALWAYS_TYPED_ACTIONS + ('extend',)

    def take_action(self, action, dest, opt, value, values, parser):
        if action == 'extend':
            split_value = value.split(',')
            ensure_value(qconfig, dest, []).extend(split_value)
        else:
            Option.take_action(
                self, action, dest, opt, value, qconfig, parser)


def ensure_value(values, attr, value):
    if not hasattr(values, attr) or getattr(values, attr) is None:
        setattr(values, attr, value)
    return getattr(values, attr)


def check_output_dir(option, opt_str, value, parser, logger):
    output_dirpath = os.path.abspath(value)
    setattr(qconfig, option.dest, output_dirpath)
    check_dirpath(qconfig.output_dirpath, 'You have specified ' + str(output_dirpath) + ' as an output path.\n'
                     'Please, use a different directory.', exit_code=2)


def check_arg_value(option, opt_str, value, parser, logger, min_value=0, max_value=float('Inf')):
    if min_value <= float(value) <= max_value:
        setattr(qconfig, option.dest, value)
        setattr(parser.values, option.dest, value)
    else:
        logger.error("incorrect value for " + opt_str + " (" + str(value) + ")! "
                     "Please specify a number not less than " + str(min_value),
                     to_stderr=True, exit_with_code=2)


def parse_reads_files(option, opt_str, value, parser, logger):
    fpaths = []
    for fpath in value.split(','):
        assert_file_exists(fpath, 'reads')
        fpaths.append(abspath(fpath))
    ensure_value(qconfig, option.dest, []).extend(fpaths)


def parse_alignment_files(option, opt_str, value, parser, logger):
    fpaths = []
    for fpath in value.split(','):
        if fpath.endswith('.bam') or fpath.endswith('.sam'):
            assert_file_exists(fpath, 'BAM/SAM file')
            fpaths.append(abspath(fpath))
        else:
            logger.error("incorrect extension for BAM/SAM file (" + str(fpath) + ")! ",
                         to_stderr=True, exit_with_code=2)
    ensure_value(qconfig, option.dest, []).extend(fpaths)


def check_alignment_files(contigs_fpaths, bam_fpaths, logger):
    if bam_fpaths and len(contigs_fpaths) != len(bam_fpaths):
        logger.error('Number of BAM/SAM files does not match the number of files with contigs',
                     to_stderr=True, exit_with_code=2)


def parse_options(logger, asmscore_args):
    if '-h' in asmscore_args or '--help' in asmscore_args:
        qconfig.usage()
        sys.exit(0)

    if '-v' in asmscore_args or '--version' in asmscore_args:
        qconfig.print_version()
        sys.exit(0)

    options = [
        (['-d', '--debug'], dict(
             dest='debug',
             action='store_true')
         ),
        (['-o', '--output-dir'], dict(
             dest='output_dirpath',
             type='string',
             action='callback',
             callback=check_output_dir,
             callback_args=(logger,))
         ),
        (['-r', '--reference'], dict(
             dest='reference',
             type='file')
         ),
        (['-1', '--left'], dict(
             dest='forward_reads',
             type='string',
             action='callback',
             callback=parse_reads_files,
             callback_args=(logger,))
         ),
        (['-2', '--right'], dict(
             dest='reverse_reads',
             type='string',
             action='callback',
             callback=parse_reads_files,
             callback_args=(logger,))
         ),
        (['--single'], dict(
             dest='unpaired_reads',
             type='string',
             action='callback',
             callback=parse_reads_files,
             callback_args=(logger,))
         ),
        (['--bam'], dict(
             dest='bam_fpaths',
             type='string',
             action='callback',
             callback=parse_alignment_files,
             callback_args=(logger,))
         ),
        (['-t', '--threads'], dict(
             dest='max_threads',
             type='int',
             action='callback',
             callback=check_arg_value,
             callback_args=(logger,),
             callback_kwargs={'min_value': 1})
         ),
        (['-l', '--labels'], dict(
             dest='labels',
             type='string')
         ),
        (['-L'], dict(
             dest='all_labels_from_dirs',
             action='store_true')
         ),
        (['--require-reads'], dict(
             dest='require_reads',
             action='store_true')
         ),
        (['--strict-metrics'], dict(
             dest='strict_metrics',
             action='store_true')
         ),
        (['--no-plots'], dict(
             dest='draw_plots',
             action='store_false')
         ),
        (['--no-good-fasta'], dict(
             dest='write_good_fasta',
             action='store_false')
         ),
        (['-j', '--save-json'], dict(
             dest='save_json',
             action='store_true')
         ),
        (['--memory-efficient'], dict(
             dest='memory_efficient',
             action='store_true')
         ),
        (['--silent'], dict(
             dest='silent',
             action='store_true')
         ),
    ]

    parser = OptionParser(option_class=AsmScoreOption)
    parser.error = lambda msg: logger.error(msg + '\nRun with -h to see the usage.', to_stderr=True, exit_with_code=2)
    for args, kwargs in options:
        parser.add_option(*args, **kwargs)
    (opts, contigs_fpaths) = parser.parse_args(asmscore_args[1:])

    if not contigs_fpaths:
        logger.error("You should specify at least one file with contigs!\n", to_stderr=True)
        qconfig.usage(stream=sys.stderr)
        sys.exit(2)

    if len(qconfig.forward_reads) != len(qconfig.reverse_reads):
        logger.error('Use the SAME number of files with forward and reverse reads '
                     '(-1 <filepath> -2 <filepath>).\n'
                     'Use --single option to specify a file with unpaired reads.', to_stderr=True, exit_with_code=2)
    if qconfig.require_reads and not qconfig.reads_provided():
        logger.error('--require-reads is set but neither reads nor alignments are specified '
                     '(use -1/-2, --single or --bam)', to_stderr=True, exit_with_code=2)

    for c_fpath in contigs_fpaths:
        assert_file_exists(c_fpath, 'contigs')
    contigs_fpaths = [abspath(fpath) for fpath in contigs_fpaths]
    check_alignment_files(contigs_fpaths, qconfig.bam_fpaths, logger)

    if not qconfig.output_dirpath:
        check_dirpath(os.getcwd(), 'An output path was not specified manually. You are trying to run AsmScore from ' +
                      str(os.getcwd()) + '.\n' + 'Please, specify a different directory using -o option.', exit_code=2)
    qconfig.output_dirpath, qconfig.json_output_dirpath, existing_dir = \
        set_up_output_dir(qconfig.output_dirpath, qconfig.json_output_dirpath, not qconfig.output_dirpath,
                          qconfig.save_json)

    logger.set_up_file_handler(qconfig.output_dirpath)
    logger.set_up_console_handler(debug=qconfig.debug)
    logger.print_command_line(asmscore_args, wrap_after=None, is_main=True)
    logger.start()

    if existing_dir:
        logger.notice("Output directory already exists and looks like an AsmScore output dir. "
                      "Existing reports will be overwritten.")

    if qconfig.labels:
        qconfig.labels = qutils.parse_labels(qconfig.labels, contigs_fpaths)
    qconfig.labels = qutils.process_labels(contigs_fpaths, qconfig.labels, qconfig.all_labels_from_dirs)

    qconfig.set_max_threads(logger)
    qconfig.assemblies_num = len(contigs_fpaths)

    return contigs_fpaths
