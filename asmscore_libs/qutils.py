############################################################################
# Copyright (c) 2015-2022 Saint Petersburg State University
# Copyright (c) 2011-2015 Saint Petersburg Academic University
# All Rights Reserved
# See file LICENSE for details.
############################################################################

from __future__ import division
import os
import re
import subprocess
from os.path import basename, isfile, isdir, join
from posixpath import curdir, sep, pardir, commonprefix

from asmscore_libs import qconfig
from asmscore_libs.log import get_logger
logger = get_logger(qconfig.LOGGER_DEFAULT_NAME)

MAX_LABEL_LEN = 1021

FASTA_EXTENSIONS = ['.fa', '.fasta', '.fas', '.seq', '.fna', '.contig']
ARCHIVE_EXTENSIONS = ['.zip', '.gz', '.gzip', '.bz2', '.bzip2']


def set_up_output_dir(output_dirpath, json_outputpath, make_latest_symlink, save_json):
    existing_dir = False

    if output_dirpath:  # 'output dir was specified with -o option'
        if isdir(output_dirpath) and isfile(join(output_dirpath, qconfig.LOGGER_DEFAULT_NAME + '.log')):
            existing_dir = True
    else:  # output dir was not specified, creating our own one
        output_dirpath = os.path.join(os.path.abspath(
            qconfig.default_results_root_dirname), qconfig.output_dirname)

        # in case of starting two instances of AsmScore in the same second
        if isdir(output_dirpath):
            if make_latest_symlink:
                i = 2
                base_dirpath = output_dirpath
                while isdir(output_dirpath):
                    output_dirpath = str(base_dirpath) + '__' + str(i)
                    i += 1

    if not isdir(output_dirpath):
        os.makedirs(output_dirpath)

    # 'latest' symlink
    if make_latest_symlink:
        prev_dirpath = os.getcwd()
        os.chdir(qconfig.default_results_root_dirname)

        latest_symlink = 'latest'
        if os.path.islink(latest_symlink):
            os.remove(latest_symlink)
        os.symlink(basename(output_dirpath), latest_symlink)

        os.chdir(prev_dirpath)

    if save_json:
        if not json_outputpath:
            json_outputpath = os.path.join(output_dirpath, qconfig.default_json_dirname)
        if not isdir(json_outputpath):
            os.makedirs(json_outputpath)

    return output_dirpath, json_outputpath, existing_dir


def slugify(value):
    """
    Prepare string to use in file names: normalizes string,
    removes non-alpha characters, and converts spaces to hyphens.
    """
    import unicodedata
    value = unicodedata.normalize('NFKD', str(value)).encode('ascii', 'ignore').decode('utf-8')
    value = re.sub(r'[^\w\s-]', '-', value).strip()
    value = re.sub(r'[-\s]+', '-', value)
    return str(value)


def parse_labels(line, contigs_fpaths):
    def remove_quotes(line):
        if line:
            if line[0] == '"':
                line = line[1:]
            if line[-1] == '"':
                line = line[:-1]
            return line

    # '"Assembly 1, "Assembly 2",Assembly3"'
    labels = remove_quotes(line).split(',')
    labels = [label.strip() for label in labels]

    if len(labels) != len(contigs_fpaths):
        logger.error('Number of labels does not match the number of files with contigs', 2, to_stderr=True)
        return []
    else:
        for i, label in enumerate(labels):
            labels[i] = remove_quotes(label.strip())
        return labels


def get_label_from_par_dir(contigs_fpath):
    return os.path.basename(os.path.dirname(os.path.abspath(contigs_fpath)))


def get_label_from_par_dir_and_fname(contigs_fpath):
    abspath = os.path.abspath(contigs_fpath)
    name = rm_extentions_for_fasta_file(os.path.basename(contigs_fpath))
    return os.path.basename(os.path.dirname(abspath)) + '_' + name


def get_duplicated(labels):
    lowercase_labels = [label.lower() for label in labels]
    return set(label for label in labels if lowercase_labels.count(label.lower()) > 1)


def process_labels(contigs_fpaths, labels=None, all_labels_from_dirs=False):
    """
    Labels given with -l are kept (empty ones are taken from the file path),
    otherwise they are taken from file names or, with -L, from parent directories.
    Clashing labels get the parent directory as a prefix, then a number as a suffix.
    """
    if labels:
        labels = [label or get_label_from_par_dir_and_fname(fpath) for label, fpath in zip(labels, contigs_fpaths)]
    else:
        if all_labels_from_dirs:
            labels = [get_label_from_par_dir(fpath) for fpath in contigs_fpaths]
        else:
            labels = [rm_extentions_for_fasta_file(os.path.basename(fpath)) for fpath in contigs_fpaths]
        duplicated = get_duplicated(labels)
        labels = [get_label_from_par_dir_and_fname(fpath) if label in duplicated else label
                  for label, fpath in zip(labels, contigs_fpaths)]

    seen = dict()
    unique_labels = []
    for label in labels:
        key = label.lower()
        if key in seen:
            seen[key] += 1
            label = '%s %d' % (label, seen[key])
        else:
            seen[key] = 0
        unique_labels.append(label)
    return unique_labels


def assert_file_exists(fpath, message='', logger=logger):
    if not os.path.isfile(fpath):
        logger.error("File not found (%s): %s" % (message, fpath), 2,
                     to_stderr=True)

    return fpath


def index_to_str(i, force=False):
    if qconfig.assemblies_num == 1 and not force:
        return ''
    else:
        return ('%d ' + ('' if (i + 1) >= 10 else ' ')) % (i + 1)


def correct_asm_label(name, max_name_len=MAX_LABEL_LEN):
    return name.strip()[:max_name_len]


def rm_extentions_for_fasta_file(fname):
    return correct_asm_label(splitext_for_fasta_file(fname)[0])


def splitext_for_fasta_file(fname):
    # "contigs.fasta", ".gz"
    basename_plus_innerext, outer_ext = os.path.splitext(fname)

    if outer_ext not in ARCHIVE_EXTENSIONS:
        basename_plus_innerext, outer_ext = fname, ''  # not a supported archive

    # "contigs", ".fasta"
    basename, fasta_ext = os.path.splitext(basename_plus_innerext)
    if fasta_ext not in FASTA_EXTENSIONS:
        basename, fasta_ext = basename_plus_innerext, ''  # not a supported extention, or no extention

    return basename, fasta_ext


def name_from_fpath(fpath):
    return os.path.splitext(os.path.basename(fpath))[0]


def label_from_fpath(fpath):
    return qconfig.assembly_labels_by_fpath[fpath]


def label_from_fpath_for_fname(fpath):
    return slugify(qconfig.assembly_labels_by_fpath[fpath])


def call_subprocess(args, stdin=None, stdout=None, stderr=None, cwd=None,
                    indent='', only_if_debug=True, env=None, logger=logger):
    printed_args = args[:]
    if stdin:
        printed_args += ['<', stdin.name]
    if stdout:
        printed_args += ['>>' if stdout.mode == 'a' else '>', stdout.name]
    if stderr:
        printed_args += ['2>>' if stderr.mode == 'a' else '2>', stderr.name]

    for i, arg in enumerate(printed_args):
        if arg.startswith(os.getcwd()):
            printed_args[i] = relpath(arg)

    logger.print_command_line(printed_args, indent, only_if_debug=only_if_debug)

    return_code = subprocess.call(args, stdin=stdin, stdout=stdout, stderr=stderr, cwd=cwd, env=env)

    if return_code != 0:
        logger.debug(' ' * len(indent) + 'The tool returned non-zero.' +
                     (' See ' + relpath(stderr.name) + ' for stderr.' if stderr else ''))

    return return_code


def relpath(path, start=curdir):
    """Return a relative version of a path"""
    if not path:
        raise ValueError("No path specified")
    start_list = os.path.abspath(start).split(sep)
    path_list = os.path.abspath(path).split(sep)
    # Work out how much of the filepath is shared by start and path.
    i = len(commonprefix([start_list, path_list]))
    rel_list = [pardir] * (len(start_list) - i) + path_list[i:]
    if not rel_list:
        return curdir
    return join(*rel_list)


def get_path_to_program(program, dirpath=None):
    """
    returns the path to an executable or None if it can't be found
    """
    def is_exe(fpath):
        return os.path.isfile(fpath) and os.access(fpath, os.X_OK)

    if dirpath:
        exe_file = os.path.join(dirpath, program)
        if is_exe(exe_file):
            return exe_file

    for path in os.environ["PATH"].split(os.pathsep):
        exe_file = os.path.join(path, program)
        if is_exe(exe_file):
            return exe_file
    return None


def is_non_empty_file(fpath, min_size=1):
    # optional parameter is the minimum file size (in bytes) for considering it as a non empty file
    return bool(fpath) and os.path.exists(fpath) and os.path.getsize(fpath) > min_size


def parse_str_to_num(s):
    try:
        return int(s)
    except ValueError:
        return float(s)


def val_to_str(val):
    if val is None:
        return '-'
    else:
        return str(val)


def format_float(val, decimals, missing='NA'):
    if val is None:
        return missing
    if isinstance(val, bool):
        return str(int(val))
    if isinstance(val, int):
        return str(val)
    return '%.*f' % (decimals, val)


def add_suffix(fname, suffix):
    base, ext = os.path.splitext(fname)
    if ext in ['.gz', '.bz2', '.zip']:
        base, ext2 = os.path.splitext(base)
        ext = ext2 + ext
    return base + (('.' + suffix) if suffix else '') + ext


def check_dirpath(path, message="", exit_code=3):
    if not is_ascii_string(path):
        logger.error('AsmScore does not support non-ASCII characters in path.\n' + message, to_stderr=True, exit_with_code=exit_code)
    if ' ' in path:
        logger.error('AsmScore does not support spaces in paths.\n' + message, to_stderr=True, exit_with_code=exit_code)
    return True


def is_ascii_string(line):
    try:
        line.encode('ascii')
    except UnicodeEncodeError:
        return False
    else:
        return True


def run_parallel(_fn, fn_args, n_jobs=None, filter_results=False):
    if qconfig.memory_efficient:
        results_tuples = [_fn(*args) for args in fn_args]
    else:
        from joblib import Parallel, delayed
        n_jobs = n_jobs or qconfig.max_threads
        # the default 'loky' backend starts fresh interpreters which lose the values set in qconfig,
        # so 'multiprocessing' is required here
        results_tuples = Parallel(n_jobs=n_jobs, backend='multiprocessing')(delayed(_fn)(*args) for args in fn_args)
    results = []
    if results_tuples:
        if isinstance(results_tuples[0], list) or isinstance(results_tuples[0], tuple):
            results_cnt = len(results_tuples[0])
            if filter_results:
                results = [[result_list[i] for result_list in results_tuples if result_list[i]] for i in range(results_cnt)]
            else:
                results = [[result_list[i] for result_list in results_tuples] for i in range(results_cnt)]
        else:
            results = [result for result in results_tuples if result or not filter_results]
    return results
