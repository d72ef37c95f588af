############################################################################
# Copyright (c) 2015-2022 Saint Petersburg State University
# Copyright (c) 2011-2015 Saint Petersburg Academic University
# All Rights Reserved
# See file LICENSE for details.
############################################################################
import os
import sys
from datetime import datetime
from asmscore_libs import qconfig

import logging

_loggers = {}


def get_logger(name):
    if name in _loggers.keys():
        return _loggers[name]
    else:
        _loggers[name] = QLogger(name)
        return _loggers[name]


class QLogger(object):
    _logger = None  # logging.getLogger('asmscore')
    _name = ''
    _log_fpath = ''
    _start_time = None
    _indent_val = 0
    _num_notices = 0
    _num_warnings = 0
    _num_nf_errors = 0

    def __init__(self, name):
        self._name = name
        self._logger = logging.getLogger(name)
        self._logger.setLevel(logging.DEBUG)

    def set_up_console_handler(self, indent_val=0, debug=False):
        self._indent_val = indent_val

        for handler in list(self._logger.handlers):
            if isinstance(handler, logging.StreamHandler) and not isinstance(handler, logging.FileHandler):
                self._logger.removeHandler(handler)

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(logging.Formatter(indent_val * '  ' + '%(message)s'))
        console_handler.setLevel(logging.DEBUG if debug else logging.INFO)
        self._logger.addHandler(console_handler)

    def set_up_file_handler(self, output_dirpath):
        for handler in list(self._logger.handlers):
            if isinstance(handler, logging.FileHandler):
                self._logger.removeHandler(handler)

        self._log_fpath = os.path.join(output_dirpath, self._name + '.log')
        file_handler = logging.FileHandler(self._log_fpath, mode='w')
        file_handler.setLevel(logging.DEBUG)
        self._logger.addHandler(file_handler)

    def start(self):
        if self._indent_val == 0:
            self._logger.info('')
            self.print_version()
            self._logger.info('')
            self.print_system_info()

        self._start_time = self.print_timestamp('Started: ')
        self._logger.info('')
        self._logger.info('Logging to ' + self._log_fpath)

    def finish_up(self):
        self._logger.info('  Log is saved to ' + self._log_fpath)

        finish_time = self.print_timestamp('Finished: ')
        if self._start_time:
            self._logger.info('Elapsed time: ' + str(finish_time - self._start_time))
        self.print_numbers_of_notifications()
        self._logger.info('\nThank you for using AsmScore!')

        for handler in list(self._logger.handlers):
            self._logger.removeHandler(handler)
            handler.close()

        del _loggers[self._name]
        return 0

    def debug(self, message='', indent=''):
        self._logger.debug(indent + message)

    def info(self, message='', indent=''):
        if qconfig.silent:
            self._logger.debug(indent + message)
        else:
            self._logger.info(indent + message)

    # main_info always print in stdout
    def main_info(self, message='', indent=''):
        self._logger.info(indent + message)

    def notice(self, message='', indent=''):
        self._num_notices += 1
        self._logger.info(indent + ('NOTICE: ' + str(message) if message else ''))

    def warning(self, message='', indent=''):
        self._num_warnings += 1
        self._logger.warning(indent + ('WARNING: ' + str(message) if message else ''))

    def error(self, message='', exit_with_code=0, to_stderr=False, indent=''):
        if message:
            msg = indent + 'ERROR! ' + str(message)
            if exit_with_code:
                msg += "\n\nIn case you have troubles running AsmScore, please check the input files and options\n" \
                       "and provide asmscore.log file from the output directory when reporting an issue."
        else:
            msg = ''

        if to_stderr or not self._logger.handlers:
            sys.stderr.write(msg + '\n')
        else:
            self._logger.error('')
            self._logger.error(msg)

        if exit_with_code:
            sys.exit(exit_with_code)
        else:
            self._num_nf_errors += 1

    def exception(self, e, exit_code=0):
        if self._logger.handlers:
            self._logger.error('')
            self._logger.exception(e)
        else:
            sys.stderr.write(str(e) + '\n')

        if exit_code:
            sys.exit(exit_code)

    def print_command_line(self, args, indent='',
                           wrap_after=80, only_if_debug=False, is_main=False):
        if only_if_debug:
            out = self.debug
        elif is_main:
            out = self.main_info
        else:
            out = self.info

        text = ''
        line = indent

        for i, arg in enumerate(args):
            if ' ' in arg or '\t' in arg:
                arg = "'" + arg + "'"

            line += arg

            if i == len(args) - 1:
                text += line

            elif wrap_after is not None and len(line) > wrap_after:
                text += line + ' \\\n'
                line = ' ' * len(indent)

            else:
                line += ' '

        out(text)

    def print_params(self):
        self._logger.info("CWD: " + os.getcwd())
        self._logger.info("Main parameters: ")
        options = [('threads', qconfig.max_threads),
                   ('reference', qconfig.reference is not None),
                   ('reads', qconfig.reads_provided()),
                   ('require reads', qconfig.require_reads),
                   ('strict metrics', qconfig.strict_metrics)]
        self._logger.info('  ' + ', '.join(option + ': ' + str(value).lower() for option, value in options))

    def print_timestamp(self, message=''):
        now = datetime.now()
        current_time = now.strftime("%Y-%m-%d %H:%M:%S")
        self.main_info('')
        self.main_info(message + current_time)
        return now

    def print_version(self, to_stderr=False):
        if to_stderr:
            sys.stderr.write("Version: " + qconfig.asmscore_version() + '\n')
        else:
            self.info("Version: " + qconfig.asmscore_version())

    def print_system_info(self):
        from asmscore_libs.qutils import get_path_to_program
        self._logger.info("System information:")
        self._logger.info("  Python " + sys.version.split()[0] + ", " + str(os.cpu_count() or 1) + " CPUs")
        for program in qconfig.external_programs:
            self._logger.info("  %s: %s" % (program, get_path_to_program(program) or 'not found'))

    def print_numbers_of_notifications(self, prefix=""):
        numbers = self.get_numbers_of_notifications()
        self._logger.info(prefix + "NOTICEs: %d; WARNINGs: %d; non-fatal ERRORs: %d" %
                          numbers)

    def get_numbers_of_notifications(self):
        return (self._num_notices, self._num_warnings, self._num_nf_errors)
