# -*- coding: utf-8 -*-
# vim: ts=4 sw=4 tw=100 et ai si
#
# Copyright (C) 2020-2025 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause
#
# Author: Artem Bityutskiy <artem.bityutskiy@linux.intel.com>

"""
Helpers related to logging.

All loggers of the project are children of the main logger, named 'MAIN_LOGGER_NAME'. Library
modules create their logger with 'getLogger()' and never configure it, the 'cpupm' tool configures
the main logger with 'Logger.configure()'.
"""

from __future__ import annotations # Remove when switching to Python 3.10+.

import sys
import logging
import traceback
from pathlib import Path
from typing import NoReturn, Any, IO, cast
import colorama
from cpupmlibs.helperlibs.Exceptions import Error

# Log levels.
#   * INFO: No prefixes, just the message.
#   * NOTICE: An INFO message, but with a prefix.
#   * DEBUG, WARNING, ERROR, CRITICAL: Also have the prefix.
#   * ERRINFO: An ERROR message, but without a prefix.
INFO = logging.INFO
NOTICE = logging.INFO + 1
DEBUG = logging.DEBUG
WARNING = logging.WARNING
ERROR = logging.ERROR
ERRINFO = logging.ERROR + 1
CRITICAL = logging.CRITICAL

# Log level names, as used in the configuration file.
LEVELS = {"debug": DEBUG, "info": INFO, "warning": WARNING, "error": ERROR}

# Name of the main logger instance.
MAIN_LOGGER_NAME = "main"

# The default prefix for debug messages.
_DEFAULT_DBG_PREFIX = "[%(created)f] [%(asctime)s] [%(module)s,%(lineno)d]"

class _CpupmFormatter(logging.Formatter):
    """A logging formatter with a separate message format for every log level."""

    def __init__(self,
                 prefix: str | None = None,
                 prefix_debug: str | None = None,
                 colors: dict[int, str] | None = None):
        """
        Initialize the formatter.

        Args:
            prefix: Prefix for non-info and non-debug messages. Info messages go without any
                    formatting. By default, the prefix is just the log level name.
            prefix_debug: Prefix for debug messages. The default value is '_DEFAULT_DBG_PREFIX'.
            colors: 'colorama' color codes to use for the prefixes, indexed by log level.
        """

        logging.Formatter.__init__(self, "%(levelname)s: %(message)s", "%H:%M:%S")

        self._fmts: dict[int, str] = {}
        self._colors = colors if colors else {}

        self.set_prefix(prefix=prefix, prefix_debug=prefix_debug)

    def _start(self, level: int) -> str:
        """Return the "start color output" code for log level 'level'."""
        return self._colors.get(level, "")

    def _end(self, level: int) -> str:
        """Return the "end color output" code for log level 'level'."""

        if level in self._colors:
            return str(colorama.Style.RESET_ALL)
        return ""

    def set_prefix(self, prefix: str | None = None, prefix_debug: str | None = None):
        """
        Set the message prefixes.

        Args:
            prefix: Prefix for non-info and non-debug messages.
            prefix_debug: Prefix for debug messages.
        """

        if prefix:
            prefix += ": "
        else:
            prefix = ""

        for lvl, pfx in ((WARNING, "warning"), (ERROR, "error"), (CRITICAL, "critical error"),
                         (NOTICE, "notice")):
            if not prefix:
                pfx = pfx.title()
            self._fmts[lvl] = self._start(lvl) + prefix + pfx + self._end(lvl) + ": %(message)s"

        if prefix_debug is None:
            prefix_debug = _DEFAULT_DBG_PREFIX
        if prefix_debug:
            prefix_debug += ": "

        fmt = prefix_debug + "%(message)s"
        fmt = fmt.replace("[", "[" + self._start(DEBUG))
        self._fmts[DEBUG] = fmt.replace("]", self._end(DEBUG) + "]")

        self._fmts[ERRINFO] = self._fmts[INFO] = "%(message)s"

    def format(self, record: logging.LogRecord) -> str:
        """
        Format log record 'record' using the format of its log level.

        Args:
            record: The log record to format.

        Returns:
            The formatted log record.
        """

        # pylint: disable=protected-access
        self._style._fmt = self._fmts[record.levelno]
        return logging.Formatter.format(self, record)

class _LevelFilter(logging.Filter):
    """A filter which lets through only the specified log levels."""

    def __init__(self, let_go: list[int]):
        """
        Initialize the filter.

        Args:
            let_go: Log levels to let through.
        """

        logging.Filter.__init__(self)
        self._let_go = let_go

    def filter(self, record: logging.LogRecord) -> bool:
        """Return 'True' if the log level of 'record' should be let through."""
        return record.levelno in self._let_go

class Logger(logging.Logger):
    """
    A logger class that adds the following to the standard logger:
      * Message coloring.
      * Different prefixes for different log levels.
      * The NOTICE and ERRINFO log levels.
      * The 'error_out()' and 'debug_print_stacktrace()' methods.
    """

    def __init__(self, name: str | None = None):
        """
        Initialize the logger.

        Args:
            name: The name of the logger (same as in 'logging.Logger()').
        """

        self.prefix = ""
        self.colored = True

        self._colors: dict[int, str] = {}
        self._formatters: list[_CpupmFormatter] = []

        if not name:
            name = "default"

        super().__init__(name)

    def _init_colors(self):
        """Initialize the log level colors."""

        self._colors[DEBUG] = colorama.Fore.GREEN
        self._colors[WARNING] = colorama.Fore.YELLOW + colorama.Style.BRIGHT
        self._colors[NOTICE] = colorama.Fore.CYAN + colorama.Style.BRIGHT
        self._colors[ERROR] = self._colors[CRITICAL] = colorama.Fore.RED + colorama.Style.BRIGHT

    def configure(self,
                  prefix: str | None = None,
                  level: int | None = None,
                  colored: bool | None = None,
                  info_stream: IO[str] = sys.stdout,
                  error_stream: IO[str] = sys.stderr) -> Logger:
        """
        Configure the logger.

        Args:
            prefix: The prefix for log messages, used for all levels except 'INFO' and 'ERRINFO'.
            level: The log level. By default, detected from the '-d' (debug) and '-q' (quiet)
                   command line options.
            colored: Whether to use colored output. By default, colored output is used for TTYs,
                     unless the '--force-color' command line option is specified.
            info_stream: The stream for 'INFO' level messages.
            error_stream: The stream for messages of all other levels.

        Returns:
            The configured logger instance.
        """

        self.prefix = prefix if prefix else ""

        if not level:
            if "-q" in sys.argv:
                level = WARNING
            elif "-d" in sys.argv:
                level = DEBUG
            else:
                level = INFO

        self.setLevel(level)

        if colored is None:
            if "--force-color" in sys.argv:
                colored = True
            else:
                colored = info_stream.isatty() and error_stream.isatty()

        self.colored = colored
        if colored:
            self._init_colors()

        self.handlers = []
        self._formatters = []

        formatter = _CpupmFormatter(prefix=self.prefix, colors=self._colors)
        self._formatters.append(formatter)

        handler = logging.StreamHandler(info_stream)
        handler.setFormatter(formatter)
        handler.addFilter(_LevelFilter([INFO]))
        self.addHandler(handler)

        handler = logging.StreamHandler(error_stream)
        handler.setFormatter(formatter)
        handler.addFilter(_LevelFilter([DEBUG, WARNING, NOTICE, ERROR, ERRINFO, CRITICAL]))
        self.addHandler(handler)

        return self

    def configure_log_file(self, fpath: Path) -> Path:
        """
        Mirror all messages to a log file.

        Args:
            fpath: Path to the log file. The parent directory is created if it does not exist.

        Returns:
            The log file path.
        """

        try:
            fpath.parent.mkdir(parents=True, exist_ok=True)
            handler = logging.FileHandler(str(fpath), encoding="utf-8")
        except OSError as err:
            msg = Error(str(err)).indent(2)
            raise Error(f"Failed to open log file '{fpath}':\n{msg}") from None

        formatter = _CpupmFormatter(prefix=self.prefix)
        self._formatters.append(formatter)

        handler.setFormatter(formatter)
        self.addHandler(handler)

        return fpath

    def set_prefix(self, prefix: str):
        """Set the prefix for log messages to 'prefix'."""

        self.prefix = prefix
        for formatter in self._formatters:
            formatter.set_prefix(prefix=prefix)

    def _print_traceback(self, level: int = ERROR):
        """Print the exception traceback, or the stack traceback if there is no exception."""

        if sys.exc_info()[0]:
            lines = traceback.format_exc().splitlines()
        else:
            lines = [line.strip() for line in traceback.format_stack()]

        if not lines:
            return

        dim = colorama.Style.RESET_ALL + colorama.Style.DIM if self.colored else ""
        undim = colorama.Style.RESET_ALL if self.colored else ""

        self.log(level, "--- Debug trace starts here ---")
        self.log(level, "%sAn error occurred, here is the traceback:\n%s%s",
                 dim, "\n".join(lines), undim)
        self.log(level, "--- Debug trace ends here ---\n")

    def error_out(self, fmt: str | Error, *args: Any, print_tb: bool = False) -> NoReturn:
        """
        Print an error message and terminate program execution.

        Args:
            fmt: The error message format string or an exception object.
            *args: The arguments to format the error message.
            print_tb: If True, print the stack trace. The stack trace is always printed in debug
                      mode.

        Raises:
            SystemExit: Always, with exit code 1.
        """

        if args:
            errmsg = str(fmt) % args
        else:
            errmsg = str(fmt)

        if print_tb or self.getEffectiveLevel() == DEBUG:
            self._print_traceback(level=ERRINFO)

        self.error(errmsg)

        raise SystemExit(1)

    def debug_print_stacktrace(self):
        """Print the stack trace if debugging is enabled."""

        if self.getEffectiveLevel() == DEBUG:
            self._print_traceback(level=DEBUG)

    def notice(self, fmt: str, *args: Any):
        """Log a message with level 'NOTICE'."""
        self.log(NOTICE, fmt, *args)

logging.setLoggerClass(Logger)

def getLogger(name: str | None = None) -> Logger:
    """
    Get a logger by name (similar to 'logging.getLogger()').

    Args:
        name: The name of the logger.

    Returns:
        The logger instance.
    """

    # Because of 'setLoggerClass()', this returns a 'Logger' instance.
    return cast(Logger, logging.getLogger(name=name))
