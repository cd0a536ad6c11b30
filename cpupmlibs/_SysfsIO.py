# -*- coding: utf-8 -*-
# vim: ts=4 sw=4 tw=100 et ai si
#
# Copyright (C) 2023-2025 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause
#
# Authors: Artem Bityutskiy <artem.bityutskiy@linux.intel.com>
#          Antti Laakso <antti.laakso@linux.intel.com>
#          Niklas Neronin <niklas.neronin@intel.com>

"""
Provide API for reading and writing sysfs files.
"""

from __future__ import annotations # Remove when switching to Python 3.10+.

import typing
from pathlib import Path
from cpupmlibs.helperlibs import Logging, ProcessManager, ClassHelpers, Trivial
from cpupmlibs.helperlibs.Exceptions import Error, ErrorNotFound, ErrorBadFormat

if typing.TYPE_CHECKING:
    from cpupmlibs.helperlibs.ProcessManager import ProcessManagerType

_LOG = Logging.getLogger(f"{Logging.MAIN_LOGGER_NAME}.cpupm.{__name__}")

class SysfsIO(ClassHelpers.SimpleCloseContext):
    """
    Provide API for reading and writing sysfs files.

    Public methods overview.
        * 'read()' - read a string.
        * 'read_int()' - read an integer.
        * 'write()' - write a string.
        * 'write_int()' - write an integer.

    No caching is done: sysfs is the source of truth, and other processes may change it at any
    time.
    """

    def __init__(self, pman: ProcessManagerType | None = None):
        """
        Initialize a class instance.

        Args:
            pman: The process manager object that defines the target host. Use a local process
                  manager if not provided.
        """

        self._close_pman = pman is None

        self._pman: ProcessManagerType
        if not pman:
            self._pman = ProcessManager.get_pman("localhost")
        else:
            self._pman = pman

    def close(self):
        """Uninitialize the class object."""
        ClassHelpers.close(self, close_attrs=("_pman",))

    def read(self, path: Path, what: str = "") -> str:
        """
        Read the contents of a sysfs file.

        Args:
            path: Path to the sysfs file to read.
            what: Optional short description of what is being read, included in exception messages.

        Returns:
            The contents of the file with leading and trailing white-spaces stripped.

        Raises:
            ErrorNotFound: If the file does not exist.
        """

        if what:
            what = f" {what}"

        try:
            with self._pman.open(path, "r") as fobj:
                val = fobj.read().strip()
        except ErrorNotFound as err:
            raise ErrorNotFound(f"Failed to read{what} from '{path}'{self._pman.hostmsg}: file "
                                f"does not exist") from err
        except Error as err:
            raise type(err)(f"Failed to read{what} from '{path}'{self._pman.hostmsg}:\n"
                            f"{err.indent(2)}") from err

        return val

    def read_int(self, path: Path, what: str = "") -> int:
        """
        Read a sysfs file and return its contents as an integer.

        Args:
            path: Path to the sysfs file to read.
            what: Optional short description of what is being read, included in exception messages.

        Returns:
            The integer value read from the file.

        Raises:
            ErrorNotFound: If the file does not exist.
            ErrorBadFormat: If the file contents cannot be parsed as an integer.
        """

        val = self.read(path, what=what)

        try:
            return Trivial.str_to_int(val, base=10, what=what)
        except Error as err:
            if what:
                what = f" {what}"
            raise ErrorBadFormat(f"Bad contents of{what} sysfs file '{path}'{self._pman.hostmsg}:\n"
                                 f"{err.indent(2)}") from err

    def write(self, path: Path, val: str, what: str = ""):
        """
        Write a value to a sysfs file.

        Args:
            path: Path to the sysfs file to write to.
            val: Value to write to the file.
            what: Optional short description of what is being written, included in exception
                  messages.

        Raises:
            ErrorNotFound: If the file does not exist.
            ErrorPermissionDenied: If the file is not writable.
        """

        if what:
            what = f" {what}"

        _LOG.debug("Writing value '%s' to%s sysfs file '%s'%s", val, what, path, self._pman.hostmsg)

        try:
            with self._pman.open(path, "r+") as fobj:
                fobj.write(val)
        except ErrorNotFound as err:
            raise ErrorNotFound(f"Failed to write value '{val}' to{what} sysfs file '{path}'"
                                f"{self._pman.hostmsg}: file does not exist") from err
        except Error as err:
            raise type(err)(f"Failed to write value '{val}' to{what} sysfs file '{path}'"
                            f"{self._pman.hostmsg}:\n{err.indent(2)}") from err

    def write_int(self, path: Path, val: int, what: str = ""):
        """
        Write an integer value to a sysfs file.

        Args:
            path: Path to the sysfs file to write to.
            val: Value to write to the file.
            what: Optional short description of what is being written, included in exception
                  messages.
        """

        self.write(path, str(val), what=what)
