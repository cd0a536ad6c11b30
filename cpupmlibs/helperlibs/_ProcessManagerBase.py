# -*- coding: utf-8 -*-
# vim: ts=4 sw=4 tw=100 et ai si
#
# Copyright (C) 2020-2025 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause
#
# Author: Artem Bityutskiy <artem.bityutskiy@linux.intel.com>

"""
Base class for process managers. Process managers provide the same file I/O interface regardless of
whether the files are on the local host, on a remote host, or in an emulated file-system.
"""

from __future__ import annotations # Remove when switching to Python 3.10+.

import typing
from pathlib import Path
from cpupmlibs.helperlibs import ClassHelpers
from cpupmlibs.helperlibs.Exceptions import ErrorNotFound

if typing.TYPE_CHECKING:
    from typing import IO, Generator, TypedDict

    class LsdirTypedDict(TypedDict):
        """
        A directory entry information dictionary.

        Attributes:
            name: The name of the directory entry (a file, a directory, etc).
            path: The full path to the directory entry.
            mode: The mode (type and permissions) of the directory entry.
        """

        name: str
        path: Path
        mode: int

def get_err_prefix(fobj: IO, method_name: str) -> str:
    """
    Generate an exception message prefix for a file-like object wrapped by
    'ClassHelpers.WrapExceptions'.

    Args:
        fobj: The file-like object to generate the prefix for.
        method_name: The name of the method that raised the exception.

    Returns:
        The exception message prefix string.
    """

    return f"Method '{method_name}()' failed for '{fobj.name}'"

class ProcessManagerBase(ClassHelpers.SimpleCloseContext):
    """Base class for process managers."""

    def __init__(self):
        """Initialize the class instance."""

        # Whether the process manager is managing a remote host.
        self.is_remote = False
        # The hostname of the host.
        self.hostname = "localhost"
        # The message referring to the host to add to error messages.
        self.hostmsg = ""

    def open(self, path: str | Path, mode: str) -> IO:
        """
        Open a file at the specified path and return the file-like object.

        Args:
            path: The path to the file to open.
            mode: The mode in which to open the file, similar to 'mode' argument the built-in Python
                  'open()' function.

        Returns:
            A file-like object corresponding to the opened file.

        Raises:
            ErrorNotFound: If the file does not exist.
            ErrorPermissionDenied: If the file cannot be opened because of insufficient permissions.
        """

        raise NotImplementedError("ProcessManagerBase.open()")

    def read_file(self, path: Path | str) -> str:
        """
        Read a file.

        Args:
            path: The path to the file to read.

        Returns:
            The contents of the file as a string.

        Raises:
            ErrorNotFound: If the file does not exist.
        """

        try:
            with self.open(path, "r") as fobj:
                val = fobj.read()
        except ErrorNotFound as err:
            raise ErrorNotFound(f"File '{path}' does not exist{self.hostmsg}") from err

        return val

    def lsdir(self, path: str | Path) -> Generator[LsdirTypedDict, None, None]:
        """
        Yield directory entries in the specified path as 'LsdirTypedDict' dictionaries, sorted by
        name.

        Args:
            path: The directory path to list entries from.

        Raises:
            ErrorNotFound: If the specified path does not exist.
        """

        raise NotImplementedError("ProcessManagerBase.lsdir()")

    def exists(self, path: str | Path) -> bool:
        """Return 'True' if path 'path' exists."""
        raise NotImplementedError("ProcessManagerBase.exists()")

    def is_file(self, path: str | Path) -> bool:
        """Return 'True' if path 'path' exists and it is a regular file."""
        raise NotImplementedError("ProcessManagerBase.is_file()")

    def is_dir(self, path: str | Path) -> bool:
        """Return 'True' if path 'path' exists and it is a directory."""
        raise NotImplementedError("ProcessManagerBase.is_dir()")

    def is_superuser(self) -> bool:
        """
        Check whether the process manager has superuser privileges on the host, i.e., whether it
        can change system settings like CPU frequency limits.

        Returns:
            True if the process manager acts with superuser privileges, False otherwise.
        """

        raise NotImplementedError("ProcessManagerBase.is_superuser()")
