# -*- coding: utf-8 -*-
# vim: ts=4 sw=4 tw=100 et ai si
#
# Copyright (C) 2022-2025 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause
#
# Authors: Artem Bityutskiy <artem.bityutskiy@linux.intel.com>
#          Antti Laakso <antti.laakso@linux.intel.com>
#          Niklas Neronin <niklas.neronin@intel.com>

"""
Provide classes for emulated files. An emulated file is a real file in the temporary base directory
of the emulated process manager. Some files need special handling to mimic sysfs behavior, e.g.,
writes to sysfs files always start at offset 0.
"""

from __future__ import annotations # Remove when switching to Python 3.10+.

import types
import typing
from pathlib import Path
from cpupmlibs.helperlibs import ClassHelpers, _ProcessManagerBase
from cpupmlibs.helperlibs.Exceptions import Error, ErrorPermissionDenied, ErrorNotFound

if typing.TYPE_CHECKING:
    from typing import IO, Callable

class EmulFile:
    """An emulated file with plain file semantics."""

    def __init__(self, path: Path, basepath: Path, data: str | None = None,
                 readonly: bool = False):
        """
        Initialize a class instance.

        Args:
            path: Path to the file to emulate.
            basepath: Path to the base directory (where the emulated files are stored).
            data: The initial file contents. The file is not created if 'None', it is expected to
                  exist in the base directory.
            readonly: Whether the emulated file is read-only.
        """

        self.path = path
        self.basepath = basepath
        self.readonly = readonly

        # Note about lstrip(): joining an absolute path with the base path would ignore the base
        # path, e.g., Path("/tmp") / "/sys" results in "/sys".
        self.fullpath = self.basepath / str(self.path).lstrip("/")

        if data is not None:
            self._populate(data)

    def _populate(self, data: str):
        """Create the emulated file in the base directory and write 'data' to it."""

        try:
            self.fullpath.parent.mkdir(parents=True, exist_ok=True)
            with open(self.fullpath, "w", encoding="utf-8") as fobj:
                fobj.write(data)
        except OSError as err:
            msg = Error(str(err)).indent(2)
            raise Error(f"Failed to create emulated file '{self.fullpath}':\n{msg}") from err

    def _open(self, mode: str) -> IO[str]:
        """Open the file in the base directory and return the unwrapped file object."""

        errmsg = f"Cannot open file '{self.path}' with mode '{mode}':"

        if self.readonly and any(char in mode for char in "wa+"):
            raise ErrorPermissionDenied(f"{errmsg}\n  Permission denied: read-only file")

        try:
            # pylint: disable-next=consider-using-with
            return open(self.fullpath, mode, encoding="utf-8")
        except PermissionError as err:
            msg = Error(str(err)).indent(2)
            raise ErrorPermissionDenied(f"{errmsg}\n{msg}") from None
        except FileNotFoundError as err:
            msg = Error(str(err)).indent(2)
            raise ErrorNotFound(f"{errmsg}\n{msg}") from None
        except OSError as err:
            msg = Error(str(err)).indent(2)
            raise Error(f"{errmsg}\n{msg}") from None

    def open(self, mode: str) -> IO[str]:
        """
        Open the emulated file.

        Args:
            mode: The mode in which to open the file, similar to 'mode' argument the built-in Python
                  'open()' function. Only text mode is supported.

        Returns:
            A file object with methods raising only project exceptions.
        """

        fobj = self._open(mode)
        return typing.cast("IO[str]", ClassHelpers.WrapExceptions(fobj,
                                                get_err_prefix=_ProcessManagerBase.get_err_prefix))

def _sysfs_write(self: IO[str], data: str) -> int:
    """
    Write to an emulated sysfs file. Unlike regular files, writes always replace the entire
    contents. For example, writing "performance" to the 'scaling_governor' file results in the file
    containing only "performance", regardless of what the file contained before.

    Args:
        self: The file object of the sysfs file to write to.
        data: The data to write.

    Returns:
        The number of characters written to the file.
    """

    self.seek(0)
    self.truncate(0)

    orig_write: Callable[[str], int] = getattr(self, "_orig_write_")
    written = orig_write(data)

    mirror: Path | None = getattr(self, "_mirror_", None)
    if mirror:
        with open(mirror, "w", encoding="utf-8") as fobj:
            fobj.write(data)

    return written

class SysfsEmulFile(EmulFile):
    """
    An emulated sysfs file. Writes start at offset 0 and replace the file contents. Optionally, a
    write is also reflected in another ("mirror") file, e.g., writing the 'scaling_setspeed' file
    changes the 'scaling_cur_freq' file.
    """

    def __init__(self, path: Path, basepath: Path, data: str | None = None,
                 readonly: bool = False, mirror: Path | None = None):
        """
        Initialize a class instance.

        Args:
            path: Path to the file to emulate.
            basepath: Path to the base directory.
            data: The initial file contents.
            readonly: Whether the emulated file is read-only.
            mirror: Path of the file which reflects the writes to this file.
        """

        super().__init__(path, basepath, data=data, readonly=readonly)

        self.mirror: Path | None = None
        if mirror:
            self.mirror = self.basepath / str(mirror).lstrip("/")

    def open(self, mode: str) -> IO[str]:
        """Refer to 'EmulFile.open()'."""

        if "w" in mode:
            raise Error("BUG: use 'r+' mode when opening sysfs files")

        fobj = self._open(mode)

        if mode == "r+":
            setattr(fobj, "_orig_write_", fobj.write)
            setattr(fobj, "_mirror_", self.mirror)
            setattr(fobj, "write", types.MethodType(_sysfs_write, fobj))

        return typing.cast("IO[str]", ClassHelpers.WrapExceptions(fobj,
                                                get_err_prefix=_ProcessManagerBase.get_err_prefix))

# Sysfs files which reflect writes in a sibling file: name of the written file -> name of the
# sibling file.
_MIRRORS = {"scaling_setspeed": "scaling_cur_freq"}

def get_emul_file(path: str, basepath: Path, data: str | None = None,
                  readonly: bool = False) -> EmulFile:
    """
    Create and return an emulated file object for a path.

    Args:
        path: Path to the file to emulate.
        basepath: Directory where emulated files are created.
        data: The initial file contents. Do not create the file if 'None'.
        readonly: Whether the emulated file should be read-only.

    Returns:
        An emulated file object representing the file.
    """

    if path.startswith("/sys/"):
        mirror = None
        name = Path(path).name
        if name in _MIRRORS:
            mirror = Path(path).parent / _MIRRORS[name]

        return SysfsEmulFile(Path(path), basepath, data=data, readonly=readonly, mirror=mirror)

    return EmulFile(Path(path), basepath, data=data, readonly=readonly)
