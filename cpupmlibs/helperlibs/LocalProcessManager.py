# -*- coding: utf-8 -*-
# vim: ts=4 sw=4 tw=100 et ai si
#
# Copyright (C) 2020-2025 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause
#
# Author: Artem Bityutskiy <artem.bityutskiy@linux.intel.com>

"""
Provide API for managing files on the local host. Implement the 'ProcessManagerBase' API, with the
idea of having a unified API for local and remote hosts.
"""

from  __future__ import annotations # Remove when switching to Python 3.10+.

import os
import shutil
import typing
import tempfile
from pathlib import Path
from typing import IO, cast
from cpupmlibs.helperlibs import Logging, _ProcessManagerBase, ClassHelpers, Trivial
from cpupmlibs.helperlibs.Exceptions import Error, ErrorPermissionDenied, ErrorNotFound

if typing.TYPE_CHECKING:
    from typing import Generator
    from cpupmlibs.helperlibs._ProcessManagerBase import LsdirTypedDict

_LOG = Logging.getLogger(f"{Logging.MAIN_LOGGER_NAME}.cpupm.{__name__}")

class LocalProcessManager(_ProcessManagerBase.ProcessManagerBase):
    """Manage files on the local host."""

    def open(self, path: str | Path, mode: str) -> IO:
        """Refer to 'ProcessManagerBase.open()'."""

        # pylint: disable=consider-using-with,unspecified-encoding

        errmsg = f"Failed to open file '{path}' with mode '{mode}':"
        try:
            # Binary mode doesn't take an encoding argument.
            if "b" in mode:
                fobj = open(path, mode)
            else:
                fobj = open(path, mode, encoding="utf-8")
        except PermissionError as err:
            msg = Error(str(err)).indent(2)
            raise ErrorPermissionDenied(f"{errmsg}\n{msg}") from None
        except FileNotFoundError as err:
            msg = Error(str(err)).indent(2)
            raise ErrorNotFound(f"{errmsg}\n{msg}") from None
        except OSError as err:
            msg = Error(str(err)).indent(2)
            raise Error(f"{errmsg}\n{msg}") from None

        # Make sure all file methods raise only exceptions derived from 'Error'.
        wfobj = ClassHelpers.WrapExceptions(fobj, get_err_prefix=_ProcessManagerBase.get_err_prefix)
        return cast(IO, wfobj)

    def mkdir(self, dirpath: str | Path, parents: bool = False, exist_ok: bool = False):
        """
        Create a directory.

        Args:
            dirpath: Path to the directory to create.
            parents: Create parent directories if they do not exist.
            exist_ok: Do not fail if the directory already exists.
        """

        try:
            Path(dirpath).mkdir(parents=parents, exist_ok=exist_ok)
        except OSError as err:
            msg = Error(str(err)).indent(2)
            raise Error(f"Failed to create directory '{dirpath}':\n{msg}") from None

    def lsdir(self, path: str | Path) -> Generator[LsdirTypedDict, None, None]:
        """Refer to 'ProcessManagerBase.lsdir()'."""

        path = Path(path)

        try:
            entries = sorted(os.listdir(path))
        except FileNotFoundError:
            raise ErrorNotFound(f"Directory '{path}' does not exist{self.hostmsg}") from None
        except OSError as err:
            msg = Error(str(err)).indent(2)
            raise Error(f"Failed to get list of files in '{path}'{self.hostmsg}:\n{msg}") from None

        for entry in entries:
            try:
                stinfo = path.joinpath(entry).lstat()
            except OSError as err:
                msg = Error(str(err)).indent(2)
                raise Error(f"'lstat()' failed for '{entry}':\n{msg}") from None

            yield {"name": entry, "path": path / entry, "mode": stinfo.st_mode}

    def exists(self, path: str | Path) -> bool:
        """Refer to 'ProcessManagerBase.exists()'."""

        try:
            return Path(path).exists()
        except OSError as err:
            msg = Error(str(err)).indent(2)
            raise Error(f"Failed to check if '{path}' exists:\n{msg}") from None

    def is_file(self, path: str | Path) -> bool:
        """Refer to 'ProcessManagerBase.is_file()'."""

        try:
            return Path(path).is_file()
        except OSError as err:
            msg = Error(str(err)).indent(2)
            raise Error(f"Failed to check if '{path}' exists and it is a regular file:\n{msg}") \
                        from None

    def is_dir(self, path: str | Path) -> bool:
        """Refer to 'ProcessManagerBase.is_dir()'."""

        try:
            return Path(path).is_dir()
        except OSError as err:
            msg = Error(str(err)).indent(2)
            raise Error(f"Failed to check if '{path}' exists and it is a directory:\n{msg}") \
                        from None

    def is_superuser(self) -> bool:
        """Refer to 'ProcessManagerBase.is_superuser()'."""
        return Trivial.is_root()

    def rmtree(self, path: str | Path):
        """
        Remove a directory tree or a file.

        Args:
            path: The path to remove.
        """

        path = Path(path)

        try:
            if path.is_dir():
                shutil.rmtree(path)
            else:
                path.unlink()
        except FileNotFoundError:
            pass
        except (OSError, shutil.Error) as err:
            msg = Error(str(err)).indent(2)
            raise Error(f"Failed to remove '{path}':\n{msg}") from err

    def mkdtemp(self, prefix: str = "", basedir: str | Path | None = None) -> Path:
        """
        Create a temporary directory.

        Args:
            prefix: The temporary directory name prefix.
            basedir: The directory to create the temporary directory in. Use the system default
                     temporary directory if not provided.

        Returns:
            Path to the created temporary directory.
        """

        try:
            path = tempfile.mkdtemp(prefix=prefix, dir=basedir)
        except OSError as err:
            msg = Error(str(err)).indent(2)
            raise Error(f"Failed to create a temporary directory:\n{msg}") from err

        _LOG.debug("Created a temporary directory '%s'", path)
        return Path(path)
