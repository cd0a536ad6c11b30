# -*- coding: utf-8 -*-
# vim: ts=4 sw=4 tw=100 et ai si
#
# Copyright (C) 2020-2025 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause
#
# Authors: Artem Bityutskiy <artem.bityutskiy@linux.intel.com>
#          Antti Laakso <antti.laakso@linux.intel.com>
#          Niklas Neronin <niklas.neronin@intel.com>

"""
Provide a process manager that emulates a host for testing purposes. Instead of accessing the real
file-system, the emulated process manager accesses files in a temporary directory (the base
directory), which is populated from a dataset.
"""

from  __future__ import annotations # Remove when switching to Python 3.10+.

import os
import typing
import contextlib
from pathlib import Path
from typing import TypedDict, cast
from cpupmlibs.helperlibs import Logging, LocalProcessManager, YAML, _EmulFile
from cpupmlibs.helperlibs.Exceptions import Error

if typing.TYPE_CHECKING:
    from typing import IO, Generator
    from cpupmlibs.helperlibs._ProcessManagerBase import LsdirTypedDict

class _InlineFilesTypedDict(TypedDict, total=False):
    """
    Typed dictionary describing inline files in a dataset category.

    Attributes:
        dirname: Name of the sub-directory within the dataset containing the inline files file.
        filename: The inline files file name. Each line is a file path and its value.
        separator: The separator used in the inline files file to separate paths and values.
        readonly: Whether the inline files are read-only.
    """

    dirname: str
    filename: str
    separator: str
    readonly: bool

class _FilesTypedDict(TypedDict, total=False):
    """
    Typed dictionary describing files in a dataset category.

    Attributes:
        path: The emulated file path. There is a file in the dataset category sub-directory with the
              same relative path, it includes the emulated file contents.
        readonly: Whether the emulated file is read-only.
    """

    path: str
    readonly: bool

class _DirectoriesTypedDict(TypedDict, total=False):
    """
    Typed dictionary describing empty directories in a dataset category.

    Attributes:
        path: The emulated empty directory path.
    """

    path: str

class _CategoryTypedDict(TypedDict, total=False):
    """
    Typed dictionary describing a dataset category YAML file.

    Attributes:
        inlinefiles: Inline files descriptions.
        files: Files descriptions.
        directories: Empty directories descriptions.
    """

    inlinefiles: list[_InlineFilesTypedDict]
    files: list[_FilesTypedDict]
    directories: list[_DirectoriesTypedDict]

_LOG = Logging.getLogger(f"{Logging.MAIN_LOGGER_NAME}.cpupm.{__name__}")

class EmulProcessManager(LocalProcessManager.LocalProcessManager):
    """
    A process manager that emulates a host for testing purposes.

    File-system-related methods (e.g., 'open()', 'lsdir()', 'is_file()') operate relative to the
    base directory, which is a temporary directory, so all file operations are sandboxed within the
    base directory. The emulation data are loaded from a dataset with 'init_emul_data()'.

    The 'superuser' attribute defines the result of 'is_superuser()'.
    """

    def __init__(self, hostname: str | None = None, superuser: bool = True):
        """
        Initialize a class instance.

        Args:
            hostname: Name of the emulated host to use in messages.
            superuser: Whether the emulated host should look like it is accessed with superuser
                       privileges.
        """

        super().__init__()

        if hostname:
            self.hostname = hostname
        else:
            self.hostname = "emulated local host"

        self.hostmsg = f" on '{self.hostname}'"
        self.superuser = superuser

        self._basepath: Path = super().mkdtemp(prefix=f"emulprocs_{os.getpid()}_")
        self._basepath_removed = False

        # The emulated files, indexed by the emulated path.
        self._files: dict[str, _EmulFile.EmulFile] = {}

    def __del__(self):
        """The class destructor."""

        if getattr(self, "_basepath_removed", True):
            return

        self._basepath_removed = True
        with contextlib.suppress(Error, OSError):
            super().rmtree(self._basepath)

    def close(self):
        """Stop emulation and remove the base directory."""

        if not self._basepath_removed:
            self._basepath_removed = True
            super().rmtree(self._basepath)

        super().close()

    def _get_basepath(self, path: str | Path) -> Path:
        """Return path 'path' rebased to the base directory."""

        # Note about lstrip(): joining an absolute path with the base path would ignore the base
        # path, e.g., Path("/tmp") / "/sys" results in "/sys".
        return self._basepath / str(path).lstrip("/")

    def _process_inlinefiles(self, infos: list[_InlineFilesTypedDict], dspath: Path):
        """
        Create emulated files from "inline files" emulation data.

        Args:
            infos: A collection of inline files descriptions.
            dspath: The dataset path.
        """

        for info in infos:
            filepath = dspath / info["dirname"] / info["filename"]

            try:
                with open(filepath, "r", encoding="utf-8") as fobj:
                    lines = fobj.readlines()
            except OSError as err:
                errmsg = Error(str(err)).indent(2)
                raise Error(f"Failed to read inline files configuration file '{filepath}':\n"
                            f"{errmsg}") from err

            sep = info.get("separator", ":")
            readonly = info.get("readonly", False)

            for line in lines:
                line = line.rstrip("\n")
                if not line or line.startswith("#"):
                    continue

                split = line.split(sep, 1)
                if len(split) != 2:
                    raise Error(f"Unexpected line format in '{filepath}':\n"
                                f"  Expected <path>{sep}<value>, received '{line}'")

                path, data = split
                self._files[path] = _EmulFile.get_emul_file(path, self._basepath, data=data,
                                                            readonly=readonly)

    def _process_files(self, infos: list[_FilesTypedDict], catpath: Path):
        """
        Create emulated files from "files" emulation data.

        Args:
            infos: A collection of files descriptions.
            catpath: The category path (a sub-directory in the dataset path).
        """

        for info in infos:
            filepath = catpath / info["path"].lstrip("/")

            try:
                with open(filepath, "r", encoding="utf-8") as fobj:
                    data = fobj.read()
            except OSError as err:
                errmsg = Error(str(err)).indent(2)
                raise Error(f"Failed to read '{filepath}':\n{errmsg}") from err

            path = info["path"]
            self._files[path] = _EmulFile.get_emul_file(path, self._basepath, data=data,
                                                        readonly=info.get("readonly", False))

    def _process_directories(self, infos: list[_DirectoriesTypedDict]):
        """
        Create emulated empty directories.

        Args:
            infos: A collection of directories descriptions.
        """

        for info in infos:
            super().mkdir(self._get_basepath(info["path"]), parents=True, exist_ok=True)

    def _process_category(self, yaml_path: Path):
        """
        Process a dataset category YAML file and create the emulated files it describes.

        Args:
            yaml_path: Path to the YAML file describing the dataset category.
        """

        category = cast(_CategoryTypedDict, YAML.load(yaml_path))
        dspath = yaml_path.parent

        if "inlinefiles" in category:
            self._process_inlinefiles(category["inlinefiles"], dspath)

        if "files" in category:
            self._process_files(category["files"], dspath / yaml_path.stem)

        if "directories" in category:
            self._process_directories(category["directories"])

    def init_emul_data(self, dspath: Path):
        """
        Load a dataset and initialize the emulation data.

        Args:
          dspath: Path to the dataset directory to load.

        Datasets are organized as follows:
            - datasets_root/
              - common/
                - common.yaml
              - dataset1/
                - category1.yaml
                - category1/
                - category2.yaml
                ...
              - dataset2/
              ...

        Each dataset represents an emulated host. The 'common' directory contains data shared across
        all datasets. Within each dataset, data is divided into categories, each described by a
        YAML file and an optional sub-directory with the data files.
        """

        common_yaml = dspath.parent / "common" / "common.yaml"
        if common_yaml.exists():
            self._process_category(common_yaml)

        for yaml_path in sorted(dspath.iterdir()):
            if yaml_path.suffix == ".yaml":
                self._process_category(yaml_path)

        _LOG.debug("Loaded emulation dataset '%s'", dspath)

    def open(self, path: str | Path, mode: str) -> IO:
        """Same as 'ProcessManagerBase.open()', but rebase 'path' to the base directory."""

        path = str(path)
        if path in self._files:
            return self._files[path].open(mode)

        return _EmulFile.get_emul_file(path, self._basepath).open(mode)

    def lsdir(self, path: str | Path) -> Generator[LsdirTypedDict, None, None]:
        """Same as 'ProcessManagerBase.lsdir()', but rebase 'path' to the base directory."""

        for entry in super().lsdir(self._get_basepath(path)):
            entry["path"] = Path(path) / entry["name"]
            yield entry

    def exists(self, path: str | Path) -> bool:
        """Same as 'ProcessManagerBase.exists()', but rebase 'path' to the base directory."""
        return super().exists(self._get_basepath(path))

    def is_file(self, path: str | Path) -> bool:
        """Same as 'ProcessManagerBase.is_file()', but rebase 'path' to the base directory."""
        return super().is_file(self._get_basepath(path))

    def is_dir(self, path: str | Path) -> bool:
        """Same as 'ProcessManagerBase.is_dir()', but rebase 'path' to the base directory."""
        return super().is_dir(self._get_basepath(path))

    def is_superuser(self) -> bool:
        """Refer to 'ProcessManagerBase.is_superuser()'."""
        return self.superuser

    def remove(self, path: str | Path):
        """
        Remove an emulated file or directory. Useful for emulating hosts which lack some sysfs
        files.

        Args:
            path: The emulated path to remove.
        """

        self._files.pop(str(path), None)
        super().rmtree(self._get_basepath(path))
