# -*- coding: utf-8 -*-
# vim: ts=4 sw=4 tw=100 et ai si
#
# Copyright (C) 2020-2025 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause
#
# Author: Artem Bityutskiy <artem.bityutskiy@linux.intel.com>

"""
Provide YAML file reading and writing capabilities. The loader supports the "include" statement,
which includes another YAML file (relative paths are relative to the including file).
"""

from  __future__ import annotations # Remove when switching to Python 3.10+.

from pathlib import Path, PosixPath
from typing import Any, IO
import yaml
from cpupmlibs.helperlibs import Logging
from cpupmlibs.helperlibs.Exceptions import Error, ErrorNotFound

_LOG = Logging.getLogger(f"{Logging.MAIN_LOGGER_NAME}.cpupm.{__name__}")

class _Loader(yaml.SafeLoader):
    """A safe YAML loader which renames "include" keys to make them unique."""

class _Dumper(yaml.SafeDumper):
    """A safe YAML dumper which represents 'None' as an empty value and paths as strings."""

def _dict_constructor(loader: _Loader, node: yaml.MappingNode) -> dict[str, Any]:
    """
    Construct a dictionary from a YAML mapping node. Rename 'include' keys to '__include_<N>', so
    that they do not overwrite each other.

    Args:
        loader: The YAML loader instance.
        node: The YAML mapping node.

    Returns:
        The constructed dictionary.
    """

    includes = 0
    pairs = loader.construct_pairs(node, deep=True)
    for idx, pair in enumerate(pairs):
        if pair[0] == "include":
            pairs[idx] = (f"__include_{includes}", pair[1])
            includes += 1
        elif str(pair[0]).startswith("__include_"):
            raise Error(f"Illegal key '{pair[0]}', keys beginning with '__include_' are reserved "
                        f"for internal use")
    return dict(pairs)

def _represent_none(dumper: yaml.SafeDumper, _: Any) -> yaml.ScalarNode:
    """Represent 'None' values as empty values in YAML output."""
    return dumper.represent_scalar("tag:yaml.org,2002:null", "")

def _represent_posixpath(dumper: yaml.SafeDumper, value: PosixPath) -> yaml.ScalarNode:
    """Represent a 'PosixPath' object as a YAML string."""
    return dumper.represent_scalar("tag:yaml.org,2002:str", str(value))

_Loader.add_constructor(yaml.resolver.BaseResolver.DEFAULT_MAPPING_TAG, _dict_constructor)
_Dumper.add_representer(type(None), _represent_none)
_Dumper.add_representer(PosixPath, _represent_posixpath)

def dump(data: dict[str, Any], path: Path | IO[str]):
    """
    Dump a dictionary to a YAML file.

    Args:
        data: The dictionary to dump.
        path: The file path or file object to write the YAML data to.
    """

    try:
        if isinstance(path, Path):
            with open(path, "w", encoding="utf-8") as fobj:
                yaml.dump(data, fobj, Dumper=_Dumper, default_flow_style=False, sort_keys=False)
            _LOG.debug("Wrote YAML file at '%s'", path)
        else:
            yaml.dump(data, path, Dumper=_Dumper, default_flow_style=False, sort_keys=False)
    except OSError as err:
        msg = Error(str(err)).indent(2)
        raise Error(f"Failed to write YAML file '{path}':\n{msg}") from None

def _load(path: Path, included: dict[Path, Path]) -> dict[str, Any]:
    """
    Load a YAML file and resolve its "include" statements.

    Args:
        path: Path to the YAML file.
        included: The already included files, used for detecting circular includes.

    Returns:
        The loaded YAML file contents.
    """

    try:
        with open(path, "r", encoding="utf-8") as fobj:
            loaded = yaml.load(fobj, Loader=_Loader) # nosec B506
    except FileNotFoundError:
        raise ErrorNotFound(f"YAML file '{path}' does not exist") from None
    except yaml.YAMLError as err:
        msg = Error(str(err)).indent(2)
        raise Error(f"Failed to parse YAML file '{path}':\n{msg}") from None
    except OSError as err:
        msg = Error(str(err)).indent(2)
        raise Error(f"Failed to read YAML file '{path}':\n{msg}") from None

    if not loaded:
        return {}

    if not isinstance(loaded, dict):
        raise Error(f"Bad YAML file '{path}': the top level should be a mapping")

    result: dict[str, Any] = {}

    for key, value in loaded.items():
        if not str(key).startswith("__include_"):
            result[key] = value
            continue

        incpath = Path(str(value))
        if not incpath.is_absolute():
            incpath = path.parent / incpath

        if incpath in included:
            raise Error(f"Circular dependency found: include path '{incpath}' in YAML file "
                        f"'{path}' was already included from '{included[incpath]}'")

        included[incpath] = path
        result.update(_load(incpath, included))

    _LOG.debug("Loaded YAML file at '%s'", path)
    return result

def load(path: str | Path) -> dict[str, Any]:
    """
    Load a YAML file.

    Args:
        path: Path to the YAML file to load.

    Returns:
        A dictionary representing the contents of the loaded YAML file.

    Raises:
        ErrorNotFound: If the file does not exist.
        Error: If the file cannot be read or parsed.
    """

    return _load(Path(path), {})
