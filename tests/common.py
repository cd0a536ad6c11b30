#!/usr/bin/env python3
#
# -*- coding: utf-8 -*-
# vim: ts=4 sw=4 tw=100 et ai si
#
# Copyright (C) 2020-2025 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause
#
# Author: Antti Laakso <antti.laakso@linux.intel.com>
#         Artem Bityutskiy <artem.bityutskiy@linux.intel.com>

"""Common functions for cpupm tests."""

from  __future__ import annotations # Remove when switching to Python 3.10+.

from pathlib import Path
import typing
from typing import cast
from cpupmlibs import Config
from cpupmlibs.helperlibs import ProcessManager, EmulProcessManager
from cpupmlibs.helperlibs.Exceptions import Error
from cpupmtool import _Cpupm

if typing.TYPE_CHECKING:
    from typing import TypedDict
    from cpupmlibs.helperlibs.ProcessManager import ProcessManagerType

    class CommonTestParamsTypedDict(TypedDict):
        """
        A dictionary of common test parameters.

        Attributes:
            hostname: The hostname of the target system.
            pman: The process manager instance for managing processes on the target system.
        """

        hostname: str
        pman: ProcessManagerType

def get_emul_data_path(dataset: str) -> Path:
    """
    Get the path to the emulation data for the specified dataset.

    Args:
        dataset: Name of the dataset for which to retrieve the path.

    Returns:
        Path to the emulation data directory for the specified dataset.
    """

    return Path(__file__).parent.resolve() / "emul-data" / dataset

def is_emulated(pman: ProcessManagerType) -> bool:
    """
    Determine if the provided process manager corresponds to an emulated system.

    Args:
        pman: The process manager instance to check.

    Returns:
        True if the process manager corresponds to an emulated system, False otherwise.
    """

    return pman.hostname.startswith("emulation:")

def get_pman(hostspec: str, username: str = "") -> ProcessManagerType:
    """
    Create and return a process manager for the specified host.

    Args:
        hostspec: The host specification/name to create a process manager for. If the hostspec
                  starts with "emulation:", it indicates an emulated environment.
        username: Name of the user to use for logging into the remote host over SSH.

    Returns:
        A process manager instance for the specified host. 'EmulProcessManager' in case of
        emulation, 'LocalProcessManager' for the localhost, and 'SSHProcessManager' for remote
        hosts.
    """

    dspath: Path | None = None
    if hostspec.startswith("emulation:"):
        dataset = hostspec.split(":", maxsplit=2)[1]
        dspath = get_emul_data_path(dataset)

    pman = ProcessManager.get_pman(hostspec, username=username)

    if dspath:
        emul_pman = cast(EmulProcessManager.EmulProcessManager, pman)
        try:
            emul_pman.init_emul_data(dspath)
        except Error:
            pman.close()
            raise

    return pman

def get_emul_pman(dataset: str, superuser: bool = True) -> EmulProcessManager.EmulProcessManager:
    """
    Create and return an emulated process manager for a dataset.

    Args:
        dataset: Name of the dataset to emulate.
        superuser: Whether the emulated host should look like it is accessed with superuser
                   privileges.

    Returns:
        The 'EmulProcessManager' object with the dataset loaded.
    """

    pman = cast(EmulProcessManager.EmulProcessManager, get_pman(f"emulation:{dataset}"))
    pman.superuser = superuser
    return pman

def build_params(pman: ProcessManagerType) -> CommonTestParamsTypedDict:
    """
    Build and return a dictionary containing common test parameters.

    Args:
        pman: The process manager object that defines the host where the tests will be run.

    Returns:
        A 'CommonTestParams' object initialized with the hostname and process manager.
    """

    return {"hostname": pman.hostname, "pman": pman}

def run_cpupm(arguments: str,
              pman: ProcessManagerType,
              exp_exc: type[Exception] | None = None):
    """
    Run a 'cpupm' command on the host defined by 'pman' and verify the outcome.

    Args:
        arguments: The command-line arguments to run the 'cpupm' command with, e.g.,
                   'status --cores 0-3'.
        pman: The process manager object that specifies the host to run the command on.
        exp_exc: The expected exception. If set, the test fails if the command does not raise the
                 expected exception. By default, any exception is considered a failure.
    """

    cmd = f"cpupm {arguments}"

    try:
        args = _Cpupm.build_arguments_parser().parse_args(arguments.split())
        args.cfg = Config.Config(path=Path(args.config) if args.config else None)
        args.func(args, pman)
    except Exception as err: # pylint: disable=broad-except
        errmsg = f"Command '{cmd}' raised the following exception:\n- {type(err).__name__}({err})"
        if exp_exc is None:
            assert False, errmsg
        if not isinstance(err, exp_exc):
            assert False, f"{errmsg}\nbut it was expected to raise the following exception:\n" \
                          f"- {exp_exc.__name__}"
        return

    if exp_exc is not None:
        assert False, f"Command '{cmd}' did not raise the following exception type:\n" \
                      f"- {exp_exc.__name__}"
