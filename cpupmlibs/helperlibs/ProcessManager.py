# -*- coding: utf-8 -*-
# vim: ts=4 sw=4 tw=100 et ai si
#
# Copyright (C) 2020-2025 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause
#
# Author: Artem Bityutskiy <artem.bityutskiy@linux.intel.com>

"""
Provide a unified way of creating a process manager object for local, remote, or emulated hosts.
Process managers provide file I/O operations, such as 'open()' and 'lsdir()', which work the same
way regardless of where the files are.
"""

from  __future__ import annotations # Remove when switching to Python 3.10+.

import typing
import contextlib
from pathlib import Path
from cpupmlibs.helperlibs import LocalProcessManager, SSHProcessManager, EmulProcessManager

if typing.TYPE_CHECKING:
    from typing import Union

    ProcessManagerType = Union[LocalProcessManager.LocalProcessManager,
                               SSHProcessManager.SSHProcessManager,
                               EmulProcessManager.EmulProcessManager]

def get_pman(hostname: str,
             username: str = "",
             privkeypath: str | Path | None = None,
             timeout: int | float | None = None) -> ProcessManagerType:
    """
    Create and return a process manager object for the specified host.

    The following cases are handled:
        1. If 'hostname' is "localhost" and 'username' is not provided, return a
           'LocalProcessManager' object.
        2. If 'hostname' starts with "emulation", return an 'EmulProcessManager' object, which is
           used for testing purposes.
        3. For all other cases, return an 'SSHProcessManager' object connected to the host.

    Args:
         hostname: The host name to create a process manager object for.
         username: The user name for logging into the host over SSH.
         privkeypath: Path to the SSH private key for authentication.
         timeout: The SSH connection timeout in seconds.

    Returns:
         An instance of the appropriate process manager class.

    Usage example:
        with get_pman(hostname) as pman:
            pman.read_file(path)
    """

    pman: ProcessManagerType

    if hostname == "localhost" and not username:
        pman = LocalProcessManager.LocalProcessManager()
    elif hostname.startswith("emulation"):
        pman = EmulProcessManager.EmulProcessManager(hostname=hostname)
    else:
        pman = SSHProcessManager.SSHProcessManager(hostname, username=username,
                                                   privkeypath=privkeypath, timeout=timeout)

    return pman

def pman_or_local(pman: ProcessManagerType | None) -> ProcessManagerType:
    """
    Return the provided process manager or a new 'LocalProcessManager' instance, suitable for the
    'with' statement. A process manager provided by the caller is not closed on exit from the
    runtime context, a newly created one is.

    Args:
        pman: The process manager object to use. If 'None', a new 'LocalProcessManager' instance
              is created.

    Returns:
        The provided process manager wrapped into a "nullcontext" context manager, or a new
        'LocalProcessManager' instance.
    """

    if pman:
        return typing.cast("ProcessManagerType", contextlib.nullcontext(enter_result=pman))

    return LocalProcessManager.LocalProcessManager()
