# -*- coding: utf-8 -*-
# vim: ts=4 sw=4 tw=100 et ai si
#
# Copyright (C) 2020-2025 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause
#
# Author: Artem Bityutskiy <artem.bityutskiy@linux.intel.com>

"""
Implement the 'cpupm online' and 'cpupm offline' commands.
"""

from __future__ import annotations # Remove when switching to Python 3.10+.

import typing
from cpupmlibs import CPUManager
from cpupmlibs.helperlibs import Logging, Trivial
from cpupmtool import _CpupmCommon

if typing.TYPE_CHECKING:
    import argparse
    from cpupmlibs.helperlibs.ProcessManager import ProcessManagerType

_LOG = Logging.getLogger(f"{Logging.MAIN_LOGGER_NAME}.cpupm.{__name__}")

def _set_online(args: argparse.Namespace, pman: ProcessManagerType, online: bool):
    """Online or offline CPUs specified with the '--cores' option."""

    with CPUManager.CPUManager(pman=pman) as cpuman:
        cores = _CpupmCommon.parse_cores(args.cores, cpuman)

        for core in cores:
            cpuman.set_core_online(core, online)

    state = "online" if online else "offline"
    _LOG.notice("CPUs %s are now %s%s", Trivial.rangify(cores), state, pman.hostmsg)

def online_command(args: argparse.Namespace, pman: ProcessManagerType):
    """
    Implement the 'online' command.

    Args:
        args: The command line arguments.
        pman: The process manager object that defines the target host.
    """

    _set_online(args, pman, True)

def offline_command(args: argparse.Namespace, pman: ProcessManagerType):
    """
    Implement the 'offline' command. CPU 0 cannot be taken offline, and specifying it is an error.

    Args:
        args: The command line arguments.
        pman: The process manager object that defines the target host.
    """

    _set_online(args, pman, False)
