# -*- coding: utf-8 -*-
# vim: ts=4 sw=4 tw=100 et ai si
#
# Copyright (C) 2020-2025 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause
#
# Author: Artem Bityutskiy <artem.bityutskiy@linux.intel.com>

"""
Implement the 'cpupm info' and 'cpupm status' commands.
"""

from __future__ import annotations # Remove when switching to Python 3.10+.

import sys
import typing
from cpupmlibs import CPUManager, ScalingDriver
from cpupmlibs.helperlibs import Logging, YAML
from cpupmlibs.helperlibs.Exceptions import ErrorNotSupported
from cpupmtool import _CpupmCommon

if typing.TYPE_CHECKING:
    import argparse
    from typing import Any
    from cpupmlibs.helperlibs.ProcessManager import ProcessManagerType

_LOG = Logging.getLogger(f"{Logging.MAIN_LOGGER_NAME}.cpupm.{__name__}")

def _get_turbo(cpuman: CPUManager.CPUManager) -> bool | None:
    """Return turbo status, or 'None' if the scaling driver does not support turbo control."""

    try:
        return cpuman.is_turbo_enabled()
    except ErrorNotSupported as err:
        _LOG.debug(err)
        return None

def _turbo_str(turbo: bool | None) -> str:
    """Format turbo status for printing."""

    if turbo is None:
        return "not supported"
    return "on" if turbo else "off"

def info_command(args: argparse.Namespace, pman: ProcessManagerType):
    """
    Implement the 'info' command.

    Args:
        args: The command line arguments.
        pman: The process manager object that defines the target host.
    """

    with CPUManager.CPUManager(pman=pman) as cpuman:
        info = cpuman.get_cpu_info()
        turbo = _get_turbo(cpuman)

    if args.yaml:
        ydict: dict[str, Any] = dict(info)
        ydict["turbo"] = turbo
        YAML.dump(ydict, sys.stdout)
        return

    _LOG.info("CPU model: %s", info["model"])
    _LOG.info("CPU vendor: %s", info["vendor"])
    _LOG.info("CPU count: %d", info["core_count"])
    _LOG.info("Scaling driver: %s", ScalingDriver.NAMES[info["driver"]])
    _LOG.info("Hardware frequency limits: %d - %d MHz", info["min_freq"], info["max_freq"])
    _LOG.info("Available governors: %s", ", ".join(info["available_governors"]))
    if info["available_frequencies"]:
        freqs = ", ".join(str(freq) for freq in info["available_frequencies"])
        _LOG.info("Available frequencies: %s MHz", freqs)
    else:
        _LOG.info("Available frequencies: not provided by the scaling driver")
    _LOG.info("Turbo: %s", _turbo_str(turbo))

def status_command(args: argparse.Namespace, pman: ProcessManagerType):
    """
    Implement the 'status' command.

    Args:
        args: The command line arguments.
        pman: The process manager object that defines the target host.
    """

    with CPUManager.CPUManager(pman=pman) as cpuman:
        cores = _CpupmCommon.parse_cores(args.cores, cpuman)

        statuses: list[dict[str, Any]] = []
        for core in cores:
            if not cpuman.is_core_online(core):
                statuses.append({"core_id": core, "online": False})
                continue

            statuses.append(dict(cpuman.get_core_status(core)))

        turbo = _get_turbo(cpuman)

    if args.yaml:
        YAML.dump({"turbo": turbo, "cores": statuses}, sys.stdout)
        return

    _LOG.info("Turbo: %s", _turbo_str(turbo))
    for status in statuses:
        if not status["online"]:
            _LOG.info("CPU%d: offline", status["core_id"])
            continue

        _LOG.info("CPU%d: %d MHz, limits %d - %d MHz, governor '%s'", status["core_id"],
                  status["current_freq"], status["min_freq"], status["max_freq"],
                  status["governor"])
