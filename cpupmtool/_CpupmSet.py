# -*- coding: utf-8 -*-
# vim: ts=4 sw=4 tw=100 et ai si
#
# Copyright (C) 2020-2025 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause
#
# Authors: Artem Bityutskiy <artem.bityutskiy@linux.intel.com>
#          Niklas Neronin <niklas.neronin@intel.com>

"""
Implement the 'cpupm set' command.
"""

from __future__ import annotations # Remove when switching to Python 3.10+.

import typing
from cpupmlibs import CPUManager
from cpupmlibs.helperlibs import Logging, Trivial
from cpupmlibs.helperlibs.Exceptions import Error, ErrorBadValue
from cpupmtool import _CpupmCommon

if typing.TYPE_CHECKING:
    import argparse
    from cpupmlibs.helperlibs.ProcessManager import ProcessManagerType

_LOG = Logging.getLogger(f"{Logging.MAIN_LOGGER_NAME}.cpupm.{__name__}")

# The 'set' command options, in the order they are applied.
_SET_OPTIONS = ("governor", "min_freq", "max_freq", "freq", "turbo", "epp", "epb")

def _set_freq_limits(cpuman: CPUManager.CPUManager, cores: list[int], min_freq: int | None,
                     max_freq: int | None):
    """
    Set frequency scaling limits. If both limits are specified and the new min. limit is above the
    current max. limit of a CPU, the max. limit is set first.
    """

    if min_freq is not None and max_freq is not None and min_freq > max_freq:
        raise ErrorBadValue(f"Min. frequency {min_freq} MHz is greater than max. frequency "
                            f"{max_freq} MHz")

    for core in cores:
        if min_freq is not None and max_freq is not None and \
           min_freq > cpuman.get_scaling_max_freq(core):
            cpuman.set_scaling_max_freq(core, max_freq)
            cpuman.set_scaling_min_freq(core, min_freq)
            continue

        if min_freq is not None:
            cpuman.set_scaling_min_freq(core, min_freq)
        if max_freq is not None:
            cpuman.set_scaling_max_freq(core, max_freq)

def set_command(args: argparse.Namespace, pman: ProcessManagerType):
    """
    Implement the 'set' command.

    Args:
        args: The command line arguments.
        pman: The process manager object that defines the target host.
    """

    if all(getattr(args, name) is None for name in _SET_OPTIONS):
        raise Error("Please, specify at least one setting to change")

    min_freq = max_freq = freq = epb = None
    if args.min_freq is not None:
        min_freq = _CpupmCommon.parse_mhz(args.min_freq, "min. frequency")
    if args.max_freq is not None:
        max_freq = _CpupmCommon.parse_mhz(args.max_freq, "max. frequency")
    if args.freq is not None:
        freq = _CpupmCommon.parse_mhz(args.freq, "frequency")
    if args.epb is not None:
        epb = Trivial.str_to_int(args.epb, base=10, what="EPB value")

    with CPUManager.CPUManager(pman=pman) as cpuman:
        cores = _CpupmCommon.parse_cores(args.cores, cpuman)

        if args.governor is not None:
            for core in cores:
                cpuman.set_governor(core, args.governor)

        if min_freq is not None or max_freq is not None:
            _set_freq_limits(cpuman, cores, min_freq, max_freq)

        if freq is not None:
            for core in cores:
                cpuman.set_frequency(core, freq)

        if args.turbo is not None:
            cpuman.set_turbo(args.turbo == "on")

        if args.epp is not None:
            cpuman.set_epp(args.epp, cores=cores)

        if epb is not None:
            cpuman.set_epb(epb, cores=cores)
