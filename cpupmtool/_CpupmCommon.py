# -*- coding: utf-8 -*-
# vim: ts=4 sw=4 tw=100 et ai si
#
# Copyright (C) 2020-2025 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause
#
# Author: Artem Bityutskiy <artem.bityutskiy@linux.intel.com>

"""
Misc. helpers shared between various 'cpupm' commands.
"""

from __future__ import annotations # Remove when switching to Python 3.10+.

import typing
from cpupmlibs.helperlibs import Trivial
from cpupmlibs.helperlibs.Exceptions import ErrorBadValue

if typing.TYPE_CHECKING:
    from cpupmlibs.CPUManager import CPUManager

def parse_cores(cores: str | None, cpuman: CPUManager) -> list[int]:
    """
    Parse the '--cores' option value.

    Args:
        cores: The '--cores' option value: a comma-separated list of CPU numbers and ranges, or
               "all". 'None' means all CPUs.
        cpuman: The 'CPUManager' object for the target host.

    Returns:
        A sorted list of CPU numbers without duplicates.

    Raises:
        ErrorBadValue: If a CPU does not exist.
    """

    if cores is None or cores == "all":
        return list(range(cpuman.core_count))

    result = sorted(Trivial.split_csv_line_int(cores, dedup=True, what="CPU numbers"))

    for core in result:
        if core >= cpuman.core_count:
            raise ErrorBadValue(f"CPU {core} does not exist, valid CPU numbers are "
                                f"0-{cpuman.core_count - 1}")

    return result

def parse_mhz(val: str, what: str) -> int:
    """Parse a frequency value in MHz, as specified on the command line."""

    freq = Trivial.str_to_int(val, base=10, what=what)
    if freq <= 0:
        raise ErrorBadValue(f"Bad {what} '{val}': should be a positive integer")
    return freq
