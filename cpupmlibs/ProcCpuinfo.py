# -*- coding: utf-8 -*-
# vim: ts=4 sw=4 tw=100 et ai si
#
# Copyright (C) 2020-2025 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause
#
# Author: Artem Bityutskiy <artem.bityutskiy@linux.intel.com>

"""Read CPU model name and vendor from '/proc/cpuinfo'."""

from __future__ import annotations # Remove when switching to Python 3.10+.

import typing
from cpupmlibs.helperlibs import ProcessManager

if typing.TYPE_CHECKING:
    from typing import TypedDict
    from cpupmlibs.helperlibs.ProcessManager import ProcessManagerType

    class ProcCpuinfoTypedDict(TypedDict):
        """
        Type for the general '/proc/cpuinfo' information dictionary.

        Attributes:
            vendor_name: The CPU vendor name (e.g., "GenuineIntel").
            modelname: The full name of the CPU model.
        """

        vendor_name: str
        modelname: str

# The value to use when '/proc/cpuinfo' does not provide a field.
UNKNOWN = "Unknown"

def _find_value(text: str, label: str) -> str:
    """
    Find the first line starting with 'label' and return the part after the first colon.

    Args:
        text: The '/proc/cpuinfo' contents.
        label: The line label, e.g., "model name".

    Returns:
        The stripped value, or 'UNKNOWN' if there is no such line.
    """

    for line in text.splitlines():
        if line.startswith(label):
            _, _, val = line.partition(":")
            return val.strip()

    return UNKNOWN

def get_proc_cpuinfo(pman: ProcessManagerType | None = None) -> ProcCpuinfoTypedDict:
    """
    Collect and return general CPU information from '/proc/cpuinfo'.

    Args:
        pman: The process manager object for the target host. If not provided, a local process
              manager is created.

    Returns:
        The general '/proc/cpuinfo' information dictionary.

    Raises:
        ErrorNotFound: If '/proc/cpuinfo' does not exist.
    """

    with ProcessManager.pman_or_local(pman) as wpman:
        text = wpman.read_file("/proc/cpuinfo")

    return {"vendor_name": _find_value(text, "vendor_id"),
            "modelname": _find_value(text, "model name")}
