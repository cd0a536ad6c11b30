# -*- coding: utf-8 -*-
# vim: ts=4 sw=4 tw=100 et ai si
#
# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause
#
# Author: Artem Bityutskiy <artem.bityutskiy@linux.intel.com>

"""
Probe the CPU topology: count per-CPU sysfs directories.
"""

from __future__ import annotations # Remove when switching to Python 3.10+.

import re
import typing
from pathlib import Path
from cpupmlibs.helperlibs import Logging, ProcessManager
from cpupmlibs.helperlibs.Exceptions import Error

if typing.TYPE_CHECKING:
    from cpupmlibs.helperlibs.ProcessManager import ProcessManagerType

_LOG = Logging.getLogger(f"{Logging.MAIN_LOGGER_NAME}.cpupm.{__name__}")

# Per-CPU sysfs directory names: "cpu" followed by decimal digits only.
_CPU_DIR_REGEX = re.compile(r"^cpu[0-9]+$")

def count_cores(pman: ProcessManagerType | None = None,
                sysfs_base: Path = Path("/sys/devices/system/cpu")) -> int:
    """
    Count CPUs by counting the 'cpu<N>' entries in the CPU sysfs base directory. Entries like
    'cpufreq' or 'cpuidle' are not counted.

    Args:
        pman: The process manager object for the target host. Use the local host if not provided.
        sysfs_base: The CPU sysfs base directory.

    Returns:
        The CPU count.

    Raises:
        Error: If the CPU sysfs base directory cannot be listed.
    """

    with ProcessManager.pman_or_local(pman) as wpman:
        try:
            count = sum(1 for entry in wpman.lsdir(sysfs_base)
                        if _CPU_DIR_REGEX.match(entry["name"]))
        except Error as err:
            raise Error(f"Failed to probe CPU topology{wpman.hostmsg}:\n{err.indent(2)}") from err

    _LOG.debug("Found %d CPUs%s", count, wpman.hostmsg)
    return count
