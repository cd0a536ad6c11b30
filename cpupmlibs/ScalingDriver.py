# -*- coding: utf-8 -*-
# vim: ts=4 sw=4 tw=100 et ai si
#
# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause
#
# Author: Artem Bityutskiy <artem.bityutskiy@linux.intel.com>

"""
Detect the CPU frequency scaling driver of a host.

The scaling driver defines which turbo and energy performance preference operations are
available. There are the following driver types:
    - 'INTEL_PSTATE': the 'intel_pstate' driver.
    - 'AMD_PSTATE': the 'amd_pstate' driver.
    - 'ACPI_CPUFREQ': the 'acpi-cpufreq' driver.
    - 'UNKNOWN': any other driver, or no driver.
"""

from __future__ import annotations # Remove when switching to Python 3.10+.

import typing
from pathlib import Path
from cpupmlibs.helperlibs import Logging, ProcessManager
from cpupmlibs.helperlibs.Exceptions import Error

if typing.TYPE_CHECKING:
    from typing import Literal, Final
    from cpupmlibs.helperlibs.ProcessManager import ProcessManagerType

    ScalingDriverType = Literal["intel_pstate", "amd_pstate", "acpi-cpufreq", "unknown"]

_LOG = Logging.getLogger(f"{Logging.MAIN_LOGGER_NAME}.cpupm.{__name__}")

INTEL_PSTATE: Final = "intel_pstate"
AMD_PSTATE: Final = "amd_pstate"
ACPI_CPUFREQ: Final = "acpi-cpufreq"
UNKNOWN: Final = "unknown"

# All driver types, in detection priority order.
DRIVERS: Final = (INTEL_PSTATE, AMD_PSTATE, ACPI_CPUFREQ, UNKNOWN)

# Human-readable driver names.
NAMES: Final = {INTEL_PSTATE: "Intel P-State",
                AMD_PSTATE: "AMD P-State",
                ACPI_CPUFREQ: "ACPI CPUFreq",
                UNKNOWN: "Unknown"}

SYSFS_BASE: Final = Path("/sys/devices/system/cpu")

def _is_dir(pman: ProcessManagerType, path: Path) -> bool:
    """Return 'True' if 'path' is a directory, 'False' if it is not or if it cannot be checked."""

    try:
        return pman.is_dir(path)
    except Error as err:
        _LOG.debug("Failed to check '%s'%s:\n%s", path, pman.hostmsg, err.indent(2))
        return False

def _detect(pman: ProcessManagerType, sysfs_base: Path) -> ScalingDriverType:
    """Implement 'detect()'."""

    if _is_dir(pman, sysfs_base / "intel_pstate"):
        return INTEL_PSTATE

    if _is_dir(pman, sysfs_base / "amd_pstate"):
        return AMD_PSTATE

    path = sysfs_base / "cpu0" / "cpufreq" / "scaling_driver"
    try:
        name = pman.read_file(path).strip()
    except Error as err:
        _LOG.debug("Failed to read the CPU0 scaling driver name%s:\n%s",
                   pman.hostmsg, err.indent(2))
        return UNKNOWN

    if name == ACPI_CPUFREQ:
        return ACPI_CPUFREQ

    _LOG.debug("Unrecognized scaling driver '%s'%s", name, pman.hostmsg)
    return UNKNOWN

def detect(pman: ProcessManagerType | None = None,
           sysfs_base: Path = SYSFS_BASE) -> ScalingDriverType:
    """
    Detect the CPU frequency scaling driver. The checks are done in the following order, the first
    match wins:
        1. The 'intel_pstate' sysfs directory exists: 'INTEL_PSTATE'.
        2. The 'amd_pstate' sysfs directory exists: 'AMD_PSTATE'.
        3. The CPU0 'scaling_driver' sysfs file contains "acpi-cpufreq": 'ACPI_CPUFREQ'.
        4. Otherwise 'UNKNOWN'.

    Args:
        pman: The process manager object for the target host. Use the local host if not provided.
        sysfs_base: The CPU sysfs base directory.

    Returns:
        The detected scaling driver type. Never raises for I/O errors, a failed check falls through
        to the next one.
    """

    with ProcessManager.pman_or_local(pman) as wpman:
        driver = _detect(wpman, sysfs_base)

    _LOG.debug("Detected scaling driver%s: %s", wpman.hostmsg, NAMES[driver])
    return driver
