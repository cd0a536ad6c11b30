# -*- coding: utf-8 -*-
# vim: ts=4 sw=4 tw=100 et ai si
#
# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause
#
# Author: Artem Bityutskiy <artem.bityutskiy@linux.intel.com>

"""Detect whether a host runs on AC power or on battery."""

from __future__ import annotations # Remove when switching to Python 3.10+.

import typing
from pathlib import Path
from cpupmlibs import _SysfsIO
from cpupmlibs.helperlibs import Logging, ProcessManager
from cpupmlibs.helperlibs.Exceptions import ErrorBadFormat

if typing.TYPE_CHECKING:
    from cpupmlibs.helperlibs.ProcessManager import ProcessManagerType

_LOG = Logging.getLogger(f"{Logging.MAIN_LOGGER_NAME}.cpupm.{__name__}")

AC_ONLINE_PATH = Path("/sys/class/power_supply/AC/online")

def is_on_ac_power(pman: ProcessManagerType | None = None, path: Path = AC_ONLINE_PATH) -> bool:
    """
    Check whether the host runs on AC power.

    Args:
        pman: The process manager object for the target host. Use the local host if not provided.
        path: Path to the AC adapter 'online' sysfs file.

    Returns:
        'True' if the AC adapter is online, 'False' otherwise.

    Raises:
        ErrorNotFound: If the AC adapter 'online' file does not exist.
        ErrorBadFormat: If the file contains something other than "0" or "1".
    """

    with ProcessManager.pman_or_local(pman) as wpman, \
         _SysfsIO.SysfsIO(pman=wpman) as sysfs_io:
        val = sysfs_io.read_int(path, what="AC adapter online status")

        if val not in (0, 1):
            raise ErrorBadFormat(f"Bad AC adapter online status '{val}' in '{path}'"
                                 f"{wpman.hostmsg}, should be 0 or 1")

    _LOG.debug("AC adapter online status%s: %d", wpman.hostmsg, val)
    return val == 1
