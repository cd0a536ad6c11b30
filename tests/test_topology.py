#!/usr/bin/env python3
#
# -*- coding: utf-8 -*-
# vim: ts=4 sw=4 tw=100 et ai si
#
# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause
#
# Author: Artem Bityutskiy <artem.bityutskiy@linux.intel.com>

"""Test CPU counting."""

from  __future__ import annotations # Remove when switching to Python 3.10+.

import typing
import pytest
import common
from cpupmlibs import _Topology
from cpupmlibs.helperlibs.Exceptions import Error

if typing.TYPE_CHECKING:
    from pathlib import Path

@pytest.mark.parametrize("dataset, count", (("intel-8cpu", 8), ("amd-4cpu", 4),
                                            ("acpi-4cpu", 4), ("acpi-perfonly-2cpu", 2)))
def test_count_datasets(dataset: str, count: int):
    """Verify the CPU count of the emulation datasets."""

    with common.get_emul_pman(dataset) as pman:
        assert _Topology.count_cores(pman=pman) == count

def test_count_skips_non_cpu_entries(tmp_path: Path):
    """
    Verify that only 'cpu<N>' entries are counted, and entries like 'cpufreq', 'cpuidle' or
    'cpu1a' are not.
    """

    for name in ("cpu0", "cpu1", "cpu10", "cpufreq", "cpuidle", "cpu1a", "power"):
        (tmp_path / name).mkdir()

    assert _Topology.count_cores(sysfs_base=tmp_path) == 3

def test_count_missing_dir(tmp_path: Path):
    """Verify that a missing CPU sysfs directory results in an error."""

    with pytest.raises(Error):
        _Topology.count_cores(sysfs_base=tmp_path / "missing")
