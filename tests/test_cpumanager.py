#!/usr/bin/env python3
#
# -*- coding: utf-8 -*-
# vim: ts=4 sw=4 tw=100 et ai si
#
# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause
#
# Authors: Antti Laakso <antti.laakso@linux.intel.com>
#          Artem Bityutskiy <artem.bityutskiy@linux.intel.com>

"""Test the 'CPUManager' module."""

from  __future__ import annotations # Remove when switching to Python 3.10+.

import shutil
import typing
from pathlib import Path
import pytest
import common
from cpupmlibs import CPUManager, ScalingDriver, _CPUFreqSysfs
from cpupmlibs.helperlibs import ProcessManager, EmulProcessManager
from cpupmlibs.helperlibs.Exceptions import ErrorBadValue, ErrorNotSupported, ErrorBadFormat
from cpupmlibs.helperlibs.Exceptions import ErrorPermissionDenied

if typing.TYPE_CHECKING:
    from typing import Generator, cast
    from common import CommonTestParamsTypedDict

    class _TestParamsTypedDict(CommonTestParamsTypedDict, total=False):
        """
        The test parameters dictionary.

        Attributes:
            cpuman: The 'CPUManager' object.
        """

        cpuman: CPUManager.CPUManager

_CPU_BASE = "/sys/devices/system/cpu"

@pytest.fixture(name="params", scope="module")
def get_params(hostspec: str, username: str) -> Generator[_TestParamsTypedDict, None, None]:
    """
    Yield a dictionary with information required for running the tests.

    Args:
        hostspec: The host specification/name to create a process manager for. If the hostspec
                  starts with "emulation:", it indicates an emulated environment.
        username: The username to use when connecting to a remote host.

    Yields:
        A dictionary with test parameters.
    """

    with common.get_pman(hostspec, username=username) as pman, \
         CPUManager.CPUManager(pman=pman) as cpuman:
        params = common.build_params(pman)
        if typing.TYPE_CHECKING:
            params = cast(_TestParamsTypedDict, params)
        params["cpuman"] = cpuman

        yield params

def _get_online_cores(cpuman: CPUManager.CPUManager) -> list[int]:
    """Return online CPU numbers."""
    return [core for core in range(cpuman.core_count) if cpuman.is_core_online(core)]

def test_basic(params: _TestParamsTypedDict):
    """Verify the CPU count, the detected driver, and the CPU information snapshot."""

    cpuman = params["cpuman"]

    assert cpuman.core_count > 0
    assert cpuman.driver in ScalingDriver.NAMES

    info = cpuman.get_cpu_info()
    assert info["core_count"] == cpuman.core_count
    assert info["driver"] == cpuman.driver
    assert info["min_freq"] <= info["max_freq"]
    assert info["available_governors"]
    assert info["model"]
    assert info["vendor"]

def test_freq_within_limits(params: _TestParamsTypedDict):
    """Verify that frequency scaling limits are within the hardware frequency limits."""

    cpuman = params["cpuman"]

    for core in _get_online_cores(cpuman):
        hw_min = cpuman.get_hardware_min_freq(core)
        hw_max = cpuman.get_hardware_max_freq(core)
        assert hw_min <= cpuman.get_scaling_min_freq(core)
        assert cpuman.get_scaling_min_freq(core) <= cpuman.get_scaling_max_freq(core)
        assert cpuman.get_scaling_max_freq(core) <= hw_max

        if common.is_emulated(params["pman"]):
            assert hw_min <= cpuman.get_frequency(core) <= hw_max

def test_all_cores_order(params: _TestParamsTypedDict):
    """Verify that all-cores getters return one value per CPU, in ascending CPU order."""

    cpuman = params["cpuman"]

    if len(_get_online_cores(cpuman)) != cpuman.core_count:
        pytest.skip("Some CPUs are offline")

    governors = cpuman.get_all_governors()
    assert len(governors) == cpuman.core_count
    for core, governor in enumerate(governors):
        assert governor == cpuman.get_governor(core)

    assert len(cpuman.get_all_frequencies()) == cpuman.core_count

    statuses = cpuman.get_all_core_status()
    assert [status["core_id"] for status in statuses] == list(range(cpuman.core_count))

def test_core_status(params: _TestParamsTypedDict):
    """Verify the status snapshot of CPU 0."""

    cpuman = params["cpuman"]
    status = cpuman.get_core_status(0)

    assert status["core_id"] == 0
    assert status["online"]
    assert status["usage_percent"] == 0.0
    assert status["min_freq"] <= status["max_freq"]
    assert status["governor"] in cpuman.get_available_governors(0)

def test_core_validation(params: _TestParamsTypedDict):
    """Verify that per-core operations reject non-existing CPU numbers."""

    cpuman = params["cpuman"]

    for core in (cpuman.core_count, cpuman.core_count + 10, -1):
        with pytest.raises(ErrorBadValue):
            cpuman.get_frequency(core)
        with pytest.raises(ErrorBadValue):
            cpuman.get_governor(core)
        with pytest.raises(ErrorBadValue):
            cpuman.set_scaling_max_freq(core, 1000)
        with pytest.raises(ErrorBadValue):
            cpuman.is_core_online(core)

def test_scaling_limits(params: _TestParamsTypedDict):
    """Verify setting frequency scaling limits."""

    cpuman = params["cpuman"]
    hw_min = cpuman.get_hardware_min_freq(0)
    hw_max = cpuman.get_hardware_max_freq(0)

    cpuman.set_scaling_max_freq(0, hw_max)
    cpuman.set_scaling_min_freq(0, hw_min)
    assert cpuman.get_scaling_min_freq(0) == hw_min
    assert cpuman.get_scaling_max_freq(0) == hw_max

    if hw_min == hw_max:
        return

    with pytest.raises(ErrorBadValue):
        cpuman.set_scaling_limits_all(hw_max, hw_min)
    assert cpuman.get_scaling_min_freq(0) == hw_min

def test_governors(params: _TestParamsTypedDict):
    """Verify setting every available governor and rejecting an unknown one."""

    cpuman = params["cpuman"]
    orig = cpuman.get_governor(0)

    for governor in cpuman.get_available_governors(0):
        cpuman.set_governor(0, governor)
        assert cpuman.get_governor(0) == governor

    cpuman.set_governor(0, orig)
    assert cpuman.get_governor(0) == orig

    with pytest.raises(ErrorBadValue):
        cpuman.set_governor(0, "no_such_governor")
    assert cpuman.get_governor(0) == orig

def test_cpu0_online(params: _TestParamsTypedDict):
    """Verify that CPU 0 is always online and cannot be taken offline."""

    cpuman = params["cpuman"]

    assert cpuman.is_core_online(0)
    with pytest.raises(ErrorNotSupported):
        cpuman.set_core_online(0, False)
    assert cpuman.is_core_online(0)

    # Onlining CPU 0 is a no-op and does not require superuser privileges.
    cpuman.set_core_online(0, True)
    assert cpuman.is_core_online(0)

def test_online_offline():
    """Verify taking a CPU offline and bringing it back online."""

    with common.get_emul_pman("intel-8cpu") as pman, CPUManager.CPUManager(pman=pman) as cpuman:
        cpuman.set_core_online(3, False)
        assert not cpuman.is_core_online(3)
        assert pman.read_file(Path(f"{_CPU_BASE}/cpu3/online")).strip() == "0"

        cpuman.set_core_online(3, True)
        assert cpuman.is_core_online(3)

@pytest.mark.parametrize("dataset, enabled", (("intel-8cpu", True), ("acpi-4cpu", True),
                                              ("acpi-perfonly-2cpu", False)))
def test_turbo(dataset: str, enabled: bool):
    """Verify getting and setting turbo with the drivers that support turbo control."""

    with common.get_emul_pman(dataset) as pman, CPUManager.CPUManager(pman=pman) as cpuman:
        assert cpuman.is_turbo_enabled() == enabled

        cpuman.set_turbo(not enabled)
        assert cpuman.is_turbo_enabled() == (not enabled)

        cpuman.set_turbo(enabled)
        assert cpuman.is_turbo_enabled() == enabled

def test_turbo_intel_inverted():
    """Verify that the 'intel_pstate' driver 'no_turbo' file has inverted meaning."""

    with common.get_emul_pman("intel-8cpu") as pman, CPUManager.CPUManager(pman=pman) as cpuman:
        path = Path(f"{_CPU_BASE}/intel_pstate/no_turbo")

        cpuman.set_turbo(False)
        assert pman.read_file(path).strip() == "1"
        cpuman.set_turbo(True)
        assert pman.read_file(path).strip() == "0"

def test_turbo_amd():
    """Verify that turbo control is not supported with the 'amd-pstate' driver."""

    with common.get_emul_pman("amd-4cpu") as pman, CPUManager.CPUManager(pman=pman) as cpuman:
        with pytest.raises(ErrorNotSupported):
            cpuman.is_turbo_enabled()
        with pytest.raises(ErrorNotSupported):
            cpuman.set_turbo(True)

def test_turbo_acpi_no_boost():
    """
    Verify turbo handling with the 'acpi-cpufreq' driver when the 'boost' file does not exist:
    turbo is reported as disabled, and switching it fails.
    """

    with common.get_emul_pman("acpi-4cpu") as pman, CPUManager.CPUManager(pman=pman) as cpuman:
        pman.remove(f"{_CPU_BASE}/cpufreq/boost")

        assert not cpuman.is_turbo_enabled()
        with pytest.raises(ErrorNotSupported):
            cpuman.set_turbo(True)

def test_epp():
    """Verify getting and setting EPP with the 'intel_pstate' driver."""

    with common.get_emul_pman("intel-8cpu") as pman, CPUManager.CPUManager(pman=pman) as cpuman:
        assert cpuman.get_epp(0) == "balance_performance"

        cpuman.set_epp("power", cores=(1, 2))
        assert cpuman.get_epp(0) == "balance_performance"
        assert cpuman.get_epp(1) == "power"
        assert cpuman.get_epp(2) == "power"

        cpuman.set_epp("performance")
        for core in range(cpuman.core_count):
            assert cpuman.get_epp(core) == "performance"

        with pytest.raises(ErrorBadValue):
            cpuman.set_epp("power", cores=(cpuman.core_count,))

@pytest.mark.parametrize("dataset", ("amd-4cpu", "acpi-4cpu"))
def test_epp_not_supported(dataset: str):
    """Verify that EPP is not supported with drivers other than 'intel_pstate'."""

    with common.get_emul_pman(dataset) as pman, CPUManager.CPUManager(pman=pman) as cpuman:
        with pytest.raises(ErrorNotSupported):
            cpuman.get_epp(0)
        with pytest.raises(ErrorNotSupported):
            cpuman.set_epp("power")

@pytest.mark.parametrize("dataset", ("intel-8cpu", "amd-4cpu"))
def test_epb(dataset: str):
    """Verify getting and setting EPB."""

    with common.get_emul_pman(dataset) as pman, CPUManager.CPUManager(pman=pman) as cpuman:
        assert cpuman.get_epb(0) == 6

        cpuman.set_epb(15)
        for core in range(cpuman.core_count):
            assert cpuman.get_epb(core) == 15

        cpuman.set_epb(0, cores=(0,))
        assert cpuman.get_epb(0) == 0
        assert cpuman.get_epb(1) == 15

        for epb in (-1, 16):
            with pytest.raises(ErrorBadValue):
                cpuman.set_epb(epb)
        assert cpuman.get_epb(0) == 0

def test_epb_not_supported():
    """Verify that CPUs without the EPB sysfs file are skipped when setting EPB."""

    with common.get_emul_pman("acpi-4cpu") as pman, CPUManager.CPUManager(pman=pman) as cpuman:
        with pytest.raises(ErrorNotSupported):
            cpuman.get_epb(0)

        cpuman.set_epb(8)

def test_set_frequency():
    """Verify setting CPU frequency with a driver that provides the 'scaling_setspeed' file."""

    with common.get_emul_pman("acpi-4cpu") as pman, CPUManager.CPUManager(pman=pman) as cpuman:
        cpuman.set_frequency(2, 1600)
        assert cpuman.get_frequency(2) == 1600
        assert cpuman.get_frequency(1) == 2400

        cpuman.set_frequency_all(800)
        assert cpuman.get_all_frequencies() == [800] * cpuman.core_count

def test_available_frequencies():
    """Verify reading available frequencies."""

    with common.get_emul_pman("acpi-4cpu") as pman, CPUManager.CPUManager(pman=pman) as cpuman:
        assert cpuman.get_available_frequencies(0) == [3000, 2400, 1600, 800]
        assert cpuman.get_cpu_info()["available_frequencies"] == [3000, 2400, 1600, 800]

    with common.get_emul_pman("intel-8cpu") as pman, CPUManager.CPUManager(pman=pman) as cpuman:
        assert cpuman.get_available_frequencies(0) == []

def test_cpu_info():
    """Verify the CPU information snapshot of the 'intel-8cpu' dataset."""

    with common.get_emul_pman("intel-8cpu") as pman, CPUManager.CPUManager(pman=pman) as cpuman:
        info = cpuman.get_cpu_info()

    assert info["vendor"] == "GenuineIntel"
    assert info["core_count"] == 8
    assert info["driver"] == ScalingDriver.INTEL_PSTATE
    assert info["min_freq"] == 800
    assert info["max_freq"] == 4800
    assert info["available_governors"] == ["performance", "powersave"]

@pytest.mark.parametrize("dataset", ("intel-8cpu", "acpi-4cpu"))
def test_permission_denied(dataset: str):
    """
    Verify that changing settings without superuser privileges fails before anything is written,
    and the error message explains how to get the privileges.
    """

    with common.get_emul_pman(dataset, superuser=False) as pman, \
         CPUManager.CPUManager(pman=pman) as cpuman:
        governor = cpuman.get_governor(1)
        max_freq = cpuman.get_scaling_max_freq(1)
        turbo = cpuman.is_turbo_enabled()

        with pytest.raises(ErrorPermissionDenied) as excinfo:
            cpuman.set_governor(1, "powersave")
        assert "sudo" in str(excinfo.value)
        assert "org.cpupm.policy" in str(excinfo.value)

        with pytest.raises(ErrorPermissionDenied):
            cpuman.set_scaling_max_freq(1, max_freq - 100)
        with pytest.raises(ErrorPermissionDenied):
            cpuman.set_turbo(not turbo)
        with pytest.raises(ErrorPermissionDenied):
            cpuman.set_core_online(1, False)
        with pytest.raises(ErrorPermissionDenied):
            cpuman.set_epb(10)

        assert cpuman.get_governor(1) == governor
        assert cpuman.get_scaling_max_freq(1) == max_freq
        assert cpuman.is_turbo_enabled() == turbo
        assert cpuman.is_core_online(1)

def _create_acpi_sysfs(basedir: Path, cur_freq: str, freqs: str):
    """Create a minimal one-CPU 'acpi-cpufreq' sysfs tree in 'basedir'."""

    cpufreq = basedir / "cpu0" / "cpufreq"
    cpufreq.mkdir(parents=True)
    (cpufreq / "scaling_driver").write_text("acpi-cpufreq\n", encoding="utf-8")
    (cpufreq / "scaling_cur_freq").write_text(f"{cur_freq}\n", encoding="utf-8")
    (cpufreq / "scaling_available_frequencies").write_text(f"{freqs}\n", encoding="utf-8")

def test_khz_truncation(tmp_path: Path):
    """Verify that kHz values which are not multiples of 1000 are truncated when read."""

    _create_acpi_sysfs(tmp_path, "2400999", "3000500 1999999 800000")

    with _CPUFreqSysfs.CPUFreqSysfs(ScalingDriver.ACPI_CPUFREQ, sysfs_base=tmp_path) as sysfs:
        assert list(sysfs.get_cur_freq((0,))) == [(0, 2400)]
        assert list(sysfs.get_available_frequencies((0,))) == [(0, [3000, 1999, 800])]

def test_bad_available_frequencies(tmp_path: Path):
    """Verify that unparsable available frequencies result in an error."""

    _create_acpi_sysfs(tmp_path, "2400000", "3000000 fast 800000")

    with _CPUFreqSysfs.CPUFreqSysfs(ScalingDriver.ACPI_CPUFREQ, sysfs_base=tmp_path) as sysfs:
        with pytest.raises(ErrorBadFormat):
            list(sysfs.get_available_frequencies((0,)))

def test_cpu_info_bad_available_frequencies(tmp_path: Path):
    """
    Verify that unparsable available frequencies do not break the CPU information query, and the
    list of available frequencies is reported as empty.
    """

    dspath = tmp_path / "acpi-badfreqs"
    shutil.copytree(common.get_emul_data_path("acpi-4cpu"), dspath)

    rofile = dspath / "sysfs" / "cpufreq-ro.txt"
    lines = []
    for line in rofile.read_text(encoding="utf-8").splitlines():
        if line.startswith(f"{_CPU_BASE}/cpu0/cpufreq/scaling_available_frequencies:"):
            line = line.replace("2400000", "fast")
        lines.append(line)
    rofile.write_text("\n".join(lines) + "\n", encoding="utf-8")

    with ProcessManager.get_pman("emulation:acpi-badfreqs") as pman:
        emul_pman = typing.cast(EmulProcessManager.EmulProcessManager, pman)
        emul_pman.init_emul_data(dspath)

        with CPUManager.CPUManager(pman=pman) as cpuman:
            with pytest.raises(ErrorBadFormat):
                cpuman.get_available_frequencies(0)

            info = cpuman.get_cpu_info()
            assert info["available_frequencies"] == []
            assert info["min_freq"] == 800
            assert info["max_freq"] == 3000
