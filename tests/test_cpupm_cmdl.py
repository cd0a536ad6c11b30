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

"""Test 'cpupm' command-line options."""

from __future__ import annotations # Remove when switching to Python 3.10+.

import typing
from pathlib import Path
import yaml
import pytest
import common
from cpupmlibs import CPUManager, PowerSource
from cpupmlibs.helperlibs.Exceptions import Error, ErrorBadValue, ErrorNotSupported, ErrorNotFound
from cpupmlibs.helperlibs.Exceptions import ErrorPermissionDenied
from cpupmtool import _Cpupm

if typing.TYPE_CHECKING:
    from typing import Generator, cast
    from common import CommonTestParamsTypedDict

    class _TestParamsTypedDict(CommonTestParamsTypedDict, total=False):
        """
        The test parameters dictionary.

        Attributes:
            cpuman: The 'CPUManager' object.
            cfgopt: The '-c' option pointing to a configuration file that does not exist.
        """

        cpuman: CPUManager.CPUManager
        cfgopt: str

@pytest.fixture(name="params", scope="module")
def get_params(hostspec: str, username: str,
               tmp_path_factory: pytest.TempPathFactory) -> Generator[_TestParamsTypedDict,
                                                                      None, None]:
    """
    Yield a dictionary with information required for running the tests.

    Args:
        hostspec: The host specification/name to create a process manager for. If the hostspec
                  starts with "emulation:", it indicates an emulated environment.
        username: The username to use when connecting to a remote host.
        tmp_path_factory: The pytest temporary directory factory.

    Yields:
        A dictionary with test parameters.
    """

    cfgpath = tmp_path_factory.mktemp("cpupm") / "config.yaml"

    with common.get_pman(hostspec, username=username) as pman, \
         CPUManager.CPUManager(pman=pman) as cpuman:
        params = common.build_params(pman)
        if typing.TYPE_CHECKING:
            params = cast(_TestParamsTypedDict, params)
        params["cpuman"] = cpuman
        params["cfgopt"] = f"-c {cfgpath}"

        yield params

def test_info(params: _TestParamsTypedDict):
    """Test the 'info' and 'status' commands."""

    pman = params["pman"]
    cfgopt = params["cfgopt"]

    common.run_cpupm(f"info {cfgopt}", pman)
    common.run_cpupm(f"info --yaml {cfgopt}", pman)
    common.run_cpupm(f"status {cfgopt}", pman)
    common.run_cpupm(f"status --cores all --yaml {cfgopt}", pman)
    common.run_cpupm(f"status --cores 0 {cfgopt}", pman)

    last = params["cpuman"].core_count - 1
    common.run_cpupm(f"status --cores 0-{last} {cfgopt}", pman)
    common.run_cpupm(f"status --cores {last + 1} {cfgopt}", pman, exp_exc=ErrorBadValue)
    common.run_cpupm(f"status --cores 0,bad {cfgopt}", pman, exp_exc=Error)

def test_set(params: _TestParamsTypedDict):
    """Test the 'set' command."""

    pman = params["pman"]
    cpuman = params["cpuman"]
    cfgopt = params["cfgopt"]

    hw_min = cpuman.get_hardware_min_freq(0)
    hw_max = cpuman.get_hardware_max_freq(0)
    governor = cpuman.get_governor(0)

    common.run_cpupm(f"set {cfgopt}", pman, exp_exc=Error)

    common.run_cpupm(f"set --cores 0 --governor {governor} {cfgopt}", pman)
    common.run_cpupm(f"set --cores 0 --governor no_such_governor {cfgopt}", pman,
                     exp_exc=ErrorBadValue)

    common.run_cpupm(f"set --min-freq {hw_min} --max-freq {hw_max} {cfgopt}", pman)
    assert cpuman.get_scaling_min_freq(0) == hw_min
    assert cpuman.get_scaling_max_freq(0) == hw_max

    common.run_cpupm(f"set --min-freq 0 {cfgopt}", pman, exp_exc=ErrorBadValue)
    common.run_cpupm(f"set --max-freq fast {cfgopt}", pman, exp_exc=Error)
    if hw_min != hw_max:
        common.run_cpupm(f"set --min-freq {hw_max} --max-freq {hw_min} {cfgopt}", pman,
                         exp_exc=ErrorBadValue)

    common.run_cpupm(f"set --epb 16 {cfgopt}", pman, exp_exc=ErrorBadValue)
    common.run_cpupm(f"set --turbo maybe {cfgopt}", pman, exp_exc=Error)

def test_set_limits_order():
    """
    Verify that setting a min. frequency limit above the current max. frequency limit works when
    the new max. frequency limit is specified too.
    """

    with common.get_emul_pman("intel-8cpu") as pman, CPUManager.CPUManager(pman=pman) as cpuman:
        cpuman.set_scaling_max_freq_all(1000)

        common.run_cpupm("set --cores 1-2 --min-freq 2000 --max-freq 3000", pman)
        for core in (1, 2):
            assert cpuman.get_scaling_min_freq(core) == 2000
            assert cpuman.get_scaling_max_freq(core) == 3000
        assert cpuman.get_scaling_max_freq(0) == 1000

def test_set_intel():
    """Test the 'set' command options specific to the 'intel_pstate' driver."""

    with common.get_emul_pman("intel-8cpu") as pman, CPUManager.CPUManager(pman=pman) as cpuman:
        common.run_cpupm("set --turbo off --epp power --epb 12 --cores 2,3", pman)

        assert not cpuman.is_turbo_enabled()
        assert cpuman.get_epp(2) == "power"
        assert cpuman.get_epp(1) == "balance_performance"
        assert cpuman.get_epb(3) == 12

        common.run_cpupm("set --turbo on", pman)
        assert cpuman.is_turbo_enabled()

def test_set_other_drivers():
    """Test the 'set' command options that are not supported by some drivers."""

    with common.get_emul_pman("amd-4cpu") as pman:
        common.run_cpupm("set --turbo on", pman, exp_exc=ErrorNotSupported)
        common.run_cpupm("set --epp power", pman, exp_exc=ErrorNotSupported)

    with common.get_emul_pman("acpi-4cpu") as pman, CPUManager.CPUManager(pman=pman) as cpuman:
        common.run_cpupm("set --cores 3 --freq 1600", pman)
        assert cpuman.get_frequency(3) == 1600

def test_set_no_permission():
    """Verify that the 'set' command fails without superuser privileges."""

    with common.get_emul_pman("intel-8cpu", superuser=False) as pman:
        common.run_cpupm("set --governor performance", pman, exp_exc=ErrorPermissionDenied)
        common.run_cpupm("profile apply performance", pman, exp_exc=ErrorPermissionDenied)

def test_hotplug():
    """Test the 'online' and 'offline' commands."""

    with common.get_emul_pman("intel-8cpu") as pman, CPUManager.CPUManager(pman=pman) as cpuman:
        common.run_cpupm("offline --cores 2-4", pman)
        assert [cpuman.is_core_online(core) for core in range(5)] == \
               [True, True, False, False, False]

        common.run_cpupm("status", pman)

        common.run_cpupm("online --cores 2-4", pman)
        assert all(cpuman.is_core_online(core) for core in range(cpuman.core_count))

        common.run_cpupm("offline --cores 1,5-7", pman)
        common.run_cpupm("online --cores all", pman)
        assert all(cpuman.is_core_online(core) for core in range(cpuman.core_count))

        common.run_cpupm("offline --cores 0", pman, exp_exc=ErrorNotSupported)
        common.run_cpupm("offline --cores all", pman, exp_exc=ErrorNotSupported)
        assert all(cpuman.is_core_online(core) for core in range(cpuman.core_count))
        common.run_cpupm("offline --cores 8", pman, exp_exc=ErrorBadValue)
        common.run_cpupm("offline", pman, exp_exc=Error)

def test_profiles(tmp_path: Path):
    """Test the 'profile' commands."""

    cfgpath = tmp_path / "config.yaml"
    cfgpath.write_text("""auto_tune:
  ac_profile: Gaming
  battery_profile: silent
profiles:
  - name: Gaming
    governor: performance
    turbo: always
    min_freq: 2000
    intent: performance
""", encoding="utf-8")
    cfgopt = f"-c {cfgpath}"

    with common.get_emul_pman("intel-8cpu") as pman, CPUManager.CPUManager(pman=pman) as cpuman:
        common.run_cpupm(f"profile list {cfgopt}", pman)

        common.run_cpupm(f"profile apply silent {cfgopt}", pman)
        assert cpuman.get_scaling_max_freq(0) == 2000
        assert not cpuman.is_turbo_enabled()

        common.run_cpupm(f"profile apply Gaming {cfgopt}", pman)
        assert cpuman.get_governor(0) == "performance"
        assert cpuman.get_scaling_min_freq(0) == 2000
        assert cpuman.get_scaling_max_freq(0) == 4800

        common.run_cpupm(f"profile apply no_such_profile {cfgopt}", pman, exp_exc=ErrorNotFound)

        # The emulated host runs on AC power.
        common.run_cpupm(f"profile apply silent {cfgopt}", pman)
        common.run_cpupm(f"profile auto {cfgopt}", pman)
        assert cpuman.get_scaling_min_freq(0) == 2000
        assert cpuman.is_turbo_enabled()

        with pman.open(PowerSource.AC_ONLINE_PATH, "r+") as fobj:
            fobj.write("0")

        common.run_cpupm(f"profile auto {cfgopt}", pman)
        assert cpuman.get_scaling_min_freq(0) == 800
        assert cpuman.get_scaling_max_freq(0) == 2000

def test_main(tmp_path: Path, capsys: pytest.CaptureFixture[str]):
    """Test the 'main()' function with an emulation dataset."""

    dspath = common.get_emul_data_path("acpi-4cpu")
    cfgpath = tmp_path / "config.yaml"

    assert _Cpupm.main(["-D", str(dspath), "-c", str(cfgpath), "info", "--yaml"]) == 0
    info = yaml.safe_load(capsys.readouterr().out)
    assert info["core_count"] == 4
    assert info["driver"] == "acpi-cpufreq"
    assert info["available_frequencies"] == [3000, 2400, 1600, 800]
    assert info["turbo"] is True

    assert _Cpupm.main(["status", "--yaml", "-D", str(dspath), "-c", str(cfgpath)]) == 0
    status = yaml.safe_load(capsys.readouterr().out)
    assert [core["core_id"] for core in status["cores"]] == [0, 1, 2, 3]

    with pytest.raises(SystemExit):
        _Cpupm.main(["-D", str(dspath), "-c", str(cfgpath), "offline", "--cores", "0"])

    with pytest.raises(SystemExit):
        _Cpupm.main(["-D", str(tmp_path / "missing"), "-c", str(cfgpath), "info"])

    with pytest.raises(SystemExit):
        _Cpupm.main(["-D", str(dspath), "-c", str(cfgpath), "no_such_command"])

def test_main_bad_config(tmp_path: Path):
    """Verify that a bad configuration file results in an error."""

    dspath = common.get_emul_data_path("intel-8cpu")
    cfgpath = tmp_path / "config.yaml"
    cfgpath.write_text("general:\n  polling_interval_ms: -5\n", encoding="utf-8")

    with pytest.raises(SystemExit):
        _Cpupm.main(["-D", str(dspath), "-c", str(cfgpath), "info"])

def test_main_log_file(tmp_path: Path):
    """Verify that messages are mirrored to the log file when it is enabled in the configuration."""

    dspath = common.get_emul_data_path("amd-4cpu")
    logpath = tmp_path / "logs" / "cpupm.log"
    cfgpath = tmp_path / "config.yaml"
    cfgpath.write_text(f"logging:\n  log_to_file: true\n  log_path: {logpath}\n",
                       encoding="utf-8")

    assert _Cpupm.main(["-D", str(dspath), "-c", str(cfgpath), "info"]) == 0
    assert "AMD P-State" in logpath.read_text(encoding="utf-8")
