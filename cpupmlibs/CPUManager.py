# -*- coding: utf-8 -*-
# vim: ts=4 sw=4 tw=100 et ai si
#
# Copyright (C) 2020-2025 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause
#
# Authors: Artem Bityutskiy <artem.bityutskiy@linux.intel.com>
#          Antti Laakso <antti.laakso@linux.intel.com>

"""
Provide a single handle for reading and changing CPU frequency settings of a host.

The 'CPUManager' class detects the CPU count and the scaling driver once, at construction time, and
then provides per-core and all-cores operations. Sysfs is the source of truth, nothing is cached
apart from the CPU count and the driver type.
"""

from __future__ import annotations # Remove when switching to Python 3.10+.

import typing
from pathlib import Path
from cpupmlibs import ScalingDriver, ProcCpuinfo, _Topology, _CPUFreqSysfs
from cpupmlibs.helperlibs import Logging, ProcessManager, ClassHelpers
from cpupmlibs.helperlibs.Exceptions import ErrorBadValue, ErrorBadFormat

if typing.TYPE_CHECKING:
    from typing import TypedDict, Iterable
    from cpupmlibs.helperlibs.ProcessManager import ProcessManagerType
    from cpupmlibs.ScalingDriver import ScalingDriverType

    class CPUInfoTypedDict(TypedDict):
        """
        A CPU information snapshot.

        Attributes:
            model: The CPU model name.
            vendor: The CPU vendor name.
            core_count: The number of CPUs.
            driver: The CPU frequency scaling driver type.
            min_freq: The min. hardware frequency of CPU 0, in MHz.
            max_freq: The max. hardware frequency of CPU 0, in MHz.
            available_governors: Governors available for CPU 0.
            available_frequencies: Frequencies (MHz) available for CPU 0, may be empty.
        """

        model: str
        vendor: str
        core_count: int
        driver: ScalingDriverType
        min_freq: int
        max_freq: int
        available_governors: list[str]
        available_frequencies: list[int]

    class CoreStatusTypedDict(TypedDict):
        """
        A per-core status snapshot.

        Attributes:
            core_id: The CPU number.
            current_freq: The current frequency in MHz.
            min_freq: The min. frequency scaling limit in MHz.
            max_freq: The max. frequency scaling limit in MHz.
            governor: The CPU frequency governor name.
            online: Whether the CPU is online.
            usage_percent: The CPU usage in percent. Not measured, always 0.0.
        """

        core_id: int
        current_freq: int
        min_freq: int
        max_freq: int
        governor: str
        online: bool
        usage_percent: float

_LOG = Logging.getLogger(f"{Logging.MAIN_LOGGER_NAME}.cpupm.{__name__}")

class CPUManager(ClassHelpers.SimpleCloseContext):
    """
    Provide API for reading and changing CPU frequency settings.

    Public methods overview.

    1. Information.
        * 'get_cpu_info()' - a CPU information snapshot.
        * 'get_core_status()', 'get_all_core_status()' - per-core status snapshots.
    2. Frequency.
        * 'get_frequency()', 'get_all_frequencies()' - current frequency.
        * 'set_frequency()', 'set_frequency_all()' - set frequency (the 'userspace' governor).
        * 'get_scaling_min_freq()', 'get_scaling_max_freq()' - frequency scaling limits.
        * 'set_scaling_min_freq()', 'set_scaling_max_freq()' - set a frequency scaling limit.
        * 'set_scaling_min_freq_all()', 'set_scaling_max_freq_all()', 'set_scaling_limits_all()' -
          set frequency scaling limits for all CPUs.
        * 'get_hardware_min_freq()', 'get_hardware_max_freq()' - hardware frequency limits.
        * 'get_available_frequencies()' - available frequencies.
    3. Governor.
        * 'get_governor()', 'get_all_governors()', 'get_available_governors()'.
        * 'set_governor()', 'set_governor_all()'.
    4. Turbo, EPP and EPB.
        * 'is_turbo_enabled()', 'set_turbo()'.
        * 'get_epp()', 'set_epp()', 'get_epb()', 'set_epb()'.
    5. CPU online status.
        * 'is_core_online()', 'set_core_online()'.

    All-cores operations process CPUs in ascending order and stop on the first error. Changes already
    made to other CPUs are not reverted.
    """

    def __init__(self,
                 pman: ProcessManagerType | None = None,
                 sysfs_base: Path = ScalingDriver.SYSFS_BASE):
        """
        Initialize a class instance.

        Args:
            pman: The process manager object for the target host. Use the local host if not
                  provided.
            sysfs_base: The CPU sysfs base directory.

        Raises:
            Error: If the CPU topology cannot be probed.
        """

        self._sysfs_base = sysfs_base

        self._close_pman = pman is None

        self._pman: ProcessManagerType
        if not pman:
            self._pman = ProcessManager.get_pman("localhost")
        else:
            self._pman = pman

        self.core_count = _Topology.count_cores(pman=self._pman, sysfs_base=sysfs_base)
        self.driver = ScalingDriver.detect(pman=self._pman, sysfs_base=sysfs_base)

        _LOG.info("Detected %d CPU cores%s", self.core_count, self._pman.hostmsg)
        _LOG.info("Detected scaling driver%s: %s", self._pman.hostmsg,
                  ScalingDriver.NAMES[self.driver])

        self._sysfs = _CPUFreqSysfs.CPUFreqSysfs(self.driver, pman=self._pman,
                                                  sysfs_base=sysfs_base)

    def close(self):
        """Uninitialize the class object."""
        ClassHelpers.close(self, close_attrs=("_sysfs", "_pman"))

    def _validate_core(self, core: int):
        """
        Validate a CPU number.

        Args:
            core: The CPU number to validate.

        Raises:
            ErrorBadValue: If the CPU does not exist.
        """

        if core < 0 or core >= self.core_count:
            raise ErrorBadValue(f"Core {core} does not exist{self._pman.hostmsg}, valid CPU "
                                f"numbers are 0-{self.core_count - 1}")

    def _all_cores(self) -> range:
        """Return all CPU numbers in ascending order."""
        return range(self.core_count)

    def get_cpu_info(self) -> CPUInfoTypedDict:
        """
        Build and return a CPU information snapshot. CPU 0 is used as the representative CPU for the
        frequency limits and the available governors and frequencies.

        Returns:
            The CPU information dictionary. The available frequencies list is empty if they cannot
            be parsed.
        """

        proc_cpuinfo = ProcCpuinfo.get_proc_cpuinfo(pman=self._pman)

        try:
            freqs = self.get_available_frequencies(0)
        except ErrorBadFormat as err:
            _LOG.warning("Ignoring available frequencies of CPU 0:\n%s", err.indent(2))
            freqs = []

        return {"model": proc_cpuinfo["modelname"],
                "vendor": proc_cpuinfo["vendor_name"],
                "core_count": self.core_count,
                "driver": self.driver,
                "min_freq": self.get_hardware_min_freq(0),
                "max_freq": self.get_hardware_max_freq(0),
                "available_governors": self.get_available_governors(0),
                "available_frequencies": freqs}

    def get_core_status(self, core: int) -> CoreStatusTypedDict:
        """
        Build and return a status snapshot of CPU 'core'.

        Args:
            core: The CPU number.

        Returns:
            The core status dictionary.
        """

        self._validate_core(core)

        return {"core_id": core,
                "current_freq": self.get_frequency(core),
                "min_freq": self.get_scaling_min_freq(core),
                "max_freq": self.get_scaling_max_freq(core),
                "governor": self.get_governor(core),
                "online": self.is_core_online(core),
                "usage_percent": self.get_core_usage(core)}

    def get_all_core_status(self) -> list[CoreStatusTypedDict]:
        """Return status snapshots of all CPUs, in ascending CPU number order."""
        return [self.get_core_status(core) for core in self._all_cores()]

    def get_core_usage(self, core: int) -> float:
        """
        Return CPU usage in percent for CPU 'core'. Usage measurement is not implemented, the
        returned value is always 0.0.
        """

        self._validate_core(core)
        return 0.0

    def get_frequency(self, core: int) -> int:
        """Return the current frequency of CPU 'core' in MHz."""

        self._validate_core(core)
        return next(self._sysfs.get_cur_freq((core,)))[1]

    def get_all_frequencies(self) -> list[int]:
        """Return current frequencies (MHz) of all CPUs, in ascending CPU number order."""
        return [freq for _, freq in self._sysfs.get_cur_freq(self._all_cores())]

    def set_frequency(self, core: int, freq: int):
        """
        Set the frequency of CPU 'core'. This only has an effect with the 'userspace' governor.

        Args:
            core: The CPU number.
            freq: The frequency to set in MHz.
        """

        self._validate_core(core)
        self._sysfs.set_cur_freq(freq, (core,))

    def set_frequency_all(self, freq: int):
        """Set frequency of all CPUs to 'freq' MHz."""
        self._sysfs.set_cur_freq(freq, self._all_cores())

    def get_scaling_min_freq(self, core: int) -> int:
        """Return the min. frequency scaling limit of CPU 'core' in MHz."""

        self._validate_core(core)
        return next(self._sysfs.get_min_freq((core,)))[1]

    def get_scaling_max_freq(self, core: int) -> int:
        """Return the max. frequency scaling limit of CPU 'core' in MHz."""

        self._validate_core(core)
        return next(self._sysfs.get_max_freq((core,)))[1]

    def set_scaling_min_freq(self, core: int, freq: int):
        """Set the min. frequency scaling limit of CPU 'core' to 'freq' MHz."""

        self._validate_core(core)
        self._sysfs.set_min_freq(freq, (core,))

    def set_scaling_max_freq(self, core: int, freq: int):
        """Set the max. frequency scaling limit of CPU 'core' to 'freq' MHz."""

        self._validate_core(core)
        self._sysfs.set_max_freq(freq, (core,))

    def set_scaling_min_freq_all(self, freq: int):
        """Set the min. frequency scaling limit of all CPUs to 'freq' MHz."""
        self._sysfs.set_min_freq(freq, self._all_cores())

    def set_scaling_max_freq_all(self, freq: int):
        """Set the max. frequency scaling limit of all CPUs to 'freq' MHz."""
        self._sysfs.set_max_freq(freq, self._all_cores())

    def set_scaling_limits_all(self, min_freq: int, max_freq: int):
        """
        Set min. and max. frequency scaling limits of all CPUs. For every CPU, the min. limit is set
        first, then the max. limit.

        Args:
            min_freq: The min. frequency scaling limit in MHz.
            max_freq: The max. frequency scaling limit in MHz.

        Raises:
            ErrorBadValue: If 'min_freq' is greater than 'max_freq'.
        """

        if min_freq > max_freq:
            raise ErrorBadValue(f"Min. frequency {min_freq} MHz is greater than max. frequency "
                                f"{max_freq} MHz")

        for core in self._all_cores():
            self._sysfs.set_min_freq(min_freq, (core,))
            self._sysfs.set_max_freq(max_freq, (core,))

    def get_hardware_min_freq(self, core: int) -> int:
        """Return the min. hardware frequency of CPU 'core' in MHz."""

        self._validate_core(core)
        return next(self._sysfs.get_min_freq_limit((core,)))[1]

    def get_hardware_max_freq(self, core: int) -> int:
        """Return the max. hardware frequency of CPU 'core' in MHz."""

        self._validate_core(core)
        return next(self._sysfs.get_max_freq_limit((core,)))[1]

    def get_available_frequencies(self, core: int) -> list[int]:
        """
        Return the list of available frequencies (MHz) of CPU 'core'. The list is empty if the
        scaling driver does not provide it.
        """

        self._validate_core(core)
        return next(self._sysfs.get_available_frequencies((core,)))[1]

    def get_governor(self, core: int) -> str:
        """Return the governor name of CPU 'core'."""

        self._validate_core(core)
        return next(self._sysfs.get_governor((core,)))[1]

    def get_all_governors(self) -> list[str]:
        """Return governor names of all CPUs, in ascending CPU number order."""
        return [governor for _, governor in self._sysfs.get_governor(self._all_cores())]

    def get_available_governors(self, core: int) -> list[str]:
        """Return the list of governors available for CPU 'core'."""

        self._validate_core(core)
        return next(self._sysfs.get_available_governors((core,)))[1]

    def set_governor(self, core: int, governor: str):
        """
        Set the governor of CPU 'core'.

        Args:
            core: The CPU number.
            governor: The governor name.

        Raises:
            ErrorBadValue: If the governor is not available for the CPU.
        """

        self._validate_core(core)
        self._sysfs.set_governor(governor, (core,))

    def set_governor_all(self, governor: str):
        """Set the governor of all CPUs to 'governor'."""
        self._sysfs.set_governor(governor, self._all_cores())

    def is_turbo_enabled(self) -> bool:
        """Return 'True' if turbo is enabled."""
        return self._sysfs.get_turbo()

    def set_turbo(self, enable: bool):
        """Enable turbo if 'enable' is 'True', otherwise disable it."""
        self._sysfs.set_turbo(enable)

    def get_epp(self, core: int) -> str:
        """Return the EPP policy name of CPU 'core'."""

        self._validate_core(core)
        return next(self._sysfs.get_epp((core,)))[1]

    def set_epp(self, epp: str, cores: Iterable[int] | None = None):
        """
        Set the EPP policy.

        Args:
            epp: The EPP policy name to set.
            cores: CPU numbers to set the EPP for. All CPUs by default.
        """

        if cores is None:
            cores = self._all_cores()
        else:
            cores = list(cores)
            for core in cores:
                self._validate_core(core)

        self._sysfs.set_epp(epp, cores)

    def get_epb(self, core: int) -> int:
        """Return the EPB value of CPU 'core'."""

        self._validate_core(core)
        return next(self._sysfs.get_epb((core,)))[1]

    def set_epb(self, epb: int, cores: Iterable[int] | None = None):
        """
        Set the EPB value.

        Args:
            epb: The EPB value to set (0-15).
            cores: CPU numbers to set the EPB for. All CPUs by default.
        """

        if cores is None:
            cores = self._all_cores()
        else:
            cores = list(cores)
            for core in cores:
                self._validate_core(core)

        self._sysfs.set_epb(epb, cores)

    def is_core_online(self, core: int) -> bool:
        """Return 'True' if CPU 'core' is online. CPU 0 is always online."""

        self._validate_core(core)
        return next(self._sysfs.get_online((core,)))[1]

    def set_core_online(self, core: int, online: bool):
        """
        Online or offline CPU 'core'. Onlining CPU 0 does nothing, since it is always online.

        Args:
            core: The CPU number.
            online: 'True' to online the CPU, 'False' to offline it.

        Raises:
            ErrorNotSupported: If 'core' is 0 and 'online' is 'False'.
        """

        self._validate_core(core)
        self._sysfs.set_online(online, (core,))
