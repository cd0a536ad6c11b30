# -*- coding: utf-8 -*-
# vim: ts=4 sw=4 tw=100 et ai si
#
# Copyright (C) 2023-2025 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause
#
# Authors: Artem Bityutskiy <artem.bityutskiy@linux.intel.com>
#          Antti Laakso <antti.laakso@linux.intel.com>
#          Niklas Neronin <niklas.neronin@intel.com>

"""
Provide a capability for reading and modifying per-CPU frequency settings via the Linux kernel CPU
frequency subsystem sysfs interface.

Frequencies are in MHz in this module, sysfs uses kHz. When reading, kHz values are converted to
MHz with integer division, so a kHz value that is not a multiple of 1000 is truncated.
"""

from __future__ import annotations # Remove when switching to Python 3.10+.

import typing
from pathlib import Path
from cpupmlibs import _SysfsIO, ScalingDriver
from cpupmlibs.helperlibs import Logging, ProcessManager, ClassHelpers, Trivial
from cpupmlibs.helperlibs.Exceptions import Error, ErrorNotFound, ErrorNotSupported
from cpupmlibs.helperlibs.Exceptions import ErrorPermissionDenied, ErrorBadValue, ErrorBadFormat

if typing.TYPE_CHECKING:
    from typing import Generator, Iterable, Literal
    from cpupmlibs.helperlibs.ProcessManager import ProcessManagerType
    from cpupmlibs.ScalingDriver import ScalingDriverType

    # A CPU frequency sysfs file type. Possible values:
    #   - "min": a minimum CPU frequency file
    #   - "max": a maximum CPU frequency file
    #   - "cur": a current CPU frequency file
    _SysfsFileType = Literal["min", "max", "cur"]

_LOG = Logging.getLogger(f"{Logging.MAIN_LOGGER_NAME}.cpupm.{__name__}")

# The remediation hint for the write permission error.
_PERMISSION_HINT = """Superuser privileges are required to change CPU frequency settings.
Run with 'sudo', for example:
  sudo cpupm <command>

Or install the PolicyKit policy:
  sudo cp misc/polkit/org.cpupm.policy /usr/share/polkit-1/actions/"""

# Valid energy performance bias (EPB) values range.
EPB_MIN = 0
EPB_MAX = 15

class CPUFreqSysfs(ClassHelpers.SimpleCloseContext):
    """
    Provide a capability to read and modify CPU frequency settings via the Linux "cpufreq" sysfs
    interface.

    Public Methods and Arguments:
        - get_cur_freq(cpus): Retrieve the current CPU frequency.
        - set_cur_freq(freq, cpus): Set the CPU frequency (requires the 'userspace' governor).
        - get_min_freq(cpus), get_max_freq(cpus): Retrieve the min/max frequency scaling limits.
        - set_min_freq(freq, cpus), set_max_freq(freq, cpus): Set the min/max frequency scaling
                                                              limits.
        - get_min_freq_limit(cpus), get_max_freq_limit(cpus): Retrieve the min/max hardware
                                                              frequency limits.
        - get_available_frequencies(cpus): Retrieve the list of available CPU frequencies.
        - get_governor(cpus): Retrieve the CPU frequency governor.
        - get_available_governors(cpus): Retrieve the list of available governors.
        - set_governor(governor, cpus): Set the CPU frequency governor.
        - get_turbo(): Retrieve the turbo on/off status.
        - set_turbo(enable): Enable or disable turbo.
        - get_epp(cpus): Retrieve the energy performance preference (EPP).
        - set_epp(epp, cpus): Set the EPP.
        - get_epb(cpus): Retrieve the energy performance bias (EPB).
        - set_epb(epb, cpus): Set the EPB.
        - get_online(cpus): Retrieve the CPU online status.
        - set_online(online, cpus): Online or offline CPUs.

    All methods that change settings check for superuser privileges first and raise
    'ErrorPermissionDenied' without writing anything if there are none. Methods taking 'cpus'
    process CPUs in the given order and stop on the first error, without reverting the changes
    already made.

    Notes:
        Methods do not validate the 'cpus' argument. Ensure that provided CPU numbers are valid.
    """

    def __init__(self,
                 driver: ScalingDriverType,
                 pman: ProcessManagerType | None = None,
                 sysfs_base: Path = ScalingDriver.SYSFS_BASE):
        """
        Initialize a class instance.

        Args:
            driver: The CPU frequency scaling driver type (refer to 'ScalingDriver').
            pman: Process manager for the target host. The local host will be used if not provided.
            sysfs_base: The CPU sysfs base directory.
        """

        self._driver = driver
        self._sysfs_base = sysfs_base

        self._close_pman = pman is None

        self._pman: ProcessManagerType
        if not pman:
            self._pman = ProcessManager.get_pman("localhost")
        else:
            self._pman = pman

        self._sysfs_io = _SysfsIO.SysfsIO(pman=self._pman)

    def close(self):
        """Uninitialize the class instance."""
        ClassHelpers.close(self, close_attrs=("_sysfs_io", "_pman"))

    def _check_write_permission(self):
        """
        Check that the process manager has superuser privileges on the target host.

        Raises:
            ErrorPermissionDenied: If there are no superuser privileges.
        """

        if not self._pman.is_superuser():
            raise ErrorPermissionDenied(f"No superuser privileges{self._pman.hostmsg}.\n"
                                        f"{_PERMISSION_HINT}")

    def _write(self, path: Path, val: str | int, what: str):
        """
        Write a value to a sysfs file. All sysfs writes of this class go through this method.

        Args:
            path: Path to the sysfs file to write to.
            val: The value to write.
            what: A short description of what is being written, for messages.
        """

        self._check_write_permission()
        self._sysfs_io.write(path, str(val), what=what)

    def _get_cpufreq_path(self, cpu: int, fname: str) -> Path:
        """Return path to file 'fname' in the 'cpufreq' sysfs sub-directory of CPU 'cpu'."""
        return self._sysfs_base / f"cpu{cpu}" / "cpufreq" / fname

    def _get_freq(self,
                  ftype: _SysfsFileType,
                  cpus: Iterable[int],
                  limit: bool = False) -> Generator[tuple[int, int], None, None]:
        """
        Read and yield CPU frequencies.

        Args:
            ftype: The CPU frequency sysfs file type.
            cpus: CPU numbers to get the frequency for.
            limit: Read the "cpuinfo" (hardware limit) file instead of the "scaling" file.

        Yields:
            Tuple of (cpu, frequency), where 'frequency' is in MHz.
        """

        prefix = "cpuinfo" if limit else "scaling"
        kind = "hardware limit" if limit else "scaling"

        for cpu in cpus:
            path = self._get_cpufreq_path(cpu, f"{prefix}_{ftype}_freq")
            freq = self._sysfs_io.read_int(path, what=f"{ftype} {kind} frequency of CPU {cpu}")
            # The frequency value is in kHz in sysfs.
            yield cpu, freq // 1000

    def _set_freq(self, freq: int, ftype: Literal["min", "max"], cpus: Iterable[int]):
        """
        Write CPU frequency scaling limits.

        Args:
            freq: The frequency to write, in MHz.
            ftype: The CPU frequency sysfs file type.
            cpus: CPU numbers to set the frequency for.
        """

        for cpu in cpus:
            path = self._get_cpufreq_path(cpu, f"scaling_{ftype}_freq")
            self._write(path, freq * 1000, f"{ftype} scaling frequency of CPU {cpu}")
            _LOG.info("Set CPU%d %s frequency to %d MHz", cpu, ftype, freq)

    def get_cur_freq(self, cpus: Iterable[int]) -> Generator[tuple[int, int], None, None]:
        """
        Retrieve and yield the current CPU frequency for specified CPUs.

        Args:
            cpus: CPU numbers to get the current frequency for.

        Yields:
            Tuple (cpu, frequency), where 'frequency' is the current frequency in MHz.

        Raises:
            ErrorNotFound: If the CPU frequency sysfs file does not exist.
        """

        yield from self._get_freq("cur", cpus)

    def set_cur_freq(self, freq: int, cpus: Iterable[int]):
        """
        Set the CPU frequency for specified CPUs via the 'scaling_setspeed' sysfs file. The file
        takes effect only with the 'userspace' governor.

        Args:
            freq: The frequency to set, in MHz.
            cpus: CPU numbers to set the frequency for.
        """

        for cpu in cpus:
            path = self._get_cpufreq_path(cpu, "scaling_setspeed")
            self._write(path, freq * 1000, f"frequency of CPU {cpu}")
            _LOG.info("Set CPU%d frequency to %d MHz", cpu, freq)

    def get_min_freq(self, cpus: Iterable[int]) -> Generator[tuple[int, int], None, None]:
        """Yield (cpu, frequency) tuples for the min. frequency scaling limit, in MHz."""
        yield from self._get_freq("min", cpus)

    def get_max_freq(self, cpus: Iterable[int]) -> Generator[tuple[int, int], None, None]:
        """Yield (cpu, frequency) tuples for the max. frequency scaling limit, in MHz."""
        yield from self._get_freq("max", cpus)

    def set_min_freq(self, freq: int, cpus: Iterable[int]):
        """Set the min. frequency scaling limit of CPUs 'cpus' to 'freq' MHz."""
        self._set_freq(freq, "min", cpus)

    def set_max_freq(self, freq: int, cpus: Iterable[int]):
        """Set the max. frequency scaling limit of CPUs 'cpus' to 'freq' MHz."""
        self._set_freq(freq, "max", cpus)

    def get_min_freq_limit(self, cpus: Iterable[int]) -> Generator[tuple[int, int], None, None]:
        """Yield (cpu, frequency) tuples for the min. hardware frequency, in MHz."""
        yield from self._get_freq("min", cpus, limit=True)

    def get_max_freq_limit(self, cpus: Iterable[int]) -> Generator[tuple[int, int], None, None]:
        """Yield (cpu, frequency) tuples for the max. hardware frequency, in MHz."""
        yield from self._get_freq("max", cpus, limit=True)

    def get_available_frequencies(self,
                                  cpus: Iterable[int]) -> Generator[tuple[int, list[int]],
                                                                    None, None]:
        """
        Yield available CPU frequencies for specified CPUs. Frequencies are read from the
        'scaling_available_frequencies' sysfs file, which is typically provided only by the
        'acpi-cpufreq' driver.

        Args:
            cpus: CPU numbers to get the list of available frequencies for.

        Yields:
            Tuple of (cpu, frequencies), where 'frequencies' is the list of available frequencies
            in MHz, in the order of the sysfs file. The list is empty if the sysfs file does not
            exist.

        Raises:
            ErrorBadFormat: If the sysfs file contents cannot be parsed.
        """

        for cpu in cpus:
            path = self._get_cpufreq_path(cpu, "scaling_available_frequencies")
            try:
                val = self._sysfs_io.read(path, what=f"available frequencies of CPU {cpu}")
            except ErrorNotFound:
                yield cpu, []
                continue

            freqs: list[int] = []
            for freq_str in val.split():
                try:
                    freq = Trivial.str_to_int(freq_str, base=10, what="CPU frequency value")
                except Error as err:
                    raise ErrorBadFormat(f"Bad contents of file '{path}'{self._pman.hostmsg}:\n"
                                         f"{err.indent(2)}") from err
                freqs.append(freq // 1000)

            yield cpu, freqs

    def get_governor(self, cpus: Iterable[int]) -> Generator[tuple[int, str], None, None]:
        """
        Retrieve and yield the Linux CPU frequency governor name for specified CPUs.

        Args:
            cpus: CPU numbers to get the governor name for.

        Yields:
            Tuple (cpu, governor), where 'governor' is the current governor name of the CPU.
        """

        for cpu in cpus:
            path = self._get_cpufreq_path(cpu, "scaling_governor")
            yield cpu, self._sysfs_io.read(path, what=f"governor of CPU {cpu}")

    def get_available_governors(self, cpus: Iterable[int]) -> \
                                            Generator[tuple[int, list[str]], None, None]:
        """
        Retrieve and yield available Linux CPU frequency governor names for specified CPUs.

        Args:
            cpus: CPU numbers to get the list of available governors for.

        Yields:
            Tuple (cpu, governors), where 'governors' is a list of available governor names.
        """

        for cpu in cpus:
            path = self._get_cpufreq_path(cpu, "scaling_available_governors")
            names = self._sysfs_io.read(path, what=f"available governors of CPU {cpu}")
            yield cpu, names.split()

    def set_governor(self, governor: str, cpus: Iterable[int]):
        """
        Set the CPU frequency governor for specified CPUs.

        Args:
            governor: Name of the governor to set.
            cpus: CPU numbers to set the governor for.

        Raises:
            ErrorBadValue: If the governor is not in the list of available governors of a CPU.
        """

        for cpu, governors in self.get_available_governors(cpus):
            if governor not in governors:
                governors_str = ", ".join(governors)
                raise ErrorBadValue(f"Governor '{governor}' is not available for CPU {cpu}"
                                    f"{self._pman.hostmsg}, use one of: {governors_str}")

            path = self._get_cpufreq_path(cpu, "scaling_governor")
            self._write(path, governor, f"governor of CPU {cpu}")
            _LOG.info("Set CPU%d governor to '%s'", cpu, governor)

    def get_turbo(self) -> bool:
        """
        Retrieve the turbo on/off status. Turbo is a global setting, not a per-CPU one.

        Returns:
            True if turbo is enabled, False otherwise. With the 'acpi-cpufreq' driver, if the
            'boost' sysfs file does not exist, turbo is reported as disabled.

        Raises:
            ErrorNotSupported: If the scaling driver does not provide turbo control.
        """

        what = "turbo on/off status"

        if self._driver == ScalingDriver.INTEL_PSTATE:
            path = self._sysfs_base / "intel_pstate" / "no_turbo"
            return self._sysfs_io.read_int(path, what=what) == 0

        if self._driver == ScalingDriver.ACPI_CPUFREQ:
            path = self._sysfs_base / "cpufreq" / "boost"
            try:
                return self._sysfs_io.read_int(path, what=what) == 1
            except ErrorNotFound:
                return False

        raise ErrorNotSupported(f"Turbo control is not supported with the "
                                f"'{ScalingDriver.NAMES[self._driver]}' scaling driver"
                                f"{self._pman.hostmsg}")

    def set_turbo(self, enable: bool):
        """
        Enable or disable turbo.

        Args:
            enable: if True, enable turbo, if False, disable it.

        Raises:
            ErrorNotSupported: If the scaling driver does not provide turbo control.
        """

        what = "turbo on/off status"
        status = "on" if enable else "off"

        if self._driver == ScalingDriver.INTEL_PSTATE:
            path = self._sysfs_base / "intel_pstate" / "no_turbo"
            self._write(path, int(not enable), what)
        elif self._driver == ScalingDriver.ACPI_CPUFREQ:
            path = self._sysfs_base / "cpufreq" / "boost"
            if not self._pman.exists(path):
                raise ErrorNotSupported(f"Failed to switch turbo {status}{self._pman.hostmsg}: "
                                        f"boost control is not available")
            self._write(path, int(enable), what)
        else:
            raise ErrorNotSupported(f"Failed to switch turbo {status}{self._pman.hostmsg}: "
                                    f"unsupported scaling driver "
                                    f"'{ScalingDriver.NAMES[self._driver]}'")

        _LOG.info("Switched turbo %s", status)

    def _check_epp_supported(self):
        """Raise 'ErrorNotSupported' if the scaling driver does not support EPP."""

        if self._driver != ScalingDriver.INTEL_PSTATE:
            raise ErrorNotSupported(f"EPP is supported only with the 'intel_pstate' scaling "
                                    f"driver, but the driver{self._pman.hostmsg} is "
                                    f"'{ScalingDriver.NAMES[self._driver]}'")

    def get_epp(self, cpus: Iterable[int]) -> Generator[tuple[int, str], None, None]:
        """
        Retrieve and yield the energy performance preference (EPP) for specified CPUs.

        Args:
            cpus: CPU numbers to get the EPP for.

        Yields:
            Tuple (cpu, epp), where 'epp' is the EPP policy name, e.g., "balance_performance".

        Raises:
            ErrorNotSupported: If the scaling driver is not 'intel_pstate', or the EPP sysfs file
                               does not exist.
        """

        self._check_epp_supported()

        for cpu in cpus:
            path = self._get_cpufreq_path(cpu, "energy_performance_preference")
            try:
                yield cpu, self._sysfs_io.read(path, what=f"EPP of CPU {cpu}")
            except ErrorNotFound as err:
                raise ErrorNotSupported(f"EPP is not supported for CPU {cpu}"
                                        f"{self._pman.hostmsg}:\n{err.indent(2)}") from err

    def set_epp(self, epp: str, cpus: Iterable[int]):
        """
        Set the energy performance preference (EPP) for specified CPUs. CPUs without the EPP
        sysfs file are skipped.

        Args:
            epp: The EPP policy name to set.
            cpus: CPU numbers to set the EPP for.

        Raises:
            ErrorNotSupported: If the scaling driver is not 'intel_pstate'.
        """

        self._check_epp_supported()
        self._check_write_permission()

        for cpu in cpus:
            path = self._get_cpufreq_path(cpu, "energy_performance_preference")
            if not self._pman.exists(path):
                _LOG.debug("No EPP sysfs file for CPU %d%s, skipping", cpu, self._pman.hostmsg)
                continue

            self._write(path, epp, f"EPP of CPU {cpu}")

        _LOG.info("Set EPP to '%s'", epp)

    def _get_epb_path(self, cpu: int) -> Path:
        """Return path to the EPB sysfs file of CPU 'cpu'."""
        return self._sysfs_base / f"cpu{cpu}" / "power" / "energy_perf_bias"

    def get_epb(self, cpus: Iterable[int]) -> Generator[tuple[int, int], None, None]:
        """
        Retrieve and yield the energy performance bias (EPB) for specified CPUs.

        Args:
            cpus: CPU numbers to get the EPB for.

        Yields:
            Tuple (cpu, epb), where 'epb' is an integer in the [0, 15] range.

        Raises:
            ErrorNotSupported: If the EPB sysfs file does not exist.
        """

        for cpu in cpus:
            try:
                yield cpu, self._sysfs_io.read_int(self._get_epb_path(cpu), what=f"EPB of CPU {cpu}")
            except ErrorNotFound as err:
                raise ErrorNotSupported(f"EPB is not supported for CPU {cpu}"
                                        f"{self._pman.hostmsg}:\n{err.indent(2)}") from err

    def set_epb(self, epb: int, cpus: Iterable[int]):
        """
        Set the energy performance bias (EPB) for specified CPUs. CPUs without the EPB sysfs file
        are skipped.

        Args:
            epb: The EPB value to set, 0 is the most performance-oriented, 15 is the most
                 energy-saving-oriented.
            cpus: CPU numbers to set the EPB for.

        Raises:
            ErrorBadValue: If 'epb' is out of the [0, 15] range.
        """

        if epb < EPB_MIN or epb > EPB_MAX:
            raise ErrorBadValue(f"Bad EPB value '{epb}', should be an integer in the "
                                f"[{EPB_MIN}, {EPB_MAX}] range")

        self._check_write_permission()

        for cpu in cpus:
            path = self._get_epb_path(cpu)
            if not self._pman.exists(path):
                _LOG.debug("No EPB sysfs file for CPU %d%s, skipping", cpu, self._pman.hostmsg)
                continue

            self._write(path, epb, f"EPB of CPU {cpu}")

        _LOG.info("Set EPB to %d", epb)

    def get_online(self, cpus: Iterable[int]) -> Generator[tuple[int, bool], None, None]:
        """
        Retrieve and yield the online status for specified CPUs. CPU0 is always reported as
        online, and so is a CPU without the 'online' sysfs file.

        Args:
            cpus: CPU numbers to get the online status for.

        Yields:
            Tuple (cpu, online), where 'online' is True if the CPU is online.
        """

        for cpu in cpus:
            if cpu == 0:
                yield cpu, True
                continue

            path = self._sysfs_base / f"cpu{cpu}" / "online"
            try:
                yield cpu, self._sysfs_io.read_int(path, what=f"online status of CPU {cpu}") == 1
            except ErrorNotFound:
                yield cpu, True

    def set_online(self, online: bool, cpus: Iterable[int]):
        """
        Online or offline specified CPUs. CPU0 is always online, so onlining it is a no-op.

        Args:
            online: True to online the CPUs, False to offline them.
            cpus: CPU numbers to online or offline.

        Raises:
            ErrorNotSupported: If 'online' is False and CPU0 is in 'cpus'. Nothing is written in
                               this case.
        """

        cpus = list(cpus)
        if 0 in cpus:
            if not online:
                raise ErrorNotSupported("CPU0 cannot be taken offline")
            cpus.remove(0)

        status = "online" if online else "offline"

        for cpu in cpus:
            path = self._sysfs_base / f"cpu{cpu}" / "online"
            self._write(path, int(online), f"online status of CPU {cpu}")
            _LOG.info("Set CPU%d %s", cpu, status)
