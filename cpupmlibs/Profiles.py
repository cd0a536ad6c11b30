# -*- coding: utf-8 -*-
# vim: ts=4 sw=4 tw=100 et ai si
#
# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause
#
# Author: Artem Bityutskiy <artem.bityutskiy@linux.intel.com>

"""
Power profiles: named bundles of a governor, a turbo mode, frequency limits, and energy performance
hints, and the code for applying them to a host.
"""

from __future__ import annotations # Remove when switching to Python 3.10+.

import typing
from typing import NamedTuple
from cpupmlibs.helperlibs import Logging
from cpupmlibs.helperlibs.Exceptions import Error, ErrorNotSupported

if typing.TYPE_CHECKING:
    from typing import Final, Sequence
    from cpupmlibs.CPUManager import CPUManager

_LOG = Logging.getLogger(f"{Logging.MAIN_LOGGER_NAME}.cpupm.{__name__}")

# Turbo modes.
TURBO_ALWAYS: Final = "always"
TURBO_AUTO: Final = "auto"
TURBO_NEVER: Final = "never"
TURBO_MODES: Final = (TURBO_ALWAYS, TURBO_AUTO, TURBO_NEVER)

# Profile intents. The intent selects the governor fallback order.
INTENT_PERFORMANCE: Final = "performance"
INTENT_BALANCED: Final = "balanced"
INTENT_POWERSAVE: Final = "powersave"
INTENTS: Final = (INTENT_PERFORMANCE, INTENT_BALANCED, INTENT_POWERSAVE)

# Governors to try, in order, when the governor requested by a profile is not available.
GOVERNOR_FALLBACKS: Final[dict[str, tuple[str, ...]]] = {
    INTENT_PERFORMANCE: ("performance", "powersave"),
    INTENT_BALANCED: ("schedutil", "ondemand", "powersave", "performance"),
    INTENT_POWERSAVE: ("powersave", "conservative", "ondemand"),
}

class Profile(NamedTuple):
    """
    A power profile.

    Attributes:
        name: The profile name, e.g., "Balanced".
        description: A human-readable description.
        governor: The requested CPU frequency governor.
        turbo: The turbo mode ('TURBO_ALWAYS', 'TURBO_AUTO' or 'TURBO_NEVER').
        min_freq: The min. frequency scaling limit in MHz, 'None' to use the hardware limit.
        max_freq: The max. frequency scaling limit in MHz, 'None' to use the hardware limit.
        epp: The EPP policy name, 'None' to leave EPP as is.
        epb: The EPB value (0-15), 'None' to leave EPB as is.
        intent: The profile intent ('INTENT_PERFORMANCE', 'INTENT_BALANCED' or
                'INTENT_POWERSAVE').
    """

    name: str
    description: str
    governor: str
    turbo: str
    min_freq: int | None = None
    max_freq: int | None = None
    epp: str | None = None
    epb: int | None = None
    intent: str = INTENT_POWERSAVE

PERFORMANCE: Final = Profile(name="Performance",
                             description="Maximum performance, highest power consumption",
                             governor="performance",
                             turbo=TURBO_ALWAYS,
                             epp="performance",
                             epb=0,
                             intent=INTENT_PERFORMANCE)

BALANCED: Final = Profile(name="Balanced",
                          description="Balance between performance and power efficiency",
                          governor="powersave",
                          turbo=TURBO_AUTO,
                          epp="balance_performance",
                          epb=6,
                          intent=INTENT_BALANCED)

POWER_SAVER: Final = Profile(name="Power Saver",
                             description="Maximum battery life, reduced performance",
                             governor="powersave",
                             turbo=TURBO_NEVER,
                             max_freq=2400,
                             epp="power",
                             epb=15,
                             intent=INTENT_POWERSAVE)

SILENT: Final = Profile(name="Silent",
                        description="Quiet operation, temperature priority",
                        governor="powersave",
                        turbo=TURBO_NEVER,
                        min_freq=800,
                        max_freq=2000,
                        epp="power",
                        epb=15,
                        intent=INTENT_POWERSAVE)

BUILTIN_PROFILES: Final = (PERFORMANCE, BALANCED, POWER_SAVER, SILENT)

def select_best_governor(profile: Profile, available: Sequence[str]) -> str:
    """
    Select the governor to use for a profile.

    Args:
        profile: The profile to select the governor for.
        available: Names of the available governors.

    Returns:
        The requested governor if it is available. Otherwise the first available governor from the
        fallback list of the profile intent.

    Raises:
        ErrorNotSupported: If neither the requested governor nor any of the fallback governors is
                           available.
    """

    if profile.governor in available:
        return profile.governor

    candidates = GOVERNOR_FALLBACKS[profile.intent]
    for governor in candidates:
        if governor in available:
            _LOG.warning("Governor '%s' requested by profile '%s' is not available, using '%s'",
                         profile.governor, profile.name, governor)
            return governor

    available_str = ", ".join(available)
    candidates_str = ", ".join(candidates)
    raise ErrorNotSupported(f"No suitable governor for profile '{profile.name}': requested "
                            f"'{profile.governor}', tried {candidates_str}, but only the following "
                            f"governors are available: {available_str}")

def _reset_freq_limits(cpuman: CPUManager):
    """
    Reset min. and max. frequency scaling limits of all CPUs to the hardware limits.

    Args:
        cpuman: The 'CPUManager' object to use.
    """

    for core in range(cpuman.core_count):
        hw_min = cpuman.get_hardware_min_freq(core)
        hw_max = cpuman.get_hardware_max_freq(core)
        _LOG.debug("Resetting CPU%d frequency limits to hardware limits: %d-%d MHz",
                   core, hw_min, hw_max)
        cpuman.set_scaling_min_freq(core, hw_min)
        cpuman.set_scaling_max_freq(core, hw_max)

def _apply(profile: Profile, cpuman: CPUManager):
    """Implement 'apply_profile()'."""

    available = cpuman.get_available_governors(0)
    governor = select_best_governor(profile, available)

    _LOG.debug("Using governor '%s' (requested '%s', available: %s)",
               governor, profile.governor, ", ".join(available))
    cpuman.set_governor_all(governor)

    # The "auto" turbo mode is handled by an external control loop, start with turbo enabled.
    cpuman.set_turbo(profile.turbo != TURBO_NEVER)

    _reset_freq_limits(cpuman)

    if profile.min_freq is not None:
        _LOG.debug("Applying profile min. frequency: %d MHz", profile.min_freq)
        cpuman.set_scaling_min_freq_all(profile.min_freq)

    if profile.max_freq is not None:
        _LOG.debug("Applying profile max. frequency: %d MHz", profile.max_freq)
        cpuman.set_scaling_max_freq_all(profile.max_freq)

    if profile.epp is not None:
        try:
            cpuman.set_epp(profile.epp)
        except Error as err:
            _LOG.warning("Failed to set EPP to '%s' (may not be supported):\n%s",
                         profile.epp, err.indent(2))

    if profile.epb is not None:
        try:
            cpuman.set_epb(profile.epb)
        except Error as err:
            _LOG.warning("Failed to set EPB to %d (may not be supported):\n%s",
                         profile.epb, err.indent(2))

def apply_profile(profile: Profile, cpuman: CPUManager):
    """
    Apply a power profile to all CPUs. The steps are:
        1. Select the governor (refer to 'select_best_governor()'). CPU 0 is used as the
           representative CPU for the available governors.
        2. Set the governor for all CPUs.
        3. Set turbo: enable for the "always" and "auto" turbo modes, disable for "never".
        4. Reset min. and max. frequency scaling limits of all CPUs to the hardware limits.
        5. Set the profile min. and max. frequency limits, if any.
        6. Set EPP and EPB, if any. Failures are logged and ignored.

    Args:
        profile: The profile to apply.
        cpuman: The 'CPUManager' object for the target host.

    Raises:
        Error: If any of steps 1-5 fails. The changes made before the failure are not reverted.
    """

    _LOG.info("Applying profile '%s'", profile.name)

    try:
        _apply(profile, cpuman)
    except Error as err:
        raise type(err)(f"Failed to apply profile '{profile.name}':\n{err.indent(2)}") from err

    _LOG.info("Profile '%s' applied successfully", profile.name)
