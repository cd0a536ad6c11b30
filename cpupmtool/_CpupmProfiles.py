# -*- coding: utf-8 -*-
# vim: ts=4 sw=4 tw=100 et ai si
#
# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause
#
# Author: Artem Bityutskiy <artem.bityutskiy@linux.intel.com>

"""
Implement the 'cpupm profile' commands.
"""

from __future__ import annotations # Remove when switching to Python 3.10+.

import typing
from cpupmlibs import CPUManager, Config, Profiles, ProfileRegistry, PowerSource
from cpupmlibs.helperlibs import Logging

if typing.TYPE_CHECKING:
    import argparse
    from cpupmlibs.Profiles import Profile
    from cpupmlibs.helperlibs.ProcessManager import ProcessManagerType

_LOG = Logging.getLogger(f"{Logging.MAIN_LOGGER_NAME}.cpupm.{__name__}")

def _get_registry(cfg: Config.Config) -> ProfileRegistry.ProfileRegistry:
    """Return a profile registry with the built-in and user-defined profiles."""

    registry = ProfileRegistry.ProfileRegistry()
    cfg.populate_registry(registry)
    return registry

def _format_freq_limits(profile: Profile) -> str:
    """Format frequency limits of a profile for printing."""

    min_str = "hardware min." if profile.min_freq is None else f"{profile.min_freq} MHz"
    max_str = "hardware max." if profile.max_freq is None else f"{profile.max_freq} MHz"
    return f"{min_str} - {max_str}"

def profile_list_command(args: argparse.Namespace, _: ProcessManagerType):
    """
    Implement the 'profile list' command.

    Args:
        args: The command line arguments.
        _: The process manager object, not used.
    """

    builtin_names = {profile.name for profile in Profiles.BUILTIN_PROFILES}

    for profile in _get_registry(args.cfg).get_profiles():
        kind = "built-in" if profile.name in builtin_names else "user-defined"
        _LOG.info("%s (%s): %s", profile.name, kind, profile.description)
        _LOG.info("  Governor: %s, turbo: %s, frequency limits: %s", profile.governor,
                  profile.turbo, _format_freq_limits(profile))
        if profile.epp is not None:
            _LOG.info("  EPP: %s", profile.epp)
        if profile.epb is not None:
            _LOG.info("  EPB: %d", profile.epb)

def _apply(profile: Profile, pman: ProcessManagerType):
    """Apply profile 'profile' on the host defined by 'pman'."""

    with CPUManager.CPUManager(pman=pman) as cpuman:
        Profiles.apply_profile(profile, cpuman)

    _LOG.notice("Applied profile '%s'%s", profile.name, pman.hostmsg)

def profile_apply_command(args: argparse.Namespace, pman: ProcessManagerType):
    """
    Implement the 'profile apply' command.

    Args:
        args: The command line arguments.
        pman: The process manager object that defines the target host.
    """

    profile = Config.resolve_profile(_get_registry(args.cfg), args.name)
    _apply(profile, pman)

def profile_auto_command(args: argparse.Namespace, pman: ProcessManagerType):
    """
    Implement the 'profile auto' command.

    Args:
        args: The command line arguments.
        pman: The process manager object that defines the target host.
    """

    if PowerSource.is_on_ac_power(pman=pman):
        key = "ac_profile"
        source = "AC power"
    else:
        key = "battery_profile"
        source = "battery"

    name = args.cfg.get("auto_tune", key)
    _LOG.info("Running on %s%s, using profile '%s'", source, pman.hostmsg, name)

    profile = Config.resolve_profile(_get_registry(args.cfg), name)
    _apply(profile, pman)
