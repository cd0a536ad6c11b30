#!/usr/bin/env python3
#
# -*- coding: utf-8 -*-
# vim: ts=4 sw=4 tw=100 et ai si
#
# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause
#
# Author: Artem Bityutskiy <artem.bityutskiy@linux.intel.com>

"""Test the profile registry and profile dictionaries."""

from  __future__ import annotations # Remove when switching to Python 3.10+.

from typing import Any
import pytest
from cpupmlibs import Profiles, ProfileRegistry
from cpupmlibs.helperlibs.Exceptions import ErrorBadFormat

def _make_profile(name: str, governor: str = "ondemand") -> Profiles.Profile:
    """Create and return a minimal profile."""

    return Profiles.Profile(name=name, description=f"The {name} profile", governor=governor,
                            turbo=Profiles.TURBO_AUTO)

def test_builtin_profiles():
    """Verify that a new registry contains the built-in profiles in order."""

    registry = ProfileRegistry.ProfileRegistry()
    names = [profile.name for profile in registry.get_profiles()]

    assert names == ["Performance", "Balanced", "Power Saver", "Silent"]
    assert registry.get_profile("Silent") == Profiles.SILENT
    assert registry.get_profile("silent") is None
    assert registry.get_profile("Turbo") is None

def test_add_remove():
    """Verify adding and removing profiles."""

    registry = ProfileRegistry.ProfileRegistry()
    gaming = _make_profile("Gaming", governor="performance")

    registry.add_profile(gaming)
    assert registry.get_profiles()[-1] == gaming
    assert registry.get_profile("Gaming") == gaming

    registry.remove_profile("Gaming")
    assert registry.get_profile("Gaming") is None
    assert len(registry.get_profiles()) == len(Profiles.BUILTIN_PROFILES)

    # Removing a non-existing profile is not an error.
    registry.remove_profile("Gaming")

def test_duplicate_names():
    """Verify that lookup returns the first match and removal removes all matches."""

    registry = ProfileRegistry.ProfileRegistry()
    first = _make_profile("Dup", governor="powersave")
    second = _make_profile("Dup", governor="performance")

    registry.add_profile(first)
    registry.add_profile(second)
    assert registry.get_profile("Dup") == first

    registry.remove_profile("Dup")
    assert registry.get_profile("Dup") is None

def test_get_profiles_is_a_copy():
    """Verify that modifying the returned profiles list does not change the registry."""

    registry = ProfileRegistry.ProfileRegistry()
    registry.get_profiles().clear()
    assert len(registry.get_profiles()) == len(Profiles.BUILTIN_PROFILES)

def test_profile_from_dict():
    """Verify building profiles from dictionaries."""

    profile = ProfileRegistry.profile_from_dict({"name": "Gaming", "governor": "performance",
                                                 "turbo": "Always", "min_freq": "1200",
                                                 "max_freq": 4000, "epb": 2,
                                                 "intent": "performance"})
    assert profile.name == "Gaming"
    assert profile.governor == "performance"
    assert profile.turbo == Profiles.TURBO_ALWAYS
    assert profile.min_freq == 1200
    assert profile.max_freq == 4000
    assert profile.epp is None
    assert profile.epb == 2
    assert profile.intent == Profiles.INTENT_PERFORMANCE

    profile = ProfileRegistry.profile_from_dict({"name": "Minimal", "governor": "ondemand"})
    assert profile.description == ""
    assert profile.turbo == Profiles.TURBO_AUTO
    assert profile.intent == Profiles.INTENT_POWERSAVE
    assert profile.min_freq is None
    assert profile.max_freq is None

@pytest.mark.parametrize("pdict", (
    ["name", "governor"],
    {"governor": "ondemand"},
    {"name": "X"},
    {"name": "X", "governor": "ondemand", "color": "red"},
    {"name": "X", "governor": "ondemand", "turbo": "sometimes"},
    {"name": "X", "governor": "ondemand", "intent": "fastest"},
    {"name": "X", "governor": "ondemand", "min_freq": 3000, "max_freq": 2000},
    {"name": "X", "governor": "ondemand", "max_freq": "fast"},
    {"name": "X", "governor": "ondemand", "max_freq": True},
    {"name": "X", "governor": "ondemand", "epb": 16},
    {"name": "X", "governor": "ondemand", "epb": -1}))
def test_profile_from_dict_bad(pdict: Any):
    """Verify that bad profile dictionaries are rejected."""

    with pytest.raises(ErrorBadFormat):
        ProfileRegistry.profile_from_dict(pdict)

def test_profile_to_dict():
    """Verify that a profile dictionary includes only the set attributes and can be loaded back."""

    pdict = ProfileRegistry.profile_to_dict(Profiles.POWER_SAVER)

    assert "min_freq" not in pdict
    assert pdict["max_freq"] == 2400
    assert ProfileRegistry.profile_from_dict(pdict) == Profiles.POWER_SAVER
