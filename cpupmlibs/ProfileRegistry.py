# -*- coding: utf-8 -*-
# vim: ts=4 sw=4 tw=100 et ai si
#
# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause
#
# Author: Artem Bityutskiy <artem.bityutskiy@linux.intel.com>

"""
Provide an ordered collection of power profiles: the built-in profiles plus user-defined ones.
"""

from __future__ import annotations # Remove when switching to Python 3.10+.

import typing
from cpupmlibs import Profiles
from cpupmlibs.Profiles import Profile
from cpupmlibs.helperlibs import Logging, Trivial
from cpupmlibs.helperlibs.Exceptions import ErrorBadFormat

if typing.TYPE_CHECKING:
    from typing import Any

_LOG = Logging.getLogger(f"{Logging.MAIN_LOGGER_NAME}.cpupm.{__name__}")

# Profile dictionary keys and whether they are mandatory.
_PROFILE_KEYS = {"name": True, "description": False, "governor": True, "turbo": False,
                 "min_freq": False, "max_freq": False, "epp": False, "epb": False,
                 "intent": False}

def _get_opt_int(pdict: dict[str, Any], key: str, name: str) -> int | None:
    """Return integer value of an optional profile dictionary key, or 'None' if it is not set."""

    val = pdict.get(key)
    if val is None:
        return None

    # Booleans are integers in Python, but not valid values here.
    if isinstance(val, bool):
        raise ErrorBadFormat(f"Bad '{key}' value '{val}' for profile '{name}': should be an "
                             f"integer")

    return Trivial.str_to_int(val, base=10, what=f"'{key}' value of profile '{name}'")

def profile_from_dict(pdict: dict[str, Any]) -> Profile:
    """
    Build a profile object from a dictionary, e.g., one loaded from the configuration file.

    Args:
        pdict: The profile dictionary. The keys are the same as the 'Profile' attribute names.
               The 'name' and 'governor' keys are mandatory. The turbo mode defaults to "auto",
               the intent defaults to "powersave".

    Returns:
        The profile object.

    Raises:
        ErrorBadFormat: If the dictionary includes unknown keys, misses mandatory keys, or has bad
                        values.
    """

    if not isinstance(pdict, dict):
        raise ErrorBadFormat(f"Bad profile definition '{pdict}': should be a mapping")

    for key in pdict:
        if key not in _PROFILE_KEYS:
            keys = ", ".join(_PROFILE_KEYS)
            raise ErrorBadFormat(f"Unknown profile key '{key}', use one of: {keys}")

    for key, mandatory in _PROFILE_KEYS.items():
        if mandatory and not pdict.get(key):
            raise ErrorBadFormat(f"Profile definition '{pdict}' does not include the mandatory "
                                 f"'{key}' key")

    name = str(pdict["name"])

    turbo = str(pdict.get("turbo") or Profiles.TURBO_AUTO).lower()
    if turbo not in Profiles.TURBO_MODES:
        modes = ", ".join(Profiles.TURBO_MODES)
        raise ErrorBadFormat(f"Bad turbo mode '{turbo}' for profile '{name}', use one of: "
                             f"{modes}")

    intent = str(pdict.get("intent") or Profiles.INTENT_POWERSAVE).lower()
    if intent not in Profiles.INTENTS:
        intents = ", ".join(Profiles.INTENTS)
        raise ErrorBadFormat(f"Bad intent '{intent}' for profile '{name}', use one of: {intents}")

    min_freq = _get_opt_int(pdict, "min_freq", name)
    max_freq = _get_opt_int(pdict, "max_freq", name)
    if min_freq is not None and max_freq is not None and min_freq > max_freq:
        raise ErrorBadFormat(f"Bad frequency limits for profile '{name}': min. frequency "
                             f"{min_freq} MHz is greater than max. frequency {max_freq} MHz")

    epb = _get_opt_int(pdict, "epb", name)
    if epb is not None and (epb < 0 or epb > 15):
        raise ErrorBadFormat(f"Bad EPB value '{epb}' for profile '{name}', should be an integer "
                             f"in the [0, 15] range")

    epp = pdict.get("epp")

    return Profile(name=name,
                   description=str(pdict.get("description") or ""),
                   governor=str(pdict["governor"]),
                   turbo=turbo,
                   min_freq=min_freq,
                   max_freq=max_freq,
                   epp=None if epp is None else str(epp),
                   epb=epb,
                   intent=intent)

def profile_to_dict(profile: Profile) -> dict[str, Any]:
    """Return a dictionary representation of profile 'profile', suitable for 'YAML.dump()'."""
    return {key: val for key, val in profile._asdict().items() if val is not None}

class ProfileRegistry:
    """
    An ordered collection of power profiles. The collection starts with the built-in profiles.
    Profile names are not required to be unique, lookup by name returns the first match.
    """

    def __init__(self):
        """Initialize a class instance."""
        self._profiles: list[Profile] = list(Profiles.BUILTIN_PROFILES)

    def get_profiles(self) -> list[Profile]:
        """Return all profiles, in order."""
        return list(self._profiles)

    def get_profile(self, name: str) -> Profile | None:
        """Return the first profile named 'name' or 'None' if there is no such profile."""

        for profile in self._profiles:
            if profile.name == name:
                return profile
        return None

    def add_profile(self, profile: Profile):
        """Append profile 'profile' to the collection."""

        _LOG.debug("Adding profile '%s'", profile.name)
        self._profiles.append(profile)

    def remove_profile(self, name: str):
        """Remove all profiles named 'name'. Do nothing if there are no such profiles."""

        _LOG.debug("Removing profile '%s'", name)
        self._profiles = [profile for profile in self._profiles if profile.name != name]
