# -*- coding: utf-8 -*-
# vim: ts=4 sw=4 tw=100 et ai si
#
# Copyright (C) 2025 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause
#
# Author: Artem Bityutskiy <artem.bityutskiy@linux.intel.com>

"""
Provide the 'cpupm' configuration file handling.

The configuration file is a YAML file with the following sections:
    - general: general settings, e.g., the polling interval for external control loops.
    - auto_tune: the profiles to use on AC power and on battery, and the auto-tuning thresholds.
    - logging: the log level and the log file settings.
    - profiles: a list of user-defined profiles (refer to 'ProfileRegistry.profile_from_dict()').

Missing keys take default values, unknown keys are rejected.
"""

from __future__ import annotations # Remove when switching to Python 3.10+.

import os
import copy
import typing
from pathlib import Path
from cpupmlibs import Profiles, ProfileRegistry
from cpupmlibs.helperlibs import Logging, YAML
from cpupmlibs.helperlibs.Exceptions import Error, ErrorNotFound, ErrorBadFormat

if typing.TYPE_CHECKING:
    from typing import Any
    from cpupmlibs.Profiles import Profile

_LOG = Logging.getLogger(f"{Logging.MAIN_LOGGER_NAME}.cpupm.{__name__}")

# Name of the configuration directory and file.
CONFIG_DIRNAME = "cpu-power-manager"
CONFIG_FILENAME = "config.yaml"

# Short profile names accepted in the configuration file and on the command line.
PROFILE_ALIASES = {"performance": Profiles.PERFORMANCE.name,
                   "balanced": Profiles.BALANCED.name,
                   "powersave": Profiles.POWER_SAVER.name,
                   "silent": Profiles.SILENT.name}

def _get_home() -> Path:
    """Return the user home directory path."""
    return Path(os.environ.get("HOME", "/tmp"))

def get_default_path() -> Path:
    """
    Return the default configuration file path: '$XDG_CONFIG_HOME/cpu-power-manager/config.yaml',
    or '$HOME/.config/cpu-power-manager/config.yaml' if 'XDG_CONFIG_HOME' is not set.
    """

    xdg_config = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config:
        basedir = Path(xdg_config)
    else:
        basedir = _get_home() / ".config"

    return basedir / CONFIG_DIRNAME / CONFIG_FILENAME

def _get_defaults() -> dict[str, dict[str, Any]]:
    """Return the default configuration sections."""

    log_path = _get_home() / ".local" / "share" / CONFIG_DIRNAME / "cpupm.log"

    return {
        "general": {
            "polling_interval_ms": 1000,
        },
        "auto_tune": {
            "enabled": False,
            "ac_profile": "performance",
            "battery_profile": "balanced",
            "temp_threshold_high": 80.0,
            "temp_threshold_low": 60.0,
            "load_threshold_high": 70.0,
            "load_threshold_low": 30.0,
        },
        "logging": {
            "log_level": "info",
            "log_to_file": False,
            "log_path": str(log_path),
        },
    }

def _validate_value(section: str, key: str, val: Any, default: Any) -> Any:
    """
    Validate a configuration value against the type of its default value.

    Args:
        section: Name of the configuration section.
        key: The configuration key.
        val: The value to validate.
        default: The default value of the key.

    Returns:
        The validated value. Integers are converted to floats for float keys.

    Raises:
        ErrorBadFormat: If the value type is wrong.
    """

    name = f"{section}.{key}"

    if isinstance(default, bool):
        if not isinstance(val, bool):
            raise ErrorBadFormat(f"Bad value '{val}' of '{name}': should be 'true' or 'false'")
        return val

    if isinstance(default, float):
        if isinstance(val, bool) or not isinstance(val, (int, float)):
            raise ErrorBadFormat(f"Bad value '{val}' of '{name}': should be a number")
        return float(val)

    if isinstance(default, int):
        if isinstance(val, bool) or not isinstance(val, int):
            raise ErrorBadFormat(f"Bad value '{val}' of '{name}': should be an integer")
        if val <= 0:
            raise ErrorBadFormat(f"Bad value '{val}' of '{name}': should be a positive integer")
        return val

    if not isinstance(val, str):
        raise ErrorBadFormat(f"Bad value '{val}' of '{name}': should be a string")
    return val

class Config:
    """
    The 'cpupm' configuration.

    Public methods overview.
        * 'get()' - get a configuration value.
        * 'set()' - change a configuration value.
        * 'save()' - write the configuration to the configuration file.
        * 'get_user_profiles()' - user-defined profiles.
        * 'populate_registry()' - add user-defined profiles to a profile registry.
        * 'resolve_profile()' - find a profile by name or alias.
    """

    def __init__(self, path: Path | None = None):
        """
        Initialize a class instance and load the configuration file. Use the default configuration
        if the file does not exist.

        Args:
            path: Path to the configuration file. Defaults to 'get_default_path()'.

        Raises:
            ErrorBadFormat: If the configuration file has unknown keys or bad values.
        """

        if path is None:
            path = get_default_path()

        self.path = path
        self._cfg = _get_defaults()
        self._profiles: list[dict[str, Any]] = []

        try:
            loaded = YAML.load(path)
        except ErrorNotFound:
            _LOG.debug("Configuration file '%s' does not exist, using defaults", path)
            return

        self._apply(loaded)
        _LOG.debug("Loaded configuration file '%s'", path)

    def _apply(self, loaded: dict[str, Any]):
        """Validate the loaded configuration file contents and merge them with the defaults."""

        for section, values in loaded.items():
            if section == "profiles":
                if values is None:
                    continue
                if not isinstance(values, list):
                    raise ErrorBadFormat(f"Bad 'profiles' section in '{self.path}': should be a "
                                         f"list")
                for pdict in values:
                    try:
                        ProfileRegistry.profile_from_dict(pdict)
                    except Error as err:
                        raise ErrorBadFormat(f"Bad profile in '{self.path}':\n"
                                             f"{err.indent(2)}") from err
                self._profiles = [dict(pdict) for pdict in values]
                continue

            if section not in self._cfg:
                sections = ", ".join(list(self._cfg) + ["profiles"])
                raise ErrorBadFormat(f"Unknown section '{section}' in '{self.path}', use one of: "
                                     f"{sections}")

            if values is None:
                continue

            if not isinstance(values, dict):
                raise ErrorBadFormat(f"Bad section '{section}' in '{self.path}': should be a "
                                     f"mapping")

            for key, val in values.items():
                try:
                    self.set(section, key, val)
                except Error as err:
                    raise ErrorBadFormat(f"Bad configuration file '{self.path}':\n"
                                         f"{err.indent(2)}") from err

    def get(self, section: str, key: str) -> Any:
        """
        Return a configuration value.

        Args:
            section: Name of the configuration section.
            key: The configuration key.

        Raises:
            ErrorNotFound: If there is no such section or key.
        """

        if section not in self._cfg or key not in self._cfg[section]:
            raise ErrorNotFound(f"No configuration key '{key}' in section '{section}'")

        return self._cfg[section][key]

    def set(self, section: str, key: str, val: Any):
        """
        Change a configuration value.

        Args:
            section: Name of the configuration section.
            key: The configuration key.
            val: The new value.

        Raises:
            ErrorBadFormat: If there is no such section or key, or the value is bad.
        """

        if section not in self._cfg:
            raise ErrorBadFormat(f"Unknown configuration section '{section}'")

        defaults = _get_defaults()[section]
        if key not in defaults:
            keys = ", ".join(defaults)
            raise ErrorBadFormat(f"Unknown key '{key}' in section '{section}', use one of: {keys}")

        val = _validate_value(section, key, val, defaults[key])

        if section == "logging" and key == "log_level" and val not in Logging.LEVELS:
            levels = ", ".join(Logging.LEVELS)
            raise ErrorBadFormat(f"Bad log level '{val}', use one of: {levels}")

        self._cfg[section][key] = val

    def to_dict(self) -> dict[str, Any]:
        """Return the configuration as a dictionary, the same way it is stored in the file."""

        result: dict[str, Any] = copy.deepcopy(self._cfg)
        result["profiles"] = copy.deepcopy(self._profiles)
        return result

    def save(self, path: Path | None = None):
        """
        Write the configuration to a YAML file.

        Args:
            path: Path to the file to write. Defaults to the path the configuration was loaded
                  from. The parent directory is created if it does not exist.
        """

        if path is None:
            path = self.path

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as err:
            msg = Error(str(err)).indent(2)
            raise Error(f"Failed to create directory '{path.parent}':\n{msg}") from None

        YAML.dump(self.to_dict(), path)
        _LOG.debug("Saved configuration to '%s'", path)

    def get_user_profiles(self) -> list[Profile]:
        """Return the user-defined profiles from the configuration file, in order."""
        return [ProfileRegistry.profile_from_dict(pdict) for pdict in self._profiles]

    def add_user_profile(self, profile: Profile):
        """Add profile 'profile' to the user-defined profiles."""
        self._profiles.append(ProfileRegistry.profile_to_dict(profile))

    def populate_registry(self, registry: ProfileRegistry.ProfileRegistry):
        """Append the user-defined profiles to profile registry 'registry'."""

        for profile in self.get_user_profiles():
            registry.add_profile(profile)

def resolve_profile(registry: ProfileRegistry.ProfileRegistry, name: str) -> Profile:
    """
    Find a profile in a registry by name or by alias (e.g., "powersave" for "Power Saver").

    Args:
        registry: The profile registry to search in.
        name: The profile name or alias.

    Returns:
        The profile.

    Raises:
        ErrorNotFound: If there is no such profile.
    """

    profile = registry.get_profile(name)
    if profile:
        return profile

    alias = PROFILE_ALIASES.get(name.lower())
    if alias:
        profile = registry.get_profile(alias)
        if profile:
            return profile

    names = ", ".join(f"'{p.name}'" for p in registry.get_profiles())
    aliases = ", ".join(PROFILE_ALIASES)
    raise ErrorNotFound(f"Profile '{name}' not found, available profiles: {names}, aliases: "
                        f"{aliases}")
