# -*- coding: utf-8 -*-
# vim: ts=4 sw=4 tw=100 et ai si
#
# Copyright (C) 2020-2025 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause
#
# Authors: Artem Bityutskiy <artem.bityutskiy@linux.intel.com>
#          Niklas Neronin <niklas.neronin@intel.com>

"""
cpupm - CPU Power Manager, a tool for CPU frequency scaling configuration on Linux.
"""

from __future__ import annotations # Remove when switching to Python 3.10+.

import sys
import typing
import argparse
from pathlib import Path
import argcomplete
from cpupmlibs import Config
from cpupmlibs.helperlibs import ArgParse, Logging, ProcessManager, EmulProcessManager
from cpupmlibs.helperlibs.Exceptions import Error

if typing.TYPE_CHECKING:
    from typing import Any, Sequence
    from cpupmlibs.helperlibs.ArgParse import ArgTypedDict
    from cpupmlibs.helperlibs.ProcessManager import ProcessManagerType

_VERSION = "1.0.3"
TOOLNAME = "cpupm"

_LOG = Logging.getLogger(f"{Logging.MAIN_LOGGER_NAME}.cpupm").configure(prefix=TOOLNAME)

_DATASET_OPTION: ArgTypedDict = {
    "short": "-D",
    "long": "--dataset",
    "argcomplete": "DirectoriesCompleter",
    "kwargs": {
        "dest": "dataset",
        "default": "",
        "help": """This option is for debugging and testing. It specifies path to the dataset to
                   emulate a host for running the command."""
    },
}

_CONFIG_OPTION: ArgTypedDict = {
    "short": "-c",
    "long": "--config",
    "argcomplete": "FilesCompleter",
    "kwargs": {
        "dest": "config",
        "default": "",
        "help": f"""Path to the configuration file. The default is
                    '{Config.get_default_path()}'."""
    },
}

# Options that may be specified anywhere on the command line, including after the sub-command.
_GLOBAL_OPTIONS: Sequence[ArgTypedDict] = (*ArgParse.SSH_OPTIONS, _DATASET_OPTION, _CONFIG_OPTION)

class CpupmArgsParser(ArgParse.ArgsParser):
    """
    The default argument parser does not allow defining "global" options, so that they are present
    in every sub-command. For example, the SSH options should be available everywhere.
    """

    def _check_unknown_args(self, args: argparse.Namespace, uargs: list[str]):
        """
        Check unknown arguments 'uargs' for global arguments and add them to 'args'. This is a
        workaround for implementing global arguments.
        """

        for opt in _GLOBAL_OPTIONS:
            if opt["short"] and opt["short"] in uargs:
                optname = opt["short"]
            elif opt["long"] in uargs:
                optname = opt["long"]
            else:
                continue

            val_idx = uargs.index(optname) + 1
            if len(uargs) <= val_idx or uargs[val_idx].startswith("-"):
                raise Error(f"Value required for argument '{optname}'")

            setattr(args, opt["kwargs"]["dest"], uargs[val_idx])
            uargs.remove(uargs[val_idx])
            uargs.remove(optname)

    def parse_args(self, *args: Any, **kwargs: Any) -> argparse.Namespace: # type: ignore[override]
        """Parse command line arguments, including global options specified after sub-commands."""

        _args, uargs = super().parse_known_args(*args, **kwargs)

        if uargs:
            self._check_unknown_args(_args, uargs)
            if uargs:
                raise Error(f"Unrecognized option(s): {' '.join(uargs)}\nUse -h for help.")

        if getattr(_args, "quiet", False) and getattr(_args, "debug", False):
            raise Error("The '-q' and '-d' options cannot be used together")

        if _args.dataset and _args.hostname != "localhost":
            raise Error("Can't use dataset on remote host")

        return _args

def _add_cores_argument(subpars: argparse.ArgumentParser, text: str, required: bool = False):
    """Add the '--cores' option to sub-command parser 'subpars'."""

    text += """ Specify individual CPU numbers or ranges (e.g., '1-4,7,8,10-12'). Use 'all' for all
               CPUs."""
    if not required:
        text += " If not specified, all CPUs are used by default."

    subpars.add_argument("--cores", help=text, required=required)

def build_arguments_parser() -> CpupmArgsParser:
    """Build and return the the command-line arguments parser object."""

    text = "cpupm - CPU Power Manager, a tool for CPU frequency scaling configuration on Linux."
    parser = CpupmArgsParser(description=text, prog=TOOLNAME, ver=_VERSION)

    ArgParse.add_options(parser, _GLOBAL_OPTIONS)

    subparsers = parser.add_subparsers(title="commands", dest="a command")
    subparsers.required = True

    #
    # Create parser for the 'info' command.
    #
    text = "Print CPU information."
    descr = """Print CPU model, the scaling driver, hardware frequency limits, and available
               governors and frequencies."""
    subpars = subparsers.add_parser("info", help=text, description=descr)
    subpars.set_defaults(func=_info_command)

    text = "Print information in YAML format."
    subpars.add_argument("--yaml", action="store_true", help=text)

    #
    # Create parser for the 'status' command.
    #
    text = "Print per-CPU status."
    descr = """Print current frequency, frequency scaling limits, governor, and online status of
               CPUs. Also print turbo status."""
    subpars = subparsers.add_parser("status", help=text, description=descr)
    subpars.set_defaults(func=_status_command)

    _add_cores_argument(subpars, "List of CPUs to print the status for.")

    text = "Print information in YAML format."
    subpars.add_argument("--yaml", action="store_true", help=text)

    #
    # Create parser for the 'set' command.
    #
    text = "Change CPU frequency settings."
    descr = """Change CPU frequency settings on specified CPUs. Frequencies are in MHz. Requires
               superuser privileges."""
    subpars = subparsers.add_parser("set", help=text, description=descr)
    subpars.set_defaults(func=_set_command)

    _add_cores_argument(subpars, "List of CPUs to change settings on.")

    text = "Name of the CPU frequency governor to set (e.g., 'performance')."
    subpars.add_argument("--governor", help=text)

    text = "CPU frequency to set, works only with the 'userspace' governor."
    subpars.add_argument("--freq", metavar="MHZ", help=text)

    text = "Min. CPU frequency scaling limit to set."
    subpars.add_argument("--min-freq", metavar="MHZ", help=text)

    text = "Max. CPU frequency scaling limit to set."
    subpars.add_argument("--max-freq", metavar="MHZ", help=text)

    text = "Enable or disable turbo. Turbo is a global setting, '--cores' does not apply."
    subpars.add_argument("--turbo", choices=("on", "off"), help=text)

    text = """Energy Performance Preference (EPP) to set, e.g., 'balance_performance'. Supported
              only with the 'intel_pstate' driver."""
    subpars.add_argument("--epp", help=text)

    text = """Energy Performance Bias (EPB) to set, an integer in the [0, 15] range. Smaller
              values favor performance, larger values favor energy savings."""
    subpars.add_argument("--epb", help=text)

    #
    # Create parsers for the 'online' and 'offline' commands.
    #
    text = "Bring CPUs online."
    subpars = subparsers.add_parser("online", help=text, description=text)
    subpars.set_defaults(func=_online_command)
    _add_cores_argument(subpars, "List of CPUs to online.", required=True)

    text = "Take CPUs offline."
    descr = "Take CPUs offline. CPU 0 cannot be taken offline."
    subpars = subparsers.add_parser("offline", help=text, description=descr)
    subpars.set_defaults(func=_offline_command)
    _add_cores_argument(subpars, "List of CPUs to offline.", required=True)

    #
    # Create parser for the 'profile' command.
    #
    text = "Power profile commands."
    descr = """Commands for listing and applying power profiles. A power profile bundles a
               governor, a turbo mode, frequency scaling limits, EPP and EPB."""
    subpars = subparsers.add_parser("profile", help=text, description=descr)
    subparsers2 = subpars.add_subparsers(title="further sub-commands")
    subparsers2.required = True

    text = "List power profiles."
    descr = "List built-in power profiles and user-defined profiles from the configuration file."
    subpars2 = subparsers2.add_parser("list", help=text, description=descr)
    subpars2.set_defaults(func=_profile_list_command)

    text = "Apply a power profile."
    descr = """Apply a power profile to all CPUs. Requires superuser privileges."""
    subpars2 = subparsers2.add_parser("apply", help=text, description=descr)
    subpars2.set_defaults(func=_profile_apply_command)

    text = """Name of the profile to apply (e.g., 'Power Saver'), or an alias ('performance',
              'balanced', 'powersave', 'silent')."""
    subpars2.add_argument("name", metavar="NAME", help=text)

    text = "Apply a power profile according to the power source."
    descr = """Apply the 'auto_tune.ac_profile' profile from the configuration file if the host
               runs on AC power, or the 'auto_tune.battery_profile' profile if it runs on
               battery."""
    subpars2 = subparsers2.add_parser("auto", help=text, description=descr)
    subpars2.set_defaults(func=_profile_auto_command)

    argcomplete.autocomplete(parser)

    return parser

def parse_arguments() -> argparse.Namespace:
    """Parse command-line arguments."""

    parser = build_arguments_parser()
    return parser.parse_args()

# pylint: disable=import-outside-toplevel

def _info_command(args: argparse.Namespace, pman: ProcessManagerType):
    """Implement the 'info' command."""

    from cpupmtool import _CpupmInfo

    _CpupmInfo.info_command(args, pman)

def _status_command(args: argparse.Namespace, pman: ProcessManagerType):
    """Implement the 'status' command."""

    from cpupmtool import _CpupmInfo

    _CpupmInfo.status_command(args, pman)

def _set_command(args: argparse.Namespace, pman: ProcessManagerType):
    """Implement the 'set' command."""

    from cpupmtool import _CpupmSet

    _CpupmSet.set_command(args, pman)

def _online_command(args: argparse.Namespace, pman: ProcessManagerType):
    """Implement the 'online' command."""

    from cpupmtool import _CpupmHotplug

    _CpupmHotplug.online_command(args, pman)

def _offline_command(args: argparse.Namespace, pman: ProcessManagerType):
    """Implement the 'offline' command."""

    from cpupmtool import _CpupmHotplug

    _CpupmHotplug.offline_command(args, pman)

def _profile_list_command(args: argparse.Namespace, pman: ProcessManagerType):
    """Implement the 'profile list' command."""

    from cpupmtool import _CpupmProfiles

    _CpupmProfiles.profile_list_command(args, pman)

def _profile_apply_command(args: argparse.Namespace, pman: ProcessManagerType):
    """Implement the 'profile apply' command."""

    from cpupmtool import _CpupmProfiles

    _CpupmProfiles.profile_apply_command(args, pman)

def _profile_auto_command(args: argparse.Namespace, pman: ProcessManagerType):
    """Implement the 'profile auto' command."""

    from cpupmtool import _CpupmProfiles

    _CpupmProfiles.profile_auto_command(args, pman)

def _get_emul_pman(dataset: str) -> EmulProcessManager.EmulProcessManager:
    """
    Configure and return an 'EmulProcessManager' object for the dataset specified with the '-D'
    option.
    """

    path = Path(dataset)
    if not path.is_dir():
        raise Error(f"Dataset '{dataset}' does not exist or it is not a directory")

    pman = EmulProcessManager.EmulProcessManager(hostname=f"emulation:{path.name}")

    try:
        pman.init_emul_data(path)
    except Error:
        pman.close()
        raise

    return pman

def _configure_logging(args: argparse.Namespace, cfg: Config.Config):
    """Configure the log level and the log file according to the configuration file."""

    if not args.debug and not args.quiet:
        _LOG.setLevel(Logging.LEVELS[cfg.get("logging", "log_level")])

    if cfg.get("logging", "log_to_file"):
        _LOG.configure_log_file(Path(cfg.get("logging", "log_path")))

def main(argv: Sequence[str] | None = None) -> int:
    """
    Script entry point.

    Args:
        argv: Command-line arguments, 'sys.argv[1:]' by default.

    Returns:
        The program exit code.
    """

    try:
        args = build_arguments_parser().parse_args(argv)

        if not getattr(args, "func", None):
            _LOG.error("Please, run '%s -h' for help", TOOLNAME)
            return -1

        if args.debug:
            _LOG.setLevel(Logging.DEBUG)
        elif args.quiet:
            _LOG.setLevel(Logging.WARNING)

        args.cfg = Config.Config(path=Path(args.config) if args.config else None)
        _configure_logging(args, args.cfg)

        ssh_args = ArgParse.format_ssh_args(args)

        if args.dataset:
            with _get_emul_pman(args.dataset) as pman:
                args.func(args, pman)
        else:
            with ProcessManager.get_pman(ssh_args["hostname"], username=ssh_args["username"],
                                         privkeypath=ssh_args["privkey"] or None,
                                         timeout=ssh_args["timeout"]) as pman:
                args.func(args, pman)
    except KeyboardInterrupt:
        _LOG.info("\nInterrupted, exiting")
        return -1
    except Error as err:
        _LOG.error_out(err)

    return 0

if __name__ == "__main__":
    sys.exit(main())
