# -*- coding: utf-8 -*-
# vim: ts=4 sw=4 tw=100 et ai si
#
# Copyright (C) 2020-2025 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause
#
# Author: Artem Bityutskiy <artem.bityutskiy@linux.intel.com>

"""
Helpful classes extending 'argparse.ArgumentParser' class functionality.
"""

from __future__ import annotations # Remove when switching to Python 3.10+.

import types
import typing
import argparse
from pathlib import Path
import argcomplete
from cpupmlibs.helperlibs import Trivial
from cpupmlibs.helperlibs.Exceptions import Error

if typing.TYPE_CHECKING:
    from typing import TypedDict, Iterable, Any

    # The class type returned by the 'add_subparsers()' method of the arguments classes.
    SubParsersType = argparse._SubParsersAction # pylint: disable=protected-access

    class ArgKwargsTypedDict(TypedDict, total=False):
        """
        The supported keyword arguments for 'argparse.add_argument()'.

        Attributes:
            dest: The 'argparse' attribute name where the command line argument will be stored.
            default: The default value for the argument.
            metavar: The name of the argument in the help text.
            action: The 'argparse' action to use for the argument.
            help: A brief description of the argument.
        """

        dest: str
        default: str | int
        metavar: str
        action: str
        help: str

    class ArgTypedDict(TypedDict, total=False):
        """
        An option definition dictionary.

        Attributes:
            short: The short option name.
            long: The long option name.
            argcomplete: The 'argcomplete' completer class name to use for tab completion.
            kwargs: Additional keyword arguments for 'argparse.add_argument()'.
        """

        short: str | None
        long: str
        argcomplete: str | None
        kwargs: ArgKwargsTypedDict

    class SSHArgsTypedDict(TypedDict, total=False):
        """
        The SSH-related command-line arguments after they have been processed and validated.

        Attributes:
            hostname: The remote host name or IP address (-H option). Default is "localhost".
            username: The user name for logging into the remote host (-U option).
            privkey: The path to the private SSH key (-K option).
            timeout: The timeout for establishing an SSH connection in seconds (-T option).
        """

        hostname: str
        username: str
        privkey: str | Path
        timeout: int | None

SSH_OPTIONS: list[ArgTypedDict] = [
    {
        "short" : "-H",
        "long" : "--host",
        "argcomplete" : None,
        "kwargs" : {
            "dest" : "hostname",
            "default" : "localhost",
            "help" : "Host name or IP address of the remote host to connect to over SSH and run "
                     "the command on. Run the command on the local host if not specified."
        },
    },
    {
        "short" : "-U",
        "long" : "--username",
        "argcomplete" : None,
        "kwargs" : {
            "dest" : "username",
            "default" : "",
            "help" : "Name of the user to use for logging into the remote host over SSH. The "
                     "default user name is 'root'."
        },
    },
    {
        "short" : "-K",
        "long" : "--priv-key",
        "argcomplete" : "FilesCompleter",
        "kwargs" : {
            "dest" : "privkey",
            "default" : "",
            "help" : "Path to the private SSH key for logging into the remote host. Defaults to "
                     "keys in standard paths like '$HOME/.ssh'."
        },
    },
    {
        "short" : "-T",
        "long" : "--timeout",
        "argcomplete" : None,
        "kwargs" : {
            "dest" : "timeout",
            "default" : "",
            "help" : "Timeout for establishing an SSH connection in seconds. Defaults to 8."
        },
    },
]

def add_options(parser: argparse.ArgumentParser, options: Iterable[ArgTypedDict]):
    """
    Add command line options to a parser.

    Args:
        parser: The argument parser object to add the options to.
        options: Option definition dictionaries.
    """

    for opt in options:
        if opt["short"] is None:
            args: tuple[str, ...] = (opt["long"], )
        else:
            args = (opt["short"], opt["long"])

        arg = parser.add_argument(*args, **opt["kwargs"])
        if opt["argcomplete"]:
            setattr(arg, "completer", getattr(argcomplete.completers, opt["argcomplete"])())

def format_ssh_args(args: argparse.Namespace) -> SSHArgsTypedDict:
    """
    Verify SSH-related command-line arguments and return them as a dictionary.

    Args:
        args: Parsed command-line arguments.

    Returns:
        A dictionary containing the SSH-related options.
    """

    hostname: str = getattr(args, "hostname", "localhost")
    username: str = getattr(args, "username", "")
    privkey: str | Path = getattr(args, "privkey", "")
    timeout_str: str = getattr(args, "timeout", "")
    timeout: int | None = None

    if hostname == "localhost":
        if username:
            raise Error("The '--username' option requires the '--host' option")
        if privkey:
            raise Error("The '--priv-key' option requires the '--host' option")
        if timeout_str:
            raise Error("The '--timeout' option requires the '--host' option")
    else:
        if not username:
            username = "root"
        if timeout_str:
            timeout = Trivial.str_to_int(timeout_str, what="--timeout option value")
        else:
            timeout = 8

    return {"hostname": hostname, "username": username, "privkey": privkey, "timeout": timeout}

def _add_parser(subparsers: SubParsersType, *args: Any, **kwargs: Any) -> argparse.ArgumentParser:
    """
    Replacement for the 'add_parser()' method of a subparsers object. Remove newlines and extra
    white-spaces from the 'description' argument, then call the original 'add_parser()' method.
    """

    if "description" in kwargs:
        kwargs["description"] = " ".join(kwargs["description"].split())

    orig_add_parser = getattr(subparsers, "__orig_add_parser")
    return orig_add_parser(*args, **kwargs)

class ArgsParser(argparse.ArgumentParser):
    """
    Enhance 'argparse.ArgumentParser' with standard options and improved usability.
      - Add standard options, such as '-h', '-q' and '-d'.
      - Remove extra whitespace and newlines from 'description' in 'add_parser()'.
      - Override 'error()' to raise an exception instead of exiting.
    """

    def __init__(self, *args: Any, ver: str | None = None, **kwargs: Any):
        """
        Initialize the parser and add the standard options.

        Args:
            *args: Positional arguments for 'argparse.ArgumentParser'.
            ver: The version string for the '--version' option. Do not add the option if 'None'.
            **kwargs: Keyword arguments for 'argparse.ArgumentParser'.
        """

        kwargs["add_help"] = False
        super().__init__(*args, **kwargs)

        text = "Show this help message and exit."
        self.add_argument("-h", "--help", dest="help", action="help", help=text)

        text = "Be quiet (print only important messages like warnings)."
        self.add_argument("-q", "--quiet", dest="quiet", action="store_true", help=text)

        text = """Force colorized output even if the output stream is not a terminal (adds ANSI
                  escape codes)."""
        self.add_argument("--force-color", action="store_true", help=text)

        text = "Print debugging information."
        self.add_argument("-d", "--debug", dest="debug", action="store_true", help=text)

        if ver:
            text = "Print the version number and exit."
            self.add_argument("--version", action="version", help=text, version=ver)

    def parse_args(self, *args: Any, **kwargs: Any) -> argparse.Namespace: # type: ignore[override]
        """Parse command line arguments and validate the standard options."""

        _args = super().parse_args(*args, **kwargs)

        if getattr(_args, "quiet", False) and getattr(_args, "debug", False):
            raise Error("The '-q' and '-d' options cannot be used together")

        return _args

    def add_subparsers(self, *args: Any, **kwargs: Any) -> SubParsersType:
        """Create subparsers with a customized 'add_parser()' method."""

        subparsers = super().add_subparsers(*args, **kwargs)
        setattr(subparsers, "__orig_add_parser", subparsers.add_parser)
        setattr(subparsers, "add_parser", types.MethodType(_add_parser, subparsers))

        return subparsers

    def error(self, message: str): # type: ignore[override]
        """
        Raise an exception instead of printing the message and exiting.

        Args:
            message: The original error message.
        """

        raise Error(f"{message}\nUse -h for help.")
