# -*- coding: utf-8 -*-
# vim: ts=4 sw=4 tw=100 et ai si
#
# Copyright (C) 2020-2025 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause
#
# Author: Artem Bityutskiy <artem.bityutskiy@linux.intel.com>

"""
Exception types used in this project.

Mapping of the error categories used by the CPU frequency control layer:
    - 'ErrorPermissionDenied': a privileged write was attempted without sufficient rights.
    - 'ErrorBadValue': a value was rejected, e.g., a governor not in the available set.
    - 'ErrorNotSupported': the operation has no meaning for the detected scaling driver.
    - 'Error', 'ErrorNotFound', 'ErrorBadFormat': a sysfs file is unreadable, missing, or has
      unexpected contents.
"""

from __future__ import annotations # Remove when switching to Python 3.10+.

import re
from typing import Any, Match

class Error(Exception):
    """The base class for all exceptions raised by this project."""

    def __init__(self, msg: str, *args: Any, **kwargs: Any):
        """
        Initialize the exception object.

        Args:
            msg: The exception message.
            *args: Positional arguments for the message.
            **kwargs: Additional keyword arguments, stored as the exception object attributes.
        """

        msg = str(msg)
        super().__init__(msg)

        for key, val in kwargs.items():
            setattr(self, key, val)

        if args:
            self.msg = msg % tuple(args)
        else:
            self.msg = msg

    def indent(self, indent: int | str, capitalize: bool = True) -> str:
        """
        Indent/prefix each line in the error message.

        Args:
            indent: Can be an integer or a string. If an integer, each line of the error message is
                    prefixed with the specified number of white spaces. If a string, each line is
                    prefixed with the specified string.
            capitalize: If True, ensures the message starts with a capital letter.

        Returns:
            The modified error message.
        """

        def _capitalize_mobj(mobj: Match[str]) -> str:
            """Capitalize the first non-white-space character of a prefixed message."""
            return mobj.group(1) + mobj.group(2).capitalize()

        if isinstance(indent, int):
            pfx = " " * indent
        else:
            pfx = indent

        msg = pfx + self.msg.replace("\n", f"\n{pfx}")
        if capitalize:
            msg = re.sub(r"^(\s*)(\S)", _capitalize_mobj, msg)

        return msg

    def __str__(self):
        """The string representation of the exception."""
        return self.msg

class ErrorTimeOut(Error):
    """Something timed out."""

class ErrorNotFound(Error):
    """Something was not found."""

class ErrorNotSupported(Error):
    """Feature/option/etc is not supported."""

class ErrorPermissionDenied(Error):
    """Insufficient privileges for an operation."""

class ErrorBadFormat(Error):
    """Bad format of something, e.g., file contents."""

class ErrorBadValue(Error):
    """A value was rejected, e.g., because it is not in the list of allowed values."""

class ErrorConnect(Error):
    """Failed to connect to a remote host."""

    def __init__(self, msg: str, *args: Any, host: str | None = None, **kwargs: Any):
        """
        Initialize the exception object.

        Args:
            msg: The exception message.
            *args: Positional arguments for the message.
            host: The host the connection failed to.
            **kwargs: Additional keyword arguments.
        """

        if host:
            msg = f"Cannot connect to host '{host}'\n{msg}"

        super().__init__(msg, *args, **kwargs)
