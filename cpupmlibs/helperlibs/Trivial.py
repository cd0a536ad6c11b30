# -*- coding: utf-8 -*-
# vim: ts=4 sw=4 tw=100 et ai si
#
# Copyright (C) 2020-2025 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause
#
# Author: Artem Bityutskiy <artem.bityutskiy@linux.intel.com>

"""
Common trivial helpers.
"""

from __future__ import annotations # Remove when switching to Python 3.10+.

import os
import typing
from itertools import groupby
from cpupmlibs.helperlibs.Exceptions import Error, ErrorBadFormat

if typing.TYPE_CHECKING:
    from typing import Iterable

def is_root() -> bool:
    """
    Check if the current process runs with superuser privileges.

    Returns:
        True if the effective user ID of the current process is 0, False otherwise.
    """

    try:
        return os.geteuid() == 0
    except OSError as err:
        errmsg = Error(str(err)).indent(2)
        raise Error(f"Failed to get process effective UID:\n{errmsg}") from None

def str_to_int(snum: str | int, base: int = 0, what: str = "") -> int:
    """
    Convert a string to an integer value.

    Args:
        snum: The value to convert to 'int'.
        base: Base of 'snum'. Defaults to auto-detect based on the prefix.
        what: A string describing the value to convert, for the possible error message.

    Returns:
        The converted integer value.

    Raises:
        ErrorBadFormat: If 'snum' cannot be converted to an integer.
    """

    try:
        return int(str(snum).strip(), base)
    except (ValueError, TypeError):
        if not what:
            what = "value"
        if base:
            errmsg = f"a base {base} integer"
        else:
            errmsg = "an integer"
        raise ErrorBadFormat(f"Bad {what} '{snum}': should be {errmsg}") from None

def list_dedup(elts: Iterable) -> list:
    """Return a list of unique elements in 'elts', preserving the order."""
    return list(dict.fromkeys(elts))

def split_csv_line(csv_line: str, sep: str = ",", dedup: bool = False) -> list[str]:
    """
    Split a comma-separated values line and return the list of values. Empty values are dropped.

    Args:
        csv_line: The comma-separated line to split.
        sep: The separator character.
        dedup: If True, remove duplicated elements from the returned list.

    Returns:
        A list of values.
    """

    result = [val.strip() for val in csv_line.strip(sep).split(sep) if val.strip()]

    if dedup:
        return list_dedup(result)
    return result

def split_csv_line_int(csv_line: str, sep: str = ",", dedup: bool = False,
                       what: str = "") -> list[int]:
    """
    Split a comma-separated line of integers and integer ranges and return the list of integers.

    Args:
        csv_line: The comma-separated line to split.
        sep: The separator character.
        dedup: If True, remove duplicated elements from the returned list.
        what: A string describing the values in 'csv_line', for the possible error message.

    Returns:
        A list of integer values.

    Raises:
        ErrorBadFormat: If 'csv_line' cannot be converted to a list of integers.

    Example:
        Input: csv_line = "0,1-3,7"
        Output: [0, 1, 2, 3, 7].
    """

    if not what:
        what = "value"

    result: list[int] = []
    for val in split_csv_line(csv_line, sep=sep):
        if "-" not in val:
            result.append(str_to_int(val, what=what))
            continue

        range_vals = [range_val for range_val in val.split("-") if range_val]
        if len(range_vals) != 2:
            raise ErrorBadFormat(f"Bad {what} '{csv_line}': error in '{val}': should be two "
                                 f"integers separated by '-'")

        first, last = [str_to_int(rval, what=what) for rval in range_vals]
        if first > last:
            raise ErrorBadFormat(f"Bad {what} '{csv_line}': error in range '{val}': the first "
                                 f"number should be smaller than the second")

        result += range(first, last + 1)

    if dedup:
        return list_dedup(result)
    return result

def rangify(numbers: Iterable[int]) -> str:
    """
    Convert a list of numbers into a comma-separated string of ranges.

    Args:
        numbers: The numbers to convert.

    Returns:
        The numbers as comma-separated ranges, e.g., "0-3,5,7-9".
    """

    range_strs = []
    for _, pairs in groupby(enumerate(sorted(numbers)), lambda x: x[0] - x[1]):
        nums = [val for _, val in pairs]
        if len(nums) > 2:
            range_strs.append(f"{nums[0]}-{nums[-1]}")
        else:
            range_strs += [str(num) for num in nums]

    return ",".join(range_strs)
