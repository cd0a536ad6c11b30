#!/usr/bin/python3
#
# -*- coding: utf-8 -*-
# vim: ts=4 sw=4 tw=100 et ai si
#
# Copyright (C) 2020-2025 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause
#
# Author: Antti Laakso <antti.laakso@intel.com>

"""
The main entry point for the 'cpupm' tool when it is run as a directory or a zipapp archive.
"""

import sys
from cpupmtool._Cpupm import main

if __name__ == "__main__":
    sys.exit(main())
