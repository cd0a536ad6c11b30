#!/usr/bin/env python3
#
# -*- coding: utf-8 -*-
# vim: ts=4 sw=4 tw=100 et ai si
#
# Copyright (C) 2022-2025 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause
#
# Author: Antti Laakso <antti.laakso@linux.intel.com>
#         Artem Bityutskiy <artem.bityutskiy@linux.intel.com>

"""This configuration file adds the custom '--host' and '--dataset' options for the tests."""

from  __future__ import annotations # Remove when switching to Python 3.10+.

import typing
from pathlib import Path
import pytest

if typing.TYPE_CHECKING:
    from typing import Generator

_DATA_PATH = Path(__file__).parent.resolve() / "emul-data"

def pytest_addoption(parser: pytest.Parser):
    """Add custom pytest options."""

    text = """Name of the host to run the test on. The default value is "emulation", which means
              running on emulated system. Emulation requires a dataset, and there are datasets
              available in the "emul-data" subdirectory."""
    parser.addoption("-H", "--host", dest="hostname", default="emulation", help=text)

    text = """Name of the user to use for logging into the remote host over SSH."""
    parser.addoption("-U", "--username", dest="username", default="", help=text)

    text = """This option specifies the dataset to use for emulation. By default, all datasets are
              used. Please, find the available datasets in the "emul-data" subdirectory."""
    parser.addoption("-D", "--dataset", dest="dataset", default="all", help=text)

def get_datasets() -> Generator[str, None, None]:
    """Yield names of all datasets in the 'tests/emul-data' directory."""

    for path in sorted(_DATA_PATH.iterdir()):
        # The "common" dataset contains data for all datasets and does not represent a single
        # host, so skip it.
        if path.name == "common":
            continue

        if path.is_dir():
            yield path.name

def pytest_generate_tests(metafunc: pytest.Metafunc):
    """Generate tests with custom options."""

    if "hostspec" not in metafunc.fixturenames:
        return

    hostname = metafunc.config.getoption("hostname")
    dataset = metafunc.config.getoption("dataset")

    if hostname != "emulation":
        params = [hostname]
    elif dataset == "all":
        params = [f"emulation:{name}" for name in get_datasets()]
    else:
        params = [f"emulation:{dataset}"]

    metafunc.parametrize("hostspec", params, scope="module")

@pytest.fixture(name="username", scope="module")
def get_username(request: pytest.FixtureRequest) -> str:
    """Return the user name for logging into the remote host over SSH."""
    return request.config.getoption("username")

def pytest_configure(config: pytest.Config):
    """Verify the existence of requested dataset."""

    hostname = config.getoption("hostname")
    dataset = config.getoption("dataset")

    if hostname == "emulation" and dataset != "all":
        path = _DATA_PATH / dataset

        if not path.exists():
            raise pytest.exit(f"Did not find dataset '{dataset}'.")

@pytest.fixture(autouse=True)
def isolate_config(monkeypatch: pytest.MonkeyPatch, tmp_path_factory: pytest.TempPathFactory):
    """Do not let the tests use the configuration file of the user running them."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path_factory.mktemp("xdg")))
