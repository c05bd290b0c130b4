"""Shared fixtures for resolver tests."""

import copy

import pytest

from constants import Constants
from versioning.crosswalk import CrosswalkTable
from versioning.models import RuntimeEnvironment

BASE_PACKAGE_JSON = {
    "name": "sqlite-addon",
    "version": "5.1.6",
    "main": "lib/index.js",
    "binary": {
        "module_name": "node_sqlite3",
        "module_path": "./lib/binding/{node_abi}-{platform}-{arch}",
        "host": "https://mapbox-node-binary.s3.amazonaws.com",
        "remote_path": "./{name}/v{version}/{configuration}/",
        "package_name": "{module_name}-v{version}-{node_abi}-{platform}-{arch}.tar.gz",
    },
}


@pytest.fixture
def package_json():
    """A fresh copy of a typical addon manifest."""
    return copy.deepcopy(BASE_PACKAGE_JSON)


@pytest.fixture
def node_env():
    """Live environment of a node 18 process on linux x64."""
    return RuntimeEnvironment(
        versions={
            "node": "18.17.1",
            "v8": "10.2.154.26-node.26",
            "modules": "108",
            "napi": "9",
        },
        platform="linux",
        arch="x64",
        libc="glibc",
    )


@pytest.fixture
def small_crosswalk():
    """A crosswalk that has not caught up with newer releases."""
    return CrosswalkTable({
        "0.10.0": {"node_abi": 11, "v8": "3.14"},
        "0.10.30": {"node_abi": 11, "v8": "3.14"},
        "1.0.0": {"node_abi": 42, "v8": "3.31"},
        "1.8.4": {"node_abi": 43, "v8": "4.1"},
        "4.1.0": {"node_abi": 46, "v8": "4.5"},
        "4.2.0": {"node_abi": 46, "v8": "4.5"},
    })


@pytest.fixture(autouse=True)
def restore_constants():
    """Undo Constants overrides made by config tests."""
    saved = {k: v for k, v in vars(Constants).items() if k.isupper()}
    yield
    for key, value in saved.items():
        setattr(Constants, key, value)
