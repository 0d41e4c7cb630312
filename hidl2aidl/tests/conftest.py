"""Unit tests configuration file."""

import os

import pytest

from hidl2aidl.fqname import parse_fqname
from hidl2aidl.loader import Resolver, SchemaRepository

FIXTURES = os.path.join(os.path.dirname(os.path.realpath(__file__)), "fixtures")


def pytest_configure(config):
    """Disable verbose output when running tests."""
    terminal = config.pluginmanager.getplugin("terminal")
    if terminal:
        terminal.TerminalReporter.showfspath = False


@pytest.fixture
def repository():
    return SchemaRepository(FIXTURES)


@pytest.fixture
def resolver(repository):
    return Resolver(repository)


@pytest.fixture
def load(resolver):
    """Load the release declaring a type and return the resolved type."""

    def _load(name):
        fq_name = parse_fqname(name)
        resolver.load_release(fq_name)
        return resolver.types[fq_name]

    return _load
