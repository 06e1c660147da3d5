"""Shared fixtures. Fakes and captured command output live in tests/fakes.py."""

import pytest

from tests.fakes import FakePackageSource, make_package
from wachturm.exceptions import OracleFailure


@pytest.fixture
def fake_source():
    return FakePackageSource()


@pytest.fixture
def scored_packages():
    return [
        make_package("A", "low"),
        make_package("B", "medium"),
        make_package("C", "high"),
    ]


@pytest.fixture
def oracle_failure():
    return OracleFailure("Anthropic API error: connection reset")
