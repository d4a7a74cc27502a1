"""
Shared pytest fixtures for polariskit tests.

Provides fake backends, settings and the components wired on top of them.
"""

import logging
from typing import Generator

import pytest

from polariskit.access import AccessGraphAggregator
from polariskit.config import ConsoleSettings
from polariskit.executors import GrantExecutor
from polariskit.tree import NamespaceTreeResolver
from tests.fixtures import FakeBackend, make_access_backend, make_explorer_backend, make_settings


@pytest.fixture
def settings() -> ConsoleSettings:
    """Settings pointing at a fake service."""
    return make_settings()


@pytest.fixture
def explorer_backend() -> FakeBackend:
    """Backend with a catalog/namespace/table hierarchy."""
    return make_explorer_backend()


@pytest.fixture
def access_backend() -> FakeBackend:
    """Backend with principals, roles and grants across three catalogs."""
    return make_access_backend()


@pytest.fixture
def resolver(explorer_backend: FakeBackend) -> NamespaceTreeResolver:
    return NamespaceTreeResolver(explorer_backend)


@pytest.fixture
def aggregator(access_backend: FakeBackend, settings: ConsoleSettings) -> AccessGraphAggregator:
    return AccessGraphAggregator(access_backend, settings)


@pytest.fixture
def executor(access_backend: FakeBackend, aggregator: AccessGraphAggregator) -> GrantExecutor:
    return GrantExecutor(access_backend, aggregator)


@pytest.fixture(autouse=True)
def polariskit_debug_logging(caplog: pytest.LogCaptureFixture) -> Generator[None, None, None]:
    """
    Autouse fixture that captures polariskit debug logs.

    Lets tests assert on dropped or discarded data.
    """
    caplog.set_level(logging.DEBUG, logger="polariskit")
    yield
