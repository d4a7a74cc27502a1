"""Test fixtures for polariskit."""

from .fake_backend import FakeBackend
from .model_factories import (
    make_access_backend,
    make_catalog_grant,
    make_explorer_backend,
    make_namespace_grant,
    make_policy_grant,
    make_settings,
    make_table_grant,
    make_view_grant,
)

__all__ = [
    "FakeBackend",
    "make_settings",
    "make_catalog_grant",
    "make_namespace_grant",
    "make_table_grant",
    "make_view_grant",
    "make_policy_grant",
    "make_explorer_backend",
    "make_access_backend",
]
