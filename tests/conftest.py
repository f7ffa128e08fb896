"""Pytest configuration and shared fixtures for all tests."""

import pytest

from sca_results._ecosystems import create_default_registry
from sca_results._results import InMemoryResultStore, ResultAccessor


@pytest.fixture(autouse=True)
def disable_sentry_for_tests(monkeypatch):
    """Disable Sentry telemetry for all tests."""
    monkeypatch.setenv("TELEMETRY", "false")
    monkeypatch.delenv("SENTRY_DSN", raising=False)


@pytest.fixture
def registry():
    return create_default_registry()


@pytest.fixture
def store():
    return InMemoryResultStore()


@pytest.fixture
def accessor(store):
    return ResultAccessor(store)


@pytest.fixture
def license_records():
    return {
        "MIT": {
            "licenseId": "MIT",
            "name": "MIT License",
            "seeAlso": ["https://opensource.org/licenses/MIT"],
            "details": {
                "description": "A short and simple permissive license.",
                "classification": "permissive",
                "licenseProperties": {
                    "permissions": ["commercial-use", "modifications"],
                    "conditions": ["include-copyright"],
                    "limitations": ["liability", "warranty"],
                },
            },
        },
        "Apache-2.0": {
            "licenseId": "Apache-2.0",
            "name": "Apache License 2.0",
            "details": {"description": "A permissive license with a patent grant.", "classification": "permissive"},
        },
        "GPL-3.0-only": {
            "licenseId": "GPL-3.0-only",
            "name": "GNU General Public License v3.0 only",
            "details": {"classification": "copy_left"},
        },
    }
