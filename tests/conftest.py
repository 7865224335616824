"""Pytest configuration and fixtures for the Dyn QPS check tests."""

import os

import pytest

from dyn_qps.models import CheckConfig

from .fakes import API_URL, RecordingSleep


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep DYN_QPS_* variables from the developer's shell out of the tests."""
    for key in list(os.environ):
        if key.upper().startswith("DYN_QPS_"):
            monkeypatch.delenv(key)


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def config() -> CheckConfig:
    """Day-period config with warning=8, critical=9 and a small retry budget."""
    return CheckConfig.load(
        url=API_URL,
        customer="acme",
        user="monitor",
        password="s3cret",
        period="day",
        warning=8,
        critical=9,
        retries=5,
    )
