"""Shared fixtures: a local backend on a fixed clock and clients around it."""

import os
from datetime import UTC, datetime

import pytest

from keenview.client.backends.local import LocalBackend
from keenview.client.client import KeenClient
from keenview.config import ENV_PREFIX
from keenview.executor import QueryExecutor

NOW = datetime(2026, 10, 15, 12, 30, tzinfo=UTC)


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep KEENVIEW_* variables from the host out of every test."""
    for name in list(os.environ):
        if name.startswith(ENV_PREFIX):
            monkeypatch.delenv(name)


@pytest.fixture
def backend() -> LocalBackend:
    return LocalBackend(now=lambda: NOW)


@pytest.fixture
def executor(backend: LocalBackend):
    with QueryExecutor(backend, max_workers=2) as pool:
        yield pool


@pytest.fixture
def client(backend: LocalBackend, executor: QueryExecutor) -> KeenClient:
    return KeenClient(backend, executor)
