# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Shared test fixtures and configuration."""

import pytest

from kvmodel.backends.memory import MemoryKeyValueBackend
from kvmodel.model import KeyValueModel


@pytest.fixture(autouse=True)
def _reset_model():
    """Reset the model singleton between tests."""
    from kvmodel.manager import reset_model

    reset_model()
    yield
    reset_model()


@pytest.fixture(autouse=True)
def _isolate_settings(monkeypatch, tmp_path):
    """Keep tests independent of a developer's environment and .env file."""
    import os

    for name in list(os.environ):
        if name.startswith("KVMODEL_"):
            monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def memory_backend() -> MemoryKeyValueBackend:
    return MemoryKeyValueBackend()


@pytest.fixture
def model(memory_backend: MemoryKeyValueBackend) -> KeyValueModel:
    return KeyValueModel(name="Cache", backend=memory_backend)
