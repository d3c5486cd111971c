# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Backend selection from settings and the process-wide model instance."""

from __future__ import annotations

import logging

from kvmodel.backends.base import KeyValueBackend
from kvmodel.backends.memory import MemoryKeyValueBackend
from kvmodel.core.config import Settings
from kvmodel.core.constants import BackendName
from kvmodel.core.exceptions import ConfigurationError
from kvmodel.model import KeyValueModel

logger = logging.getLogger("kvmodel.manager")

# Module-level singleton
_model: KeyValueModel | None = None


def create_backend_from_settings(settings: Settings | None = None) -> KeyValueBackend | None:
    """Instantiate the backend named by ``settings.backend``.

    Returns:
        The backend, or ``None`` when the backend is ``"none"`` (the model
        stays unattached).

    Raises:
        ConfigurationError: For an unknown backend name, or when the
            selected backend's optional dependency is missing.
    """
    if settings is None:
        from kvmodel.core.config import get_settings

        settings = get_settings()

    backend_type = settings.backend

    if backend_type == BackendName.MEMORY:
        return MemoryKeyValueBackend(max_size=settings.memory_max_size)

    if backend_type == BackendName.REDIS:
        from kvmodel.backends.redis import RedisKeyValueBackend

        return RedisKeyValueBackend(
            redis_url=settings.redis_url, key_prefix=settings.redis_key_prefix
        )

    if backend_type == BackendName.SQLITE:
        from kvmodel.backends.sqlite import SQLiteKeyValueBackend

        return SQLiteKeyValueBackend(
            db_path=settings.sqlite_path, batch_size=settings.iterate_batch_size
        )

    if backend_type == BackendName.NONE:
        logger.warning("No key-value backend configured; %s is unattached", settings.model_name)
        return None

    choices = ", ".join(b.value for b in BackendName)
    msg = f"Unknown key-value backend {backend_type!r}; expected one of: {choices}"
    raise ConfigurationError(msg)


def create_model_from_settings(settings: Settings | None = None) -> KeyValueModel:
    """Build a :class:`KeyValueModel` wired to the configured backend."""
    if settings is None:
        from kvmodel.core.config import get_settings

        settings = get_settings()

    options = {"namespace": settings.namespace} if settings.namespace else None
    return KeyValueModel(
        name=settings.model_name,
        backend=create_backend_from_settings(settings),
        options=options,
    )


def get_model() -> KeyValueModel:
    """Return the module-level :class:`KeyValueModel` singleton.

    Creates a new instance on first call using application settings.
    """
    global _model
    if _model is None:
        _model = create_model_from_settings()
    return _model


def reset_model() -> None:
    """Reset the singleton (useful for testing)."""
    global _model
    _model = None
