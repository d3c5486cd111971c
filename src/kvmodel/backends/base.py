# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Abstract key-value backend interface with millisecond TTL support."""

from __future__ import annotations

import abc
from collections.abc import AsyncIterator, Mapping
from typing import Any

from kvmodel.filters import KeyFilter

Options = Mapping[str, Any]


def namespace_of(options: Options) -> str:
    """Return the ``namespace`` option, ``""`` when unset."""
    return str(options.get("namespace") or "")


class KeyValueBackend(abc.ABC):
    """Abstract base class for key-value backends.

    Backends receive arguments that the model has already validated: keys
    are non-empty strings and TTLs are non-negative integers (milliseconds)
    or ``None``.  ``options`` is the merged per-call option mapping; the
    reference backends honour ``namespace`` and ignore anything else.

    Any exception a backend raises is reported to callers as a backend
    failure.  Absence is never an exception: it is signalled with the
    :data:`~kvmodel.core.constants.ABSENT` sentinel.
    """

    #: Short name used in logs and the readiness endpoint.
    name: str = "backend"

    @abc.abstractmethod
    async def get(self, key: str, options: Options) -> Any:
        """Return the stored value, or ``ABSENT`` if no live entry exists."""

    @abc.abstractmethod
    async def set(self, key: str, value: Any, ttl: int | None, options: Options) -> None:
        """Store *value* under *key*, replacing any previous entry and its TTL.

        Args:
            key: Entry key.
            value: JSON-representable value.
            ttl: Time-to-live in milliseconds.  ``None`` means no expiry.
            options: Backend options.
        """

    @abc.abstractmethod
    async def expire(self, key: str, ttl: int, options: Options) -> bool:
        """Attach a TTL (milliseconds) to a live entry.

        Returns:
            ``True`` if the entry existed, ``False`` otherwise.
        """

    @abc.abstractmethod
    async def ttl(self, key: str, options: Options) -> Any:
        """Return remaining milliseconds, ``NO_EXPIRATION`` or ``ABSENT``."""

    @abc.abstractmethod
    async def keys(self, key_filter: KeyFilter | None, options: Options) -> list[str]:
        """Return every live key matching *key_filter*."""

    @abc.abstractmethod
    def iterate_keys(self, key_filter: KeyFilter | None, options: Options) -> AsyncIterator[str]:
        """Yield live keys matching *key_filter* one at a time.

        Implementations are async generators.  Iteration must survive
        concurrent writes to the key space but is not a snapshot.
        """

    async def close(self) -> None:  # noqa: B027
        """Release any resources held by the backend."""
