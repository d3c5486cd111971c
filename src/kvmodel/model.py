# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""The key-value model: contract operations over a pluggable backend.

:class:`KeyValueModel` validates arguments, merges call options with the
model defaults, and passes each operation straight through to its
:class:`~kvmodel.backends.base.KeyValueBackend`.  It holds no data of its
own.  Absence is reported with the :data:`~kvmodel.core.constants.ABSENT`
sentinel, never as an error, except for ``expire`` where a live entry is
required.  Backend exceptions are wrapped in :class:`BackendFailureError`
with the original kept as ``__cause__``.  Nothing is retried.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator, Mapping
from contextlib import asynccontextmanager
from typing import Any

from kvmodel.backends.base import KeyValueBackend
from kvmodel.backends.null import UnattachedBackend
from kvmodel.core import messages
from kvmodel.core.constants import ErrorKind, Operation
from kvmodel.core.exceptions import (
    BackendFailureError,
    InvalidArgumentError,
    KeyNotFoundError,
    KeyValueError,
)
from kvmodel.core.messages import MessageFormatter, format_message
from kvmodel.filters import FilterLike, KeyFilter, parse_filter
from kvmodel.iteration import KeyIterator

logger = logging.getLogger("kvmodel.model")


class KeyValueModel:
    """Key-value data model bound (or not yet bound) to a backend.

    Args:
        name: Model name used in error messages and the REST base path.
        backend: Storage backend.  ``None`` leaves the model unattached:
            every operation then fails with ``UNIMPLEMENTED``.
        options: Default options merged under each call's options
            (e.g. ``{"namespace": "sessions"}``).
        formatter: Message formatting strategy for error messages.
    """

    def __init__(
        self,
        name: str = "KeyValue",
        backend: KeyValueBackend | None = None,
        options: Mapping[str, Any] | None = None,
        formatter: MessageFormatter | None = None,
    ) -> None:
        self.name = name
        self.options: dict[str, Any] = dict(options or {})
        self.formatter = formatter
        self._backend: KeyValueBackend = backend or UnattachedBackend(name, formatter)

    # ------------------------------------------------------------------
    # Attachment
    # ------------------------------------------------------------------

    @property
    def backend(self) -> KeyValueBackend:
        return self._backend

    @property
    def is_attached(self) -> bool:
        return not isinstance(self._backend, UnattachedBackend)

    def attach(self, backend: KeyValueBackend) -> None:
        """Bind the model to *backend*."""
        self._backend = backend
        logger.info("%s attached to %s backend", self.name, backend.name)

    async def close(self) -> None:
        """Release the backend's resources."""
        await self._backend.close()

    # ------------------------------------------------------------------
    # Contract operations
    # ------------------------------------------------------------------

    async def get(self, key: str, options: Mapping[str, Any] | None = None) -> Any:
        """Return the value stored under *key*, or ``ABSENT``."""
        self._require_attached(Operation.GET)
        self._check_key(Operation.GET, key)
        async with self._backend_call(Operation.GET, key):
            return await self._backend.get(key, self._options(options))

    async def set(
        self,
        key: str,
        value: Any,
        ttl: int | None = None,
        options: Mapping[str, Any] | None = None,
    ) -> None:
        """Store *value* under *key*, optionally expiring after *ttl* milliseconds."""
        self._require_attached(Operation.SET)
        self._check_key(Operation.SET, key)
        if ttl is not None:
            self._check_ttl(Operation.SET, key, ttl)
        async with self._backend_call(Operation.SET, key):
            await self._backend.set(key, value, ttl, self._options(options))

    async def expire(
        self, key: str, ttl: int, options: Mapping[str, Any] | None = None
    ) -> None:
        """Set the TTL of a live entry.

        Raises:
            KeyNotFoundError: If *key* has no live entry.
        """
        self._require_attached(Operation.EXPIRE)
        self._check_key(Operation.EXPIRE, key)
        self._check_ttl(Operation.EXPIRE, key, ttl)
        async with self._backend_call(Operation.EXPIRE, key):
            found = await self._backend.expire(key, ttl, self._options(options))
        if not found:
            raise self.not_found(key, Operation.EXPIRE)

    async def ttl(self, key: str, options: Mapping[str, Any] | None = None) -> Any:
        """Return remaining milliseconds, ``NO_EXPIRATION`` or ``ABSENT``."""
        self._require_attached(Operation.TTL)
        self._check_key(Operation.TTL, key)
        async with self._backend_call(Operation.TTL, key):
            return await self._backend.ttl(key, self._options(options))

    async def keys(
        self,
        filter: FilterLike = None,  # noqa: A002
        options: Mapping[str, Any] | None = None,
    ) -> list[str]:
        """Return every live key matching *filter* as a list."""
        self._require_attached(Operation.KEYS)
        key_filter = self._parse_filter(Operation.KEYS, filter)
        async with self._backend_call(Operation.KEYS):
            return list(await self._backend.keys(key_filter, self._options(options)))

    def iterate_keys(
        self,
        filter: FilterLike = None,  # noqa: A002
        options: Mapping[str, Any] | None = None,
    ) -> KeyIterator:
        """Return a lazy :class:`KeyIterator` over keys matching *filter*.

        Argument and attachment errors are raised here, synchronously;
        backend failures surface from the iterator as its terminal error.
        """
        self._require_attached(Operation.ITERATE_KEYS)
        key_filter = self._parse_filter(Operation.ITERATE_KEYS, filter)
        source = self._backend.iterate_keys(key_filter, self._options(options))
        return KeyIterator(
            source,
            lambda exc: self._backend_failure(Operation.ITERATE_KEYS, None, exc),
        )

    # ------------------------------------------------------------------
    # Error construction
    # ------------------------------------------------------------------

    def message(self, template_id: str, **context: Any) -> str:
        return format_message(template_id, {"model": self.name, **context}, self.formatter)

    def not_found(self, key: str, method: str = Operation.GET) -> KeyNotFoundError:
        return KeyNotFoundError(
            self.message(ErrorKind.NOT_FOUND, key=key, method=method),
            model=self.name,
            method=method,
            key=key,
        )

    def invalid_argument(
        self, method: str, template_id: str, key: str | None = None, **context: Any
    ) -> InvalidArgumentError:
        return InvalidArgumentError(
            self.message(template_id, method=method, key=key, **context),
            model=self.name,
            method=method,
            key=key,
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_attached(self, method: str) -> None:
        if isinstance(self._backend, UnattachedBackend):
            self._backend.fail(method)

    def _options(self, options: Mapping[str, Any] | None) -> dict[str, Any]:
        if not options:
            return self.options
        return {**self.options, **options}

    def _check_key(self, method: str, key: object) -> None:
        if not isinstance(key, str) or not key:
            raise self.invalid_argument(method, messages.EMPTY_KEY)

    def _check_ttl(self, method: str, key: str, ttl: object) -> None:
        if isinstance(ttl, bool) or not isinstance(ttl, int) or ttl < 0:
            raise self.invalid_argument(method, messages.INVALID_TTL, key=key, ttl=ttl)

    def _parse_filter(self, method: str, value: FilterLike) -> KeyFilter | None:
        try:
            return parse_filter(value)
        except ValueError as exc:
            raise self.invalid_argument(
                method, messages.MALFORMED_ARGUMENT, arg="filter", detail=str(exc)
            ) from exc

    def _backend_failure(
        self, method: str, key: str | None, exc: Exception
    ) -> BackendFailureError:
        logger.warning("%s.%s() backend failure: %s", self.name, method, exc)
        return BackendFailureError(
            self.message(ErrorKind.BACKEND_FAILURE, method=method, key=key, detail=exc),
            model=self.name,
            method=method,
            key=key,
        )

    @asynccontextmanager
    async def _backend_call(
        self, method: str, key: str | None = None
    ) -> AsyncGenerator[None]:
        try:
            yield
        except KeyValueError:
            raise
        except Exception as exc:
            raise self._backend_failure(method, key, exc) from exc

