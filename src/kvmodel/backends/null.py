# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Backend stand-in for a model that has not been attached to storage."""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Any, NoReturn

from kvmodel.backends.base import KeyValueBackend, Options
from kvmodel.core.constants import ErrorKind, Operation
from kvmodel.core.exceptions import UnimplementedError
from kvmodel.core.messages import MessageFormatter, format_message
from kvmodel.filters import KeyFilter


class UnattachedBackend(KeyValueBackend):
    """Every operation raises :class:`UnimplementedError` naming model and method.

    ``iterate_keys`` is a plain method so the error surfaces at call time,
    before any iteration starts.
    """

    name = "unattached"

    def __init__(self, model_name: str, formatter: MessageFormatter | None = None) -> None:
        self._model_name = model_name
        self._formatter = formatter

    def fail(self, method: str) -> NoReturn:
        context = {"model": self._model_name, "method": method}
        raise UnimplementedError(
            format_message(ErrorKind.UNIMPLEMENTED, context, self._formatter),
            model=self._model_name,
            method=method,
        )

    async def get(self, key: str, options: Options) -> Any:
        self.fail(Operation.GET)

    async def set(self, key: str, value: Any, ttl: int | None, options: Options) -> None:
        self.fail(Operation.SET)

    async def expire(self, key: str, ttl: int, options: Options) -> bool:
        self.fail(Operation.EXPIRE)

    async def ttl(self, key: str, options: Options) -> Any:
        self.fail(Operation.TTL)

    async def keys(self, key_filter: KeyFilter | None, options: Options) -> list[str]:
        self.fail(Operation.KEYS)

    def iterate_keys(self, key_filter: KeyFilter | None, options: Options) -> AsyncIterator[str]:
        self.fail(Operation.ITERATE_KEYS)
