# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Pull-based lazy key sequence returned by ``iterate_keys``."""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable
from enum import StrEnum

from kvmodel.core.exceptions import BackendFailureError, KeyValueError


class IteratorState(StrEnum):
    PENDING = "pending"
    ACTIVE = "active"
    DONE = "done"
    FAILED = "failed"


class KeyIterator:
    """Lazy, finite sequence of keys pulled from a backend on demand.

    The backend producer is suspended between pulls, so very large key
    spaces are never materialised unless :meth:`collect` is called.
    Exhaustion is explicit: :meth:`next` returns ``None`` and ``async for``
    stops.  A backend failure is terminal: the iterator moves to
    ``FAILED``, keeps the :class:`BackendFailureError` in :attr:`error`
    and raises it again on every later pull instead of pretending the
    sequence ended.  To restart, call ``iterate_keys`` again.

    Iteration over a key space that is being modified concurrently is
    best-effort: it does not crash, but keys added or removed meanwhile may
    or may not be reported.
    """

    def __init__(
        self,
        source: AsyncIterator[str],
        wrap_error: Callable[[Exception], BackendFailureError],
    ) -> None:
        self._source = source
        self._wrap_error = wrap_error
        self.state = IteratorState.PENDING
        self.error: KeyValueError | None = None

    def __aiter__(self) -> KeyIterator:
        return self

    async def __anext__(self) -> str:
        if self.error is not None:
            raise self.error
        if self.state is IteratorState.DONE:
            raise StopAsyncIteration
        self.state = IteratorState.ACTIVE
        try:
            return await anext(self._source)
        except StopAsyncIteration:
            self.state = IteratorState.DONE
            raise
        except KeyValueError as exc:
            self._fail(exc)
            raise
        except Exception as exc:
            error = self._wrap_error(exc)
            self._fail(error)
            raise error from exc

    async def next(self) -> str | None:
        """Pull one key, or return ``None`` once the sequence is exhausted."""
        try:
            return await self.__anext__()
        except StopAsyncIteration:
            return None

    async def collect(self) -> list[str]:
        """Drain the remaining keys into a list."""
        return [key async for key in self]

    async def aclose(self) -> None:
        """Stop iterating and release the backend producer."""
        if self.state is not IteratorState.FAILED:
            self.state = IteratorState.DONE
        aclose = getattr(self._source, "aclose", None)
        if aclose is not None:
            await aclose()

    @property
    def done(self) -> bool:
        return self.state in (IteratorState.DONE, IteratorState.FAILED)

    def _fail(self, error: KeyValueError) -> None:
        self.state = IteratorState.FAILED
        self.error = error
