# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Enumerations, error codes, and result sentinels."""

from __future__ import annotations

from enum import StrEnum
from typing import Final


class ErrorKind(StrEnum):
    UNIMPLEMENTED = "UNIMPLEMENTED"
    NOT_FOUND = "NOT_FOUND"
    INVALID_ARGUMENT = "INVALID_ARGUMENT"
    BACKEND_FAILURE = "BACKEND_FAILURE"


class ErrorCode(StrEnum):
    """Stable machine-readable codes exposed to callers."""

    UNIMPLEMENTED = "UNIMPLEMENTED"
    KEY_NOT_FOUND = "KEY_NOT_FOUND"
    INVALID_ARGUMENT = "INVALID_ARGUMENT"
    BACKEND_FAILURE = "BACKEND_FAILURE"


class BackendName(StrEnum):
    MEMORY = "memory"
    REDIS = "redis"
    SQLITE = "sqlite"
    NONE = "none"


class Operation(StrEnum):
    GET = "get"
    SET = "set"
    EXPIRE = "expire"
    TTL = "ttl"
    KEYS = "keys"
    ITERATE_KEYS = "iterate_keys"


ERROR_STATUS: dict[ErrorKind, int] = {
    ErrorKind.UNIMPLEMENTED: 501,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.INVALID_ARGUMENT: 400,
    ErrorKind.BACKEND_FAILURE: 500,
}

ERROR_CODES: dict[ErrorKind, ErrorCode] = {
    ErrorKind.UNIMPLEMENTED: ErrorCode.UNIMPLEMENTED,
    ErrorKind.NOT_FOUND: ErrorCode.KEY_NOT_FOUND,
    ErrorKind.INVALID_ARGUMENT: ErrorCode.INVALID_ARGUMENT,
    ErrorKind.BACKEND_FAILURE: ErrorCode.BACKEND_FAILURE,
}


class _Sentinel:
    """A named, falsy singleton that never compares equal to real values."""

    __slots__ = ("_name",)

    def __init__(self, name: str) -> None:
        self._name = name

    def __repr__(self) -> str:
        return self._name

    def __bool__(self) -> bool:
        return False

    def __reduce__(self) -> str:
        return self._name


ABSENT: Final = _Sentinel("ABSENT")
"""No live entry exists for the key."""

NO_EXPIRATION: Final = _Sentinel("NO_EXPIRATION")
"""The entry exists and has no TTL attached."""

# Wire representation of ABSENT in ``GET /{key}/ttl`` responses.
ABSENT_MARKER = "ABSENT"
