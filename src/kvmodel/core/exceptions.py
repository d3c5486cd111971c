# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Custom exception hierarchy for kvmodel."""

from __future__ import annotations

from typing import Any

from kvmodel.core.constants import ERROR_CODES, ERROR_STATUS, ErrorKind


class KvModelError(Exception):
    """Base exception for all kvmodel errors."""


class ConfigurationError(KvModelError):
    """Invalid or missing configuration."""


class KeyValueError(KvModelError):
    """An error reported by the key-value contract.

    Carries the error kind, its stable code and HTTP status, plus the
    model, method and key involved so the REST layer can shape it without
    parsing the message.
    """

    kind: ErrorKind = ErrorKind.BACKEND_FAILURE

    def __init__(
        self,
        message: str,
        *,
        model: str | None = None,
        method: str | None = None,
        key: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.model = model
        self.method = method
        self.key = key

    @property
    def code(self) -> str:
        return str(ERROR_CODES[self.kind])

    @property
    def status_code(self) -> int:
        return ERROR_STATUS[self.kind]

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": {
                "name": type(self).__name__,
                "code": self.code,
                "message": self.message,
                "statusCode": self.status_code,
            }
        }


class UnimplementedError(KeyValueError):
    """No backend is attached to the model."""

    kind = ErrorKind.UNIMPLEMENTED


class KeyNotFoundError(KeyValueError):
    """The key has no live entry where one is required."""

    kind = ErrorKind.NOT_FOUND


class InvalidArgumentError(KeyValueError):
    """Empty key, negative ttl, or a malformed request argument."""

    kind = ErrorKind.INVALID_ARGUMENT


class BackendFailureError(KeyValueError):
    """The backend raised; the original exception is kept as ``__cause__``."""

    kind = ErrorKind.BACKEND_FAILURE
