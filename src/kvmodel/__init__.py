# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""kvmodel - Abstract key-value contract with a REST binding."""

__version__ = "0.1.0"

from kvmodel.core.constants import ABSENT, NO_EXPIRATION
from kvmodel.core.exceptions import (
    BackendFailureError,
    InvalidArgumentError,
    KeyNotFoundError,
    KeyValueError,
    UnimplementedError,
)
from kvmodel.filters import KeyFilter
from kvmodel.iteration import KeyIterator
from kvmodel.model import KeyValueModel

__all__ = [
    "ABSENT",
    "NO_EXPIRATION",
    "BackendFailureError",
    "InvalidArgumentError",
    "KeyFilter",
    "KeyIterator",
    "KeyNotFoundError",
    "KeyValueError",
    "KeyValueModel",
    "UnimplementedError",
    "__version__",
]
