# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Key-value backends implementing the contract."""

from kvmodel.backends.base import KeyValueBackend
from kvmodel.backends.memory import MemoryKeyValueBackend
from kvmodel.backends.null import UnattachedBackend

__all__ = ["KeyValueBackend", "MemoryKeyValueBackend", "UnattachedBackend"]
