# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Key filters used to narrow ``keys`` / ``iterate_keys`` enumeration.

A filter is either a glob ``match`` pattern, a literal ``prefix``, or
both (a key must satisfy every field that is set).  Callers may pass a
:class:`KeyFilter`, a plain glob string, a JSON object string, or a
mapping; :func:`parse_filter` normalises all of them.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from fnmatch import fnmatchcase
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError

_GLOB_SPECIALS = frozenset("*?[]\\")


def escape_glob(text: str) -> str:
    """Backslash-escape glob metacharacters the way Redis patterns expect."""
    return "".join("\\" + c if c in _GLOB_SPECIALS else c for c in text)


class KeyFilter(BaseModel):
    """Selection criterion for key enumeration."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    match: str | None = None
    prefix: str | None = None

    @property
    def is_empty(self) -> bool:
        return not self.match and not self.prefix

    def matches(self, key: str) -> bool:
        if self.prefix and not key.startswith(self.prefix):
            return False
        if self.match and not fnmatchcase(key, self.match):
            return False
        return True

    def redis_pattern(self) -> str:
        """Return a Redis ``SCAN MATCH`` pattern that over-approximates this filter.

        Results still go through :meth:`matches`; the pattern only narrows
        what the server sends back.
        """
        if self.match:
            pattern = fnmatch_to_redis(self.match)
            if pattern is not None:
                return pattern
        if self.prefix:
            return escape_glob(self.prefix) + "*"
        return "*"


def fnmatch_to_redis(pattern: str) -> str | None:
    """Translate an :func:`fnmatch.fnmatchcase` pattern to Redis glob syntax.

    The two dialects differ inside brackets (``[!...]`` negates in fnmatch,
    ``[^...]`` in Redis) and in backslash handling (literal in fnmatch, an
    escape in Redis).  Returns ``None`` for a pattern that has no faithful
    translation.
    """
    out: list[str] = []
    i, n = 0, len(pattern)
    while i < n:
        c = pattern[i]
        i += 1
        if c in "*?":
            out.append(c)
        elif c == "[":
            # fnmatch: a leading "!" negates and a "]" right after the
            # opening (or the "!") is a literal member.
            j = i
            if j < n and pattern[j] == "!":
                j += 1
            if j < n and pattern[j] == "]":
                j += 1
            while j < n and pattern[j] != "]":
                j += 1
            if j >= n:
                # Unterminated class: fnmatch matches "[" literally.
                out.append("\\[")
                continue
            body = pattern[i:j]
            i = j + 1
            negate = body.startswith("!")
            if negate:
                body = body[1:]
            if not body:
                return None
            members = []
            last = len(body) - 1
            for k, m in enumerate(body):
                escaped = m in "\\]" or (m == "^" and k == 0)
                if escaped and "-" in (body[k - 1 : k] + body[k + 1 : k + 2]):
                    # A range bound Redis would read as an escape.
                    return None
                if escaped or (m == "-" and k in (0, last)):
                    members.append("\\" + m)
                else:
                    members.append(m)
            out.append("[" + ("^" if negate else "") + "".join(members) + "]")
        else:
            out.append(escape_glob(c))
    return "".join(out)


FilterLike = KeyFilter | str | Mapping[str, Any] | None


def parse_filter(value: FilterLike) -> KeyFilter | None:
    """Normalise *value* into a :class:`KeyFilter`, or ``None`` for "all keys".

    Raises:
        ValueError: If *value* cannot be interpreted as a filter.
    """
    if value is None:
        return None
    if isinstance(value, KeyFilter):
        return None if value.is_empty else value
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.startswith("{"):
            try:
                value = json.loads(text)
            except json.JSONDecodeError as exc:
                raise ValueError(f"filter is not valid JSON: {exc.msg}") from exc
        else:
            return KeyFilter(match=text)
    if not isinstance(value, Mapping):
        raise ValueError(f"filter must be a string or an object, got {type(value).__name__}")
    try:
        parsed = KeyFilter.model_validate(dict(value))
    except ValidationError as exc:
        raise ValueError(f"filter is not a valid key filter: {exc.errors()[0]['msg']}") from exc
    return None if parsed.is_empty else parsed
