# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""User-facing error messages.

Messages are produced by a pure function over a template catalog.
Localisation is done by injecting a different :data:`MessageFormatter`
(for example a :class:`CatalogFormatter` with translated templates) into
the model, which the REST binding also renders through. Nothing here is
global or mutable.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from types import MappingProxyType
from typing import Any

from kvmodel.core.constants import ErrorKind

MessageFormatter = Callable[[str, Mapping[str, Any]], str]
"""Strategy turning ``(template_id, context)`` into a message string."""

# Template ids. Error kinds double as ids; the extra ones cover argument
# problems that share the INVALID_ARGUMENT kind.
EMPTY_KEY = "EMPTY_KEY"
INVALID_TTL = "INVALID_TTL"
MISSING_ARGUMENT = "MISSING_ARGUMENT"
MALFORMED_ARGUMENT = "MALFORMED_ARGUMENT"

DEFAULT_CATALOG: Mapping[str, str] = MappingProxyType(
    {
        ErrorKind.UNIMPLEMENTED: (
            "Cannot call {model}.{method}(). The {method} method has not been setup. "
            "The KeyValueModel has not been correctly attached to a DataSource!"
        ),
        ErrorKind.NOT_FOUND: 'Unknown "{model}" key "{key}".',
        ErrorKind.INVALID_ARGUMENT: "Invalid argument for {model}.{method}(): {detail}",
        ErrorKind.BACKEND_FAILURE: "{model}.{method}() failed in the backend: {detail}",
        EMPTY_KEY: "{model}.{method}() requires a non-empty key.",
        INVALID_TTL: (
            "{model}.{method}() requires ttl to be a non-negative integer number "
            "of milliseconds, got {ttl!r}."
        ),
        MISSING_ARGUMENT: "{model}.{method}() is missing required argument '{arg}'.",
        MALFORMED_ARGUMENT: "{model}.{method}() could not parse argument '{arg}': {detail}",
    }
)


class _MissingAware(dict[str, Any]):
    def __missing__(self, name: str) -> str:
        return "<" + name + ">"


def _render(template: str, context: Mapping[str, Any]) -> str:
    return template.format_map(_MissingAware(context))


def default_formatter(template_id: str, context: Mapping[str, Any]) -> str:
    """Render *template_id* from :data:`DEFAULT_CATALOG`."""
    return _render(DEFAULT_CATALOG[template_id], context)


class CatalogFormatter:
    """Formatter over a custom (e.g. translated) catalog.

    Templates missing from *catalog* fall back to :data:`DEFAULT_CATALOG`.
    """

    def __init__(self, catalog: Mapping[str, str]) -> None:
        self._catalog = dict(catalog)

    def __call__(self, template_id: str, context: Mapping[str, Any]) -> str:
        template = self._catalog.get(template_id)
        if template is None:
            template = DEFAULT_CATALOG[template_id]
        return _render(template, context)


def format_message(
    template_id: str,
    context: Mapping[str, Any],
    formatter: MessageFormatter | None = None,
) -> str:
    """Return the message for *template_id* rendered with *context*."""
    return (formatter or default_formatter)(template_id, context)
