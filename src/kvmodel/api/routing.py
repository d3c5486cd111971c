# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""REST routing table for the key-value model.

Each contract operation is described by a :class:`RouteSpec`: the HTTP
verb and path, where each argument comes from, and an optional ``after``
hook that shapes the operation result before it is serialised.  The table
is plain data; :func:`kvmodel.api.binding.build_router` turns it into a
FastAPI router at startup.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from kvmodel.core.constants import ABSENT, ABSENT_MARKER, NO_EXPIRATION, Operation

if TYPE_CHECKING:
    from kvmodel.model import KeyValueModel


class ArgSource(StrEnum):
    PATH = "path"
    QUERY = "query"
    BODY = "body"
    FORM = "form"


class ArgType(StrEnum):
    STRING = "string"
    NUMBER = "number"
    OBJECT = "object"
    ANY = "any"


@dataclass(frozen=True)
class ArgSpec:
    """One accepted argument of a route."""

    name: str
    type: ArgType
    source: ArgSource
    required: bool = False
    description: str = ""


@dataclass
class RouteContext:
    """State handed to ``after`` hooks."""

    model: KeyValueModel
    route: RouteSpec
    args: dict[str, Any]
    result: Any = None


AfterHook = Callable[[RouteContext], Any]


@dataclass(frozen=True)
class RouteSpec:
    operation: Operation
    verb: str
    path: str
    accepts: tuple[ArgSpec, ...] = ()
    returns: bool = False
    after: AfterHook | None = None
    summary: str = ""

    @property
    def has_path_params(self) -> bool:
        return "{" in self.path


# ---------------------------------------------------------------------------
# Result hooks
# ---------------------------------------------------------------------------


def convert_absent_to_not_found(ctx: RouteContext) -> Any:
    """Turn an ``ABSENT`` lookup into a 404 ``KEY_NOT_FOUND`` error."""
    if ctx.result is ABSENT:
        raise ctx.model.not_found(ctx.args["key"], ctx.route.operation)
    return ctx.result


def serialize_ttl(ctx: RouteContext) -> Any:
    """``NO_EXPIRATION`` becomes ``null``; ``ABSENT`` becomes ``"ABSENT"``."""
    if ctx.result is NO_EXPIRATION:
        return None
    if ctx.result is ABSENT:
        return ABSENT_MARKER
    return ctx.result


# ---------------------------------------------------------------------------
# Table
# ---------------------------------------------------------------------------

_KEY = ArgSpec("key", ArgType.STRING, ArgSource.PATH, required=True)

ROUTES: tuple[RouteSpec, ...] = (
    RouteSpec(
        operation=Operation.GET,
        verb="GET",
        path="/{key}",
        accepts=(_KEY,),
        returns=True,
        after=convert_absent_to_not_found,
        summary="Return the value for a given key.",
    ),
    RouteSpec(
        operation=Operation.SET,
        verb="PUT",
        path="/{key}",
        accepts=(
            _KEY,
            ArgSpec("value", ArgType.ANY, ArgSource.BODY, required=True),
            ArgSpec(
                "ttl",
                ArgType.NUMBER,
                ArgSource.QUERY,
                description="time to live in milliseconds",
            ),
        ),
        summary="Persist a value using a given key.",
    ),
    RouteSpec(
        operation=Operation.EXPIRE,
        verb="PUT",
        path="/{key}/expire",
        accepts=(
            _KEY,
            ArgSpec(
                "ttl",
                ArgType.NUMBER,
                ArgSource.FORM,
                required=True,
                description="time to live in milliseconds",
            ),
        ),
        summary="Set the TTL (time to live) in milliseconds for a given key.",
    ),
    RouteSpec(
        operation=Operation.TTL,
        verb="GET",
        path="/{key}/ttl",
        accepts=(_KEY,),
        returns=True,
        after=serialize_ttl,
        summary="Return the TTL (time to live) in milliseconds for a given key.",
    ),
    RouteSpec(
        operation=Operation.KEYS,
        verb="GET",
        path="/keys",
        accepts=(ArgSpec("filter", ArgType.OBJECT, ArgSource.QUERY),),
        returns=True,
        summary="Return all keys for a given filter.",
    ),
)


def registration_order(routes: tuple[RouteSpec, ...] = ROUTES) -> list[RouteSpec]:
    """Literal paths first so ``GET /keys`` is not captured by ``GET /{key}``."""
    return sorted(routes, key=lambda r: r.has_path_params)
