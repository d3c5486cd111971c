# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Build a FastAPI router for a :class:`KeyValueModel` from the routing table.

Arguments are pulled from the request according to each route's
:class:`~kvmodel.api.routing.ArgSpec` list, coerced, and passed to the
model operation of the same name.  Contract errors are shaped into
``{"error": {"code", "message", "statusCode", "name"}}`` responses.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from fastapi import APIRouter
from starlette.datastructures import FormData
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from kvmodel.api.routing import (
    ROUTES,
    ArgSource,
    ArgSpec,
    ArgType,
    RouteContext,
    RouteSpec,
    registration_order,
)
from kvmodel.core import messages
from kvmodel.core.exceptions import KeyValueError
from kvmodel.model import KeyValueModel

logger = logging.getLogger("kvmodel.api.binding")

_MISSING = object()

_JSON_CONTENT_TYPE = "application/json"
_FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


def error_response(exc: KeyValueError) -> JSONResponse:
    """Shape a contract error into its HTTP response."""
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# ---------------------------------------------------------------------------
# Argument extraction
# ---------------------------------------------------------------------------


class _RequestArgs:
    """Lazily reads and caches the body of one request."""

    def __init__(self, request: Request, model: KeyValueModel, route: RouteSpec) -> None:
        self._request = request
        self._model = model
        self._route = route
        self._json: Any = _MISSING
        self._form: FormData | None = None

    def malformed(self, spec: ArgSpec, detail: str) -> KeyValueError:
        return self._model.invalid_argument(
            self._route.operation, messages.MALFORMED_ARGUMENT, arg=spec.name, detail=detail
        )

    def _is_json(self) -> bool:
        content_type = self._request.headers.get("content-type", "")
        return content_type.split(";")[0].strip().lower() == _JSON_CONTENT_TYPE

    async def json_body(self, spec: ArgSpec) -> Any:
        if self._json is _MISSING:
            raw = await self._request.body()
            if not raw.strip():
                return _MISSING
            try:
                self._json = json.loads(raw)
            except (json.JSONDecodeError, UnicodeDecodeError) as exc:
                raise self.malformed(spec, "request body is not valid JSON") from exc
        return self._json

    async def form_field(self, spec: ArgSpec) -> Any:
        # Form arguments also accept a JSON object body.
        if self._is_json():
            body = await self.json_body(spec)
            if isinstance(body, dict):
                return body.get(spec.name, _MISSING)
            return _MISSING
        if self._form is None:
            self._form = await self._request.form()
        value = self._form.get(spec.name)
        return _MISSING if value is None else value

    async def raw(self, spec: ArgSpec) -> Any:
        if spec.source is ArgSource.PATH:
            return self._request.path_params.get(spec.name, _MISSING)
        if spec.source is ArgSource.QUERY:
            return self._request.query_params.get(spec.name, _MISSING)
        if spec.source is ArgSource.BODY:
            return await self.json_body(spec)
        return await self.form_field(spec)

    def coerce(self, spec: ArgSpec, raw: Any) -> Any:
        if spec.type is ArgType.NUMBER:
            return self._to_number(spec, raw)
        if spec.type is ArgType.STRING:
            return str(raw)
        return raw

    def _to_number(self, spec: ArgSpec, raw: Any) -> int | float:
        if isinstance(raw, bool):
            raise self.malformed(spec, "expected a number")
        if isinstance(raw, int | float):
            number = raw
        else:
            text = str(raw).strip()
            try:
                number = int(text)
            except ValueError:
                try:
                    number = float(text)
                except ValueError:
                    raise self.malformed(spec, f"expected a number, got {text!r}") from None
        if isinstance(number, float) and number.is_integer():
            return int(number)
        return number

    async def extract(self) -> dict[str, Any]:
        args: dict[str, Any] = {}
        for spec in self._route.accepts:
            raw = await self.raw(spec)
            if raw is _MISSING or (spec.type is not ArgType.ANY and raw == ""):
                if spec.required:
                    raise self._model.invalid_argument(
                        self._route.operation, messages.MISSING_ARGUMENT, arg=spec.name
                    )
                args[spec.name] = None
                continue
            args[spec.name] = self.coerce(spec, raw)
        return args


# ---------------------------------------------------------------------------
# Router construction
# ---------------------------------------------------------------------------


def _openapi_extra(route: RouteSpec) -> dict[str, Any]:
    parameters = [
        {
            "name": spec.name,
            "in": spec.source.value,
            "required": spec.required,
            "description": spec.description,
            "schema": {"type": "integer" if spec.type is ArgType.NUMBER else "string"},
        }
        for spec in route.accepts
        if spec.source in (ArgSource.PATH, ArgSource.QUERY)
    ]
    extra: dict[str, Any] = {"parameters": parameters}
    body_specs = [s for s in route.accepts if s.source in (ArgSource.BODY, ArgSource.FORM)]
    if body_specs:
        spec = body_specs[0]
        if spec.source is ArgSource.BODY:
            content = {_JSON_CONTENT_TYPE: {"schema": {}}}
        else:
            content = {
                _FORM_CONTENT_TYPE: {
                    "schema": {
                        "type": "object",
                        "properties": {s.name: {"type": "integer"} for s in body_specs},
                        "required": [s.name for s in body_specs if s.required],
                    }
                }
            }
        extra["requestBody"] = {"required": spec.required, "content": content}
    return extra


def _make_endpoint(
    model: KeyValueModel, route: RouteSpec
) -> Callable[[Request], Awaitable[Response]]:
    operation = getattr(model, route.operation.value)

    async def endpoint(request: Request) -> Response:
        try:
            args = await _RequestArgs(request, model, route).extract()
            result = await operation(**args)
            if route.after is not None:
                ctx = RouteContext(model=model, route=route, args=args, result=result)
                result = route.after(ctx)
        except KeyValueError as exc:
            logger.debug("%s %s -> %s %s", route.verb, request.url.path, exc.status_code, exc.code)
            return error_response(exc)
        if route.returns:
            return JSONResponse(content=result)
        return Response(status_code=200)

    endpoint.__name__ = f"{model.name.lower()}_{route.operation.value}"
    return endpoint


def build_router(
    model: KeyValueModel, routes: tuple[RouteSpec, ...] = ROUTES
) -> APIRouter:
    """Return an :class:`APIRouter` exposing *model* according to *routes*."""
    router = APIRouter()
    for route in registration_order(routes):
        router.add_api_route(
            route.path,
            _make_endpoint(model, route),
            methods=[route.verb],
            summary=route.summary,
            name=f"{model.name}.{route.operation.value}",
            openapi_extra=_openapi_extra(route),
        )
    return router
