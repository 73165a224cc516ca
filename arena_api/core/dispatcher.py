"""Request dispatch: route resolution, parameter binding, auth and response writing.

The dispatcher is framework-neutral. The Flask catch-all view turns a
``flask.Request`` into an IncomingRequest, calls ``Dispatcher.dispatch`` and
copies the DispatchResult into a Flask response. ``dispatch`` never raises:
ApiError subclasses become their own status, anything else a generic 500.
"""
from __future__ import annotations

import inspect
import logging
import typing
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import TYPE_CHECKING, Any, BinaryIO, Callable, Iterable, Mapping, Optional, Union
from uuid import UUID

from arena_api.core.arena import ArenaStore, BlobUrlBuilder
from arena_api.core.arena import entities as arena
from arena_api.core.contracts import RestErrorMessage, is_contract
from arena_api.core.errors import ApiError, BadRequestError, NotFoundError
from arena_api.core.rbac import PermissionOracle
from arena_api.core.routing import RouteTable
from arena_api.core.serialization import parse_datetime, render
from arena_api.core.visibility import VisibilityPolicy

if TYPE_CHECKING:
    from arena_api.config.settings import AppConfig

logger = logging.getLogger(__name__)

NO_HANDLER_MESSAGE = "No handler found for the requested resource."
UNEXPECTED_MESSAGE = "An unexpected error occurred"
OCTET_STREAM = "application/octet-stream"
STREAM_CHUNK_SIZE = 64 * 1024

_TRUE = {"true", "1", "yes"}
_FALSE = {"false", "0", "no"}


# ─────────────────────────────────────────────────────────────────────────────
# Request / response shapes
# ─────────────────────────────────────────────────────────────────────────────
@dataclass
class IncomingRequest:
    method: str
    path: str
    query: Mapping[str, str] = field(default_factory=dict)
    headers: Mapping[str, str] = field(default_factory=dict)
    body: Optional[BinaryIO] = None
    content_type: Optional[str] = None


@dataclass
class RawResponse:
    """Handler result streamed verbatim instead of serialized."""

    body: Union[bytes, BinaryIO, Iterable[bytes]]
    content_type: str = OCTET_STREAM


@dataclass
class DispatchResult:
    status: int
    body: Union[bytes, Iterable[bytes]]
    content_type: str


@dataclass
class Services:
    """Startup-time collaborators shared by every request."""

    store: ArenaStore
    oracle: PermissionOracle
    blobs: BlobUrlBuilder
    policies: dict[str, VisibilityPolicy]
    config: "AppConfig"


@dataclass
class RequestContext:
    """Per-request view handed to handlers that declare it."""

    services: Services
    request: IncomingRequest
    caller: Optional[arena.Person] = None
    table: Optional[RouteTable] = None
    _led_groups: Optional[list[arena.Group]] = field(default=None, repr=False)

    @property
    def store(self) -> ArenaStore:
        return self.services.store

    @property
    def oracle(self) -> PermissionOracle:
        return self.services.oracle

    @property
    def blobs(self) -> BlobUrlBuilder:
        return self.services.blobs

    @property
    def config(self) -> "AppConfig":
        return self.services.config

    @property
    def organization_id(self) -> int:
        return self.services.config.organization_id

    @property
    def caller_id(self) -> int:
        return self.caller.person_id if self.caller is not None else arena.NOT_FOUND

    @property
    def user_name(self) -> str:
        """Name recorded on writes."""
        if self.caller is not None and self.caller.login_id:
            return self.caller.login_id
        return "RestApi"

    def led_groups(self) -> list[arena.Group]:
        """Groups the caller leads, loaded once per request."""
        if self._led_groups is None:
            self._led_groups = self.store.groups_led_by(self.caller_id) if self.caller is not None else []
        return self._led_groups


Authenticator = Callable[[IncomingRequest, ArenaStore], arena.Person]


# ─────────────────────────────────────────────────────────────────────────────
# Parameter binding
# ─────────────────────────────────────────────────────────────────────────────
def normalize_name(name: str) -> str:
    """``profile_id``, ``profileID`` and ``ProfileId`` all normalize alike."""
    return name.replace("_", "").lower()


def _unwrap_optional(tp: Any) -> Any:
    if typing.get_origin(tp) is Union:
        args = [arg for arg in typing.get_args(tp) if arg is not type(None)]
        if len(args) == 1:
            return args[0]
    return tp


def coerce(value: str, target: Any, name: str) -> Any:
    """Convert a path/query string to a handler parameter type.

    Raises:
        BadRequestError: If the value cannot be converted
    """
    target = _unwrap_optional(target)
    try:
        if target is int:
            return int(value)
        if target is bool:
            lowered = value.strip().lower()
            if lowered in _TRUE:
                return True
            if lowered in _FALSE:
                return False
            return int(lowered) > 0
        if target is datetime:
            return parse_datetime(value)
        if target is date:
            return date.fromisoformat(value.strip())
        if target is UUID:
            return UUID(value)
        if typing.get_origin(target) is list or target is list:
            return [item.strip() for item in value.split(",") if item.strip()]
    except ValueError as exc:
        raise BadRequestError(f"Invalid value for parameter '{name}'.") from exc
    return value


def bind_parameters(handler: Callable, captures: Mapping[str, str], ctx: RequestContext) -> dict[str, Any]:
    """Build handler keyword arguments for one request."""
    hints = typing.get_type_hints(handler)
    path_values = {normalize_name(key): value for key, value in captures.items()}
    query_values = {normalize_name(key): value for key, value in ctx.request.query.items()}

    bound: dict[str, Any] = {}
    for name, param in inspect.signature(handler).parameters.items():
        annotation = _unwrap_optional(hints.get(name, str))
        key = normalize_name(name)
        if annotation is BinaryIO:
            bound[name] = ctx.request.body
        elif annotation is RequestContext:
            bound[name] = ctx
        elif key in path_values:
            bound[name] = coerce(path_values[key], annotation, name)
        elif query_values.get(key):
            bound[name] = coerce(query_values[key], annotation, name)
        elif param.default is not inspect.Parameter.empty:
            bound[name] = param.default
        else:
            bound[name] = None
    return bound


def negotiate_format(query: Mapping[str, str], headers: Mapping[str, str]) -> str:
    """``format`` query key first, then the Accept header; XML by default."""
    requested = (query.get("format") or "").strip().lower()
    if requested in ("json", "xml"):
        return requested
    accept = (headers.get("Accept") or "").lower()
    if "json" in accept and "xml" not in accept:
        return "json"
    return "xml"


def _stream(body: Any) -> Iterable[bytes]:
    while True:
        chunk = body.read(STREAM_CHUNK_SIZE)
        if not chunk:
            break
        yield chunk


# ─────────────────────────────────────────────────────────────────────────────
# Dispatcher
# ─────────────────────────────────────────────────────────────────────────────
class Dispatcher:
    """Routes IncomingRequests to registered handlers."""

    def __init__(self, table: RouteTable, services: Services, authenticate: Authenticator):
        self.table = table
        self.services = services
        self.authenticate = authenticate

    def dispatch(self, request: IncomingRequest) -> DispatchResult:
        fmt = negotiate_format(request.query, request.headers)
        try:
            result = self._invoke(request, fmt)
        except ApiError as exc:
            logger.info("%s %s -> %s %s", request.method, request.path, exc.status, exc.message)
            result = self._error(exc.status, exc.message, fmt)
        except Exception:
            logger.error("Unhandled error dispatching %s %s", request.method, request.path, exc_info=True)
            result = self._error(500, UNEXPECTED_MESSAGE, fmt)
        else:
            logger.info("%s %s -> %s", request.method, request.path, result.status)
        return result

    def _invoke(self, request: IncomingRequest, fmt: str) -> DispatchResult:
        match = self.table.resolve(request.method, request.path)
        if match is None:
            raise NotFoundError(NO_HANDLER_MESSAGE)

        ctx = RequestContext(self.services, request, table=self.table)
        if not match.entry.anonymous:
            ctx.caller = self.authenticate(request, self.services.store)

        kwargs = bind_parameters(match.entry.handler, match.captures, ctx)
        return self._write(match.entry.handler(**kwargs), fmt)

    def _write(self, result: Any, fmt: str) -> DispatchResult:
        content_type = OCTET_STREAM
        if isinstance(result, RawResponse):
            content_type = result.content_type
            result = result.body

        if isinstance(result, (bytes, bytearray, memoryview)):
            return DispatchResult(200, bytes(result), content_type)
        if hasattr(result, "read"):
            return DispatchResult(200, _stream(result), content_type)
        if is_contract(result):
            body, mimetype = render(result, fmt)
            return DispatchResult(200, body, mimetype)
        if isinstance(result, Iterable):
            return DispatchResult(200, result, content_type)
        raise TypeError(f"Handler returned unsupported result {type(result).__name__}")

    @staticmethod
    def _error(status: int, message: str, fmt: str) -> DispatchResult:
        body, mimetype = render(RestErrorMessage(status, message), fmt)
        return DispatchResult(status, body, mimetype)
