import io
import json
from datetime import datetime
from types import SimpleNamespace
from typing import BinaryIO, Optional

import pytest

from arena_api.core import contracts
from arena_api.core.arena import BlobUrlBuilder, build_demo_store
from arena_api.core.dispatcher import (
    NO_HANDLER_MESSAGE,
    UNEXPECTED_MESSAGE,
    Dispatcher,
    IncomingRequest,
    RawResponse,
    RequestContext,
    Services,
    bind_parameters,
    coerce,
    negotiate_format,
    normalize_name,
)
from arena_api.core.errors import AuthenticationError, BadRequestError, NotFoundError
from arena_api.core.rbac import StorePermissionOracle
from arena_api.core.routing import RouteTable


@pytest.fixture
def services():
    store = build_demo_store()
    return Services(
        store=store,
        oracle=StorePermissionOracle(store, 1),
        blobs=BlobUrlBuilder("http://arena.test/"),
        policies={},
        config=SimpleNamespace(organization_id=1),
    )


def _authenticate(incoming, store):
    if incoming.query.get("api_session") != "valid":
        raise AuthenticationError("Authentication required.")
    return store.get_person(1)


def _dispatcher(services, *routes):
    table = RouteTable()
    for method, template, handler, anonymous in routes:
        table.register(method, template, handler, anonymous)
    return Dispatcher(table, services, _authenticate)


def _json(result):
    return json.loads(result.body)


def get_thing(ctx: RequestContext, id: int, fields: list[str] = None):
    return contracts.GenericReference(id, ",".join(fields or []) or ctx.user_name)


def test_normalize_name_matches_case_and_underscores():
    assert normalize_name("profile_id") == normalize_name("profileID") == normalize_name("ProfileId")


@pytest.mark.parametrize(
    "value,target,expected",
    [
        ("42", int, 42),
        ("true", bool, True),
        ("0", bool, False),
        ("2", bool, True),
        ("-1", bool, False),
        ("20260901190000", datetime, datetime(2026, 9, 1, 19, 0)),
        ("2026-09-01T19:00:00", Optional[datetime], datetime(2026, 9, 1, 19, 0)),
        ("a, b,,c", list[str], ["a", "b", "c"]),
        ("plain", str, "plain"),
    ],
)
def test_coerce(value, target, expected):
    assert coerce(value, target, "param") == expected


def test_coerce_failure_is_bad_request():
    with pytest.raises(BadRequestError) as exc:
        coerce("abc", int, "id")

    assert exc.value.message == "Invalid value for parameter 'id'."


def test_coerce_rejects_unknown_bool_words():
    with pytest.raises(BadRequestError):
        coerce("maybe", bool, "showLog")


def test_bind_parameters_reads_path_then_query_then_defaults(services):
    def handler(ctx: RequestContext, profile_id: int, start: int = 0, max: int = 25, status_id: Optional[int] = None):
        return None

    request = IncomingRequest("GET", "/x", query={"start": "10", "statusid": ""})
    ctx = RequestContext(services, request)

    bound = bind_parameters(handler, {"profileID": "7"}, ctx)

    assert bound == {"ctx": ctx, "profile_id": 7, "start": 10, "max": 25, "status_id": None}


def test_bind_parameters_hands_body_to_binary_parameter(services):
    def handler(body: BinaryIO):
        return None

    stream = io.BytesIO(b"payload")
    ctx = RequestContext(services, IncomingRequest("POST", "/x", body=stream))

    assert bind_parameters(handler, {}, ctx) == {"body": stream}


@pytest.mark.parametrize(
    "query,headers,expected",
    [
        ({"format": "json"}, {}, "json"),
        ({"format": "XML"}, {"Accept": "application/json"}, "xml"),
        ({}, {"Accept": "application/json"}, "json"),
        ({}, {"Accept": "application/xml, application/json"}, "xml"),
        ({}, {}, "xml"),
    ],
)
def test_negotiate_format(query, headers, expected):
    assert negotiate_format(query, headers) == expected


def test_dispatch_binds_and_serializes_json(services):
    dispatcher = _dispatcher(services, ("GET", "thing/{id}", get_thing, False))

    result = dispatcher.dispatch(IncomingRequest(
        "GET", "/thing/9", query={"format": "json", "api_session": "valid", "fields": "a,b"},
    ))

    assert result.status == 200
    assert result.content_type == "application/json"
    assert _json(result) == {"ID": 9, "Title": "a,b"}


def test_dispatch_defaults_to_xml(services):
    dispatcher = _dispatcher(services, ("GET", "thing/{id}", get_thing, False))

    result = dispatcher.dispatch(IncomingRequest("GET", "/thing/9", query={"api_session": "valid"}))

    assert result.content_type == "application/xml"
    assert b"<GenericReference>" in result.body
    assert b"<Title>alice</Title>" in result.body


def test_dispatch_without_session_is_401(services):
    dispatcher = _dispatcher(services, ("GET", "thing/{id}", get_thing, False))

    result = dispatcher.dispatch(IncomingRequest("GET", "/thing/9", query={"format": "json"}))

    assert result.status == 401
    assert _json(result) == {"StatusCode": 401, "Message": "Authentication required."}


def test_dispatch_anonymous_route_skips_authentication(services):
    dispatcher = _dispatcher(services, ("GET", "thing/{id}", get_thing, True))

    result = dispatcher.dispatch(IncomingRequest("GET", "/thing/9", query={"format": "json"}))

    assert result.status == 200
    assert _json(result)["Title"] == "RestApi"


def test_dispatch_unknown_route_is_404(services):
    dispatcher = _dispatcher(services)

    result = dispatcher.dispatch(IncomingRequest("GET", "/nowhere", query={"format": "json"}))

    assert result.status == 404
    assert _json(result)["Message"] == NO_HANDLER_MESSAGE


def test_dispatch_coercion_failure_is_400(services):
    dispatcher = _dispatcher(services, ("GET", "thing/{id}", get_thing, True))

    result = dispatcher.dispatch(IncomingRequest("GET", "/thing/abc", query={"format": "json"}))

    assert result.status == 400
    assert _json(result)["Message"] == "Invalid value for parameter 'id'."


def test_dispatch_api_error_keeps_status_and_message(services):
    def missing():
        raise NotFoundError("Invalid profile ID")

    dispatcher = _dispatcher(services, ("GET", "missing", missing, True))

    result = dispatcher.dispatch(IncomingRequest("GET", "/missing", query={"format": "json"}))

    assert result.status == 404
    assert _json(result)["Message"] == "Invalid profile ID"


def test_dispatch_unexpected_error_is_generic_500(services):
    def explode():
        raise RuntimeError("database password is hunter2")

    dispatcher = _dispatcher(services, ("GET", "explode", explode, True))

    result = dispatcher.dispatch(IncomingRequest("GET", "/explode", query={"format": "json"}))

    assert result.status == 500
    assert _json(result)["Message"] == UNEXPECTED_MESSAGE
    assert b"hunter2" not in result.body


def test_dispatch_raw_response_passes_through(services):
    def text():
        return RawResponse(b"hello", "text/plain")

    dispatcher = _dispatcher(services, ("GET", "text", text, True))

    result = dispatcher.dispatch(IncomingRequest("GET", "/text", query={"format": "json"}))

    assert (result.status, result.body, result.content_type) == (200, b"hello", "text/plain")


def test_dispatch_streams_file_like_results(services):
    def download():
        return io.BytesIO(b"x" * 10)

    dispatcher = _dispatcher(services, ("GET", "download", download, True))

    result = dispatcher.dispatch(IncomingRequest("GET", "/download"))

    assert result.content_type == "application/octet-stream"
    assert b"".join(result.body) == b"x" * 10


def test_request_context_loads_led_groups_once(services, monkeypatch):
    calls = []
    original = services.store.groups_led_by

    def counting(person_id):
        calls.append(person_id)
        return original(person_id)

    monkeypatch.setattr(services.store, "groups_led_by", counting)
    ctx = RequestContext(services, IncomingRequest("GET", "/"), caller=services.store.get_person(3))

    assert [g.group_id for g in ctx.led_groups()] == [50]
    assert [g.group_id for g in ctx.led_groups()] == [50]
    assert calls == [3]
