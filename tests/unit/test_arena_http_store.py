"""HttpArenaStore against a stubbed Arena data service."""
import json
from datetime import datetime, time
from uuid import UUID

import pytest
import requests

from arena_api.core.arena import ArenaAPIError, ArenaClient, HttpArenaStore
from arena_api.core.arena import entities as arena
from arena_api.core.arena.http_store import from_record, to_record

BASE_URL = "http://arena-data.test"


class _StubResponse:
    def __init__(self, url: str, payload=None, status_code: int = 200):
        self.url = url
        self._payload = payload
        self.status_code = status_code
        self.text = json.dumps(payload)

    def json(self):
        return self._payload


class FakeService:
    """Records calls and answers from a path -> (status, payload) table."""

    def __init__(self):
        self.routes = {}
        self.calls = []
        self.token_requests = 0

    def _answer(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        if url == f"{BASE_URL}/oauth/token":
            self.token_requests += 1
            return _StubResponse(url, {"access_token": "service-token", "expires_in": 300})
        status, payload = self.routes.get((method, url[len(BASE_URL):]), (404, {"error": "not found"}))
        return _StubResponse(url, payload, status)

    def install(self, monkeypatch):
        monkeypatch.setattr(requests, "get", lambda url, **kw: self._answer("GET", url, **kw))
        monkeypatch.setattr(requests, "post", lambda url, **kw: self._answer("POST", url, **kw))
        monkeypatch.setattr(requests, "put", lambda url, **kw: self._answer("PUT", url, **kw))


@pytest.fixture
def service(monkeypatch):
    fake = FakeService()
    fake.install(monkeypatch)
    return fake


@pytest.fixture
def store(service):
    client = ArenaClient(BASE_URL + "/")
    client.authenticate_service_account("arena-facade", "secret")
    return HttpArenaStore(client)


def test_records_decode_into_entities():
    group = from_record(arena.Group, {
        "group_id": 50,
        "name": "Tuesday",
        "meeting_day": {"lookup_id": 2, "value": "Tuesday"},
        "meeting_start_time": "19:00:00",
        "picture_guid": "2f5c1a1e-8f55-4e1f-9a51-1d1b6f0c7a01",
        "members": [{"person_id": 3, "full_name": "Carol Chen"}],
        "unknown_key": "ignored",
        "notes": None,
    })

    assert group.meeting_day == arena.LookupValue(2, "Tuesday")
    assert group.meeting_start_time == time(19, 0)
    assert group.picture_guid == UUID("2f5c1a1e-8f55-4e1f-9a51-1d1b6f0c7a01")
    assert group.members[0].full_name == "Carol Chen"
    assert group.notes == ""


def test_to_record_serializes_dates():
    record = to_record(arena.GroupOccurrence(group_id=50, start=datetime(2026, 9, 1, 19)))

    assert record["start"] == "2026-09-01T19:00:00"
    assert record["occurrence_id"] == arena.NOT_FOUND


def test_get_person_sends_bearer_token(store, service):
    service.routes[("GET", "/people/1")] = (200, {"person_id": 1, "first_name": "Alice", "birth_date": "1980-04-12T00:00:00"})

    person = store.get_person(1)

    assert person.first_name == "Alice"
    assert person.birth_date == datetime(1980, 4, 12)
    method, url, kwargs = service.calls[-1]
    assert kwargs["headers"]["Authorization"] == "Bearer service-token"
    assert kwargs["timeout"] == 5


def test_missing_record_becomes_not_found_sentinel(store):
    person = store.get_person(404)

    assert person.person_id == arena.NOT_FOUND


def test_server_error_propagates(store, service):
    service.routes[("GET", "/profiles/1")] = (500, {"error": "boom"})

    with pytest.raises(ArenaAPIError) as exc:
        store.get_profile(1)

    assert exc.value.status_code == 500


def test_list_endpoints_pass_query_params(store, service):
    service.routes[("GET", "/smallgroups/groups")] = (200, [{"group_id": 50, "leader_id": 3}])

    groups = store.groups_led_by(3)

    assert [g.group_id for g in groups] == [50]
    assert service.calls[-1][2]["params"] == {"leader_id": 3}


def test_save_uses_post_for_new_and_put_for_existing(store, service):
    service.routes[("POST", "/smallgroups/occurrences")] = (200, {"occurrence_id": 77, "group_id": 50})
    service.routes[("PUT", "/smallgroups/occurrences/77")] = (200, {"occurrence_id": 77, "group_id": 50})

    created = store.save_occurrence(arena.GroupOccurrence(group_id=50), "alice")
    updated = store.save_occurrence(created, "alice")

    assert created.occurrence_id == 77
    assert updated.occurrence_id == 77
    assert [call[0] for call in service.calls[-2:]] == ["POST", "PUT"]
    assert service.calls[-1][2]["json"]["user"] == "alice"


def test_failed_authentication_is_empty_person(store):
    assert store.authenticate("alice", "wrong").person_id == arena.NOT_FOUND


def test_client_requires_service_account():
    client = ArenaClient(BASE_URL)

    with pytest.raises(ArenaAPIError) as exc:
        client.get("/people/1")

    assert exc.value.status_code == 401


def test_token_is_reused_until_expiry(store, service):
    service.routes[("GET", "/system/version")] = (200, {"arena_version": "2009.2", "database_version": "2009.2"})

    assert store.version_info() == ("2009.2", "2009.2")
    assert store.version_info() == ("2009.2", "2009.2")
    assert service.token_requests == 1
