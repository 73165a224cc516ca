from datetime import datetime, timedelta, timezone

import jwt
import pytest

from arena_api.api import decorators
from arena_api.core.arena import build_demo_store
from arena_api.core.arena import entities as arena
from arena_api.core.dispatcher import IncomingRequest
from arena_api.core.errors import AuthenticationError

SECRET = "unit-test-secret-key-with-enough-length-0123"


@pytest.fixture
def store():
    return build_demo_store()


def _token(store, person_id=1, minutes=5):
    token, _ = decorators.issue_api_session(store.get_person(person_id), SECRET, minutes)
    return token


def test_issue_and_validate_round_trip(store):
    token, expires = decorators.issue_api_session(store.get_person(1), SECRET, 30)

    claims = decorators.validate_api_session(token, SECRET)

    assert claims["sub"] == "1"
    assert claims["login"] == "alice"
    assert expires.tzinfo is None
    assert timedelta(minutes=29) < expires - datetime.now(timezone.utc).replace(tzinfo=None) <= timedelta(minutes=30)


def test_expired_session_rejected():
    now = datetime.now(timezone.utc)
    token = jwt.encode(
        {"sub": "1", "iat": now - timedelta(hours=2), "exp": now - timedelta(hours=1)},
        SECRET,
        algorithm="HS256",
    )

    with pytest.raises(decorators.SessionValidationError, match="expired"):
        decorators.validate_api_session(token, SECRET)


def test_tampered_session_rejected(store):
    token = _token(store)

    with pytest.raises(decorators.SessionValidationError, match="signature"):
        decorators.validate_api_session(token, "another-secret-key-of-sufficient-length-42")


def test_malformed_session_rejected():
    with pytest.raises(decorators.SessionValidationError, match="Malformed"):
        decorators.validate_api_session("not-a-token", SECRET)


def test_non_numeric_subject_rejected():
    now = datetime.now(timezone.utc)
    token = jwt.encode({"sub": "alice", "iat": now, "exp": now + timedelta(minutes=5)}, SECRET, algorithm="HS256")

    with pytest.raises(decorators.SessionValidationError, match="subject"):
        decorators.validate_api_session(token, SECRET)


def test_missing_required_claim_rejected():
    token = jwt.encode({"sub": "1"}, SECRET, algorithm="HS256")

    with pytest.raises(decorators.SessionValidationError, match="Invalid API session"):
        decorators.validate_api_session(token, SECRET)


@pytest.mark.parametrize(
    "query,headers,expected",
    [
        ({"api_session": "abc"}, {}, "abc"),
        ({"api_session": "abc"}, {"Authorization": "Bearer xyz"}, "abc"),
        ({}, {"Authorization": "Bearer xyz"}, "xyz"),
        ({"api_session": "  "}, {"Authorization": "Basic xyz"}, None),
        ({}, {"Authorization": "Bearer "}, None),
        ({}, {}, None),
    ],
)
def test_extract_session_token(query, headers, expected):
    assert decorators.extract_session_token(query, headers) == expected


def test_session_authenticator_resolves_person(store):
    authenticate = decorators.session_authenticator(SECRET)

    person = authenticate(IncomingRequest("GET", "/me", query={"api_session": _token(store, 3)}), store)

    assert person.person_id == 3


def test_session_authenticator_requires_token(store):
    authenticate = decorators.session_authenticator(SECRET)

    with pytest.raises(AuthenticationError, match="Authentication required"):
        authenticate(IncomingRequest("GET", "/me"), store)


def test_session_authenticator_rejects_unknown_person(store):
    token, _ = decorators.issue_api_session(arena.Person(person_id=999), SECRET, 5)
    authenticate = decorators.session_authenticator(SECRET)

    with pytest.raises(AuthenticationError, match="Invalid API session"):
        authenticate(IncomingRequest("GET", "/me", headers={"Authorization": f"Bearer {token}"}), store)

