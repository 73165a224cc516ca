"""Pytest shared fixtures for the REST facade."""
import os
import pathlib
import sys

# Add project root to Python path
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Configure test environment BEFORE any app imports
os.environ.setdefault("DEMO_MODE", "true")

import pytest
import requests

from arena_api.api.decorators import issue_api_session
from arena_api.config import AppConfig
from arena_api.core.arena import build_demo_store
from arena_api.flask_app import create_app

TEST_SECRET_KEY = "test-secret-key-for-api-sessions-0123456789"
DEMO_PASSWORD = "Temp123!"

ALICE = 1
BOB = 2
CAROL = 3


# ─────────────────────────────────────────────────────────────────────────────
# Network Guard Rails
# ─────────────────────────────────────────────────────────────────────────────
@pytest.fixture(autouse=True)
def _block_network(monkeypatch, request):
    """
    Prevent unit tests from reaching a live Arena data service.

    Integration tests are explicitly marked with @pytest.mark.integration and
    are allowed to perform real HTTP calls by skipping this fixture.
    """
    if request.node.get_closest_marker("integration"):
        return

    def _refuse(method):
        def _stub(url, *args, **kwargs):
            raise RuntimeError(f"Unexpected HTTP {method} in unit test: {url}")
        return _stub

    monkeypatch.setattr(requests, "get", _refuse("GET"))
    monkeypatch.setattr(requests, "post", _refuse("POST"))
    monkeypatch.setattr(requests, "put", _refuse("PUT"))


# ─────────────────────────────────────────────────────────────────────────────
# Application
# ─────────────────────────────────────────────────────────────────────────────
@pytest.fixture()
def app_config():
    return AppConfig(
        demo_mode=True,
        secret_key=TEST_SECRET_KEY,
        api_session_lifetime_minutes=60,
        blob_base_url="http://arena.test/",
        demo_password=DEMO_PASSWORD,
    )


@pytest.fixture()
def store():
    """Fresh seeded in-memory store per test."""
    return build_demo_store(1, DEMO_PASSWORD)


@pytest.fixture()
def app(app_config, store):
    flask_app = create_app(app_config, store=store)
    flask_app.config.update(TESTING=True)
    return flask_app


@pytest.fixture()
def client(app):
    with app.test_client() as client:
        yield client


# ─────────────────────────────────────────────────────────────────────────────
# API Session Helpers
# ─────────────────────────────────────────────────────────────────────────────
@pytest.fixture()
def session_for(store, app_config):
    """Return a callable issuing an api_session token for a seeded person id."""

    def _issue(person_id: int) -> str:
        token, _expires = issue_api_session(store.get_person(person_id), app_config.secret_key, 60)
        return token

    return _issue


@pytest.fixture()
def api_get(client, session_for):
    """GET as a seeded person, JSON format."""

    def _get(path: str, person_id: int = ALICE, **params):
        query = {"format": "json", **params}
        if person_id is not None:
            query["api_session"] = session_for(person_id)
        return client.get(path, query_string=query)

    return _get


@pytest.fixture()
def api_post(client, session_for):
    """POST a JSON body as a seeded person, JSON format."""

    def _post(path: str, payload=None, person_id: int = ALICE, **kwargs):
        query = {"format": "json"}
        if person_id is not None:
            query["api_session"] = session_for(person_id)
        if payload is not None:
            kwargs["json"] = payload
        return client.post(path, query_string=query, **kwargs)

    return _post
