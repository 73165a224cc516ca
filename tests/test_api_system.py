"""Version, route listing and login endpoints."""
from xml.etree import ElementTree as ET

import pytest

from arena_api.api.decorators import validate_api_session
from arena_api.core.arena.memory import DEMO_API_KEY

from tests.conftest import ALICE, BOB, DEMO_PASSWORD, TEST_SECRET_KEY


def _login(client, **form):
    return client.post("/cust/rc/login", query_string={"format": "json"}, data=form)


def test_version_json(client):
    response = client.get("/cust/rc/version", query_string={"format": "json"})

    assert response.status_code == 200
    assert response.get_json() == {"Number": "1.0.2"}


def test_version_xml_by_default(client):
    response = client.get("/version")

    assert response.content_type.startswith("application/xml")
    assert ET.fromstring(response.data).find("Number").text == "1.0.2"


def test_info_lists_templates(client):
    response = client.get("/cust/rc/info")
    lines = response.get_data(as_text=True).split("\n")

    assert response.status_code == 200
    assert response.content_type.startswith("text/plain")
    assert "cust/rc/person/{id}?fields={fields}" in lines
    assert "smgp/group/{id}/occurrence/update" in lines
    assert not any(" -> " in line for line in lines)


@pytest.mark.parametrize("show_log", ["1", "true", "Yes", "3"])
def test_info_with_registration_log(client, show_log):
    text = client.get("/info", query_string={"showLog": show_log}).get_data(as_text=True)

    assert "GET cust/rc/version -> arena_api.api.handlers.system.get_version" in text
    assert "POST login -> arena_api.api.handlers.system.post_login" in text


def test_system_version_requires_session(client, api_get):
    assert client.get("/cust/rc/sys/version", query_string={"format": "json"}).status_code == 401

    response = api_get("/cust/rc/sys/version")

    assert response.get_json() == {
        "ArenaVersion": "2009.2.100.1401",
        "DatabaseVersion": "2009.2.100.1401",
        "ApiVersion": "0.4",
    }


def test_unknown_route_is_404(api_get):
    response = api_get("/cust/rc/nothing/here")

    assert response.status_code == 404
    assert response.get_json() == {"StatusCode": 404, "Message": "No handler found for the requested resource."}


# ─────────────────────────────────────────────────────────────────────────────
# Login
# ─────────────────────────────────────────────────────────────────────────────
def test_login_with_username_opens_session(client):
    response = _login(client, api_key=DEMO_API_KEY, username="alice", password=DEMO_PASSWORD)

    assert response.status_code == 200
    payload = response.get_json()
    assert validate_api_session(payload["SessionID"], TEST_SECRET_KEY)["sub"] == str(ALICE)
    assert "DateExpires" in payload
    assert "DeviceKey" not in payload

    me = client.get("/cust/rc/me", query_string={"format": "json", "api_session": payload["SessionID"]})
    assert me.get_json()["FirstName"] == "Alice"


@pytest.mark.parametrize(
    "form,status,message",
    [
        ({"username": "alice", "password": DEMO_PASSWORD}, 400, "Parameter api_key is required."),
        ({"api_key": DEMO_API_KEY}, 400, "Parameter username or device_key is required."),
        ({"api_key": DEMO_API_KEY, "username": "alice"}, 400,
         "Parameter password is required for username authentication."),
        ({"api_key": "00000000-0000-0000-0000-000000000000", "username": "alice", "password": DEMO_PASSWORD},
         401, "Invalid api_key"),
        ({"api_key": DEMO_API_KEY, "username": "alice", "password": "wrong"}, 401, "Invalid username or password."),
        ({"api_key": "nope", "device_id": "phone-1", "device_key": "x"}, 401,
         "Invalid api_key for device key authentication."),
        ({"api_key": DEMO_API_KEY, "device_id": "phone-1", "device_key": "not-a-guid"}, 401,
         "Invalid device id/key pair."),
    ],
)
def test_login_failures(client, form, status, message):
    response = _login(client, **form)

    assert response.status_code == status
    assert response.get_json()["Message"] == message


def test_device_key_login_rotates_key(client, store):
    first = _login(client, api_key=DEMO_API_KEY, username="alice", password=DEMO_PASSWORD,
                   device_id="phone-1", device_name="Alice's phone").get_json()
    device_key = first["DeviceKey"]
    assert store.devices["phone-1"].person_id == ALICE

    second = _login(client, api_key=DEMO_API_KEY, device_id="phone-1", device_key=device_key)

    assert second.status_code == 200
    assert second.get_json()["DeviceKey"] != device_key
    assert validate_api_session(second.get_json()["SessionID"], TEST_SECRET_KEY)["sub"] == str(ALICE)

    reused = _login(client, api_key=DEMO_API_KEY, device_id="phone-1", device_key=device_key)
    assert reused.status_code == 401


def test_device_key_requires_matching_device_id(client):
    device_key = _login(client, api_key=DEMO_API_KEY, username="alice", password=DEMO_PASSWORD,
                        device_id="phone-1").get_json()["DeviceKey"]

    response = _login(client, api_key=DEMO_API_KEY, device_id="tablet-9", device_key=device_key)

    assert response.status_code == 401


def test_device_registered_by_someone_else_is_replaced(client, store):
    _login(client, api_key=DEMO_API_KEY, username="alice", password=DEMO_PASSWORD, device_id="shared")
    first_id = store.devices["shared"].auth_device_id

    _login(client, api_key=DEMO_API_KEY, username="carol", password=DEMO_PASSWORD, device_id="shared")

    assert store.devices["shared"].person_id == 3
    assert store.devices["shared"].auth_device_id != first_id


# ─────────────────────────────────────────────────────────────────────────────
# POST me
# ─────────────────────────────────────────────────────────────────────────────
def test_post_me_returns_authenticated_person(client):
    response = client.post(
        "/me",
        query_string={"format": "json", "fields": "FirstName"},
        data={"api_key": DEMO_API_KEY, "username": "alice", "password": DEMO_PASSWORD},
    )

    assert response.status_code == 200
    payload = response.get_json()
    assert payload["PersonID"] == ALICE
    assert payload["Emails"][0]["Address"] == "alice@example.org"


@pytest.mark.parametrize(
    "form,status,message",
    [
        ({}, 400, "Parameter api_key is required."),
        ({"api_key": "bad"}, 401, "Invalid api_key"),
        ({"api_key": DEMO_API_KEY, "username": "alice"}, 401, "Username and Password are required."),
        ({"api_key": DEMO_API_KEY, "username": "alice", "password": "nope"}, 401, "Unknown authentication error"),
    ],
)
def test_post_me_failures(client, form, status, message):
    response = client.post("/me", query_string={"format": "json"}, data=form)

    assert response.status_code == status
    assert response.get_json()["Message"] == message


def test_get_me_projects_caller(api_get):
    response = api_get("/cust/rc/me", person_id=BOB)

    assert response.get_json()["MedicalInformation"] == "Peanut allergy"
