from types import SimpleNamespace

import pytest
from flask import Flask, abort

from arena_api.api.errors import register_error_handlers


@pytest.fixture()
def flask_client():
    app = Flask(__name__)
    app.config["TESTING"] = True
    app.logger = SimpleNamespace(error=lambda *args, **kwargs: None)

    register_error_handlers(app)

    @app.route("/form/error")
    def form_error():
        abort(400, "invalid payload")

    @app.route("/api/crash")
    def api_crash():
        raise RuntimeError("boom")

    @app.route("/api/only-get")
    def only_get():
        return "ok"

    with app.test_client() as client:
        yield client


@pytest.mark.parametrize(
    "path,status,payload",
    [
        ("/form/error", 400, {"error": "Bad Request", "message": "invalid payload"}),
        ("/api/crash", 500, {"error": "Internal Server Error", "message": "An unexpected error occurred"}),
    ],
)
def test_errors_are_json(flask_client, path, status, payload):
    response = flask_client.get(path)

    assert response.status_code == status
    assert response.get_json() == payload


def test_method_not_allowed(flask_client):
    response = flask_client.post("/api/only-get")

    assert response.status_code == 405
    assert response.get_json()["error"] == "Method Not Allowed"


def test_unsupported_method_on_rest_routes(client):
    response = client.patch("/cust/rc/person/1")

    assert response.status_code == 405
    assert response.get_json()["error"] == "Method Not Allowed"
