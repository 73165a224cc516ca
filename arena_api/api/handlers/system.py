"""System endpoints: version, route listing and session login."""
from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import BinaryIO

from arena_api.api.decorators import issue_api_session
from arena_api.api.handlers.people import project_person
from arena_api.core import contracts
from arena_api.core.arena import is_missing
from arena_api.core.arena import entities as arena
from arena_api.core.dispatcher import RawResponse, RequestContext
from arena_api.core.errors import AuthenticationError, BadRequestError
from arena_api.core.routing import RouteGroup
from arena_api.core.serialization import parse_form

logger = logging.getLogger(__name__)

API_VERSION = "1.0.2"

routes = RouteGroup()


@routes.get("version", anonymous=True)
def get_version():
    return contracts.Version(API_VERSION)


@routes.get("info?showLog={showLog}", anonymous=True)
def get_info(ctx: RequestContext, show_log: bool = False):
    """Plain-text listing of every registered template.

    With a truthy ``showLog`` ("true", "yes" or a positive number) the
    registration log (method and handler of each route) follows the listing.
    """
    entries = ctx.table.entries if ctx.table is not None else ()
    lines = [entry.template for entry in entries]
    lines.append("")
    if show_log:
        for entry in entries:
            handler = f"{entry.handler.__module__}.{entry.handler.__name__}"
            lines.append(f"{entry.method} {entry.template} -> {handler}")
        lines.append("")
    return RawResponse("\n".join(lines).encode("utf-8"), "text/plain; charset=utf-8")


@routes.get("sys/version")
def get_system_version(ctx: RequestContext):
    arena_version, database_version = ctx.store.version_info()
    return contracts.SystemVersion(arena_version, database_version)


# ─────────────────────────────────────────────────────────────────────────────
# Login
# ─────────────────────────────────────────────────────────────────────────────
def _require_application(ctx: RequestContext, api_key: str, message: str) -> arena.ApiApplication:
    application = ctx.store.get_api_application(api_key)
    if is_missing(application.application_id):
        raise AuthenticationError(message)
    return application


def _register_device(ctx: RequestContext, person: arena.Person, form: dict[str, str], username: str) -> arena.Device:
    """Register (or re-key) the device a user just logged in from."""
    device = ctx.store.get_device(form["device_id"])
    if not is_missing(device.auth_device_id) and device.person_id != person.person_id:
        logger.info("Device %s re-registered to person %s", form["device_id"], person.person_id)
        device = arena.Device()
    device.person_id = person.person_id
    device.device_id = form["device_id"]
    device.device_name = form.get("device_name", "")
    device.device_key = uuid.uuid4()
    device.login_id = username
    device.last_login = datetime.now()
    device.active = True
    return ctx.store.save_device(device, username)


def _login_with_device(ctx: RequestContext, form: dict[str, str]) -> tuple[arena.Person, arena.Device]:
    try:
        device_key = uuid.UUID(form["device_key"].strip())
    except ValueError:
        raise AuthenticationError("Invalid device id/key pair.")

    device = ctx.store.get_device_by_key(str(device_key))
    if not device.active or is_missing(device.auth_device_id) or device.device_id != form.get("device_id", ""):
        raise AuthenticationError("Invalid device id/key pair.")

    person = ctx.store.get_person(device.person_id)
    if is_missing(person.person_id):
        raise AuthenticationError("Invalid device id/key pair.")

    device.last_login = datetime.now()
    device.device_key = uuid.uuid4()
    return person, ctx.store.save_device(device, device.login_id)


@routes.post("login", anonymous=True)
def post_login(ctx: RequestContext, body: BinaryIO):
    """Open an API session from a form body.

    Either ``username`` + ``password`` (optionally registering ``device_id``)
    or a ``device_id`` + ``device_key`` pair from an earlier login. Device
    keys are single use: every login hands back a fresh one.
    """
    form = parse_form(body) if body is not None else {}
    api_key = form.get("api_key", "").strip()
    if not api_key:
        raise BadRequestError("Parameter api_key is required.")

    username = form.get("username", "").strip()
    device = None
    if username:
        if not form.get("password"):
            raise BadRequestError("Parameter password is required for username authentication.")
        _require_application(ctx, api_key, "Invalid api_key")
        person = ctx.store.authenticate(username, form["password"])
        if is_missing(person.person_id):
            logger.warning("Failed login for %s", username)
            raise AuthenticationError("Invalid username or password.")
        if form.get("device_id"):
            device = _register_device(ctx, person, form, username)
    elif form.get("device_key"):
        _require_application(ctx, api_key, "Invalid api_key for device key authentication.")
        person, device = _login_with_device(ctx, form)
    else:
        raise BadRequestError("Parameter username or device_key is required.")

    cfg = ctx.config
    token, expires = issue_api_session(person, cfg.secret_key, cfg.api_session_lifetime_minutes)
    logger.info("API session opened for person %s", person.person_id)
    return contracts.ApiSession(
        session_id=token,
        date_expires=expires,
        device_key=device.device_key if device is not None else None,
    )


@routes.post("me?fields={fields}", anonymous=True)
def post_me(ctx: RequestContext, body: BinaryIO, fields: list[str] = None):
    """Authenticate with api_key/username/password and return that person."""
    form = parse_form(body) if body is not None else {}
    api_key = form.get("api_key", "").strip()
    if not api_key:
        raise BadRequestError("Parameter api_key is required.")
    _require_application(ctx, api_key, "Invalid api_key")

    username = form.get("username", "").strip()
    if not username or not form.get("password"):
        raise AuthenticationError("Username and Password are required.")
    person = ctx.store.authenticate(username, form["password"])
    if is_missing(person.person_id):
        raise AuthenticationError("Unknown authentication error")

    ctx.caller = person
    return project_person(ctx, person, person, fields)
