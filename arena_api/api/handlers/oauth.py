"""OAuth client and user-authorization endpoints."""
from __future__ import annotations

import hmac
import logging
from typing import BinaryIO, Optional
from uuid import UUID

from arena_api.core import contracts
from arena_api.core.arena import is_missing
from arena_api.core.arena import entities as arena
from arena_api.core.dispatcher import RequestContext
from arena_api.core.errors import AccessDeniedError, NotFoundError
from arena_api.core.mappers import oauth as oauth_mapper
from arena_api.core.paging import full_list
from arena_api.core.rbac import authorization_editable
from arena_api.core.routing import RouteGroup
from arena_api.core.serialization import parse_body

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS_MESSAGE = "Invalid API Key/Secret Combination."

routes = RouteGroup()


def parse_guid(value: Optional[str]) -> Optional[UUID]:
    """Lenient GUID parse: anything unparseable is treated as no key."""
    try:
        return UUID((value or "").strip())
    except ValueError:
        return None


def _client_by_key(ctx: RequestContext, api_key: Optional[str]) -> arena.OAuthClient:
    guid = parse_guid(api_key)
    if guid is None:
        return arena.OAuthClient()
    return ctx.store.get_client_by_key(str(guid))


@routes.get("oauth/clientbyid?id={id}")
def get_client_by_id(ctx: RequestContext, id: int = arena.NOT_FOUND):
    return oauth_mapper.client(ctx.store.get_client(id))


@routes.get("oauth/clientbykey?clientApiKey={clientApiKey}", anonymous=True)
def get_client_by_key(ctx: RequestContext, client_api_key: str = None):
    return oauth_mapper.client(_client_by_key(ctx, client_api_key))


@routes.get("oauth/client/validate?clientApiKey={clientApiKey}&clientApiSecret={clientApiSecret}", anonymous=True)
def validate_client(ctx: RequestContext, client_api_key: str = None, client_api_secret: str = None):
    """Return the client only when key and secret belong together."""
    client = _client_by_key(ctx, client_api_key)
    provided = parse_guid(client_api_secret)
    if client.api_secret is None or provided is None:
        raise AccessDeniedError(INVALID_CREDENTIALS_MESSAGE)
    if not hmac.compare_digest(str(client.api_secret).lower(), str(provided).lower()):
        logger.warning("OAuth client validation failed for key %s", client_api_key)
        raise AccessDeniedError(INVALID_CREDENTIALS_MESSAGE)
    return oauth_mapper.client(client)


@routes.get("oauth/client/{clientApiKey}/user/authorizations/list")
def get_user_authorizations(ctx: RequestContext, client_api_key: str):
    authorizations = ctx.store.user_authorizations(ctx.caller.login_id, client_api_key)
    return full_list(authorizations, oauth_mapper.authorization)


@routes.post("oauth/client/{clientApiKey}/user/authorization/update")
def post_user_authorization(ctx: RequestContext, client_api_key: str, body: BinaryIO):
    """Create (AuthorizationId <= 0) or update a user authorization for a client.

    The caller may write authorizations for their own login, or for any
    login when they hold Edit on the client's authorizations.
    """
    submitted = parse_body(contracts.OAuthAuthorization, body, ctx.request.content_type)
    client = _client_by_key(ctx, client_api_key)
    if submitted.client_id != client.client_id or is_missing(client.client_id):
        raise NotFoundError("Client API Key mismatch.")

    result = contracts.ModifyResult()
    if not submitted.client_id:
        return result.fail("ClientId must be set")
    if not (submitted.login_id or "").strip():
        return result.fail("LoginId must be set")

    creating = not submitted.authorization_id or submitted.authorization_id <= 0
    try:
        if creating:
            authorization = arena.Authorization()
        else:
            authorization = ctx.store.get_authorization(submitted.authorization_id)

        if submitted.scope_id and submitted.scope_id > 0:
            scope_id = submitted.scope_id
        elif submitted.scope_identifier:
            scope_id = ctx.store.get_scope_by_identifier(submitted.scope_identifier).scope_id
            if is_missing(scope_id):
                return result.fail("ScopeId or ScopeIdentifier is required")
        else:
            return result.fail("ScopeId or ScopeIdentifier is required")

        owns_login = submitted.login_id.strip().lower() == (ctx.caller.login_id or "").lower()
        if not owns_login and not authorization_editable(ctx.oracle, client.client_id, ctx.caller_id):
            action = "create" if creating else "update"
            return result.fail(f"Permission denied to {action} authorization.")

        authorization.active = bool(submitted.active)
        authorization.client_id = client.client_id
        authorization.login_id = submitted.login_id.strip()
        authorization.scope_id = scope_id
        ctx.store.save_authorization(authorization, ctx.user_name)
    except Exception as exc:
        logger.error("Could not save authorization for client %s", client.client_id, exc_info=True)
        return result.fail(str(exc))

    result.successful = True
    return result
