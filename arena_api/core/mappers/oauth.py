"""OAuth client, scope and authorization projections."""
from __future__ import annotations

from arena_api.core import contracts
from arena_api.core.arena import entities as arena
from arena_api.core.mappers.common import id_or_none, refilter, text_or_none
from arena_api.core.visibility import IncludeFieldSpec


def scope(record: arena.Scope) -> contracts.OAuthScope:
    return contracts.OAuthScope(
        scope_id=id_or_none(record.scope_id),
        identifier=text_or_none(record.identifier),
        description=text_or_none(record.description),
        active=record.active,
    )


def client(record: arena.OAuthClient, requested: IncludeFieldSpec = IncludeFieldSpec()) -> contracts.OAuthClient:
    """The API secret is never projected."""
    contract = contracts.OAuthClient(
        client_id=id_or_none(record.client_id),
        name=text_or_none(record.name),
        callback_url=text_or_none(record.callback_url),
        api_key=record.api_key,
        active=record.active,
        scopes=[scope(s) for s in record.scopes],
    )
    return refilter(contract, requested)


def authorization(record: arena.Authorization) -> contracts.OAuthAuthorization:
    return contracts.OAuthAuthorization(
        authorization_id=id_or_none(record.authorization_id),
        client_id=id_or_none(record.client_id),
        scope_id=id_or_none(record.scope_id),
        login_id=text_or_none(record.login_id),
        scope_identifier=text_or_none(record.scope_identifier),
        scope_description=text_or_none(record.scope_description),
        active=record.active,
    )
