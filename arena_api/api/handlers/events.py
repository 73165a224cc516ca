"""Event endpoints."""
from __future__ import annotations

from arena_api.core.arena import is_missing
from arena_api.core.dispatcher import RequestContext
from arena_api.core.errors import NotFoundError
from arena_api.core.mappers import event as event_mapper
from arena_api.core.routing import RouteGroup

routes = RouteGroup()


@routes.get("event/{id}")
def get_event(ctx: RequestContext, id: int):
    profile = ctx.store.get_profile(id)
    if is_missing(profile.profile_id) or not event_mapper.is_event(profile):
        raise NotFoundError("Invalid event id")
    return event_mapper.project(profile, ctx.blobs)
