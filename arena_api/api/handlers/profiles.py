"""Profile ("tag") endpoints."""
from __future__ import annotations

from typing import Optional

from arena_api.core.arena import is_missing
from arena_api.core.dispatcher import RequestContext
from arena_api.core.errors import AccessDeniedError, BadRequestError, NotFoundError
from arena_api.core.mappers import profile as profile_mapper
from arena_api.core.paging import paginate
from arena_api.core.rbac import profile_allowed
from arena_api.core.routing import RouteGroup
from arena_api.core.visibility import IncludeFieldSpec

routes = RouteGroup()


def _require_view(ctx: RequestContext, profile_id: int) -> None:
    if not profile_allowed(ctx.oracle, profile_id, ctx.caller_id):
        raise AccessDeniedError()


@routes.get("profile/list?profileID={profileID}&profileType={profileType}&start={start}&max={max}&fields={fields}")
def get_profile_list(ctx: RequestContext, profile_id: Optional[int] = None, profile_type: Optional[int] = None,
                     start: int = 0, max: int = 0, fields: list[str] = None):
    """Root profiles of a type, or the children of one profile.

    Items are references unless ``fields`` asks for Profile contracts.
    """
    if profile_type is not None:
        profiles = ctx.store.root_profiles(profile_type, ctx.organization_id, ctx.caller_id)
    elif profile_id is not None:
        _require_view(ctx, profile_id)
        profiles = ctx.store.child_profiles(profile_id)
    else:
        raise BadRequestError("Required parameters not provided.")

    requested = IncludeFieldSpec.parse(fields)
    if requested.is_unset:
        convert = profile_mapper.as_reference
    else:
        convert = lambda profile: profile_mapper.project(profile, requested)  # noqa: E731

    return paginate(
        sorted(profiles, key=lambda profile: profile.name),
        start,
        max,
        convert=convert,
        include=lambda profile: profile_allowed(ctx.oracle, profile.profile_id, ctx.caller_id),
    )


@routes.get("profile/{profileID}")
def get_profile(ctx: RequestContext, profile_id: int):
    profile = ctx.store.get_profile(profile_id)
    if is_missing(profile.profile_id):
        raise NotFoundError("Invalid profile ID")
    _require_view(ctx, profile.profile_id)
    return profile_mapper.project(profile)


@routes.get("profile/{profileID}/members/list?statusID={statusID}&start={start}&max={max}")
def get_profile_members(ctx: RequestContext, profile_id: int, status_id: Optional[int] = None,
                        start: int = 0, max: int = 0):
    _require_view(ctx, profile_id)
    status = status_id if status_id is not None and status_id != -1 else None
    return paginate(ctx.store.profile_members(profile_id, status), start, max, convert=profile_mapper.member)


@routes.get("profile/{profileID}/members/{personID}")
def get_profile_member(ctx: RequestContext, profile_id: int, person_id: int):
    member = ctx.store.get_profile_member(profile_id, person_id)
    if is_missing(member.profile_id):
        raise NotFoundError("Invalid profile ID")
    _require_view(ctx, member.profile_id)
    return profile_mapper.member(member)
