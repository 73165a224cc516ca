"""Small-group endpoints: categories, clusters, groups, members and occurrences."""
from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta
from typing import BinaryIO, Optional

from werkzeug.formparser import MultiPartParser
from werkzeug.http import parse_options_header

from arena_api.core import contracts
from arena_api.core.arena import is_missing
from arena_api.core.arena import entities as arena
from arena_api.core.arena.entities import OperationType
from arena_api.core.dispatcher import RequestContext
from arena_api.core.errors import AccessDeniedError, BadRequestError, NotFoundError
from arena_api.core.mappers import smallgroup as smallgroup_mapper
from arena_api.core.paging import full_list, paginate
from arena_api.core.rbac import cluster_allowed
from arena_api.core.routing import RouteGroup
from arena_api.core.serialization import parse_body

logger = logging.getLogger(__name__)

LEADER_ROLE_NAME = "Leader"
WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")

routes = RouteGroup()


def _reference(record_id: int, name: str) -> contracts.GenericReference:
    return contracts.GenericReference(record_id, name)


def _load_group(ctx: RequestContext, group_id: int) -> arena.Group:
    group = ctx.store.get_group(group_id)
    if is_missing(group.group_id):
        raise NotFoundError("Invalid group ID")
    return group


def _is_active_leader(group: arena.Group, person_id: int) -> bool:
    return any(
        m.person_id == person_id and m.active and m.role.value == LEADER_ROLE_NAME
        for m in group.members
    )


def _may_manage(ctx: RequestContext, group: arena.Group, operation: str) -> bool:
    """Group leader, cluster permission, or an active member in the Leader role."""
    if group.leader_id == ctx.caller_id:
        return True
    if cluster_allowed(ctx.oracle, group.cluster_id, ctx.caller_id, operation):
        return True
    return _is_active_leader(group, ctx.caller_id)


# ─────────────────────────────────────────────────────────────────────────────
# Categories and clusters
# ─────────────────────────────────────────────────────────────────────────────
@routes.get("smgp/category/list")
def get_categories(ctx: RequestContext):
    return full_list(ctx.store.categories(), lambda c: _reference(c.category_id, c.name))


@routes.get("smgp/category/{categoryID}")
def get_category(ctx: RequestContext, category_id: int):
    category = ctx.store.get_category(category_id)
    if is_missing(category.category_id):
        raise NotFoundError("Invalid category ID")
    return smallgroup_mapper.category(category)


@routes.get("smgp/cluster/list?categoryID={categoryID}&clusterID={clusterID}")
def get_clusters(ctx: RequestContext, category_id: Optional[int] = None, cluster_id: Optional[int] = None):
    """Root clusters of a category, or the children of a cluster."""
    if category_id is not None:
        clusters = ctx.store.root_clusters(category_id)
    elif cluster_id is not None:
        if not cluster_allowed(ctx.oracle, cluster_id, ctx.caller_id):
            raise AccessDeniedError()
        clusters = ctx.store.child_clusters(cluster_id)
    else:
        raise BadRequestError("Required parameters not provided.")

    result = paginate(
        clusters,
        convert=lambda c: _reference(c.cluster_id, c.name),
        include=lambda c: cluster_allowed(ctx.oracle, c.cluster_id, ctx.caller_id),
    )
    result.max = result.total
    return result


@routes.get("smgp/cluster/{clusterID}")
def get_cluster(ctx: RequestContext, cluster_id: int):
    """A caller without View still gets the cluster when they lead an active group in it."""
    cluster = ctx.store.get_cluster(cluster_id)
    if is_missing(cluster.cluster_id):
        raise NotFoundError("Invalid cluster ID")

    if not cluster_allowed(ctx.oracle, cluster.cluster_id, ctx.caller_id):
        leads_group = any(g.active and g.cluster_id == cluster.cluster_id for g in ctx.led_groups())
        if not leads_group:
            raise AccessDeniedError()

    return smallgroup_mapper.cluster(cluster, ctx.blobs)


# ─────────────────────────────────────────────────────────────────────────────
# Groups
# ─────────────────────────────────────────────────────────────────────────────
@routes.get("smgp/group/list?clusterID={clusterID}")
def get_groups(ctx: RequestContext, cluster_id: int = arena.NOT_FOUND):
    if not cluster_allowed(ctx.oracle, cluster_id, ctx.caller_id):
        raise AccessDeniedError()
    return full_list(ctx.store.groups_in_cluster(cluster_id), lambda g: _reference(g.group_id, g.name))


@routes.get("smgp/group/{id}")
def get_group(ctx: RequestContext, id: int):
    group = _load_group(ctx, id)
    if not cluster_allowed(ctx.oracle, group.cluster_id, ctx.caller_id):
        raise AccessDeniedError()
    return smallgroup_mapper.group(group, ctx.blobs)


@routes.get("smgp/group/{id}/members?start={start}&max={max}")
def get_group_members(ctx: RequestContext, id: int, start: int = 0, max: int = 0):
    """All members, inactive ones included, followed by the leader in the Leader role."""
    group = _load_group(ctx, id)
    if not _may_manage(ctx, group, OperationType.VIEW):
        raise AccessDeniedError()

    members = list(group.members)
    if not is_missing(group.leader_id):
        members.append(smallgroup_mapper.leader_as_member(group))
    return paginate(members, start, max, convert=lambda m: smallgroup_mapper.member(m, group))


# ─────────────────────────────────────────────────────────────────────────────
# Occurrences
# ─────────────────────────────────────────────────────────────────────────────
@routes.get("smgp/group/{id}/occurrences?start={start}&end={end}")
def get_occurrences(ctx: RequestContext, id: int, start: datetime = None, end: datetime = None):
    if start is None or end is None:
        raise BadRequestError("Parameters start and end are required.")
    occurrences = [o for o in ctx.store.group_occurrences(id, start, end) if o.end <= end]
    return full_list(occurrences, lambda o: smallgroup_mapper.occurrence(o, ctx.store.get_person))


@routes.get("smgp/group/{id}/occurrences/{occurrenceID}")
def get_occurrence(ctx: RequestContext, id: int, occurrence_id: int):
    occurrence = ctx.store.get_occurrence(occurrence_id)
    if is_missing(occurrence.occurrence_id) or occurrence.group_id != id:
        raise NotFoundError("Invalid occurrence ID")
    return smallgroup_mapper.occurrence(occurrence, ctx.store.get_person)


def last_meeting(group: arena.Group, today: date) -> Optional[tuple[datetime, datetime]]:
    """Start and end of the most recent meeting on or before ``today``.

    Returns None when the group's meeting day is not a weekday name.
    """
    day_name = (group.meeting_day.value or "").strip().lower()
    if day_name not in WEEKDAYS:
        return None
    days_back = (today.weekday() - WEEKDAYS.index(day_name)) % 7
    meeting_date = today - timedelta(days=days_back)
    return (
        datetime.combine(meeting_date, group.meeting_start_time),
        datetime.combine(meeting_date, group.meeting_end_time),
    )


def _attendee_ids(submitted: contracts.SmallGroupOccurrence) -> list[int]:
    return [a.id for a in submitted.attendees if a.id is not None]


def _create_occurrence(ctx: RequestContext, group: arena.Group,
                       submitted: contracts.SmallGroupOccurrence) -> contracts.ModifyResult:
    result = contracts.ModifyResult()
    start, end = submitted.start, submitted.end
    if start is None or start == arena.SENTINEL_DATE:
        meeting = last_meeting(group, date.today())
        if meeting is None:
            return result.fail("Meeting Date was not provided and could not be determined from the group")
        start, end = meeting

    same_day = ctx.store.group_occurrences(
        group.group_id, datetime.combine(start.date(), time.min), datetime.combine(start.date(), time.max)
    )
    if same_day:
        return result.fail(
            f"Could not create an occurrence.  An occurrence already exists for {start.date().isoformat()}"
        )

    occurrence = arena.GroupOccurrence(
        group_id=group.group_id,
        name=(submitted.name or "").strip() or f"{group.name} Occurrence",
        description=submitted.description or "",
        start=start,
        end=end or start,
        attendees=_attendee_ids(submitted),
    )
    saved = ctx.store.save_occurrence(occurrence, ctx.user_name)
    result.successful = True
    result.link = f"smgp/group/{group.group_id}/occurrences/{saved.occurrence_id}"
    return result


def _update_occurrence(ctx: RequestContext, group: arena.Group,
                       submitted: contracts.SmallGroupOccurrence) -> contracts.ModifyResult:
    result = contracts.ModifyResult()
    occurrence = ctx.store.get_occurrence(submitted.occurrence_id)
    if is_missing(occurrence.occurrence_id):
        return result.fail("Occurrence was not found.")
    if occurrence.group_id != group.group_id:
        return result.fail("Occurrence does not belong to the current group.")

    occurrence.name = submitted.name or ""
    occurrence.description = submitted.description or ""
    if submitted.start is not None:
        occurrence.start = submitted.start
    if submitted.end is not None:
        occurrence.end = submitted.end
    # attendance is replaced wholesale: listed people attended, everyone else did not
    occurrence.attendees = _attendee_ids(submitted)
    ctx.store.save_occurrence(occurrence, ctx.user_name)
    result.successful = True
    return result


@routes.post("smgp/group/{id}/occurrence/update")
def post_occurrence(ctx: RequestContext, id: int, body: BinaryIO):
    """Create (OccurrenceID <= 0) or update an occurrence of group ``id``."""
    submitted = parse_body(contracts.SmallGroupOccurrence, body, ctx.request.content_type)

    group = ctx.store.get_group(id)
    if is_missing(group.group_id):
        return contracts.ModifyResult().fail("Group not found.")

    try:
        if submitted.occurrence_id and submitted.occurrence_id > 0:
            return _update_occurrence(ctx, group, submitted)
        return _create_occurrence(ctx, group, submitted)
    except Exception as exc:
        logger.error("Could not save occurrence for group %s", id, exc_info=True)
        return contracts.ModifyResult().fail(f"{type(exc).__name__} - {exc}")


# ─────────────────────────────────────────────────────────────────────────────
# Photo
# ─────────────────────────────────────────────────────────────────────────────
def read_image(body: BinaryIO, content_type: Optional[str]) -> tuple[bytes, str]:
    """Image bytes and their content type from a multipart upload or a raw body.

    For multipart bodies the first file part is used.
    """
    mimetype, options = parse_options_header(content_type or "")
    if mimetype == "multipart/form-data" and options.get("boundary"):
        _form, files = MultiPartParser().parse(body, options["boundary"].encode("latin-1"), None)
        for upload in files.values():
            return upload.read(), upload.mimetype or "application/octet-stream"
        return b"", ""
    return body.read(), mimetype or "application/octet-stream"


@routes.post("smgp/group/{id}/photo/update")
def post_group_photo(ctx: RequestContext, id: int, body: BinaryIO):
    result = contracts.ModifyResult()
    group = ctx.store.get_group(id)
    if is_missing(group.group_id):
        return result.fail("Group not found.")
    if not _may_manage(ctx, group, OperationType.EDIT):
        return result.fail(AccessDeniedError.default_message)

    data, content_type = read_image(body, ctx.request.content_type)
    if not data:
        return result.fail("Image data is required.")

    try:
        ctx.store.save_group_photo(group.group_id, data, content_type, ctx.user_name)
    except Exception as exc:
        logger.error("Could not store photo for group %s", id, exc_info=True)
        return result.fail(f"{type(exc).__name__} - {exc}")

    result.successful = True
    result.link = ctx.blobs.build(ctx.store.get_group(id).picture_guid)
    return result
