"""Person endpoints: reads, sub-resources and the person write paths."""
from __future__ import annotations

import logging
from typing import BinaryIO, Optional

from arena_api.core import contracts
from arena_api.core.arena import is_missing
from arena_api.core.arena import entities as arena
from arena_api.core.dispatcher import RequestContext
from arena_api.core.errors import NotFoundError
from arena_api.core.mappers import event as event_mapper
from arena_api.core.mappers import person as person_mapper
from arena_api.core.mappers.person import PersonMapper
from arena_api.core.paging import full_list, paginate
from arena_api.core.rbac import attribute_editable, cluster_allowed
from arena_api.core.routing import RouteGroup
from arena_api.core.serialization import parse_body
from arena_api.core.validators import find_lookup, validate_imin, validate_new_person
from arena_api.core.visibility import CallerContext, FieldVisibilityFilter, IncludeFieldSpec

logger = logging.getLogger(__name__)

PERSON_POLICY = "Person"

routes = RouteGroup()


# ─────────────────────────────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────────────────────────────
def _load_person(ctx: RequestContext, person_id: int) -> arena.Person:
    person = ctx.store.get_person(person_id)
    if is_missing(person.person_id):
        raise NotFoundError("Invalid person id")
    return person


def project_person(ctx: RequestContext, viewer: arena.Person, person: arena.Person,
                   fields: Optional[list[str]]) -> contracts.Person:
    """Project ``person`` as seen by ``viewer`` through the Person visibility policy."""
    visibility = FieldVisibilityFilter(ctx.services.policies[PERSON_POLICY], ctx.oracle)
    led_groups = ctx.led_groups() if viewer is ctx.caller else None
    caller_ctx = CallerContext.for_target(ctx.store, viewer, person, led_groups)
    return PersonMapper(visibility, ctx.blobs).project(person, caller_ctx, IncludeFieldSpec.parse(fields))


def _is_inactive_member(group: arena.Group, person_id: int) -> bool:
    return any(m.person_id == person_id and not m.active for m in group.members)


# ─────────────────────────────────────────────────────────────────────────────
# Reads
# ─────────────────────────────────────────────────────────────────────────────
@routes.get("me?fields={fields}")
def get_me(ctx: RequestContext, fields: list[str] = None):
    return project_person(ctx, ctx.caller, ctx.caller, fields)


@routes.get("person/{id}?fields={fields}")
def get_person(ctx: RequestContext, id: int, fields: list[str] = None):
    return project_person(ctx, ctx.caller, _load_person(ctx, id), fields)


@routes.get("person/{id}/familymembers")
def get_family_members(ctx: RequestContext, id: int):
    person = _load_person(ctx, id)
    return full_list(ctx.store.family_members(person.family_id), person_mapper.family_member)


@routes.get("person/{id}/primaryemail")
def get_primary_email(ctx: RequestContext, id: int):
    return person_mapper.email(_load_person(ctx, id).primary_email)


@routes.get("person/{id}/previousids")
def get_previous_ids(ctx: RequestContext, id: int):
    return full_list(_load_person(ctx, id).previous_ids, item_name="int")


@routes.get("person/{id}/relationships")
def get_relationships(ctx: RequestContext, id: int):
    person = _load_person(ctx, id)
    return full_list(ctx.store.relationships(person.person_id), person_mapper.relationship)


@routes.get("person/{id}/groupleadership/list?clusterTypeId={clusterTypeId}&start={start}&max={max}")
def get_group_leadership(ctx: RequestContext, id: int, cluster_type_id: int = 0, start: int = 0, max: int = 0):
    """Groups led by ``id`` in which they are not an inactive member.

    Another caller only sees groups whose cluster they may View.
    """

    def include(group: arena.Group) -> bool:
        if cluster_type_id and cluster_type_id > 0 and group.cluster_type_id != cluster_type_id:
            return False
        if ctx.caller_id != id and not cluster_allowed(ctx.oracle, group.cluster_id, ctx.caller_id):
            return False
        return not _is_inactive_member(group, id)

    return paginate(
        ctx.store.groups_led_by(id),
        start,
        max,
        convert=lambda group: contracts.GenericReference(group.group_id, group.name),
        include=include,
    )


@routes.get("person/{id}/event/list")
def get_person_events(ctx: RequestContext, id: int):
    events = [p for p in ctx.store.person_profiles(id) if event_mapper.is_event(p)]
    return full_list(events, lambda profile: event_mapper.project(profile, ctx.blobs))


# ─────────────────────────────────────────────────────────────────────────────
# Writes
# ─────────────────────────────────────────────────────────────────────────────
@routes.post("person/imin", anonymous=True)
def post_imin(ctx: RequestContext, body: BinaryIO):
    imin = parse_body(contracts.ImIn, body, ctx.request.content_type)
    phone_types = ctx.store.phone_types()
    campuses = ctx.store.campuses()

    result = contracts.ModifyResult(successful=True)
    validate_imin(imin, phone_types, campuses, result)
    if not result.successful:
        return result

    submission = arena.ImInSubmission(
        first_name=imin.first_name.strip(),
        last_name=imin.last_name.strip(),
        birth_date=imin.date_of_birth,
        email=(imin.email or "").strip(),
        phone_number=imin.phone_number.strip(),
        phone_type_id=find_lookup(phone_types, imin.phone_type).lookup_id,
        campus_id=find_lookup(campuses, imin.campus).lookup_id,
        is_member=bool(imin.is_member),
        agrees_with_sof=bool(imin.agrees_with_sof),
        street_address=(imin.street_address or "").strip(),
        zip_code=(imin.zip_code or "").strip(),
    )
    try:
        person_id = ctx.store.process_imin(submission, ctx.user_name)
    except Exception as exc:
        logger.error("I'm In processing failed for %s %s", submission.first_name, submission.last_name, exc_info=True)
        result.add_validation("ImInGeneralError", "Something went wrong processing the I'm In request.")
        result.error_message = str(exc)
        return result

    result.link = f"/person/{person_id}"
    return result


@routes.post("person/add")
def post_person(ctx: RequestContext, body: BinaryIO):
    person = parse_body(contracts.Person, body, ctx.request.content_type)

    result = contracts.ModifyResult(successful=True)
    validate_new_person(person, result)
    if not result.successful:
        return result

    try:
        saved = ctx.store.match_or_create_person(
            person_mapper.to_arena_person(person, ctx.organization_id), ctx.user_name
        )
    except Exception as exc:
        logger.error("Could not match or create person %s %s", person.first_name, person.last_name, exc_info=True)
        return result.fail(str(exc))

    result.link = f"cust/secc/person/{saved.person_id}"
    return result


@routes.post("person/{id}/attribute/update")
def post_person_attribute(ctx: RequestContext, id: int, body: BinaryIO):
    submitted = parse_body(contracts.PersonAttribute, body, ctx.request.content_type)
    result = contracts.ModifyResult()

    if not submitted.attribute_id or submitted.attribute_id <= 0:
        return result.fail("Attribute ID is required.")
    if not attribute_editable(ctx.oracle, submitted.attribute_id, ctx.caller_id):
        return result.fail("Permission denied to edit attribute.")

    try:
        attribute = ctx.store.get_person_attribute(id, submitted.attribute_id)
        if is_missing(attribute.attribute_id):
            attribute = arena.PersonAttribute(attribute_id=submitted.attribute_id, person_id=id)
        attribute.name = submitted.attribute_name or attribute.name
        attribute.value = _typed_value(attribute.data_type, submitted)
        ctx.store.save_person_attribute(attribute, ctx.user_name)
    except Exception as exc:
        logger.error("Could not save attribute %s for person %s", submitted.attribute_id, id, exc_info=True)
        return result.fail(str(exc))

    result.successful = True
    return result


def _typed_value(data_type: str, submitted: contracts.PersonAttribute):
    if data_type == "int":
        return submitted.int_value or 0
    if data_type == "decimal":
        return submitted.decimal_value or 0.0
    if data_type == "datetime":
        return submitted.datetime_value or arena.SENTINEL_DATE
    return submitted.string_value
