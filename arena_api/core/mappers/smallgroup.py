"""Small-group projections: categories, clusters, groups, members and occurrences."""
from __future__ import annotations

from arena_api.core import contracts
from arena_api.core.arena import BlobUrlBuilder
from arena_api.core.arena import entities as arena
from arena_api.core.mappers.common import date_or_none, id_or_none, lookup, reference, refilter, text_or_none
from arena_api.core.visibility import IncludeFieldSpec

LEADER_ROLE = arena.LookupValue(arena.NOT_FOUND, "Leader")


def category(record: arena.GroupCategory, requested: IncludeFieldSpec = IncludeFieldSpec()) -> contracts.SmallGroupCategory:
    contract = contracts.SmallGroupCategory(
        category_id=id_or_none(record.category_id),
        name=record.name,
        allow_registrations=record.allow_registrations,
        allow_bulk_update=record.allow_bulk_update,
        history_is_private=record.history_is_private,
        credit_as_small_group=record.credit_as_small_group,
        uses_area=record.uses_area,
        use_uniform_number=record.use_uniform_number,
        default_role=lookup(record.default_role),
        leader_caption=text_or_none(record.leader_caption),
        meeting_day_caption=text_or_none(record.meeting_day_caption),
        name_caption=text_or_none(record.name_caption),
        valid_roles=[lookup(role) for role in record.valid_roles if lookup(role) is not None],
    )
    return refilter(contract, requested)


def cluster(record: arena.GroupCluster, blobs: BlobUrlBuilder,
            requested: IncludeFieldSpec = IncludeFieldSpec()) -> contracts.SmallGroupCluster:
    contract = contracts.SmallGroupCluster(
        cluster_id=id_or_none(record.cluster_id),
        parent_cluster_id=id_or_none(record.parent_cluster_id),
        category_id=id_or_none(record.category_id),
        name=record.name,
        active=record.active,
        level=record.level,
        type_id=id_or_none(record.type_id),
        description=text_or_none(record.description),
        notes=text_or_none(record.notes),
        cluster_count=record.cluster_count,
        registration_count=record.registration_count,
        member_count=record.member_count,
        group_count=record.group_count,
        admin=reference(record.admin_id, record.admin_name),
        leader=reference(record.leader_id, record.leader_name),
        area_id=id_or_none(record.area_id),
        url=text_or_none(record.url),
        date_created=date_or_none(record.date_created),
        date_modified=date_or_none(record.date_modified),
        navigation_url=text_or_none(record.navigation_url),
        image_url=blobs.build(record.blob_guid) if id_or_none(record.blob_id) else None,
    )
    return refilter(contract, requested)


def group(record: arena.Group, blobs: BlobUrlBuilder,
          requested: IncludeFieldSpec = IncludeFieldSpec()) -> contracts.SmallGroup:
    contract = contracts.SmallGroup(
        group_id=id_or_none(record.group_id),
        group_cluster_id=id_or_none(record.cluster_id),
        category_id=id_or_none(record.category_id),
        name=record.name,
        active=record.active,
        cluster_type_id=id_or_none(record.cluster_type_id),
        description=text_or_none(record.description),
        schedule=text_or_none(record.schedule),
        notes=text_or_none(record.notes),
        registration_count=record.registration_count,
        member_count=len(record.members),
        leader=reference(record.leader_id, record.leader_name),
        area_id=id_or_none(record.area_id),
        group_url=text_or_none(record.group_url),
        date_created=date_or_none(record.date_created),
        date_modified=date_or_none(record.date_modified),
        navigation_url=text_or_none(record.navigation_url),
        picture_url=blobs.build(record.picture_guid) if id_or_none(record.picture_blob_id) else None,
        average_age=record.average_age or None,
        meeting_day=lookup(record.meeting_day),
        primary_age=lookup(record.primary_age),
        primary_marital_status=lookup(record.primary_marital_status),
        topic=lookup(record.topic),
        max_members=record.max_members or None,
        private=record.private,
    )
    return refilter(contract, requested)


def member(record: arena.GroupMember, owner: arena.Group) -> contracts.SmallGroupMember:
    return contracts.SmallGroupMember(
        person_id=id_or_none(record.person_id),
        full_name=text_or_none(record.full_name),
        primary_email=text_or_none(record.primary_email),
        cell_phone=text_or_none(record.cell_phone),
        home_phone=text_or_none(record.home_phone),
        group=reference(owner.group_id, owner.name),
        active=record.active,
        role=contracts.Lookup(id_or_none(record.role.lookup_id), record.role.value or None),
        uniform_number=id_or_none(record.uniform_number),
    )


def leader_as_member(owner: arena.Group) -> arena.GroupMember:
    """The group leader in member form (``Leader`` role)."""
    return arena.GroupMember(person_id=owner.leader_id, full_name=owner.leader_name, role=LEADER_ROLE)


def occurrence(record: arena.GroupOccurrence, store_people=None) -> contracts.SmallGroupOccurrence:
    """Project an occurrence; ``store_people`` resolves attendee names when given."""
    attendees = []
    for person_id in record.attendees:
        title = None
        if store_people is not None:
            title = store_people(person_id).full_name or None
        attendees.append(contracts.GenericReference(person_id, title))
    return contracts.SmallGroupOccurrence(
        occurrence_id=id_or_none(record.occurrence_id),
        group_id=id_or_none(record.group_id),
        name=text_or_none(record.name),
        description=text_or_none(record.description),
        start=date_or_none(record.start),
        end=date_or_none(record.end),
        attendees=attendees,
    )
