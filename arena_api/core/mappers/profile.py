"""Profile ("tag") projections. Profiles are unsecured: only the requested-field list applies."""
from __future__ import annotations

from arena_api.core import contracts
from arena_api.core.arena import entities as arena
from arena_api.core.mappers.common import date_or_none, id_or_none, lookup, reference, refilter, text_or_none
from arena_api.core.visibility import IncludeFieldSpec


def project(profile: arena.Profile, requested: IncludeFieldSpec = IncludeFieldSpec()) -> contracts.Profile:
    contract = contracts.Profile(
        profile_id=id_or_none(profile.profile_id),
        parent_id=id_or_none(profile.parent_profile_id),
        name=profile.name,
        profile_type_string=profile.profile_type_name,
        profile_type=int(profile.profile_type),
        active=profile.active,
        profile_active_member_count=profile.active_member_count,
        profile_member_count=profile.member_count,
        campus_id=id_or_none(profile.campus_id),
        notes=text_or_none(profile.notes),
        owner=reference(profile.owner_id, profile.owner_name),
        created_by=text_or_none(profile.created_by),
        date_created=date_or_none(profile.date_created),
        modified_by=text_or_none(profile.modified_by),
        date_modified=date_or_none(profile.date_modified),
        critical_members=profile.critical_members,
        active_members=profile.active_member_count,
        in_review_members=profile.in_review_members,
        no_contact_members=profile.no_contact_members,
        pending_members=profile.pending_members,
        total_members=profile.member_count,
        navigation_url=text_or_none(profile.navigation_url),
        owner_relationship_strength=profile.owner_relationship_strength,
        peer_relationship_strength=profile.peer_relationship_strength,
    )
    return refilter(contract, requested)


def as_reference(profile: arena.Profile) -> contracts.GenericReference:
    return contracts.GenericReference(profile.profile_id, profile.name)


def member(record: arena.ProfileMember) -> contracts.ProfileMember:
    return contracts.ProfileMember(
        profile=reference(record.profile_id, record.profile_name),
        person=reference(record.person_id, record.person_name),
        attendance_count=record.attendance_count,
        date_active=date_or_none(record.date_active),
        date_dormant=date_or_none(record.date_dormant),
        date_in_review=date_or_none(record.date_in_review),
        date_pending=date_or_none(record.date_pending),
        member_notes=text_or_none(record.member_notes),
        source=lookup(record.source),
        status=lookup(record.status),
        status_reason=text_or_none(record.status_reason),
    )
