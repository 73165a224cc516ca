"""Event projection: an event is a profile of type EVENT."""
from __future__ import annotations

from arena_api.core import contracts
from arena_api.core.arena import BlobUrlBuilder
from arena_api.core.arena import entities as arena
from arena_api.core.mappers.common import date_or_none, id_or_none, reference, text_or_none


def project(profile: arena.Profile, blobs: BlobUrlBuilder) -> contracts.Event:
    return contracts.Event(
        id=id_or_none(profile.profile_id),
        name=text_or_none(profile.name),
        summary=text_or_none(profile.summary),
        details=text_or_none(profile.details),
        start=date_or_none(profile.start),
        end=date_or_none(profile.end),
        location=text_or_none(profile.location),
        image_url=blobs.build(profile.blob_guid),
        registration_url=text_or_none(profile.registration_url),
        owner=reference(profile.owner_id, profile.owner_name),
    )


def is_event(profile: arena.Profile) -> bool:
    return profile.profile_type == arena.ProfileType.EVENT
