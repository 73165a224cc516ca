"""ArenaStore backed by the Arena data service REST API.

Records travel as snake_case JSON objects whose keys match the entity
dataclass fields. A 404 from the service becomes the NOT_FOUND sentinel
entity; every other HTTP error propagates as ArenaAPIError.
"""
from __future__ import annotations

import json
import typing
from dataclasses import asdict, fields, is_dataclass
from datetime import datetime, time
from typing import Any, Optional, TypeVar, Union
from uuid import UUID

from . import entities as arena
from .client import ArenaClient
from .exceptions import ArenaAPIError
from .store import ArenaStore

E = TypeVar("E")


# ─────────────────────────────────────────────────────────────────────────────
# Record <-> entity conversion
# ─────────────────────────────────────────────────────────────────────────────
def _decode(tp: Any, raw: Any) -> Any:
    if typing.get_origin(tp) is Union:
        args = [arg for arg in typing.get_args(tp) if arg is not type(None)]
        tp = args[0] if len(args) == 1 else Any
    if typing.get_origin(tp) is list:
        (item_type,) = typing.get_args(tp)
        return [_decode(item_type, item) for item in raw]
    if is_dataclass(tp):
        return from_record(tp, raw)
    if tp is datetime:
        return datetime.fromisoformat(raw)
    if tp is time:
        return time.fromisoformat(raw)
    if tp is UUID:
        return UUID(raw)
    return raw


def from_record(entity_type: type[E], data: dict) -> E:
    """Build an entity from a JSON record, ignoring unknown keys."""
    hints = typing.get_type_hints(entity_type)
    kwargs = {}
    for f in fields(entity_type):
        if data.get(f.name) is not None:
            kwargs[f.name] = _decode(hints[f.name], data[f.name])
    return entity_type(**kwargs)


def _json_default(value: Any) -> str:
    if isinstance(value, (datetime, time)):
        return value.isoformat()
    if isinstance(value, UUID):
        return str(value)
    raise TypeError(f"Unserializable value: {value!r}")


def to_record(entity: Any) -> dict:
    return json.loads(json.dumps(asdict(entity), default=_json_default))


class HttpArenaStore(ArenaStore):
    """ArenaStore implementation talking to the Arena data service."""

    def __init__(self, client: ArenaClient):
        self.client = client

    def _one(self, entity_type: type[E], path: str, params: Optional[dict] = None) -> E:
        try:
            resp = self.client.get(path, params=params)
        except ArenaAPIError as exc:
            if exc.status_code == 404:
                return entity_type()
            raise
        return from_record(entity_type, resp.json())

    def _many(self, entity_type: type[E], path: str, params: Optional[dict] = None) -> list[E]:
        resp = self.client.get(path, params=params)
        return [from_record(entity_type, item) for item in resp.json()]

    def _save(self, entity_type: type[E], path: str, entity: Any, user: str, create: bool) -> E:
        payload = {"record": to_record(entity), "user": user}
        resp = self.client.post(path, json=payload) if create else self.client.put(path, json=payload)
        return from_record(entity_type, resp.json())

    # ── People ───────────────────────────────────────────────────────────────
    def get_person(self, person_id: int) -> arena.Person:
        return self._one(arena.Person, f"/people/{person_id}")

    def family_members(self, family_id: int) -> list[arena.Person]:
        return self._many(arena.Person, f"/families/{family_id}/members")

    def relationships(self, person_id: int) -> list[arena.Relationship]:
        return self._many(arena.Relationship, f"/people/{person_id}/relationships")

    def match_or_create_person(self, person: arena.Person, user: str) -> arena.Person:
        return self._save(arena.Person, "/people/match", person, user, create=True)

    def process_imin(self, submission: arena.ImInSubmission, user: str) -> int:
        resp = self.client.post("/people/imin", json={"record": to_record(submission), "user": user})
        return int(resp.json()["person_id"])

    def get_person_attribute(self, person_id: int, attribute_id: int) -> arena.PersonAttribute:
        return self._one(arena.PersonAttribute, f"/people/{person_id}/attributes/{attribute_id}")

    def save_person_attribute(self, attribute: arena.PersonAttribute, user: str) -> None:
        self.client.put(
            f"/people/{attribute.person_id}/attributes/{attribute.attribute_id}",
            json={"record": to_record(attribute), "user": user},
        )

    def phone_types(self) -> list[arena.LookupValue]:
        return self._many(arena.LookupValue, "/lookups/phone-types")

    def campuses(self) -> list[arena.LookupValue]:
        return self._many(arena.LookupValue, "/lookups/campuses")

    # ── Profiles ─────────────────────────────────────────────────────────────
    def get_profile(self, profile_id: int) -> arena.Profile:
        return self._one(arena.Profile, f"/profiles/{profile_id}")

    def child_profiles(self, profile_id: int) -> list[arena.Profile]:
        return self._many(arena.Profile, f"/profiles/{profile_id}/children")

    def root_profiles(self, profile_type: int, organization_id: int, person_id: int) -> list[arena.Profile]:
        params = {"type": int(profile_type), "organization_id": organization_id, "person_id": person_id}
        return self._many(arena.Profile, "/profiles", params=params)

    def profile_members(self, profile_id: int, status_id: Optional[int] = None) -> list[arena.ProfileMember]:
        params = {"status_id": status_id} if status_id is not None else None
        return self._many(arena.ProfileMember, f"/profiles/{profile_id}/members", params=params)

    def get_profile_member(self, profile_id: int, person_id: int) -> arena.ProfileMember:
        return self._one(arena.ProfileMember, f"/profiles/{profile_id}/members/{person_id}")

    def person_profiles(self, person_id: int) -> list[arena.Profile]:
        return self._many(arena.Profile, f"/people/{person_id}/profiles")

    # ── Small groups ─────────────────────────────────────────────────────────
    def categories(self) -> list[arena.GroupCategory]:
        return self._many(arena.GroupCategory, "/smallgroups/categories")

    def get_category(self, category_id: int) -> arena.GroupCategory:
        return self._one(arena.GroupCategory, f"/smallgroups/categories/{category_id}")

    def get_cluster(self, cluster_id: int) -> arena.GroupCluster:
        return self._one(arena.GroupCluster, f"/smallgroups/clusters/{cluster_id}")

    def root_clusters(self, category_id: int) -> list[arena.GroupCluster]:
        return self._many(arena.GroupCluster, f"/smallgroups/categories/{category_id}/clusters")

    def child_clusters(self, cluster_id: int) -> list[arena.GroupCluster]:
        return self._many(arena.GroupCluster, f"/smallgroups/clusters/{cluster_id}/children")

    def get_group(self, group_id: int) -> arena.Group:
        return self._one(arena.Group, f"/smallgroups/groups/{group_id}")

    def groups_in_cluster(self, cluster_id: int) -> list[arena.Group]:
        return self._many(arena.Group, f"/smallgroups/clusters/{cluster_id}/groups")

    def groups_led_by(self, person_id: int) -> list[arena.Group]:
        return self._many(arena.Group, "/smallgroups/groups", params={"leader_id": person_id})

    def group_occurrences(self, group_id: int, start: datetime, end: datetime) -> list[arena.GroupOccurrence]:
        params = {"start": start.isoformat(), "end": end.isoformat()}
        return self._many(arena.GroupOccurrence, f"/smallgroups/groups/{group_id}/occurrences", params=params)

    def get_occurrence(self, occurrence_id: int) -> arena.GroupOccurrence:
        return self._one(arena.GroupOccurrence, f"/smallgroups/occurrences/{occurrence_id}")

    def save_occurrence(self, occurrence: arena.GroupOccurrence, user: str) -> arena.GroupOccurrence:
        if occurrence.occurrence_id == arena.NOT_FOUND:
            return self._save(arena.GroupOccurrence, "/smallgroups/occurrences", occurrence, user, create=True)
        return self._save(arena.GroupOccurrence, f"/smallgroups/occurrences/{occurrence.occurrence_id}",
                          occurrence, user, create=False)

    def save_group_photo(self, group_id: int, data: bytes, content_type: str, user: str) -> int:
        resp = self.client.post(
            f"/smallgroups/groups/{group_id}/photo",
            data=data,
            headers={"Content-Type": content_type, "X-Arena-User": user},
        )
        return int(resp.json()["blob_id"])

    # ── Security ─────────────────────────────────────────────────────────────
    def permission_grants(self, object_type: str, object_id: Union[int, str]) -> list[arena.PermissionGrant]:
        params = {"object_type": object_type, "object_id": object_id}
        return self._many(arena.PermissionGrant, "/security/permissions", params=params)

    def role_ids(self, organization_id: int, person_id: int) -> list[int]:
        params = {"organization_id": organization_id, "person_id": person_id}
        return [int(role_id) for role_id in self.client.get("/security/roles", params=params).json()]

    # ── OAuth ────────────────────────────────────────────────────────────────
    def get_client(self, client_id: int) -> arena.OAuthClient:
        return self._one(arena.OAuthClient, f"/oauth/clients/{client_id}")

    def get_client_by_key(self, api_key: str) -> arena.OAuthClient:
        return self._one(arena.OAuthClient, f"/oauth/clients/by-key/{api_key}")

    def user_authorizations(self, login_id: str, api_key: str) -> list[arena.Authorization]:
        return self._many(arena.Authorization, f"/oauth/clients/by-key/{api_key}/authorizations",
                          params={"login_id": login_id})

    def get_authorization(self, authorization_id: int) -> arena.Authorization:
        return self._one(arena.Authorization, f"/oauth/authorizations/{authorization_id}")

    def get_scope(self, scope_id: int) -> arena.Scope:
        return self._one(arena.Scope, f"/oauth/scopes/{scope_id}")

    def get_scope_by_identifier(self, identifier: str) -> arena.Scope:
        return self._one(arena.Scope, "/oauth/scopes/by-identifier", params={"identifier": identifier})

    def save_authorization(self, authorization: arena.Authorization, user: str) -> arena.Authorization:
        if authorization.authorization_id == arena.NOT_FOUND:
            return self._save(arena.Authorization, "/oauth/authorizations", authorization, user, create=True)
        return self._save(arena.Authorization, f"/oauth/authorizations/{authorization.authorization_id}",
                          authorization, user, create=False)

    # ── Sessions ─────────────────────────────────────────────────────────────
    def authenticate(self, username: str, password: str) -> arena.Person:
        try:
            resp = self.client.post("/sessions/authenticate", json={"username": username, "password": password})
        except ArenaAPIError as exc:
            if exc.status_code in (401, 403, 404):
                return arena.Person()
            raise
        return from_record(arena.Person, resp.json())

    def get_api_application(self, api_key: str) -> arena.ApiApplication:
        return self._one(arena.ApiApplication, f"/applications/{api_key}")

    def get_device(self, device_id: str) -> arena.Device:
        return self._one(arena.Device, f"/devices/{device_id}")

    def get_device_by_key(self, device_key: str) -> arena.Device:
        return self._one(arena.Device, "/devices/by-key", params={"device_key": device_key})

    def save_device(self, device: arena.Device, user: str) -> arena.Device:
        return self._save(arena.Device, f"/devices/{device.device_id}", device, user, create=False)

    def version_info(self) -> tuple[str, str]:
        payload = self.client.get("/system/version").json()
        return payload.get("arena_version", ""), payload.get("database_version", "")
