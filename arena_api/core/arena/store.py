"""Interface to the Arena data layer.

The facade never owns Arena data. Everything it reads or writes goes
through an ArenaStore:

- InMemoryArenaStore (memory.py): demo mode and tests
- HttpArenaStore (http_store.py): Arena data service over HTTP

Lookups by id return an entity whose id is NOT_FOUND (-1) when nothing
matches, the same way the Arena data layer does. Methods taking ``user``
record who performed a write.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional, Union

from . import entities as arena


class ArenaStore(ABC):
    """Narrow collaborator interface consumed by handlers and the oracle."""

    # ── People ───────────────────────────────────────────────────────────────
    @abstractmethod
    def get_person(self, person_id: int) -> arena.Person: ...

    @abstractmethod
    def family_members(self, family_id: int) -> list[arena.Person]: ...

    @abstractmethod
    def relationships(self, person_id: int) -> list[arena.Relationship]: ...

    @abstractmethod
    def match_or_create_person(self, person: arena.Person, user: str) -> arena.Person: ...

    @abstractmethod
    def process_imin(self, submission: arena.ImInSubmission, user: str) -> int: ...

    @abstractmethod
    def get_person_attribute(self, person_id: int, attribute_id: int) -> arena.PersonAttribute: ...

    @abstractmethod
    def save_person_attribute(self, attribute: arena.PersonAttribute, user: str) -> None: ...

    @abstractmethod
    def phone_types(self) -> list[arena.LookupValue]: ...

    @abstractmethod
    def campuses(self) -> list[arena.LookupValue]: ...

    # ── Profiles ─────────────────────────────────────────────────────────────
    @abstractmethod
    def get_profile(self, profile_id: int) -> arena.Profile: ...

    @abstractmethod
    def child_profiles(self, profile_id: int) -> list[arena.Profile]: ...

    @abstractmethod
    def root_profiles(self, profile_type: int, organization_id: int, person_id: int) -> list[arena.Profile]: ...

    @abstractmethod
    def profile_members(self, profile_id: int, status_id: Optional[int] = None) -> list[arena.ProfileMember]: ...

    @abstractmethod
    def get_profile_member(self, profile_id: int, person_id: int) -> arena.ProfileMember: ...

    @abstractmethod
    def person_profiles(self, person_id: int) -> list[arena.Profile]: ...

    # ── Small groups ─────────────────────────────────────────────────────────
    @abstractmethod
    def categories(self) -> list[arena.GroupCategory]: ...

    @abstractmethod
    def get_category(self, category_id: int) -> arena.GroupCategory: ...

    @abstractmethod
    def get_cluster(self, cluster_id: int) -> arena.GroupCluster: ...

    @abstractmethod
    def root_clusters(self, category_id: int) -> list[arena.GroupCluster]: ...

    @abstractmethod
    def child_clusters(self, cluster_id: int) -> list[arena.GroupCluster]: ...

    @abstractmethod
    def get_group(self, group_id: int) -> arena.Group: ...

    @abstractmethod
    def groups_in_cluster(self, cluster_id: int) -> list[arena.Group]: ...

    @abstractmethod
    def groups_led_by(self, person_id: int) -> list[arena.Group]: ...

    @abstractmethod
    def group_occurrences(self, group_id: int, start: datetime, end: datetime) -> list[arena.GroupOccurrence]: ...

    @abstractmethod
    def get_occurrence(self, occurrence_id: int) -> arena.GroupOccurrence: ...

    @abstractmethod
    def save_occurrence(self, occurrence: arena.GroupOccurrence, user: str) -> arena.GroupOccurrence: ...

    @abstractmethod
    def save_group_photo(self, group_id: int, data: bytes, content_type: str, user: str) -> int: ...

    # ── Security ─────────────────────────────────────────────────────────────
    @abstractmethod
    def permission_grants(self, object_type: str, object_id: Union[int, str]) -> list[arena.PermissionGrant]: ...

    @abstractmethod
    def role_ids(self, organization_id: int, person_id: int) -> list[int]: ...

    # ── OAuth ────────────────────────────────────────────────────────────────
    @abstractmethod
    def get_client(self, client_id: int) -> arena.OAuthClient: ...

    @abstractmethod
    def get_client_by_key(self, api_key: str) -> arena.OAuthClient: ...

    @abstractmethod
    def user_authorizations(self, login_id: str, api_key: str) -> list[arena.Authorization]: ...

    @abstractmethod
    def get_authorization(self, authorization_id: int) -> arena.Authorization: ...

    @abstractmethod
    def get_scope(self, scope_id: int) -> arena.Scope: ...

    @abstractmethod
    def get_scope_by_identifier(self, identifier: str) -> arena.Scope: ...

    @abstractmethod
    def save_authorization(self, authorization: arena.Authorization, user: str) -> arena.Authorization: ...

    # ── Sessions ─────────────────────────────────────────────────────────────
    @abstractmethod
    def authenticate(self, username: str, password: str) -> arena.Person: ...

    @abstractmethod
    def get_api_application(self, api_key: str) -> arena.ApiApplication: ...

    @abstractmethod
    def get_device(self, device_id: str) -> arena.Device: ...

    @abstractmethod
    def get_device_by_key(self, device_key: str) -> arena.Device: ...

    @abstractmethod
    def save_device(self, device: arena.Device, user: str) -> arena.Device: ...

    @abstractmethod
    def version_info(self) -> tuple[str, str]:
        """Return (arena_version, database_version)."""


def is_missing(entity_id: Optional[int]) -> bool:
    """True when an id is the data layer's not-found sentinel (or unset)."""
    return entity_id is None or entity_id == arena.NOT_FOUND
