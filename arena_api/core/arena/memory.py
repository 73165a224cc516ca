"""In-memory ArenaStore used in demo mode and by the test suite."""
from __future__ import annotations

import hmac
import itertools
import logging
import uuid
from dataclasses import replace
from datetime import datetime, time
from typing import Optional, Union

from . import entities as arena
from .store import ArenaStore

logger = logging.getLogger(__name__)


class InMemoryArenaStore(ArenaStore):
    """Dictionary-backed store with the same sentinel conventions as Arena.

    Builder methods (``add_*``, ``grant``, ``add_role``, ``set_password``)
    populate the store; the ArenaStore methods only read it, apart from
    the explicit save operations.
    """

    def __init__(self, arena_version: str = "2009.2.100.1401", database_version: str = "2009.2.100.1401"):
        self.arena_version = arena_version
        self.database_version = database_version
        self.people: dict[int, arena.Person] = {}
        self.credentials: dict[str, tuple[str, int]] = {}
        self.relations: list[arena.Relationship] = []
        self.attributes: dict[tuple[int, int], arena.PersonAttribute] = {}
        self.phone_type_lookups: list[arena.LookupValue] = []
        self.campus_lookups: list[arena.LookupValue] = []
        self.imin_submissions: list[arena.ImInSubmission] = []
        self.profiles: dict[int, arena.Profile] = {}
        self.profile_memberships: list[arena.ProfileMember] = []
        self.group_categories: dict[int, arena.GroupCategory] = {}
        self.clusters: dict[int, arena.GroupCluster] = {}
        self.groups: dict[int, arena.Group] = {}
        self.occurrences: dict[int, arena.GroupOccurrence] = {}
        self.blobs: dict[int, tuple[bytes, str]] = {}
        self.grants: dict[tuple[str, Union[int, str]], list[arena.PermissionGrant]] = {}
        self.roles: dict[tuple[int, int], list[int]] = {}
        self.clients: dict[int, arena.OAuthClient] = {}
        self.scopes: dict[int, arena.Scope] = {}
        self.authorizations: dict[int, arena.Authorization] = {}
        self.applications: dict[str, arena.ApiApplication] = {}
        self.devices: dict[str, arena.Device] = {}
        self._ids = itertools.count(10000)

    def next_id(self) -> int:
        return next(self._ids)

    # ─────────────────────────────────────────────────────────────────────────
    # Builders
    # ─────────────────────────────────────────────────────────────────────────
    def add_person(self, person: arena.Person) -> arena.Person:
        if person.guid is None:
            person.guid = uuid.uuid4()
        self.people[person.person_id] = person
        return person

    def set_password(self, username: str, password: str, person_id: int) -> None:
        self.credentials[username.lower()] = (password, person_id)
        self.people[person_id].login_id = username

    def add_profile(self, profile: arena.Profile) -> arena.Profile:
        self.profiles[profile.profile_id] = profile
        return profile

    def add_profile_member(self, member: arena.ProfileMember) -> arena.ProfileMember:
        self.profile_memberships.append(member)
        return member

    def add_category(self, category: arena.GroupCategory) -> arena.GroupCategory:
        self.group_categories[category.category_id] = category
        return category

    def add_cluster(self, cluster: arena.GroupCluster) -> arena.GroupCluster:
        self.clusters[cluster.cluster_id] = cluster
        return cluster

    def add_group(self, group: arena.Group) -> arena.Group:
        self.groups[group.group_id] = group
        return group

    def grant(self, object_type: str, object_id: Union[int, str], subject_type: str, subject_id: int,
              operation: str = arena.OperationType.VIEW) -> None:
        key = (object_type, object_id)
        self.grants.setdefault(key, []).append(arena.PermissionGrant(subject_type, subject_id, operation))

    def add_role(self, organization_id: int, person_id: int, role_id: int) -> None:
        self.roles.setdefault((organization_id, person_id), []).append(role_id)

    def add_client(self, client: arena.OAuthClient) -> arena.OAuthClient:
        self.clients[client.client_id] = client
        for scope in client.scopes:
            self.scopes.setdefault(scope.scope_id, scope)
        return client

    def add_application(self, application: arena.ApiApplication) -> arena.ApiApplication:
        self.applications[str(application.api_key).lower()] = application
        return application

    # ─────────────────────────────────────────────────────────────────────────
    # People
    # ─────────────────────────────────────────────────────────────────────────
    def get_person(self, person_id: int) -> arena.Person:
        return self.people.get(person_id) or arena.Person()

    def family_members(self, family_id: int) -> list[arena.Person]:
        if family_id == arena.NOT_FOUND:
            return []
        return [p for p in self.people.values() if p.family_id == family_id]

    def relationships(self, person_id: int) -> list[arena.Relationship]:
        return [r for r in self.relations if r.person_id == person_id]

    def match_or_create_person(self, person: arena.Person, user: str) -> arena.Person:
        for existing in self.people.values():
            if (existing.first_name.lower() == person.first_name.lower()
                    and existing.last_name.lower() == person.last_name.lower()
                    and (existing.birth_date == person.birth_date
                         or _emails(existing) & _emails(person))):
                logger.info("Matched person %s for %s", existing.person_id, user)
                return existing
        created = replace(person, person_id=self.next_id(), guid=uuid.uuid4(),
                          date_created=datetime.now(), date_modified=datetime.now())
        self.people[created.person_id] = created
        logger.info("Created person %s for %s", created.person_id, user)
        return created

    def process_imin(self, submission: arena.ImInSubmission, user: str) -> int:
        self.imin_submissions.append(submission)
        person = self.match_or_create_person(
            arena.Person(
                first_name=submission.first_name,
                last_name=submission.last_name,
                birth_date=submission.birth_date,
                campus_id=submission.campus_id,
                emails=[arena.PersonEmail(submission.email)] if submission.email else [],
            ),
            user,
        )
        return person.person_id

    def get_person_attribute(self, person_id: int, attribute_id: int) -> arena.PersonAttribute:
        return self.attributes.get((person_id, attribute_id)) or arena.PersonAttribute()

    def save_person_attribute(self, attribute: arena.PersonAttribute, user: str) -> None:
        self.attributes[(attribute.person_id, attribute.attribute_id)] = attribute

    def phone_types(self) -> list[arena.LookupValue]:
        return list(self.phone_type_lookups)

    def campuses(self) -> list[arena.LookupValue]:
        return list(self.campus_lookups)

    # ─────────────────────────────────────────────────────────────────────────
    # Profiles
    # ─────────────────────────────────────────────────────────────────────────
    def get_profile(self, profile_id: int) -> arena.Profile:
        return self.profiles.get(profile_id) or arena.Profile()

    def child_profiles(self, profile_id: int) -> list[arena.Profile]:
        return [p for p in self.profiles.values() if p.parent_profile_id == profile_id]

    def root_profiles(self, profile_type: int, organization_id: int, person_id: int) -> list[arena.Profile]:
        roots = [
            p for p in self.profiles.values()
            if p.parent_profile_id == arena.NOT_FOUND and p.profile_type == profile_type
        ]
        if profile_type == arena.ProfileType.PERSONAL:
            roots = [p for p in roots if p.owner_id == person_id]
        return roots

    def profile_members(self, profile_id: int, status_id: Optional[int] = None) -> list[arena.ProfileMember]:
        return [
            m for m in self.profile_memberships
            if m.profile_id == profile_id and (status_id is None or m.status.lookup_id == status_id)
        ]

    def get_profile_member(self, profile_id: int, person_id: int) -> arena.ProfileMember:
        for member in self.profile_memberships:
            if member.profile_id == profile_id and member.person_id == person_id:
                return member
        return arena.ProfileMember()

    def person_profiles(self, person_id: int) -> list[arena.Profile]:
        ids = [m.profile_id for m in self.profile_memberships if m.person_id == person_id]
        return [self.profiles[i] for i in ids if i in self.profiles]

    # ─────────────────────────────────────────────────────────────────────────
    # Small groups
    # ─────────────────────────────────────────────────────────────────────────
    def categories(self) -> list[arena.GroupCategory]:
        return list(self.group_categories.values())

    def get_category(self, category_id: int) -> arena.GroupCategory:
        return self.group_categories.get(category_id) or arena.GroupCategory()

    def get_cluster(self, cluster_id: int) -> arena.GroupCluster:
        return self.clusters.get(cluster_id) or arena.GroupCluster()

    def root_clusters(self, category_id: int) -> list[arena.GroupCluster]:
        return [
            c for c in self.clusters.values()
            if c.category_id == category_id and c.parent_cluster_id == arena.NOT_FOUND
        ]

    def child_clusters(self, cluster_id: int) -> list[arena.GroupCluster]:
        return [c for c in self.clusters.values() if c.parent_cluster_id == cluster_id]

    def get_group(self, group_id: int) -> arena.Group:
        return self.groups.get(group_id) or arena.Group()

    def groups_in_cluster(self, cluster_id: int) -> list[arena.Group]:
        return [g for g in self.groups.values() if g.cluster_id == cluster_id]

    def groups_led_by(self, person_id: int) -> list[arena.Group]:
        return [g for g in self.groups.values() if g.leader_id == person_id]

    def group_occurrences(self, group_id: int, start: datetime, end: datetime) -> list[arena.GroupOccurrence]:
        found = [
            o for o in self.occurrences.values()
            if o.group_id == group_id and start <= o.start <= end
        ]
        return sorted(found, key=lambda o: o.start)

    def get_occurrence(self, occurrence_id: int) -> arena.GroupOccurrence:
        return self.occurrences.get(occurrence_id) or arena.GroupOccurrence()

    def save_occurrence(self, occurrence: arena.GroupOccurrence, user: str) -> arena.GroupOccurrence:
        if occurrence.occurrence_id == arena.NOT_FOUND:
            occurrence = replace(occurrence, occurrence_id=self.next_id())
        self.occurrences[occurrence.occurrence_id] = occurrence
        return occurrence

    def save_group_photo(self, group_id: int, data: bytes, content_type: str, user: str) -> int:
        blob_id = self.next_id()
        self.blobs[blob_id] = (data, content_type)
        group = self.groups[group_id]
        group.picture_blob_id = blob_id
        group.picture_guid = uuid.uuid4()
        return blob_id

    # ─────────────────────────────────────────────────────────────────────────
    # Security
    # ─────────────────────────────────────────────────────────────────────────
    def permission_grants(self, object_type: str, object_id: Union[int, str]) -> list[arena.PermissionGrant]:
        return list(self.grants.get((object_type, object_id), []))

    def role_ids(self, organization_id: int, person_id: int) -> list[int]:
        return list(self.roles.get((organization_id, person_id), []))

    # ─────────────────────────────────────────────────────────────────────────
    # OAuth
    # ─────────────────────────────────────────────────────────────────────────
    def get_client(self, client_id: int) -> arena.OAuthClient:
        return self.clients.get(client_id) or arena.OAuthClient()

    def get_client_by_key(self, api_key: str) -> arena.OAuthClient:
        for client in self.clients.values():
            if str(client.api_key).lower() == api_key.lower():
                return client
        return arena.OAuthClient()

    def user_authorizations(self, login_id: str, api_key: str) -> list[arena.Authorization]:
        client = self.get_client_by_key(api_key)
        return [
            a for a in self.authorizations.values()
            if a.client_id == client.client_id and a.login_id.lower() == login_id.lower()
        ]

    def get_authorization(self, authorization_id: int) -> arena.Authorization:
        return self.authorizations.get(authorization_id) or arena.Authorization()

    def get_scope(self, scope_id: int) -> arena.Scope:
        return self.scopes.get(scope_id) or arena.Scope()

    def get_scope_by_identifier(self, identifier: str) -> arena.Scope:
        for scope in self.scopes.values():
            if scope.identifier == identifier:
                return scope
        return arena.Scope()

    def save_authorization(self, authorization: arena.Authorization, user: str) -> arena.Authorization:
        if authorization.authorization_id == arena.NOT_FOUND:
            authorization = replace(authorization, authorization_id=self.next_id())
        scope = self.get_scope(authorization.scope_id)
        authorization.scope_identifier = scope.identifier
        authorization.scope_description = scope.description
        self.authorizations[authorization.authorization_id] = authorization
        return authorization

    # ─────────────────────────────────────────────────────────────────────────
    # Sessions
    # ─────────────────────────────────────────────────────────────────────────
    def authenticate(self, username: str, password: str) -> arena.Person:
        stored = self.credentials.get(username.lower())
        if stored is None or not hmac.compare_digest(stored[0], password):
            return arena.Person()
        return self.get_person(stored[1])

    def get_api_application(self, api_key: str) -> arena.ApiApplication:
        return self.applications.get(api_key.lower()) or arena.ApiApplication()

    def get_device(self, device_id: str) -> arena.Device:
        return self.devices.get(device_id) or arena.Device()

    def get_device_by_key(self, device_key: str) -> arena.Device:
        for device in self.devices.values():
            if str(device.device_key).lower() == device_key.lower():
                return device
        return arena.Device()

    def save_device(self, device: arena.Device, user: str) -> arena.Device:
        if device.auth_device_id == arena.NOT_FOUND:
            device.auth_device_id = self.next_id()
        self.devices[device.device_id] = device
        return device

    def version_info(self) -> tuple[str, str]:
        return self.arena_version, self.database_version


def _emails(person: arena.Person) -> set[str]:
    return {e.email.lower() for e in person.emails if e.email}


# ─────────────────────────────────────────────────────────────────────────────
# Demo data
# ─────────────────────────────────────────────────────────────────────────────
DEMO_API_KEY = "2f5c1a1e-8f55-4e1f-9a51-1d1b6f0c7a01"
DEMO_CLIENT_KEY = "b7a4b0f2-0d5e-4c39-a0b5-6a2e2f5d9c11"
DEMO_CLIENT_SECRET = "5e1c8f3a-2b7d-4f6e-8c9a-0d1e2f3a4b5c"


def build_demo_store(organization_id: int = 1, demo_password: str = "Temp123!") -> InMemoryArenaStore:
    """Seed a small congregation: two families, a cluster tree, profiles, an OAuth client."""
    store = InMemoryArenaStore()

    home = arena.LookupValue(1, "Home")
    cell = arena.LookupValue(2, "Cell")
    store.phone_type_lookups = [home, cell, arena.LookupValue(3, "Business", active=False)]
    store.campus_lookups = [arena.LookupValue(1, "Main Campus"), arena.LookupValue(2, "North Campus")]

    alice = store.add_person(arena.Person(
        person_id=1, organization_id=organization_id, campus_id=1, campus_name="Main Campus",
        first_name="Alice", last_name="Anderson", family_id=100, family_name="Anderson",
        family_role=arena.LookupValue(31, "Adult"), gender="Female",
        birth_date=datetime(1980, 4, 12), member_status=arena.LookupValue(958, "Member"),
        emails=[arena.PersonEmail("alice@example.org", order=0)],
        phones=[arena.PersonPhone(cell, "(555) 201-3344", sms_enabled=True)],
        date_created=datetime(2010, 1, 5),
    ))
    bob = store.add_person(arena.Person(
        person_id=2, organization_id=organization_id, campus_id=1, campus_name="Main Campus",
        first_name="Bob", last_name="Anderson", family_id=100, family_name="Anderson",
        family_role=arena.LookupValue(31, "Adult"), gender="Male",
        birth_date=datetime(1978, 9, 3), medical_information="Peanut allergy",
        emails=[arena.PersonEmail("bob@example.org")],
    ))
    carol = store.add_person(arena.Person(
        person_id=3, organization_id=organization_id, campus_id=2, campus_name="North Campus",
        first_name="Carol", last_name="Chen", family_id=200, family_name="Chen",
        family_role=arena.LookupValue(31, "Adult"), gender="Female",
        birth_date=datetime(1991, 2, 20),
        emails=[arena.PersonEmail("carol@example.org")],
        phones=[arena.PersonPhone(home, "(555) 777-1212")],
    ))
    store.set_password("alice", demo_password, alice.person_id)
    store.set_password("carol", demo_password, carol.person_id)
    store.relations.append(arena.Relationship(
        alice.person_id, alice.full_name, carol.person_id, carol.full_name, arena.LookupValue(5, "Friend"),
    ))

    store.add_category(arena.GroupCategory(
        category_id=1, name="Small Groups", allow_registrations=True,
        default_role=arena.LookupValue(40, "Member"),
        valid_roles=[arena.LookupValue(40, "Member"), arena.LookupValue(41, "Leader")],
    ))
    store.add_cluster(arena.GroupCluster(cluster_id=10, category_id=1, name="Main Campus Groups",
                                         admin_id=bob.person_id, admin_name=bob.full_name))
    store.add_cluster(arena.GroupCluster(cluster_id=11, parent_cluster_id=10, category_id=1, name="Young Adults"))
    store.add_group(arena.Group(
        group_id=50, cluster_id=11, category_id=1, name="Tuesday Young Adults",
        leader_id=carol.person_id, leader_name=carol.full_name,
        meeting_day=arena.LookupValue(2, "Tuesday"),
        meeting_start_time=time(19, 0), meeting_end_time=time(21, 0),
        members=[
            arena.GroupMember(carol.person_id, carol.full_name, "carol@example.org", role=arena.LookupValue(41, "Leader")),
            arena.GroupMember(alice.person_id, alice.full_name, "alice@example.org", role=arena.LookupValue(40, "Member")),
        ],
    ))
    store.grant(arena.ObjectType.GROUP_CLUSTER, 10, "ROLE", 7)
    store.grant(arena.ObjectType.GROUP_CLUSTER, 11, "ROLE", 7)
    store.add_role(organization_id, bob.person_id, 7)
    for field_key in ("Profile_PersonID", "Profile_Name", "Profile_Gender", "Profile_Emails"):
        store.grant(arena.ObjectType.PERSON_FIELD, field_key, "ROLE", 7)
    store.occurrences[500] = arena.GroupOccurrence(
        500, 50, "Tuesday Young Adults Occurrence",
        start=datetime(2026, 9, 1, 19, 0), end=datetime(2026, 9, 1, 21, 0),
        attendees=[alice.person_id],
    )

    store.add_profile(arena.Profile(profile_id=300, name="Worship Team", profile_type=arena.ProfileType.SERVING,
                                    owner_id=bob.person_id, owner_name=bob.full_name))
    store.add_profile(arena.Profile(profile_id=301, parent_profile_id=300, name="Vocals",
                                    profile_type=arena.ProfileType.SERVING))
    store.add_profile(arena.Profile(profile_id=400, name="Fall Retreat", profile_type=arena.ProfileType.EVENT,
                                    start=datetime(2026, 10, 2, 18), end=datetime(2026, 10, 4, 12),
                                    location="Camp Lakeside", summary="Weekend retreat"))
    for profile_id in (300, 301, 400):
        store.grant(arena.ObjectType.PROFILE, profile_id, "ROLE", 7)
        store.grant(arena.ObjectType.PROFILE, profile_id, "PERSON", alice.person_id)
    store.add_profile_member(arena.ProfileMember(
        300, "Worship Team", alice.person_id, alice.full_name, status=arena.LookupValue(255, "Connected"),
    ))
    store.add_profile_member(arena.ProfileMember(
        400, "Fall Retreat", alice.person_id, alice.full_name, status=arena.LookupValue(255, "Connected"),
    ))

    scope = arena.Scope(1, "profile", "Read your profile")
    store.add_client(arena.OAuthClient(
        client_id=1, name="Demo Mobile App", callback_url="https://app.example.org/callback",
        api_key=uuid.UUID(DEMO_CLIENT_KEY), api_secret=uuid.UUID(DEMO_CLIENT_SECRET), scopes=[scope],
    ))
    store.add_application(arena.ApiApplication(1, "Demo Mobile App", uuid.UUID(DEMO_API_KEY), uuid.uuid4()))
    return store
