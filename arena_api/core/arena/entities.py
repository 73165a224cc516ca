"""Arena data-layer entities.

These mirror the records the Arena data service hands back, including its
conventions: ``-1`` for "no id" and 1900-01-01 for "no date". A lookup that
finds nothing returns an entity whose primary id is NOT_FOUND rather than
None. Converting sentinels to absent values is the mappers' job.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, time
from enum import IntEnum
from typing import Optional
from uuid import UUID

NOT_FOUND = -1
SENTINEL_DATE = datetime(1900, 1, 1)

RECORD_STATUS_NAMES = {0: "Active", 1: "Inactive", 2: "Pending"}


class ProfileType(IntEnum):
    PERSONAL = 0
    MINISTRY = 1
    SERVING = 2
    EVENT = 4


class ObjectType:
    """Securable object kinds understood by the permission store."""

    PERSON_FIELD = "PersonField"
    PROFILE = "Profile"
    GROUP_CLUSTER = "GroupCluster"
    ATTRIBUTE = "Attribute"
    OAUTH_AUTHORIZATION = "OAuthAuthorization"


class OperationType:
    VIEW = "View"
    EDIT = "Edit"


@dataclass
class LookupValue:
    lookup_id: int = NOT_FOUND
    value: str = ""
    active: bool = True


# ─────────────────────────────────────────────────────────────────────────────
# People
# ─────────────────────────────────────────────────────────────────────────────
@dataclass
class PersonAddress:
    address_id: int = NOT_FOUND
    address_type: LookupValue = field(default_factory=LookupValue)
    street_line1: str = ""
    street_line2: str = ""
    city: str = ""
    state: str = ""
    postal_code: str = ""
    country: str = ""
    latitude: float = 0.0
    longitude: float = 0.0
    primary: bool = False


@dataclass
class PersonPhone:
    phone_type: LookupValue = field(default_factory=LookupValue)
    number: str = ""
    extension: str = ""
    unlisted: bool = False
    sms_enabled: bool = False


@dataclass
class PersonEmail:
    email: str = ""
    active: bool = True
    order: int = 0


@dataclass
class Person:
    person_id: int = NOT_FOUND
    guid: Optional[UUID] = None
    organization_id: int = NOT_FOUND
    campus_id: int = NOT_FOUND
    campus_name: str = ""
    title: LookupValue = field(default_factory=LookupValue)
    suffix: LookupValue = field(default_factory=LookupValue)
    nick_name: str = ""
    first_name: str = ""
    middle_name: str = ""
    last_name: str = ""
    family_id: int = NOT_FOUND
    family_name: str = ""
    family_role: LookupValue = field(default_factory=LookupValue)
    gender: str = "Unknown"
    birth_date: datetime = SENTINEL_DATE
    notes: str = ""
    medical_information: str = ""
    envelope_number: int = NOT_FOUND
    marital_status: LookupValue = field(default_factory=LookupValue)
    anniversary_date: datetime = SENTINEL_DATE
    member_status: LookupValue = field(default_factory=LookupValue)
    record_status: int = 0
    inactive_reason: LookupValue = field(default_factory=LookupValue)
    contribute_individually: bool = False
    print_statement: bool = False
    email_statement: bool = False
    blob_id: int = NOT_FOUND
    blob_guid: Optional[UUID] = None
    date_created: datetime = SENTINEL_DATE
    date_modified: datetime = SENTINEL_DATE
    graduation_date: datetime = SENTINEL_DATE
    grade: int = NOT_FOUND
    login_id: str = ""
    addresses: list[PersonAddress] = field(default_factory=list)
    phones: list[PersonPhone] = field(default_factory=list)
    emails: list[PersonEmail] = field(default_factory=list)
    previous_ids: list[int] = field(default_factory=list)

    @property
    def full_name(self) -> str:
        first = self.nick_name or self.first_name
        return f"{first} {self.last_name}".strip()

    @property
    def age(self) -> int:
        if self.birth_date == SENTINEL_DATE:
            return NOT_FOUND
        today = datetime.now()
        years = today.year - self.birth_date.year
        if (today.month, today.day) < (self.birth_date.month, self.birth_date.day):
            years -= 1
        return years

    @property
    def record_status_name(self) -> str:
        return RECORD_STATUS_NAMES.get(self.record_status, "Unknown")

    def phone(self, type_value: str) -> Optional[PersonPhone]:
        for phone in self.phones:
            if phone.phone_type.value.lower() == type_value.lower():
                return phone
        return None

    @property
    def primary_email(self) -> Optional[PersonEmail]:
        """Active email with the lowest Order."""
        active = [email for email in self.emails if email.active]
        return min(active, key=lambda email: email.order) if active else None


@dataclass
class Relationship:
    person_id: int = NOT_FOUND
    full_name: str = ""
    related_person_id: int = NOT_FOUND
    related_full_name: str = ""
    relationship_type: LookupValue = field(default_factory=LookupValue)


@dataclass
class PersonAttribute:
    attribute_id: int = NOT_FOUND
    person_id: int = NOT_FOUND
    name: str = ""
    data_type: str = "string"
    value: object = None


@dataclass
class ImInSubmission:
    first_name: str
    last_name: str
    birth_date: datetime
    email: str
    phone_number: str
    phone_type_id: int
    campus_id: int = NOT_FOUND
    is_member: bool = False
    agrees_with_sof: bool = False
    street_address: str = ""
    zip_code: str = ""


# ─────────────────────────────────────────────────────────────────────────────
# Profiles
# ─────────────────────────────────────────────────────────────────────────────
@dataclass
class Profile:
    profile_id: int = NOT_FOUND
    parent_profile_id: int = NOT_FOUND
    name: str = ""
    profile_type: int = ProfileType.MINISTRY
    active: bool = True
    campus_id: int = NOT_FOUND
    notes: str = ""
    owner_id: int = NOT_FOUND
    owner_name: str = ""
    created_by: str = ""
    date_created: datetime = SENTINEL_DATE
    modified_by: str = ""
    date_modified: datetime = SENTINEL_DATE
    active_member_count: int = 0
    member_count: int = 0
    critical_members: int = 0
    in_review_members: int = 0
    no_contact_members: int = 0
    pending_members: int = 0
    navigation_url: str = ""
    owner_relationship_strength: int = 0
    peer_relationship_strength: int = 0
    # event profiles only
    start: datetime = SENTINEL_DATE
    end: datetime = SENTINEL_DATE
    summary: str = ""
    details: str = ""
    location: str = ""
    registration_url: str = ""
    blob_guid: Optional[UUID] = None

    @property
    def profile_type_name(self) -> str:
        try:
            return ProfileType(self.profile_type).name.title()
        except ValueError:
            return "Unknown"


@dataclass
class ProfileMember:
    profile_id: int = NOT_FOUND
    profile_name: str = ""
    person_id: int = NOT_FOUND
    person_name: str = ""
    attendance_count: int = 0
    date_active: datetime = SENTINEL_DATE
    date_dormant: datetime = SENTINEL_DATE
    date_in_review: datetime = SENTINEL_DATE
    date_pending: datetime = SENTINEL_DATE
    member_notes: str = ""
    source: LookupValue = field(default_factory=LookupValue)
    status: LookupValue = field(default_factory=LookupValue)
    status_reason: str = ""


# ─────────────────────────────────────────────────────────────────────────────
# Small groups
# ─────────────────────────────────────────────────────────────────────────────
@dataclass
class GroupCategory:
    category_id: int = NOT_FOUND
    name: str = ""
    allow_registrations: bool = False
    allow_bulk_update: bool = False
    history_is_private: bool = False
    credit_as_small_group: bool = False
    uses_area: bool = False
    use_uniform_number: bool = False
    default_role: LookupValue = field(default_factory=LookupValue)
    leader_caption: str = ""
    meeting_day_caption: str = ""
    name_caption: str = ""
    valid_roles: list[LookupValue] = field(default_factory=list)


@dataclass
class GroupCluster:
    cluster_id: int = NOT_FOUND
    parent_cluster_id: int = NOT_FOUND
    category_id: int = NOT_FOUND
    name: str = ""
    active: bool = True
    level: int = 0
    type_id: int = NOT_FOUND
    description: str = ""
    notes: str = ""
    admin_id: int = NOT_FOUND
    admin_name: str = ""
    leader_id: int = NOT_FOUND
    leader_name: str = ""
    area_id: int = NOT_FOUND
    url: str = ""
    date_created: datetime = SENTINEL_DATE
    date_modified: datetime = SENTINEL_DATE
    navigation_url: str = ""
    blob_id: int = NOT_FOUND
    blob_guid: Optional[UUID] = None
    cluster_count: int = 0
    registration_count: int = 0
    member_count: int = 0
    group_count: int = 0


@dataclass
class GroupMember:
    person_id: int = NOT_FOUND
    full_name: str = ""
    primary_email: str = ""
    cell_phone: str = ""
    home_phone: str = ""
    active: bool = True
    role: LookupValue = field(default_factory=LookupValue)
    uniform_number: int = NOT_FOUND


@dataclass
class Group:
    group_id: int = NOT_FOUND
    cluster_id: int = NOT_FOUND
    category_id: int = NOT_FOUND
    name: str = ""
    active: bool = True
    cluster_type_id: int = NOT_FOUND
    description: str = ""
    schedule: str = ""
    notes: str = ""
    leader_id: int = NOT_FOUND
    leader_name: str = ""
    area_id: int = NOT_FOUND
    group_url: str = ""
    date_created: datetime = SENTINEL_DATE
    date_modified: datetime = SENTINEL_DATE
    navigation_url: str = ""
    picture_blob_id: int = NOT_FOUND
    picture_guid: Optional[UUID] = None
    average_age: float = 0.0
    meeting_day: LookupValue = field(default_factory=LookupValue)
    meeting_start_time: time = time(0, 0)
    meeting_end_time: time = time(0, 0)
    primary_age: LookupValue = field(default_factory=LookupValue)
    primary_marital_status: LookupValue = field(default_factory=LookupValue)
    topic: LookupValue = field(default_factory=LookupValue)
    max_members: int = 0
    private: bool = False
    registration_count: int = 0
    members: list[GroupMember] = field(default_factory=list)

    def has_member(self, person_id: int) -> bool:
        return any(member.person_id == person_id for member in self.members)


@dataclass
class GroupOccurrence:
    occurrence_id: int = NOT_FOUND
    group_id: int = NOT_FOUND
    name: str = ""
    description: str = ""
    start: datetime = SENTINEL_DATE
    end: datetime = SENTINEL_DATE
    attendees: list[int] = field(default_factory=list)


# ─────────────────────────────────────────────────────────────────────────────
# Security, OAuth and sessions
# ─────────────────────────────────────────────────────────────────────────────
@dataclass(frozen=True)
class PermissionGrant:
    subject_type: str  # "PERSON" or "ROLE"
    subject_id: int
    operation: str


@dataclass
class Scope:
    scope_id: int = NOT_FOUND
    identifier: str = ""
    description: str = ""
    active: bool = True


@dataclass
class OAuthClient:
    client_id: int = NOT_FOUND
    name: str = ""
    callback_url: str = ""
    api_key: Optional[UUID] = None
    api_secret: Optional[UUID] = None
    active: bool = True
    scopes: list[Scope] = field(default_factory=list)


@dataclass
class Authorization:
    authorization_id: int = NOT_FOUND
    client_id: int = NOT_FOUND
    scope_id: int = NOT_FOUND
    login_id: str = ""
    active: bool = True
    scope_identifier: str = ""
    scope_description: str = ""


@dataclass
class ApiApplication:
    application_id: int = NOT_FOUND
    name: str = ""
    api_key: Optional[UUID] = None
    api_secret: Optional[UUID] = None


@dataclass
class Device:
    auth_device_id: int = NOT_FOUND
    device_id: str = ""
    device_key: Optional[UUID] = None
    device_name: str = ""
    person_id: int = NOT_FOUND
    login_id: str = ""
    active: bool = True
    last_login: datetime = SENTINEL_DATE
