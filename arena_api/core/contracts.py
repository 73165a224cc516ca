"""Wire contracts returned by the REST facade.

Contracts are flat dataclasses. Python attribute names are snake_case, the
serialized (wire) names are carried in field metadata and match what existing
Arena clients expect (PascalCase, e.g. ``PersonID``).

Field metadata keys:
    wire          serialized element / property name
    emit_default  when False the field is omitted while it holds its default
    encode        optional callable applied to the value at serialization
"""
from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import datetime
from typing import Any, Callable, ClassVar, Optional
from uuid import UUID


def wire(
    name: str,
    *,
    emit_default: bool = False,
    default: Any = None,
    default_factory: Optional[Callable[[], Any]] = None,
    encode: Optional[Callable[[Any], Any]] = None,
):
    """Declare a contract field with its wire name."""
    metadata = {"wire": name, "emit_default": emit_default}
    if encode is not None:
        metadata["encode"] = encode
    if default_factory is not None:
        return field(default_factory=default_factory, metadata=metadata)
    return field(default=default, metadata=metadata)


def wire_fields(contract_type) -> dict[str, str]:
    """Map uppercase wire names to attribute names for a contract type."""
    return {f.metadata["wire"].upper(): f.name for f in fields(contract_type) if "wire" in f.metadata}


def _bool_string(value: bool) -> str:
    return "True" if value else "False"


# ─────────────────────────────────────────────────────────────────────────────
# Shared shapes
# ─────────────────────────────────────────────────────────────────────────────
@dataclass
class Lookup:
    WIRE_NAME: ClassVar[str] = "Lookup"

    id: Optional[int] = wire("ID")
    value: Optional[str] = wire("Value")


@dataclass
class GenericReference:
    WIRE_NAME: ClassVar[str] = "GenericReference"

    id: Optional[int] = wire("ID")
    title: Optional[str] = wire("Title")


@dataclass
class ValidationResult:
    WIRE_NAME: ClassVar[str] = "ValidationResult"

    key: str = wire("Key", emit_default=True, default="")
    message: str = wire("Message", emit_default=True, default="")


@dataclass
class ModifyResult:
    """Outcome of a write. ``successful`` is written as "True"/"False"."""

    WIRE_NAME: ClassVar[str] = "ModifyResult"

    successful: bool = wire("Successful", emit_default=True, default=False, encode=_bool_string)
    error_message: Optional[str] = wire("ErrorMessage")
    link: Optional[str] = wire("Link")
    validation_results: list[ValidationResult] = wire("ValidationResults", default_factory=list)

    def add_validation(self, key: str, message: str) -> None:
        self.validation_results.append(ValidationResult(key, message))
        self.successful = False

    def fail(self, message: str) -> "ModifyResult":
        self.successful = False
        self.error_message = message
        return self


@dataclass
class GenericListResult:
    """Paged list of contracts: ``{Items, Total, Max, Start}``."""

    WIRE_NAME: ClassVar[str] = "GenericListResult"

    items: list = wire("Items", emit_default=True, default_factory=list)
    total: int = wire("Total", emit_default=True, default=0)
    max: int = wire("Max", emit_default=True, default=0)
    start: int = wire("Start", emit_default=True, default=0)
    item_name: Optional[str] = field(default=None, repr=False)


@dataclass
class RestErrorMessage:
    WIRE_NAME: ClassVar[str] = "RestErrorMessage"

    status_code: int = wire("StatusCode", emit_default=True, default=500)
    message: str = wire("Message", emit_default=True, default="")


@dataclass
class Version:
    WIRE_NAME: ClassVar[str] = "Version"

    number: str = wire("Number", emit_default=True, default="")


@dataclass
class SystemVersion:
    WIRE_NAME: ClassVar[str] = "SystemVersion"

    arena_version: Optional[str] = wire("ArenaVersion", emit_default=True)
    database_version: Optional[str] = wire("DatabaseVersion", emit_default=True)
    api_version: str = wire("ApiVersion", emit_default=True, default="0.4")


@dataclass
class ApiSession:
    WIRE_NAME: ClassVar[str] = "ApiSession"

    session_id: Optional[str] = wire("SessionID")
    date_expires: Optional[datetime] = wire("DateExpires")
    device_key: Optional[UUID] = wire("DeviceKey")


# ─────────────────────────────────────────────────────────────────────────────
# People
# ─────────────────────────────────────────────────────────────────────────────
@dataclass
class Address:
    WIRE_NAME: ClassVar[str] = "Address"

    address_id: Optional[int] = wire("AddressID")
    address_type_id: Optional[int] = wire("AddressTypeID")
    address_type_value: Optional[str] = wire("AddressTypeValue")
    street_line1: Optional[str] = wire("StreetLine1")
    street_line2: Optional[str] = wire("StreetLine2")
    city: Optional[str] = wire("City")
    state: Optional[str] = wire("State")
    postal_code: Optional[str] = wire("PostalCode")
    country: Optional[str] = wire("Country")
    latitude: Optional[float] = wire("Latitude")
    longitude: Optional[float] = wire("Longitude")
    primary: bool = wire("Primary", emit_default=True, default=False)


@dataclass
class Phone:
    WIRE_NAME: ClassVar[str] = "Phone"

    phone_type_id: Optional[int] = wire("PhoneTypeID")
    phone_type_value: Optional[str] = wire("PhoneTypeValue")
    number: Optional[str] = wire("Number")
    extension: Optional[str] = wire("Extension")
    unlisted: bool = wire("Unlisted", emit_default=True, default=False)
    sms_enabled: bool = wire("SMSEnabled", emit_default=True, default=False)


@dataclass
class Email:
    WIRE_NAME: ClassVar[str] = "Email"

    address: Optional[str] = wire("Address")
    active: bool = wire("Active", emit_default=True, default=True)
    order: Optional[int] = wire("Order")


@dataclass
class Person:
    WIRE_NAME: ClassVar[str] = "Person"

    person_id: Optional[int] = wire("PersonID")
    person_guid: Optional[UUID] = wire("PersonGUID")
    person_link: Optional[str] = wire("PersonLink")
    organization_id: Optional[int] = wire("OrganizationID")
    campus_id: Optional[int] = wire("CampusID")
    campus_name: Optional[str] = wire("CampusName")
    title_id: Optional[int] = wire("TitleID")
    title_value: Optional[str] = wire("TitleValue")
    suffix_id: Optional[int] = wire("SuffixID")
    suffix_value: Optional[str] = wire("SuffixValue")
    nick_name: Optional[str] = wire("NickName")
    first_name: Optional[str] = wire("FirstName")
    middle_name: Optional[str] = wire("MiddleName")
    last_name: Optional[str] = wire("LastName")
    full_name: Optional[str] = wire("FullName")
    family_id: Optional[int] = wire("FamilyID")
    family_name: Optional[str] = wire("FamilyName")
    family_link: Optional[str] = wire("FamilyLink")
    age: Optional[int] = wire("Age")
    gender: Optional[str] = wire("Gender")
    notes: Optional[str] = wire("Notes")
    medical_information: Optional[str] = wire("MedicalInformation")
    envelope_number: Optional[int] = wire("EnvelopeNumber")
    marital_status_id: Optional[int] = wire("MaritalStatusID")
    marital_status_value: Optional[str] = wire("MaritalStatusValue")
    anniversary_date: Optional[datetime] = wire("AnniversaryDate")
    member_status_id: Optional[int] = wire("MemberStatusID")
    member_status_value: Optional[str] = wire("MemberStatusValue")
    record_status_id: Optional[int] = wire("RecordStatusID")
    record_status_value: Optional[str] = wire("RecordStatusValue")
    inactive_reason_id: Optional[int] = wire("InactiveReasonID")
    inactive_reason_value: Optional[str] = wire("InactiveReasonValue")
    contribute_individually: Optional[bool] = wire("ContributeIndividually")
    print_statement: Optional[bool] = wire("PrintStatement")
    email_statement: Optional[bool] = wire("EmailStatement")
    blob_id: Optional[int] = wire("BlobID")
    blob_link: Optional[str] = wire("BlobLink")
    addresses: list[Address] = wire("Addresses", default_factory=list)
    phones: list[Phone] = wire("Phones", default_factory=list)
    emails: list[Email] = wire("Emails", default_factory=list)
    attributes_link: Optional[str] = wire("AttributesLink")
    notes_link: Optional[str] = wire("NotesLink")
    birth_date: Optional[datetime] = wire("BirthDate")
    family_member_role_id: Optional[int] = wire("FamilyMemberRoleID")
    family_member_role_value: Optional[str] = wire("FamilyMemberRoleValue")
    date_created: Optional[datetime] = wire("DateCreated")
    date_modified: Optional[datetime] = wire("DateModified")
    graduation_date: Optional[datetime] = wire("GraduationDate")
    grade: Optional[int] = wire("Grade")


@dataclass
class FamilyMember:
    WIRE_NAME: ClassVar[str] = "FamilyMember"

    person_id: Optional[int] = wire("PersonID")
    full_name: Optional[str] = wire("FullName")
    role_type_id: Optional[int] = wire("RoleTypeID")
    role_type_value: Optional[str] = wire("RoleTypeValue")


@dataclass
class PersonRelationship:
    WIRE_NAME: ClassVar[str] = "PersonRelationship"

    person_id: Optional[int] = wire("PersonID")
    full_name: Optional[str] = wire("FullName")
    related_person_id: Optional[int] = wire("RelatedPersonID")
    related_full_name: Optional[str] = wire("RelatedFullName")
    relationship_type_id: Optional[int] = wire("RelationshipTypeID")
    relationship_type_value: Optional[str] = wire("RelationshipTypeValue")


@dataclass
class PersonAttribute:
    WIRE_NAME: ClassVar[str] = "PersonAttribute"

    attribute_id: Optional[int] = wire("AttributeID")
    attribute_name: Optional[str] = wire("AttributeName")
    string_value: Optional[str] = wire("StringValue")
    int_value: Optional[int] = wire("IntValue")
    decimal_value: Optional[float] = wire("DecimalValue")
    datetime_value: Optional[datetime] = wire("DateTimeValue")


@dataclass
class ImIn:
    WIRE_NAME: ClassVar[str] = "ImIn"

    person_id: Optional[int] = wire("PersonID")
    first_name: Optional[str] = wire("FirstName")
    last_name: Optional[str] = wire("LastName")
    date_of_birth: Optional[datetime] = wire("DateOfBirth")
    email: Optional[str] = wire("Email")
    phone_number: Optional[str] = wire("PhoneNumber")
    phone_type: Optional[str] = wire("PhoneType")
    is_member: Optional[bool] = wire("IsMember")
    agrees_with_sof: Optional[bool] = wire("AgreesWithSoF")
    campus: Optional[str] = wire("Campus")
    street_address: Optional[str] = wire("StreetAddress")
    zip_code: Optional[str] = wire("ZipCode")


# ─────────────────────────────────────────────────────────────────────────────
# Profiles and events
# ─────────────────────────────────────────────────────────────────────────────
@dataclass
class Profile:
    WIRE_NAME: ClassVar[str] = "Profile"

    profile_id: Optional[int] = wire("ProfileID")
    parent_id: Optional[int] = wire("ParentID")
    name: Optional[str] = wire("Name")
    profile_type_string: Optional[str] = wire("ProfileTypeString")
    profile_type: Optional[int] = wire("ProfileType")
    active: Optional[bool] = wire("Active")
    profile_active_member_count: Optional[int] = wire("ProfileActiveMemberCount")
    profile_member_count: Optional[int] = wire("ProfileMemberCount")
    campus_id: Optional[int] = wire("CampusID")
    notes: Optional[str] = wire("Notes")
    owner: Optional[GenericReference] = wire("Owner")
    created_by: Optional[str] = wire("CreatedBy")
    date_created: Optional[datetime] = wire("DateCreated")
    modified_by: Optional[str] = wire("ModifiedBy")
    date_modified: Optional[datetime] = wire("DateModified")
    critical_members: Optional[int] = wire("CriticalMembers")
    active_members: Optional[int] = wire("ActiveMembers")
    in_review_members: Optional[int] = wire("InReviewMembers")
    no_contact_members: Optional[int] = wire("NoContactMembers")
    pending_members: Optional[int] = wire("PendingMembers")
    total_members: Optional[int] = wire("TotalMembers")
    navigation_url: Optional[str] = wire("NavigationUrl")
    owner_relationship_strength: Optional[int] = wire("OwnerRelationshipStrength")
    peer_relationship_strength: Optional[int] = wire("PeerRelationshipStrength")


@dataclass
class ProfileMember:
    WIRE_NAME: ClassVar[str] = "ProfileMember"

    profile: Optional[GenericReference] = wire("Profile")
    person: Optional[GenericReference] = wire("Person")
    attendance_count: Optional[int] = wire("AttendanceCount")
    date_active: Optional[datetime] = wire("DateActive")
    date_dormant: Optional[datetime] = wire("DateDormant")
    date_in_review: Optional[datetime] = wire("DateInReview")
    date_pending: Optional[datetime] = wire("DatePending")
    member_notes: Optional[str] = wire("MemberNotes")
    source: Optional[Lookup] = wire("Source")
    status: Optional[Lookup] = wire("Status")
    status_reason: Optional[str] = wire("StatusReason")


@dataclass
class Event:
    WIRE_NAME: ClassVar[str] = "Event"

    id: Optional[int] = wire("Id")
    name: Optional[str] = wire("Name")
    summary: Optional[str] = wire("Summary")
    details: Optional[str] = wire("Details")
    start: Optional[datetime] = wire("Start")
    end: Optional[datetime] = wire("End")
    location: Optional[str] = wire("Location")
    image_url: Optional[str] = wire("ImageUrl")
    registration_url: Optional[str] = wire("RegistrationUrl")
    owner: Optional[GenericReference] = wire("Owner")


# ─────────────────────────────────────────────────────────────────────────────
# Small groups
# ─────────────────────────────────────────────────────────────────────────────
@dataclass
class SmallGroupCategory:
    WIRE_NAME: ClassVar[str] = "SmallGroupCategory"

    category_id: Optional[int] = wire("CategoryID")
    name: Optional[str] = wire("Name")
    allow_registrations: Optional[bool] = wire("AllowRegistrations")
    allow_bulk_update: Optional[bool] = wire("AllowBulkUpdate")
    history_is_private: Optional[bool] = wire("HistoryIsPrivate")
    credit_as_small_group: Optional[bool] = wire("CreditAsSmallGroup")
    uses_area: Optional[bool] = wire("UsesArea")
    use_uniform_number: Optional[bool] = wire("UseUniformNumber")
    default_role: Optional[Lookup] = wire("DefaultRole")
    leader_caption: Optional[str] = wire("LeaderCaption")
    meeting_day_caption: Optional[str] = wire("MeetingDayCaption")
    name_caption: Optional[str] = wire("NameCaption")
    valid_roles: list[Lookup] = wire("ValidRoles", default_factory=list)


@dataclass
class SmallGroupCluster:
    WIRE_NAME: ClassVar[str] = "SmallGroupCluster"

    cluster_id: Optional[int] = wire("ClusterID")
    parent_cluster_id: Optional[int] = wire("ParentClusterID")
    category_id: Optional[int] = wire("CategoryID")
    name: Optional[str] = wire("Name")
    active: Optional[bool] = wire("Active")
    level: Optional[int] = wire("Level")
    type_id: Optional[int] = wire("TypeID")
    description: Optional[str] = wire("Description")
    notes: Optional[str] = wire("Notes")
    cluster_count: Optional[int] = wire("ClusterCount")
    registration_count: Optional[int] = wire("RegistrationCount")
    member_count: Optional[int] = wire("MemberCount")
    group_count: Optional[int] = wire("GroupCount")
    admin: Optional[GenericReference] = wire("Admin")
    leader: Optional[GenericReference] = wire("Leader")
    area_id: Optional[int] = wire("AreaID")
    url: Optional[str] = wire("Url")
    date_created: Optional[datetime] = wire("DateCreated")
    date_modified: Optional[datetime] = wire("DateModified")
    navigation_url: Optional[str] = wire("NavigationUrl")
    image_url: Optional[str] = wire("ImageUrl")


@dataclass
class SmallGroup:
    WIRE_NAME: ClassVar[str] = "SmallGroup"

    group_id: Optional[int] = wire("GroupID")
    group_cluster_id: Optional[int] = wire("GroupClusterID")
    category_id: Optional[int] = wire("CategoryID")
    name: Optional[str] = wire("Name")
    active: Optional[bool] = wire("Active")
    cluster_type_id: Optional[int] = wire("ClusterTypeID")
    description: Optional[str] = wire("Description")
    schedule: Optional[str] = wire("Schedule")
    notes: Optional[str] = wire("Notes")
    registration_count: Optional[int] = wire("RegistrationCount")
    member_count: Optional[int] = wire("MemberCount")
    leader: Optional[GenericReference] = wire("Leader")
    area_id: Optional[int] = wire("AreaID")
    group_url: Optional[str] = wire("GroupUrl")
    date_created: Optional[datetime] = wire("DateCreated")
    date_modified: Optional[datetime] = wire("DateModified")
    navigation_url: Optional[str] = wire("NavigationUrl")
    picture_url: Optional[str] = wire("PictureUrl")
    average_age: Optional[float] = wire("AverageAge")
    meeting_day: Optional[Lookup] = wire("MeetingDay")
    primary_age: Optional[Lookup] = wire("PrimaryAge")
    primary_marital_status: Optional[Lookup] = wire("PrimaryMaritalStatus")
    topic: Optional[Lookup] = wire("Topic")
    max_members: Optional[int] = wire("MaxMembers")
    private: Optional[bool] = wire("Private")


@dataclass
class SmallGroupMember:
    WIRE_NAME: ClassVar[str] = "SmallGroupMember"

    person_id: Optional[int] = wire("PersonID")
    full_name: Optional[str] = wire("FullName")
    primary_email: Optional[str] = wire("PrimaryEmail")
    cell_phone: Optional[str] = wire("CellPhone")
    home_phone: Optional[str] = wire("HomePhone")
    group: Optional[GenericReference] = wire("Group")
    active: Optional[bool] = wire("Active")
    role: Optional[Lookup] = wire("Role")
    uniform_number: Optional[int] = wire("UniformNumber")


@dataclass
class SmallGroupOccurrence:
    WIRE_NAME: ClassVar[str] = "SmallGroupOccurrence"

    occurrence_id: Optional[int] = wire("OccurrenceID")
    group_id: Optional[int] = wire("GroupID")
    name: Optional[str] = wire("Name")
    description: Optional[str] = wire("Description")
    start: Optional[datetime] = wire("Start")
    end: Optional[datetime] = wire("End")
    attendees: list[GenericReference] = wire("Attendees", default_factory=list)


# ─────────────────────────────────────────────────────────────────────────────
# OAuth
# ─────────────────────────────────────────────────────────────────────────────
@dataclass
class OAuthScope:
    WIRE_NAME: ClassVar[str] = "OAuthScope"

    scope_id: Optional[int] = wire("ScopeID")
    identifier: Optional[str] = wire("Identifier")
    description: Optional[str] = wire("Description")
    active: Optional[bool] = wire("Active")


@dataclass
class OAuthClient:
    WIRE_NAME: ClassVar[str] = "OAuthClient"

    client_id: Optional[int] = wire("ClientID")
    name: Optional[str] = wire("Name")
    callback_url: Optional[str] = wire("CallbackURL")
    api_key: Optional[UUID] = wire("APIKey")
    api_secret: Optional[UUID] = wire("APISecret")
    active: Optional[bool] = wire("Active")
    scopes: list[OAuthScope] = wire("Scopes", default_factory=list)


@dataclass
class OAuthAuthorization:
    WIRE_NAME: ClassVar[str] = "OAuthAuthorization"

    authorization_id: Optional[int] = wire("AuthorizationId")
    client_id: Optional[int] = wire("ClientId")
    scope_id: Optional[int] = wire("ScopeId")
    login_id: Optional[str] = wire("LoginId")
    scope_identifier: Optional[str] = wire("ScopeIdentifier")
    scope_description: Optional[str] = wire("ScopeDescription")
    active: Optional[bool] = wire("Active")


def is_contract(value: Any) -> bool:
    return hasattr(type(value), "WIRE_NAME") and hasattr(value, "__dataclass_fields__")
