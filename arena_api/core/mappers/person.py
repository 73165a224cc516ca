"""Person projections: the secured Person contract and its small relatives."""
from __future__ import annotations

from dataclasses import fields
from typing import Any, Optional

from arena_api.core import contracts
from arena_api.core.arena import BlobUrlBuilder
from arena_api.core.arena import entities as arena
from arena_api.core.mappers.common import (
    assign_visible,
    date_or_none,
    id_or_none,
    lookup,
    text_or_none,
)
from arena_api.core.visibility import CallerContext, FieldVisibilityFilter, IncludeFieldSpec

PERSON_WIRE_NAMES = tuple(f.metadata["wire"] for f in fields(contracts.Person))


def address(record: arena.PersonAddress) -> contracts.Address:
    type_lookup = lookup(record.address_type)
    return contracts.Address(
        address_id=id_or_none(record.address_id),
        address_type_id=type_lookup.id if type_lookup else None,
        address_type_value=type_lookup.value if type_lookup else None,
        street_line1=text_or_none(record.street_line1),
        street_line2=text_or_none(record.street_line2),
        city=text_or_none(record.city),
        state=text_or_none(record.state),
        postal_code=text_or_none(record.postal_code),
        country=text_or_none(record.country),
        latitude=record.latitude or None,
        longitude=record.longitude or None,
        primary=record.primary,
    )


def phone(record: arena.PersonPhone) -> contracts.Phone:
    return contracts.Phone(
        phone_type_id=id_or_none(record.phone_type.lookup_id),
        phone_type_value=text_or_none(record.phone_type.value),
        number=text_or_none(record.number),
        extension=text_or_none(record.extension),
        unlisted=record.unlisted,
        sms_enabled=record.sms_enabled,
    )


def email(record: Optional[arena.PersonEmail]) -> contracts.Email:
    if record is None:
        return contracts.Email()
    return contracts.Email(address=record.email, active=record.active, order=record.order)


def family_member(person: arena.Person) -> contracts.FamilyMember:
    return contracts.FamilyMember(
        person_id=id_or_none(person.person_id),
        full_name=person.full_name or None,
        role_type_id=id_or_none(person.family_role.lookup_id),
        role_type_value=text_or_none(person.family_role.value),
    )


def relationship(record: arena.Relationship) -> contracts.PersonRelationship:
    return contracts.PersonRelationship(
        person_id=id_or_none(record.person_id),
        full_name=text_or_none(record.full_name),
        related_person_id=id_or_none(record.related_person_id),
        related_full_name=text_or_none(record.related_full_name),
        relationship_type_id=id_or_none(record.relationship_type.lookup_id),
        relationship_type_value=text_or_none(record.relationship_type.value),
    )


def attribute(record: arena.PersonAttribute) -> contracts.PersonAttribute:
    result = contracts.PersonAttribute(
        attribute_id=id_or_none(record.attribute_id),
        attribute_name=text_or_none(record.name),
    )
    if record.data_type == "int":
        result.int_value = record.value
    elif record.data_type == "decimal":
        result.decimal_value = record.value
    elif record.data_type == "datetime":
        result.datetime_value = record.value
    else:
        result.string_value = record.value
    return result


class PersonMapper:
    """Projects an Arena person into the Person contract, field by field.

    Which fields survive is decided by the FieldVisibilityFilter for the
    (caller, target) pair the CallerContext was built against.
    """

    def __init__(self, visibility: FieldVisibilityFilter, blobs: BlobUrlBuilder):
        self.visibility = visibility
        self.blobs = blobs

    def project(self, person: arena.Person, caller: CallerContext,
                requested: IncludeFieldSpec) -> contracts.Person:
        visible = self.visibility.visible_fields(caller, PERSON_WIRE_NAMES, requested)
        return assign_visible(contracts.Person(), self._values(person), visible)

    def _values(self, person: arena.Person) -> dict[str, Any]:
        """Every contract attribute for ``person``, sentinels already dropped."""
        guid = person.guid
        family_id = id_or_none(person.family_id)
        values = {
            "person_id": id_or_none(person.person_id),
            "person_guid": guid,
            "person_link": f"person/{guid}" if guid else None,
            "organization_id": id_or_none(person.organization_id),
            "campus_id": id_or_none(person.campus_id),
            "campus_name": text_or_none(person.campus_name),
            "title_id": id_or_none(person.title.lookup_id),
            "title_value": text_or_none(person.title.value),
            "suffix_id": id_or_none(person.suffix.lookup_id),
            "suffix_value": text_or_none(person.suffix.value),
            "nick_name": text_or_none(person.nick_name),
            "first_name": text_or_none(person.first_name),
            "middle_name": text_or_none(person.middle_name),
            "last_name": text_or_none(person.last_name),
            "full_name": text_or_none(person.full_name),
            "family_id": family_id,
            "family_name": text_or_none(person.family_name),
            "family_link": f"family/{family_id}" if family_id is not None else None,
            "age": id_or_none(person.age),
            "gender": text_or_none(person.gender),
            "notes": text_or_none(person.notes),
            "medical_information": text_or_none(person.medical_information),
            "envelope_number": id_or_none(person.envelope_number),
            "marital_status_id": id_or_none(person.marital_status.lookup_id),
            "marital_status_value": text_or_none(person.marital_status.value),
            "anniversary_date": date_or_none(person.anniversary_date),
            "member_status_id": id_or_none(person.member_status.lookup_id),
            "member_status_value": text_or_none(person.member_status.value),
            "record_status_id": person.record_status,
            "record_status_value": person.record_status_name,
            "inactive_reason_id": id_or_none(person.inactive_reason.lookup_id),
            "inactive_reason_value": text_or_none(person.inactive_reason.value),
            "contribute_individually": person.contribute_individually,
            "print_statement": person.print_statement,
            "email_statement": person.email_statement,
            "blob_id": id_or_none(person.blob_id),
            "blob_link": self.blobs.build(person.blob_guid) if id_or_none(person.blob_id) else None,
            "addresses": [address(a) for a in person.addresses],
            "phones": [phone(p) for p in person.phones],
            "emails": [email(e) for e in person.emails if e.active],
            "attributes_link": f"person/{guid}/attribute/list" if guid else None,
            "notes_link": f"person/{guid}/note/list" if guid else None,
            "birth_date": date_or_none(person.birth_date),
            "date_created": date_or_none(person.date_created),
            "date_modified": date_or_none(person.date_modified),
            "graduation_date": date_or_none(person.graduation_date),
            "grade": id_or_none(person.grade),
        }
        if family_id is not None:
            values["family_member_role_id"] = id_or_none(person.family_role.lookup_id)
            values["family_member_role_value"] = text_or_none(person.family_role.value)
        return values


def to_arena_person(contract: contracts.Person, organization_id: int) -> arena.Person:
    """Inverse mapping used by ``person/add``: only what a new record needs."""
    return arena.Person(
        organization_id=organization_id,
        campus_id=contract.campus_id if contract.campus_id is not None else arena.NOT_FOUND,
        nick_name=(contract.nick_name or "").strip(),
        first_name=(contract.first_name or "").strip(),
        middle_name=(contract.middle_name or "").strip(),
        last_name=(contract.last_name or "").strip(),
        gender=contract.gender or "Unknown",
        birth_date=contract.birth_date or arena.SENTINEL_DATE,
        emails=[
            arena.PersonEmail(e.address, e.active, e.order or 0) for e in contract.emails if e.address
        ],
        phones=[
            arena.PersonPhone(
                arena.LookupValue(contract_phone.phone_type_id or arena.NOT_FOUND, contract_phone.phone_type_value or ""),
                contract_phone.number or "",
                contract_phone.extension or "",
                contract_phone.unlisted,
                contract_phone.sms_enabled,
            )
            for contract_phone in contract.phones if contract_phone.number
        ],
    )
