"""Input validation for the person write paths."""
from __future__ import annotations

import re
from datetime import datetime
from typing import Optional

from arena_api.core.arena.entities import SENTINEL_DATE, LookupValue
from arena_api.core.contracts import ImIn, ModifyResult, Person

# North-American number, e.g. "(502) 253-8000" or "502.253.8000"
PHONE_PATTERN = re.compile(r"^(\([2-9]\d\d\)|[2-9]\d\d) ?[-.,]? ?[2-9]\d\d ?[-.,]? ?\d{4}$")
EMAIL_PATTERN = re.compile(r"^\w+([-+.']\w+)*@\w+([-.]\w+)*\.\w+([-.]\w+)*$")

MIN_NAME_LENGTH = 2


def is_valid_phone(number: str) -> bool:
    return bool(PHONE_PATTERN.match(number))


def is_valid_email(email: str) -> bool:
    return bool(EMAIL_PATTERN.match(email))


def has_date(value: Optional[datetime]) -> bool:
    """True for a real date (not missing, not the 1900-01-01 sentinel)."""
    return value is not None and value != SENTINEL_DATE and value.year > 1


def is_blank(value: Optional[str]) -> bool:
    return not (value or "").strip()


def find_lookup(lookups: list[LookupValue], value: Optional[str]) -> Optional[LookupValue]:
    """Find a lookup by its display value (case-insensitive)."""
    if not value:
        return None
    wanted = value.strip().lower()
    for lookup in lookups:
        if lookup.value.lower() == wanted:
            return lookup
    return None


def validate_imin(imin: ImIn, phone_types: list[LookupValue], campuses: list[LookupValue],
                  result: ModifyResult) -> None:
    """Append every ImIn validation failure to ``result``.

    Args:
        imin: Submitted contract
        phone_types: Phone-type lookups (active ones are listed in the message)
        campuses: Campus lookups
        result: Collects ValidationResults and is marked unsuccessful on failure
    """
    if is_blank(imin.first_name):
        result.add_validation("FirstNameMissing", "First Name is required.")
    if is_blank(imin.last_name):
        result.add_validation("LastNameMissing", "Last Name is required.")
    if not has_date(imin.date_of_birth):
        result.add_validation("DOBMissingOrInvalid", "Date of Birth required and must be valid.")

    if is_blank(imin.phone_number):
        result.add_validation("PhoneNumberMissing", "Phone Number is required.")
    elif not is_valid_phone(imin.phone_number.strip()):
        result.add_validation("PhoneNumberInvalid", "Phone Number format is invalid: (502) 253-8000")

    if not is_blank(imin.email) and not is_valid_email(imin.email.strip()):
        result.add_validation("EmailInvalid", "Email format is invalid: person@secc.org")

    if find_lookup(phone_types, imin.phone_type) is None:
        active = ", ".join(lookup.value for lookup in phone_types if lookup.active)
        result.add_validation("PhoneTypeInvalid", f"Phone type is invalid ({active})")

    if find_lookup(campuses, imin.campus) is None:
        result.add_validation("CampusInvalid", "Campus is required.")


def validate_new_person(person: Person, result: ModifyResult) -> None:
    """Minimum information needed before matching or creating a person."""
    if not person.last_name or len(person.last_name.strip()) < MIN_NAME_LENGTH:
        result.add_validation("ShortLastName", "Last name must be at least 2 characters")
    if not person.first_name or len(person.first_name.strip()) < MIN_NAME_LENGTH:
        result.add_validation("ShortFirstName", "First name must be at least 2 characters")
    if not (person.emails or person.phones or has_date(person.birth_date)):
        result.add_validation(
            "NotEnoughInfo", "At least one of the following fields is required: Birth Date, Home Phone, or Email Address"
        )
