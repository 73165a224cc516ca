"""Sentinel conversion and shapes shared by every mapper."""
from __future__ import annotations

import copy
from dataclasses import fields
from datetime import datetime
from typing import Any, Optional, TypeVar

from arena_api.core.arena.entities import NOT_FOUND, SENTINEL_DATE, LookupValue
from arena_api.core.contracts import GenericReference, Lookup
from arena_api.core.serialization import field_default
from arena_api.core.visibility import IncludeFieldSpec

C = TypeVar("C")


def id_or_none(value: Optional[int]) -> Optional[int]:
    """``-1`` (not found) becomes None."""
    if value is None or value == NOT_FOUND:
        return None
    return value


def date_or_none(value: Optional[datetime]) -> Optional[datetime]:
    """1900-01-01 (no date) becomes None."""
    if value is None or value == SENTINEL_DATE:
        return None
    return value


def text_or_none(value: Optional[str]) -> Optional[str]:
    return value or None


def lookup(value: Optional[LookupValue]) -> Optional[Lookup]:
    if value is None or value.lookup_id == NOT_FOUND:
        return None
    return Lookup(value.lookup_id, value.value)


def reference(entity_id: Optional[int], title: Optional[str]) -> Optional[GenericReference]:
    if id_or_none(entity_id) is None:
        return None
    return GenericReference(entity_id, title)


def refilter(contract: C, requested: IncludeFieldSpec) -> C:
    """Reset every field ``requested`` does not allow back to its default.

    Returns a copy; the input contract is left untouched. An unset spec or
    ``*`` without exclusions returns an equal copy.
    """
    result = copy.copy(contract)
    if requested.is_unset:
        return result
    for f in fields(contract):
        wire_name = f.metadata.get("wire")
        if wire_name is not None and not requested.allows(wire_name):
            setattr(result, f.name, field_default(f))
    return result


def assign_visible(contract: C, values: dict[str, Any], visible: set[str]) -> C:
    """Copy ``values`` (attribute -> value) onto ``contract`` for visible wire names."""
    for f in fields(contract):
        wire_name = f.metadata.get("wire")
        if wire_name in visible and f.name in values:
            setattr(contract, f.name, values[f.name])
    return contract
