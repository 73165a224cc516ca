"""Contract serialization (XML / JSON) and request body parsing.

Serialization walks contract dataclasses through their field metadata
(see ``arena_api.core.contracts.wire``). Fields marked ``emit_default=False``
are skipped while they hold their default, so visibility-filtered fields
simply disappear from the payload.
"""
from __future__ import annotations

import json
import logging
import typing
from dataclasses import MISSING, fields, is_dataclass
from datetime import date, datetime
from typing import Any, BinaryIO, Optional, Union
from urllib.parse import parse_qs
from uuid import UUID
from xml.etree import ElementTree as ET
from xml.etree.ElementTree import Element, SubElement

from arena_api.core.contracts import GenericListResult, is_contract
from arena_api.core.errors import BadRequestError

logger = logging.getLogger(__name__)

XSI_NS = "http://www.w3.org/2001/XMLSchema-instance"
ET.register_namespace("i", XSI_NS)

JSON_MIMETYPE = "application/json"
XML_MIMETYPE = "application/xml"

_PRIMITIVE_ITEM_NAMES = {int: "int", str: "string", bool: "boolean", float: "double"}


# ─────────────────────────────────────────────────────────────────────────────
# Contract -> wire structures
# ─────────────────────────────────────────────────────────────────────────────
def field_default(f) -> Any:
    if f.default is not MISSING:
        return f.default
    if f.default_factory is not MISSING:  # type: ignore[misc]
        return f.default_factory()  # type: ignore[misc]
    return None


def iter_wire_fields(contract):
    """Yield ``(wire_name, value)`` for every emitted field."""
    for f in fields(contract):
        if "wire" not in f.metadata:
            continue
        value = getattr(contract, f.name)
        if not f.metadata.get("emit_default", True) and value == field_default(f):
            continue
        encode = f.metadata.get("encode")
        if encode is not None and value is not None:
            value = encode(value)
        yield f.metadata["wire"], value


def _scalar(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, UUID):
        return str(value)
    return value


def to_wire(value: Any) -> Any:
    """Convert a contract (or list of contracts) into JSON-ready structures."""
    if is_contract(value):
        return {name: to_wire(item) for name, item in iter_wire_fields(value)}
    if isinstance(value, (list, tuple)):
        return [to_wire(item) for item in value]
    return _scalar(value)


def to_json(value: Any) -> str:
    return json.dumps(to_wire(value))


def _item_name(item: Any, owner: Any) -> str:
    if is_contract(item):
        return type(item).WIRE_NAME
    if isinstance(owner, GenericListResult) and owner.item_name:
        return owner.item_name
    return _PRIMITIVE_ITEM_NAMES.get(type(item), "item")


def _text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(_scalar(value))


def _append(parent: Element, name: str, value: Any, owner: Any) -> None:
    element = SubElement(parent, name)
    if value is None:
        element.set(f"{{{XSI_NS}}}nil", "true")
    elif is_contract(value):
        _fill(element, value)
    elif isinstance(value, (list, tuple)):
        for item in value:
            _append(element, _item_name(item, owner), item, owner)
    else:
        element.text = _text(value)


def _fill(element: Element, contract: Any) -> None:
    for name, value in iter_wire_fields(contract):
        _append(element, name, value, contract)


def to_xml(contract: Any) -> bytes:
    """Serialize a contract into an XML document rooted at its wire name."""
    root = Element(type(contract).WIRE_NAME)
    _fill(root, contract)
    return ET.tostring(root, encoding="utf-8", xml_declaration=True)


def render(value: Any, fmt: str) -> tuple[bytes, str]:
    """Render a contract in ``fmt`` ("json" or "xml"); return body and mimetype."""
    if fmt == "json":
        return to_json(value).encode("utf-8"), JSON_MIMETYPE
    return to_xml(value), XML_MIMETYPE


# ─────────────────────────────────────────────────────────────────────────────
# Wire structures -> contract
# ─────────────────────────────────────────────────────────────────────────────
def parse_datetime(text: str) -> datetime:
    text = text.strip()
    if len(text) == 14 and text.isdigit():
        return datetime.strptime(text, "%Y%m%d%H%M%S")
    return datetime.fromisoformat(text)


def _unwrap_optional(tp: Any) -> Any:
    if typing.get_origin(tp) is Union:
        args = [arg for arg in typing.get_args(tp) if arg is not type(None)]
        if len(args) == 1:
            return args[0]
    return tp


def _convert(tp: Any, raw: Any) -> Any:
    tp = _unwrap_optional(tp)
    if raw is None:
        return None
    if typing.get_origin(tp) is list:
        (item_type,) = typing.get_args(tp) or (Any,)
        if isinstance(raw, dict):
            # XML lists arrive as {item_name: [...]} or {item_name: value}
            raw = next(iter(raw.values()), [])
        if not isinstance(raw, list):
            raw = [raw]
        return [_convert(item_type, item) for item in raw]
    if is_dataclass(tp):
        if not isinstance(raw, dict):
            raise ValueError(f"expected object for {tp.__name__}")
        return load_contract(tp, raw)
    if tp is bool:
        if isinstance(raw, bool):
            return raw
        return str(raw).strip().lower() in ("true", "1", "yes")
    if tp is int:
        return int(raw)
    if tp is float:
        return float(raw)
    if tp is datetime:
        return raw if isinstance(raw, datetime) else parse_datetime(str(raw))
    if tp is UUID:
        return UUID(str(raw))
    if tp is str:
        return str(raw)
    return raw


def load_contract(contract_type: type, data: dict) -> Any:
    """Build a contract from a wire dict (wire names matched case-insensitively)."""
    hints = typing.get_type_hints(contract_type)
    by_wire = {key.upper(): value for key, value in data.items()}
    kwargs = {}
    for f in fields(contract_type):
        if "wire" not in f.metadata:
            continue
        raw = by_wire.get(f.metadata["wire"].upper())
        if raw is None or raw == "":
            continue
        kwargs[f.name] = _convert(hints[f.name], raw)
    return contract_type(**kwargs)


def _element_to_data(element: Element) -> Any:
    if element.get(f"{{{XSI_NS}}}nil") == "true":
        return None
    children = list(element)
    if not children:
        return element.text or ""
    data: dict[str, Any] = {}
    for child in children:
        tag = child.tag.rsplit("}", 1)[-1]
        value = _element_to_data(child)
        if tag in data:
            if not isinstance(data[tag], list):
                data[tag] = [data[tag]]
            data[tag].append(value)
        else:
            data[tag] = value
    return data


def parse_body(contract_type: type, stream: BinaryIO, content_type: Optional[str]) -> Any:
    """Parse a JSON or XML request body into ``contract_type``.

    Raises:
        BadRequestError: If the body is empty or malformed
    """
    raw = stream.read()
    if not raw:
        raise BadRequestError("Request body is required.")
    try:
        if content_type and "json" in content_type:
            data = json.loads(raw)
        else:
            data = _element_to_data(ET.fromstring(raw))
        if not isinstance(data, dict):
            raise ValueError("body is not an object")
        return load_contract(contract_type, data)
    except (ValueError, TypeError, ET.ParseError) as exc:
        logger.info("Rejected %s body: %s", contract_type.__name__, exc)
        raise BadRequestError(f"Malformed {contract_type.WIRE_NAME} body.") from exc


def parse_form(stream: BinaryIO) -> dict[str, str]:
    """Parse an ``application/x-www-form-urlencoded`` body (last value wins)."""
    body = stream.read().decode("utf-8", errors="replace")
    return {key: values[-1] for key, values in parse_qs(body, keep_blank_values=True).items()}
