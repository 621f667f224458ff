"""
In-memory dictionary document.

This is the abstract schema a dictionary text parser produces. The loader
consumes it; how it was parsed (XML, JSON, code) does not matter here.
Entries are deliberately permissive (optional names/types) because the
loader is responsible for reporting malformed entries.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .exceptions import DictionaryFormatError

AVP_PROTO = "avp-proto"
TYPE_PROTO = "type-proto"


@dataclass(frozen=True)
class VendorEntry:
    code: int
    name: Optional[str]


@dataclass(frozen=True)
class ApplicationEntry:
    code: int
    name: Optional[str]


@dataclass(frozen=True)
class CommandEntry:
    code: int
    name: Optional[str]
    vendor: Optional[str] = "None"


@dataclass(frozen=True)
class TypeDefinition:
    name: Optional[str]
    parent: Optional[str] = None


@dataclass(frozen=True)
class EnumEntry:
    code: int
    name: str


@dataclass(frozen=True)
class AvpEntry:
    code: int
    name: Optional[str]
    type: Optional[str]
    vendor: Optional[str] = None
    """Vendor name; None means the base ('None') vendor."""
    enums: Tuple[EnumEntry, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class ProtoOverride:
    """
    Forces an AVP to be decoded by a named protocol decoder.

    kind is 'avp-proto' (key is an AVP name) or 'type-proto' (key is a
    type name).
    """
    kind: str
    key: str
    protocol: str


@dataclass(frozen=True)
class DictionaryDocument:
    vendors: Tuple[VendorEntry, ...] = field(default_factory=tuple)
    applications: Tuple[ApplicationEntry, ...] = field(default_factory=tuple)
    commands: Tuple[CommandEntry, ...] = field(default_factory=tuple)
    typedefns: Tuple[TypeDefinition, ...] = field(default_factory=tuple)
    avps: Tuple[AvpEntry, ...] = field(default_factory=tuple)
    proto_overrides: Tuple[ProtoOverride, ...] = field(default_factory=tuple)

    def merged(self, other: "DictionaryDocument") -> "DictionaryDocument":
        """Concatenate two documents; entries of self come first and win."""
        return DictionaryDocument(
            vendors=self.vendors + other.vendors,
            applications=self.applications + other.applications,
            commands=self.commands + other.commands,
            typedefns=self.typedefns + other.typedefns,
            avps=self.avps + other.avps,
            proto_overrides=self.proto_overrides + other.proto_overrides,
        )


def _code(value: Any) -> int:
    if isinstance(value, str):
        return int(value, 0)
    return int(value)


def _entries(mapping: Mapping[str, Any], key: str) -> List[Mapping[str, Any]]:
    items = mapping.get(key) or []
    if not isinstance(items, list):
        raise DictionaryFormatError(f"'{key}' must be a list, got {type(items).__name__}")
    for item in items:
        if not isinstance(item, Mapping):
            raise DictionaryFormatError(f"entries of '{key}' must be objects")
    return items


def document_from_mapping(mapping: Mapping[str, Any]) -> DictionaryDocument:
    """
    Build a document from a JSON-like mapping.

    Expected shape (all keys optional):
        {"vendors": [{"code": 10415, "name": "3GPP"}],
         "applications": [{"code": 4, "name": "Credit Control"}],
         "commands": [{"code": 272, "name": "Credit-Control", "vendor": "None"}],
         "types": [{"name": "Enumerated", "parent": "Integer32"}],
         "avps": [{"code": 268, "name": "Result-Code", "type": "Unsigned32",
                   "vendor": null, "enums": [{"code": 2001, "name": "DIAMETER_SUCCESS"}]}],
         "proto_overrides": [{"kind": "avp-proto", "key": "EAP-Payload", "protocol": "eap"}]}
    """
    if not isinstance(mapping, Mapping):
        raise DictionaryFormatError("dictionary document must be an object")
    try:
        vendors = tuple(VendorEntry(_code(v["code"]), v.get("name"))
                        for v in _entries(mapping, "vendors"))
        applications = tuple(ApplicationEntry(_code(a["code"]), a.get("name"))
                             for a in _entries(mapping, "applications"))
        commands = tuple(CommandEntry(_code(c["code"]), c.get("name"), c.get("vendor", "None"))
                         for c in _entries(mapping, "commands"))
        typedefns = tuple(TypeDefinition(t.get("name"), t.get("parent"))
                          for t in _entries(mapping, "types"))
        avps = tuple(
            AvpEntry(
                code=_code(a["code"]),
                name=a.get("name"),
                type=a.get("type"),
                vendor=a.get("vendor"),
                enums=tuple(EnumEntry(_code(e["code"]), e["name"]) for e in a.get("enums") or ()),
            )
            for a in _entries(mapping, "avps")
        )
        overrides = tuple(ProtoOverride(x["kind"], x["key"], x["protocol"])
                          for x in _entries(mapping, "proto_overrides"))
    except (KeyError, TypeError, ValueError) as e:
        raise DictionaryFormatError(f"invalid dictionary entry: {e!r}") from e

    return DictionaryDocument(
        vendors=vendors,
        applications=applications,
        commands=commands,
        typedefns=typedefns,
        avps=avps,
        proto_overrides=overrides,
    )
