"""
Attribute type registry.

Every basic Diameter value encoding has two decode strategies (legacy v16
and RFC) and a builder that turns dictionary metadata into an
AttributeDescriptor. The strategies are bound to the descriptor once, when
the dictionary is built, so decoding never re-dispatches on type names.

A decode strategy has the signature ``(ctx, descriptor, data) -> DecodedValue``.
``ctx`` is the AVP decoder's scoped context; only grouped and protocol
types use it (to recurse, or to reach named protocol decoders).
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
import ipaddress
import struct
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from models.diagnostics import Diagnostic, DiagnosticKind, note, warn

from .exceptions import DictionaryEntryError

NTP_EPOCH = datetime(1900, 1, 1, tzinfo=timezone.utc)

ADDRESS_FAMILIES: Dict[int, str] = {
    1: "IPv4",
    2: "IPv6",
    3: "NSAP",
    4: "HDLC",
    5: "BBN",
    6: "IEEE-802",
    7: "E-163",
    8: "E-164",
    9: "F-69",
    10: "X-121",
    11: "IPX",
    12: "Appletalk",
    13: "Decnet4",
    14: "Vines",
    15: "E-164-NSAP",
    16: "DNS",
    17: "DistinguishedName",
    18: "AS",
    19: "XTPoIPv4",
    20: "XTPoIPv6",
    21: "XTPNative",
    22: "FibrePortName",
    23: "FibreNodeName",
    24: "GWID",
}


class TypeTag(str, Enum):
    OCTET_STRING = "octetstring"
    UTF8_STRING = "utf8string"
    GROUPED = "grouped"
    INTEGER32 = "integer32"
    UNSIGNED32 = "unsigned32"
    INTEGER64 = "integer64"
    UNSIGNED64 = "unsigned64"
    FLOAT32 = "float32"
    FLOAT64 = "float64"
    ADDRESS = "ipaddress"
    DIAMETER_URI = "diameteruri"
    DIAMETER_IDENTITY = "diameteridentity"
    IP_FILTER_RULE = "ipfilterrule"
    QOS_FILTER_RULE = "qosfilterrule"
    TIME = "time"
    PROTO = "proto"


@dataclass(frozen=True)
class AddressValue:
    """Rendering of an Address AVP."""
    family: Optional[int]
    """Address family discriminator; None in legacy mode (not on the wire)."""
    address: Optional[str]
    """Dotted/colon notation for IPv4/IPv6, None otherwise."""
    raw: bytes
    subfield: str
    """Path of the sub-field that rendered the address."""
    family_field: Optional[str] = None
    """Path of the family discriminator sub-field, when it was on the wire."""

    @property
    def family_name(self) -> Optional[str]:
        if self.family is None:
            return None
        return ADDRESS_FAMILIES.get(self.family, "Unknown")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "family": self.family,
            "family_name": self.family_name,
            "address": self.address,
            "raw": self.raw.hex(),
            "subfield": self.subfield,
            "family_field": self.family_field,
        }


@dataclass(frozen=True)
class AddressSubfields:
    family: str
    ipv4: str
    ipv6: str
    other: str


@dataclass(frozen=True)
class DecodedValue:
    """Result of a value decode strategy."""
    value: Any = None
    display: Optional[str] = None
    diagnostic: Optional[Diagnostic] = None
    children: Tuple[Any, ...] = field(default_factory=tuple)
    extra: Optional[Dict[str, Any]] = None


ValueDecoder = Callable[[Any, Any, bytes], DecodedValue]


# Value decode strategies

def decode_octetstring(ctx, avp, data: bytes) -> DecodedValue:
    return DecodedValue(value=bytes(data))


def decode_utf8(ctx, avp, data: bytes) -> DecodedValue:
    return DecodedValue(value=bytes(data).decode("utf-8", errors="replace"))


def _fixed_width(fmt: str, label: str) -> ValueDecoder:
    size = struct.calcsize(fmt)

    def decode(ctx, avp, data: bytes) -> DecodedValue:
        if len(data) != size:
            return DecodedValue(
                value=None,
                diagnostic=note(DiagnosticKind.WRONG_LENGTH,
                                f"Bad {label} Length ({len(data)})"),
            )
        value = struct.unpack(fmt, data)[0]
        display = None
        if avp.enum_values:
            display = "{} ({})".format(avp.enum_values.get(value, "Unknown"), value)
        return DecodedValue(value=value, display=display)

    decode.__name__ = f"decode_{label.lower()}"
    return decode


decode_integer32 = _fixed_width(">i", "Integer32")
decode_unsigned32 = _fixed_width(">I", "Unsigned32")
decode_integer64 = _fixed_width(">q", "Integer64")
decode_unsigned64 = _fixed_width(">Q", "Unsigned64")
decode_float32 = _fixed_width(">f", "Float32")
decode_float64 = _fixed_width(">d", "Float64")


def decode_time(ctx, avp, data: bytes) -> DecodedValue:
    if len(data) != 4:
        return DecodedValue(
            value=None,
            diagnostic=note(DiagnosticKind.BAD_TIMESTAMP, f"Bad Timestamp Length ({len(data)})"),
            display="[Malformed]",
        )
    seconds = struct.unpack(">I", data)[0]
    stamp = NTP_EPOCH + timedelta(seconds=seconds)
    return DecodedValue(value=seconds, display=stamp.isoformat())


def decode_address_rfc(ctx, avp, data: bytes) -> DecodedValue:
    """RFC Address: 2-byte family discriminator, then the address."""
    sub: AddressSubfields = avp.subfields
    if len(data) < 2:
        return DecodedValue(
            value=AddressValue(None, None, bytes(data), sub.other),
            display="[Malformed]",
            diagnostic=warn(DiagnosticKind.BAD_ADDRESS,
                            f"Address too short for a family ({len(data)} bytes)"),
        )
    family = struct.unpack(">H", data[:2])[0]
    rest = bytes(data[2:])
    if family == 1:
        if len(rest) != 4:
            return DecodedValue(
                value=AddressValue(family, None, rest, sub.ipv4, sub.family),
                display="[Malformed]",
                diagnostic=warn(DiagnosticKind.BAD_ADDRESS,
                                f"Wrong length for IPv4 Address: {len(rest)} instead of 4"),
            )
        text = str(ipaddress.IPv4Address(rest))
        value = AddressValue(family, text, rest, sub.ipv4, sub.family)
        return DecodedValue(value=value, display=text)
    if family == 2:
        if len(rest) != 16:
            return DecodedValue(
                value=AddressValue(family, None, rest, sub.ipv6, sub.family),
                display="[Malformed]",
                diagnostic=warn(DiagnosticKind.BAD_ADDRESS,
                                f"Wrong length for IPv6 Address: {len(rest)} instead of 16"),
            )
        text = str(ipaddress.IPv6Address(rest))
        value = AddressValue(family, text, rest, sub.ipv6, sub.family)
        return DecodedValue(value=value, display=text)
    return DecodedValue(value=AddressValue(family, None, rest, sub.other, sub.family), display=rest.hex())


def decode_address_v16(ctx, avp, data: bytes) -> DecodedValue:
    """Legacy Address: no discriminator, family inferred from the length."""
    sub: AddressSubfields = avp.subfields
    raw = bytes(data)
    if len(raw) == 4:
        text = str(ipaddress.IPv4Address(raw))
        return DecodedValue(value=AddressValue(None, text, raw, sub.ipv4), display=text)
    if len(raw) == 16:
        text = str(ipaddress.IPv6Address(raw))
        return DecodedValue(value=AddressValue(None, text, raw, sub.ipv6), display=text)
    return DecodedValue(
        value=AddressValue(None, None, raw, sub.other),
        display=raw.hex(),
        diagnostic=note(DiagnosticKind.BAD_ADDRESS, f"Bad Address Length ({len(raw)})"),
    )


def decode_grouped(ctx, avp, data: bytes) -> DecodedValue:
    children, diagnostic = ctx.decode_group(data)
    return DecodedValue(value=None, children=children, diagnostic=diagnostic)


def decode_proto(ctx, avp, data: bytes) -> DecodedValue:
    result = ctx.call_protocol(avp.subdissector_hint, data)
    return DecodedValue(value=bytes(data), extra=result.fields, diagnostic=result.error)


# Builders

def _check_enums(basic: "BasicType", name: str, enums: Optional[Mapping[int, str]]) -> None:
    # Only 32-bit or shorter integral types can have a list of values.
    if enums and not basic.integral32:
        raise DictionaryEntryError(
            "avp", name,
            f"AVP '{name}' has a list of values but isn't of a 32-bit or shorter integral type",
        )


def build_simple(basic: "BasicType", code: int, vendor, name: str,
                 enums: Optional[Mapping[int, str]] = None, data: Any = None):
    from .model import AttributeDescriptor

    _check_enums(basic, name, enums)
    return AttributeDescriptor(
        code=code,
        vendor=vendor,
        name=name,
        value_kind=basic.tag,
        enum_values=dict(sorted(enums.items())) if enums else None,
        decode_legacy=basic.legacy,
        decode_rfc=basic.rfc,
    )


def build_address(basic: "BasicType", code: int, vendor, name: str,
                  enums: Optional[Mapping[int, str]] = None, data: Any = None):
    from .model import AttributeDescriptor

    _check_enums(basic, name, enums)
    prefix = f"diameter.{_alnumerize(name)}"
    # RADIUS-range codes (< 256) carry addresses without a family discriminator.
    rfc = decode_address_v16 if code < 256 else decode_address_rfc
    return AttributeDescriptor(
        code=code,
        vendor=vendor,
        name=name,
        value_kind=TypeTag.ADDRESS,
        decode_legacy=decode_address_v16,
        decode_rfc=rfc,
        subfields=AddressSubfields(
            family=f"{prefix}.addr_family",
            ipv4=f"{prefix}.IPv4",
            ipv6=f"{prefix}.IPv6",
            other=f"{prefix}.Bytes",
        ),
    )


def build_proto(basic: "BasicType", code: int, vendor, name: str,
                enums: Optional[Mapping[int, str]] = None, data: Any = None):
    from .model import AttributeDescriptor

    return AttributeDescriptor(
        code=code,
        vendor=vendor,
        name=name,
        value_kind=TypeTag.PROTO,
        subdissector_hint=data,
        decode_legacy=decode_proto,
        decode_rfc=decode_proto,
    )


@dataclass(frozen=True)
class BasicType:
    name: str
    tag: TypeTag
    legacy: ValueDecoder
    rfc: ValueDecoder
    build: Callable[..., Any]
    integral32: bool = False


BASIC_TYPES: Tuple[BasicType, ...] = (
    BasicType("octetstring", TypeTag.OCTET_STRING, decode_octetstring, decode_octetstring, build_simple),
    BasicType("utf8string", TypeTag.UTF8_STRING, decode_utf8, decode_utf8, build_simple),
    BasicType("grouped", TypeTag.GROUPED, decode_grouped, decode_grouped, build_simple),
    BasicType("integer32", TypeTag.INTEGER32, decode_integer32, decode_integer32, build_simple, True),
    BasicType("unsigned32", TypeTag.UNSIGNED32, decode_unsigned32, decode_unsigned32, build_simple, True),
    BasicType("integer64", TypeTag.INTEGER64, decode_integer64, decode_integer64, build_simple),
    BasicType("unsigned64", TypeTag.UNSIGNED64, decode_unsigned64, decode_unsigned64, build_simple),
    BasicType("float32", TypeTag.FLOAT32, decode_float32, decode_float32, build_simple),
    BasicType("float64", TypeTag.FLOAT64, decode_float64, decode_float64, build_simple),
    BasicType("ipaddress", TypeTag.ADDRESS, decode_address_v16, decode_address_rfc, build_address),
    BasicType("diameteruri", TypeTag.DIAMETER_URI, decode_utf8, decode_utf8, build_simple),
    BasicType("diameteridentity", TypeTag.DIAMETER_IDENTITY, decode_utf8, decode_utf8, build_simple),
    BasicType("ipfilterrule", TypeTag.IP_FILTER_RULE, decode_utf8, decode_utf8, build_simple),
    BasicType("qosfilterrule", TypeTag.QOS_FILTER_RULE, decode_utf8, decode_utf8, build_simple),
    BasicType("time", TypeTag.TIME, decode_time, decode_time, build_simple),
)

PROTO_TYPE = BasicType("proto", TypeTag.PROTO, decode_proto, decode_proto, build_proto)

OCTET_STRING = BASIC_TYPES[0]


def basic_types() -> Dict[str, BasicType]:
    """Fresh name -> type table seeded with the basic types (names lowercased)."""
    return {t.name: t for t in BASIC_TYPES}


def _alnumerize(name: str) -> str:
    return "".join(c for c in name if c.isalnum() or c in "_-.")
