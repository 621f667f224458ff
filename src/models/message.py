# Diameter message data model
"""
Diameter message data models.

These models are immutable. A decoded message is built bottom-up: every
AVP decode returns its own AvpField (children included) and the message
decoder assembles the final DecodedMessage from them. Nothing is patched
after construction, except that the analysis engine may derive a copy of
a DecodedMessage carrying its transaction record.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple
import json

from .diagnostics import Diagnostic
from .transaction import TransactionRecord

HEADER_FLAG_REQUEST = 0x80
HEADER_FLAG_PROXYABLE = 0x40
HEADER_FLAG_ERROR = 0x20
HEADER_FLAG_RETRANSMIT = 0x10
HEADER_FLAGS_RESERVED = 0x0F

AVP_FLAG_VENDOR = 0x80
AVP_FLAG_MANDATORY = 0x40
AVP_FLAG_PROTECTED = 0x20
AVP_FLAGS_RESERVED = 0x1F


@dataclass(frozen=True)
class RawMessage:
    """
    One complete Diameter message buffer as handed over by a
    message-boundary provider (capture source, test, CLI).
    """
    frame_number: int
    """Monotonic frame number (1-based) of the frame carrying the message."""

    timestamp_us: int
    """Microseconds since Unix epoch."""

    data: bytes
    """Raw message bytes, header included. DO NOT modify."""

    connection_id: str = "default"
    """Direction-independent connection key; transaction state is scoped to it."""

    transport: Optional[str] = None
    """'TCP' or 'SCTP' when known."""

    @property
    def timestamp_seconds(self) -> float:
        return self.timestamp_us / 1_000_000.0


@dataclass(frozen=True)
class MessageHeader:
    """The fixed 20-byte Diameter header plus the names resolved for it."""
    version: int
    length: int
    flags: int
    command_code: int
    application_id: int
    """Application id (current mode) or vendor id (legacy mode)."""
    hop_by_hop_id: int
    end_to_end_id: int
    legacy: bool = False
    command_name: str = "Unknown"
    application_name: str = "Unknown"
    """Application name (current mode) or vendor name (legacy mode)."""

    @property
    def is_request(self) -> bool:
        return bool(self.flags & HEADER_FLAG_REQUEST)

    @property
    def is_proxyable(self) -> bool:
        return bool(self.flags & HEADER_FLAG_PROXYABLE)

    @property
    def is_error(self) -> bool:
        return bool(self.flags & HEADER_FLAG_ERROR)

    @property
    def is_retransmit(self) -> bool:
        return bool(self.flags & HEADER_FLAG_RETRANSMIT)

    @property
    def reserved_flags(self) -> int:
        return self.flags & HEADER_FLAGS_RESERVED

    @property
    def flags_str(self) -> str:
        """'RPET' with '-' for every clear bit."""
        return "".join(
            letter if self.flags & mask else "-"
            for mask, letter in ((HEADER_FLAG_REQUEST, "R"),
                                 (HEADER_FLAG_PROXYABLE, "P"),
                                 (HEADER_FLAG_ERROR, "E"),
                                 (HEADER_FLAG_RETRANSMIT, "T"))
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "length": self.length,
            "flags": self.flags,
            "flags_str": self.flags_str,
            "command_code": self.command_code,
            "command_name": self.command_name,
            "application_id" if not self.legacy else "vendor_id": self.application_id,
            "application_name" if not self.legacy else "vendor_name": self.application_name,
            "hop_by_hop_id": self.hop_by_hop_id,
            "end_to_end_id": self.end_to_end_id,
            "is_request": self.is_request,
        }


@dataclass(frozen=True)
class AvpField:
    """
    One decoded AVP.

    `consumed` is the number of bytes the AVP occupies in its enclosing
    buffer. For any AVP whose declared length is at least the header size
    this is exactly `declared_length + padding`.
    """
    code: int
    name: str
    vendor_id: int
    flags: int
    declared_length: int
    padding: int
    consumed: int
    offset: int
    """Absolute offset of the AVP header within the message."""
    path: str
    value_kind: str
    value: Any = None
    display: Optional[str] = None
    """Human readable value (enum name, address, timestamp) when one exists."""
    children: Tuple["AvpField", ...] = field(default_factory=tuple)
    diagnostics: Tuple[Diagnostic, ...] = field(default_factory=tuple)
    extra: Optional[Dict[str, Any]] = None
    """Fields produced by a sub-decoder, if one ran."""
    known: bool = True

    @property
    def vendor_flag(self) -> bool:
        return bool(self.flags & AVP_FLAG_VENDOR)

    @property
    def mandatory(self) -> bool:
        return bool(self.flags & AVP_FLAG_MANDATORY)

    @property
    def protected(self) -> bool:
        return bool(self.flags & AVP_FLAG_PROTECTED)

    @property
    def reserved_flags(self) -> int:
        return self.flags & AVP_FLAGS_RESERVED

    @property
    def header_length(self) -> int:
        return 12 if self.vendor_flag else 8

    @property
    def payload_length(self) -> int:
        return max(0, self.declared_length - self.header_length)

    @property
    def flags_str(self) -> str:
        return "".join(
            letter if self.flags & mask else "-"
            for mask, letter in ((AVP_FLAG_VENDOR, "V"),
                                 (AVP_FLAG_MANDATORY, "M"),
                                 (AVP_FLAG_PROTECTED, "P"))
        )

    def walk(self) -> Iterator["AvpField"]:
        """Depth-first iteration over this AVP and its descendants."""
        yield self
        for child in self.children:
            yield from child.walk()

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "code": self.code,
            "name": self.name,
            "vendor_id": self.vendor_id,
            "flags": self.flags_str,
            "length": self.declared_length,
            "padding": self.padding,
            "offset": self.offset,
            "type": self.value_kind,
        }
        if self.children:
            out["avps"] = [child.to_dict() for child in self.children]
        else:
            out["value"] = _jsonable(self.value)
        if self.display is not None:
            out["display"] = self.display
        if self.extra:
            out["extra"] = {k: _jsonable(v) for k, v in self.extra.items()}
        if self.diagnostics:
            out["diagnostics"] = [d.to_dict() for d in self.diagnostics]
        return out


@dataclass(frozen=True)
class FieldRecord:
    """(path, byte range, value or diagnostics) tuple for field sinks."""
    path: str
    offset: int
    length: int
    value: Any
    diagnostics: Tuple[Diagnostic, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class DecodedMessage:
    """A Diameter message after decoding."""
    raw: RawMessage
    header: Optional[MessageHeader]
    """None only when the buffer is shorter than a header."""
    avps: Tuple[AvpField, ...] = field(default_factory=tuple)
    diagnostics: Tuple[Diagnostic, ...] = field(default_factory=tuple)
    """Header-level diagnostics; AVP diagnostics live on their AvpField."""
    quality_flags: int = 0
    transaction: Optional[TransactionRecord] = None

    @property
    def is_request(self) -> bool:
        return self.header is not None and self.header.is_request

    @property
    def answer_in(self) -> Optional[int]:
        """Frame of the answer to this request, once it has been seen."""
        if self.transaction is None or not self.is_request:
            return None
        return self.transaction.answer_frame

    @property
    def answer_to(self) -> Optional[int]:
        """Frame of the request this answer belongs to."""
        if self.transaction is None or self.is_request:
            return None
        return self.transaction.request_frame

    @property
    def answer_time_us(self) -> Optional[int]:
        """Request-to-answer delay, on answers only."""
        if self.transaction is None or self.is_request:
            return None
        return self.transaction.round_trip_us

    @property
    def info(self) -> str:
        """One-line summary of the message."""
        h = self.header
        if h is None:
            return "Malformed Diameter message"
        return "cmd={}{}({}) flags={} {}={}({}) h2h={:x} e2e={:x}".format(
            h.command_name,
            "Request" if h.is_request else "Answer",
            h.command_code,
            h.flags_str,
            "vend" if h.legacy else "appl",
            h.application_name,
            h.application_id,
            h.hop_by_hop_id,
            h.end_to_end_id,
        )

    def walk_avps(self) -> Iterator[AvpField]:
        for avp in self.avps:
            yield from avp.walk()

    def find_avp(self, code: int, vendor_id: int = 0) -> Optional[AvpField]:
        """First AVP (depth-first) with the given code and vendor."""
        for avp in self.walk_avps():
            if avp.code == code and avp.vendor_id == vendor_id:
                return avp
        return None

    def all_diagnostics(self) -> List[Diagnostic]:
        found = list(self.diagnostics)
        for avp in self.walk_avps():
            found.extend(avp.diagnostics)
        return found

    def iter_fields(self) -> Iterator[FieldRecord]:
        """Feed for field/diagnostic sinks: header fields first, then AVPs."""
        if self.header is not None:
            by_field: Dict[str, List[Diagnostic]] = {}
            for diag in self.diagnostics:
                by_field.setdefault(diag.field, []).append(diag)
            for path, offset, length, value in _header_layout(self.header):
                yield FieldRecord(path, offset, length, value, tuple(by_field.get(path, ())))
        for avp in self.walk_avps():
            yield FieldRecord(avp.path, avp.offset, avp.declared_length + avp.padding,
                              avp.value if not avp.children else None, avp.diagnostics)

    def to_dict(self) -> Dict[str, Any]:
        raw = self.raw
        return {
            "frame_number": raw.frame_number,
            "timestamp_us": raw.timestamp_us,
            "connection_id": raw.connection_id,
            "info": self.info,
            "header": self.header.to_dict() if self.header else None,
            "avps": [avp.to_dict() for avp in self.avps],
            "diagnostics": [d.to_dict() for d in self.diagnostics],
            "quality_flags": self.quality_flags,
            "transaction": self.transaction.to_dict() if self.transaction else None,
            "answer_in": self.answer_in,
            "answer_to": self.answer_to,
            "answer_time_us": self.answer_time_us,
        }

    def to_json(self) -> str:
        """Serialize to JSON with deterministic ordering."""
        return json.dumps(self.to_dict(), separators=(",", ":"), ensure_ascii=True)


def _header_layout(header: MessageHeader):
    app_field = "diameter.vendorId" if header.legacy else "diameter.applicationId"
    return (
        ("diameter.version", 0, 1, header.version),
        ("diameter.length", 1, 3, header.length),
        ("diameter.flags", 4, 1, header.flags),
        ("diameter.cmd.code", 5, 3, header.command_code),
        (app_field, 8, 4, header.application_id),
        ("diameter.hopbyhopid", 12, 4, header.hop_by_hop_id),
        ("diameter.endtoendid", 16, 4, header.end_to_end_id),
    )


def _jsonable(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray)):
        return value.hex()
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return value
