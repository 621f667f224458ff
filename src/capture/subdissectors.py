"""
Sub-decoder dispatch.

After an AVP's own value decode, a protocol-specific extension may further
interpret its raw bytes. Extensions are looked up by (vendor id, AVP code)
or, for dictionary protocol overrides, by protocol name. Whatever an
extension raises is caught here and turned into a diagnostic on the AVP.
"""
from __future__ import annotations

from dataclasses import dataclass, field
import ipaddress
import struct
from typing import Any, Callable, Dict, Optional

from dictionary.base import VENDOR_3GPP, VENDOR_ERICSSON
from models.diagnostics import Diagnostic, DiagnosticKind, warn

SubDecoder = Callable[[bytes], Dict[str, Any]]

EAP_CODES = {
    1: "Request",
    2: "Response",
    3: "Success",
    4: "Failure",
    5: "Initiate",
    6: "Finish",
}

EAP_TYPES = {
    1: "Identity",
    2: "Notification",
    3: "Legacy Nak",
    4: "MD5-Challenge",
    13: "EAP-TLS",
    17: "LEAP",
    18: "EAP-SIM",
    21: "EAP-TTLS",
    23: "EAP-AKA",
    25: "PEAP",
    43: "EAP-FAST",
    50: "EAP-AKA'",
}


@dataclass(frozen=True)
class SubdissectorResult:
    """Fields produced by a sub-decoder, or the diagnostic explaining why none were."""
    fields: Dict[str, Any] = field(default_factory=dict)
    error: Optional[Diagnostic] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class SubdissectorRegistry:
    """(vendor id, code) and protocol-name tables of sub-decoders."""

    def __init__(self):
        # base, 3GPP and Ericsson code spaces have tables of their own
        self._tables: Dict[int, Dict[int, SubDecoder]] = {
            0: {},
            VENDOR_3GPP: {},
            VENDOR_ERICSSON: {},
        }
        self._protocols: Dict[str, SubDecoder] = {"data": decode_data}

    @classmethod
    def with_builtins(cls) -> "SubdissectorRegistry":
        registry = cls()
        registry.register(0, 97, decode_framed_ipv6_prefix)
        registry.register(0, 266, decode_vendor_id)
        registry.register_protocol("eap", decode_eap)
        return registry

    def register(self, vendor_id: int, code: int, decoder: SubDecoder) -> None:
        self._tables.setdefault(vendor_id, {})[code] = decoder

    def register_protocol(self, name: str, decoder: SubDecoder) -> None:
        self._protocols[name.lower()] = decoder

    def lookup(self, vendor_id: int, code: int) -> Optional[SubDecoder]:
        table = self._tables.get(vendor_id)
        if table is None:
            return None
        return table.get(code)

    def dispatch(self, vendor_id: int, code: int, data: bytes) -> Optional[SubdissectorResult]:
        """Run the sub-decoder registered for (vendor_id, code), if any."""
        decoder = self.lookup(vendor_id, code)
        if decoder is None:
            return None
        return _run(decoder, data, f"AVP {code} (vendor {vendor_id})")

    def call_protocol(self, name: Optional[str], data: bytes) -> SubdissectorResult:
        """Run a named protocol decoder; unknown names fall back to raw data."""
        decoder = self._protocols.get((name or "data").lower(), decode_data)
        return _run(decoder, data, f"protocol {name!r}")


def _run(decoder: SubDecoder, data: bytes, label: str) -> SubdissectorResult:
    try:
        return SubdissectorResult(fields=decoder(bytes(data)))
    except Exception as e:
        return SubdissectorResult(error=warn(
            DiagnosticKind.SUBDISSECTOR_ERROR,
            f"Sub-decoder for {label} failed: {type(e).__name__}: {e}",
        ))


def decode_data(data: bytes) -> Dict[str, Any]:
    return {"data": data.hex()}


def decode_framed_ipv6_prefix(data: bytes) -> Dict[str, Any]:
    """RFC 3162: reserved (1), prefix length (1), prefix (up to 16 bytes)."""
    if len(data) < 2:
        raise ValueError(f"Framed-IPv6-Prefix too short ({len(data)} bytes)")
    prefix_length = data[1]
    prefix = data[2:]
    if prefix_length > 128:
        raise ValueError(f"prefix length {prefix_length} exceeds 128")
    if len(prefix) > 16:
        raise ValueError(f"prefix of {len(prefix)} bytes exceeds 16")
    network = ipaddress.IPv6Network(
        (int.from_bytes(prefix.ljust(16, b"\x00"), "big"), prefix_length), strict=False)
    return {
        "reserved": data[0],
        "prefix_length": prefix_length,
        "prefix": prefix.hex(),
        "network": str(network),
    }


def decode_vendor_id(data: bytes) -> Dict[str, Any]:
    if len(data) != 4:
        raise ValueError(f"Vendor-Id must be 4 bytes, got {len(data)}")
    return {"vendor_id": struct.unpack("!I", data)[0]}


def decode_eap(data: bytes) -> Dict[str, Any]:
    """EAP packet summary: code, identifier, length and (for requests/responses) type."""
    if len(data) < 4:
        raise ValueError(f"EAP packet too short ({len(data)} bytes)")
    code, identifier, length = struct.unpack_from("!BBH", data, 0)
    if length < 4 or length > len(data):
        raise ValueError(f"EAP length {length} does not fit payload of {len(data)} bytes")
    out: Dict[str, Any] = {
        "code": code,
        "code_name": EAP_CODES.get(code, "Unknown"),
        "identifier": identifier,
        "length": length,
    }
    if code in (1, 2) and length >= 5:
        eap_type = data[4]
        out["type"] = eap_type
        out["type_name"] = EAP_TYPES.get(eap_type, "Unknown")
        if eap_type == 1:
            out["identity"] = data[5:length].decode("utf-8", errors="replace")
    return out
