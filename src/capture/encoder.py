"""
Diameter message encoder.

Builds wire bytes for synthetic messages (tests, the CLI's sample input).
Lengths are computed unless given explicitly, so malformed messages can be
built on purpose.
"""
from __future__ import annotations

import struct
from typing import Iterable, Optional

from models.message import (
    AVP_FLAG_MANDATORY,
    AVP_FLAG_VENDOR,
    HEADER_FLAG_REQUEST,
)

U24_MAX = (1 << 24) - 1


def pack24(x: int) -> bytes:
    if not 0 <= x <= U24_MAX:
        raise ValueError(f"value {x} does not fit in 24 bits")
    return struct.pack("!L", x)[1:]


def encode_avp(code: int,
               payload: bytes = b"",
               vendor_id: Optional[int] = None,
               flags: int = AVP_FLAG_MANDATORY,
               length: Optional[int] = None,
               pad_byte: int = 0) -> bytes:
    """
    Encode one AVP.

    A vendor id sets the V flag. `length` overrides the declared length
    (the payload is written as given either way).
    """
    if vendor_id is not None:
        flags |= AVP_FLAG_VENDOR
    header_length = 12 if flags & AVP_FLAG_VENDOR else 8
    if length is None:
        length = header_length + len(payload)

    out = struct.pack("!L", code) + struct.pack("!B", flags) + pack24(length)
    if flags & AVP_FLAG_VENDOR:
        out += struct.pack("!L", vendor_id or 0)
    out += payload
    if length % 4:
        out += bytes([pad_byte]) * (4 - length % 4)
    return out


def encode_grouped(code: int, children: Iterable[bytes], vendor_id: Optional[int] = None,
                   flags: int = AVP_FLAG_MANDATORY) -> bytes:
    return encode_avp(code, b"".join(children), vendor_id=vendor_id, flags=flags)


def encode_unsigned32(code: int, value: int, vendor_id: Optional[int] = None) -> bytes:
    return encode_avp(code, struct.pack("!I", value), vendor_id=vendor_id)


def encode_utf8(code: int, value: str, vendor_id: Optional[int] = None) -> bytes:
    return encode_avp(code, value.encode("utf-8"), vendor_id=vendor_id)


def encode_message(command_code: int,
                   avps: Iterable[bytes] = (),
                   application_id: int = 0,
                   hop_by_hop_id: int = 0,
                   end_to_end_id: int = 0,
                   request: bool = True,
                   flags: int = 0,
                   version: int = 1,
                   length: Optional[int] = None) -> bytes:
    """Encode a header followed by already-encoded AVPs."""
    content = b"".join(avps)
    if length is None:
        length = len(content) + 20
    if request:
        flags |= HEADER_FLAG_REQUEST

    out = struct.pack("!B", version) + pack24(length)
    out += struct.pack("!B", flags) + pack24(command_code)
    out += struct.pack("!LLL", application_id, hop_by_hop_id, end_to_end_id)
    return out + content
