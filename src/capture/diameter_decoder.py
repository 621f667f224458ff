"""
Pure Diameter message decoding.

This module is deterministic and best-effort:
- It never throws on malformed/truncated messages
- It returns quality flags to describe decode issues
- Problems are diagnostics attached to the header field or AVP concerned
"""
from __future__ import annotations

from enum import IntFlag
from typing import Iterable, List, Optional, Tuple

from dictionary.model import Dictionary
from models.diagnostics import Diagnostic, DiagnosticKind, error, warn
from models.message import AvpField, DecodedMessage, RawMessage

from .avp_decoder import DecodeContext, decode_avps
from .config import DecoderConfig
from .header import HEADER_LENGTH, VERSION_LEGACY, VERSION_RFC, parse_header
from .subdissectors import SubdissectorRegistry


class DecodeQuality(IntFlag):
    OK = 0
    TRUNCATED = 1 << 0
    MALFORMED_HEADER = 1 << 1
    MALFORMED_AVP = 1 << 2
    UNKNOWN_VERSION = 1 << 3
    UNKNOWN_COMMAND = 1 << 4
    UNKNOWN_APPLICATION = 1 << 5
    UNKNOWN_AVP = 1 << 6
    UNKNOWN_VENDOR = 1 << 7
    SUBDISSECTOR_ERROR = 1 << 8


_QUALITY_BY_KIND = {
    DiagnosticKind.TRUNCATED: DecodeQuality.TRUNCATED,
    DiagnosticKind.INVALID_MESSAGE_LENGTH: DecodeQuality.MALFORMED_HEADER,
    DiagnosticKind.INVALID_AVP_LENGTH: DecodeQuality.MALFORMED_AVP,
    DiagnosticKind.GROUPED_OVERRUN: DecodeQuality.MALFORMED_AVP,
    DiagnosticKind.GROUP_TOO_DEEP: DecodeQuality.MALFORMED_AVP,
    DiagnosticKind.WRONG_LENGTH: DecodeQuality.MALFORMED_AVP,
    DiagnosticKind.BAD_ADDRESS: DecodeQuality.MALFORMED_AVP,
    DiagnosticKind.BAD_TIMESTAMP: DecodeQuality.MALFORMED_AVP,
    DiagnosticKind.UNKNOWN_VERSION: DecodeQuality.UNKNOWN_VERSION,
    DiagnosticKind.UNKNOWN_COMMAND: DecodeQuality.UNKNOWN_COMMAND,
    DiagnosticKind.UNKNOWN_APPLICATION: DecodeQuality.UNKNOWN_APPLICATION,
    DiagnosticKind.UNKNOWN_AVP: DecodeQuality.UNKNOWN_AVP,
    DiagnosticKind.UNKNOWN_VENDOR: DecodeQuality.UNKNOWN_VENDOR,
    DiagnosticKind.SUBDISSECTOR_ERROR: DecodeQuality.SUBDISSECTOR_ERROR,
}


def quality_flag_names(flags: int) -> Tuple[str, ...]:
    """Return decode quality flag names for display."""
    if flags == 0:
        return ("OK",)
    names = []
    for flag in DecodeQuality:
        if flag != DecodeQuality.OK and (flags & flag):
            names.append(flag.name)
    return tuple(names)


def looks_like_diameter(data: bytes) -> bool:
    """Acceptance check run before dissection: the first byte must be version 1."""
    return len(data) >= 1 and data[0] == VERSION_RFC


def is_diameter_version(data: bytes) -> bool:
    """Looser check used by capture sources, which also accept legacy version 16."""
    return len(data) >= 1 and data[0] in (VERSION_RFC, VERSION_LEGACY)


def pdu_length(data: bytes, offset: int = 0) -> int:
    """24-bit message length at offset+1, or 0 when it is not fully present."""
    if len(data) < offset + 4:
        return 0
    return int.from_bytes(data[offset + 1:offset + 4], "big")


def quality_of(diagnostics: Iterable[Diagnostic]) -> DecodeQuality:
    quality = DecodeQuality.OK
    for diag in diagnostics:
        quality |= _QUALITY_BY_KIND.get(diag.kind, DecodeQuality.OK)
    return quality


def decode_message(raw: RawMessage,
                   dictionary: Dictionary,
                   registry: Optional[SubdissectorRegistry] = None,
                   config: Optional[DecoderConfig] = None) -> DecodedMessage:
    """Decode a RawMessage into a DecodedMessage (best-effort)."""
    data = raw.data or b""
    config = config or DecoderConfig()
    registry = registry or SubdissectorRegistry.with_builtins()

    if len(data) < HEADER_LENGTH:
        diag = error(DiagnosticKind.TRUNCATED,
                     f"Message of {len(data)} bytes is shorter than the Diameter header")
        return DecodedMessage(
            raw=raw,
            header=None,
            diagnostics=(diag,),
            quality_flags=int(DecodeQuality.TRUNCATED | DecodeQuality.MALFORMED_HEADER),
        )

    header, diagnostics = parse_header(data, dictionary)

    end = header.length
    if header.length < HEADER_LENGTH:
        diagnostics.append(error(
            DiagnosticKind.INVALID_MESSAGE_LENGTH,
            f"Bad message length {header.length}, shorter than the header",
            "diameter.length",
        ))
        end = len(data)
    elif header.length > len(data):
        diagnostics.append(warn(
            DiagnosticKind.TRUNCATED,
            f"Message length {header.length} exceeds the {len(data)} bytes captured",
            "diameter.length",
        ))
        end = len(data)

    ctx = DecodeContext(
        dictionary=dictionary,
        legacy=header.legacy,
        registry=registry,
        run_subdissectors=config.run_subdissectors,
        base_offset=HEADER_LENGTH,
    )
    # an overrun at the top level is already reported on the last AVP
    avps, _ = decode_avps(ctx, data[HEADER_LENGTH:end])

    quality = quality_of(diagnostics)
    quality |= quality_of(d for avp in _walk_all(avps) for d in avp.diagnostics)
    return DecodedMessage(
        raw=raw,
        header=header,
        avps=avps,
        diagnostics=tuple(diagnostics),
        quality_flags=int(quality),
    )


def split_messages(data: bytes) -> Tuple[List[bytes], int]:
    """
    Split back-to-back complete messages out of one buffer.

    Returns the messages and the number of trailing bytes that did not form
    a complete message (those are left alone: no reassembly).
    """
    messages: List[bytes] = []
    offset = 0
    while offset + HEADER_LENGTH <= len(data):
        if not is_diameter_version(data[offset:offset + 1]):
            break
        length = pdu_length(data, offset)
        if length < HEADER_LENGTH or offset + length > len(data):
            break
        messages.append(bytes(data[offset:offset + length]))
        offset += length
    return messages, len(data) - offset


def _walk_all(avps: Iterable[AvpField]):
    for avp in avps:
        yield from avp.walk()
