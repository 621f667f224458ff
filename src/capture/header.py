"""
Diameter header parser.

The version byte selects how the word at offset 8 and the command code are
resolved:
- version 16 (legacy): vendor id, names from that vendor's command table
- version 1 (RFC 3588/6733): application id, names from the global table
- anything else: treated as version 1, with a diagnostic
"""
from __future__ import annotations

import struct
from typing import List, Tuple

from dictionary.model import Dictionary
from models.diagnostics import Diagnostic, DiagnosticKind, note, warn
from models.message import MessageHeader

HEADER_LENGTH = 20

VERSION_RFC = 1
VERSION_LEGACY = 16

_HEADER = struct.Struct("!B3sB3sIII")


def _u24(raw: bytes) -> int:
    return int.from_bytes(raw, "big")


def parse_header(data: bytes, dictionary: Dictionary) -> Tuple[MessageHeader, List[Diagnostic]]:
    """
    Parse the fixed 20-byte header.

    The caller guarantees at least HEADER_LENGTH bytes. Name resolution
    problems come back as diagnostics bound to the header field concerned.
    """
    version, length, flags, code, app_or_vendor, hop_by_hop, end_to_end = _HEADER.unpack_from(data, 0)
    length = _u24(length)
    code = _u24(code)
    diagnostics: List[Diagnostic] = []

    if version == VERSION_LEGACY:
        legacy = True
        vendor = dictionary.vendor(app_or_vendor)
        command_name = vendor.command_names.get(code)
        app_name = dictionary.vendor_name(app_or_vendor)
    else:
        legacy = False
        if version != VERSION_RFC:
            diagnostics.append(warn(
                DiagnosticKind.UNKNOWN_VERSION,
                f"Unknown Diameter version {version}, decoding as version 1",
                "diameter.version",
            ))
        command_name = dictionary.command_name(code)
        app_name = dictionary.application_name(app_or_vendor)
        if app_name is None:
            app_name = "Unknown"
            diagnostics.append(note(
                DiagnosticKind.UNKNOWN_APPLICATION,
                f"Unknown Application Id ({app_or_vendor}), "
                "if you know what this is you can add it to the dictionary",
                "diameter.applicationId",
            ))

    if command_name is None:
        command_name = "Unknown"
        diagnostics.append(note(
            DiagnosticKind.UNKNOWN_COMMAND,
            f"Unknown command code {code}",
            "diameter.cmd.code",
        ))

    header = MessageHeader(
        version=version,
        length=length,
        flags=flags,
        command_code=code,
        application_id=app_or_vendor,
        hop_by_hop_id=hop_by_hop,
        end_to_end_id=end_to_end,
        legacy=legacy,
        command_name=command_name,
        application_name=app_name,
    )
    if header.reserved_flags:
        diagnostics.append(warn(
            DiagnosticKind.RESERVED_FLAGS,
            f"Reserved header flag bits set: 0x{header.reserved_flags:02x}",
            "diameter.flags",
        ))
    return header, diagnostics
