"""
Recursive AVP decoder.

Every call works on its own buffer slice and returns its own AvpField
(children included); nothing outside the call is mutated. A grouped AVP
decodes its payload through the same walker with a nested context. Groups
nested deeper than MAX_GROUP_DEPTH are kept as raw bytes.

Byte accounting: an AVP with a sane declared length always consumes
exactly declared_length + padding bytes, whatever happens to its value. An
AVP whose declared length is below its header size cannot be walked past
safely, so it consumes the rest of the enclosing buffer.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
import struct
from typing import List, Optional, Tuple

from dictionary.model import Dictionary
from dictionary.types import DecodedValue, TypeTag
from models.diagnostics import Diagnostic, DiagnosticKind, error, note, warn
from models.message import AVP_FLAG_VENDOR, AVP_FLAGS_RESERVED, AvpField

from .subdissectors import SubdissectorRegistry, SubdissectorResult

AVP_HEADER_LENGTH = 8
AVP_VENDOR_HEADER_LENGTH = 12
MAX_GROUP_DEPTH = 64


def avp_padding(declared_length: int) -> int:
    return (4 - declared_length % 4) % 4


@dataclass(frozen=True)
class DecodeContext:
    """Scoped decode state handed down the recursion."""
    dictionary: Dictionary
    legacy: bool = False
    registry: SubdissectorRegistry = field(default_factory=SubdissectorRegistry.with_builtins)
    run_subdissectors: bool = True
    base_offset: int = 0
    """Absolute message offset of the buffer being walked."""
    path: str = "diameter"
    """Field path of the enclosing structure."""
    depth: int = 0
    """Number of enclosing grouped AVPs."""

    def nested(self, base_offset: int, path: str) -> "DecodeContext":
        return replace(self, base_offset=base_offset, path=path, depth=self.depth + 1)

    def decode_group(self, data: bytes) -> Tuple[Tuple[AvpField, ...], Optional[Diagnostic]]:
        """Decode a grouped payload; the diagnostic is set when children overrun it."""
        return decode_avps(self, data)

    def call_protocol(self, name: Optional[str], data: bytes) -> SubdissectorResult:
        return self.registry.call_protocol(name, data)


def decode_avps(ctx: DecodeContext, data: bytes) -> Tuple[Tuple[AvpField, ...], Optional[Diagnostic]]:
    """Walk a buffer of back-to-back AVPs until it is exhausted."""
    avps: List[AvpField] = []
    offset = 0
    while offset < len(data):
        avp = decode_avp(ctx, data, offset)
        avps.append(avp)
        offset += avp.consumed

    overrun = offset - len(data)
    # a missing trailing pad is reported on the AVP itself
    if avps and overrun > avps[-1].padding:
        return tuple(avps), error(
            DiagnosticKind.GROUPED_OVERRUN,
            f"AVPs overrun the enclosing payload by {overrun} bytes",
            ctx.path,
        )
    return tuple(avps), None


def decode_avp(ctx: DecodeContext, data: bytes, offset: int) -> AvpField:
    """Decode the AVP starting at `offset` of `data`."""
    available = len(data) - offset
    absolute = ctx.base_offset + offset

    if available < AVP_HEADER_LENGTH:
        return _invalid_length(ctx, data, offset, code=0, flags=0, declared=0, vendor_id=0,
                               message=f"Truncated AVP header ({available} bytes)")

    code, flags_and_length = struct.unpack_from("!II", data, offset)
    flags = flags_and_length >> 24
    declared = flags_and_length & 0xFFFFFF
    vendor_flag = bool(flags & AVP_FLAG_VENDOR)
    header_length = AVP_VENDOR_HEADER_LENGTH if vendor_flag else AVP_HEADER_LENGTH

    vendor_id = 0
    if vendor_flag:
        if available < AVP_VENDOR_HEADER_LENGTH:
            return _invalid_length(ctx, data, offset, code, flags, declared, 0,
                                   f"Truncated AVP({code}) vendor header ({available} bytes)")
        vendor_id = struct.unpack_from("!I", data, offset + AVP_HEADER_LENGTH)[0]

    if declared < header_length:
        return _invalid_length(ctx, data, offset, code, flags, declared, vendor_id,
                               f"Wrong AVP({code}) length {declared}")

    dictionary = ctx.dictionary
    diagnostics: List[Diagnostic] = []
    descriptor = dictionary.lookup_attribute(code, vendor_id)
    known = descriptor is not None
    if known:
        name = descriptor.name
        path = f"{ctx.path}.{name}"
    else:
        descriptor = dictionary.unknown_attribute
        name = dictionary.attribute_name(code, vendor_id)
        path = f"{ctx.path}.avp.unknown"
        diagnostics.append(note(
            DiagnosticKind.UNKNOWN_AVP,
            f"Unknown AVP {code} (vendor {vendor_id}), "
            "if you know what this is you can add it to the dictionary",
            path,
        ))
    if vendor_flag and vendor_id not in dictionary.vendors:
        diagnostics.append(note(DiagnosticKind.UNKNOWN_VENDOR, f"Unknown Vendor: {vendor_id}", path))

    reserved = flags & AVP_FLAGS_RESERVED
    if reserved:
        diagnostics.append(warn(
            DiagnosticKind.RESERVED_FLAGS, f"Reserved AVP flag bits set: 0x{reserved:02x}", path))

    padding = avp_padding(declared)
    base = dict(
        code=code,
        name=name,
        vendor_id=vendor_id,
        flags=flags,
        declared_length=declared,
        padding=padding,
        consumed=declared + padding,
        offset=absolute,
        path=path,
        value_kind=descriptor.value_kind.value,
        known=known,
    )

    payload_length = declared - header_length
    if payload_length == 0:
        diagnostics.append(note(DiagnosticKind.EMPTY_VALUE, "Data is empty", path))
        return AvpField(diagnostics=tuple(diagnostics), **base)

    if declared > available:
        diagnostics.append(error(
            DiagnosticKind.TRUNCATED,
            f"AVP({code}) length {declared} exceeds the {available} bytes available",
            path,
        ))
        return AvpField(value=bytes(data[offset + header_length:]),
                        diagnostics=tuple(diagnostics), **base)

    start = offset + header_length
    payload = bytes(data[start:offset + declared])
    if descriptor.value_kind is TypeTag.GROUPED and ctx.depth >= MAX_GROUP_DEPTH:
        # kept as raw bytes, the recursion stops here
        decoded = DecodedValue(value=payload, diagnostic=error(
            DiagnosticKind.GROUP_TOO_DEEP,
            f"Grouped AVP nested deeper than {MAX_GROUP_DEPTH} levels, not decoded",
        ))
    else:
        decoded = descriptor.decode(ctx.nested(ctx.base_offset + start, path), payload)
    if decoded.diagnostic is not None:
        diagnostics.append(decoded.diagnostic.with_field(path))

    extra = dict(decoded.extra) if decoded.extra else {}
    if ctx.run_subdissectors:
        result = ctx.registry.dispatch(vendor_id, code, payload)
        if result is not None:
            if result.error is not None:
                diagnostics.append(result.error.with_field(path))
            extra.update(result.fields)

    if padding:
        pad = data[offset + declared:offset + declared + padding]
        if len(pad) < padding:
            diagnostics.append(note(
                DiagnosticKind.MISSING_PADDING,
                f"Missing padding: {padding - len(pad)} of {padding} bytes absent",
                path,
            ))
        if any(pad):
            diagnostics.append(note(DiagnosticKind.NONZERO_PADDING, "Padding is non-zero", path))

    return AvpField(
        value=decoded.value,
        display=decoded.display,
        children=tuple(decoded.children),
        diagnostics=tuple(diagnostics),
        extra=extra or None,
        **base,
    )


def _invalid_length(ctx: DecodeContext, data: bytes, offset: int, code: int, flags: int,
                    declared: int, vendor_id: int, message: str) -> AvpField:
    path = f"{ctx.path}.avp.invalid"
    remainder = len(data) - offset
    return AvpField(
        code=code,
        name="Unknown",
        vendor_id=vendor_id,
        flags=flags,
        declared_length=declared,
        padding=0,
        consumed=remainder,
        offset=ctx.base_offset + offset,
        path=path,
        value_kind="octetstring",
        value=bytes(data[offset:]),
        diagnostics=(error(DiagnosticKind.INVALID_AVP_LENGTH, message, path),),
        known=False,
    )
