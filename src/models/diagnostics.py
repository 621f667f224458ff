"""
Decode diagnostics.

A diagnostic is an operator-facing note attached to the smallest structure
it concerns (a header field or a single AVP). Diagnostics never stop
decoding; they describe what could not be decoded cleanly.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict


class Severity(str, Enum):
    NOTE = "note"
    WARN = "warn"
    ERROR = "error"


class DiagnosticKind(str, Enum):
    UNKNOWN_VERSION = "unknown_version"
    UNKNOWN_APPLICATION = "unknown_application"
    UNKNOWN_COMMAND = "unknown_command"
    UNKNOWN_AVP = "unknown_avp"
    UNKNOWN_VENDOR = "unknown_vendor"
    RESERVED_FLAGS = "reserved_flags"
    EMPTY_VALUE = "empty_value"
    WRONG_LENGTH = "wrong_length"
    BAD_ADDRESS = "bad_address"
    BAD_TIMESTAMP = "bad_timestamp"
    NONZERO_PADDING = "nonzero_padding"
    MISSING_PADDING = "missing_padding"
    INVALID_AVP_LENGTH = "invalid_avp_length"
    GROUPED_OVERRUN = "grouped_overrun"
    GROUP_TOO_DEEP = "group_too_deep"
    INVALID_MESSAGE_LENGTH = "invalid_message_length"
    TRUNCATED = "truncated"
    SUBDISSECTOR_ERROR = "subdissector_error"


@dataclass(frozen=True)
class Diagnostic:
    """One decode problem, bound to the field it was found in."""
    kind: DiagnosticKind
    severity: Severity
    message: str
    field: str = ""
    """Field path the diagnostic belongs to (e.g. 'diameter.applicationId')."""

    def with_field(self, field: str) -> "Diagnostic":
        return Diagnostic(self.kind, self.severity, self.message, field)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "severity": self.severity.value,
            "message": self.message,
            "field": self.field,
        }


def note(kind: DiagnosticKind, message: str, field: str = "") -> Diagnostic:
    return Diagnostic(kind, Severity.NOTE, message, field)


def warn(kind: DiagnosticKind, message: str, field: str = "") -> Diagnostic:
    return Diagnostic(kind, Severity.WARN, message, field)


def error(kind: DiagnosticKind, message: str, field: str = "") -> Diagnostic:
    return Diagnostic(kind, Severity.ERROR, message, field)
