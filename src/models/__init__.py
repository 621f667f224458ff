"""
Diameter decode data models.
"""

from .diagnostics import Diagnostic, DiagnosticKind, Severity
from .message import AvpField, DecodedMessage, FieldRecord, MessageHeader, RawMessage
from .transaction import TransactionRecord

__all__ = [
    'RawMessage',
    'MessageHeader',
    'AvpField',
    'DecodedMessage',
    'FieldRecord',
    'Diagnostic',
    'DiagnosticKind',
    'Severity',
    'TransactionRecord',
]
