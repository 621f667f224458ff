"""
Diameter dictionary: type registry, document model and loader.
"""

from .base import VENDOR_3GPP, VENDOR_ERICSSON, base_document
from .document import (
    ApplicationEntry,
    AvpEntry,
    CommandEntry,
    DictionaryDocument,
    EnumEntry,
    ProtoOverride,
    TypeDefinition,
    VendorEntry,
    document_from_mapping,
)
from .exceptions import (
    DiamscopeError,
    DictionaryEntryError,
    DictionaryError,
    DictionaryFormatError,
    DictionaryNotFoundError,
)
from .loader import load_dictionary, load_dictionary_file
from .model import NO_VENDOR_CODE, UNKNOWN_VENDOR_CODE, AttributeDescriptor, Dictionary, Vendor
from .types import ADDRESS_FAMILIES, AddressValue, DecodedValue, TypeTag

__all__ = [
    'DictionaryDocument',
    'VendorEntry',
    'ApplicationEntry',
    'CommandEntry',
    'TypeDefinition',
    'AvpEntry',
    'EnumEntry',
    'ProtoOverride',
    'document_from_mapping',
    'base_document',
    'VENDOR_3GPP',
    'VENDOR_ERICSSON',
    'load_dictionary',
    'load_dictionary_file',
    'Dictionary',
    'Vendor',
    'AttributeDescriptor',
    'NO_VENDOR_CODE',
    'UNKNOWN_VENDOR_CODE',
    'TypeTag',
    'AddressValue',
    'DecodedValue',
    'ADDRESS_FAMILIES',
    'DiamscopeError',
    'DictionaryError',
    'DictionaryNotFoundError',
    'DictionaryFormatError',
    'DictionaryEntryError',
]
