"""
Dictionary loader.

Turns a DictionaryDocument into a Dictionary. Loading is fail-soft: every
malformed entry is logged, recorded in Dictionary.load_errors and skipped,
and whatever is valid still ends up in the result.

Order matters and follows the dependencies between sections:
types -> vendors -> commands -> applications -> AVPs.
"""
from __future__ import annotations

import json
import logging
import os
from typing import Dict, Optional

from .document import AVP_PROTO, TYPE_PROTO, AvpEntry, DictionaryDocument, document_from_mapping
from .exceptions import DictionaryEntryError, DictionaryFormatError, DictionaryNotFoundError
from .model import AttributeDescriptor, Dictionary, Vendor
from .types import OCTET_STRING, PROTO_TYPE, BasicType, basic_types

logger = logging.getLogger(__name__)


def load_dictionary(document: DictionaryDocument) -> Dictionary:
    """Build a Dictionary from an in-memory document. Never raises."""
    dictionary = Dictionary()
    # Vendor and type names are matched case-insensitively.
    vendors: Dict[str, Vendor] = {"none": dictionary.no_vendor}
    types = _load_types(document, dictionary)

    for entry in document.vendors:
        try:
            _load_vendor(entry, dictionary, vendors)
        except DictionaryEntryError as e:
            _report(dictionary, e)

    for entry in document.commands:
        try:
            _load_command(entry, dictionary, vendors)
        except DictionaryEntryError as e:
            _report(dictionary, e)

    for entry in document.applications:
        if entry.name is None:
            _report(dictionary, DictionaryEntryError(
                "application", None, f"Invalid Application (empty name): code=={entry.code}"))
            continue
        dictionary.applications.setdefault(entry.code, entry.name)

    for entry in document.avps:
        try:
            _load_avp(entry, document, dictionary, vendors, types)
        except DictionaryEntryError as e:
            _report(dictionary, e)

    logger.info("Loaded Diameter dictionary: %s", dictionary.summary())
    return dictionary


def load_dictionary_file(path: str, required: bool = False) -> Dictionary:
    """
    Load a JSON dictionary document from disk.

    A missing file degrades to the 'no dictionary' state instead of
    failing, unless `required` is set (DictionaryNotFoundError). A file
    that cannot be read or is not a valid UTF-8 JSON document raises
    DictionaryFormatError.
    """
    if not os.path.exists(path):
        if required:
            raise DictionaryNotFoundError(f"Diameter dictionary not found: {path}")
        logger.warning("Diameter dictionary not found: %s (decoding without dictionary)", path)
        return Dictionary.empty()
    try:
        with open(path, "r", encoding="utf-8") as f:
            mapping = json.load(f)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise DictionaryFormatError(f"{path}: not valid JSON: {e}") from e
    except OSError as e:
        raise DictionaryFormatError(f"{path}: cannot read dictionary: {e}") from e
    return load_dictionary(document_from_mapping(mapping))


def _report(dictionary: Dictionary, exc: DictionaryEntryError) -> None:
    logger.warning("%s", exc)
    dictionary.load_errors.append(str(exc))


def _load_types(document: DictionaryDocument, dictionary: Dictionary) -> Dict[str, BasicType]:
    types = basic_types()
    for t in document.typedefns:
        if t.name is None:
            _report(dictionary, DictionaryEntryError(
                "type", None, f"Invalid Type (empty name): parent=={t.parent}"))
            continue
        key = t.name.lower()
        if key in types:
            continue
        parent = types.get(t.parent.lower()) if t.parent else None
        # an alias of an unknown type decodes as an octet string
        types[key] = parent or OCTET_STRING
    return types


def _load_vendor(entry, dictionary: Dictionary, vendors: Dict[str, Vendor]) -> None:
    if entry.name is None:
        raise DictionaryEntryError("vendor", None, f"Invalid Vendor (empty name): code=={entry.code}")
    key = entry.name.lower()
    if key in vendors:
        return
    existing = dictionary.vendors.get(entry.code)
    if existing is not None:
        # another name for a known code shares its tables
        logger.debug("Vendor %s is an alias of %s (code %d)", entry.name, existing.name, entry.code)
        vendors[key] = existing
        return
    vendor = Vendor(entry.code, entry.name)
    vendors[key] = vendor
    dictionary.vendors[entry.code] = vendor


def _load_command(entry, dictionary: Dictionary, vendors: Dict[str, Vendor]) -> None:
    if not entry.vendor:
        raise DictionaryEntryError(
            "command", entry.name, f"Invalid Vendor (empty name) for command {entry.name}")
    if entry.name is None:
        raise DictionaryEntryError(
            "command", None, f"Invalid Command (empty name): code=={entry.code}")
    vendor = vendors.get(entry.vendor.lower())
    if vendor is None:
        raise DictionaryEntryError("command", entry.name, f"No Vendor: {entry.vendor}")
    vendor.command_names.add(entry.code, entry.name)
    dictionary.commands.add(entry.code, entry.name)


def _find_proto_override(entry: AvpEntry, document: DictionaryDocument) -> Optional[str]:
    for override in document.proto_overrides:
        kind = override.kind.lower()
        if kind == AVP_PROTO and override.key.lower() == entry.name.lower():
            return override.protocol
        if entry.type and kind == TYPE_PROTO and override.key.lower() == entry.type.lower():
            return override.protocol
    return None


def _load_avp(entry: AvpEntry,
              document: DictionaryDocument,
              dictionary: Dictionary,
              vendors: Dict[str, Vendor],
              types: Dict[str, BasicType]) -> None:
    if entry.name is None:
        raise DictionaryEntryError("avp", None, f"Invalid AVP (empty name): code=={entry.code}")

    vendor_name = entry.vendor or "None"
    vendor = vendors.get(vendor_name.lower())
    if vendor is None:
        _report(dictionary, DictionaryEntryError("avp", entry.name, f"No Vendor: {vendor_name}"))
        vendor = dictionary.unknown_vendor

    proto = _find_proto_override(entry, document)
    if proto is not None:
        basic = PROTO_TYPE
    else:
        if not entry.type:
            raise DictionaryEntryError("avp", entry.name, f"AVP '{entry.name}' has no type")
        basic = types.get(entry.type.lower(), OCTET_STRING)

    enums = {e.code: e.name for e in entry.enums} if entry.enums else None
    descriptor: AttributeDescriptor = basic.build(basic, entry.code, vendor, entry.name, enums, proto)

    if vendor is not dictionary.unknown_vendor:
        vendor.attribute_names.add(entry.code, entry.name)
    dictionary.attributes.setdefault(descriptor.key, descriptor)
