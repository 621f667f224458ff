"""
Runtime dictionary model.

A Dictionary is built once by the loader and only read afterwards. Decode
calls receive it explicitly; there is no module-level dictionary state, so
several dictionaries (e.g. one per test) can coexist.
"""
from __future__ import annotations

from bisect import bisect_left
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Mapping, Optional, Tuple

from .types import AddressSubfields, OCTET_STRING, TypeTag, ValueDecoder

NO_VENDOR_CODE = 0
UNKNOWN_VENDOR_CODE = 0xFFFFFFFF


class NameTable:
    """
    code -> name table, sorted lazily.

    Entries are appended while the dictionary is built and sorted on the
    first lookup. On duplicate codes the first registered name wins.
    """

    def __init__(self):
        self._entries: List[Tuple[int, str]] = []
        self._codes: List[int] = []
        self._sorted = True

    def add(self, code: int, name: str) -> None:
        self._entries.append((code, name))
        self._sorted = False

    def _ensure_sorted(self) -> None:
        if self._sorted:
            return
        # stable sort keeps insertion order among duplicate codes
        self._entries.sort(key=lambda item: item[0])
        self._codes = [code for code, _ in self._entries]
        self._sorted = True

    def get(self, code: int, default: Optional[str] = None) -> Optional[str]:
        self._ensure_sorted()
        idx = bisect_left(self._codes, code)
        if idx < len(self._codes) and self._codes[idx] == code:
            return self._entries[idx][1]
        return default

    def items(self) -> Iterator[Tuple[int, str]]:
        self._ensure_sorted()
        return iter(list(self._entries))

    def __contains__(self, code: int) -> bool:
        return self.get(code) is not None

    def __len__(self) -> int:
        return len(self._entries)


class Vendor:
    """A vendor code space with its command and attribute name tables."""

    def __init__(self, code: int, name: Optional[str] = None):
        self.code = code
        self.name = name
        self.command_names = NameTable()
        self.attribute_names = NameTable()

    def __repr__(self) -> str:
        return f"Vendor(code={self.code}, name={self.name!r})"


@dataclass(frozen=True, eq=False)
class AttributeDescriptor:
    """Everything needed to decode one (code, vendor) AVP."""
    code: int
    vendor: Vendor
    name: str
    value_kind: TypeTag
    decode_legacy: ValueDecoder = field(repr=False)
    decode_rfc: ValueDecoder = field(repr=False)
    enum_values: Optional[Mapping[int, str]] = None
    subdissector_hint: Optional[str] = None
    """Protocol decoder name for AVPs carrying an embedded protocol."""
    subfields: Optional[AddressSubfields] = None

    @property
    def key(self) -> Tuple[int, int]:
        return (self.code, self.vendor.code)

    def decode(self, ctx, data: bytes):
        strategy = self.decode_legacy if ctx.legacy else self.decode_rfc
        return strategy(ctx, self, data)


@dataclass
class Dictionary:
    """Vendor table, (code, vendor) attribute index and name tables."""
    vendors: Dict[int, Vendor] = field(default_factory=dict)
    attributes: Dict[Tuple[int, int], AttributeDescriptor] = field(default_factory=dict)
    applications: Dict[int, str] = field(default_factory=dict)
    commands: NameTable = field(default_factory=NameTable)
    """Global command table used in current (RFC) mode."""
    load_errors: List[str] = field(default_factory=list)
    available: bool = True
    """False when no dictionary resource could be found."""
    no_vendor: Vendor = field(default_factory=lambda: Vendor(NO_VENDOR_CODE, "None"))
    unknown_vendor: Vendor = field(default_factory=lambda: Vendor(UNKNOWN_VENDOR_CODE, "Unknown"))
    unknown_attribute: AttributeDescriptor = field(init=False)

    def __post_init__(self):
        self.vendors.setdefault(NO_VENDOR_CODE, self.no_vendor)
        self.unknown_attribute = AttributeDescriptor(
            code=0,
            vendor=self.unknown_vendor,
            name="Unknown",
            value_kind=TypeTag.OCTET_STRING,
            decode_legacy=OCTET_STRING.legacy,
            decode_rfc=OCTET_STRING.rfc,
        )

    @classmethod
    def empty(cls) -> "Dictionary":
        """The 'no dictionary' state: only sentinels, nothing resolves."""
        return cls(available=False)

    def lookup_attribute(self, code: int, vendor_id: int) -> Optional[AttributeDescriptor]:
        return self.attributes.get((code, vendor_id))

    def resolve_attribute(self, code: int, vendor_id: int) -> AttributeDescriptor:
        """Exact (code, vendor) match, else the shared unknown descriptor."""
        return self.attributes.get((code, vendor_id), self.unknown_attribute)

    def vendor(self, code: int) -> Vendor:
        return self.vendors.get(code, self.unknown_vendor)

    def vendor_name(self, code: int) -> str:
        vendor = self.vendors.get(code)
        if vendor is None or not vendor.name:
            return "Unknown"
        return vendor.name

    def application_name(self, app_id: int) -> Optional[str]:
        return self.applications.get(app_id)

    def command_name(self, code: int) -> Optional[str]:
        return self.commands.get(code)

    def attribute_name(self, code: int, vendor_id: int) -> str:
        descriptor = self.lookup_attribute(code, vendor_id)
        vendor = descriptor.vendor if descriptor else self.vendor(vendor_id)
        return vendor.attribute_names.get(code, "Unknown")

    def summary(self) -> Dict[str, int]:
        return {
            "vendors": len(self.vendors),
            "applications": len(self.applications),
            "commands": len(self.commands),
            "avps": len(self.attributes),
            "errors": len(self.load_errors),
        }
