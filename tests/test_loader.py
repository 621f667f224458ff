"""Tests for the dictionary document and loader."""
from __future__ import annotations

import json
import logging

import pytest

from dictionary.base import VENDOR_3GPP, base_document
from dictionary.document import DictionaryDocument, document_from_mapping
from dictionary.exceptions import DictionaryError, DictionaryFormatError, DictionaryNotFoundError
from dictionary.loader import load_dictionary, load_dictionary_file
from dictionary.model import NO_VENDOR_CODE, UNKNOWN_VENDOR_CODE, NameTable
from dictionary.types import TypeTag


def load(mapping):
    return load_dictionary(document_from_mapping(mapping))


class TestDocumentFromMapping:

    def test_codes_may_be_strings(self) -> None:
        doc = document_from_mapping({"vendors": [{"code": "0x28AF", "name": "3GPP"}]})
        assert doc.vendors[0].code == 10415

    def test_empty_mapping(self) -> None:
        assert document_from_mapping({}) == DictionaryDocument()

    @pytest.mark.parametrize("mapping", [
        [],
        {"avps": {}},
        {"avps": ["x"]},
        {"avps": [{"name": "No-Code"}]},
        {"vendors": [{"code": "ten", "name": "X"}]},
    ])
    def test_bad_shape(self, mapping) -> None:
        with pytest.raises(DictionaryFormatError):
            document_from_mapping(mapping)

    def test_format_error_is_a_dictionary_error(self) -> None:
        assert issubclass(DictionaryFormatError, DictionaryError)


class TestLoader:

    def test_sentinel_vendors(self) -> None:
        d = load({})
        assert d.vendors[NO_VENDOR_CODE].name == "None"
        assert d.unknown_vendor.code == UNKNOWN_VENDOR_CODE
        assert d.vendor(12345) is d.unknown_vendor

    def test_base_document_loads_cleanly(self, base_dictionary) -> None:
        assert base_dictionary.load_errors == []
        assert base_dictionary.command_name(257) == "Capabilities-Exchange"
        assert base_dictionary.application_name(4) == "Diameter Credit Control"
        assert base_dictionary.lookup_attribute(268, 0).name == "Result-Code"
        assert base_dictionary.lookup_attribute(1, VENDOR_3GPP).name == "3GPP-IMSI"
        assert base_dictionary.lookup_attribute(462, 0).value_kind is TypeTag.PROTO

    def test_type_names_are_case_insensitive(self) -> None:
        d = load({"avps": [{"code": 5, "name": "A", "type": "UNSIGNED32"},
                           {"code": 6, "name": "B", "type": "unsigned32"}]})
        assert d.attributes[(5, 0)].value_kind is TypeTag.UNSIGNED32
        assert d.attributes[(6, 0)].value_kind is TypeTag.UNSIGNED32

    def test_alias_of_unknown_parent_is_octetstring(self) -> None:
        d = load({"types": [{"name": "Weird", "parent": "NoSuchType"}],
                  "avps": [{"code": 5, "name": "X", "type": "Weird"}]})
        assert d.attributes[(5, 0)].value_kind is TypeTag.OCTET_STRING
        assert d.load_errors == []

    def test_alias_chain(self) -> None:
        d = load({"types": [{"name": "Enumerated", "parent": "Integer32"},
                            {"name": "MyEnum", "parent": "Enumerated"}],
                  "avps": [{"code": 5, "name": "X", "type": "MyEnum",
                            "enums": [{"code": 1, "name": "ONE"}]}]})
        assert d.attributes[(5, 0)].value_kind is TypeTag.INTEGER32
        assert d.attributes[(5, 0)].enum_values == {1: "ONE"}

    def test_unknown_type_name_is_octetstring(self) -> None:
        d = load({"avps": [{"code": 5, "name": "X", "type": "Mystery"}]})
        assert d.attributes[(5, 0)].value_kind is TypeTag.OCTET_STRING

    def test_duplicate_vendor_names_first_wins(self) -> None:
        d = load({"vendors": [{"code": 10415, "name": "3GPP"}, {"code": 99, "name": "3gpp"}]})
        assert 10415 in d.vendors
        assert 99 not in d.vendors

    def test_second_name_for_vendor_code_is_an_alias(self) -> None:
        d = load({
            "vendors": [{"code": 10415, "name": "3GPP"}, {"code": 10415, "name": "ThirdGen"}],
            "commands": [{"code": 300, "name": "Aliased-Command", "vendor": "ThirdGen"}],
            "avps": [{"code": 7, "name": "Aliased-Avp", "type": "Unsigned32", "vendor": "ThirdGen"}],
        })
        assert d.load_errors == []
        assert d.vendor_name(10415) == "3GPP"
        assert d.vendor(10415).command_names.get(300) == "Aliased-Command"
        assert d.lookup_attribute(7, 10415).name == "Aliased-Avp"
        assert d.attribute_name(7, 10415) == "Aliased-Avp"

    def test_duplicate_avp_first_wins(self) -> None:
        d = load({"avps": [{"code": 5, "name": "First", "type": "Unsigned32"},
                           {"code": 5, "name": "Second", "type": "UTF8String"}]})
        assert d.attributes[(5, 0)].name == "First"
        assert d.attribute_name(5, 0) == "First"

    def test_command_with_unknown_vendor_is_dropped(self) -> None:
        d = load({"commands": [{"code": 999, "name": "Orphan", "vendor": "Nope"}]})
        assert d.command_name(999) is None
        assert d.load_errors == ["Diameter Dictionary: No Vendor: Nope"]

    def test_vendor_specific_commands(self) -> None:
        d = load({"vendors": [{"code": 10415, "name": "3GPP"}],
                  "commands": [{"code": 300, "name": "UA", "vendor": "3gpp"}]})
        assert d.vendors[10415].command_names.get(300) == "UA"
        assert d.command_name(300) == "UA"

    def test_avp_with_unknown_vendor_is_kept_under_sentinel(self) -> None:
        d = load({"avps": [{"code": 5, "name": "Stray", "type": "Unsigned32", "vendor": "Acme"}]})
        desc = d.attributes[(5, UNKNOWN_VENDOR_CODE)]
        assert desc.vendor is d.unknown_vendor
        assert d.lookup_attribute(5, 0) is None
        assert any("No Vendor: Acme" in e for e in d.load_errors)

    def test_malformed_entries_are_skipped(self) -> None:
        d = load({
            "vendors": [{"code": 1}],
            "applications": [{"code": 7}],
            "avps": [
                {"code": 1, "type": "Unsigned32"},
                {"code": 2, "name": "Typeless"},
                {"code": 3, "name": "Bad-Enum", "type": "UTF8String",
                 "enums": [{"code": 1, "name": "X"}]},
                {"code": 4, "name": "Good", "type": "Unsigned32"},
            ],
        })
        assert list(d.attributes) == [(4, 0)]
        assert 7 not in d.applications
        assert len(d.load_errors) == 5

    def test_loader_logs_skipped_entries(self, caplog) -> None:
        with caplog.at_level(logging.WARNING, logger="dictionary.loader"):
            load({"avps": [{"code": 2, "name": "Typeless"}]})
        assert "AVP 'Typeless' has no type" in caplog.text

    def test_avp_proto_override(self) -> None:
        d = load({"avps": [{"code": 462, "name": "EAP-Payload", "type": "OctetString"}],
                  "proto_overrides": [{"kind": "avp-proto", "key": "eap-payload", "protocol": "eap"}]})
        desc = d.attributes[(462, 0)]
        assert desc.value_kind is TypeTag.PROTO
        assert desc.subdissector_hint == "eap"

    def test_type_proto_override(self) -> None:
        d = load({"types": [{"name": "Blob", "parent": "OctetString"}],
                  "avps": [{"code": 9, "name": "X", "type": "Blob"},
                           {"code": 10, "name": "Y", "type": "OctetString"}],
                  "proto_overrides": [{"kind": "type-proto", "key": "Blob", "protocol": "data"}]})
        assert d.attributes[(9, 0)].value_kind is TypeTag.PROTO
        assert d.attributes[(10, 0)].value_kind is TypeTag.OCTET_STRING

    def test_override_rescues_typeless_avp(self) -> None:
        d = load({"avps": [{"code": 9, "name": "X"}],
                  "proto_overrides": [{"kind": "avp-proto", "key": "X", "protocol": "data"}]})
        assert (9, 0) in d.attributes
        assert d.load_errors == []

    def test_merged_documents(self) -> None:
        extra = document_from_mapping({"avps": [{"code": 268, "name": "Other", "type": "UTF8String"},
                                                {"code": 4242, "name": "New", "type": "UTF8String"}]})
        d = load_dictionary(base_document().merged(extra))
        assert d.lookup_attribute(268, 0).name == "Result-Code"
        assert d.lookup_attribute(4242, 0).name == "New"

    def test_dictionaries_are_independent(self) -> None:
        a = load({"avps": [{"code": 5, "name": "A", "type": "Unsigned32"}]})
        b = load({})
        assert a.lookup_attribute(5, 0) is not None
        assert b.lookup_attribute(5, 0) is None


class TestResolution:

    @pytest.mark.parametrize("code,vendor", [(0, 0), (4242, 0), (268, 10415), (1, 193), (7, 0xFFFFFFFF)])
    def test_unresolved_pairs_fall_back(self, base_dictionary, code, vendor) -> None:
        first = base_dictionary.resolve_attribute(code, vendor)
        assert first is base_dictionary.unknown_attribute
        assert base_dictionary.resolve_attribute(code, vendor) is first
        assert first.value_kind is TypeTag.OCTET_STRING


class TestFiles:

    def test_missing_file_degrades(self, tmp_path, caplog) -> None:
        with caplog.at_level(logging.WARNING, logger="dictionary.loader"):
            d = load_dictionary_file(str(tmp_path / "missing.json"))
        assert d.available is False
        assert d.attributes == {}
        assert "not found" in caplog.text

    def test_invalid_json(self, tmp_path) -> None:
        path = tmp_path / "bad.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(DictionaryFormatError):
            load_dictionary_file(str(path))

    def test_non_utf8_file(self, tmp_path) -> None:
        path = tmp_path / "latin1.json"
        path.write_bytes(b'{"vendors": [{"code": 1, "name": "\xff\xfe"}]}')
        with pytest.raises(DictionaryFormatError):
            load_dictionary_file(str(path))

    def test_unreadable_path(self, tmp_path) -> None:
        with pytest.raises(DictionaryFormatError):
            load_dictionary_file(str(tmp_path))

    def test_json_file(self, tmp_path) -> None:
        path = tmp_path / "dict.json"
        path.write_text(json.dumps({"avps": [{"code": 5, "name": "A", "type": "Time"}]}), encoding="utf-8")
        d = load_dictionary_file(str(path))
        assert d.available is True
        assert d.attributes[(5, 0)].value_kind is TypeTag.TIME


class TestNameTable:

    def test_lazy_sort_and_first_wins(self) -> None:
        table = NameTable()
        table.add(30, "c")
        table.add(10, "a")
        table.add(20, "b")
        table.add(10, "dup")
        assert table.get(10) == "a"
        assert table.get(20) == "b"
        assert table.get(15) is None
        assert table.get(15, "Unknown") == "Unknown"
        assert [code for code, _ in table.items()] == [10, 10, 20, 30]
        table.add(5, "e")
        assert 5 in table
        assert len(table) == 5


class TestRequiredFile:

    def test_required_missing_file_raises(self, tmp_path) -> None:
        with pytest.raises(DictionaryNotFoundError):
            load_dictionary_file(str(tmp_path / "missing.json"), required=True)
