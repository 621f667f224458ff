"""Shared fixtures."""
from __future__ import annotations

import pytest

from capture.avp_decoder import DecodeContext, decode_avp
from capture.decoder import DiameterDecoder
from dictionary.base import base_document
from dictionary.document import document_from_mapping
from dictionary.loader import load_dictionary

TEST_DOCUMENT = {
    "vendors": [{"code": 10415, "name": "3GPP"}],
    "applications": [{"code": 4, "name": "Diameter Credit Control"}],
    "commands": [
        {"code": 272, "name": "Credit-Control", "vendor": "None"},
        {"code": 300, "name": "User-Authorization", "vendor": "3GPP"},
    ],
    "types": [
        {"name": "Enumerated", "parent": "Integer32"},
        {"name": "Address", "parent": "IPAddress"},
    ],
    "avps": [
        {"code": 1, "name": "User-Name", "type": "UTF8String"},
        {"code": 8, "name": "Framed-IP-Address", "type": "Address"},
        {"code": 55, "name": "Event-Timestamp", "type": "Time"},
        {"code": 97, "name": "Framed-IPv6-Prefix", "type": "OctetString"},
        {"code": 257, "name": "Host-IP-Address", "type": "Address"},
        {"code": 258, "name": "Auth-Application-Id", "type": "Unsigned32"},
        {"code": 260, "name": "Vendor-Specific-Application-Id", "type": "Grouped"},
        {"code": 266, "name": "Vendor-Id", "type": "Unsigned32"},
        {"code": 268, "name": "Result-Code", "type": "Unsigned32",
         "enums": [{"code": 2001, "name": "DIAMETER_SUCCESS"},
                   {"code": 5012, "name": "DIAMETER_UNABLE_TO_COMPLY"}]},
        {"code": 274, "name": "Auth-Request-Type", "type": "Enumerated",
         "enums": [{"code": 1, "name": "AUTHENTICATE_ONLY"}]},
        {"code": 462, "name": "EAP-Payload", "type": "OctetString"},
        {"code": 1000, "name": "Test-Integer32", "type": "Integer32"},
        {"code": 1001, "name": "Test-Unsigned64", "type": "Unsigned64"},
        {"code": 1002, "name": "Test-Float64", "type": "Float64"},
        {"code": 1003, "name": "Test-Float32", "type": "Float32"},
        {"code": 1004, "name": "Test-Integer64", "type": "Integer64"},
        {"code": 1, "name": "3GPP-IMSI", "type": "UTF8String", "vendor": "3GPP"},
        {"code": 628, "name": "Supported-Features", "type": "Grouped", "vendor": "3GPP"},
        {"code": 629, "name": "Feature-List-ID", "type": "Unsigned32", "vendor": "3GPP"},
    ],
    "proto_overrides": [
        {"kind": "avp-proto", "key": "EAP-Payload", "protocol": "eap"},
    ],
}


@pytest.fixture
def test_dictionary():
    return load_dictionary(document_from_mapping(TEST_DOCUMENT))


@pytest.fixture(scope="session")
def base_dictionary():
    return load_dictionary(base_document())


@pytest.fixture
def decoder(base_dictionary):
    return DiameterDecoder(dictionary=base_dictionary)


@pytest.fixture
def decode_one(test_dictionary):
    """Decode the first AVP of a buffer with the test dictionary."""
    def _decode(data: bytes, legacy: bool = False, **kwargs):
        ctx = DecodeContext(test_dictionary, legacy=legacy, **kwargs)
        return decode_avp(ctx, data, 0)
    return _decode
