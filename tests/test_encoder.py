"""Tests for the message encoder and encode/decode round trips."""
from __future__ import annotations

import struct

import pytest

from capture.decoder import DiameterDecoder
from capture.encoder import encode_avp, encode_grouped, encode_message, pack24
from dictionary.base import VENDOR_3GPP


class TestEncoder:

    def test_pack24(self) -> None:
        assert pack24(0x010203) == b"\x01\x02\x03"
        with pytest.raises(ValueError):
            pack24(1 << 24)

    def test_avp_layout(self) -> None:
        data = encode_avp(263, b"abcde")
        assert data[:4] == struct.pack("!I", 263)
        assert data[4] == 0x40
        assert int.from_bytes(data[5:8], "big") == 13
        assert data[8:13] == b"abcde"
        assert data[13:] == b"\x00\x00\x00"

    def test_vendor_avp_layout(self) -> None:
        data = encode_avp(1, b"", vendor_id=VENDOR_3GPP)
        assert data[4] == 0xC0
        assert struct.unpack("!I", data[8:12])[0] == VENDOR_3GPP

    def test_message_layout(self) -> None:
        data = encode_message(272, [encode_avp(263, b"abcd")], application_id=4,
                              hop_by_hop_id=7, end_to_end_id=9, request=False)
        assert data[0] == 1
        assert int.from_bytes(data[1:4], "big") == len(data) == 32
        assert data[4] == 0
        assert int.from_bytes(data[5:8], "big") == 272
        assert struct.unpack("!III", data[8:20]) == (4, 7, 9)


class TestRoundTrip:
    """Encoding a message and decoding it back keeps (code, vendor, value) in order."""

    def test_round_trip(self, base_dictionary) -> None:
        values = [
            (263, 0, "cc-session;1;2"),
            (264, 0, "client.example.net"),
            (258, 0, 4),
            (268, 0, 2001),
            (1, VENDOR_3GPP, "001010123456789"),
            (287, 0, 2 ** 40),
        ]
        payloads = {
            str: lambda v: v.encode("utf-8"),
            int: lambda v: struct.pack("!Q", v) if v >= 2 ** 32 else struct.pack("!I", v),
        }
        avps = [encode_avp(code, payloads[type(value)](value), vendor_id=vendor or None)
                for code, vendor, value in values]
        data = encode_message(272, avps, application_id=4, hop_by_hop_id=1, end_to_end_id=1)

        decoded = DiameterDecoder(dictionary=base_dictionary).decode_bytes(data)
        assert [(a.code, a.vendor_id, a.value) for a in decoded.avps] == values
        assert decoded.quality_flags == 0

    def test_grouped_round_trip(self, base_dictionary) -> None:
        inner = [encode_avp(266, struct.pack("!I", VENDOR_3GPP)),
                 encode_avp(258, struct.pack("!I", 16777216))]
        data = encode_message(300, [encode_grouped(260, inner)], application_id=16777216)
        decoded = DiameterDecoder(dictionary=base_dictionary).decode_bytes(data)
        group = decoded.avps[0]
        assert [(c.code, c.value) for c in group.children] == [(266, VENDOR_3GPP), (258, 16777216)]
