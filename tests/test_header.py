"""Tests for header parsing and whole-message decoding."""
from __future__ import annotations

import struct

from capture.diameter_decoder import (
    DecodeQuality,
    decode_message,
    looks_like_diameter,
    pdu_length,
    quality_flag_names,
    split_messages,
)
from capture.encoder import encode_message, encode_unsigned32, encode_utf8
from capture.header import parse_header
from dictionary.model import Dictionary
from models.diagnostics import DiagnosticKind
from models.message import RawMessage


def raw(data: bytes, frame: int = 1) -> RawMessage:
    return RawMessage(frame_number=frame, timestamp_us=0, data=data)


class TestScenarioA:
    """Current mode, unknown application id, nothing after the header."""

    def test_single_application_diagnostic(self, base_dictionary) -> None:
        data = encode_message(272, application_id=16777251, hop_by_hop_id=1, end_to_end_id=2)
        decoded = decode_message(raw(data), base_dictionary)
        assert decoded.header is not None
        assert decoded.header.length == 20
        assert decoded.header.command_name == "Credit-Control"
        assert decoded.header.application_name == "Unknown"
        assert len(decoded.diagnostics) == 1
        diag = decoded.diagnostics[0]
        assert diag.kind is DiagnosticKind.UNKNOWN_APPLICATION
        assert diag.field == "diameter.applicationId"
        assert decoded.avps == ()
        assert decoded.quality_flags == DecodeQuality.UNKNOWN_APPLICATION

    def test_diagnostic_reaches_the_field_sink(self, base_dictionary) -> None:
        data = encode_message(272, application_id=16777251)
        records = list(decode_message(raw(data), base_dictionary).iter_fields())
        assert [r.path for r in records] == [
            "diameter.version", "diameter.length", "diameter.flags", "diameter.cmd.code",
            "diameter.applicationId", "diameter.hopbyhopid", "diameter.endtoendid",
        ]
        by_path = {r.path: r for r in records}
        assert len(by_path["diameter.applicationId"].diagnostics) == 1
        assert by_path["diameter.applicationId"].offset == 8
        assert by_path["diameter.version"].diagnostics == ()


class TestModes:

    def test_legacy_mode_uses_vendor_tables(self, base_dictionary) -> None:
        data = encode_message(300, application_id=10415, version=16)
        header, diagnostics = parse_header(data, base_dictionary)
        assert header.legacy is True
        assert header.command_name == "3GPP-User-Authorization"
        assert header.application_name == "3GPP"
        assert diagnostics == []
        assert "vendor_id" in header.to_dict()

    def test_legacy_mode_unknown_vendor(self, base_dictionary) -> None:
        data = encode_message(257, application_id=4242, version=16)
        header, diagnostics = parse_header(data, base_dictionary)
        assert header.application_name == "Unknown"
        # base commands live in the 'None' vendor table, not vendor 4242's
        assert [d.kind for d in diagnostics] == [DiagnosticKind.UNKNOWN_COMMAND]

    def test_unknown_version_falls_back_to_current_mode(self, base_dictionary) -> None:
        data = encode_message(257, application_id=0, version=2)
        header, diagnostics = parse_header(data, base_dictionary)
        assert header.legacy is False
        assert header.command_name == "Capabilities-Exchange"
        assert [(d.kind, d.field) for d in diagnostics] == [
            (DiagnosticKind.UNKNOWN_VERSION, "diameter.version"),
        ]

    def test_unknown_command(self, base_dictionary) -> None:
        data = encode_message(9999, application_id=0)
        header, diagnostics = parse_header(data, base_dictionary)
        assert header.command_name == "Unknown"
        assert diagnostics[0].field == "diameter.cmd.code"

    def test_reserved_flags_do_not_block_decoding(self, base_dictionary) -> None:
        avp = encode_utf8(263, "session;1")
        data = encode_message(272, [avp], application_id=4, flags=0x03)
        decoded = decode_message(raw(data), base_dictionary)
        assert [d.kind for d in decoded.diagnostics] == [DiagnosticKind.RESERVED_FLAGS]
        assert decoded.diagnostics[0].field == "diameter.flags"
        assert decoded.avps[0].value == "session;1"

    def test_flag_properties(self, base_dictionary) -> None:
        data = encode_message(257, request=False, flags=0x40 | 0x20 | 0x10)
        header, _ = parse_header(data, base_dictionary)
        assert not header.is_request
        assert header.is_proxyable and header.is_error and header.is_retransmit
        assert header.flags_str == "-PET"

    def test_no_dictionary(self) -> None:
        data = encode_message(257, [encode_unsigned32(266, 10415)], application_id=0)
        decoded = decode_message(raw(data), Dictionary.empty())
        assert decoded.header.command_name == "Unknown"
        assert decoded.avps[0].known is False
        assert decoded.avps[0].value == struct.pack(">I", 10415)


class TestInfo:

    def test_request_info(self, base_dictionary) -> None:
        data = encode_message(257, application_id=0, hop_by_hop_id=0x1234, end_to_end_id=0xABCD)
        decoded = decode_message(raw(data), base_dictionary)
        assert decoded.info == (
            "cmd=Capabilities-ExchangeRequest(257) flags=R--- "
            "appl=Diameter Common Messages(0) h2h=1234 e2e=abcd"
        )

    def test_legacy_answer_info(self, base_dictionary) -> None:
        data = encode_message(300, application_id=10415, request=False, version=16,
                              hop_by_hop_id=1, end_to_end_id=0xFF)
        decoded = decode_message(raw(data), base_dictionary)
        assert decoded.info == "cmd=3GPP-User-AuthorizationAnswer(300) flags=---- vend=3GPP(10415) h2h=1 e2e=ff"

    def test_malformed_info(self, base_dictionary) -> None:
        decoded = decode_message(raw(b"\x01\x00\x00"), base_dictionary)
        assert decoded.header is None
        assert decoded.info == "Malformed Diameter message"
        assert set(quality_flag_names(decoded.quality_flags)) == {"TRUNCATED", "MALFORMED_HEADER"}


class TestMessageLength:

    def test_length_beyond_buffer(self, base_dictionary) -> None:
        avp = encode_utf8(263, "abc")
        data = encode_message(272, [avp], application_id=4, length=200)
        decoded = decode_message(raw(data), base_dictionary)
        assert decoded.diagnostics[0].kind is DiagnosticKind.TRUNCATED
        assert decoded.diagnostics[0].field == "diameter.length"
        assert decoded.avps[0].value == "abc"
        assert decoded.quality_flags & DecodeQuality.TRUNCATED

    def test_length_below_header(self, base_dictionary) -> None:
        data = encode_message(272, [encode_utf8(263, "abc")], application_id=4, length=12)
        decoded = decode_message(raw(data), base_dictionary)
        assert decoded.diagnostics[0].kind is DiagnosticKind.INVALID_MESSAGE_LENGTH
        assert decoded.quality_flags & DecodeQuality.MALFORMED_HEADER
        assert len(decoded.avps) == 1

    def test_trailing_bytes_are_ignored(self, base_dictionary) -> None:
        data = encode_message(272, [encode_utf8(263, "abc")], application_id=4)
        decoded = decode_message(raw(data + b"\x00" * 8), base_dictionary)
        assert len(decoded.avps) == 1
        assert decoded.quality_flags == 0


class TestFraming:

    def test_looks_like_diameter(self) -> None:
        assert looks_like_diameter(encode_message(257))
        assert not looks_like_diameter(encode_message(257, version=16))
        assert not looks_like_diameter(b"")

    def test_pdu_length(self) -> None:
        data = encode_message(257, [encode_utf8(263, "abcd")])
        assert pdu_length(data) == len(data) == 32
        assert pdu_length(b"\x00" * 4 + data, 4) == 32
        assert pdu_length(b"\x01\x00") == 0

    def test_split_back_to_back(self) -> None:
        first = encode_message(257, hop_by_hop_id=1)
        second = encode_message(257, [encode_utf8(263, "x")], hop_by_hop_id=2, version=16)
        messages, leftover = split_messages(first + second + first[:10])
        assert messages == [first, second]
        assert leftover == 10

    def test_split_stops_at_garbage(self) -> None:
        messages, leftover = split_messages(b"\x07" * 24)
        assert messages == []
        assert leftover == 24


class TestSerialization:

    def test_to_json_is_deterministic(self, base_dictionary) -> None:
        data = encode_message(272, [encode_utf8(263, "s"), encode_unsigned32(268, 2001)],
                              application_id=4, request=False)
        decoded = decode_message(raw(data), base_dictionary)
        assert decoded.to_json() == decode_message(raw(data), base_dictionary).to_json()
        out = decoded.to_dict()
        assert out["header"]["application_name"] == "Diameter Credit Control"
        assert out["avps"][1]["display"] == "DIAMETER_SUCCESS (2001)"
        assert out["transaction"] is None
