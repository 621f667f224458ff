"""
Bundled base dictionary.

Covers the RFC 6733 base protocol (commands, applications, AVPs) plus a
handful of widely seen 3GPP entries, so messages decode sensibly without an
external dictionary file.
"""
from __future__ import annotations

from typing import Iterable, Optional, Tuple

from .document import (
    AVP_PROTO,
    ApplicationEntry,
    AvpEntry,
    CommandEntry,
    DictionaryDocument,
    EnumEntry,
    ProtoOverride,
    TypeDefinition,
    VendorEntry,
)

VENDOR_3GPP = 10415
VENDOR_ERICSSON = 193

_VENDORS = (
    (9, "Cisco"),
    (94, "Nokia"),
    (VENDOR_ERICSSON, "Ericsson"),
    (5535, "3GPP2"),
    (VENDOR_3GPP, "3GPP"),
    (12645, "Vodafone"),
    (13019, "ETSI"),
)

_APPLICATIONS = (
    (0, "Diameter Common Messages"),
    (1, "NASREQ"),
    (2, "Mobile IPv4"),
    (3, "Diameter Base Accounting"),
    (4, "Diameter Credit Control"),
    (5, "Diameter EAP"),
    (6, "Diameter Session Initiation Protocol (SIP)"),
    (16777216, "3GPP Cx"),
    (16777217, "3GPP Sh"),
    (16777238, "3GPP Gx"),
    (4294967295, "Diameter Relay"),
)

_COMMANDS = (
    (257, "Capabilities-Exchange", "None"),
    (258, "Re-Auth", "None"),
    (271, "Accounting", "None"),
    (272, "Credit-Control", "None"),
    (274, "Abort-Session", "None"),
    (275, "Session-Termination", "None"),
    (280, "Device-Watchdog", "None"),
    (282, "Disconnect-Peer", "None"),
    (300, "3GPP-User-Authorization", "3GPP"),
    (301, "3GPP-Server-Assignment", "3GPP"),
    (302, "3GPP-Location-Info", "3GPP"),
    (303, "3GPP-Multimedia-Auth", "3GPP"),
)

_TYPES = (
    ("OctetString", None),
    ("UTF8String", None),
    ("Enumerated", "Integer32"),
    ("VendorId", "Unsigned32"),
    ("AppId", "Unsigned32"),
    ("Address", "IPAddress"),
)

_RESULT_CODES = (
    (1001, "DIAMETER_MULTI_ROUND_AUTH"),
    (2001, "DIAMETER_SUCCESS"),
    (2002, "DIAMETER_LIMITED_SUCCESS"),
    (3001, "DIAMETER_COMMAND_UNSUPPORTED"),
    (3002, "DIAMETER_UNABLE_TO_DELIVER"),
    (3003, "DIAMETER_REALM_NOT_SERVED"),
    (3004, "DIAMETER_TOO_BUSY"),
    (3005, "DIAMETER_LOOP_DETECTED"),
    (3006, "DIAMETER_REDIRECT_INDICATION"),
    (3007, "DIAMETER_APPLICATION_UNSUPPORTED"),
    (3008, "DIAMETER_INVALID_HDR_BITS"),
    (3009, "DIAMETER_INVALID_AVP_BITS"),
    (3010, "DIAMETER_UNKNOWN_PEER"),
    (4001, "DIAMETER_AUTHENTICATION_REJECTED"),
    (4002, "DIAMETER_OUT_OF_SPACE"),
    (4003, "ELECTION_LOST"),
    (5001, "DIAMETER_AVP_UNSUPPORTED"),
    (5002, "DIAMETER_UNKNOWN_SESSION_ID"),
    (5003, "DIAMETER_AUTHORIZATION_REJECTED"),
    (5004, "DIAMETER_INVALID_AVP_VALUE"),
    (5005, "DIAMETER_MISSING_AVP"),
    (5006, "DIAMETER_RESOURCES_EXCEEDED"),
    (5007, "DIAMETER_CONTRADICTING_AVPS"),
    (5008, "DIAMETER_AVP_NOT_ALLOWED"),
    (5009, "DIAMETER_AVP_OCCURS_TOO_MANY_TIMES"),
    (5010, "DIAMETER_NO_COMMON_APPLICATION"),
    (5011, "DIAMETER_UNSUPPORTED_VERSION"),
    (5012, "DIAMETER_UNABLE_TO_COMPLY"),
    (5013, "DIAMETER_INVALID_BIT_IN_HEADER"),
    (5014, "DIAMETER_INVALID_AVP_LENGTH"),
    (5015, "DIAMETER_INVALID_MESSAGE_LENGTH"),
    (5016, "DIAMETER_INVALID_AVP_BIT_COMBO"),
    (5017, "DIAMETER_NO_COMMON_SECURITY"),
)

# (code, name, type, vendor, enums)
_AVPS: Tuple[Tuple[int, str, str, Optional[str], Iterable[Tuple[int, str]]], ...] = (
    (1, "User-Name", "UTF8String", None, ()),
    (25, "Class", "OctetString", None, ()),
    (27, "Session-Timeout", "Unsigned32", None, ()),
    (33, "Proxy-State", "OctetString", None, ()),
    (44, "Accounting-Session-Id", "OctetString", None, ()),
    (50, "Acct-Multi-Session-Id", "UTF8String", None, ()),
    (55, "Event-Timestamp", "Time", None, ()),
    (85, "Acct-Interim-Interval", "Unsigned32", None, ()),
    (97, "Framed-IPv6-Prefix", "OctetString", None, ()),
    (257, "Host-IP-Address", "Address", None, ()),
    (258, "Auth-Application-Id", "AppId", None, ()),
    (259, "Acct-Application-Id", "AppId", None, ()),
    (260, "Vendor-Specific-Application-Id", "Grouped", None, ()),
    (261, "Redirect-Host-Usage", "Enumerated", None,
     ((0, "DONT_CACHE"), (1, "ALL_SESSION"), (2, "ALL_REALM"), (3, "REALM_AND_APPLICATION"),
      (4, "ALL_APPLICATION"), (5, "ALL_HOST"), (6, "ALL_USER"))),
    (262, "Redirect-Max-Cache-Time", "Unsigned32", None, ()),
    (263, "Session-Id", "UTF8String", None, ()),
    (264, "Origin-Host", "DiameterIdentity", None, ()),
    (265, "Supported-Vendor-Id", "VendorId", None, ()),
    (266, "Vendor-Id", "VendorId", None, ()),
    (267, "Firmware-Revision", "Unsigned32", None, ()),
    (268, "Result-Code", "Unsigned32", None, _RESULT_CODES),
    (269, "Product-Name", "UTF8String", None, ()),
    (270, "Session-Binding", "Unsigned32", None, ()),
    (271, "Session-Server-Failover", "Enumerated", None,
     ((0, "REFUSE_SERVICE"), (1, "TRY_AGAIN"), (2, "ALLOW_SERVICE"), (3, "TRY_AGAIN_ALLOW_SERVICE"))),
    (273, "Disconnect-Cause", "Enumerated", None,
     ((0, "REBOOTING"), (1, "BUSY"), (2, "DO_NOT_WANT_TO_TALK_TO_YOU"))),
    (274, "Auth-Request-Type", "Enumerated", None,
     ((1, "AUTHENTICATE_ONLY"), (2, "AUTHORIZE_ONLY"), (3, "AUTHORIZE_AUTHENTICATE"))),
    (276, "Auth-Grace-Period", "Unsigned32", None, ()),
    (277, "Auth-Session-State", "Enumerated", None,
     ((0, "STATE_MAINTAINED"), (1, "NO_STATE_MAINTAINED"))),
    (278, "Origin-State-Id", "Unsigned32", None, ()),
    (279, "Failed-AVP", "Grouped", None, ()),
    (280, "Proxy-Host", "DiameterIdentity", None, ()),
    (281, "Error-Message", "UTF8String", None, ()),
    (282, "Route-Record", "DiameterIdentity", None, ()),
    (283, "Destination-Realm", "DiameterIdentity", None, ()),
    (284, "Proxy-Info", "Grouped", None, ()),
    (285, "Re-Auth-Request-Type", "Enumerated", None,
     ((0, "AUTHORIZE_ONLY"), (1, "AUTHORIZE_AUTHENTICATE"))),
    (287, "Accounting-Sub-Session-Id", "Unsigned64", None, ()),
    (291, "Authorization-Lifetime", "Unsigned32", None, ()),
    (292, "Redirect-Host", "DiameterURI", None, ()),
    (293, "Destination-Host", "DiameterIdentity", None, ()),
    (294, "Error-Reporting-Host", "DiameterIdentity", None, ()),
    (295, "Termination-Cause", "Enumerated", None,
     ((1, "DIAMETER_LOGOUT"), (2, "DIAMETER_SERVICE_NOT_PROVIDED"), (3, "DIAMETER_BAD_ANSWER"),
      (4, "DIAMETER_ADMINISTRATIVE"), (5, "DIAMETER_LINK_BROKEN"),
      (6, "DIAMETER_AUTH_EXPIRED"), (7, "DIAMETER_USER_MOVED"), (8, "DIAMETER_SESSION_TIMEOUT"))),
    (296, "Origin-Realm", "DiameterIdentity", None, ()),
    (297, "Experimental-Result", "Grouped", None, ()),
    (298, "Experimental-Result-Code", "Unsigned32", None, ()),
    (299, "Inband-Security-Id", "Unsigned32", None, ((0, "NO_INBAND_SECURITY"), (1, "TLS"))),
    (462, "EAP-Payload", "OctetString", None, ()),
    (463, "EAP-Reissued-Payload", "OctetString", None, ()),
    (480, "Accounting-Record-Type", "Enumerated", None,
     ((1, "EVENT_RECORD"), (2, "START_RECORD"), (3, "INTERIM_RECORD"), (4, "STOP_RECORD"))),
    (483, "Accounting-Realtime-Required", "Enumerated", None,
     ((1, "DELIVER_AND_GRANT"), (2, "GRANT_AND_STORE"), (3, "GRANT_AND_LOSE"))),
    (485, "Accounting-Record-Number", "Unsigned32", None, ()),
    (1, "3GPP-IMSI", "UTF8String", "3GPP", ()),
    (628, "Supported-Features", "Grouped", "3GPP", ()),
    (629, "Feature-List-ID", "Unsigned32", "3GPP", ()),
    (630, "Feature-List", "Unsigned32", "3GPP", ()),
    (1407, "Visited-PLMN-Id", "OctetString", "3GPP", ()),
)


def base_document() -> DictionaryDocument:
    """The bundled base dictionary as an in-memory document."""
    return DictionaryDocument(
        vendors=tuple(VendorEntry(code, name) for code, name in _VENDORS),
        applications=tuple(ApplicationEntry(code, name) for code, name in _APPLICATIONS),
        commands=tuple(CommandEntry(code, name, vendor) for code, name, vendor in _COMMANDS),
        typedefns=tuple(TypeDefinition(name, parent) for name, parent in _TYPES),
        avps=tuple(
            AvpEntry(code, name, type_name, vendor, tuple(EnumEntry(c, n) for c, n in enums))
            for code, name, type_name, vendor, enums in _AVPS
        ),
        proto_overrides=(
            ProtoOverride(AVP_PROTO, "EAP-Payload", "eap"),
            ProtoOverride(AVP_PROTO, "EAP-Reissued-Payload", "eap"),
        ),
    )
