"""
Diameter message decoding subsystem.
"""

from .avp_decoder import DecodeContext, avp_padding, decode_avp, decode_avps
from .config import DecoderConfig
from .decoder import DiameterDecoder, load_configured_dictionary
from .diameter_decoder import (
    DecodeQuality,
    decode_message,
    is_diameter_version,
    looks_like_diameter,
    pdu_length,
    quality_flag_names,
    split_messages,
)
from .encoder import encode_avp, encode_grouped, encode_message, encode_unsigned32, encode_utf8
from .header import HEADER_LENGTH, VERSION_LEGACY, VERSION_RFC, parse_header
from .subdissectors import SubdissectorRegistry, SubdissectorResult

__all__ = [
    'DecodeContext',
    'avp_padding',
    'decode_avp',
    'decode_avps',
    'DecoderConfig',
    'DiameterDecoder',
    'load_configured_dictionary',
    'DecodeQuality',
    'decode_message',
    'is_diameter_version',
    'looks_like_diameter',
    'pdu_length',
    'quality_flag_names',
    'split_messages',
    'encode_avp',
    'encode_grouped',
    'encode_message',
    'encode_unsigned32',
    'encode_utf8',
    'HEADER_LENGTH',
    'VERSION_LEGACY',
    'VERSION_RFC',
    'parse_header',
    'SubdissectorRegistry',
    'SubdissectorResult',
]
