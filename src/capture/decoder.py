"""
Decoder integration layer.

Binds a dictionary, the sub-decoder registry and the decoder config
together so callers only hand over RawMessage values.
"""
from __future__ import annotations

from typing import Iterable, Iterator, Optional

from dictionary.base import base_document
from dictionary.loader import load_dictionary, load_dictionary_file
from dictionary.model import Dictionary
from models.message import DecodedMessage, RawMessage

from .config import DecoderConfig
from .diameter_decoder import decode_message
from .subdissectors import SubdissectorRegistry


def load_configured_dictionary(config: DecoderConfig) -> Dictionary:
    """The dictionary named by the config, or the bundled base dictionary."""
    if config.dictionary_path:
        return load_dictionary_file(config.dictionary_path)
    return load_dictionary(base_document())


class DiameterDecoder:
    """Thin wrapper for decoding Diameter messages."""

    def __init__(self,
                 dictionary: Optional[Dictionary] = None,
                 registry: Optional[SubdissectorRegistry] = None,
                 config: Optional[DecoderConfig] = None):
        self.config = config or DecoderConfig()
        self.dictionary = dictionary if dictionary is not None else load_configured_dictionary(self.config)
        self.registry = registry or SubdissectorRegistry.with_builtins()

    def decode(self, message: RawMessage) -> DecodedMessage:
        return decode_message(message, self.dictionary, self.registry, self.config)

    def decode_bytes(self, data: bytes, frame_number: int = 1, timestamp_us: int = 0,
                     connection_id: str = "default") -> DecodedMessage:
        return self.decode(RawMessage(frame_number, timestamp_us, bytes(data), connection_id))

    def decode_stream(self, messages: Iterable[RawMessage]) -> Iterator[DecodedMessage]:
        for message in messages:
            yield self.decode(message)
