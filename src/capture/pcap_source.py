"""
Capture-file message source.

Reads a pcap/pcapng file with scapy and yields one RawMessage per complete
Diameter PDU found in TCP segments or SCTP DATA chunks on the configured
ports. There is no stream reassembly: PDUs split across segments are
skipped, only complete PDUs sitting back-to-back in one segment are kept.
"""
from __future__ import annotations

import logging
from typing import Dict, Iterator, List, Optional, Tuple

from scapy.all import IP, IPv6, SCTP, SCTPChunkData, TCP, PcapReader

from analysis.connection import connection_id
from models.message import RawMessage

from .config import DecoderConfig
from .diameter_decoder import split_messages

logger = logging.getLogger(__name__)


class PcapMessageSource:
    """
    Diameter messages out of a capture file.

    Usage:
        with PcapMessageSource("diameter.pcap") as source:
            for message in source:
                ...
    """

    def __init__(self, path: str, config: Optional[DecoderConfig] = None):
        self.path = path
        self.config = config or DecoderConfig()
        self._reader = None
        self.stats: Dict[str, int] = {
            "frames": 0,
            "diameter_frames": 0,
            "messages": 0,
            "skipped_bytes": 0,
        }

    def open(self) -> None:
        if self._reader is None:
            self._reader = PcapReader(self.path)

    def close(self) -> None:
        if self._reader is not None:
            self._reader.close()
            self._reader = None

    def __enter__(self) -> "PcapMessageSource":
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __iter__(self) -> Iterator[RawMessage]:
        self.open()
        for frame_number, pkt in enumerate(self._reader, start=1):
            self.stats["frames"] += 1
            timestamp_us = int(pkt.time * 1_000_000)
            found = False
            for transport, conn, payload in self._payloads(pkt):
                messages, leftover = split_messages(payload)
                if leftover:
                    logger.debug("frame %d: %d bytes not forming a complete Diameter message",
                                 frame_number, leftover)
                    self.stats["skipped_bytes"] += leftover
                for data in messages:
                    found = True
                    self.stats["messages"] += 1
                    yield RawMessage(frame_number, timestamp_us, data, conn, transport)
            if found:
                self.stats["diameter_frames"] += 1
        logger.info("%s: %d frames, %d Diameter messages", self.path,
                    self.stats["frames"], self.stats["messages"])

    def _payloads(self, pkt) -> List[Tuple[str, str, bytes]]:
        if pkt.haslayer(IP):
            src_ip, dst_ip = pkt[IP].src, pkt[IP].dst
        elif pkt.haslayer(IPv6):
            src_ip, dst_ip = pkt[IPv6].src, pkt[IPv6].dst
        else:
            return []

        config = self.config
        out: List[Tuple[str, str, bytes]] = []
        if pkt.haslayer(TCP):
            tcp = pkt[TCP]
            if config.is_diameter_port("TCP", tcp.sport, tcp.dport):
                payload = bytes(tcp.payload)
                if payload:
                    conn = connection_id(src_ip, dst_ip, tcp.sport, tcp.dport, "TCP")
                    out.append(("TCP", conn, payload))
        elif pkt.haslayer(SCTP):
            sctp = pkt[SCTP]
            if config.is_diameter_port("SCTP", sctp.sport, sctp.dport):
                conn = connection_id(src_ip, dst_ip, sctp.sport, sctp.dport, "SCTP")
                index = 1
                while True:
                    chunk = pkt.getlayer(SCTPChunkData, index)
                    if chunk is None:
                        break
                    index += 1
                    if chunk.proto_id != config.sctp_ppid:
                        continue
                    if not (chunk.beginning and chunk.ending):
                        logger.debug("skipping fragmented SCTP DATA chunk (tsn=%s)", chunk.tsn)
                        continue
                    out.append(("SCTP", conn, bytes(chunk.data)))
        return out
