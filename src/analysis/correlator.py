"""
Request/answer transaction correlator.

Each connection owns an index keyed by hop-by-hop id. A request adds a
record to the frame-ordered list for its hop-by-hop id; an answer takes the
latest record whose request frame is <= its own frame and accepts it only
if the end-to-end ids match as well. Hop-by-hop ids may be reused on a
connection, which is why both checks are needed.

Frames of one connection must be fed in non-decreasing frame order.
Feeding a frame a second time returns the record produced the first time.
"""
from __future__ import annotations

from bisect import bisect_right, insort
from typing import Dict, Iterator, List, Optional, Tuple

from models.message import DecodedMessage, MessageHeader
from models.transaction import TransactionRecord


class ConnectionTransactions:
    """Transaction index of a single connection."""

    def __init__(self, connection_id: str, max_request_age_us: Optional[int] = None):
        self.connection_id = connection_id
        self.max_request_age_us = max_request_age_us
        self._request_frames: Dict[int, List[int]] = {}
        self._requests: Dict[Tuple[int, int], TransactionRecord] = {}
        # (hop-by-hop id, answer frame) -> record the answer resolved to
        self._answers: Dict[Tuple[int, int], TransactionRecord] = {}

    def on_request(self, header: MessageHeader, frame_number: int, timestamp_us: int) -> TransactionRecord:
        key = (header.hop_by_hop_id, frame_number)
        record = self._requests.get(key)
        if record is not None:
            return record
        record = TransactionRecord(
            hop_by_hop_id=header.hop_by_hop_id,
            end_to_end_id=header.end_to_end_id,
            command_code=header.command_code,
            command_name=header.command_name,
            request_frame=frame_number,
            request_time_us=timestamp_us,
        )
        self._requests[key] = record
        insort(self._request_frames.setdefault(header.hop_by_hop_id, []), frame_number)
        return record

    def on_answer(self, header: MessageHeader, frame_number: int, timestamp_us: int,
                  result_code: Optional[int] = None) -> TransactionRecord:
        key = (header.hop_by_hop_id, frame_number)
        record = self._answers.get(key)
        if record is not None:
            return record

        record = self.find_request(header.hop_by_hop_id, header.end_to_end_id,
                                   frame_number, timestamp_us)
        if record is None:
            # not indexed: nothing can ever match against it
            record = TransactionRecord(
                hop_by_hop_id=header.hop_by_hop_id,
                end_to_end_id=header.end_to_end_id,
                command_code=header.command_code,
                command_name=header.command_name,
                request_frame=None,
                request_time_us=timestamp_us,
                answer_frame=frame_number,
                answer_time_us=timestamp_us,
                result_code=result_code,
            )
        elif record.answer_frame is None:
            record.answer_frame = frame_number
            record.answer_time_us = timestamp_us
            record.result_code = result_code
        # a duplicate answer leaves the first answer in place
        self._answers[key] = record
        return record

    def find_request(self, hop_by_hop_id: int, end_to_end_id: int,
                     frame_number: int, timestamp_us: int) -> Optional[TransactionRecord]:
        """Latest request at or before frame_number, if its end-to-end id matches."""
        frames = self._request_frames.get(hop_by_hop_id)
        if not frames:
            return None
        idx = bisect_right(frames, frame_number) - 1
        if idx < 0:
            return None
        record = self._requests[(hop_by_hop_id, frames[idx])]
        if record.end_to_end_id != end_to_end_id:
            return None
        if (self.max_request_age_us is not None
                and timestamp_us - record.request_time_us > self.max_request_age_us):
            return None
        return record

    def records(self) -> Iterator[TransactionRecord]:
        """Request records in frame order, then detached answer records."""
        for _, record in sorted(self._requests.items(), key=lambda item: item[0][1]):
            yield record
        for record in self._answers.values():
            if record.request_frame is None:
                yield record

    def pending(self) -> List[TransactionRecord]:
        return [r for r in self.records() if r.is_pending]

    def __len__(self) -> int:
        return len(self._requests)


class TransactionCorrelator:
    """Per-connection transaction indices."""

    def __init__(self, max_request_age_us: Optional[int] = None):
        self.max_request_age_us = max_request_age_us
        self.connections: Dict[str, ConnectionTransactions] = {}

    def connection(self, connection_id: str) -> ConnectionTransactions:
        conn = self.connections.get(connection_id)
        if conn is None:
            conn = ConnectionTransactions(connection_id, self.max_request_age_us)
            self.connections[connection_id] = conn
        return conn

    def close_connection(self, connection_id: str) -> Optional[ConnectionTransactions]:
        """Drop a connection's index; its records go with it."""
        return self.connections.pop(connection_id, None)

    def process(self, message: DecodedMessage,
                result_code: Optional[int] = None) -> Optional[TransactionRecord]:
        """Correlate one decoded message. Messages without a header yield None."""
        header = message.header
        if header is None:
            return None
        raw = message.raw
        conn = self.connection(raw.connection_id)
        if header.is_request:
            return conn.on_request(header, raw.frame_number, raw.timestamp_us)
        return conn.on_answer(header, raw.frame_number, raw.timestamp_us, result_code)

    def records(self) -> Iterator[TransactionRecord]:
        for connection_id in sorted(self.connections):
            yield from self.connections[connection_id].records()
