"""Request/answer transaction record."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass
class TransactionRecord:
    """
    State of one request/answer exchange on a connection.

    Mutable on purpose: a record is created when the request is seen and
    completed in place when the matching answer arrives. Records that are
    never answered stay pending (answer_frame is None).
    """
    hop_by_hop_id: int
    end_to_end_id: int
    command_code: int
    request_frame: Optional[int]
    """None for a detached record built for an answer without request."""
    request_time_us: int
    command_name: str = "Unknown"
    answer_frame: Optional[int] = None
    answer_time_us: Optional[int] = None
    result_code: Optional[int] = None

    @property
    def is_completed(self) -> bool:
        return self.request_frame is not None and self.answer_frame is not None

    @property
    def is_pending(self) -> bool:
        return self.request_frame is not None and self.answer_frame is None

    @property
    def round_trip_us(self) -> Optional[int]:
        if not self.is_completed or self.answer_time_us is None:
            return None
        return self.answer_time_us - self.request_time_us

    @property
    def round_trip_ms(self) -> Optional[float]:
        rtt = self.round_trip_us
        if rtt is None:
            return None
        return round(rtt / 1000.0, 3)

    @property
    def status(self) -> str:
        if self.request_frame is None:
            return "unmatched_answer"
        return "completed" if self.answer_frame is not None else "pending"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hop_by_hop_id": self.hop_by_hop_id,
            "end_to_end_id": self.end_to_end_id,
            "command_code": self.command_code,
            "command_name": self.command_name,
            "request_frame": self.request_frame,
            "answer_frame": self.answer_frame,
            "request_time_us": self.request_time_us,
            "answer_time_us": self.answer_time_us,
            "round_trip_us": self.round_trip_us,
            "result_code": self.result_code,
            "status": self.status,
        }
