"""Analysis engine for decoded Diameter messages."""
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Dict, Iterable, List, Optional

from capture.diameter_decoder import quality_flag_names
from models.message import DecodedMessage

from .correlator import TransactionCorrelator
from .models import AnalysisReport

RESULT_CODE = 268
EXPERIMENTAL_RESULT = 297
EXPERIMENTAL_RESULT_CODE = 298


def result_code_of(message: DecodedMessage) -> Optional[int]:
    """Result-Code, else Experimental-Result/Experimental-Result-Code."""
    for avp in message.avps:
        if avp.code == RESULT_CODE and avp.vendor_id == 0 and isinstance(avp.value, int):
            return avp.value
    for avp in message.avps:
        if avp.code == EXPERIMENTAL_RESULT and avp.vendor_id == 0:
            for child in avp.children:
                if child.code == EXPERIMENTAL_RESULT_CODE and isinstance(child.value, int):
                    return child.value
    return None


@dataclass
class AnalysisContext:
    capture_path: Optional[str]
    stats: Dict[str, int]
    quality: Dict[str, int]
    commands: Dict[str, Dict[str, int]]
    result_codes: Dict[str, int]


class AnalysisEngine:
    def __init__(self,
                 capture_path: Optional[str] = None,
                 max_request_age_us: Optional[int] = None):
        self.correlator = TransactionCorrelator(max_request_age_us)
        self.context = AnalysisContext(
            capture_path=capture_path,
            stats={
                "messages_total": 0,
                "requests": 0,
                "answers": 0,
                "malformed": 0,
                "bytes_total": 0,
                "first_ts_us": 0,
                "last_ts_us": 0,
                "duration_us": 0,
            },
            quality={},
            commands={},
            result_codes={},
        )

    def process_message(self, decoded: DecodedMessage) -> DecodedMessage:
        """Account for one message; returns it with its transaction record attached."""
        stats = self.context.stats
        raw = decoded.raw
        stats["messages_total"] += 1
        stats["bytes_total"] += len(raw.data)
        if stats["first_ts_us"] == 0 or raw.timestamp_us < stats["first_ts_us"]:
            stats["first_ts_us"] = raw.timestamp_us
        if raw.timestamp_us > stats["last_ts_us"]:
            stats["last_ts_us"] = raw.timestamp_us
        if stats["first_ts_us"] and stats["last_ts_us"]:
            stats["duration_us"] = max(0, stats["last_ts_us"] - stats["first_ts_us"])

        if decoded.quality_flags:
            for name in quality_flag_names(decoded.quality_flags):
                self.context.quality[name] = self.context.quality.get(name, 0) + 1

        header = decoded.header
        if header is None:
            stats["malformed"] += 1
            return decoded

        command = f"{header.command_name}({header.command_code})"
        counts = self.context.commands.setdefault(command, {"requests": 0, "answers": 0})
        result_code = None
        if header.is_request:
            stats["requests"] += 1
            counts["requests"] += 1
        else:
            stats["answers"] += 1
            counts["answers"] += 1
            result_code = result_code_of(decoded)
            if result_code is not None:
                key = str(result_code)
                self.context.result_codes[key] = self.context.result_codes.get(key, 0) + 1

        record = self.correlator.process(decoded, result_code)
        return replace(decoded, transaction=record)

    def analyze_stream(self, messages: Iterable[DecodedMessage], limit: int = 0) -> AnalysisReport:
        count = 0
        for decoded in messages:
            self.process_message(decoded)
            count += 1
            if limit > 0 and count >= limit:
                break
        return self.finalize()

    def finalize(self) -> AnalysisReport:
        records = list(self.correlator.records())
        completed = [r for r in records if r.is_completed]
        pending = [r for r in records if r.is_pending]
        unmatched = [r for r in records if r.request_frame is None]

        rtt_samples: List[int] = [r.round_trip_us for r in completed if r.round_trip_us is not None]
        rtt_median_ms = _percentile(rtt_samples, 50.0)
        rtt_p95_ms = _percentile(rtt_samples, 95.0)
        if rtt_median_ms is not None:
            rtt_median_ms = round(rtt_median_ms / 1000.0, 3)
        if rtt_p95_ms is not None:
            rtt_p95_ms = round(rtt_p95_ms / 1000.0, 3)

        requests_total = len(completed) + len(pending)
        answer_rate = round(len(completed) / requests_total, 4) if requests_total else None

        return AnalysisReport(
            capture_path=self.context.capture_path,
            created_at=AnalysisReport.now_iso(),
            stats=dict(self.context.stats),
            transactions={
                "total": requests_total,
                "answered": len(completed),
                "pending": len(pending),
                "unmatched_answers": len(unmatched),
                "answer_rate": answer_rate,
                "rtt_median_ms": rtt_median_ms,
                "rtt_p95_ms": rtt_p95_ms,
                "connections": len(self.correlator.connections),
            },
            quality=dict(sorted(self.context.quality.items())),
            commands=dict(sorted(self.context.commands.items())),
            result_codes=dict(sorted(self.context.result_codes.items())),
            records=[r.to_dict() for r in records],
        )


def _percentile(values, percent: float):
    if not values:
        return None
    if len(values) == 1:
        return float(values[0])
    sorted_vals = sorted(values)
    position = (percent / 100.0) * (len(sorted_vals) - 1)
    lower = int(position)
    upper = min(lower + 1, len(sorted_vals) - 1)
    if lower == upper:
        return float(sorted_vals[lower])
    weight = position - lower
    return sorted_vals[lower] + (sorted_vals[upper] - sorted_vals[lower]) * weight
