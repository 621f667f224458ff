"""Analysis data models."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
import json
from typing import Any, Dict, List, Optional


@dataclass
class AnalysisReport:
    capture_path: Optional[str]
    created_at: str
    stats: Dict[str, Any]
    transactions: Dict[str, Any] = field(default_factory=dict)
    quality: Dict[str, int] = field(default_factory=dict)
    commands: Dict[str, Dict[str, int]] = field(default_factory=dict)
    result_codes: Dict[str, int] = field(default_factory=dict)
    records: List[Dict[str, Any]] = field(default_factory=list)

    @staticmethod
    def now_iso() -> str:
        return datetime.now(timezone.utc).isoformat()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "capture_path": self.capture_path,
            "created_at": self.created_at,
            "stats": self.stats,
            "transactions": self.transactions,
            "quality": self.quality,
            "commands": self.commands,
            "result_codes": self.result_codes,
            "records": self.records,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), separators=(",", ":"), ensure_ascii=True)
