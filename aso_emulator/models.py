# aso_emulator/models.py
#
# ASO Observatory – Core records
#
# Immutable records passed between the simulator, the alert manager, the
# log stream and the report centre. Only Alert.acknowledged ever changes,
# and it changes by replacing the record.

import time
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Dict, Optional, Tuple

from aso_emulator import config

LOG_TYPES = ("SYNC", "FILTER", "DRIFT", "SYSTEM", "LOGIC")


def now_ms() -> int:
    return int(time.time() * 1000)


def ms_to_iso(ms: int) -> str:
    return datetime.fromtimestamp(ms / 1000.0, tz=timezone.utc).isoformat()


def risk_level_for(uncertainty: float) -> str:
    """Display label for an uncertainty value; alerts never read it."""
    if uncertainty > config.ALERT_THRESHOLD:
        return "CRITICAL"
    if uncertainty > config.HANDOVER_THRESHOLD:
        return "HIGH"
    if uncertainty > config.ELEVATED_THRESHOLD:
        return "MEDIUM"
    return "LOW"


@dataclass(frozen=True)
class SystemState:
    """
    One health sample.

    Ranges (enforced by the simulator, never by callers):
      - uncertainty:     0.01–0.99
      - throughput:      80–100
      - alignment_score: 0–1
    """

    uncertainty: float
    throughput: float
    alignment_score: float
    last_heartbeat: int

    @property
    def risk_level(self) -> str:
        return risk_level_for(self.uncertainty)

    def to_payload(self) -> Dict:
        """Convert the sample into a JSON-serializable payload."""
        return {
            "ts": ms_to_iso(self.last_heartbeat),
            "uncertainty": float(self.uncertainty),
            "throughput": float(self.throughput),
            "alignment_score": float(self.alignment_score),
            "risk_level": self.risk_level,
            "last_heartbeat": int(self.last_heartbeat),
        }


@dataclass(frozen=True)
class Alert:
    id: str
    severity: str
    message: str
    timestamp: int
    acknowledged: bool = False

    def to_payload(self) -> Dict:
        return asdict(self)


@dataclass(frozen=True)
class LogEntry:
    id: str
    time: str
    type: str
    message: str
    severity: str

    def to_payload(self) -> Dict:
        return asdict(self)


@dataclass(frozen=True)
class WindowStats:
    """Aggregates over one report window. All zeros for an empty window."""

    sample_count: int
    avg_uncertainty: float
    peak_drift: float
    safety_variance: float
    avg_throughput: float

    def to_payload(self) -> Dict:
        return asdict(self)


@dataclass(frozen=True)
class ReportSnapshot:
    range_label: str
    sample_window: Tuple[SystemState, ...]
    narrative_text: str
    generated_at: int
    stats: WindowStats
    reference: str = ""

    def to_payload(self) -> Dict:
        return {
            "range_label": self.range_label,
            "sample_window": [s.to_payload() for s in self.sample_window],
            "narrative_text": self.narrative_text,
            "generated_at": self.generated_at,
            "stats": self.stats.to_payload(),
            "reference": self.reference,
        }


@dataclass(frozen=True)
class ObservatoryView:
    """Read-only snapshot handed to the rendering boundary."""

    state: SystemState
    history: Tuple[SystemState, ...]
    alerts: Tuple[Alert, ...]
    logs: Tuple[LogEntry, ...]
    report: Optional[ReportSnapshot]
    report_busy: bool
    responsibility_mode: str
    heartbeat_active: bool
    task_names: Tuple[str, ...] = field(default_factory=tuple)
