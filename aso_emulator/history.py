# aso_emulator/history.py
#
# ASO Observatory – History buffer
#
# Bounded, oldest-first record of SystemState samples. The simulator is the
# only writer; reports read through last(), views through snapshot().

from collections import deque
from typing import Deque, Iterator, Optional, Tuple

import pandas as pd

from aso_emulator import config
from aso_emulator.models import SystemState, ms_to_iso

HISTORY_COLUMNS = [
    "timestamp",
    "uncertainty",
    "throughput",
    "alignment_score",
    "risk_level",
]


class HistoryBuffer:
    def __init__(self, capacity: int = config.HISTORY_CAPACITY) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be > 0")
        self._samples: Deque[SystemState] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._samples.maxlen

    def __len__(self) -> int:
        return len(self._samples)

    def __iter__(self) -> Iterator[SystemState]:
        return iter(tuple(self._samples))

    def append(self, state: SystemState) -> None:
        # deque(maxlen) drops the oldest sample when full
        self._samples.append(state)

    def latest(self) -> Optional[SystemState]:
        return self._samples[-1] if self._samples else None

    def last(self, count: int) -> Tuple[SystemState, ...]:
        """Most recent min(count, len) samples, oldest first."""
        if count <= 0:
            return ()
        return tuple(self._samples)[-count:]

    def snapshot(self) -> Tuple[SystemState, ...]:
        return tuple(self._samples)


def history_frame(samples) -> pd.DataFrame:
    """Build a DataFrame from SystemState records or their payload dicts."""
    rows = [s.to_payload() if isinstance(s, SystemState) else dict(s) for s in samples]
    if not rows:
        return pd.DataFrame(columns=HISTORY_COLUMNS)

    df = pd.DataFrame(rows)
    if "ts" not in df.columns:
        df["ts"] = df["last_heartbeat"].apply(ms_to_iso)

    # Parse as UTC then drop tz info so everything is tz-naive
    df["timestamp"] = pd.to_datetime(df["ts"], utc=True).dt.tz_convert(None)
    df = df.drop(columns=["ts"])
    return df[HISTORY_COLUMNS + [c for c in df.columns if c not in HISTORY_COLUMNS]]
