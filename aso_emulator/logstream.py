# aso_emulator/logstream.py
#
# ASO Observatory – Synthetic audit log
#
# A sliding window of the most recent log lines. Generated lines draw type
# and message from fixed vocabularies; only the bootstrap lines ever carry
# SUCCESS severity.

import random
import uuid
from collections import deque
from datetime import datetime
from typing import Callable, Deque, Optional, Tuple

from aso_emulator import config
from aso_emulator.drift import RandomSource, pick
from aso_emulator.models import LOG_TYPES, LogEntry, now_ms

LOG_MESSAGES = (
    "Heartbeat verified",
    "N-Space projection updated",
    "Buffers scrubbed",
    "Handshake OK",
    "Protocol check pass",
)

CAUTION_CUTOFF = 0.8

SEED_ENTRIES = (
    ("08:22:41", "SYNC", "SYNC_LATENT_NODES: SUCCESS", "SUCCESS"),
    ("08:22:45", "FILTER", "FILTER_GATED: Ethics Gateway (0.994)", "INFO"),
)


def format_log_time(ms: int) -> str:
    """24-hour local wall-clock time, e.g. 08:22:41."""
    return datetime.fromtimestamp(ms / 1000.0).strftime("%H:%M:%S")


class LogStreamGenerator:
    def __init__(
        self,
        rng: Optional[RandomSource] = None,
        clock: Callable[[], int] = now_ms,
        capacity: int = config.LOG_CAPACITY,
        seed: bool = False,
    ) -> None:
        self._rng = rng if rng is not None else random.Random()
        self._clock = clock
        self._entries: Deque[LogEntry] = deque(maxlen=capacity)
        if seed:
            for time_str, log_type, message, severity in SEED_ENTRIES:
                self._entries.append(
                    LogEntry(
                        id=uuid.uuid4().hex,
                        time=time_str,
                        type=log_type,
                        message=message,
                        severity=severity,
                    )
                )

    @property
    def capacity(self) -> int:
        return self._entries.maxlen

    @property
    def entries(self) -> Tuple[LogEntry, ...]:
        return tuple(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def tick(self) -> LogEntry:
        log_type = pick(self._rng, LOG_TYPES)
        message = pick(self._rng, LOG_MESSAGES)
        severity = "CAUTION" if self._rng.random() > CAUTION_CUTOFF else "INFO"

        entry = LogEntry(
            id=uuid.uuid4().hex,
            time=format_log_time(self._clock()),
            type=log_type,
            message=message,
            severity=severity,
        )
        self._entries.append(entry)
        return entry
