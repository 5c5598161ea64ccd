# aso_emulator/alerts.py
#
# ASO Observatory – Alert manager
#
# Turns threshold crossings into CRITICAL alerts. The retained list is
# newest-first and capped; a repeat CRITICAL inside the suppression window
# is dropped instead of appended.

import logging
import uuid
from dataclasses import replace
from typing import Callable, List, Optional, Sequence, Tuple

from aso_emulator import config
from aso_emulator.models import Alert, SystemState, now_ms

logger = logging.getLogger(__name__)

BOOT_MESSAGE = "ASO v4.2.1 initialized. Latent space monitoring active."


def _new_alert_id() -> str:
    return uuid.uuid4().hex


def critical_message(uncertainty: float) -> str:
    return f"LATENT_ENTROPY_CRITICAL: Risk coefficient at {uncertainty:.3f}"


def is_suppressed(
    alerts: Sequence[Alert], now: int, window_ms: int = config.ALERT_SUPPRESSION_MS
) -> bool:
    """True if the head alert is a CRITICAL still inside the suppression window."""
    if not alerts:
        return False
    head = alerts[0]
    return head.severity == "CRITICAL" and now - head.timestamp < window_ms


def evaluate_alerts(
    state: SystemState,
    alerts: Sequence[Alert],
    now: int,
    make_id: Callable[[], str] = _new_alert_id,
    threshold: float = config.ALERT_THRESHOLD,
    window_ms: int = config.ALERT_SUPPRESSION_MS,
    capacity: int = config.ALERT_CAPACITY,
) -> Tuple[Alert, ...]:
    """
    Return the alert list after evaluating one sample.

    Pure: the input sequence is never modified. Below-threshold samples and
    suppressed repeats return the input unchanged (as a tuple).
    """
    current = tuple(alerts)
    if state.uncertainty <= threshold:
        return current
    if is_suppressed(current, now, window_ms):
        return current

    alert = Alert(
        id=make_id(),
        severity="CRITICAL",
        message=critical_message(state.uncertainty),
        timestamp=now,
    )
    # newest first, overflow falls off the tail
    return (alert,) + current[: capacity - 1]


class AlertManager:
    def __init__(
        self,
        clock: Callable[[], int] = now_ms,
        make_id: Callable[[], str] = _new_alert_id,
        capacity: int = config.ALERT_CAPACITY,
        threshold: float = config.ALERT_THRESHOLD,
        window_ms: int = config.ALERT_SUPPRESSION_MS,
    ) -> None:
        self._clock = clock
        self._make_id = make_id
        self.capacity = capacity
        self.threshold = threshold
        self.window_ms = window_ms
        self._alerts: List[Alert] = []

    @property
    def alerts(self) -> Tuple[Alert, ...]:
        return tuple(self._alerts)

    def __len__(self) -> int:
        return len(self._alerts)

    def seed(self, message: str = BOOT_MESSAGE, severity: str = "INFO") -> Alert:
        """Prepend a bootstrap alert, bypassing threshold evaluation."""
        alert = Alert(
            id=self._make_id(), severity=severity, message=message, timestamp=self._clock()
        )
        self._alerts = [alert] + self._alerts[: self.capacity - 1]
        return alert

    def evaluate(self, state: SystemState) -> Optional[Alert]:
        """Evaluate one sample; returns the new alert if one was appended."""
        if state.uncertainty <= self.threshold:
            return None

        updated = evaluate_alerts(
            state,
            self._alerts,
            now=self._clock(),
            make_id=self._make_id,
            threshold=self.threshold,
            window_ms=self.window_ms,
            capacity=self.capacity,
        )
        if self._alerts and updated[0] is self._alerts[0]:
            logger.debug("suppressed repeat critical at %.3f", state.uncertainty)
            return None

        self._alerts = list(updated)
        logger.warning(updated[0].message)
        return updated[0]

    def acknowledge(self, alert_id: str) -> bool:
        """
        Mark an alert acknowledged. Idempotent; never removes or reorders.

        Returns False if no retained alert has that id.
        """
        for i, alert in enumerate(self._alerts):
            if alert.id == alert_id:
                if not alert.acknowledged:
                    self._alerts[i] = replace(alert, acknowledged=True)
                return True
        return False
