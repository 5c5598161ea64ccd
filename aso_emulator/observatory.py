# aso_emulator/observatory.py
#
# ASO Observatory – State aggregate
#
# Owns every buffer and the scheduler that drives them. Each buffer has a
# single writer:
#   - history -> StateSimulator   ("state" task)
#   - alerts  -> AlertManager     ("state" task, right after the append)
#   - logs    -> LogStreamGenerator ("logs" task)
#   - report  -> ReportCenter     (on demand)
# Readers get an immutable ObservatoryView.

import logging
import random
from typing import Callable, Optional

from aso_emulator import config
from aso_emulator.alerts import AlertManager
from aso_emulator.drift import RandomSource
from aso_emulator.emulator import StateSimulator, load_initial_state
from aso_emulator.history import HistoryBuffer
from aso_emulator.logstream import LogStreamGenerator
from aso_emulator.models import (
    ObservatoryView,
    ReportSnapshot,
    SystemState,
    now_ms,
)
from aso_emulator.narrative import GeminiNarrativeClient, NarrativeClient
from aso_emulator.reports import ReportCenter
from aso_emulator.scheduler import Scheduler

logger = logging.getLogger(__name__)

STATE_TASK = "state"
LOG_TASK = "logs"


def responsibility_mode(uncertainty: float) -> str:
    return "MANUAL" if uncertainty > config.HANDOVER_THRESHOLD else "AUTO"


class Observatory:
    def __init__(
        self,
        initial: SystemState,
        client: NarrativeClient,
        rng: Optional[RandomSource] = None,
        log_rng: Optional[RandomSource] = None,
        clock: Callable[[], int] = now_ms,
        seed: bool = True,
        state_period: float = config.STATE_PERIOD_SECONDS,
        log_period: float = config.LOG_PERIOD_SECONDS,
    ) -> None:
        self._clock = clock
        self.history = HistoryBuffer()
        self.simulator = StateSimulator(self.history, initial, rng=rng, clock=clock)
        self.alerts = AlertManager(clock=clock)
        self.logs = LogStreamGenerator(rng=log_rng, clock=clock, seed=seed)
        self.reports = ReportCenter(
            self.history,
            client,
            current_uncertainty=lambda: self.simulator.current.uncertainty,
            clock=clock,
        )
        if seed:
            self.alerts.seed()

        self.scheduler = Scheduler()
        self.scheduler.add(STATE_TASK, state_period, self.tick_state)
        self.scheduler.add(LOG_TASK, log_period, self.tick_logs)

    @classmethod
    def create(cls, client: Optional[NarrativeClient] = None) -> "Observatory":
        """Production wiring: seed file, system randomness, HTTP narrative client."""
        return cls(
            initial=load_initial_state(),
            client=client or GeminiNarrativeClient(),
            rng=random.Random(),
            log_rng=random.Random(),
        )

    # -------------------------------------------------
    # Periodic ticks
    # -------------------------------------------------

    def tick_state(self) -> SystemState:
        # append and evaluate in one synchronous step so no reader sees
        # the new sample without its alert evaluation
        state = self.simulator.tick()
        self.alerts.evaluate(state)
        return state

    def tick_logs(self):
        return self.logs.tick()

    def start(self) -> None:
        self.scheduler.start()

    async def stop(self) -> None:
        await self.scheduler.stop()

    # -------------------------------------------------
    # Rendering boundary
    # -------------------------------------------------

    def view(self) -> ObservatoryView:
        state = self.simulator.current
        return ObservatoryView(
            state=state,
            history=self.history.snapshot(),
            alerts=self.alerts.alerts,
            logs=self.logs.entries,
            report=self.reports.snapshot,
            report_busy=self.reports.busy,
            responsibility_mode=responsibility_mode(state.uncertainty),
            heartbeat_active=self._clock() - state.last_heartbeat < config.HEARTBEAT_FRESH_MS,
            task_names=self.scheduler.names,
        )

    async def request_report(self, range_label: str) -> Optional[ReportSnapshot]:
        return await self.reports.generate(range_label)

    def dismiss_report(self) -> None:
        self.reports.dismiss()

    def acknowledge_alert(self, alert_id: str) -> bool:
        return self.alerts.acknowledge(alert_id)
