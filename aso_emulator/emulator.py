# aso_emulator/emulator.py
#
# ASO Observatory – State simulator
#
# Produces one SystemState per tick: uncertainty drifts as a clamped random
# walk, throughput is re-drawn independently every tick, and the alignment
# score holds at its seed value. Running this module directly starts a
# headless observatory that logs each sample.

import asyncio
import json
import logging
import random
from typing import Callable, Optional

from aso_emulator import config
from aso_emulator.drift import (
    THROUGHPUT_MAX,
    THROUGHPUT_MIN,
    UNCERTAINTY_MAX,
    UNCERTAINTY_MIN,
    RandomSource,
    clamp,
    draw_throughput,
    drift_uncertainty,
)
from aso_emulator.history import HistoryBuffer
from aso_emulator.models import SystemState, now_ms

logger = logging.getLogger(__name__)

DEFAULT_UNCERTAINTY = 0.15
DEFAULT_THROUGHPUT = 94.0
DEFAULT_ALIGNMENT = 0.998


def load_initial_state(
    path: str = config.INITIAL_STATE_PATH, clock: Callable[[], int] = now_ms
) -> SystemState:
    """Initialize from a JSON seed file, clamping anything out of range."""
    with open(path, "r") as f:
        seed = json.load(f)
    return SystemState(
        uncertainty=clamp(
            float(seed.get("uncertainty", DEFAULT_UNCERTAINTY)),
            UNCERTAINTY_MIN,
            UNCERTAINTY_MAX,
        ),
        throughput=clamp(
            float(seed.get("throughput", DEFAULT_THROUGHPUT)), THROUGHPUT_MIN, THROUGHPUT_MAX
        ),
        alignment_score=clamp(float(seed.get("alignment_score", DEFAULT_ALIGNMENT)), 0.0, 1.0),
        last_heartbeat=clock(),
    )


class StateSimulator:
    """
    Periodic producer of system-health samples.

    Owns the history buffer it appends to. tick() never raises: every value
    it emits goes through clamp().
    """

    def __init__(
        self,
        history: HistoryBuffer,
        initial: SystemState,
        rng: Optional[RandomSource] = None,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self.history = history
        self._current = initial
        self._rng = rng if rng is not None else random.Random()
        self._clock = clock

    @property
    def current(self) -> SystemState:
        return self._current

    def tick(self) -> SystemState:
        prev = self._current
        state = SystemState(
            uncertainty=drift_uncertainty(prev.uncertainty, self._rng),
            throughput=draw_throughput(self._rng),
            alignment_score=prev.alignment_score,
            last_heartbeat=self._clock(),
        )
        self._current = state
        self.history.append(state)
        return state


# -------------------------------------------------
# Headless runner
# -------------------------------------------------


async def _run() -> None:
    from aso_emulator.observatory import Observatory

    observatory = Observatory.create()
    observatory.start()
    logger.info("[emulator] Observatory running headless (Ctrl-C to stop)")
    try:
        while True:
            await asyncio.sleep(config.STATE_PERIOD_SECONDS)
            view = observatory.view()
            logger.info("[emulator] %s", view.state.to_payload())
            if view.alerts and not view.alerts[0].acknowledged:
                logger.debug("[emulator] head alert: %s", view.alerts[0].message)
    finally:
        await observatory.stop()


def main() -> None:
    config.setup_logging()
    try:
        asyncio.run(_run())
    except KeyboardInterrupt:
        logger.info("[emulator] stopped")


if __name__ == "__main__":
    main()
