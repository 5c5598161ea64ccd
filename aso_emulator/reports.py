# aso_emulator/reports.py
#
# ASO Observatory – Report window extraction and report centre
#
# Maps a named time range onto a sample count, slices the history, derives
# window statistics and asks the narrative service for a written report.
# The report centre keeps at most one snapshot; each completed request
# replaces it and dismissal clears it.

import asyncio
import logging
import random
import string
from dataclasses import dataclass
from typing import Callable, Optional, Sequence, Tuple, Union

import numpy as np

from aso_emulator.history import HistoryBuffer
from aso_emulator.models import ReportSnapshot, SystemState, WindowStats, now_ms
from aso_emulator.narrative import NarrativeClient, NarrativeRequest

logger = logging.getLogger(__name__)

REPORT_RANGES = ("1 MINUTE", "5 MINUTES", "15 MINUTES", "1 HOUR")

# 15 MINUTES and 1 HOUR share the same window
DEFAULT_SAMPLE_COUNT = 600
RANGE_SAMPLE_COUNTS = {
    "1 MINUTE": 60,
    "5 MINUTES": 300,
}

# The prompt quotes throughput as a fixed figure, not the live reading
THROUGHPUT_PLACEHOLDER = "92%"
FALLBACK_TEXT = "Failed to generate summary."

PROMPT_TEMPLATE = (
    "Act as an AI Safety Officer. Generate a technical observatory report for the past {range_label}.\n"
    "Current system state: Uncertainty {uncertainty:.4f}, Throughput {throughput}.\n"
    "Recent Average Uncertainty: {avg_uncertainty:.4f}.\n"
    "Summarize risks, alignment drift, and provide a recommendation. Keep it professional, "
    "concise, and formatted as a technical log with sections like [EXECUTIVE SUMMARY], "
    "[RISK ASSESSMENT], and [COMMAND INTERVENTION]."
)


def sample_count_for_range(range_label: str) -> int:
    return RANGE_SAMPLE_COUNTS.get(range_label, DEFAULT_SAMPLE_COUNT)


def slice_window(history: Sequence[SystemState], count: int) -> Tuple[SystemState, ...]:
    """Last min(count, len(history)) samples, oldest first."""
    samples = tuple(history)
    if count <= 0:
        return ()
    return samples[-count:]


def compute_window_stats(window: Sequence[SystemState]) -> WindowStats:
    """
    Aggregate a report window.

    The mean divides by max(n, 1); peak and spread are reported as 0.0 for
    an empty window instead of being computed over nothing.
    """
    n = len(window)
    if n == 0:
        return WindowStats(
            sample_count=0,
            avg_uncertainty=0.0,
            peak_drift=0.0,
            safety_variance=0.0,
            avg_throughput=0.0,
        )

    uncertainty = np.array([s.uncertainty for s in window], dtype=float)
    throughput = np.array([s.throughput for s in window], dtype=float)
    return WindowStats(
        sample_count=n,
        avg_uncertainty=float(uncertainty.sum() / max(n, 1)),
        peak_drift=float(uncertainty.max()),
        safety_variance=float(uncertainty.max() - uncertainty.min()),
        avg_throughput=float(throughput.sum() / max(n, 1)),
    )


def build_prompt(range_label: str, uncertainty: float, avg_uncertainty: float) -> str:
    return PROMPT_TEMPLATE.format(
        range_label=range_label,
        uncertainty=uncertainty,
        throughput=THROUGHPUT_PLACEHOLDER,
        avg_uncertainty=avg_uncertainty,
    )


def _reference_tag(length: int = 7) -> str:
    alphabet = string.ascii_uppercase + string.digits
    return "".join(random.choice(alphabet) for _ in range(length))


@dataclass(frozen=True)
class ReportRequest:
    """Everything needed to turn one range selection into a snapshot."""

    range_label: str
    current_uncertainty: float
    window: Tuple[SystemState, ...]
    stats: WindowStats
    narrative: NarrativeRequest

    def to_snapshot(self, narrative_text: str, generated_at: int) -> ReportSnapshot:
        return ReportSnapshot(
            range_label=self.range_label,
            sample_window=self.window,
            narrative_text=narrative_text or FALLBACK_TEXT,
            generated_at=generated_at,
            stats=self.stats,
            reference=_reference_tag(),
        )


class ReportWindowExtractor:
    def build_snapshot(
        self,
        range_label: str,
        history: Union[HistoryBuffer, Sequence[SystemState]],
        current_uncertainty: Optional[float] = None,
    ) -> ReportRequest:
        """
        Slice the history for range_label and build the narrative request.

        current_uncertainty defaults to the newest sample in history.
        """
        count = sample_count_for_range(range_label)
        if isinstance(history, HistoryBuffer):
            window = history.last(count)
        else:
            window = slice_window(history, count)
        stats = compute_window_stats(window)

        if current_uncertainty is None:
            current_uncertainty = window[-1].uncertainty if window else 0.0

        return ReportRequest(
            range_label=range_label,
            current_uncertainty=current_uncertainty,
            window=window,
            stats=stats,
            narrative=NarrativeRequest(
                prompt=build_prompt(range_label, current_uncertainty, stats.avg_uncertainty)
            ),
        )


class ReportCenter:
    """
    Holds the latest report snapshot and runs narrative requests.

    The narrative call runs in a worker thread so the periodic ticks keep
    firing while it is outstanding. Requests are not deduplicated; whichever
    completes last wins, unless the snapshot was dismissed after it started.
    """

    def __init__(
        self,
        history: HistoryBuffer,
        client: NarrativeClient,
        current_uncertainty: Callable[[], float],
        clock: Callable[[], int] = now_ms,
        extractor: Optional[ReportWindowExtractor] = None,
    ) -> None:
        self._history = history
        self._client = client
        self._current_uncertainty = current_uncertainty
        self._clock = clock
        self._extractor = extractor or ReportWindowExtractor()
        self._snapshot: Optional[ReportSnapshot] = None
        self._in_flight = 0
        self._epoch = 0

    @property
    def snapshot(self) -> Optional[ReportSnapshot]:
        return self._snapshot

    @property
    def busy(self) -> bool:
        return self._in_flight > 0

    def dismiss(self) -> None:
        """Clear the snapshot and discard results of requests already in flight."""
        self._snapshot = None
        self._epoch += 1

    async def generate(self, range_label: str) -> Optional[ReportSnapshot]:
        """
        Build and store a new snapshot for range_label.

        Raises ConfigurationError or NarrativeServiceError on failure; the
        stored snapshot is left as it was. Returns None if the request was
        dismissed before it completed.
        """
        request = self._extractor.build_snapshot(
            range_label, self._history, self._current_uncertainty()
        )
        epoch = self._epoch
        self._in_flight += 1
        logger.info(
            "report requested: %s (%d samples, avg %.4f)",
            range_label,
            request.stats.sample_count,
            request.stats.avg_uncertainty,
        )
        try:
            response = await asyncio.to_thread(self._client.generate, request.narrative)
        except Exception as exc:
            logger.error("Report generation error: %s: %s", type(exc).__name__, exc)
            raise
        finally:
            self._in_flight -= 1

        if epoch != self._epoch:
            logger.info("report for %s discarded after dismissal", range_label)
            return None

        snapshot = request.to_snapshot(response.text, self._clock())
        self._snapshot = snapshot
        return snapshot
