"""
tests/conftest.py - Shared fakes for deterministic observatory tests.
"""

import threading
from typing import List, Optional, Sequence

import pytest

from aso_emulator.models import SystemState
from aso_emulator.narrative import NarrativeRequest, NarrativeResponse


class FakeRandom:
    """Scripted random(): cycles through the given values."""

    def __init__(self, values: Sequence[float]):
        self.values = list(values)
        self.calls = 0

    def random(self) -> float:
        value = self.values[self.calls % len(self.values)]
        self.calls += 1
        return value


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, start: int = 1_700_000_000_000):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class StubNarrativeClient:
    """Records prompts; returns canned text, raises, or blocks until released."""

    def __init__(self, text: str = "[EXECUTIVE SUMMARY] nominal", error: Optional[Exception] = None):
        self.text = text
        self.error = error
        self.prompts: List[str] = []
        self.release: Optional[threading.Event] = None

    def generate(self, request: NarrativeRequest) -> NarrativeResponse:
        self.prompts.append(request.prompt)
        if self.release is not None:
            self.release.wait(timeout=5)
        if self.error is not None:
            raise self.error
        return NarrativeResponse(text=self.text)


def make_state(uncertainty: float, heartbeat: int = 0, throughput: float = 95.0) -> SystemState:
    return SystemState(
        uncertainty=uncertainty,
        throughput=throughput,
        alignment_score=0.998,
        last_heartbeat=heartbeat,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def steady_rng() -> FakeRandom:
    # 0.5 -> zero drift, throughput 96
    return FakeRandom([0.5])


@pytest.fixture
def stub_client() -> StubNarrativeClient:
    return StubNarrativeClient()
