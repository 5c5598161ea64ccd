# aso_emulator/drift.py
#
# ASO Observatory – Drift model
#
# Bounded random perturbations for the simulated health metrics. The PRNG
# is always passed in, so a seeded random.Random (or a scripted fake) gives
# reproducible sample streams.

from typing import Protocol, Sequence, TypeVar

T = TypeVar("T")

UNCERTAINTY_MIN = 0.01
UNCERTAINTY_MAX = 0.99
THROUGHPUT_MIN = 80.0
THROUGHPUT_MAX = 100.0

# drift is symmetric: total span 0.04
DRIFT_HALF_SPAN = 0.02
THROUGHPUT_BASE = 92.0
THROUGHPUT_SPAN = 8.0


class RandomSource(Protocol):
    """The subset of random.Random the simulation draws from."""

    def random(self) -> float: ...


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(value, high))


def draw_drift(rng: RandomSource) -> float:
    """Symmetric perturbation in [-0.02, 0.02]."""
    return (rng.random() - 0.5) * (2 * DRIFT_HALF_SPAN)


def drift_uncertainty(previous: float, rng: RandomSource) -> float:
    return clamp(previous + draw_drift(rng), UNCERTAINTY_MIN, UNCERTAINTY_MAX)


def draw_throughput(rng: RandomSource) -> float:
    """
    Fresh throughput reading in [92, 100].

    Not a random walk: each sample is independent of the last one.
    """
    return clamp(
        THROUGHPUT_BASE + rng.random() * THROUGHPUT_SPAN,
        THROUGHPUT_MIN,
        THROUGHPUT_MAX,
    )


def pick(rng: RandomSource, options: Sequence[T]) -> T:
    """Uniform choice driven by rng.random() so scripted fakes stay simple."""
    index = int(rng.random() * len(options))
    # random() is [0, 1) but guard against fakes returning 1.0
    return options[min(index, len(options) - 1)]
