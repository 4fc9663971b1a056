"""
Property-based tests for the simulated probe oracle.

Uses Hypothesis for property-based testing with an injected random source
and a recording sleep, so no test waits for real delays.
"""

import asyncio
import random
from collections import Counter

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from domain_health.config import ProbeConfig
from domain_health.enums import Outcome
from domain_health.probe import ProbeOracle, SimulatedProbeOracle


class RecordingSleep:
    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def run_probes(oracle: SimulatedProbeOracle, count: int) -> list[Outcome]:
    async def run_test():
        return [await oracle.probe(f"d{i}.com") for i in range(count)]

    return asyncio.run(run_test())


class TestDelayRangeProperty:
    """
    Property 26: Every simulated delay lies within the configured range.
    """

    @given(
        low=st.floats(min_value=0, max_value=5, allow_nan=False),
        spread=st.floats(min_value=0, max_value=5, allow_nan=False),
        seed=st.integers(min_value=0, max_value=2**32 - 1),
    )
    @settings(max_examples=100)
    def test_delays_within_bounds(self, low: float, spread: float, seed: int) -> None:
        high = low + spread
        sleep = RecordingSleep()
        oracle = SimulatedProbeOracle(
            ProbeConfig(min_delay_seconds=low, max_delay_seconds=high),
            rng=random.Random(seed),
            sleep=sleep,
        )

        run_probes(oracle, 5)

        assert len(sleep.delays) == 5
        assert all(low <= delay <= high + 1e-9 for delay in sleep.delays)

    def test_default_delay_range(self) -> None:
        sleep = RecordingSleep()
        oracle = SimulatedProbeOracle(rng=random.Random(7), sleep=sleep)

        run_probes(oracle, 50)

        assert all(1.5 <= delay <= 2.5 for delay in sleep.delays)


class TestOutcomeVocabularyProperty:
    """
    Property 27: Outcomes stay within healthy, down and flagged.
    """

    @given(
        weights=st.tuples(
            st.integers(min_value=0, max_value=5),
            st.integers(min_value=0, max_value=5),
            st.integers(min_value=0, max_value=5),
        ).filter(lambda w: sum(w) > 0),
        seed=st.integers(min_value=0, max_value=2**32 - 1),
    )
    @settings(max_examples=100)
    def test_outcomes_follow_weights(self, weights: tuple, seed: int) -> None:
        healthy, down, flagged = weights
        oracle = SimulatedProbeOracle(
            ProbeConfig(healthy_weight=healthy, down_weight=down, flagged_weight=flagged),
            rng=random.Random(seed),
            sleep=RecordingSleep(),
        )

        outcomes = run_probes(oracle, 20)

        allowed = {
            outcome
            for outcome, weight in zip((Outcome.HEALTHY, Outcome.DOWN, Outcome.FLAGGED), weights)
            if weight > 0
        }
        assert set(outcomes) <= allowed
        assert oracle.probe_count == 20

    def test_default_split_is_three_to_one_to_one(self) -> None:
        oracle = SimulatedProbeOracle(rng=random.Random(1234), sleep=RecordingSleep())

        counts = Counter(run_probes(oracle, 5000))

        assert abs(counts[Outcome.HEALTHY] / 5000 - 0.6) < 0.03
        assert abs(counts[Outcome.DOWN] / 5000 - 0.2) < 0.03
        assert abs(counts[Outcome.FLAGGED] / 5000 - 0.2) < 0.03

    def test_satisfies_protocol(self) -> None:
        assert isinstance(SimulatedProbeOracle(), ProbeOracle)


class TestInvalidConfiguration:
    """Inconsistent delay ranges and weights are rejected."""

    def test_inverted_delay_range(self) -> None:
        with pytest.raises(ValueError):
            SimulatedProbeOracle(ProbeConfig(min_delay_seconds=3, max_delay_seconds=1))

    @pytest.mark.parametrize("weights", [(0, 0, 0), (-1, 1, 1), (1, -2, 3)])
    def test_invalid_weights(self, weights: tuple) -> None:
        healthy, down, flagged = weights
        with pytest.raises(ValueError):
            SimulatedProbeOracle(
                ProbeConfig(healthy_weight=healthy, down_weight=down, flagged_weight=flagged)
            )
