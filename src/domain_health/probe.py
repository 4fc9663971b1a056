"""
Probe oracles for domain health checks.

A probe oracle answers one question asynchronously: what is the outcome of
probing this URL right now. The health engine only depends on the
ProbeOracle protocol, so any implementation that honours the async contract
and the three-outcome vocabulary can be plugged in.
"""

import asyncio
import random
from typing import Awaitable, Callable, Optional, Protocol, runtime_checkable

from .config import ProbeConfig
from .enums import Outcome


@runtime_checkable
class ProbeOracle(Protocol):
    """Protocol for probe oracles."""

    async def probe(self, url: str) -> Outcome:
        """
        Probe a domain.

        Args:
            url: Normalized hostname of the domain

        Returns:
            The probe outcome
        """
        ...


class SimulatedProbeOracle:
    """
    Stand-in oracle returning weighted-random outcomes after a random delay.

    With the default configuration 60% of probes are healthy, 20% down and
    20% flagged, each resolving after 1.5 to 2.5 seconds. No network
    requests are made.
    """

    def __init__(
        self,
        config: Optional[ProbeConfig] = None,
        rng: Optional[random.Random] = None,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
    ) -> None:
        """
        Initialize the simulated oracle.

        Args:
            config: Probe configuration with delay range and outcome weights
            rng: Random source, injectable for reproducible tests
            sleep: Async sleep function, injectable for tests
        """
        self._config = config or ProbeConfig()
        if self._config.min_delay_seconds > self._config.max_delay_seconds:
            raise ValueError("min_delay_seconds must not exceed max_delay_seconds")

        weights = (
            self._config.healthy_weight,
            self._config.down_weight,
            self._config.flagged_weight,
        )
        if any(weight < 0 for weight in weights) or sum(weights) <= 0:
            raise ValueError(f"Invalid outcome weights: {weights}")

        self._outcomes = [Outcome.HEALTHY, Outcome.DOWN, Outcome.FLAGGED]
        self._weights = list(weights)
        self._rng = rng or random.Random()
        self._sleep = sleep or asyncio.sleep
        self._probe_count = 0

    async def probe(self, url: str) -> Outcome:
        """Wait for the simulated delay, then draw an outcome."""
        self._probe_count += 1
        delay = self._rng.uniform(
            self._config.min_delay_seconds,
            self._config.max_delay_seconds,
        )
        await self._sleep(delay)
        return self._rng.choices(self._outcomes, weights=self._weights, k=1)[0]

    @property
    def probe_count(self) -> int:
        """Number of probes issued so far."""
        return self._probe_count
