"""
History ledger for probe outcomes.

A Ledger keeps the most recent probe outcomes of one domain, newest first,
and never holds more than MAX_HISTORY_LENGTH entries. Uptime is derived from
the retained window only; anything older is gone for good.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Iterator, Optional

from .enums import Outcome

MAX_HISTORY_LENGTH = 20


@dataclass(frozen=True)
class HistoryEntry:
    """A single recorded probe outcome."""

    outcome: Outcome
    checked_at: datetime


class Ledger:
    """
    Bounded, most-recent-first record of probe outcomes.

    Every write prepends and then truncates the tail, so the retained
    entries are always the newest ones recorded.
    """

    def __init__(
        self,
        entries: Optional[Iterable[HistoryEntry]] = None,
        max_length: int = MAX_HISTORY_LENGTH,
    ) -> None:
        if max_length < 1:
            raise ValueError(f"max_length must be >= 1, got {max_length}")
        self._max_length = max_length
        self._entries: list[HistoryEntry] = list(entries or [])[:max_length]

    def record(self, outcome: Outcome, at: datetime) -> HistoryEntry:
        """
        Prepend an outcome and drop whatever falls past the cap.

        Args:
            outcome: The probe outcome
            at: When the probe completed

        Returns:
            The entry that was recorded
        """
        entry = HistoryEntry(outcome=outcome, checked_at=at)
        self._entries.insert(0, entry)
        del self._entries[self._max_length:]
        return entry

    def uptime_ratio(self) -> Optional[float]:
        """
        Fraction of retained entries that are healthy.

        Returns:
            A value in [0.0, 1.0], or None when there is no data. Callers
            must render None differently from 0%.
        """
        if not self._entries:
            return None
        healthy = sum(1 for entry in self._entries if entry.outcome is Outcome.HEALTHY)
        return healthy / len(self._entries)

    def copy(self) -> "Ledger":
        """Return an independent ledger with the same entries."""
        return Ledger(self._entries, max_length=self._max_length)

    @property
    def latest(self) -> Optional[HistoryEntry]:
        """The most recently recorded entry, if any."""
        return self._entries[0] if self._entries else None

    @property
    def entries(self) -> list[HistoryEntry]:
        return self._entries.copy()

    @property
    def max_length(self) -> int:
        return self._max_length

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[HistoryEntry]:
        return iter(self._entries.copy())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Ledger):
            return NotImplemented
        return self._entries == other._entries

    def __repr__(self) -> str:
        return f"Ledger(entries={len(self._entries)}, max_length={self._max_length})"
