"""
Data models for the domain health system.

This module defines the tracked domain record. Records are treated as
copy-on-write values: the registry replaces a record with an updated copy
rather than mutating the instance other readers may hold.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Optional

from .enums import DomainStatus
from .history import Ledger


# Sample collection used when no snapshot exists yet
INITIAL_DOMAINS = [
    "google.com",
    "github.com",
    "this-domain-is-down.com",
    "angular.io",
]


@dataclass
class DomainRecord:
    """A tracked domain with its current status and probe history."""

    id: int
    url: str  # Normalized hostname
    status: DomainStatus = DomainStatus.PENDING
    last_checked: Optional[datetime] = None
    notes: Optional[str] = None
    ledger: Ledger = field(default_factory=Ledger)
    suggestions: Optional[str] = None

    # Transient flags, never meaningful after a reload
    checking: bool = False
    editing: bool = False
    show_notes: bool = False

    def uptime_ratio(self) -> Optional[float]:
        """Windowed uptime over the retained ledger, None when empty."""
        return self.ledger.uptime_ratio()

    def uptime_percentage(self, decimals: int = 1) -> Optional[str]:
        """Uptime formatted as a percentage string, None when there is no data."""
        ratio = self.uptime_ratio()
        if ratio is None:
            return None
        return f"{ratio * 100:.{decimals}f}"

    def with_transient_reset(self) -> "DomainRecord":
        """
        Copy of this record with every transient flag at its default.

        A record saved as pending while a probe was in flight gets the status
        of its newest ledger entry back, since no probe is running any more.
        """
        status = self.status
        latest = self.ledger.latest
        if status is DomainStatus.PENDING and latest is not None:
            status = DomainStatus.from_outcome(latest.outcome)
        return replace(self, status=status, checking=False, editing=False, show_notes=False)
