"""
Enumeration types for the domain health system.

These enums provide type-safe constants for probe outcomes, record status,
error codes, and logging levels throughout the system.
"""

from enum import Enum


class Outcome(Enum):
    """Result classification of a single probe."""

    HEALTHY = "healthy"
    DOWN = "down"
    FLAGGED = "flagged"


class DomainStatus(Enum):
    """Current status of a tracked domain."""

    PENDING = "pending"
    HEALTHY = "healthy"
    DOWN = "down"
    FLAGGED = "flagged"

    @classmethod
    def from_outcome(cls, outcome: Outcome) -> "DomainStatus":
        """Map a probe outcome onto the matching record status."""
        return cls(outcome.value)


class LogLevel(Enum):
    """Logging severity levels."""

    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"


class UrlErrorCode(Enum):
    """Error codes for domain URL normalization failures."""

    EMPTY_INPUT = "empty_input"
    FORBIDDEN_CHARS = "forbidden_chars"
    MISSING_HOST = "missing_host"
    INVALID_PORT = "invalid_port"
    IDNA_ERROR = "idna_error"
    MALFORMED = "malformed"
