"""
Exception classes for the domain health system.

All exceptions inherit from DomainHealthError and provide structured
error information with codes, messages, and optional details.
"""

from typing import Optional


class DomainHealthError(Exception):
    """Base exception for all domain health errors."""

    def __init__(
        self,
        code: str,
        message: str,
        details: Optional[dict] = None,
    ) -> None:
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"

    def to_dict(self) -> dict:
        """Convert exception to dictionary for serialization."""
        return {
            "error_type": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class InvalidUrlError(DomainHealthError):
    """Raised when an added domain cannot be parsed as a URL."""

    pass


class DuplicateDomainError(DomainHealthError):
    """Raised when the normalized hostname is already tracked."""

    pass


class DomainNotFoundError(DomainHealthError):
    """Raised when an operation addresses a record id that does not exist."""

    pass


class OracleUnavailableError(DomainHealthError):
    """Raised when the probe or suggestion service is missing or unreachable."""

    pass


class PersistenceError(DomainHealthError):
    """Raised when persistence operations fail (file I/O, HMAC validation)."""

    pass


class PersistenceUnavailableError(PersistenceError):
    """Raised when the durable store cannot be used at all."""

    pass


class TamperingError(PersistenceError):
    """Raised when HMAC validation fails, indicating data tampering."""

    pass
