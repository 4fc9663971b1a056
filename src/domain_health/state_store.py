"""
State Store module for persisting the domain collection.

The whole collection is stored as one snapshot under a fixed key. Snapshots
live in a JSON file, optionally protected by an HMAC so tampering is
detected on load. Timestamps travel as ISO-8601 strings and are turned back
into datetimes on load; transient flags are never written.
"""

import hashlib
import hmac
import json
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, Optional

from .enums import DomainStatus, Outcome
from .exceptions import PersistenceError, PersistenceUnavailableError, TamperingError
from .history import HistoryEntry, Ledger
from .models import DomainRecord


STORAGE_KEY = "domains"


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    """Serialize a datetime to ISO-8601, keeping None as None."""
    if value is None:
        return None
    return value.isoformat()


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 string (a trailing 'Z' is accepted)."""
    if not value:
        return None
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def record_to_dict(record: DomainRecord) -> dict:
    """Serialize the persistent fields of a record."""
    return {
        "id": record.id,
        "url": record.url,
        "status": record.status.value,
        "last_checked": format_timestamp(record.last_checked),
        "notes": record.notes,
        "suggestions": record.suggestions,
        "history": [
            {
                "status": entry.outcome.value,
                "checked_at": format_timestamp(entry.checked_at),
            }
            for entry in record.ledger
        ],
    }


def record_from_dict(data: dict) -> DomainRecord:
    """
    Rehydrate a record from its serialized form.

    Transient flags come back at their defaults whatever the input holds.

    Raises:
        KeyError, ValueError, TypeError: If the data is malformed
    """
    ledger = Ledger(
        HistoryEntry(
            outcome=Outcome(entry["status"]),
            checked_at=parse_timestamp(entry["checked_at"]),
        )
        for entry in data.get("history") or []
    )
    return DomainRecord(
        id=int(data["id"]),
        url=str(data["url"]),
        status=DomainStatus(data.get("status", DomainStatus.PENDING.value)),
        last_checked=parse_timestamp(data.get("last_checked")),
        notes=data.get("notes"),
        ledger=ledger,
        suggestions=data.get("suggestions"),
    )


def serialize_records(records: Iterable[DomainRecord]) -> list[dict]:
    return [record_to_dict(record) for record in records]


def deserialize_records(items: Any) -> list[DomainRecord]:
    """
    Turn a stored snapshot back into records.

    Raises:
        PersistenceError: If the snapshot is malformed
    """
    if not isinstance(items, list):
        raise PersistenceError(
            code="parse_error",
            message="Stored domain snapshot is not a list",
            details={"type": type(items).__name__},
        )
    try:
        return [record_from_dict(item) for item in items]
    except (KeyError, ValueError, TypeError) as e:
        raise PersistenceError(
            code="parse_error",
            message=f"Malformed domain snapshot: {e}",
            details={"error": str(e)},
        ) from e


class MemoryStateStore:
    """
    In-memory key-value store with the StateStore interface.

    Values are kept in their JSON form so a save/load cycle goes through the
    same serialization as the file store.
    """

    def __init__(self) -> None:
        self._items: dict[str, str] = {}

    def get_item(self, key: str) -> Optional[Any]:
        raw = self._items.get(key)
        return json.loads(raw) if raw is not None else None

    def set_item(self, key: str, value: Any) -> None:
        self._items[key] = json.dumps(value)

    def load_records(self) -> Optional[list[DomainRecord]]:
        items = self.get_item(STORAGE_KEY)
        return None if items is None else deserialize_records(items)

    def save_records(self, records: Iterable[DomainRecord]) -> None:
        self.set_item(STORAGE_KEY, serialize_records(records))


class StateStore:
    """
    File-backed key-value store with optional HMAC protection.

    The file holds {"version", "updated_at", "data", "hmac"}; "data" maps
    storage keys to JSON values and the HMAC covers "data" only.
    """

    VERSION = 1

    def __init__(self, file_path: Path, hmac_secret: Optional[str] = None) -> None:
        """
        Initialize the state store.

        Args:
            file_path: Path to the state file (JSON format)
            hmac_secret: Secret key for HMAC computation; None disables it
        """
        self._file_path = Path(file_path)
        self._hmac_secret = hmac_secret.encode("utf-8") if hmac_secret else None
        self._data: Optional[dict[str, Any]] = None

    def load(self) -> dict[str, Any]:
        """
        Read the file and validate its HMAC.

        Returns:
            The stored key-value data; empty if the file does not exist

        Raises:
            TamperingError: If HMAC validation fails
            PersistenceError: If the file cannot be parsed
            PersistenceUnavailableError: If the file cannot be read
        """
        if not self._file_path.exists():
            self._data = {}
            return {}

        try:
            with open(self._file_path, "r", encoding="utf-8") as f:
                raw_data = json.load(f)
        except json.JSONDecodeError as e:
            raise PersistenceError(
                code="parse_error",
                message=f"Failed to parse state file: {e}",
                details={"file_path": str(self._file_path)},
            )
        except OSError as e:
            raise PersistenceUnavailableError(
                code="io_error",
                message=f"Failed to read state file: {e}",
                details={"file_path": str(self._file_path)},
            )

        if not isinstance(raw_data, dict) or not isinstance(raw_data.get("data", {}), dict):
            raise PersistenceError(
                code="parse_error",
                message="State file has an unexpected layout",
                details={"file_path": str(self._file_path)},
            )

        data = raw_data.get("data", {})

        if self._hmac_secret is not None:
            stored_hmac = raw_data.get("hmac") or ""
            computed_hmac = self.compute_hmac(data)
            if not self.validate_hmac(stored_hmac, computed_hmac):
                raise TamperingError(
                    code="hmac_mismatch",
                    message="HMAC validation failed - data may have been tampered with",
                    details={"file_path": str(self._file_path)},
                )

        self._data = data
        return dict(data)

    def get_item(self, key: str) -> Optional[Any]:
        """Get a stored value, loading the file on first access."""
        if self._data is None:
            self.load()
        return self._data.get(key)

    def set_item(self, key: str, value: Any) -> None:
        """
        Store a value and write the file immediately.

        Raises:
            PersistenceUnavailableError: If the file cannot be written
        """
        data = dict(self._data or {})
        data[key] = value
        self._write(data)
        self._data = data

    def load_records(self) -> Optional[list[DomainRecord]]:
        """
        Load the domain snapshot.

        Returns:
            The records, or None if no snapshot was ever saved
        """
        items = self.get_item(STORAGE_KEY)
        return None if items is None else deserialize_records(items)

    def save_records(self, records: Iterable[DomainRecord]) -> None:
        """Snapshot the whole collection under STORAGE_KEY."""
        self.set_item(STORAGE_KEY, serialize_records(records))

    def _write(self, data: dict[str, Any]) -> None:
        output_data = {
            "version": self.VERSION,
            "updated_at": datetime.now(timezone.utc).isoformat(),
            "data": data,
        }
        if self._hmac_secret is not None:
            output_data["hmac"] = self.compute_hmac(data)

        tmp_path = self._file_path.with_name(self._file_path.name + ".tmp")
        try:
            self._file_path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(output_data, f, indent=2, sort_keys=True, ensure_ascii=False)
            os.replace(tmp_path, self._file_path)
        except OSError as e:
            raise PersistenceUnavailableError(
                code="io_error",
                message=f"Failed to write state file: {e}",
                details={"file_path": str(self._file_path)},
            )

    def compute_hmac(self, data: dict) -> str:
        """
        Compute HMAC-SHA256 over serialized data.

        Args:
            data: Dictionary to compute HMAC over

        Returns:
            Hexadecimal HMAC string
        """
        if self._hmac_secret is None:
            raise PersistenceError(code="no_secret", message="No HMAC secret configured")
        serialized = json.dumps(data, sort_keys=True, separators=(",", ":"))
        return hmac.new(
            self._hmac_secret,
            serialized.encode("utf-8"),
            hashlib.sha256,
        ).hexdigest()

    def validate_hmac(self, stored_hmac: str, computed_hmac: str) -> bool:
        """Validate HMAC using constant-time comparison."""
        return hmac.compare_digest(stored_hmac, computed_hmac)

    @property
    def file_path(self) -> Path:
        """Get the state file path."""
        return self._file_path
