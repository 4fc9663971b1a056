"""
Domain registry: the owned collection of tracked domain records.

The registry is the single state container handed to the health engine,
the scheduler and the exporter. Every state-changing operation replaces the
affected record with an updated copy and then runs the registered on-commit
hooks synchronously, in registration order.
"""

from dataclasses import replace
from typing import Callable, Iterable, Iterator, Optional

from .audit_logger import AuditLogger
from .enums import LogLevel
from .exceptions import DomainNotFoundError, DuplicateDomainError
from .models import INITIAL_DOMAINS, DomainRecord
from .url_normalizer import UrlNormalizer


CommitHook = Callable[[tuple[DomainRecord, ...]], None]


class IdGenerator:
    """Monotonic integer id source; never hands out the same id twice."""

    def __init__(self, start: int = 1) -> None:
        self._next = start

    def next_id(self) -> int:
        value = self._next
        self._next += 1
        return value

    def advance_past(self, used_id: int) -> None:
        """Make sure future ids are greater than an id already in use."""
        if used_id >= self._next:
            self._next = used_id + 1

    @property
    def peek(self) -> int:
        return self._next


class DomainRegistry:
    """
    Ordered, in-memory collection of DomainRecords.

    URLs are unique at creation time (exact, case-sensitive comparison on the
    normalized hostname). Records keep insertion order.
    """

    def __init__(
        self,
        records: Optional[Iterable[DomainRecord]] = None,
        normalizer: Optional[UrlNormalizer] = None,
        id_generator: Optional[IdGenerator] = None,
        logger: Optional[AuditLogger] = None,
    ) -> None:
        self._normalizer = normalizer or UrlNormalizer()
        self._ids = id_generator or IdGenerator()
        self._logger = logger
        self._records: list[DomainRecord] = []
        self._hooks: list[CommitHook] = []
        if records is not None:
            self.load(records)

    @classmethod
    def with_initial_domains(cls, **kwargs) -> "DomainRegistry":
        """Create a registry seeded with the sample domain collection."""
        records = [
            DomainRecord(id=index, url=url)
            for index, url in enumerate(INITIAL_DOMAINS, start=1)
        ]
        return cls(records=records, **kwargs)

    # -- hooks --------------------------------------------------------------

    def add_commit_hook(self, hook: CommitHook) -> None:
        """Register a callback run after every committed change."""
        self._hooks.append(hook)

    def remove_commit_hook(self, hook: CommitHook) -> bool:
        if hook in self._hooks:
            self._hooks.remove(hook)
            return True
        return False

    def _commit(self) -> None:
        snapshot = self.records
        for hook in list(self._hooks):
            hook(snapshot)

    # -- reads --------------------------------------------------------------

    @property
    def records(self) -> tuple[DomainRecord, ...]:
        """Current collection, in insertion order."""
        return tuple(self._records)

    def get(self, record_id: int) -> Optional[DomainRecord]:
        for record in self._records:
            if record.id == record_id:
                return record
        return None

    def require(self, record_id: int) -> DomainRecord:
        """Get a record or raise DomainNotFoundError."""
        record = self.get(record_id)
        if record is None:
            raise DomainNotFoundError(
                code="not_found",
                message=f"No domain with id {record_id}",
                details={"id": record_id},
            )
        return record

    def find_by_url(self, url: str) -> Optional[DomainRecord]:
        for record in self._records:
            if record.url == url:
                return record
        return None

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[DomainRecord]:
        return iter(self.records)

    # -- lifecycle ----------------------------------------------------------

    def load(self, records: Iterable[DomainRecord], commit: bool = False) -> None:
        """
        Replace the whole collection, e.g. with a rehydrated snapshot.

        Transient flags are reset and the id generator moves past every
        loaded id.
        """
        self._records = [record.with_transient_reset() for record in records]
        for record in self._records:
            self._ids.advance_past(record.id)
        if commit:
            self._commit()

    def add(self, raw_url: str) -> DomainRecord:
        """
        Normalize a URL and start tracking it.

        Args:
            raw_url: User input, with or without scheme

        Returns:
            The new pending record

        Raises:
            InvalidUrlError: If the input cannot be parsed as a URL
            DuplicateDomainError: If the hostname is already tracked
        """
        url = self._normalizer.normalize(raw_url)

        if self.find_by_url(url) is not None:
            raise DuplicateDomainError(
                code="duplicate_domain",
                message=f"Domain '{url}' is already in the list",
                details={"url": url, "raw_input": raw_url},
            )

        record = DomainRecord(id=self._ids.next_id(), url=url)
        self._records.append(record)
        self._log(LogLevel.INFO, f"Added domain {url}", {"id": record.id, "url": url})
        self._commit()
        return record

    def remove(self, record_id: int) -> bool:
        """
        Stop tracking a domain. Unknown ids are ignored.

        Returns:
            True if a record was removed
        """
        remaining = [record for record in self._records if record.id != record_id]
        if len(remaining) == len(self._records):
            return False

        self._records = remaining
        self._log(LogLevel.INFO, f"Removed domain {record_id}", {"id": record_id})
        self._commit()
        return True

    def edit(self, record_id: int, url: str, notes: Optional[str]) -> Optional[DomainRecord]:
        """
        Replace url and notes of a record and leave edit mode.

        The url is stored as given: it is neither re-normalized nor checked
        for uniqueness.

        Returns:
            The updated record, or None if the id is unknown
        """
        duplicate = self.find_by_url(url)
        if duplicate is not None and duplicate.id != record_id:
            self._log(
                LogLevel.WARN,
                f"Edit introduces duplicate url {url}",
                {"id": record_id, "duplicate_of": duplicate.id},
            )
        updated = self.update(record_id, url=url, notes=notes, editing=False)
        if updated is not None:
            self._log(LogLevel.INFO, f"Edited domain {record_id}", {"id": record_id, "url": url})
        return updated

    def toggle_edit(self, record_id: int) -> Optional[DomainRecord]:
        """Flip edit mode on one record; every other record leaves edit mode."""
        target = self.get(record_id)
        if target is None:
            return None

        self._records = [
            replace(record, editing=not record.editing)
            if record.id == record_id
            else (replace(record, editing=False) if record.editing else record)
            for record in self._records
        ]
        self._commit()
        return self.get(record_id)

    def toggle_notes(self, record_id: int) -> Optional[DomainRecord]:
        """Flip the notes panel of one record."""
        record = self.get(record_id)
        if record is None:
            return None
        return self.update(record_id, show_notes=not record.show_notes)

    def update(self, record_id: int, **changes) -> Optional[DomainRecord]:
        """
        Swap a record for a copy with the given fields changed.

        Returns:
            The new record, or None if the id is unknown (nothing committed)
        """
        for index, record in enumerate(self._records):
            if record.id == record_id:
                updated = replace(record, **changes)
                self._records[index] = updated
                self._commit()
                return updated
        return None

    def _log(self, level: LogLevel, message: str, data: dict) -> None:
        if self._logger:
            self._logger.log(level, "DomainRegistry", message, data)
