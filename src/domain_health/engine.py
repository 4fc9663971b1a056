"""
Health engine for the domain health system.

The engine probes one or all tracked domains and folds each outcome back into
the registry: status, last_checked and the history ledger move together in a
single committed update. It also drives the troubleshooting suggestion flow.

Concurrency model: everything runs on one asyncio event loop. The only guard
against duplicate probes is the record's ``checking`` flag, which check_all
honours and check_one deliberately does not.
"""

import asyncio
from datetime import datetime, timezone
from typing import Callable, Optional, Union

from .audit_logger import AuditLogger
from .config import ProbeConfig
from .enums import DomainStatus, LogLevel, Outcome
from .exceptions import OracleUnavailableError
from .models import DomainRecord
from .probe import ProbeOracle
from .registry import DomainRegistry
from .suggestions import SuggestionService


THINKING_MESSAGE = "AI is thinking..."

# Outcome recorded when the oracle raises or never answers
FAILURE_OUTCOME = Outcome.DOWN


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class HealthEngine:
    """
    Applies probe outcomes to domain records.

    Results that arrive after close() are discarded, so a probe started before
    teardown can never write into a registry its owner has let go of.
    """

    def __init__(
        self,
        registry: DomainRegistry,
        oracle: ProbeOracle,
        config: Optional[ProbeConfig] = None,
        suggestion_service: Optional[SuggestionService] = None,
        logger: Optional[AuditLogger] = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """
        Initialize the health engine.

        Args:
            registry: The domain collection to read and update
            oracle: Probe oracle answering one probe at a time
            config: Probe configuration (timeout)
            suggestion_service: Optional troubleshooting suggestion client
            logger: Optional audit logger
            clock: Source of completion timestamps
        """
        self._registry = registry
        self._oracle = oracle
        self._config = config or ProbeConfig()
        self._suggestions = suggestion_service
        self._logger = logger
        self._clock = clock
        self._tasks: set[asyncio.Task] = set()
        self._closed = False
        self._suggestions_in_flight = 0

    # -- probing ------------------------------------------------------------

    async def check_one(self, record: Union[DomainRecord, int]) -> None:
        """
        Probe one domain and apply the outcome.

        The record is marked pending and in flight first. This call does not
        look at the ``checking`` flag, so it can race a batch probe of the
        same domain; the last probe to finish wins.

        Args:
            record: The record or its id
        """
        record_id = record if isinstance(record, int) else record.id
        previous = self._begin(record_id)
        if previous is None:
            return
        await self._probe_and_apply(record_id, previous)

    def check_all(self) -> list[asyncio.Task]:
        """
        Start a probe for every domain not already in flight.

        Probes are issued in collection order and run concurrently; this call
        does not wait for them. Must be called with a running event loop.

        Returns:
            The tasks that were started
        """
        if self._closed:
            return []

        loop = asyncio.get_running_loop()
        started = []
        for record in self._registry.records:
            if record.checking:
                self._log(LogLevel.DEBUG, f"Skipping {record.url}: probe in flight", {"id": record.id})
                continue

            previous = self._begin(record.id)
            if previous is None:
                continue
            task = loop.create_task(self._probe_and_apply(record.id, previous))
            self._track(task)
            started.append(task)

        return started

    def start_check(self, record_id: int) -> Optional[asyncio.Task]:
        """Schedule check_one as a background task."""
        if self._closed:
            return None
        task = asyncio.get_running_loop().create_task(self.check_one(record_id))
        self._track(task)
        return task

    def _begin(self, record_id: int) -> Optional[DomainStatus]:
        """Mark a record pending and in flight; returns its previous status."""
        if self._closed:
            return None

        record = self._registry.get(record_id)
        if record is None:
            return None

        self._registry.update(record_id, status=DomainStatus.PENDING, checking=True)
        self._log(LogLevel.DEBUG, f"Probe started for {record.url}", {"id": record_id})
        return record.status

    async def _probe_and_apply(self, record_id: int, previous: DomainStatus) -> None:
        record = self._registry.get(record_id)
        if record is None:
            return

        try:
            outcome = await self._run_probe(record.url)
        except asyncio.CancelledError:
            self._release(record_id, previous)
            raise
        except Exception as e:
            self._log_error(f"Probe failed for {record.url}", e, {"id": record_id})
            outcome = FAILURE_OUTCOME

        self._apply(record_id, outcome)

    async def _run_probe(self, url: str) -> Outcome:
        timeout = self._config.timeout_seconds
        if timeout:
            return await asyncio.wait_for(self._oracle.probe(url), timeout=timeout)
        return await self._oracle.probe(url)

    def _apply(self, record_id: int, outcome: Outcome) -> None:
        """Commit a completed probe: status, ledger and last_checked together."""
        if self._closed:
            self._log(LogLevel.DEBUG, "Discarding probe result after close", {"id": record_id})
            return

        record = self._registry.get(record_id)
        if record is None:
            self._log(LogLevel.DEBUG, "Discarding probe result for removed domain", {"id": record_id})
            return

        ledger = record.ledger.copy()
        entry = ledger.record(outcome, self._clock())
        self._registry.update(
            record_id,
            status=DomainStatus.from_outcome(outcome),
            last_checked=entry.checked_at,
            ledger=ledger,
            checking=False,
            suggestions=None,
        )
        self._log(
            LogLevel.INFO,
            f"Probe completed for {record.url}: {outcome.value}",
            {"id": record_id, "outcome": outcome.value, "uptime": ledger.uptime_ratio()},
        )

    def _release(self, record_id: int, previous: DomainStatus) -> None:
        """Undo the in-flight marking of a probe that was cancelled."""
        if self._closed:
            return
        if self._registry.get(record_id) is not None:
            self._registry.update(record_id, status=previous, checking=False)

    # -- suggestions --------------------------------------------------------

    async def fetch_suggestions(self, record_id: int) -> str:
        """
        Ask the suggestion service about a domain and store the answer.

        Failures are stored on the record as "Error: <message>" instead of
        being raised.

        Returns:
            The text stored on the record

        Raises:
            DomainNotFoundError: If the id is unknown
        """
        record = self._registry.require(record_id)
        self._registry.update(record_id, suggestions=THINKING_MESSAGE)
        self._suggestions_in_flight += 1

        try:
            if self._suggestions is None:
                raise OracleUnavailableError(
                    code="not_configured",
                    message="No suggestion service configured.",
                )
            text = await self._suggestions.suggest(record.url, record.status)
        except OracleUnavailableError as e:
            self._log_error(f"Suggestions failed for {record.url}", e, {"id": record_id})
            text = f"Error: {e.message}"
        except Exception as e:
            self._log_error(f"Suggestions failed for {record.url}", e, {"id": record_id})
            text = f"Error: {e}"
        finally:
            self._suggestions_in_flight -= 1

        if not self._closed:
            self._registry.update(record_id, suggestions=text)
        return text

    @property
    def loading_suggestions(self) -> bool:
        """True while at least one suggestion request is outstanding."""
        return self._suggestions_in_flight > 0

    # -- lifecycle ----------------------------------------------------------

    def _track(self, task: asyncio.Task) -> None:
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    @property
    def pending_tasks(self) -> int:
        """Number of background probes not finished yet."""
        return sum(1 for task in self._tasks if not task.done())

    @property
    def closed(self) -> bool:
        return self._closed

    async def wait_idle(self) -> None:
        """Wait until every background probe has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def close(self) -> None:
        """Stop accepting work; in-flight probes finish but are not applied."""
        self._closed = True

    def _log(self, level: LogLevel, message: str, data: dict) -> None:
        if self._logger:
            self._logger.log(level, "HealthEngine", message, data)

    def _log_error(self, message: str, error: Exception, data: dict) -> None:
        if self._logger:
            self._logger.log_error("HealthEngine", message, error, data)
