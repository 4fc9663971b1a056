"""
Domain monitor: the owning context of the domain health system.

The monitor wires the registry, health engine, auto-refresh scheduler,
persistence and export together:

- the registry is rehydrated from the state store (or seeded) on start
- every committed registry change is snapshotted to the store
- the scheduler's ticks run a full probe sweep
- teardown cancels the timer and closes the engine, so probes still in
  flight cannot write into the collection afterwards
"""

from pathlib import Path
from typing import Optional, Protocol, Union

from .audit_logger import AuditLogger
from .config import SystemConfig
from .engine import HealthEngine
from .enums import LogLevel
from .exceptions import PersistenceError, PersistenceUnavailableError
from .exporter import export_csv, write_export
from .models import DomainRecord
from .probe import ProbeOracle, SimulatedProbeOracle
from .registry import DomainRegistry
from .scheduler import AutoRefreshScheduler
from .suggestions import SuggestionService


class RecordStore(Protocol):
    """What the monitor needs from a persistence adapter."""

    def load_records(self) -> Optional[list[DomainRecord]]:
        ...

    def save_records(self, records: tuple[DomainRecord, ...]) -> None:
        ...


class DomainMonitor:
    """
    Owns the domain collection and everything that acts on it.

    Use as an async context manager so the timer is always torn down:

        async with DomainMonitor(config, store=store) as monitor:
            monitor.set_auto_refresh(30)
    """

    def __init__(
        self,
        config: Optional[SystemConfig] = None,
        store: Optional[RecordStore] = None,
        oracle: Optional[ProbeOracle] = None,
        suggestion_service: Optional[SuggestionService] = None,
        logger: Optional[AuditLogger] = None,
    ) -> None:
        """
        Initialize the monitor.

        Args:
            config: System configuration (defaults if omitted)
            store: Persistence adapter; None runs in memory only
            oracle: Probe oracle; defaults to the simulated oracle
            suggestion_service: Suggestion client; built from config if omitted
            logger: Optional audit logger
        """
        self._config = config or SystemConfig()
        self._logger = logger
        self._store = store
        self._persistence_available = store is not None

        self._registry = self._load_registry()
        self._registry.add_commit_hook(self._persist)

        self._suggestions = suggestion_service or SuggestionService(
            config=self._config.suggestions,
            simulation_mode=self._config.simulation_mode,
            logger=logger,
        )
        self._engine = HealthEngine(
            registry=self._registry,
            oracle=oracle or SimulatedProbeOracle(self._config.probe),
            config=self._config.probe,
            suggestion_service=self._suggestions,
            logger=logger,
        )
        self._scheduler = AutoRefreshScheduler(self._engine.check_all, logger=logger)
        self._closed = False

    async def __aenter__(self) -> "DomainMonitor":
        """Async context manager entry; arms the configured auto-refresh."""
        if self._config.scheduler.interval_seconds > 0:
            self.set_auto_refresh(self._config.scheduler.interval_seconds)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.aclose()

    # -- persistence --------------------------------------------------------

    def _load_registry(self) -> DomainRegistry:
        records = None
        if self._store is not None:
            try:
                records = self._store.load_records()
            except PersistenceUnavailableError as e:
                self._degrade("Store unavailable, running in memory", e)
            except PersistenceError as e:
                # Keep the unreadable snapshot on disk untouched
                if self._logger:
                    self._logger.log_error("DomainMonitor", "Could not load snapshot", e)
                self._persistence_available = False

        if records is not None:
            return DomainRegistry(records=records, logger=self._logger)
        if self._config.seed_initial_domains:
            return DomainRegistry.with_initial_domains(logger=self._logger)
        return DomainRegistry(logger=self._logger)

    def _persist(self, records: tuple[DomainRecord, ...]) -> None:
        """On-commit hook: snapshot the collection."""
        if not self._persistence_available:
            return
        try:
            self._store.save_records(records)
        except PersistenceError as e:
            self._degrade("Snapshot failed, running in memory", e)

    def _degrade(self, message: str, error: Exception) -> None:
        self._persistence_available = False
        if self._logger:
            self._logger.log(
                LogLevel.DEBUG,
                "DomainMonitor",
                message,
                {"error_type": type(error).__name__, "error_message": str(error)},
            )

    @property
    def persistence_available(self) -> bool:
        return self._persistence_available

    # -- record lifecycle ---------------------------------------------------

    def add_domain(self, raw_url: str) -> DomainRecord:
        """Track a new domain. Raises InvalidUrlError or DuplicateDomainError."""
        return self._registry.add(raw_url)

    def remove_domain(self, record_id: int) -> bool:
        return self._registry.remove(record_id)

    def edit_domain(self, record_id: int, url: str, notes: Optional[str]) -> Optional[DomainRecord]:
        return self._registry.edit(record_id, url, notes)

    def toggle_edit(self, record_id: int) -> Optional[DomainRecord]:
        return self._registry.toggle_edit(record_id)

    def toggle_notes(self, record_id: int) -> Optional[DomainRecord]:
        return self._registry.toggle_notes(record_id)

    # -- probing ------------------------------------------------------------

    async def check_domain(self, record_id: int) -> None:
        """Probe one domain and wait for the result."""
        await self._engine.check_one(record_id)

    def check_all(self) -> None:
        """Start probes for every domain not already in flight."""
        self._engine.check_all()

    async def fetch_suggestions(self, record_id: int) -> str:
        return await self._engine.fetch_suggestions(record_id)

    def set_auto_refresh(self, seconds: float) -> None:
        """Set the auto-refresh interval in seconds; 0 turns it off."""
        self._scheduler.set_interval(seconds)

    async def wait_idle(self) -> None:
        """Wait for every background probe to finish."""
        await self._engine.wait_idle()

    # -- export -------------------------------------------------------------

    def export_csv(self) -> Optional[bytes]:
        return export_csv(self._registry.records)

    def write_export(self, directory: Union[str, Path]) -> Optional[Path]:
        return write_export(self._registry.records, Path(directory))

    # -- teardown -----------------------------------------------------------

    async def aclose(self) -> None:
        """Cancel the auto-refresh timer and stop applying probe results."""
        if self._closed:
            return
        self._scheduler.close()
        self._engine.close()
        self._closed = True

    @property
    def records(self) -> tuple[DomainRecord, ...]:
        return self._registry.records

    @property
    def registry(self) -> DomainRegistry:
        return self._registry

    @property
    def engine(self) -> HealthEngine:
        return self._engine

    @property
    def scheduler(self) -> AutoRefreshScheduler:
        return self._scheduler

    @property
    def config(self) -> SystemConfig:
        return self._config

    @property
    def closed(self) -> bool:
        return self._closed
