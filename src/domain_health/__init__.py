"""
Domain Health - track domains, probe their health and report uptime.

This package keeps a collection of tracked domains, probes them through a
pluggable oracle, keeps a bounded outcome history per domain, refreshes on an
interval, persists snapshots and exports CSV reports.
"""

__version__ = "0.1.0"

from domain_health.exceptions import (
    DomainHealthError,
    InvalidUrlError,
    DuplicateDomainError,
    DomainNotFoundError,
    OracleUnavailableError,
    PersistenceError,
    PersistenceUnavailableError,
    TamperingError,
)
from domain_health.enums import (
    Outcome,
    DomainStatus,
    LogLevel,
    UrlErrorCode,
)
from domain_health.history import (
    HistoryEntry,
    Ledger,
    MAX_HISTORY_LENGTH,
)
from domain_health.models import (
    DomainRecord,
    INITIAL_DOMAINS,
)
from domain_health.url_normalizer import (
    UrlNormalizer,
    normalize_domain_url,
)
from domain_health.config import (
    ProbeConfig,
    SchedulerConfig,
    PersistenceConfig,
    SuggestionConfig,
    LoggingConfig,
    SystemConfig,
    apply_env_overrides,
)
from domain_health.registry import (
    DomainRegistry,
    IdGenerator,
)
from domain_health.probe import (
    ProbeOracle,
    SimulatedProbeOracle,
)
from domain_health.suggestions import (
    SuggestionService,
)
from domain_health.engine import (
    HealthEngine,
)
from domain_health.scheduler import (
    AutoRefreshScheduler,
    SchedulerState,
)
from domain_health.state_store import (
    StateStore,
    MemoryStateStore,
)
from domain_health.exporter import (
    export_csv,
    render_csv,
    write_export,
    EXPORT_FILENAME,
)
from domain_health.monitor import (
    DomainMonitor,
)
from domain_health.audit_logger import (
    AuditLogger,
    LogEntry,
)
from domain_health.i18n import (
    get_message,
    get_missing_translations,
    TRANSLATIONS,
    SUPPORTED_LANGUAGES,
    DEFAULT_LANGUAGE,
)
from domain_health.cli import (
    main as cli_main,
    create_parser,
    create_default_config,
    load_config_from_file,
    save_config_to_file,
)

__all__ = [
    # Exceptions
    "DomainHealthError",
    "InvalidUrlError",
    "DuplicateDomainError",
    "DomainNotFoundError",
    "OracleUnavailableError",
    "PersistenceError",
    "PersistenceUnavailableError",
    "TamperingError",
    # Enums
    "Outcome",
    "DomainStatus",
    "LogLevel",
    "UrlErrorCode",
    # History
    "HistoryEntry",
    "Ledger",
    "MAX_HISTORY_LENGTH",
    # Models
    "DomainRecord",
    "INITIAL_DOMAINS",
    # URL Normalizer
    "UrlNormalizer",
    "normalize_domain_url",
    # Configuration
    "ProbeConfig",
    "SchedulerConfig",
    "PersistenceConfig",
    "SuggestionConfig",
    "LoggingConfig",
    "SystemConfig",
    "apply_env_overrides",
    # Registry
    "DomainRegistry",
    "IdGenerator",
    # Probe
    "ProbeOracle",
    "SimulatedProbeOracle",
    # Suggestions
    "SuggestionService",
    # Engine
    "HealthEngine",
    # Scheduler
    "AutoRefreshScheduler",
    "SchedulerState",
    # State Store
    "StateStore",
    "MemoryStateStore",
    # Exporter
    "export_csv",
    "render_csv",
    "write_export",
    "EXPORT_FILENAME",
    # Monitor
    "DomainMonitor",
    # Audit Logger
    "AuditLogger",
    "LogEntry",
    # I18n
    "get_message",
    "get_missing_translations",
    "TRANSLATIONS",
    "SUPPORTED_LANGUAGES",
    "DEFAULT_LANGUAGE",
    # CLI
    "cli_main",
    "create_parser",
    "create_default_config",
    "load_config_from_file",
    "save_config_to_file",
]
