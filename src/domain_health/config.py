"""
Configuration dataclasses for the domain health system.

This module defines the configuration structures used throughout the system:
probe behaviour, auto-refresh, persistence, the suggestion service, and
logging. Environment overrides are read from the process environment and an
optional .env file.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


DEFAULT_STATE_FILE = Path.home() / ".domain_health" / "state.json"
DEFAULT_CONFIG_FILE = Path.home() / ".domain_health" / "config.json"
DEFAULT_SUGGESTION_ENDPOINT = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_SUGGESTION_MODEL = "gemini-2.5-flash"


@dataclass
class ProbeConfig:
    """Simulated probe behaviour and probe timeout."""

    min_delay_seconds: float = 1.5
    max_delay_seconds: float = 2.5
    healthy_weight: int = 3
    down_weight: int = 1
    flagged_weight: int = 1
    timeout_seconds: Optional[float] = 30.0  # None or 0 disables the timeout


@dataclass
class SchedulerConfig:
    """Auto-refresh configuration."""

    interval_seconds: float = 0  # 0 = off


@dataclass
class PersistenceConfig:
    """Persistence and snapshot storage configuration."""

    state_file_path: Path = field(default_factory=lambda: DEFAULT_STATE_FILE)
    hmac_secret: Optional[str] = None


@dataclass
class SuggestionConfig:
    """Troubleshooting suggestion service configuration."""

    api_key: Optional[str] = None
    model: str = DEFAULT_SUGGESTION_MODEL
    endpoint: str = DEFAULT_SUGGESTION_ENDPOINT
    timeout_seconds: float = 30.0


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "info"
    output_format: str = "text"  # 'json', 'text', 'both'


@dataclass
class SystemConfig:
    """Main system configuration combining all sub-configurations."""

    probe: ProbeConfig = field(default_factory=ProbeConfig)
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)
    persistence: PersistenceConfig = field(default_factory=PersistenceConfig)
    suggestions: SuggestionConfig = field(default_factory=SuggestionConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    language: str = "en"  # 'de' or 'en'
    simulation_mode: bool = False
    seed_initial_domains: bool = True


def _float_env(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, str(default)))
    except ValueError:
        return default


def apply_env_overrides(config: SystemConfig, dotenv_path: Optional[Path] = None) -> SystemConfig:
    """
    Apply environment overrides on top of a configuration.

    Reads a .env file first (without overriding variables already set), then:
    - API_KEY / GEMINI_API_KEY: suggestion service credential
    - DOMAIN_HEALTH_STATE_FILE: snapshot file path
    - DOMAIN_HEALTH_INTERVAL: initial auto-refresh interval in seconds
    - DOMAIN_HEALTH_LANG: output language

    Args:
        config: Configuration to update in place
        dotenv_path: Optional explicit .env location

    Returns:
        The same configuration object
    """
    load_dotenv(dotenv_path=dotenv_path)

    api_key = (os.getenv("API_KEY") or os.getenv("GEMINI_API_KEY") or "").strip()
    if api_key:
        config.suggestions.api_key = api_key

    state_file = (os.getenv("DOMAIN_HEALTH_STATE_FILE") or "").strip()
    if state_file:
        config.persistence.state_file_path = Path(state_file)

    interval = _float_env("DOMAIN_HEALTH_INTERVAL", config.scheduler.interval_seconds)
    if interval >= 0:
        config.scheduler.interval_seconds = interval

    language = (os.getenv("DOMAIN_HEALTH_LANG") or "").strip().lower()
    if language in ("de", "en"):
        config.language = language

    return config
