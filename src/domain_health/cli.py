"""
Command-line interface for the domain health system.

This module provides the main CLI entry point with commands for:
- list / add / remove / edit: manage the tracked domains
- check: probe one or all domains and wait for the results
- watch: run auto-refresh for a while
- export: write the CSV report
- suggest: ask for troubleshooting guidance
- config: configuration management
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Awaitable, Callable, Optional

from . import __version__
from .audit_logger import AuditLogger
from .config import (
    DEFAULT_CONFIG_FILE,
    DEFAULT_STATE_FILE,
    LoggingConfig,
    PersistenceConfig,
    ProbeConfig,
    SchedulerConfig,
    SuggestionConfig,
    SystemConfig,
    apply_env_overrides,
)
from .enums import UrlErrorCode
from .exceptions import DomainNotFoundError, DuplicateDomainError, InvalidUrlError
from .exporter import format_iso_utc
from .i18n import get_message
from .models import DomainRecord
from .monitor import DomainMonitor
from .state_store import StateStore


def create_default_config(
    simulation_mode: bool = False,
    language: str = "en",
    state_file: Optional[Path] = None,
) -> SystemConfig:
    """
    Create a default system configuration.

    Args:
        simulation_mode: Enable simulation mode (no real network requests)
        language: Output language ('de' or 'en')
        state_file: Path to the snapshot file

    Returns:
        SystemConfig with default settings
    """
    return SystemConfig(
        probe=ProbeConfig(),
        scheduler=SchedulerConfig(),
        persistence=PersistenceConfig(state_file_path=state_file or DEFAULT_STATE_FILE),
        suggestions=SuggestionConfig(),
        logging=LoggingConfig(),
        language=language,
        simulation_mode=simulation_mode,
    )


def load_config_from_file(config_path: Path) -> Optional[SystemConfig]:
    """
    Load configuration from a JSON file.

    Args:
        config_path: Path to the configuration file

    Returns:
        SystemConfig if successful, None otherwise
    """
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = json.load(f)

        probe_data = data.get("probe", {})
        probe = ProbeConfig(
            min_delay_seconds=float(probe_data.get("min_delay_seconds", 1.5)),
            max_delay_seconds=float(probe_data.get("max_delay_seconds", 2.5)),
            healthy_weight=int(probe_data.get("healthy_weight", 3)),
            down_weight=int(probe_data.get("down_weight", 1)),
            flagged_weight=int(probe_data.get("flagged_weight", 1)),
            timeout_seconds=probe_data.get("timeout_seconds", 30.0),
        )

        scheduler = SchedulerConfig(
            interval_seconds=float(data.get("scheduler", {}).get("interval_seconds", 0)),
        )

        persistence_data = data.get("persistence", {})
        state_file_path = persistence_data.get("state_file_path")
        persistence = PersistenceConfig(
            state_file_path=Path(state_file_path) if state_file_path else DEFAULT_STATE_FILE,
            hmac_secret=persistence_data.get("hmac_secret"),
        )

        suggestion_data = data.get("suggestions", {})
        defaults = SuggestionConfig()
        suggestions = SuggestionConfig(
            api_key=suggestion_data.get("api_key"),
            model=suggestion_data.get("model", defaults.model),
            endpoint=suggestion_data.get("endpoint", defaults.endpoint),
            timeout_seconds=float(suggestion_data.get("timeout_seconds", defaults.timeout_seconds)),
        )

        logging_data = data.get("logging", {})
        logging_config = LoggingConfig(
            level=logging_data.get("level", "info"),
            output_format=logging_data.get("output_format", "text"),
        )

        return SystemConfig(
            probe=probe,
            scheduler=scheduler,
            persistence=persistence,
            suggestions=suggestions,
            logging=logging_config,
            language=data.get("language", "en"),
            simulation_mode=data.get("simulation_mode", False),
            seed_initial_domains=data.get("seed_initial_domains", True),
        )

    except (json.JSONDecodeError, KeyError, TypeError, ValueError, AttributeError) as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        return None
    except FileNotFoundError:
        return None


def save_config_to_file(config: SystemConfig, config_path: Path) -> bool:
    """
    Save configuration to a JSON file.

    The suggestion API key is never written; it belongs in the environment.

    Returns:
        True if successful, False otherwise
    """
    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "probe": {
                "min_delay_seconds": config.probe.min_delay_seconds,
                "max_delay_seconds": config.probe.max_delay_seconds,
                "healthy_weight": config.probe.healthy_weight,
                "down_weight": config.probe.down_weight,
                "flagged_weight": config.probe.flagged_weight,
                "timeout_seconds": config.probe.timeout_seconds,
            },
            "scheduler": {
                "interval_seconds": config.scheduler.interval_seconds,
            },
            "persistence": {
                "state_file_path": str(config.persistence.state_file_path),
                "hmac_secret": config.persistence.hmac_secret,
            },
            "suggestions": {
                "model": config.suggestions.model,
                "endpoint": config.suggestions.endpoint,
                "timeout_seconds": config.suggestions.timeout_seconds,
            },
            "logging": {
                "level": config.logging.level,
                "output_format": config.logging.output_format,
            },
            "language": config.language,
            "simulation_mode": config.simulation_mode,
            "seed_initial_domains": config.seed_initial_domains,
        }

        with open(config_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)

        return True

    except (OSError, TypeError) as e:
        print(f"Error saving config: {e}", file=sys.stderr)
        return False


def build_config(args: argparse.Namespace) -> Optional[SystemConfig]:
    """Resolve defaults, config file, environment and flags, in that order."""
    config = None
    if getattr(args, "config", None):
        config = load_config_from_file(Path(args.config))
        if config is None:
            print(f"Error: Could not load config from {args.config}", file=sys.stderr)
            return None
    if config is None:
        config = create_default_config()

    apply_env_overrides(config)

    if getattr(args, "language", None):
        config.language = args.language
    if getattr(args, "state_file", None):
        config.persistence.state_file_path = Path(args.state_file)
    if getattr(args, "dry_run", False):
        config.simulation_mode = True
    return config


def format_record(record: DomainRecord, language: str) -> str:
    """One-line, human-readable rendering of a record."""
    if record.checking:
        status = get_message("status.checking", language)
    else:
        status = get_message(f"status.{record.status.value}", language)

    uptime = record.uptime_percentage(decimals=1)
    uptime_text = (
        get_message("list.uptime", language, uptime=uptime)
        if uptime is not None
        else get_message("list.uptime_none", language)
    )
    checked = (
        get_message("list.last_checked", language, time=format_iso_utc(record.last_checked))
        if record.last_checked
        else get_message("list.never_checked", language)
    )

    line = f"[{record.id}] {record.url}  {status}  {uptime_text}  ({checked})"
    if record.notes:
        line += f"\n      {record.notes}"
    return line


def print_records(monitor: DomainMonitor, language: str) -> None:
    if not monitor.records:
        print(get_message("list.empty", language))
        return
    for record in monitor.records:
        print(format_record(record, language))


def run_with_monitor(
    args: argparse.Namespace,
    action: Callable[[DomainMonitor, SystemConfig], Awaitable[int]],
) -> int:
    """Build config, store and monitor, then run one command inside it."""
    config = build_config(args)
    if config is None:
        return 1

    logger = None
    if getattr(args, "verbose", False):
        logger = AuditLogger.from_level_name(
            "debug",
            output_format=config.logging.output_format,
        )

    store = StateStore(
        file_path=config.persistence.state_file_path,
        hmac_secret=config.persistence.hmac_secret,
    )

    if config.simulation_mode and getattr(args, "verbose", False):
        print(get_message("simulation.enabled", config.language))

    async def runner() -> int:
        async with DomainMonitor(config=config, store=store, logger=logger) as monitor:
            code = await action(monitor, config)
            if logger and not monitor.persistence_available:
                print(get_message("cli.memory_only", config.language), file=sys.stderr)
            return code

    return asyncio.run(runner())


def cmd_list(args: argparse.Namespace) -> int:
    """Handle the 'list' command."""
    async def action(monitor: DomainMonitor, config: SystemConfig) -> int:
        print_records(monitor, config.language)
        return 0

    return run_with_monitor(args, action)


def cmd_add(args: argparse.Namespace) -> int:
    """Handle the 'add' command."""
    async def action(monitor: DomainMonitor, config: SystemConfig) -> int:
        language = config.language
        try:
            record = monitor.add_domain(args.url)
        except InvalidUrlError as e:
            key = "error.empty_url" if e.code == UrlErrorCode.EMPTY_INPUT.value else "error.invalid_url"
            print(get_message(key, language), file=sys.stderr)
            return 1
        except DuplicateDomainError:
            print(get_message("error.duplicate_domain", language), file=sys.stderr)
            return 1

        print(get_message("cli.added", language, url=record.url, id=record.id))
        return 0

    return run_with_monitor(args, action)


def cmd_remove(args: argparse.Namespace) -> int:
    """Handle the 'remove' command."""
    async def action(monitor: DomainMonitor, config: SystemConfig) -> int:
        monitor.remove_domain(args.id)
        print(get_message("cli.removed", config.language, id=args.id))
        return 0

    return run_with_monitor(args, action)


def cmd_edit(args: argparse.Namespace) -> int:
    """Handle the 'edit' command."""
    async def action(monitor: DomainMonitor, config: SystemConfig) -> int:
        try:
            record = monitor.registry.require(args.id)
        except DomainNotFoundError:
            print(get_message("error.not_found", config.language, id=args.id), file=sys.stderr)
            return 1

        url = args.url if args.url is not None else record.url
        notes = args.notes if args.notes is not None else record.notes
        monitor.edit_domain(args.id, url, notes)
        print(get_message("cli.edited", config.language, id=args.id))
        return 0

    return run_with_monitor(args, action)


def cmd_check(args: argparse.Namespace) -> int:
    """Handle the 'check' command."""
    async def action(monitor: DomainMonitor, config: SystemConfig) -> int:
        language = config.language
        if args.id is not None:
            if monitor.registry.get(args.id) is None:
                print(get_message("error.not_found", language, id=args.id), file=sys.stderr)
                return 1
            print(get_message("cli.checking", language, count=1))
            await monitor.check_domain(args.id)
        else:
            print(get_message("cli.checking", language, count=len(monitor.records)))
            monitor.check_all()
            await monitor.wait_idle()

        print_records(monitor, language)
        return 0

    return run_with_monitor(args, action)


def cmd_watch(args: argparse.Namespace) -> int:
    """Handle the 'watch' command."""
    async def action(monitor: DomainMonitor, config: SystemConfig) -> int:
        language = config.language
        monitor.set_auto_refresh(args.interval)
        print(get_message("cli.watch_started", language, interval=args.interval))
        if args.duration is not None:
            await asyncio.sleep(args.duration)
        else:
            await asyncio.Event().wait()
        monitor.set_auto_refresh(0)
        await monitor.wait_idle()
        print_records(monitor, language)
        return 0

    if args.interval <= 0:
        print("Error: --interval must be positive", file=sys.stderr)
        return 1

    try:
        return run_with_monitor(args, action)
    except KeyboardInterrupt:
        print(get_message("cli.watch_stopped", args.language or "en"))
        return 0


def cmd_export(args: argparse.Namespace) -> int:
    """Handle the 'export' command."""
    async def action(monitor: DomainMonitor, config: SystemConfig) -> int:
        path = monitor.write_export(Path(args.output))
        if path is None:
            print(get_message("cli.nothing_to_export", config.language))
        else:
            print(get_message("cli.exported", config.language, path=path))
        return 0

    return run_with_monitor(args, action)


def cmd_suggest(args: argparse.Namespace) -> int:
    """Handle the 'suggest' command."""
    async def action(monitor: DomainMonitor, config: SystemConfig) -> int:
        try:
            text = await monitor.fetch_suggestions(args.id)
        except DomainNotFoundError:
            print(get_message("error.not_found", config.language, id=args.id), file=sys.stderr)
            return 1
        print(text)
        return 1 if text.startswith("Error:") else 0

    return run_with_monitor(args, action)


def cmd_config(args: argparse.Namespace) -> int:
    """Handle the 'config' command."""
    config_path = Path(args.path) if args.path else DEFAULT_CONFIG_FILE

    if args.action == "show":
        config = load_config_from_file(config_path)
        if config is None:
            print(f"No configuration found at: {config_path}")
            print("Use 'config init' to create a default configuration.")
            return 1

        print(f"Configuration from: {config_path}")
        print(f"  Language: {config.language}")
        print(f"  Simulation mode: {config.simulation_mode}")
        print(f"  State file: {config.persistence.state_file_path}")
        print(f"  Auto-refresh interval: {config.scheduler.interval_seconds}s")
        print(f"  Probe timeout: {config.probe.timeout_seconds}s")
        print(f"  Suggestion model: {config.suggestions.model}")
        print(f"  Log level: {config.logging.level}")
        return 0

    elif args.action == "init":
        if config_path.exists() and not args.force:
            print(f"Configuration already exists at: {config_path}")
            print("Use --force to overwrite.")
            return 1

        config = create_default_config(language=args.language or "en")
        if save_config_to_file(config, config_path):
            print(f"Configuration created at: {config_path}")
            return 0
        return 1

    elif args.action == "validate":
        config = load_config_from_file(config_path)
        if config is None:
            print(f"Error: Could not load config from {config_path}", file=sys.stderr)
            return 1

        print(f"Configuration at {config_path} is valid.")
        return 0

    return 1


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config", "-c",
        help="Path to configuration file",
    )
    parser.add_argument(
        "--state-file", "-s",
        help="Path to the state file",
    )
    parser.add_argument(
        "--language", "-l",
        choices=["de", "en"],
        default=None,
        help="Output language (default: en)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Simulation mode - no real network requests",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose output",
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="domain-health",
        description="Track domains, probe their health and report uptime",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    list_parser = subparsers.add_parser("list", help="List tracked domains")
    _add_common_arguments(list_parser)
    list_parser.set_defaults(func=cmd_list)

    add_parser = subparsers.add_parser("add", help="Track a new domain")
    add_parser.add_argument("url", help="Domain or URL (e.g., example.com)")
    _add_common_arguments(add_parser)
    add_parser.set_defaults(func=cmd_add)

    remove_parser = subparsers.add_parser("remove", help="Stop tracking a domain")
    remove_parser.add_argument("id", type=int, help="Domain id")
    _add_common_arguments(remove_parser)
    remove_parser.set_defaults(func=cmd_remove)

    edit_parser = subparsers.add_parser("edit", help="Change url or notes of a domain")
    edit_parser.add_argument("id", type=int, help="Domain id")
    edit_parser.add_argument("--url", help="New url (stored as given)")
    edit_parser.add_argument("--notes", help="New notes")
    _add_common_arguments(edit_parser)
    edit_parser.set_defaults(func=cmd_edit)

    check_parser = subparsers.add_parser("check", help="Probe one or all domains")
    check_parser.add_argument("id", type=int, nargs="?", help="Domain id (default: all)")
    _add_common_arguments(check_parser)
    check_parser.set_defaults(func=cmd_check)

    watch_parser = subparsers.add_parser("watch", help="Probe all domains periodically")
    watch_parser.add_argument(
        "--interval", "-i",
        type=float,
        required=True,
        help="Refresh interval in seconds",
    )
    watch_parser.add_argument(
        "--duration", "-d",
        type=float,
        help="Stop after this many seconds (default: run until Ctrl+C)",
    )
    _add_common_arguments(watch_parser)
    watch_parser.set_defaults(func=cmd_watch)

    export_parser = subparsers.add_parser("export", help="Write the CSV report")
    export_parser.add_argument(
        "--output", "-o",
        default=".",
        help="Target directory (default: current directory)",
    )
    _add_common_arguments(export_parser)
    export_parser.set_defaults(func=cmd_export)

    suggest_parser = subparsers.add_parser("suggest", help="Get troubleshooting suggestions")
    suggest_parser.add_argument("id", type=int, help="Domain id")
    _add_common_arguments(suggest_parser)
    suggest_parser.set_defaults(func=cmd_suggest)

    config_parser = subparsers.add_parser("config", help="Configuration management")
    config_parser.add_argument(
        "action",
        choices=["show", "init", "validate"],
        help="Configuration action",
    )
    config_parser.add_argument(
        "--path", "-p",
        help="Path to configuration file",
    )
    config_parser.add_argument(
        "--force", "-f",
        action="store_true",
        help="Force overwrite existing configuration",
    )
    config_parser.add_argument(
        "--language", "-l",
        choices=["de", "en"],
        default=None,
        help="Default language for new configuration",
    )
    config_parser.set_defaults(func=cmd_config)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
