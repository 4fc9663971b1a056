"""
Internationalization (i18n) module for the domain health system.

Provides translations for all user-facing messages in English (en) and
German (de).
"""

from typing import Optional


# Supported languages
SUPPORTED_LANGUAGES = frozenset({"de", "en"})
DEFAULT_LANGUAGE = "en"


# Translation dictionary with all messages
# Structure: {message_key: {language_code: translated_message}}
TRANSLATIONS: dict[str, dict[str, str]] = {
    # Input errors
    "error.empty_url": {
        "en": "Domain URL cannot be empty.",
        "de": "Die Domain-URL darf nicht leer sein.",
    },
    "error.invalid_url": {
        "en": "Please enter a valid domain URL.",
        "de": "Bitte gib eine gültige Domain-URL ein.",
    },
    "error.duplicate_domain": {
        "en": "This domain is already in the list.",
        "de": "Diese Domain ist bereits in der Liste.",
    },
    "error.not_found": {
        "en": "No domain with id {id}.",
        "de": "Keine Domain mit der ID {id}.",
    },

    # Status labels
    "status.pending": {
        "en": "Pending",
        "de": "Ausstehend",
    },
    "status.checking": {
        "en": "Checking...",
        "de": "Wird geprüft...",
    },
    "status.healthy": {
        "en": "Healthy",
        "de": "Erreichbar",
    },
    "status.down": {
        "en": "Down",
        "de": "Nicht erreichbar",
    },
    "status.flagged": {
        "en": "Flagged",
        "de": "Auffällig",
    },

    # List rendering
    "list.empty": {
        "en": "No domains tracked yet.",
        "de": "Es werden noch keine Domains überwacht.",
    },
    "list.uptime": {
        "en": "Uptime: {uptime}%",
        "de": "Verfügbarkeit: {uptime}%",
    },
    "list.uptime_none": {
        "en": "Uptime: no data",
        "de": "Verfügbarkeit: keine Daten",
    },
    "list.never_checked": {
        "en": "never checked",
        "de": "nie geprüft",
    },
    "list.last_checked": {
        "en": "last checked {time}",
        "de": "zuletzt geprüft {time}",
    },

    # Command results
    "cli.added": {
        "en": "Added {url} (id {id}).",
        "de": "{url} hinzugefügt (ID {id}).",
    },
    "cli.removed": {
        "en": "Removed domain {id}.",
        "de": "Domain {id} entfernt.",
    },
    "cli.edited": {
        "en": "Updated domain {id}.",
        "de": "Domain {id} aktualisiert.",
    },
    "cli.checking": {
        "en": "Checking {count} domain(s)...",
        "de": "Prüfe {count} Domain(s)...",
    },
    "cli.exported": {
        "en": "Export written to {path}",
        "de": "Export gespeichert unter {path}",
    },
    "cli.nothing_to_export": {
        "en": "Nothing to export.",
        "de": "Nichts zu exportieren.",
    },
    "cli.watch_started": {
        "en": "Auto-refresh every {interval}s. Press Ctrl+C to stop.",
        "de": "Automatische Prüfung alle {interval}s. Mit Strg+C beenden.",
    },
    "cli.watch_stopped": {
        "en": "Auto-refresh stopped.",
        "de": "Automatische Prüfung beendet.",
    },
    "cli.memory_only": {
        "en": "Warning: state could not be saved; changes are not persisted.",
        "de": "Warnung: Zustand konnte nicht gespeichert werden; Änderungen gehen verloren.",
    },
    "simulation.enabled": {
        "en": "Simulation mode enabled - no real network requests",
        "de": "Simulationsmodus aktiviert - keine echten Netzwerkanfragen",
    },
}


def get_message(
    key: str,
    language: Optional[str] = None,
    **kwargs,
) -> str:
    """
    Get a translated message by key.

    Args:
        key: The message key (e.g., 'error.invalid_url')
        language: Language code ('de' or 'en'). Defaults to DEFAULT_LANGUAGE.
        **kwargs: Format arguments for the message template

    Returns:
        The translated and formatted message string.
        If the key is not found, returns the key itself.
        If the language is not found, falls back to DEFAULT_LANGUAGE.

    Examples:
        >>> get_message('status.down', 'en')
        'Down'
        >>> get_message('cli.removed', 'de', id=3)
        'Domain 3 entfernt.'
    """
    if language is None or language not in SUPPORTED_LANGUAGES:
        language = DEFAULT_LANGUAGE

    translations = TRANSLATIONS.get(key)
    if translations is None:
        return key

    message = translations.get(language) or translations.get(DEFAULT_LANGUAGE)
    if message is None:
        return key

    if kwargs:
        try:
            message = message.format(**kwargs)
        except KeyError:
            # If formatting fails, return the unformatted message
            pass

    return message


def get_missing_translations(language: str) -> set[str]:
    """
    Get all message keys that are missing translations for a language.

    Args:
        language: The language code to check

    Returns:
        Set of message keys missing translations for the specified language.
    """
    return {key for key, translations in TRANSLATIONS.items() if language not in translations}
