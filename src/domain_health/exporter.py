"""
CSV report export for the domain collection.

The export is a pure projection of the current records: one header row and
one row per record with its windowed uptime. An empty collection exports
nothing at all, not even a header.
"""

from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Optional

from .models import DomainRecord


EXPORT_FILENAME = "domain_health_export.csv"
EXPORT_MIME_TYPE = "text/csv"
NOT_AVAILABLE = "N/A"

HEADERS = ["ID", "URL", "Status", "Uptime %", "Last Checked", "Notes"]


def quote_field(value: object) -> str:
    """Wrap a value in double quotes, doubling any embedded quote."""
    return '"' + str(value).replace('"', '""') + '"'


def format_iso_utc(value: datetime) -> str:
    """UTC ISO-8601 with millisecond precision and a 'Z' suffix."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    utc = value.astimezone(timezone.utc)
    return utc.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def record_row(record: DomainRecord) -> list[str]:
    """The export columns of one record, unquoted."""
    uptime = record.uptime_percentage(decimals=2)
    return [
        str(record.id),
        record.url,
        record.status.value,
        uptime if uptime is not None else NOT_AVAILABLE,
        format_iso_utc(record.last_checked) if record.last_checked else NOT_AVAILABLE,
        record.notes or "",
    ]


def render_csv(records: Iterable[DomainRecord]) -> Optional[str]:
    """
    Render records as CSV text.

    Returns:
        The CSV text, or None for an empty collection
    """
    rows = [",".join(quote_field(value) for value in record_row(record)) for record in records]
    if not rows:
        return None
    return "\n".join([",".join(HEADERS)] + rows)


def export_csv(records: Iterable[DomainRecord]) -> Optional[bytes]:
    """
    Export records as UTF-8 encoded CSV.

    Returns:
        The CSV bytes, or None for an empty collection
    """
    text = render_csv(records)
    return text.encode("utf-8") if text is not None else None


def write_export(
    records: Iterable[DomainRecord],
    directory: Path,
    filename: str = EXPORT_FILENAME,
) -> Optional[Path]:
    """
    Write the CSV export to a file.

    Args:
        records: The collection to export
        directory: Target directory (created if missing)
        filename: Target file name

    Returns:
        Path of the written file, or None if there was nothing to export
    """
    content = export_csv(records)
    if content is None:
        return None

    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / filename
    path.write_bytes(content)
    return path
