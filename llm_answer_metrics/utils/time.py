"""
UTC time helpers shared by logging, the pipeline and the answer reader.

Every datetime handled here is timezone-aware UTC. Serialized timestamps use
the "Z" form (2025-11-02T08:30:45Z). Analysis ids use hyphens in place of
colons so they can name directories, and they sort chronologically.
"""

from datetime import UTC, datetime

ISO_FORMAT = "%Y-%m-%dT%H:%M:%SZ"
ANALYSIS_ID_FORMAT = "%Y-%m-%dT%H-%M-%SZ"


def utc_now() -> datetime:
    return datetime.now(UTC)


def format_utc(dt: datetime, fmt: str = ISO_FORMAT) -> str:
    """Render an aware datetime in UTC. Naive datetimes raise ValueError."""
    if dt.tzinfo is None:
        raise ValueError(f"Expected a timezone-aware datetime, got naive {dt.isoformat()}")
    return dt.astimezone(UTC).strftime(fmt)


def utc_timestamp() -> str:
    """Current time, second precision: '2025-11-02T08:30:45Z'."""
    return format_utc(utc_now())


def analysis_id_from_timestamp(dt: datetime | None = None) -> str:
    """
    Directory-safe id of an analysis started at dt (default: now).

    Example:
        >>> analysis_id_from_timestamp(datetime(2025, 11, 2, 8, 30, 45, tzinfo=UTC))
        '2025-11-02T08-30-45Z'
    """
    return format_utc(dt or utc_now(), ANALYSIS_ID_FORMAT)


def parse_timestamp(value: str) -> datetime:
    """
    Read an answer timestamp into an aware UTC datetime.

    Answer exports carry either a "Z" suffix or an explicit offset such as
    "+02:00"; both are converted to UTC. A timestamp with neither is
    ambiguous and rejected.

    Raises:
        ValueError: If value is not a string, not ISO 8601, or naive

    Example:
        >>> parse_timestamp("2025-11-02T10:30:45+02:00").hour
        8
    """
    if not isinstance(value, str):
        raise ValueError(f"Invalid ISO 8601 timestamp format: {value!r}")
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError as e:
        raise ValueError(f"Invalid ISO 8601 timestamp format: {value}") from e
    if parsed.tzinfo is None:
        raise ValueError(f"Timestamp must carry a UTC marker or offset: {value}")
    return parsed.astimezone(UTC)
