"""Day-scoped ticket identity.

A ticket coming from the extension has a stable base id. Storage keeps one
row per base id per local day, keyed by ``<base id>__day__<YYYY-MM-DD>``.
The local day is UTC shifted by a fixed offset (``Settings.day_offset_minutes``);
callers pass that offset in explicitly.
"""

import re
from datetime import datetime, timedelta, timezone

DAILY_SUFFIX_DELIMITER = "__day__"
DAY_KEY_RE = re.compile(r"\d{4}-\d{2}-\d{2}", re.ASCII)

# hints this close to the datetime limits cannot be shifted or bounded
_EARLIEST = datetime.min.replace(tzinfo=timezone.utc) + timedelta(days=2)
_LATEST = datetime.max.replace(tzinfo=timezone.utc) - timedelta(days=2)


def _as_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _local_shift(instant: datetime, offset_minutes: int) -> datetime:
    return _as_utc(instant) + timedelta(minutes=offset_minutes)


def day_key(instant: datetime, offset_minutes: int = 0) -> str:
    return _local_shift(instant, offset_minutes).strftime("%Y-%m-%d")


def day_bounds(instant: datetime, offset_minutes: int = 0) -> tuple[datetime, datetime]:
    """Return the UTC ``[start, end)`` of the local day containing ``instant``."""
    shifted = _local_shift(instant, offset_minutes)
    local_midnight = datetime(shifted.year, shifted.month, shifted.day, tzinfo=timezone.utc)
    start = local_midnight - timedelta(minutes=offset_minutes)
    return start, start + timedelta(hours=24)


def build_daily_id(base_id: str, reference: datetime, offset_minutes: int = 0) -> str:
    return f"{base_id.strip()}{DAILY_SUFFIX_DELIMITER}{day_key(reference, offset_minutes)}"


def strip_daily_suffix(ticket_id: str) -> str:
    """Return the base id for display and outbound links.

    Only a trailing ``__day__YYYY-MM-DD`` is removed; an id where the
    delimiter is followed by anything else comes back unchanged.
    """
    if not ticket_id:
        return ticket_id
    trimmed = ticket_id.strip()
    marker = trimmed.rfind(DAILY_SUFFIX_DELIMITER)
    if marker == -1:
        return trimmed
    suffix = trimmed[marker + len(DAILY_SUFFIX_DELIMITER):]
    if DAY_KEY_RE.fullmatch(suffix):
        return trimmed[:marker]
    return trimmed


def resolve_reference_instant(raw: str | None, now: datetime | None = None) -> datetime:
    """Parse the optional ``date`` hint of an ingest event, falling back to now."""
    fallback = _as_utc(now) if now else datetime.now(timezone.utc)
    if not raw or not raw.strip():
        return fallback
    s = raw.strip()
    try:
        if s.endswith("Z"):
            s = s[:-1] + "+00:00"
        parsed = _as_utc(datetime.fromisoformat(s))
    except (ValueError, OverflowError):
        return fallback
    if not _EARLIEST <= parsed <= _LATEST:
        return fallback
    return parsed
