"""Date/time and status normalization for TheSportsDB records."""

from __future__ import annotations

import re
from datetime import date, datetime, timezone
from typing import Any, NamedTuple

from unrivaled.games import GameStatus

TIMESTAMP_PREFIX_LENGTH = 19

_TIME_OF_DAY_RE = re.compile(r"^\s*(\d{1,2}):(\d{2})")

# Lower-cased status codes TheSportsDB uses for basketball games in progress.
IN_PROGRESS_CODES = frozenset(
    {"q1", "q2", "q3", "q4", "ot", "ht", "bt", "1h", "2h", "in play", "halftime"}
)
TERMINAL_CODES = frozenset(
    {
        "ft",
        "aot",
        "final",
        "after-extra-time",
        "finished",
        "match finished",
        "game finished",
    }
)
_HALFTIME_CODES = frozenset({"ht", "halftime"})


class EventTime(NamedTuple):
    instant: datetime
    has_valid_time: bool
    # True when neither a timestamp nor a date could be parsed and "now" was used.
    is_fallback: bool = False


def parse_score(value: Any) -> int | None:
    if value is None:
        return None
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return None


def _parse_timestamp(value: str | None) -> datetime | None:
    if not value or len(value) < TIMESTAMP_PREFIX_LENGTH:
        return None
    try:
        parsed = datetime.fromisoformat(value[:TIMESTAMP_PREFIX_LENGTH])
    except ValueError:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _parse_date(value: str | None) -> date | None:
    if not value:
        return None
    try:
        return datetime.strptime(value.strip(), "%Y-%m-%d").date()
    except ValueError:
        return None


def _parse_time_of_day(value: str | None) -> tuple[int, int] | None:
    if not value:
        return None
    match = _TIME_OF_DAY_RE.match(value)
    if not match:
        return None
    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23 or minute > 59:
        return None
    return hour, minute


def normalize_event_time(
    date_value: str | None,
    time_value: str | None = None,
    timestamp_value: str | None = None,
    *,
    now: datetime | None = None,
) -> EventTime:
    """Resolve a record's kickoff instant in UTC.

    A combined timestamp wins over the date/time pair. A date without a usable
    time keeps midnight UTC and reports ``has_valid_time=False``. When nothing
    parses, the current instant is returned with ``is_fallback=True`` so the
    caller can surface the record as "TBD" rather than a real schedule slot.
    """
    timestamp = _parse_timestamp(timestamp_value)
    if timestamp is not None:
        return EventTime(timestamp, True)

    day = _parse_date(date_value)
    if day is not None:
        midnight = datetime(day.year, day.month, day.day, tzinfo=timezone.utc)
        time_of_day = _parse_time_of_day(time_value)
        if time_of_day is None:
            return EventTime(midnight, False)
        hour, minute = time_of_day
        return EventTime(midnight.replace(hour=hour, minute=minute), True)

    return EventTime(now or datetime.now(timezone.utc), False, True)


def infer_status(
    raw_status: str | None,
    home_score: int | None,
    away_score: int | None,
    *,
    assume_live: bool = False,
) -> GameStatus:
    """Map a raw status token (plus score presence) onto GameStatus.

    Explicit live and terminal tokens take precedence over score presence.
    ``assume_live`` is for records read from the live feed, whose running
    scores must not be mistaken for a final result.
    """
    token = (raw_status or "").strip().lower()
    if token:
        if "live" in token or "progress" in token or token in IN_PROGRESS_CODES:
            return GameStatus.LIVE
        if token in TERMINAL_CODES or "final" in token or "finished" in token:
            return GameStatus.COMPLETED
    if assume_live:
        return GameStatus.LIVE
    if home_score is not None and away_score is not None:
        return GameStatus.COMPLETED
    return GameStatus.SCHEDULED


def format_progress(raw_status: str | None, raw_progress: str | None) -> str | None:
    status = (raw_status or "").strip()
    progress = (raw_progress or "").strip()
    if status.lower() in _HALFTIME_CODES:
        return "Halftime"
    parts = [part for part in (status, progress) if part]
    if not parts:
        return None
    return " ".join(parts)
