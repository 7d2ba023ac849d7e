"""Time helpers, including Buddhist-Era date conversion."""

from __future__ import annotations

import re
import time
from datetime import datetime, timezone

BE_YEAR_OFFSET = 543
BE_DATE_RE = re.compile(r"^\d{2}/\d{2}/\d{4}$")
_NON_DIGIT_RE = re.compile(r"\D")
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def now_ms() -> int:
    """Return current timestamp in milliseconds."""
    return int(time.time() * 1000)


def utc_now() -> datetime:
    """Return timezone-aware UTC datetime."""
    return datetime.now(tz=timezone.utc)


def iso_timestamp(moment: datetime | None = None) -> str:
    """Format as ISO-8601 UTC with millisecond precision and a ``Z`` suffix."""
    moment = (moment or utc_now()).astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def parse_iso(value: str | None) -> datetime:
    """Parse an ISO-8601 timestamp; unparsable input maps to the epoch."""
    if not value:
        return _EPOCH
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return _EPOCH
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def be_date_to_datetime(value: str | None) -> datetime | None:
    """Convert ``DD/MM/YYYY`` in the Buddhist Era to a Gregorian datetime."""
    if not value:
        return None
    parts = value.strip().split("/")
    if len(parts) != 3:
        return None
    try:
        day, month, be_year = (int(part) for part in parts)
        return datetime(be_year - BE_YEAR_OFFSET, month, day, tzinfo=timezone.utc)
    except ValueError:
        return None


def is_be_date(value: str) -> bool:
    return bool(BE_DATE_RE.match(value.strip()))


def format_date_input(raw: str) -> str:
    """Shape free-typed digits into ``DD/MM/YYYY`` as the user types them.

    Non-digits are dropped, slashes are inserted after the day and month and
    the year is capped at four digits. Partial input stays partial.
    """
    digits = _NON_DIGIT_RE.sub("", raw)
    if len(digits) > 2:
        digits = f"{digits[:2]}/{digits[2:]}"
    if len(digits) > 5:
        digits = f"{digits[:5]}/{digits[5:9]}"
    return digits


def today_be() -> str:
    now = utc_now()
    return f"{now.day:02d}/{now.month:02d}/{now.year + BE_YEAR_OFFSET}"
