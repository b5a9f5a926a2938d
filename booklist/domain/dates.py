from __future__ import annotations

from datetime import date, datetime, timezone
import re

from booklist.domain.errors import InvalidDateError

DATE_FORMAT = "%Y-%m-%d"

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def parse_date_read(value: str) -> date:
    # strptime alone accepts unpadded fields such as 2014-2-4
    if not _DATE_RE.match(value):
        raise InvalidDateError(value)
    try:
        return datetime.strptime(value, DATE_FORMAT).date()
    except ValueError as exc:
        raise InvalidDateError(value) from exc


def format_date(value: date) -> str:
    return value.isoformat()


def utcnow() -> datetime:
    """Naive UTC timestamp; SQLite DATETIME columns do not keep tzinfo."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
