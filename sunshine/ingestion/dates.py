"""UTC day arithmetic shared by the parser and the storage gateway.

Every stored forecast date is a UTC midnight. The parser anchors a whole
forecast on "today" truncated in UTC, and lookups truncate the same way, so
equality on the ``date`` column is day equality.
"""

from __future__ import annotations

import datetime as dt
from typing import Callable, Union

DAY_IN_MILLIS = 24 * 60 * 60 * 1000

_EPOCH = dt.datetime(1970, 1, 1, tzinfo=dt.timezone.utc)

Clock = Callable[[], dt.datetime]


def utc_now() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def _ensure_utc(dt_like: dt.datetime) -> dt.datetime:
    if dt_like.tzinfo is None:
        return dt_like.replace(tzinfo=dt.timezone.utc)
    return dt_like.astimezone(dt.timezone.utc)


def normalize_utc_day(value: Union[dt.datetime, dt.date]) -> dt.datetime:
    """Truncate ``value`` to midnight UTC.

    Naive datetimes are interpreted as UTC. Plain ``date`` objects are taken
    as UTC calendar days.
    """
    if isinstance(value, dt.datetime):
        value = _ensure_utc(value)
        return value.replace(hour=0, minute=0, second=0, microsecond=0)
    return dt.datetime(value.year, value.month, value.day, tzinfo=dt.timezone.utc)


def normalized_utc_today(clock: Clock = utc_now) -> dt.datetime:
    return normalize_utc_day(clock())


def to_epoch_millis(value: dt.datetime) -> int:
    delta = _ensure_utc(value) - _EPOCH
    return (delta.days * 86_400 + delta.seconds) * 1000 + delta.microseconds // 1000


def from_epoch_millis(millis: int) -> dt.datetime:
    return _EPOCH + dt.timedelta(milliseconds=int(millis))
