from __future__ import annotations

import datetime as dt
from typing import Iterable, Optional, Union

import structlog
from sqlalchemy import select

from .database import WeatherDatabase
from .dates import normalize_utc_day
from .models import WeatherEntry
from .records import WeatherRecord

log = structlog.get_logger(__name__)


class WeatherDao:
    """Storage gateway for daily forecast records, keyed by UTC day."""

    def __init__(self, database: WeatherDatabase) -> None:
        self._database = database

    def bulk_upsert(self, records: Iterable[WeatherRecord]) -> int:
        """Insert or replace forecast records in one transaction.

        Parameters
        ----------
        records : Iterable[WeatherRecord]
            Records applied in order. A record whose day already has a stored
            row overwrites every column of that row; the row id is kept.

        Returns
        -------
        int
            Number of records written.

        Notes
        -----
        - Either the whole batch lands or nothing does; any failure rolls the
          transaction back and the error propagates.
        - Two records for the same day in one batch: the later one wins.
        - Upsert strategy is fetch-then-update or insert, which stays portable
          across SQLAlchemy dialects.
        """
        count = 0
        with self._database.transaction() as session:
            for record in records:
                day = normalize_utc_day(record.date)
                existing = session.execute(
                    select(WeatherEntry).where(WeatherEntry.date == day)
                ).scalar_one_or_none()

                if existing is None:
                    entry = WeatherEntry()
                    entry.apply(record)
                    session.add(entry)
                else:
                    existing.apply(record)
                count += 1
        log.info("forecast_upserted", rows=count)
        return count

    def get_by_date(self, date: Union[dt.datetime, dt.date]) -> Optional[WeatherRecord]:
        """Return the stored record for the UTC day of ``date``, or None if absent."""
        day = normalize_utc_day(date)
        with self._database.session() as session:
            entry = session.execute(
                select(WeatherEntry).where(WeatherEntry.date == day)
            ).scalar_one_or_none()
            if entry is None:
                return None
            return entry.to_record()
