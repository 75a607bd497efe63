from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from typing import Optional

from .dates import to_epoch_millis


@dataclass(frozen=True)
class WeatherRecord:
    """One forecasted day.

    ``date`` is a UTC-aware datetime at midnight and is unique in the store.
    ``id`` is ``None`` until the storage gateway has persisted the record.

    Units follow the upstream request (``units=metric`` gives Celsius and m/s):
    - humidity: percent (0-100 expected, not enforced)
    - pressure: hectopascals
    - wind_speed: non-negative expected, not enforced
    - wind_direction: degrees (0-360 expected, not enforced)
    """

    date: dt.datetime
    condition_code: int
    min_temperature: float
    max_temperature: float
    humidity: float
    pressure: float
    wind_speed: float
    wind_direction: float
    id: Optional[int] = None

    @property
    def date_millis(self) -> int:
        return to_epoch_millis(self.date)
