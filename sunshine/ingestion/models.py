from __future__ import annotations

import datetime as dt
from typing import Optional

from sqlalchemy import BigInteger, Float, Index, Integer
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator

from .dates import from_epoch_millis, normalize_utc_day, to_epoch_millis
from .records import WeatherRecord


class EpochMillis(TypeDecorator):
    """Store aware datetimes as integer milliseconds since the Unix epoch.

    Naive datetimes are taken as UTC. Values read back are UTC-aware.
    """

    impl = BigInteger
    cache_ok = True

    def process_bind_param(self, value: Optional[dt.datetime], dialect) -> Optional[int]:
        if value is None:
            return None
        return to_epoch_millis(value)

    def process_result_value(self, value: Optional[int], dialect) -> Optional[dt.datetime]:
        if value is None:
            return None
        return from_epoch_millis(value)


class Base(DeclarativeBase):
    """SQLAlchemy declarative base for forecast storage."""


class WeatherEntry(Base):
    """Daily forecast row.

    ``date`` is the UTC midnight of the forecast day and carries a unique
    index; at most one row exists per day.
    """

    __tablename__ = "weather"
    __table_args__ = (Index("ix_weather_date", "date", unique=True),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    date: Mapped[dt.datetime] = mapped_column(EpochMillis, nullable=False)

    weather_icon_id: Mapped[int] = mapped_column(Integer, nullable=False)
    min: Mapped[float] = mapped_column(Float, nullable=False)
    max: Mapped[float] = mapped_column(Float, nullable=False)
    humidity: Mapped[float] = mapped_column(Float, nullable=False)
    pressure: Mapped[float] = mapped_column(Float, nullable=False)
    wind: Mapped[float] = mapped_column(Float, nullable=False)
    degrees: Mapped[float] = mapped_column(Float, nullable=False)

    def apply(self, record: WeatherRecord) -> None:
        """Overwrite every non-key column with the values of ``record``."""
        self.date = normalize_utc_day(record.date)
        self.weather_icon_id = record.condition_code
        self.min = record.min_temperature
        self.max = record.max_temperature
        self.humidity = record.humidity
        self.pressure = record.pressure
        self.wind = record.wind_speed
        self.degrees = record.wind_direction

    def to_record(self) -> WeatherRecord:
        return WeatherRecord(
            id=self.id,
            date=self.date,
            condition_code=self.weather_icon_id,
            min_temperature=self.min,
            max_temperature=self.max,
            humidity=self.humidity,
            pressure=self.pressure,
            wind_speed=self.wind,
            wind_direction=self.degrees,
        )

    def __repr__(self) -> str:
        return f"<WeatherEntry {self.id} {self.date} code={self.weather_icon_id}>"


def create_tables(engine) -> None:
    """Create the forecast table and its unique date index if they do not exist.

    Parameters
    ----------
    engine : sqlalchemy.Engine
        SQLAlchemy engine for the target database.
    """
    Base.metadata.create_all(bind=engine)
