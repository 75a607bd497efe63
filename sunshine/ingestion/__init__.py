"""Ingestion subpackage.

Parses daily forecast responses into date-normalized records and stores them
in the local database, one row per UTC day.
"""

from .client import ForecastSource, OpenWeatherMapClient
from .database import WeatherDatabase
from .errors import MalformedInputError
from .parser import OpenWeatherJsonParser
from .records import WeatherRecord
from .storage import WeatherDao

__all__ = [
    "ForecastSource",
    "OpenWeatherMapClient",
    "WeatherDatabase",
    "MalformedInputError",
    "OpenWeatherJsonParser",
    "WeatherRecord",
    "WeatherDao",
]
