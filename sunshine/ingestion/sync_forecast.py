from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Optional

import requests
import structlog

from sunshine.config import Settings
from sunshine.logging import init_logging

from .client import ForecastSource, OpenWeatherMapClient
from .database import WeatherDatabase
from .errors import MalformedInputError
from .parser import OpenWeatherJsonParser
from .storage import WeatherDao

log = structlog.get_logger(__name__)


class FileForecastSource:
    """Serve a forecast response previously saved to disk."""

    def __init__(self, path: str) -> None:
        self.path = Path(path)

    def fetch_daily_forecast(self, location: str) -> str:
        return self.path.read_text(encoding="utf-8")


def sync_forecast(
    source: ForecastSource,
    parser: OpenWeatherJsonParser,
    dao: WeatherDao,
    location: str,
) -> Optional[int]:
    """Fetch, parse and store one forecast refresh.

    Parameters
    ----------
    source : ForecastSource
        Supplies the raw response body.
    parser : OpenWeatherJsonParser
        Converts the body into daily records.
    dao : WeatherDao
        Destination store.
    location : str
        Location passed through to ``source``.

    Returns
    -------
    Optional[int]
        Number of rows written, or None when the upstream reported an error
        status. The store is not touched in that case.
    """
    raw = source.fetch_daily_forecast(location)
    records = parser.parse(raw)
    if records is None:
        log.warning("forecast_sync_no_result", location=location)
        return None
    return dao.bulk_upsert(records)


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Fetch the daily forecast and upsert it into the local store")
    p.add_argument("--db-url", default=None, help="SQLAlchemy URL, e.g., sqlite:///weather.db (default: settings)")
    p.add_argument("--location", default=None, help="Location query, e.g., 'London,UK' (default: settings)")
    p.add_argument(
        "--json-file",
        default="",
        help="Ingest a saved forecast response from this file instead of calling the API",
    )
    return p.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = _parse_args(argv)
    settings = Settings()
    init_logging(settings.log_level, command="sunshine-sync")

    db_url = args.db_url or settings.database_url
    location = args.location or settings.location
    source: ForecastSource
    if args.json_file:
        source = FileForecastSource(args.json_file)
    else:
        source = OpenWeatherMapClient.from_settings(settings)

    with WeatherDatabase.open(db_url) as database:
        dao = WeatherDao(database)
        try:
            n = sync_forecast(source, OpenWeatherJsonParser(), dao, location)
        except (MalformedInputError, requests.RequestException, OSError) as e:
            log.error("forecast_sync_failed", location=location, error=str(e))
            return 1

    if n is None:
        print(f"[{location}] Upstream reported an error; stored forecast left unchanged.")
    else:
        print(f"[{location}] Stored {n} forecast days.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
