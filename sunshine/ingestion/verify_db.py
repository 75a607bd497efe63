from __future__ import annotations

import argparse
import datetime as dt
import sys
from typing import List, Optional

import pandas as pd
from sqlalchemy import select

from sunshine.config import Settings
from sunshine.logging import init_logging

from .database import WeatherDatabase
from .models import WeatherEntry
from .storage import WeatherDao

COLUMNS = [
    "id",
    "date",
    "condition_code",
    "min_temperature",
    "max_temperature",
    "humidity",
    "pressure",
    "wind_speed",
    "wind_direction",
]


def fetch_forecast_table(database: WeatherDatabase) -> pd.DataFrame:
    """Return every stored forecast day as a DataFrame ordered by date."""
    with database.session() as session:
        rows = session.execute(select(WeatherEntry).order_by(WeatherEntry.date)).scalars().all()
        records = [row.to_record() for row in rows]

    return pd.DataFrame([[getattr(r, c) for c in COLUMNS] for r in records], columns=COLUMNS)


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Show the forecast days held in the local store")
    p.add_argument("--db-url", default=None, help="SQLAlchemy URL, e.g., sqlite:///weather.db (default: settings)")
    p.add_argument("--date", type=dt.date.fromisoformat, default=None, help="Only show the record for this UTC day (YYYY-MM-DD)")
    return p.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = _parse_args(argv)
    settings = Settings()
    init_logging(settings.log_level, command="sunshine-verify-db")
    db_url = args.db_url or settings.database_url

    with WeatherDatabase.open(db_url) as database:
        if args.date:
            day = args.date
            record = WeatherDao(database).get_by_date(day)
            if record is None:
                print(f"No forecast stored for {day.isoformat()}.")
                return 1
            print(record)
            return 0

        table = fetch_forecast_table(database)

    print(f"Total forecast days: {len(table)}")
    if table.empty:
        print("No forecast stored.")
        return 0

    # Print a compact table
    with pd.option_context("display.max_rows", None, "display.width", 120):
        print(table.to_string(index=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())
