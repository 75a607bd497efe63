import datetime as dt
import os
import tempfile
import unittest
from dataclasses import replace

from sqlalchemy import func, inspect, select
from sqlalchemy.exc import IntegrityError

from sunshine.ingestion import WeatherDao, WeatherDatabase, WeatherRecord
from sunshine.ingestion.models import WeatherEntry

UTC = dt.timezone.utc


def _record(day: int, code: int = 800, high: float = 25.0) -> WeatherRecord:
    return WeatherRecord(
        date=dt.datetime(2024, 3, day, tzinfo=UTC),
        condition_code=code,
        min_temperature=14.0,
        max_temperature=high,
        humidity=55.0,
        pressure=1012.1,
        wind_speed=3.2,
        wind_direction=180.0,
    )


class TestWeatherDao(unittest.TestCase):
    def setUp(self) -> None:
        # Use a temporary sqlite file to avoid in-memory connection scoping issues
        self._tmpdir = tempfile.TemporaryDirectory()
        db_path = os.path.join(self._tmpdir.name, "weather.db")
        self.database = WeatherDatabase.open(f"sqlite:///{db_path}")
        self.dao = WeatherDao(self.database)

    def tearDown(self) -> None:
        self.database.close()
        self._tmpdir.cleanup()

    def _count(self) -> int:
        with self.database.session() as session:
            return int(session.execute(select(func.count()).select_from(WeatherEntry)).scalar_one())

    def test_schema_has_unique_date_index(self) -> None:
        indexes = inspect(self.database.engine).get_indexes("weather")
        by_name = {ix["name"]: ix for ix in indexes}
        self.assertIn("ix_weather_date", by_name)
        self.assertEqual(by_name["ix_weather_date"]["column_names"], ["date"])
        self.assertTrue(by_name["ix_weather_date"]["unique"])

    def test_round_trip(self) -> None:
        records = [_record(5, 800), _record(6, 500, 18.5), _record(7, 201, 12.0)]
        n = self.dao.bulk_upsert(records)
        self.assertEqual(n, 3)

        for r in records:
            out = self.dao.get_by_date(r.date)
            self.assertIsNotNone(out)
            self.assertIsNotNone(out.id)
            self.assertEqual(replace(out, id=None), r)
            self.assertEqual(out.date.tzinfo, UTC)

    def test_get_by_date_truncates_to_utc_day(self) -> None:
        self.dao.bulk_upsert([_record(5)])

        self.assertIsNotNone(self.dao.get_by_date(dt.date(2024, 3, 5)))
        self.assertIsNotNone(self.dao.get_by_date(dt.datetime(2024, 3, 5, 23, 59, tzinfo=UTC)))
        # 2024-03-05 20:00 UTC seen from UTC+5
        plus_five = dt.timezone(dt.timedelta(hours=5))
        self.assertIsNotNone(self.dao.get_by_date(dt.datetime(2024, 3, 6, 1, 0, tzinfo=plus_five)))

    def test_get_by_date_not_found(self) -> None:
        self.assertIsNone(self.dao.get_by_date(dt.date(2024, 3, 5)))
        self.dao.bulk_upsert([_record(5)])
        self.assertIsNone(self.dao.get_by_date(dt.date(2024, 3, 6)))

    def test_upsert_replaces_existing_day(self) -> None:
        self.dao.bulk_upsert([_record(5, 800, 25.0), _record(6, 800, 26.0)])
        first_id = self.dao.get_by_date(dt.date(2024, 3, 5)).id

        replacement = WeatherRecord(
            date=dt.datetime(2024, 3, 5, tzinfo=UTC),
            condition_code=501,
            min_temperature=9.0,
            max_temperature=11.0,
            humidity=90.0,
            pressure=998.0,
            wind_speed=12.5,
            wind_direction=270.0,
        )
        self.dao.bulk_upsert([replacement])

        self.assertEqual(self._count(), 2)
        out = self.dao.get_by_date(dt.date(2024, 3, 5))
        self.assertEqual(out.id, first_id)
        self.assertEqual(replace(out, id=None), replacement)
        # Other days untouched
        self.assertEqual(self.dao.get_by_date(dt.date(2024, 3, 6)).max_temperature, 26.0)

    def test_duplicate_day_in_one_batch_last_wins(self) -> None:
        n = self.dao.bulk_upsert([_record(5, 800, 25.0), _record(5, 600, 1.0)])
        self.assertEqual(n, 2)
        self.assertEqual(self._count(), 1)
        out = self.dao.get_by_date(dt.date(2024, 3, 5))
        self.assertEqual(out.condition_code, 600)
        self.assertEqual(out.max_temperature, 1.0)

    def test_repeated_refresh_is_idempotent(self) -> None:
        records = [_record(d) for d in range(5, 12)]
        self.dao.bulk_upsert(records)
        self.dao.bulk_upsert(records)
        self.assertEqual(self._count(), 7)

    def test_failed_batch_leaves_store_unchanged(self) -> None:
        self.dao.bulk_upsert([_record(5, 800, 25.0)])

        bad = replace(_record(7), condition_code=None)
        with self.assertRaises(IntegrityError):
            self.dao.bulk_upsert([_record(5, 300, 0.0), _record(6), bad])

        self.assertEqual(self._count(), 1)
        self.assertEqual(self.dao.get_by_date(dt.date(2024, 3, 5)).condition_code, 800)
        self.assertIsNone(self.dao.get_by_date(dt.date(2024, 3, 6)))

    def test_failure_while_iterating_rolls_back(self) -> None:
        def records():
            yield _record(5)
            yield _record(6)
            raise RuntimeError("transport dropped")

        with self.assertRaises(RuntimeError):
            self.dao.bulk_upsert(records())
        self.assertEqual(self._count(), 0)

    def test_closed_database_rejects_use(self) -> None:
        self.database.close()
        self.assertFalse(self.database.is_open)
        with self.assertRaises(RuntimeError):
            self.dao.get_by_date(dt.date(2024, 3, 5))
        with self.assertRaises(RuntimeError):
            self.dao.bulk_upsert([_record(5)])


if __name__ == "__main__":
    unittest.main()
