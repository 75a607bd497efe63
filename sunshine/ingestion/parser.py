from __future__ import annotations

import datetime as dt
import json
from dataclasses import dataclass
from http import HTTPStatus
from numbers import Integral, Real
from typing import Any, Dict, List, Optional

import structlog

from .dates import DAY_IN_MILLIS, Clock, normalized_utc_today, utc_now
from .errors import MalformedInputError
from .records import WeatherRecord

log = structlog.get_logger(__name__)

# Each day's forecast is an element of the "list" array
OWM_LIST = "list"

OWM_PRESSURE = "pressure"
OWM_HUMIDITY = "humidity"
OWM_WINDSPEED = "speed"
OWM_WIND_DIRECTION = "deg"

# Temperatures are children of the "temp" object
OWM_TEMPERATURE = "temp"
OWM_MAX = "max"
OWM_MIN = "min"

OWM_WEATHER = "weather"
OWM_WEATHER_ID = "id"

OWM_MESSAGE_CODE = "cod"


def _require(obj: Dict[str, Any], key: str, where: str) -> Any:
    if key not in obj:
        raise MalformedInputError(f"{where}: missing required field '{key}'")
    return obj[key]


def _as_float(obj: Dict[str, Any], key: str, where: str) -> float:
    value = _require(obj, key, where)
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, Real):
        raise MalformedInputError(f"{where}: field '{key}' must be a number, got {type(value).__name__}")
    return float(value)


def _as_int(obj: Dict[str, Any], key: str, where: str) -> int:
    value = _require(obj, key, where)
    if isinstance(value, bool) or not isinstance(value, Integral):
        raise MalformedInputError(f"{where}: field '{key}' must be an integer, got {type(value).__name__}")
    return int(value)


def _as_object(obj: Dict[str, Any], key: str, where: str) -> Dict[str, Any]:
    value = _require(obj, key, where)
    if not isinstance(value, dict):
        raise MalformedInputError(f"{where}: field '{key}' must be an object")
    return value


def _as_list(obj: Dict[str, Any], key: str, where: str) -> List[Any]:
    value = _require(obj, key, where)
    if not isinstance(value, list):
        raise MalformedInputError(f"{where}: field '{key}' must be an array")
    return value


def load_payload(raw_json: str) -> Dict[str, Any]:
    """Decode ``raw_json`` and check that the root is a JSON object."""
    try:
        payload = json.loads(raw_json)
    except (TypeError, ValueError, RecursionError) as e:
        raise MalformedInputError(f"response is not valid JSON: {e}") from e
    if not isinstance(payload, dict):
        raise MalformedInputError(f"response root must be a JSON object, got {type(payload).__name__}")
    return payload


def upstream_status(payload: Dict[str, Any]) -> Optional[int]:
    """Return the ``cod`` status carried by the payload, or None when absent.

    The upstream API sends ``cod`` either as a number or as a numeric string
    (``"200"``, ``"404"``) depending on the endpoint. Integral floats such as
    ``200.0`` are read as their integer value.
    """
    if OWM_MESSAGE_CODE not in payload:
        return None
    raw = payload[OWM_MESSAGE_CODE]
    if isinstance(raw, bool):
        raise MalformedInputError(f"field '{OWM_MESSAGE_CODE}' must be an integer status")
    if isinstance(raw, Integral):
        return int(raw)
    if isinstance(raw, Real):
        # 200.0 reads as 200; 200.5 is not a status
        if not float(raw).is_integer():
            raise MalformedInputError(f"field '{OWM_MESSAGE_CODE}' is not an integer status: {raw!r}")
        return int(raw)
    if isinstance(raw, str):
        try:
            return int(raw.strip())
        except ValueError as e:
            raise MalformedInputError(f"field '{OWM_MESSAGE_CODE}' is not an integer status: {raw!r}") from e
    raise MalformedInputError(f"field '{OWM_MESSAGE_CODE}' must be an integer status")


def has_http_error(payload: Dict[str, Any]) -> bool:
    status = upstream_status(payload)
    if status is None or status == HTTPStatus.OK:
        return False
    if status == HTTPStatus.NOT_FOUND:
        # Server probably down
        log.warning("forecast_upstream_error", status=status, reason="upstream_unavailable",
                    message=payload.get("message"))
    else:
        # Location invalid
        log.warning("forecast_upstream_error", status=status, reason="invalid_request",
                    message=payload.get("message"))
    return True


@dataclass
class OpenWeatherJsonParser:
    """Parser for OpenWeatherMap daily forecast JSON.

    ``clock`` supplies the current time; it is read once per ``parse`` call to
    anchor every day of the forecast on the same normalized UTC day.
    """

    clock: Clock = utc_now

    def parse(self, raw_json: str) -> Optional[List[WeatherRecord]]:
        """Parse a forecast response into daily records.

        Parameters
        ----------
        raw_json : str
            Response body from the upstream forecast API.

        Returns
        -------
        Optional[List[WeatherRecord]]
            Records in input order, today first. ``None`` when the response
            carries an upstream error status; callers keep whatever forecast is
            already stored.

        Raises
        ------
        MalformedInputError
            If the body is not a JSON object or any day lacks a required field.
        """
        payload = load_payload(raw_json)

        if has_http_error(payload):
            return None

        records = self.from_json(payload)
        log.info("forecast_parsed", days=len(records))
        return records

    def from_json(self, payload: Dict[str, Any]) -> List[WeatherRecord]:
        days = _as_list(payload, OWM_LIST, "response")

        # Upstream returns days in order with the first day being the current
        # day, so day index alone gives a normalized UTC date for every entry.
        normalized_utc_start_day = normalized_utc_today(self.clock)

        records: List[WeatherRecord] = []
        for i, day_forecast in enumerate(days):
            where = f"{OWM_LIST}[{i}]"
            if not isinstance(day_forecast, dict):
                raise MalformedInputError(f"{where}: day forecast must be an object")
            date = normalized_utc_start_day + dt.timedelta(milliseconds=DAY_IN_MILLIS * i)
            records.append(self.day_from_json(day_forecast, date, where))
        return records

    @staticmethod
    def day_from_json(day_forecast: Dict[str, Any], date: dt.datetime, where: str = OWM_LIST) -> WeatherRecord:
        # Datetime values embedded in the element are ignored; the list is
        # assumed to be in day order (not guaranteed by the upstream API).
        pressure = _as_float(day_forecast, OWM_PRESSURE, where)
        humidity = _as_float(day_forecast, OWM_HUMIDITY, where)
        wind_speed = _as_float(day_forecast, OWM_WINDSPEED, where)
        wind_direction = _as_float(day_forecast, OWM_WIND_DIRECTION, where)

        weather = _as_list(day_forecast, OWM_WEATHER, where)
        if not weather:
            raise MalformedInputError(f"{where}: field '{OWM_WEATHER}' must not be empty")
        weather_object = weather[0]
        if not isinstance(weather_object, dict):
            raise MalformedInputError(f"{where}.{OWM_WEATHER}[0]: must be an object")
        weather_id = _as_int(weather_object, OWM_WEATHER_ID, f"{where}.{OWM_WEATHER}[0]")

        temperature = _as_object(day_forecast, OWM_TEMPERATURE, where)
        high = _as_float(temperature, OWM_MAX, f"{where}.{OWM_TEMPERATURE}")
        low = _as_float(temperature, OWM_MIN, f"{where}.{OWM_TEMPERATURE}")

        return WeatherRecord(
            date=date,
            condition_code=weather_id,
            min_temperature=low,
            max_temperature=high,
            humidity=humidity,
            pressure=pressure,
            wind_speed=wind_speed,
            wind_direction=wind_direction,
        )
