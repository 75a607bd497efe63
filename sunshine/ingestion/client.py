from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from sunshine.config import Settings


class ForecastSource(Protocol):
    """Anything that can hand back a raw daily forecast response body."""

    def fetch_daily_forecast(self, location: str) -> str:
        """Fetch the daily forecast for ``location``.

        Returns
        -------
        str
            The response body, unparsed. Upstream error payloads (for example
            ``{"cod": "404", "message": "city not found"}``) are returned as-is
            so the parser can classify them.
        """
        ...


@dataclass
class OpenWeatherMapClient:
    """OpenWeatherMap implementation of `ForecastSource` using the REST API.

    Notes and assumptions:
    - Uses the daily forecast endpoint in JSON mode.
    - Retries are applied for transient HTTP errors (429/5xx) with exponential backoff.
    - 4xx bodies are returned rather than raised; only 5xx after retries raises.
    """

    base_url: str = "https://api.openweathermap.org/data/2.5/forecast/daily"
    api_key: Optional[str] = None
    units: str = "metric"
    days: int = 14
    timeout_connect: float = 5.0
    timeout_read: float = 15.0
    max_retries: int = 3
    backoff_factor: float = 0.5

    @classmethod
    def from_settings(cls, settings: Settings) -> "OpenWeatherMapClient":
        return cls(
            base_url=settings.owm_base_url,
            api_key=settings.owm_api_key,
            units=settings.units,
            days=settings.forecast_days,
            timeout_connect=settings.http_timeout_connect,
            timeout_read=settings.http_timeout_read,
            max_retries=settings.http_max_retries,
        )

    def _session(self) -> requests.Session:
        s = requests.Session()
        retries = Retry(
            total=self.max_retries,
            backoff_factor=self.backoff_factor,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["GET"],
            raise_on_status=False,
        )
        adapter = HTTPAdapter(max_retries=retries)
        s.mount("https://", adapter)
        s.mount("http://", adapter)
        return s

    def fetch_daily_forecast(self, location: str) -> str:
        params = {
            "q": location,
            "mode": "json",
            "units": self.units,
            "cnt": self.days,
        }
        if self.api_key:
            params["appid"] = self.api_key

        timeout = (self.timeout_connect, self.timeout_read)
        with self._session() as s:
            resp = s.get(self.base_url, params=params, timeout=timeout)
            if resp.status_code >= 500:
                resp.raise_for_status()
            return resp.text
