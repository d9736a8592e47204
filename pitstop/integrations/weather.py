"""OpenWeatherMap client for the admin weather tools."""
from __future__ import annotations

import logging
from typing import Optional

import httpx

from pitstop.core.exceptions import ExternalServiceError
from pitstop.services.interfaces import WeatherReport

logger = logging.getLogger(__name__)

_CURRENT_URL = "https://api.openweathermap.org/data/2.5/weather"

# Returned when no API key is configured
STUB_WEATHER = WeatherReport(temp=-5.0, condition="Cloudy", wind_speed=3.2, precip_prob=0.1)

# The current-weather endpoint has no precipitation probability
DEFAULT_PRECIP_PROB = 0.2


class OpenWeatherClient:
    def __init__(
        self,
        api_key: Optional[str],
        lat: float,
        lon: float,
        *,
        timeout: float = 10.0,
    ) -> None:
        self._api_key = api_key
        self._lat = lat
        self._lon = lon
        self._timeout = timeout

    async def get_current_weather(self) -> WeatherReport:
        if not self._api_key:
            return STUB_WEATHER
        params = {"lat": self._lat, "lon": self._lon, "appid": self._api_key, "units": "metric"}
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.get(_CURRENT_URL, params=params)
                resp.raise_for_status()
        except httpx.HTTPError as exc:
            raise ExternalServiceError("weather request failed", details={"service": "openweathermap"}, cause=exc) from exc

        try:
            raw = resp.json()
            conditions = raw.get("weather") or [{}]
            return WeatherReport(
                temp=float(raw["main"]["temp"]),
                condition=str(conditions[0].get("main") or "Unknown"),
                wind_speed=float((raw.get("wind") or {}).get("speed") or 0.0),
                precip_prob=DEFAULT_PRECIP_PROB,
            )
        except (AttributeError, IndexError, KeyError, TypeError, ValueError) as exc:
            raise ExternalServiceError("unexpected weather payload", cause=exc) from exc

    async def get_forecast(self, date: str) -> WeatherReport:
        """Current conditions labelled as a forecast; no forecast endpoint is used."""
        current = await self.get_current_weather()
        return WeatherReport(
            temp=current.temp,
            condition=f"Forecast: {current.condition}",
            wind_speed=current.wind_speed,
            precip_prob=current.precip_prob,
        )
