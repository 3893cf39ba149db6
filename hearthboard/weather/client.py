"""Open-Meteo weather client.

No API key is needed. The location comes from a ZIP code (geocoded once per
process) or from explicit latitude/longitude.
"""

import logging
from typing import Any, Optional

import httpx

from ..core.http_client import get_shared_client
from ..core.monitoring_logging import get_logger
from ..core.retry import RetryExhaustedError, RetryPolicy, describe_error, linear_backoff
from .models import UNKNOWN_ICON, CurrentConditions, DailyRange, WeatherReport

logger = logging.getLogger(__name__)

GEOCODING_URL = "https://geocoding-api.open-meteo.com/v1/search"
FORECAST_URL = "https://api.open-meteo.com/v1/forecast"

# WMO weather interpretation codes -> (description, icon)
WEATHER_CODES: dict[int, tuple[str, str]] = {
    0: ("Clear", "☀️"),
    1: ("Mainly Clear", "🌤️"),
    2: ("Partly Cloudy", "⛅"),
    3: ("Overcast", "☁️"),
    45: ("Foggy", "🌫️"),
    48: ("Foggy", "🌫️"),
    51: ("Light Drizzle", "🌦️"),
    53: ("Drizzle", "🌦️"),
    55: ("Heavy Drizzle", "🌧️"),
    61: ("Light Rain", "🌧️"),
    63: ("Rain", "🌧️"),
    65: ("Heavy Rain", "⛈️"),
    71: ("Light Snow", "🌨️"),
    73: ("Snow", "❄️"),
    75: ("Heavy Snow", "❄️"),
    77: ("Snow Grains", "🌨️"),
    80: ("Light Showers", "🌦️"),
    81: ("Showers", "🌧️"),
    82: ("Heavy Showers", "⛈️"),
    85: ("Light Snow Showers", "🌨️"),
    86: ("Snow Showers", "❄️"),
    95: ("Thunderstorm", "⛈️"),
    96: ("Thunderstorm with Hail", "⛈️"),
    99: ("Thunderstorm with Hail", "⛈️"),
}


class WeatherError(Exception):
    """Weather lookup failed."""


def describe_weather_code(code: Optional[int]) -> tuple[str, str]:
    """Map a WMO code to (description, icon); unknown codes map to "Unknown"."""
    return WEATHER_CODES.get(code or 0, ("Unknown", UNKNOWN_ICON))


def _round(value: Any) -> Optional[int]:
    if value is None:
        return None
    return int(round(float(value)))


def parse_forecast(data: dict[str, Any]) -> WeatherReport:
    """Build a report from an Open-Meteo forecast response.

    Raises:
        WeatherError: If required fields are missing
    """
    try:
        current = data["current"]
        daily = data["daily"]
        condition, icon = describe_weather_code(current.get("weather_code"))
        return WeatherReport(
            current=CurrentConditions(
                temp=_round(current["temperature_2m"]), condition=condition, icon=icon
            ),
            today=DailyRange(
                high=_round(daily["temperature_2m_max"][0]),
                low=_round(daily["temperature_2m_min"][0]),
            ),
        )
    except (KeyError, IndexError, TypeError, ValueError) as e:
        raise WeatherError(f"unexpected forecast response: {e}") from e


class WeatherClient:
    """Fetches current conditions and today's range from Open-Meteo."""

    def __init__(self, settings: Any, client: Optional[httpx.AsyncClient] = None) -> None:
        """Initialize the weather client.

        Args:
            settings: Object exposing zip_code, weather_lat and weather_lon
            client: Optional HTTP client; the shared pooled client is used when omitted
        """
        self.settings = settings
        self._client = client
        self._geocode_cache: dict[str, tuple[str, str]] = {}
        self.policy = RetryPolicy(
            max_attempts=2,
            backoff=linear_backoff(1.0),
            attempt_timeout=10.0,
            is_retryable=lambda e: not isinstance(e, WeatherError),
        )
        self.monitor = get_logger("weather")

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is not None:
            return self._client
        return await get_shared_client("weather")

    async def _get_json(self, url: str, params: dict[str, Any]) -> Any:
        client = await self._get_client()
        response = await client.get(url, params=params)
        response.raise_for_status()
        return response.json()

    async def _resolve_location(self) -> tuple[str, str]:
        zip_code = getattr(self.settings, "zip_code", None)
        if not zip_code:
            return str(self.settings.weather_lat), str(self.settings.weather_lon)

        cached = self._geocode_cache.get(zip_code)
        if cached is not None:
            return cached

        data = await self.policy.run(
            lambda: self._get_json(
                GEOCODING_URL, {"name": zip_code, "count": 1, "language": "en", "format": "json"}
            ),
            description="geocoding",
        )
        results = data.get("results") if isinstance(data, dict) else None
        if not results:
            raise WeatherError(f"Could not find location for zip code: {zip_code}")

        try:
            location = (str(results[0]["latitude"]), str(results[0]["longitude"]))
        except (KeyError, TypeError) as e:
            raise WeatherError(f"Geocoding result for zip code {zip_code} has no coordinates") from e
        self._geocode_cache[zip_code] = location
        logger.debug("Geocoded ZIP %s to %s,%s", zip_code, *location)
        return location

    async def get_weather(self) -> WeatherReport:
        """Return the current weather; never raises for lookup failures."""
        try:
            lat, lon = await self._resolve_location()
            data = await self.policy.run(
                lambda: self._get_json(
                    FORECAST_URL,
                    {
                        "latitude": lat,
                        "longitude": lon,
                        "current": "temperature_2m,weather_code",
                        "daily": "temperature_2m_max,temperature_2m_min,weather_code",
                        "temperature_unit": "fahrenheit",
                        "timezone": "auto",
                        "forecast_days": 1,
                    },
                ),
                description="forecast",
            )
            report = parse_forecast(data)
        except RetryExhaustedError as e:
            return self._unavailable(describe_error(e.last_error))
        except (WeatherError, httpx.HTTPError, ValueError, KeyError, TypeError) as e:
            return self._unavailable(describe_error(e))

        self.monitor.debug(
            "weather.fetch.success",
            "Weather updated",
            details={"temp": report.current.temp, "condition": report.current.condition},
        )
        return report

    def _unavailable(self, error: str) -> WeatherReport:
        logger.warning("Weather fetch error: %s", error)
        self.monitor.warning("weather.fetch.failed", "Weather unavailable", details={"error": error})
        return WeatherReport.unavailable(error)
