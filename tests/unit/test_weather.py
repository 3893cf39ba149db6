"""Unit tests for hearthboard.weather."""

from dataclasses import replace
from types import SimpleNamespace

import httpx
import pytest

from hearthboard.weather.client import (
    WeatherClient,
    WeatherError,
    describe_weather_code,
    parse_forecast,
)
from hearthboard.weather.models import UNKNOWN_ICON, WeatherReport

pytestmark = [pytest.mark.unit, pytest.mark.fast]

FORECAST = {
    "current": {"temperature_2m": 71.6, "weather_code": 2},
    "daily": {"temperature_2m_max": [78.4], "temperature_2m_min": [60.5], "weather_code": [2]},
}

GEOCODE = {"results": [{"name": "Chicago", "latitude": 41.88, "longitude": -87.63}]}


async def no_sleep(_delay: float) -> None:
    return None


class OpenMeteoStub:
    """MockTransport handler imitating the geocoding and forecast endpoints."""

    def __init__(self, forecast=None, geocode=None, forecast_status: int = 200) -> None:
        self.forecast = FORECAST if forecast is None else forecast
        self.geocode = GEOCODE if geocode is None else geocode
        self.forecast_status = forecast_status
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.host.startswith("geocoding"):
            return httpx.Response(200, json=self.geocode)
        return httpx.Response(self.forecast_status, json=self.forecast)

    def hosts(self) -> list[str]:
        return [request.url.host for request in self.requests]


def make_weather(stub: OpenMeteoStub, **settings) -> tuple[WeatherClient, httpx.AsyncClient]:
    defaults = {"zip_code": None, "weather_lat": "37.7749", "weather_lon": "-122.4194"}
    defaults.update(settings)
    http = httpx.AsyncClient(transport=httpx.MockTransport(stub))
    weather = WeatherClient(SimpleNamespace(**defaults), client=http)
    weather.policy = replace(weather.policy, sleep=no_sleep)
    return weather, http


class TestWeatherCodes:
    def test_describe_weather_code_when_known_then_description_and_icon(self) -> None:
        assert describe_weather_code(3) == ("Overcast", "☁️")

    def test_describe_weather_code_when_unknown_then_unknown_thermometer(self) -> None:
        assert describe_weather_code(42) == ("Unknown", UNKNOWN_ICON)

    def test_describe_weather_code_when_missing_then_treated_as_clear(self) -> None:
        assert describe_weather_code(None)[0] == "Clear"


class TestParseForecast:
    def test_parse_forecast_when_complete_then_rounded_fahrenheit(self) -> None:
        report = parse_forecast(FORECAST)

        assert report.current.temp == 72
        assert report.current.condition == "Partly Cloudy"
        assert report.today.high == 78
        assert report.today.low == 60
        assert report.available

    def test_parse_forecast_when_daily_missing_then_weather_error(self) -> None:
        with pytest.raises(WeatherError):
            parse_forecast({"current": {"temperature_2m": 50}})


class TestWeatherClient:
    @pytest.mark.asyncio
    async def test_get_weather_when_lat_lon_configured_then_no_geocoding(self) -> None:
        stub = OpenMeteoStub()
        weather, http = make_weather(stub)

        async with http:
            report = await weather.get_weather()

        assert report.current.temp == 72
        assert stub.hosts() == ["api.open-meteo.com"]
        params = stub.requests[0].url.params
        assert params["latitude"] == "37.7749"
        assert params["temperature_unit"] == "fahrenheit"

    @pytest.mark.asyncio
    async def test_get_weather_when_zip_configured_then_geocoded_once(self) -> None:
        stub = OpenMeteoStub()
        weather, http = make_weather(stub, zip_code="60601")

        async with http:
            await weather.get_weather()
            await weather.get_weather()

        assert stub.hosts().count("geocoding-api.open-meteo.com") == 1
        assert stub.hosts().count("api.open-meteo.com") == 2
        assert stub.requests[-1].url.params["latitude"] == "41.88"

    @pytest.mark.asyncio
    async def test_get_weather_when_zip_unknown_then_unavailable_report(self) -> None:
        stub = OpenMeteoStub(geocode={"results": []})
        weather, http = make_weather(stub, zip_code="00000")

        async with http:
            report = await weather.get_weather()

        assert not report.available
        assert report.current.temp is None
        assert report.error == "Could not find location for zip code: 00000"

    @pytest.mark.asyncio
    async def test_get_weather_when_geocode_lacks_coordinates_then_unavailable_report(self) -> None:
        stub = OpenMeteoStub(geocode={"results": [{"name": "Nowhere"}]})
        weather, http = make_weather(stub, zip_code="99999")

        async with http:
            report = await weather.get_weather()

        assert not report.available
        assert report.error == "Geocoding result for zip code 99999 has no coordinates"
        assert "api.open-meteo.com" not in stub.hosts()

    @pytest.mark.asyncio
    async def test_get_weather_when_forecast_errors_then_retried_and_unavailable(self) -> None:
        stub = OpenMeteoStub(forecast_status=503, forecast={"reason": "busy"})
        weather, http = make_weather(stub)

        async with http:
            report = await weather.get_weather()

        assert len(stub.requests) == 2
        assert report.error is not None
        assert "503" in report.error
        body = report.to_api_dict()
        assert body["current"]["temp"] is None
        assert body["today"] == {"high": None, "low": None}


class TestWeatherReport:
    def test_to_api_dict_when_available_then_no_error_key(self) -> None:
        body = parse_forecast(FORECAST).to_api_dict()

        assert "error" not in body
        assert body["current"] == {"temp": 72, "condition": "Partly Cloudy", "icon": "⛅"}

    def test_from_api_dict_when_round_tripped_then_equal(self) -> None:
        report = WeatherReport.unavailable("timed out")
        assert WeatherReport.from_api_dict(report.to_api_dict()) == report
