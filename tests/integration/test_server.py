"""In-process tests of the aiohttp application built by hearthboard.api.server."""

from collections.abc import AsyncIterator, Callable
from zoneinfo import ZoneInfo

import httpx
import pytest
from aiohttp import test_utils

from hearthboard.api.server import make_app
from hearthboard.calendar.fetcher import FeedFetcher
from hearthboard.calendar.parser import FeedParser
from hearthboard.core.config_manager import ServerConfig
from hearthboard.core.health_tracker import HealthTracker
from hearthboard.domain.merger import NO_FEEDS_CONFIGURED
from hearthboard.domain.pipeline import EventsPipeline
from hearthboard.weather.models import CurrentConditions, DailyRange, WeatherReport
from tests.fixtures.ics_samples import SINGLE_EVENT_ICS, WEEKLY_MONDAY_ICS

pytestmark = pytest.mark.integration

FEEDS = {
    "/family.ics": httpx.Response(200, text=SINGLE_EVENT_ICS),
    "/school.ics": httpx.Response(200, text=WEEKLY_MONDAY_ICS),
    "/broken.ics": httpx.Response(500, text="internal error"),
}


def feed_url(name: str) -> str:
    return f"https://calendars.example.com/{name}.ics"


def serve_feeds(request: httpx.Request) -> httpx.Response:
    return FEEDS.get(request.url.path, httpx.Response(404))


class StaticWeather:
    def __init__(self, report: WeatherReport | None = None, error: Exception | None = None) -> None:
        self.report = report
        self.error = error

    async def get_weather(self) -> WeatherReport:
        if self.error is not None:
            raise self.error
        assert self.report is not None
        return self.report


class ConfigSource:
    """Config loader whose feed list can change between requests."""

    def __init__(self, *urls: str) -> None:
        self.urls = list(urls)
        self.loads = 0

    def __call__(self) -> ServerConfig:
        self.loads += 1
        return ServerConfig(
            ics_urls=list(self.urls),
            fetch_attempts=2,
            retry_backoff=0.0,
            fetch_timeout=5.0,
            timezone="America/Chicago",
        )


@pytest.fixture
def health_tracker() -> HealthTracker:
    return HealthTracker()


@pytest.fixture
async def feed_http() -> AsyncIterator[httpx.AsyncClient]:
    async with httpx.AsyncClient(transport=httpx.MockTransport(serve_feeds)) as client:
        yield client


@pytest.fixture
def pipeline_factory(feed_http, fixed_now, health_tracker) -> Callable[[ServerConfig], EventsPipeline]:
    def _factory(config: ServerConfig) -> EventsPipeline:
        parser = FeedParser(config.max_expansions, default_timezone=ZoneInfo("America/Chicago"))
        return EventsPipeline(
            FeedFetcher(config, client=feed_http),
            parser,
            clock=lambda: fixed_now,
            health_tracker=health_tracker,
        )

    return _factory


@pytest.fixture
async def make_client(pipeline_factory, health_tracker):
    clients: list[test_utils.TestClient] = []

    async def _make(config_source: ConfigSource, weather: StaticWeather | None = None) -> test_utils.TestClient:
        app = make_app(
            ServerConfig(),
            config_loader=config_source,
            pipeline_factory=pipeline_factory,
            weather_client=weather or StaticWeather(WeatherReport.unavailable("not configured")),
            health_tracker=health_tracker,
        )
        client = test_utils.TestClient(test_utils.TestServer(app))
        await client.start_server()
        clients.append(client)
        return client

    yield _make

    for client in clients:
        await client.close()


class TestEventsEndpoint:
    @pytest.mark.asyncio
    async def test_events_when_all_feeds_ok_then_merged_sorted_events(self, make_client) -> None:
        client = await make_client(ConfigSource(feed_url("family"), feed_url("school")))

        response = await client.get("/api/events")
        body = await response.json()

        assert response.status == 200
        assert [e["title"] for e in body["events"]] == [
            "Swim Practice",
            "Dentist",
            "Swim Practice",
            "Swim Practice",
            "Swim Practice",
        ]
        assert body["events"][0]["start"] == "2024-06-03T12:30:00Z"
        assert body["events"][1]["sourceIndex"] == 0
        assert "error" not in body and "warning" not in body

    @pytest.mark.asyncio
    async def test_events_when_one_feed_fails_then_warning_and_partial_events(self, make_client) -> None:
        client = await make_client(ConfigSource(feed_url("family"), feed_url("broken")))

        response = await client.get("/api/events")
        body = await response.json()

        assert response.status == 200
        assert [e["title"] for e in body["events"]] == ["Dentist"]
        assert body["warning"] == "1 of 2 calendar feeds failed: feed #2: failed after 2 attempts: HTTP 500"
        assert "broken" not in body["warning"]

    @pytest.mark.asyncio
    async def test_events_when_every_feed_fails_then_error_body_and_critical_health(
        self, make_client
    ) -> None:
        client = await make_client(ConfigSource(feed_url("broken"), feed_url("missing")))

        response = await client.get("/api/events")
        body = await response.json()
        health = await client.get("/api/health")

        assert response.status == 200
        assert body["events"] == []
        assert body["error"].startswith("All 2 calendar feeds failed")
        assert health.status == 503
        assert (await health.json())["status"] == "critical"

    @pytest.mark.asyncio
    async def test_events_when_no_feeds_configured_then_error_body(self, make_client) -> None:
        client = await make_client(ConfigSource())

        body = await (await client.get("/api/events")).json()

        assert body == {"events": [], "error": NO_FEEDS_CONFIGURED}

    @pytest.mark.asyncio
    async def test_events_when_feed_list_changes_then_next_request_uses_it(self, make_client) -> None:
        config_source = ConfigSource(feed_url("family"))
        client = await make_client(config_source)

        first = await (await client.get("/api/events")).json()
        config_source.urls.append(feed_url("school"))
        second = await (await client.get("/api/events")).json()

        assert len(first["events"]) == 1
        assert len(second["events"]) > 1
        assert config_source.loads == 2

    @pytest.mark.asyncio
    async def test_events_when_config_loader_raises_then_error_body_with_200(self, make_client) -> None:
        def broken_loader() -> ServerConfig:
            raise RuntimeError("config unavailable")

        client = await make_client(broken_loader)

        response = await client.get("/api/events")

        assert response.status == 200
        assert await response.json() == {"events": [], "error": "config unavailable"}


class TestWeatherAndHealth:
    @pytest.mark.asyncio
    async def test_weather_when_available_then_report_body(self, make_client) -> None:
        report = WeatherReport(
            current=CurrentConditions(temp=72, condition="Clear", icon="☀️"),
            today=DailyRange(high=80, low=61),
        )
        client = await make_client(ConfigSource(), weather=StaticWeather(report))

        body = await (await client.get("/api/weather")).json()

        assert body == {
            "current": {"temp": 72, "condition": "Clear", "icon": "☀️"},
            "today": {"high": 80, "low": 61},
        }

    @pytest.mark.asyncio
    async def test_weather_when_provider_raises_then_unavailable_with_200(self, make_client) -> None:
        client = await make_client(ConfigSource(), weather=StaticWeather(error=RuntimeError("boom")))

        response = await client.get("/api/weather")
        body = await response.json()

        assert response.status == 200
        assert body["current"]["temp"] is None
        assert body["error"] == "boom"

    @pytest.mark.asyncio
    async def test_health_when_no_refresh_yet_then_starting(self, make_client) -> None:
        client = await make_client(ConfigSource())

        response = await client.get("/api/health")

        assert response.status == 200
        assert (await response.json())["status"] == "starting"

    @pytest.mark.asyncio
    async def test_request_id_when_supplied_then_echoed(self, make_client) -> None:
        client = await make_client(ConfigSource())

        supplied = await client.get("/api/health", headers={"X-Request-ID": "kiosk-42"})
        generated = await client.get("/api/health")

        assert supplied.headers["X-Request-ID"] == "kiosk-42"
        assert generated.headers["X-Request-ID"]
