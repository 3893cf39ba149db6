"""Unit tests for kiosk_ui.renderer."""

import io
from datetime import date, datetime
from zoneinfo import ZoneInfo

import pytest

from hearthboard.calendar.models import Occurrence
from hearthboard.domain.day_buckets import BucketEntry
from hearthboard.weather.models import CurrentConditions, DailyRange, WeatherReport
from kiosk_ui.renderer import ConsoleRenderer, format_entry, format_view
from kiosk_ui.state import DashboardView, DisplayState
from tests.kiosk.doubles import NOW, make_occurrence

pytestmark = [pytest.mark.unit, pytest.mark.fast]

CHICAGO = ZoneInfo("America/Chicago")


class TestFormatEntry:
    def test_format_entry_when_timed_then_local_range_title_and_location(self) -> None:
        occurrence = Occurrence(
            start=datetime(2024, 6, 3, 7, 30, tzinfo=CHICAGO),
            end=datetime(2024, 6, 3, 8, 30, tzinfo=CHICAGO),
            title="Swim Practice",
            location="Y Pool",
        )

        line = format_entry(BucketEntry(occurrence), CHICAGO)

        assert "07:30-08:30" in line
        assert line.endswith("Swim Practice @ Y Pool")

    def test_format_entry_when_all_day_multi_day_then_marked(self) -> None:
        occurrence = Occurrence(
            start=datetime(2024, 6, 1, tzinfo=CHICAGO),
            end=datetime(2024, 6, 3, tzinfo=CHICAGO),
            title="Grandma visiting",
        )

        line = format_entry(BucketEntry(occurrence, is_multi_day=True), CHICAGO)

        assert "All day" in line
        assert line.endswith("(multi-day)")

    def test_format_entry_when_single_all_day_then_not_tagged_multi_day(self) -> None:
        occurrence = Occurrence(
            start=datetime(2024, 6, 2, tzinfo=CHICAGO),
            end=datetime(2024, 6, 3, tzinfo=CHICAGO),
            title="Farmers Market",
        )

        line = format_entry(BucketEntry(occurrence, is_multi_day=True), CHICAGO)

        assert "All day" in line
        assert line.endswith("Farmers Market")


class TestFormatView:
    def test_format_view_when_weather_and_error_notice_then_both_shown(self) -> None:
        state = (
            DisplayState()
            .with_events((make_occurrence("Soccer"),), NOW)
            .with_failure("HTTP 500")
            .with_weather(
                WeatherReport(
                    current=CurrentConditions(temp=72, condition="Clear", icon="☀️"),
                    today=DailyRange(high=80, low=61),
                )
            )
        )
        view = DashboardView.build(state, date(2024, 6, 1), CHICAGO, NOW)

        text = format_view(view, CHICAGO)

        assert "☀️ 72°F Clear  H:80 L:61" in text
        assert "[!] HTTP 500" in text
        assert "Sat Jun 01 (today)" in text
        assert "Soccer" in text
        assert "No events" in text
        assert "1 events, updated 12:00" in text

    def test_format_view_when_weather_unavailable_then_placeholders(self) -> None:
        state = DisplayState().with_weather(WeatherReport.unavailable("timed out"))
        view = DashboardView.build(state, date(2024, 6, 1), CHICAGO, NOW)

        text = format_view(view, CHICAGO)

        assert "-- Unavailable  H:-- L:--" in text
        assert "updated never" in text


class TestConsoleRenderer:
    def test_render_when_called_then_writes_and_counts(self) -> None:
        stream = io.StringIO()
        renderer = ConsoleRenderer(CHICAGO, stream=stream)

        renderer.render(DashboardView.build(DisplayState(), date(2024, 6, 1), CHICAGO, NOW))

        assert renderer.render_count == 1
        assert "No events" in stream.getvalue()
