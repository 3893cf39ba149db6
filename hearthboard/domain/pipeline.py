"""Ingestion pipeline: fetch every feed concurrently, parse, expand and merge.

Usage:
    pipeline = EventsPipeline(FeedFetcher(config), FeedParser(config.max_expansions, tz))
    outcome = await pipeline.run(CalendarSource.from_urls(config.ics_urls), config.horizon_days)
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Sequence
from datetime import datetime, timedelta
from typing import Optional, Protocol

from ..calendar.datetime_utils import now_utc
from ..calendar.exceptions import (
    FeedConfigurationError,
    FeedFetchError,
    FeedParseError,
    FeedValidationError,
)
from ..calendar.models import (
    CalendarSource,
    FailureKind,
    Occurrence,
    PipelineResult,
    PipelineState,
    RawFeedPayload,
)
from ..core.health_tracker import HealthTracker
from ..core.monitoring_logging import get_logger
from .merger import MergeOutcome, merge_pipeline_results

logger = logging.getLogger(__name__)


class Fetcher(Protocol):
    async def fetch(self, source: CalendarSource) -> RawFeedPayload: ...


class Parser(Protocol):
    def parse(
        self, payload: RawFeedPayload, window_start: datetime, window_end: datetime
    ) -> list[Occurrence]: ...


def _classify(error: BaseException) -> FailureKind:
    if isinstance(error, FeedParseError):
        return FailureKind.PARSE
    if isinstance(error, FeedValidationError):
        return FailureKind.VALIDATION
    if isinstance(error, (FeedFetchError, FeedConfigurationError)):
        return FailureKind.FETCH
    return FailureKind.UNEXPECTED


class EventsPipeline:
    """Runs one refresh cycle across all configured feeds.

    Each source gets its own task; the merge happens only after every task
    has finished. A failure in one source never cancels the others.
    """

    def __init__(
        self,
        fetcher: Fetcher,
        parser: Parser,
        clock: Callable[[], datetime] = now_utc,
        health_tracker: Optional[HealthTracker] = None,
    ) -> None:
        self.fetcher = fetcher
        self.parser = parser
        self.clock = clock
        self.health_tracker = health_tracker
        self.state = PipelineState.IDLE
        self.last_outcome: Optional[MergeOutcome] = None
        self.monitor = get_logger("pipeline")

    @property
    def last_state(self) -> Optional[PipelineState]:
        """Terminal state of the most recent run, or None before the first run."""
        return self.last_outcome.state if self.last_outcome is not None else None

    async def _process_source(
        self, source: CalendarSource, window_start: datetime, window_end: datetime
    ) -> PipelineResult:
        try:
            payload = await self.fetcher.fetch(source)
            occurrences = self.parser.parse(payload, window_start, window_end)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            kind = _classify(e)
            if kind is FailureKind.UNEXPECTED:
                logger.exception("Unexpected error processing %s", source.display_name)
            else:
                logger.warning("%s failed (%s): %s", source.display_name, kind.value, e)
            return PipelineResult.failed(source, str(e) or type(e).__name__, kind)

        logger.debug("%s produced %d occurrences", source.display_name, len(occurrences))
        return PipelineResult.ok(source, occurrences)

    async def run(self, sources: Sequence[CalendarSource], horizon_days: int) -> MergeOutcome:
        """Run fetch, parse and merge for all sources.

        Args:
            sources: Feeds to ingest, with stable indices
            horizon_days: Window length from now

        Returns:
            The merged outcome; this method does not raise for feed failures
        """
        window_start = self.clock()
        window_end = window_start + timedelta(days=horizon_days)

        self.state = PipelineState.FETCHING
        if self.health_tracker is not None:
            self.health_tracker.record_refresh_attempt()

        tasks = [
            asyncio.create_task(self._process_source(source, window_start, window_end))
            for source in sources
        ]
        try:
            gathered = await asyncio.gather(*tasks, return_exceptions=True)
        except asyncio.CancelledError:
            self.state = PipelineState.IDLE
            raise

        results: list[PipelineResult] = []
        for source, item in zip(sources, gathered):
            if isinstance(item, BaseException):
                logger.error("Task for %s raised: %s", source.display_name, item)
                results.append(
                    PipelineResult.failed(source, str(item) or type(item).__name__, FailureKind.UNEXPECTED)
                )
            else:
                results.append(item)

        outcome = merge_pipeline_results(results)
        self.state = outcome.state
        self.last_outcome = outcome
        self._record(outcome, len(sources))
        self.state = PipelineState.IDLE
        return outcome

    def _record(self, outcome: MergeOutcome, source_count: int) -> None:
        details = {
            "sources": source_count,
            "events": len(outcome.events),
            "state": outcome.state.value,
        }
        if outcome.state is PipelineState.TOTALLY_FAILED:
            self.monitor.error("pipeline.run.failed", outcome.error or "refresh failed", details=details)
        elif outcome.state is PipelineState.PARTIALLY_FAILED:
            self.monitor.warning("pipeline.run.partial", outcome.warning or "partial refresh", details=details)
        else:
            self.monitor.info("pipeline.run.complete", "Refresh complete", details=details)

        if self.health_tracker is not None:
            self.health_tracker.record_refresh_outcome(
                outcome.state.value, len(outcome.events), outcome.error or outcome.warning
            )
