"""Merge per-source pipeline results into one ordered event set."""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Optional

from ..calendar.models import EventsResponse, Occurrence, PipelineResult, PipelineState

logger = logging.getLogger(__name__)

NO_FEEDS_CONFIGURED = "No calendar feeds configured (set HEARTHBOARD_ICS_URLS)"


@dataclass(frozen=True)
class MergeOutcome:
    """Merged events plus the overall outcome of a refresh cycle."""

    events: tuple[Occurrence, ...] = ()
    error: Optional[str] = None
    warning: Optional[str] = None
    state: PipelineState = PipelineState.SUCCEEDED

    def to_response(self) -> EventsResponse:
        """Convert to the ingestion boundary model."""
        return EventsResponse(events=list(self.events), error=self.error, warning=self.warning)


def _failure_summary(failures: Sequence[PipelineResult]) -> str:
    return "; ".join(f"{result.source.display_name}: {result.error}" for result in failures)


def merge_pipeline_results(results: Sequence[PipelineResult]) -> MergeOutcome:
    """Merge per-source results.

    Events are ordered by start instant; ties across feeds go to the lower
    source index, ties within a feed keep expansion order.

    Args:
        results: One result per attempted source, in any order

    Returns:
        MergeOutcome with an error when every source failed (or none were
        configured) and a warning when only some failed
    """
    if not results:
        return MergeOutcome(error=NO_FEEDS_CONFIGURED, state=PipelineState.TOTALLY_FAILED)

    ordered = sorted(results, key=lambda result: result.source.source_index)
    failures = [result for result in ordered if not result.succeeded]

    if len(failures) == len(ordered):
        message = f"All {len(ordered)} calendar feeds failed: {_failure_summary(failures)}"
        logger.error(message)
        return MergeOutcome(error=message, state=PipelineState.TOTALLY_FAILED)

    keyed: list[tuple[tuple, Occurrence]] = []
    for result in ordered:
        if not result.succeeded:
            continue
        for position, occurrence in enumerate(result.occurrences):
            keyed.append(((occurrence.start, result.source.source_index, position), occurrence))
    keyed.sort(key=lambda item: item[0])
    events = tuple(occurrence for _, occurrence in keyed)

    if failures:
        warning = (
            f"{len(failures)} of {len(ordered)} calendar feeds failed: {_failure_summary(failures)}"
        )
        logger.warning(warning)
        return MergeOutcome(events=events, warning=warning, state=PipelineState.PARTIALLY_FAILED)

    return MergeOutcome(events=events, state=PipelineState.SUCCEEDED)
