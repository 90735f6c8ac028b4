from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional, Sequence, Union

import pytest

from radiofeeds.config import AppConfig
from radiofeeds.core.models import AverageState, FeedObservation, FeedState
from radiofeeds.core.pipeline import ReportWriter
from radiofeeds.sources.base import ListingSource

# Freitag, 14 Uhr UTC
FIXED_NOW = datetime(2026, 10, 16, 14, 5, tzinfo=timezone.utc)


def make_feed(
    name: str,
    listeners: int,
    *,
    avg: Optional[float] = None,
    default_average: Optional[float] = None,
    feed_id: int = 0,
    county: str = "Cook",
    state_id: int = 14,
    alert: Optional[str] = None,
) -> FeedObservation:
    feed = FeedObservation(
        id=feed_id,
        name=name,
        listeners=listeners,
        default_average=float(listeners if default_average is None else default_average),
        state=FeedState(id=state_id, abbrev="IL"),
        county=county,
        alert=alert,
    )
    if avg is not None:
        feed = feed.with_average(AverageState.seeded(avg))
    return feed


class FakeSource(ListingSource):
    name = "fake"

    def __init__(self, snapshots: Sequence[Union[List[FeedObservation], Exception]]) -> None:
        self._snapshots = list(snapshots)
        self.calls = 0
        self.closed = False

    async def fetch(self, config) -> List[FeedObservation]:
        item = self._snapshots[min(self.calls, len(self._snapshots) - 1)]
        self.calls += 1
        if isinstance(item, Exception):
            raise item
        return list(item)

    async def close(self) -> None:
        self.closed = True


class RecordingWriter(ReportWriter):
    def __init__(self) -> None:
        super().__init__("recording")
        self.reports: List[List[FeedObservation]] = []
        self.errors: List[str] = []

    async def report(self, feeds, hour: int) -> None:
        self._record_report(len(feeds))
        self.reports.append(list(feeds))

    async def report_error(self, message: str) -> None:
        await super().report_error(message)
        self.errors.append(message)


@pytest.fixture
def config() -> AppConfig:
    return AppConfig()


@pytest.fixture
def writer() -> RecordingWriter:
    return RecordingWriter()
