from __future__ import annotations

import sys
from typing import Optional, Sequence, TextIO

from ..core.models import FeedObservation
from ..core.pipeline import ReportWriter


def format_feed(rank: int, feed: FeedObservation, hour: int) -> str:
    line = (
        f"{rank}. {feed.name} [{feed.state_abbrev} / {feed.county}] "
        f"listeners={feed.listeners} avg={feed.average_at(hour):.1f} (^{int(feed.jump(hour))})"
    )
    if feed.alert:
        line += f"\n   Alert: {feed.alert}"
    return line


class ConsoleWriter(ReportWriter):
    def __init__(self, stream: Optional[TextIO] = None) -> None:
        super().__init__("console")
        self._stream = stream

    @property
    def stream(self) -> TextIO:
        return self._stream if self._stream is not None else sys.stdout

    async def report(self, feeds: Sequence[FeedObservation], hour: int) -> None:
        self._record_report(len(feeds))
        if not feeds:
            return
        for rank, feed in enumerate(feeds, start=1):
            print(format_feed(rank, feed, hour), file=self.stream)
        print("", file=self.stream, flush=True)
