from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Sequence

from .models import FeedObservation


class ReportWriter(ABC):
    """Gemeinsame Schnittstelle für Konsolen- und Telegram-Ausgabe."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._reports = 0
        self._feeds_reported = 0
        self._errors_reported = 0

    @abstractmethod
    async def report(self, feeds: Sequence[FeedObservation], hour: int) -> None:
        raise NotImplementedError

    async def report_error(self, message: str) -> None:
        self._errors_reported += 1

    async def close(self) -> None:
        return None

    def _record_report(self, feeds: int) -> None:
        self._reports += 1
        self._feeds_reported += feeds

    def stats(self) -> dict:
        return {
            "reports": self._reports,
            "feeds": self._feeds_reported,
            "errors": self._errors_reported,
        }
