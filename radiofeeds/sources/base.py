from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, List

from ..core.models import FeedObservation

if TYPE_CHECKING:
    from ..config import AppConfig


class ListingSource(ABC):
    """Basisklasse für alle Quellen eines Feed-Listings."""

    name = "base"

    @abstractmethod
    async def fetch(self, config: "AppConfig") -> List[FeedObservation]:
        """Lädt einen Snapshot aller Feeds; wirft NetworkError oder ParseError."""

    async def close(self) -> None:
        """Gibt offene Verbindungen frei."""
