from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Dict, List

if TYPE_CHECKING:
    from .config import AppConfig
    from .sources.base import ListingSource


SourceFactory = Callable[["AppConfig"], "ListingSource"]


class SourceRegistry:
    """Listing-Quellen nach Namen; gebaut wird jeweils aus der aktuellen Konfig."""

    def __init__(self) -> None:
        self._factories: Dict[str, SourceFactory] = {}

    def register(self, source: str, factory: SourceFactory) -> None:
        key = source.strip().lower()
        if key in self._factories:
            raise ValueError(f"Listing-Quelle {source!r} ist schon eingetragen.")
        self._factories[key] = factory

    def create(self, config: AppConfig) -> ListingSource:
        """Baut die in ``config.source`` genannte Quelle."""
        key = config.source.strip().lower()
        try:
            factory = self._factories[key]
        except KeyError:
            known = ", ".join(self.names()) or "-"
            raise KeyError(f"Unbekannte Listing-Quelle {config.source!r} (bekannt: {known})") from None
        return factory(config)

    def names(self) -> List[str]:
        return sorted(self._factories)


registry = SourceRegistry()
