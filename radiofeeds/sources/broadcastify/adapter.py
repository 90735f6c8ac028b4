from __future__ import annotations

import logging
from typing import Dict, List, Optional

import httpx

from ...config import AppConfig
from ...core.models import FeedObservation, FeedState
from ...errors import NetworkError
from ..base import ListingSource
from .capabilities import CONFIG_STATE_ABBREV, LISTING_URLS
from . import scrape


class BroadcastifySource(ListingSource):
    """Top-Feeds von Broadcastify, optional ergänzt um die Feeds eines Staates."""

    name = "broadcastify"
    TIMEOUT = 15.0

    def __init__(self, client: Optional[httpx.AsyncClient] = None, timeout: float = TIMEOUT) -> None:
        self._logger = logging.getLogger("radiofeeds.broadcastify")
        self.timeout = timeout
        self._client = client
        self._owns_client = client is None

    @classmethod
    def from_config(cls, config: AppConfig) -> "BroadcastifySource":
        return cls(timeout=config.misc.request_timeout)

    async def fetch(self, config: AppConfig) -> List[FeedObservation]:
        feeds = scrape.scrape_top(await self._download(LISTING_URLS["top"]))
        state_id = config.misc.state_feeds_id
        if state_id is not None:
            state = FeedState(id=state_id, abbrev=CONFIG_STATE_ABBREV)
            body = await self._download(LISTING_URLS["state"].format(state_id=state_id))
            feeds.extend(scrape.scrape_state(state, body))
        merged = _dedup_by_id(feeds)
        self._logger.info("scraped feeds=%s state_feeds_id=%s", len(merged), state_id)
        return merged

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
        self._client = None

    async def _download(self, url: str) -> bytes:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout, follow_redirects=True)
            self._owns_client = True
        try:
            response = await self._client.get(url)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise NetworkError(f"Download fehlgeschlagen {url}: {exc}") from exc
        return response.content


def _dedup_by_id(feeds: List[FeedObservation]) -> List[FeedObservation]:
    by_id: Dict[int, FeedObservation] = {}
    for feed in feeds:
        by_id.setdefault(feed.id, feed)
    return [by_id[feed_id] for feed_id in sorted(by_id)]
