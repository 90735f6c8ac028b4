from __future__ import annotations

import logging
import time
from typing import Optional, Sequence

import httpx

from ..core.models import FeedObservation
from ..core.pipeline import ReportWriter
from ..sources.broadcastify.capabilities import FEED_URL


def build_update_message(index: int, total: int, feed: FeedObservation, hour: int) -> str:
    title = f"{feed.state_abbrev} - Broadcastify Update ({index} of {total})"
    alert = f"\nAlert: {feed.alert}" if feed.alert else ""
    return (
        f"{title}\n"
        f"Name: {feed.name}\n"
        f"Listeners: {feed.listeners} (^{int(feed.jump(hour))}){alert}\n"
        f"Link: {FEED_URL.format(feed_id=feed.id)}"
    )


class TelegramWriter(ReportWriter):
    API_URL = "https://api.telegram.org/bot{token}/sendMessage"

    def __init__(self, token: str, chat_id: str, client: Optional[httpx.AsyncClient] = None) -> None:
        super().__init__("telegram")
        self._token = token
        self._chat_id = chat_id
        self._client = client or httpx.AsyncClient(timeout=10)
        self._send_errors = 0

    async def report(self, feeds: Sequence[FeedObservation], hour: int) -> None:
        self._record_report(len(feeds))
        total = len(feeds)
        for index, feed in enumerate(feeds, start=1):
            await self._send(build_update_message(index, total, feed, hour))

    async def report_error(self, message: str) -> None:
        await super().report_error(message)
        await self._send(f"Broadcastify Update Error\n{message}")

    async def _send(self, message: str) -> None:
        timestamp = time.strftime("%Y-%m-%d %H:%M:%S")
        payload = {"chat_id": self._chat_id, "text": f"{timestamp} | {message}"}
        try:
            response = await self._client.post(self.API_URL.format(token=self._token), json=payload)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            self._send_errors += 1
            logging.warning("Telegram send failed: %s", exc)

    async def close(self) -> None:
        await self._client.aclose()

    def stats(self) -> dict:
        base = super().stats()
        base["send_errors"] = self._send_errors
        return base
