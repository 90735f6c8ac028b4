from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone, tzinfo
from enum import Enum
from pathlib import Path
from typing import Awaitable, Callable, List, Mapping, Optional

from .config import AppConfig, Weekday, load_config
from .core.average import DEFAULT_SMOOTHING, resolve_previous, update
from .core.models import AverageState, FeedObservation, SortOrder, SortType
from .core.pipeline import ReportWriter
from .core.selection import filter_feeds, rank_feeds
from .errors import ConfigParseError, FetchError
from .pipelines.console_writer import ConsoleWriter
from .pipelines.telegram_writer import TelegramWriter
from .registry import registry
from .sources.base import ListingSource
from .store import AverageStore, merge_averages, save_averages

Clock = Callable[[], datetime]
Sleeper = Callable[[float], Awaitable[None]]


class LoopState(str, Enum):
    idle = "idle"
    fetching = "fetching"
    updating = "updating"
    filtering = "filtering"
    reporting = "reporting"
    persisting = "persisting"
    sleeping = "sleeping"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def build_writers(config: AppConfig) -> List[ReportWriter]:
    writers: List[ReportWriter] = [ConsoleWriter()]
    telegram = config.notifications.telegram
    if telegram is not None and telegram.enabled:
        writers.append(TelegramWriter(telegram.token, telegram.chat_id))
    return writers


def update_feeds(
    feeds: List[FeedObservation],
    averages: Mapping[str, AverageState],
    hour: int,
    smoothing: int = DEFAULT_SMOOTHING,
) -> List[FeedObservation]:
    updated: List[FeedObservation] = []
    for feed in feeds:
        previous = resolve_previous(feed.name, averages, feed.default_average)
        updated.append(feed.with_average(update(hour, smoothing, feed.listeners, previous)))
    return updated


class PollLoop:
    """Verkabelt Konfiguration, Quelle, Averages und Ausgaben zu einer Endlosschleife.

    Ein Zyklus: Konfig neu laden, Listing holen, Mittelwerte fortschreiben,
    filtern, sortieren, ausgeben, Averages speichern. Danach wird
    ``update_interval_s`` geschlafen.
    """

    def __init__(
        self,
        config: AppConfig,
        *,
        config_path: str | Path,
        averages_path: str | Path,
        source: Optional[ListingSource] = None,
        writers: Optional[List[ReportWriter]] = None,
        threshold: Optional[float] = None,
        update_time_min: Optional[float] = None,
        sort_order: Optional[SortOrder] = None,
        sort_type: Optional[SortType] = None,
        smoothing: int = DEFAULT_SMOOTHING,
        clock: Clock = _utcnow,
        sleep: Sleeper = asyncio.sleep,
        weekday_tz: Optional[tzinfo] = None,
    ) -> None:
        self.config = config
        self.config_path = Path(config_path)
        self.averages_path = Path(averages_path)
        self.source = source or registry.create(config)
        self.writers = writers if writers is not None else build_writers(config)
        self.threshold = threshold
        self.update_time_min = update_time_min
        self.sort_order = sort_order
        self.sort_type = sort_type
        self.smoothing = smoothing
        self.state = LoopState.idle
        self._clock = clock
        self._sleep = sleep
        self._weekday_tz = weekday_tz
        self._cycles = 0
        self._skipped_cycles = 0
        self._last_reported = 0

    def effective_threshold(self) -> float:
        if self.threshold is not None:
            return self.threshold
        return self.config.spike.multiplier()

    def update_interval_s(self) -> float:
        minutes = self.update_time_min if self.update_time_min is not None else self.config.misc.update_time
        return minutes * 60.0

    async def run_cycle(self, averages: AverageStore) -> AverageStore:
        self._cycles += 1
        config = self._reload_config()
        now = self._clock()
        hour = now.hour
        # Stunden-Buckets laufen in UTC, Wochentags-Spikes nach Ortszeit.
        weekday = Weekday.from_index(now.astimezone(self._weekday_tz).weekday())

        self.state = LoopState.fetching
        try:
            feeds = await self.source.fetch(config)
        except FetchError as exc:
            self._skipped_cycles += 1
            logging.warning("cycle=%s fetch failed, keeping previous averages: %s", self._cycles, exc)
            await self._report_error(str(exc))
            return averages

        self.state = LoopState.updating
        updated = update_feeds(feeds, averages, hour, self.smoothing)

        self.state = LoopState.filtering
        selected = filter_feeds(config, hour, self.effective_threshold(), updated, weekday)
        ranked = rank_feeds(
            self.sort_order or config.sorting.sort_order,
            selected,
            hour,
            self.sort_type or config.sorting.sort_by,
        )[: config.misc.max_feeds]

        self.state = LoopState.reporting
        await self._report(ranked, hour)
        self._last_reported = len(ranked)

        self.state = LoopState.persisting
        new_averages = merge_averages(averages, updated)
        try:
            save_averages(self.averages_path, new_averages)
        except OSError as exc:
            logging.error("saving averages to %s failed: %s", self.averages_path, exc)

        logging.info(
            "cycle=%s hour=%s fetched=%s surprising=%s reported=%s stored=%s",
            self._cycles,
            hour,
            len(feeds),
            len(selected),
            len(ranked),
            len(new_averages),
        )
        return new_averages

    async def run_forever(self, averages: AverageStore, cycles: Optional[int] = None) -> AverageStore:
        done = 0
        try:
            while cycles is None or done < cycles:
                averages = await self.run_cycle(averages)
                done += 1
                if cycles is not None and done >= cycles:
                    break
                self.state = LoopState.sleeping
                await self._sleep(self.update_interval_s())
        finally:
            self.state = LoopState.idle
        return averages

    async def stop(self) -> None:
        await self.source.close()
        for writer in self.writers:
            await writer.close()

    def stats(self) -> dict:
        return {
            "cycles": self._cycles,
            "skipped_cycles": self._skipped_cycles,
            "last_reported": self._last_reported,
            "writers": {writer.name: writer.stats() for writer in self.writers},
        }

    def _reload_config(self) -> AppConfig:
        try:
            self.config = load_config(self.config_path)
        except ConfigParseError as exc:
            logging.warning("config reload failed, keeping previous snapshot: %s", exc)
        return self.config

    async def _report(self, feeds: List[FeedObservation], hour: int) -> None:
        for writer in self.writers:
            try:
                await writer.report(feeds, hour)
            except Exception as exc:
                logging.warning("report failed writer=%s error=%s", writer.name, exc)

    async def _report_error(self, message: str) -> None:
        for writer in self.writers:
            try:
                await writer.report_error(message)
            except Exception as exc:
                logging.warning("error report failed writer=%s error=%s", writer.name, exc)
