from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Iterable, List, Optional

from .models import FeedObservation, SortOrder, SortType

if TYPE_CHECKING:
    from ..config import AppConfig, Weekday


def exceeds_average(listeners: int, average: float, threshold: float) -> bool:
    if average == 0:
        return listeners > 0
    return listeners > average * threshold


def filter_feeds(
    config: "AppConfig",
    hour: int,
    threshold: float,
    feeds: Iterable[FeedObservation],
    weekday: Optional["Weekday"] = None,
) -> List[FeedObservation]:
    """Behält Feeds, deren aktuelle Hörerzahl den Stundenmittelwert klar übersteigt."""
    minimum = config.misc.minimum_listeners
    result: List[FeedObservation] = []
    for feed in feeds:
        if feed.avg_listeners is None:
            continue
        if not config.includes(feed):
            continue
        if feed.listeners < minimum:
            continue
        feed_threshold = config.threshold_for(feed, threshold, weekday)
        if exceeds_average(feed.listeners, feed.avg_listeners.at(hour), feed_threshold):
            result.append(feed)
    return result


def _sort_key(sort_type: SortType, hour: int) -> Callable[[FeedObservation], float]:
    if sort_type == SortType.jump:
        return lambda feed: feed.jump(hour)
    return lambda feed: feed.listeners


def rank_feeds(
    order: SortOrder,
    feeds: Iterable[FeedObservation],
    hour: int = 0,
    sort_type: SortType = SortType.listeners,
) -> List[FeedObservation]:
    # sorted() bleibt auch mit reverse=True stabil
    return sorted(
        feeds,
        key=_sort_key(sort_type, hour),
        reverse=order == SortOrder.descending,
    )
