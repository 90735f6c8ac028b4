from .average import DEFAULT_SMOOTHING, resolve_previous, update
from .models import AverageState, FeedObservation, FeedState, SortOrder, SortType
from .pipeline import ReportWriter
from .selection import filter_feeds, rank_feeds

__all__ = [
    "AverageState",
    "DEFAULT_SMOOTHING",
    "FeedObservation",
    "FeedState",
    "ReportWriter",
    "SortOrder",
    "SortType",
    "filter_feeds",
    "rank_feeds",
    "resolve_previous",
    "update",
]
