from __future__ import annotations

import math
from enum import Enum
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

HOURS_PER_DAY = 24


class SortOrder(str, Enum):
    ascending = "ascending"
    descending = "descending"


class SortType(str, Enum):
    listeners = "listeners"
    jump = "jump"


class AverageState(BaseModel):
    """Gleitender Mittelwert der Hörerzahl, ein Slot pro UTC-Stunde."""

    hour_buckets: Tuple[float, ...]

    model_config = ConfigDict(frozen=True)

    @field_validator("hour_buckets")
    def _exactly_24(cls, value: Tuple[float, ...]) -> Tuple[float, ...]:
        if len(value) != HOURS_PER_DAY:
            raise ValueError(f"hour_buckets braucht genau {HOURS_PER_DAY} Werte, nicht {len(value)}.")
        if not all(math.isfinite(v) for v in value):
            raise ValueError("hour_buckets enthält nicht-endliche Werte.")
        return value

    @classmethod
    def seeded(cls, value: float = 0.0) -> "AverageState":
        return cls(hour_buckets=(float(value),) * HOURS_PER_DAY)

    def at(self, hour: int) -> float:
        return self.hour_buckets[hour]

    def with_hour(self, hour: int, value: float) -> "AverageState":
        buckets = list(self.hour_buckets)
        buckets[hour] = float(value)
        return AverageState(hour_buckets=tuple(buckets))


class FeedState(BaseModel):
    id: int = Field(..., ge=0)
    abbrev: str

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)


class FeedObservation(BaseModel):
    """Ein Feed aus dem Listing, wie er in einem Zyklus beobachtet wurde."""

    name: str
    listeners: int = Field(..., ge=0)
    default_average: float = Field(..., ge=0)
    id: int = Field(default=0, ge=0)
    state: Optional[FeedState] = None
    county: str = "Numerous"
    alert: Optional[str] = None
    avg_listeners: Optional[AverageState] = None

    model_config = ConfigDict(
        frozen=True,
        str_strip_whitespace=True,
    )

    @field_validator("name")
    def _non_empty(cls, value: str) -> str:
        if not value:
            raise ValueError("Feed-Name darf nicht leer sein.")
        return value

    def with_average(self, average: AverageState) -> "FeedObservation":
        return self.model_copy(update={"avg_listeners": average})

    def average_at(self, hour: int) -> float:
        if self.avg_listeners is None:
            return self.default_average
        return self.avg_listeners.at(hour)

    def jump(self, hour: int) -> float:
        return self.listeners - self.average_at(hour)

    @property
    def state_abbrev(self) -> str:
        return self.state.abbrev if self.state else "??"
