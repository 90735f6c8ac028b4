from __future__ import annotations

from typing import Mapping

from ..errors import InvalidArgument
from .models import HOURS_PER_DAY, AverageState

DEFAULT_SMOOTHING = 5


def update(hour: int, smoothing: int, observed: int, previous: AverageState) -> AverageState:
    """Zieht den Slot ``hour`` um 1/``smoothing`` des Abstands Richtung ``observed``.

    Alle anderen Slots bleiben unverändert; ``previous`` wird nicht verändert.
    """
    if smoothing <= 0:
        raise InvalidArgument(f"smoothing muss > 0 sein, nicht {smoothing}.")
    if not 0 <= hour < HOURS_PER_DAY:
        raise InvalidArgument(f"hour muss zwischen 0 und 23 liegen, nicht {hour}.")
    current = previous.at(hour)
    return previous.with_hour(hour, current + (observed - current) / smoothing)


def resolve_previous(name: str, averages: Mapping[str, AverageState], default: float) -> AverageState:
    existing = averages.get(name)
    if existing is not None:
        return existing
    return AverageState.seeded(default)
