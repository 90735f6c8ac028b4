from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from .core.models import FeedObservation, SortOrder, SortType
from .errors import ConfigParseError

MIN_UPDATE_TIME_MIN = 5.0
DEFAULT_UPDATE_TIME_MIN = 6.0
DEFAULT_THRESHOLD_PCT = 30.0


def pct_to_multiplier(pct: float) -> float:
    return pct / 100.0 + 1.0


class Weekday(str, Enum):
    monday = "monday"
    tuesday = "tuesday"
    wednesday = "wednesday"
    thursday = "thursday"
    friday = "friday"
    saturday = "saturday"
    sunday = "sunday"

    @classmethod
    def from_index(cls, index: int) -> "Weekday":
        """Index wie ``datetime.weekday()`` (Montag = 0)."""
        return list(cls)[index]


class Spike(BaseModel):
    threshold_pct: float = Field(default=DEFAULT_THRESHOLD_PCT, ge=0, description="Nötiger Anstieg in Prozent.")

    def multiplier(self) -> float:
        return pct_to_multiplier(self.threshold_pct)


class WeekdaySpike(Spike):
    weekday: Weekday

    @field_validator("weekday", mode="before")
    def _lower(cls, value):
        return value.lower() if isinstance(value, str) else value


class FeedIdent(BaseModel):
    """Identifiziert Feeds über genau eines der Felder."""

    name: Optional[str] = None
    id: Optional[int] = None
    county: Optional[str] = None
    state_id: Optional[int] = None

    model_config = ConfigDict(extra="forbid")

    @model_validator(mode="after")
    def _exactly_one(self) -> "FeedIdent":
        given = [v for v in (self.name, self.id, self.county, self.state_id) if v is not None]
        if len(given) != 1:
            raise ValueError("FeedIdent braucht genau eines von name, id, county, state_id.")
        return self

    def matches(self, feed: FeedObservation) -> bool:
        if self.name is not None:
            return self.name == feed.name
        if self.id is not None:
            return self.id == feed.id
        if self.county is not None:
            return self.county == feed.county
        return feed.state is not None and self.state_id == feed.state.id


def _weekday_override(spikes: List[WeekdaySpike], weekday: Optional[Weekday]) -> Optional[Spike]:
    if weekday is None:
        return None
    for spike in spikes:
        if spike.weekday == weekday:
            return spike
    return None


class FeedSetting(BaseModel):
    ident: FeedIdent
    spike: Spike = Field(default_factory=Spike)
    weekday_spikes: List[WeekdaySpike] = Field(default_factory=list)


class MiscConfig(BaseModel):
    update_time: float = Field(
        default=DEFAULT_UPDATE_TIME_MIN, allow_inf_nan=False, description="Minuten zwischen zwei Abfragen."
    )
    request_timeout: float = Field(default=15.0, gt=0, allow_inf_nan=False, description="HTTP-Timeout in Sekunden.")
    minimum_listeners: int = Field(default=0, ge=0)
    state_feeds_id: Optional[int] = Field(default=None, ge=0)
    max_feeds: int = Field(default=10, ge=1)

    @field_validator("update_time")
    def _floor(cls, value: float) -> float:
        if value < MIN_UPDATE_TIME_MIN:
            logging.warning(
                "config update_time=%s below floor, using %s", value, MIN_UPDATE_TIME_MIN
            )
            return MIN_UPDATE_TIME_MIN
        return value


class SortingConfig(BaseModel):
    sort_by: SortType = SortType.listeners
    sort_order: SortOrder = SortOrder.descending

    @field_validator("sort_by", "sort_order", mode="before")
    def _lower(cls, value):
        return value.lower() if isinstance(value, str) else value


class TelegramConfig(BaseModel):
    token: str
    chat_id: str
    enabled: bool = True


class NotificationConfig(BaseModel):
    telegram: Optional[TelegramConfig] = None


class AppConfig(BaseModel):
    spike: Spike = Field(default_factory=Spike)
    weekday_spikes: List[WeekdaySpike] = Field(default_factory=list)
    feed_settings: List[FeedSetting] = Field(default_factory=list)
    misc: MiscConfig = Field(default_factory=MiscConfig)
    sorting: SortingConfig = Field(default_factory=SortingConfig)
    blacklist: List[FeedIdent] = Field(default_factory=list)
    whitelist: List[FeedIdent] = Field(default_factory=list)
    source: str = "broadcastify"
    notifications: NotificationConfig = Field(default_factory=NotificationConfig)

    model_config = ConfigDict(frozen=True)

    def includes(self, feed: FeedObservation) -> bool:
        if self.whitelist and not any(entry.matches(feed) for entry in self.whitelist):
            return False
        return not any(entry.matches(feed) for entry in self.blacklist)

    def feed_setting(self, feed: FeedObservation) -> Optional[FeedSetting]:
        for setting in self.feed_settings:
            if setting.ident.matches(feed):
                return setting
        return None

    def threshold_for(
        self, feed: FeedObservation, default: float, weekday: Optional[Weekday] = None
    ) -> float:
        """Multiplikator für ``feed``: Feed-Setting vor Wochentag vor ``default``."""
        setting = self.feed_setting(feed)
        if setting is not None:
            override = _weekday_override(setting.weekday_spikes, weekday) or setting.spike
            return override.multiplier()
        override = _weekday_override(self.weekday_spikes, weekday)
        if override is not None:
            return override.multiplier()
        return default


def load_config(path: str | Path) -> AppConfig:
    """Lädt die YAML-Konfiguration und validiert sie über Pydantic.

    Eine fehlende oder leere Datei ergibt die Standardwerte.
    """
    file_path = Path(path)
    if not file_path.exists():
        logging.info("config file %s not found, using defaults", file_path)
        return AppConfig()
    try:
        with file_path.open("r", encoding="utf-8") as handle:
            raw = yaml.safe_load(handle)
    except yaml.YAMLError as exc:
        raise ConfigParseError(f"YAML-Fehler in {file_path}: {exc}") from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigParseError(f"Konfig {file_path} nicht lesbar: {exc}") from exc
    if raw is None:
        return AppConfig()
    if not isinstance(raw, dict):
        raise ConfigParseError(f"Konfig {file_path} muss ein Mapping sein.")
    try:
        return AppConfig.model_validate(raw)
    except ValidationError as exc:
        raise ConfigParseError(f"Ungültige Konfig {file_path}: {exc}") from exc
