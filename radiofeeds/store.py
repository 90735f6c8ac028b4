from __future__ import annotations

"""
CSV-Ablage der Stunden-Mittelwerte.

Format: eine Zeile pro Feed, ``name,v0,...,v23``, ohne Header.
Geschrieben wird immer die komplette Datei ueber eine Temp-Datei im
selben Verzeichnis plus ``os.replace``.
"""

import contextlib
import csv
import logging
import math
import os
import tempfile
from pathlib import Path
from typing import Dict, Iterable, Mapping

from .core.models import HOURS_PER_DAY, AverageState, FeedObservation
from .errors import CorruptStore

AverageStore = Dict[str, AverageState]


def _parse_row(path: Path, line: int, row: list[str]) -> tuple[str, AverageState]:
    if len(row) != HOURS_PER_DAY + 1:
        raise CorruptStore(str(path), line, f"{len(row)} Spalten statt {HOURS_PER_DAY + 1}")
    name = row[0].strip()
    if not name:
        raise CorruptStore(str(path), line, "leerer Feed-Name")
    try:
        values = tuple(float(value) for value in row[1:])
    except ValueError as exc:
        raise CorruptStore(str(path), line, f"kein Zahlenwert ({exc})") from exc
    if not all(math.isfinite(value) for value in values):
        raise CorruptStore(str(path), line, "nicht-endlicher Wert")
    return name, AverageState(hour_buckets=values)


def load_averages(path: str | Path) -> AverageStore:
    file_path = Path(path)
    if not file_path.exists():
        logging.info("averages file %s not found, starting empty", file_path)
        return {}
    averages: AverageStore = {}
    line = 0
    try:
        with file_path.open("r", encoding="utf-8", newline="") as handle:
            for line, row in enumerate(csv.reader(handle), start=1):
                if not row:
                    continue
                name, state = _parse_row(file_path, line, row)
                if name in averages:
                    raise CorruptStore(str(file_path), line, f"doppelter Feed {name!r}")
                averages[name] = state
    except (UnicodeDecodeError, csv.Error) as exc:
        raise CorruptStore(str(file_path), line + 1, f"nicht lesbar ({exc})") from exc
    logging.info("loaded averages feeds=%s path=%s", len(averages), file_path)
    return averages


def save_averages(path: str | Path, averages: Mapping[str, AverageState]) -> None:
    file_path = Path(path)
    directory = file_path.parent
    directory.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{file_path.name}.", suffix=".tmp", dir=directory)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as handle:
            writer = csv.writer(handle)
            for name in sorted(averages):
                writer.writerow([name, *(repr(value) for value in averages[name].hour_buckets)])
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_name, file_path)
    except BaseException:
        with contextlib.suppress(FileNotFoundError):
            os.unlink(tmp_name)
        raise


def merge_averages(previous: Mapping[str, AverageState], feeds: Iterable[FeedObservation]) -> AverageStore:
    """Faltet die aktualisierten Feeds über den vorherigen Stand."""
    merged: AverageStore = dict(previous)
    for feed in feeds:
        if feed.avg_listeners is not None:
            merged[feed.name] = feed.avg_listeners
    return merged
