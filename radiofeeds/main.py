from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import List, Optional

if __package__ in (None, ""):
    # Als Skript ausgeführt: Projektwurzel zum Pfad hinzufügen.
    sys.path.append(str(Path(__file__).resolve().parent.parent))
    from radiofeeds import PollLoop, load_averages, load_config  # type: ignore
    from radiofeeds.config import MIN_UPDATE_TIME_MIN, pct_to_multiplier  # type: ignore
    from radiofeeds.core.models import SortOrder, SortType  # type: ignore
    from radiofeeds.errors import ConfigParseError, CorruptStore, InvalidArgument  # type: ignore
else:
    from . import PollLoop, load_averages, load_config
    from .config import MIN_UPDATE_TIME_MIN, pct_to_multiplier
    from .core.models import SortOrder, SortType
    from .errors import ConfigParseError, CorruptStore, InvalidArgument

DEFAULT_CONFIG_PATH = Path("config.yml")
DEFAULT_AVERAGES_PATH = Path("averages.csv")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="radiofeeds",
        description="Meldet Radio-Feeds, deren Hörerzahl deutlich über dem Stundenmittel liegt.",
    )
    parser.add_argument(
        "-t",
        "--threshold",
        type=float,
        default=None,
        help="Nötiger Anstieg gegenüber dem Mittelwert in Prozent (Standard: 30).",
    )
    parser.add_argument(
        "-u",
        "--update-time",
        type=float,
        default=None,
        help=f"Minuten zwischen zwei Abfragen, mindestens {MIN_UPDATE_TIME_MIN:g} (Standard: 6).",
    )
    parser.add_argument(
        "-s",
        "--sort",
        type=str.lower,
        choices=[order.value for order in SortOrder],
        default=None,
        help="Sortierrichtung (Standard: descending).",
    )
    parser.add_argument(
        "--sort-by",
        type=str.lower,
        choices=[sort_type.value for sort_type in SortType],
        default=None,
        help="Sortierschlüssel (Standard: listeners).",
    )
    parser.add_argument("--config", default=str(DEFAULT_CONFIG_PATH), help="Pfad zur config.yml")
    parser.add_argument("--averages", default=str(DEFAULT_AVERAGES_PATH), help="Pfad zur averages.csv")
    parser.add_argument("--source", default=None, help="Listing-Quelle (Standard aus der Konfig).")
    return parser


def validate_update_time(minutes: Optional[float]) -> Optional[float]:
    if minutes is not None and minutes < MIN_UPDATE_TIME_MIN:
        raise InvalidArgument(f"update-time muss mindestens {MIN_UPDATE_TIME_MIN:g} Minuten sein.")
    return minutes


def _configure_logging() -> None:
    log_dir = Path(os.getenv("RADIOFEEDS_LOG_DIR", "logs"))
    log_dir.mkdir(parents=True, exist_ok=True)
    formatter = logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")

    root_logger = logging.getLogger()
    root_logger.setLevel(os.getenv("RADIOFEEDS_LOG_LEVEL", "INFO").upper())
    root_logger.handlers.clear()

    file_handler = RotatingFileHandler(
        log_dir / "radiofeeds.log",
        maxBytes=10 * 1024 * 1024,
        backupCount=5,
        encoding="utf-8",
    )
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    logging.getLogger("httpx").setLevel(logging.WARNING)


async def _run(args: argparse.Namespace, update_time: Optional[float]) -> int:
    try:
        config = load_config(args.config)
    except ConfigParseError as exc:
        logging.error("%s", exc)
        return 1
    if args.source:
        config = config.model_copy(update={"source": args.source})
    try:
        averages = load_averages(args.averages)
    except CorruptStore as exc:
        logging.error("%s", exc)
        return 1

    try:
        loop = PollLoop(
            config,
            config_path=args.config,
            averages_path=args.averages,
            threshold=pct_to_multiplier(args.threshold) if args.threshold is not None else None,
            update_time_min=update_time,
            sort_order=SortOrder(args.sort) if args.sort else None,
            sort_type=SortType(args.sort_by) if args.sort_by else None,
        )
    except KeyError as exc:
        logging.error("unknown listing source %r: %s", config.source, exc)
        return 1
    logging.info(
        "Start config=%s averages=%s threshold=%.2f interval_s=%.0f feeds_known=%s",
        args.config,
        args.averages,
        loop.effective_threshold(),
        loop.update_interval_s(),
        len(averages),
    )
    try:
        await loop.run_forever(averages)
    except asyncio.CancelledError:
        raise
    finally:
        await loop.stop()
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        update_time = validate_update_time(args.update_time)
    except InvalidArgument:
        parser.print_help(sys.stderr)
        return 0
    _configure_logging()
    try:
        return asyncio.run(_run(args, update_time))
    except KeyboardInterrupt:
        logging.info("Shutdown angefordert.")
        return 0


if __name__ == "__main__":
    sys.exit(main())
