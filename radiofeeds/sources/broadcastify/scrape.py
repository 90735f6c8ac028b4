from __future__ import annotations

from typing import List, Optional, Tuple

from bs4 import BeautifulSoup
from bs4.element import Tag

from ...core.models import FeedObservation, FeedState
from ...errors import ParseError

NUMEROUS = "Numerous"


def scrape_top(body: str | bytes) -> List[FeedObservation]:
    """Liest die Top-Feed-Tabelle.

    Die Top-Liste mischt Staaten und Counties, deshalb kommen beide aus den
    Links der zweiten Spalte jeder Zeile.
    """
    soup = BeautifulSoup(body, "html.parser")
    feeds: List[FeedObservation] = []
    for row in soup.select(".btable tr")[1:]:
        feed_id, name = _parse_id_and_name(row, "w100")
        cells = row.find_all("td")
        if len(cells) < 2:
            raise ParseError("Standort-Spalte fehlt.")
        links = [link for link in cells[1].find_all("a") if link.get("href")]
        if not links:
            raise ParseError("Staat-Link fehlt.")
        state_link = links[0]
        state_id = _parse_int(_parse_link_id(state_link["href"]), "state id")
        county = NUMEROUS
        if len(links) > 1 and links[1]["href"].startswith("/listen/ctid"):
            county = links[1].get_text(strip=True)
        feeds.append(
            _observation(
                feed_id=feed_id,
                name=name,
                listeners=_parse_listeners(row),
                state=FeedState(id=state_id, abbrev=state_link.get_text(strip=True)),
                county=county,
                alert=_text_of(row.select_one(".messageBox")),
            )
        )
    if not feeds:
        raise ParseError("Keine Feeds gefunden.")
    return feeds


def scrape_state(state: FeedState, body: str | bytes) -> List[FeedObservation]:
    soup = BeautifulSoup(body, "html.parser")
    # Vor der eigentlichen Tabelle kann eine Tabelle mit landesweiten Feeds stehen.
    tables = soup.select(".btable")[:2]
    if not tables:
        raise ParseError("Feed-Tabelle fehlt.")
    table = tables[1] if len(tables) >= 2 else tables[0]
    feeds: List[FeedObservation] = []
    for row in table.find_all("tr")[1:]:
        feed_id, name = _parse_id_and_name(row, "w1p")
        county_link = next(
            (link for link in row.find_all("a") if str(link.get("href", "")).startswith("/listen/ctid")),
            None,
        )
        feeds.append(
            _observation(
                feed_id=feed_id,
                name=name,
                listeners=_parse_listeners(row),
                state=state,
                county=county_link.get_text(strip=True) if county_link else NUMEROUS,
                alert=_text_of(row.select_one("font.fontRed")),
            )
        )
    if not feeds:
        raise ParseError("Keine Feeds gefunden.")
    return feeds


def _observation(
    *,
    feed_id: int,
    name: str,
    listeners: int,
    state: FeedState,
    county: str,
    alert: Optional[str],
) -> FeedObservation:
    return FeedObservation(
        id=feed_id,
        name=name,
        listeners=listeners,
        default_average=float(listeners),
        state=state,
        county=county or NUMEROUS,
        alert=alert or None,
    )


def _parse_id_and_name(row: Tag, class_name: str) -> Tuple[int, str]:
    link = row.select_one(f".{class_name} a")
    if link is None or not link.get("href"):
        raise ParseError("Feed-Name/ID nicht gefunden.")
    name = link.get_text(strip=True)
    if not name:
        raise ParseError("Leerer Feed-Name.")
    return _parse_int(_parse_link_id(link["href"]), "feed id"), name


def _parse_listeners(row: Tag) -> int:
    cell = row.select_one(".c.m")
    if cell is None:
        raise ParseError("Hörerzahl nicht gefunden.")
    return _parse_int(cell.get_text(strip=True).replace(",", ""), "feed listeners")


def _parse_link_id(url: str) -> Optional[str]:
    pos = url.rstrip().rfind("/")
    if pos < 0 or pos + 1 >= len(url.rstrip()):
        return None
    return url.rstrip()[pos + 1:]


def _parse_int(text: Optional[str], what: str) -> int:
    if text is None:
        raise ParseError(f"{what} fehlt.")
    try:
        value = int(text)
    except ValueError as exc:
        raise ParseError(f"{what} nicht lesbar: {text!r}") from exc
    if value < 0:
        raise ParseError(f"{what} negativ: {value}")
    return value


def _text_of(node: Optional[Tag]) -> Optional[str]:
    if node is None:
        return None
    return node.get_text(" ", strip=True) or None
