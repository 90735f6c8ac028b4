from __future__ import annotations

import httpx
import pytest

from radiofeeds.config import AppConfig, MiscConfig
from radiofeeds.core.models import FeedState
from radiofeeds.errors import NetworkError, ParseError
from radiofeeds.registry import registry
from radiofeeds.sources.broadcastify import BroadcastifySource
from radiofeeds.sources.broadcastify.scrape import scrape_state, scrape_top

TOP_PAGE = """
<html><body>
<table class="btable">
  <tr><th>Listeners</th><th>Location</th><th>Feed</th></tr>
  <tr>
    <td class="c m">1,234</td>
    <td><a href="/listen/stid/14">IL</a> <a href="/listen/ctid/600">Cook</a></td>
    <td class="w100"><a href="/listen/feed/12345">Chicago Police Zone 10</a>
      <div class="messageBox">Working fire on the west side</div></td>
  </tr>
  <tr>
    <td class="c m">85 </td>
    <td><a href="/listen/stid/6">CA</a> <a href="/listen/stid/32">NV</a></td>
    <td class="w100"><a href="/listen/feed/999">Tahoe Area Fire</a></td>
  </tr>
</table>
</body></html>
"""

STATE_PAGE = """
<html><body>
<table class="btable">
  <tr><th>Areawide Feeds</th></tr>
  <tr><td class="w1p"><a href="/listen/feed/1">Statewide Events</a></td><td class="c m">5</td></tr>
</table>
<table class="btable">
  <tr><th>County</th><th>Feed</th><th>Listeners</th></tr>
  <tr>
    <td><a href="/listen/ctid/600">Cook</a></td>
    <td class="w1p"><a href="/listen/feed/12345">Chicago Police Zone 10</a>
      <font class="fontRed">Alert: audio issues</font></td>
    <td class="c m">1234</td>
  </tr>
  <tr>
    <td><a href="/listen/ctid/601">DuPage</a></td>
    <td class="w1p"><a href="/listen/feed/222">DuPage Sheriff</a></td>
    <td class="c m">40</td>
  </tr>
</table>
</body></html>
"""


class TestScrapeTop:
    def test_parses_rows(self):
        feeds = scrape_top(TOP_PAGE)
        assert [feed.id for feed in feeds] == [12345, 999]

        police, fire = feeds
        assert police.name == "Chicago Police Zone 10"
        assert police.listeners == 1234
        assert police.default_average == 1234.0
        assert police.state == FeedState(id=14, abbrev="IL")
        assert police.county == "Cook"
        assert police.alert == "Working fire on the west side"
        assert police.avg_listeners is None

        assert fire.listeners == 85
        assert fire.county == "Numerous"
        assert fire.state.abbrev == "CA"
        assert fire.alert is None

    def test_empty_table_is_parse_error(self):
        with pytest.raises(ParseError):
            scrape_top("<table class='btable'><tr><th>x</th></tr></table>")

    def test_bad_listener_count(self):
        page = TOP_PAGE.replace("1,234", "lots")
        with pytest.raises(ParseError):
            scrape_top(page)

    def test_missing_feed_link(self):
        page = TOP_PAGE.replace('class="w100"', 'class="other"')
        with pytest.raises(ParseError):
            scrape_top(page)


class TestScrapeState:
    def test_skips_areawide_table(self):
        state = FeedState(id=14, abbrev="CS")
        feeds = scrape_state(state, STATE_PAGE)

        assert [feed.name for feed in feeds] == ["Chicago Police Zone 10", "DuPage Sheriff"]
        assert feeds[0].alert == "Alert: audio issues"
        assert feeds[1].county == "DuPage"
        assert all(feed.state == state for feed in feeds)

    def test_single_table(self):
        page = STATE_PAGE.split("</table>", 1)[1]
        feeds = scrape_state(FeedState(id=14, abbrev="CS"), page)
        assert len(feeds) == 2

    def test_no_table(self):
        with pytest.raises(ParseError):
            scrape_state(FeedState(id=14, abbrev="CS"), "<html></html>")


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestBroadcastifySource:
    @pytest.mark.asyncio
    async def test_fetch_top_only(self):
        requested = []

        def handler(request: httpx.Request) -> httpx.Response:
            requested.append(request.url.path)
            return httpx.Response(200, text=TOP_PAGE)

        source = BroadcastifySource(client=_client(handler))
        feeds = await source.fetch(AppConfig())

        assert requested == ["/listen/top"]
        assert [feed.id for feed in feeds] == [999, 12345]

    @pytest.mark.asyncio
    async def test_fetch_with_state_feeds_dedups_by_id(self):
        pages = {"/listen/top": TOP_PAGE, "/listen/stid/14": STATE_PAGE}

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text=pages[request.url.path])

        source = BroadcastifySource(client=_client(handler))
        config = AppConfig(misc=MiscConfig(state_feeds_id=14))
        feeds = await source.fetch(config)

        assert [feed.id for feed in feeds] == [222, 999, 12345]
        police = feeds[-1]
        assert police.state.abbrev == "IL"
        assert feeds[0].state.abbrev == "CS"

    @pytest.mark.asyncio
    async def test_http_error_is_network_error(self):
        source = BroadcastifySource(client=_client(lambda request: httpx.Response(503)))
        with pytest.raises(NetworkError):
            await source.fetch(AppConfig())

    @pytest.mark.asyncio
    async def test_transport_error_is_network_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        source = BroadcastifySource(client=_client(handler))
        with pytest.raises(NetworkError):
            await source.fetch(AppConfig())

    @pytest.mark.asyncio
    async def test_garbage_page_is_parse_error(self):
        source = BroadcastifySource(client=_client(lambda request: httpx.Response(200, text="<html/>")))
        with pytest.raises(ParseError):
            await source.fetch(AppConfig())

    @pytest.mark.asyncio
    async def test_close_keeps_injected_client_open(self):
        client = _client(lambda request: httpx.Response(200, text=TOP_PAGE))
        source = BroadcastifySource(client=client)
        await source.close()
        assert not client.is_closed
        await client.aclose()


def test_registered_in_registry():
    config = AppConfig(source="Broadcastify", misc=MiscConfig(request_timeout=4))
    assert "broadcastify" in registry.names()
    source = registry.create(config)
    assert isinstance(source, BroadcastifySource)
    assert source.timeout == 4.0


def test_registry_rejects_unknown_source():
    with pytest.raises(KeyError, match="broadcastify"):
        registry.create(AppConfig(source="nope"))


def test_registry_rejects_duplicate_name():
    with pytest.raises(ValueError):
        registry.register(" BROADCASTIFY", BroadcastifySource.from_config)
