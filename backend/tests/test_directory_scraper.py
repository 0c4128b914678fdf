"""Tests for directory row normalization and the browser lifecycle."""

import sys
import types

import pytest

from affiliate_hub.exceptions import ExtractionError
from affiliate_hub.scrapers.directory import DirectoryScraper, slug_from_href


@pytest.fixture
def scraper():
    return DirectoryScraper(base_url="https://statsdrone.com/affiliate-programs/")


class TestNormalize:
    def test_full_row(self, scraper, listing_row):
        candidate = scraper.normalize(listing_row(
            "Bet Partners", "bet-partners", software="Income Access",
            commission="25-45% RevShare", api="Yes", available="yes", category="Sports",
        ))

        assert candidate is not None
        assert candidate.name == "Bet Partners"
        assert candidate.slug == "bet-partners"
        assert candidate.software == "Income Access"
        assert candidate.commission == "25-45% RevShare"
        assert candidate.api_support is True
        assert candidate.available_in_directory is True
        assert candidate.category == "Sports"
        assert candidate.logo_url == "https://cdn.example.com/logos/bet-partners.png"
        assert candidate.review_url == "/affiliate-programs/bet-partners/"
        assert candidate.join_url == "https://statsdrone.com/glm/bet-partners"
        assert candidate.source_url == "/affiliate-programs/bet-partners/"

    def test_yes_flags_only_accept_yes(self, scraper, listing_row):
        candidate = scraper.normalize(listing_row("Acme", "acme", api="No", available="Maybe"))
        assert candidate.api_support is False
        assert candidate.available_in_directory is False

    def test_row_without_action_cell(self, scraper, listing_row):
        candidate = scraper.normalize(listing_row("Acme", "acme", with_links=False))
        assert candidate.slug == "acme"
        assert candidate.review_url is None
        assert candidate.join_url is None

    def test_short_row_is_dropped(self, scraper):
        row = (
            '<tr><td><a href="/affiliate-programs/short/">Short</a></td>'
            "<td>Cellxpert</td><td>30%</td><td>Yes</td></tr>"
        )
        assert scraper.normalize(row) is None

    def test_row_without_program_link_is_dropped(self, scraper):
        row = "<tr>" + "".join(f"<td>cell {i}</td>" for i in range(6)) + "</tr>"
        assert scraper.normalize(row) is None

    def test_whitespace_is_collapsed(self, scraper, listing_row):
        candidate = scraper.normalize(listing_row(
            "Acme", "acme", commission="  Up to\n   50%   CPA ",
        ))
        assert candidate.commission == "Up to 50% CPA"

    def test_empty_cells_become_none(self, scraper, listing_row):
        candidate = scraper.normalize(listing_row("Acme", "acme", software="", category=""))
        assert candidate.software is None
        assert candidate.category is None

    def test_join_link_falls_back_to_last_link(self, scraper, listing_row):
        row = listing_row("Acme", "acme", with_links=False).replace(
            "</tr>",
            '<td><a href="/affiliate-programs/acme/">Review</a>'
            '<a href="https://partners.acme.com/signup">Join</a></td></tr>',
        )
        candidate = scraper.normalize(row)
        assert candidate.join_url == "https://partners.acme.com/signup"


class TestSlugFromHref:
    @pytest.mark.parametrize(
        "href,expected",
        [
            ("/affiliate-programs/bet-partners/", "bet-partners"),
            ("https://statsdrone.com/affiliate-programs/acme", "acme"),
            ("/affiliate-programs/acme/?ref=list#top", "acme"),
            ("", ""),
            (None, ""),
        ],
    )
    def test_last_path_segment(self, href, expected):
        assert slug_from_href(href) == expected


class TestListingUrl:
    def test_all_software(self, scraper):
        assert scraper.listing_url() == "https://statsdrone.com/affiliate-programs/"
        assert scraper.listing_url("all") == "https://statsdrone.com/affiliate-programs/"

    def test_software_filter_is_encoded(self, scraper):
        assert scraper.listing_url("Income Access") == (
            "https://statsdrone.com/affiliate-programs/?software=Income+Access"
        )


class FakePage:
    def __init__(self, rows, timeout_error):
        self.rows = rows
        self.timeout_error = timeout_error

    def set_default_timeout(self, timeout):
        pass

    async def goto(self, url, **kwargs):
        pass

    async def evaluate(self, script):
        pass

    async def wait_for_selector(self, selector, **kwargs):
        if self.timeout_error is not None:
            raise self.timeout_error("Timeout 30000ms exceeded")

    async def eval_on_selector_all(self, selector, script):
        return self.rows


@pytest.fixture
def fake_patchright(monkeypatch):
    """Install a stand-in for ``patchright.async_api`` that records shutdown calls."""
    module = types.ModuleType("patchright.async_api")

    class BrowserTimeout(Exception):
        pass

    state = {"closed": [], "rows": [], "launch_error": None, "timeout": False}

    class Context:
        async def new_page(self):
            return FakePage(state["rows"], BrowserTimeout if state["timeout"] else None)

    class Browser:
        async def new_context(self, **kwargs):
            return Context()

        async def close(self):
            state["closed"].append("browser")

    class Chromium:
        async def launch(self, **kwargs):
            if state["launch_error"] is not None:
                raise state["launch_error"]
            return Browser()

    class Playwright:
        chromium = Chromium()

        async def stop(self):
            state["closed"].append("playwright")

    class Starter:
        async def start(self):
            return Playwright()

    module.async_playwright = Starter
    module.TimeoutError = BrowserTimeout
    package = types.ModuleType("patchright")
    package.async_api = module
    monkeypatch.setitem(sys.modules, "patchright", package)
    monkeypatch.setitem(sys.modules, "patchright.async_api", module)
    return state


class TestBrowserLifecycle:
    @pytest.fixture
    def fast_scraper(self, monkeypatch):
        async def no_delay(*args, **kwargs):
            pass

        monkeypatch.setattr("affiliate_hub.scrapers.browser.human_delay", no_delay)
        return DirectoryScraper(base_url="https://statsdrone.com/affiliate-programs/", timeout=5)

    def test_rows_returned_and_browser_closed(self, fake_patchright, fast_scraper):
        fake_patchright["rows"] = ["<tr></tr>", "<tr></tr>"]

        assert fast_scraper.scrape() == ["<tr></tr>", "<tr></tr>"]
        assert fake_patchright["closed"] == ["browser", "playwright"]

    def test_listing_timeout_raises_and_closes_browser(self, fake_patchright, fast_scraper):
        fake_patchright["timeout"] = True

        with pytest.raises(ExtractionError, match="did not appear within 5s"):
            fast_scraper.scrape("Cellxpert")

        assert fake_patchright["closed"] == ["browser", "playwright"]

    def test_launch_failure_raises_and_stops_playwright(self, fake_patchright, fast_scraper):
        fake_patchright["launch_error"] = RuntimeError("chromium missing")

        with pytest.raises(ExtractionError, match="Failed to launch browser: chromium missing"):
            fast_scraper.scrape()

        assert fake_patchright["closed"] == ["playwright"]


@pytest.mark.integration
def test_live_directory_listing():
    rows = DirectoryScraper().scrape()
    assert rows
