"""Affiliate program directory scraper.

The directory renders one ``<table>`` of programs. Each ``tbody`` row has:
  - Cell 0: program name link (``/affiliate-programs/<slug>/``) and logo
  - Cell 1: affiliate software platform
  - Cell 2: commission text
  - Cell 3: API support ("Yes"/"No")
  - Cell 4: available in the directory's own tracker ("Yes"/"No")
  - Cell 5: category
  - Cell 6: review link and obfuscated join link (``/glm/...``), optional
The browser only reads each row's HTML; ``normalize()`` turns that into a
typed candidate or drops it.
"""

import asyncio
import logging
import re
from dataclasses import dataclass
from urllib.parse import quote_plus

from bs4 import BeautifulSoup

from affiliate_hub.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()

LISTING_ROW_SELECTOR = "table tbody tr"
EXPECTED_COLUMNS = 6

_WHITESPACE = re.compile(r"\s+")


@dataclass
class ProgramCandidate:
    """One directory row, validated and typed."""

    name: str
    slug: str
    software: str | None = None
    commission: str | None = None
    api_support: bool = False
    available_in_directory: bool = False
    category: str | None = None
    logo_url: str | None = None
    review_url: str | None = None
    join_url: str | None = None
    source_url: str | None = None


def _text(cell) -> str:
    return _WHITESPACE.sub(" ", cell.get_text(" ", strip=True)).strip()


def _is_yes(cell) -> bool:
    return _text(cell).lower() == "yes"


def slug_from_href(href: str | None) -> str:
    """Last non-empty path segment of a program link."""
    if not href:
        return ""
    path = href.split("?", 1)[0].split("#", 1)[0]
    segments = [segment for segment in path.split("/") if segment]
    return segments[-1] if segments else ""


class DirectoryScraper:
    """Reads listing rows from the directory through the headless browser."""

    def __init__(self, base_url: str | None = None, timeout: int | None = None):
        self.base_url = base_url or settings.directory_base_url
        self.timeout = timeout or settings.scrape_timeout

    def listing_url(self, software: str | None = None) -> str:
        if software and software != "all":
            return f"{self.base_url}?software={quote_plus(software)}"
        return self.base_url

    def scrape(self, software: str | None = None) -> list[str]:
        """Fetch the raw ``<tr>`` HTML of every listing row."""
        return asyncio.run(self._scrape_async(self.listing_url(software)))

    async def _scrape_async(self, url: str) -> list[str]:
        from affiliate_hub.scrapers.browser import get_browser

        logger.info(f"Fetching directory listing: {url}")
        async with get_browser(timeout_ms=self.timeout * 1000) as browser:
            rows = await browser.outer_html(url, LISTING_ROW_SELECTOR)

        logger.info(f"Read {len(rows)} listing rows from {url}")
        return rows

    def normalize(self, raw: str) -> ProgramCandidate | None:
        """Convert one row's HTML into a candidate, or None when the row is malformed."""
        soup = BeautifulSoup(f"<table><tbody>{raw}</tbody></table>", "lxml")
        row = soup.find("tr")
        if row is None:
            return None

        cells = row.find_all("td", recursive=False)
        if len(cells) < EXPECTED_COLUMNS:
            logger.debug(f"Dropping listing row with {len(cells)} cells")
            return None

        name_link = cells[0].find("a")
        href = name_link.get("href") if name_link else None
        slug = slug_from_href(href)
        if not slug:
            logger.debug("Dropping listing row without a program link")
            return None

        logo = cells[0].find("img")
        review_link = join_link = None
        if len(cells) > EXPECTED_COLUMNS:
            action_cell = cells[EXPECTED_COLUMNS]
            review_link = action_cell.select_one('a[href*="/affiliate-programs/"]')
            join_link = action_cell.select_one('a[href*="glm"]')
            if join_link is None:
                links = action_cell.find_all("a", href=True)
                if links and links[-1] is not review_link:
                    join_link = links[-1]

        return ProgramCandidate(
            name=_text(name_link),
            slug=slug,
            software=_text(cells[1]) or None,
            commission=_text(cells[2]) or None,
            api_support=_is_yes(cells[3]),
            available_in_directory=_is_yes(cells[4]),
            category=_text(cells[5]) or None,
            logo_url=logo.get("src") if logo else None,
            review_url=review_link.get("href") if review_link else None,
            join_url=join_link.get("href") if join_link else None,
            source_url=href,
        )
