"""Scraper package — directory extraction worker and browser capability."""

from affiliate_hub.scrapers.directory import DirectoryScraper, ProgramCandidate  # noqa: F401
