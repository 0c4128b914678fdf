"""Join-link redirect resolution.

Directory join links bounce through tracking hops that mix HTTP 3xx
responses, ``<meta http-equiv="refresh">`` pages and ``window.location``
script redirects. Each hop is interpreted manually so that the hop count
stays bounded and any failure leaves us with the last URL that answered.
"""

import logging
import re
from urllib.parse import urlparse

import httpx
from bs4 import BeautifulSoup

from affiliate_hub.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()

_META_REFRESH_URL = re.compile(r"url\s*=\s*['\"]?([^'\";]+)", re.IGNORECASE)
_WINDOW_LOCATION = re.compile(
    r"(?:window|document|top|self)\.location(?:\.href)?\s*=\s*['\"]([^'\"]+)['\"]"
    r"|(?:window|document|top|self)\.location\.(?:replace|assign)\(\s*['\"]([^'\"]+)['\"]\s*\)",
    re.IGNORECASE,
)


def next_url(current: str, location: str) -> str:
    """Resolve a redirect target against the URL that produced it."""
    location = location.strip()
    if location.startswith(("http://", "https://")):
        return location

    parsed = urlparse(current)
    if location.startswith("//"):
        return f"{parsed.scheme}:{location}"

    origin = f"{parsed.scheme}://{parsed.netloc}"
    if location.startswith("/"):
        return f"{origin}{location}"
    return f"{origin}/{location}"


def find_html_redirect(html: str) -> str | None:
    """Return the meta-refresh target, else a ``window.location`` target, else None."""
    soup = BeautifulSoup(html, "lxml")

    for meta in soup.find_all("meta"):
        if (meta.get("http-equiv") or "").strip().lower() != "refresh":
            continue
        match = _META_REFRESH_URL.search(meta.get("content") or "")
        if match:
            return match.group(1).strip()

    match = _WINDOW_LOCATION.search(html)
    if match:
        return match.group(1) or match.group(2)
    return None


def _is_html(response: httpx.Response) -> bool:
    return "html" in response.headers.get("content-type", "").lower()


def resolve_redirect(url: str, max_hops: int | None = None, client: httpx.Client | None = None) -> str:
    """Follow ``url`` through up to ``max_hops`` redirects and return where it lands.

    Never raises for network trouble: a failed hop ends resolution at the
    last URL that was reached, and running out of hops returns the URL
    reached so far.
    """
    if max_hops is None:
        max_hops = settings.redirect_max_hops

    owns_client = client is None
    if owns_client:
        client = httpx.Client(
            follow_redirects=False,
            timeout=settings.redirect_timeout,
            headers={"User-Agent": settings.user_agent},
        )

    current = url
    try:
        for hop in range(max_hops):
            try:
                response = client.get(current)
            except (httpx.HTTPError, httpx.InvalidURL) as e:
                logger.warning(f"Redirect hop {hop + 1} failed for {current}: {e}")
                break

            target = None
            location = response.headers.get("location")
            if 300 <= response.status_code < 400 and location:
                target = location
            elif _is_html(response):
                target = find_html_redirect(response.text)

            if not target:
                break

            current = next_url(current, target)
            logger.debug(f"Hop {hop + 1}: {current}")
        else:
            logger.info(f"Stopped resolving {url} after {max_hops} hops at {current}")
    finally:
        if owns_client:
            client.close()

    return current


def clean_url(url: str) -> str:
    """Strip query string and fragment, keeping scheme, host and path."""
    try:
        parsed = urlparse(url)
    except ValueError:
        return url
    if not parsed.scheme or not parsed.netloc:
        return url
    return f"{parsed.scheme}://{parsed.netloc}{parsed.path or '/'}"
