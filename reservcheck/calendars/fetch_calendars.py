import logging
import os
from typing import Optional, Sequence
from urllib.parse import quote, urlparse

import requests

from reservcheck.calendars.errors import CalendarFetchError

logger = logging.getLogger(__name__)

ALLOWED_DOMAINS = {
    "ical.booking.com",
    "www.airbnb.com",
    "airbnb.com",
    "calendar.google.com",
    "outlook.office365.com",
    "outlook.live.com",
}

# Public CORS-style relays, tried when the provider refuses a direct request
DEFAULT_PROXIES = (
    "https://api.allorigins.win/raw?url={url}",
)

HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
    ),
    "Accept": "text/calendar, text/plain, */*",
    "Cache-Control": "no-cache",
}


def is_url(source: str) -> bool:
    return source.startswith("http://") or source.startswith("https://")


def check_allowed_domain(url: str):
    host = urlparse(url).hostname or ""
    if host not in ALLOWED_DOMAINS:
        raise CalendarFetchError(
            f"Domain not allowed: {host or url}. Only Airbnb, Booking.com "
            "and major calendar services are supported.",
            source=url,
            status_code=403,
        )


def _get_calendar_text(url: str, timeout: int, headers: Optional[dict] = None) -> Optional[str]:
    """
    GETs a URL and returns the body if it looks like a calendar, else None.
    """
    try:
        response = requests.get(url, headers=headers, timeout=timeout)
    except requests.RequestException as e:
        logger.info("Request to %s failed: %s", url, e)
        return None

    if not response.ok:
        logger.info("Request to %s returned %s", url, response.status_code)
        return None

    text = response.text
    if "BEGIN:VCALENDAR" not in text:
        logger.info("Response from %s is not an iCal document", url)
        return None
    return text


def fetch_from_url(url: str, timeout: int = 10,
                   proxies: Sequence[str] = DEFAULT_PROXIES) -> str:
    """
    Downloads a calendar, falling back to the relay services in order.
    """

    text = _get_calendar_text(url, timeout, headers=HEADERS)
    if text is not None:
        return text

    for template in proxies:
        proxy_url = template.format(url=quote(url, safe=""))
        logger.debug("Retrying %s through %s", url, proxy_url)
        text = _get_calendar_text(proxy_url, timeout)
        if text is not None:
            return text

    raise CalendarFetchError(
        "Unable to fetch calendar data from the provided URL. Check that the "
        "URL is correct and the calendar is shared, or download the .ics file "
        "and import it from disk instead.",
        source=url,
    )


def fetch_calendar(source: str, timeout: int = 10,
                   proxies: Sequence[str] = DEFAULT_PROXIES,
                   restrict_domains: bool = False) -> str:
    """
    Fetches iCal data.
    - If 'source' is a URL (starts with http), download it.
    - If it's a file path, read it from disk.
    Returns raw ICS text.
    """

    # Case 1: URL mode
    if is_url(source):
        if restrict_domains:
            check_allowed_domain(source)
        return fetch_from_url(source, timeout=timeout, proxies=proxies)

    # Case 2: Local file mode
    if os.path.exists(source):
        with open(source, "r", encoding="utf-8-sig") as f:
            return f.read()

    raise CalendarFetchError(f"Could not fetch calendar from: {source}", source=source)
