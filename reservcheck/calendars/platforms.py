import logging
import re
from enum import Enum
from typing import Optional, Union

logger = logging.getLogger(__name__)


class Platform(str, Enum):
    AIRBNB = "airbnb"
    BOOKING = "booking.com"
    OTHER = "other"


# Substrings looked for in a URL or filename, checked in order
HINT_KEYWORDS = [
    (Platform.AIRBNB, ("airbnb",)),
    (Platform.BOOKING, ("booking.com", "bookingcom", "ical.booking")),
]

# Brand names looked for anywhere in the calendar body (PRODID, URLs, ...)
CONTENT_BRANDS = [
    (Platform.AIRBNB, ("airbnb",)),
    (Platform.BOOKING, ("booking.com",)),
]

# Exact SUMMARY values each platform family is known to export
SUMMARY_SIGNATURES = [
    (Platform.AIRBNB, {"Reserved", "Confirmed"}),
    (Platform.BOOKING, {"Booked", "Blocked"}),
]

SUMMARY_LINE = re.compile(r"^SUMMARY(?:;[^:\n]*)?:(.*)$", re.MULTILINE)

PLATFORM_ALIASES = {
    "airbnb": Platform.AIRBNB,
    "booking": Platform.BOOKING,
    "booking.com": Platform.BOOKING,
    "bookingcom": Platform.BOOKING,
    "other": Platform.OTHER,
    "unknown": Platform.OTHER,
}


def coerce_platform(value: Union[str, Platform, None]) -> Platform:
    """
    Turns a user-supplied platform name into a Platform.
    Anything unrecognised becomes Platform.OTHER.
    """
    if isinstance(value, Platform):
        return value
    if not value:
        return Platform.OTHER
    return PLATFORM_ALIASES.get(str(value).strip().lower(), Platform.OTHER)


def _match_keywords(text: str, table) -> Optional[Platform]:
    lowered = text.lower()
    for platform, keywords in table:
        if any(k in lowered for k in keywords):
            return platform
    return None


def detect_platform(source: Optional[str] = None, content: Optional[str] = None) -> Platform:
    """
    Best-effort guess of the platform a calendar was exported from.

    Order: keywords in the source hint (URL / filename), brand names in
    the content, then SUMMARY vocabulary. Falls back to Platform.OTHER.
    """

    if source:
        platform = _match_keywords(source, HINT_KEYWORDS)
        if platform:
            logger.debug("Platform %s detected from source hint", platform.value)
            return platform

    if content:
        platform = _match_keywords(content, CONTENT_BRANDS)
        if platform:
            logger.debug("Platform %s detected from content brand", platform.value)
            return platform

        summaries = {s.strip() for s in SUMMARY_LINE.findall(content.replace("\r", ""))}
        for platform, signature in SUMMARY_SIGNATURES:
            if summaries & signature:
                logger.debug("Platform %s detected from summary vocabulary", platform.value)
                return platform

    return Platform.OTHER
