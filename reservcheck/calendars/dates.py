import re
from datetime import date, datetime, timedelta
from typing import Union

from icalendar.prop import vDate, vDatetime

DATE_ONLY = re.compile(r"^\d{8}$")
DATE_TIME = re.compile(r"^\d{8}T\d{6}Z?$")


class DateTokenError(ValueError):
    def __init__(self, token: str):
        self.token = token
        self.message = f"Malformed date token: {token!r}"
        super().__init__(self.message)


def is_date_only(token: str) -> bool:
    return bool(DATE_ONLY.match(token.strip()))


def parse_ical_date(token: str) -> Union[date, datetime]:
    """
    Decodes a compact ICS date (YYYYMMDD) or date-time (YYYYMMDDTHHMMSS[Z]).
    Date-times with a trailing Z come back timezone-aware (UTC), others naive.
    """

    token = (token or "").strip()

    try:
        if DATE_ONLY.match(token):
            return vDate.from_ical(token)
        if DATE_TIME.match(token):
            return vDatetime.from_ical(token)
    except ValueError as e:
        # Right shape but impossible calendar values (month 13, Feb 30, ...)
        raise DateTokenError(token) from e

    raise DateTokenError(token)


def parse_boundary(token: str, is_end: bool = False) -> date:
    """
    Decodes a DTSTART/DTEND token to a calendar day.

    A date-only DTEND is exclusive in ICS, so it is moved back one day to
    the last night of the stay. Date-time ends and all starts are kept.
    """
    value = parse_ical_date(token)

    if isinstance(value, datetime):
        return value.date()

    if is_end:
        try:
            return value - timedelta(days=1)
        except OverflowError as e:
            # 00010101 decodes but has no previous day
            raise DateTokenError(token) from e
    return value
