import logging
import re
import secrets
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Union

from reservcheck.calendars.booking import Booking, ParseResult, ParseWarning
from reservcheck.calendars.dates import DateTokenError, is_date_only, parse_boundary, parse_ical_date
from reservcheck.calendars.errors import IcalFormatError
from reservcheck.calendars.platforms import Platform, coerce_platform, detect_platform
from reservcheck.calendars.rules import DEFAULT_RULES, RuleSet
from reservcheck.calendars.unfold import split_events

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]
IdFactory = Callable[[Platform, datetime], str]

CALENDAR_BEGIN = "BEGIN:VCALENDAR"
EMBEDDED_CALENDAR = re.compile(r"BEGIN:VCALENDAR.*?END:VCALENDAR", re.DOTALL)

# ICS property -> field name used by the assembler
FIELD_KEYS = {
    "DTSTART": "start",
    "DTEND": "end",
    "SUMMARY": "summary",
    "UID": "uid",
    "DESCRIPTION": "description",
    "LOCATION": "location",
    "CREATED": "created",
    "LAST-MODIFIED": "last_modified",
}
REQUIRED_KEYS = ("DTSTART", "DTEND", "UID")

PROPERTY_PLACEHOLDERS = {
    Platform.AIRBNB: "Airbnb Property",
    Platform.BOOKING: "Booking.com Property",
    Platform.OTHER: "Unknown Property",
}


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def synthesize_booking_id(platform: Platform, now: datetime) -> str:
    """
    Builds an id for an event that has no UID.
    These are random, so they change on every import.
    """
    millis = int(now.timestamp() * 1000)
    return f"{platform.value}-{millis}-{secrets.token_hex(4)}"


def extract_calendar(text: str) -> str:
    """
    Returns the VCALENDAR block of a response body.

    Some servers wrap the calendar in HTML or other noise, in which case the
    embedded BEGIN:VCALENDAR ... END:VCALENDAR block is cut out.
    Raises IcalFormatError when no calendar can be found at all.
    """

    content = (text or "").lstrip("\ufeff").strip()

    if content.startswith(CALENDAR_BEGIN):
        return content

    match = EMBEDDED_CALENDAR.search(content)
    if match:
        logger.info("Extracted embedded VCALENDAR block from surrounding content")
        return match.group(0)

    if CALENDAR_BEGIN in content:
        # Unterminated calendar, let the tokenizer salvage what it can
        return content[content.index(CALENDAR_BEGIN):]

    raise IcalFormatError("Invalid iCal data: missing BEGIN:VCALENDAR")


def extract_fields(raw_event: Dict[str, str]) -> Dict[str, Optional[str]]:
    """
    Picks the known properties out of a raw event. Missing ones are None.
    """
    return {name: raw_event.get(key) for key, name in FIELD_KEYS.items()}


def missing_required(raw_event: Dict[str, str], require_uid: bool = True) -> List[str]:
    required = REQUIRED_KEYS if require_uid else ("DTSTART", "DTEND")
    return [key for key in required if not (raw_event.get(key) or "").strip()]


def _timestamp(token: Optional[str], default: datetime) -> datetime:
    if not token:
        return default
    try:
        value = parse_ical_date(token)
    except DateTokenError:
        logger.debug("Ignoring malformed timestamp %r", token)
        return default
    if isinstance(value, datetime):
        return value
    return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)


def assemble_booking(fields: Dict[str, Optional[str]], platform: Platform,
                     property_name: Optional[str] = None,
                     clock: Clock = utc_now,
                     id_factory: IdFactory = synthesize_booking_id,
                     rules: RuleSet = DEFAULT_RULES) -> Booking:
    """
    Builds a Booking from extracted fields.

    Raises DateTokenError for undecodable DTSTART/DTEND and ValueError when
    the stay ends before it starts. Callers turn both into skip warnings.
    """

    start_token = fields["start"].strip()
    end_token = fields["end"].strip()

    check_in = parse_boundary(start_token)
    check_out = parse_boundary(end_token, is_end=is_date_only(end_token))

    if check_out < check_in:
        raise ValueError(f"check-out {check_out} is before check-in {check_in}")

    now = clock()
    summary = fields["summary"]
    description = fields["description"]
    uid = (fields["uid"] or "").strip()

    location = (fields["location"] or "").strip()

    return Booking(
        id=uid or id_factory(platform, now),
        platform=platform,
        property_name=location or property_name or PROPERTY_PLACEHOLDERS[platform],
        guest_name=rules.resolve_guest_name(summary, description, platform),
        description=description,
        check_in_date=check_in,
        check_out_date=check_out,
        status=rules.resolve_status(summary, description, platform),
        original_status=summary,
        created_at=_timestamp(fields["created"], now),
        updated_at=_timestamp(fields["last_modified"], now),
    )


def parse_calendar(text: str,
                   platform: Union[str, Platform, None] = None,
                   source: Optional[str] = None,
                   property_name: Optional[str] = None,
                   clock: Optional[Clock] = None,
                   id_factory: Optional[IdFactory] = None,
                   require_uid: bool = True,
                   rules: Optional[RuleSet] = None) -> ParseResult:
    """
    Parses ICS text into bookings, collecting a warning for every event that
    had to be skipped instead of failing the whole batch.

    platform: explicit platform; when omitted it is detected from `source`
              (URL or filename) and the content.
    property_name: used when an event has no LOCATION.
    clock / id_factory: injectable sources of "now" and synthesized ids.
    """

    calendar = extract_calendar(text)

    if platform is not None:
        platform = coerce_platform(platform)
    else:
        platform = detect_platform(source, calendar)

    clock = clock or utc_now
    id_factory = id_factory or synthesize_booking_id
    rules = rules or DEFAULT_RULES

    raw_events = split_events(calendar)
    result = ParseResult(total_events=len(raw_events))

    for index, raw_event in enumerate(raw_events):
        uid = raw_event.get("UID")

        missing = missing_required(raw_event, require_uid)
        if missing:
            warning = ParseWarning(index, uid, f"missing {', '.join(missing)}")
            logger.warning("Skipping invalid %s", warning)
            result.warnings.append(warning)
            continue

        try:
            booking = assemble_booking(
                extract_fields(raw_event),
                platform,
                property_name=property_name,
                clock=clock,
                id_factory=id_factory,
                rules=rules,
            )
        except ValueError as e:
            # DateTokenError is a ValueError too
            warning = ParseWarning(index, uid, str(e))
            logger.warning("Skipping invalid %s", warning)
            result.warnings.append(warning)
            continue

        result.bookings.append(booking)

    if result.warnings:
        logger.info("%s (%s)", result.summary(), platform.value)

    return result


def parse_ical(text: str, platform: Union[str, Platform, None] = None,
               source: Optional[str] = None, **kwargs) -> List[Booking]:
    """
    Parses raw iCal text and returns the valid bookings only.
    """
    return parse_calendar(text, platform=platform, source=source, **kwargs).bookings
