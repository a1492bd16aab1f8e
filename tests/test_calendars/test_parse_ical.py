from datetime import date, datetime, timezone

import pytest

from conftest import FIXED_NOW, make_calendar
from reservcheck.calendars.booking import BookingStatus
from reservcheck.calendars.errors import IcalFormatError
from reservcheck.calendars.parse_ical import (
    extract_calendar,
    extract_fields,
    parse_calendar,
    parse_ical,
    synthesize_booking_id,
)
from reservcheck.calendars.platforms import Platform


def event(*lines: str) -> list:
    return ["BEGIN:VEVENT", *lines, "END:VEVENT"]


def test_minimal_reserved_event(fixed_clock):
    text = make_calendar(*event(
        "DTSTART;VALUE=DATE:20250710",
        "DTEND;VALUE=DATE:20250713",
        "SUMMARY:Reserved",
        "UID:X1",
    ))

    [booking] = parse_ical(text, clock=fixed_clock)

    assert booking.id == "X1"
    assert booking.check_in_date == date(2025, 7, 10)
    assert booking.check_out_date == date(2025, 7, 12)
    assert booking.status == BookingStatus.CONFIRMED
    assert booking.original_status == "Reserved"
    assert booking.nights == 3


def test_guest_label_beats_summary(fixed_clock):
    text = make_calendar(*event(
        "DTSTART;VALUE=DATE:20250710",
        "DTEND;VALUE=DATE:20250713",
        "SUMMARY:Booked",
        "UID:B1",
        "DESCRIPTION:Reservation 99\\nGuest: Jane Doe\\nPhone: 555",
    ))

    [booking] = parse_ical(text, clock=fixed_clock)

    assert booking.guest_name == "Jane Doe"
    assert booking.status == BookingStatus.CONFIRMED


@pytest.mark.parametrize("platform", ["airbnb", "booking.com", None])
def test_blocked_summary(platform, fixed_clock):
    text = make_calendar(*event(
        "DTSTART;VALUE=DATE:20250901",
        "DTEND;VALUE=DATE:20250903",
        "SUMMARY:BLOCKED",
        "UID:blk",
    ))

    [booking] = parse_ical(text, platform=platform, clock=fixed_clock)

    assert booking.status == BookingStatus.CANCELLED
    assert booking.guest_name == "Blocked"


def test_airbnb_export(airbnb_ics, fixed_clock):
    result = parse_calendar(airbnb_ics, source="https://www.airbnb.com/calendar/ical/1.ics", clock=fixed_clock)

    assert result.skipped == 0
    reserved, unavailable = result.bookings

    assert reserved.platform == Platform.AIRBNB
    assert reserved.guest_name == "Reserved"
    assert reserved.property_name == "Airbnb Property"
    assert reserved.description.startswith("Reservation URL:")
    assert unavailable.status == BookingStatus.CANCELLED
    assert unavailable.check_out_date == date(2025, 7, 19)


def test_booking_export(booking_ics, fixed_clock):
    [booking] = parse_ical(booking_ics, clock=fixed_clock)

    assert booking.platform == Platform.BOOKING
    assert booking.guest_name == "Maria Rossi"
    assert booking.property_name == "Sea View Apartment"
    assert booking.status == BookingStatus.CONFIRMED
    assert booking.check_in_date == date(2025, 8, 1)
    assert booking.check_out_date == date(2025, 8, 4)
    assert booking.created_at.replace(tzinfo=None) == datetime(2025, 5, 15, 9, 0)
    assert booking.updated_at.replace(tzinfo=None) == datetime(2025, 5, 20, 18, 0)


def test_timestamps_default_to_clock(fixed_clock):
    text = make_calendar(*event("DTSTART:20250710", "DTEND:20250711", "UID:1"))

    [booking] = parse_ical(text, clock=fixed_clock)

    assert booking.created_at == FIXED_NOW
    assert booking.updated_at == FIXED_NOW


def test_malformed_created_falls_back_to_clock(fixed_clock):
    text = make_calendar(*event("DTSTART:20250710", "DTEND:20250711", "UID:1", "CREATED:yesterday"))

    [booking] = parse_ical(text, clock=fixed_clock)

    assert booking.created_at == FIXED_NOW


def test_datetime_end_is_not_shifted(fixed_clock):
    text = make_calendar(*event(
        "DTSTART:20250710T150000Z",
        "DTEND:20250713T110000Z",
        "UID:T1",
    ))

    [booking] = parse_ical(text, clock=fixed_clock)

    assert booking.check_in_date == date(2025, 7, 10)
    assert booking.check_out_date == date(2025, 7, 13)


def test_invalid_events_are_skipped_and_counted(fixed_clock):
    text = make_calendar(
        *event("DTSTART:20250710", "DTEND:20250712", "UID:ok"),
        *event("DTSTART:20250710", "DTEND:20250712", "SUMMARY:no uid"),
        *event("DTEND:20250712", "UID:no-start"),
        *event("DTSTART:20250710", "UID:no-end"),
        *event("DTSTART:2025-07-10", "DTEND:20250712", "UID:bad-date"),
        *event("DTSTART:20250715", "DTEND:20250712", "UID:backwards"),
    )

    result = parse_calendar(text, clock=fixed_clock)

    assert [b.id for b in result.bookings] == ["ok"]
    assert result.total_events == 6
    assert result.skipped == result.total_events - len(result.bookings)
    assert result.summary() == "5 of 6 events skipped"

    reasons = {w.uid: w.reason for w in result.warnings}
    assert reasons[None] == "missing UID"
    assert reasons["no-start"] == "missing DTSTART"
    assert reasons["no-end"] == "missing DTEND"
    assert "Malformed date token" in reasons["bad-date"]
    assert "before check-in" in reasons["backwards"]


def test_same_day_all_day_event_is_skipped(fixed_clock):
    text = make_calendar(*event("DTSTART:20250710", "DTEND:20250710", "UID:zero"))

    result = parse_calendar(text, clock=fixed_clock)

    assert result.bookings == []
    assert result.skipped == 1


def test_check_in_never_after_check_out(airbnb_ics, booking_ics, fixed_clock):
    for text in (airbnb_ics, booking_ics):
        for booking in parse_ical(text, clock=fixed_clock):
            assert booking.check_in_date <= booking.check_out_date


def test_missing_calendar_is_fatal():
    with pytest.raises(IcalFormatError):
        parse_calendar("BEGIN:VEVENT\nUID:1\nDTSTART:20250710\nDTEND:20250711\nEND:VEVENT")

    with pytest.raises(IcalFormatError):
        parse_ical("<html><body>Not found</body></html>")


def test_calendar_embedded_in_html(fixed_clock):
    body = (
        "<html><pre>"
        + make_calendar(*event("DTSTART:20250710", "DTEND:20250712", "UID:emb"))
        + "</pre></html>"
    )

    [booking] = parse_ical(body, clock=fixed_clock)

    assert booking.id == "emb"


def test_extract_calendar_strips_bom():
    text = "\ufeff  BEGIN:VCALENDAR\nEND:VCALENDAR\n"

    assert extract_calendar(text) == "BEGIN:VCALENDAR\nEND:VCALENDAR"


def test_extract_fields_ignores_unknown_keys():
    fields = extract_fields({"UID": "1", "X-CUSTOM": "x", "LAST-MODIFIED": "20250101T000000Z"})

    assert fields["uid"] == "1"
    assert fields["last_modified"] == "20250101T000000Z"
    assert fields["summary"] is None
    assert "X-CUSTOM" not in fields


def test_location_and_property_name_fallbacks(fixed_clock):
    text = make_calendar(
        *event("DTSTART:20250710", "DTEND:20250712", "UID:a", "LOCATION:Loft 3"),
        *event("DTSTART:20250710", "DTEND:20250712", "UID:b"),
    )

    with_name = parse_ical(text, property_name="Beach House", clock=fixed_clock)
    without_name = parse_ical(text, platform="booking.com", clock=fixed_clock)

    assert [b.property_name for b in with_name] == ["Loft 3", "Beach House"]
    assert [b.property_name for b in without_name] == ["Loft 3", "Booking.com Property"]


def test_explicit_platform_wins_over_detection(airbnb_ics, fixed_clock):
    bookings = parse_ical(airbnb_ics, platform="booking.com", clock=fixed_clock)

    assert {b.platform for b in bookings} == {Platform.BOOKING}


def test_unknown_platform(fixed_clock):
    text = make_calendar(*event("DTSTART:20250710", "DTEND:20250712", "UID:u", "SUMMARY:Family visit"))

    [booking] = parse_ical(text, source="export.ics", clock=fixed_clock)

    assert booking.platform == Platform.OTHER
    assert booking.guest_name == "Family visit"
    assert booking.status == BookingStatus.CONFIRMED


def test_synthesized_ids_when_uid_not_required(fixed_clock, counting_ids):
    text = make_calendar(
        *event("DTSTART:20250710", "DTEND:20250712"),
        *event("DTSTART:20250720", "DTEND:20250722", "UID:kept"),
    )

    result = parse_calendar(
        text, platform="airbnb", clock=fixed_clock, id_factory=counting_ids, require_uid=False
    )

    assert [b.id for b in result.bookings] == ["airbnb-generated-1", "kept"]
    assert result.skipped == 0


def test_default_synthesized_id_format():
    now = datetime(2025, 1, 1, tzinfo=timezone.utc)
    first = synthesize_booking_id(Platform.AIRBNB, now)
    second = synthesize_booking_id(Platform.AIRBNB, now)

    assert first.startswith(f"airbnb-{int(now.timestamp() * 1000)}-")
    assert first != second


def test_parsing_is_repeatable(airbnb_ics, booking_ics, fixed_clock):
    for text in (airbnb_ics, booking_ics):
        assert parse_ical(text, clock=fixed_clock) == parse_ical(text, clock=fixed_clock)


def test_end_date_without_previous_day_is_skipped(fixed_clock):
    text = make_calendar(
        *event("DTSTART:20250710", "DTEND:20250712", "UID:ok"),
        *event("DTSTART:00010101", "DTEND:00010101", "UID:year-one"),
        *event("DTSTART:20250720", "DTEND:20250722", "UID:after"),
    )

    result = parse_calendar(text, clock=fixed_clock)

    assert [b.id for b in result.bookings] == ["ok", "after"]
    [warning] = result.warnings
    assert warning.uid == "year-one"
    assert "Malformed date token" in warning.reason


@pytest.mark.parametrize("platform", ["airbnb", "booking.com", None])
def test_blocked_summary_ignores_guest_label(platform, fixed_clock):
    text = make_calendar(*event(
        "DTSTART:20250901",
        "DTEND:20250903",
        "SUMMARY:Blocked",
        "DESCRIPTION:Guest: Owner",
        "UID:blk-owner",
    ))

    [booking] = parse_ical(text, platform=platform, clock=fixed_clock)

    assert booking.status == BookingStatus.CANCELLED
    assert booking.guest_name == "Blocked"
