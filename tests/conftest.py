from datetime import datetime, timezone

import pytest

FIXED_NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


def ics(*lines: str) -> str:
    return "\r\n".join(lines) + "\r\n"


def make_calendar(*event_lines: str, prodid: str = "-//Test//Calendar//EN") -> str:
    return ics(
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        f"PRODID:{prodid}",
        *event_lines,
        "END:VCALENDAR",
    )


@pytest.fixture
def airbnb_ics() -> str:
    return make_calendar(
        "BEGIN:VEVENT",
        "DTSTAMP:20250601T101500Z",
        "DTSTART;VALUE=DATE:20250710",
        "DTEND;VALUE=DATE:20250713",
        "SUMMARY:Reserved",
        "UID:1418fb94e984-a3b5c5fb2c2a@airbnb.com",
        "DESCRIPTION:Reservation URL: https://www.airbnb.com/hosting/reservations/"
        "details/HMABC123\\nPhone Number (Last 4 Digits): 1234",
        "END:VEVENT",
        "BEGIN:VEVENT",
        "DTSTART;VALUE=DATE:20250718",
        "DTEND;VALUE=DATE:20250720",
        "SUMMARY:Airbnb (Not available)",
        "UID:7f2a90c1-blocked@airbnb.com",
        "END:VEVENT",
        prodid="-//Airbnb Inc//Hosting Calendar 0.8.8//EN",
    )


@pytest.fixture
def booking_ics() -> str:
    return make_calendar(
        "BEGIN:VEVENT",
        "UID:bk-1001",
        "DTSTART;VALUE=DATE:20250801",
        "DTEND;VALUE=DATE:20250805",
        "SUMMARY:CLOSED - Not available",
        "DESCRIPTION:Maria Rossi\\nArrival 15:00",
        "LOCATION:Sea View Apartment",
        "CREATED:20250515T090000Z",
        "LAST-MODIFIED:20250520T180000Z",
        "END:VEVENT",
        prodid="-//booking.com//ical export 1.0//EN",
    )


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_NOW


@pytest.fixture
def counting_ids():
    issued = []

    def factory(platform, now):
        issued.append(now)
        return f"{platform.value}-generated-{len(issued)}"

    return factory
