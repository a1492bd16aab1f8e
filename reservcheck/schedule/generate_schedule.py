import csv
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import List, Optional

from reservcheck.calendars.booking import Booking, BookingStatus, booking_to_dict


@dataclass
class CalendarDay:
    date: date
    is_current_month: bool
    is_today: bool
    bookings: List[Booking] = field(default_factory=list)


@dataclass
class CalendarMonth:
    year: int
    month: int              # 1-12
    days: List[CalendarDay] = field(default_factory=list)


def bookings_for_date(day: date, bookings: List[Booking]) -> List[Booking]:
    """
    Bookings occupying a day. Both check-in and check-out days count.
    """
    return [b for b in bookings if b.check_in_date <= day <= b.check_out_date]


def is_booking_blocked(booking: Booking) -> bool:
    return (
        booking.status == BookingStatus.CANCELLED
        or "blocked" in booking.guest_name.lower()
    )


def generate_calendar_month(year: int, month: int, bookings: List[Booking],
                            today: Optional[date] = None) -> CalendarMonth:
    """
    Builds the day cells for a month view.
    Weeks run Sunday -> Saturday, so leading/trailing days of the
    neighbouring months are included to fill the first and last week.
    """

    today = today or date.today()

    first_day = date(year, month, 1)
    next_month = date(year + month // 12, month % 12 + 1, 1)
    last_day = next_month - timedelta(days=1)

    # weekday(): Monday=0 ... Sunday=6
    start = first_day - timedelta(days=(first_day.weekday() + 1) % 7)
    end = last_day + timedelta(days=(5 - last_day.weekday()) % 7)

    days = []
    current = start
    while current <= end:
        days.append(CalendarDay(
            date=current,
            is_current_month=current.month == month,
            is_today=current == today,
            bookings=bookings_for_date(current, bookings),
        ))
        current += timedelta(days=1)

    return CalendarMonth(year=year, month=month, days=days)


def navigate_month(year: int, month: int, direction: str) -> tuple:
    if direction == "prev":
        if month == 1:
            return year - 1, 12
        return year, month - 1

    if direction == "next":
        if month == 12:
            return year + 1, 1
        return year, month + 1

    raise ValueError(f"Unknown direction: {direction}")


def save_bookings_csv(bookings: List[Booking], path="bookings.csv"):
    """
    Saves bookings to a CSV file.
    """

    fieldnames = [
        "id", "platform", "propertyName", "guestName", "checkInDate",
        "checkOutDate", "status", "originalStatus",
    ]

    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=fieldnames, extrasaction="ignore")
        writer.writeheader()
        writer.writerows(booking_to_dict(b) for b in bookings)
