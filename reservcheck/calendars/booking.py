"""
Booking records produced by the ICS importer, plus the (de)serialization
used by the state store and the month-grid UI.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import List, Optional

from reservcheck.calendars.platforms import Platform


class BookingStatus(str, Enum):
    CONFIRMED = "confirmed"
    # Never produced by the parser, kept for manually entered bookings
    PENDING = "pending"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class Booking:
    """One reservation (or blocked range) taken from a calendar export."""
    id: str
    platform: Platform
    property_name: str
    guest_name: str
    check_in_date: date
    check_out_date: date            # inclusive: the last night of the stay
    status: BookingStatus
    created_at: datetime
    updated_at: datetime
    description: Optional[str] = None
    original_status: Optional[str] = None   # verbatim SUMMARY

    @property
    def nights(self) -> int:
        return (self.check_out_date - self.check_in_date).days + 1


@dataclass(frozen=True)
class ParseWarning:
    index: int
    uid: Optional[str]
    reason: str

    def __str__(self):
        label = self.uid or "<no UID>"
        return f"event #{self.index} ({label}): {self.reason}"


@dataclass
class ParseResult:
    bookings: List[Booking] = field(default_factory=list)
    warnings: List[ParseWarning] = field(default_factory=list)
    total_events: int = 0

    @property
    def skipped(self) -> int:
        return len(self.warnings)

    def summary(self) -> str:
        return f"{self.skipped} of {self.total_events} events skipped"


def booking_to_dict(booking: Booking) -> dict:
    """
    Flattens a Booking into JSON-friendly primitives.
    Keys follow the camelCase names the calendar UI reads.
    """
    return {
        "id": booking.id,
        "platform": booking.platform.value,
        "propertyName": booking.property_name,
        "guestName": booking.guest_name,
        "description": booking.description,
        "checkInDate": booking.check_in_date.isoformat(),
        "checkOutDate": booking.check_out_date.isoformat(),
        "status": booking.status.value,
        "originalStatus": booking.original_status,
        "createdAt": booking.created_at.isoformat(),
        "updatedAt": booking.updated_at.isoformat(),
    }


def booking_from_dict(data: dict) -> Booking:
    return Booking(
        id=data["id"],
        platform=Platform(data["platform"]),
        property_name=data["propertyName"],
        guest_name=data["guestName"],
        description=data.get("description"),
        check_in_date=date.fromisoformat(data["checkInDate"]),
        check_out_date=date.fromisoformat(data["checkOutDate"]),
        status=BookingStatus(data["status"]),
        original_status=data.get("originalStatus"),
        created_at=datetime.fromisoformat(data["createdAt"]),
        updated_at=datetime.fromisoformat(data["updatedAt"]),
    )
