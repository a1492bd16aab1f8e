"""
Heuristics that turn free-text SUMMARY / DESCRIPTION values into a booking
status and a guest display name.

Every platform has an ordered list of small rules. Each rule looks at the
event text and either returns an answer or None to pass to the next rule.
The first answer wins; when nothing answers, the default is used.

Status defaults to CONFIRMED: an event with no negative signal (blocked /
cancelled) counts as a booking, even when its summary is just a guest name.
"""

import re
from collections import namedtuple
from typing import Callable, Dict, List, Optional, Sequence

from reservcheck.calendars.booking import BookingStatus
from reservcheck.calendars.platforms import Platform

EventText = namedtuple("EventText", ["summary", "description", "platform"])

StatusRule = Callable[[EventText], Optional[BookingStatus]]
GuestRule = Callable[[EventText], Optional[str]]

NEGATIVE_SUMMARIES = {"blocked", "cancelled"}
POSITIVE_SUMMARIES = {"booked", "reserved", "confirmed"}
AIRBNB_UNAVAILABLE = "airbnb (not available)"

BLOCKED_GUEST = "Blocked"
UNKNOWN_GUEST = "Unknown Guest"
DEFAULT_STATUS = BookingStatus.CONFIRMED

KNOWN_LABELS = ("Guest", "Status", "Reservation ID", "Property ID")

# Real newlines, or the two-character "\n" escape ICS uses inside values
LINE_BREAK = re.compile(r"\r?\n|\\n")

TRAILING_DECORATIONS = [
    re.compile(r"\s+-\s+closed\s*$", re.IGNORECASE),
]


def _normalized(text: Optional[str]) -> str:
    return (text or "").strip().lower()


def description_lines(description: Optional[str]) -> List[str]:
    if not description:
        return []
    return LINE_BREAK.split(description)


def labeled_field(description: Optional[str], label: str) -> Optional[str]:
    """
    Reads a "Label: value" field out of a description. The value stops at a
    line break or at the next known label on the same line.
    """
    if not description:
        return None

    others = "|".join(re.escape(other) for other in KNOWN_LABELS if other != label)
    pattern = re.compile(
        rf"{re.escape(label)}:[ \t]*(.*?)(?=\r?\n|\\n|(?:{others}):|$)",
        re.IGNORECASE,
    )
    match = pattern.search(description)
    if not match:
        return None
    value = match.group(1).strip()
    return value or None


def strip_decoration(summary: str) -> str:
    for pattern in TRAILING_DECORATIONS:
        summary = pattern.sub("", summary)
    return summary.strip()


# --- status rules ----------------------------------------------------------

def negative_summary(event: EventText) -> Optional[BookingStatus]:
    if _normalized(event.summary) in NEGATIVE_SUMMARIES:
        return BookingStatus.CANCELLED
    return None


def airbnb_not_available(event: EventText) -> Optional[BookingStatus]:
    if _normalized(event.summary) == AIRBNB_UNAVAILABLE:
        return BookingStatus.CANCELLED
    return None


def description_status_confirmed(event: EventText) -> Optional[BookingStatus]:
    if _normalized(labeled_field(event.description, "Status")) == "confirmed":
        return BookingStatus.CONFIRMED
    return None


def positive_summary(event: EventText) -> Optional[BookingStatus]:
    if _normalized(event.summary) in POSITIVE_SUMMARIES:
        return BookingStatus.CONFIRMED
    return None


# --- guest rules -----------------------------------------------------------

def guest_label(event: EventText) -> Optional[str]:
    return labeled_field(event.description, "Guest")


def blocked_guest(event: EventText) -> Optional[str]:
    if _normalized(event.summary) in NEGATIVE_SUMMARIES:
        return BLOCKED_GUEST
    return None


def airbnb_not_available_guest(event: EventText) -> Optional[str]:
    if _normalized(event.summary) == AIRBNB_UNAVAILABLE:
        return BLOCKED_GUEST
    return None


def first_description_line(event: EventText) -> Optional[str]:
    lines = description_lines(event.description)
    if lines and lines[0].strip():
        return lines[0].strip()
    return None


def cleaned_summary(event: EventText) -> Optional[str]:
    return strip_decoration(event.summary or "") or None


class RuleSet:
    """
    Ordered status and guest rules, keyed by platform.

    Rule lists are stored as tuples. The add_* methods return a new RuleSet
    and leave this one unchanged.
    """

    def __init__(self, status_rules: Dict[Platform, Sequence[StatusRule]],
                 guest_rules: Dict[Platform, Sequence[GuestRule]]):
        self.status_rules = {p: tuple(r) for p, r in status_rules.items()}
        self.guest_rules = {p: tuple(r) for p, r in guest_rules.items()}

    @classmethod
    def default(cls) -> "RuleSet":
        return cls(
            status_rules={
                Platform.AIRBNB: [
                    negative_summary,
                    airbnb_not_available,
                    description_status_confirmed,
                    positive_summary,
                ],
                Platform.BOOKING: [negative_summary, positive_summary],
                Platform.OTHER: [negative_summary, positive_summary],
            },
            guest_rules={
                # Airbnb descriptions start with a reservation URL, not a name
                Platform.AIRBNB: [
                    blocked_guest,
                    guest_label,
                    airbnb_not_available_guest,
                    cleaned_summary,
                ],
                Platform.BOOKING: [
                    blocked_guest,
                    guest_label,
                    first_description_line,
                    cleaned_summary,
                ],
                Platform.OTHER: [
                    blocked_guest,
                    guest_label,
                    first_description_line,
                    cleaned_summary,
                ],
            },
        )

    @staticmethod
    def _with_rule(table: dict, platform: Platform, rule, position: Optional[int]) -> dict:
        rules = list(table.get(platform, ()))
        if position is None:
            rules.append(rule)
        else:
            rules.insert(position, rule)
        return {**table, platform: rules}

    def add_status_rule(self, platform: Platform, rule: StatusRule,
                        position: Optional[int] = None) -> "RuleSet":
        return RuleSet(self._with_rule(self.status_rules, platform, rule, position), self.guest_rules)

    def add_guest_rule(self, platform: Platform, rule: GuestRule,
                       position: Optional[int] = None) -> "RuleSet":
        return RuleSet(self.status_rules, self._with_rule(self.guest_rules, platform, rule, position))

    def _for(self, table: dict, platform: Platform) -> tuple:
        return table.get(platform) or table.get(Platform.OTHER, ())

    def resolve_status(self, summary: Optional[str], description: Optional[str],
                       platform: Platform) -> BookingStatus:
        event = EventText(summary or "", description or "", platform)
        for rule in self._for(self.status_rules, platform):
            status = rule(event)
            if status is not None:
                return status
        return DEFAULT_STATUS

    def resolve_guest_name(self, summary: Optional[str], description: Optional[str],
                           platform: Platform) -> str:
        event = EventText(summary or "", description or "", platform)
        for rule in self._for(self.guest_rules, platform):
            name = rule(event)
            if name and name.strip():
                return name.strip()
        return UNKNOWN_GUEST


DEFAULT_RULES = RuleSet.default()


def resolve_status(summary: Optional[str], description: Optional[str],
                   platform: Platform) -> BookingStatus:
    return DEFAULT_RULES.resolve_status(summary, description, platform)


def resolve_guest_name(summary: Optional[str], description: Optional[str],
                       platform: Platform) -> str:
    return DEFAULT_RULES.resolve_guest_name(summary, description, platform)
