from typing import Iterable


def diff_events(old_events: dict, new_events: dict, ignore: Iterable[str] = ()) -> dict:
    """
    Compares old and new booking dictionaries.
    Returns a dictionary describing added, removed, changed, and unchanged bookings.

    old_events: { id: { checkInDate, checkOutDate, guestName, ... } }
    new_events: { id: { checkInDate, checkOutDate, guestName, ... } }
    ignore: keys left out of the comparison, e.g. import timestamps
    """

    ignore = set(ignore)

    def comparable(data: dict) -> dict:
        return {k: v for k, v in data.items() if k not in ignore}

    added = {}
    removed = {}
    changed = {}
    unchanged = {}

    # Check for added & changed
    for event_id, new_data in new_events.items():
        if event_id not in old_events:
            added[event_id] = new_data
        else:
            old_data = old_events[event_id]
            if comparable(old_data) == comparable(new_data):
                unchanged[event_id] = new_data
            else:
                changed[event_id] = {
                    "old": old_data,
                    "new": new_data
                }

    # Check for removed
    for event_id, old_data in old_events.items():
        if event_id not in new_events:
            removed[event_id] = old_data

    return {
        "added": added,
        "removed": removed,
        "changed": changed,
        "unchanged": unchanged
    }
