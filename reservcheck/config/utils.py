import os
from typing import List

import yaml

from reservcheck.calendars.booking import Booking


def load_config(path: str = "config.yaml") -> dict:
    """
    Loads YAML configuration file and returns a dictionary.
    RESERVCHECK_CONFIG overrides the path.
    """

    path = os.getenv("RESERVCHECK_CONFIG", path)

    if not os.path.isabs(path):
        # Relative paths are resolved against the package root: reservcheck/config.yaml
        base_dir = os.path.dirname(os.path.abspath(__file__))
        path = os.path.abspath(os.path.join(base_dir, "..", path))

    with open(path, "r") as f:
        return yaml.safe_load(f) or {}


def calendar_entries(prop: dict) -> List[dict]:
    """
    Normalizes a property's calendars into {"source", "platform"} dicts.
    Entries may be plain strings or mappings with an explicit platform.
    """
    entries = []
    for cal in prop.get("calendars", []):
        if isinstance(cal, str):
            entries.append({"source": cal, "platform": None})
        else:
            entries.append({"source": cal["source"], "platform": cal.get("platform")})
    return entries


def merge_bookings(bookings_lists: List[List[Booking]]) -> List[Booking]:
    """
    Takes a list of booking lists (from multiple calendars)
    and merges them into one sorted list without duplicate ids.
    """

    unique = []
    seen = set()

    for lst in bookings_lists:
        for b in lst:
            if b.id not in seen:
                seen.add(b.id)
                unique.append(b)

    # Sort by check-in date
    unique.sort(key=lambda b: (b.check_in_date, b.id))
    return unique
