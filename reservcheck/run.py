import logging
import os
from datetime import datetime, timezone

from reservcheck.calendars.errors import CalendarFetchError, IcalFormatError
from reservcheck.calendars.fetch_calendars import fetch_calendar
from reservcheck.calendars.parse_ical import parse_calendar
from reservcheck.config.utils import calendar_entries, load_config, merge_bookings
from reservcheck.schedule.diff_events import diff_events
from reservcheck.schedule.generate_schedule import save_bookings_csv
from reservcheck.schedule.state_manager import bookings_to_state, load_previous_state, save_state

# Import timestamps change on every run and must not show up as changes
TIMESTAMP_KEYS = ("createdAt", "updatedAt")


def import_property(prop: dict, fetch_options: dict) -> list:
    """
    Fetches and parses every calendar of one property.
    Returns one booking list per calendar that could be imported.
    """
    name = prop["name"]
    bookings_lists = []

    for entry in calendar_entries(prop):
        source = entry["source"]

        try:
            raw_ical = fetch_calendar(source, **fetch_options)
            result = parse_calendar(
                raw_ical,
                platform=entry["platform"],
                source=source,
                property_name=name,
            )
        except (CalendarFetchError, IcalFormatError) as e:
            print(f"  ✗ Skipping calendar {source}: {e.message}")
            continue

        print(f"  → {len(result.bookings)} bookings from {source}")
        if result.skipped:
            print(f"    ({result.summary()})")
            for warning in result.warnings:
                print(f"    - {warning}")

        bookings_lists.append(result.bookings)

    return bookings_lists


def main():
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = load_config()
    bucket = config.get("state_bucket")
    output_dir = config.get("output_dir") or "."
    fetch_options = config.get("fetch") or {}

    for prop in config.get("properties") or []:
        name = prop["name"]

        print(f"\n{'='*60}")
        print(f"Processing property: {name}")
        print(f"{'='*60}")

        merged_bookings = merge_bookings(import_property(prop, fetch_options))
        print(f"  → {len(merged_bookings)} bookings after merge.")

        # Save CSV file for the property
        safe_name = name.replace(" ", "")
        csv_filename = os.path.join(output_dir, f"{safe_name}.csv")
        save_bookings_csv(merged_bookings, path=csv_filename)
        print(f"  → Saved CSV: {csv_filename}")

        if not bucket:
            continue

        # Diff against the previous import
        prev_state = load_previous_state(name, bucket)
        new_events = bookings_to_state(merged_bookings)
        diff = diff_events(prev_state.get("bookings", {}), new_events, ignore=TIMESTAMP_KEYS)

        print(
            f"  → Added: {len(diff['added'])}, removed: {len(diff['removed'])}, "
            f"changed: {len(diff['changed'])}"
        )

        save_state(name, {
            "bookings": new_events,
            "last_import": datetime.now(timezone.utc).isoformat(),
        }, bucket)
        print(f"  → State saved for {name}")

    print(f"\n{'='*60}")
    print("All properties processed.")
    print(f"{'='*60}\n")


if __name__ == "__main__":
    main()
