import json
import logging
from typing import Dict, List

from google.api_core.exceptions import NotFound
from google.cloud import storage

from reservcheck.calendars.booking import Booking, booking_from_dict, booking_to_dict

logger = logging.getLogger(__name__)


def _get_blob(property_name: str, bucket_name: str):
    """
    Returns the GCS blob object for the property's bookings file.
    """
    client = storage.Client()
    bucket = client.bucket(bucket_name)
    filename = f"{property_name.replace(' ', '')}_bookings.json"
    return bucket.blob(filename)


def load_previous_state(property_name: str, bucket_name: str) -> dict:
    """
    Loads the previous state for a property from GCS.
    If the file does not exist, returns an empty default structure.
    """
    blob = _get_blob(property_name, bucket_name)

    try:
        data = blob.download_as_text()
        return json.loads(data)
    except NotFound:
        # No previous import exists yet
        return {
            "bookings": {},        # id -> serialized booking
            "last_import": None,
        }


def save_state(property_name: str, state: dict, bucket_name: str):
    """
    Saves the given state dictionary to GCS as JSON.
    """
    blob = _get_blob(property_name, bucket_name)
    blob.upload_from_string(
        json.dumps(state, indent=2),
        content_type="application/json"
    )
    logger.info("Saved state for %s to %s", property_name, blob.name)


def bookings_to_state(bookings: List[Booking]) -> Dict[str, dict]:
    return {b.id: booking_to_dict(b) for b in bookings}


def bookings_from_state(state: dict) -> List[Booking]:
    return [booking_from_dict(d) for d in state.get("bookings", {}).values()]
