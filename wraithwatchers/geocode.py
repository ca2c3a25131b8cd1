import logging

import requests

from . import config

logger = logging.getLogger(__name__)

UNKNOWN_LOCATION = "Unknown Location"


def fallback_name(lat: float, lng: float) -> str:
    return f"Location ({lat:.4f}, {lng:.4f})"


def reverse_geocode(lat: float, lng: float) -> str:
    """
    Resolve a map click to a short "City, Region" style name via Nominatim.
    Falls back to the raw coordinates when the lookup fails.
    """
    params = {"format": "json", "lat": lat, "lon": lng, "zoom": 10, "addressdetails": 1}
    headers = {"User-Agent": config.GEOCODER_USER_AGENT}
    try:
        r = requests.get(config.GEOCODER_URL, params=params, headers=headers, timeout=config.GEOCODER_TIMEOUT)
        r.raise_for_status()
        data = r.json()
    except (requests.RequestException, ValueError) as exc:
        logger.warning("Reverse geocoding failed for (%s, %s): %s", lat, lng, exc)
        return fallback_name(lat, lng)

    display_name = data.get("display_name") if isinstance(data, dict) else None
    if not display_name:
        return UNKNOWN_LOCATION
    return ", ".join(display_name.split(", ")[:2])
