import csv
import io
import math
import re
from collections import Counter
from datetime import date
from typing import Dict, List, Optional

from dateutil import parser as date_parser

from .schemas import Sighting

# Column headers of the static sightings dataset
DATE_COL = "Date of Sighting"
LAT_COL = "Latitude of Sighting"
LNG_COL = "Longitude of Sighting"
CITY_COL = "Nearest Approximate City"
STATE_COL = "US State"
NOTES_COL = "Notes about the sighting"
TIME_COL = "Time of Day"
TYPE_COL = "Tag of Apparition"
IMAGE_COL = "Image Link"


def parse_sighting_date(value: Optional[str]) -> Optional[date]:
    """Best-effort parse of a free-form sighting date; None when unreadable."""
    if not value or not value.strip():
        return None
    try:
        return date_parser.parse(value.strip()).date()
    except (ValueError, OverflowError):
        return None


_LEADING_NUMBER = re.compile(r"\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


def parse_float(value: Optional[str]) -> Optional[float]:
    """Read the number a value starts with, ignoring trailing text ('40.1N' is 40.1)."""
    match = _LEADING_NUMBER.match(value or "")
    if match is None:
        return None
    number = float(match.group(1))
    if math.isinf(number):
        return None
    return number


def _coordinate(value: Optional[str]) -> float:
    number = parse_float(value)
    return 0.0 if number is None else number


def _is_usable(sighting: Sighting) -> bool:
    return sighting.lat != 0 and sighting.lng != 0 and bool(sighting.date) and bool(sighting.type)


def parse_sightings_data(csv_text: str) -> List[Sighting]:
    """Parse the static dataset into sightings.

    Ids are the 1-based position of the row in the file, assigned before
    unusable rows (no coordinates, date or category) are dropped.
    """
    reader = csv.DictReader(io.StringIO(csv_text))
    sightings = []
    for index, row in enumerate(reader, start=1):
        city = row.get(CITY_COL) or ""
        state = row.get(STATE_COL) or ""
        sightings.append(
            Sighting(
                id=index,
                date=row.get(DATE_COL) or "",
                time=row.get(TIME_COL) or "",
                type=row.get(TYPE_COL) or "",
                location=f"{city}, {state}",
                notes=row.get(NOTES_COL) or "",
                image=row.get(IMAGE_COL) or None,
                lat=_coordinate(row.get(LAT_COL)),
                lng=_coordinate(row.get(LNG_COL)),
                state=state,
            )
        )
    return [s for s in sightings if _is_usable(s)]


def split_upload_line(line: str) -> List[str]:
    """Split one line on commas outside double quotes.

    A quote only toggles the quoted state and is never kept, so a doubled
    quote inside a field disappears rather than unescaping.
    """
    values = []
    current = []
    in_quotes = False
    for char in line:
        if char == '"':
            in_quotes = not in_quotes
        elif char == "," and not in_quotes:
            values.append("".join(current).strip())
            current = []
        else:
            current.append(char)
    values.append("".join(current).strip())
    return values


def parse_upload_csv(csv_text: str) -> List[Dict[str, str]]:
    """Header-keyed rows as read by the seeding script; ragged rows are skipped."""
    lines = csv_text.split("\n")
    headers = [h.strip() for h in lines[0].split(",")]
    rows = []
    for raw in lines[1:]:
        line = raw.strip()
        if not line:
            continue
        values = split_upload_line(line)
        if len(values) != len(headers):
            continue
        rows.append(dict(zip(headers, values)))
    return rows


def time_ago(when: date, today: Optional[date] = None) -> str:
    days = ((today or date.today()) - when).days
    if days == 0:
        return "Today"
    if days == 1:
        return "1 Day Ago"
    if days < 7:
        return f"{days} Days Ago"
    if days < 30:
        return f"{days // 7} Weeks Ago"
    if days < 365:
        return f"{days // 30} Months Ago"
    return f"{days // 365} Years Ago"


def calculate_stats(sightings: List[Sighting], today: Optional[date] = None) -> Dict[str, object]:
    dated = [d for d in (parse_sighting_date(s.date) for s in sightings) if d is not None]
    most_recent = time_ago(max(dated), today) if dated else "No recent sightings"

    city_counts = Counter(s.location.split(",")[0].strip() for s in sightings)
    most_ghostly_city = "Unknown"
    if city_counts:
        # most_common keeps first-seen order among equal counts
        city, _ = city_counts.most_common(1)[0]
        state = next((s.state for s in sightings if s.location.startswith(city)), "")
        most_ghostly_city = f"{city}, {state}"

    return {
        "total_sightings": len(sightings),
        "most_recent": most_recent,
        "most_ghostly_city": most_ghostly_city,
    }
