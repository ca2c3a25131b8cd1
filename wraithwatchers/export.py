import csv
import io
import re
from datetime import date, datetime, timezone
from typing import List, Optional, Union
from urllib.parse import quote

from .csv_parser import (
    CITY_COL,
    DATE_COL,
    IMAGE_COL,
    LAT_COL,
    LNG_COL,
    NOTES_COL,
    STATE_COL,
    TIME_COL,
    TYPE_COL,
)
from .pipeline import FilterConfig
from .schemas import ALL_TIME, ALL_TYPES, Sighting

EXPORT_HEADERS = [
    DATE_COL,
    TIME_COL,
    TYPE_COL,
    CITY_COL,
    STATE_COL,
    NOTES_COL,
    LAT_COL,
    LNG_COL,
    IMAGE_COL,
]

def _coordinate(value: float) -> Union[int, float]:
    # 40.0 is written as 40
    return int(value) if float(value).is_integer() else value


def export_to_csv(sightings: List[Sighting]) -> str:
    """Render sightings as CSV text in the static dataset's column layout.

    The header is written bare; every text field is quoted with embedded
    quotes doubled, while coordinates stay unquoted.
    """
    output = io.StringIO()
    output.write(",".join(EXPORT_HEADERS) + "\n")
    writer = csv.writer(output, quoting=csv.QUOTE_NONNUMERIC, lineterminator="\n")
    for s in sightings:
        writer.writerow([
            s.date,
            s.time,
            s.type,
            s.location.split(",")[0].strip(),
            s.state,
            s.notes,
            _coordinate(s.lat),
            _coordinate(s.lng),
            s.image or "",
        ])
    text = output.getvalue()
    return text[:-1] if text.endswith("\n") else text


def generate_export_filename(
    filters: FilterConfig,
    search_query: str,
    total_count: int,
    today: Optional[date] = None,
) -> str:
    stamp = (today or datetime.now(timezone.utc).date()).isoformat()
    filename = f"wraithwatchers_sightings_{stamp}"

    if not filters.is_active() and not search_query.strip():
        return f"{filename}_{total_count}_records.csv"

    parts = []
    if filters.date_range != ALL_TIME:
        parts.append(re.sub(r"\s+", "_", filters.date_range))
    if filters.sighting_type != ALL_TYPES:
        parts.append(re.sub(r"\s+", "_", filters.sighting_type))
    if filters.location.strip():
        parts.append(re.sub(r"\s+", "_", filters.location))
    if search_query.strip():
        parts.append("search")

    return f"{filename}_{'_'.join(parts)}_{total_count}_records.csv"


def content_disposition(filename: str) -> str:
    """Attachment header with an ASCII fallback name plus the RFC 5987 UTF-8 name."""
    fallback = re.sub(r"[^A-Za-z0-9._-]", "_", filename)
    return f"attachment; filename={fallback}; filename*=UTF-8''{quote(filename)}"
