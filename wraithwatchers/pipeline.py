"""Filter, sort and paginate an in-memory set of sightings.

Every stage is a pure function over a list, so running the same
configuration over the same input always yields the same page.
"""
import math
from dataclasses import dataclass
from datetime import date, timedelta
from typing import List, Optional

from dateutil.relativedelta import relativedelta

from .csv_parser import parse_sighting_date
from .schemas import ALL_TIME, ALL_TYPES, Sighting

ITEMS_PER_PAGE = 10
PAGE_WINDOW = 5

SORT_KEYS = ["id", "date", "time", "type", "location", "notes", "state", "lat", "lng"]
SORT_DIRECTIONS = ("asc", "desc")


@dataclass(frozen=True)
class FilterConfig:
    date_range: str = ALL_TIME
    sighting_type: str = ALL_TYPES
    location: str = ""
    search: str = ""

    def is_active(self) -> bool:
        return (
            self.date_range != ALL_TIME
            or self.sighting_type != ALL_TYPES
            or bool(self.location.strip())
            or bool(self.search.strip())
        )


@dataclass(frozen=True)
class SortConfig:
    key: str
    direction: str = "asc"

    def __post_init__(self):
        if self.key not in SORT_KEYS:
            raise ValueError(f"Unknown sort key: {self.key}")
        if self.direction not in SORT_DIRECTIONS:
            raise ValueError(f"Unknown sort direction: {self.direction}")


def date_cutoff(date_range: str, today: Optional[date] = None) -> Optional[date]:
    """Exclusive lower bound of a date-range bucket, or None for a pass-through."""
    today = today or date.today()
    if date_range == "Last 30 Days":
        return today - timedelta(days=30)
    if date_range == "Last 6 Months":
        return today - relativedelta(months=6)
    return None


def apply_filters(sightings: List[Sighting], filters: FilterConfig, today: Optional[date] = None) -> List[Sighting]:
    filtered = list(sightings)

    if filters.date_range != ALL_TIME:
        cutoff = date_cutoff(filters.date_range, today)
        if cutoff is not None:
            kept = []
            for s in filtered:
                when = parse_sighting_date(s.date)
                if when is not None and when > cutoff:
                    kept.append(s)
            filtered = kept

    if filters.sighting_type != ALL_TYPES:
        filtered = [s for s in filtered if s.type == filters.sighting_type]

    if filters.location.strip():
        needle = filters.location.lower()
        filtered = [s for s in filtered if needle in s.location.lower() or needle in s.state.lower()]

    if filters.search.strip():
        query = filters.search.lower()
        filtered = [
            s for s in filtered
            if query in s.notes.lower()
            or query in s.type.lower()
            or query in s.location.lower()
            or query in s.date
        ]

    return filtered


def _sort_value(sighting: Sighting, key: str):
    value = getattr(sighting, key)
    if key in ("id", "lat", "lng"):
        return value
    return value or ""


def sort_sightings(sightings: List[Sighting], sort: Optional[SortConfig]) -> List[Sighting]:
    # sorted() is stable in both directions, so ties keep their input order
    if sort is None:
        return list(sightings)
    return sorted(sightings, key=lambda s: _sort_value(s, sort.key), reverse=sort.direction == "desc")


def total_pages(count: int, per_page: int = ITEMS_PER_PAGE) -> int:
    return math.ceil(count / per_page) if count else 0


def clamp_page(page: int, count: int, per_page: int = ITEMS_PER_PAGE) -> int:
    return min(max(page, 1), max(total_pages(count, per_page), 1))


def paginate(sightings: List[Sighting], page: int, per_page: int = ITEMS_PER_PAGE) -> List[Sighting]:
    page = clamp_page(page, len(sightings), per_page)
    start = (page - 1) * per_page
    return sightings[start:start + per_page]


def page_window(current: int, pages: int, width: int = PAGE_WINDOW) -> List[int]:
    """Page numbers to offer as buttons around the current page."""
    if pages <= width:
        return list(range(1, pages + 1))
    half = width // 2
    if current <= half + 1:
        first = 1
    elif current >= pages - half:
        first = pages - width + 1
    else:
        first = current - half
    return list(range(first, first + width))


def run_pipeline(
    sightings: List[Sighting],
    filters: FilterConfig,
    sort: Optional[SortConfig] = None,
    today: Optional[date] = None,
) -> List[Sighting]:
    return sort_sightings(apply_filters(sightings, filters, today), sort)
