import logging
import os
from functools import lru_cache
from typing import Dict, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .csv_parser import parse_sightings_data
from .models import Sighting as SightingModel
from .schemas import Sighting

logger = logging.getLogger(__name__)


class BackingStoreError(Exception):
    """A write to the backing store could not be completed."""


class DatasetUnavailableError(Exception):
    """Neither the backing store nor the static dataset yielded sightings."""


def db_to_sighting(row: SightingModel) -> Sighting:
    return Sighting(
        id=row.id or 0,
        date=row.date,
        time=row.time or "",
        type=row.type,
        location=f"{row.location}, {row.state}",
        notes=row.notes or "",
        image=row.image_url or None,
        lat=row.lat,
        lng=row.lng,
        state=row.state or "",
    )


def sighting_to_db(data: Dict[str, object]) -> Dict[str, object]:
    """Map a submitted sighting onto stored columns; "City, State" is split apart."""
    location = data.get("location") or ""
    parts = location.split(", ") if location else ["", ""]
    return {
        "date": data.get("date"),
        "time": data.get("time"),
        "type": data.get("type"),
        "location": parts[0] or "",
        "state": (parts[1] if len(parts) > 1 else "") or data.get("state") or "",
        "notes": data.get("notes"),
        "lat": data.get("lat"),
        "lng": data.get("lng"),
        "image_url": data.get("image_url") or data.get("image"),
    }


def get_all_sightings(db: Optional[Session]) -> List[Sighting]:
    if db is None:
        logger.info("Backing store not configured, returning no sightings")
        return []
    try:
        rows = (
            db.query(SightingModel)
            .order_by(SightingModel.created_at.desc(), SightingModel.id.desc())
            .all()
        )
    except SQLAlchemyError:
        logger.exception("Error fetching sightings")
        return []
    return [db_to_sighting(r) for r in rows]


def create_sighting(db: Optional[Session], data: Dict[str, object]) -> SightingModel:
    if db is None:
        raise BackingStoreError("Database not configured")
    row = SightingModel(**sighting_to_db(data))
    try:
        db.add(row)
        db.commit()
        db.refresh(row)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Error creating sighting: %s", exc)
        raise BackingStoreError(str(exc.orig) if getattr(exc, "orig", None) else "Failed to create sighting") from exc
    logger.info("Saved sighting id=%s type=%s location=%s", row.id, row.type, row.location)
    return row


@lru_cache(maxsize=4)
def _read_dataset(path: str, mtime: float) -> Tuple[Sighting, ...]:
    # mtime is part of the cache key so an edited file is re-read
    with open(path, encoding="utf-8") as f:
        return tuple(parse_sightings_data(f.read()))


def read_static_dataset(path: str) -> List[Sighting]:
    try:
        mtime = os.path.getmtime(path)
        sightings = _read_dataset(path, mtime)
    except (OSError, UnicodeDecodeError) as exc:
        logger.error("Failed to read sightings dataset %s: %s", path, exc)
        raise DatasetUnavailableError("Failed to load sightings data") from exc
    return list(sightings)


def load_sightings(db: Optional[Session], csv_path: str) -> List[Sighting]:
    """Stored sightings when there are any, otherwise the static dataset."""
    sightings = get_all_sightings(db)
    if sightings:
        return sightings
    logger.debug("No stored sightings, falling back to %s", csv_path)
    return read_static_dataset(csv_path)
