"""
Seed the sightings table from the static CSV dataset.

Clears every stored sighting, then inserts the CSV rows in batches.
Rows missing coordinates, a date or a category are skipped.

Usage:
    python -m wraithwatchers.seed
    python -m wraithwatchers.seed --csv data/ghost_sightings.csv --batch-size 250
    python -m wraithwatchers.seed --database-url sqlite:///sightings.db
"""

import argparse
import logging
import os
import sys
from typing import Dict, List, Optional, Tuple

from sqlalchemy import create_engine, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from . import config
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
    parse_float,
    parse_upload_csv,
)
from .database import Base
from .models import Sighting

_logger = logging.getLogger("wraithwatchers.seed")

BATCH_SIZE = 100


def csv_row_to_db(row: Dict[str, str]) -> Dict[str, object]:
    return {
        "date": row.get(DATE_COL),
        "time": row.get(TIME_COL) or "",
        "type": row.get(TYPE_COL),
        "location": row.get(CITY_COL) or "",
        "state": row.get(STATE_COL) or "",
        "notes": row.get(NOTES_COL) or "",
        "lat": parse_float(row.get(LAT_COL)),
        "lng": parse_float(row.get(LNG_COL)),
        "image_url": row.get(IMAGE_COL) or None,
    }


def _insertable(record: Dict[str, object]) -> bool:
    return bool(record["lat"] and record["lng"] and record["date"] and record["type"])


def clear_sightings(session: Session) -> int:
    deleted = session.query(Sighting).delete()
    session.commit()
    return deleted


def seed_sightings(session: Session, rows: List[Dict[str, str]], batch_size: int = BATCH_SIZE) -> Tuple[int, int]:
    """Insert rows batch by batch; a failed batch is counted and skipped.

    Returns:
        (uploaded, errors) record counts.
    """
    uploaded = 0
    errors = 0
    batches = (len(rows) + batch_size - 1) // batch_size
    for number, start in enumerate(range(0, len(rows), batch_size), start=1):
        batch = [r for r in map(csv_row_to_db, rows[start:start + batch_size]) if _insertable(r)]
        _logger.info("Uploading batch %d/%d (%d records)", number, batches, len(batch))
        try:
            session.add_all([Sighting(**r) for r in batch])
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            _logger.error("Error uploading batch %d: %s", number, exc)
            errors += len(batch)
        else:
            uploaded += len(batch)
    return uploaded, errors


def count_sightings(session: Session) -> int:
    return session.query(func.count(Sighting.id)).scalar() or 0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Replace stored sightings with the contents of a CSV dataset.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--csv", default=config.SIGHTINGS_CSV_PATH, help="CSV dataset to upload")
    parser.add_argument("--database-url", default=config.DATABASE_URL, help="SQLAlchemy database URL")
    parser.add_argument("--batch-size", type=int, default=BATCH_SIZE, help="Rows per insert batch")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    logging.basicConfig(format="%(asctime)s %(levelname)s %(message)s", level=config.LOG_LEVEL)
    args = _build_parser().parse_args(argv)

    if not args.database_url:
        _logger.error("Missing database configuration: set DATABASE_URL or DB_USER/DB_PASSWORD/DB_HOST/DB_NAME")
        return 1
    if not os.path.exists(args.csv):
        _logger.error("CSV file not found at: %s", args.csv)
        return 1

    with open(args.csv, encoding="utf-8") as f:
        rows = parse_upload_csv(f.read())
    _logger.info("Found %d records in CSV", len(rows))

    engine = create_engine(args.database_url)
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(bind=engine)()
    try:
        _logger.info("Clearing existing sightings")
        try:
            clear_sightings(session)
        except SQLAlchemyError as exc:
            session.rollback()
            _logger.error("Error clearing existing data: %s", exc)
            return 1

        uploaded, errors = seed_sightings(session, rows, args.batch_size)
        _logger.info("Upload complete: %d uploaded, %d errors", uploaded, errors)
        _logger.info("Total records in database: %d", count_sightings(session))
    finally:
        session.close()
        engine.dispose()
    return 0


if __name__ == "__main__":
    sys.exit(main())
