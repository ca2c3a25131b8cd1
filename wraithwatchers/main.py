from fastapi import FastAPI, HTTPException, Depends, Query, UploadFile, File
import logging
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse
from fastapi.staticfiles import StaticFiles
from typing import List, Optional, Tuple
import os

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from . import config
from .csv_parser import calculate_stats
from .database import Base, engine, get_db, is_configured
from .export import content_disposition, export_to_csv, generate_export_filename
from .geocode import reverse_geocode
from .pipeline import (
    ITEMS_PER_PAGE,
    SORT_KEYS,
    FilterConfig,
    SortConfig,
    clamp_page,
    page_window,
    paginate,
    run_pipeline,
    total_pages,
)
from .repository import (
    BackingStoreError,
    DatasetUnavailableError,
    create_sighting as store_sighting,
    db_to_sighting,
    load_sightings,
)
from .schemas import (
    ALL_TIME,
    ALL_TYPES,
    DATE_RANGES,
    SIGHTING_TYPES,
    TIMES_OF_DAY,
    FormOptions,
    MapView,
    ReverseGeocodeResponse,
    Sighting,
    SightingCreate,
    SightingsPage,
    SightingStats,
    UploadResponse,
)
from .storage import MAX_IMAGE_BYTES, UploadRejected, upload_image as store_image, validate_image

app = FastAPI(title="WraithWatchers Sightings API")
logging.basicConfig(level=config.LOG_LEVEL)
logger = logging.getLogger("wraithwatchers-api")


def create_tables(bind) -> bool:
    """Create tables if they don't exist (simple start; migrations recommended later)."""
    if bind is None:
        return False
    try:
        Base.metadata.create_all(bind=bind)
    except SQLAlchemyError:
        # An unreachable store must not stop the app; reads fall back to the CSV
        logger.exception("Could not create tables; serving the static dataset until the store is reachable")
        return False
    return True


create_tables(engine)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Uploaded images are served straight from the bucket directory
os.makedirs(config.UPLOAD_DIR, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=config.UPLOAD_DIR), name="uploads")

US_CENTER = [39.8283, -98.5795]
MAX_MAP_MARKERS = 100


def view_params(
    date_range: str = Query(ALL_TIME, description="All Time | Last 30 Days | Last 6 Months"),
    sighting_type: str = Query(ALL_TYPES, description="Category, or All Types"),
    location: str = Query("", description="City or state substring"),
    q: str = Query("", description="Search notes, type, location or date"),
    sort: Optional[str] = Query(None, description="Sort key"),
    direction: str = Query("asc", description="asc | desc"),
) -> Tuple[FilterConfig, Optional[SortConfig]]:
    if date_range not in DATE_RANGES:
        raise HTTPException(status_code=400, detail=f"Unknown date range: {date_range}")
    filters = FilterConfig(date_range=date_range, sighting_type=sighting_type, location=location, search=q)
    sort_config = None
    if sort:
        try:
            sort_config = SortConfig(key=sort, direction=direction)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc))
    return filters, sort_config


def _load(db: Optional[Session]) -> List[Sighting]:
    try:
        return load_sightings(db, config.SIGHTINGS_CSV_PATH)
    except DatasetUnavailableError as exc:
        raise HTTPException(status_code=503, detail=str(exc))


@app.get("/")
def read_root():
    return {"message": "WraithWatchers Sightings API", "version": "1.0.0"}


@app.get("/api/health")
def health_check():
    return {"status": "healthy", "database": "configured" if is_configured() else "not configured"}


@app.get("/api/options", response_model=FormOptions)
def get_options():
    return FormOptions(
        times_of_day=TIMES_OF_DAY,
        sighting_types=SIGHTING_TYPES,
        date_ranges=DATE_RANGES,
        sort_keys=SORT_KEYS,
    )


@app.get("/api/sightings", response_model=SightingsPage)
def list_sightings(
    page: int = Query(1, ge=1),
    per_page: int = Query(ITEMS_PER_PAGE, ge=1, le=500),
    view: Tuple[FilterConfig, Optional[SortConfig]] = Depends(view_params),
    db: Session = Depends(get_db),
):
    filters, sort_config = view
    matched = run_pipeline(_load(db), filters, sort_config)

    current = clamp_page(page, len(matched), per_page)
    pages = total_pages(len(matched), per_page)
    items = paginate(matched, current, per_page)
    start = (current - 1) * per_page
    return SightingsPage(
        items=items,
        total=len(matched),
        page=current,
        per_page=per_page,
        total_pages=pages,
        pages=page_window(current, pages),
        showing_from=start + 1 if items else 0,
        showing_to=start + len(items),
    )


@app.get("/api/sightings/map", response_model=MapView)
def sightings_map(
    view: Tuple[FilterConfig, Optional[SortConfig]] = Depends(view_params),
    db: Session = Depends(get_db),
):
    filters, sort_config = view
    matched = run_pipeline(_load(db), filters, sort_config)
    if matched:
        center = [
            sum(s.lat for s in matched) / len(matched),
            sum(s.lng for s in matched) / len(matched),
        ]
    else:
        center = list(US_CENTER)
    return MapView(
        center=center,
        zoom=4 if matched else 3,
        total=len(matched),
        markers=matched[:MAX_MAP_MARKERS],
    )


@app.get("/api/sightings/stats", response_model=SightingStats)
def sightings_stats(db: Session = Depends(get_db)):
    return SightingStats(**calculate_stats(_load(db)))


@app.get("/api/sightings/export")
def export_sightings_csv(
    view: Tuple[FilterConfig, Optional[SortConfig]] = Depends(view_params),
    db: Session = Depends(get_db),
):
    filters, sort_config = view
    matched = run_pipeline(_load(db), filters, sort_config)
    filename = generate_export_filename(filters, filters.search, len(matched))
    logger.info("Exporting %d sightings as %s", len(matched), filename)
    return StreamingResponse(
        iter([export_to_csv(matched)]),
        media_type="text/csv; charset=utf-8",
        headers={
            "Content-Disposition": content_disposition(filename),
        },
    )


@app.get("/api/sightings/{sighting_id}", response_model=Sighting)
def get_sighting(sighting_id: int, db: Session = Depends(get_db)):
    for s in _load(db):
        if s.id == sighting_id:
            return s
    raise HTTPException(status_code=404, detail="Sighting not found")


@app.post("/api/sightings", response_model=Sighting, status_code=201)
def create_sighting(sighting: SightingCreate, db: Session = Depends(get_db)):
    logger.info("POST /api/sightings type=%s location=%s", sighting.type, sighting.location)
    if db is None:
        raise HTTPException(status_code=503, detail="Database not configured")
    try:
        row = store_sighting(db, sighting.model_dump())
    except BackingStoreError as exc:
        raise HTTPException(status_code=502, detail=f"Error saving sighting: {exc}")
    return db_to_sighting(row)


@app.post("/api/upload", response_model=UploadResponse)
async def upload_image(file: UploadFile = File(...)):
    try:
        validate_image(file.content_type, 0)
        chunks = []
        size = 0
        while True:
            chunk = await file.read(1024 * 1024)
            if not chunk:
                break
            size += len(chunk)
            # Stop reading as soon as the limit is crossed
            if size > MAX_IMAGE_BYTES:
                validate_image(file.content_type, size)
            chunks.append(chunk)
        url = store_image(file.filename, file.content_type, b"".join(chunks))
    except UploadRejected as exc:
        raise HTTPException(status_code=exc.status_code, detail=f"Error uploading image: {exc.message}")
    except OSError as exc:
        logger.error("Failed to store upload %s: %s", file.filename, exc)
        raise HTTPException(status_code=500, detail="Error uploading image: Failed to upload image")
    finally:
        await file.close()
    return UploadResponse(url=url)


@app.get("/api/geocode/reverse", response_model=ReverseGeocodeResponse)
def geocode_reverse(
    lat: float = Query(..., ge=-90, le=90),
    lng: float = Query(..., ge=-180, le=180),
):
    return ReverseGeocodeResponse(location=reverse_geocode(lat, lng), lat=lat, lng=lng)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("wraithwatchers.main:app", host="0.0.0.0", port=config.PORT, reload=True)
