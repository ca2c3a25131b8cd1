from typing import List, Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator

TIMES_OF_DAY = ["Dawn", "Morning", "Afternoon", "Evening", "Night", "Midnight"]

SIGHTING_TYPES = [
    "Headless Spirit",
    "Shadow Figure",
    "Poltergeist",
    "White Lady",
    "Orbs",
    "Phantom Sounds",
    "Apparition",
    "Other",
]

ALL_TIME = "All Time"
ALL_TYPES = "All Types"
DATE_RANGES = [ALL_TIME, "Last 30 Days", "Last 6 Months"]


class Sighting(BaseModel):
    id: int
    date: str
    time: str = ""
    type: str
    location: str = ""
    notes: str = ""
    image: Optional[str] = None
    lat: float
    lng: float
    state: str = ""


class SightingCreate(BaseModel):
    date: str
    time: str
    type: str
    notes: str
    # "City, State" as resolved from the map click
    location: str = ""
    lat: float
    lng: float
    image_url: Optional[str] = Field(default=None, validation_alias=AliasChoices("image_url", "imageUrl", "image"))

    @field_validator("date", "time", "type", "notes", mode="before")
    @classmethod
    def _required_text(cls, v: object) -> str:
        if v is None or not str(v).strip():
            raise ValueError("field is required")
        return str(v).strip()

    @field_validator("time")
    @classmethod
    def _known_time(cls, v: str) -> str:
        if v not in TIMES_OF_DAY:
            raise ValueError(f"time must be one of: {', '.join(TIMES_OF_DAY)}")
        return v

    @field_validator("type")
    @classmethod
    def _known_type(cls, v: str) -> str:
        if v not in SIGHTING_TYPES:
            raise ValueError(f"type must be one of: {', '.join(SIGHTING_TYPES)}")
        return v

    @field_validator("lat", "lng")
    @classmethod
    def _location_selected(cls, v: float) -> float:
        if v == 0:
            raise ValueError("select a location on the map")
        return v


class SightingsPage(BaseModel):
    items: List[Sighting]
    total: int
    page: int
    per_page: int
    total_pages: int
    pages: List[int]
    showing_from: int
    showing_to: int


class MapView(BaseModel):
    center: List[float]
    zoom: int
    total: int
    markers: List[Sighting]


class SightingStats(BaseModel):
    total_sightings: int
    most_recent: str
    most_ghostly_city: str


class UploadResponse(BaseModel):
    url: str


class ReverseGeocodeResponse(BaseModel):
    location: str
    lat: float
    lng: float


class FormOptions(BaseModel):
    times_of_day: List[str]
    sighting_types: List[str]
    date_ranges: List[str]
    sort_keys: List[str]
