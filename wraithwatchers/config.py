import os
from dotenv import load_dotenv

load_dotenv()

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
PORT = int(os.getenv("PORT", 5000))

# Prefer discrete DB_* variables when present (Docker local). Fallback to DATABASE_URL.
db_user = os.getenv("DB_USER")
db_password = os.getenv("DB_PASSWORD")
db_host = os.getenv("DB_HOST")
db_port = os.getenv("DB_PORT", "5432")
db_name = os.getenv("DB_NAME")
db_sslmode = os.getenv("DB_SSLMODE")  # e.g., require

if db_user and db_password and db_host and db_name:
    DATABASE_URL = f"postgresql+psycopg2://{db_user}:{db_password}@{db_host}:{db_port}/{db_name}"
    if db_sslmode:
        DATABASE_URL += f"?sslmode={db_sslmode}"
else:
    # None means the backing store is not configured; reads fall back to the CSV.
    DATABASE_URL = os.getenv("DATABASE_URL") or None

# Image bucket: a directory served back under /uploads
UPLOAD_DIR = os.getenv("UPLOAD_DIR", "uploads")
STORAGE_BUCKET = os.getenv("STORAGE_BUCKET", "sighting-images")
PUBLIC_BASE_URL = os.getenv("PUBLIC_BASE_URL", "").rstrip("/")

SIGHTINGS_CSV_PATH = os.getenv(
    "SIGHTINGS_CSV_PATH",
    os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "data", "ghost_sightings.csv"),
)

GEOCODER_URL = os.getenv("GEOCODER_URL", "https://nominatim.openstreetmap.org/reverse")
GEOCODER_USER_AGENT = os.getenv("GEOCODER_USER_AGENT", "WraithWatchers/1.0 (sighting location lookup)")
GEOCODER_TIMEOUT = float(os.getenv("GEOCODER_TIMEOUT", 10))

CORS_ORIGINS = [
    o.strip()
    for o in os.getenv("CORS_ORIGINS", "http://localhost:3000,http://localhost:5173").split(",")
    if o.strip()
]
