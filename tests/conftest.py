"""
Pytest fixtures for the sightings API tests.

The backing store is replaced with an in-memory SQLite database and the
static dataset with a small CSV written to a temp directory.
"""

import os
import tempfile
from datetime import date, timedelta

# Settings are read at import time; keep a developer's .env out of the tests.
os.environ["DATABASE_URL"] = ""
os.environ["DB_USER"] = ""
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="wraithwatchers-uploads-"))

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from tests.factories import SAMPLE_CSV, make_csv  # noqa: E402
from wraithwatchers import config  # noqa: E402
from wraithwatchers.csv_parser import parse_sightings_data  # noqa: E402
from wraithwatchers.database import Base, get_db  # noqa: E402
from wraithwatchers.main import app  # noqa: E402


@pytest.fixture()
def sample_csv():
    return SAMPLE_CSV


@pytest.fixture()
def sightings():
    """The six usable sightings from SAMPLE_CSV (row 6 has no coordinates)."""
    return parse_sightings_data(SAMPLE_CSV)


@pytest.fixture()
def csv_path(tmp_path):
    path = tmp_path / "sightings.csv"
    path.write_text(SAMPLE_CSV, encoding="utf-8")
    return str(path)


@pytest.fixture()
def recent_csv_path(tmp_path):
    """Dataset dated relative to the real today, for date-range queries over HTTP."""
    today = date.today()
    rows = [
        f'{today - timedelta(days=3)},42.5195,-70.8967,Salem,Massachusetts,"Recent.",Night,Orbs,',
        f'{today - timedelta(days=90)},29.9511,-90.0715,New Orleans,Louisiana,"A season ago.",Night,Orbs,',
        f'{today - timedelta(days=400)},32.0809,-81.0912,Savannah,Georgia,"Last year.",Night,Orbs,',
    ]
    path = tmp_path / "recent.csv"
    path.write_text(make_csv(rows), encoding="utf-8")
    return str(path)


@pytest.fixture()
def db_session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    yield session
    session.close()
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture()
def upload_dir(tmp_path, monkeypatch):
    path = tmp_path / "uploads"
    path.mkdir()
    monkeypatch.setattr(config, "UPLOAD_DIR", str(path))
    monkeypatch.setattr(config, "PUBLIC_BASE_URL", "http://testserver")
    return path


@pytest.fixture()
def client(db_session, csv_path, monkeypatch):
    """API client backed by an empty SQLite store, so reads fall back to the CSV."""
    monkeypatch.setattr(config, "SIGHTINGS_CSV_PATH", csv_path)

    def _get_db():
        yield db_session

    app.dependency_overrides[get_db] = _get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def offline_client(csv_path, monkeypatch):
    """API client with no backing store configured."""
    monkeypatch.setattr(config, "SIGHTINGS_CSV_PATH", csv_path)

    def _get_db():
        yield None

    app.dependency_overrides[get_db] = _get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
