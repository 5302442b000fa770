"""Pytest fixtures: the app wired to an in-memory Supabase fake."""
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from app.database.supabase_client import get_supabase, get_service_supabase
from app.main import app
from app.modules.auth.service import clear_auth_cache
from app.modules.notifications import events
from tests.fakes import FakeSupabase

GPX_TEMPLATE = """<?xml version="1.0" encoding="UTF-8"?>
<gpx version="1.1" creator="test" xmlns="http://www.topografix.com/GPX/1/1">
  <trk>
    <name>{name}</name>
    <trkseg>
{points}
    </trkseg>
  </trk>
</gpx>
"""


@pytest.fixture(scope="function")
def db():
    """Fresh in-memory database, storage and auth for each test."""
    return FakeSupabase()


@pytest.fixture(scope="function")
def client(db):
    """FastAPI TestClient with both Supabase clients overridden by the fake."""
    clear_auth_cache()
    events.clear()
    app.dependency_overrides[get_supabase] = lambda: db
    app.dependency_overrides[get_service_supabase] = lambda: db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
    events.clear()
    clear_auth_cache()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def auth(user_id: str) -> dict:
    """Bearer header for user_id (the fake accepts the user id as token)."""
    return {"Authorization": f"Bearer {user_id}"}


def seed_profile(db: FakeSupabase, user_id: str, username: str, bike_model: str = None) -> dict:
    return db.seed("profiles", {"id": user_id, "username": username, "bike_model": bike_model, "avatar_url": None})[0]


def create_test_group(client: TestClient, user_id: str, name: str = "Test Group") -> dict:
    """POST /api/groups as user_id and return response JSON."""
    resp = client.post("/api/groups", json={"name": name}, headers=auth(user_id))
    assert resp.status_code == 201, resp.text
    return resp.json()


def join_test_group(client: TestClient, user_id: str, invite_code: str) -> dict:
    resp = client.post("/api/groups/join", json={"invite_code": invite_code}, headers=auth(user_id))
    assert resp.status_code == 200, resp.text
    return resp.json()


def future(days: float = 2, hours: float = 0) -> datetime:
    moment = datetime.now(timezone.utc) + timedelta(days=days, hours=hours)
    return moment.replace(minute=0, second=0, microsecond=0)


def create_test_ride(
    client: TestClient,
    user_id: str,
    group_id: str,
    title: str = "Sunday ride",
    date_time: datetime = None,
    gpx: bytes = None,
    gpx_filename: str = "route.gpx",
) -> dict:
    """POST /api/rides (multipart form) and return response JSON."""
    data = {
        "group_id": group_id,
        "title": title,
        "date_time": (date_time or future()).isoformat(),
        "start_lat": "45.4642",
        "start_lon": "9.19",
        "meeting_point_name": "Piazza Duomo",
    }
    files = {"gpx_file": (gpx_filename, gpx, "application/gpx+xml")} if gpx is not None else None
    resp = client.post("/api/rides", data=data, files=files, headers=auth(user_id))
    assert resp.status_code == 201, resp.text
    return resp.json()


def make_gpx(points, name: str = "Test track") -> bytes:
    """GPX 1.1 document with one track; points are (lat, lon) or (lat, lon, ele)."""
    lines = []
    for point in points:
        lat, lon = point[0], point[1]
        if len(point) > 2 and point[2] is not None:
            lines.append(f'      <trkpt lat="{lat}" lon="{lon}"><ele>{point[2]}</ele></trkpt>')
        else:
            lines.append(f'      <trkpt lat="{lat}" lon="{lon}"></trkpt>')
    return GPX_TEMPLATE.format(name=name, points="\n".join(lines)).encode()
