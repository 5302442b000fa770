"""Tests for ride creation, GPX storage, deletion and the month calendar."""
from datetime import date, datetime, timezone
from types import SimpleNamespace

import pytest

from app.modules.rides.ride_calendar import build_month_calendar, grid_range
from app.modules.rides.schemas import RideResponse
from app.modules.tracks import service as track_service
from tests.conftest import auth, create_test_group, create_test_ride, future, join_test_group, make_gpx

ROUTE = [(46.5280, 10.4530, 1500.0), (46.5300, 10.4550, 1620.0), (46.5330, 10.4580, 1580.0)]


@pytest.fixture
def group(client):
    group = create_test_group(client, "creator", name="Lupi")
    join_test_group(client, "rider", group["invite_code"])
    return group


class TestCreateRide:

    def test_create_without_gpx(self, client, db, group):
        ride = create_test_ride(client, "creator", group["id"], title="Lago di Como")
        assert ride["created_by"] == "creator"
        assert ride["gpx_url"] is None
        assert ride["start_lat"] == pytest.approx(45.4642)

        notes = db.rows("notifications", type="new_ride")
        assert [n["user_id"] for n in notes] == ["rider"]
        assert notes[0]["link"] == f"/rides/{ride['id']}"

    def test_create_with_gpx_stores_file(self, client, db, group):
        ride = create_test_ride(client, "creator", group["id"], gpx=make_gpx(ROUTE))
        assert ride["gpx_url"].startswith("https://fake.supabase.co/storage/v1/object/public/gpx-files/creator/")
        assert ride["gpx_url"].endswith("-route.gpx")
        assert len(db.storage.files) == 1

    def test_gpx_without_track_is_accepted(self, client, db, group):
        content = b'<gpx xmlns="http://www.topografix.com/GPX/1/1"><wpt lat="1" lon="2"/></gpx>'
        ride = create_test_ride(client, "creator", group["id"], gpx=content)
        assert ride["gpx_url"] is not None

    def test_malformed_gpx_rejected_before_upload(self, client, db, group):
        resp = client.post(
            "/api/rides",
            data={"group_id": group["id"], "title": "Broken", "date_time": future().isoformat(),
                  "start_lat": "46.5", "start_lon": "10.45"},
            files={"gpx_file": ("route.gpx", b"<gpx><trk>", "application/gpx+xml")},
            headers=auth("creator"),
        )
        assert resp.status_code == 422
        assert resp.json()["code"] == "gpx_parse_error"
        assert db.storage.files == {}
        assert db.rows("rides") == []

    def test_non_gpx_extension_rejected(self, client, db, group):
        resp = client.post(
            "/api/rides",
            data={"group_id": group["id"], "title": "Wrong", "date_time": future().isoformat(),
                  "start_lat": "46.5", "start_lon": "10.45"},
            files={"gpx_file": ("route.kml", b"<kml/>", "application/xml")},
            headers=auth("creator"),
        )
        assert resp.status_code == 400

    def test_missing_fields(self, client, group):
        resp = client.post("/api/rides", data={"group_id": group["id"]}, headers=auth("creator"))
        assert resp.status_code == 400
        assert resp.json()["code"] == "validation_error"

    def test_out_of_range_coordinates(self, client, group):
        resp = client.post(
            "/api/rides",
            data={"group_id": group["id"], "title": "Pole", "date_time": future().isoformat(),
                  "start_lat": "95", "start_lon": "10"},
            headers=auth("creator"),
        )
        assert resp.status_code == 400

    def test_outsider_cannot_create(self, client, db, group):
        resp = client.post(
            "/api/rides",
            data={"group_id": group["id"], "title": "Intruder", "date_time": future().isoformat(),
                  "start_lat": "46.5", "start_lon": "10.45"},
            headers=auth("stranger"),
        )
        assert resp.status_code == 403
        assert db.rows("rides") == []

    def test_failed_insert_removes_uploaded_file(self, client, db, group):
        db.fail("rides", "insert")
        resp = client.post(
            "/api/rides",
            data={"group_id": group["id"], "title": "Lost", "date_time": future().isoformat(),
                  "start_lat": "46.5", "start_lon": "10.45"},
            files={"gpx_file": ("route.gpx", make_gpx(ROUTE), "application/gpx+xml")},
            headers=auth("creator"),
        )
        assert resp.status_code == 500
        assert db.storage.files == {}

    def test_storage_failure_is_upstream_error(self, client, db, group):
        db.storage.fail_uploads = True
        resp = client.post(
            "/api/rides",
            data={"group_id": group["id"], "title": "No storage", "date_time": future().isoformat(),
                  "start_lat": "46.5", "start_lon": "10.45"},
            files={"gpx_file": ("route.gpx", make_gpx(ROUTE), "application/gpx+xml")},
            headers=auth("creator"),
        )
        assert resp.status_code == 502
        assert db.rows("rides") == []


class TestReadRides:

    def test_get_ride_requires_membership(self, client, group):
        ride = create_test_ride(client, "creator", group["id"])
        assert client.get(f"/api/rides/{ride['id']}", headers=auth("rider")).status_code == 200
        assert client.get(f"/api/rides/{ride['id']}", headers=auth("stranger")).status_code == 403
        assert client.get("/api/rides/missing", headers=auth("rider")).status_code == 404

    def test_list_upcoming_sorted_with_group_name(self, client, db, group):
        later = create_test_ride(client, "creator", group["id"], title="Later", date_time=future(days=5))
        sooner = create_test_ride(client, "creator", group["id"], title="Sooner", date_time=future(days=1))
        db.seed("rides", {
            "group_id": group["id"], "created_by": "creator", "title": "Past",
            "date_time": "2020-05-01T08:00:00+00:00", "start_lat": 46.5, "start_lon": 10.45,
        })
        create_test_group(client, "other")  # rides of foreign groups never show up

        resp = client.get("/api/rides", headers=auth("rider"))
        assert resp.status_code == 200
        rides = resp.json()
        assert [r["id"] for r in rides] == [sooner["id"], later["id"]]
        assert rides[0]["group_name"] == "Lupi"

        resp = client.get("/api/rides", params={"upcoming": "false"}, headers=auth("rider"))
        assert [r["title"] for r in resp.json()] == ["Past", "Sooner", "Later"]


class TestDeleteRide:

    def test_delete_cascades(self, client, db, group):
        ride = create_test_ride(client, "creator", group["id"], gpx=make_gpx(ROUTE))
        for user_id in ("creator", "rider"):
            client.post(f"/api/rides/{ride['id']}/rsvp", json={"status": "attending"}, headers=auth(user_id))
        assert len(db.rows("participants", ride_id=ride["id"])) == 2

        resp = client.delete(f"/api/rides/{ride['id']}", headers=auth("creator"))
        assert resp.status_code == 204

        assert db.rows("participants", ride_id=ride["id"]) == []
        assert db.storage.files == {}
        assert client.get(f"/api/rides/{ride['id']}", headers=auth("creator")).status_code == 404

    def test_failed_delete_keeps_rsvps(self, client, db, group):
        ride = create_test_ride(client, "creator", group["id"], gpx=make_gpx(ROUTE))
        for user_id in ("creator", "rider"):
            client.post(f"/api/rides/{ride['id']}/rsvp", json={"status": "attending"}, headers=auth(user_id))
        db.fail("rides", "delete")

        resp = client.delete(f"/api/rides/{ride['id']}", headers=auth("creator"))
        assert resp.status_code == 500

        assert db.rows("rides", id=ride["id"])
        assert sorted(p["user_id"] for p in db.rows("participants", ride_id=ride["id"])) == ["creator", "rider"]
        assert len(db.storage.files) == 1

    def test_only_creator_can_delete(self, client, db, group):
        ride = create_test_ride(client, "creator", group["id"])
        resp = client.delete(f"/api/rides/{ride['id']}", headers=auth("rider"))
        assert resp.status_code == 403
        assert db.rows("rides", id=ride["id"])

    def test_remove_gpx(self, client, db, group):
        ride = create_test_ride(client, "creator", group["id"], gpx=make_gpx(ROUTE))

        assert client.delete(f"/api/rides/{ride['id']}/gpx", headers=auth("rider")).status_code == 403

        resp = client.delete(f"/api/rides/{ride['id']}/gpx", headers=auth("creator"))
        assert resp.status_code == 200
        assert resp.json()["gpx_url"] is None
        assert db.storage.files == {}
        assert client.get(f"/api/rides/{ride['id']}/track", headers=auth("creator")).status_code == 404


class TestRideTrack:

    def test_track_summary(self, client, db, group, monkeypatch):
        content = make_gpx(ROUTE, name="Stelvio")
        ride = create_test_ride(client, "creator", group["id"], gpx=content)
        requested = []

        def fake_get(url, timeout=None):
            requested.append(url)
            return SimpleNamespace(ok=True, status_code=200, content=content)

        monkeypatch.setattr(track_service.requests, "get", fake_get)
        resp = client.get(f"/api/rides/{ride['id']}/track", headers=auth("rider"))
        assert resp.status_code == 200
        body = resp.json()
        assert body["found"] is True
        assert body["name"] == "Stelvio"
        assert body["point_count"] == 3
        assert body["elevation_gain_m"] == pytest.approx(120)
        assert requested == [ride["gpx_url"]]

    def test_track_download_failure(self, client, group, monkeypatch):
        ride = create_test_ride(client, "creator", group["id"], gpx=make_gpx(ROUTE))
        monkeypatch.setattr(
            track_service.requests, "get",
            lambda url, timeout=None: SimpleNamespace(ok=False, status_code=404, content=b""),
        )
        resp = client.get(f"/api/rides/{ride['id']}/track", headers=auth("rider"))
        assert resp.status_code == 502


def _ride(ride_id, when):
    return RideResponse(
        id=ride_id, group_id="g1", created_by="u1", title=f"Ride {ride_id}",
        date_time=when, start_lat=46.5, start_lon=10.45, group_name="Lupi",
    )


class TestCalendar:

    def test_month_grid_is_monday_first(self):
        first, last = grid_range(2025, 6)
        # June 2025 starts on a Sunday and ends on a Monday
        assert first == date(2025, 5, 26)
        assert last == date(2025, 7, 6)
        assert first.weekday() == 0

    def test_rides_bucketed_by_day(self):
        rides = [
            _ride("b", datetime(2025, 6, 15, 14, 0, tzinfo=timezone.utc)),
            _ride("a", datetime(2025, 6, 15, 8, 30, tzinfo=timezone.utc)),
            _ride("c", datetime(2025, 6, 30, 9, 0, tzinfo=timezone.utc)),
        ]
        cal = build_month_calendar(rides, 2025, 6, today=date(2025, 6, 20))
        days = {d.day: d for week in cal.weeks for d in week}

        assert cal.weekdays[0] == "Mon"
        assert all(len(week) == 7 for week in cal.weeks)
        assert [r.id for r in days[date(2025, 6, 15)].rides] == ["a", "b"]
        assert days[date(2025, 6, 15)].is_past is True
        assert days[date(2025, 6, 20)].is_today is True
        assert days[date(2025, 6, 30)].is_past is False
        assert days[date(2025, 5, 26)].in_month is False
        assert days[date(2025, 6, 1)].in_month is True

    def test_calendar_endpoint(self, client, group):
        when = future(days=3)
        ride = create_test_ride(client, "creator", group["id"], date_time=when)
        resp = client.get("/api/rides/calendar", params={"year": when.year, "month": when.month}, headers=auth("rider"))
        assert resp.status_code == 200
        days = [d for week in resp.json()["weeks"] for d in week]
        ride_day = next(d for d in days if d["day"] == when.date().isoformat())
        assert [r["id"] for r in ride_day["rides"]] == [ride["id"]]

    def test_calendar_rejects_bad_month(self, client, group):
        resp = client.get("/api/rides/calendar", params={"year": 2025, "month": 13}, headers=auth("rider"))
        assert resp.status_code == 400
