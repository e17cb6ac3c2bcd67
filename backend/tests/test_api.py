from datetime import timedelta

import pytest

from courtbook import main
from courtbook.routers import internal

from .conftest import MONDAY, OWNER_ID, PLAYER_ID

OWNER = {"X-User-Id": str(OWNER_ID)}
PLAYER = {"X-User-Id": str(PLAYER_ID)}
STRANGER = {"X-User-Id": "3"}


def _book(client, court_id, start="10:00", end="11:30", headers=PLAYER, day=MONDAY):
    return client.post(
        "/reservations/",
        json={
            "court_id": court_id,
            "booking_date": day.isoformat(),
            "start_time_formatted": start,
            "end_time_formatted": end,
        },
        headers=headers,
    )


# ── availability ─────────────────────────────────────────────────────────

def test_day_availability(client, court):
    resp = client.get(
        f"/courts/{court.id}/availability",
        params={"date": MONDAY.isoformat(), "duration": 60},
    )
    assert resp.status_code == 200
    body = resp.json()

    assert body["day_of_week"] == 1
    assert body["has_rules"] is True
    assert len(body["blocks"]) == 18
    assert body["blocks"][0]["start_time_formatted"] == "09:00"
    assert len(body["slots"]) == 17
    assert body["metadata"]["total_hours_available"] == 9.0
    assert body["metadata"]["duration_minutes"] == 60


def test_day_availability_reflects_reservations(client, court):
    assert _book(client, court.id).status_code == 201

    body = client.get(
        f"/courts/{court.id}/availability",
        params={"date": MONDAY.isoformat(), "duration": 60},
    ).json()

    starts = [s["start_time"] for s in body["slots"]]
    assert starts == [540] + list(range(690, 1021, 30))
    assert [(b["start_time"], b["status"]) for b in body["bookings"]] == [(600, "pending")]
    assert body["metadata"]["available_block_count"] == 15


def test_day_without_rules(client, court):
    tuesday = MONDAY + timedelta(days=1)
    body = client.get(
        f"/courts/{court.id}/availability",
        params={"date": tuesday.isoformat(), "duration": 60},
    ).json()
    assert body["has_rules"] is False
    assert body["blocks"] == []
    assert body["slots"] == []


@pytest.mark.parametrize(
    "params,status,code",
    [
        ({"date": "2026-02-27"}, 400, "OUTSIDE_BOOKING_WINDOW"),
        ({"date": "2026-06-01"}, 400, "OUTSIDE_BOOKING_WINDOW"),
        ({"date": "2026-03-02", "duration": 45}, 400, "INVALID_DURATION"),
    ],
)
def test_day_availability_errors(client, court, params, status, code):
    resp = client.get(f"/courts/{court.id}/availability", params=params)
    assert resp.status_code == status
    assert resp.json()["error_code"] == code


def test_unknown_court_is_404(client, court):
    resp = client.get("/courts/999/availability", params={"date": MONDAY.isoformat()})
    assert resp.status_code == 404
    assert resp.json()["error_code"] == "COURT_NOT_FOUND"


def test_range_availability(client, court):
    resp = client.get(
        f"/courts/{court.id}/availability/range",
        params={"start_date": "2026-02-25", "end_date": "2026-03-07"},
    )
    assert resp.status_code == 200
    body = resp.json()

    # past dates are dropped
    assert body["start_date"] == "2026-03-01"
    days = {d["date"]: d for d in body["days"]}
    assert len(days) == 7
    assert days["2026-03-02"]["total_hours_available"] == 9.0
    assert days["2026-03-03"]["has_rules"] is False
    assert days["2026-03-03"]["message"]


def test_range_rejects_inverted_dates(client, court):
    resp = client.get(
        f"/courts/{court.id}/availability/range",
        params={"start_date": "2026-03-07", "end_date": "2026-03-02"},
    )
    assert resp.status_code == 400


def test_slots_for_several_durations(client, court):
    resp = client.get(
        f"/courts/{court.id}/availability/slots",
        params={"date": MONDAY.isoformat(), "durations": "60,45,120"},
    )
    assert resp.status_code == 200
    body = resp.json()

    assert len(body["slots_by_duration"]["60"]) == 17
    assert len(body["slots_by_duration"]["120"]) == 15
    assert "45" not in body["slots_by_duration"]
    assert set(body["errors"]) == {"45"}


@pytest.mark.parametrize("params", [{}, {"durations": "60,abc"}])
def test_slots_require_valid_durations(client, court, params):
    resp = client.get(
        f"/courts/{court.id}/availability/slots",
        params={"date": MONDAY.isoformat(), **params},
    )
    assert resp.status_code == 400


# ── reservations ─────────────────────────────────────────────────────────

def test_reservation_lifecycle(client, court):
    created = _book(client, court.id)
    assert created.status_code == 201
    body = created.json()
    assert body["status"] == "pending"
    assert body["start_time"] == 600
    assert body["end_time_formatted"] == "11:30"
    assert body["price"] == 30.0

    rid = body["id"]
    assert client.post(f"/reservations/{rid}/confirm", headers=PLAYER).status_code == 403

    confirmed = client.post(f"/reservations/{rid}/confirm", headers=OWNER)
    assert confirmed.status_code == 200
    assert confirmed.json()["status"] == "confirmed"

    cancelled = client.post(f"/reservations/{rid}/cancel", json={"reason": "injury"}, headers=PLAYER)
    assert cancelled.status_code == 200
    assert cancelled.json()["cancellation_reason"] == "injury"

    again = client.post(f"/reservations/{rid}/cancel", headers=PLAYER)
    assert again.status_code == 409
    assert again.json()["error_code"] == "INVALID_TRANSITION"


def test_overlapping_reservation_is_409(client, court):
    _book(client, court.id, "10:30", "11:00", headers=STRANGER)

    resp = _book(client, court.id)
    assert resp.status_code == 409
    body = resp.json()
    assert body["error_code"] == "BOOKING_CONFLICT"
    assert body["conflicting_booking"]["start_time"] == 630


def test_reject_frees_the_range(client, court):
    rid = _book(client, court.id, "14:00", "15:00").json()["id"]

    rejected = client.post(f"/reservations/{rid}/reject", json={"reason": "closed"}, headers=OWNER)
    assert rejected.json()["rejection_reason"] == "closed"

    assert _book(client, court.id, "14:00", "15:00", headers=STRANGER).status_code == 201


def test_confirming_lapsed_hold(client, court, clock):
    rid = _book(client, court.id, "16:00", "17:00").json()["id"]
    clock.advance(timedelta(hours=25))

    resp = client.post(f"/reservations/{rid}/confirm", headers=OWNER)
    assert resp.status_code == 409
    assert resp.json()["error_code"] == "RESERVATION_EXPIRED"
    assert client.get(f"/reservations/{rid}", headers=PLAYER).json()["status"] == "expired"


@pytest.mark.parametrize(
    "start,end,code",
    [
        ("10:15", "11:15", "INVALID_TIME_GRANULARITY"),
        ("11:00", "10:00", "INVALID_TIME_RANGE"),
        ("10-00", "11:00", "INVALID_TIME_FORMAT"),
        ("19:00", "20:00", "OUTSIDE_AVAILABILITY"),
    ],
)
def test_reservation_input_errors(client, court, start, end, code):
    resp = _book(client, court.id, start, end)
    assert resp.status_code == 400
    assert resp.json()["error_code"] == code


def test_identity_header_is_required(client, court):
    assert _book(client, court.id, headers={}).status_code == 401


def test_listing_is_scoped_to_the_caller(client, court):
    _book(client, court.id, "10:00", "11:00")
    _book(client, court.id, "12:00", "13:00", headers=STRANGER)

    owner_view = client.get("/reservations/", params={"court_id": court.id}, headers=OWNER).json()
    player_view = client.get("/reservations/", params={"court_id": court.id}, headers=PLAYER).json()
    confirmed = client.get(
        "/reservations/", params={"court_id": court.id, "status": ["confirmed"]}, headers=OWNER
    ).json()

    assert len(owner_view) == 2
    assert [r["start_time"] for r in player_view] == [600]
    assert confirmed == []


def test_reservation_detail_access(client, court):
    rid = _book(client, court.id).json()["id"]
    assert client.get(f"/reservations/{rid}", headers=PLAYER).status_code == 200
    assert client.get(f"/reservations/{rid}", headers=OWNER).status_code == 200
    assert client.get(f"/reservations/{rid}", headers=STRANGER).status_code == 403
    assert client.get("/reservations/999", headers=PLAYER).status_code == 404


def test_reservations_cannot_be_patched_or_deleted(client, court):
    rid = _book(client, court.id).json()["id"]
    assert client.patch(f"/reservations/{rid}", json={}, headers=PLAYER).status_code == 405
    assert client.delete(f"/reservations/{rid}", headers=PLAYER).status_code == 405


# ── rules ────────────────────────────────────────────────────────────────

def test_rule_management(client, court):
    url = f"/courts/{court.id}/rules/"
    payload = {"day_of_week": 2, "start_time_formatted": "08:00", "end_time_formatted": "12:00"}

    assert client.post(url, json=payload, headers=PLAYER).status_code == 403

    created = client.post(url, json=payload, headers=OWNER)
    assert created.status_code == 201
    rule = created.json()
    assert (rule["start_time"], rule["end_time_formatted"]) == (480, "12:00")

    overlap = client.post(url, json={**payload, "start_time_formatted": "11:00",
                                     "end_time_formatted": "13:00"}, headers=OWNER)
    assert overlap.status_code == 409
    assert overlap.json()["error_code"] == "RULE_CONFLICT"

    patched = client.patch(f"{url}{rule['id']}", json={"end_time": 780}, headers=OWNER)
    assert patched.status_code == 200
    assert patched.json()["end_time_formatted"] == "13:00"

    tuesday = (MONDAY + timedelta(days=1)).isoformat()
    body = client.get(f"/courts/{court.id}/availability", params={"date": tuesday}).json()
    assert body["metadata"]["base_block_count"] == 10

    assert client.delete(f"{url}{rule['id']}", headers=OWNER).status_code == 204
    active = client.get(url, params={"active_only": True}).json()
    assert [r["day_of_week"] for r in active] == [1]


def test_seed_rules_from_opening_hours(client, court):
    resp = client.post(f"/courts/{court.id}/rules/seed", headers=OWNER)
    assert resp.status_code == 201
    assert [(r["day_of_week"], r["start_time_formatted"]) for r in resp.json()] == [(6, "10:00")]


# ── blocked ranges ───────────────────────────────────────────────────────

def test_blocked_range_management(client, court):
    url = f"/courts/{court.id}/blocked-ranges/"
    resp = client.post(
        url,
        json={
            "block_type": "one_time",
            "start_date": MONDAY.isoformat(),
            "start_time_formatted": "16:00",
            "end_time_formatted": "24:00",
            "reason": "league night",
        },
        headers=OWNER,
    )
    assert resp.status_code == 201
    blocked = resp.json()
    assert blocked["end_time"] == 1440

    body = client.get(f"/courts/{court.id}/availability", params={"date": MONDAY.isoformat()}).json()
    assert body["blocks"][-1]["end_time"] == 960
    assert body["blocked_ranges"][0]["reason"] == "league night"

    blocked_booking = _book(client, court.id, "16:30", "17:30")
    assert blocked_booking.status_code == 409
    assert blocked_booking.json()["error_code"] == "TIME_BLOCKED"

    assert client.patch(f"{url}{blocked['id']}", json={}, headers=OWNER).status_code == 405
    assert client.delete(f"{url}{blocked['id']}", headers=PLAYER).status_code == 403
    assert client.delete(f"{url}{blocked['id']}", headers=OWNER).status_code == 204
    assert client.get(url).json() == []


def test_invalid_blocked_range(client, court):
    resp = client.post(
        f"/courts/{court.id}/blocked-ranges/",
        json={"block_type": "recurring", "start_time": 600, "end_time": 660},
        headers=OWNER,
    )
    assert resp.status_code == 400
    assert resp.json()["error_code"] == "INVALID_BLOCKED_RANGE"


# ── internal / health ────────────────────────────────────────────────────

def test_sweep_is_localhost_only(client, court, monkeypatch):
    assert client.post("/internal/reservations/sweep").status_code == 403

    monkeypatch.setattr(internal, "ALLOWED_HOSTS", ("testclient",))
    resp = client.post("/internal/reservations/sweep")
    assert resp.status_code == 200
    assert resp.json() == {"expired": 0, "completed": 0}


def test_sweep_expires_lapsed_holds(client, court, clock, monkeypatch):
    monkeypatch.setattr(internal, "ALLOWED_HOSTS", ("testclient",))
    _book(client, court.id)
    clock.advance(timedelta(hours=24, minutes=1))

    assert client.post("/internal/reservations/sweep").json()["expired"] == 1


def test_health_reports_redis_down(client, monkeypatch):
    class DownRedis:
        def ping(self):
            raise ConnectionError("refused")

    monkeypatch.setattr(main, "redis_client", DownRedis())
    assert client.get("/health").json() == {"status": "ok", "redis": False}
