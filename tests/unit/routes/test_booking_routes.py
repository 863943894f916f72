"""Tests for /api/v1/bookings."""

from datetime import datetime, timedelta, timezone

from fastapi import status

DAY = datetime(2030, 1, 7, tzinfo=timezone.utc)


def _iso(hour: int, minute: int = 0) -> str:
    return (DAY + timedelta(hours=hour, minutes=minute)).isoformat()


def _book(client, mentor, mentee, start, end=None, **extra):
    payload = {"mentor_id": mentor.id, "mentee_id": mentee.id, "start": start, **extra}
    if end is not None:
        payload["end"] = end
    return client.post("/api/v1/bookings", json=payload)


class TestCreateBookingRoute:
    def test_create_booking(self, client, mentor, mentee):
        response = _book(client, mentor, mentee, _iso(9), _iso(10), goals="Pitch deck review")

        assert response.status_code == status.HTTP_201_CREATED
        body = response.json()
        assert body["status"] == "scheduled"
        assert body["mentor_id"] == mentor.id
        assert body["duration_minutes"] == 60
        assert body["meeting_url"].endswith(body["id"])

    def test_conflict_returns_409_with_details(self, client, mentor, mentee, create_block):
        create_block(mentor.id, DAY + timedelta(hours=9), DAY + timedelta(hours=10))

        response = _book(client, mentor, mentee, _iso(9, 30), _iso(10, 30))

        assert response.status_code == status.HTTP_409_CONFLICT
        detail = response.json()["detail"]
        assert detail["code"] == "BOOKING_CONFLICT"
        assert detail["details"]["conflicts"][0]["kind"] == "availability_block"

    def test_invalid_range_returns_400(self, client, mentor, mentee):
        response = _book(client, mentor, mentee, _iso(10), _iso(9))

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["detail"]["code"] == "INVALID_TIME_RANGE"

    def test_unknown_mentor_returns_404(self, client, mentee):
        response = client.post(
            "/api/v1/bookings",
            json={
                "mentor_id": "01J0000000000000000000000X",
                "mentee_id": mentee.id,
                "start": _iso(9),
            },
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_unexpected_fields_are_rejected(self, client, mentor, mentee):
        response = _book(client, mentor, mentee, _iso(9), _iso(10), price=100)

        assert response.status_code == 422


class TestSessionLifecycleRoutes:
    def test_get_booking(self, client, mentor, mentee):
        created = _book(client, mentor, mentee, _iso(9), _iso(10)).json()

        response = client.get(f"/api/v1/bookings/{created['id']}")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["id"] == created["id"]

    def test_malformed_session_id_rejected(self, client):
        response = client.get("/api/v1/bookings/not-a-ulid")

        assert response.status_code == 422

    def test_cancel_then_cancel_again(self, client, mentor, mentee):
        created = _book(client, mentor, mentee, _iso(9), _iso(10)).json()

        first = client.post(f"/api/v1/bookings/{created['id']}/cancel")
        second = client.post(f"/api/v1/bookings/{created['id']}/cancel")

        assert first.status_code == status.HTTP_200_OK
        assert first.json()["status"] == "cancelled"
        assert first.json()["cancelled_at"] is not None
        assert second.status_code == 422
        assert second.json()["detail"]["code"] == "INVALID_SESSION_STATUS"

    def test_complete(self, client, mentor, mentee):
        created = _book(client, mentor, mentee, _iso(9), _iso(10)).json()

        response = client.post(f"/api/v1/bookings/{created['id']}/complete")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["status"] == "completed"

    def test_reschedule(self, client, mentor, mentee):
        created = _book(client, mentor, mentee, _iso(9), _iso(10)).json()

        response = client.post(
            f"/api/v1/bookings/{created['id']}/reschedule",
            json={"start": _iso(13), "duration_minutes": 30},
        )

        assert response.status_code == status.HTTP_201_CREATED
        body = response.json()
        assert body["rescheduled_from_id"] == created["id"]
        assert body["duration_minutes"] == 30
        original = client.get(f"/api/v1/bookings/{created['id']}").json()
        assert original["status"] == "rescheduled"
