# backend/tests/routes/test_feedback_routes.py
"""HTTP tests for /api/v1/feedback."""

import pytest

from skillsphere.core.enums import BookingStatus

BASE = "/api/v1/feedback"


@pytest.fixture
def completed_booking(make_booking):
    return make_booking(BookingStatus.COMPLETED)


@pytest.fixture
def submitted(client, completed_booking, learner_headers):
    response = client.post(
        BASE,
        json={"booking_id": completed_booking.id, "rating": 4, "comment": "Great pairing session"},
        headers=learner_headers,
    )
    assert response.status_code == 201
    return response.json()


class TestSubmit:
    def test_created(self, submitted):
        assert submitted["message"] == "Feedback submitted successfully"
        assert submitted["feedback"]["rating"] == 4
        assert submitted["feedback"]["comment"] == "Great pairing session"
        assert set(submitted["feedback"]) == {"id", "rating", "comment", "created_at"}

    def test_requires_auth(self, client, completed_booking):
        response = client.post(BASE, json={"booking_id": completed_booking.id, "rating": 4})
        assert response.status_code == 401

    def test_missing_rating(self, client, completed_booking, learner_headers):
        response = client.post(BASE, json={"booking_id": completed_booking.id}, headers=learner_headers)
        assert response.status_code == 400
        assert response.json()["message"] == "Booking ID and rating are required"

    def test_rating_out_of_range(self, client, completed_booking, learner_headers):
        response = client.post(
            BASE, json={"booking_id": completed_booking.id, "rating": 7}, headers=learner_headers
        )
        assert response.status_code == 400

    def test_not_completed(self, client, confirmed_booking, learner_headers):
        response = client.post(
            BASE, json={"booking_id": confirmed_booking.id, "rating": 5}, headers=learner_headers
        )
        assert response.status_code == 400
        assert response.json()["message"] == "Booking must be completed to give feedback"

    def test_mentor_cannot_rate(self, client, completed_booking, mentor_headers):
        response = client.post(
            BASE, json={"booking_id": completed_booking.id, "rating": 5}, headers=mentor_headers
        )
        assert response.status_code == 403

    def test_unknown_booking(self, client, learner_headers):
        response = client.post(BASE, json={"booking_id": "missing", "rating": 5}, headers=learner_headers)
        assert response.status_code == 404

    def test_duplicate(self, client, submitted, completed_booking, learner_headers):
        response = client.post(
            BASE, json={"booking_id": completed_booking.id, "rating": 1}, headers=learner_headers
        )
        assert response.status_code == 409
        assert response.json()["message"] == "Feedback already submitted for this booking"


class TestCanReview:
    def test_before_and_after_submitting(self, client, completed_booking, learner_headers):
        url = f"{BASE}/can-review/{completed_booking.id}"

        before = client.get(url, headers=learner_headers).json()
        client.post(BASE, json={"booking_id": completed_booking.id, "rating": 5}, headers=learner_headers)
        after = client.get(url, headers=learner_headers).json()

        assert before["can_review"] is True
        assert after == {"success": True, "can_review": False, "reason": "Feedback already submitted"}

    def test_unknown_booking(self, client, learner_headers):
        assert client.get(f"{BASE}/can-review/missing", headers=learner_headers).status_code == 404


class TestPublicReads:
    def test_mentor_feedback_is_anonymous_and_public(self, client, submitted, mentor):
        response = client.get(f"{BASE}/mentor/{mentor.id}")

        assert response.status_code == 200
        body = response.json()
        [item] = body["feedback"]
        assert set(item) == {"rating", "comment", "created_at"}
        assert body["pagination"]["total_count"] == 1

    def test_mentor_stats(self, client, submitted, mentor):
        body = client.get(f"{BASE}/mentor/{mentor.id}/stats").json()

        assert body["average_rating"] == 4.0
        assert body["total_reviews"] == 1
        assert body["rating_distribution"] == {"1": 0, "2": 0, "3": 0, "4": 1, "5": 0}

    def test_unknown_mentor(self, client, learner):
        assert client.get(f"{BASE}/mentor/{learner.id}").status_code == 404
        assert client.get(f"{BASE}/mentor/missing/stats").status_code == 404

    def test_mentors_by_rating(self, client, submitted, mentor):
        body = client.get(f"{BASE}/mentors-by-rating", params={"minRating": 3}).json()

        [entry] = body["mentors"]
        assert entry["mentor"]["id"] == mentor.id
        assert entry["mentor"]["full_name"] == "Marco Mentor"
        assert entry["average_rating"] == 4.0

        stricter = client.get(f"{BASE}/mentors-by-rating", params={"minRating": 4.5}).json()
        assert stricter["mentors"] == []

    def test_mentors_by_rating_rejects_bad_limit(self, client):
        assert client.get(f"{BASE}/mentors-by-rating", params={"limit": 0}).status_code == 422


class TestMyFeedback:
    def test_lists_own_feedback(self, client, submitted, completed_booking, learner_headers, mentor_headers):
        body = client.get(f"{BASE}/my-feedback", headers=learner_headers).json()

        [item] = body["feedback"]
        assert item["booking_id"] == completed_booking.id
        assert item["mentor"]["full_name"] == "Marco Mentor"
        assert item["booking"]["booking_time"] == "10:00"
        assert body["total"] == 1

        assert client.get(f"{BASE}/my-feedback", headers=mentor_headers).json()["total"] == 0

    def test_requires_auth(self, client):
        assert client.get(f"{BASE}/my-feedback").status_code == 401
