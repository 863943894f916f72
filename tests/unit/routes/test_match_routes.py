"""Tests for /api/v1/match."""

from fastapi import status


class TestMatchRoute:
    def test_returns_ranked_results(self, client, mentor, create_mentor):
        create_mentor(name="Retail Mentor", industry="Retail", expertise=["Merchandising"])

        response = client.post(
            "/api/v1/match",
            json={
                "query_text": "seed fundraising in fintech",
                "filters": {"expertise": ["fundraising"], "industry": "fintech"},
            },
        )

        assert response.status_code == status.HTTP_200_OK
        body = response.json()
        assert body["total_candidates"] == 2
        first = body["results"][0]
        assert first["candidate_id"] == mentor.id
        assert set(first["scores"]) == {"expertise", "industry", "stage", "availability", "total"}
        assert first["explanation"]
        scores = [item["score"] for item in body["results"]]
        assert scores == sorted(scores, reverse=True)

    def test_past_interaction_without_mentee_is_400(self, client, mentor):
        response = client.post(
            "/api/v1/match", json={"past_interaction": "previously-booked"}
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["detail"]["code"] == "MENTEE_REQUIRED"

    def test_unknown_past_interaction_value_is_rejected(self, client):
        response = client.post("/api/v1/match", json={"past_interaction": "sometimes"})

        assert response.status_code == 422


class TestMenteeMatchRoute:
    def test_returns_mentees_for_mentor(self, client, mentor, create_mentee):
        match = create_mentee(name="Seed Founder", goals="Fundraising", stage="Seed")
        create_mentee(name="Unrelated", goals="Legal review")

        response = client.post("/api/v1/match/mentees", json={"mentor_id": mentor.id})

        assert response.status_code == status.HTTP_200_OK
        body = response.json()
        assert body["total_candidates"] == 2
        assert [item["candidate_id"] for item in body["results"]] == [match.id]
        assert body["results"][0]["score"] == 1.5
        assert body["results"][0]["explanation"][0] == "Looking for help with Fundraising"

    def test_unknown_mentor_is_404(self, client):
        response = client.post("/api/v1/match/mentees", json={"mentor_id": "missing"})

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["detail"]["code"] == "MENTOR_NOT_FOUND"

    def test_unknown_past_interaction_value_is_rejected(self, client, mentor):
        response = client.post(
            "/api/v1/match/mentees",
            json={"mentor_id": mentor.id, "past_interaction": "new-mentors-only"},
        )

        assert response.status_code == 422
