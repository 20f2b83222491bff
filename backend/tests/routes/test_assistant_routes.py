# backend/tests/routes/test_assistant_routes.py
"""HTTP tests for /api/v1/assistant plus the health and metrics endpoints."""

from skillsphere.integrations import GeminiError


class TestAssistant:
    def test_ask(self, client, learner_headers, text_generator):
        response = client.post(
            "/api/v1/assistant/ask",
            json={
                "question": "What is a decorator?",
                "chat_history": [{"text": "hi", "is_user": True}],
            },
            headers=learner_headers,
        )

        assert response.status_code == 200
        assert response.json()["response"] == "Fake answer"
        assert response.json()["is_ai"] is True
        assert "User: hi" in text_generator._calls[0]["prompt"]

    def test_ask_fallback(self, client, learner_headers, text_generator):
        text_generator.set_error(GeminiError("down", 503))

        response = client.post(
            "/api/v1/assistant/ask", json={"question": "Any tips?"}, headers=learner_headers
        )

        assert response.status_code == 200
        assert response.json()["is_ai"] is False

    def test_ask_requires_question(self, client, learner_headers):
        response = client.post("/api/v1/assistant/ask", json={}, headers=learner_headers)
        assert response.status_code == 400
        assert response.json()["message"] == "Question is required"

    def test_summarize_text(self, client, learner_headers):
        response = client.post(
            "/api/v1/assistant/summarize-session",
            json={"transcript": "[learner]: explain recursion"},
            headers=learner_headers,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["summary"] == "Fake answer"
        assert len(body["resources"]) == 3

    def test_summarize_unknown_session(self, client, learner_headers):
        response = client.post(
            "/api/v1/assistant/summarize-session",
            json={"session_id": "session_missing_1"},
            headers=learner_headers,
        )
        assert response.status_code == 404


class TestOperationalEndpoints:
    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["checks"] == {"database": True}

    def test_metrics_exposes_http_counters(self, client):
        client.get("/health")

        response = client.get("/metrics")

        assert response.status_code == 200
        assert "skillsphere_http_requests_total" in response.text
