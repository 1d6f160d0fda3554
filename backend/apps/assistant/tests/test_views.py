# apps/assistant/tests/test_views.py
"""
Tests for the assistant API views
"""
import pytest
from django.urls import reverse
from rest_framework.test import APIClient

from apps.domain.models import LLMProviderError, ModelReply, ToolCall


@pytest.fixture
def api_assistant(assistant, monkeypatch):
    monkeypatch.setattr("apps.assistant.views.get_assistant", lambda: assistant)
    return assistant


class TestStatusAndInitialize:

    def setup_method(self):
        self.client = APIClient()

    def test_status_before_initialize(self, api_assistant):
        response = self.client.get(reverse("assistant:status"))

        assert response.status_code == 200
        assert response.data["initialized"] is False
        assert response.data["snapshot_version"] is None
        assert response.data["requests_remaining"] == 15

    def test_initialize_with_snapshot(self, api_assistant, business_data):
        response = self.client.post(
            reverse("assistant:initialize"),
            {"snapshot": business_data},
            format="json",
        )

        assert response.status_code == 200
        assert response.data["initialized"] is True
        assert response.data["snapshot_version"] == 1
        assert response.data["session_id"]
        assert len(api_assistant.store.current().jobs) == 2

    def test_initialize_loads_from_backend(self, api_assistant, gateway):
        response = self.client.post(reverse("assistant:initialize"), {}, format="json")

        assert response.status_code == 200
        assert ("list", "jobs") in gateway.calls
        assert api_assistant.store.current().company_profile is not None

    def test_refresh_bumps_version(self, api_assistant, business_data):
        self.client.post(reverse("assistant:initialize"), {"snapshot": business_data}, format="json")

        response = self.client.post(
            reverse("assistant:refresh"),
            {"snapshot": {"jobs": []}},
            format="json",
        )

        assert response.status_code == 200
        assert response.data["snapshot_version"] == 2
        assert api_assistant.store.current().jobs == ()

    def test_invalid_snapshot(self, api_assistant):
        response = self.client.post(
            reverse("assistant:initialize"),
            {"snapshot": {"jobs": [{"status": "scheduled"}]}},
            format="json",
        )

        assert response.status_code == 400
        assert response.data["success"] is False
        assert not api_assistant.is_initialized()

    def test_snapshot_must_be_object(self, api_assistant):
        response = self.client.post(
            reverse("assistant:initialize"),
            {"snapshot": "everything"},
            format="json",
        )

        assert response.status_code == 400


class TestChat:

    def setup_method(self):
        self.client = APIClient()

    def test_not_initialized(self, api_assistant):
        response = self.client.post(reverse("assistant:chat"), {"message": "Hi"}, format="json")

        assert response.status_code == 409

    def test_empty_message(self, api_assistant, snapshot):
        api_assistant.initialize(snapshot)

        response = self.client.post(reverse("assistant:chat"), {"message": "   "}, format="json")

        assert response.status_code == 400

    def test_chat_reply(self, api_assistant, snapshot, fake_llm):
        api_assistant.initialize(snapshot)
        fake_llm.queue("Two jobs are on the books.")

        response = self.client.post(
            reverse("assistant:chat"),
            {
                "message": "How many jobs?",
                "history": [
                    {"role": "user", "text": "Hello"},
                    {"role": "model", "text": "Hi, how can I help?"},
                ],
            },
            format="json",
        )

        assert response.status_code == 200
        assert response.data["response"] == "Two jobs are on the books."
        assert response.data["tool_calls"] is None
        assert response.data["status"] == "ok"

    def test_chat_with_tool_call(self, api_assistant, snapshot, fake_llm):
        api_assistant.initialize(snapshot)
        fake_llm.queue(
            ModelReply(tool_calls=(ToolCall("getJobsByStatus", {"status": "scheduled"}, "call_1"),)),
            "One job is scheduled.",
        )

        response = self.client.post(
            reverse("assistant:chat"),
            {"message": "What is scheduled?"},
            format="json",
        )

        assert response.status_code == 200
        assert response.data["response"] == "One job is scheduled."
        call = response.data["tool_calls"][0]
        assert call["name"] == "getJobsByStatus"
        assert call["result"]["count"] == 1

    def test_rate_limited(self, api_assistant, snapshot):
        api_assistant.initialize(snapshot)
        for _ in range(15):
            api_assistant.rate_limiter.check_and_consume()

        response = self.client.post(reverse("assistant:chat"), {"message": "Hi"}, format="json")

        assert response.status_code == 429
        assert response.data["status"] == "rate_limited"
        assert int(response["Retry-After"]) >= 1

    def test_channel_failure(self, api_assistant, snapshot, fake_llm):
        api_assistant.initialize(snapshot)
        fake_llm.queue(LLMProviderError("upstream down"))

        response = self.client.post(reverse("assistant:chat"), {"message": "Hi"}, format="json")

        assert response.status_code == 502
        assert response.data["error"].startswith("Sorry")


    def test_session_open_failure(self, api_assistant, snapshot, fake_llm):
        api_assistant.initialize(snapshot)
        api_assistant.sessions.invalidate()
        fake_llm.fail_open = True

        response = self.client.post(reverse("assistant:chat"), {"message": "Hi"}, format="json")

        assert response.status_code == 502
        assert response.data["error"].startswith("Sorry")


class TestServiceInfo:

    def test_service_info(self):
        response = APIClient().get(reverse("assistant:info"))

        assert response.status_code == 200
        assert response.data["environment"] == "test"
        assert response.data["llm"]["type"] == "fake"
        assert "pricing" in response.data["llm"]
        assert response.data["assistant_rate"] == "15/min"

class TestSchema:

    def test_schema_renders(self):
        response = APIClient().get(reverse("schema"))

        assert response.status_code == 200
