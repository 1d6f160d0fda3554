# apps/domain/tests/test_models.py
"""
Tests for domain models
"""
import dataclasses
from datetime import timedelta, timezone

import pytest

from apps.domain.models import (
    BusinessSnapshot,
    ChatMessage,
    ChatResult,
    ExecutedToolCall,
    Job,
    MessageRole,
    ToolResult,
    TurnStatus,
    ValidationError,
)


class TestBusinessSnapshot:
    """Test snapshot construction and copy-on-write updates"""

    def test_from_dict_builds_every_collection(self, snapshot):
        assert len(snapshot.clients) == 2
        assert len(snapshot.jobs) == 2
        assert snapshot.payroll_records == ()
        assert snapshot.company_profile.company_name == "Evergreen Tree Care"

    def test_from_dict_accepts_snake_and_camel_keys(self):
        snapshot = BusinessSnapshot.from_dict({
            "payrollRecords": [{"id": "P1", "grossPay": 100}],
            "time_entries": [{"id": "T1", "hours": 8}],
        })

        assert snapshot.payroll_records[0].gross_pay == 100.0
        assert snapshot.time_entries[0].hours == 8.0

    def test_snapshot_is_frozen(self, snapshot):
        with pytest.raises(dataclasses.FrozenInstanceError):
            snapshot.jobs = ()

    def test_with_entity_returns_new_snapshot(self, snapshot):
        job = dataclasses.replace(snapshot.find("jobs", "J1"), status="completed")

        updated = snapshot.with_entity("jobs", job)

        assert updated is not snapshot
        assert updated.find("jobs", "J1").status == "completed"
        assert snapshot.find("jobs", "J1").status == "scheduled"

    def test_with_entity_unknown_id_is_noop(self, snapshot):
        ghost = Job(id="J99", status="completed")

        assert snapshot.with_entity("jobs", ghost) is snapshot

    def test_unknown_collection_raises(self, snapshot):
        with pytest.raises(ValidationError):
            snapshot.collection("widgets")

    def test_is_empty(self, snapshot, empty_snapshot):
        assert empty_snapshot.is_empty
        assert not snapshot.is_empty

    def test_captured_at_is_timezone_aware(self, snapshot, empty_snapshot):
        assert snapshot.captured_at.tzinfo is timezone.utc
        assert empty_snapshot.captured_at.utcoffset() == timedelta(0)


class TestEntities:
    """Test entity parsing"""

    def test_job_status_is_normalized(self):
        job = Job.from_dict({"id": "J1", "status": "In Progress"})

        assert job.status == "in_progress"

    def test_unknown_fields_survive_round_trip(self):
        job = Job.from_dict({"id": "J1", "status": "scheduled", "notes": "gate code 1234"})

        assert job.to_dict()["notes"] == "gate code 1234"

    def test_lead_reads_nested_customer_name(self, snapshot):
        assert snapshot.leads[0].customer_name == "Ada Park"

    def test_invoice_paid_flag(self, snapshot):
        assert snapshot.find("invoices", "I2").is_paid
        assert not snapshot.find("invoices", "I1").is_paid


class TestToolResult:
    """Test tool result shapes fed back to the model"""

    def test_success_dict_merges_payload(self):
        result = ToolResult.ok({"count": 2})

        assert result.to_dict() == {"success": True, "count": 2}

    def test_failure_dict_carries_message(self):
        result = ToolResult.failure("Unknown function nope")

        assert result.to_dict() == {"success": False, "message": "Unknown function nope"}
        assert result.message == "Unknown function nope"

    def test_executed_call_dict(self):
        call = ExecutedToolCall("getJobsByStatus", {"status": "scheduled"}, ToolResult.ok({"count": 0}))

        assert call.to_dict() == {
            "name": "getJobsByStatus",
            "args": {"status": "scheduled"},
            "result": {"success": True, "count": 0},
        }


class TestChatMessages:
    """Test conversation message types"""

    def test_model_role_maps_to_assistant(self):
        message = ChatMessage.from_dict({"role": "model", "text": "Hi"})

        assert message.role == MessageRole.ASSISTANT

    def test_chat_result_without_tools(self):
        result = ChatResult(response="Hello")

        data = result.to_dict()
        assert data["tool_calls"] is None
        assert data["status"] == TurnStatus.OK.value
        assert not result.is_rate_limited
