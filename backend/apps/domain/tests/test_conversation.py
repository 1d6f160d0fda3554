# apps/domain/tests/test_conversation.py
"""
Tests for the conversation loop
"""
import pytest

from apps.adapters.llm.fake import FakeLLM
from apps.adapters.retrieval.fake import FakeContextRetriever
from apps.adapters.throttling.fake import FakeRateLimiter
from apps.domain.models import (
    BusinessSnapshot,
    ChannelFailureError,
    ChatMessage,
    LLMProviderError,
    MessageRole,
    ModelReply,
    NotInitializedError,
    ToolCall,
    ToolResult,
    TurnStatus,
)
from apps.domain.services.assistant import AssistantOrchestrator
from apps.domain.services.conversation import TOOL_LIMIT_MESSAGE, TOOL_LIMIT_NOTICE, TurnState
from apps.domain.tools import ToolName, ToolRegistry, ToolSpec


def tool_reply(*calls, text=""):
    return ModelReply(
        text=text,
        tool_calls=tuple(
            ToolCall(name=name, arguments=args, call_id=f"call_{i}")
            for i, (name, args) in enumerate(calls)
        ),
    )


class TestDirectReplies:
    """Turns where the model asks for no tools"""

    def test_empty_snapshot_direct_reply(self, assistant, fake_llm, empty_snapshot):
        assistant.initialize(empty_snapshot)

        result = assistant.chat("hello")

        assert assistant.is_initialized()
        assert result.response == "This is a test response"
        assert result.tool_calls is None
        assert fake_llm.send_count == 1

    def test_transcript_for_direct_reply(self, assistant, snapshot):
        assistant.initialize(snapshot)

        result = assistant.chat("hello")

        assert [m.role for m in result.messages] == [MessageRole.USER, MessageRole.ASSISTANT]
        assert result.messages[0].text == "hello"

    def test_chat_before_initialize(self, assistant, fake_llm):
        with pytest.raises(NotInitializedError):
            assistant.chat("hello")

        assert fake_llm.send_count == 0


class TestRetrievalInTurn:
    """Outgoing message rewriting"""

    def test_empty_retrieval_sends_original_query(self, assistant, fake_llm, snapshot):
        assistant.initialize(snapshot)

        assistant.chat("How many jobs today?")

        assert fake_llm.last_session.sent == ["How many jobs today?"]

    def test_retrieved_context_is_wrapped(self, fake_llm, registry, rate_limiter, snapshot):
        assistant = AssistantOrchestrator(
            llm=fake_llm,
            registry=registry,
            retriever=FakeContextRetriever(context="Job J1 is a large oak removal."),
            rate_limiter=rate_limiter,
        )
        assistant.initialize(snapshot)

        result = assistant.chat("What is J1?")

        sent = fake_llm.last_session.sent[0]
        assert sent.startswith("User Question: What is J1?")
        assert "Context:\nJob J1 is a large oak removal." in sent
        # The transcript keeps what the user typed
        assert result.messages[0].text == "What is J1?"


class TestToolRounds:
    """Turns where the model calls tools"""

    def test_each_call_answered_in_order_before_follow_up(self, assistant, fake_llm, snapshot):
        assistant.initialize(snapshot)
        fake_llm.queue(
            tool_reply(
                ("getJobsByStatus", {"status": "scheduled"}),
                ("getOutstandingInvoices", {}),
                ("getAvailableEquipment", {}),
            ),
            "You have one scheduled job.",
        )

        result = assistant.chat("Summarize my day")

        session = fake_llm.last_session
        assert session.events == [
            ("send", "Summarize my day"),
            ("tool_result", "getJobsByStatus"),
            ("tool_result", "getOutstandingInvoices"),
            ("tool_result", "getAvailableEquipment"),
            ("send", ""),
        ]
        assert [m.role for m in result.messages] == [
            MessageRole.USER,
            MessageRole.TOOL,
            MessageRole.TOOL,
            MessageRole.TOOL,
            MessageRole.ASSISTANT,
        ]
        assert [c.name for c in result.tool_calls] == [
            "getJobsByStatus",
            "getOutstandingInvoices",
            "getAvailableEquipment",
        ]
        assert result.response == "You have one scheduled job."

    def test_update_job_status_patches_snapshot(self, assistant, fake_llm, snapshot):
        assistant.initialize(snapshot)
        fake_llm.queue(
            tool_reply(("updateJobStatus", {"jobId": "J1", "status": "Completed"})),
            "Marked J1 as completed.",
        )

        result = assistant.chat("Mark J1 done")

        assert result.tool_calls[0].result.success is True
        assert assistant.store.current().find("jobs", "J1").status == "completed"
        assert result.response == "Marked J1 as completed."

    def test_later_call_sees_earlier_update(self, assistant, fake_llm, snapshot):
        assistant.initialize(snapshot)
        fake_llm.queue(
            tool_reply(
                ("updateJobStatus", {"jobId": "J1", "status": "completed"}),
                ("getJobsByStatus", {"status": "completed"}),
            ),
            "Done.",
        )

        result = assistant.chat("Complete J1 and list completed jobs")

        assert result.tool_calls[1].result.payload["count"] == 1

    def test_unknown_tool_does_not_crash_turn(self, assistant, fake_llm, snapshot):
        assistant.initialize(snapshot)
        fake_llm.queue(tool_reply(("doesNotExist", {})), "I can't do that.")

        result = assistant.chat("Do the impossible")

        executed = result.tool_calls[0]
        assert executed.result.success is False
        assert executed.result.error_message == "Unknown function doesNotExist"
        assert result.response == "I can't do that."

    def test_throwing_handler_is_folded_into_result(self, fake_llm, rate_limiter, retriever, snapshot):
        def explode(args, snapshot):
            raise RuntimeError("backend on fire")

        registry = ToolRegistry()
        registry.register(ToolSpec(
            name=ToolName.GET_BUSINESS_METRICS,
            description="metrics",
            parameters={"type": "object", "properties": {}},
            handler=explode,
        ))
        assistant = AssistantOrchestrator(fake_llm, registry, retriever, rate_limiter)
        assistant.initialize(snapshot)
        fake_llm.queue(tool_reply(("getBusinessMetrics", {})), "Metrics are unavailable.")

        result = assistant.chat("How are we doing?")

        assert result.tool_calls[0].result.success is False
        assert result.tool_calls[0].result.error_message == "Error: backend on fire"
        call, fed_back = fake_llm.last_session.tool_results[0]
        assert isinstance(fed_back, ToolResult)
        assert fed_back.success is False

    def test_follow_up_tool_calls_run_another_round(self, assistant, fake_llm, snapshot):
        assistant.initialize(snapshot)
        fake_llm.queue(
            tool_reply(("getJobsByStatus", {"status": "scheduled"})),
            tool_reply(("getAvailableEquipment", {})),
            "J1 can use the chipper.",
        )

        result = assistant.chat("Plan J1")

        assert [c.name for c in result.tool_calls] == ["getJobsByStatus", "getAvailableEquipment"]
        assert fake_llm.send_count == 3
        assert result.response == "J1 can use the chipper."

    def test_tool_round_limit(self, fake_llm, registry, retriever, rate_limiter, snapshot):
        assistant = AssistantOrchestrator(
            fake_llm, registry, retriever, rate_limiter, max_tool_rounds=1,
        )
        assistant.initialize(snapshot)
        fake_llm.queue(
            tool_reply(("getJobsByStatus", {"status": "scheduled"})),
            tool_reply(("getAvailableEquipment", {})),
            "Stopping here.",
        )

        result = assistant.chat("Plan everything")

        first, second = result.tool_calls
        assert first.result.success is True
        assert second.result.success is False
        assert second.result.error_message == TOOL_LIMIT_MESSAGE
        # Every call got a result fed back
        assert len(fake_llm.last_session.tool_results) == 2
        assert result.response == "Stopping here."


    def test_follow_up_requested_after_limit(self, fake_llm, registry, retriever, rate_limiter, snapshot):
        assistant = AssistantOrchestrator(
            fake_llm, registry, retriever, rate_limiter, max_tool_rounds=1,
        )
        assistant.initialize(snapshot)
        fake_llm.queue(
            tool_reply(("getJobsByStatus", {"status": "scheduled"})),
            tool_reply(("getAvailableEquipment", {})),
            tool_reply(("getOutstandingInvoices", {})),
            "Here is what I found so far.",
        )

        result = assistant.chat("Plan everything")

        assert result.response == "Here is what I found so far."
        assert [c.result.success for c in result.tool_calls] == [True, False, False]
        assert fake_llm.send_count == 4

    def test_limit_notice_when_model_keeps_calling_tools(
        self, fake_llm, registry, retriever, rate_limiter, snapshot
    ):
        assistant = AssistantOrchestrator(
            fake_llm, registry, retriever, rate_limiter, max_tool_rounds=1,
        )
        assistant.initialize(snapshot)
        fake_llm.queue(*[tool_reply(("getAvailableEquipment", {})) for _ in range(4)])

        result = assistant.chat("Plan everything")

        assert result.response == TOOL_LIMIT_NOTICE
        assert result.messages[-1].text == TOOL_LIMIT_NOTICE
        # Every requested call was answered, none left dangling
        assert len(fake_llm.last_session.tool_results) == 4
        assert fake_llm.send_count == 4

class TestRateLimitedTurns:
    """Throttled turns never reach the model"""

    def test_rejected_turn_skips_model(self, fake_llm, registry, retriever, clock, snapshot):
        assistant = AssistantOrchestrator(
            fake_llm, registry, retriever,
            FakeRateLimiter(max_requests=1, window_seconds=60, clock=clock),
        )
        assistant.initialize(snapshot)
        assistant.chat("first")

        result = assistant.chat("second")

        assert fake_llm.send_count == 1
        assert result.status == TurnStatus.RATE_LIMITED
        assert result.is_rate_limited
        assert result.messages == []
        assert result.tool_calls is None
        assert "too quickly" in result.notice
        assert result.retry_after == pytest.approx(60.0)

    def test_rate_limit_checked_before_initialization(self, fake_llm, registry, retriever, clock):
        limiter = FakeRateLimiter(max_requests=1, window_seconds=60, clock=clock)
        limiter.check_and_consume()
        assistant = AssistantOrchestrator(fake_llm, registry, retriever, limiter)

        result = assistant.chat("hello")

        assert result.is_rate_limited


class TestChannelFailures:
    """Model channel errors end the turn and reset the loop"""

    def test_send_failure_raises_channel_failure(self, assistant, fake_llm, snapshot):
        assistant.initialize(snapshot)
        fake_llm.queue(LLMProviderError("connection reset"))

        with pytest.raises(ChannelFailureError) as exc_info:
            assistant.chat("hello")

        assert "Sorry" in exc_info.value.user_message
        assert assistant.loop.state == TurnState.IDLE

    def test_failure_during_follow_up(self, assistant, fake_llm, snapshot):
        assistant.initialize(snapshot)
        fake_llm.queue(
            tool_reply(("getAvailableEquipment", {})),
            TimeoutError("model timed out"),
        )

        with pytest.raises(ChannelFailureError):
            assistant.chat("What's available?")

        assert assistant.loop.state == TurnState.IDLE
        assert len(fake_llm.last_session.tool_results) == 1

    def test_next_turn_unaffected_by_failure(self, assistant, fake_llm, snapshot):
        assistant.initialize(snapshot)
        fake_llm.queue(RuntimeError("boom"), "Back online.")

        with pytest.raises(ChannelFailureError):
            assistant.chat("first")
        result = assistant.chat("second")

        assert result.response == "Back online."


    def test_failed_turn_opens_clean_session(self, assistant, fake_llm, snapshot):
        assistant.initialize(snapshot)
        failed_session = fake_llm.last_session
        fake_llm.queue(LLMProviderError("connection reset"), "There are 2 clients.")

        with pytest.raises(ChannelFailureError):
            assistant.chat("Delete all jobs for Ada")

        history = [
            ChatMessage(MessageRole.USER, "Hi"),
            ChatMessage(MessageRole.ASSISTANT, "Hello, how can I help?"),
        ]
        result = assistant.chat("How many clients?", history=history)

        assert result.response == "There are 2 clients."
        retry_session = fake_llm.last_session
        assert retry_session is not failed_session
        assert retry_session.sent == ["How many clients?"]
        assert [m.text for m in retry_session.history] == ["Hi", "Hello, how can I help?"]

    def test_session_open_failure_is_channel_failure(self, assistant, fake_llm, snapshot):
        assistant.initialize(snapshot)
        assistant.sessions.invalidate()
        fake_llm.fail_open = True

        with pytest.raises(ChannelFailureError) as exc_info:
            assistant.chat("hello")

        assert "Sorry" in exc_info.value.user_message
        assert assistant.loop.state == TurnState.IDLE

        fake_llm.fail_open = False
        assert assistant.chat("hello again").response == "This is a test response"

class TestRefreshDuringTurn:
    """In-flight turns keep the snapshot and session they started with"""

    def test_in_flight_turn_keeps_captured_state(self, assistant, fake_llm, snapshot, business_data):
        assistant.initialize(snapshot)
        original_session = fake_llm.last_session
        refreshed = {**business_data, "jobs": [{"id": "J7", "status": "scheduled"},
                                               {"id": "J8", "status": "scheduled"}]}

        def refresh_mid_turn(message):
            assistant.refresh(BusinessSnapshot.from_dict(refreshed))
            return tool_reply(("getJobsByStatus", {"status": "scheduled"}))

        fake_llm.queue(refresh_mid_turn, "One scheduled job.")

        result = assistant.chat("Scheduled jobs?")

        # Tool ran against the snapshot captured on entry
        assert result.tool_calls[0].result.payload["count"] == 1
        assert [job["id"] for job in result.tool_calls[0].result.payload["jobs"]] == ["J1"]
        # Follow-up went through the original session
        assert original_session.sent == ["Scheduled jobs?", ""]
        assert len(fake_llm.sessions) == 2
        assert fake_llm.last_session.sent == []

    def test_next_turn_sees_refreshed_state(self, assistant, fake_llm, snapshot, business_data):
        assistant.initialize(snapshot)
        assistant.refresh(BusinessSnapshot.from_dict({
            **business_data,
            "jobs": [{"id": "J7", "status": "scheduled"}, {"id": "J8", "status": "scheduled"}],
        }))
        fake_llm.queue(tool_reply(("getJobsByStatus", {"status": "scheduled"})), "Two.")

        result = assistant.chat("Scheduled jobs?")

        assert result.tool_calls[0].result.payload["count"] == 2
        assert fake_llm.last_session.sent == ["Scheduled jobs?", ""]
