# apps/domain/services/conversation.py

"""
Conversation Loop - Turn-taking state machine

States: IDLE -> SENDING -> AWAITING_TOOL_RESULTS -> FINALIZING -> IDLE

A turn captures the snapshot and session on entry and uses only those
for its whole duration, so a concurrent refresh never changes what an
in-flight turn sees.
"""

import logging
from enum import Enum
from typing import List, Optional, Sequence

from apps.domain.models import (
    BusinessSnapshot,
    ChannelFailureError,
    ChatMessage,
    ChatResult,
    ExecutedToolCall,
    MessageRole,
    ModelReply,
    RateLimitedError,
    ToolCall,
    ToolResult,
    TurnStatus,
)
from apps.domain.ports.rate_limiter import IRateLimiter
from apps.domain.services.context_store import ContextStore
from apps.domain.services.retrieval import RetrievalAugmenter
from apps.domain.services.session_manager import Session, SessionManager
from apps.domain.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)

DEFAULT_MAX_TOOL_ROUNDS = 3

TOOL_LIMIT_MESSAGE = "Tool call limit reached for this turn"

TOOL_LIMIT_NOTICE = (
    "I wasn't able to finish that within the tool call limit for one message. "
    "Please try a narrower question."
)


class TurnState(str, Enum):
    IDLE = "idle"
    SENDING = "sending"
    AWAITING_TOOL_RESULTS = "awaiting_tool_results"
    FINALIZING = "finalizing"


class ConversationLoop:
    """
    Runs one user message through to the model's final answer

    Responsibilities:
    - Enforce the request budget before any model call
    - Augment the outgoing message with retrieved context
    - Answer every tool call the model makes before asking for a follow-up
    - Patch the snapshot with entities the tools changed
    - Turn model channel failures into ChannelFailureError
    """

    def __init__(
        self,
        store: ContextStore,
        sessions: SessionManager,
        registry: ToolRegistry,
        augmenter: RetrievalAugmenter,
        rate_limiter: IRateLimiter,
        max_tool_rounds: int = DEFAULT_MAX_TOOL_ROUNDS,
    ):
        self._store = store
        self._sessions = sessions
        self._registry = registry
        self._augmenter = augmenter
        self._rate_limiter = rate_limiter
        self.max_tool_rounds = max(1, max_tool_rounds)
        self._state = TurnState.IDLE

    @property
    def state(self) -> TurnState:
        return self._state

    def run_turn(self, message: str, history: Optional[Sequence[ChatMessage]] = None) -> ChatResult:
        """
        Execute one turn

        Args:
            message: The user's message
            history: Prior conversation, used to seed a new session

        Returns:
            ChatResult. A rejected request comes back with
            status=RATE_LIMITED and an empty transcript.

        Raises:
            NotInitializedError: If the context store is not initialized
            ChannelFailureError: If the model channel fails
        """
        try:
            self._rate_limiter.check_and_consume()
        except RateLimitedError as e:
            return ChatResult(
                response="",
                status=TurnStatus.RATE_LIMITED,
                notice=str(e),
                retry_after=e.retry_after,
            )

        # Capture on entry
        snapshot = self._store.current()
        session = self._open_session(history)

        transcript: List[ChatMessage] = [ChatMessage(role=MessageRole.USER, text=message)]

        try:
            self._state = TurnState.SENDING
            outgoing = self._augmenter.augment(message)
            reply = self._send(session, outgoing)

            if not reply.has_tool_calls:
                transcript.append(ChatMessage(role=MessageRole.ASSISTANT, text=reply.text))
                return ChatResult(response=reply.text, tool_calls=None, messages=transcript)

            executed: List[ExecutedToolCall] = []
            rounds = 0

            while reply.has_tool_calls:
                rounds += 1
                self._state = TurnState.AWAITING_TOOL_RESULTS
                over_limit = rounds > self.max_tool_rounds

                if over_limit:
                    logger.warning(
                        f"Tool round limit ({self.max_tool_rounds}) reached, "
                        f"refusing {len(reply.tool_calls)} call(s)"
                    )

                for call in reply.tool_calls:
                    snapshot, result = self._execute(call, snapshot, over_limit)
                    self._record(session, call, result, executed, transcript)

                self._state = TurnState.FINALIZING
                reply = self._send(session, "")

                if over_limit:
                    break

            limited = reply.has_tool_calls
            if limited:
                # One last chance to answer in text; calls are refused
                self._refuse(session, reply.tool_calls, executed, transcript)
                reply = self._send(session, "")
                if reply.has_tool_calls:
                    self._refuse(session, reply.tool_calls, executed, transcript)

            text = reply.text
            if limited and (reply.has_tool_calls or not text):
                text = TOOL_LIMIT_NOTICE
            transcript.append(ChatMessage(role=MessageRole.ASSISTANT, text=text))
            logger.info(f"Turn completed with {len(executed)} tool call(s) in {rounds} round(s)")
            return ChatResult(response=text, tool_calls=executed, messages=transcript)

        except ChannelFailureError:
            # The channel may hold part of this turn; the next turn starts clean
            self._sessions.discard(session)
            raise

        finally:
            self._state = TurnState.IDLE

    def _open_session(self, history: Optional[Sequence[ChatMessage]]) -> Session:
        try:
            return self._sessions.ensure_session(history)
        except Exception as e:
            logger.error(f"Could not open model session: {e}", exc_info=True)
            raise ChannelFailureError(str(e)) from e

    def _record(self, session, call, result, executed, transcript) -> None:
        executed.append(ExecutedToolCall(call.name, dict(call.arguments or {}), result))
        transcript.append(self._tool_message(call, result))
        self._deliver(session, call, result)

    def _refuse(self, session, calls, executed, transcript) -> None:
        for call in calls:
            self._record(session, call, ToolResult.failure(TOOL_LIMIT_MESSAGE), executed, transcript)

    def _execute(self, call: ToolCall, snapshot: BusinessSnapshot, over_limit: bool):
        if over_limit:
            return snapshot, ToolResult.failure(TOOL_LIMIT_MESSAGE)

        result = self._registry.dispatch(call, snapshot)

        for update in result.updates:
            snapshot = snapshot.with_entity(update.collection, update.entity)
            self._store.apply_entity_update(update.collection, update.entity)

        return snapshot, result

    def _send(self, session: Session, message: str) -> ModelReply:
        try:
            return session.channel.send(message)
        except Exception as e:
            logger.error(f"Model channel failed in state {self._state.value}: {e}", exc_info=True)
            raise ChannelFailureError(str(e)) from e

    def _deliver(self, session: Session, call: ToolCall, result: ToolResult) -> None:
        try:
            session.channel.send_tool_result(call, result)
        except Exception as e:
            logger.error(f"Could not deliver result of {call.name}: {e}", exc_info=True)
            raise ChannelFailureError(str(e)) from e

    @staticmethod
    def _tool_message(call: ToolCall, result: ToolResult) -> ChatMessage:
        prefix = "Result" if result.success else "Failed"
        return ChatMessage(role=MessageRole.TOOL, text=f"{prefix} ({call.name}): {result.message}")
