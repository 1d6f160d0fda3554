# apps/domain/services/assistant.py

"""
Assistant Orchestrator - Caller-facing API of the business assistant

Owns the context store, session manager and conversation loop for one
process. Turns are serialized; refresh may run while a turn is in
flight and only affects later turns.
"""

import logging
import threading
from typing import Any, Dict, Optional, Sequence

from apps.domain.models import (
    BusinessSnapshot,
    ChatMessage,
    ChatResult,
    ValidationError,
)
from apps.domain.ports.llm import ILLMProvider
from apps.domain.ports.rate_limiter import IRateLimiter
from apps.domain.ports.retriever import IContextRetriever
from apps.domain.prompts.template import PromptTemplate
from apps.domain.services.context_store import ContextStore
from apps.domain.services.conversation import DEFAULT_MAX_TOOL_ROUNDS, ConversationLoop
from apps.domain.services.retrieval import RetrievalAugmenter
from apps.domain.services.session_manager import DEFAULT_HISTORY_LIMIT, SessionManager
from apps.domain.services.snapshot_loader import SnapshotLoader
from apps.domain.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)


class AssistantOrchestrator:
    """
    Business assistant for one process

    Usage:
        assistant = AssistantOrchestrator(llm, registry, retriever, limiter)
        assistant.initialize(snapshot)
        result = assistant.chat("Which jobs are in progress?")
    """

    def __init__(
        self,
        llm: ILLMProvider,
        registry: ToolRegistry,
        retriever: IContextRetriever,
        rate_limiter: IRateLimiter,
        prompt_template: Optional[PromptTemplate] = None,
        store: Optional[ContextStore] = None,
        snapshot_loader: Optional[SnapshotLoader] = None,
        max_tool_rounds: int = DEFAULT_MAX_TOOL_ROUNDS,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
    ):
        self.store = store or ContextStore()
        self.registry = registry
        self.rate_limiter = rate_limiter
        self.snapshot_loader = snapshot_loader
        self.sessions = SessionManager(
            llm=llm,
            store=self.store,
            registry=registry,
            prompt_template=prompt_template,
            history_limit=history_limit,
        )
        self.loop = ConversationLoop(
            store=self.store,
            sessions=self.sessions,
            registry=registry,
            augmenter=RetrievalAugmenter(retriever),
            rate_limiter=rate_limiter,
            max_tool_rounds=max_tool_rounds,
        )
        self._turn_lock = threading.Lock()

    def initialize(self, snapshot: BusinessSnapshot) -> BusinessSnapshot:
        """
        Install the first snapshot and open the session

        Raises:
            ValidationError: If snapshot is not a BusinessSnapshot
        """
        self._check_snapshot(snapshot)
        return self.store.initialize(snapshot)

    def load_snapshot(self) -> BusinessSnapshot:
        """
        Fetch a fresh snapshot from the business backend

        Raises:
            ValidationError: If no snapshot loader is configured
        """
        if self.snapshot_loader is None:
            raise ValidationError("No snapshot loader configured; a snapshot must be supplied.")
        return self.snapshot_loader.load()

    def refresh(self, snapshot: BusinessSnapshot) -> BusinessSnapshot:
        """
        Replace the snapshot and rebuild the session

        Does not wait for an in-flight turn.
        """
        self._check_snapshot(snapshot)
        return self.store.refresh(snapshot)

    def chat(self, message: str, history: Optional[Sequence[ChatMessage]] = None) -> ChatResult:
        """
        Handle one user message

        Args:
            message: User text
            history: Prior conversation messages

        Returns:
            ChatResult (status=RATE_LIMITED when throttled)

        Raises:
            ValidationError: If message is empty
            NotInitializedError: If initialize() was never called
            ChannelFailureError: If the model channel fails
        """
        if not message or not message.strip():
            raise ValidationError("Message cannot be empty")

        with self._turn_lock:
            return self.loop.run_turn(message.strip(), history)

    def is_initialized(self) -> bool:
        return self.store.is_initialized()

    def context_summary(self) -> str:
        return self.store.summarize()

    def status(self) -> Dict[str, Any]:
        """Snapshot and session info for health/status endpoints"""
        snapshot = self.store.current() if self.store.is_initialized() else None
        session = self.sessions.current()
        return {
            "initialized": snapshot is not None,
            "snapshot_version": snapshot.version if snapshot else None,
            "captured_at": snapshot.captured_at.isoformat() if snapshot else None,
            "session_id": session.session_id if session else None,
            "requests_remaining": self.rate_limiter.remaining(),
            "tools": self.registry.names(),
        }

    @staticmethod
    def _check_snapshot(snapshot: Any) -> None:
        if not isinstance(snapshot, BusinessSnapshot):
            raise ValidationError(f"Expected BusinessSnapshot, got {type(snapshot).__name__}")
