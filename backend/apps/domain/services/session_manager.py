# apps/domain/services/session_manager.py

"""
Session Manager - Lifecycle of the model chat session

A session is bound to the system instruction it was created with, so
it is rebuilt every time the ContextStore installs a new snapshot.
"""

import logging
import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Sequence

from apps.domain.models import ChatMessage, MessageRole
from apps.domain.ports.llm import IChatSession, ILLMProvider
from apps.domain.prompts.template import PromptTemplate
from apps.domain.services.context_store import ContextStore
from apps.domain.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 20


@dataclass(frozen=True)
class Session:
    """A chat channel together with the instruction it was built from"""
    channel: IChatSession
    system_instruction: str
    snapshot_version: int
    session_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class SessionManager:
    """
    Creates, rebuilds and drops the model session

    Registers itself as a ContextStore listener: every initialize() or
    refresh() rebuilds the session with a freshly rendered instruction.
    """

    def __init__(
        self,
        llm: ILLMProvider,
        store: ContextStore,
        registry: ToolRegistry,
        prompt_template: Optional[PromptTemplate] = None,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
    ):
        """
        Initialize session manager

        Args:
            llm: Provider used to open sessions
            store: Context store whose digest goes into the instruction
            registry: Tool registry supplying the declarations
            prompt_template: Template for the system instruction
            history_limit: Max prior messages seeded into a lazily
                created session
        """
        self._llm = llm
        self._store = store
        self._registry = registry
        self._template = prompt_template or PromptTemplate()
        self.history_limit = history_limit

        self._session: Optional[Session] = None
        self._lock = threading.Lock()

        store.add_listener(lambda snapshot: self.rebuild())

    def ensure_session(self, history: Optional[Sequence[ChatMessage]] = None) -> Session:
        """
        Get the current session, creating it if needed

        Args:
            history: Prior conversation, only used when a new session
                has to be created

        Returns:
            The current Session
        """
        with self._lock:
            if self._session is None:
                self._session = self._create(history)
            return self._session

    def rebuild(self) -> Session:
        """
        Discard the current session and create a new one

        If the new session cannot be opened the old one is dropped anyway;
        the next ensure_session() retries.
        """
        with self._lock:
            old = self._session
            self._session = None
            self._session = self._create(None)

        if old is not None:
            logger.info(f"Session {old.session_id} replaced by {self._session.session_id}")
        return self._session

    def invalidate(self) -> None:
        """Drop the current session; the next ensure_session() re-creates it"""
        with self._lock:
            self._session = None

    def discard(self, session: Session) -> None:
        """Drop session if it is still the current one"""
        with self._lock:
            if self._session is session:
                self._session = None
                logger.info(f"Session {session.session_id} discarded after a failed turn")

    def current(self) -> Optional[Session]:
        return self._session

    def build_instruction(self) -> str:
        """Render the system instruction from the store's current digest"""
        return self._template.render_system(
            context_summary=self._store.summarize(),
            tools=self._registry.declarations(),
        )

    def _create(self, history: Optional[Sequence[ChatMessage]]) -> Session:
        instruction = self.build_instruction()
        seed = self._seed_history(history)

        channel = self._llm.open_session(
            system_instruction=instruction,
            tools=self._registry.declarations(),
            history=seed,
        )

        version = self._store.current().version if self._store.is_initialized() else 0
        session = Session(
            channel=channel,
            system_instruction=instruction,
            snapshot_version=version,
        )
        logger.info(
            f"Created assistant session {session.session_id} "
            f"(snapshot_version={version}, seeded_messages={len(seed)})"
        )
        return session

    def _seed_history(self, history: Optional[Sequence[ChatMessage]]) -> list:
        if not history:
            return []

        conversational = [
            m for m in history
            if m.role in (MessageRole.USER, MessageRole.ASSISTANT)
            and not m.is_thinking
            and m.text
        ]
        return conversational[-self.history_limit:] if self.history_limit > 0 else []
