# apps/adapters/llm/fake.py
"""
Fake LLM Provider for testing

Provides scripted replies without API calls.
"""
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

from apps.domain.models import ChatMessage, LLMProviderError, ModelReply, ToolCall, ToolResult

# A scripted step: a reply, a plain string, an exception to raise, or a
# callable that receives the sent message and returns one of those.
Step = Union[ModelReply, str, Exception, Callable[[str], Any]]


class FakeChatSession:
    """Session that replays the provider's script"""

    def __init__(
        self,
        provider: "FakeLLM",
        system_instruction: str,
        tools: List[Dict[str, Any]],
        history: Optional[Sequence[ChatMessage]] = None,
    ):
        self._provider = provider
        self.system_instruction = system_instruction
        self.tools = tools
        self.history = list(history or [])
        self.sent: List[str] = []
        self.tool_results: List[tuple] = []
        # Interleaved log of ("send", message) / ("tool_result", name)
        self.events: List[tuple] = []

    def send(self, message: str) -> ModelReply:
        self.sent.append(message)
        self.events.append(("send", message))
        return self._provider._next_reply(message)

    def send_tool_result(self, call: ToolCall, result: ToolResult) -> None:
        self.tool_results.append((call, result))
        self.events.append(("tool_result", call.name))


class FakeLLM:
    """
    Fake LLM implementation for unit testing

    Replies are taken from the script in order. Once the script is
    exhausted every send returns the default response.
    """

    def __init__(self, script: Optional[List[Step]] = None, response: str = "This is a test response"):
        """
        Initialize fake LLM

        Args:
            script: Replies to return, in order
            response: The reply once the script runs out
        """
        self.script: List[Step] = list(script or [])
        self.response = response
        self.sessions: List[FakeChatSession] = []
        self.send_count = 0
        self.fail_open = False

    @property
    def last_session(self) -> Optional[FakeChatSession]:
        return self.sessions[-1] if self.sessions else None

    def queue(self, *steps: Step) -> "FakeLLM":
        self.script.extend(steps)
        return self

    def open_session(
        self,
        system_instruction: str,
        tools: List[Dict[str, Any]],
        history: Optional[Sequence[ChatMessage]] = None,
    ) -> FakeChatSession:
        if self.fail_open:
            raise LLMProviderError("Fake provider refused to open a session")
        session = FakeChatSession(self, system_instruction, tools, history)
        self.sessions.append(session)
        return session

    def _next_reply(self, message: str) -> ModelReply:
        self.send_count += 1
        step: Step = self.script.pop(0) if self.script else self.response

        if callable(step) and not isinstance(step, (ModelReply, Exception)):
            step = step(message)
        if isinstance(step, Exception):
            raise step
        if isinstance(step, str):
            return ModelReply(text=step)
        return step
