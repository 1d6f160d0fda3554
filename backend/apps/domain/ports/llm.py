# apps/domain/ports/llm.py

"""
LLM Provider Port - Interface for tool-calling chat sessions

This port defines the contract for language model providers.
Any adapter that implements these methods can be used by the domain.
"""

from typing import Any, Dict, List, Optional, Protocol, Sequence

from apps.domain.models import ChatMessage, ModelReply, ToolCall, ToolResult


class IChatSession(Protocol):
    """
    A live, instruction-bound exchange channel with the model

    The channel keeps its own message history. Callers only send the
    next message or feed back tool results.
    """

    def send(self, message: str) -> ModelReply:
        """
        Send a message and return the model's reply

        Args:
            message: User text. An empty string asks the model to continue
                after tool results were delivered.

        Returns:
            ModelReply with text and any requested tool calls

        Raises:
            LLMProviderError: If the provider call fails or times out
        """
        ...

    def send_tool_result(self, call: ToolCall, result: ToolResult) -> None:
        """
        Deliver the result of one tool call back into the session

        Args:
            call: The ToolCall the model requested
            result: The ToolResult produced by the dispatcher
        """
        ...


class ILLMProvider(Protocol):
    """
    Interface for Large Language Model providers

    Implementations open chat sessions bound to a system instruction
    and a list of tool declarations.
    """

    def open_session(
        self,
        system_instruction: str,
        tools: List[Dict[str, Any]],
        history: Optional[Sequence[ChatMessage]] = None,
    ) -> IChatSession:
        """
        Open a new chat session

        Args:
            system_instruction: Full system prompt text
            tools: Tool declarations, each with 'name', 'description'
                and JSON Schema 'parameters'
            history: Optional prior user/assistant messages to seed the
                channel with

        Returns:
            A new IChatSession

        Raises:
            LLMProviderError: If the session cannot be created
        """
        ...
