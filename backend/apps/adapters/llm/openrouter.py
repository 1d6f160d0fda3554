# apps/adapters/llm/openrouter.py
"""
OpenRouter LLM Provider Adapter

Implements ILLMProvider with OpenAI-compatible function calling through
the OpenRouter API. Each session keeps its own message list.
"""
import json
import logging
from typing import Any, Dict, List, Optional, Sequence

import openai

from apps.domain.models import (
    ChatMessage,
    LLMProviderError,
    MessageRole,
    ModelReply,
    ToolCall,
    ToolResult,
)
from apps.infrastructure.pricing import calculate_cost

logger = logging.getLogger(__name__)


class OpenRouterChatSession:
    """
    One conversation with the model

    Holds the system instruction, the tool declarations and every
    message exchanged so far, in order.
    """

    def __init__(
        self,
        provider: "OpenRouterLLM",
        system_instruction: str,
        tools: List[Dict[str, Any]],
        history: Optional[Sequence[ChatMessage]] = None,
    ):
        self._provider = provider
        self._tools = [{"type": "function", "function": decl} for decl in tools]
        self.messages: List[Dict[str, Any]] = [{"role": "system", "content": system_instruction}]

        for message in history or []:
            role = "assistant" if message.role == MessageRole.ASSISTANT else "user"
            self.messages.append({"role": role, "content": message.text})

    def send(self, message: str) -> ModelReply:
        """
        Send a user message (or continue after tool results) and get the reply

        An empty message appends nothing, so the model answers the tool
        results already in the history.
        """
        if message:
            self.messages.append({"role": "user", "content": message})

        response = self._provider.complete(self.messages, self._tools)
        choice = response.choices[0].message

        tool_calls = []
        raw_calls = []
        for raw in choice.tool_calls or []:
            tool_calls.append(
                ToolCall(
                    name=raw.function.name,
                    arguments=_parse_arguments(raw.function.arguments),
                    call_id=raw.id,
                )
            )
            raw_calls.append({
                "id": raw.id,
                "type": "function",
                "function": {"name": raw.function.name, "arguments": raw.function.arguments or "{}"},
            })

        assistant_message: Dict[str, Any] = {"role": "assistant", "content": choice.content or ""}
        if raw_calls:
            assistant_message["tool_calls"] = raw_calls
        self.messages.append(assistant_message)

        return ModelReply(text=choice.content or "", tool_calls=tuple(tool_calls))

    def send_tool_result(self, call: ToolCall, result: ToolResult) -> None:
        self.messages.append({
            "role": "tool",
            "tool_call_id": call.call_id or call.name,
            "content": json.dumps(result.to_dict(), default=str),
        })


class OpenRouterLLM:
    """
    OpenRouter API adapter for tool-calling chat

    Provides access to multiple LLM models through unified API.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://openrouter.ai/api/v1",
        model: str = "gpt-4o-mini",
        temperature: float = 0.1,
        max_tokens: int = 1000,
        timeout: float = 30.0,
        max_retries: int = 1,
    ):
        """
        Initialize OpenRouter LLM client

        Args:
            api_key: OpenRouter API key
            base_url: API base URL
            model: Model identifier
            temperature: Sampling temperature (0.0-1.0)
            max_tokens: Maximum tokens to generate
            timeout: Per-request timeout in seconds
            max_retries: Retries the client performs on transient errors
        """
        if not api_key:
            raise ValueError("OpenRouter API key is required")

        self.base_url = base_url.rstrip("/")
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens

        # OpenAI client (compatible with OpenRouter)
        self.client = openai.OpenAI(
            api_key=api_key,
            base_url=self.base_url,
            timeout=timeout,
            max_retries=max_retries,
        )

    def open_session(
        self,
        system_instruction: str,
        tools: List[Dict[str, Any]],
        history: Optional[Sequence[ChatMessage]] = None,
    ) -> OpenRouterChatSession:
        return OpenRouterChatSession(self, system_instruction, tools, history)

    def complete(self, messages: List[Dict[str, Any]], tools: List[Dict[str, Any]]):
        """
        Run one chat completion

        Raises:
            LLMProviderError: If the API call fails or times out
        """
        logger.debug(
            f"Requesting completion with model={self.model}, "
            f"messages={len(messages)}, tools={len(tools)}"
        )

        kwargs: Dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }
        if tools:
            kwargs["tools"] = tools

        try:
            response = self.client.chat.completions.create(**kwargs)

        except openai.APITimeoutError as e:
            logger.error(f"OpenRouter request timed out: {e}")
            raise LLMProviderError(f"Request timed out: {e}")

        except openai.RateLimitError as e:
            logger.error(f"Rate limit exceeded: {e}")
            raise LLMProviderError(f"Rate limit exceeded: {e}")

        except openai.APIError as e:
            logger.error(f"OpenRouter API error: {e}")
            raise LLMProviderError(f"API error: {e}")

        if not response.choices:
            raise LLMProviderError("Empty response from LLM")

        self._track_usage(response)
        return response

    def _track_usage(self, response) -> None:
        usage = getattr(response, "usage", None)
        if not usage:
            return

        cost = calculate_cost(usage.prompt_tokens, usage.completion_tokens, self.model)
        logger.info(
            f"Tokens: {usage.total_tokens} "
            f"(in={usage.prompt_tokens}, out={usage.completion_tokens}) ${cost:.6f}"
        )


def _parse_arguments(raw: Optional[str]) -> Dict[str, Any]:
    if not raw:
        return {}
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning(f"Model sent malformed tool arguments: {raw[:200]}")
        return {}
    return parsed if isinstance(parsed, dict) else {}
