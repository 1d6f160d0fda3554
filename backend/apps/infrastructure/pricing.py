# apps/infrastructure/pricing.py
"""
LLM Model Pricing Configuration

Prices in USD per 1M tokens. Used to log the cost of assistant turns.
"""
import logging

logger = logging.getLogger(__name__)

MODEL_PRICING = {
    # OpenAI Models
    "gpt-4o": {"input": 2.50, "output": 10.00},
    "gpt-4o-mini": {"input": 0.150, "output": 0.600},
    "openai/gpt-4o-mini": {"input": 0.150, "output": 0.600},
    # Anthropic
    "anthropic/claude-3.5-sonnet": {"input": 3.00, "output": 15.00},
    "anthropic/claude-3-haiku": {"input": 0.25, "output": 1.25},
    # Google
    "google/gemini-2.0-flash-001": {"input": 0.10, "output": 0.40},
    # Meta Llama (tool calling capable)
    "meta-llama/llama-3.1-70b-instruct": {"input": 0.40, "output": 0.40},
}


def calculate_cost(prompt_tokens: int, completion_tokens: int, model: str) -> float:
    """
    Calculate cost in USD for an LLM call

    Args:
        prompt_tokens: Number of input tokens
        completion_tokens: Number of output tokens
        model: Model identifier

    Returns:
        Cost in USD (0.0 for unknown models)
    """
    pricing = MODEL_PRICING.get(model)

    if not pricing:
        logger.warning(f"Unknown model for pricing: {model}")
        return 0.0

    input_cost = (prompt_tokens / 1_000_000) * pricing["input"]
    output_cost = (completion_tokens / 1_000_000) * pricing["output"]

    return input_cost + output_cost


def get_model_info(model: str) -> dict:
    """Get pricing info for a model"""
    pricing = MODEL_PRICING.get(model)

    if not pricing:
        return {"model": model, "input_price": 0.0, "output_price": 0.0, "known": False}

    return {
        "model": model,
        "input_price": pricing["input"],
        "output_price": pricing["output"],
        "known": True,
    }
