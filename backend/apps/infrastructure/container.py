# apps/infrastructure/container.py

"""
Dependency Injection Container

Simple factory functions for creating fully-wired services.
No magic, no framework - just explicit construction.
"""

import logging
import threading
from typing import Any, Dict, Optional

from apps.domain.models import DomainException
from apps.infrastructure.config import get_config, get_environment
from apps.infrastructure.pricing import get_model_info
from apps.infrastructure.rate_limit import get_rate_limit_config

logger = logging.getLogger(__name__)


# ============================================================
# ADAPTER FACTORIES
# ============================================================

def create_llm_provider(config: Dict[str, Any]):
    """
    Factory for LLM provider based on configuration

    Args:
        config: LLM configuration dict with 'type' key

    Returns:
        Implementation of ILLMProvider

    Raises:
        ValueError: If provider type is unknown
    """
    provider_type = config.get('type', 'fake')

    if provider_type == 'fake':
        from apps.adapters.llm.fake import FakeLLM
        return FakeLLM(response=config.get('response', 'Test response'))

    elif provider_type == 'openrouter':
        from apps.adapters.llm.openrouter import OpenRouterLLM

        api_key = config.get('api_key')
        if not api_key:
            raise ValueError("OpenRouter API key is required")

        return OpenRouterLLM(
            api_key=api_key,
            base_url=config.get('base_url', 'https://openrouter.ai/api/v1'),
            model=config.get('model', 'gpt-4o-mini'),
            temperature=config.get('temperature', 0.1),
            max_tokens=config.get('max_tokens', 1000),
            timeout=config.get('timeout', 30),
            max_retries=config.get('max_retries', 1),
        )

    else:
        raise ValueError(f"Unknown LLM provider type: {provider_type}")


def create_context_retriever(config: Dict[str, Any]):
    """
    Factory for context retriever based on configuration

    Args:
        config: Retriever configuration dict with 'type' key

    Returns:
        Implementation of IContextRetriever
    """
    retriever_type = config.get('type', 'fake')

    if retriever_type == 'fake':
        from apps.adapters.retrieval.fake import FakeContextRetriever
        return FakeContextRetriever(context=config.get('context', ''))

    elif retriever_type == 'http':
        from apps.adapters.retrieval.http_context import HttpContextRetriever

        base_url = config.get('base_url')
        if not base_url:
            raise ValueError("HTTP retriever requires 'base_url'")

        return HttpContextRetriever(
            base_url=base_url,
            path=config.get('path', '/api/rag/context'),
            max_results=config.get('max_results', 8),
            timeout=config.get('timeout', 10),
        )

    else:
        raise ValueError(f"Unknown retriever type: {retriever_type}")


def create_business_gateway(config: Dict[str, Any]):
    """
    Factory for the business backend gateway

    Args:
        config: business_api configuration dict with 'type' key

    Returns:
        Implementation of IBusinessGateway
    """
    gateway_type = config.get('type', 'inmemory')

    if gateway_type == 'inmemory':
        from apps.adapters.business.fake import InMemoryBusinessGateway
        return InMemoryBusinessGateway(
            collections=config.get('collections'),
            company_profile=config.get('company_profile'),
        )

    elif gateway_type == 'rest':
        from apps.adapters.business.rest_api import RestBusinessGateway

        base_url = config.get('base_url')
        if not base_url:
            raise ValueError("REST business gateway requires 'base_url'")

        return RestBusinessGateway(
            base_url=base_url,
            api_token=config.get('api_token', ''),
            timeout=config.get('timeout', 10),
        )

    else:
        raise ValueError(f"Unknown business gateway type: {gateway_type}")


def create_rate_limiter(environment: Optional[str] = None):
    """
    Factory for the assistant rate limiter

    Args:
        environment: Environment name, defaults to the current one

    Returns:
        CacheRateLimiter sized from RATE_LIMIT_CONFIGS. Its counters live
        in the Django cache, shared by every worker.
    """
    from apps.adapters.throttling.drf_throttle import CacheRateLimiter

    rate_config = get_rate_limit_config(environment or get_environment())

    return CacheRateLimiter(
        rate=rate_config.get('assistant_rate', '15/min'),
        enabled=rate_config.get('enabled', True),
    )


def create_tool_registry(gateway):
    """Registry with every business tool installed"""
    from apps.domain.tools import ToolRegistry, register_business_tools
    return register_business_tools(ToolRegistry(), gateway)


def create_snapshot_loader(gateway):
    from apps.domain.services.snapshot_loader import SnapshotLoader
    return SnapshotLoader(gateway)


# ============================================================
# SERVICE FACTORIES
# ============================================================

def create_assistant(config: Optional[Dict] = None, gateway=None):
    """
    Create fully-wired AssistantOrchestrator with all dependencies

    This is the main entry point for creating the assistant.

    Args:
        config: Optional configuration dict. If None, uses environment config.
        gateway: Optional business gateway (built from config if None)

    Returns:
        AssistantOrchestrator instance (not yet initialized)

    Raises:
        DomainException: If any dependency cannot be created

    Example:
        >>> assistant = create_assistant()
        >>> assistant.initialize(snapshot)
        >>> result = assistant.chat("How many jobs are scheduled?")
    """
    config = config or get_config()

    try:
        validate_config(config)

        from apps.domain.prompts.template import PromptTemplate
        from apps.domain.services.assistant import AssistantOrchestrator
        from apps.domain.services.context_store import ContextStore

        gateway = gateway or create_business_gateway(config['business_api'])
        assistant_config = config.get('assistant', {})

        assistant = AssistantOrchestrator(
            llm=create_llm_provider(config['llm']),
            registry=create_tool_registry(gateway),
            retriever=create_context_retriever(config['retriever']),
            rate_limiter=create_rate_limiter(config.get('environment')),
            prompt_template=PromptTemplate(version=config.get('prompt_version', 'v1.0')),
            store=ContextStore(sample_size=assistant_config.get('summary_sample_size', 10)),
            snapshot_loader=create_snapshot_loader(gateway),
            max_tool_rounds=assistant_config.get('max_tool_rounds', 3),
            history_limit=assistant_config.get('history_limit', 20),
        )

        logger.info(
            f"Created AssistantOrchestrator with "
            f"llm={config['llm']['type']}, "
            f"retriever={config['retriever']['type']}, "
            f"business_api={config['business_api']['type']}"
        )

        return assistant

    except Exception as e:
        logger.error(f"Failed to create assistant: {e}")
        raise DomainException(f"Service initialization failed: {e}")


_assistant = None
_assistant_lock = threading.Lock()


def get_assistant():
    """
    Process-wide assistant, created on first use

    Returns:
        The shared AssistantOrchestrator
    """
    global _assistant
    with _assistant_lock:
        if _assistant is None:
            _assistant = create_assistant()
        return _assistant


def reset_assistant() -> None:
    """Drop the process-wide assistant (tests, config reloads)"""
    global _assistant
    with _assistant_lock:
        _assistant = None


# ============================================================
# VALIDATION
# ============================================================

def validate_config(config: Dict[str, Any]) -> bool:
    """
    Validate configuration structure

    Args:
        config: Configuration dictionary to validate

    Returns:
        True if valid

    Raises:
        ValueError: If configuration is invalid
    """
    required_keys = ['llm', 'retriever', 'business_api']

    for key in required_keys:
        if key not in config:
            raise ValueError(f"Missing required config key: {key}")

    # Validate LLM config
    if 'type' not in config['llm']:
        raise ValueError("LLM config missing 'type' key")

    # Validate retriever config
    if 'type' not in config['retriever']:
        raise ValueError("Retriever config missing 'type' key")

    # Validate business backend config
    if 'type' not in config['business_api']:
        raise ValueError("Business API config missing 'type' key")

    assistant_config = config.get('assistant', {})
    if assistant_config.get('max_tool_rounds', 1) < 1:
        raise ValueError("assistant.max_tool_rounds must be at least 1")
    if assistant_config.get('history_limit', 0) < 0:
        raise ValueError("assistant.history_limit cannot be negative")

    return True


# ============================================================
# HELPER FUNCTIONS
# ============================================================

def get_service_info(config: Optional[Dict] = None) -> Dict[str, Any]:
    """
    Get information about configured services

    Args:
        config: Optional config dict, uses environment config if None

    Returns:
        Dict with service configuration info
    """
    config = config or get_config()
    environment = config.get('environment', 'unknown')
    model = config['llm'].get('model', 'N/A')

    return {
        'environment': environment,
        'llm': {
            'type': config['llm'].get('type'),
            'model': model,
            'pricing': get_model_info(model),
        },
        'retriever': {
            'type': config['retriever'].get('type'),
        },
        'business_api': {
            'type': config['business_api'].get('type'),
            'base_url': config['business_api'].get('base_url', 'N/A'),
        },
        'prompt_version': config.get('prompt_version', 'v1.0'),
        'assistant_rate': get_rate_limit_config(environment).get('assistant_rate'),
    }
