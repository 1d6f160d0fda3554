# apps/infrastructure/config.py

"""
Configuration Management

Environment-specific configurations for different deployment contexts.
"""

import os
from typing import Any, Dict


def get_environment() -> str:
    """
    Get current environment from environment variable

    Returns:
        Environment name: 'test', 'development', 'staging', or 'production'
    """
    return os.getenv("ENVIRONMENT", "development")


def get_config() -> Dict[str, Any]:
    """
    Get configuration for current environment

    Returns:
        Configuration dictionary for active environment
    """
    env = get_environment()

    configs = {
        "test": TEST_CONFIG,
        "development": DEVELOPMENT_CONFIG,
        "staging": STAGING_CONFIG,
        "production": PRODUCTION_CONFIG,
    }

    config = dict(configs.get(env, DEVELOPMENT_CONFIG))
    config["environment"] = env

    return config


# ============================================================
# TEST CONFIGURATION
# ============================================================

TEST_CONFIG = {
    "llm": {"type": "fake", "response": "Test response from fake LLM"},
    "retriever": {"type": "fake", "context": ""},
    "business_api": {"type": "inmemory"},
    "prompt_version": "v1.0",
    "assistant": {
        "max_tool_rounds": 3,
        "history_limit": 20,
        "summary_sample_size": 10,
    },
}

# ============================================================
# DEVELOPMENT CONFIGURATION
# ============================================================

DEVELOPMENT_CONFIG = {
    "llm": {
        "type": "openrouter",
        "api_key": os.getenv("OPENROUTER_API_KEY", ""),
        "base_url": "https://openrouter.ai/api/v1",
        "model": "gpt-4o-mini",
        "temperature": 0.1,
        "max_tokens": 1000,
        "timeout": 30,
        "max_retries": 1,
    },
    "retriever": {
        "type": "http",
        "base_url": os.getenv("BUSINESS_API_URL", "http://localhost:3001"),
        "max_results": 8,
        "timeout": 5,
    },
    "business_api": {
        "type": "rest",
        "base_url": os.getenv("BUSINESS_API_URL", "http://localhost:3001"),
        "api_token": os.getenv("BUSINESS_API_TOKEN", ""),
        "timeout": 10,
    },
    "prompt_version": "v1.0",
    "assistant": {
        "max_tool_rounds": 3,
        "history_limit": 20,
        "summary_sample_size": 10,
    },
}

# ============================================================
# STAGING CONFIGURATION
# ============================================================

STAGING_CONFIG = {
    "llm": {
        "type": "openrouter",
        "api_key": os.getenv("OPENROUTER_API_KEY"),
        "base_url": "https://openrouter.ai/api/v1",
        "model": "gpt-4o-mini",
        "temperature": 0.1,
        "max_tokens": 1000,
        "timeout": 30,
        "max_retries": 1,
    },
    "retriever": {
        "type": "http",
        "base_url": os.getenv("BUSINESS_API_URL"),
        "max_results": 8,
        "timeout": 5,
    },
    "business_api": {
        "type": "rest",
        "base_url": os.getenv("BUSINESS_API_URL"),
        "api_token": os.getenv("BUSINESS_API_TOKEN", ""),
        "timeout": 10,
    },
    "prompt_version": "v1.0",
    "assistant": {
        "max_tool_rounds": 3,
        "history_limit": 20,
        "summary_sample_size": 10,
    },
}

# ============================================================
# PRODUCTION CONFIGURATION
# ============================================================

PRODUCTION_CONFIG = {
    "llm": {
        "type": "openrouter",
        "api_key": os.getenv("OPENROUTER_API_KEY"),
        "base_url": "https://openrouter.ai/api/v1",
        "model": "gpt-4o-mini",
        "temperature": 0.1,
        "max_tokens": 1000,
        "timeout": 30,
        "max_retries": 1,
    },
    "retriever": {
        "type": "http",
        "base_url": os.getenv("BUSINESS_API_URL"),
        "max_results": 8,
        "timeout": 5,
    },
    "business_api": {
        "type": "rest",
        "base_url": os.getenv("BUSINESS_API_URL"),
        "api_token": os.getenv("BUSINESS_API_TOKEN", ""),
        "timeout": 10,
    },
    "prompt_version": "v1.0",
    "assistant": {
        "max_tool_rounds": 3,
        "history_limit": 20,
        "summary_sample_size": 10,
    },
}

