# apps/infrastructure/rate_limit.py
"""
Rate Limiting Configuration

Assistant request budgets per environment. The rates are applied by
the cache-backed throttle in apps.adapters.throttling.
"""
from typing import Dict

# Rate limit configurations by environment
RATE_LIMIT_CONFIGS = {
    "test": {
        "enabled": True,
        "assistant_rate": "15/min",
    },
    "development": {
        "enabled": True,
        "assistant_rate": "15/min",
    },
    "staging": {
        "enabled": True,
        "assistant_rate": "15/min",
    },
    "production": {
        "enabled": True,
        "assistant_rate": "15/min",  # Model calls
    },
}


def get_rate_limit_config(environment: str) -> Dict:
    """
    Get rate limit configuration for environment

    Args:
        environment: Environment name (test, development, staging, production)

    Returns:
        Configuration dictionary
    """
    return RATE_LIMIT_CONFIGS.get(environment, RATE_LIMIT_CONFIGS["development"])

