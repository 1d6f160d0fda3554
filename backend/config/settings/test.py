# config/settings/test.py
"""
Test environment settings.

This file is used exclusively for running tests.
"""

import os

# Force test environment before anything reads it
os.environ["ENVIRONMENT"] = "test"

from .base import *  # noqa: E402,F401,F403

ENVIRONMENT = "test"

# Load .env.test explicitly
from dotenv import load_dotenv  # noqa: E402

env_test_path = BASE_DIR / ".env.test"
if env_test_path.exists():
    load_dotenv(env_test_path, override=False)

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

# Keep test output quiet; no log files written
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "handlers": {
        "console": {"class": "logging.StreamHandler", "level": "WARNING"},
    },
    "root": {"handlers": ["console"], "level": "WARNING"},
}

CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
        "LOCATION": "assistant-tests",
    }
}
