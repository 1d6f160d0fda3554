# apps/domain/__init__.py
"""
Domain Layer - Pure Python Assistant Logic

This package contains the business-assistant orchestrator: the snapshot
context store, tool dispatch, retrieval augmentation, throttling, session
management and the conversation loop.
It has ZERO dependencies on Django, databases, or external services.

Key principles:
- Pure Python (no framework imports)
- Fully unit testable with fake adapters
- Independent of delivery mechanism (HTTP, CLI)
"""

__version__ = "1.0.0"
