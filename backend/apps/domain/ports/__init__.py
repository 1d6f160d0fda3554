# apps/domain/ports/__init__.py
"""
Ports - Interface Definitions (Dependency Inversion)

Ports define contracts between the assistant domain and the outside world:
the language model, the retrieval service and the business backend.
Adapters in apps.adapters implement them.
"""
