# apps/adapters/__init__.py
"""
Adapters - Infrastructure Implementations

Adapters implement port interfaces defined in the domain layer.
They handle the external services: the model API, the business backend
and its context endpoint.
"""

__version__ = "1.0.0"