# apps/domain/services/__init__.py
"""
Domain Services - Context store, session lifecycle and the conversation loop
"""
