# apps/domain/prompts/__init__.py
"""
Prompt Templates - Versioned Jinja2 Templates

The assistant's system instruction and its static domain knowledge are
treated as code: versioned, tested, and tracked.
Each version is immutable to ensure reproducibility.
"""
