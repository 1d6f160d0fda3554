# apps/domain/tools/__init__.py
"""
Assistant Tools - Declarations, dispatch and the business handlers
"""

from apps.domain.tools.business_tools import register_business_tools
from apps.domain.tools.registry import ToolName, ToolRegistry, ToolSpec

__all__ = ["ToolName", "ToolRegistry", "ToolSpec", "register_business_tools"]
