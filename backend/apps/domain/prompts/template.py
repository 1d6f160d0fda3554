# apps/domain/prompts/template.py
"""
Prompt Template Manager

Handles loading and rendering the versioned system instruction.
"""
from pathlib import Path
from typing import Any, Dict, List

from jinja2 import Environment, FileSystemLoader


class PromptTemplate:
    """
    Manages prompt templates using Jinja2

    Templates are versioned and stored in prompts/{version}/ directories.
    """

    SYSTEM_TEMPLATE = "system.j2"
    KNOWLEDGE_TEMPLATE = "knowledge.md"

    def __init__(self, version: str = "v1.0"):
        """
        Initialize prompt template manager

        Args:
            version: Template version to use (e.g., "v1.0")
        """
        self.version = version

        base_dir = Path(__file__).parent
        template_dir = base_dir / version

        if not template_dir.exists():
            raise ValueError(f"Template version {version} not found at {template_dir}")

        self.env = Environment(
            loader=FileSystemLoader(str(template_dir)),
            autoescape=False,  # Don't escape for LLM input
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )

    def domain_knowledge(self) -> str:
        """Static arborist knowledge block bundled with this version"""
        return self.env.get_template(self.KNOWLEDGE_TEMPLATE).render()

    def render_system(self, context_summary: str, tools: List[Dict[str, Any]]) -> str:
        """
        Render the assistant's system instruction

        Args:
            context_summary: JSON digest from ContextStore.summarize()
            tools: Tool declarations available to the model

        Returns:
            Rendered system instruction string
        """
        template = self.env.get_template(self.SYSTEM_TEMPLATE)
        return template.render(
            context_summary=context_summary,
            knowledge=self.domain_knowledge(),
            tools=tools,
        )
