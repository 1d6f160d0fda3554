# apps/domain/tools/registry.py

"""
Tool Registry & Dispatcher

Tools form a closed set (ToolName). Each is declared with a JSON Schema
for its parameters, validated before the handler runs. Dispatch never
raises: unknown names, invalid arguments and handler errors all come
back as a failed ToolResult so the model can adapt.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

import jsonschema

from apps.domain.models import BusinessSnapshot, ToolCall, ToolResult

logger = logging.getLogger(__name__)

ToolHandler = Callable[[Dict[str, Any], BusinessSnapshot], ToolResult]
ArgumentPreparer = Callable[[Dict[str, Any]], Dict[str, Any]]


class ToolName(str, Enum):
    """The tools the assistant may call"""
    UPDATE_JOB_STATUS = "updateJobStatus"
    GET_JOBS_BY_STATUS = "getJobsByStatus"
    GET_OUTSTANDING_INVOICES = "getOutstandingInvoices"
    GET_AVAILABLE_EQUIPMENT = "getAvailableEquipment"
    SCHEDULE_MAINTENANCE = "scheduleMaintenance"
    GET_BUSINESS_METRICS = "getBusinessMetrics"


@dataclass(frozen=True)
class ToolSpec:
    """
    Declaration of a callable tool

    prepare runs before schema validation and is where argument
    normalization lives (e.g. "Completed" -> "completed").
    """
    name: ToolName
    description: str
    parameters: Dict[str, Any]
    handler: ToolHandler
    prepare: Optional[ArgumentPreparer] = field(default=None, compare=False)

    def declaration(self) -> Dict[str, Any]:
        return {
            "name": self.name.value,
            "description": self.description,
            "parameters": self.parameters,
        }


class ToolRegistry:
    """Registry of tools keyed by name"""

    def __init__(self):
        self._tools: Dict[str, ToolSpec] = {}

    def register(self, spec: ToolSpec) -> None:
        """
        Register a tool

        Raises:
            ValueError: If the name is already registered or the
                parameter schema is not a valid JSON Schema
        """
        if spec.name.value in self._tools:
            raise ValueError(f"Tool already registered: {spec.name.value}")

        jsonschema.Draft7Validator.check_schema(spec.parameters)
        self._tools[spec.name.value] = spec

    def get(self, name: str) -> Optional[ToolSpec]:
        return self._tools.get(name)

    def names(self) -> List[str]:
        return list(self._tools)

    def declarations(self) -> List[Dict[str, Any]]:
        """Model-facing declarations of every registered tool"""
        return [spec.declaration() for spec in self._tools.values()]

    def dispatch(self, call: ToolCall, snapshot: BusinessSnapshot) -> ToolResult:
        """
        Execute a tool call against a snapshot

        Args:
            call: The model's tool call
            snapshot: Snapshot the current turn is working with

        Returns:
            ToolResult. Never raises.
        """
        spec = self._tools.get(call.name)
        if spec is None:
            logger.warning(f"Model requested unknown function: {call.name}")
            return ToolResult.failure(f"Unknown function {call.name}")

        logger.info(f"Executing function: {call.name} {call.arguments}")

        try:
            arguments = dict(call.arguments or {})
            if spec.prepare:
                arguments = spec.prepare(arguments)
            jsonschema.validate(arguments, spec.parameters)
        except jsonschema.ValidationError as e:
            logger.warning(f"Invalid arguments for {call.name}: {e.message}")
            return ToolResult.failure(f"Invalid arguments for {call.name}: {e.message}")
        except Exception as e:
            logger.warning(f"Could not prepare arguments for {call.name}: {e}")
            return ToolResult.failure(f"Invalid arguments for {call.name}: {e}")

        try:
            result = spec.handler(arguments, snapshot)
        except Exception as e:
            logger.error(f"Error executing function {call.name}: {e}", exc_info=True)
            return ToolResult.failure(f"Error: {e}")

        if not isinstance(result, ToolResult):
            logger.error(f"Function {call.name} returned {type(result).__name__}, not ToolResult")
            return ToolResult.failure(f"Error: {call.name} returned an invalid result")

        return result
