"""Tool plugin system for the reasoning loop."""

from __future__ import annotations

import functools
import logging
from dataclasses import dataclass
from typing import Any, Callable

from pydantic import BaseModel, ValidationError

from codegen_agent.models.agent_schemas import ToolResult

logger = logging.getLogger(__name__)


class DuplicateToolError(Exception):
    """Raised when a tool name is registered twice."""


def _validation_message(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        loc = ".".join(str(p) for p in item["loc"]) or "input"
        parts.append(f"{loc}: {item['msg']}")
    return "; ".join(parts)


def validated(input_model: type[BaseModel]):
    """Validate raw tool input before calling the wrapped function.

    Invalid input becomes a failed ToolResult instead of an exception.
    """

    def wrap(fn: Callable[[Any], ToolResult]) -> Callable[[Any], ToolResult]:
        @functools.wraps(fn)
        def execute(args: Any) -> ToolResult:
            try:
                params = input_model.model_validate(args)
            except ValidationError as e:
                return ToolResult.fail(f"invalid input: {_validation_message(e)}")
            return fn(params)

        return execute

    return wrap


@dataclass(frozen=True)
class Tool:
    name: str
    description: str
    parameters: dict[str, Any]
    execute: Callable[[Any], ToolResult]
    input_model: type[BaseModel] | None = None

    def validate(self, args: Any) -> BaseModel:
        """Check ``args`` against the tool's input model.

        Raises pydantic.ValidationError (or TypeError when the tool has no
        input model).
        """
        if self.input_model is None:
            raise TypeError(f"tool '{self.name}' does not declare an input model")
        return self.input_model.model_validate(args)

    def render(self) -> str:
        try:
            shape = render_schema(self.parameters)
        except Exception as e:
            logger.warning("Cannot render parameters of tool '%s': %s", self.name, e)
            shape = "{}"
        return f"{self.name}: {self.description}\nparameters: {shape}"


def _field_type(spec: dict[str, Any], depth: int) -> str:
    if "enum" in spec:
        values = ", ".join(f'"{v}"' for v in spec["enum"])
        return f"enum [{values}]" if values else "enum"

    kind = spec.get("type", "unknown")
    if kind == "object":
        if spec.get("properties"):
            return f"object {render_schema(spec, depth + 1)}"
        return "object"
    if kind == "array":
        items = spec.get("items")
        if isinstance(items, dict) and items:
            return f"array of {_field_type(items, depth)}"
        return "array"
    if isinstance(kind, list):
        return " | ".join(str(k) for k in kind)
    return str(kind)


def render_schema(schema: dict[str, Any], depth: int = 0) -> str:
    """Render a JSON-schema-shaped parameter dict as an indented field list."""
    properties = schema.get("properties") if isinstance(schema, dict) else None
    if not isinstance(properties, dict) or not properties:
        return "{}"

    indent = "  " * depth
    required = set(schema.get("required", []))
    fields: list[str] = []
    for key, spec in properties.items():
        flag = "required" if key in required else "optional"
        type_str = _field_type(spec, depth)
        description = spec.get("description", "")
        desc_str = f" - {description}" if description else ""
        fields.append(f'{indent}  "{key}" ({flag}): {type_str}{desc_str}')
    return "{\n" + ",\n".join(fields) + f"\n{indent}}}"


class ToolRegistry:
    def __init__(self) -> None:
        self._tools: dict[str, Tool] = {}

    def register(self, tool: Tool) -> None:
        if tool.name in self._tools:
            raise DuplicateToolError(f"Tool with name '{tool.name}' already registered")
        self._tools[tool.name] = tool

    def register_many(self, tools: list[Tool]) -> None:
        for tool in tools:
            self.register(tool)

    def get(self, name: str) -> Tool | None:
        return self._tools.get(name)

    def list_all(self) -> list[Tool]:
        return list(self._tools.values())

    def names(self) -> list[str]:
        return list(self._tools)

    def describe(self) -> str:
        return "\n\n".join(tool.render() for tool in self._tools.values())
