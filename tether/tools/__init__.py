"""Tool registry and define_tool helper."""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterator, Type

from pydantic import BaseModel, ValidationError

from ..types import Tool, ToolDefinition, ToolResult, ToolSchema
from .schema import DictSchema, ParameterSchema, PropertySchema, PydanticSchema

logger = logging.getLogger(__name__)


def _coerce_result(name: str, result: Any) -> ToolResult:
    if isinstance(result, ToolResult):
        return result
    if result is None:
        return ToolResult.fail("Tool returned no result")
    if isinstance(result, dict):
        return ToolResult.ok(f"{name} completed", result)
    return ToolResult.ok(str(result))


def _describe_validation_error(name: str, err: ValidationError) -> str:
    problems = []
    for e in err.errors():
        loc = ".".join(str(p) for p in e.get("loc", ())) or "input"
        problems.append(f"{loc}: {e.get('msg', 'invalid')}")
    return f"Invalid parameters for {name}: " + "; ".join(problems)


def define_tool(
    name: str,
    description: str,
    parameters: Type[BaseModel] | ToolSchema,
    execute: Callable[..., Any],
) -> ToolDefinition:
    """Build a ToolDefinition from a plain callable.

    With a pydantic model as ``parameters`` the callable receives the validated
    model, and invalid input turns into a descriptive failed ToolResult instead
    of an exception.
    """
    if isinstance(parameters, type) and issubclass(parameters, BaseModel):
        schema: ToolSchema = PydanticSchema(parameters)
    else:
        schema = parameters

    def _run(host_context: Any, params: dict[str, Any]) -> ToolResult:
        if isinstance(schema, PydanticSchema):
            try:
                parsed = schema.validate(params)
            except ValidationError as e:
                return ToolResult.fail(_describe_validation_error(name, e))
            return _coerce_result(name, execute(host_context, parsed))
        return _coerce_result(name, execute(host_context, params or {}))

    return ToolDefinition(name=name, description=description, parameters=schema, execute=_run)


class ToolRegistry:
    """Name -> capability routing. Lookup ignores case, the last registration wins."""

    def __init__(self) -> None:
        self._tools: dict[str, Tool] = {}

    def register(self, tool: Tool) -> None:
        if tool is None or not getattr(tool, "name", None):
            raise ValueError("Tool must have a name")
        key = tool.name.lower()
        if key in self._tools:
            logger.debug("Replacing tool registration: %s", tool.name)
        self._tools[key] = tool

    def register_all(self, *tools: Tool) -> None:
        for tool in tools:
            self.register(tool)

    def get(self, name: str | None) -> Tool | None:
        if not name:
            return None
        return self._tools.get(name.lower())

    lookup = get

    def has(self, name: str | None) -> bool:
        return self.get(name) is not None

    def names(self) -> list[str]:
        return [t.name for t in self._tools.values()]

    def list(self) -> list[Tool]:
        return list(self._tools.values())

    def declarations(self) -> list[dict[str, Any]]:
        return [
            {
                "name": t.name,
                "description": t.description,
                "input_schema": t.parameters.to_json_schema(),
            }
            for t in self._tools.values()
        ]

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.has(name)

    def __iter__(self) -> Iterator[Tool]:
        return iter(self.list())


__all__ = [
    "ToolRegistry", "define_tool",
    "DictSchema", "ParameterSchema", "PropertySchema", "PydanticSchema",
]
