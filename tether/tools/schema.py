"""Tool schema — parameter declarations for the provider's tool-use feature."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel


_NAMED_SCHEMAS = ("properties", "$defs", "definitions")


def _strip_titles(node: Any) -> Any:
    """Drop pydantic's ``title`` annotations; keys of a properties map are parameter names."""
    if isinstance(node, dict):
        out: dict[str, Any] = {}
        for k, v in node.items():
            if k == "title":
                continue
            if k in _NAMED_SCHEMAS and isinstance(v, dict):
                out[k] = {name: _strip_titles(sub) for name, sub in v.items()}
            else:
                out[k] = _strip_titles(v)
        return out
    if isinstance(node, list):
        return [_strip_titles(v) for v in node]
    return node


@dataclass
class PropertySchema:
    type: str
    description: str = ""
    enum: list[str] | None = None
    default: Any = None
    items: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"type": self.type, "description": self.description}
        if self.enum:
            d["enum"] = list(self.enum)
        if self.items is not None:
            d["items"] = self.items
        if self.default is not None:
            d["default"] = self.default
        return d


@dataclass
class ParameterSchema:
    """Explicit ``{type, properties, required}`` declaration."""

    properties: dict[str, PropertySchema] = field(default_factory=dict)
    required: list[str] = field(default_factory=list)
    type: str = "object"

    def add(
        self,
        name: str,
        type: str,
        description: str = "",
        *,
        required: bool = False,
        enum: list[str] | None = None,
        default: Any = None,
        items: dict[str, Any] | None = None,
    ) -> ParameterSchema:
        self.properties[name] = PropertySchema(
            type=type, description=description, enum=enum, default=default, items=items,
        )
        if required and name not in self.required:
            self.required.append(name)
        return self

    def to_json_schema(self) -> dict:
        return {
            "type": self.type,
            "properties": {k: v.to_dict() for k, v in self.properties.items()},
            "required": list(self.required),
        }


class PydanticSchema:
    """ToolSchema implementation backed by a Pydantic model."""

    def __init__(self, model: type[BaseModel]) -> None:
        self._model = model

    @property
    def model(self) -> type[BaseModel]:
        return self._model

    def validate(self, raw: Any) -> BaseModel:
        if isinstance(raw, str):
            return self._model.model_validate_json(raw)
        return self._model.model_validate(raw or {})

    def to_json_schema(self) -> dict:
        schema = _strip_titles(self._model.model_json_schema())
        schema.setdefault("type", "object")
        schema.setdefault("properties", {})
        schema.setdefault("required", [])
        return schema


class DictSchema:
    """ToolSchema backed by a raw JSON Schema dict."""

    def __init__(self, schema: dict[str, Any]) -> None:
        self._schema = schema

    def to_json_schema(self) -> dict:
        return self._schema
