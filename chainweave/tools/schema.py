"""JSON schema generation for tool arguments."""

from __future__ import annotations

import inspect
import types
import typing
from typing import Any, Callable, get_args, get_origin

from pydantic import BaseModel

_JSON_TYPES: dict[Any, str] = {
    str: "string",
    int: "integer",
    float: "number",
    bool: "boolean",
}

_ARG_SECTIONS = ("Args:", "Arguments:", "Parameters:")


def json_type(annotation: Any) -> dict[str, Any]:
    """Convert a Python annotation to a JSON schema fragment."""
    if annotation is inspect.Parameter.empty or annotation is Any:
        return {"type": "string"}
    if annotation is type(None):
        return {"type": "null"}

    origin = get_origin(annotation)
    args = get_args(annotation)

    # Optional[T] and T | None collapse to T
    if origin is typing.Union or origin is types.UnionType:
        non_none = [a for a in args if a is not type(None)]
        if len(non_none) == 1:
            return json_type(non_none[0])
        return {"anyOf": [json_type(a) for a in non_none]}

    if origin in (list, tuple, set, frozenset) or annotation in (list, tuple, set):
        schema: dict[str, Any] = {"type": "array"}
        if args and args[0] is not Ellipsis:
            schema["items"] = json_type(args[0])
        return schema

    if origin is dict or annotation is dict:
        return {"type": "object"}

    if isinstance(annotation, type) and issubclass(annotation, BaseModel):
        return annotation.model_json_schema()

    return {"type": _JSON_TYPES.get(annotation, "string")}


def docstring_summary(doc: str) -> str:
    """Return the first paragraph of a docstring as one line."""
    summary: list[str] = []
    for line in doc.strip().splitlines():
        stripped = line.strip()
        if not stripped or stripped in _ARG_SECTIONS:
            break
        summary.append(stripped)
    return " ".join(summary)


def docstring_params(doc: str) -> dict[str, str]:
    """Map parameter names to descriptions from a Google-style Args section."""
    params: dict[str, str] = {}
    section_indent: int | None = None
    current: str | None = None
    for line in doc.splitlines():
        stripped = line.strip()
        indent = len(line) - len(line.lstrip())
        if section_indent is None:
            if stripped in _ARG_SECTIONS:
                section_indent = indent
            continue
        if not stripped:
            continue
        # Anything dedented back to the header level ends the Args block
        if indent <= section_indent:
            break
        head, sep, tail = stripped.partition(":")
        name = head.split("(")[0].strip()
        if sep and name.isidentifier():
            current = name
            params[name] = tail.strip()
        elif current:
            params[current] = f"{params[current]} {stripped}".strip()
    return params


def function_parameters(fn: Callable) -> dict[str, Any]:
    """Build an object schema from ``fn``'s signature and docstring."""
    sig = inspect.signature(fn)
    try:
        hints = typing.get_type_hints(fn)
    except (NameError, TypeError):
        hints = {}
    descriptions = docstring_params(inspect.getdoc(fn) or "")

    properties: dict[str, Any] = {}
    required: list[str] = []
    for name, param in sig.parameters.items():
        if name in ("self", "cls") or param.kind in (
            inspect.Parameter.VAR_POSITIONAL,
            inspect.Parameter.VAR_KEYWORD,
        ):
            continue
        prop = json_type(hints.get(name, param.annotation))
        if name in descriptions:
            prop["description"] = descriptions[name]
        properties[name] = prop
        if param.default is inspect.Parameter.empty:
            required.append(name)

    return {"type": "object", "properties": properties, "required": required}


def model_parameters(model: type[BaseModel]) -> dict[str, Any]:
    return model.model_json_schema()
