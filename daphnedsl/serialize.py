"""Serialization of AST nodes to JSON-compatible dicts."""

from __future__ import annotations

import math
from dataclasses import fields, is_dataclass
from enum import Enum

from .ast import Node, Span


def to_dict(node: Node) -> dict[str, object]:
    """Convert an AST node (usually a `Script`) to a dict tree.

    Each node becomes {"kind": <node class>, <field>: ...}. Non-finite floats
    are written as strings so the result stays valid strict JSON.
    """
    result = _serialize(node)
    assert isinstance(result, dict)
    return result


def _serialize(obj: object) -> object:
    if obj is None or isinstance(obj, (bool, int, str)):
        return obj
    if isinstance(obj, float):
        if math.isnan(obj):
            return "nan"
        if math.isinf(obj):
            return "inf" if obj > 0 else "-inf"
        return obj
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, tuple):
        return [_serialize(item) for item in obj]
    if isinstance(obj, Span):
        return {"start": obj.start, "end": obj.end, "line": obj.line, "col": obj.col}
    if is_dataclass(obj) and not isinstance(obj, type):
        out: dict[str, object] = {"kind": type(obj).__name__}
        for f in fields(obj):
            out[f.name] = _serialize(getattr(obj, f.name))
        return out
    raise TypeError("cannot serialize " + type(obj).__name__)
