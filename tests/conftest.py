"""Pytest configuration for the DaphneDSL front-end test suite."""

import sys
from pathlib import Path

import pytest

# Add the repository root to the path for daphnedsl imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from daphnedsl import parse  # noqa: E402


def strip_spans(obj: object) -> object:
    """Drop every "span" key from a to_dict() tree."""
    if isinstance(obj, dict):
        return {k: strip_spans(v) for k, v in obj.items() if k != "span"}
    if isinstance(obj, list):
        return [strip_spans(item) for item in obj]
    return obj


@pytest.fixture
def parse_expr():
    """Parse a single expression statement and return its expression."""

    def _parse_expr(source: str):
        script = parse(source + ";")
        assert len(script.stmts) == 1
        return script.stmts[0].expr

    return _parse_expr
