"""AST serialization tests."""

import json

from conftest import strip_spans
from daphnedsl import parse, to_dict


def test_assignment_shape():
    tree = to_dict(parse("x = 1 + y;"))
    assert strip_spans(tree) == {
        "kind": "Script",
        "stmts": [
            {
                "kind": "Assign",
                "targets": ["x"],
                "rhs": {
                    "kind": "BinaryOp",
                    "op": "add",
                    "lhs": {"kind": "IntLiteral", "value": 1},
                    "rhs": {"kind": "Identifier", "name": "y"},
                },
            }
        ],
    }


def test_spans_are_dicts():
    tree = to_dict(parse("x = 1;"))
    assert tree["span"] == {"start": 0, "end": 6, "line": 1, "col": 1}
    rhs = tree["stmts"][0]["rhs"]
    assert rhs["span"] == {"start": 4, "end": 5, "line": 1, "col": 5}


def test_cast_and_index_fields():
    tree = strip_spans(to_dict(parse("Y = as.f64(X[[, 1]]);")))
    cast = tree["stmts"][0]["rhs"]
    assert cast["kind"] == "Cast"
    assert cast["data_type"] is None
    assert cast["value_type"] == "f64"
    assert cast["arg"] == {
        "kind": "IndexFilter",
        "obj": {"kind": "Identifier", "name": "X"},
        "rows": None,
        "cols": {"kind": "IntLiteral", "value": 1},
    }


def test_loops_and_conditionals():
    tree = strip_spans(to_dict(parse("for (i in 1:3) if (i) { } do x; while (y)")))
    loop, post = tree["stmts"]
    assert loop["kind"] == "For"
    assert loop["step"] is None
    assert loop["body"]["kind"] == "If"
    assert loop["body"]["else_stmt"] is None
    assert loop["body"]["then_stmt"] == {"kind": "Block", "stmts": []}
    assert post["kind"] == "While"
    assert post["is_post_condition"] is True


def test_special_floats_are_strict_json():
    tree = to_dict(parse("a = nan; b = -inf; c = inf; d = 0.5;"))
    text = json.dumps(tree, allow_nan=False)
    values = [s["rhs"]["value"] for s in json.loads(text)["stmts"]]
    assert values == ["nan", "-inf", "inf", 0.5]
    specials = [s["rhs"]["special"] for s in tree["stmts"]]
    assert specials == ["nan", "-inf", "inf", "normal"]
