import math

import pytest

from protots.literal import (
    ArrayLiteral,
    ArrowFunction,
    Identifier,
    NumericLiteral,
    ObjectLiteral,
    StringLiteral,
    literal_from_value,
)


def test_numeric_literal_with_comment():
    assert NumericLiteral(2, comment="RepeatType.UNPACKED").print() == "2 /*RepeatType.UNPACKED*/"


def test_numbers():
    assert literal_from_value(-3).print() == "-3"
    assert literal_from_value(1.5).print() == "1.5"
    assert literal_from_value(2.0).print() == "2"
    assert literal_from_value(1e-7).print() == "1e-7"
    assert literal_from_value(math.nan).print() == "NaN"
    assert literal_from_value(-math.inf).print() == "-Infinity"


def test_values():
    assert literal_from_value(None).print() == "null"
    assert literal_from_value(True).print() == "true"
    assert literal_from_value('say "hi"').print() == '"say \\"hi\\""'
    assert literal_from_value([1, "a"]).print() == '[1, "a"]'
    assert literal_from_value({}).print() == "{}"
    assert (
        literal_from_value({"acme.rules": {"min": 1}, "plain": [False]}).print()
        == '{ "acme.rules": { min: 1 }, plain: [false] }'
    )


def test_unsupported_value():
    with pytest.raises(TypeError):
        literal_from_value(b"bytes")
    with pytest.raises(TypeError):
        literal_from_value({"nested": object()})


def test_arrow_function():
    fn = ArrowFunction(ArrayLiteral([StringLiteral("acme.Mood"), Identifier("Mood")]))
    assert fn.print() == '() => ["acme.Mood", Mood]'


def test_multi_line_array():
    array = ArrayLiteral(
        [
            ObjectLiteral([("no", NumericLiteral(1))]),
            ObjectLiteral([("no", NumericLiteral(2))]),
        ],
        multi_line=True,
    )
    assert array.print() == "[\n    { no: 1 },\n    { no: 2 }\n]"
    assert array.print("    ") == "[\n        { no: 1 },\n        { no: 2 }\n    ]"
    assert ArrayLiteral([], multi_line=True).print() == "[]"


def test_object_literal_lookup():
    obj = ObjectLiteral([("no", NumericLiteral(1)), ("name", StringLiteral("a"))])
    assert obj.keys() == ["no", "name"]
    assert obj.get("name").print() == '"a"'
    assert obj.get("missing") is None
