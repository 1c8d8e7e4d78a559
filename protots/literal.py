"""TypeScript expressions.

A small set of expression nodes, enough to write field info literals, and a
printer for them. Printing follows the layout of the TypeScript printer:
single line object literals are padded with spaces (``{ no: 1 }``), multi
line array literals put every element on its own line, indented by four
spaces.
"""

import json
import math
import re
from typing import Any, List, Optional, Sequence, Tuple

_IDENTIFIER = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")
_INDENT = "    "


class Expression:
    """Base class of all expressions."""

    def print(self, indent: str = "") -> str:
        """Print the expression.

        Arguments
        ---------
        indent : str
            Indentation of the line the expression starts on. Used for
            expressions spanning multiple lines.
        """
        raise NotImplementedError

    def __str__(self) -> str:
        return self.print()


class Identifier(Expression):
    def __init__(self, name: str):
        self.name = name

    def print(self, indent: str = "") -> str:
        return self.name


class NumericLiteral(Expression):
    """A number, optionally followed by a block comment.

    >>> NumericLiteral(2, comment="RepeatType.UNPACKED").print()
    '2 /*RepeatType.UNPACKED*/'
    """

    def __init__(self, value: float, comment: Optional[str] = None):
        self.value = value
        self.comment = comment

    def print(self, indent: str = "") -> str:
        text = _format_number(self.value)
        if self.comment is not None:
            text += " /*" + self.comment.replace("*/", "*\\/") + "*/"
        return text


class StringLiteral(Expression):
    def __init__(self, value: str):
        self.value = value

    def print(self, indent: str = "") -> str:
        return json.dumps(self.value)


class BooleanLiteral(Expression):
    def __init__(self, value: bool):
        self.value = value

    def print(self, indent: str = "") -> str:
        return "true" if self.value else "false"


class PropertyAccess(Expression):
    """``expression.name``"""

    def __init__(self, expression: Expression, name: str):
        self.expression = expression
        self.name = name

    def print(self, indent: str = "") -> str:
        return self.expression.print(indent) + "." + self.name


class ArrowFunction(Expression):
    """A function without parameters, returning `body`.

    The body is evaluated each time the function is called, not when the
    function is created.
    """

    def __init__(self, body: Expression):
        self.body = body

    def print(self, indent: str = "") -> str:
        return "() => " + self.body.print(indent)


class ArrayLiteral(Expression):
    def __init__(self, elements: Sequence[Expression], multi_line: bool = False):
        self.elements = list(elements)
        self.multi_line = multi_line

    def print(self, indent: str = "") -> str:
        if not self.elements:
            return "[]"
        if not self.multi_line:
            return "[" + ", ".join(e.print(indent) for e in self.elements) + "]"
        inner = indent + _INDENT
        lines = [inner + e.print(inner) for e in self.elements]
        return "[\n" + ",\n".join(lines) + "\n" + indent + "]"


class ObjectLiteral(Expression):
    """An object literal. Properties are printed in the given order."""

    def __init__(
        self, properties: Sequence[Tuple[str, Expression]], multi_line: bool = False
    ):
        self.properties = list(properties)
        self.multi_line = multi_line

    def keys(self) -> List[str]:
        return [key for key, _ in self.properties]

    def get(self, key: str) -> Optional[Expression]:
        for k, value in self.properties:
            if k == key:
                return value
        return None

    def print(self, indent: str = "") -> str:
        if not self.properties:
            return "{}"
        if not self.multi_line:
            props = [
                _property_name(k) + ": " + v.print(indent) for k, v in self.properties
            ]
            return "{ " + ", ".join(props) + " }"
        inner = indent + _INDENT
        lines = [
            inner + _property_name(k) + ": " + v.print(inner)
            for k, v in self.properties
        ]
        return "{\n" + ",\n".join(lines) + "\n" + indent + "}"


def _property_name(key: str) -> str:
    if _IDENTIFIER.match(key):
        return key
    return json.dumps(key)


def _format_number(value: float) -> str:
    if isinstance(value, int):
        return str(int(value))
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value.is_integer() and abs(value) < 1e21:
        return str(int(value))
    # Python writes 1e-07 where JavaScript writes 1e-7.
    return re.sub(r"e([+-])0*(\d)", r"e\1\2", repr(value))


def literal_from_value(value: Any) -> Expression:
    """Create a literal expression for a JSON compatible value.

    ``None`` becomes ``null``, lists and tuples become array literals and
    dicts become object literals with their keys in iteration order.

    Raises
    ------
    TypeError
        If the value (or a nested value) has no literal representation.
    """
    if value is None:
        return Identifier("null")
    if isinstance(value, bool):
        return BooleanLiteral(value)
    if isinstance(value, (int, float)):
        return NumericLiteral(value)
    if isinstance(value, str):
        return StringLiteral(value)
    if isinstance(value, (list, tuple)):
        return ArrayLiteral([literal_from_value(v) for v in value])
    if isinstance(value, dict):
        return ObjectLiteral([(str(k), literal_from_value(v)) for k, v in value.items()])
    raise TypeError(f"can not create a literal from a value of type {type(value).__name__}")
