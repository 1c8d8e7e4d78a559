"""Naming conventions shared by the generator and the TypeScript runtime."""

import re
from typing import List, Optional

# Property names that can not be used as local names of fields on a plain
# JavaScript object. The runtime appends a "$" to them.
_RESERVED_OBJECT_PROPERTIES = ("__proto__", "toString", "oneofKind")

# Words that can not be used as names of module level declarations. Modules
# are strict mode code, so the strict mode reserved words are included.
_RESERVED_WORDS = frozenset(
    """
    arguments await break case catch class const continue debugger default
    delete do else enum eval export extends false finally for function if
    implements import in instanceof interface let new null package private
    protected public return static super switch this throw true try typeof
    var void while with yield
    """.split()
)


def lower_camel_case(snake_case: str) -> str:
    """Convert a proto field name to lowerCamelCase.

    This is the exact transform the runtime applies to compute the default
    ``localName`` and ``jsonName`` of a field. An underscore capitalizes the
    next letter and is dropped, a digit is kept and capitalizes the next letter
    as well.

    >>> lower_camel_case("foo_bar_2baz")
    'fooBar2Baz'
    """
    cap_next = False
    sb: List[str] = []
    for i, c in enumerate(snake_case):
        if c == "_":
            cap_next = True
        elif c.isdigit():
            sb.append(c)
            cap_next = True
        elif cap_next:
            sb.append(c.upper())
            cap_next = False
        elif i == 0:
            sb.append(c.lower())
        else:
            sb.append(c)
    return "".join(sb)


def safe_object_property(name: str) -> str:
    """Escape names that would shadow built-in object properties."""
    if name in _RESERVED_OBJECT_PROPERTIES:
        return name + "$"
    return name


def safe_identifier(name: str) -> str:
    """Escape reserved words, so that `name` can be declared in a module."""
    if name in _RESERVED_WORDS:
        return name + "$"
    return name


def enum_shared_prefix(enum_name: str, value_names: List[str]) -> Optional[str]:
    """Find the prefix all values of an enum share.

    The prefix is derived from the enum name: ``MyEnum`` gives ``MY_ENUM_``.
    It is only returned if the enum has values and all of them start with it.
    Each stripped name must start with a capital letter and have at least two
    characters.

    Arguments
    ---------
    enum_name : str
        Short (not fully qualified) name of the enum.
    value_names : List[str]
        Names of the enum values.

    Returns
    -------
    str or None
        The shared prefix or ``None`` if the values do not share it.
    """
    prefix = re.sub(r"[A-Z]", lambda m: "_" + m.group(0).lower(), enum_name)
    if prefix.startswith("_"):
        prefix = prefix[1:]
    prefix = prefix.upper() + "_"
    if not value_names:
        return None
    if not all(name.startswith(prefix) for name in value_names):
        return None
    stripped = [name[len(prefix) :] for name in value_names]
    if not all(re.match(r"^[A-Z].+", name) for name in stripped):
        return None
    return prefix
