"""Field information as read by the TypeScript runtime.

A :class:`FieldInfo` describes one field of a message the way
``@protobuf-ts/runtime`` describes it in its reflection API: wire number,
names, repetition, optionality and a kind specific part. The runtime reads a
*partial* field info and normalizes it, filling in every attribute that equals
its default. :func:`denormalize_field_info` is the inverse of that step and
:func:`normalize_field_info` replicates it.

Attributes that are absent are ``None``.
"""

import dataclasses
import enum
from typing import Any, Mapping, Optional, Union

from protots._case import lower_camel_case


class RepeatType(enum.IntEnum):
    """Whether a field is repeated, and how it is encoded on the wire."""

    NO = 0
    PACKED = 1
    UNPACKED = 2


class ScalarType(enum.IntEnum):
    """Scalar value types.

    The numbers are the ones of ``FieldDescriptorProto.Type``. Groups,
    messages and enums are not scalars and have no member.
    """

    DOUBLE = 1
    FLOAT = 2
    INT64 = 3
    UINT64 = 4
    INT32 = 5
    FIXED64 = 6
    FIXED32 = 7
    BOOL = 8
    STRING = 9
    BYTES = 12
    UINT32 = 13
    SFIXED32 = 15
    SFIXED64 = 16
    SINT32 = 17
    SINT64 = 18


class LongType(enum.IntEnum):
    """JavaScript representation of 64 bit integral values.

    If a field info has no long type, the runtime uses ``STRING``.
    """

    BIGINT = 0
    STRING = 1
    NUMBER = 2


@dataclasses.dataclass(frozen=True)
class ScalarKind:
    """A scalar value, with the JavaScript type of 64 bit integers if any."""

    type: ScalarType
    long_type: Optional[LongType] = None

    kind = "scalar"


@dataclasses.dataclass(frozen=True)
class EnumKind:
    """A reference to an enum, by its fully qualified proto name."""

    type_name: str
    shared_prefix: Optional[str] = None

    kind = "enum"


@dataclasses.dataclass(frozen=True)
class MessageKind:
    """A reference to a message, by its fully qualified proto name."""

    type_name: str

    kind = "message"


MapValueKind = Union[ScalarKind, EnumKind, MessageKind]


@dataclasses.dataclass(frozen=True)
class MapKind:
    """A map field. Keys are always scalars, values are never maps."""

    key: ScalarType
    value: MapValueKind

    kind = "map"

    def __post_init__(self):
        if isinstance(self.value, MapKind):
            raise TypeError("the value of a map field can not be a map")


FieldKind = Union[ScalarKind, EnumKind, MessageKind, MapKind]


@dataclasses.dataclass(frozen=True)
class FieldInfo:
    """Information about a message field.

    Attributes
    ----------
    no : int
        The field number of the .proto field.
    name : str
        The original name of the .proto field.
    kind : FieldKind
        Scalar, enum, message or map specific information.
    local_name : str or None
        The name of the field in the runtime. Defaults to
        ``lower_camel_case(name)``.
    json_name : str or None
        The name of the field in JSON. Defaults to ``lower_camel_case(name)``.
    oneof : str or None
        The name of the oneof group, if this field belongs to one.
    repeat : RepeatType or None
        Defaults to ``RepeatType.NO``.
    opt : bool or None
        Whether the field is optional. Defaults to ``False``, except for
        message fields that are neither repeated nor part of a oneof.
    options : Mapping[str, Any] or None
        Custom options, by fully qualified option name. Values are JSON
        compatible.
    """

    no: int
    name: str
    kind: FieldKind
    local_name: Optional[str] = None
    json_name: Optional[str] = None
    oneof: Optional[str] = None
    repeat: Optional[RepeatType] = None
    opt: Optional[bool] = None
    options: Optional[Mapping[str, Any]] = None


def denormalize_field_info(info: FieldInfo) -> FieldInfo:
    """Turn a normalized field info into the minimized form.

    Every attribute that the runtime would restore to the same value is
    removed. Applying :func:`normalize_field_info` to the result gives back
    `info`.
    """
    changes = {}
    default_name = lower_camel_case(info.name)
    if info.json_name == default_name:
        changes["json_name"] = None
    if info.local_name == default_name:
        changes["local_name"] = None
    if info.repeat == RepeatType.NO:
        changes["repeat"] = None
    if info.opt is False:
        changes["opt"] = None
    elif info.opt is True and info.kind.kind == "message":
        changes["opt"] = None
    if not changes:
        return info
    return dataclasses.replace(info, **changes)


def normalize_field_info(info: FieldInfo) -> FieldInfo:
    """Fill in every absent attribute with its default, like the runtime does."""
    default_name = lower_camel_case(info.name)
    repeat = info.repeat if info.repeat is not None else RepeatType.NO
    opt = info.opt
    if opt is None:
        if repeat != RepeatType.NO or info.oneof is not None:
            opt = False
        else:
            opt = info.kind.kind == "message"
    return dataclasses.replace(
        info,
        local_name=info.local_name if info.local_name is not None else default_name,
        json_name=info.json_name if info.json_name is not None else default_name,
        repeat=repeat,
        opt=opt,
    )
