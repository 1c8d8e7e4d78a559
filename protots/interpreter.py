"""Turns resolved proto fields into normalized :class:`FieldInfo`."""

import logging
from typing import Any, Dict, List, Optional

import google.protobuf.descriptor_pb2
import google.protobuf.descriptor_pool
import google.protobuf.json_format
import google.protobuf.message_factory

import protots
from protots._case import lower_camel_case, safe_object_property
from protots.fieldinfo import (
    EnumKind,
    FieldInfo,
    FieldKind,
    LongType,
    MapKind,
    MapValueKind,
    MessageKind,
    RepeatType,
    ScalarKind,
    ScalarType,
)

_LOG = logging.getLogger(__name__)

_LONG_TYPES = (
    ScalarType.INT64,
    ScalarType.UINT64,
    ScalarType.FIXED64,
    ScalarType.SFIXED64,
    ScalarType.SINT64,
)

# Kinds that are never written packed.
_UNPACKABLE = (
    protots.Kind.STRING,
    protots.Kind.BYTES,
    protots.Kind.MESSAGE,
    protots.Kind.GROUP,
)

_FieldOptions = google.protobuf.descriptor_pb2.FieldOptions


class Interpreter:
    """Builds field infos for the fields of resolved messages.

    Arguments
    ---------
    registry : protots.Registry, optional
        Registry holding every file of the request.
    descriptor_pool : google.protobuf.descriptor_pool.DescriptorPool, optional
        Pool holding the same files as `registry`. Custom field options are
        only read if both are given and the pool knows
        ``google/protobuf/descriptor.proto``.
    normal_long_type : LongType, optional
        Long type of 64 bit integral fields that do not set the ``jstype``
        option. Defaults to ``LongType.BIGINT``.
    """

    def __init__(
        self,
        registry: Optional[protots.Registry] = None,
        descriptor_pool: Optional[google.protobuf.descriptor_pool.DescriptorPool] = None,
        normal_long_type: LongType = LongType.BIGINT,
    ):
        self._pool = descriptor_pool
        self._normal_long_type = normal_long_type
        self._field_options_cls = None
        if registry is not None and descriptor_pool is not None:
            self._field_options_cls = _options_class(
                descriptor_pool, [f.proto.name for f in registry.all_files()]
            )

    def field_infos(self, message: protots.Message) -> List[FieldInfo]:
        """Return the field infos of a message, in declaration order."""
        return [self.field_info(field) for field in message.fields]

    def field_info(self, field: protots.Field) -> FieldInfo:
        """Return the normalized field info of a field.

        Raises
        ------
        protots.InvalidDescriptorError
            For group fields, which are not supported.
        """
        oneof = field.real_oneof()
        repeat = self._repeat_type(field)
        return FieldInfo(
            no=field.proto.number,
            name=field.proto.name,
            kind=self._kind(field),
            local_name=safe_object_property(lower_camel_case(field.proto.name)),
            json_name=(
                field.proto.json_name
                if field.proto.HasField("json_name")
                else lower_camel_case(field.proto.name)
            ),
            oneof=None if oneof is None else lower_camel_case(oneof.proto.name),
            repeat=repeat,
            opt=self._opt(field, repeat),
            options=self.field_options(field),
        )

    def _kind(self, field: protots.Field) -> FieldKind:
        if field.kind == protots.Kind.GROUP:
            raise protots.InvalidDescriptorError(
                full_name=field.full_name, msg="group fields are not supported"
            )
        if field.is_map():
            key = field.map_key()
            return MapKind(
                key=ScalarType(key.proto.type),
                value=self._value_kind(field.map_value()),
            )
        return self._value_kind(field)

    def _value_kind(self, field: protots.Field) -> MapValueKind:
        if field.kind == protots.Kind.MESSAGE:
            return MessageKind(type_name=field.message.full_name)
        if field.kind == protots.Kind.ENUM:
            return EnumKind(
                type_name=field.enum.full_name,
                shared_prefix=field.enum.shared_prefix,
            )
        scalar_type = ScalarType(field.proto.type)
        return ScalarKind(type=scalar_type, long_type=self._long_type(field, scalar_type))

    def _long_type(self, field: protots.Field, scalar_type: ScalarType) -> Optional[LongType]:
        if scalar_type not in _LONG_TYPES:
            return None
        options = field.proto.options
        if options.HasField("jstype"):
            if options.jstype == _FieldOptions.JS_STRING:
                return None  # no long type means STRING
            if options.jstype == _FieldOptions.JS_NUMBER:
                return LongType.NUMBER
        if self._normal_long_type == LongType.STRING:
            return None
        return self._normal_long_type

    @staticmethod
    def _repeat_type(field: protots.Field) -> RepeatType:
        if not field.is_list():
            return RepeatType.NO
        if field.kind in _UNPACKABLE:
            return RepeatType.UNPACKED
        if field.proto.options.HasField("packed"):
            return RepeatType.PACKED if field.proto.options.packed else RepeatType.UNPACKED
        if field.parent_file.syntax == "proto2":
            return RepeatType.UNPACKED
        return RepeatType.PACKED

    @staticmethod
    def _opt(field: protots.Field, repeat: RepeatType) -> bool:
        if repeat != RepeatType.NO or field.is_map():
            return False
        if field.real_oneof() is not None:
            return False
        if field.kind == protots.Kind.MESSAGE:
            return True
        if field.proto.proto3_optional:
            return True
        return (
            field.parent_file.syntax == "proto2"
            and field.cardinality == protots.Cardinality.OPTIONAL
        )

    def field_options(self, field: protots.Field) -> Optional[Dict[str, Any]]:
        """Read the custom options of a field.

        Returns
        -------
        Dict[str, Any] or None
            JSON values of the options set on the field, by fully qualified
            extension name. ``None`` if there are none.
        """
        if self._field_options_cls is None or not field.proto.HasField("options"):
            return None
        options = self._field_options_cls.FromString(
            field.proto.options.SerializeToString()
        )
        data = google.protobuf.json_format.MessageToDict(
            options, descriptor_pool=self._pool
        )
        # Extensions are written as "[full.name]".
        custom = {
            key[1:-1]: value
            for key, value in data.items()
            if key.startswith("[") and key.endswith("]")
        }
        if not custom:
            return None
        _LOG.debug("%s: custom options %s", field.full_name, sorted(custom))
        return custom


def _options_class(
    pool: google.protobuf.descriptor_pool.DescriptorPool, file_names: List[str]
):
    """Return the FieldOptions class of `pool`, with all its extensions known."""
    try:
        pool.FindMessageTypeByName("google.protobuf.FieldOptions")
    except KeyError:
        return None
    # Extensions are registered on the classes of the files declaring them.
    classes = google.protobuf.message_factory.GetMessageClassesForFiles(
        file_names, pool
    )
    return classes["google.protobuf.FieldOptions"]
