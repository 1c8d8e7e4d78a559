import pytest
from google.protobuf import descriptor_pb2, descriptor_pool
from google.protobuf.descriptor_pb2 import (
    DescriptorProto,
    EnumDescriptorProto,
    EnumValueDescriptorProto,
    FieldDescriptorProto,
    FieldOptions,
    FileDescriptorProto,
    MessageOptions,
    OneofDescriptorProto,
)

import protots
from protots.fieldinfo import (
    EnumKind,
    FieldInfo,
    LongType,
    MapKind,
    MessageKind,
    RepeatType,
    ScalarKind,
    ScalarType,
)
from protots.interpreter import Interpreter

F = FieldDescriptorProto

OPTIONAL = F.LABEL_OPTIONAL
REPEATED = F.LABEL_REPEATED
REQUIRED = F.LABEL_REQUIRED


def _zoo_proto():
    return FileDescriptorProto(
        name="acme/zoo.proto",
        package="acme",
        syntax="proto3",
        message_type=[
            DescriptorProto(
                name="Animal",
                field=[
                    F(name="name", number=1, label=OPTIONAL, type=F.TYPE_STRING, json_name="name"),
                    F(name="scores", number=2, label=REPEATED, type=F.TYPE_INT32),
                    F(name="tags", number=3, label=REPEATED, type=F.TYPE_STRING),
                    F(name="parent", number=4, label=OPTIONAL, type=F.TYPE_MESSAGE, type_name=".acme.Animal"),
                    F(name="mood", number=5, label=OPTIONAL, type=F.TYPE_ENUM, type_name=".acme.Mood", oneof_index=0),
                    F(name="twin", number=6, label=OPTIONAL, type=F.TYPE_MESSAGE, type_name=".acme.Animal", oneof_index=0),
                    F(name="weight", number=7, label=OPTIONAL, type=F.TYPE_INT64, oneof_index=1, proto3_optional=True),
                    F(name="totals", number=8, label=REPEATED, type=F.TYPE_MESSAGE, type_name=".acme.Animal.TotalsEntry"),
                    F(name="big", number=9, label=OPTIONAL, type=F.TYPE_UINT64, options=FieldOptions(jstype=FieldOptions.JS_STRING)),
                    F(name="num_legs", number=10, label=OPTIONAL, type=F.TYPE_FIXED64, json_name="legs", options=FieldOptions(jstype=FieldOptions.JS_NUMBER)),
                ],
                oneof_decl=[
                    OneofDescriptorProto(name="choice"),
                    OneofDescriptorProto(name="_weight"),
                ],
                nested_type=[
                    DescriptorProto(
                        name="TotalsEntry",
                        field=[
                            F(name="key", number=1, label=OPTIONAL, type=F.TYPE_STRING),
                            F(name="value", number=2, label=OPTIONAL, type=F.TYPE_INT64),
                        ],
                        options=MessageOptions(map_entry=True),
                    )
                ],
            )
        ],
        enum_type=[
            EnumDescriptorProto(
                name="Mood",
                value=[
                    EnumValueDescriptorProto(name="MOOD_CALM", number=0),
                    EnumValueDescriptorProto(name="MOOD_WILD", number=1),
                ],
            )
        ],
    )


def _animal_infos(**kwargs):
    registry, files = protots.resolve_files([_zoo_proto()], ["acme/zoo.proto"])
    animal = files[0].messages[0]
    return {fi.name: fi for fi in Interpreter(**kwargs).field_infos(animal)}


def test_map_entries_are_not_messages():
    _, files = protots.resolve_files([_zoo_proto()], ["acme/zoo.proto"])
    assert files[0].messages[0].messages == []


def test_scalar_fields():
    infos = _animal_infos()
    assert infos["name"] == FieldInfo(
        no=1,
        name="name",
        kind=ScalarKind(ScalarType.STRING),
        local_name="name",
        json_name="name",
        repeat=RepeatType.NO,
        opt=False,
    )
    assert infos["num_legs"].local_name == "numLegs"
    assert infos["num_legs"].json_name == "legs"


def test_repeated_fields():
    infos = _animal_infos()
    assert infos["scores"].repeat == RepeatType.PACKED
    assert infos["scores"].opt is False
    assert infos["tags"].repeat == RepeatType.UNPACKED


def test_message_and_enum_fields():
    infos = _animal_infos()
    assert infos["parent"].kind == MessageKind("acme.Animal")
    assert infos["parent"].opt is True
    assert infos["mood"].kind == EnumKind("acme.Mood", "MOOD_")
    assert infos["mood"].oneof == "choice"
    assert infos["mood"].opt is False
    assert infos["twin"].oneof == "choice"
    assert infos["twin"].opt is False


def test_proto3_optional():
    infos = _animal_infos()
    assert infos["weight"].oneof is None
    assert infos["weight"].opt is True
    assert infos["weight"].kind == ScalarKind(ScalarType.INT64, LongType.BIGINT)


def test_map_field():
    infos = _animal_infos()
    assert infos["totals"].kind == MapKind(
        ScalarType.STRING, ScalarKind(ScalarType.INT64, LongType.BIGINT)
    )
    assert infos["totals"].repeat == RepeatType.NO
    assert infos["totals"].opt is False


def test_long_types():
    infos = _animal_infos()
    assert infos["big"].kind == ScalarKind(ScalarType.UINT64, None)
    assert infos["num_legs"].kind == ScalarKind(ScalarType.FIXED64, LongType.NUMBER)

    infos = _animal_infos(normal_long_type=LongType.STRING)
    assert infos["weight"].kind == ScalarKind(ScalarType.INT64, None)
    assert infos["num_legs"].kind == ScalarKind(ScalarType.FIXED64, LongType.NUMBER)


def _legacy_proto(*fields):
    return FileDescriptorProto(
        name="acme/legacy.proto",
        package="acme",
        message_type=[DescriptorProto(name="Legacy", field=list(fields))],
    )


def test_proto2_fields():
    proto = _legacy_proto(
        F(name="a", number=1, label=OPTIONAL, type=F.TYPE_INT32),
        F(name="b", number=2, label=REPEATED, type=F.TYPE_INT32),
        F(name="c", number=3, label=REPEATED, type=F.TYPE_INT32, options=FieldOptions(packed=True)),
        F(name="d", number=4, label=REQUIRED, type=F.TYPE_STRING),
    )
    _, files = protots.resolve_files([proto], ["acme/legacy.proto"])
    infos = Interpreter().field_infos(files[0].messages[0])
    assert [fi.opt for fi in infos] == [True, False, False, False]
    assert [fi.repeat for fi in infos] == [
        RepeatType.NO,
        RepeatType.UNPACKED,
        RepeatType.PACKED,
        RepeatType.NO,
    ]


def test_group_fields_are_not_supported():
    proto = _legacy_proto(
        F(name="g", number=1, label=OPTIONAL, type=F.TYPE_GROUP, type_name=".acme.Legacy"),
    )
    _, files = protots.resolve_files([proto], ["acme/legacy.proto"])
    with pytest.raises(protots.InvalidDescriptorError):
        Interpreter().field_infos(files[0].messages[0])


def _descriptor_proto():
    proto = FileDescriptorProto()
    descriptor_pb2.DESCRIPTOR.CopyToProto(proto)
    return proto


def _secret_proto():
    # Field 50001 (acme.sensitive), varint 1.
    options = FieldOptions()
    options.MergeFromString(b"\x88\xb5\x18\x01")
    return FileDescriptorProto(
        name="acme/secret.proto",
        package="acme",
        syntax="proto3",
        dependency=["google/protobuf/descriptor.proto"],
        extension=[
            F(
                name="sensitive",
                number=50001,
                label=OPTIONAL,
                type=F.TYPE_BOOL,
                extendee=".google.protobuf.FieldOptions",
            )
        ],
        message_type=[
            DescriptorProto(
                name="Secret",
                field=[
                    F(name="token", number=1, label=OPTIONAL, type=F.TYPE_STRING, options=options),
                    F(name="hint", number=2, label=OPTIONAL, type=F.TYPE_STRING, options=FieldOptions(deprecated=True)),
                ],
            )
        ],
    )


def test_custom_options():
    protos = [_descriptor_proto(), _secret_proto()]
    registry, files = protots.resolve_files(protos, ["acme/secret.proto"])
    pool = descriptor_pool.DescriptorPool()
    for proto in protos:
        pool.AddSerializedFile(proto.SerializeToString())

    infos = Interpreter(registry, pool).field_infos(files[0].messages[0])
    assert infos[0].options == {"acme.sensitive": True}
    assert infos[1].options is None


def test_custom_options_without_pool():
    protos = [_descriptor_proto(), _secret_proto()]
    registry, files = protots.resolve_files(protos, ["acme/secret.proto"])
    infos = Interpreter(registry).field_infos(files[0].messages[0])
    assert infos[0].options is None
