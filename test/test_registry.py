import protots
import google.protobuf.descriptor_pb2


def _file(name, package):
    return protots.File(
        google.protobuf.descriptor_pb2.FileDescriptorProto(name=name, package=package),
        False,
        protots.default_ts_import_func,
    )


def _message(name, file, parent=None):
    return protots.Message(
        google.protobuf.descriptor_pb2.DescriptorProto(name=name),
        file,
        parent,
        [],
    )


def test_registry_resolve_message_type():
    registry = protots.Registry()

    acme_hello_file = _file("acme/hello.proto", "acme")
    acme_hello_message = _message("Hello", acme_hello_file)
    acme_hello_world_message = _message("World", acme_hello_file, acme_hello_message)

    acme_cloud_library_v1_library_file = _file(
        "acme/cloud/library/v1/library.proto", "acme.cloud.library.v1"
    )
    acme_cloud_library_v1_hello_message = _message(
        "Hello", acme_cloud_library_v1_library_file
    )
    acme_cloud_library_v1_hello_world_message = _message(
        "World",
        acme_cloud_library_v1_library_file,
        acme_cloud_library_v1_hello_message,
    )

    google_protobuf_empty_file = _file("google/protobuf/empty.proto", "google.protobuf")
    google_protobuf_empty_message = _message("Empty", google_protobuf_empty_file)

    registry._register_message(acme_hello_message)
    registry._register_message(acme_hello_world_message)
    registry._register_message(acme_cloud_library_v1_hello_message)
    registry._register_message(acme_cloud_library_v1_hello_world_message)
    registry._register_message(google_protobuf_empty_message)

    got = registry.resolve_message_type("acme.cloud.library.v1.Hello", "World")
    assert got is not None
    assert got.full_name == "acme.cloud.library.v1.Hello.World"

    got = registry.resolve_message_type("acme.Hello", "World")
    assert got is not None
    assert got.full_name == "acme.Hello.World"

    got = registry.resolve_message_type("acme.cloud.library.v1.Hello", "Hello")
    assert got is not None
    assert got.full_name == "acme.cloud.library.v1.Hello"

    got = registry.resolve_message_type("acme.cloud.library.Something", "Hello")
    assert got is not None
    assert got.full_name == "acme.Hello"

    got = registry.resolve_message_type(
        "acme.cloud.library.v1.Hello", "google.protobuf.Empty"
    )
    assert got is not None
    assert got.full_name == "google.protobuf.Empty"

    got = registry.resolve_message_type("acme.Hello", ".acme.cloud.library.v1.Hello")
    assert got is acme_cloud_library_v1_hello_message

    assert registry.resolve_message_type("acme.Hello", "Missing") is None


def test_registry_resolve_type_name():
    registry = protots.Registry()
    file = protots.File(
        google.protobuf.descriptor_pb2.FileDescriptorProto(
            name="acme/hello.proto",
            package="acme",
            message_type=[
                google.protobuf.descriptor_pb2.DescriptorProto(
                    name="Hello",
                    enum_type=[
                        google.protobuf.descriptor_pb2.EnumDescriptorProto(
                            name="Mood",
                            value=[
                                google.protobuf.descriptor_pb2.EnumValueDescriptorProto(
                                    name="MOOD_HAPPY", number=0
                                )
                            ],
                        )
                    ],
                )
            ],
        ),
        True,
        protots.default_ts_import_func,
    )
    file._register(registry)

    message = registry.resolve_type_name("acme.Hello")
    assert isinstance(message, protots.Message)
    assert message.ts_ident.ts_name == "Hello"
    assert message.ts_ident.ts_import_path == protots.TsImportPath("./acme/hello")

    enum = registry.resolve_type_name(".acme.Hello.Mood")
    assert isinstance(enum, protots.Enum)
    assert enum.ts_ident.ts_name == "Hello_Mood"
    assert enum.shared_prefix == "MOOD_"

    assert registry.resolve_type_name("acme.Goodbye") is None
    assert registry.file_by_name("acme/hello.proto") is file
