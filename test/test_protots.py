import protots
from protots.test import run_plugin
from google.protobuf.descriptor_pb2 import DescriptorProto, FileDescriptorProto


def _dump_parameter(gen: protots.Plugin):
    g = gen.new_generated_file("out.txt", protots.TsImportPath("./out"))
    for k, v in gen.parameter.items():
        g.P(k, "=", v)


def test_parameter():
    proto = FileDescriptorProto(name="acme/owner.proto", package="acme")
    resp = run_plugin(
        [proto],
        ["acme/owner.proto"],
        _dump_parameter,
        parameter={
            "k1": "v1",
            "k2": "v2;k3=v3",
            "k4": "",
            "abc": "x",
            "5": "2",
        },
    )

    assert resp.proto.error == ""

    generated, ok = resp.file_content("out.txt")
    assert ok
    assert generated == "k1=v1\nk2=v2;k3=v3\nk4=\nabc=x\n5=2\n"


def test_with_indent():
    g = protots.GeneratedFile("test_with_indent", protots.TsImportPath("./x"))
    g.P("top-level")
    with g.indent(2):
        g.P("indented-by-two")
        with g.indent(4):
            g.P("indented-by-six")
        g.P("return-by-two")
    g.P("return-top-level")

    expected = [
        "top-level",
        "  indented-by-two",
        "      indented-by-six",
        "  return-by-two",
        "return-top-level",
    ]
    assert g._buf == expected


def test_imports_are_relative_to_the_importer():
    g = protots.GeneratedFile("a/b/c.ts", protots.TsImportPath("./a/b/c"))
    g.P("// header")
    g.print_imports()
    g.P("new ", protots.TsImportPath("./x/y").ident("Y"), "();")
    g.P("new ", protots.TsImportPath("./a/b/d").ident("D"), "();")
    g.P("new ", protots.TsImportPath("./a/b/c").ident("C"), "();")

    assert g.content() == (
        "// header\n"
        'import { Y } from "../../x/y";\n'
        'import { D } from "./d";\n'
        "new Y();\n"
        "new D();\n"
        "new C();\n"
    )


def test_imports_are_renamed_on_collision():
    g = protots.GeneratedFile("x.ts", protots.TsImportPath("./x"))
    g.reserve_name("Timestamp")
    g.print_imports()
    g.P(protots.TsImportPath("./google/protobuf/timestamp").ident("Timestamp"))
    g.P(protots.TsImportPath("./other/timestamp").ident("Timestamp"))
    g.P(protots.TsImportPath("./google/protobuf/timestamp").ident("Timestamp"))

    assert g.content() == (
        'import { Timestamp as Timestamp$ } from "./google/protobuf/timestamp";\n'
        'import { Timestamp as Timestamp$$ } from "./other/timestamp";\n'
        "Timestamp$\n"
        "Timestamp$$\n"
        "Timestamp$\n"
    )


def test_nested_declarations_are_flattened():
    proto = FileDescriptorProto(
        name="acme/zoo.proto",
        package="acme",
        message_type=[
            DescriptorProto(name="Animal", nested_type=[DescriptorProto(name="Paw")])
        ],
    )
    _, files = protots.resolve_files([proto], ["acme/zoo.proto"])
    animal = files[0].messages[0]
    assert files[0].ts_import_path == protots.TsImportPath("./acme/zoo")
    assert animal.messages[0].ts_ident.ts_name == "Animal_Paw"
    assert animal.messages[0].full_name == "acme.Animal.Paw"
