"""protoc-gen-protots: generates TypeScript message types with field infos.

For every requested ``path/to/file.proto`` a ``path/to/file.ts`` module is
generated. It declares every enum of the file as a TypeScript enum and every
message as a ``MessageType`` of the runtime, constructed with the field info
literals of the message.

Parameters are passed with ``--protots_opt``:

``runtime_import_path=<module>``
    Module the runtime is imported from. Defaults to ``@protobuf-ts/runtime``.
``type_enums=inline|qualified``
    Write runtime enum values as numbers with a comment (the default) or as
    references to the runtime enums.
``long_type_string`` / ``long_type_number``
    Use ``string`` or ``number`` instead of ``bigint`` for 64 bit integral
    fields without a ``jstype`` option.
``log_level=debug|info|warning|error``
    Verbosity of the messages written to stderr.
"""

import dataclasses
import logging
import sys
from typing import Dict, List, Union

import protots
from protots.fieldinfo import LongType
from protots.generator import DEFAULT_RUNTIME_IMPORT_PATH, FieldInfoGenerator
from protots.interpreter import Interpreter
from protots.literal import StringLiteral

_LOG = logging.getLogger(__name__)

_LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


@dataclasses.dataclass(frozen=True)
class GeneratorConfig:
    """Configuration of a plugin run, read from the plugin parameters."""

    runtime_import_path: str = DEFAULT_RUNTIME_IMPORT_PATH
    inline_type_enums: bool = True
    normal_long_type: LongType = LongType.BIGINT
    log_level: int = logging.WARNING

    @classmethod
    def from_parameter(cls, parameter: Dict[str, str]) -> "GeneratorConfig":
        """Validate the plugin parameters.

        Raises
        ------
        protots.InvalidParameterError
            For unknown parameters and bad values.
        """
        kwargs = {}
        for name, value in parameter.items():
            if name == "runtime_import_path":
                if value == "":
                    raise protots.InvalidParameterError(name, value, "must not be empty")
                kwargs["runtime_import_path"] = value
            elif name == "type_enums":
                if value not in ("inline", "qualified"):
                    raise protots.InvalidParameterError(
                        name, value, 'must be "inline" or "qualified"'
                    )
                kwargs["inline_type_enums"] = value == "inline"
            elif name in ("long_type_string", "long_type_number"):
                if "normal_long_type" in kwargs:
                    raise protots.InvalidParameterError(
                        name, value, "only one long type can be set"
                    )
                kwargs["normal_long_type"] = (
                    LongType.STRING if name == "long_type_string" else LongType.NUMBER
                )
            elif name == "log_level":
                if value not in _LOG_LEVELS:
                    raise protots.InvalidParameterError(
                        name, value, "must be one of " + ", ".join(_LOG_LEVELS)
                    )
                kwargs["log_level"] = _LOG_LEVELS[value]
            else:
                raise protots.InvalidParameterError(name, value, "unknown parameter")
        return cls(**kwargs)


def collect_messages(fm: Union[protots.File, protots.Message]) -> List[protots.Message]:
    """Return the messages of a file or message, nested ones after their parent."""
    messages = []
    for m in fm.messages:
        messages.append(m)
        messages.extend(collect_messages(m))
    return messages


def collect_enums(fm: Union[protots.File, protots.Message]) -> List[protots.Enum]:
    enums = []
    enums.extend(fm.enums)
    for m in fm.messages:
        enums.extend(collect_enums(m))
    return enums


def _jsdoc(g: protots.GeneratedFile, location: protots.Location, generated_from: str):
    lines = []
    if location.leading_comments:
        lines.extend(location.leading_comments.rstrip("\n").splitlines())
        lines.append("")
    lines.append("@generated from " + generated_from)
    g.P("/**")
    for line in lines:
        if line:
            g.P(" * ", line.replace("*/", "*\\/"))
        else:
            g.P(" *")
    g.P(" */")


def generate_enum(g: protots.GeneratedFile, e: protots.Enum):
    g.P()
    _jsdoc(g, e.location, "protobuf enum " + e.full_name)
    g.P("export enum ", e.ts_ident.ts_name, " {")
    with g.indent(4):
        for v in e.values:
            _jsdoc(g, v.location, f"protobuf enum value: {v.name} = {v.number};")
            name = v.name
            if e.shared_prefix:
                name = name[len(e.shared_prefix) :]
            g.P(name, " = ", v.number, ",")
    g.P("}")


def generate_message(
    g: protots.GeneratedFile,
    m: protots.Message,
    generator: FieldInfoGenerator,
    interpreter: Interpreter,
    runtime: protots.TsImportPath,
):
    g.P()
    _jsdoc(g, m.location, "protobuf message " + m.full_name)
    fields = generator.create_field_info_literals(interpreter.field_infos(m))
    g.P(
        "export const ",
        m.ts_ident.ts_name,
        " = new ",
        runtime.ident("MessageType"),
        "(",
        StringLiteral(m.full_name),
        ", ",
        fields,
        ");",
    )


def generate_file(
    gen: protots.Plugin,
    f: protots.File,
    config: GeneratorConfig,
    interpreter: Interpreter,
):
    g = gen.new_generated_file(f.generated_filename_prefix + ".ts", f.ts_import_path)
    enums = collect_enums(f)
    messages = collect_messages(f)
    for decl in enums + messages:
        g.reserve_name(decl.ts_ident.ts_name)

    g.P("// @generated by protoc-gen-protots from ", f.proto.name)
    g.P("// tslint:disable")
    g.print_imports()

    generator = FieldInfoGenerator(
        gen.registry,
        g,
        runtime_import_path=config.runtime_import_path,
        inline_type_enums=config.inline_type_enums,
    )
    runtime = protots.TsImportPath(config.runtime_import_path)
    for e in enums:
        generate_enum(g, e)
    for m in messages:
        generate_message(g, m, generator, interpreter, runtime)
    _LOG.info("%s: %d enums, %d messages", g.name, len(enums), len(messages))


def generate(gen: protots.Plugin):
    """Generate a TypeScript module for every requested file.

    Configuration and schema errors are reported to protoc, no files are
    written in that case.
    """
    try:
        config = GeneratorConfig.from_parameter(gen.parameter)
    except protots.InvalidParameterError as e:
        _LOG.error("%s", e)
        gen.error(str(e))
        return
    logging.getLogger("protots").setLevel(config.log_level)

    interpreter = Interpreter(
        gen.registry, gen.descriptor_pool, normal_long_type=config.normal_long_type
    )
    for f in gen.files_to_generate:
        try:
            generate_file(gen, f, config, interpreter)
        except (protots.ResolutionError, protots.InvalidDescriptorError) as e:
            _LOG.error("%s: %s", f.proto.name, e)
            gen.error(f"{f.proto.name}: {e}")
            return


def main():
    # stdout carries the response to protoc.
    logging.basicConfig(
        stream=sys.stderr, format="protoc-gen-protots: %(levelname)s: %(message)s"
    )
    opts = protots.Options()
    opts.run(generate)


if __name__ == "__main__":
    main()
