"""Package protots makes writing protoc plugins that emit TypeScript easy.

A protoc plugin essentialy turns a CodeGeneratorRequest from protoc into
CodeGeneratorResponse. The CodeGeneratorRequest contains the raw proto
descriptors of the proto definitions contained in the files code generation is
requested for (and the descriptors of every file thats imported). The
CodeGeneratorResponse is returned by to plugin to protoc. It contains a list of
files (name and content) the plugin wants protoc to write to disk.

``protots`` provides a bunch of classes to ease writing such plugins. Most of
them are simply replacements of their corresponding descriptors. E.g.
:class:`File` represents a proto FileDescriptor, :class:`Message` a proto
Descriptor, :class:`Enum` a proto EnumDescriptor etc.

The classes :class:`Options`, :class:`Plugin` and :class:`GeneratedFile` make up
a framework to generate TypeScript modules from a CodeGeneratorRequest. The
plugin shipped with this package lives in :mod:`protots.plugin`; a minimal one
looks like this:

.. code-block:: python

    import protots

    def generate(gen: protots.Plugin):
        for f in gen.files_to_generate:
            g = gen.new_generated_file(
                f.generated_filename_prefix + ".ts",
                f.ts_import_path,
            )
            g.P("// Generated code ahead.")
            g.print_imports()
            for m in f.messages:
                g.P("export const ", m.ts_ident.ts_name, " = {};")

    if __name__ == "__main__":
        opts = protots.Options()
        opts.run(generate)

"""

import contextlib
import enum
import logging
import posixpath
import sys
from typing import BinaryIO, Callable, Dict, Iterator, List, Optional, Set, Tuple, Union
import google.protobuf.descriptor_pool
import google.protobuf.descriptor_pb2
import google.protobuf.compiler.plugin_pb2

import protots._case

_LOG = logging.getLogger(__name__)


class Registry:
    """A registry for protots types.

    A registry holds references to :class:`File`, :class:`Enum` and
    :class:`Message` objects that have been resolved within a resolution
    process (see :meth:`Options.run`).
    """

    def __init__(self):
        """Create a new, empty registry."""
        self._messages_by_name: Dict[str, "Message"] = {}
        self._enums_by_name: Dict[str, "Enum"] = {}
        self._files_by_name: Dict[str, "File"] = {}

    def _register_file(self, file: "File"):
        self._files_by_name[file.proto.name] = file

    def _register_message(self, message: "Message"):
        self._messages_by_name[message.full_name] = message

    def _register_enum(self, enum: "Enum"):
        self._enums_by_name[enum.full_name] = enum

    def file_by_name(self, name: str) -> Optional["File"]:
        """Get a file by its full name.

        Arguments
        ---------
        name : str
            The full (proto) name of the file to retrieve.

        Returns
        -------
        file: File or None
            The file or `None` if no file with that name has been registered.
        """
        return self._files_by_name.get(name)

    def message_by_name(self, name: str) -> Optional["Message"]:
        """Get a message by its full name.

        Arguments
        ---------
        name : str
            The full (proto) name of the message to retrieve.

        Returns
        -------
        message: Message or None
            The message or `None` if no message with that name has been registered.
        """
        return self._messages_by_name.get(name)

    def enum_by_name(self, name: str) -> Optional["Enum"]:
        """Get an enum by its full name.

        Arguments
        ---------
        name : str
            The full (proto) name of the enum to retrieve.

        Returns
        -------
        enum: Enum or None
            The enum or `None` if no enum with that name has been registered.
        """
        return self._enums_by_name.get(name)

    def resolve_type_name(self, name: str) -> Optional[Union["Message", "Enum"]]:
        """Get a message or an enum by its full name.

        A leading dot, as used in ``FieldDescriptorProto.type_name``, is
        accepted.

        Returns
        -------
        Message, Enum or None
            The message or enum, or `None` if neither has been registered
            under that name.
        """
        if name.startswith("."):
            name = name[1:]
        message = self.message_by_name(name)
        if message is not None:
            return message
        return self.enum_by_name(name)

    def resolve_message_type(self, scope: str, name: str) -> Optional["Message"]:
        """Resolve a (possibly relative) message reference.

        Follows the protobuf scoping rules: the name is first looked up in the
        innermost scope, then in each enclosing scope up to the root.

        Arguments
        ---------
        scope : str
            Full name of the declaration the reference appears in, e.g. the
            message that declares the field.
        name : str
            The reference. Fully qualified if it starts with a dot.

        Returns
        -------
        Message or None
            The message or `None` if the reference can not be resolved.
        """
        return self._resolve_scoped(self.message_by_name, scope, name)

    def resolve_enum_type(self, scope: str, name: str) -> Optional["Enum"]:
        """Resolve a (possibly relative) enum reference.

        See :meth:`resolve_message_type`.
        """
        return self._resolve_scoped(self.enum_by_name, scope, name)

    @staticmethod
    def _resolve_scoped(lookup, scope: str, name: str):
        if name.startswith("."):
            return lookup(name[1:])
        parts = scope.split(".") if scope else []
        while parts:
            found = lookup(".".join(parts) + "." + name)
            if found is not None:
                return found
            parts.pop()
        return lookup(name)

    def all_files(self) -> List["File"]:
        """Get all registered files."""
        return list(self._files_by_name.values())

    def all_messages(self) -> List["Message"]:
        """Get all registered messages."""
        return list(self._messages_by_name.values())

    def all_enums(self) -> List["Enum"]:
        """Get all registered enums."""
        return list(self._enums_by_name.values())


def _clean_comment(cmmt: str) -> str:
    """Remove the first whitespace from every line, if any."""
    lines = cmmt.splitlines()
    clean_lines = []
    for line in lines:
        if len(line) > 0 and line[0] == " ":
            clean_lines.append(line[1:])
        else:
            clean_lines.append(line)
    return "\n".join(clean_lines)


class Location:
    """A proto location.

    A Location identifies a piece of source code in a .proto file which
    corresponds to a particular definition. It carries the comments that are
    associated with a certain part (e.g. a message or field) of the ``.proto``
    file. The plugin turns them into JSDoc blocks.

    Attributes
    ----------
    source_file : str
        Name of the file the location is from.
    path : List[int]
        Identifies which part of the FileDescriptor was defined at the location.
    leading_comments : str
        Comments directly attached (leading) to the location.
    trailing_comments : str
        Comments directly attached (trailing) to the location.
    leading_detached_comments : List[str]
        Comments that are leading to the current location and detached from it
        by at least one blank line.
    """

    def __init__(
        self,
        source_file: str,
        path: List[int],
        leading_detached_comments: List[str],
        leading_comments: str,
        trailing_comments: str,
    ):
        self.source_file = source_file
        self.path = path
        self.leading_detached_comments = [
            _clean_comment(c) for c in leading_detached_comments
        ]
        self.leading_comments = _clean_comment(leading_comments)
        self.trailing_comments = _clean_comment(trailing_comments)


def _resolve_location(
    file: google.protobuf.descriptor_pb2.FileDescriptorProto, path: List[int]
) -> Location:
    """Resolve location information for a path.

    Returns an empty Location if the path is not present in the file.
    """
    for location_pb in file.source_code_info.location:
        # location_pb.path is a RepeatedScalarFieldContainer, that implements __eq__
        # and compares again its inner _values (list(int)) to the other argument.
        if location_pb.path == path:
            return Location(
                file.name,
                path,
                location_pb.leading_detached_comments,
                location_pb.leading_comments,
                location_pb.trailing_comments,
            )
    return Location(file.name, path, [], "", "")


class TsImportPath:
    """A TypeScript module specifier.

    Paths starting with ``./`` refer to modules generated by the plugin and
    are relative to the output root, e.g. ``./google/api/http``. Any other path
    refers to a package, e.g. ``@protobuf-ts/runtime``, and is used as is.

    Example
    -------
    >>> runtime = protots.TsImportPath("@protobuf-ts/runtime")
    >>> # g is of type protots.GeneratedFile
    >>> g.P("const t = new ", runtime.ident("MessageType"), "(...);")

    That way ``MessageType`` will be added automatically to the imports of `g`.
    """

    def __init__(self, path: str):
        """Create a new import path wrapping `path`."""
        self._path = path

    @property
    def path(self) -> str:
        return self._path

    def ident(self, name: str) -> "TsIdent":
        """Create a `TsIdent` with `self` as import path and name as `ts_name`."""
        return TsIdent(self, name)

    def is_relative(self) -> bool:
        """Whether the path refers to a generated module."""
        return self._path.startswith("./")

    def specifier_from(self, importer: "TsImportPath") -> str:
        """Return the module specifier used to import `self` from `importer`."""
        if not self.is_relative():
            return self._path
        rel = posixpath.relpath(self._path, posixpath.dirname(importer._path))
        if rel.startswith("../"):
            return rel
        return "./" + rel

    def __eq__(self, o: object) -> bool:
        if type(o) != TsImportPath:
            return NotImplemented
        return self._path == o._path

    def __hash__(self) -> int:
        return hash(self._path)

    def __repr__(self) -> str:
        return f"TsImportPath({self._path!r})"


class TsIdent:
    """An identifier for an exported TypeScript symbol.

    A symbol is uniquely identified by the module it is exported from and its
    exported name.

    Attributes
    ----------
    ts_import_path : TsImportPath
        The module the symbol is exported from.
    ts_name : str
        Exported name of the symbol.
    """

    def __init__(self, ts_import_path: TsImportPath, ts_name: str):
        self.ts_import_path = ts_import_path
        self.ts_name = ts_name


class Kind(enum.Enum):
    """Kind is an enumeration of the different value types of a field."""

    DOUBLE = 1
    FLOAT = 2
    INT64 = 3
    UINT64 = 4
    INT32 = 5
    FIXED64 = 6
    FIXED32 = 7
    BOOL = 8
    STRING = 9
    GROUP = 10
    MESSAGE = 11
    BYTES = 12
    UINT32 = 13
    ENUM = 14
    SFIXED32 = 15
    SFIXED64 = 16
    SINT32 = 17
    SINT64 = 18


class Cardinality(enum.Enum):
    """Cardinality specifies whether a field is optional, required or repeated."""

    OPTIONAL = 1
    REQUIRED = 2
    REPEATED = 3


class EnumValue:
    """A proto enum value.

    Attributes
    ----------
    proto : google.protobuf.descriptor_pb2.EnumValueDescriptorProto
        The raw EnumValueDescriptor of the enum value.
    name : str
        Proto name of the value.
    number : int
        The enum number.
    parent : Enum
        The enum the enum value is declared in.
    location : Location
        Comments associated with the enum value.
    """

    def __init__(
        self,
        proto: google.protobuf.descriptor_pb2.EnumValueDescriptorProto,
        parent: "Enum",
        path: List[int],
    ):
        self.proto = proto
        self.name = proto.name
        self.number = proto.number
        self.parent = parent
        self.location = _resolve_location(parent.parent_file.proto, path)


class Enum:
    """A proto enum.

    This is the ``protots`` equivalent to a protobuf EnumDescriptor.

    Attributes
    ----------
    proto : google.protobuf.descriptor_pb2.EnumDescriptorProto
        The raw EnumDescriptor of the enum.
    ts_ident : TsIdent
        Identifier of the generated TypeScript enum. Nested enums are
        flattened, ``Outer.Inner`` becomes ``Outer_Inner``. Reserved words get a
        ``$`` appended.
    full_name : str
        Full proto name of the enum.
    parent_file : File
        The File the enum is declared in.
    parent : Message or None
        For nested enums, the message the enum is declared in. ``None`` otherwise.
    values : List[EnumValue]
        Values of the enum.
    shared_prefix : str or None
        Prefix shared by all value names (``MY_ENUM_`` for ``MyEnum``), see
        :func:`protots._case.enum_shared_prefix`.
    location : Location
        Comments associated with the enum.
    """

    def __init__(
        self,
        proto: google.protobuf.descriptor_pb2.EnumDescriptorProto,
        parent_file: "File",
        parent: Optional["Message"],
        path: List[int],
    ):
        self.proto = proto
        if parent is None:
            self.full_name = _join(parent_file.proto.package, proto.name)
            self.ts_ident = parent_file.ts_import_path.ident(
                protots._case.safe_identifier(proto.name)
            )
        else:
            self.full_name = parent.full_name + "." + proto.name
            self.ts_ident = parent_file.ts_import_path.ident(
                parent.ts_ident.ts_name + "_" + proto.name
            )
        self.parent_file = parent_file
        self.parent = parent
        self.location = _resolve_location(parent_file.proto, path)
        # Add enum values.
        self.values: List[EnumValue] = []
        for i in range(len(proto.value)):
            # 2 is the field number for `value` in `EnumDescriptorProto`.
            value_path = path + [2, i]
            self.values.append(EnumValue(proto.value[i], self, value_path))
        self.shared_prefix = protots._case.enum_shared_prefix(
            proto.name, [v.name for v in self.values]
        )


def _join(package: str, name: str) -> str:
    if package == "":
        return name
    return package + "." + name


def _is_map(message: "Message") -> bool:
    return (
        message.proto.HasField("options")
        and message.proto.options.HasField("map_entry")
        and message.proto.options.map_entry
    )


class Field:
    """A proto field.

    This is the ``protots`` equivalent to a protobuf FieldDescriptor. The
    fields attributes are obtained from the FieldDescriptor it is derived from
    and references to other ``protots`` classes that have been resolved in the
    resolution process.

    Attributes
    ----------
    proto : google.protobuf.descriptor_pb2.FieldDescriptorProto
        The raw FieldDescriptor of the field.
    full_name : str
        Full proto name of the field.
    parent : Message
        The message the field is declared in.
    parent_file : File
        The file the field is declared in.
    oneof : OneOf or None
        The oneof in case the field is contained in a oneof. ``None`` otherwise.
        Note that proto3 ``optional`` fields are contained in a synthetic
        oneof, see :meth:`real_oneof`.
    kind : Kind
        The field kind.
    cardinality : Cardinality
        Cardinality of the field.
    enum : Enum or None
        The enum type of the field in case the fields :attr:`kind` is
        :attr:`Kind.ENUM`. ``None`` otherwise.
    message : Message or None
        The message type of the field in case the fields :attr:`kind` is
        :attr:`Kind.MESSAGE`. ``None`` otherwise.
    location : Location
        Comments associated with the field.
    """

    def __init__(
        self,
        proto: google.protobuf.descriptor_pb2.FieldDescriptorProto,
        parent: "Message",
        parent_file: "File",
        oneof: Optional["OneOf"],
        path: List[int],
    ):
        self.proto = proto
        self.full_name = parent.full_name + "." + proto.name
        self.parent = parent
        self.parent_file = parent_file
        self.oneof = oneof
        self.kind = Kind(proto.type)  # type V is builtin.int
        self.cardinality = Cardinality(proto.label)  # type V is builtin.int
        self.location = _resolve_location(parent_file.proto, path)
        self.message: Optional["Message"] = None
        self.enum: Optional["Enum"] = None

    def is_map(self) -> bool:
        """Whether the field is a map field."""
        if self.message is None:
            return False
        return _is_map(self.message)

    def is_list(self) -> bool:
        """Whether the field is a repeated field that is not a map field."""
        return self.cardinality == Cardinality.REPEATED and not self.is_map()

    def real_oneof(self) -> Optional["OneOf"]:
        """Return the oneof unless it is the synthetic oneof of a proto3 optional."""
        if self.proto.proto3_optional:
            return None
        return self.oneof

    def map_key(self) -> Optional["Field"]:
        """Return the map key field if the field is a map field."""
        if not self.is_map():
            return None
        return self.message.fields[0]

    def map_value(self) -> Optional["Field"]:
        """Return the map value field if the field is a map field."""
        if not self.is_map():
            return None
        return self.message.fields[1]

    def _resolve(self, registry: Registry):
        # resolve the enum
        if self.kind == Kind.ENUM:
            if not self.proto.HasField("type_name"):
                raise InvalidDescriptorError(
                    full_name=self.full_name,
                    msg="is of kind ENUM but has no `type_name` set",
                )
            self.enum = registry.resolve_enum_type(
                self.parent.full_name, self.proto.type_name
            )
            if self.enum is None:
                raise ResolutionError(
                    file=self.parent_file.proto.name,
                    desc=self.full_name,
                    ref=self.proto.type_name,
                )

        # resolve the message
        if self.kind in (Kind.MESSAGE, Kind.GROUP):
            if not self.proto.HasField("type_name"):
                raise InvalidDescriptorError(
                    full_name=self.full_name,
                    msg="is of kind MESSAGE but has no `type_name` set",
                )
            self.message = registry.resolve_message_type(
                self.parent.full_name, self.proto.type_name
            )
            if self.message is None:
                raise ResolutionError(
                    file=self.parent_file.proto.name,
                    desc=self.full_name,
                    ref=self.proto.type_name,
                )


class OneOf:
    """A proto Oneof.

    Attributes
    ----------
    proto : google.protobuf.descriptor_pb2.OneofDescriptorProto
        The raw OneofDescritor of the oneof.
    full_name : str
        Full proto name of the oneof.
    parent : Message
        The message the oneof is declared in.
    fields : List[Field]
        Fields that are part of the oneof.
    """

    def __init__(
        self,
        proto: google.protobuf.descriptor_pb2.OneofDescriptorProto,
        parent: "Message",
        path: List[int],
    ):
        self.proto = proto
        self.full_name = parent.full_name + "." + proto.name
        self.parent = parent
        self.location = _resolve_location(parent.parent_file.proto, path)
        self.fields: List[Field] = []


class Message:
    """A proto message.

    This is the ``protots`` equivalent to a protobuf Descriptor.

    Attributes
    ----------
    proto : google.protobuf.descriptor_pb2.DescriptorProto
        The raw Descriptor of the message.
    ts_ident : TsIdent
        Identifier of the generated TypeScript message type. Nested messages
        are flattened, ``Outer.Inner`` becomes ``Outer_Inner``. Reserved words
        get a ``$`` appended.
    full_name : str
        Full proto name of the message.
    parent_file : File
        The file the message is defined in.
    parent : Message or None
        The parent message in case this is a nested message. ``None``, for
        top-level messages.
    fields : List[Field]
        Message field declarations. This includes fields defined within oneofs.
    oneofs : List[OneOf]
        Oneof declarations.
    enums : List[Enum]
        Nested enum declarations.
    messages List[Message]:
        Nested message declarations. Map entries are removed once resolved.
    location : Location
        Comments associated with the message.
    """

    def __init__(
        self,
        proto: google.protobuf.descriptor_pb2.DescriptorProto,
        parent_file: "File",
        parent: Optional["Message"],
        path: List[int],
    ):
        self.proto = proto
        if parent is not None:
            self.full_name = parent.full_name + "." + proto.name
            self.ts_ident = parent_file.ts_import_path.ident(
                parent.ts_ident.ts_name + "_" + proto.name
            )
        else:
            self.full_name = _join(parent_file.proto.package, proto.name)
            self.ts_ident = parent_file.ts_import_path.ident(
                protots._case.safe_identifier(proto.name)
            )
        self.parent_file = parent_file
        self.parent = parent
        self.location = _resolve_location(parent_file.proto, path)

        # Initialize Oneofs.
        self.oneofs: List[OneOf] = []
        for i in range(len(proto.oneof_decl)):
            # 8 is the number of oneof_decl in MessageDescriptorProto.
            oneof_path = path + [8, i]
            oneof = OneOf(proto.oneof_decl[i], self, oneof_path)
            self.oneofs.append(oneof)

        # Initialize Fields.
        self.fields: List[Field] = []
        for i in range(len(proto.field)):
            # 2 is the number of field in MessageDescriptorProto.
            field_path = path + [2, i]
            # The `oneof_index` indicates to which oneof the field belongs.
            oneof = None
            if proto.field[i].HasField("oneof_index"):
                oneof = self.oneofs[proto.field[i].oneof_index]
            field = Field(proto.field[i], self, parent_file, oneof, field_path)
            if oneof is not None:
                oneof.fields.append(field)
            self.fields.append(field)

        # Initialize nested Messages.
        self.messages: List[Message] = []
        for i in range(len(proto.nested_type)):
            # 3 is the number of nested_type in MessageDescriptorProto.
            message_path = path + [3, i]
            message = Message(proto.nested_type[i], parent_file, self, message_path)
            self.messages.append(message)

        # Initialize nested Enums.
        self.enums: List[Enum] = []
        for i in range(len(proto.enum_type)):
            # 4 is the number of enum_type in MessageDescriptorProto.
            enum_path = path + [4, i]
            enum = Enum(proto.enum_type[i], parent_file, self, enum_path)
            self.enums.append(enum)

    def _register(self, registry: Registry):
        """Register the message and its nested messages and enums onto the registry."""
        registry._register_message(self)
        for message in self.messages:
            message._register(registry)
        for enum in self.enums:
            registry._register_enum(enum)

    def _resolve(self, registry: Registry):
        """Resolve dependencies of the message."""
        for message in self.messages:
            message._resolve(registry)
        for field in self.fields:
            field._resolve(registry)

        # Remove autogenerated map entry messages from the list of nested
        # messages. No code is generated for these; map fields keep their
        # reference in `Field.message`.
        self.messages = [m for m in self.messages if not _is_map(m)]


class ResolutionError(Exception):
    """Error raised when type or enum name can not be resolved.

    This error is raised if a reference to a message or enum could not be
    resolved. The schema graph is inconsistent and no code can be generated
    for the file: the output would reference an undefined symbol.

    Attributes
    ----------
    file : str
        The proto (or generated) file that contains the reference.
    desc : str
        The full name of the descriptor that holds the reference
    ref : str
        The type or enum reference that can not be resolved.
    """

    def __init__(self, file: str, desc: str, ref: str):
        msg = f'{file}: Failed to resolve "{ref}" from "{desc}".'
        super().__init__(msg)
        self.file = file
        self.desc = desc
        self.ref = ref


class InvalidDescriptorError(Exception):
    """Error raised when a descriptor is invalid.

    This error is raied if a descriptor is considered invalid or uses a
    feature that is not supported. For example:
    * a FieldDescriptor may be of TYPE_ENUM but not declare a type_name
    * a FieldDescriptor may be of TYPE_GROUP
    """

    def __init__(self, full_name: str, msg: str):
        super().__init__(f"invalid descriptor error ({full_name}): {msg}")


class InvalidParameterError(Exception):
    """Error raised when a plugin parameter is unknown or has a bad value."""

    def __init__(self, name: str, value: str, msg: str):
        super().__init__(f'invalid parameter "{name}={value}": {msg}')
        self.name = name
        self.value = value


class File:
    """A proto file.

    This is the ``protots`` equivalent to a protobuf FileDescriptor.

    Attributes
    ----------
    proto : google.protobuf.descriptor_pb2.FileDescriptorProto
        The raw FileDescriptor of the file.
    generated_filename_prefix : str
        Name of the original proto file (without ``.proto`` extension).
    ts_import_path : TsImportPath
        Import path of the TypeScript module generated for the file. The
        result of the ``ts_import_func`` used to read the file.
    syntax : str
        ``proto2``, ``proto3`` or ``editions``.
    generate : bool
        Whether code should be generated for the file.
    dependencies : List[File]
        Files imported by the file.
    enums : List[Enum]
        Top-level enum declarations.
    messages : List[Message]
        Top-level message declarations.
    """

    def __init__(
        self,
        proto: google.protobuf.descriptor_pb2.FileDescriptorProto,
        generate: bool,
        ts_import_func: Callable[[str, str], str],
    ):
        self.proto = proto
        self.generated_filename_prefix = proto.name[: -len(".proto")]
        self.ts_import_path = TsImportPath(ts_import_func(proto.name, proto.package))
        self.syntax = proto.syntax or "proto2"
        self.generate = generate
        self.dependencies: List[File] = []

        self.messages: List[Message] = []
        for i in range(len(proto.message_type)):
            # 4 is the number of the message_type in the FileDescriptorProto.
            path = [4, i]
            message = Message(proto.message_type[i], self, None, path)
            self.messages.append(message)

        self.enums: List[Enum] = []
        for i in range(len(proto.enum_type)):
            # 5 is the number of the enum_type in the FileDescriptorProto.
            path = [5, i]
            enum = Enum(proto.enum_type[i], self, None, path)
            self.enums.append(enum)

    def _register(self, registry: Registry):
        """Register the file, all messages and enums on the registry."""
        registry._register_file(self)

        for message in self.messages:
            message._register(registry)
        for enum in self.enums:
            registry._register_enum(enum)

    def _resolve(self, registry: Registry):
        """Resolve dependencies."""
        for dep_name in self.proto.dependency:
            dep = registry.file_by_name(dep_name)
            if dep is None:
                raise ResolutionError(self.proto.name, self.proto.name, dep_name)
            self.dependencies.append(dep)

        for message in self.messages:
            message._resolve(registry)


def _indent(s: str, width: int) -> str:
    prefix = " " * width
    return "\n".join(prefix + line if line else line for line in s.splitlines())


class GeneratedFile:
    """An output buffer to write generated TypeScript code to.

    A generated file is a buffer. New lines can be added to the output buffer by
    calling :func:`P`.

    Additionally, the generated file is the import manager of the module it
    represents. Every :class:`TsIdent` that is exported from a different
    module is imported under a local name that does not collide with any name
    declared in the module (see :meth:`reserve_name`) or imported before; a
    ``$`` is appended until the name is free. Use :meth:`print_imports` to mark
    the position in the output buffer the import statements will be printed at.

    Attributes
    ----------
    name : str
        Name of the generated file.
    """

    def __init__(
        self,
        name: str,
        ts_import_path: TsImportPath,
    ):
        self.name = name
        self._ts_import_path = ts_import_path
        self._buf: List[str] = []
        self._import_mark = -1
        # Imported names by module, in order of first use. Maps the exported
        # name to the local name.
        self._imports: Dict[TsImportPath, Dict[str, str]] = {}
        self._taken: Set[str] = set()
        self._indent = 0

    @property
    def ts_import_path(self) -> TsImportPath:
        return self._ts_import_path

    def set_indent(self, level: int) -> int:
        """Set the indentation level.

        Set the indentation level such that consecutive calls to :func:`P` are
        indented automatically to that level.

        Returns
        -------
        int
            The old indentation level.

        Raises
        ------
        ValueError
            If level is less than zero.
        """
        if level < 0:
            raise ValueError("indent must be greater or equal zero")
        old = self._indent
        self._indent = level
        return old

    @contextlib.contextmanager
    def indent(self, width: int) -> Iterator[None]:
        """Indent all lines added within the context by `width` more spaces."""
        reset = self.set_indent(self._indent + width)
        try:
            yield
        finally:
            self.set_indent(reset)

    def reserve_name(self, name: str):
        """Mark `name` as declared in this module.

        Imported symbols will never be given a reserved local name.
        """
        self._taken.add(name)

    def P(self, *args):
        """Add a new line to the output buffer.

        Add a new line to the output buffer containing a stringified version of
        the passed arguments. For arguments that are of class :class:`TsIdent`
        :meth:`qualified_ts_ident` is called.

        Arguments
        ---------
        *args
            Items that make up the content of the new line. All args are printed
            on the same line. There is no whitespace added between the
            individual args.
        """
        line = ""
        for arg in args:
            if type(arg) == TsIdent:
                line += self.qualified_ts_ident(arg)
            else:
                line += str(arg)
        self._buf.append(_indent(line, self._indent))

    def qualified_ts_ident(self, ident: TsIdent) -> str:
        """Obtain the local name of a TypeScript identifier in this module.

        If ``ident`` is exported from this module, its name is returned as is.
        Otherwise the symbol is added to the imports of the generated file and
        its (collision-free) local name is returned.

        Arguments
        ---------
        ident : TsIdent
            The identifier to obtain the local name for.

        Returns
        -------
        str
            The local name.
        """
        if ident.ts_import_path == self._ts_import_path:
            return ident.ts_name
        names = self._imports.setdefault(ident.ts_import_path, {})
        if ident.ts_name in names:
            return names[ident.ts_name]
        local = ident.ts_name
        while local in self._taken:
            local += "$"
        self._taken.add(local)
        names[ident.ts_name] = local
        _LOG.debug(
            "%s: import %s as %s from %s",
            self.name,
            ident.ts_name,
            local,
            ident.ts_import_path.path,
        )
        return local

    def import_name(self, name: str, path: str) -> str:
        """Import `name` from the module `path` and return its local name."""
        return self.qualified_ts_ident(TsImportPath(path).ident(name))

    def print_imports(self):
        """Set the mark to print the imports in the output buffer.

        The current location in the output buffer will be used to print the
        imports collected by :meth:`qualified_ts_ident`. Only one location can
        be set. Consecutive calls will overwrite previous calls.
        """
        self._import_mark = len(self._buf)

    def _import_statements(self) -> List[str]:
        statements = []
        for path, names in self._imports.items():
            specifiers = [
                name if name == local else f"{name} as {local}"
                for name, local in names.items()
            ]
            statements.append(
                "import { "
                + ", ".join(specifiers)
                + ' } from "'
                + path.specifier_from(self._ts_import_path)
                + '";'
            )
        return statements

    def content(self) -> str:
        """Return the content of the generated file."""
        if self._import_mark > -1:
            lines = (
                self._buf[: self._import_mark]
                + self._import_statements()
                + self._buf[self._import_mark :]
            )
        else:
            lines = self._buf
        return "\n".join(lines) + "\n"

    def _proto(self) -> google.protobuf.compiler.plugin_pb2.CodeGeneratorResponse.File:
        return google.protobuf.compiler.plugin_pb2.CodeGeneratorResponse.File(
            name=self.name,
            content=self.content(),
        )


class Plugin:
    """An invocation of a protoc plugin.

    Provides access to the resolved ``protots`` classes as parsed from the
    CodeGeneratorRequest read from protoc and is used to create a
    CodeGeneratorResponse that is returned back to protoc.
    To add a new generated file to the response, use :meth:`new_generated_file`.

    Attributes
    ----------
    parameter : Dict[str, str]
        Parameter passed to the plugin using ``{plugin name}_opt=<key>=<value>`
        or ``<plugin>_out=<key>=<value>`` command line flags.
    files_to_generate : List[File]
        Set of files to code generation is request for. These are the files
        explictly passed to protoc as command line arguments.
    registry : Registry
        Registry holding every file of the request.
    descriptor_pool : google.protobuf.descriptor_pool.DescriptorPool
        A pool built from every file of the request. Used to read custom
        options.
    """

    def __init__(
        self,
        parameter: Dict[str, str],
        files_to_generate: List[File],
        registry: Optional[Registry] = None,
        descriptor_pool: Optional[google.protobuf.descriptor_pool.DescriptorPool] = None,
    ):
        self.parameter = parameter
        self.files_to_generate = files_to_generate
        self.registry = registry if registry is not None else Registry()
        self.descriptor_pool = descriptor_pool

        self._error: Optional[str] = None
        self._generated_files: List[GeneratedFile] = []

    def _response(self) -> google.protobuf.compiler.plugin_pb2.CodeGeneratorResponse:
        response = google.protobuf.compiler.plugin_pb2.CodeGeneratorResponse()
        if self._error is not None:
            response.error = self._error
            return response
        for f in self._generated_files:
            response.file.append(f._proto())
        return response

    def new_generated_file(
        self, name: str, ts_import_path: TsImportPath
    ) -> GeneratedFile:
        """Create a new generated file.

        The generated file will be added to the output of the plugin.

        Arguments
        ---------
        name : str
            Filename of the generated file.
        ts_import_path : TsImportPath
            Import path of the new generated file. Identifiers with the same
            import path are referred to without an import. See
            :class:`GeneratedFile`.

        Returns
        -------
        GeneratedFile
            The new generated file.
        """
        g = GeneratedFile(name, ts_import_path)
        self._generated_files.append(g)
        return g

    def error(self, msg: str):
        """Record an error.

        The error will be reported back to protoc. No output will be produced in
        case of an error. Will act as a no-op for consecutive calls; only the
        first error is reported back.
        """
        if self._error is None:
            self._error = msg


def default_ts_import_func(filename: str, package: str) -> str:
    """Return the TypeScript import path for a file.

    For each input file ``path/to/file.proto`` a ``path/to/file.ts`` module is
    generated.

    Example
    -------
    >>> default_ts_import_func("google/protobuf/field_mask.proto", "google.protobuf")
    "./google/protobuf/field_mask"
    """
    return "./" + filename[: -len(".proto")]


def resolve_files(
    protos: List[google.protobuf.descriptor_pb2.FileDescriptorProto],
    files_to_generate: List[str],
    ts_import_func: Callable[[str, str], str] = default_ts_import_func,
) -> Tuple[Registry, List[File]]:
    """Resolve raw file descriptors to their ``protots`` classes.

    `protos` must be in topological order, every file after its
    dependencies, as protoc sends them.

    Returns
    -------
    Tuple[Registry, List[File]]
        The registry holding all files and the files to generate.
    """
    registry = Registry()
    files: List[File] = []
    for proto in protos:
        generate = proto.name in files_to_generate
        file = File(proto, generate, ts_import_func)
        file._register(registry)
        file._resolve(registry)
        if generate:
            files.append(file)
    return registry, files


def _build_descriptor_pool(
    protos: List[google.protobuf.descriptor_pb2.FileDescriptorProto],
) -> google.protobuf.descriptor_pool.DescriptorPool:
    pool = google.protobuf.descriptor_pool.DescriptorPool()
    for proto in protos:
        pool.AddSerializedFile(proto.SerializeToString())
    return pool


class Options:
    """Options for resolving a raw CodeGeneratorRequest to ``protots`` classes.

    Use :meth:`run` to run a code generation function.
    """

    def __init__(
        self,
        *,
        ts_import_func: Callable[[str, str], str] = default_ts_import_func,
        input: Optional[BinaryIO] = None,
        output: Optional[BinaryIO] = None,
    ):
        """Create options for the resolution process.

        Arguments
        ---------
        ts_import_func : Callable[[str, str], str], optional
            Defines how to derive :class:`TsImportPath` for the :class:`File`
            objects in the resolution process. Receives the proto filename and
            package. Defaults to :func:`default_ts_import_func`.
        input : BinaryIO, optional
            The input stream to read the CodeGeneratorRequest from. Defaults
            to :attr:`sys.stdin.buffer`.
        output : BinaryIO, optional
            The output stream to write the CodeGeneratorResponse to.
            Defaults to :attr:`sys.stdout.buffer`.
        """
        self._input = input if input is not None else sys.stdin.buffer
        self._output = output if output is not None else sys.stdout.buffer
        self._ts_import_func = ts_import_func

    def run(self, f: Callable[[Plugin], None]):
        """Start resolution process and run ``f`` with the :class:`Plugin` containing the resolved classes.

        run waits for protoc to write the CodeGeneratorRequest to
        :attr:`input`, resolves the raw descriptors contained in it to their
        corresponding ``protots`` classes and creates a new :class:`Plugin`
        with the resolved classes. ``f`` is then called with the
        :class:`Plugin` as argument. Once ``f`` returns, the
        CodeGeneratorResponse is collected from the :class:`Plugin` and
        written to :attr:`output` for protoc to pick it up.

        Arguments
        ---------
        f : Callable[[Plugin], None]
            Function to run with the Plugin containing the resolved classes.
        """
        req = google.protobuf.compiler.plugin_pb2.CodeGeneratorRequest.FromString(
            self._input.read()
        )

        # Parse parameters. These are given as flags to protoc:
        #
        #   --plugin_opt=key1=value1
        #   --plugin_opt=key2=value2,key3=value3
        #   --plugin_out=key4:./path
        #
        # All `plugin_opt`s are joined with a "," in the CodeGeneratorRequest.
        # Follow the convention of parameters pairs separated by commas in the
        # form {k}={v}. If {k} (without value), write an empty string to the
        # parameter dict. For {k}={v}={v2} write {k} as key and {v}={v2} as
        # value.
        parameter: Dict[str, str] = {}
        for param in req.parameter.split(","):
            if param == "":
                # Ignore empty parameters.
                continue
            splits = param.split("=", 1)  # maximum one split
            if len(splits) == 1:
                k, v = splits[0], ""
            else:
                k, v = splits
            parameter[k] = v

        registry, files_to_generate = resolve_files(
            list(req.proto_file), list(req.file_to_generate), self._ts_import_func
        )
        pool = _build_descriptor_pool(list(req.proto_file))
        _LOG.debug(
            "resolved %d files, generating %d",
            len(req.proto_file),
            len(files_to_generate),
        )

        # Create plugin and run the provided code generation function.
        plugin = Plugin(parameter, files_to_generate, registry, pool)
        f(plugin)

        # Write response.
        resp = plugin._response()
        self._output.write(resp.SerializeToString())
