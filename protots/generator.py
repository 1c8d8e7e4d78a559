"""Generates TypeScript field info literals from :class:`FieldInfo`.

The literals are the ones passed to the ``MessageType`` constructor of the
runtime, for example::

    { no: 1, name: "id", kind: "scalar", T: 9 /*ScalarType.STRING*/ }

Enum and message types are always referenced through an arrow function
(``T: () => Other``). The field list is evaluated when the module is loaded,
possibly before the referenced type exists, because messages can refer to
each other. The arrow function is called by the runtime once all modules are
loaded.
"""

import enum
import logging
from typing import Iterable, List, Tuple, Type

import protots
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
    denormalize_field_info,
)
from protots.literal import (
    ArrayLiteral,
    ArrowFunction,
    Expression,
    Identifier,
    NumericLiteral,
    ObjectLiteral,
    PropertyAccess,
    StringLiteral,
    literal_from_value,
)

_LOG = logging.getLogger(__name__)

DEFAULT_RUNTIME_IMPORT_PATH = "@protobuf-ts/runtime"

Property = Tuple[str, Expression]


class FieldInfoGenerator:
    """Generates field info literals for one generated file.

    Arguments
    ---------
    registry : protots.Registry
        Registry used to look up referenced enums and messages.
    imports : protots.GeneratedFile
        The file the literals are written to. Referenced types and runtime
        constants are imported into it.
    runtime_import_path : str, optional
        Module to import ``RepeatType``, ``ScalarType`` and ``LongType`` from.
    inline_type_enums : bool, optional
        If ``True`` (the default), write ``2 /*LongType.NUMBER*/`` instead of
        ``LongType.NUMBER``. Necessary for the TypeScript compiler option
        "isolatedModules", which forbids referencing const enums of other
        modules.
    """

    def __init__(
        self,
        registry: protots.Registry,
        imports: protots.GeneratedFile,
        *,
        runtime_import_path: str = DEFAULT_RUNTIME_IMPORT_PATH,
        inline_type_enums: bool = True,
    ):
        self._registry = registry
        self._imports = imports
        self._runtime_import_path = runtime_import_path
        self._inline_type_enums = inline_type_enums

    def create_field_info_literals(
        self, field_infos: Iterable[FieldInfo]
    ) -> ArrayLiteral:
        """Create an array literal of field infos, in the given order."""
        return ArrayLiteral(
            [self.create_field_info_literal(fi) for fi in field_infos],
            multi_line=True,
        )

    def create_field_info_literal(self, field_info: FieldInfo) -> ObjectLiteral:
        """Create the literal for a single field info.

        The field info is minimized first, only attributes that differ from
        their default are written.

        Raises
        ------
        protots.ResolutionError
            If a referenced enum or message is not in the registry.
        """
        field_info = denormalize_field_info(field_info)
        # A field that fails must not leave imports behind.
        self._check_kind(field_info.kind, field_info.name)
        properties: List[Property] = []

        # no: The field number of the .proto field.
        # name: The original name of the .proto field.
        # kind: discriminator
        properties.append(("no", literal_from_value(field_info.no)))
        properties.append(("name", literal_from_value(field_info.name)))
        properties.append(("kind", StringLiteral(field_info.kind.kind)))

        # localName: The name of the field in the runtime.
        # jsonName: The name of the field in JSON.
        # oneof: The name of the `oneof` group, if this field belongs to one.
        for key, value in (
            ("localName", field_info.local_name),
            ("jsonName", field_info.json_name),
            ("oneof", field_info.oneof),
        ):
            if value is not None:
                properties.append((key, literal_from_value(value)))

        if field_info.repeat is not None:
            properties.append(("repeat", self.create_repeat_type(field_info.repeat)))

        if field_info.opt is not None:
            properties.append(("opt", literal_from_value(field_info.opt)))

        properties.extend(self._create_kind_properties(field_info.kind, field_info.name))

        if field_info.options:
            properties.append(("options", literal_from_value(dict(field_info.options))))

        return ObjectLiteral(properties)

    def _create_kind_properties(self, kind: FieldKind, referrer: str) -> List[Property]:
        if isinstance(kind, ScalarKind):
            # T: Scalar field type.
            # L?: JavaScript long type
            properties = [("T", self.create_scalar_type(kind.type))]
            if kind.long_type is not None:
                properties.append(("L", self.create_long_type(kind.long_type)))
            return properties
        if isinstance(kind, EnumKind):
            # T: Return enum field type info.
            return [("T", self._create_enum_t(kind, referrer))]
        if isinstance(kind, MessageKind):
            # T: Return message field type handler.
            return [("T", self._create_message_t(kind, referrer))]
        if isinstance(kind, MapKind):
            # K: Map field key type.
            # V: Map field value type.
            return [
                ("K", self.create_scalar_type(kind.key)),
                ("V", self._create_map_v(kind.value, referrer)),
            ]
        raise TypeError(f"unknown field kind {kind!r}")

    def _check_kind(self, kind: FieldKind, referrer: str):
        if isinstance(kind, MapKind):
            if isinstance(kind.value, MapKind):
                raise TypeError(f"map field {referrer} has a map as value")
            kind = kind.value
        if isinstance(kind, (EnumKind, MessageKind)):
            if self._registry.resolve_type_name(kind.type_name) is None:
                raise protots.ResolutionError(
                    file=self._imports.name, desc=referrer, ref=kind.type_name
                )

    def _create_map_v(self, value: MapValueKind, referrer: str) -> ObjectLiteral:
        if isinstance(value, MapKind):
            raise TypeError(f"map field {referrer} has a map as value")
        properties: List[Property] = [("kind", StringLiteral(value.kind))]
        properties.extend(self._create_kind_properties(value, referrer))
        return ObjectLiteral(properties)

    def resolve_reference(self, type_name: str, referrer: str) -> Tuple[str, protots.TsImportPath]:
        """Resolve a referenced enum or message to its generated symbol.

        The symbol is imported into the generated file, if necessary.

        Arguments
        ---------
        type_name : str
            Fully qualified proto name of the enum or message.
        referrer : str
            Name of the field holding the reference, for error messages.

        Returns
        -------
        Tuple[str, protots.TsImportPath]
            The local name of the symbol and the module it is exported from.

        Raises
        ------
        protots.ResolutionError
            If the registry does not know `type_name`.
        """
        descriptor = self._registry.resolve_type_name(type_name)
        if descriptor is None:
            raise protots.ResolutionError(
                file=self._imports.name, desc=referrer, ref=type_name
            )
        name = self._imports.qualified_ts_ident(descriptor.ts_ident)
        _LOG.debug("%s: %s refers to %s as %s", self._imports.name, referrer, type_name, name)
        return name, descriptor.ts_ident.ts_import_path

    def _create_message_t(self, kind: MessageKind, referrer: str) -> ArrowFunction:
        name, _ = self.resolve_reference(kind.type_name, referrer)
        return ArrowFunction(Identifier(name))

    def _create_enum_t(self, kind: EnumKind, referrer: str) -> ArrowFunction:
        name, _ = self.resolve_reference(kind.type_name, referrer)
        enum_info: List[Expression] = [
            StringLiteral(kind.type_name.lstrip(".")),
            Identifier(name),
        ]
        if kind.shared_prefix:
            enum_info.append(StringLiteral(kind.shared_prefix))
        return ArrowFunction(ArrayLiteral(enum_info))

    def create_repeat_type(self, value: RepeatType) -> Expression:
        return self.create_type_enum(value, RepeatType)

    def create_scalar_type(self, value: ScalarType) -> Expression:
        return self.create_type_enum(value, ScalarType)

    def create_long_type(self, value: LongType) -> Expression:
        return self.create_type_enum(value, LongType)

    def create_type_enum(self, value: int, family: Type[enum.IntEnum]) -> Expression:
        """Write a value of one of the runtime enums.

        Arguments
        ---------
        value : int
            The value. Members of other families are rejected.
        family : Type[enum.IntEnum]
            One of :class:`RepeatType`, :class:`ScalarType` and
            :class:`LongType`.

        Raises
        ------
        ValueError
            If `value` is not a member of `family`.
        """
        if isinstance(value, enum.Enum) and not isinstance(value, family):
            raise ValueError(f"{value!r} is not a {family.__name__}")
        member = family(value)
        if self._inline_type_enums:
            return NumericLiteral(int(member), comment=f"{family.__name__}.{member.name}")
        local = self._imports.import_name(family.__name__, self._runtime_import_path)
        return PropertyAccess(Identifier(local), member.name)
