"""Generation of HIDL to AIDL translate functions.

For every convertible compound type a ``translate`` (C++/NDK) or
``h2aTranslate`` (Java) function is generated that copies a HIDL value into
its AIDL counterpart field by field. Scalars that may not fit the AIDL type
are guarded at runtime; constructs that cannot be converted automatically
become ``#error`` markers plus a note.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from jinja2 import Environment, PackageLoader

from .backends import Backend, BackendVariant, get_backend
from .classify import TypeDescriptor, TypeKind, classify
from .fqname import QualifiedName
from .model import CompoundStyle, EnumType, FieldDescriptor, MergedCompoundSchema, NamedType
from .naming import canonical_package
from .notes import Note, NoteKind, Notes
from .replaced import ReplacedTypeRegistry

env = Environment(
    loader=PackageLoader("hidl2aidl", "templates"),
    trim_blocks=True,
    lstrip_blocks=True,
    keep_trailing_newline=True,
    line_comment_prefix="%%",
    line_statement_prefix="%",
)

INDENT = "    "

# Largest value the AIDL type can hold, for HIDL scalars that need a guard.
# AIDL char is unsigned, so int16 only rejects negative values.
SIGNED_MAX = {
    "uint8": 127,
    "int16": 2147483647,
    "uint32": 2147483647,
    "uint64": 9223372036854775807,
}


def _indent(lines: Iterable[str], depth: int = 1) -> list[str]:
    return [INDENT * depth + line if line else line for line in lines]


@dataclass(frozen=True)
class TranslateFunction:
    """One generated function. ``body`` is None when only a stub can be emitted."""

    compound: NamedType
    signature: str
    body: tuple[str, ...] | None
    notes: tuple[Note, ...]

    @property
    def is_stub(self) -> bool:
        return self.body is None

    def render(self) -> str:
        if self.body is None:
            return (
                "// FIXME not enough information to safely convert. Remove this function or "
                "fill it out using the custom discriminators.\n"
                f"// {self.signature}\n"
            )
        lines = [f"{self.signature} {{", *_indent(self.body), "}"]
        return "\n".join(lines) + "\n"


class FieldAccess:
    """How a field is read from the HIDL value and written to the AIDL value."""

    def read(self, field: FieldDescriptor) -> str:
        raise NotImplementedError

    def write(
        self, backend: Backend, schema: MergedCompoundSchema, field: FieldDescriptor, value: str
    ) -> str:
        raise NotImplementedError

    def translate_named(
        self, backend: Backend, schema: MergedCompoundSchema, field: FieldDescriptor,
        named: NamedType,
    ) -> list[str]:
        raise NotImplementedError

    def fill_container(
        self, backend: Backend, schema: MergedCompoundSchema, field: FieldDescriptor,
        desc: TypeDescriptor, element_lines: list[str], value: str,
    ) -> list[str]:
        raise NotImplementedError


class StructAccess(FieldAccess):
    """Plain member access: ``in.a`` into ``out->a``."""

    def read(self, field: FieldDescriptor) -> str:
        return f"in.{field.access}"

    def write(
        self, backend: Backend, schema: MergedCompoundSchema, field: FieldDescriptor, value: str
    ) -> str:
        return backend.assign_field(field.name, value)

    def translate_named(
        self, backend: Backend, schema: MergedCompoundSchema, field: FieldDescriptor,
        named: NamedType,
    ) -> list[str]:
        return backend.translate_into_field(self.read(field), field.name)

    def fill_container(
        self, backend: Backend, schema: MergedCompoundSchema, field: FieldDescriptor,
        desc: TypeDescriptor, element_lines: list[str], value: str,
    ) -> list[str]:
        target = backend.field_ref(field.name)
        return backend.container(self.read(field), desc, element_lines, value, target)


class UnionAccess(FieldAccess):
    """Safe union access: ``in.a()`` read by tag, written through the union setter."""

    def read(self, field: FieldDescriptor) -> str:
        return f"in.{field.access}()"

    def write(
        self, backend: Backend, schema: MergedCompoundSchema, field: FieldDescriptor, value: str
    ) -> str:
        return backend.assign_union(schema.compound, field.name, value)

    def translate_named(
        self, backend: Backend, schema: MergedCompoundSchema, field: FieldDescriptor,
        named: NamedType,
    ) -> list[str]:
        return backend.translate_into_union(schema.compound, named, self.read(field), field.name)

    def fill_container(
        self, backend: Backend, schema: MergedCompoundSchema, field: FieldDescriptor,
        desc: TypeDescriptor, element_lines: list[str], value: str,
    ) -> list[str]:
        finish = backend.assign_union(schema.compound, field.name, backend.move(field.name))
        return backend.container(
            self.read(field), desc, element_lines, value, field.name, local=field.name,
            finish=finish,
        )


def scalar_guard(backend: Backend, desc: TypeDescriptor, expr: str) -> list[str]:
    """Runtime range check for HIDL scalars whose AIDL type is signed or narrower.

    Enums are not guarded, their values are asserted at compile time instead.
    """
    if desc.kind != TypeKind.SCALAR or desc.scalar is None:
        return []
    maximum = SIGNED_MAX.get(desc.scalar.name)
    if maximum is None:
        return []

    lines = [
        "// FIXME This requires conversion between signed and unsigned. Change this if it "
        "doesn't suit your needs."
    ]
    if desc.scalar.name == "int16":
        lines.append(f"if ({expr} < 0) {{")
    else:
        lines.append(f"if ({expr} > {backend.literal(maximum, desc.scalar)} || {expr} < 0) {{")
    lines.append(INDENT + backend.fail(expr))
    lines.append("}")
    return lines


class TranslationEmitter:
    """Generates translate functions for one backend.

    ``conversion_set`` holds every type that gets its own translate function
    in this run; fields referencing other named types go through the
    replaced-type registry.
    """

    def __init__(
        self,
        backend: Backend,
        conversion_set: Mapping[QualifiedName, NamedType],
        registry: ReplacedTypeRegistry | None = None,
        notes: Notes | None = None,
    ):
        self.backend = backend
        self.conversion_set = conversion_set
        self.registry = registry if registry is not None else ReplacedTypeRegistry.default()
        self.notes = notes if notes is not None else Notes()

    def emit(self, schema: MergedCompoundSchema) -> TranslateFunction:
        local = Notes()
        signature = self.backend.signature(schema.compound)

        if schema.style == CompoundStyle.UNION:
            local.add(
                NoteKind.UNSUPPORTED,
                f"Cannot translate union {schema.fq_name}: without a discriminator no field "
                "can be chosen safely. Fill out the translate function by hand.",
            )
            body = None
        elif schema.style == CompoundStyle.SAFE_UNION:
            body = self._safe_union_body(schema, local)
        else:
            body = self._struct_body(schema, local)

        self.notes.extend(local)
        return TranslateFunction(schema.compound, signature, body, tuple(local))

    def _struct_body(self, schema: MergedCompoundSchema, notes: Notes) -> tuple[str, ...]:
        access = StructAccess()
        lines = list(self.backend.prologue(schema.compound))
        for field in schema.fields:
            lines.extend(self._field(schema, field, access, notes))
        lines.append(self.backend.epilogue())
        return tuple(lines)

    def _safe_union_body(self, schema: MergedCompoundSchema, notes: Notes) -> tuple[str, ...]:
        access = UnionAccess()
        lines = list(self.backend.prologue(schema.compound))
        lines.append(self.backend.switch_open())
        for field in schema.fields:
            lines.append(INDENT + self.backend.case_label(schema.compound, field.name))
            lines.extend(_indent(self._field(schema, field, access, notes), 2))
            lines.append(INDENT * 2 + "break;")
        lines.extend(_indent(self.backend.default_case()))
        lines.append("}")
        lines.append(self.backend.epilogue())
        return tuple(lines)

    def _field(
        self,
        schema: MergedCompoundSchema,
        field: FieldDescriptor,
        access: FieldAccess,
        notes: Notes,
    ) -> list[str]:
        desc = classify(field.type)

        if desc.is_named:
            return self._named(schema, field, desc, access, notes)
        if desc.is_container:
            return self._container(schema, field, desc, access, notes)
        if desc.is_scalar_like or desc.kind == TypeKind.STRING:
            return self._simple(schema, field, desc, access)

        notes.add(
            NoteKind.UNSUPPORTED,
            f"An unhandled type was found in translation: {desc.label} "
            f"(field \"{field.name}\" of {schema.fq_name})",
        )
        return [f"#error FIXME Unhandled type: {desc.label}"]

    def _named(
        self,
        schema: MergedCompoundSchema,
        field: FieldDescriptor,
        desc: TypeDescriptor,
        access: FieldAccess,
        notes: Notes,
    ) -> list[str]:
        named = desc.named
        if desc.kind == TypeKind.NAMED_UNION and not desc.safe:
            notes.add(
                NoteKind.UNSUPPORTED,
                f"Field \"{field.name}\" of {schema.fq_name} is the union {named.fq_name}, "
                "which has no discriminator and cannot be translated.",
            )
            return [f"#error FIXME Cannot translate union without discriminator: {named.fq_name}"]

        if named.fq_name in self.conversion_set:
            return access.translate_named(self.backend, schema, field, named)

        replaced = self.registry.lookup(named.fq_name)
        if replaced is not None:
            return replaced.translate_field()

        notes.add(
            NoteKind.UNKNOWN_TYPE,
            f"An unknown named type was found in translation: {named.fq_name} "
            f"(field \"{field.name}\" of {schema.fq_name})",
        )
        return [f"#error FIXME Unknown type: {named.fq_name}"]

    def _container(
        self,
        schema: MergedCompoundSchema,
        field: FieldDescriptor,
        desc: TypeDescriptor,
        access: FieldAccess,
        notes: Notes,
    ) -> list[str]:
        element = desc.element
        if element.is_container:
            notes.add(
                NoteKind.UNSUPPORTED,
                f"Nested arrays and vectors are not supported for field \"{field.name}\" "
                f"of {schema.fq_name}.",
            )
            return [
                "#error Nested arrays and vectors are currently not supported. Needs "
                f"implementation for field: {field.name}"
            ]
        if not (element.is_scalar_like or element.kind == TypeKind.STRING):
            notes.add(
                NoteKind.UNSUPPORTED,
                f"Arrays of {element.label} are not supported for field \"{field.name}\" "
                f"of {schema.fq_name}.",
            )
            return [
                "#error Arrays of NamedTypes are not currently supported. Needs "
                f"implementation for field: {field.name}"
            ]

        element_expr = self.backend.element_expr(access.read(field), desc)
        element_lines = scalar_guard(self.backend, element, element_expr)
        element_lines += self.backend.value_comments(element)
        value = self.backend.convert_value(element_expr, element)
        return access.fill_container(self.backend, schema, field, desc, element_lines, value)

    def _simple(
        self,
        schema: MergedCompoundSchema,
        field: FieldDescriptor,
        desc: TypeDescriptor,
        access: FieldAccess,
    ) -> list[str]:
        source = access.read(field)
        lines = scalar_guard(self.backend, desc, source)
        lines += self.backend.value_comments(desc)
        value = self.backend.convert_value(source, desc)
        lines.append(access.write(self.backend, schema, field, value))
        return lines


def emit(
    schema: MergedCompoundSchema,
    variant: BackendVariant | str,
    *,
    conversion_set: Mapping[QualifiedName, NamedType] | None = None,
    registry: ReplacedTypeRegistry | None = None,
    notes: Notes | None = None,
) -> TranslateFunction:
    """Generate the translate function of one merged compound type.

    Without an explicit ``conversion_set`` only the type itself is considered
    convertible.
    """
    if conversion_set is None:
        conversion_set = {schema.fq_name: schema.compound}
    emitter = TranslationEmitter(get_backend(variant), conversion_set, registry, notes)
    return emitter.emit(schema)


def order_types(types: Iterable[NamedType]) -> list[NamedType]:
    """Group types by AIDL package, keeping discovery order inside each package."""
    return sorted(types, key=lambda t: canonical_package(t.fq_name))


def render_translation(
    backend: Backend,
    fq_name: QualifiedName,
    conversion_set: Mapping[QualifiedName, NamedType],
    schemas: Mapping[QualifiedName, MergedCompoundSchema],
    registry: ReplacedTypeRegistry | None = None,
    notes: Notes | None = None,
) -> dict[str, str]:
    """Render the translate header (if the backend has one) and source files."""
    emitter = TranslationEmitter(backend, conversion_set, registry, notes)
    types = order_types(conversion_set.values())
    functions = [emitter.emit(schemas[t.fq_name]) for t in types if t.fq_name in schemas]
    files: dict[str, str] = {}

    header = backend.header_file(fq_name)
    if header is not None:
        includes: set[str] = set()
        for named in types:
            includes.add(backend.canonical_include(named))
            includes.add(backend.legacy_include(named))
        files[f"include/{header}"] = env.get_template("translate.h.j2").render(
            includes=sorted(includes),
            declarations=[f.signature for f in functions if not f.is_stub],
        )

    enums = [t for t in types if isinstance(t, EnumType)]
    if backend.variant == BackendVariant.MANAGED:
        template = env.get_template("Translate.java.j2")
        rendered = template.render(
            package=canonical_package(fq_name),
            functions=[f.render() for f in functions if not f.is_stub],
        )
    else:
        template = env.get_template("translate.cpp.j2")
        rendered = template.render(
            header=header,
            enum_asserts=[
                [backend.enum_assert(enum, value.name) for value in enum.values_from_root()]
                for enum in enums
            ],
            functions=[f.render() for f in functions],
        )
    files[backend.source_file(fq_name)] = rendered
    return files
