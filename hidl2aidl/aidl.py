"""AIDL definitions for HIDL named types."""

from dataclasses import dataclass

from jinja2 import Environment, PackageLoader

from .classify import resolve_alias
from .model import (
    ArrayType,
    CompoundStyle,
    CompoundType,
    EnumType,
    FieldDescriptor,
    MergedCompoundSchema,
    NamedType,
    ScalarType,
    SpecialType,
    StringType,
    Type,
    TypeAlias,
    VectorType,
)
from .naming import (
    NATIVE_HANDLE,
    aidl_backing_type,
    aidl_type,
    canonical_fq_name,
    canonical_package,
    canonical_package_path,
    canonical_type_name,
)
from .notes import NoteKind, Notes
from .replaced import ReplacedTypeRegistry

env = Environment(
    loader=PackageLoader("hidl2aidl", "templates"),
    trim_blocks=True,
    lstrip_blocks=True,
    keep_trailing_newline=True,
    line_comment_prefix="%%",
    line_statement_prefix="%",
)

template = env.get_template("type.aidl.j2")


@dataclass(frozen=True)
class AidlField:
    type: str
    name: str
    comment: str | None


def doc_comment(text: str | None) -> str | None:
    """Format free text as a ``/** */`` block."""
    if not text:
        return None
    lines = ["/**"] + [f" * {line}".rstrip() for line in text.strip().splitlines()] + [" */"]
    return "\n".join(lines)


def hidl_type_name(t: Type, relative_to: NamedType) -> str:
    """Spell ``t`` the way a .hal file would."""
    if isinstance(t, ScalarType):
        return t.kind if t.kind in ("bool", "float", "double") else f"{t.kind}_t"
    if isinstance(t, StringType):
        return "string"
    if isinstance(t, VectorType):
        return f"vec<{hidl_type_name(t.element, relative_to)}>"
    if isinstance(t, ArrayType):
        return f"{hidl_type_name(t.element, relative_to)}[{t.size}]"
    if isinstance(t, SpecialType):
        return t.kind
    if t.fq_name.package_and_version() == relative_to.fq_name.package_and_version():
        return t.fq_name.local_name
    return str(t.fq_name)


def hidl_definition(named: NamedType) -> list[str]:
    """The HIDL declaration of ``named`` (without nested types), one line per entry."""
    if isinstance(named, CompoundType):
        lines = [f"{named.style.value} {named.name} {{"]
        lines += [f"    {hidl_type_name(f.type, named)} {f.name};" for f in named.fields]
        return lines + ["};"]
    if isinstance(named, EnumType):
        lines = [f"enum {named.name} : {hidl_type_name(named.storage, named)} {{"]
        for value in named.values:
            suffix = "" if value.is_auto_fill else f" = {value.value}"
            lines.append(f"    {value.name}{suffix},")
        return lines + ["};"]
    if isinstance(named, TypeAlias):
        return [f"typedef {hidl_type_name(named.aliased, named)} {named.name};"]
    return [f"{named.keyword} {named.name};"]


def conversion_notes(named: NamedType) -> list[str]:
    lines = [f"// This is the HIDL definition of {named.fq_name}"]
    return lines + [f"// {line}" for line in hidl_definition(named)]


def aidl_file_path(named: NamedType) -> str:
    return f"{canonical_package_path(named.fq_name)}/{canonical_type_name(named.fq_name)}.aidl"


class AidlEmitter:
    """Renders AIDL definitions; unsupported constructs are reported to ``notes``."""

    def __init__(self, registry: ReplacedTypeRegistry | None = None, notes: Notes | None = None):
        self.registry = registry if registry is not None else ReplacedTypeRegistry.default()
        self.notes = notes if notes is not None else Notes()

    def render(self, named: NamedType, schema: MergedCompoundSchema | None = None) -> str:
        """Render the .aidl file for ``named``.

        Compound types need their merged schema; fields are emitted in merge order.
        """
        context: dict = {
            "package": canonical_package(named.fq_name),
            "name": canonical_type_name(named.fq_name),
            "comment": doc_comment(named.comment),
            "imports": [],
            "kind": "stub",
            "fields": [],
            "values": [],
            "backing": None,
            "trailer": [],
        }

        if isinstance(named, EnumType):
            context["kind"] = "enum"
            context["backing"] = aidl_backing_type(named)
            context["values"] = [
                {"name": v.name, "value": v.value, "comment": doc_comment(v.comment)}
                for v in named.values_from_root()
            ]
        elif isinstance(named, CompoundType):
            if schema is None:
                raise ValueError(f"{named.fq_name} needs a merged schema")
            if schema.style == CompoundStyle.UNION:
                context["trailer"] = [
                    "// Cannot convert unions since AIDL requires a discriminator. "
                    "Use a safe_union or a parcelable with explicit fields."
                ] + conversion_notes(named)
                self.notes.add(
                    NoteKind.UNSUPPORTED,
                    f"Union {named.fq_name} was emitted as an empty parcelable.",
                )
            else:
                safe = schema.style == CompoundStyle.SAFE_UNION
                context["kind"] = "union" if safe else "parcelable"
                context["fields"] = [self._field(f, named) for f in schema.fields]
                context["imports"] = self._imports(named, schema.fields)
        elif isinstance(named, TypeAlias):
            context["kind"] = "none"
            context["comment"] = None
            context["trailer"] = [
                f"// Cannot convert typedef {hidl_type_name(named.aliased, named)} "
                f"{named.fq_name} since AIDL does not support typedefs."
            ] + conversion_notes(named)
            self.notes.add(
                NoteKind.UNSUPPORTED,
                f"Typedef {named.fq_name} cannot be converted since AIDL does not support "
                "typedefs. References to it use the aliased type.",
            )
        else:
            context["trailer"] = [f"// FIXME: {named.type_name()} has no AIDL conversion."]
            self.notes.add(NoteKind.UNSUPPORTED, f"No AIDL conversion for {named.type_name()}")

        return template.render(**context)

    def _field(self, field: FieldDescriptor, owner: CompoundType) -> AidlField:
        base = resolve_alias(field.type)
        while isinstance(base, (VectorType, ArrayType)):
            base = resolve_alias(base.element)
        if isinstance(base, SpecialType) and base.kind != "handle":
            self.notes.add(
                NoteKind.UNSUPPORTED,
                f"Field \"{field.name}\" of {owner.fq_name} has type {base.kind}, "
                "which has no AIDL equivalent.",
            )
        return AidlField(
            type=aidl_type(field.type, owner.fq_name, self.registry.aidl_names()),
            name=field.name,
            comment=doc_comment(field.comment),
        )

    def _imports(self, owner: CompoundType, fields: tuple[FieldDescriptor, ...]) -> list[str]:
        imports: set[str] = set()
        package = canonical_package(owner.fq_name)
        for field in fields:
            base = resolve_alias(field.type)
            while isinstance(base, (VectorType, ArrayType)):
                base = resolve_alias(base.element)
            if isinstance(base, SpecialType) and base.kind == "handle":
                imports.add(NATIVE_HANDLE)
            elif isinstance(base, NamedType):
                replaced = self.registry.lookup(base.fq_name)
                if replaced is not None:
                    if replaced.import_name:
                        imports.add(replaced.import_name)
                elif canonical_package(base.fq_name) != package:
                    imports.add(canonical_fq_name(base.fq_name))
        return sorted(imports)
