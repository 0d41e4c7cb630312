"""Resolved HIDL schema model."""

from dataclasses import dataclass, field
from enum import StrEnum

from .fqname import QualifiedName, VersionTag


@dataclass(frozen=True)
class ScalarType:
    kind: str

    def type_name(self) -> str:
        return self.kind


@dataclass(frozen=True)
class StringType:
    def type_name(self) -> str:
        return "string"


@dataclass(frozen=True)
class VectorType:
    element: "Type"

    def type_name(self) -> str:
        return f"vec<{self.element.type_name()}>"


@dataclass(frozen=True)
class ArrayType:
    element: "Type"
    size: int

    def type_name(self) -> str:
        return f"{self.element.type_name()}[{self.size}]"


@dataclass(frozen=True)
class SpecialType:
    """handle, memory, pointer and fmq: types with no conversion rule."""

    kind: str

    def type_name(self) -> str:
        return self.kind


class CompoundStyle(StrEnum):
    STRUCT = "struct"
    UNION = "union"
    SAFE_UNION = "safe_union"


@dataclass(eq=False, kw_only=True)
class NamedType:
    """Base for every declared type. Identity is by object; key maps by fq_name."""

    fq_name: QualifiedName
    comment: str | None = None
    parent: "NamedType | None" = None
    sub_types: list["NamedType"] = field(default_factory=list)

    keyword = "type"

    def type_name(self) -> str:
        return f"{self.keyword} {self.fq_name.local_name}"

    @property
    def name(self) -> str:
        return self.fq_name.name

    @property
    def version(self) -> VersionTag:
        return self.fq_name.version

    def enclosing_interface(self) -> "Interface | None":
        scope = self.parent
        while scope is not None:
            if isinstance(scope, Interface):
                return scope
            scope = scope.parent
        return None


@dataclass(eq=False, kw_only=True)
class CompoundType(NamedType):
    style: CompoundStyle
    fields: list["FieldDescriptor"] = field(default_factory=list)

    @property
    def keyword(self) -> str:  # type: ignore[override]
        return self.style.value


@dataclass(eq=False, kw_only=True)
class EnumValue:
    name: str
    value: str | None
    comment: str | None = None

    @property
    def is_auto_fill(self) -> bool:
        return self.value is None


@dataclass(eq=False, kw_only=True)
class EnumType(NamedType):
    """An enum. ``storage`` is a scalar or the parent enum it extends."""

    storage: "Type"
    values: list[EnumValue] = field(default_factory=list)

    keyword = "enum"

    @property
    def parent_enum(self) -> "EnumType | None":
        return self.storage if isinstance(self.storage, EnumType) else None

    def values_from_root(self) -> list[EnumValue]:
        """Values of the parent enum chain first, then this enum's own values."""
        chain: list[EnumType] = []
        current: EnumType | None = self
        while current is not None and current not in chain:
            chain.append(current)
            current = current.parent_enum
        return [value for enum in reversed(chain) for value in enum.values]

    def scalar(self) -> ScalarType:
        """The scalar at the bottom of the parent enum chain."""
        storage = self.storage
        seen: list[EnumType] = [self]
        while isinstance(storage, EnumType):
            if storage in seen:
                raise ValueError(f"Enum {self.fq_name} extends itself")
            seen.append(storage)
            storage = storage.storage
        if not isinstance(storage, ScalarType):
            raise ValueError(f"Enum {self.fq_name} is not backed by a scalar")
        return storage


@dataclass(eq=False, kw_only=True)
class TypeAlias(NamedType):
    aliased: "Type"

    keyword = "typedef"


@dataclass(eq=False, kw_only=True)
class Interface(NamedType):
    keyword = "interface"


@dataclass(eq=False, kw_only=True)
class ExternalType(NamedType):
    """A referenced type whose declaration is not available."""

    keyword = "type"


Type = ScalarType | StringType | VectorType | ArrayType | SpecialType | NamedType


@dataclass(frozen=True)
class FieldDescriptor:
    """A field as seen after merging.

    ``access`` is the path that reaches the field on the newest legacy
    instance, e.g. ``v1_0.inner`` for a field spliced in from 1.0 through the
    ``v1_0`` field of a 1.1 struct.
    """

    name: str
    type: Type
    owner: CompoundType
    origin: VersionTag
    access: str
    comment: str | None = None


@dataclass(frozen=True)
class MergedCompoundSchema:
    """One compound type with the fields of all of its reachable older versions."""

    compound: CompoundType
    fields: tuple[FieldDescriptor, ...]
    sub_types: tuple[NamedType, ...]

    @property
    def fq_name(self) -> QualifiedName:
        return self.compound.fq_name

    @property
    def style(self) -> CompoundStyle:
        return self.compound.style

    def field(self, name: str) -> FieldDescriptor | None:
        return next((f for f in self.fields if f.name == name), None)
