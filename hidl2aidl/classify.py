"""Classification of declared HIDL types into conversion kinds."""

from dataclasses import dataclass
from enum import StrEnum

from .model import (
    ArrayType,
    CompoundStyle,
    CompoundType,
    EnumType,
    NamedType,
    ScalarType,
    SpecialType,
    StringType,
    Type,
    TypeAlias,
    VectorType,
)


class TypeKind(StrEnum):
    SCALAR = "scalar"
    ENUM = "enum"
    STRING = "string"
    SEQUENCE = "sequence"
    FIXED_ARRAY = "fixed_array"
    NAMED_RECORD = "named_record"
    NAMED_UNION = "named_union"
    UNSUPPORTED = "unsupported"


@dataclass(frozen=True)
class ScalarInfo:
    name: str
    signed: bool
    bits: int
    floating: bool = False


SCALARS: dict[str, ScalarInfo] = {
    "bool": ScalarInfo("bool", False, 1),
    "int8": ScalarInfo("int8", True, 8),
    "uint8": ScalarInfo("uint8", False, 8),
    "int16": ScalarInfo("int16", True, 16),
    "uint16": ScalarInfo("uint16", False, 16),
    "int32": ScalarInfo("int32", True, 32),
    "uint32": ScalarInfo("uint32", False, 32),
    "int64": ScalarInfo("int64", True, 64),
    "uint64": ScalarInfo("uint64", False, 64),
    "float": ScalarInfo("float", True, 32, floating=True),
    "double": ScalarInfo("double", True, 64, floating=True),
}


@dataclass(frozen=True)
class TypeDescriptor:
    """The conversion-relevant shape of a type.

    - SCALAR/ENUM: ``scalar`` is the (backing) scalar
    - SEQUENCE/FIXED_ARRAY: ``element`` is the classified element, arrays set ``length``
    - NAMED_RECORD/NAMED_UNION: ``named`` is the referenced type; ``safe`` marks safe unions
    - ENUM also sets ``named`` to the enum type
    - UNSUPPORTED: ``label`` names what was found
    """

    kind: TypeKind
    scalar: ScalarInfo | None = None
    element: "TypeDescriptor | None" = None
    length: int | None = None
    named: NamedType | None = None
    safe: bool = False
    label: str = ""

    @property
    def is_scalar_like(self) -> bool:
        return self.kind in (TypeKind.SCALAR, TypeKind.ENUM)

    @property
    def is_container(self) -> bool:
        return self.kind in (TypeKind.SEQUENCE, TypeKind.FIXED_ARRAY)

    @property
    def is_named(self) -> bool:
        return self.kind in (TypeKind.NAMED_RECORD, TypeKind.NAMED_UNION)


def resolve_alias(t: Type) -> Type:
    """Follow typedefs to the type they stand for."""
    seen: list[TypeAlias] = []
    while isinstance(t, TypeAlias):
        if t in seen:
            raise ValueError(f"Typedef cycle through {t.fq_name}")
        seen.append(t)
        t = t.aliased
    return t


def classify(t: Type) -> TypeDescriptor:
    """Classify a declared type. Typedefs are resolved transparently."""
    t = resolve_alias(t)

    if isinstance(t, ScalarType):
        return TypeDescriptor(TypeKind.SCALAR, scalar=SCALARS[t.kind], label=t.kind)

    if isinstance(t, EnumType):
        backing = t.scalar()
        return TypeDescriptor(
            TypeKind.ENUM, scalar=SCALARS[backing.kind], named=t, label=t.type_name()
        )

    if isinstance(t, StringType):
        return TypeDescriptor(TypeKind.STRING, label="string")

    if isinstance(t, VectorType):
        return TypeDescriptor(TypeKind.SEQUENCE, element=classify(t.element), label=t.type_name())

    if isinstance(t, ArrayType):
        return TypeDescriptor(
            TypeKind.FIXED_ARRAY,
            element=classify(t.element),
            length=t.size,
            label=t.type_name(),
        )

    if isinstance(t, CompoundType) and t.style != CompoundStyle.STRUCT:
        return TypeDescriptor(
            TypeKind.NAMED_UNION,
            named=t,
            safe=t.style == CompoundStyle.SAFE_UNION,
            label=t.type_name(),
        )

    if isinstance(t, NamedType):
        return TypeDescriptor(TypeKind.NAMED_RECORD, named=t, label=t.type_name())

    if isinstance(t, SpecialType):
        return TypeDescriptor(TypeKind.UNSUPPORTED, label=t.kind)

    raise TypeError(f"Cannot classify {t!r}")
