"""Schema documents handed over by the HIDL front-end.

One ``PackageRelease`` document describes a single package version. The
documents carry references as strings; ``loader`` resolves them into the
model used by the converter.
"""

from dataclasses import dataclass, field
from typing import Optional

from dataclasses_json import DataClassJsonMixin


@dataclass
class TypeRef(DataClassJsonMixin):
    """A declared type.

    kind is one of ``scalar``, ``string``, ``vec``, ``array``, ``named``,
    ``handle``, ``memory``, ``pointer`` or ``fmq``:
    - scalar: ``scalar`` holds the scalar name (``uint32``, ``double``...)
    - vec/array: ``element`` holds the element type, arrays also carry ``size``
    - named: ``ref`` holds ``pkg@M.m::Outer.Inner`` or a name relative to the
      declaring scope
    """

    kind: str
    scalar: str | None = None
    ref: str | None = None
    element: Optional["TypeRef"] = None
    size: int | None = None


@dataclass
class FieldDef(DataClassJsonMixin):
    """A field of a struct, union or safe_union."""

    name: str
    type: TypeRef
    comment: str | None = None


@dataclass
class EnumValueDef(DataClassJsonMixin):
    """An enumerator. ``value`` is None for auto-filled enumerators."""

    name: str
    value: str | None = None
    comment: str | None = None


@dataclass
class NamedTypeDef(DataClassJsonMixin):
    """A named type declaration.

    kind is one of ``struct``, ``union``, ``safe_union``, ``enum``,
    ``typedef`` or ``interface``. Interfaces are only scopes for nested types.
    """

    name: str
    kind: str
    fields: list[FieldDef] = field(default_factory=list)
    sub_types: list["NamedTypeDef"] = field(default_factory=list)
    storage: Optional[TypeRef] = None
    values: list[EnumValueDef] = field(default_factory=list)
    aliased: Optional[TypeRef] = None
    comment: str | None = None


@dataclass
class PackageRelease(DataClassJsonMixin):
    """Every type declared by one version of a package."""

    package: str
    version: str
    types: list[NamedTypeDef] = field(default_factory=list)
    unhandled_comments: list[str] = field(default_factory=list)


SCALAR_TYPES = frozenset(
    [
        "bool",
        "int8",
        "uint8",
        "int16",
        "uint16",
        "int32",
        "uint32",
        "int64",
        "uint64",
        "float",
        "double",
    ]
)

SPECIAL_TYPES = frozenset(["handle", "memory", "pointer", "fmq"])

COMPOUND_KINDS = frozenset(["struct", "union", "safe_union"])

NAMED_KINDS = COMPOUND_KINDS | {"enum", "typedef", "interface"}
