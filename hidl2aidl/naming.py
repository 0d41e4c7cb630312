"""Mapping of HIDL names and types onto their AIDL equivalents."""

from .classify import resolve_alias
from .fqname import QualifiedName
from .model import (
    ArrayType,
    EnumType,
    NamedType,
    ScalarType,
    SpecialType,
    StringType,
    Type,
    VectorType,
)

AIDL_SCALAR_TYPES = {
    "bool": "boolean",
    "int8": "byte",
    "uint8": "byte",
    "int16": "char",
    "uint16": "int",
    "int32": "int",
    "uint32": "int",
    "int64": "long",
    "uint64": "long",
    "float": "float",
    "double": "double",
}

NATIVE_HANDLE = "android.hardware.common.NativeHandle"


def canonical_package(fq_name: QualifiedName) -> str:
    """android.hardware.foo@1.x -> android.hardware.foo, @2.x -> android.hardware.foo2"""
    if fq_name.version.major == 1:
        return fq_name.package
    return f"{fq_name.package}{fq_name.version.major}"


def canonical_type_name(fq_name: QualifiedName) -> str:
    """android.hardware.foo@1.0::IBar.Baz -> IBarBaz"""
    return "".join(fq_name.names)


def canonical_fq_name(fq_name: QualifiedName) -> str:
    return f"{canonical_package(fq_name)}.{canonical_type_name(fq_name)}"


def canonical_package_path(fq_name: QualifiedName) -> str:
    """android.hardware.foo@2.x -> android/hardware/foo2"""
    return canonical_package(fq_name).replace(".", "/")


def legacy_package_path(fq_name: QualifiedName) -> str:
    return fq_name.package.replace(".", "/")


def aidl_type(t: Type, relative_to: QualifiedName, replaced: dict[str, str] | None = None) -> str:
    """Spell ``t`` in AIDL, from the point of view of a type in ``relative_to``.

    ``replaced`` maps legacy names to AIDL spellings for types that have no
    direct counterpart.
    """
    t = resolve_alias(t)

    if isinstance(t, ScalarType):
        return AIDL_SCALAR_TYPES[t.kind]
    if isinstance(t, StringType):
        return "String"
    if isinstance(t, (VectorType, ArrayType)):
        return f"{aidl_type(t.element, relative_to, replaced)}[]"
    if isinstance(t, SpecialType):
        if t.kind == "handle":
            return "NativeHandle"
        return f"/* FIXME: {t.kind} */ Object"
    if isinstance(t, NamedType):
        if replaced and str(t.fq_name) in replaced:
            return replaced[str(t.fq_name)]
        if canonical_package(t.fq_name) == canonical_package(relative_to):
            return canonical_type_name(t.fq_name)
        return canonical_fq_name(t.fq_name)
    raise TypeError(f"Cannot map {t!r} to AIDL")


def aidl_backing_type(enum: EnumType) -> str:
    return AIDL_SCALAR_TYPES[enum.scalar().kind]
