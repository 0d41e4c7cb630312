"""Spelling rules of the AIDL backends the translation code is generated for.

Each backend is a strategy chosen once per emission pass; the translation
emitter asks it how to name types and how to write statements.
"""

from enum import StrEnum

from .classify import ScalarInfo, TypeDescriptor, TypeKind
from .fqname import QualifiedName
from .model import NamedType
from .naming import (
    AIDL_SCALAR_TYPES,
    canonical_package,
    canonical_package_path,
    canonical_type_name,
    legacy_package_path,
)


class BackendVariant(StrEnum):
    NATIVE = "cpp"
    NDK = "ndk"
    MANAGED = "java"


CPP_SCALAR_TYPES = {
    "boolean": "bool",
    "byte": "int8_t",
    "char": "char16_t",
    "int": "int32_t",
    "long": "int64_t",
    "float": "float",
    "double": "double",
}


def capitalize(name: str) -> str:
    return name[:1].upper() + name[1:]


class Backend:
    """Base class for backend spelling rules."""

    variant: BackendVariant

    def canonical_type(self, named: NamedType) -> str:
        raise NotImplementedError

    def legacy_type(self, named: NamedType) -> str:
        raise NotImplementedError

    def signature(self, named: NamedType) -> str:
        raise NotImplementedError

    def header_file(self, fq_name: QualifiedName) -> str | None:
        return None

    def source_file(self, fq_name: QualifiedName) -> str:
        raise NotImplementedError

    def canonical_include(self, named: NamedType) -> str:
        raise NotImplementedError

    def legacy_include(self, named: NamedType) -> str:
        raise NotImplementedError

    def enum_assert(self, named: NamedType, value_name: str) -> str:
        raise NotImplementedError

    def literal(self, value: int, scalar: ScalarInfo) -> str:
        affix = "L" if scalar.name == "uint64" else ""
        return f"{value}{affix}"

    def fail(self, label: str) -> str:
        raise NotImplementedError

    def prologue(self, named: NamedType) -> list[str]:
        return []

    def epilogue(self) -> str:
        raise NotImplementedError

    def switch_open(self) -> str:
        return "switch (in.getDiscriminator()) {"

    def case_label(self, union: NamedType, field_name: str) -> str:
        raise NotImplementedError

    def default_case(self) -> list[str]:
        raise NotImplementedError

    def value_comments(self, desc: TypeDescriptor) -> list[str]:
        return []

    def convert_value(self, expr: str, desc: TypeDescriptor) -> str:
        return expr

    def element_type(self, desc: TypeDescriptor) -> str:
        raise NotImplementedError

    def field_ref(self, name: str) -> str:
        raise NotImplementedError

    def move(self, expr: str) -> str:
        return expr

    def assign_field(self, name: str, value: str) -> str:
        return f"{self.field_ref(name)} = {value};"

    def assign_union(self, union: NamedType, name: str, value: str) -> str:
        raise NotImplementedError

    def translate_into_field(self, source: str, name: str) -> list[str]:
        raise NotImplementedError

    def translate_into_union(
        self, union: NamedType, named: NamedType, source: str, name: str
    ) -> list[str]:
        raise NotImplementedError

    def element_expr(self, source: str, desc: TypeDescriptor) -> str:
        raise NotImplementedError

    def container(
        self,
        source: str,
        desc: TypeDescriptor,
        element_lines: list[str],
        value: str,
        target: str,
        local: str | None = None,
        finish: str | None = None,
    ) -> list[str]:
        raise NotImplementedError


class CppBackend(Backend):
    """libbinder C++ backend."""

    variant = BackendVariant.NATIVE
    type_prefix = ""
    include_prefix = ""
    string_type = "::android::String16"

    def canonical_type(self, named: NamedType) -> str:
        parts = canonical_package(named.fq_name).split(".")
        return self.type_prefix + "::".join(parts) + "::" + canonical_type_name(named.fq_name)

    def legacy_type(self, named: NamedType) -> str:
        fq_name = named.fq_name
        parts = [*fq_name.package.split("."), fq_name.version.cpp_namespace, *fq_name.names]
        return "::" + "::".join(parts)

    def signature(self, named: NamedType) -> str:
        return (
            "__attribute__((warn_unused_result)) bool translate(const "
            f"{self.legacy_type(named)}& in, {self.canonical_type(named)}* out)"
        )

    def header_file(self, fq_name: QualifiedName) -> str | None:
        return f"{canonical_package_path(fq_name)}/translate-{self.variant.value}.h"

    def source_file(self, fq_name: QualifiedName) -> str:
        return f"{canonical_package_path(fq_name)}/translate-{self.variant.value}.cpp"

    def canonical_include(self, named: NamedType) -> str:
        return (
            f'#include "{self.include_prefix}{canonical_package_path(named.fq_name)}/'
            f'{canonical_type_name(named.fq_name)}.h"'
        )

    def legacy_include(self, named: NamedType) -> str:
        fq_name = named.fq_name
        interface = named.enclosing_interface()
        header = f"{interface.name}.h" if interface else "types.h"
        return f'#include "{legacy_package_path(fq_name)}/{fq_name.version}/{header}"'

    def enum_assert(self, named: NamedType, value_name: str) -> str:
        canonical = self.canonical_type(named)
        return (
            f"static_assert({canonical}::{value_name} == "
            f"static_cast<{canonical}>({self.legacy_type(named)}::{value_name}));"
        )

    def fail(self, label: str) -> str:
        return "return false;"

    def epilogue(self) -> str:
        return "return true;"

    def case_label(self, union: NamedType, field_name: str) -> str:
        return f"case {self.legacy_type(union)}::hidl_discriminator::{field_name}:"

    def default_case(self) -> list[str]:
        return ["default:", "    return false;"]

    def wrap_string(self, expr: str) -> str:
        return f"String16({expr}.c_str())"

    def value_comments(self, desc: TypeDescriptor) -> list[str]:
        if desc.kind == TypeKind.STRING:
            return ["// FIXME: a hidl_string that is not valid UTF-8 becomes an empty String16."]
        return []

    def convert_value(self, expr: str, desc: TypeDescriptor) -> str:
        if desc.kind == TypeKind.STRING:
            return self.wrap_string(expr)
        if desc.kind == TypeKind.ENUM and desc.named is not None:
            return f"static_cast<{self.canonical_type(desc.named)}>({expr})"
        if desc.kind == TypeKind.SCALAR and desc.scalar is not None:
            cpp_type = CPP_SCALAR_TYPES[AIDL_SCALAR_TYPES[desc.scalar.name]]
            return f"static_cast<{cpp_type}>({expr})"
        return expr

    def element_type(self, desc: TypeDescriptor) -> str:
        if desc.kind == TypeKind.STRING:
            return self.string_type
        if desc.kind == TypeKind.ENUM and desc.named is not None:
            return self.canonical_type(desc.named)
        if desc.scalar is not None:
            return CPP_SCALAR_TYPES[AIDL_SCALAR_TYPES[desc.scalar.name]]
        raise ValueError(f"No element type for {desc.label}")

    def field_ref(self, name: str) -> str:
        return f"out->{name}"

    def move(self, expr: str) -> str:
        return f"std::move({expr})"

    def assign_union(self, union: NamedType, name: str, value: str) -> str:
        return f"out->set<{self.canonical_type(union)}::{name}>({value});"

    def translate_into_field(self, source: str, name: str) -> list[str]:
        return [f"if (!translate({source}, &out->{name})) return false;"]

    def translate_into_union(
        self, union: NamedType, named: NamedType, source: str, name: str
    ) -> list[str]:
        return [
            "{",
            f"    {self.canonical_type(named)} {name};",
            f"    if (!translate({source}, &{name})) return false;",
            f"    {self.assign_union(union, name, self.move(name))}",
            "}",
        ]

    def element_expr(self, source: str, desc: TypeDescriptor) -> str:
        return f"{source}[i]"

    def container(
        self,
        source: str,
        desc: TypeDescriptor,
        element_lines: list[str],
        value: str,
        target: str,
        local: str | None = None,
        finish: str | None = None,
    ) -> list[str]:
        if desc.kind == TypeKind.FIXED_ARRAY:
            size = f"sizeof({source})/sizeof({source}[0])"
        else:
            size = f"{source}.size()"
        if desc.element is None:
            raise ValueError(f"{desc.label} has no element type")
        lines = ["{"]
        if local is not None:
            lines.append(f"    std::vector<{self.element_type(desc.element)}> {local};")
        lines.append(f"    size_t size = {size};")
        lines.append("    for (size_t i = 0; i < size; i++) {")
        lines.extend("        " + line for line in element_lines)
        lines.append(f"        {target}.push_back({value});")
        lines.append("    }")
        if finish is not None:
            lines.append(f"    {finish}")
        lines.append("}")
        return lines


class NdkBackend(CppBackend):
    """Android NDK backend: types live under ``aidl::`` and strings stay std::string."""

    variant = BackendVariant.NDK
    type_prefix = "aidl::"
    include_prefix = "aidl/"
    string_type = "std::string"

    def wrap_string(self, expr: str) -> str:
        return expr

    def value_comments(self, desc: TypeDescriptor) -> list[str]:
        return []


class JavaBackend(Backend):
    """Java backend. It has no header artifact and reports failure by throwing."""

    variant = BackendVariant.MANAGED

    def canonical_type(self, named: NamedType) -> str:
        return f"{canonical_package(named.fq_name)}.{canonical_type_name(named.fq_name)}"

    def legacy_type(self, named: NamedType) -> str:
        fq_name = named.fq_name
        return ".".join([fq_name.package, fq_name.version.cpp_namespace, *fq_name.names])

    def signature(self, named: NamedType) -> str:
        return (
            f"static public {self.canonical_type(named)} h2aTranslate("
            f"{self.legacy_type(named)} in)"
        )

    def source_file(self, fq_name: QualifiedName) -> str:
        return f"{canonical_package_path(fq_name)}/Translate.java"

    def fail(self, label: str) -> str:
        return (
            'throw new RuntimeException("Unsafe conversion between signed and unsigned '
            f'scalars for field: {label}");'
        )

    def prologue(self, named: NamedType) -> list[str]:
        canonical = self.canonical_type(named)
        return [f"{canonical} out = new {canonical}();"]

    def epilogue(self) -> str:
        return "return out;"

    def case_label(self, union: NamedType, field_name: str) -> str:
        return f"case {self.legacy_type(union)}.hidl_discriminator.{field_name}:"

    def default_case(self) -> list[str]:
        return [
            "default:",
            '    throw new RuntimeException("Unknown discriminator value: " + '
            "Integer.toString(in.getDiscriminator()));",
        ]

    def convert_value(self, expr: str, desc: TypeDescriptor) -> str:
        if desc.scalar is None:
            return expr
        # HIDL Java carries 16-bit integers as short.
        if desc.scalar.name == "int16":
            return f"(char) {expr}"
        if desc.scalar.name == "uint16":
            return f"Short.toUnsignedInt({expr})"
        return expr

    def element_type(self, desc: TypeDescriptor) -> str:
        if desc.kind == TypeKind.STRING:
            return "String"
        if desc.scalar is not None:
            return AIDL_SCALAR_TYPES[desc.scalar.name]
        raise ValueError(f"No element type for {desc.label}")

    def field_ref(self, name: str) -> str:
        return f"out.{name}"

    def assign_union(self, union: NamedType, name: str, value: str) -> str:
        return f"out.set{capitalize(name)}({value});"

    def translate_into_field(self, source: str, name: str) -> list[str]:
        return [f"out.{name} = h2aTranslate({source});"]

    def translate_into_union(
        self, union: NamedType, named: NamedType, source: str, name: str
    ) -> list[str]:
        return [self.assign_union(union, name, f"h2aTranslate({source})")]

    def element_expr(self, source: str, desc: TypeDescriptor) -> str:
        if desc.kind == TypeKind.FIXED_ARRAY:
            return f"{source}[i]"
        element = desc.element
        # Boxed Short cannot be cast to char directly.
        if (
            element is not None
            and element.kind == TypeKind.SCALAR
            and element.scalar is not None
            and element.scalar.name == "int16"
        ):
            return f"{source}.get(i).shortValue()"
        return f"{source}.get(i)"

    def container(
        self,
        source: str,
        desc: TypeDescriptor,
        element_lines: list[str],
        value: str,
        target: str,
        local: str | None = None,
        finish: str | None = None,
    ) -> list[str]:
        size = f"{source}.length" if desc.kind == TypeKind.FIXED_ARRAY else f"{source}.size()"
        if desc.element is None:
            raise ValueError(f"{desc.label} has no element type")
        element_type = self.element_type(desc.element)
        declaration = f"{element_type}[] {local}" if local is not None else target
        lines = [f"if ({source} != null) {{"]
        lines.append(f"    {declaration} = new {element_type}[{size}];")
        lines.append(f"    for (int i = 0; i < {size}; i++) {{")
        lines.extend("        " + line for line in element_lines)
        lines.append(f"        {target}[i] = {value};")
        lines.append("    }")
        if finish is not None:
            lines.append(f"    {finish}")
        lines.append("}")
        return lines


BACKENDS: dict[BackendVariant, Backend] = {
    BackendVariant.NDK: NdkBackend(),
    BackendVariant.NATIVE: CppBackend(),
    BackendVariant.MANAGED: JavaBackend(),
}


def get_backend(variant: BackendVariant | str) -> Backend:
    return BACKENDS[BackendVariant(variant)]

