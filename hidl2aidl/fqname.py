"""Qualified names and version tags for HIDL types."""

import os
from dataclasses import dataclass
from typing import Any

from lark import Lark
from lark.exceptions import LarkError
from lark.visitors import Transformer

from .errors import InvalidNameError

_g_parser: Lark | None = None


@dataclass(frozen=True, order=True)
class VersionTag:
    """A (major, minor) package version. Ordering is major first, then minor."""

    major: int
    minor: int

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}"

    @property
    def cpp_namespace(self) -> str:
        return f"V{self.major}_{self.minor}"

    def up_rev(self) -> "VersionTag":
        return VersionTag(self.major, self.minor + 1)

    def down_rev(self) -> "VersionTag":
        if self.minor == 0:
            raise ValueError(f"Cannot go below minor version 0 of {self}")
        return VersionTag(self.major, self.minor - 1)

    @classmethod
    def parse(cls, text: str) -> "VersionTag":
        major, _, minor = text.partition(".")
        if not major.isdigit() or not minor.isdigit():
            raise InvalidNameError(f"Invalid version: {text}")
        return cls(int(major), int(minor))


@dataclass(frozen=True)
class QualifiedName:
    """A package, version and optionally nested type name.

    ``android.hardware.foo@1.0::IBar.Baz`` has package ``android.hardware.foo``,
    version 1.0, scope ``("IBar",)`` and name ``Baz``. A package-only name has
    an empty ``name``.
    """

    package: str
    version: VersionTag
    name: str = ""
    scope: tuple[str, ...] = ()

    @property
    def names(self) -> tuple[str, ...]:
        """Enclosing scopes followed by the type name itself."""
        if not self.name:
            return ()
        return (*self.scope, self.name)

    @property
    def local_name(self) -> str:
        return ".".join(self.names)

    @property
    def is_fully_qualified(self) -> bool:
        return bool(self.name)

    def package_and_version(self) -> "QualifiedName":
        return QualifiedName(self.package, self.version)

    def with_version(self, version: VersionTag) -> "QualifiedName":
        return QualifiedName(self.package, version, self.name, self.scope)

    def up_rev(self) -> "QualifiedName":
        return self.with_version(self.version.up_rev())

    def down_rev(self) -> "QualifiedName":
        return self.with_version(self.version.down_rev())

    def nested(self, name: str) -> "QualifiedName":
        """Qualified name of a type declared inside this one."""
        return QualifiedName(self.package, self.version, name, self.names)

    def same_lineage(self, other: "QualifiedName") -> bool:
        """True if both name the same type, ignoring the version."""
        return self.package == other.package and self.names == other.names

    def __str__(self) -> str:
        text = f"{self.package}@{self.version}"
        if self.name:
            text += f"::{self.local_name}"
        return text


class _FqNameTransformer(Transformer):
    def package(self, args: list[Any]) -> str:
        return ".".join(str(arg) for arg in args)

    def version(self, args: list[Any]) -> VersionTag:
        return VersionTag(int(args[0]), int(args[1]))

    def type_path(self, args: list[Any]) -> list[str]:
        return [str(arg) for arg in args]

    def start(self, args: list[Any]) -> QualifiedName:
        package, version = args[0], args[1]
        if len(args) == 2:
            return QualifiedName(package, version)
        *scope, name = args[2]
        return QualifiedName(package, version, name, tuple(scope))


def _parser() -> Lark:
    global _g_parser

    if not _g_parser:
        with open(f"{os.path.dirname(__file__)}/fqname.lark", encoding="utf-8") as f:
            grammar = f.read()
        _g_parser = Lark(grammar, parser="lalr")

    return _g_parser


def parse_fqname(text: str) -> QualifiedName:
    """Parse ``PACKAGE@MAJOR.MINOR(::TYPE(.NESTED)*)?`` into a QualifiedName."""
    try:
        tree = _parser().parse(text)
    except LarkError as e:
        raise InvalidNameError(f"Invalid fully-qualified name: {text}") from e
    return _FqNameTransformer().transform(tree)
