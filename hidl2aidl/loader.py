"""Loading and resolving package releases from a schema directory.

A schema directory holds one JSON ``PackageRelease`` document per package
version, named ``<package>@<major>.<minor>.json``.
"""

import json
from pathlib import Path

from .classify import resolve_alias
from .errors import InvalidNameError, PackageNotFoundError, ParseFailureError
from .fqname import QualifiedName, parse_fqname
from .model import (
    ArrayType,
    CompoundStyle,
    CompoundType,
    EnumType,
    EnumValue,
    ExternalType,
    FieldDescriptor,
    Interface,
    NamedType,
    ScalarType,
    SpecialType,
    StringType,
    Type,
    TypeAlias,
    VectorType,
)
from .types import (
    COMPOUND_KINDS,
    NAMED_KINDS,
    SCALAR_TYPES,
    SPECIAL_TYPES,
    NamedTypeDef,
    PackageRelease,
    TypeRef,
)


class SchemaRepository:
    """Answers which package releases exist and loads them."""

    def __init__(self, root: str | Path):
        self.root = Path(root)
        self._releases: dict[QualifiedName, PackageRelease] = {}

    def release_path(self, fq_name: QualifiedName) -> Path:
        return self.root / f"{fq_name.package}@{fq_name.version}.json"

    def package_exists(self, fq_name: QualifiedName) -> bool:
        return self.release_path(fq_name.package_and_version()).is_file()

    def lowest_existing(self, fq_name: QualifiedName) -> QualifiedName:
        """Oldest minor version reachable by stepping down from ``fq_name``."""
        lowest = fq_name
        while lowest.version.minor != 0:
            if not self.package_exists(lowest.down_rev()):
                break
            lowest = lowest.down_rev()
        return lowest

    def highest_existing(self, fq_name: QualifiedName) -> QualifiedName:
        """Newest minor version reachable by stepping up from ``fq_name``."""
        highest = fq_name
        while self.package_exists(highest.up_rev()):
            highest = highest.up_rev()
        return highest

    def load(self, fq_name: QualifiedName) -> PackageRelease:
        key = fq_name.package_and_version()
        if key in self._releases:
            return self._releases[key]

        path = self.release_path(key)
        if not path.is_file():
            raise PackageNotFoundError(f"Could not get sources for: {key}")

        try:
            with open(path, encoding="utf-8") as f:
                release = PackageRelease.from_dict(json.load(f))
        except (OSError, ValueError, KeyError, TypeError) as e:
            raise ParseFailureError(f"Could not parse {key}: {e}") from e

        if release.package != key.package or release.version != str(key.version):
            raise ParseFailureError(
                f"{path.name} declares {release.package}@{release.version}, expected {key}"
            )

        self._releases[key] = release
        return release


class Resolver:
    """Builds model objects for releases and resolves references between them.

    Referenced packages that exist in the repository are loaded on demand;
    anything else resolves to an ExternalType.
    """

    def __init__(self, repository: SchemaRepository):
        self.repository = repository
        self.types: dict[QualifiedName, NamedType] = {}
        self.roots: dict[QualifiedName, list[NamedType]] = {}
        self._external: dict[QualifiedName, ExternalType] = {}
        # Releases loaded while resolving another one are checked once the outer load is done.
        self._loading = 0
        self._unchecked: list[NamedType] = []

    def load_release(self, fq_name: QualifiedName) -> list[NamedType]:
        """Top-level types of one package release, fully resolved."""
        key = fq_name.package_and_version()
        if key in self.roots:
            return self.roots[key]

        release = self.repository.load(key)
        pending: list[tuple[NamedType, NamedTypeDef]] = []
        roots = [self._declare(key, definition, None, pending) for definition in release.types]
        self.roots[key] = roots

        self._loading += 1
        try:
            for named, definition in pending:
                self._resolve(named, definition)
        finally:
            self._loading -= 1

        self._unchecked.extend(named for named, _ in pending)
        if not self._loading:
            unchecked, self._unchecked = self._unchecked, []
            for named in unchecked:
                _check_cycles(named)

        return roots

    def lookup(self, fq_name: QualifiedName) -> NamedType:
        if fq_name in self.types:
            return self.types[fq_name]

        key = fq_name.package_and_version()
        if key not in self.roots and self.repository.package_exists(key):
            self.load_release(key)
            if fq_name in self.types:
                return self.types[fq_name]

        if fq_name not in self._external:
            self._external[fq_name] = ExternalType(fq_name=fq_name)
        return self._external[fq_name]

    def _declare(
        self,
        fq_name: QualifiedName,
        definition: NamedTypeDef,
        parent: NamedType | None,
        pending: list[tuple[NamedType, NamedTypeDef]],
    ) -> NamedType:
        if definition.kind not in NAMED_KINDS:
            raise ParseFailureError(f"Unknown kind '{definition.kind}' for {definition.name}")

        if parent is None:
            qualified = QualifiedName(fq_name.package, fq_name.version, definition.name)
        else:
            qualified = parent.fq_name.nested(definition.name)

        if qualified in self.types:
            raise ParseFailureError(f"{qualified} is declared more than once")

        named: NamedType
        if definition.kind in COMPOUND_KINDS:
            named = CompoundType(
                fq_name=qualified,
                comment=definition.comment,
                parent=parent,
                style=CompoundStyle(definition.kind),
            )
        elif definition.kind == "enum":
            named = EnumType(
                fq_name=qualified,
                comment=definition.comment,
                parent=parent,
                storage=ScalarType("int32"),
                values=[
                    EnumValue(name=v.name, value=v.value, comment=v.comment)
                    for v in definition.values
                ],
            )
        elif definition.kind == "typedef":
            named = TypeAlias(
                fq_name=qualified,
                comment=definition.comment,
                parent=parent,
                aliased=StringType(),
            )
        else:
            named = Interface(fq_name=qualified, comment=definition.comment, parent=parent)

        self.types[qualified] = named
        pending.append((named, definition))
        named.sub_types = [
            self._declare(fq_name, sub, named, pending) for sub in definition.sub_types
        ]
        return named

    def _resolve(self, named: NamedType, definition: NamedTypeDef) -> None:
        if isinstance(named, CompoundType):
            named.fields = [
                FieldDescriptor(
                    name=f.name,
                    type=self._resolve_ref(f.type, named),
                    owner=named,
                    origin=named.version,
                    access=f.name,
                    comment=f.comment,
                )
                for f in definition.fields
            ]
        elif isinstance(named, EnumType):
            if definition.storage is None:
                raise ParseFailureError(f"Enum {named.fq_name} has no storage type")
            named.storage = self._resolve_ref(definition.storage, named)
            if not isinstance(named.storage, (ScalarType, EnumType)):
                raise ParseFailureError(f"Enum {named.fq_name} must be backed by a scalar or enum")
        elif isinstance(named, TypeAlias):
            if definition.aliased is None:
                raise ParseFailureError(f"Typedef {named.fq_name} has no aliased type")
            named.aliased = self._resolve_ref(definition.aliased, named)

    def _resolve_ref(self, ref: TypeRef, scope: NamedType) -> Type:
        if ref.kind == "scalar":
            if ref.scalar not in SCALAR_TYPES:
                raise ParseFailureError(f"Unknown scalar '{ref.scalar}' in {scope.fq_name}")
            return ScalarType(ref.scalar)
        if ref.kind == "string":
            return StringType()
        if ref.kind in ("vec", "array"):
            if ref.element is None:
                raise ParseFailureError(f"{ref.kind} without element type in {scope.fq_name}")
            element = self._resolve_ref(ref.element, scope)
            if ref.kind == "vec":
                return VectorType(element)
            if ref.size is None or ref.size <= 0:
                raise ParseFailureError(f"Array without a valid size in {scope.fq_name}")
            return ArrayType(element, ref.size)
        if ref.kind in SPECIAL_TYPES:
            return SpecialType(ref.kind)
        if ref.kind == "named":
            if not ref.ref:
                raise ParseFailureError(f"Named reference without a name in {scope.fq_name}")
            return self._resolve_named(ref.ref, scope)
        raise ParseFailureError(f"Unknown type kind '{ref.kind}' in {scope.fq_name}")

    def _resolve_named(self, ref: str, scope: NamedType) -> NamedType:
        if "@" in ref:
            try:
                return self.lookup(parse_fqname(ref))
            except InvalidNameError as e:
                raise ParseFailureError(f"Bad reference '{ref}' in {scope.fq_name}") from e

        # Relative names are searched from the innermost scope outwards.
        names = tuple(ref.split("."))
        current: NamedType | None = scope
        while current is not None:
            candidate = current.fq_name.nested(names[0])
            found = self._find(candidate, names[1:])
            if found is not None:
                return found
            current = current.parent

        base = scope.fq_name
        top = QualifiedName(base.package, base.version, names[0])
        found = self._find(top, names[1:])
        if found is not None:
            return found
        return self.lookup(QualifiedName(base.package, base.version, names[-1], names[:-1]))

    def _find(self, qualified: QualifiedName, rest: tuple[str, ...]) -> NamedType | None:
        for name in rest:
            qualified = qualified.nested(name)
        return self.types.get(qualified)


def _check_cycles(named: NamedType) -> None:
    try:
        if isinstance(named, TypeAlias):
            resolve_alias(named)
        elif isinstance(named, EnumType):
            named.scalar()
    except ValueError as e:
        raise ParseFailureError(str(e)) from e


def releases_between(
    repository: SchemaRepository, lowest: QualifiedName, highest: QualifiedName
) -> list[QualifiedName]:
    """Every existing release from ``lowest`` up to ``highest`` (inclusive)."""
    result: list[QualifiedName] = []
    version = lowest.package_and_version()
    while version.version <= highest.version:
        if repository.package_exists(version):
            result.append(version)
        version = version.up_rev()
    return result
