"""One package-conversion run.

A run loads every minor release of the requested package, keeps the newest
declaration of each type, and renders the AIDL definitions, the translate
sources for all three backends and the conversion log into memory. Nothing
touches the disk until ``ConversionResult.write`` is called.
"""

from dataclasses import dataclass
from pathlib import Path

from .aidl import AidlEmitter, aidl_file_path
from .backends import BackendVariant, get_backend
from .errors import InvalidNameError, NewerVersionError, PackageNotFoundError
from .fqname import QualifiedName, parse_fqname
from .loader import Resolver, SchemaRepository, releases_between
from .merge import merge
from .model import CompoundType, EnumType, Interface, MergedCompoundSchema, NamedType
from .naming import canonical_package
from .notes import NoteKind, Notes
from .replaced import ReplacedTypeRegistry
from .translate import render_translation

LOG_FILE = "conversion.log"

# Header and source order in the output, matching the order backends are run.
VARIANTS = (BackendVariant.NDK, BackendVariant.NATIVE, BackendVariant.MANAGED)


@dataclass
class ConversionResult:
    fq_name: QualifiedName
    files: dict[str, str]
    notes: Notes
    schemas: dict[QualifiedName, MergedCompoundSchema]
    types: list[NamedType]

    def write(self, output_dir: str | Path) -> list[Path]:
        """Write every file below ``output_dir``, creating directories as needed."""
        written = []
        for relative, text in self.files.items():
            path = Path(output_dir) / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(text, encoding="utf-8")
            written.append(path)
        return written


def _lineage(named: NamedType) -> tuple:
    fq_name = named.fq_name
    return (fq_name.package, fq_name.version.major, fq_name.names)


def check_request(repository: SchemaRepository, name: str, force: bool = False) -> QualifiedName:
    """Validate the requested package name, raising FatalInputError subclasses."""
    fq_name = parse_fqname(name)
    if fq_name.is_fully_qualified:
        raise InvalidNameError(
            "hidl2aidl only supports converting an entire package, "
            f"try converting {fq_name.package_and_version()} instead"
        )

    if not repository.package_exists(fq_name):
        raise PackageNotFoundError(f"Could not get sources for: {fq_name}")

    if not force:
        highest = repository.highest_existing(fq_name)
        if highest != fq_name:
            raise NewerVersionError(
                f"Found {highest} while converting {fq_name}. Only the latest minor version "
                "should be converted, use --force to convert an older one."
            )

    return fq_name


def collect_types(resolver: Resolver, releases: list[QualifiedName]) -> list[NamedType]:
    """Newest declaration of every type reachable from ``releases``.

    Top-level types, their nested types and the nested types of older
    versions spliced in by merging are all considered; of each lineage only
    the newest version is kept, in first-seen order. Interfaces are scopes and
    are not returned themselves.
    """
    chosen: dict[tuple, NamedType] = {}
    seen: set[QualifiedName] = set()
    stack: list[NamedType] = []
    for release in releases:
        stack.extend(reversed(resolver.load_release(release)))
        while stack:
            named = stack.pop()
            if named.fq_name in seen:
                continue
            seen.add(named.fq_name)

            key = _lineage(named)
            current = chosen.get(key)
            if current is None or current.version <= named.version:
                chosen[key] = named

            nested = list(named.sub_types)
            if isinstance(named, CompoundType):
                nested += [t for t in merge(named, Notes()).sub_types if t not in nested]
            stack.extend(reversed(nested))

    return [t for t in chosen.values() if not isinstance(t, Interface)]


def convert_package(
    repository: SchemaRepository,
    name: str,
    *,
    force: bool = False,
    registry: ReplacedTypeRegistry | None = None,
) -> ConversionResult:
    """Convert the package ``name`` (``pkg@M.m``) found in ``repository``.

    Raises a FatalInputError subclass if the package cannot be converted at
    all; every other problem is recorded in the result's notes.
    """
    registry = registry if registry is not None else ReplacedTypeRegistry.default()
    fq_name = check_request(repository, name, force)

    notes = Notes()
    resolver = Resolver(repository)
    releases = releases_between(repository, repository.lowest_existing(fq_name), fq_name)
    for release in releases:
        for comment in repository.load(release).unhandled_comments:
            notes.add(NoteKind.UNHANDLED_COMMENTS, comment)

    types = collect_types(resolver, releases)
    schemas = {t.fq_name: merge(t, notes) for t in types if isinstance(t, CompoundType)}

    files: dict[str, str] = {}
    aidl = AidlEmitter(registry, notes)
    for named in types:
        files[aidl_file_path(named)] = aidl.render(named, schemas.get(named.fq_name))

    conversion_set = {t.fq_name: t for t in types if isinstance(t, (CompoundType, EnumType))}
    for variant in VARIANTS:
        files.update(
            render_translation(
                get_backend(variant), fq_name, conversion_set, schemas, registry, notes
            )
        )

    files[LOG_FILE] = notes.render(
        f"Notes relating to hidl2aidl conversion of {fq_name} to "
        f"{canonical_package(fq_name)} (if any) follow:"
    )
    return ConversionResult(fq_name, files, notes, schemas, types)
