"""Merging a compound type with the older versions it references.

A HIDL minor version extends a struct by embedding the previous version as a
field, e.g. ``struct Outer { @1.0::Outer v1_0; int32_t a; }``. Merging walks
those self references and produces one field set with a single entry per
field name, the newest declaration winning.
"""

from collections.abc import Iterator
from dataclasses import replace

from .fqname import QualifiedName
from .model import CompoundType, FieldDescriptor, MergedCompoundSchema, NamedType
from .notes import NoteKind, Notes


def is_version_reference(compound: CompoundType, field: FieldDescriptor) -> bool:
    """True if ``field`` embeds another version of ``compound`` itself."""
    target = field.type
    return (
        isinstance(target, CompoundType)
        and target is not compound
        and target.fq_name.same_lineage(compound.fq_name)
    )


def merge(compound: CompoundType, notes: Notes | None = None) -> MergedCompoundSchema:
    """Merge ``compound`` and every older version reachable through self references.

    Fields keep the position of their first occurrence. When a name occurs
    again, the occurrence from the greater (major, minor) version replaces the
    recorded one; equal versions let the new occurrence win. Each collision is
    noted with both versions and both field types.
    """
    if notes is None:
        notes = Notes()

    fields: list[FieldDescriptor] = []
    sub_types: dict[QualifiedName, NamedType] = {}
    visited: set[QualifiedName] = set()

    # Explicit walk: each frame is (type, access prefix, remaining fields).
    stack: list[tuple[CompoundType, str, Iterator[FieldDescriptor]]] = []

    def enter(current: CompoundType, prefix: str) -> None:
        visited.add(current.fq_name)
        for sub in current.sub_types:
            sub_types.setdefault(sub.fq_name, sub)
        stack.append((current, prefix, iter(current.fields)))

    enter(compound, "")
    while stack:
        current, prefix, remaining = stack[-1]
        field = next(remaining, None)
        if field is None:
            stack.pop()
            continue

        target = field.type
        if isinstance(target, CompoundType) and is_version_reference(current, field):
            if target.fq_name in visited:
                notes.add(
                    NoteKind.UNSUPPORTED,
                    f"Version reference cycle: field \"{prefix}{field.name}\" of "
                    f"{current.fq_name} refers back to {target.fq_name}. Skipping it.",
                )
                continue
            enter(target, f"{prefix}{field.name}.")
            continue

        _record(fields, replace(field, access=prefix + field.name), current, notes)

    return MergedCompoundSchema(compound, tuple(fields), tuple(sub_types.values()))


def _record(
    fields: list[FieldDescriptor],
    field: FieldDescriptor,
    declared_in: CompoundType,
    notes: Notes,
) -> None:
    index = next((i for i, f in enumerate(fields) if f.name == field.name), None)
    if index is None:
        fields.append(field)
        return

    existing = fields[index]
    message = (
        f"Found conflicting field name \"{field.name}\" in different versions of "
        f"{declared_in.fq_name.local_name}. "
    )
    if field.origin >= existing.origin:
        fields[index] = field
        kept, discarded = field, existing
    else:
        kept, discarded = existing, field

    notes.add(
        NoteKind.COLLISION,
        message
        + f"Keeping {kept.type.type_name()} from {kept.origin} and discarding "
        + f"{discarded.type.type_name()} from {discarded.origin}.",
    )
