"""HIDL types that are replaced by something else in AIDL."""

import json
from dataclasses import dataclass, field
from pathlib import Path

from dataclasses_json import DataClassJsonMixin, config

from .errors import InvalidNameError, ParseFailureError
from .fqname import QualifiedName, parse_fqname


@dataclass
class ReplacedTypeEntry(DataClassJsonMixin):
    """A legacy type with a hand-supplied AIDL counterpart.

    ``snippet`` holds the lines emitted in place of a field conversion; None
    means nothing is emitted for such fields.
    """

    legacy: str
    canonical: str
    import_name: str | None = field(default=None, metadata=config(field_name="import"))
    snippet: list[str] | None = None

    def translate_field(self) -> list[str]:
        return list(self.snippet or [])


DEFAULT_ENTRIES = (
    ReplacedTypeEntry(
        legacy="android.hidl.safe_union@1.0::Monostate",
        canonical="boolean",
        snippet=["// Nothing to translate for Monostate."],
    ),
)


class ReplacedTypeRegistry:
    """Lookup from a legacy qualified name to its replacement, if any."""

    def __init__(self, entries: tuple[ReplacedTypeEntry, ...] | list[ReplacedTypeEntry] = ()):
        self._entries: dict[QualifiedName, ReplacedTypeEntry] = {}
        for entry in entries:
            self.register(entry)

    @classmethod
    def default(cls) -> "ReplacedTypeRegistry":
        return cls(DEFAULT_ENTRIES)

    def register(self, entry: ReplacedTypeEntry) -> None:
        fq_name = parse_fqname(entry.legacy)
        if not fq_name.is_fully_qualified:
            raise InvalidNameError(f"Replaced type {entry.legacy} does not name a type")
        self._entries[fq_name] = entry

    def load(self, path: str | Path) -> None:
        """Add entries from a JSON list of ReplacedTypeEntry objects."""
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
            entries = [ReplacedTypeEntry.from_dict(item) for item in data]
        except (OSError, ValueError, KeyError, TypeError) as e:
            raise ParseFailureError(f"Could not read replaced types from {path}: {e}") from e
        for entry in entries:
            self.register(entry)

    def lookup(self, fq_name: QualifiedName) -> ReplacedTypeEntry | None:
        return self._entries.get(fq_name)

    def aidl_names(self) -> dict[str, str]:
        return {str(name): entry.canonical for name, entry in self._entries.items()}

    def __contains__(self, fq_name: QualifiedName) -> bool:
        return fq_name in self._entries

    def __len__(self) -> int:
        return len(self._entries)
