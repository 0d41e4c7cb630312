"""Conversion notes: every decision that needs a human to look at it."""

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from enum import StrEnum


class NoteKind(StrEnum):
    COLLISION = "collision"
    UNKNOWN_TYPE = "unknown_type"
    UNSUPPORTED = "unsupported"
    UNHANDLED_COMMENTS = "unhandled_comments"


@dataclass(frozen=True)
class Note:
    kind: NoteKind
    message: str


class Notes:
    """Append-only note sink. A note identical to an earlier one is kept once."""

    def __init__(self, notes: Iterable[Note] = ()):
        self._entries: list[Note] = []
        self._seen: set[Note] = set()
        self.extend(notes)

    def add(self, kind: NoteKind, message: str) -> Note:
        note = Note(kind, message)
        if note not in self._seen:
            self._seen.add(note)
            self._entries.append(note)
        return note

    def extend(self, notes: Iterable[Note]) -> None:
        for note in notes:
            self.add(note.kind, note.message)

    def of_kind(self, kind: NoteKind) -> list[Note]:
        return [note for note in self._entries if note.kind == kind]

    def __iter__(self) -> Iterator[Note]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def render(self, title: str) -> str:
        """The conversion log: a title line, one block per note, END OF LOG."""
        lines = [title]
        for note in self._entries:
            lines.append(note.message.rstrip("\n"))
        lines.append("END OF LOG")
        return "\n".join(lines) + "\n"
