"""Byte-span text edits against a SyntaxTree's source."""

from collections.abc import Iterable
from dataclasses import dataclass

from jsx_change_engine.core.exceptions import StructuralConflict


@dataclass(frozen=True, slots=True)
class Edit:
    """Replace source bytes [start, end) with ``replacement``; start == end inserts."""

    start: int
    end: int
    replacement: str

    @classmethod
    def insert(cls, offset: int, text: str) -> "Edit":
        """Insertion at ``offset``."""
        return cls(offset, offset, text)

    @classmethod
    def delete(cls, start: int, end: int) -> "Edit":
        """Removal of [start, end)."""
        return cls(start, end, "")


def apply_edits(source: bytes, edits: Iterable[Edit]) -> str:
    """Apply non-overlapping edits and return the new text.

    Insertions at the same offset keep their given order.

    Raises:
        StructuralConflict: If two edits overlap.
    """
    ordered = sorted(edits, key=lambda edit: (edit.start, edit.end))
    pieces: list[bytes] = []
    cursor = 0
    for edit in ordered:
        if edit.start < cursor:
            raise StructuralConflict(
                f"Overlapping edits at bytes {edit.start}-{edit.end}; "
                "split the change into separate operations"
            )
        pieces.append(source[cursor : edit.start])
        pieces.append(edit.replacement.encode("utf-8"))
        cursor = edit.end
    pieces.append(source[cursor:])
    return b"".join(pieces).decode("utf-8")
