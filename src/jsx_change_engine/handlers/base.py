"""Base handler for operation catalog entries.

Every handler is a pure transformation from (current text, operation) to new
text. Handlers never mutate a tree: they compute byte-span edits against the
tree for the current text, apply them, and return the result. Multi-stage
handlers reparse between stages through ``EditContext.advance``.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import ClassVar

from jsx_change_engine.core.exceptions import StructuralConflict
from jsx_change_engine.core.locator import TargetLocator
from jsx_change_engine.core.models import Language
from jsx_change_engine.core.operations import Operation
from jsx_change_engine.parsing.edits import Edit, apply_edits
from jsx_change_engine.parsing.source_parser import SourceParser, SyntaxTree


@dataclass(slots=True)
class EditOutcome:
    """Result of one operation.

    Attributes:
        text: New content of the file.
        created_files: Additional files produced by the operation, path to content.
        warnings: Non-fatal notes, such as flagged name collisions.
        summary: Short description of what changed, for logs and CLI output.
    """

    text: str
    created_files: dict[str, str] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)
    summary: str = ""


class EditContext:
    """Current state of one file while an operation is applied."""

    def __init__(
        self,
        path: str,
        text: str,
        language: Language,
        parser: SourceParser,
        op_index: int = 0,
    ) -> None:
        self.path = path
        self.text = text
        self.language = language
        self.parser = parser
        self.op_index = op_index
        self._tree: SyntaxTree | None = None

    @property
    def tree(self) -> SyntaxTree:
        """Tree for the current text.

        Raises:
            StructuralConflict: If the running text does not parse. A preceding
                textual operation left the file in an invalid intermediate state.
        """
        if self._tree is None:
            tree = self.parser.parse(self.text, self.language, path=self.path, strict=False)
            error = tree.first_error()
            if error is not None:
                raise StructuralConflict(
                    f"Cannot apply a structural operation: current text does not parse "
                    f"({error.describe()} at {error.location})"
                )
            self._tree = tree
        return self._tree

    @property
    def locator(self) -> TargetLocator:
        """Locator bound to the current tree."""
        return TargetLocator(self.tree)

    def advance(self, text: str) -> "EditContext":
        """Context for the next stage of a multi-stage operation."""
        return EditContext(self.path, text, self.language, self.parser, self.op_index)

    def apply(self, edits: list[Edit]) -> str:
        """Apply edits computed against ``self.tree`` and return the new text."""
        return apply_edits(self.tree.source, edits)


class BaseOperationHandler(ABC):
    """Abstract base class for operation handlers."""

    operation_types: ClassVar[tuple[type[Operation], ...]] = ()

    def __init__(self) -> None:
        self.logger = logging.getLogger(type(self).__module__)

    def can_handle(self, operation: Operation) -> bool:
        """Determine whether this handler applies ``operation``."""
        return isinstance(operation, self.operation_types)

    @abstractmethod
    def apply(self, context: EditContext, operation: Operation) -> EditOutcome:
        """Apply ``operation`` to the file described by ``context``.

        Args:
            context: Current path, text, and lazily parsed tree.
            operation: The operation to apply; one of ``operation_types``.

        Returns:
            EditOutcome with the new text.

        Raises:
            PatternNotFound: If the operation's target cannot be located.
            StructuralConflict: If the target exists but the edit cannot be applied.
            InvalidOperationError: If the operation does not fit this file.
        """
