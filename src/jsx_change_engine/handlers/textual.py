"""Text-level operations located by exact substring search.

These operations search the running text left by the previous operation, not a
tree. They may leave the text temporarily unparseable; only the final text of
the file is validated.
"""

from jsx_change_engine.core.locator import TargetLocator
from jsx_change_engine.core.operations import (
    Append,
    Delete,
    InsertAfter,
    InsertBefore,
    Operation,
    Replace,
)
from jsx_change_engine.handlers.base import BaseOperationHandler, EditContext, EditOutcome


def _preview(text: str, limit: int = 40) -> str:
    flat = " ".join(text.split())
    return flat if len(flat) <= limit else flat[: limit - 3] + "..."


class TextualHandler(BaseOperationHandler):
    """Apply InsertBefore, InsertAfter, Replace, Delete, and Append."""

    operation_types = (InsertBefore, InsertAfter, Replace, Delete, Append)

    def apply(self, context: EditContext, operation: Operation) -> EditOutcome:
        """Edit the first occurrence of the search text."""
        text = context.text
        if isinstance(operation, Append):
            return EditOutcome(
                text=self.append(text, operation.content), summary="Appended content"
            )

        assert isinstance(operation, InsertBefore | InsertAfter | Replace | Delete)
        index = TargetLocator.text(text, operation.search_for)
        end = index + len(operation.search_for)
        target = _preview(operation.search_for)

        if isinstance(operation, InsertBefore):
            content = operation.content
            if content and not content.endswith("\n"):
                content += "\n"
            new_text = text[:index] + content + text[index:]
            summary = f"Inserted before {target!r}"
        elif isinstance(operation, InsertAfter):
            content = operation.content
            if content and not content.startswith("\n"):
                content = "\n" + content
            new_text = text[:end] + content + text[end:]
            summary = f"Inserted after {target!r}"
        elif isinstance(operation, Replace):
            new_text = text[:index] + operation.replace_with + text[end:]
            summary = f"Replaced {target!r}"
        else:
            new_text = text[:index] + text[end:]
            summary = f"Deleted {target!r}"

        self.logger.debug(f"{operation.kind} at offset {index} in {context.path}")
        return EditOutcome(text=new_text, summary=summary)

    @staticmethod
    def append(text: str, content: str) -> str:
        """Append ``content``, keeping a newline between it and the existing text."""
        if text and not text.endswith("\n") and not content.startswith("\n"):
            text += "\n"
        return text + content
