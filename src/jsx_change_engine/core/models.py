"""Data models for change-set requests and apply results.

A ChangeSet is submitted once, applied file by file, and answered with an
ApplyResult. Wire payloads use camelCase; the dataclasses here use snake_case
and convert at the boundary:

    >>> change_set = ChangeSet.from_dict({
    ...     "summary": "Add a counter",
    ...     "files": [{
    ...         "path": "src/App.tsx",
    ...         "action": "MODIFY",
    ...         "changes": [{"type": "AddState", "name": "count",
    ...                      "setter": "setCount", "initialValue": "0"}],
    ...     }],
    ... })
    >>> change_set.files[0].operations[0].kind
    'AddState'
"""

import uuid
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from pathlib import PurePosixPath
from typing import Any, TypeAlias

from jsx_change_engine.core.exceptions import ErrorKind, InvalidOperationError
from jsx_change_engine.core.operations import Operation, parse_operation

# Byte offsets [start, end) into a UTF-8 encoded source
Span: TypeAlias = tuple[int, int]


class FileAction(str, Enum):
    """What a FileChange does to its path."""

    CREATE = "CREATE"
    MODIFY = "MODIFY"
    DELETE = "DELETE"

    def __str__(self) -> str:
        """Return the wire value."""
        return self.value


class Language(Enum):
    """Grammar used to parse a file, chosen from its extension."""

    TSX = "tsx"
    TYPESCRIPT = "typescript"
    PLAINTEXT = "plaintext"

    @classmethod
    def for_path(cls, path: str) -> "Language":
        """Pick the grammar for ``path``.

        Examples:
            >>> Language.for_path("src/App.jsx")
            <Language.TSX: 'tsx'>
            >>> Language.for_path("styles.css")
            <Language.PLAINTEXT: 'plaintext'>
        """
        suffix = PurePosixPath(path).suffix.lower()
        if suffix in (".tsx", ".jsx", ".js", ".mjs", ".cjs"):
            return cls.TSX
        if suffix in (".ts", ".mts", ".cts"):
            return cls.TYPESCRIPT
        return cls.PLAINTEXT


@dataclass(frozen=True, slots=True)
class PayloadError:
    """A malformed operation payload found while reading a FileChange."""

    op_index: int
    message: str


@dataclass(frozen=True, slots=True)
class FileChange:
    """Ordered operations for one path.

    Attributes:
        path: Path of the file, relative to the caller's workspace.
        action: CREATE, MODIFY, or DELETE.
        operations: Operations applied strictly in order.
        content: Initial text for CREATE; ignored otherwise.
        payload_error: Set when an operation payload could not be parsed. The
            file then fails with InvalidOperation at that index.
    """

    path: str
    action: FileAction
    operations: tuple[Operation, ...] = ()
    content: str | None = None
    payload_error: PayloadError | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FileChange":
        """Read a wire FileChange, capturing malformed operations in ``payload_error``."""
        path = data.get("path")
        if not isinstance(path, str) or not path:
            raise InvalidOperationError("File change requires a non-empty 'path'")
        try:
            action = FileAction(str(data.get("action", "MODIFY")).upper())
        except ValueError as e:
            raise InvalidOperationError(
                f"Invalid action {data.get('action')!r} for {path}; "
                f"must be one of {[a.value for a in FileAction]}"
            ) from e

        raw_changes = data.get("changes", data.get("operations", []))
        if not isinstance(raw_changes, list):
            raise InvalidOperationError(f"'changes' for {path} must be a list")

        operations: list[Operation] = []
        payload_error = None
        for index, payload in enumerate(raw_changes):
            try:
                operations.append(parse_operation(payload))
            except InvalidOperationError as e:
                payload_error = PayloadError(op_index=index, message=e.message)
                break

        content = data.get("content")
        return cls(
            path=path,
            action=action,
            operations=tuple(operations),
            content=content if isinstance(content, str) else None,
            payload_error=payload_error,
        )


@dataclass(frozen=True, slots=True)
class ChangeSet:
    """A batch of per-file operation lists submitted as one logical change."""

    files: tuple[FileChange, ...]
    summary: str = ""
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ChangeSet":
        """Read a wire ChangeSet.

        Raises:
            InvalidOperationError: If the envelope itself is malformed. Malformed
                operations are reported per file instead.
        """
        if not isinstance(data, Mapping):
            raise InvalidOperationError("Change set must be a JSON object")
        files = data.get("files")
        if not isinstance(files, list):
            raise InvalidOperationError("Change set requires a 'files' list")
        kwargs: dict[str, Any] = {}
        if isinstance(data.get("id"), str) and data["id"]:
            kwargs["id"] = data["id"]
        return cls(
            files=tuple(FileChange.from_dict(item) for item in files),
            summary=str(data.get("summary", "")),
            **kwargs,
        )


@dataclass(frozen=True, slots=True)
class FileError:
    """A file-scoped failure; ``op_index`` is None for failures outside Applying."""

    file: str
    op_index: int | None
    kind: ErrorKind
    message: str

    def to_dict(self) -> dict[str, Any]:
        """Return the wire shape."""
        return {
            "file": self.file,
            "opIndex": self.op_index,
            "kind": str(self.kind),
            "message": self.message,
        }


@dataclass(frozen=True, slots=True)
class ApplyWarning:
    """Advisory note raised while applying, e.g. a flagged name collision."""

    file: str
    op_index: int | None
    message: str

    def to_dict(self) -> dict[str, Any]:
        """Return the wire shape."""
        return {"file": self.file, "opIndex": self.op_index, "message": self.message}


@dataclass(frozen=True, slots=True)
class ModifiedFile:
    """Published content for one path."""

    path: str
    content: str
    action: FileAction = FileAction.MODIFY

    def to_dict(self) -> dict[str, Any]:
        """Return the wire shape."""
        return {"path": self.path, "content": self.content, "action": str(self.action)}


@dataclass(frozen=True, slots=True)
class ExtractionSuggestion:
    """Advisory hint to factor a JSX block into its own component."""

    file_path: str
    message: str
    reason: str
    component_name: str
    line_start: int
    line_end: int
    complexity: str
    estimated_props: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        """Return the wire shape."""
        return {
            "filePath": self.file_path,
            "message": self.message,
            "reason": self.reason,
            "componentName": self.component_name,
            "lineStart": self.line_start,
            "lineEnd": self.line_end,
            "complexity": self.complexity,
            "estimatedProps": list(self.estimated_props),
        }


@dataclass(frozen=True, slots=True)
class ApplyResult:
    """Outcome of applying one ChangeSet.

    Attributes:
        success: True only when no FileChange failed.
        modified_files: Final content per path, in first-seen order.
        errors: One entry per failed FileChange.
        extraction_suggestions: Advisory only; never affects ``success``.
        warnings: Non-fatal notes such as flagged template name collisions.
        change_set_id: Id of the applied ChangeSet.
    """

    success: bool
    modified_files: list[ModifiedFile]
    errors: list[FileError]
    extraction_suggestions: list[ExtractionSuggestion] = field(default_factory=list)
    warnings: list[ApplyWarning] = field(default_factory=list)
    change_set_id: str | None = None

    def get_file(self, path: str) -> ModifiedFile | None:
        """Return the published entry for ``path``, if any."""
        return next((item for item in self.modified_files if item.path == path), None)

    def to_dict(self) -> dict[str, Any]:
        """Return the camelCase wire shape."""
        return {
            "success": self.success,
            "changeSetId": self.change_set_id,
            "modifiedFiles": [item.to_dict() for item in self.modified_files],
            "errors": [item.to_dict() for item in self.errors],
            "warnings": [item.to_dict() for item in self.warnings],
            "extractionSuggestions": [item.to_dict() for item in self.extraction_suggestions],
        }
