"""Per-file apply pipeline.

One FileChange moves through ``Pending -> Parsing -> Applying(opIndex) ->
Validating -> Applied | Failed(kind)``. Operations run strictly in order, each
on the text produced by the previous one. The pipeline never writes anything:
on failure the caller keeps the original content, on success it publishes the
returned text.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum

from jsx_change_engine.core.exceptions import (
    EngineError,
    ErrorKind,
    MissingFileError,
    PostconditionViolated,
    StructuralConflict,
)
from jsx_change_engine.core.models import (
    ApplyWarning,
    FileAction,
    FileChange,
    FileError,
    Language,
)
from jsx_change_engine.handlers.base import EditContext
from jsx_change_engine.handlers.registry import OperationCatalog
from jsx_change_engine.parsing.source_parser import SourceParser


class PipelineState(str, Enum):
    """States of one file's apply pass."""

    PENDING = "Pending"
    PARSING = "Parsing"
    APPLYING = "Applying"
    VALIDATING = "Validating"
    APPLIED = "Applied"
    FAILED = "Failed"


@dataclass(slots=True)
class FileOutcome:
    """Result of running one FileChange through the pipeline.

    Attributes:
        path: Path of the FileChange.
        action: Requested action.
        state: APPLIED or FAILED.
        content: New content when applied; None for DELETE or on failure.
        error: The failure when FAILED.
        created_files: Files produced by operations such as ExtractComponent.
        warnings: Non-fatal notes from operations.
        summaries: One line per applied operation.
    """

    path: str
    action: FileAction
    state: PipelineState = PipelineState.PENDING
    content: str | None = None
    error: FileError | None = None
    created_files: dict[str, str] = field(default_factory=dict)
    warnings: list[ApplyWarning] = field(default_factory=list)
    summaries: list[str] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        """True when the file reached the Applied state."""
        return self.state is PipelineState.APPLIED


class FilePipeline:
    """Apply one FileChange atomically."""

    def __init__(
        self,
        catalog: OperationCatalog,
        parser: SourceParser,
        validate_bindings: bool = True,
    ) -> None:
        self.catalog = catalog
        self.parser = parser
        self.validate_bindings = validate_bindings
        self.logger = logging.getLogger(__name__)

    def run(
        self,
        change: FileChange,
        original: str | None,
        reserved_paths: frozenset[str] = frozenset(),
    ) -> FileOutcome:
        """Run ``change`` against ``original`` (None when the path does not exist).

        Args:
            change: The FileChange to apply.
            original: Current content of the path, or None if it does not exist.
            reserved_paths: Paths that created files must not overwrite.

        Returns:
            FileOutcome in the APPLIED or FAILED state. Nothing is raised for
            engine errors; unexpected exceptions become InternalError.
        """
        outcome = FileOutcome(path=change.path, action=change.action)
        if change.payload_error is not None:
            return self._fail(
                outcome,
                ErrorKind.INVALID_OPERATION,
                change.payload_error.message,
                change.payload_error.op_index,
            )
        if change.action is FileAction.DELETE and change.operations:
            return self._fail(
                outcome, ErrorKind.INVALID_OPERATION, "DELETE takes no operations", 0
            )

        op_index: int | None = None
        try:
            text = self._precheck(change, original)
            if change.action is FileAction.DELETE:
                outcome.state = PipelineState.APPLIED
                return outcome

            language = Language.for_path(change.path)
            baseline = self._parse_input(change.path, text, language, outcome)

            self._transition(outcome, PipelineState.APPLYING)
            for op_index, operation in enumerate(change.operations):
                context = EditContext(change.path, text, language, self.parser, op_index)
                result = self.catalog.apply(context, operation)
                for path in result.created_files:
                    if path in reserved_paths or path in outcome.created_files:
                        raise StructuralConflict(
                            f"Created file {path} collides with an existing file"
                        )
                text = result.text
                outcome.created_files.update(result.created_files)
                outcome.warnings.extend(
                    ApplyWarning(change.path, op_index, message) for message in result.warnings
                )
                outcome.summaries.append(result.summary or operation.kind)
                self.logger.debug(f"{change.path} op {op_index} ok: {result.summary}")
            op_index = None

            self._validate(change.path, text, language, baseline, outcome)
        except EngineError as e:
            return self._fail(outcome, e.kind, e.message, op_index)
        except Exception as e:
            self.logger.exception(f"Unexpected error applying {change.path}")
            message = f"{type(e).__name__}: {e}"
            return self._fail(outcome, ErrorKind.INTERNAL_ERROR, message, op_index)

        outcome.content = text
        self._transition(outcome, PipelineState.APPLIED)
        self.logger.info(
            f"Applied {len(change.operations)} operation(s) to {change.path} ({change.action})"
        )
        return outcome

    @staticmethod
    def _precheck(change: FileChange, original: str | None) -> str:
        if change.action is FileAction.CREATE:
            if original is not None:
                raise MissingFileError(f"Cannot create {change.path}: file already exists")
            return change.content or ""
        if original is None:
            raise MissingFileError(f"File not found: {change.path}")
        return original

    def _parse_input(
        self, path: str, text: str, language: Language, outcome: FileOutcome
    ) -> Counter[str] | None:
        self._transition(outcome, PipelineState.PARSING)
        if language is Language.PLAINTEXT:
            return None
        return self.parser.parse(text, language, path=path).duplicate_bindings()

    def _validate(
        self,
        path: str,
        text: str,
        language: Language,
        baseline: Counter[str] | None,
        outcome: FileOutcome,
    ) -> None:
        self._transition(outcome, PipelineState.VALIDATING)
        if language is not Language.PLAINTEXT:
            tree = self.parser.parse(text, language, path=path, strict=False)
            error = tree.first_error()
            if error is not None:
                raise PostconditionViolated(
                    f"Result does not parse: {error.describe()} at {error.location}"
                )
            if self.validate_bindings and baseline is not None:
                introduced = tree.duplicate_bindings() - baseline
                if introduced:
                    names = ", ".join(sorted(introduced))
                    raise PostconditionViolated(
                        f"Result declares {names} more than once in one scope"
                    )

        for created_path, content in outcome.created_files.items():
            created_language = Language.for_path(created_path)
            if created_language is Language.PLAINTEXT:
                continue
            error = self.parser.parse(content, created_language, strict=False).first_error()
            if error is not None:
                raise PostconditionViolated(
                    f"Created file {created_path} does not parse: "
                    f"{error.describe()} at {error.location}"
                )

    def _transition(self, outcome: FileOutcome, state: PipelineState) -> None:
        self.logger.debug(f"{outcome.path}: {outcome.state.value} -> {state.value}")
        outcome.state = state

    def _fail(
        self, outcome: FileOutcome, kind: ErrorKind, message: str, op_index: int | None
    ) -> FileOutcome:
        outcome.error = FileError(outcome.path, op_index, kind, message)
        outcome.content = None
        outcome.created_files = {}
        outcome.warnings = []
        self._transition(outcome, PipelineState.FAILED)
        where = f" at op {op_index}" if op_index is not None else ""
        self.logger.warning(f"Failed {outcome.path}{where} [{kind}]: {message}")
        return outcome
