"""Change-set engine: fan FileChanges out to per-file pipelines and assemble the result.

FileChanges that share a path run sequentially in submission order, each one
starting from the content published by the previous one. Different paths are
independent and run on a thread pool. A failure is recorded against its own
FileChange and never stops the other files.
"""

import logging
from collections import defaultdict
from collections.abc import Mapping
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass, field
from typing import Any

from jsx_change_engine.analysis.extraction_advisor import ExtractionAdvisor
from jsx_change_engine.config.runtime_config import RuntimeConfig
from jsx_change_engine.core.exceptions import EngineError, ErrorKind
from jsx_change_engine.core.models import (
    ApplyResult,
    ApplyWarning,
    ChangeSet,
    ExtractionSuggestion,
    FileAction,
    FileChange,
    FileError,
    ModifiedFile,
)
from jsx_change_engine.core.pipeline import FileOutcome, FilePipeline
from jsx_change_engine.handlers.registry import OperationCatalog
from jsx_change_engine.parsing.source_parser import SourceParser
from jsx_change_engine.parsing.tree_cache import TreeCache


@dataclass(slots=True)
class _PathResult:
    """Everything one path's group of FileChanges produced."""

    path: str
    original: str | None
    content: str | None
    outcomes: list[FileOutcome] = field(default_factory=list)
    errors: list[FileError] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return any(outcome.succeeded for outcome in self.outcomes)


class ChangeSetApplier:
    """Apply ChangeSets to in-memory file contents.

    The applier never touches the filesystem: ``files`` maps paths to their
    current text, and the returned ApplyResult carries the new text.

    Example:
        >>> applier = ChangeSetApplier()
        >>> change_set = ChangeSet.from_dict({"files": [{
        ...     "path": "notes.txt", "action": "MODIFY",
        ...     "changes": [{"type": "Append", "content": "done"}]}]})
        >>> applier.apply(change_set, {"notes.txt": "todo\\n"}).modified_files[0].content
        'todo\\ndone'
    """

    def __init__(
        self,
        config: RuntimeConfig | None = None,
        catalog: OperationCatalog | None = None,
        parser: SourceParser | None = None,
        advisor: ExtractionAdvisor | None = None,
    ) -> None:
        self.config = config or RuntimeConfig.from_defaults()
        if parser is None:
            cache = (
                TreeCache(self.config.tree_cache_size) if self.config.tree_cache_enabled else None
            )
            parser = SourceParser(cache)
        self.parser = parser
        self.catalog = catalog or OperationCatalog()
        self.pipeline = FilePipeline(self.catalog, self.parser, self.config.validate_bindings)
        self.advisor = advisor or ExtractionAdvisor(
            self.parser,
            max_file_lines=self.config.max_file_lines,
            max_jsx_block_lines=self.config.max_jsx_block_lines,
            min_duplicate_block_lines=self.config.min_duplicate_block_lines,
        )
        self.logger = logging.getLogger(__name__)

    def apply(self, change_set: ChangeSet, files: Mapping[str, str]) -> ApplyResult:
        """Apply every FileChange in ``change_set``.

        Args:
            change_set: The batch to apply.
            files: Current content by path. Paths missing here do not exist.

        Returns:
            ApplyResult; ``success`` is False when any FileChange failed.
        """
        groups: dict[str, list[FileChange]] = defaultdict(list)
        for change in change_set.files:
            groups[change.path].append(change)
        reserved = frozenset(files) | frozenset(groups)

        self.logger.info(
            f"Applying change set {change_set.id}: {len(change_set.files)} file change(s) "
            f"across {len(groups)} path(s)"
        )
        results = self._run_groups(groups, files, reserved)
        result = self._assemble(change_set, results)
        self.logger.info(
            f"Change set {change_set.id}: {len(result.modified_files)} file(s) modified, "
            f"{len(result.errors)} error(s)"
        )
        return result

    def apply_payload(self, payload: Mapping[str, Any], files: Mapping[str, str]) -> ApplyResult:
        """Read a wire ChangeSet and apply it.

        A malformed envelope is returned as a failed ApplyResult instead of raised.
        """
        try:
            change_set = ChangeSet.from_dict(payload)
        except EngineError as e:
            self.logger.warning(f"Rejected change set payload: {e.message}")
            return ApplyResult(
                success=False,
                modified_files=[],
                errors=[FileError("", None, e.kind, e.message)],
            )
        return self.apply(change_set, files)

    # ------------------------------------------------------------------
    # Fan-out

    def _run_groups(
        self,
        groups: Mapping[str, list[FileChange]],
        files: Mapping[str, str],
        reserved: frozenset[str],
    ) -> list[_PathResult]:
        workers = self.config.max_workers if self.config.parallel_processing else 1
        workers = max(1, min(workers, len(groups)))
        results: list[_PathResult] = []
        paths = list(groups)

        executor = self._executor(workers)
        executors = [executor]
        try:
            futures: dict[str, Future[_PathResult]] = {
                path: executor.submit(
                    self._run_group, path, groups[path], files.get(path), reserved
                )
                for path in paths
            }

            # Results are collected in submission order to keep the output stable
            for position, path in enumerate(paths):
                group = groups[path]
                timeout = self.config.file_timeout_seconds * len(group)
                try:
                    results.append(futures[path].result(timeout=timeout))
                except FutureTimeoutError:
                    self.logger.error(f"Timed out applying {path} after {timeout:.1f}s")
                    results.append(
                        self._failed_group(
                            path,
                            files.get(path),
                            group,
                            ErrorKind.PARSE_ERROR,
                            f"Processing {path} timed out after {timeout:.1f}s",
                        )
                    )
                    # The hung worker keeps its slot; queued paths move to a fresh pool
                    queued = [p for p in paths[position + 1 :] if futures[p].cancel()]
                    if queued:
                        self.logger.debug(
                            f"Resubmitting {len(queued)} queued path(s) after {path} timed out"
                        )
                        executor = self._executor(min(workers, len(queued)))
                        executors.append(executor)
                        for queued_path in queued:
                            futures[queued_path] = executor.submit(
                                self._run_group,
                                queued_path,
                                groups[queued_path],
                                files.get(queued_path),
                                reserved,
                            )
                except Exception as e:
                    error_msg = f"Worker thread exception: {type(e).__name__}: {e}"
                    self.logger.error(
                        f"Worker thread raised exception while processing {len(group)} "
                        f"change(s) for {path}: {error_msg}"
                    )
                    results.append(
                        self._failed_group(
                            path, files.get(path), group, ErrorKind.INTERNAL_ERROR, error_msg
                        )
                    )
        finally:
            for pool in executors:
                pool.shutdown(wait=False, cancel_futures=True)
        return results

    @staticmethod
    def _executor(workers: int) -> ThreadPoolExecutor:
        return ThreadPoolExecutor(max_workers=workers, thread_name_prefix="jsx-change")

    def _run_group(
        self,
        path: str,
        group: list[FileChange],
        original: str | None,
        reserved: frozenset[str],
    ) -> _PathResult:
        """Run one path's FileChanges in order (thread worker function)."""
        result = _PathResult(path=path, original=original, content=original)
        for change in group:
            outcome = self.pipeline.run(change, result.content, reserved)
            result.outcomes.append(outcome)
            if outcome.succeeded:
                result.content = None if change.action is FileAction.DELETE else outcome.content
            elif outcome.error is not None:
                result.errors.append(outcome.error)
        return result

    @staticmethod
    def _failed_group(
        path: str,
        original: str | None,
        group: list[FileChange],
        kind: ErrorKind,
        message: str,
    ) -> _PathResult:
        errors = [FileError(path, None, kind, message) for _ in group]
        return _PathResult(path=path, original=original, content=original, errors=errors)

    # ------------------------------------------------------------------
    # Fan-in

    def _assemble(self, change_set: ChangeSet, results: list[_PathResult]) -> ApplyResult:
        modified: list[ModifiedFile] = []
        errors: list[FileError] = []
        warnings: list[ApplyWarning] = []
        created_by: dict[str, str] = {}

        for result in results:
            errors.extend(result.errors)
            created = self._claim_created_files(result, created_by, errors)
            if created is None or not result.changed:
                continue
            published = self._published_file(result)
            if published is not None:
                modified.append(published)
            modified.extend(
                ModifiedFile(created_path, content, FileAction.CREATE)
                for created_path, content in created.items()
            )
            for outcome in result.outcomes:
                if outcome.succeeded:
                    warnings.extend(outcome.warnings)

        success = not errors
        suggestions = self._advise(modified) if success else []
        return ApplyResult(
            success=success,
            modified_files=modified,
            errors=errors,
            extraction_suggestions=suggestions,
            warnings=warnings,
            change_set_id=change_set.id,
        )

    def _claim_created_files(
        self,
        result: _PathResult,
        created_by: dict[str, str],
        errors: list[FileError],
    ) -> dict[str, str] | None:
        """Register files created by ``result``; None when another path already created one.

        A collision withdraws every change of the later path, because each of
        its FileChanges builds on the text of the previous one.
        """
        created: dict[str, str] = {}
        for outcome in result.outcomes:
            if outcome.succeeded:
                created.update(outcome.created_files)
        clash = next((path for path in created if path in created_by), None)
        if clash is None:
            created_by.update((path, result.path) for path in created)
            return created

        message = (
            f"Created file {clash} is also created by changes to {created_by[clash]}; "
            f"no changes to {result.path} were applied"
        )
        self.logger.warning(message)
        errors.append(FileError(result.path, None, ErrorKind.STRUCTURAL_CONFLICT, message))
        return None

    @staticmethod
    def _published_file(result: _PathResult) -> ModifiedFile | None:
        if result.content is None:
            if result.original is None:
                return None
            return ModifiedFile(result.path, "", FileAction.DELETE)
        action = FileAction.CREATE if result.original is None else FileAction.MODIFY
        return ModifiedFile(result.path, result.content, action)

    def _advise(self, modified: list[ModifiedFile]) -> list[ExtractionSuggestion]:
        if not self.config.extraction_advice:
            return []
        contents = {
            item.path: item.content for item in modified if item.action is not FileAction.DELETE
        }
        try:
            return self.advisor.suggest(contents)
        except Exception as e:
            self.logger.warning(f"Extraction advice skipped: {type(e).__name__}: {e}")
            return []
