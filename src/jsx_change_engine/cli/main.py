"""Command-line interface for jsx-change-engine."""

import hashlib
import json
import logging
import re
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from jsx_change_engine import __version__
from jsx_change_engine.analysis.extraction_advisor import ExtractionAdvisor
from jsx_change_engine.cli.config_loader import load_runtime_config
from jsx_change_engine.config.runtime_config import RuntimeConfig
from jsx_change_engine.core.engine import ChangeSetApplier
from jsx_change_engine.core.exceptions import EngineError
from jsx_change_engine.core.models import (
    ApplyResult,
    ChangeSet,
    ExtractionSuggestion,
    FileAction,
    Language,
)
from jsx_change_engine.parsing.source_parser import SourceParser, SyntaxTree
from jsx_change_engine.security.input_validator import InputValidator
from jsx_change_engine.security.secure_file_handler import SecureFileHandler
from jsx_change_engine.utils.path_utils import resolve_workspace_path

console = Console()
logger = logging.getLogger(__name__)

# Compiled pattern for detecting control characters only.
_INJECTION_PATTERN = re.compile(r"[\x00-\x08\x0b-\x1f\x7f]")


@click.group()
@click.version_option(version=__version__)
def cli() -> None:
    """Apply structural change sets to React JSX/TSX source files.

    Registers the `apply`, `inspect`, and `advise` subcommands.
    """


def sanitize_for_output(value: str) -> str:
    """Redact control characters before printing.

    Detects control characters (null bytes, escape sequences, etc.) and returns
    a redacted placeholder if any are present. Logs safe metadata (length and
    hash) at debug level for troubleshooting without exposing the original value.

    Args:
        value: The string to sanitize for terminal output.

    Returns:
        str: "[REDACTED]" if control characters are found; otherwise the original string.
    """
    if _INJECTION_PATTERN.search(value):
        value_hash = hashlib.sha256(value.encode("utf-8")).hexdigest()
        logger.debug(
            "Redacting value containing control characters: length=%d, hash=%s",
            len(value),
            value_hash,
        )
        return "[REDACTED]"
    return value


def _safe(value: str) -> str:
    """Sanitize a value and escape it for rich markup."""
    return escape(sanitize_for_output(value))


def _configure_logging(runtime_config: RuntimeConfig) -> None:
    log_handler = (
        logging.FileHandler(runtime_config.log_file)
        if runtime_config.log_file
        else logging.StreamHandler()
    )
    logging.basicConfig(
        level=getattr(logging, runtime_config.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[log_handler],
        force=True,
    )


def _load_workspace_files(change_set: ChangeSet, workspace: Path) -> dict[str, str]:
    """Read the current content of every path the change set names.

    Raises:
        click.ClickException: If a path is unsafe, too large, or not UTF-8.
    """
    files: dict[str, str] = {}
    for change in change_set.files:
        if change.path in files:
            continue
        if not InputValidator.validate_file_path(change.path):
            raise click.ClickException(f"Unsafe path in change set: {change.path!r}")
        try:
            target = resolve_workspace_path(change.path, workspace, validate_workspace=False)
        except ValueError as e:
            raise click.ClickException(str(e)) from e
        if not target.exists():
            continue
        if not InputValidator.validate_file_size(target):
            raise click.ClickException(f"{change.path} is not a regular file or is too large")
        try:
            files[change.path] = target.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            raise click.ClickException(f"{change.path} is not valid UTF-8") from e
    return files


def _write_results(result: ApplyResult, workspace: Path) -> list[str]:
    """Publish modified files to the workspace; return the paths that were skipped."""
    skipped: list[str] = []
    for item in result.modified_files:
        try:
            target = resolve_workspace_path(item.path, workspace, validate_workspace=False)
        except ValueError as e:
            logger.error(f"Not writing {item.path}: {e}")
            skipped.append(item.path)
            continue
        if item.action is FileAction.DELETE:
            if not SecureFileHandler.safe_delete(target):
                skipped.append(item.path)
            continue
        if item.action is FileAction.CREATE and target.exists():
            logger.error(f"Not overwriting existing file {item.path}")
            skipped.append(item.path)
            continue
        SecureFileHandler.atomic_write(target, item.content)
    return skipped


def _security_notes(result: ApplyResult, originals: dict[str, str]) -> list[tuple[str, str]]:
    """Notes for patterns that the change set introduced into a file."""
    notes: list[tuple[str, str]] = []
    for item in result.modified_files:
        before = set(InputValidator.scan_content(originals.get(item.path, "")))
        for note in InputValidator.scan_content(item.content):
            if note not in before:
                notes.append((item.path, note))
    return notes


def _display_result(result: ApplyResult, notes: list[tuple[str, str]]) -> None:
    if result.modified_files:
        table = Table(title="Modified files")
        table.add_column("Path", style="cyan")
        table.add_column("Action")
        table.add_column("Lines", justify="right")
        for item in result.modified_files:
            lines = item.content.count("\n") + 1 if item.content else 0
            table.add_row(_safe(item.path), str(item.action), str(lines))
        console.print(table)

    if result.errors:
        table = Table(title="Errors", title_style="bold red")
        table.add_column("File", style="cyan")
        table.add_column("Op", justify="right")
        table.add_column("Kind", style="red")
        table.add_column("Message")
        for error in result.errors:
            op = "-" if error.op_index is None else str(error.op_index)
            table.add_row(_safe(error.file), op, str(error.kind), _safe(error.message))
        console.print(table)

    if result.warnings or notes:
        table = Table(title="Warnings", title_style="bold yellow")
        table.add_column("File", style="cyan")
        table.add_column("Op", justify="right")
        table.add_column("Message")
        for warning in result.warnings:
            op = "-" if warning.op_index is None else str(warning.op_index)
            table.add_row(_safe(warning.file), op, _safe(warning.message))
        for path, note in notes:
            table.add_row(_safe(path), "-", f"[yellow]security:[/yellow] {note}")
        console.print(table)

    if result.extraction_suggestions:
        _display_suggestions(result.extraction_suggestions)


def _display_suggestions(suggestions: list[ExtractionSuggestion]) -> None:
    table = Table(title="Extraction suggestions")
    table.add_column("File", style="cyan")
    table.add_column("Lines", justify="right")
    table.add_column("Component", style="green")
    table.add_column("Complexity")
    table.add_column("Reason")
    table.add_column("Props")
    for suggestion in suggestions:
        props = ", ".join(suggestion.estimated_props[:5])
        if len(suggestion.estimated_props) > 5:
            props += "..."
        table.add_row(
            _safe(suggestion.file_path),
            f"{suggestion.line_start}-{suggestion.line_end}",
            suggestion.component_name,
            suggestion.complexity,
            suggestion.reason,
            props,
        )
    console.print(table)


@cli.command()
@click.argument("changeset", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--workspace",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=".",
    show_default=True,
    help="Directory the change set's paths are relative to",
)
@click.option("--write", is_flag=True, help="Write results to the workspace (atomic writes)")
@click.option(
    "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write the ApplyResult JSON to this file",
)
@click.option("--json", "as_json", is_flag=True, help="Print the ApplyResult as JSON")
@click.option(
    "--config",
    type=str,
    help=(
        "Configuration preset name (conservative/balanced/aggressive) "
        "or path to configuration file (YAML/TOML)"
    ),
)
@click.option(
    "--parallel/--no-parallel",
    default=None,
    help="Enable/disable processing different files in parallel",
)
@click.option(
    "--max-workers",
    type=int,
    default=None,
    help="Maximum number of worker threads for parallel processing (default: 4)",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    help="Logging level (default: INFO)",
)
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False),
    help="Path to log file (default: stderr only)",
)
@click.option("--no-advice", is_flag=True, help="Skip extraction suggestions")
def apply(
    changeset: Path,
    workspace: Path,
    write: bool,
    output: Path | None,
    as_json: bool,
    config: str | None,
    parallel: bool | None,
    max_workers: int | None,
    log_level: str | None,
    log_file: str | None,
    no_advice: bool,
) -> None:
    r"""Apply a change set (JSON) to files in a workspace.

    Configuration precedence: CLI flags > environment variables > config file > defaults.
    Exits with status 1 when any file change failed.

    Examples:
        # Preview the result of a change set
        $ jsx-change apply proposal.json --workspace ./my-app

        # Apply and write, processing files in parallel
        $ jsx-change apply proposal.json --workspace ./my-app --write \\
            --parallel --max-workers 8
    """
    try:
        cli_overrides = {
            "parallel_processing": parallel,
            "max_workers": max_workers,
            "log_level": log_level.upper() if log_level else None,
            "log_file": str(log_file) if log_file else None,
            "extraction_advice": False if no_advice else None,
        }
        runtime_config, _ = load_runtime_config(config=config, cli_overrides=cli_overrides)
        _configure_logging(runtime_config)
    except Exception as e:
        console.print(f"[red]❌ Configuration error: {e}[/red]")
        raise click.Abort() from e

    try:
        payload = json.loads(changeset.read_text(encoding="utf-8"))
        change_set = ChangeSet.from_dict(payload)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise click.ClickException(f"{changeset} is not a valid JSON file: {e}") from e
    except EngineError as e:
        raise click.ClickException(f"Invalid change set: {e.message}") from e

    files = _load_workspace_files(change_set, workspace)
    result = ChangeSetApplier(runtime_config).apply(change_set, files)

    if output is not None:
        output.write_text(json.dumps(result.to_dict(), indent=2) + "\n", encoding="utf-8")
    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
    else:
        summary = _safe(change_set.summary) if change_set.summary else ""
        console.print(f"\n[bold]Change set[/bold] {change_set.id} {summary}")
        _display_result(result, _security_notes(result, files))

    if write:
        skipped = _write_results(result, workspace)
        written = len(result.modified_files) - len(skipped)
        if not as_json:
            console.print(f"\n[green]Wrote {written} file(s)[/green]")
            for path in skipped:
                console.print(f"[red]Skipped {_safe(path)}[/red]")

    if not result.success:
        if not as_json:
            console.print(f"\n[red]❌ {len(result.errors)} file change(s) failed[/red]")
        sys.exit(1)
    if not as_json:
        console.print("\n[bold green]✅ All file changes applied[/bold green]")


def _inspect_tables(tree: SyntaxTree) -> list[Table]:
    functions = Table(title="Functions")
    functions.add_column("Line", justify="right")
    functions.add_column("Name", style="cyan")
    functions.add_column("Kind")
    functions.add_column("Export")
    for match in tree.find_functions():
        export = "default" if match.is_default_export else ("named" if match.is_exported else "")
        line = tree.line_col(match.ref.start)[0]
        functions.add_row(str(line), match.name or "<anonymous>", match.kind, export)

    hooks = Table(title="State hooks")
    hooks.add_column("Line", justify="right")
    hooks.add_column("State", style="cyan")
    hooks.add_column("Setter")
    hooks.add_column("Initial value")
    for state in tree.find_state_hooks():
        hooks.add_row(
            str(tree.line_col(state.ref.start)[0]),
            state.state_name,
            state.setter_name or "",
            escape(state.initial_value or ""),
        )

    imports = Table(title="Imports")
    imports.add_column("Line", justify="right")
    imports.add_column("Source", style="cyan")
    imports.add_column("Bindings")
    for info in tree.find_imports():
        bindings = ", ".join(
            f"* as {spec.local_name}" if spec.is_namespace else spec.local_name
            for spec in info.specifiers
        )
        source = f"{info.source} (type)" if info.is_type_only else info.source
        imports.add_row(str(tree.line_col(info.ref.start)[0]), escape(source), bindings)

    handlers = Table(title="Event handlers")
    handlers.add_column("Line", justify="right")
    handlers.add_column("Element", style="cyan")
    handlers.add_column("Event")
    handlers.add_column("Handler")
    for handler in tree.find_event_handlers():
        name = "<inline>" if handler.is_inline else (handler.handler_name or "")
        handlers.add_row(
            str(tree.line_col(handler.ref.start)[0]), handler.element_tag, handler.event_type, name
        )
    return [functions, hooks, imports, handlers]


@cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def inspect(file: Path) -> None:
    """Show the functions, state hooks, imports, and event handlers of a source file."""
    language = Language.for_path(file.name)
    if language is Language.PLAINTEXT:
        raise click.ClickException(f"{file} is not a JSX/TSX/JS/TS source file")

    tree = SourceParser().parse(file.read_text(encoding="utf-8"), language, strict=False)
    errors = tree.errors()
    if errors:
        table = Table(title=f"Syntax errors in {file}", title_style="bold red")
        table.add_column("Line", justify="right")
        table.add_column("Column", justify="right")
        table.add_column("Problem")
        for error in errors:
            table.add_row(str(error.line), str(error.column), _safe(error.describe()))
        console.print(table)
        sys.exit(1)

    for table in _inspect_tables(tree):
        console.print(table)


@cli.command()
@click.argument(
    "files", nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False, path_type=Path)
)
@click.option(
    "--config",
    type=str,
    help="Configuration preset name or path to configuration file (YAML/TOML)",
)
def advise(files: tuple[Path, ...], config: str | None) -> None:
    """Suggest JSX blocks to extract into components, most complex file first."""
    try:
        runtime_config, _ = load_runtime_config(config=config)
    except Exception as e:
        console.print(f"[red]❌ Configuration error: {e}[/red]")
        raise click.Abort() from e

    advisor = ExtractionAdvisor(
        max_file_lines=runtime_config.max_file_lines,
        max_jsx_block_lines=runtime_config.max_jsx_block_lines,
        min_duplicate_block_lines=runtime_config.min_duplicate_block_lines,
    )
    contents = {str(path): path.read_text(encoding="utf-8") for path in files}
    analyses = advisor.analyze_files(contents)

    summary = Table(title="Complexity")
    summary.add_column("File", style="cyan")
    summary.add_column("Lines", justify="right")
    summary.add_column("Score", justify="right")
    summary.add_column("Suggestions", justify="right")
    for analysis in analyses:
        summary.add_row(
            _safe(analysis.file_path),
            str(analysis.total_lines),
            f"{analysis.complexity_score:.0f}/100",
            str(len(analysis.suggestions)),
        )
    console.print(summary)

    suggestions = [s for analysis in analyses for s in analysis.suggestions]
    if suggestions:
        _display_suggestions(suggestions)
    else:
        console.print("[green]No extraction suggestions[/green]")


if __name__ == "__main__":
    cli()
