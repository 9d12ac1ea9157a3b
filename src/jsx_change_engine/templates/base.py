"""Rendered template output shared by the composite operations."""

from dataclasses import dataclass, field

from jsx_change_engine.core.operations import ImportSpec
from jsx_change_engine.handlers.imports import render_import
from jsx_change_engine.utils.text import ensure_trailing_newline

TYPED_SUFFIXES = (".tsx", ".ts", ".mts", ".cts")


def is_typed_path(path: str) -> bool:
    """True when ``path`` is a TypeScript source that takes type annotations."""
    return path.lower().endswith(TYPED_SUFFIXES)


def capitalize(name: str) -> str:
    """Uppercase the first character: ``count`` -> ``Count``."""
    return name[:1].upper() + name[1:]


@dataclass(frozen=True, slots=True)
class RenderedModule:
    """Template output that is not yet attached to any file.

    Attributes:
        imports: Import requests the body depends on.
        body: Declarations in source order, without import statements.
        declares: Top-level names the body introduces, for collision checks.
    """

    imports: tuple[ImportSpec, ...]
    body: str
    declares: tuple[str, ...] = field(default_factory=tuple)

    def render(self, quote: str = "'") -> str:
        """Render as a standalone module."""
        body = self.body.strip("\n")
        header = "\n".join(render_import(spec, quote) for spec in self.imports)
        if not header:
            return ensure_trailing_newline(body)
        return ensure_trailing_newline(f"{header}\n\n{body}")
