"""Text utility functions for source generation.

This module provides the indentation and normalization helpers shared by the
operation handlers, templates, and the extraction advisor.
"""

import re

_INDENT_PATTERN = re.compile(r"^[ \t]+", re.MULTILINE)


def normalize_content(text: str) -> str:
    """Normalize text by stripping whitespace and removing empty lines.

    Returns:
        A string where each non-empty original line has been trimmed and the remaining
        lines are joined with a single newline character.
    """
    return "\n".join(line.strip() for line in text.splitlines() if line.strip())


def collapse_whitespace(text: str) -> str:
    """Collapse all whitespace runs to single spaces, also removing them next to tags.

    Used to compare JSX snippets regardless of formatting:

        >>> collapse_whitespace("<div>\\n  <p>Hi</p>\\n</div>")
        '<div><p>Hi</p></div>'
    """
    collapsed = " ".join(text.split())
    return re.sub(r"\s*([<>{}])\s*", r"\1", collapsed)


def detect_indent_unit(text: str) -> str:
    """Return the file's indentation unit: a tab, or the smallest space run (default 2)."""
    widths = []
    for match in _INDENT_PATTERN.finditer(text):
        indent = match.group(0)
        if "\t" in indent:
            return "\t"
        widths.append(len(indent))
    smallest = min((w for w in widths if w > 0), default=2)
    return " " * min(smallest, 8)


def reindent(block: str, indent: str) -> str:
    """Re-indent a multi-line block for insertion at a position already at ``indent``.

    The first line is stripped; the remaining lines keep their indentation
    relative to each other, rebased onto ``indent``. Blank lines stay empty.

        >>> reindent("<div>\\n      <p/>\\n    </div>", "  ")
        '<div>\\n    <p/>\\n  </div>'
    """
    lines = block.strip("\n").splitlines()
    if not lines:
        return ""
    rest = lines[1:]
    widths = [len(line) - len(line.lstrip()) for line in rest if line.strip()]
    base = min(widths, default=0)
    out = [lines[0].strip()]
    for line in rest:
        out.append(indent + line[base:].rstrip() if line.strip() else "")
    return "\n".join(out)


def format_statement_body(body: str, indent: str) -> str:
    """Render a statement body as lines at ``indent``, preserving relative indentation."""
    lines = body.strip("\n").splitlines()
    if not lines:
        return ""
    widths = [len(line) - len(line.lstrip()) for line in lines if line.strip()]
    first = len(lines[0]) - len(lines[0].lstrip())
    # Bodies written as "a;\n    b;" carry the caller's indentation only after the first line
    base = min(widths[1:], default=0) if first == 0 and len(widths) > 1 else min(widths, default=0)
    out = []
    for index, line in enumerate(lines):
        if not line.strip():
            out.append("")
        elif index == 0 and first == 0:
            out.append(indent + line.strip())
        else:
            out.append(indent + line[base:].rstrip())
    return "\n".join(out)


def ensure_trailing_newline(text: str) -> str:
    """Append a newline unless ``text`` is empty or already ends with one."""
    return text if not text or text.endswith("\n") else text + "\n"
