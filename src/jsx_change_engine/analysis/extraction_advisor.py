"""Extraction advisor: suggest JSX blocks worth moving into their own components.

Suggestions are advisory only. Three heuristics produce candidates:

- oversized JSX elements (outermost element longer than ``max_jsx_block_lines``)
- duplicated JSX blocks (same whitespace-normalized text, at least
  ``min_duplicate_block_lines`` long, occurring more than once)
- named sections (forms, modals, cards, headers, footers, list renderers, and
  styled ``div`` sections) in files longer than ``max_file_lines``

Each file also gets a complexity score (0-100) built from its length, its
state and effect hooks, and its function count.
"""

import logging
import posixpath
import re
from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass, field

from tree_sitter import Node

from jsx_change_engine.analysis.scope import free_identifiers
from jsx_change_engine.core.models import ExtractionSuggestion, Language
from jsx_change_engine.parsing.source_parser import (
    FUNCTION_TYPES,
    JSX_ELEMENT_TYPES,
    SourceParser,
    SyntaxTree,
)
from jsx_change_engine.utils.text import collapse_whitespace

logger = logging.getLogger(__name__)

MAX_SECTIONS_PER_PATTERN = 3
COMPLEXITY_INCREASE_THRESHOLD = 20
_SOURCE_EXTENSIONS = re.compile(r"\.(tsx?|jsx?|mjs|cjs|mts|cts)$")


@dataclass(frozen=True, slots=True)
class SectionPattern:
    """A named kind of JSX section and the minimum text size that makes it worth extracting."""

    name: str
    reason: str
    min_chars: int
    matches: Callable[[SyntaxTree, Node], bool]


def _opening_text(tree: SyntaxTree, node: Node) -> str:
    opening = tree.opening_element(node)
    return tree.node_text(opening) if opening is not None else ""


def _is_tag(tag: str) -> Callable[[SyntaxTree, Node], bool]:
    def matches(tree: SyntaxTree, node: Node) -> bool:
        return node.type in JSX_ELEMENT_TYPES and tree.element_tag(node) == tag

    return matches


def _is_div_with(keyword: str) -> Callable[[SyntaxTree, Node], bool]:
    def matches(tree: SyntaxTree, node: Node) -> bool:
        return (
            node.type in JSX_ELEMENT_TYPES
            and tree.element_tag(node) == "div"
            and keyword in _opening_text(tree, node).lower()
        )

    return matches


def _is_list_render(tree: SyntaxTree, node: Node) -> bool:
    if node.type != "call_expression" or tree.callee_name(node) != "map":
        return False
    return any(child.type in JSX_ELEMENT_TYPES for child in tree.walk(node))


SECTION_PATTERNS: tuple[SectionPattern, ...] = (
    SectionPattern("Section", "Large div block detected", 200, _is_div_with("classname")),
    SectionPattern("Form", "Form element detected", 100, _is_tag("form")),
    SectionPattern("Modal", "Modal component detected", 100, _is_div_with("modal")),
    SectionPattern("Card", "Card component detected", 100, _is_div_with("card")),
    SectionPattern("Header", "Header component detected", 100, _is_tag("header")),
    SectionPattern("Footer", "Footer component detected", 100, _is_tag("footer")),
    SectionPattern("Item", "Repeated list rendering detected", 50, _is_list_render),
)


@dataclass(slots=True)
class FileAnalysis:
    """Advisor result for one file.

    Attributes:
        file_path: Analysed path.
        total_lines: Line count of the content.
        needs_extraction: True when the file is over ``max_file_lines`` lines.
        complexity_score: 0-100 score, higher means harder to maintain.
        suggestions: Candidates found in the file, in discovery order.
    """

    file_path: str
    total_lines: int
    needs_extraction: bool
    complexity_score: float
    suggestions: list[ExtractionSuggestion] = field(default_factory=list)


def complexity_label(line_count: int) -> str:
    """HIGH above 50 lines, MEDIUM above 25, LOW otherwise."""
    if line_count > 50:
        return "HIGH"
    if line_count > 25:
        return "MEDIUM"
    return "LOW"


def component_name(file_path: str, base: str, index: int) -> str:
    """Suggested name ``{FileStem}{Base}{n}``; the first candidate of a kind has no number.

    Examples:
        >>> component_name("src/components/dashboard.tsx", "Card", 0)
        'DashboardCard'
        >>> component_name("src/App.jsx", "Form", 1)
        'AppForm2'
    """
    stem = _SOURCE_EXTENSIONS.sub("", posixpath.basename(file_path)) or "Component"
    parent = stem[:1].upper() + stem[1:]
    suffix = str(index + 1) if index > 0 else ""
    return f"{parent}{base}{suffix}"


class ExtractionAdvisor:
    """Scan result files and produce ExtractionSuggestions."""

    def __init__(
        self,
        parser: SourceParser | None = None,
        max_file_lines: int = 300,
        max_jsx_block_lines: int = 50,
        min_duplicate_block_lines: int = 5,
    ) -> None:
        self.parser = parser or SourceParser()
        self.max_file_lines = max_file_lines
        self.max_jsx_block_lines = max_jsx_block_lines
        self.min_duplicate_block_lines = min_duplicate_block_lines

    def analyze_file(self, file_path: str, content: str) -> FileAnalysis:
        """Score one file and collect its extraction candidates.

        Files that are not TSX/JSX, or that do not parse, get a bare analysis
        without suggestions.
        """
        total_lines = len(content.split("\n"))
        analysis = FileAnalysis(
            file_path=file_path,
            total_lines=total_lines,
            needs_extraction=total_lines > self.max_file_lines,
            complexity_score=0.0,
        )
        if Language.for_path(file_path) is not Language.TSX:
            return analysis

        tree = self.parser.parse(content, Language.TSX, path=file_path, strict=False)
        if tree.has_errors:
            logger.debug(f"Skipping extraction analysis of {file_path}: content does not parse")
            return analysis

        analysis.complexity_score = self.complexity_score(tree, total_lines)
        imported = {
            spec.local_name for info in tree.find_imports() for spec in info.specifiers
        }
        names: dict[str, int] = {}
        seen: set[tuple[int, int]] = set()

        def add(node: Node, base: str, reason: str) -> None:
            if (node.start_byte, node.end_byte) in seen:
                return
            seen.add((node.start_byte, node.end_byte))
            index = names.get(base, 0)
            names[base] = index + 1
            analysis.suggestions.append(
                self._suggestion(tree, file_path, node, base, reason, index, imported)
            )

        for node in self._oversized_elements(tree):
            add(node, "Section", f"JSX block longer than {self.max_jsx_block_lines} lines")
        for node, count in self._duplicated_blocks(tree):
            add(node, "Block", f"JSX block repeated {count} times")
        if analysis.needs_extraction:
            for pattern in SECTION_PATTERNS:
                for node in self._section_matches(tree, pattern):
                    add(node, pattern.name, pattern.reason)

        if analysis.suggestions:
            logger.debug(f"{file_path}: {len(analysis.suggestions)} extraction candidate(s)")
        return analysis

    def analyze_files(self, files: Mapping[str, str]) -> list[FileAnalysis]:
        """Analyse several files, most complex first."""
        analyses = [self.analyze_file(path, content) for path, content in files.items()]
        return sorted(analyses, key=lambda analysis: analysis.complexity_score, reverse=True)

    def suggest(self, files: Mapping[str, str]) -> list[ExtractionSuggestion]:
        """Flatten :meth:`analyze_files` into one suggestion list."""
        return [
            suggestion
            for analysis in self.analyze_files(files)
            for suggestion in analysis.suggestions
        ]

    def should_suggest_extraction(self, file_path: str, original: str, modified: str) -> bool:
        """True when a modification crosses the line threshold or adds over 20 complexity points."""
        before = self.analyze_file(file_path, original)
        after = self.analyze_file(file_path, modified)
        crossed = not before.needs_extraction and after.needs_extraction
        grew = after.complexity_score - before.complexity_score > COMPLEXITY_INCREASE_THRESHOLD
        return crossed or grew

    @staticmethod
    def complexity_score(tree: SyntaxTree, total_lines: int) -> float:
        """Length, state hooks, effects, and functions, capped at 100."""
        state_calls = effect_calls = functions = 0
        for node in tree.walk():
            if node.type in FUNCTION_TYPES:
                functions += 1
            elif node.type == "call_expression":
                callee = tree.callee_name(node)
                if callee == "useState":
                    state_calls += 1
                elif callee == "useEffect":
                    effect_calls += 1
        score = (
            min(total_lines / 10, 40)
            + min(state_calls * 2, 20)
            + min(effect_calls * 3, 20)
            + min(functions, 20)
        )
        return min(score, 100.0)

    # ------------------------------------------------------------------
    # Candidate sources

    @staticmethod
    def _line_span(tree: SyntaxTree, node: Node) -> tuple[int, int]:
        return tree.line_col(node.start_byte)[0], tree.line_col(node.end_byte)[0]

    def _line_count(self, tree: SyntaxTree, node: Node) -> int:
        start, end = self._line_span(tree, node)
        return end - start + 1

    @staticmethod
    def _outermost(tree: SyntaxTree, matches: Callable[[Node], bool]) -> Iterator[Node]:
        """Yield matching nodes in document order without descending into a match."""
        stack = [tree.root]
        while stack:
            node = stack.pop()
            if matches(node):
                yield node
                continue
            stack.extend(reversed(node.children))

    def _oversized_elements(self, tree: SyntaxTree) -> Iterator[Node]:
        return self._outermost(
            tree,
            lambda node: node.type in JSX_ELEMENT_TYPES
            and self._line_count(tree, node) > self.max_jsx_block_lines,
        )

    def _duplicated_blocks(self, tree: SyntaxTree) -> list[tuple[Node, int]]:
        groups: dict[str, list[Node]] = {}
        for node in tree.walk():
            if node.type not in JSX_ELEMENT_TYPES:
                continue
            if self._line_count(tree, node) < self.min_duplicate_block_lines:
                continue
            groups.setdefault(collapse_whitespace(tree.node_text(node)), []).append(node)

        found: list[tuple[Node, int]] = []
        covered: list[tuple[int, int]] = []
        for nodes in groups.values():
            if len(nodes) < 2:
                continue
            first = nodes[0]
            if any(start <= first.start_byte and first.end_byte <= end for start, end in covered):
                continue
            covered.extend((node.start_byte, node.end_byte) for node in nodes)
            found.append((first, len(nodes)))
        return found

    def _section_matches(self, tree: SyntaxTree, pattern: SectionPattern) -> list[Node]:
        found = []
        for node in self._outermost(tree, lambda node: pattern.matches(tree, node)):
            if node.end_byte - node.start_byte >= pattern.min_chars:
                found.append(node)
            if len(found) == MAX_SECTIONS_PER_PATTERN:
                break
        return found

    def _suggestion(
        self,
        tree: SyntaxTree,
        file_path: str,
        node: Node,
        base: str,
        reason: str,
        index: int,
        imported: Iterable[str],
    ) -> ExtractionSuggestion:
        line_start, line_end = self._line_span(tree, node)
        line_count = line_end - line_start + 1
        excluded = set(imported)
        props = tuple(
            name
            for name in free_identifiers(tree, node)
            if name not in excluded and not name[:1].isupper()
        )
        name = component_name(file_path, base, index)
        return ExtractionSuggestion(
            file_path=file_path,
            message=f"Consider extracting lines {line_start}-{line_end} into <{name}>: {reason}",
            reason=reason,
            component_name=name,
            line_start=line_start,
            line_end=line_end,
            complexity=complexity_label(line_count),
            estimated_props=props,
        )
