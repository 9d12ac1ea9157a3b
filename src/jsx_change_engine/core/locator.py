"""Target location for structural and textual operations.

Structural descriptors (element tag, component name) are
resolved by walking the tree in document order; the first match wins. Textual
descriptors are exact substrings searched in the current running text.
"""

import logging

from jsx_change_engine.core.exceptions import PatternNotFound
from jsx_change_engine.parsing.handles import ElementMatch, FunctionMatch
from jsx_change_engine.parsing.source_parser import SyntaxTree

logger = logging.getLogger(__name__)

STALE_TEXT_HINT = "re-read the current file and regenerate the pattern"


class TargetLocator:
    """Resolve target descriptors against one SyntaxTree version."""

    def __init__(self, tree: SyntaxTree) -> None:
        self.tree = tree

    def element(self, tag: str) -> ElementMatch:
        """First JSX element with ``tag`` in document order.

        Raises:
            PatternNotFound: If no element has that tag.
        """
        matches = self.tree.find_elements(tag)
        if not matches:
            available = sorted({m.tag for m in self.tree.find_elements() if m.tag})
            hint = f"; elements present: {', '.join(available[:10])}" if available else ""
            raise PatternNotFound(tag, f"No <{tag}> element found{hint}")
        if len(matches) > 1:
            logger.debug(f"{len(matches)} <{tag}> elements found, using the first")
        return matches[0]

    def component(self, name: str | None = None) -> FunctionMatch:
        """Named component function, or the file's main component when ``name`` is None.

        Raises:
            PatternNotFound: If no matching function exists.
        """
        match = self.tree.find_component(name)
        if match is None:
            descriptor = name or "component function"
            raise PatternNotFound(descriptor, f"No function found for {descriptor!r}")
        return match

    @staticmethod
    def text(haystack: str, search_for: str) -> int:
        """Index of the first exact occurrence of ``search_for`` in ``haystack``.

        Raises:
            PatternNotFound: If the substring does not occur.
        """
        index = haystack.find(search_for)
        if index < 0:
            raise PatternNotFound(
                search_for,
                f"Text not found: {search_for[:80]!r}; {STALE_TEXT_HINT}",
            )
        return index
