"""Parsing layer: tree-sitter backed syntax trees, node handles, and edits.

This package provides:
- SourceParser / SyntaxTree: parse source text and query it
- TreeCache: (path, content hash) keyed cache of parsed trees
- Edit / apply_edits: byte-span edits that produce new text
"""

from jsx_change_engine.parsing.edits import Edit, apply_edits
from jsx_change_engine.parsing.source_parser import SourceParser, SyntaxTree
from jsx_change_engine.parsing.tree_cache import CacheStats, TreeCache

__all__ = ["CacheStats", "Edit", "SourceParser", "SyntaxTree", "TreeCache", "apply_edits"]
