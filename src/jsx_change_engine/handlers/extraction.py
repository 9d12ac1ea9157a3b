"""ExtractComponent: move a JSX subtree into a new component file.

The subtree's free identifiers decide the new component's interface:
identifiers bound by imports in the source file are re-imported by the new
file (relative paths rebased), identifiers bound anywhere else in the file
become props, and unbound names (globals) are left alone. The original site
is replaced by ``<Name prop={prop} />`` and the new component is imported.
"""

import posixpath

from tree_sitter import Node

from jsx_change_engine.analysis.scope import enclosing_bindings, free_identifiers
from jsx_change_engine.core.exceptions import PatternNotFound, StructuralConflict
from jsx_change_engine.core.locator import STALE_TEXT_HINT, TargetLocator
from jsx_change_engine.core.operations import (
    JSX_NAME_PATTERN,
    ExtractComponent,
    ImportSpec,
    Operation,
)
from jsx_change_engine.handlers.base import BaseOperationHandler, EditContext, EditOutcome
from jsx_change_engine.handlers.imports import ImportManager, render_import, render_namespace_import
from jsx_change_engine.parsing.edits import Edit
from jsx_change_engine.parsing.handles import ImportInfo
from jsx_change_engine.parsing.source_parser import JSX_ELEMENT_TYPES, SyntaxTree
from jsx_change_engine.templates.base import is_typed_path
from jsx_change_engine.utils.text import collapse_whitespace, reindent


def relative_module(from_dir: str, target: str) -> str:
    """Module specifier for ``target`` (a path without extension) as seen from ``from_dir``.

    Examples:
        >>> relative_module("src/components", "src/components/Card")
        './Card'
        >>> relative_module("src/components/cards", "src/utils/format")
        '../../utils/format'
    """
    relative = posixpath.relpath(target, from_dir or ".")
    return relative if relative.startswith("../") else f"./{relative}"


def rebase_source(source: str, from_path: str, to_path: str) -> str:
    """Rewrite a relative import source of ``from_path`` so it resolves from ``to_path``."""
    if not source.startswith("."):
        return source
    absolute = posixpath.normpath(posixpath.join(posixpath.dirname(from_path), source))
    return relative_module(posixpath.dirname(to_path), absolute)


class ExtractionHandler(BaseOperationHandler):
    """Cut a JSX subtree into its own component file."""

    operation_types = (ExtractComponent,)

    def __init__(self, imports: ImportManager | None = None) -> None:
        super().__init__()
        self.imports = imports or ImportManager()

    def apply(self, context: EditContext, operation: Operation) -> EditOutcome:
        """Create the component file and replace the subtree with the new element."""
        assert isinstance(operation, ExtractComponent)
        tree = context.tree
        node = self.locate(tree, operation.target_jsx)
        name = operation.component_name

        component_path = operation.component_file or self.default_path(context.path, name)
        if component_path == context.path:
            raise StructuralConflict(f"Cannot extract {name} into the file it comes from")

        imports = tree.find_imports()
        imported = {spec.local_name: info for info in imports for spec in info.specifiers}
        visible = enclosing_bindings(tree, node)
        free = free_identifiers(tree, node)

        props: list[str] = []
        if operation.extract_props:
            props = [n for n in free if n not in imported and n in visible]
        reimports = self._reimports(
            [n for n in free if n in imported], imported, context.path, component_path
        )
        has_react = any(s.startswith("import React") for s in reimports)
        if self._default_react(imports) and not has_react:
            reimports.insert(0, "import React from 'react';")

        typed = is_typed_path(context.path) and is_typed_path(component_path)
        content = self.render_component(
            name, tree.node_text(node), props, operation.prop_types, reimports, typed
        )

        attributes = "".join(f" {prop}={{{prop}}}" for prop in props)
        text = context.apply([Edit(node.start_byte, node.end_byte, f"<{name}{attributes} />")])
        module = relative_module(
            posixpath.dirname(context.path), posixpath.splitext(component_path)[0]
        )
        text = self.imports.merge(context.advance(text), ImportSpec(module, named_imports=(name,)))

        self.logger.info(f"Extracted {name} from {context.path} into {component_path}")
        props_note = f" with props {', '.join(props)}" if props else ""
        return EditOutcome(
            text=text,
            created_files={component_path: content},
            summary=f"Extracted {name} into {component_path}{props_note}",
        )

    @staticmethod
    def default_path(path: str, name: str) -> str:
        """``{dir}/{name}{ext}`` next to the source file."""
        extension = posixpath.splitext(path)[1] or ".tsx"
        return posixpath.join(posixpath.dirname(path), name + extension)

    @staticmethod
    def locate(tree: SyntaxTree, target: str) -> Node:
        """Find the subtree by tag name or by whitespace-insensitive JSX text.

        Raises:
            PatternNotFound: If no element matches.
        """
        stripped = target.strip()
        if "<" not in stripped and JSX_NAME_PATTERN.match(stripped):
            return tree.resolve(TargetLocator(tree).element(stripped).ref)
        wanted = collapse_whitespace(stripped)
        for node in tree.walk():
            if node.type not in JSX_ELEMENT_TYPES:
                continue
            if collapse_whitespace(tree.node_text(node)) == wanted:
                return node
        raise PatternNotFound(
            stripped[:60],
            f"JSX to extract not found: {stripped[:60]!r}; {STALE_TEXT_HINT}",
        )

    @staticmethod
    def _default_react(imports: list[ImportInfo]) -> bool:
        return any(
            info.source == "react" and info.default is not None and info.default.name == "React"
            for info in imports
        )

    @staticmethod
    def _reimports(
        names: list[str], imported: dict[str, ImportInfo], from_path: str, to_path: str
    ) -> list[str]:
        grouped: dict[str, list[str]] = {}
        defaults: dict[str, str] = {}
        statements: list[str] = []
        for name in names:
            info = imported[name]
            source = rebase_source(info.source, from_path, to_path)
            spec = next(s for s in info.specifiers if s.local_name == name)
            if spec.is_namespace:
                statements.append(render_namespace_import(name, source))
            elif spec.is_default:
                defaults[source] = name
                grouped.setdefault(source, [])
            else:
                entry = f"{spec.name} as {spec.alias}" if spec.alias else spec.name
                grouped.setdefault(source, []).append(entry)
        for source, named in grouped.items():
            spec = ImportSpec(
                source, default_import=defaults.get(source), named_imports=tuple(named)
            )
            statements.append(render_import(spec))
        return statements

    @staticmethod
    def render_component(
        name: str,
        jsx: str,
        props: list[str],
        prop_types: dict[str, str],
        imports: list[str],
        typed: bool,
    ) -> str:
        """Render the new component module."""
        lines = list(imports)
        if lines:
            lines.append("")
        signature = ""
        if props:
            signature = "{ " + ", ".join(props) + " }"
            if typed:
                lines.append(f"interface {name}Props {{")
                lines += [f"  {prop}: {prop_types.get(prop, 'any')};" for prop in props]
                lines += ["}", ""]
                signature += f": {name}Props"
        lines += [
            f"export function {name}({signature}) {{",
            "  return (",
            "    " + reindent(jsx, "    "),
            "  );",
            "}",
        ]
        return "\n".join(lines) + "\n"
