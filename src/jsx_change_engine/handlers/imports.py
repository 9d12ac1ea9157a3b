"""Import management: merge import requests into a module's import list.

Imports are deduplicated by (source, specifier). A named specifier already
imported from the same source is a no-op; missing specifiers are merged into
the existing import for that source when its shape allows it, otherwise a new
statement is inserted after the last import (or after leading directives).
"""

import re

from tree_sitter import Node

from jsx_change_engine.core.exceptions import InvalidOperationError, StructuralConflict
from jsx_change_engine.core.models import Language
from jsx_change_engine.core.operations import AddImport, ImportSpec, Operation
from jsx_change_engine.handlers.base import BaseOperationHandler, EditContext, EditOutcome
from jsx_change_engine.parsing.edits import Edit
from jsx_change_engine.parsing.handles import ImportInfo
from jsx_change_engine.parsing.source_parser import SourceParser, SyntaxTree

_AS_PATTERN = re.compile(r"\s+as\s+")


def split_specifier(entry: str) -> tuple[str, str | None]:
    """Split ``"name as alias"`` into its parts.

    Examples:
        >>> split_specifier("useState")
        ('useState', None)
        >>> split_specifier("default as Button")
        ('default', 'Button')
    """
    parts = _AS_PATTERN.split(entry.strip(), maxsplit=1)
    if len(parts) == 2 and parts[1] != parts[0]:
        return parts[0], parts[1]
    return parts[0], None


def render_import(spec: ImportSpec, quote: str = "'") -> str:
    """Render one import statement for ``spec`` (namespace imports excluded).

    Examples:
        >>> render_import(ImportSpec("react", default_import="React", named_imports=("useState",)))
        "import React, { useState } from 'react';"
        >>> render_import(ImportSpec("axios", default_import="axios"))
        "import axios from 'axios';"
    """
    source = f"{quote}{spec.source}{quote}"
    parts = []
    if spec.default_import:
        parts.append(spec.default_import)
    if spec.named_imports:
        parts.append("{ " + ", ".join(spec.named_imports) + " }")
    if not parts:
        return f"import {source};"
    return f"import {', '.join(parts)} from {source};"


def render_namespace_import(name: str, source: str, quote: str = "'") -> str:
    """Render ``import * as name from 'source';``."""
    return f"import * as {name} from {quote}{source}{quote};"


class ImportManager:
    """Plan the edits that make a module satisfy an ImportSpec."""

    def merge(self, context: EditContext, spec: ImportSpec) -> str:
        """Return the context's text with ``spec`` merged into its imports."""
        edits = self.plan(context.tree, spec)
        return context.apply(edits) if edits else context.text

    def missing(self, tree: SyntaxTree, spec: ImportSpec) -> list[str]:
        """Local names from ``spec`` that the module does not yet import from its source."""
        same_source = [
            i for i in tree.find_imports() if i.source == spec.source and not i.is_type_only
        ]
        present = {(s.name, s.alias) for i in same_source for s in i.named}
        names = [n for n in self._dedupe(spec.named_imports) if split_specifier(n) not in present]
        if spec.default_import and not any(i.default for i in same_source):
            names.insert(0, spec.default_import)
        if spec.namespace_import and not any(
            i.namespace and i.namespace.name == spec.namespace_import for i in same_source
        ):
            names.append(spec.namespace_import)
        return names

    def plan(self, tree: SyntaxTree, spec: ImportSpec) -> list[Edit]:
        """Compute the edits needed to satisfy ``spec``; empty when already satisfied.

        Raises:
            StructuralConflict: If a requested binding is already declared by
                another import or declaration, or the default import name differs
                from the existing one.
        """
        imports = tree.find_imports()
        same_source = [i for i in imports if i.source == spec.source and not i.is_type_only]
        quote = self._quote_style(tree, imports)

        if spec.is_empty:
            if any(i.source == spec.source for i in imports):
                return []
            return [self._new_statement(tree, imports, render_import(spec, quote))]

        present = {(s.name, s.alias) for i in same_source for s in i.named}
        missing_named = [
            entry
            for entry in self._dedupe(spec.named_imports)
            if split_specifier(entry) not in present
        ]

        existing_default = next((i.default for i in same_source if i.default), None)
        need_default = False
        if spec.default_import:
            if existing_default is None:
                need_default = True
            elif existing_default.name != spec.default_import:
                raise StructuralConflict(
                    f"'{spec.source}' is already default-imported as "
                    f"'{existing_default.name}', cannot import it as '{spec.default_import}'"
                )

        need_namespace = bool(spec.namespace_import) and not any(
            i.namespace and i.namespace.name == spec.namespace_import for i in same_source
        )

        new_locals = [split_specifier(e)[1] or split_specifier(e)[0] for e in missing_named]
        if need_default:
            new_locals.append(spec.default_import or "")
        if need_namespace:
            new_locals.append(spec.namespace_import or "")
        self._check_collisions(tree, imports, spec.source, new_locals)

        edits: list[Edit] = []
        new_statements: list[str] = []

        named_target = next(
            (i for i in same_source if self._named_clause(tree, i) is not None), None
        )
        default_only = next(
            (i for i in same_source if i.default and not i.named and not i.namespace),
            None,
        )
        if missing_named:
            if named_target is not None:
                edits.append(self._extend_named(tree, named_target, missing_named))
            elif default_only is not None:
                default_node = self._default_node(tree, default_only)
                edits.append(
                    Edit.insert(default_node.end_byte, ", { " + ", ".join(missing_named) + " }")
                )
            else:
                new_statements.append(
                    render_import(
                        ImportSpec(
                            spec.source,
                            default_import=spec.default_import if need_default else None,
                            named_imports=tuple(missing_named),
                        ),
                        quote,
                    )
                )
                need_default = False

        if need_default:
            target = None
            if named_target is not None and named_target.default is None:
                target = named_target
            if target is not None and target.namespace is None:
                clause = self._clause(tree, target)
                edits.append(Edit.insert(clause.start_byte, f"{spec.default_import}, "))
            else:
                default_spec = ImportSpec(spec.source, default_import=spec.default_import)
                new_statements.append(render_import(default_spec, quote))

        if need_namespace and spec.namespace_import:
            new_statements.append(
                render_namespace_import(spec.namespace_import, spec.source, quote)
            )

        if new_statements:
            edits.append(self._new_statement(tree, imports, "\n".join(new_statements)))
        return edits

    @staticmethod
    def _dedupe(entries: tuple[str, ...]) -> list[str]:
        seen: list[str] = []
        for entry in entries:
            normalized = " as ".join(part for part in split_specifier(entry) if part)
            if normalized not in seen:
                seen.append(normalized)
        return seen

    @staticmethod
    def _quote_style(tree: SyntaxTree, imports: list[ImportInfo]) -> str:
        for info in imports:
            text = tree.slice(info.ref.start, info.ref.end).rstrip().rstrip(";").rstrip()
            if text.endswith('"'):
                return '"'
            if text.endswith("'"):
                return "'"
        return "'"

    @staticmethod
    def _check_collisions(
        tree: SyntaxTree, imports: list[ImportInfo], source: str, names: list[str]
    ) -> None:
        imported_from = {
            spec.local_name: info.source
            for info in imports
            if info.source != source
            for spec in info.specifiers
        }
        imported_here = {spec.local_name for info in imports for spec in info.specifiers}
        declared = tree.module_names() - imported_here
        for name in names:
            if name in imported_from:
                raise StructuralConflict(
                    f"'{name}' is already imported from '{imported_from[name]}'"
                )
            if name in declared:
                raise StructuralConflict(f"'{name}' is already declared in this module")

    @staticmethod
    def _clause(tree: SyntaxTree, info: ImportInfo) -> Node:
        statement = tree.resolve(info.ref)
        return next(c for c in statement.named_children if c.type == "import_clause")

    def _named_clause(self, tree: SyntaxTree, info: ImportInfo) -> Node | None:
        statement = tree.resolve(info.ref)
        clause = next((c for c in statement.named_children if c.type == "import_clause"), None)
        if clause is None:
            return None
        return next((c for c in clause.named_children if c.type == "named_imports"), None)

    def _default_node(self, tree: SyntaxTree, info: ImportInfo) -> Node:
        clause = self._clause(tree, info)
        return next(c for c in clause.named_children if c.type == "identifier")

    def _extend_named(self, tree: SyntaxTree, info: ImportInfo, names: list[str]) -> Edit:
        named = self._named_clause(tree, info)
        specifiers = [c for c in named.named_children if c.type == "import_specifier"]
        if not specifiers:
            return Edit(named.start_byte, named.end_byte, "{ " + ", ".join(names) + " }")
        last = specifiers[-1]
        if "\n" in tree.node_text(named):
            indent = tree.indent_at(last.start_byte)
            return Edit.insert(last.end_byte, "".join(f",\n{indent}{name}" for name in names))
        return Edit.insert(last.end_byte, "".join(f", {name}" for name in names))

    @staticmethod
    def _new_statement(tree: SyntaxTree, imports: list[ImportInfo], statement: str) -> Edit:
        if imports:
            return Edit.insert(imports[-1].ref.end, "\n" + statement)
        directives_end = tree.directives_end()
        if directives_end:
            return Edit.insert(directives_end, "\n" + statement)
        if not tree.text.strip():
            return Edit.insert(0, statement + "\n")
        return Edit.insert(0, statement + "\n\n")


class ImportHandler(BaseOperationHandler):
    """Apply AddImport, including raw ``import ...`` statements from text-level payloads."""

    operation_types = (AddImport,)

    def __init__(self, manager: ImportManager | None = None) -> None:
        super().__init__()
        self.manager = manager or ImportManager()

    def apply(self, context: EditContext, operation: Operation) -> EditOutcome:
        """Merge the requested import."""
        assert isinstance(operation, AddImport)
        if operation.source:
            spec = operation.to_spec()
        else:
            spec = self.parse_statement(context.parser, operation.content or "")

        missing = self.manager.missing(context.tree, spec)
        text = self.manager.merge(context, spec)
        if text == context.text:
            self.logger.debug(f"Import from '{spec.source}' already satisfied in {context.path}")
            return EditOutcome(text=text, summary=f"'{spec.source}' already imported")
        return EditOutcome(
            text=text,
            summary=f"Imported {', '.join(missing) or 'module'} from '{spec.source}'",
        )

    @staticmethod
    def parse_statement(parser: SourceParser, content: str) -> ImportSpec:
        """Turn a raw import statement into an ImportSpec.

        Raises:
            InvalidOperationError: If ``content`` is not exactly one import statement.
        """
        tree = parser.parse(content.strip(), Language.TSX, strict=False)
        imports = tree.find_imports() if not tree.has_errors else []
        statements = [c for c in tree.root.named_children if c.type != "comment"]
        if len(imports) != 1 or len(statements) != 1:
            raise InvalidOperationError(f"Expected a single import statement, got {content!r}")
        info = imports[0]
        if info.is_type_only:
            raise InvalidOperationError("Type-only imports are not supported by AddImport")
        namespace = info.namespace
        return ImportSpec(
            source=info.source,
            default_import=info.default.name if info.default else None,
            named_imports=tuple(
                f"{s.name} as {s.alias}" if s.alias else s.name for s in info.named
            ),
            namespace_import=namespace.name if namespace else None,
        )
