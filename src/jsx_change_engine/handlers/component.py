"""Statement insertion into component function bodies.

Hook statements are kept in a stable order by priority: state first, then
reducers, context, refs, memos, callbacks, and effects last. Plain statements
(event handlers and the like) go after every hook and before ``return``.
"""

import logging
from collections.abc import Sequence

from jsx_change_engine.core.exceptions import StructuralConflict
from jsx_change_engine.core.operations import ImportSpec
from jsx_change_engine.handlers.base import EditContext
from jsx_change_engine.handlers.imports import ImportManager
from jsx_change_engine.parsing.edits import Edit
from jsx_change_engine.parsing.handles import FunctionMatch
from jsx_change_engine.parsing.source_parser import SyntaxTree
from jsx_change_engine.utils.text import detect_indent_unit, reindent

logger = logging.getLogger(__name__)

HOOK_PRIORITY: dict[str, int] = {
    "useState": 0,
    "useReducer": 1,
    "useContext": 2,
    "useRef": 3,
    "useMemo": 4,
    "useCallback": 5,
    "useEffect": 6,
    "useLayoutEffect": 6,
}
CUSTOM_HOOK_PRIORITY = HOOK_PRIORITY["useContext"]
STATEMENT_PRIORITY = 100


def hook_priority(name: str | None) -> int:
    """Ordering rank of a hook; unknown custom hooks rank with ``useContext``."""
    if name is None:
        return STATEMENT_PRIORITY
    return HOOK_PRIORITY.get(name, CUSTOM_HOOK_PRIORITY)


class ComponentEditor:
    """Locate a component and compute edits that insert statements into its body."""

    def __init__(self, imports: ImportManager | None = None) -> None:
        self.imports = imports or ImportManager()

    def resolve(self, context: EditContext, name: str | None) -> FunctionMatch:
        """Find the target component in the current tree."""
        return context.locator.component(name)

    def layout(self, tree: SyntaxTree, component: FunctionMatch) -> tuple[str, str]:
        """Return (statement indent inside the body, indentation unit)."""
        unit = detect_indent_unit(tree.text)
        body = tree.resolve(component.body)
        if body.type == "statement_block":
            statements = [c for c in body.named_children if c.type != "comment"]
            if statements:
                return tree.indent_at(statements[0].start_byte), unit
            return tree.indent_at(body.start_byte) + unit, unit
        return tree.indent_at(tree.resolve(component.statement).start_byte) + unit, unit

    def declared_names(self, tree: SyntaxTree, component: FunctionMatch) -> set[str]:
        """Names declared at the top of the component body, including parameters."""
        body = tree.resolve(component.body)
        if body.type == "statement_block":
            return set(tree.declared_names(body))
        if component.parameters is None:
            return set()
        return set(tree.pattern_names(tree.resolve(component.parameters)))

    def check_names(self, tree: SyntaxTree, component: FunctionMatch, names: Sequence[str]) -> None:
        """Refuse to introduce a binding that already exists in the component scope.

        Raises:
            StructuralConflict: If any name is already declared.
        """
        declared = self.declared_names(tree, component)
        taken = [name for name in names if name in declared]
        if taken:
            where = component.name or "the component"
            raise StructuralConflict(
                f"{', '.join(repr(n) for n in taken)} already declared in {where}"
            )

    def statement_edit(
        self,
        tree: SyntaxTree,
        component: FunctionMatch,
        statement: str,
        priority: int,
        indent: str,
    ) -> Edit:
        """Edit inserting ``statement`` (already rendered for ``indent``) into the body.

        The statement goes after the last hook of equal or lower priority, else
        before the first hook of higher priority, else first in the body.
        Expression-bodied arrow components are converted to a block body.
        """
        body = tree.resolve(component.body)
        if body.type != "statement_block":
            outer = tree.indent_at(tree.resolve(component.statement).start_byte)
            expression = reindent(tree.node_text(body), indent)
            block = f"{{\n{indent}{statement}\n{indent}return {expression};\n{outer}}}"
            return Edit(body.start_byte, body.end_byte, block)

        statements = [c for c in body.named_children if c.type != "comment"]
        ranked = [
            (stmt, hook_priority(tree.hook_name(stmt)))
            for stmt in statements
            if tree.hook_name(stmt) is not None
        ]
        before = [stmt for stmt, rank in ranked if rank <= priority]
        if priority >= STATEMENT_PRIORITY:
            anchor_candidates = [s for s in statements if s.type != "return_statement"]
            returns = [s for s in statements if s.type == "return_statement"]
            if returns:
                first_return = returns[0]
                anchor_candidates = [
                    s for s in anchor_candidates if s.end_byte <= first_return.start_byte
                ]
                if not anchor_candidates:
                    return Edit.insert(first_return.start_byte, f"{statement}\n\n{indent}")
            before = anchor_candidates
        if before:
            return Edit.insert(before[-1].end_byte, f"\n{indent}{statement}")
        after = [stmt for stmt, rank in ranked if rank > priority]
        if after:
            return Edit.insert(after[0].start_byte, f"{statement}\n{indent}")
        return Edit.insert(body.start_byte + 1, f"\n{indent}{statement}")

    def ensure_react_import(self, context: EditContext, hook: str) -> str:
        """Add ``hook`` to the react import unless some import already binds it."""
        tree = context.tree
        bound = {spec.local_name for info in tree.find_imports() for spec in info.specifiers}
        if hook in bound:
            return context.text
        return self.imports.merge(context, ImportSpec("react", named_imports=(hook,)))
