"""Hook insertion handlers: useState, useEffect, useRef, useMemo, useCallback, useReducer.

Each operation renders one hook statement, inserts it into the component body
by hook priority, and then links the hook to the ``react`` import. The import
check runs on the text produced by the insertion, against the import list as
it stands at that point in the operation sequence.
"""

from collections.abc import Callable

from jsx_change_engine.core.exceptions import StructuralConflict
from jsx_change_engine.core.operations import (
    AddCallback,
    AddEffect,
    AddMemo,
    AddReducer,
    AddRef,
    AddState,
    HookOperation,
    Operation,
)
from jsx_change_engine.handlers.base import BaseOperationHandler, EditContext, EditOutcome
from jsx_change_engine.handlers.component import ComponentEditor, hook_priority
from jsx_change_engine.parsing.edits import Edit
from jsx_change_engine.parsing.handles import FunctionMatch
from jsx_change_engine.parsing.source_parser import SyntaxTree
from jsx_change_engine.utils.text import format_statement_body, reindent


def render_dependencies(dependencies: tuple[str, ...]) -> str:
    """Render a dependency array literal."""
    return "[" + ", ".join(dependencies) + "]"


class HookHandler(BaseOperationHandler):
    """Insert React hook declarations into a component."""

    operation_types = (AddState, AddEffect, AddRef, AddMemo, AddCallback, AddReducer)

    def __init__(self, editor: ComponentEditor | None = None) -> None:
        super().__init__()
        self.editor = editor or ComponentEditor()
        self._renderers: dict[type, Callable[..., tuple[str, list[str], str]]] = {
            AddState: self._render_state,
            AddEffect: self._render_effect,
            AddRef: self._render_ref,
            AddMemo: self._render_memo,
            AddCallback: self._render_callback,
            AddReducer: self._render_reducer,
        }

    def apply(self, context: EditContext, operation: Operation) -> EditOutcome:
        """Insert the hook statement, then make sure the hook is imported."""
        assert isinstance(operation, HookOperation)
        tree = context.tree
        component = self.editor.resolve(context, operation.component)
        indent, unit = self.editor.layout(tree, component)

        hook, declares, statement = self._renderers[type(operation)](operation, indent, unit)
        self.editor.check_names(tree, component, declares)

        edits = [
            self.editor.statement_edit(tree, component, statement, hook_priority(hook), indent)
        ]
        if isinstance(operation, AddReducer):
            edits.append(self._reducer_function_edit(tree, component, operation, unit))

        text = context.apply(edits)
        text = self.editor.ensure_react_import(context.advance(text), hook)

        where = component.name or "component"
        label = ", ".join(declares) if declares else hook
        self.logger.debug(f"Inserted {hook} ({label}) into {where} in {context.path}")
        return EditOutcome(text=text, summary=f"Added {hook} {label} to {where}")

    def _render_state(self, op: AddState, indent: str, unit: str) -> tuple[str, list[str], str]:
        type_args = f"<{op.type_annotation}>" if op.type_annotation else ""
        statement = f"const [{op.name}, {op.setter}] = useState{type_args}({op.initial_value});"
        return "useState", [op.name, op.setter], statement

    def _render_effect(self, op: AddEffect, indent: str, unit: str) -> tuple[str, list[str], str]:
        inner = indent + unit
        lines = ["useEffect(() => {"]
        if op.body.strip():
            lines.append(format_statement_body(op.body, inner))
        if op.cleanup:
            lines.append(f"{inner}return () => {{")
            lines.append(format_statement_body(op.cleanup, inner + unit))
            lines.append(f"{inner}}};")
        closing = f"{indent}}}" if op.dependencies is None else (
            f"{indent}}}, {render_dependencies(op.dependencies)}"
        )
        lines.append(closing + ");")
        return "useEffect", [], "\n".join(lines)

    def _render_ref(self, op: AddRef, indent: str, unit: str) -> tuple[str, list[str], str]:
        return "useRef", [op.name], f"const {op.name} = useRef({op.initial_value});"

    def _render_memo(self, op: AddMemo, indent: str, unit: str) -> tuple[str, list[str], str]:
        computation = reindent(op.computation, indent)
        deps = render_dependencies(op.dependencies)
        return "useMemo", [op.name], f"const {op.name} = useMemo(() => {computation}, {deps});"

    def _render_callback(
        self, op: AddCallback, indent: str, unit: str
    ) -> tuple[str, list[str], str]:
        params = ", ".join(op.params)
        body = format_statement_body(op.body, indent + unit)
        deps = render_dependencies(op.dependencies)
        statement = f"const {op.name} = useCallback(({params}) => {{\n{body}\n{indent}}}, {deps});"
        return "useCallback", [op.name], statement

    def _render_reducer(self, op: AddReducer, indent: str, unit: str) -> tuple[str, list[str], str]:
        statement = (
            f"const [{op.name}, {op.dispatch_name}] = "
            f"useReducer({op.reducer_name}, {op.initial_state});"
        )
        return "useReducer", [op.name, op.dispatch_name], statement

    def _reducer_function_edit(
        self, tree: SyntaxTree, component: FunctionMatch, op: AddReducer, unit: str
    ) -> Edit:
        statement = tree.resolve(component.statement)
        scope = statement.parent
        declared = tree.declared_names(scope) if scope is not None else []
        if op.reducer_name in declared:
            raise StructuralConflict(f"Reducer name '{op.reducer_name}' is already declared")

        base = tree.indent_at(statement.start_byte)
        one, two, three = base + unit, base + unit * 2, base + unit * 3
        lines = [f"function {op.reducer_name}(state, action) {{", f"{one}switch (action.type) {{"]
        for action in op.actions:
            lines.append(f"{two}case '{action.type}': {{")
            lines.append(format_statement_body(action.handler, three))
            lines.append(f"{two}}}")
        lines.extend([f"{two}default:", f"{three}return state;", f"{one}}}", f"{base}}}"])
        return Edit.insert(statement.start_byte, "\n".join(lines) + f"\n\n{base}")
