"""Composite operations: template-rendered modules and the authentication scaffold.

Template output (context providers, zustand stores) is generated text, not an
edit of an existing node. For an empty file it becomes the whole module;
otherwise its imports go through import management and its body is appended.
Generated names that collide with existing top-level names are reported as
warnings; the generated code is not renamed.

AddAuthentication does not use a template module. It is composed from the
primitive edits (state hooks, handler statements, a login guard, and a JSX
insertion), each one applied to the text left by the previous one.
"""

from tree_sitter import Node

from jsx_change_engine.core.exceptions import StructuralConflict
from jsx_change_engine.core.operations import (
    AddAuthentication,
    AddContextProvider,
    AddState,
    AddZustandStore,
    JsxPosition,
    Operation,
)
from jsx_change_engine.handlers.base import BaseOperationHandler, EditContext, EditOutcome
from jsx_change_engine.handlers.component import STATEMENT_PRIORITY, ComponentEditor
from jsx_change_engine.handlers.hooks import HookHandler
from jsx_change_engine.handlers.imports import ImportManager
from jsx_change_engine.handlers.jsx import JsxInsertHandler
from jsx_change_engine.parsing.edits import Edit
from jsx_change_engine.templates import (
    RenderedModule,
    authentication,
    render_context_provider,
    render_zustand_store,
)
from jsx_change_engine.templates.base import is_typed_path


class TemplateHandler(BaseOperationHandler):
    """Render AddContextProvider and AddZustandStore templates into a file."""

    operation_types = (AddContextProvider, AddZustandStore)

    def __init__(self, imports: ImportManager | None = None) -> None:
        super().__init__()
        self.imports = imports or ImportManager()

    def apply(self, context: EditContext, operation: Operation) -> EditOutcome:
        """Render the template into the current file or into a separate store file."""
        assert isinstance(operation, AddContextProvider | AddZustandStore)
        if isinstance(operation, AddZustandStore):
            store_file = operation.store_file
            if store_file and store_file != context.path:
                module = render_zustand_store(operation, typed=is_typed_path(store_file))
                self.logger.info(f"Rendering store {operation.store_name} into {store_file}")
                return EditOutcome(
                    text=context.text,
                    created_files={store_file: module.render()},
                    summary=f"Created zustand store {operation.store_name} in {store_file}",
                )
            module = render_zustand_store(operation, typed=is_typed_path(context.path))
            summary = f"Added zustand store {operation.store_name}"
        else:
            module = render_context_provider(operation, typed=is_typed_path(context.path))
            summary = f"Added context provider {operation.context_name}"

        if not context.text.strip():
            return EditOutcome(text=module.render(), summary=summary)

        text, warnings = self.attach(context, module, operation.kind)
        return EditOutcome(text=text, warnings=warnings, summary=summary)

    def attach(
        self, context: EditContext, module: RenderedModule, kind: str
    ) -> tuple[str, list[str]]:
        """Merge the module's imports into the file and append its body.

        Returns:
            Tuple of (new text, collision warnings).
        """
        existing = context.tree.module_names()
        warnings = [
            f"'{name}' is already declared in {context.path}; generated {kind} code was not renamed"
            for name in module.declares
            if name in existing
        ]
        for warning in warnings:
            self.logger.warning(warning)

        current = context
        for spec in module.imports:
            current = current.advance(self.imports.merge(current, spec))
        body = module.body.strip("\n")
        return current.text.rstrip("\n") + "\n\n" + body + "\n", warnings


class AuthenticationHandler(BaseOperationHandler):
    """Scaffold login state, handlers, a login form guard, and a logout button."""

    operation_types = (AddAuthentication,)

    def __init__(self, hooks: HookHandler | None = None) -> None:
        super().__init__()
        self.hooks = hooks or HookHandler()
        self.editor: ComponentEditor = self.hooks.editor

    def apply(self, context: EditContext, operation: Operation) -> EditOutcome:
        """Apply the scaffold steps in order, reparsing between steps."""
        assert isinstance(operation, AddAuthentication)
        styled = operation.login_form_style == "styled"
        with_email = operation.include_email_field

        current = context
        for name, setter, initial in authentication.state_variables(with_email):
            state = AddState(
                name=name, setter=setter, initial_value=initial, component=operation.component
            )
            current = current.advance(self.hooks.apply(current, state).text)

        current = current.advance(self._add_handlers(current, operation))

        warnings: list[str] = []
        text = self._add_guard_and_logout(current, operation, styled, warnings)
        return EditOutcome(
            text=text,
            warnings=warnings,
            summary="Added authentication with login/logout",
        )

    def _add_handlers(self, context: EditContext, operation: AddAuthentication) -> str:
        tree = context.tree
        component = self.editor.resolve(context, operation.component)
        self.editor.check_names(tree, component, ["handleLogin", "handleLogout"])
        indent, unit = self.editor.layout(tree, component)
        statement = (
            authentication.login_handler(operation.include_email_field, indent, unit)
            + f"\n\n{indent}"
            + authentication.logout_handler(operation.include_email_field, indent, unit)
        )
        return context.apply(
            [self.editor.statement_edit(tree, component, statement, STATEMENT_PRIORITY, indent)]
        )

    def _add_guard_and_logout(
        self,
        context: EditContext,
        operation: AddAuthentication,
        styled: bool,
        warnings: list[str],
    ) -> str:
        tree = context.tree
        component = self.editor.resolve(context, operation.component)
        where = component.name or "component"
        body = tree.resolve(component.body)
        returns = [child for child in body.named_children if child.type == "return_statement"]
        if not returns:
            raise StructuralConflict(f"{where} has no return statement to guard with a login form")
        main_return = returns[0]

        indent = tree.indent_at(main_return.start_byte)
        unit = self.editor.layout(tree, component)[1]
        form = authentication.login_form(operation.include_email_field, styled)
        guard = authentication.login_guard(form, indent, unit)
        edits = [Edit.insert(main_return.start_byte, f"{guard}\n\n{indent}")]

        root = self._returned_jsx(main_return)
        button = authentication.logout_button(styled)
        if root is None:
            warnings.append(f"{where} does not return a JSX element; logout button not added")
        elif root.type == "jsx_self_closing_element":
            tag = tree.element_tag(root)
            edits.append(JsxInsertHandler.expand_self_closing(tree, root, tag, button, unit))
        else:
            edits.append(
                JsxInsertHandler.child_edit(tree, root, button, JsxPosition.INSIDE_START, unit)
            )
        return context.apply(edits)

    @staticmethod
    def _returned_jsx(statement: Node) -> Node | None:
        expression = statement.named_children[0] if statement.named_children else None
        while expression is not None and expression.type == "parenthesized_expression":
            expression = expression.named_children[0] if expression.named_children else None
        if expression is None:
            return None
        if expression.type in ("jsx_element", "jsx_self_closing_element"):
            return expression
        return None
