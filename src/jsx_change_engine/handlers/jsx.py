"""JSX element handlers: className rewriting, fragment insertion, prop edits, wrapping.

All four operations target the first element with the requested tag in
document order. Edits are computed against the opening tag (attributes) or the
whole element (insertion and wrapping) and keep the surrounding indentation.
"""

from tree_sitter import Node

from jsx_change_engine.core.exceptions import StructuralConflict
from jsx_change_engine.core.models import Language
from jsx_change_engine.core.operations import (
    ClassNameTemplate,
    InsertJSX,
    JsxPosition,
    ModifyClassName,
    ModifyProp,
    Operation,
    PropAction,
    WrapElement,
)
from jsx_change_engine.handlers.base import BaseOperationHandler, EditContext, EditOutcome
from jsx_change_engine.handlers.imports import ImportManager
from jsx_change_engine.parsing.edits import Edit
from jsx_change_engine.parsing.source_parser import SourceParser, SyntaxTree
from jsx_change_engine.utils.text import detect_indent_unit, reindent


def attribute_name(tree: SyntaxTree, attribute: Node) -> str:
    """Name of a ``jsx_attribute`` node."""
    return tree.node_text(attribute.named_children[0]) if attribute.named_children else ""


def attribute_value(attribute: Node) -> Node | None:
    """Value node of a ``jsx_attribute``, or None for boolean shorthand."""
    return attribute.named_children[-1] if len(attribute.named_children) > 1 else None


def find_attribute(tree: SyntaxTree, opening: Node, name: str) -> Node | None:
    """First attribute called ``name`` on an opening tag."""
    return next(
        (
            child
            for child in opening.named_children
            if child.type == "jsx_attribute" and attribute_name(tree, child) == name
        ),
        None,
    )


def has_spread(opening: Node) -> bool:
    """True when the opening tag carries ``{...props}``."""
    return any(
        child.type == "jsx_expression"
        and any(grand.type == "spread_element" for grand in child.named_children)
        for child in opening.named_children
    )


def attribute_anchor(opening: Node) -> int:
    """Byte offset after the tag name and existing attributes, where new ones go."""
    last = opening.child_by_field_name("name")
    for child in opening.named_children:
        if child.type in ("jsx_attribute", "jsx_expression", "type_arguments"):
            last = child
    if last is None:
        raise StructuralConflict("Cannot add attributes to a fragment")
    return last.end_byte


def render_prop(name: str, value: str | None) -> str:
    """Render one JSX attribute.

    Examples:
        >>> render_prop("disabled", None)
        'disabled'
        >>> render_prop("type", "'submit'")
        'type="submit"'
        >>> render_prop("onClick", "handleClick")
        'onClick={handleClick}'
    """
    if value is None:
        return name
    stripped = value.strip()
    if len(stripped) >= 2 and stripped[0] in "'\"" and stripped[-1] == stripped[0]:
        inner = stripped[1:-1]
        if '"' not in inner and "\\" not in inner:
            return f'{name}="{inner}"'
        return f"{name}={{{stripped}}}"
    if stripped.startswith("{") and stripped.endswith("}"):
        return f"{name}={stripped}"
    return f"{name}={{{stripped}}}"


def render_condition(template: ClassNameTemplate) -> str:
    """Render a conditional class fragment for a template literal."""
    if template.operator == "&&":
        return f"${{{template.variable} && '{template.true_value}'}}"
    return f"${{{template.variable} ? '{template.true_value}' : '{template.false_value}'}}"


class ClassNameHandler(BaseOperationHandler):
    """Rewrite ``className`` while keeping the classes already present."""

    operation_types = (ModifyClassName,)

    def apply(self, context: EditContext, operation: Operation) -> EditOutcome:
        """Replace or add the className attribute on the target element."""
        assert isinstance(operation, ModifyClassName)
        tree = context.tree
        element = context.locator.element(operation.target_element)
        opening = tree.resolve(element.opening)
        attribute = find_attribute(tree, opening, "className")

        static: list[str] = []
        dynamic: list[str] = []
        if attribute is not None:
            static, dynamic = self._existing_parts(tree, attribute)
        for cls in operation.static_classes:
            for name in cls.split():
                if name not in static:
                    static.append(name)

        if operation.template is not None:
            dynamic.append(render_condition(operation.template))
        if operation.raw_template:
            dynamic.append(operation.raw_template.strip().strip("`"))

        if dynamic:
            value = "{`" + " ".join([*static, *dynamic]) + "`}"
        else:
            value = '"' + " ".join(static) + '"'
        rendered = f"className={value}"

        if attribute is not None:
            edit = Edit(attribute.start_byte, attribute.end_byte, rendered)
        else:
            edit = Edit.insert(attribute_anchor(opening), " " + rendered)
        self.logger.debug(f"className on <{operation.target_element}> -> {value}")
        return EditOutcome(
            text=context.apply([edit]),
            summary=f"Modified className on <{operation.target_element}>",
        )

    @staticmethod
    def _existing_parts(tree: SyntaxTree, attribute: Node) -> tuple[list[str], list[str]]:
        value = attribute_value(attribute)
        if value is None:
            return [], []
        if value.type == "string":
            return tree.string_value(value).split(), []
        inner = value.named_children[0] if value.named_children else None
        if inner is None:
            return [], []
        if inner.type == "string":
            return tree.string_value(inner).split(), []
        if inner.type == "template_string":
            body = tree.node_text(inner)[1:-1]
            if not any(c.type == "template_substitution" for c in inner.named_children):
                return body.split(), []
            return [], [body.strip()]
        return [], [f"${{{tree.node_text(inner)}}}"]


class JsxInsertHandler(BaseOperationHandler):
    """Splice a JSX fragment before, after, or inside the target element."""

    operation_types = (InsertJSX,)

    def apply(self, context: EditContext, operation: Operation) -> EditOutcome:
        """Insert the fragment at the requested position."""
        assert isinstance(operation, InsertJSX)
        self.check_fragment(context.parser, operation.jsx)
        tree = context.tree
        element = context.locator.element(operation.target_element)
        node = tree.resolve(element.ref)
        unit = detect_indent_unit(tree.text)
        position = operation.position

        if position in (JsxPosition.BEFORE, JsxPosition.AFTER):
            edit = self._sibling_edit(tree, node, operation, position)
        elif node.type == "jsx_self_closing_element":
            edit = self.expand_self_closing(tree, node, element.tag, operation.jsx, unit)
        else:
            edit = self.child_edit(tree, node, operation.jsx, position, unit)

        return EditOutcome(
            text=context.apply([edit]),
            summary=f"Inserted JSX {position} <{operation.target_element}>",
        )

    @staticmethod
    def check_fragment(parser: SourceParser, jsx: str) -> None:
        """Make sure ``jsx`` is a sequence of JSX children.

        Raises:
            StructuralConflict: If the fragment does not parse.
        """
        wrapped = f"const fragment = (\n<>\n{jsx}\n</>\n);\n"
        probe = parser.parse(wrapped, Language.TSX, strict=False)
        error = probe.first_error()
        if error is not None:
            raise StructuralConflict(
                f"JSX fragment does not parse: {error.describe()} in {jsx.strip()[:60]!r}"
            )

    @staticmethod
    def _sibling_edit(
        tree: SyntaxTree, node: Node, operation: InsertJSX, position: JsxPosition
    ) -> Edit:
        parent = node.parent
        if parent is None or parent.type != "jsx_element":
            raise StructuralConflict(
                f"<{operation.target_element}> is not a JSX child; "
                f"cannot insert {position} it"
            )
        if tree.starts_line(node.start_byte):
            indent = tree.indent_at(node.start_byte)
            fragment = reindent(operation.jsx, indent)
            if position is JsxPosition.BEFORE:
                return Edit.insert(node.start_byte, f"{fragment}\n{indent}")
            return Edit.insert(node.end_byte, f"\n{indent}{fragment}")
        fragment = " ".join(operation.jsx.split())
        offset = node.start_byte if position is JsxPosition.BEFORE else node.end_byte
        return Edit.insert(offset, fragment)

    @staticmethod
    def expand_self_closing(tree: SyntaxTree, node: Node, tag: str, jsx: str, unit: str) -> Edit:
        indent = tree.indent_at(node.start_byte)
        child_indent = indent + unit
        head = tree.node_text(node)[:-2].rstrip()
        fragment = reindent(jsx, child_indent)
        return Edit(
            node.start_byte,
            node.end_byte,
            f"{head}>\n{child_indent}{fragment}\n{indent}</{tag}>",
        )

    @staticmethod
    def child_edit(
        tree: SyntaxTree, node: Node, jsx: str, position: JsxPosition, unit: str
    ) -> Edit:
        opening = tree.opening_element(node)
        closing = tree.closing_element(node)
        if opening is None or closing is None:
            raise StructuralConflict("Target element has no closing tag")
        children = [
            child
            for child in node.named_children
            if child.start_byte >= opening.end_byte
            and child.end_byte <= closing.start_byte
            and not (child.type == "jsx_text" and not tree.node_text(child).strip())
        ]
        indent = tree.indent_at(node.start_byte)
        child_indent = next(
            (tree.indent_at(c.start_byte) for c in children if tree.starts_line(c.start_byte)),
            indent + unit,
        )
        fragment = reindent(jsx, child_indent)
        multiline = tree.starts_line(closing.start_byte)

        if position is JsxPosition.INSIDE_START:
            if multiline:
                return Edit.insert(opening.end_byte, f"\n{child_indent}{fragment}")
            return Edit.insert(opening.end_byte, " ".join(jsx.split()))

        if multiline:
            anchor = children[-1].end_byte if children else opening.end_byte
            if children and children[-1].type == "jsx_text":
                text = tree.node_text(children[-1])
                anchor = children[-1].start_byte + len(text.rstrip().encode("utf-8"))
            return Edit.insert(anchor, f"\n{child_indent}{fragment}")
        return Edit.insert(closing.start_byte, " ".join(jsx.split()))


class PropHandler(BaseOperationHandler):
    """Add, update, or remove one prop on the target element."""

    operation_types = (ModifyProp,)

    def apply(self, context: EditContext, operation: Operation) -> EditOutcome:
        """Edit the prop on the element's opening tag."""
        assert isinstance(operation, ModifyProp)
        tree = context.tree
        element = context.locator.element(operation.target_element)
        opening = tree.resolve(element.opening)
        attribute = find_attribute(tree, opening, operation.prop_name)
        where = f"<{operation.target_element}>"

        if operation.action is PropAction.ADD:
            if attribute is not None:
                raise StructuralConflict(
                    f"Prop '{operation.prop_name}' already exists on {where}; use action 'update'"
                )
            rendered = render_prop(operation.prop_name, operation.prop_value)
            edit = Edit.insert(attribute_anchor(opening), " " + rendered)
        else:
            if attribute is None:
                reason = (
                    "it may come from a spread attribute"
                    if has_spread(opening)
                    else "it is not set"
                )
                raise StructuralConflict(
                    f"Cannot {operation.action} prop '{operation.prop_name}' on {where}: {reason}"
                )
            if operation.action is PropAction.UPDATE:
                rendered = render_prop(operation.prop_name, operation.prop_value)
                edit = Edit(attribute.start_byte, attribute.end_byte, rendered)
            else:
                previous = attribute.prev_sibling
                start = previous.end_byte if previous is not None else attribute.start_byte
                edit = Edit.delete(start, attribute.end_byte)

        return EditOutcome(
            text=context.apply([edit]),
            summary=f"{str(operation.action).capitalize()} prop '{operation.prop_name}' on {where}",
        )


class WrapHandler(BaseOperationHandler):
    """Wrap the target element in a wrapper component."""

    operation_types = (WrapElement,)

    def __init__(self, imports: ImportManager | None = None) -> None:
        super().__init__()
        self.imports = imports or ImportManager()

    def apply(self, context: EditContext, operation: Operation) -> EditOutcome:
        """Replace the element with ``<Wrapper>{element}</Wrapper>``."""
        assert isinstance(operation, WrapElement)
        tree = context.tree
        element = context.locator.element(operation.target_element)
        node = tree.resolve(element.ref)
        indent = tree.indent_at(node.start_byte)
        inner_indent = indent + detect_indent_unit(tree.text)

        props = "".join(
            " " + render_prop(name, value) for name, value in operation.wrapper_props.items()
        )
        wrapper = operation.wrapper_component
        wrapped = reindent(tree.node_text(node), inner_indent)
        replacement = f"<{wrapper}{props}>\n{inner_indent}{wrapped}\n{indent}</{wrapper}>"
        text = context.apply([Edit(node.start_byte, node.end_byte, replacement)])

        if operation.import_spec is not None:
            text = self.imports.merge(context.advance(text), operation.import_spec)
        return EditOutcome(
            text=text,
            summary=f"Wrapped <{operation.target_element}> in <{wrapper}>",
        )
