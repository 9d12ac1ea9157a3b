"""Free-variable analysis for JSX subtrees.

Used by ExtractComponent to infer props and re-imports, and by the extraction
advisor to estimate the props a suggested component would need.
"""

from tree_sitter import Node

from jsx_change_engine.parsing.source_parser import FUNCTION_TYPES, SCOPE_TYPES, SyntaxTree

KNOWN_GLOBALS = frozenset(
    {
        "undefined",
        "NaN",
        "Infinity",
        "globalThis",
        "window",
        "document",
        "navigator",
        "console",
        "localStorage",
        "sessionStorage",
        "fetch",
        "alert",
        "confirm",
        "prompt",
        "setTimeout",
        "clearTimeout",
        "setInterval",
        "clearInterval",
        "requestAnimationFrame",
        "cancelAnimationFrame",
        "parseInt",
        "parseFloat",
        "isNaN",
        "isFinite",
        "encodeURIComponent",
        "decodeURIComponent",
        "structuredClone",
        "Math",
        "JSON",
        "Object",
        "Array",
        "Number",
        "String",
        "Boolean",
        "Symbol",
        "BigInt",
        "Date",
        "RegExp",
        "Error",
        "Promise",
        "Map",
        "Set",
        "WeakMap",
        "WeakSet",
        "Intl",
        "URL",
        "URLSearchParams",
        "FormData",
        "process",
    }
)

_JSX_TAG_PARENTS = frozenset(
    {"jsx_opening_element", "jsx_closing_element", "jsx_self_closing_element"}
)


def _is_tag_name(node: Node) -> bool:
    parent = node.parent
    if parent is None or parent.type not in _JSX_TAG_PARENTS:
        return False
    name = parent.child_by_field_name("name")
    if name is None:
        return False
    return name.start_byte == node.start_byte and name.end_byte == node.end_byte


def _local_bindings(tree: SyntaxTree, root: Node) -> set[str]:
    """Names declared anywhere inside ``root`` (parameters, declarators, catch clauses)."""
    bound: set[str] = set()
    for node in tree.walk(root):
        if node.type in FUNCTION_TYPES:
            params = node.child_by_field_name("parameters") or node.child_by_field_name("parameter")
            bound.update(tree.pattern_names(params))
            if node.type in ("function_declaration", "function_expression", "function"):
                name = node.child_by_field_name("name")
                if name is not None:
                    bound.add(tree.node_text(name))
        elif node.type == "variable_declarator":
            bound.update(tree.pattern_names(node.child_by_field_name("name")))
        elif node.type == "catch_clause":
            bound.update(tree.pattern_names(node.child_by_field_name("parameter")))
    return bound


def free_identifiers(tree: SyntaxTree, root: Node) -> list[str]:
    """Identifiers referenced in ``root`` but not declared inside it, in first-use order.

    Lowercase JSX tag names (intrinsic elements) and known globals are skipped;
    capitalized tag names count as references to components.
    """
    bound = _local_bindings(tree, root)
    seen: list[str] = []
    for node in tree.walk(root):
        if node.type not in ("identifier", "shorthand_property_identifier"):
            continue
        name = tree.node_text(node)
        if _is_tag_name(node):
            if node.parent is not None and node.parent.type == "jsx_closing_element":
                continue
            if not name[:1].isupper():
                continue
        if name in bound or name in KNOWN_GLOBALS or name in seen:
            continue
        seen.append(name)
    return seen


def enclosing_bindings(tree: SyntaxTree, node: Node) -> set[str]:
    """Names visible at ``node`` from the scopes and functions that enclose it."""
    names: set[str] = set()
    current = node.parent
    while current is not None:
        if current.type in SCOPE_TYPES:
            names.update(tree.declared_names(current))
            for statement in current.named_children:
                if statement.type == "variable_declaration":
                    for declarator in statement.named_children:
                        names.update(tree.pattern_names(declarator.child_by_field_name("name")))
        elif current.type in FUNCTION_TYPES:
            params = current.child_by_field_name("parameters") or current.child_by_field_name(
                "parameter"
            )
            names.update(tree.pattern_names(params))
        elif current.type == "catch_clause":
            names.update(tree.pattern_names(current.child_by_field_name("parameter")))
        current = current.parent
    return names
