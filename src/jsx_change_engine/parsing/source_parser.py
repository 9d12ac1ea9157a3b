"""Source parser built on tree-sitter's TSX and TypeScript grammars.

A SyntaxTree pairs one immutable tree-sitter tree with the text it was parsed
from and exposes the typed queries the operation catalog needs. Trees are never
edited in place: every edit produces new text which is parsed into a new tree
with a new version number.
"""

import itertools
import logging
import re
import threading
from collections import Counter
from collections.abc import Iterator

import tree_sitter_typescript
from tree_sitter import Language as TSLanguage
from tree_sitter import Node, Parser, Tree

from jsx_change_engine.core.exceptions import InvalidOperationError, ParseError, StaleHandleError
from jsx_change_engine.core.models import Language
from jsx_change_engine.parsing.handles import (
    ElementMatch,
    ErrorInfo,
    EventHandler,
    FunctionMatch,
    ImportInfo,
    ImportSpecifier,
    NodeRef,
    StateVariable,
    VariableMatch,
)
from jsx_change_engine.parsing.tree_cache import TreeCache

FUNCTION_TYPES = frozenset(
    {
        "function_declaration",
        "generator_function_declaration",
        "arrow_function",
        "function_expression",
        "function",
        "generator_function",
        "method_definition",
    }
)
SCOPE_TYPES = frozenset({"program", "statement_block"})
JSX_ELEMENT_TYPES = frozenset({"jsx_element", "jsx_self_closing_element"})
HOOK_NAME_PATTERN = re.compile(r"^use[A-Z0-9]")
EVENT_ATTRIBUTE_PATTERN = re.compile(r"^on[A-Z]")

_GRAMMARS: dict[Language, TSLanguage] = {}
_GRAMMAR_LOCK = threading.Lock()
_VERSIONS = itertools.count(1)


def _grammar(language: Language) -> TSLanguage:
    with _GRAMMAR_LOCK:
        if language not in _GRAMMARS:
            if language is Language.TYPESCRIPT:
                _GRAMMARS[language] = TSLanguage(tree_sitter_typescript.language_typescript())
            else:
                _GRAMMARS[language] = TSLanguage(tree_sitter_typescript.language_tsx())
        return _GRAMMARS[language]


def _same_span(a: Node | None, b: Node | None) -> bool:
    return (
        a is not None
        and b is not None
        and a.start_byte == b.start_byte
        and a.end_byte == b.end_byte
        and a.type == b.type
    )


def is_hook_name(name: str | None) -> bool:
    """True for React hook names such as ``useState`` or ``useAuth``."""
    return bool(name) and (name == "use" or bool(HOOK_NAME_PATTERN.match(name)))


class SyntaxTree:
    """Parsed representation of one file's current text.

    Byte offsets used throughout (spans, NodeRefs, edits) index into
    ``source``, the UTF-8 encoding of ``text``.
    """

    def __init__(self, text: str, language: Language, tree: Tree | None, version: int) -> None:
        self.text = text
        self.source = text.encode("utf-8")
        self.language = language
        self.version = version
        self._tree = tree

    @property
    def root(self) -> Node:
        """Root ``program`` node."""
        if self._tree is None:
            raise InvalidOperationError(f"{self.language.value} files have no syntax tree")
        return self._tree.root_node

    @property
    def has_errors(self) -> bool:
        """True when the grammar reported at least one ERROR or MISSING node."""
        return self._tree is not None and self._tree.root_node.has_error

    # ------------------------------------------------------------------
    # Text access

    def node_text(self, node: Node) -> str:
        """Return the source text covered by ``node``."""
        return self.source[node.start_byte : node.end_byte].decode("utf-8")

    def slice(self, start: int, end: int) -> str:
        """Return the source text between two byte offsets."""
        return self.source[start:end].decode("utf-8")

    def line_col(self, offset: int) -> tuple[int, int]:
        """Convert a byte offset to a 1-indexed (line, column) pair."""
        line = self.source.count(b"\n", 0, offset) + 1
        column = offset - (self.source.rfind(b"\n", 0, offset) + 1) + 1
        return line, column

    def line_start(self, offset: int) -> int:
        """Byte offset of the start of the line containing ``offset``."""
        return self.source.rfind(b"\n", 0, offset) + 1

    def indent_at(self, offset: int) -> str:
        """Leading whitespace of the line containing ``offset``."""
        start = self.line_start(offset)
        end = start
        while end < len(self.source) and self.source[end : end + 1] in (b" ", b"\t"):
            end += 1
        return self.source[start:end].decode("utf-8")

    def starts_line(self, offset: int) -> bool:
        """True when only whitespace precedes ``offset`` on its line."""
        return not self.source[self.line_start(offset) : offset].strip()

    # ------------------------------------------------------------------
    # Node handles

    def ref(self, node: Node) -> NodeRef:
        """Create a handle for ``node`` bound to this tree version."""
        return NodeRef(self.version, node.start_byte, node.end_byte, node.type)

    def resolve(self, ref: NodeRef) -> Node:
        """Find the node a handle points to.

        Raises:
            StaleHandleError: If the handle was produced by another tree version.
        """
        if ref.version != self.version:
            raise StaleHandleError(
                f"Handle for {ref.type} belongs to tree version {ref.version}, "
                f"current version is {self.version}"
            )
        node: Node | None = self.root.descendant_for_byte_range(ref.start, ref.end)
        while node is not None and node.start_byte == ref.start and node.end_byte == ref.end:
            if node.type == ref.type:
                return node
            node = node.parent
        raise StaleHandleError(f"No {ref.type} node at bytes {ref.start}-{ref.end}")

    def walk(self, node: Node | None = None) -> Iterator[Node]:
        """Yield ``node`` and its descendants in document order."""
        stack = [node if node is not None else self.root]
        while stack:
            current = stack.pop()
            yield current
            stack.extend(reversed(current.children))

    # ------------------------------------------------------------------
    # Diagnostics

    def errors(self) -> list[ErrorInfo]:
        """List ERROR and MISSING nodes in document order."""
        if not self.has_errors:
            return []
        found = []
        for node in self.walk():
            if node.is_missing:
                line, column = self.line_col(node.start_byte)
                found.append(ErrorInfo(line, column, "", f"MISSING {node.type}"))
            elif node.is_error:
                line, column = self.line_col(node.start_byte)
                text = " ".join(self.node_text(node).split())
                found.append(ErrorInfo(line, column, text, "ERROR"))
        if not found:
            found.append(ErrorInfo(1, 1, "", "ERROR"))
        return found

    def first_error(self) -> ErrorInfo | None:
        """The earliest syntax error, or None for a clean tree."""
        errors = self.errors()
        return errors[0] if errors else None

    # ------------------------------------------------------------------
    # Node helpers

    def string_value(self, node: Node) -> str:
        """Unquote a string literal node."""
        text = self.node_text(node)
        if len(text) >= 2 and text[0] in "'\"`" and text[-1] == text[0]:
            return text[1:-1]
        return text

    def element_tag(self, node: Node) -> str:
        """Tag name of a JSX element, or "" for fragments."""
        opening = self.opening_element(node)
        name = opening.child_by_field_name("name") if opening is not None else None
        return self.node_text(name) if name is not None else ""

    def opening_element(self, node: Node) -> Node | None:
        """The opening tag of a JSX element (the element itself when self-closing)."""
        if node.type == "jsx_self_closing_element":
            return node
        opening = node.child_by_field_name("open_tag")
        if opening is None:
            opening = next((c for c in node.children if c.type == "jsx_opening_element"), None)
        return opening

    def closing_element(self, node: Node) -> Node | None:
        """The closing tag of a JSX element, if any."""
        if node.type != "jsx_element":
            return None
        closing = node.child_by_field_name("close_tag")
        if closing is None:
            closing = next((c for c in node.children if c.type == "jsx_closing_element"), None)
        return closing

    def callee_name(self, call: Node) -> str | None:
        """Last name segment of a call's callee (``useState`` for ``React.useState``)."""
        function = call.child_by_field_name("function")
        if function is None:
            return None
        if function.type == "identifier":
            return self.node_text(function)
        if function.type == "member_expression":
            prop = function.child_by_field_name("property")
            return self.node_text(prop) if prop is not None else None
        return None

    def hook_name(self, statement: Node) -> str | None:
        """Hook called by a top-level statement, e.g. ``useState`` for a state declaration."""
        calls: list[Node] = []
        if statement.type in ("lexical_declaration", "variable_declaration"):
            for declarator in statement.named_children:
                value = declarator.child_by_field_name("value")
                if value is not None:
                    calls.append(value)
        elif statement.type == "expression_statement" and statement.named_children:
            calls.append(statement.named_children[0])
        for call in calls:
            if call.type == "await_expression" and call.named_children:
                call = call.named_children[0]
            if call.type == "call_expression":
                name = self.callee_name(call)
                if is_hook_name(name):
                    return name
        return None

    def pattern_names(self, node: Node | None) -> list[str]:
        """Names bound by an identifier, destructuring pattern, or parameter list."""
        if node is None:
            return []
        kind = node.type
        if kind in ("identifier", "shorthand_property_identifier_pattern"):
            return [self.node_text(node)]
        if kind == "pair_pattern":
            return self.pattern_names(node.child_by_field_name("value"))
        if kind in ("assignment_pattern", "object_assignment_pattern"):
            return self.pattern_names(node.child_by_field_name("left"))
        if kind in ("required_parameter", "optional_parameter"):
            pattern = node.child_by_field_name("pattern")
            if pattern is None and node.named_children:
                pattern = node.named_children[0]
            return self.pattern_names(pattern)
        if kind in ("array_pattern", "object_pattern", "rest_pattern", "formal_parameters"):
            names: list[str] = []
            for child in node.named_children:
                names.extend(self.pattern_names(child))
            return names
        return []

    def enclosing_statement(self, node: Node) -> Node:
        """Climb to the statement whose parent is a program or block."""
        current = node
        while current.parent is not None and current.parent.type not in SCOPE_TYPES:
            current = current.parent
        return current

    # ------------------------------------------------------------------
    # Queries

    def find_functions(self) -> list[FunctionMatch]:
        """Function declarations, const-bound arrow functions, and function expressions."""
        matches = []
        for node in self.walk():
            if node.type in ("function_declaration", "generator_function_declaration"):
                matches.append(self._function_match(node, self._field_text(node, "name"), None))
            elif node.type in ("arrow_function", "function_expression", "function"):
                parent = node.parent
                declarator = None
                if parent is not None and parent.type == "variable_declarator":
                    if _same_span(parent.child_by_field_name("value"), node):
                        declarator = parent
                if declarator is not None:
                    name_node = declarator.child_by_field_name("name")
                    name = (
                        self.node_text(name_node)
                        if name_node is not None and name_node.type == "identifier"
                        else None
                    )
                    matches.append(self._function_match(node, name, declarator))
                elif node.type != "arrow_function" or self._is_default_export_value(node):
                    matches.append(self._function_match(node, self._field_text(node, "name"), None))
        return matches

    def find_default_exported_function(self) -> FunctionMatch | None:
        """The function exported by ``export default``, following identifiers and wrappers."""
        functions = self.find_functions()
        for match in functions:
            if match.is_default_export:
                return match
        for statement in self.root.named_children:
            if statement.type != "export_statement" or not self._has_token(statement, "default"):
                continue
            value = statement.child_by_field_name("value")
            while value is not None and value.type == "call_expression":
                arguments = value.child_by_field_name("arguments")
                value = (
                    arguments.named_children[0]
                    if arguments and arguments.named_children
                    else None
                )
            if value is not None and value.type == "identifier":
                name = self.node_text(value)
                return next((m for m in functions if m.name == name), None)
        return None

    def find_component(self, name: str | None = None) -> FunctionMatch | None:
        """Resolve a component function by name, or pick the file's main component.

        Without a name: the default export, else the first function whose name
        starts with an uppercase letter, else the first named function.
        """
        functions = self.find_functions()
        if name is not None:
            return next((m for m in functions if m.name == name), None)
        default = self.find_default_exported_function()
        if default is not None:
            return default
        for match in functions:
            if match.name and match.name[0].isupper():
                return match
        return next((m for m in functions if m.name), None)

    def find_variable_bindings(self) -> list[VariableMatch]:
        """Every name bound by a variable declarator, tagged with its binding form."""
        bindings = []
        for node in self.walk():
            if node.type != "variable_declarator":
                continue
            ref = self.ref(node)
            name_node = node.child_by_field_name("name")
            if name_node is None:
                continue
            if name_node.type == "identifier":
                bindings.append(VariableMatch(ref, self.node_text(name_node), "simple"))
            elif name_node.type == "array_pattern":
                for name in self.pattern_names(name_node):
                    bindings.append(VariableMatch(ref, name, "array_destructure"))
            elif name_node.type == "object_pattern":
                for child in name_node.named_children:
                    if child.type == "pair_pattern":
                        key = child.child_by_field_name("key")
                        value = child.child_by_field_name("value")
                        if value is not None and value.type == "identifier" and key is not None:
                            bindings.append(
                                VariableMatch(
                                    ref,
                                    self.node_text(value),
                                    "object_destructure_renamed",
                                    original_name=self.node_text(key),
                                )
                            )
                            continue
                    for name in self.pattern_names(child):
                        bindings.append(VariableMatch(ref, name, "object_destructure"))
        return bindings

    def find_state_hooks(self) -> list[StateVariable]:
        """``const [state, setState] = useState(initial)`` declarations."""
        hooks = []
        for node in self.walk():
            if node.type != "variable_declarator":
                continue
            name_node = node.child_by_field_name("name")
            value = node.child_by_field_name("value")
            if name_node is None or name_node.type != "array_pattern":
                continue
            if value is None or value.type != "call_expression":
                continue
            if self.callee_name(value) != "useState":
                continue
            elements = [self.pattern_names(child) for child in name_node.named_children]
            if not elements or not elements[0]:
                continue
            arguments = value.child_by_field_name("arguments")
            initial = (
                self.node_text(arguments.named_children[0])
                if arguments is not None and arguments.named_children
                else None
            )
            hooks.append(
                StateVariable(
                    ref=self.ref(node.parent if node.parent is not None else node),
                    state_name=elements[0][0],
                    setter_name=elements[1][0] if len(elements) > 1 and elements[1] else None,
                    initial_value=initial,
                )
            )
        return hooks

    def find_event_handlers(self) -> list[EventHandler]:
        """JSX ``on*`` attributes with their handler reference or inline marker."""
        handlers = []
        for node in self.walk():
            if node.type != "jsx_attribute" or not node.named_children:
                continue
            attribute = self.node_text(node.named_children[0])
            if not EVENT_ATTRIBUTE_PATTERN.match(attribute):
                continue
            element = node.parent
            if element is not None and element.type == "jsx_opening_element":
                element = element.parent
            tag = self.element_tag(element) if element is not None else ""
            value = node.named_children[-1] if len(node.named_children) > 1 else None
            expression = (
                value.named_children[0]
                if value is not None and value.type == "jsx_expression" and value.named_children
                else None
            )
            if expression is not None and expression.type in ("identifier", "member_expression"):
                handler_name, inline = self.node_text(expression), False
            else:
                handler_name, inline = None, True
            handlers.append(EventHandler(self.ref(node), attribute, handler_name, inline, tag))
        return handlers

    def find_imports(self) -> list[ImportInfo]:
        """Top-level import statements in document order."""
        return [
            self.import_info(statement)
            for statement in self.root.named_children
            if statement.type == "import_statement"
        ]

    def import_info(self, statement: Node) -> ImportInfo:
        """Describe one ``import_statement`` node."""
        source_node = statement.child_by_field_name("source")
        if source_node is None:
            source_node = next((c for c in statement.named_children if c.type == "string"), None)
        source = self.string_value(source_node) if source_node is not None else ""
        specifiers: list[ImportSpecifier] = []
        clause = next((c for c in statement.named_children if c.type == "import_clause"), None)
        for child in clause.named_children if clause is not None else []:
            if child.type == "identifier":
                specifiers.append(ImportSpecifier(self.node_text(child), is_default=True))
            elif child.type == "namespace_import":
                ident = next((c for c in child.named_children if c.type == "identifier"), None)
                if ident is not None:
                    specifiers.append(ImportSpecifier(self.node_text(ident), is_namespace=True))
            elif child.type == "named_imports":
                for spec in child.named_children:
                    if spec.type != "import_specifier":
                        continue
                    name = self._field_text(spec, "name") or self.node_text(spec)
                    specifiers.append(ImportSpecifier(name, alias=self._field_text(spec, "alias")))
        return ImportInfo(
            ref=self.ref(statement),
            source=source,
            specifiers=tuple(specifiers),
            is_type_only=self._has_token(statement, "type"),
        )

    def find_elements(self, tag: str | None = None) -> list[ElementMatch]:
        """JSX elements in document order, optionally filtered by tag."""
        matches = []
        for node in self.walk():
            if node.type not in JSX_ELEMENT_TYPES:
                continue
            element_tag = self.element_tag(node)
            if tag is not None and element_tag != tag:
                continue
            opening = self.opening_element(node)
            closing = self.closing_element(node)
            matches.append(
                ElementMatch(
                    ref=self.ref(node),
                    tag=element_tag,
                    opening=self.ref(opening if opening is not None else node),
                    closing=self.ref(closing) if closing is not None else None,
                    self_closing=node.type == "jsx_self_closing_element",
                )
            )
        return matches

    def directives_end(self) -> int:
        """Byte offset just past the leading ``"use client"``-style directives."""
        offset = 0
        for child in self.root.named_children:
            if child.type == "comment":
                continue
            named = child.named_children
            is_directive = len(named) == 1 and named[0].type == "string"
            if child.type == "expression_statement" and is_directive:
                offset = child.end_byte
                continue
            break
        return offset

    def declared_names(self, scope: Node) -> list[str]:
        """Block-scoped names declared directly in ``scope``, including parameters."""
        names: list[str] = []
        parent = scope.parent
        if scope.type == "statement_block" and parent is not None and parent.type in FUNCTION_TYPES:
            params = parent.child_by_field_name("parameters") or parent.child_by_field_name(
                "parameter"
            )
            names.extend(self.pattern_names(params))
        for statement in scope.named_children:
            names.extend(self.statement_bindings(statement))
        return names

    def statement_bindings(self, statement: Node) -> list[str]:
        """Names a single statement declares in its enclosing scope."""
        kind = statement.type
        if kind == "export_statement":
            declaration = statement.child_by_field_name("declaration")
            return self.statement_bindings(declaration) if declaration is not None else []
        if kind == "lexical_declaration":
            return [
                name
                for declarator in statement.named_children
                if declarator.type == "variable_declarator"
                for name in self.pattern_names(declarator.child_by_field_name("name"))
            ]
        if kind in ("function_declaration", "generator_function_declaration", "class_declaration"):
            name = self._field_text(statement, "name")
            return [name] if name else []
        if kind == "import_statement":
            return [spec.local_name for spec in self.import_info(statement).specifiers]
        return []

    def module_names(self) -> set[str]:
        """Names declared at module scope."""
        return set(self.declared_names(self.root))

    def duplicate_bindings(self) -> Counter[str]:
        """Count redeclarations of block-scoped names, summed over all scopes."""
        duplicates: Counter[str] = Counter()
        if self._tree is None:
            return duplicates
        for node in self.walk():
            if node.type not in SCOPE_TYPES:
                continue
            for name, count in Counter(self.declared_names(node)).items():
                if count > 1:
                    duplicates[name] += count - 1
        return duplicates

    # ------------------------------------------------------------------
    # Internals

    def _field_text(self, node: Node, field_name: str) -> str | None:
        child = node.child_by_field_name(field_name)
        return self.node_text(child) if child is not None else None

    @staticmethod
    def _has_token(node: Node, token: str) -> bool:
        return any(child.type == token for child in node.children)

    def _is_default_export_value(self, node: Node) -> bool:
        parent = node.parent
        return (
            parent is not None
            and parent.type == "export_statement"
            and self._has_token(parent, "default")
        )

    def _function_match(
        self, node: Node, name: str | None, declarator: Node | None
    ) -> FunctionMatch:
        statement = self.enclosing_statement(node)
        body = node.child_by_field_name("body")
        parameters = node.child_by_field_name("parameters") or node.child_by_field_name("parameter")
        kind = {
            "function_declaration": "function_declaration",
            "generator_function_declaration": "function_declaration",
            "arrow_function": "arrow_function",
        }.get(node.type, "function_expression")
        return FunctionMatch(
            ref=self.ref(node),
            name=name,
            kind=kind,
            body=self.ref(body if body is not None else node),
            parameters=self.ref(parameters) if parameters is not None else None,
            declarator=self.ref(declarator) if declarator is not None else None,
            statement=self.ref(statement),
            is_exported=statement.type == "export_statement",
            is_default_export=(
                statement.type == "export_statement" and self._has_token(statement, "default")
            ),
        )


class SourceParser:
    """Parse source text into SyntaxTrees.

    tree-sitter parsers are not thread-safe, so each thread gets its own set.
    An optional TreeCache short-circuits reparsing identical (path, content).

    Example:
        >>> parser = SourceParser()
        >>> tree = parser.parse("export default function App() { return <div/>; }")
        >>> tree.find_component().name
        'App'
    """

    def __init__(self, cache: TreeCache | None = None) -> None:
        self.cache = cache
        self._local = threading.local()
        self.logger = logging.getLogger(__name__)

    def parse(
        self,
        text: str,
        language: Language = Language.TSX,
        *,
        path: str | None = None,
        strict: bool = True,
    ) -> SyntaxTree:
        """Parse ``text`` with the grammar for ``language``.

        Args:
            text: Source text.
            language: Grammar selector; PLAINTEXT yields a tree without nodes.
            path: File path, used only as part of the cache key.
            strict: Raise on syntax errors instead of returning an error-tolerant tree.

        Returns:
            SyntaxTree for the text.

        Raises:
            ParseError: If ``strict`` and the text contains syntax errors.
        """
        tree = None
        if self.cache is not None and path is not None:
            tree = self.cache.get(path, language, text)
        if tree is None:
            tree = self._build(text, language)
            if self.cache is not None and path is not None:
                self.cache.put(path, language, text, tree)

        error = tree.first_error() if strict else None
        if error is not None:
            raise ParseError(f"Syntax error: {error.describe()}", error.line, error.column)
        return tree

    def _build(self, text: str, language: Language) -> SyntaxTree:
        version = next(_VERSIONS)
        if language is Language.PLAINTEXT:
            return SyntaxTree(text, language, None, version)
        tree = self._parser(language).parse(text.encode("utf-8"))
        self.logger.debug(f"Parsed {len(text)} chars as {language.value} (tree version {version})")
        return SyntaxTree(text, language, tree, version)

    def _parser(self, language: Language) -> Parser:
        parsers: dict[Language, Parser] | None = getattr(self._local, "parsers", None)
        if parsers is None:
            parsers = {}
            self._local.parsers = parsers
        if language not in parsers:
            parsers[language] = Parser(_grammar(language))
        return parsers[language]
