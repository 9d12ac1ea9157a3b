"""Read-only node handles derived from a SyntaxTree.

Handles never hold tree-sitter nodes. They hold a NodeRef (tree version, byte
span, node type) that the owning SyntaxTree resolves back into a node. A handle
from an older version fails to resolve with StaleHandleError.
"""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class NodeRef:
    """Index of one node inside a specific tree version."""

    version: int
    start: int
    end: int
    type: str


@dataclass(frozen=True, slots=True)
class FunctionMatch:
    """A function declaration, const-bound arrow function, or function expression.

    Attributes:
        ref: The function node itself.
        name: Bound name, or None for anonymous functions.
        kind: ``function_declaration``, ``arrow_function`` or ``function_expression``.
        body: The body node (a statement block, or an expression for arrow functions).
        parameters: The parameter list node, if any.
        declarator: The ``variable_declarator`` binding the function, if any.
        statement: The top-level statement to insert before or after the function.
        is_exported: True when the statement is an export.
        is_default_export: True for ``export default``.
    """

    ref: NodeRef
    name: str | None
    kind: str
    body: NodeRef
    parameters: NodeRef | None
    declarator: NodeRef | None
    statement: NodeRef
    is_exported: bool = False
    is_default_export: bool = False


@dataclass(frozen=True, slots=True)
class VariableMatch:
    """One name bound by a variable declarator.

    ``kind`` is ``simple``, ``array_destructure``, ``object_destructure`` or
    ``object_destructure_renamed``; ``original_name`` is the source property for
    the renamed form.
    """

    ref: NodeRef
    name: str
    kind: str
    original_name: str | None = None


@dataclass(frozen=True, slots=True)
class StateVariable:
    """A ``const [state, setState] = useState(initial)`` declaration."""

    ref: NodeRef
    state_name: str
    setter_name: str | None
    initial_value: str | None


@dataclass(frozen=True, slots=True)
class EventHandler:
    """A JSX ``on*`` attribute."""

    ref: NodeRef
    event_type: str
    handler_name: str | None
    is_inline: bool
    element_tag: str


@dataclass(frozen=True, slots=True)
class ImportSpecifier:
    """One binding introduced by an import statement."""

    name: str
    alias: str | None = None
    is_default: bool = False
    is_namespace: bool = False

    @property
    def local_name(self) -> str:
        """Name the binding has inside the importing module."""
        return self.alias or self.name


@dataclass(frozen=True, slots=True)
class ImportInfo:
    """A top-level import statement and the bindings it introduces."""

    ref: NodeRef
    source: str
    specifiers: tuple[ImportSpecifier, ...]
    is_type_only: bool = False

    @property
    def default(self) -> ImportSpecifier | None:
        """The default binding, if present."""
        return next((spec for spec in self.specifiers if spec.is_default), None)

    @property
    def namespace(self) -> ImportSpecifier | None:
        """The ``* as name`` binding, if present."""
        return next((spec for spec in self.specifiers if spec.is_namespace), None)

    @property
    def named(self) -> tuple[ImportSpecifier, ...]:
        """Specifiers listed inside braces."""
        return tuple(s for s in self.specifiers if not (s.is_default or s.is_namespace))


@dataclass(frozen=True, slots=True)
class ElementMatch:
    """A JSX element or self-closing element."""

    ref: NodeRef
    tag: str
    opening: NodeRef
    closing: NodeRef | None
    self_closing: bool


@dataclass(frozen=True, slots=True)
class ErrorInfo:
    """Location of a syntax error; line and column are 1-indexed."""

    line: int
    column: int
    text: str
    node_type: str

    def describe(self) -> str:
        """Describe the error without its location."""
        if self.node_type.startswith("MISSING"):
            return self.node_type.lower()
        snippet = self.text if len(self.text) <= 40 else self.text[:37] + "..."
        return f"unexpected {snippet!r}"

    @property
    def location(self) -> str:
        """Human-readable position."""
        return f"line {self.line}, column {self.column}"
