"""Operation catalog data model.

Each operation is an immutable dataclass carrying exactly the parameters its
apply algorithm needs. ``OPERATION_TYPES`` lists the complete catalog; the
handler registry checks at construction time that every entry has a handler.

Wire payloads use camelCase keys and either the catalog name (``AddState``) or
the upstream generator's name (``AST_ADD_STATE``) as ``type``:

    >>> op = parse_operation({"type": "AST_ADD_STATE", "name": "count",
    ...                       "setter": "setCount", "initialValue": 0})
    >>> op.kind, op.initial_value
    ('AddState', '0')
"""

import json
import re
from collections.abc import Callable, Mapping
from dataclasses import MISSING, dataclass, field, fields
from enum import Enum
from typing import Any, ClassVar, TypeAlias

from jsx_change_engine.core.exceptions import InvalidOperationError

IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z_$][\w$]*$")
SPECIFIER_PATTERN = re.compile(r"^[A-Za-z_$][\w$]*(\s+as\s+[A-Za-z_$][\w$]*)?$")
JSX_NAME_PATTERN = re.compile(r"^[A-Za-z_$][\w$-]*(\.[A-Za-z_$][\w$]*)*$")


class JsxPosition(str, Enum):
    """Where InsertJSX places the fragment relative to its target."""

    BEFORE = "before"
    AFTER = "after"
    INSIDE_START = "inside_start"
    INSIDE_END = "inside_end"

    def __str__(self) -> str:
        """Return the wire value."""
        return self.value


class PropAction(str, Enum):
    """Edit applied by ModifyProp."""

    ADD = "add"
    UPDATE = "update"
    REMOVE = "remove"

    def __str__(self) -> str:
        """Return the wire value."""
        return self.value


def _source_text(value: Any) -> str:  # noqa: ANN401
    """Coerce a JSON scalar into the source text it denotes."""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    if isinstance(value, int | float):
        return json.dumps(value)
    raise InvalidOperationError(f"Expected a string or scalar, got {type(value).__name__}")


def _boolean(value: Any) -> bool:  # noqa: ANN401
    if not isinstance(value, bool):
        raise InvalidOperationError(f"Expected a boolean, got {type(value).__name__}")
    return value


def _text_tuple(value: Any) -> tuple[str, ...]:  # noqa: ANN401
    if isinstance(value, str):
        return (value,)
    if not isinstance(value, list | tuple):
        raise InvalidOperationError(f"Expected a list, got {type(value).__name__}")
    return tuple(_source_text(item) for item in value)


def _text_mapping(value: Any) -> dict[str, str]:  # noqa: ANN401
    if not isinstance(value, Mapping):
        raise InvalidOperationError(f"Expected an object, got {type(value).__name__}")
    return {str(key): _source_text(item) for key, item in value.items()}


def _json_mapping(value: Any) -> dict[str, Any]:  # noqa: ANN401
    if not isinstance(value, Mapping):
        raise InvalidOperationError(f"Expected an object, got {type(value).__name__}")
    return dict(value)


def _nested(cls: type) -> Callable[[Any], Any]:
    """Build a converter that parses a nested payload object into ``cls``."""

    def convert(value: Any) -> Any:  # noqa: ANN401
        if not isinstance(value, Mapping):
            raise InvalidOperationError(f"Expected an object for {cls.__name__}")
        return _from_payload(cls, value)

    return convert


def _nested_tuple(cls: type) -> Callable[[Any], tuple[Any, ...]]:
    convert_one = _nested(cls)

    def convert(value: Any) -> tuple[Any, ...]:  # noqa: ANN401
        if not isinstance(value, list | tuple):
            raise InvalidOperationError(f"Expected a list of {cls.__name__} objects")
        return tuple(convert_one(item) for item in value)

    return convert


def _enum(enum_cls: type[Enum]) -> Callable[[Any], Any]:
    def convert(value: Any) -> Any:  # noqa: ANN401
        try:
            return enum_cls(value)
        except ValueError as e:
            valid = [member.value for member in enum_cls]
            raise InvalidOperationError(f"Invalid value {value!r}, must be one of {valid}") from e

    return convert


def wire(
    convert: Callable[[Any], Any] = _source_text,
    *,
    name: str | None = None,
    aliases: tuple[str, ...] = (),
    default: Any = MISSING,  # noqa: ANN401
    default_factory: Any = MISSING,  # noqa: ANN401
) -> Any:  # noqa: ANN401
    """Declare a dataclass field together with its payload key and converter.

    ``aliases`` are alternative payload keys, tried after the primary key.
    """
    metadata = {"convert": convert, "wire": name, "aliases": aliases}
    if default_factory is not MISSING:
        return field(default_factory=default_factory, metadata=metadata)
    return field(default=default, metadata=metadata)


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def _from_payload(cls: type, payload: Mapping[str, Any]) -> Any:  # noqa: ANN401
    """Instantiate dataclass ``cls`` from a camelCase payload mapping."""
    kwargs: dict[str, Any] = {}
    for f in fields(cls):
        key = f.metadata.get("wire") or _camel(f.name)
        candidates = (key, *f.metadata.get("aliases", ()), f.name)
        present = next((candidate for candidate in candidates if candidate in payload), None)
        if present is None:
            if f.default is MISSING and f.default_factory is MISSING:
                raise InvalidOperationError(f"{cls.__name__} requires field '{key}'")
            continue
        raw = payload[present]
        if raw is None and f.default is None:
            continue
        convert = f.metadata.get("convert", _source_text)
        try:
            kwargs[f.name] = convert(raw)
        except InvalidOperationError as e:
            raise InvalidOperationError(f"{cls.__name__}.{key}: {e.message}") from e
    return cls(**kwargs)


def _require_identifier(owner: str, label: str, value: str) -> None:
    if not IDENTIFIER_PATTERN.match(value):
        raise InvalidOperationError(f"{owner}: {label} {value!r} is not a valid identifier")


def _require_text(owner: str, label: str, value: str) -> None:
    if not value:
        raise InvalidOperationError(f"{owner}: {label} must not be empty")


@dataclass(frozen=True, slots=True)
class ImportSpec:
    """Import request shared by AddImport, WrapElement, and template rendering."""

    source: str
    default_import: str | None = wire(default=None)
    named_imports: tuple[str, ...] = wire(_text_tuple, default=())
    namespace_import: str | None = wire(default=None)

    def __post_init__(self) -> None:
        _require_text("import", "source", self.source)
        for name in (self.default_import, self.namespace_import):
            if name is not None:
                _require_identifier("import", "binding", name)
        for entry in self.named_imports:
            if not SPECIFIER_PATTERN.match(entry.strip()):
                raise InvalidOperationError(f"import: invalid named import {entry!r}")

    @property
    def is_empty(self) -> bool:
        """True when the spec imports nothing (side-effect only)."""
        return not (self.default_import or self.named_imports or self.namespace_import)


@dataclass(frozen=True, slots=True)
class ClassNameTemplate:
    """Conditional class fragment rendered inside a template literal."""

    variable: str
    true_value: str
    false_value: str = wire(default="")
    operator: str = wire(default="?")

    def __post_init__(self) -> None:
        _require_text("template", "variable", self.variable)
        if self.operator not in ("?", "&&"):
            raise InvalidOperationError(
                f"template: operator must be '?' or '&&', got {self.operator!r}"
            )


@dataclass(frozen=True, slots=True)
class ReducerAction:
    """One ``case`` of a generated reducer."""

    type: str
    handler: str


@dataclass(frozen=True, slots=True)
class ContextStateVariable:
    """State held by a generated context provider."""

    name: str
    initial_value: str
    type: str | None = wire(default=None)

    def __post_init__(self) -> None:
        _require_identifier("stateVariables", "name", self.name)


@dataclass(frozen=True, slots=True)
class StoreActionParam:
    """Typed parameter of a store action."""

    name: str
    type: str | None = wire(default=None)


@dataclass(frozen=True, slots=True)
class StoreAction:
    """Action method of a generated store; ``body`` is the ``set`` updater expression."""

    name: str
    body: str
    params: tuple[StoreActionParam, ...] = wire(_nested_tuple(StoreActionParam), default=())

    def __post_init__(self) -> None:
        _require_identifier("actions", "name", self.name)


@dataclass(frozen=True, slots=True)
class Operation:
    """Base of the operation catalog."""

    wire_names: ClassVar[tuple[str, ...]] = ()
    structural: ClassVar[bool] = True

    @property
    def kind(self) -> str:
        """Catalog name of the operation."""
        return self.wire_names[0]

    def describe(self) -> str:
        """Human-readable target description used in logs and errors."""
        return self.kind


@dataclass(frozen=True, slots=True)
class ComponentOperation(Operation):
    """Operation whose target is a component function body."""

    def describe(self) -> str:
        """Name the operation and, when given, the component it targets."""
        component = getattr(self, "component", None)
        return f"{self.kind} in component {component!r}" if component else self.kind


@dataclass(frozen=True, slots=True)
class AddState(ComponentOperation):
    """Declare ``const [name, setter] = useState(initialValue)``."""

    wire_names: ClassVar[tuple[str, ...]] = ("AddState", "AST_ADD_STATE")

    name: str
    setter: str
    initial_value: str
    type_annotation: str | None = wire(default=None)
    component: str | None = wire(default=None)

    def __post_init__(self) -> None:
        _require_identifier(self.kind, "name", self.name)
        _require_identifier(self.kind, "setter", self.setter)


@dataclass(frozen=True, slots=True)
class AddEffect(ComponentOperation):
    """Add a ``useEffect`` call with optional cleanup and dependency list."""

    wire_names: ClassVar[tuple[str, ...]] = ("AddEffect", "AST_ADD_USEEFFECT", "AST_ADD_EFFECT")

    body: str
    dependencies: tuple[str, ...] | None = wire(_text_tuple, default=None)
    cleanup: str | None = wire(default=None)
    component: str | None = wire(default=None)


@dataclass(frozen=True, slots=True)
class AddRef(ComponentOperation):
    """Declare ``const name = useRef(initialValue)``."""

    wire_names: ClassVar[tuple[str, ...]] = ("AddRef", "AST_ADD_REF")

    name: str
    initial_value: str = wire(default="null")
    component: str | None = wire(default=None)

    def __post_init__(self) -> None:
        _require_identifier(self.kind, "name", self.name)


@dataclass(frozen=True, slots=True)
class AddMemo(ComponentOperation):
    """Declare ``const name = useMemo(() => computation, [deps])``."""

    wire_names: ClassVar[tuple[str, ...]] = ("AddMemo", "AST_ADD_MEMO")

    name: str
    computation: str
    dependencies: tuple[str, ...] = wire(_text_tuple, default=())
    component: str | None = wire(default=None)

    def __post_init__(self) -> None:
        _require_identifier(self.kind, "name", self.name)
        _require_text(self.kind, "computation", self.computation)


@dataclass(frozen=True, slots=True)
class AddCallback(ComponentOperation):
    """Declare ``const name = useCallback((params) => { body }, [deps])``."""

    wire_names: ClassVar[tuple[str, ...]] = ("AddCallback", "AST_ADD_CALLBACK")

    name: str
    body: str
    params: tuple[str, ...] = wire(_text_tuple, default=())
    dependencies: tuple[str, ...] = wire(_text_tuple, default=())
    component: str | None = wire(default=None)

    def __post_init__(self) -> None:
        _require_identifier(self.kind, "name", self.name)


@dataclass(frozen=True, slots=True)
class AddReducer(ComponentOperation):
    """Add a module-level reducer function and a ``useReducer`` declaration."""

    wire_names: ClassVar[tuple[str, ...]] = ("AddReducer", "AST_ADD_REDUCER")

    name: str
    dispatch_name: str
    reducer_name: str
    initial_state: str
    actions: tuple[ReducerAction, ...] = wire(_nested_tuple(ReducerAction), default=())
    component: str | None = wire(default=None)

    def __post_init__(self) -> None:
        _require_identifier(self.kind, "name", self.name)
        _require_identifier(self.kind, "dispatchName", self.dispatch_name)
        _require_identifier(self.kind, "reducerName", self.reducer_name)


@dataclass(frozen=True, slots=True)
class AddImport(Operation):
    """Merge an import into the module's import list.

    ``content`` carries a raw import statement from text-level payloads; the
    handler parses it into the structured fields.
    """

    wire_names: ClassVar[tuple[str, ...]] = ("AddImport", "AST_ADD_IMPORT", "ADD_IMPORT")

    source: str | None = wire(default=None)
    default_import: str | None = wire(default=None)
    named_imports: tuple[str, ...] = wire(_text_tuple, default=())
    namespace_import: str | None = wire(default=None)
    content: str | None = wire(default=None)

    def __post_init__(self) -> None:
        if not self.source and not self.content:
            raise InvalidOperationError(f"{self.kind} requires 'source' or 'content'")

    def describe(self) -> str:
        """Name the imported module."""
        if self.source:
            return f"{self.kind} from {self.source!r}"
        return f"{self.kind} {self.content!r}"

    def to_spec(self) -> ImportSpec:
        """Return the structured import request; only valid when ``source`` is set."""
        return ImportSpec(
            source=self.source or "",
            default_import=self.default_import,
            named_imports=self.named_imports,
            namespace_import=self.namespace_import,
        )


@dataclass(frozen=True, slots=True)
class ElementOperation(Operation):
    """Operation targeting the first JSX element with a given tag."""

    def describe(self) -> str:
        """Name the operation and its target element."""
        return f"{self.kind} on <{getattr(self, 'target_element', '?')}>"


@dataclass(frozen=True, slots=True)
class ModifyClassName(ElementOperation):
    """Rewrite an element's className, preserving existing static classes."""

    wire_names: ClassVar[tuple[str, ...]] = ("ModifyClassName", "AST_MODIFY_CLASSNAME")

    target_element: str
    static_classes: tuple[str, ...] = wire(_text_tuple, default=())
    template: ClassNameTemplate | None = wire(_nested(ClassNameTemplate), default=None)
    raw_template: str | None = wire(default=None)

    def __post_init__(self) -> None:
        if not (self.static_classes or self.template or self.raw_template):
            raise InvalidOperationError(
                f"{self.kind} requires staticClasses, template or rawTemplate"
            )


@dataclass(frozen=True, slots=True)
class InsertJSX(ElementOperation):
    """Splice a JSX fragment relative to the target element."""

    wire_names: ClassVar[tuple[str, ...]] = ("InsertJSX", "AST_INSERT_JSX")

    target_element: str
    jsx: str
    position: JsxPosition = wire(_enum(JsxPosition), default=JsxPosition.INSIDE_END)

    def __post_init__(self) -> None:
        _require_text(self.kind, "jsx", self.jsx.strip())


@dataclass(frozen=True, slots=True)
class ModifyProp(ElementOperation):
    """Add, update, or remove one prop on the target element's opening tag."""

    wire_names: ClassVar[tuple[str, ...]] = ("ModifyProp", "AST_MODIFY_PROP")

    target_element: str
    prop_name: str
    action: PropAction = wire(_enum(PropAction))
    prop_value: str | None = wire(default=None)

    def __post_init__(self) -> None:
        if not JSX_NAME_PATTERN.match(self.prop_name) and ":" not in self.prop_name:
            raise InvalidOperationError(f"{self.kind}: invalid prop name {self.prop_name!r}")


@dataclass(frozen=True, slots=True)
class WrapElement(ElementOperation):
    """Wrap the target element in ``<Wrapper>...</Wrapper>``."""

    wire_names: ClassVar[tuple[str, ...]] = ("WrapElement", "AST_WRAP_ELEMENT")

    target_element: str
    wrapper_component: str
    wrapper_props: dict[str, str] = wire(_text_mapping, default_factory=dict)
    import_spec: ImportSpec | None = wire(_nested(ImportSpec), name="import", default=None)

    def __post_init__(self) -> None:
        if not JSX_NAME_PATTERN.match(self.wrapper_component):
            raise InvalidOperationError(
                f"{self.kind}: invalid wrapper component {self.wrapper_component!r}"
            )


@dataclass(frozen=True, slots=True)
class AddContextProvider(Operation):
    """Render a React context with its provider component and consumer hook."""

    wire_names: ClassVar[tuple[str, ...]] = ("AddContextProvider", "AST_ADD_CONTEXT_PROVIDER")

    context_name: str
    initial_value: str
    provider_name: str | None = wire(default=None)
    hook_name: str | None = wire(default=None)
    value_type: str | None = wire(default=None)
    include_state: bool = wire(_boolean, default=True)
    state_variables: tuple[ContextStateVariable, ...] = wire(
        _nested_tuple(ContextStateVariable), default=()
    )

    def __post_init__(self) -> None:
        _require_identifier(self.kind, "contextName", self.context_name)

    def describe(self) -> str:
        """Name the generated context."""
        return f"{self.kind} {self.context_name}"


@dataclass(frozen=True, slots=True)
class AddZustandStore(Operation):
    """Render a zustand store hook, optionally with persist middleware."""

    wire_names: ClassVar[tuple[str, ...]] = ("AddZustandStore", "AST_ADD_ZUSTAND_STORE")

    store_name: str
    initial_state: dict[str, Any] = wire(_json_mapping, default_factory=dict)
    store_file: str | None = wire(default=None)
    actions: tuple[StoreAction, ...] = wire(_nested_tuple(StoreAction), default=())
    persist: bool = wire(_boolean, default=False)
    persist_key: str | None = wire(default=None)

    def __post_init__(self) -> None:
        _require_identifier(self.kind, "storeName", self.store_name)

    def describe(self) -> str:
        """Name the generated store."""
        return f"{self.kind} {self.store_name}"


@dataclass(frozen=True, slots=True)
class AddAuthentication(ComponentOperation):
    """Scaffold login state, handlers, a login form, and a logout button."""

    wire_names: ClassVar[tuple[str, ...]] = ("AddAuthentication", "AST_ADD_AUTHENTICATION")

    login_form_style: str = wire(default="styled")
    include_email_field: bool = wire(_boolean, default=True)
    component: str | None = wire(default=None)

    def __post_init__(self) -> None:
        if self.login_form_style not in ("simple", "styled"):
            raise InvalidOperationError(
                f"{self.kind}: loginFormStyle must be 'simple' or 'styled', "
                f"got {self.login_form_style!r}"
            )


@dataclass(frozen=True, slots=True)
class ExtractComponent(Operation):
    """Move a JSX subtree into a new component file."""

    wire_names: ClassVar[tuple[str, ...]] = ("ExtractComponent", "AST_EXTRACT_COMPONENT")

    target_jsx: str = wire(name="targetJSX", aliases=("targetJsx",))
    component_name: str = wire()
    component_file: str | None = wire(default=None)
    extract_props: bool = wire(_boolean, default=True)
    prop_types: dict[str, str] = wire(_text_mapping, default_factory=dict)

    def __post_init__(self) -> None:
        _require_text(self.kind, "targetJSX", self.target_jsx.strip())
        _require_identifier(self.kind, "componentName", self.component_name)

    def describe(self) -> str:
        """Name the extracted component."""
        return f"{self.kind} {self.component_name}"


@dataclass(frozen=True, slots=True)
class TextualOperation(Operation):
    """Operation located by exact substring search in the running text."""

    structural: ClassVar[bool] = False

    def describe(self) -> str:
        """Echo the searched substring."""
        search_for = getattr(self, "search_for", None)
        return f"{self.kind} searchFor={search_for!r}" if search_for is not None else self.kind


@dataclass(frozen=True, slots=True)
class SearchOperation(TextualOperation):
    """Textual operation that requires a non-empty ``searchFor``."""

    def __post_init__(self) -> None:
        _require_text(self.kind, "searchFor", getattr(self, "search_for", ""))


@dataclass(frozen=True, slots=True)
class InsertBefore(SearchOperation):
    """Insert ``content`` before the first occurrence of ``searchFor``."""

    wire_names: ClassVar[tuple[str, ...]] = ("InsertBefore", "INSERT_BEFORE")

    search_for: str
    content: str


@dataclass(frozen=True, slots=True)
class InsertAfter(SearchOperation):
    """Insert ``content`` after the first occurrence of ``searchFor``."""

    wire_names: ClassVar[tuple[str, ...]] = ("InsertAfter", "INSERT_AFTER")

    search_for: str
    content: str = wire(default="")


@dataclass(frozen=True, slots=True)
class Replace(SearchOperation):
    """Replace the first occurrence of ``searchFor`` with ``replaceWith``."""

    wire_names: ClassVar[tuple[str, ...]] = ("Replace", "REPLACE")

    search_for: str
    replace_with: str = wire(default="")


@dataclass(frozen=True, slots=True)
class Delete(SearchOperation):
    """Remove the first occurrence of ``searchFor``."""

    wire_names: ClassVar[tuple[str, ...]] = ("Delete", "DELETE")

    search_for: str


@dataclass(frozen=True, slots=True)
class Append(TextualOperation):
    """Append ``content`` at the end of the file."""

    wire_names: ClassVar[tuple[str, ...]] = ("Append", "APPEND")

    content: str


OPERATION_TYPES: tuple[type[Operation], ...] = (
    AddState,
    AddEffect,
    AddRef,
    AddMemo,
    AddCallback,
    AddReducer,
    AddImport,
    ModifyClassName,
    InsertJSX,
    ModifyProp,
    WrapElement,
    AddContextProvider,
    AddZustandStore,
    AddAuthentication,
    ExtractComponent,
    InsertBefore,
    InsertAfter,
    Replace,
    Delete,
    Append,
)

HookOperation: TypeAlias = AddState | AddEffect | AddRef | AddMemo | AddCallback | AddReducer

_BY_WIRE_NAME: dict[str, type[Operation]] = {
    name: op_type for op_type in OPERATION_TYPES for name in op_type.wire_names
}


def parse_operation(payload: Mapping[str, Any]) -> Operation:
    """Parse one wire payload into its operation dataclass.

    Args:
        payload: Mapping with a ``type`` discriminator and camelCase fields.

    Returns:
        The matching Operation instance.

    Raises:
        InvalidOperationError: If the type is unknown or a field is missing or malformed.
    """
    if not isinstance(payload, Mapping):
        raise InvalidOperationError(f"Operation must be an object, got {type(payload).__name__}")
    type_name = payload.get("type")
    op_type = _BY_WIRE_NAME.get(type_name) if isinstance(type_name, str) else None
    if op_type is None:
        raise InvalidOperationError(f"Unknown operation type: {type_name!r}")
    return _from_payload(op_type, payload)
