"""React context template: context object, provider component, and consumer hook."""

from jsx_change_engine.core.operations import AddContextProvider, ImportSpec
from jsx_change_engine.templates.base import RenderedModule, capitalize


def render_context_provider(op: AddContextProvider, typed: bool = True) -> RenderedModule:
    """Render a context with its provider and hook.

    State variables become ``useState`` pairs inside the provider, and the
    provider value exposes each variable with its setter. Without state the
    provider passes ``initialValue`` through.

    Args:
        op: The AddContextProvider operation.
        typed: Emit TypeScript annotations.

    Returns:
        RenderedModule declaring the context, provider, and hook.
    """
    context = op.context_name
    provider = op.provider_name or f"{context}Provider"
    hook = op.hook_name or f"use{context}"
    state = op.state_variables if op.include_state else ()

    named = ["createContext", "useContext"]
    if state:
        named.append("useState")
    if typed:
        named.append("ReactNode")

    lines: list[str] = []
    value_type = "any"
    if typed and op.value_type:
        value_type = f"{context}Value"
        lines += [f"type {value_type} = {op.value_type};", ""]

    type_args = f"<{value_type}>" if typed else ""
    lines += [f"const {context} = createContext{type_args}({op.initial_value});", ""]

    children = "{ children }: { children: ReactNode }" if typed else "{ children }"
    lines.append(f"export function {provider}({children}) {{")
    value_parts: list[str] = []
    for variable in state:
        setter = f"set{capitalize(variable.name)}"
        state_args = f"<{variable.type}>" if typed and variable.type else ""
        lines.append(
            f"  const [{variable.name}, {setter}] = useState{state_args}({variable.initial_value});"
        )
        value_parts += [variable.name, setter]
    if state:
        lines.append("")
    value = "{ " + ", ".join(value_parts) + " }" if value_parts else op.initial_value
    lines += [
        f"  const value = {value};",
        "",
        "  return (",
        f"    <{context}.Provider value={{value}}>",
        "      {children}",
        f"    </{context}.Provider>",
        "  );",
        "}",
        "",
        f"export function {hook}() {{",
        f"  const context = useContext({context});",
        "  if (context === undefined) {",
        f"    throw new Error('{hook} must be used within a {provider}');",
        "  }",
        "  return context;",
        "}",
    ]

    declares = [context, provider, hook]
    if typed and op.value_type:
        declares.append(f"{context}Value")
    return RenderedModule(
        imports=(ImportSpec("react", default_import="React", named_imports=tuple(named)),),
        body="\n".join(lines),
        declares=tuple(declares),
    )
