"""zustand store template."""

import json
from typing import Any

from jsx_change_engine.core.operations import AddZustandStore, ImportSpec, StoreAction
from jsx_change_engine.templates.base import RenderedModule


def infer_type(value: Any) -> str:  # noqa: ANN401
    """TypeScript type of a JSON initial value.

    Examples:
        >>> infer_type("dark")
        'string'
        >>> infer_type([1, 2])
        'any[]'
    """
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, str):
        return "string"
    if isinstance(value, int | float):
        return "number"
    if isinstance(value, list):
        return "any[]"
    return "any"


def _params(action: StoreAction, typed: bool) -> str:
    if typed:
        return ", ".join(f"{p.name}: {p.type or 'any'}" for p in action.params)
    return ", ".join(p.name for p in action.params)


def render_zustand_store(op: AddZustandStore, typed: bool = True) -> RenderedModule:
    """Render ``export const storeName = create(...)`` with state and actions.

    Each action is rendered as ``name: (params) => set((state) => body)``. With
    ``persist`` the store is wrapped in zustand's persist middleware under
    ``persistKey`` (default ``{storeName}-storage``).
    """
    imports = [ImportSpec("zustand", named_imports=("create",))]
    if op.persist:
        imports.append(ImportSpec("zustand/middleware", named_imports=("persist",)))

    lines: list[str] = []
    declares = [op.store_name]
    if typed:
        lines.append("interface StoreState {")
        for key, value in op.initial_state.items():
            lines.append(f"  {key}: {infer_type(value)};")
        for action in op.actions:
            lines.append(f"  {action.name}: ({_params(action, True)}) => void;")
        lines += ["}", ""]
        declares.append("StoreState")

    members = [f"  {key}: {json.dumps(value)}," for key, value in op.initial_state.items()]
    if op.actions:
        if members:
            members.append("")
        for action in op.actions:
            members.append(
                f"  {action.name}: ({_params(action, typed)}) => set((state) => {action.body}),"
            )

    type_args = "<StoreState>" if typed else ""
    if op.persist:
        key = op.persist_key or f"{op.store_name}-storage"
        call = f"create{type_args}()" if typed else "create"
        lines.append(f"export const {op.store_name} = {call}(persist(")
        lines.append("  (set) => ({")
        lines += ["  " + member if member else "" for member in members]
        lines += ["  }),", "  {", f"    name: '{key}',", "  }", "));"]
    else:
        lines.append(f"export const {op.store_name} = create{type_args}((set) => ({{")
        lines += members
        lines.append("}));")

    return RenderedModule(imports=tuple(imports), body="\n".join(lines), declares=tuple(declares))
