"""Unit tests for hook insertion in jsx_change_engine.handlers.hooks."""

from typing import Any

import pytest

from jsx_change_engine.core.exceptions import PatternNotFound, StructuralConflict
from jsx_change_engine.handlers.component import STATEMENT_PRIORITY, hook_priority
from jsx_change_engine.parsing.source_parser import SourceParser

ARROW_COMPONENT = """\
const Badge = ({ label }) => <span>{label}</span>;
export default Badge;
"""


class TestHookPriority:
    """Test the ordering ranks used for hook placement."""

    def test_known_hooks_are_ordered(self) -> None:
        order = ["useState", "useReducer", "useContext", "useRef", "useMemo", "useCallback"]
        ranks = [hook_priority(name) for name in order]
        assert ranks == sorted(ranks)
        assert hook_priority("useEffect") == hook_priority("useLayoutEffect")

    def test_custom_hooks_rank_with_context(self) -> None:
        assert hook_priority("useAuth") == hook_priority("useContext")

    def test_plain_statements_rank_last(self) -> None:
        assert hook_priority(None) == STATEMENT_PRIORITY
        assert hook_priority("useEffect") < STATEMENT_PRIORITY


class TestAddState:
    """Test useState insertion."""

    def test_adds_state_and_react_import(self, apply_op: Any, counter_source: str) -> None:
        outcome = apply_op(
            counter_source,
            {"type": "AST_ADD_STATE", "name": "count", "setter": "setCount", "initialValue": 0},
        )
        assert outcome.text == (
            "import React, { useState } from 'react';\n"
            "\n"
            "export default function Counter() {\n"
            "  const [count, setCount] = useState(0);\n"
            '  return <div className="container">Hello</div>;\n'
            "}\n"
        )
        assert "useState count, setCount" in outcome.summary

    def test_new_state_goes_after_existing_state(
        self, apply_op: Any, todo_source: str, parser: SourceParser
    ) -> None:
        outcome = apply_op(
            todo_source,
            {"type": "AddState", "name": "filter", "setter": "setFilter", "initialValue": "'all'"},
        )
        text = outcome.text
        assert text.index("setDraft] = useState") < text.index("const [filter, setFilter]")
        assert text.index("const [filter, setFilter]") < text.index("return (")
        assert text.count("useState }") == 1
        assert not parser.parse(text).has_errors

    def test_type_annotation_renders_type_argument(self, apply_op: Any) -> None:
        source = "export function Profile() {\n  return null;\n}\n"
        outcome = apply_op(
            source,
            {
                "type": "AddState",
                "name": "user",
                "setter": "setUser",
                "initialValue": None,
                "typeAnnotation": "User | null",
            },
        )
        assert "const [user, setUser] = useState<User | null>(null);" in outcome.text
        assert outcome.text.startswith("import { useState } from 'react';\n\n")

    def test_existing_name_conflicts(self, apply_op: Any, todo_source: str) -> None:
        with pytest.raises(StructuralConflict, match="'items' already declared in TodoList"):
            apply_op(
                todo_source,
                {"type": "AddState", "name": "items", "setter": "setList", "initialValue": "[]"},
            )

    def test_component_parameter_conflicts(self, apply_op: Any, todo_source: str) -> None:
        with pytest.raises(StructuralConflict, match="'title'"):
            apply_op(todo_source, {"type": "AddRef", "name": "title"})

    def test_named_component_must_exist(self, apply_op: Any, counter_source: str) -> None:
        with pytest.raises(PatternNotFound, match="Missing"):
            apply_op(
                counter_source,
                {
                    "type": "AddState",
                    "name": "a",
                    "setter": "setA",
                    "initialValue": "1",
                    "component": "Missing",
                },
            )

    def test_expression_bodied_arrow_gets_block_body(self, apply_op: Any) -> None:
        outcome = apply_op(
            ARROW_COMPONENT,
            {"type": "AddState", "name": "open", "setter": "setOpen", "initialValue": False},
        )
        assert outcome.text == (
            "import { useState } from 'react';\n"
            "\n"
            "const Badge = ({ label }) => {\n"
            "  const [open, setOpen] = useState(false);\n"
            "  return <span>{label}</span>;\n"
            "};\n"
            "export default Badge;\n"
        )

    def test_hook_bound_by_another_import_is_not_reimported(self, apply_op: Any) -> None:
        source = (
            "import { useState } from 'preact/hooks';\n"
            "\n"
            "export default function App() {\n"
            "  return <p />;\n"
            "}\n"
        )
        outcome = apply_op(
            source, {"type": "AddState", "name": "n", "setter": "setN", "initialValue": "0"}
        )
        assert "from 'react'" not in outcome.text
        assert "const [n, setN] = useState(0);" in outcome.text


class TestOtherHooks:
    """Test useEffect, useRef, useMemo, useCallback, and useReducer insertion."""

    def test_effect_with_dependencies(self, apply_op: Any, todo_source: str) -> None:
        outcome = apply_op(
            todo_source,
            {
                "type": "AST_ADD_USEEFFECT",
                "body": "document.title = draft;",
                "dependencies": ["draft"],
            },
        )
        assert (
            "  useEffect(() => {\n    document.title = draft;\n  }, [draft]);\n" in outcome.text
        )
        assert "import React, { useState, useEffect } from 'react';" in outcome.text

    def test_effect_without_dependencies_omits_array(
        self, apply_op: Any, counter_source: str
    ) -> None:
        outcome = apply_op(counter_source, {"type": "AddEffect", "body": "console.log('render');"})
        assert "useEffect(() => {\n    console.log('render');\n  });" in outcome.text

    def test_effect_with_cleanup(self, apply_op: Any, counter_source: str) -> None:
        outcome = apply_op(
            counter_source,
            {
                "type": "AddEffect",
                "body": "const id = setInterval(tick, 1000);",
                "cleanup": "clearInterval(id);",
                "dependencies": [],
            },
        )
        assert (
            "    const id = setInterval(tick, 1000);\n"
            "    return () => {\n"
            "      clearInterval(id);\n"
            "    };\n"
            "  }, []);"
        ) in outcome.text

    def test_ref_goes_between_state_and_effects(
        self, apply_op: Any, todo_source: str, parser: SourceParser
    ) -> None:
        with_effect = apply_op(
            todo_source,
            {"type": "AddEffect", "body": "save(items);", "dependencies": ["items"]},
        ).text
        text = apply_op(with_effect, {"type": "AddRef", "name": "inputRef"}).text
        assert "const inputRef = useRef(null);" in text
        assert text.index("useState('')") < text.index("useRef(null)")
        assert text.index("useRef(null)") < text.index("useEffect(() =>")
        assert "import React, { useState, useEffect, useRef } from 'react';" in text
        assert not parser.parse(text).has_errors

    def test_state_added_after_effect_is_placed_before_it(
        self, apply_op: Any, counter_source: str
    ) -> None:
        with_effect = apply_op(counter_source, {"type": "AddEffect", "body": "sync();"}).text
        text = apply_op(
            with_effect, {"type": "AddState", "name": "a", "setter": "setA", "initialValue": "1"}
        ).text
        assert text.index("useState(1)") < text.index("useEffect(")

    def test_memo_and_callback(self, apply_op: Any, todo_source: str) -> None:
        text = apply_op(
            todo_source,
            {
                "type": "AddMemo",
                "name": "total",
                "computation": "items.length",
                "dependencies": ["items"],
            },
        ).text
        text = apply_op(
            text,
            {
                "type": "AddCallback",
                "name": "handleAdd",
                "body": "setItems([...items, draft]);",
                "dependencies": ["items", "draft"],
            },
        ).text
        assert "const total = useMemo(() => items.length, [items]);" in text
        assert (
            "const handleAdd = useCallback(() => {\n"
            "    setItems([...items, draft]);\n"
            "  }, [items, draft]);"
        ) in text
        assert text.index("useMemo(") < text.index("useCallback(")

    def test_reducer_adds_module_function(
        self, apply_op: Any, counter_source: str, parser: SourceParser
    ) -> None:
        text = apply_op(
            counter_source,
            {
                "type": "AST_ADD_REDUCER",
                "name": "state",
                "dispatchName": "dispatch",
                "reducerName": "counterReducer",
                "initialState": "{ count: 0 }",
                "actions": [
                    {"type": "increment", "handler": "return { count: state.count + 1 };"}
                ],
            },
        ).text
        assert "const [state, dispatch] = useReducer(counterReducer, { count: 0 });" in text
        assert "function counterReducer(state, action) {" in text
        assert "    case 'increment': {\n      return { count: state.count + 1 };\n    }" in text
        assert "    default:\n      return state;" in text
        assert text.index("function counterReducer") < text.index("export default function")
        assert "import React, { useReducer } from 'react';" in text
        assert not parser.parse(text).has_errors

    def test_reducer_name_collision(self, apply_op: Any, counter_source: str) -> None:
        with pytest.raises(StructuralConflict, match="Reducer name 'Counter'"):
            apply_op(
                counter_source,
                {
                    "type": "AddReducer",
                    "name": "state",
                    "dispatchName": "dispatch",
                    "reducerName": "Counter",
                    "initialState": "{}",
                },
            )
