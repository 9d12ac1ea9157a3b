"""Unit tests for ExtractComponent and free-variable analysis."""

from typing import Any

import pytest

from jsx_change_engine.analysis.scope import enclosing_bindings, free_identifiers
from jsx_change_engine.core.exceptions import PatternNotFound, StructuralConflict
from jsx_change_engine.handlers.extraction import (
    ExtractionHandler,
    rebase_source,
    relative_module,
)
from jsx_change_engine.parsing.source_parser import SourceParser

SOURCE_PATH = "src/components/TodoList.tsx"

TODO_WITH_HEADER = """\
import React, { useState } from 'react';
import { formatDate } from '../utils/format';
import Avatar from './Avatar';

export default function TodoList({ user }) {
  const [items, setItems] = useState([]);

  return (
    <div className="todo">
      <header className="header">
        <Avatar src={user.avatar} />
        <span>{formatDate(user.joined)}</span>
        <span>{items.length}</span>
      </header>
      <ul>
        {items.map((item) => (
          <li key={item.id} onClick={() => console.log(item)}>{item.title}</li>
        ))}
      </ul>
    </div>
  );
}
"""


class TestPaths:
    """Test module specifier arithmetic."""

    def test_relative_module(self) -> None:
        assert relative_module("src/components", "src/components/Card") == "./Card"
        assert relative_module("src/a/b", "src/utils/format") == "../../utils/format"
        assert relative_module("", "Card") == "./Card"

    def test_rebase_source(self) -> None:
        from_path = "src/components/TodoList.tsx"
        assert rebase_source("react", from_path, "src/x/Y.tsx") == "react"
        assert rebase_source("./Avatar", from_path, "src/components/Header.tsx") == "./Avatar"
        assert (
            rebase_source("../utils/format", from_path, "src/features/header/Header.tsx")
            == "../../utils/format"
        )

    def test_default_path_keeps_extension(self) -> None:
        assert ExtractionHandler.default_path("src/App.jsx", "Nav") == "src/Nav.jsx"
        assert ExtractionHandler.default_path("App.tsx", "Nav") == "Nav.tsx"


class TestScopeAnalysis:
    """Test free identifier and visibility analysis."""

    def test_free_identifiers_skip_locals_globals_and_intrinsic_tags(
        self, parser: SourceParser
    ) -> None:
        tree = parser.parse(TODO_WITH_HEADER)
        ul = tree.resolve(tree.find_elements("ul")[0].ref)
        assert free_identifiers(tree, ul) == ["items"]

    def test_component_tags_are_references(self, parser: SourceParser) -> None:
        tree = parser.parse(TODO_WITH_HEADER)
        header = tree.resolve(tree.find_elements("header")[0].ref)
        assert free_identifiers(tree, header) == ["Avatar", "user", "formatDate", "items"]

    def test_enclosing_bindings(self, parser: SourceParser) -> None:
        tree = parser.parse(TODO_WITH_HEADER)
        header = tree.resolve(tree.find_elements("header")[0].ref)
        visible = enclosing_bindings(tree, header)
        assert {"user", "items", "setItems", "formatDate", "Avatar", "TodoList"} <= visible
        assert "item" not in visible


class TestExtractComponent:
    """Test moving a subtree into a new component file."""

    def test_extracts_by_tag_with_props_and_reimports(
        self, apply_op: Any, parser: SourceParser
    ) -> None:
        outcome = apply_op(
            TODO_WITH_HEADER,
            {"type": "AST_EXTRACT_COMPONENT", "targetJSX": "header", "componentName": "TodoHeader"},
            path=SOURCE_PATH,
        )
        created = outcome.created_files["src/components/TodoHeader.tsx"]
        assert created.startswith(
            "import React from 'react';\n"
            "import Avatar from './Avatar';\n"
            "import { formatDate } from '../utils/format';\n"
            "\n"
            "interface TodoHeaderProps {\n"
            "  user: any;\n"
            "  items: any;\n"
            "}\n"
            "\n"
            "export function TodoHeader({ user, items }: TodoHeaderProps) {\n"
            "  return (\n"
            '    <header className="header">\n'
            "      <Avatar src={user.avatar} />\n"
        )
        assert created.endswith("    </header>\n  );\n}\n")
        assert not parser.parse(created).has_errors

        text = outcome.text
        assert '<TodoHeader user={user} items={items} />\n      <ul>' in text
        assert "import { TodoHeader } from './TodoHeader';" in text
        assert "<header" not in text
        assert not parser.parse(text).has_errors
        assert outcome.summary.endswith("with props user, items")

    def test_extracts_by_jsx_text(self, apply_op: Any) -> None:
        outcome = apply_op(
            TODO_WITH_HEADER,
            {
                "type": "ExtractComponent",
                "targetJSX": "<span>\n  {items.length}\n</span>",
                "componentName": "ItemCount",
            },
            path=SOURCE_PATH,
        )
        assert "<ItemCount items={items} />" in outcome.text
        created = outcome.created_files["src/components/ItemCount.tsx"]
        assert "export function ItemCount({ items }: ItemCountProps) {" in created
        assert "Avatar" not in created

    def test_without_props(self, apply_op: Any) -> None:
        outcome = apply_op(
            TODO_WITH_HEADER,
            {
                "type": "ExtractComponent",
                "targetJSX": "header",
                "componentName": "TodoHeader",
                "extractProps": False,
            },
            path=SOURCE_PATH,
        )
        assert "<TodoHeader />" in outcome.text
        assert "export function TodoHeader() {" in outcome.created_files[
            "src/components/TodoHeader.tsx"
        ]

    def test_prop_types(self, apply_op: Any) -> None:
        outcome = apply_op(
            TODO_WITH_HEADER,
            {
                "type": "ExtractComponent",
                "targetJSX": "header",
                "componentName": "TodoHeader",
                "propTypes": {"user": "User", "items": "Item[]"},
            },
            path=SOURCE_PATH,
        )
        created = outcome.created_files["src/components/TodoHeader.tsx"]
        assert "  user: User;\n  items: Item[];\n" in created

    def test_untyped_target_in_other_directory(self, apply_op: Any) -> None:
        outcome = apply_op(
            TODO_WITH_HEADER,
            {
                "type": "ExtractComponent",
                "targetJSX": "header",
                "componentName": "Header",
                "componentFile": "src/features/header/Header.jsx",
            },
            path=SOURCE_PATH,
        )
        created = outcome.created_files["src/features/header/Header.jsx"]
        assert "import Avatar from '../../components/Avatar';" in created
        assert "import { formatDate } from '../../utils/format';" in created
        assert "interface" not in created
        assert "export function Header({ user, items }) {" in created
        assert "import { Header } from '../features/header/Header';" in outcome.text

    def test_react_reimported_only_for_default_import(self, apply_op: Any) -> None:
        source = (
            "import { useState } from 'react';\n\n"
            "export function Panel() {\n"
            "  const [open] = useState(false);\n"
            "  return (\n"
            "    <div>\n"
            "      <p>{open ? 'open' : 'closed'}</p>\n"
            "    </div>\n"
            "  );\n"
            "}\n"
        )
        outcome = apply_op(
            source,
            {"type": "ExtractComponent", "targetJSX": "p", "componentName": "Status"},
            path="src/Panel.tsx",
        )
        created = outcome.created_files["src/Status.tsx"]
        assert created.startswith("interface StatusProps {\n  open: any;\n}\n")
        assert "react" not in created

    def test_same_file_conflicts(self, apply_op: Any) -> None:
        with pytest.raises(StructuralConflict, match="into the file it comes from"):
            apply_op(
                TODO_WITH_HEADER,
                {
                    "type": "ExtractComponent",
                    "targetJSX": "header",
                    "componentName": "TodoList",
                    "componentFile": SOURCE_PATH,
                },
                path=SOURCE_PATH,
            )

    def test_missing_jsx_text(self, apply_op: Any) -> None:
        with pytest.raises(PatternNotFound, match="JSX to extract not found"):
            apply_op(
                TODO_WITH_HEADER,
                {"type": "ExtractComponent", "targetJSX": "<nav />", "componentName": "Nav"},
                path=SOURCE_PATH,
            )
