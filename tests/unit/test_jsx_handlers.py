"""Unit tests for JSX element handlers in jsx_change_engine.handlers.jsx."""

from typing import Any

import pytest

from jsx_change_engine.core.exceptions import PatternNotFound, StructuralConflict
from jsx_change_engine.handlers.jsx import render_prop
from jsx_change_engine.parsing.source_parser import SourceParser

CARD_LIST = """\
export const Cards = () => (
  <div>
    <Card />
  </div>
);
"""


class TestRenderProp:
    """Test JSX attribute rendering."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (None, "disabled"),
            ("'submit'", 'disabled="submit"'),
            ('"submit"', 'disabled="submit"'),
            ("{isBusy}", "disabled={isBusy}"),
            ("isBusy", "disabled={isBusy}"),
            ("{{ color: 'red' }}", "disabled={{ color: 'red' }}"),
            ("'say \"hi\"'", "disabled={'say \"hi\"'}"),
        ],
    )
    def test_render_prop(self, value: str | None, expected: str) -> None:
        assert render_prop("disabled", value) == expected


class TestModifyClassName:
    """Test className rewriting."""

    def test_adds_conditional_class_to_existing_static(
        self, apply_op: Any, counter_source: str
    ) -> None:
        outcome = apply_op(
            counter_source,
            {
                "type": "AST_MODIFY_CLASSNAME",
                "targetElement": "div",
                "template": {"variable": "dark", "trueValue": "dark-mode", "operator": "?"},
            },
        )
        assert "<div className={`container ${dark ? 'dark-mode' : ''}`}>Hello</div>" in (
            outcome.text
        )
        assert outcome.summary == "Modified className on <div>"

    def test_static_classes_are_merged(self, apply_op: Any, counter_source: str) -> None:
        outcome = apply_op(
            counter_source,
            {
                "type": "ModifyClassName",
                "targetElement": "div",
                "staticClasses": ["container", "active wide"],
            },
        )
        assert '<div className="container active wide">' in outcome.text

    def test_adds_attribute_when_missing(self, apply_op: Any, todo_source: str) -> None:
        outcome = apply_op(
            todo_source,
            {"type": "ModifyClassName", "targetElement": "ul", "staticClasses": ["list"]},
        )
        assert '<ul className="list">' in outcome.text

    def test_and_operator(self, apply_op: Any, counter_source: str) -> None:
        outcome = apply_op(
            counter_source,
            {
                "type": "ModifyClassName",
                "targetElement": "div",
                "template": {"variable": "isOpen", "trueValue": "open", "operator": "&&"},
            },
        )
        assert "className={`container ${isOpen && 'open'}`}" in outcome.text

    def test_raw_template_is_inserted_without_backticks(
        self, apply_op: Any, counter_source: str
    ) -> None:
        outcome = apply_op(
            counter_source,
            {"type": "ModifyClassName", "targetElement": "div", "rawTemplate": "`${size}`"},
        )
        assert "className={`container ${size}`}" in outcome.text

    def test_existing_expression_kept_as_dynamic_part(self, apply_op: Any) -> None:
        source = "export const A = () => <section className={styles.card} />;\n"
        outcome = apply_op(
            source,
            {"type": "ModifyClassName", "targetElement": "section", "staticClasses": ["p-4"]},
        )
        assert "<section className={`p-4 ${styles.card}`} />" in outcome.text

    def test_missing_element_lists_present_tags(self, apply_op: Any, counter_source: str) -> None:
        with pytest.raises(PatternNotFound, match="elements present: div"):
            apply_op(
                counter_source,
                {"type": "ModifyClassName", "targetElement": "span", "staticClasses": ["x"]},
            )


class TestInsertJSX:
    """Test JSX fragment insertion."""

    def test_inside_end_after_last_child(
        self, apply_op: Any, todo_source: str, parser: SourceParser
    ) -> None:
        outcome = apply_op(
            todo_source, {"type": "InsertJSX", "targetElement": "ul", "jsx": "<li>Empty</li>"}
        )
        assert "        ))}\n        <li>Empty</li>\n      </ul>" in outcome.text
        assert not parser.parse(outcome.text).has_errors

    def test_inside_start(self, apply_op: Any, todo_source: str) -> None:
        outcome = apply_op(
            todo_source,
            {
                "type": "InsertJSX",
                "targetElement": "ul",
                "jsx": "<li>First</li>",
                "position": "inside_start",
            },
        )
        assert "<ul>\n        <li>First</li>\n        {items.map" in outcome.text

    def test_before_sibling(self, apply_op: Any, todo_source: str) -> None:
        outcome = apply_op(
            todo_source,
            {
                "type": "InsertJSX",
                "targetElement": "h1",
                "jsx": "<p>Intro</p>",
                "position": "before",
            },
        )
        assert "      <p>Intro</p>\n      <h1>{title}</h1>" in outcome.text

    def test_after_sibling(self, apply_op: Any, todo_source: str) -> None:
        outcome = apply_op(
            todo_source,
            {
                "type": "InsertJSX",
                "targetElement": "button",
                "jsx": "<footer />",
                "position": "after",
            },
        )
        assert "</button>\n      <footer />\n    </div>" in outcome.text

    def test_sibling_of_root_element_conflicts(self, apply_op: Any, counter_source: str) -> None:
        with pytest.raises(StructuralConflict, match="not a JSX child"):
            apply_op(
                counter_source,
                {
                    "type": "InsertJSX",
                    "targetElement": "div",
                    "jsx": "<p />",
                    "position": "after",
                },
            )

    def test_self_closing_target_is_expanded(self, apply_op: Any) -> None:
        outcome = apply_op(
            CARD_LIST, {"type": "InsertJSX", "targetElement": "Card", "jsx": "<p>Body</p>"}
        )
        assert "    <Card>\n      <p>Body</p>\n    </Card>\n  </div>" in outcome.text

    def test_single_line_element(self, apply_op: Any, counter_source: str) -> None:
        end = apply_op(
            counter_source, {"type": "InsertJSX", "targetElement": "div", "jsx": "<b>!</b>"}
        )
        assert '<div className="container">Hello<b>!</b></div>' in end.text
        start = apply_op(
            counter_source,
            {
                "type": "InsertJSX",
                "targetElement": "div",
                "jsx": "<b>!</b>",
                "position": "inside_start",
            },
        )
        assert '<div className="container"><b>!</b>Hello</div>' in start.text

    def test_repeated_insert_duplicates(self, apply_op: Any, todo_source: str) -> None:
        payload = {"type": "InsertJSX", "targetElement": "ul", "jsx": "<li>Empty</li>"}
        twice = apply_op(apply_op(todo_source, payload).text, payload).text
        assert twice.count("<li>Empty</li>") == 2

    def test_invalid_fragment_is_rejected(self, apply_op: Any, todo_source: str) -> None:
        with pytest.raises(StructuralConflict, match="does not parse"):
            apply_op(todo_source, {"type": "InsertJSX", "targetElement": "ul", "jsx": "<li>"})


class TestModifyProp:
    """Test prop add, update, and remove."""

    def test_add_boolean_prop(self, apply_op: Any, todo_source: str) -> None:
        outcome = apply_op(
            todo_source,
            {
                "type": "AST_MODIFY_PROP",
                "targetElement": "button",
                "propName": "disabled",
                "action": "add",
            },
        )
        assert "<button onClick={() => setItems([...items, draft])} disabled>" in outcome.text

    def test_add_string_prop(self, apply_op: Any, todo_source: str) -> None:
        outcome = apply_op(
            todo_source,
            {
                "type": "ModifyProp",
                "targetElement": "button",
                "propName": "type",
                "propValue": "'button'",
                "action": "add",
            },
        )
        assert 'draft])} type="button">Add</button>' in outcome.text

    def test_add_existing_prop_conflicts(self, apply_op: Any, todo_source: str) -> None:
        with pytest.raises(StructuralConflict, match="already exists"):
            apply_op(
                todo_source,
                {
                    "type": "ModifyProp",
                    "targetElement": "button",
                    "propName": "onClick",
                    "propValue": "save",
                    "action": "add",
                },
            )

    def test_update_prop(self, apply_op: Any, counter_source: str) -> None:
        outcome = apply_op(
            counter_source,
            {
                "type": "ModifyProp",
                "targetElement": "div",
                "propName": "className",
                "propValue": "{styles.box}",
                "action": "update",
            },
        )
        assert "<div className={styles.box}>Hello</div>" in outcome.text

    def test_remove_prop(self, apply_op: Any, counter_source: str) -> None:
        outcome = apply_op(
            counter_source,
            {
                "type": "ModifyProp",
                "targetElement": "div",
                "propName": "className",
                "action": "remove",
            },
        )
        assert "return <div>Hello</div>;" in outcome.text

    def test_update_missing_prop(self, apply_op: Any, todo_source: str) -> None:
        with pytest.raises(StructuralConflict, match="it is not set"):
            apply_op(
                todo_source,
                {
                    "type": "ModifyProp",
                    "targetElement": "h1",
                    "propName": "id",
                    "propValue": "'title'",
                    "action": "update",
                },
            )

    def test_missing_prop_behind_spread(self, apply_op: Any) -> None:
        source = "export const Field = (props) => <input {...props} />;\n"
        with pytest.raises(StructuralConflict, match="spread attribute"):
            apply_op(
                source,
                {
                    "type": "ModifyProp",
                    "targetElement": "input",
                    "propName": "value",
                    "action": "remove",
                },
            )


class TestWrapElement:
    """Test wrapping an element in a component."""

    def test_wraps_and_imports(
        self, apply_op: Any, todo_source: str, parser: SourceParser
    ) -> None:
        outcome = apply_op(
            todo_source,
            {
                "type": "AST_WRAP_ELEMENT",
                "targetElement": "ul",
                "wrapperComponent": "ErrorBoundary",
                "wrapperProps": {"fallback": "<p>Oops</p>"},
                "import": {"source": "react-error-boundary", "namedImports": ["ErrorBoundary"]},
            },
        )
        text = outcome.text
        assert "      <ErrorBoundary fallback={<p>Oops</p>}>\n        <ul>\n" in text
        assert "          {items.map((item) => (\n" in text
        assert "        </ul>\n      </ErrorBoundary>\n" in text
        assert (
            "import React, { useState } from 'react';\n"
            "import { ErrorBoundary } from 'react-error-boundary';\n"
        ) in text
        assert not parser.parse(text).has_errors

    def test_wrap_without_import(self, apply_op: Any, counter_source: str) -> None:
        outcome = apply_op(
            counter_source,
            {"type": "WrapElement", "targetElement": "div", "wrapperComponent": "Layout.Main"},
        )
        assert "return <Layout.Main>\n" in outcome.text
        assert "</Layout.Main>;" in outcome.text
        assert outcome.text.startswith("import React from 'react';\n\n")
