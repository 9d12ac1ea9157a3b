"""Unit tests for text-level operations in jsx_change_engine.handlers.textual."""

from typing import Any

import pytest

from jsx_change_engine.core.exceptions import PatternNotFound
from jsx_change_engine.handlers.textual import TextualHandler

NOTES = "alpha\nbeta\nbeta\n"


class TestTextualOperations:
    """Test substring-located edits."""

    def test_insert_before_adds_trailing_newline(self, apply_op: Any) -> None:
        outcome = apply_op(
            NOTES, {"type": "INSERT_BEFORE", "searchFor": "beta", "content": "new"}, "notes.txt"
        )
        assert outcome.text == "alpha\nnew\nbeta\nbeta\n"

    def test_insert_after_adds_leading_newline(self, apply_op: Any) -> None:
        outcome = apply_op(
            NOTES, {"type": "InsertAfter", "searchFor": "alpha", "content": "new"}, "notes.txt"
        )
        assert outcome.text == "alpha\nnew\nbeta\nbeta\n"

    def test_content_newlines_are_not_doubled(self, apply_op: Any) -> None:
        before = apply_op(
            NOTES, {"type": "InsertBefore", "searchFor": "beta", "content": "x\n"}, "notes.txt"
        )
        after = apply_op(
            NOTES, {"type": "InsertAfter", "searchFor": "alpha", "content": "\nx"}, "notes.txt"
        )
        assert before.text == after.text == "alpha\nx\nbeta\nbeta\n"

    def test_replace_first_occurrence_only(self, apply_op: Any) -> None:
        outcome = apply_op(
            NOTES, {"type": "REPLACE", "searchFor": "beta", "replaceWith": "gamma"}, "notes.txt"
        )
        assert outcome.text == "alpha\ngamma\nbeta\n"
        assert outcome.summary == "Replaced 'beta'"

    def test_delete_first_occurrence(self, apply_op: Any) -> None:
        outcome = apply_op(NOTES, {"type": "Delete", "searchFor": "beta\n"}, "notes.txt")
        assert outcome.text == "alpha\nbeta\n"

    def test_missing_text_hints_at_stale_input(self, apply_op: Any) -> None:
        with pytest.raises(PatternNotFound, match="re-read the current file") as exc_info:
            apply_op(NOTES, {"type": "Replace", "searchFor": "delta"}, "notes.txt")
        assert exc_info.value.descriptor == "delta"

    def test_textual_operations_work_on_source_files(
        self, apply_op: Any, counter_source: str
    ) -> None:
        outcome = apply_op(
            counter_source, {"type": "Replace", "searchFor": "Hello", "replaceWith": "Hi"}
        )
        assert "<div className=\"container\">Hi</div>" in outcome.text


class TestAppend:
    """Test Append newline handling."""

    @pytest.mark.parametrize(
        ("text", "content", "expected"),
        [
            ("a", "b", "a\nb"),
            ("a\n", "b", "a\nb"),
            ("a", "\nb", "a\nb"),
            ("", "b", "b"),
        ],
    )
    def test_append(self, text: str, content: str, expected: str) -> None:
        assert TextualHandler.append(text, content) == expected

    def test_append_operation(self, apply_op: Any) -> None:
        outcome = apply_op("a {}\n", {"type": "APPEND", "content": "b {}\n"}, "styles.css")
        assert outcome.text == "a {}\nb {}\n"
        assert outcome.summary == "Appended content"
