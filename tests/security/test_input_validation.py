"""Tests for change-set path validation and content scanning."""

from pathlib import Path

import pytest

from jsx_change_engine.security import InputValidator


class TestFilePathValidation:
    """Tests for file path validation."""

    @pytest.mark.parametrize(
        "path",
        [
            "src/App.tsx",
            "src/app/[id]/page.tsx",
            "src/app/(marketing)/layout.tsx",
            "src/app/@modal/default.jsx",
            "src/components/date-picker+utils.ts",
            "my..file.tsx",
            "folder/..file.tsx",
            "src/a/../b/Card.tsx",
        ],
    )
    def test_valid_paths(self, path: str) -> None:
        """Test that workspace-relative paths, including Next.js route names, are accepted."""
        assert InputValidator.validate_file_path(path), f"Expected valid: {path}"

    @pytest.mark.parametrize(
        "path",
        [
            "../../etc/passwd",
            "..",
            "src/../../outside.tsx",
            "/etc/passwd",
            "/root/App.tsx",
            "",
        ],
    )
    def test_traversal_and_absolute_paths(self, path: str) -> None:
        """Test that paths escaping the workspace are rejected."""
        assert not InputValidator.validate_file_path(path), f"Expected invalid: {path}"

    @pytest.mark.parametrize(
        "path",
        ["src/App.tsx;rm -rf /", "src/$(whoami).tsx", "src/`id`.tsx", "src/App .tsx", "a\x00b"],
    )
    def test_shell_metacharacters(self, path: str) -> None:
        """Test that paths with shell metacharacters or whitespace are rejected."""
        assert not InputValidator.validate_file_path(path)


class TestFileSizeValidation:
    """Tests for file size limits."""

    def test_small_file(self, tmp_path: Path) -> None:
        source = tmp_path / "App.tsx"
        source.write_text("export {};\n")
        assert InputValidator.validate_file_size(source)

    def test_oversized_file(self, tmp_path: Path) -> None:
        source = tmp_path / "Huge.tsx"
        source.write_bytes(b"x" * (InputValidator.MAX_FILE_SIZE + 1))
        assert not InputValidator.validate_file_size(source)

    def test_directory(self, tmp_path: Path) -> None:
        assert not InputValidator.validate_file_size(tmp_path)

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            InputValidator.validate_file_size(tmp_path / "absent.tsx")


class TestContentScanning:
    """Tests for advisory content notes."""

    def test_clean_content(self, todo_source: str) -> None:
        assert InputValidator.scan_content(todo_source) == []
        assert InputValidator.scan_content("") == []

    @pytest.mark.parametrize(
        ("content", "note"),
        [
            ("<div dangerouslySetInnerHTML={{ __html: x }} />", "Uses dangerouslySetInnerHTML"),
            ("const v = eval (code);", "Detected eval() usage"),
            ("const f = new Function('a', 'return a');", "Detected new Function() usage"),
            ('<a href="javascript:alert(1)">x</a>', "Detected javascript: URL"),
            ("document.write('<p>')", "Detected document.write() usage"),
            ("a\x00b", "Content contains null bytes"),
        ],
    )
    def test_suspicious_patterns(self, content: str, note: str) -> None:
        assert note in InputValidator.scan_content(content)

    def test_identifier_containing_eval_is_not_flagged(self) -> None:
        assert InputValidator.scan_content("const medieval = retrieval(x);") == []
