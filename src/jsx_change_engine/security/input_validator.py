"""Input validation for change-set paths and content."""

import os
import re
from pathlib import Path
from typing import ClassVar


class InputValidator:
    """Validation helpers applied before a change set touches the workspace.

    This class provides static methods that guard against:
    - Path traversal through change-set paths
    - Oversized input files
    - Content patterns that should get a human's attention before approval
    """

    # Letters, digits, and the punctuation used by Next.js style routes ([id], (group), @slot)
    SAFE_PATH_PATTERN = re.compile(r"^[a-zA-Z0-9_./\-\[\]()@+]+$")

    # Maximum source file size: 2MB
    MAX_FILE_SIZE = 2 * 1024 * 1024

    SUSPICIOUS_PATTERNS: ClassVar[list[tuple[str, str]]] = [
        (r"dangerouslySetInnerHTML", "Uses dangerouslySetInnerHTML"),
        (r"\beval\s*\(", "Detected eval() usage"),
        (r"new\s+Function\s*\(", "Detected new Function() usage"),
        (r"javascript:", "Detected javascript: URL"),
        (r"document\.write\s*\(", "Detected document.write() usage"),
    ]

    @staticmethod
    def validate_file_path(path: str) -> bool:
        """Validate a change-set path is relative and free of traversal.

        Example:
            >>> InputValidator.validate_file_path("src/app/[id]/page.tsx")
            True
            >>> InputValidator.validate_file_path("../../etc/passwd")
            False
        """
        if not path or not isinstance(path, str):
            return False

        normalized = os.path.normpath(path)
        if normalized == ".." or normalized.startswith("../"):
            return False
        if normalized.startswith("/") or (
            os.name == "nt" and len(normalized) > 1 and normalized[1] == ":"
        ):
            return False
        return bool(InputValidator.SAFE_PATH_PATTERN.match(normalized))

    @staticmethod
    def validate_file_size(file_path: Path) -> bool:
        """Validate file size is within limits.

        Raises:
            FileNotFoundError: If file does not exist.
        """
        if not file_path.exists():
            raise FileNotFoundError(f"File not found: {file_path}")
        if not file_path.is_file():
            return False
        return file_path.stat().st_size <= InputValidator.MAX_FILE_SIZE

    @staticmethod
    def scan_content(content: str) -> list[str]:
        r"""List security notes for generated content.

        Notes are advisory; nothing is removed or rewritten.

        Example:
            >>> InputValidator.scan_content("<div dangerouslySetInnerHTML={{ __html: x }} />")
            ['Uses dangerouslySetInnerHTML']
        """
        if not content:
            return []
        notes: list[str] = []
        if "\x00" in content:
            notes.append("Content contains null bytes")
        for pattern, message in InputValidator.SUSPICIOUS_PATTERNS:
            if re.search(pattern, content):
                notes.append(message)
        return notes
