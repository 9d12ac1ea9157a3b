"""Security controls for loading and publishing workspace files.

This module provides:
- Input validation for change-set paths and content (InputValidator)
- Atomic writes and safe deletion (SecureFileHandler)
"""

from jsx_change_engine.security.input_validator import InputValidator
from jsx_change_engine.security.secure_file_handler import SecureFileHandler

__all__ = ["InputValidator", "SecureFileHandler"]
