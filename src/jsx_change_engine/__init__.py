"""JSX Change Engine.

Structural source transformations for React JSX/TSX files: parse, locate,
edit, reparse, and return new content or a file-scoped failure.
"""

__version__ = "0.1.0"

from .config.runtime_config import ConfigError, RuntimeConfig
from .core.engine import ChangeSetApplier
from .core.exceptions import EngineError, ErrorKind
from .core.models import (
    ApplyResult,
    ChangeSet,
    ExtractionSuggestion,
    FileAction,
    FileChange,
    FileError,
    Language,
    ModifiedFile,
)
from .core.operations import parse_operation
from .handlers.registry import OperationCatalog
from .parsing.source_parser import SourceParser

__all__ = [
    "ApplyResult",
    "ChangeSet",
    "ChangeSetApplier",
    "ConfigError",
    "EngineError",
    "ErrorKind",
    "ExtractionSuggestion",
    "FileAction",
    "FileChange",
    "FileError",
    "Language",
    "ModifiedFile",
    "OperationCatalog",
    "RuntimeConfig",
    "SourceParser",
    "parse_operation",
]
