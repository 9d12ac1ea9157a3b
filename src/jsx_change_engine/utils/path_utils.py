"""Workspace path resolution for change-set file paths."""

from pathlib import Path


def resolve_workspace_path(
    path: str, workspace_root: Path, validate_workspace: bool = True
) -> Path:
    """Resolve a change-set path against ``workspace_root``.

    Change-set paths are always relative to the workspace. Absolute paths and
    paths that resolve outside the workspace (through ``..`` or symlinks) are
    rejected.

    Args:
        path: Relative file path from a FileChange.
        workspace_root: Directory the change set applies to.
        validate_workspace: If True (default), check that workspace_root exists
            and is a directory. Pass False when the caller has already checked.

    Returns:
        Path: Resolved absolute path inside the workspace.

    Raises:
        ValueError: If path is empty or absolute, if workspace_root is not a
            directory, or if the resolved path is outside workspace_root.

    Example:
        >>> resolve_workspace_path('src/App.tsx', Path('/workspace'), validate_workspace=False)
        PosixPath('/workspace/src/App.tsx')
    """
    if not isinstance(path, str) or not path.strip():
        raise ValueError("path cannot be empty or whitespace-only")
    if Path(path).is_absolute():
        raise ValueError(f"Path '{path}' must be relative to the workspace")

    if validate_workspace:
        if not workspace_root.exists():
            raise ValueError(f"workspace_root does not exist: {workspace_root}")
        if not workspace_root.is_dir():
            raise ValueError(f"workspace_root must be a directory: {workspace_root}")

    root = workspace_root.resolve()
    resolved = (root / path).resolve(strict=False)
    if not resolved.is_relative_to(root):
        raise ValueError(f"Path '{path}' resolves outside workspace_root: {workspace_root}")
    return resolved
