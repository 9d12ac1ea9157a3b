"""Secure file handling for publishing ApplyResults to disk."""

import logging
import os
import shutil
from pathlib import Path

logger = logging.getLogger(__name__)


class SecureFileHandler:
    """File writes that never leave a half-written source file behind.

    This class provides:
    - Atomic file writes with automatic rollback
    - Safe file deletion
    """

    @staticmethod
    def atomic_write(file_path: Path, content: str, backup: bool = True) -> None:
        """Perform an atomic file write with backup and rollback.

        Parent directories are created for new files. The original file is
        backed up while the write is in flight and restored on failure.

        Raises:
            OSError: If the file operation fails.
        """
        backup_path: Path | None = None
        temp_file = file_path.with_suffix(file_path.suffix + ".tmp")

        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            if backup and file_path.exists():
                backup_path = file_path.with_suffix(file_path.suffix + ".bak")
                shutil.copy2(file_path, backup_path)

            with open(temp_file, "w", encoding="utf-8", newline="") as f:
                f.write(content)

            # Atomic move (atomic on most filesystems)
            temp_file.replace(file_path)

            if backup_path and backup_path.exists():
                backup_path.unlink()

        except OSError as e:
            if temp_file.exists():
                temp_file.unlink()
            if backup_path and backup_path.exists():
                try:
                    backup_path.replace(file_path)
                    logger.info(f"Restored backup from {backup_path}")
                except OSError as restore_error:
                    logger.error(f"Failed to restore backup: {restore_error}")

            raise OSError(f"Atomic write failed for {file_path}: {e}") from e

    @staticmethod
    def safe_delete(path: Path) -> bool:
        """Delete a file.

        Returns:
            bool: True if the file is gone afterwards, False otherwise.
        """
        if not path.exists():
            return True
        if path.is_dir():
            logger.error(f"Refusing to delete directory {path}")
            return False

        try:
            os.remove(path)
            return True
        except OSError as e:
            logger.error(f"Failed to delete {path}: {e}")
            return False
