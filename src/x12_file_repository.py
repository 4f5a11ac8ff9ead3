import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from x12_exceptions import X12FileError

logger = logging.getLogger(__name__)


class FileRepository:
    """Reads and writes X12 and JSON files for callers that wrap the core in file I/O."""

    def __init__(self, backup_suffix: str = ".backup"):
        self.backup_suffix = backup_suffix

    def save(self, content: str, file_path: str) -> bool:
        path = Path(file_path)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content)
        except OSError as e:
            logger.error(f"Failed to save file {file_path}: {e}")
            raise X12FileError(f"Error saving file: {e}") from e
        logger.info(f"Saved {len(content)} characters to {file_path}")
        return True

    def load(self, file_path: str) -> str:
        path = Path(file_path)
        if not path.exists():
            raise X12FileError(f"File not found: {file_path}")
        try:
            return path.read_text()
        except (OSError, UnicodeDecodeError) as e:
            raise X12FileError(f"Error loading file: {e}") from e

    def exists(self, file_path: str) -> bool:
        return Path(file_path).exists()

    def get_size(self, file_path: str) -> int:
        path = self._existing(file_path)
        return path.stat().st_size

    def delete(self, file_path: str) -> bool:
        path = self._existing(file_path)
        try:
            path.unlink()
        except OSError as e:
            raise X12FileError(f"Error deleting file: {e}") from e
        logger.info(f"Deleted {file_path}")
        return True

    def get_info(self, file_path: str) -> Dict[str, Any]:
        path = self._existing(file_path)
        stat = path.stat()
        return {
            "path": str(path),
            "size": stat.st_size,
            "modified": stat.st_mtime,
            "created": stat.st_ctime,
            "permissions": stat.st_mode,
            "readable": os.access(path, os.R_OK),
            "writable": os.access(path, os.W_OK),
        }

    def backup(self, file_path: str, backup_path: Optional[str] = None) -> str:
        self._existing(file_path)
        if backup_path is None:
            backup_path = f"{file_path}{self.backup_suffix}.{datetime.now().strftime('%Y-%m-%d-%H-%M-%S')}"
        self.save(self.load(file_path), backup_path)
        logger.info(f"Backed up {file_path} to {backup_path}")
        return backup_path

    @staticmethod
    def _existing(file_path: str) -> Path:
        path = Path(file_path)
        if not path.exists():
            raise X12FileError(f"File not found: {file_path}")
        return path
