"""Local file storage for uploaded resumes."""

import secrets
from pathlib import Path
from typing import Optional
import logging

from core.config import settings
from core.utils.validators import sanitize_filename

logger = logging.getLogger(__name__)


class LocalStorage:
    """Local file storage handler."""

    def __init__(self, base_path: Optional[str] = None):
        """
        Initialize local storage.

        Args:
            base_path: Base directory for file storage, defaults to UPLOAD_DIR
        """
        self.base_path = Path(base_path or settings.upload_dir).resolve()
        self.base_path.mkdir(parents=True, exist_ok=True)

    def _resolve(self, relative: str) -> Path:
        path = (self.base_path / relative).resolve()
        if self.base_path not in path.parents:
            raise ValueError(f"Path escapes storage root: {relative}")
        return path

    def save(self, file_data: bytes, filename: str, subfolder: Optional[str] = None) -> str:
        """
        Save bytes under a collision-free name.

        Args:
            file_data: File contents
            filename: Original (untrusted) file name
            subfolder: Optional subfolder, e.g. ``bulk/12``

        Returns:
            Path of the stored file relative to the storage root
        """
        stored_name = f"{secrets.token_hex(8)}_{sanitize_filename(filename)}"
        relative = f"{subfolder}/{stored_name}" if subfolder else stored_name
        path = self._resolve(relative)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(file_data)
        logger.info("Saved upload %s (%d bytes)", relative, len(file_data))
        return relative

    def read(self, relative: str) -> bytes:
        path = self._resolve(relative)
        if not path.exists():
            raise FileNotFoundError(f"File not found: {relative}")
        return path.read_bytes()

    def delete(self, relative: str) -> bool:
        path = self._resolve(relative)
        if not path.exists():
            return False
        path.unlink()
        logger.info("Deleted upload %s", relative)
        return True

    def exists(self, relative: str) -> bool:
        return self._resolve(relative).exists()
