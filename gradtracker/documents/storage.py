"""
On-disk storage for uploaded documents.

Layout under the upload root::

    {root}/{owner_id}/{uuid}_{sanitized name}     committed files
    {root}/{owner_id}/tmp/{uuid}_*.tmp            staged, not yet committed

A file is written to ``tmp`` first (``stage``) and only renamed into its final
place (``promote``) after the database row pointing at it has committed, so a
crash mid-write never clobbers a committed file and a rolled-back request
never leaves anything at a final path.
"""

import logging
import os
import re
import shutil
import tempfile
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO

from gradtracker.errors import StorageError, ValidationError

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = frozenset({"pdf", "docx", "doc", "txt", "jpg", "jpeg", "png"})
MAX_FILE_SIZE = 5 * 1024 * 1024
TMP_DIR_NAME = "tmp"
CHUNK_SIZE = 64 * 1024

_UNSAFE_CHARS = re.compile(r'[\\/:*?"<>|\x00-\x1f]')


def extension_of(filename: str) -> str:
    lower = filename.lower()
    idx = lower.rfind(".")
    if idx >= 0 and idx < len(lower) - 1:
        return lower[idx + 1:]
    return ""


def sanitize(filename: str) -> str:
    cleaned = _UNSAFE_CHARS.sub("_", filename).strip()
    return cleaned or "file"


@dataclass(frozen=True)
class StagedFile:
    owner_id: int
    original_name: str
    temp_path: Path
    final_path: Path
    size: int


class DocumentStore:
    def __init__(self, upload_root: str | os.PathLike, max_bytes: int = MAX_FILE_SIZE):
        self.root = Path(upload_root).resolve()
        self.max_bytes = max_bytes

    def owner_dir(self, owner_id: int) -> Path:
        return self.root / str(owner_id)

    def validate(self, filename: str | None, size: int | None) -> str:
        """Check presence, size and extension; return the original file name."""
        if not filename or size == 0:
            raise ValidationError("file is required")
        if size is not None and size > self.max_bytes:
            raise ValidationError(f"file size exceeds maximum of {self.max_bytes // (1024 * 1024)}MB")
        ext = extension_of(filename)
        if ext not in ALLOWED_EXTENSIONS:
            raise ValidationError(f"file type not allowed: {ext}")
        return filename

    def stage(self, owner_id: int, filename: str | None, stream: BinaryIO, size: int | None = None) -> StagedFile:
        original = self.validate(filename, size)

        unique_id = str(uuid.uuid4())
        owner_dir = self.owner_dir(owner_id)
        tmp_dir = owner_dir / TMP_DIR_NAME
        try:
            tmp_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=tmp_dir, prefix=f"{unique_id}_", suffix=".tmp")
        except OSError as e:
            raise StorageError(f"failed to create temp file: {e}") from e

        temp_path = Path(tmp_name)
        try:
            written = self._copy(stream, fd)
        except ValidationError:
            self._unlink_quietly(temp_path)
            raise
        except OSError as e:
            self._unlink_quietly(temp_path)
            raise StorageError(f"failed to write temp file: {e}") from e

        if written == 0:
            self._unlink_quietly(temp_path)
            raise ValidationError("file is required")

        final_path = owner_dir / f"{unique_id}_{sanitize(original)}"
        logger.debug("staged %s (%d bytes) for owner %s", temp_path.name, written, owner_id)
        return StagedFile(owner_id, original, temp_path, final_path, written)

    def _copy(self, stream: BinaryIO, fd: int) -> int:
        written = 0
        with os.fdopen(fd, "wb") as out:
            while True:
                chunk = stream.read(CHUNK_SIZE)
                if not chunk:
                    break
                written += len(chunk)
                if written > self.max_bytes:
                    raise ValidationError(
                        f"file size exceeds maximum of {self.max_bytes // (1024 * 1024)}MB"
                    )
                out.write(chunk)
        return written

    def promote(self, staged: StagedFile) -> Path:
        """Move a staged file to its final path, replacing anything already there."""
        try:
            staged.final_path.parent.mkdir(parents=True, exist_ok=True)
            os.replace(staged.temp_path, staged.final_path)
        except OSError as e:
            logger.error("failed to move uploaded file to final location %s", staged.final_path, exc_info=True)
            raise StorageError(f"failed to move uploaded file: {e}") from e
        return staged.final_path

    def discard(self, staged: StagedFile) -> None:
        self._unlink_quietly(staged.temp_path)

    def remove(self, path: str | os.PathLike) -> None:
        """Synchronous delete; raises StorageError so the caller can abort."""
        try:
            Path(path).unlink()
        except FileNotFoundError:
            logger.warning("file already missing on delete: %s", path)
        except OSError as e:
            raise StorageError(f"failed to delete file: {e}") from e

    def remove_quietly(self, path: str | os.PathLike | None) -> None:
        if path:
            self._unlink_quietly(Path(path))

    def check_existing(self, owner_id: int, path: str) -> Path:
        """Validate a file that is already on disk before pointing a document at it."""
        candidate = Path(path).resolve()
        if not candidate.is_relative_to(self.owner_dir(owner_id).resolve()):
            raise ValidationError("replacement file must live in the owner's upload directory")
        if not candidate.exists() or not candidate.is_file():
            raise ValidationError(f"replacement file not found: {candidate.name}")
        try:
            size = candidate.stat().st_size
        except OSError as e:
            raise StorageError(f"failed to access replacement file: {e}") from e
        if size > self.max_bytes:
            raise ValidationError("replacement file exceeds maximum size")
        ext = extension_of(candidate.name)
        if ext not in ALLOWED_EXTENSIONS:
            raise ValidationError(f"replacement file type not allowed: {ext}")
        return candidate

    def purge_owner(self, owner_id: int) -> None:
        owner_dir = self.owner_dir(owner_id)
        try:
            shutil.rmtree(owner_dir)
        except FileNotFoundError:
            pass
        except OSError:
            logger.warning("failed to remove upload directory %s", owner_dir, exc_info=True)

    def _unlink_quietly(self, path: Path) -> None:
        try:
            path.unlink(missing_ok=True)
        except OSError:
            logger.warning("failed to delete file %s", path, exc_info=True)
