"""
Local-disk blob store for uploaded resumes.

Handles are paths relative to the store root (portable across machines). A handle
that is already an absolute http(s) URL belongs to an external store and is served
by redirect instead.
"""
import logging
from dataclasses import dataclass
from pathlib import Path
from uuid import uuid4

from fastapi import UploadFile

from .. import config
from ..utils.error_handlers import FileTooLargeError, NotFoundError, StorageError, ValidationError, get_error_message
from ..utils.validation import validate_resume_filename

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024  # 1MB


@dataclass(frozen=True)
class StoredFile:
    handle: str
    original_filename: str
    content_type: str | None
    size_bytes: int


def is_url_handle(handle: str | None) -> bool:
    return bool(handle) and handle.lower().startswith(("http://", "https://"))


class LocalFileStore:
    def __init__(self, root: str | Path, max_bytes: int | None = None):
        self.root = Path(root)
        self.max_bytes = config.MAX_RESUME_BYTES if max_bytes is None else max_bytes

    def _path_for(self, handle: str) -> Path:
        path = (self.root / handle).resolve()
        if self.root.resolve() not in path.parents:
            raise NotFoundError(get_error_message("file_missing"))
        return path

    async def save(self, upload: UploadFile) -> StoredFile:
        if not upload or not upload.filename:
            raise ValidationError("Resume file is required")
        original_filename, ext = validate_resume_filename(upload.filename)

        handle = f"resumes/{uuid4().hex}{ext}"
        dest = self.root / handle
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error("Failed to create upload directory %s: %s", dest.parent, e)
            raise StorageError(get_error_message("file_storage_failed"))

        size = 0
        try:
            with open(dest, "wb") as out:
                while True:
                    chunk = await upload.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    size += len(chunk)
                    if size > self.max_bytes:
                        raise FileTooLargeError(get_error_message("file_too_large"))
                    out.write(chunk)
        except FileTooLargeError:
            dest.unlink(missing_ok=True)
            raise
        except OSError as e:
            dest.unlink(missing_ok=True)
            logger.error("File save error for %s: %s", original_filename, e)
            raise StorageError(get_error_message("file_storage_failed"))
        finally:
            await upload.close()

        return StoredFile(
            handle=handle,
            original_filename=original_filename,
            content_type=upload.content_type,
            size_bytes=size,
        )

    def resolve(self, handle: str) -> Path:
        path = self._path_for(handle)
        if not path.is_file():
            logger.error("Resume file missing on server: %s", path)
            raise NotFoundError("File no longer available on server")
        return path

    def delete(self, handle: str) -> None:
        if is_url_handle(handle):
            # External blobs are owned by the external store.
            logger.info("Skipping delete of external blob %s", handle)
            return
        self._path_for(handle).unlink(missing_ok=True)


def get_file_store() -> LocalFileStore:
    return LocalFileStore(config.UPLOAD_DIR)
