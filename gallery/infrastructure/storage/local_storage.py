import os
import uuid
import shutil
import logging
from typing import BinaryIO

from ...application.ports.picture_repo import CleanupReport, FileRemoval, PictureHandle
from ...application.ports.storage_repo import StorageRepository, StoredFile
from ...exceptions import FilesystemError

logger = logging.getLogger(__name__)


class LocalStorageRepository(StorageRepository):
    """Originals live in upload_dir, thumbnails in upload_dir/<thumbnail_dirname>,
    both under the same generated filename."""

    def __init__(self, upload_dir: str, thumbnail_dirname: str = "thumbnails") -> None:
        self.upload_dir = upload_dir
        self.thumbnail_dirname = thumbnail_dirname

    @property
    def thumbnail_dir(self) -> str:
        return os.path.join(self.upload_dir, self.thumbnail_dirname)

    def ensure_directories(self) -> None:
        os.makedirs(self.upload_dir, exist_ok=True)
        os.makedirs(self.thumbnail_dir, exist_ok=True)
        logger.info(f"Upload directories initialized under {self.upload_dir}")

    @staticmethod
    def generate_filename(original_name: str) -> str:
        file_extension = os.path.splitext(original_name or "")[1]
        return f"{uuid.uuid4()}{file_extension}"

    def original_path(self, filename: str) -> str:
        return os.path.join(self.upload_dir, filename)

    def thumbnail_path(self, filename: str) -> str:
        return os.path.join(self.thumbnail_dir, filename)

    def save_upload(self, original_name: str, stream: BinaryIO) -> StoredFile:
        filename = self.generate_filename(original_name)
        path = self.original_path(filename)
        try:
            os.makedirs(self.upload_dir, exist_ok=True)
            stream.seek(0)
            with open(path, "wb") as buffer:
                shutil.copyfileobj(stream, buffer)
            size = os.path.getsize(path)
        except OSError as e:
            logger.error(f"Error saving upload {original_name} to {path}: {e}")
            if os.path.exists(path):
                self.remove(path)
            raise FilesystemError(f"Failed to store {original_name}", path=path) from e
        return StoredFile(filename=filename, path=path, size=size)

    def remove(self, path: str) -> FileRemoval:
        try:
            os.remove(path)
        except FileNotFoundError:
            logger.warning(f"Could not delete {path}: file does not exist")
            return FileRemoval(path=path, removed=False, error="not found")
        except OSError as e:
            logger.warning(f"Could not delete {path}: {e}")
            return FileRemoval(path=path, removed=False, error=str(e))
        logger.info(f"Deleted file: {path}")
        return FileRemoval(path=path, removed=True)

    def remove_files(self, handle: PictureHandle) -> CleanupReport:
        return CleanupReport(
            handle=handle,
            removals=[
                self.remove(handle.original_path(self.upload_dir)),
                self.remove(handle.thumbnail_path(self.upload_dir, self.thumbnail_dirname)),
            ],
        )
