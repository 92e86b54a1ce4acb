from typing import BinaryIO, Protocol
from dataclasses import dataclass

from .picture_repo import CleanupReport, FileRemoval, PictureHandle


@dataclass
class StoredFile:
    filename: str
    path: str
    size: int


class StorageRepository(Protocol):
    upload_dir: str

    def save_upload(self, original_name: str, stream: BinaryIO) -> StoredFile:
        ...

    def original_path(self, filename: str) -> str:
        ...

    def thumbnail_path(self, filename: str) -> str:
        ...

    def remove(self, path: str) -> FileRemoval:
        ...

    def remove_files(self, handle: PictureHandle) -> CleanupReport:
        ...
