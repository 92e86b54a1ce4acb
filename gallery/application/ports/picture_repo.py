import os
from typing import List, Optional, Protocol
from dataclasses import dataclass, field
from datetime import datetime


THUMBNAIL_DIRNAME = "thumbnails"


@dataclass(frozen=True)
class PictureHandle:
    """Row id plus the storage filename shared by the original and its thumbnail."""

    id: int
    filename: str

    def original_path(self, root: str) -> str:
        return os.path.join(root, self.filename)

    def thumbnail_path(self, root: str, thumbnail_dirname: str = THUMBNAIL_DIRNAME) -> str:
        return os.path.join(root, thumbnail_dirname, self.filename)

    def exists_on_disk(self, root: str, thumbnail_dirname: str = THUMBNAIL_DIRNAME) -> bool:
        return os.path.isfile(self.original_path(root)) and os.path.isfile(
            self.thumbnail_path(root, thumbnail_dirname)
        )


@dataclass
class Picture:
    id: int
    filename: str
    original_name: str
    description: str
    file_size: int
    mime_type: str
    width: Optional[int]
    height: Optional[int]
    upload_date: Optional[datetime]
    updated_date: Optional[datetime]

    @property
    def handle(self) -> PictureHandle:
        return PictureHandle(self.id, self.filename)

    def to_dict(self, uploads_prefix: str = "/uploads", thumbnail_dirname: str = THUMBNAIL_DIRNAME) -> dict:
        return {
            "id": self.id,
            "filename": self.filename,
            "original_name": self.original_name,
            "description": self.description,
            "file_size": self.file_size,
            "mime_type": self.mime_type,
            "width": self.width,
            "height": self.height,
            "upload_date": self.upload_date.isoformat() if self.upload_date else None,
            "updated_date": self.updated_date.isoformat() if self.updated_date else None,
            "url": f"{uploads_prefix}/{self.filename}",
            "thumbnail_url": f"{uploads_prefix}/{thumbnail_dirname}/{self.filename}",
        }


@dataclass
class NewPicture:
    filename: str
    original_name: str
    file_size: int
    mime_type: str
    description: str = ""
    width: Optional[int] = None
    height: Optional[int] = None


@dataclass
class ListOptions:
    limit: Optional[int] = None
    offset: int = 0
    order_by: str = "upload_date"
    order_direction: str = "DESC"


@dataclass
class FileRemoval:
    path: str
    removed: bool
    error: Optional[str] = None


@dataclass
class CleanupReport:
    handle: PictureHandle
    removals: List[FileRemoval] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return all(r.removed for r in self.removals)


class PictureRepository(Protocol):
    async def insert(self, data: NewPicture) -> Picture:
        ...

    async def get_by_id(self, picture_id: int) -> Optional[Picture]:
        ...

    async def get_by_filename(self, filename: str) -> Optional[Picture]:
        ...

    async def get_all(self, options: Optional[ListOptions] = None) -> List[Picture]:
        ...

    async def search(self, term: str, options: Optional[ListOptions] = None) -> List[Picture]:
        ...

    async def update_description(self, picture_id: int, description: str) -> Optional[Picture]:
        ...

    async def delete(self, picture_id: int) -> bool:
        ...

    async def delete_with_report(self, picture_id: int) -> Optional[CleanupReport]:
        ...

    async def get_total_count(self) -> int:
        ...

    async def get_by_mime_type(self, mime_type: str) -> List[Picture]:
        ...
