import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from starlette.concurrency import run_in_threadpool

from .....database import RecordStore
from .....exceptions import ValidationError
from .....application.ports.picture_repo import (
    CleanupReport,
    ListOptions,
    NewPicture,
    Picture,
    PictureHandle,
)
from .....application.ports.storage_repo import StorageRepository

logger = logging.getLogger(__name__)

COLUMNS = (
    "id", "filename", "original_name", "description", "file_size",
    "mime_type", "width", "height", "upload_date", "updated_date",
)
SELECT_COLUMNS = ", ".join(COLUMNS)
ORDER_DIRECTIONS = ("ASC", "DESC")


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


def _order_clause(options: ListOptions) -> str:
    # Column and direction are interpolated, so both are checked against fixed sets
    if options.order_by not in COLUMNS:
        raise ValidationError(f"Cannot order by {options.order_by!r}")
    direction = (options.order_direction or "").upper()
    if direction not in ORDER_DIRECTIONS:
        raise ValidationError(f"Invalid order direction {options.order_direction!r}")
    if options.order_by == "id":
        return f"ORDER BY id {direction}"
    return f"ORDER BY {options.order_by} {direction}, id {direction}"


def _paginate(options: ListOptions, params: Dict[str, Any]) -> Tuple[str, Dict[str, Any]]:
    if not options.limit:
        return "", params
    return " LIMIT :limit OFFSET :offset", {
        **params,
        "limit": int(options.limit),
        "offset": max(int(options.offset or 0), 0),
    }


class SqlPictureRepository:
    def __init__(self, store: RecordStore, storage: StorageRepository):
        self.store = store
        self.storage = storage

    def _to_picture(self, row: Dict[str, Any]) -> Picture:
        return Picture(
            id=row["id"],
            filename=row["filename"],
            original_name=row["original_name"],
            description=row["description"] or "",
            file_size=row["file_size"],
            mime_type=row["mime_type"],
            width=row["width"],
            height=row["height"],
            upload_date=_parse_timestamp(row["upload_date"]),
            updated_date=_parse_timestamp(row["updated_date"]),
        )

    async def insert(self, data: NewPicture) -> Picture:
        result = await self.store.run(
            f"""
            INSERT INTO pictures (
                filename, original_name, description, file_size, mime_type, width, height
            ) VALUES (
                :filename, :original_name, :description, :file_size, :mime_type, :width, :height
            )
            RETURNING {SELECT_COLUMNS}
            """,
            {
                "filename": data.filename,
                "original_name": data.original_name,
                "description": data.description or "",
                "file_size": data.file_size,
                "mime_type": data.mime_type,
                "width": data.width or None,
                "height": data.height or None,
            },
        )
        picture = self._to_picture(result.returned[0])
        logger.info(f"Inserted picture {picture.id} ({picture.filename})")
        return picture

    async def get_by_id(self, picture_id: int) -> Optional[Picture]:
        row = await self.store.get(
            f"SELECT {SELECT_COLUMNS} FROM pictures WHERE id = :id", {"id": picture_id}
        )
        return self._to_picture(row) if row else None

    async def get_by_filename(self, filename: str) -> Optional[Picture]:
        row = await self.store.get(
            f"SELECT {SELECT_COLUMNS} FROM pictures WHERE filename = :filename",
            {"filename": filename},
        )
        return self._to_picture(row) if row else None

    async def get_all(self, options: Optional[ListOptions] = None) -> List[Picture]:
        options = options or ListOptions()
        pagination, params = _paginate(options, {})
        rows = await self.store.all(
            f"SELECT {SELECT_COLUMNS} FROM pictures {_order_clause(options)}{pagination}",
            params,
        )
        return [self._to_picture(r) for r in rows]

    async def search(self, term: str, options: Optional[ListOptions] = None) -> List[Picture]:
        # % and _ in term keep their LIKE meaning
        options = options or ListOptions()
        pattern = f"%{term}%"
        pagination, params = _paginate(options, {"pattern": pattern})
        rows = await self.store.all(
            f"""
            SELECT {SELECT_COLUMNS} FROM pictures
            WHERE description LIKE :pattern OR original_name LIKE :pattern
            {_order_clause(options)}{pagination}
            """,
            params,
        )
        return [self._to_picture(r) for r in rows]

    async def update_description(self, picture_id: int, description: str) -> Optional[Picture]:
        result = await self.store.run(
            f"""
            UPDATE pictures
            SET description = :description, updated_date = CURRENT_TIMESTAMP
            WHERE id = :id
            RETURNING {SELECT_COLUMNS}
            """,
            {"description": description, "id": picture_id},
        )
        if not result.returned:
            return None
        return self._to_picture(result.returned[0])

    async def delete_with_report(self, picture_id: int) -> Optional[CleanupReport]:
        """Delete the row, then both files. The row is authoritative: file
        removal failures are reported, never raised."""
        result = await self.store.run(
            "DELETE FROM pictures WHERE id = :id RETURNING id, filename",
            {"id": picture_id},
        )
        if not result.returned:
            return None
        deleted = result.returned[0]
        handle = PictureHandle(id=deleted["id"], filename=deleted["filename"])
        report = await run_in_threadpool(self.storage.remove_files, handle)
        if not report.complete:
            logger.warning(f"Picture {picture_id} deleted but some files were not removed: {report.removals}")
        else:
            logger.info(f"Picture {picture_id} and its files deleted")
        return report

    async def delete(self, picture_id: int) -> bool:
        return await self.delete_with_report(picture_id) is not None

    async def get_total_count(self) -> int:
        row = await self.store.get("SELECT COUNT(*) AS count FROM pictures")
        return int(row["count"]) if row else 0

    async def get_by_mime_type(self, mime_type: str) -> List[Picture]:
        rows = await self.store.all(
            f"""
            SELECT {SELECT_COLUMNS} FROM pictures
            WHERE mime_type = :mime_type
            ORDER BY upload_date DESC, id DESC
            """,
            {"mime_type": mime_type},
        )
        return [self._to_picture(r) for r in rows]
