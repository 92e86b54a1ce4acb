import os
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from fastapi import UploadFile
from starlette.concurrency import run_in_threadpool

from ..ports.picture_repo import FileRemoval, NewPicture, Picture, PictureRepository
from ..ports.storage_repo import StorageRepository
from ...exceptions import FilesystemError, StoreError, ValidationError
from ...media_utils import create_thumbnail

logger = logging.getLogger(__name__)

INVALID_TYPE_MESSAGE = "Invalid file type. Only JPEG, PNG, WebP, and GIF files are allowed."


@dataclass
class RejectedUpload:
    original_name: str
    reason: str


@dataclass
class UploadFailure:
    original_name: str
    reason: str


@dataclass
class UploadReport:
    pictures: List[Picture] = field(default_factory=list)
    rejected: List[RejectedUpload] = field(default_factory=list)
    failures: List[UploadFailure] = field(default_factory=list)
    cleanup: List[FileRemoval] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return len(self.pictures) > 0


def _declared_size(uploaded: UploadFile) -> int:
    uploaded.file.seek(0, 2)
    file_size = uploaded.file.tell()
    uploaded.file.seek(0)
    return file_size


def screen_uploads(
    files: Optional[Sequence[UploadFile]],
    allowed_types: Sequence[str],
    max_file_size: int,
    max_files: int,
) -> Tuple[List[UploadFile], List[RejectedUpload]]:
    """Drop files with a disallowed type or an oversized body before anything
    touches the upload directory."""
    # An empty file input still posts one part with no filename
    files = [f for f in (files or []) if f is not None and f.filename]
    if not files:
        raise ValidationError("No files uploaded")
    if len(files) > max_files:
        raise ValidationError(f"Too many files. Maximum is {max_files} per upload.")

    accepted: List[UploadFile] = []
    rejected: List[RejectedUpload] = []
    for uploaded in files:
        if uploaded.content_type not in allowed_types:
            reason = INVALID_TYPE_MESSAGE
        elif _declared_size(uploaded) > max_file_size:
            reason = f"File size too large. Maximum size is {max_file_size // (1024 * 1024)}MB."
        else:
            accepted.append(uploaded)
            continue
        logger.warning(f"Rejected upload {uploaded.filename} ({uploaded.content_type}): {reason}")
        rejected.append(RejectedUpload(original_name=uploaded.filename, reason=reason))

    if not accepted:
        reasons = sorted({r.reason for r in rejected})
        raise ValidationError(" ".join(reasons))
    return accepted, rejected


@dataclass
class UploadService:
    picture_repo: PictureRepository
    storage_repo: StorageRepository
    thumbnail_size: Tuple[int, int] = (200, 200)
    thumbnail_quality: int = 85

    async def process(self, files: Sequence[UploadFile], description: str = "") -> UploadReport:
        """Store, thumbnail and record each file in turn. A failing file is
        cleaned up and skipped; the rest of the batch carries on."""
        report = UploadReport()
        for uploaded in files:
            picture = await self._process_one(uploaded, description or "", report)
            if picture is not None:
                report.pictures.append(picture)
        return report

    async def _process_one(self, uploaded: UploadFile, description: str, report: UploadReport) -> Optional[Picture]:
        original_name = uploaded.filename or "upload"
        try:
            stored = await run_in_threadpool(self.storage_repo.save_upload, original_name, uploaded.file)
        except FilesystemError as e:
            logger.error(f"Error storing file {original_name}: {e}")
            report.failures.append(UploadFailure(original_name, "Could not store file"))
            return None

        thumbnail_path = self.storage_repo.thumbnail_path(stored.filename)
        try:
            width, height = await run_in_threadpool(
                create_thumbnail, stored.path, thumbnail_path, self.thumbnail_size, self.thumbnail_quality
            )
            return await self.picture_repo.insert(
                NewPicture(
                    filename=stored.filename,
                    original_name=original_name,
                    description=description,
                    file_size=stored.size,
                    mime_type=uploaded.content_type,
                    width=width,
                    height=height,
                )
            )
        except (FilesystemError, StoreError) as e:
            logger.error(f"Error processing file {stored.filename}: {e}")
            report.failures.append(UploadFailure(original_name, "Could not process file"))
            report.cleanup.append(await run_in_threadpool(self.storage_repo.remove, stored.path))
            if os.path.exists(thumbnail_path):
                report.cleanup.append(await run_in_threadpool(self.storage_repo.remove, thumbnail_path))
            return None
