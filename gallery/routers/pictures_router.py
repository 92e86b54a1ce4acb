from typing import Any, Dict, List, Optional
from fastapi import APIRouter, Body, Depends, File, Form, HTTPException, Query, UploadFile
from fastapi.responses import JSONResponse
import logging

from ..config import Settings
from ..dependencies import get_app_settings, get_picture_repository, get_upload_service
from ..exceptions import NotFoundError, StoreError, ValidationError
from ..application.ports.picture_repo import ListOptions, Picture, PictureRepository
from ..application.services.upload_service import UploadService, screen_uploads
from ..schemas import MessageResponse, PictureListResponse, PictureResponse, UploadResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/pictures", tags=["Pictures"])


def _parse_int(value: Optional[str]) -> Optional[int]:
    try:
        return int(value) if value is not None else None
    except (TypeError, ValueError):
        return None


def _parse_id(value: str) -> int:
    # Ids that cannot name a row are answered like any other missing picture
    picture_id = _parse_int(value)
    if picture_id is None:
        raise NotFoundError()
    return picture_id


def _serialize(picture: Picture, settings: Settings) -> dict:
    return picture.to_dict(settings.UPLOADS_URL_PREFIX, settings.THUMBNAIL_DIRNAME)


@router.get("", response_model=PictureListResponse)
async def list_pictures(
    limit: Optional[str] = Query(None),
    offset: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    repo: PictureRepository = Depends(get_picture_repository),
    settings: Settings = Depends(get_app_settings),
):
    parsed_limit = _parse_int(limit)
    options = ListOptions(
        limit=parsed_limit if parsed_limit and parsed_limit > 0 else None,
        offset=max(_parse_int(offset) or 0, 0),
    )
    try:
        if search:
            pictures = await repo.search(search, options)
        else:
            pictures = await repo.get_all(options)
    except StoreError as e:
        logger.error(f"API Error - Get Pictures: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch pictures")

    return {
        "success": True,
        "pictures": [_serialize(p, settings) for p in pictures],
        "count": len(pictures),
    }


@router.get("/{picture_id}", response_model=PictureResponse)
async def get_picture(
    picture_id: str,
    repo: PictureRepository = Depends(get_picture_repository),
    settings: Settings = Depends(get_app_settings),
):
    picture_id = _parse_id(picture_id)
    try:
        picture = await repo.get_by_id(picture_id)
    except StoreError as e:
        logger.error(f"API Error - Get Picture {picture_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch picture")
    if not picture:
        raise NotFoundError()
    return {"success": True, "picture": _serialize(picture, settings)}


@router.post("", response_model=UploadResponse)
async def upload_pictures(
    pictures: Optional[List[UploadFile]] = File(None),
    description: Optional[str] = Form(None),
    service: UploadService = Depends(get_upload_service),
    settings: Settings = Depends(get_app_settings),
):
    accepted, rejected = screen_uploads(
        pictures,
        settings.ALLOWED_IMAGE_TYPES,
        settings.MAX_FILE_SIZE,
        settings.MAX_FILES_PER_UPLOAD,
    )
    report = await service.process(accepted, description or "")
    report.rejected.extend(rejected)

    body = {
        "pictures": [_serialize(p, settings) for p in report.pictures],
        "rejected": [{"original_name": r.original_name, "reason": r.reason} for r in report.rejected],
        "failed": [{"original_name": f.original_name, "reason": f.reason} for f in report.failures],
    }
    if not report.succeeded:
        return JSONResponse(
            status_code=500,
            content={"success": False, "message": "Failed to process any uploaded files", **body},
        )

    logger.info(f"Uploaded {len(report.pictures)} picture(s), {len(report.failures)} failed, {len(report.rejected)} rejected")
    return {
        "success": True,
        "message": f"Successfully uploaded {len(report.pictures)} picture(s)",
        **body,
    }


@router.put("/{picture_id}", response_model=PictureResponse)
async def update_picture(
    picture_id: str,
    payload: Dict[str, Any] = Body(...),
    repo: PictureRepository = Depends(get_picture_repository),
    settings: Settings = Depends(get_app_settings),
):
    description = payload.get("description")
    if not isinstance(description, str):
        raise ValidationError("Description must be a string")
    picture_id = _parse_id(picture_id)

    try:
        picture = await repo.update_description(picture_id, description)
    except StoreError as e:
        logger.error(f"API Error - Update Picture {picture_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to update picture")
    if not picture:
        raise NotFoundError()

    return {
        "success": True,
        "message": "Picture updated successfully",
        "picture": _serialize(picture, settings),
    }


@router.delete("/{picture_id}", response_model=MessageResponse)
async def delete_picture(
    picture_id: str,
    repo: PictureRepository = Depends(get_picture_repository),
):
    picture_id = _parse_id(picture_id)
    try:
        deleted = await repo.delete(picture_id)
    except StoreError as e:
        logger.error(f"API Error - Delete Picture {picture_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to delete picture")
    if not deleted:
        raise NotFoundError()
    return {"success": True, "message": "Picture deleted successfully"}
