from fastapi import Depends, Request
from fastapi.templating import Jinja2Templates

from .config import Settings
from .database import RecordStore
from .application.ports.picture_repo import PictureRepository
from .application.services.upload_service import UploadService
from .infrastructure.storage.local_storage import LocalStorageRepository
from .infrastructure.persistence.sqlalchemy.repositories.picture_repository_sql import SqlPictureRepository


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request) -> RecordStore:
    return request.app.state.store


def get_storage(request: Request) -> LocalStorageRepository:
    return request.app.state.storage


def get_templates(request: Request) -> Jinja2Templates:
    return request.app.state.templates


def get_picture_repository(
    store: RecordStore = Depends(get_store),
    storage: LocalStorageRepository = Depends(get_storage),
) -> PictureRepository:
    return SqlPictureRepository(store, storage)


def get_upload_service(
    picture_repo: PictureRepository = Depends(get_picture_repository),
    storage: LocalStorageRepository = Depends(get_storage),
    settings: Settings = Depends(get_app_settings),
) -> UploadService:
    return UploadService(
        picture_repo=picture_repo,
        storage_repo=storage,
        thumbnail_size=tuple(settings.THUMBNAIL_SIZE),
        thumbnail_quality=settings.THUMBNAIL_QUALITY,
    )
