from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates
import logging

from ..config import Settings
from ..dependencies import get_app_settings, get_picture_repository, get_templates
from ..exceptions import StoreError, render_error_page
from ..application.ports.picture_repo import ListOptions, PictureRepository

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Pages"])


@router.get("/", response_class=HTMLResponse)
async def gallery_page(
    request: Request,
    repo: PictureRepository = Depends(get_picture_repository),
    templates: Jinja2Templates = Depends(get_templates),
    settings: Settings = Depends(get_app_settings),
):
    error = None
    try:
        pictures = await repo.get_all(ListOptions(limit=settings.GALLERY_PAGE_SIZE))
    except StoreError as e:
        logger.error(f"Error loading pictures: {e}")
        pictures = []
        error = "Failed to load pictures"
    return templates.TemplateResponse(
        request,
        "index.html",
        {"title": "Picture Gallery", "pictures": pictures, "error": error},
    )


@router.get("/upload", response_class=HTMLResponse)
async def upload_page(request: Request, templates: Jinja2Templates = Depends(get_templates)):
    return templates.TemplateResponse(request, "upload.html", {"title": "Upload Pictures"})


@router.get("/picture/{picture_id}", response_class=HTMLResponse)
async def picture_detail_page(
    request: Request,
    picture_id: int,
    repo: PictureRepository = Depends(get_picture_repository),
    templates: Jinja2Templates = Depends(get_templates),
):
    try:
        picture = await repo.get_by_id(picture_id)
    except StoreError as e:
        logger.error(f"Error loading picture {picture_id}: {e}")
        return render_error_page(request, 500, "Error", "Failed to load picture details.")
    if not picture:
        return render_error_page(
            request, 404, "Picture Not Found", "The requested picture could not be found."
        )
    return templates.TemplateResponse(
        request,
        "picture_detail.html",
        {"title": picture.original_name, "picture": picture},
    )
