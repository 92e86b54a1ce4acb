import logging
from typing import Optional

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "Internal server error"


class APIException(HTTPException):
    def __init__(self, status_code: int, detail: str):
        super().__init__(status_code=status_code, detail=detail)


class ValidationError(APIException):
    """Bad client input: MIME type, size, description type, list options."""

    def __init__(self, detail: str):
        super().__init__(status_code=400, detail=detail)


class NotFoundError(APIException):
    def __init__(self, detail: str = "Picture not found"):
        super().__init__(status_code=404, detail=detail)


class StoreError(Exception):
    """Query or connection failure in the record store.

    The wrapped engine error is kept as ``__cause__``; only ``str(self)`` is
    logged, never returned to clients.
    """


class FilesystemError(Exception):
    """Write, read or delete failure under the upload directory."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class ThumbnailError(FilesystemError):
    pass


def create_error_response(error_message: str) -> dict:
    """Create a standardized error response"""
    return {
        "success": False,
        "message": error_message,
    }


def create_success_response(**data) -> dict:
    """Create a standardized success response"""
    return {"success": True, **data}


def is_api_request(request: Request) -> bool:
    return request.url.path.startswith("/api")


def render_error_page(request: Request, status_code: int, title: str, message: str):
    templates = getattr(request.app.state, "templates", None)
    if templates is None:
        return JSONResponse(status_code=status_code, content=create_error_response(message))
    return templates.TemplateResponse(
        request,
        "error.html",
        {"title": title, "message": message},
        status_code=status_code,
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """JSON for API routes, rendered error page for everything else."""
    if is_api_request(request):
        return JSONResponse(
            status_code=exc.status_code,
            content=create_error_response(str(exc.detail)),
        )
    if exc.status_code == 404:
        return render_error_page(
            request, 404, "Page Not Found", "The requested page could not be found."
        )
    return render_error_page(request, exc.status_code, "Error", str(exc.detail))


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.info(f"Rejected request to {request.url.path}: {exc.errors()}")
    if not is_api_request(request):
        return render_error_page(
            request, 404, "Page Not Found", "The requested page could not be found."
        )
    return JSONResponse(
        status_code=400,
        content=create_error_response("Invalid request parameters"),
    )


async def store_error_handler(request: Request, exc: StoreError):
    logger.error(f"Store error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    if is_api_request(request):
        return JSONResponse(status_code=500, content=create_error_response(GENERIC_ERROR_MESSAGE))
    return render_error_page(request, 500, "Error", "Something went wrong. Please try again later.")
