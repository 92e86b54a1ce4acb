# gallery/schemas.py
from pydantic import BaseModel
from typing import List, Optional


class PictureOut(BaseModel):
    id: int
    filename: str
    original_name: str
    description: str = ""
    file_size: int
    mime_type: str
    width: Optional[int] = None
    height: Optional[int] = None
    upload_date: Optional[str] = None
    updated_date: Optional[str] = None
    url: str
    thumbnail_url: str


class RejectedFileOut(BaseModel):
    original_name: str
    reason: str


class MessageResponse(BaseModel):
    success: bool = True
    message: str


class PictureResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None
    picture: PictureOut


class PictureListResponse(BaseModel):
    success: bool = True
    pictures: List[PictureOut]
    count: int


class UploadResponse(BaseModel):
    success: bool
    message: str
    pictures: List[PictureOut] = []
    rejected: List[RejectedFileOut] = []
    failed: List[RejectedFileOut] = []


class DatabaseStatus(BaseModel):
    ok: bool
    error: Optional[str] = None


class HealthResponse(BaseModel):
    status: str
    service: str
    version: str
    timestamp: str
    database: DatabaseStatus
