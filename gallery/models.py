# gallery/models.py
from typing import Optional
from datetime import datetime
from sqlalchemy import text
from sqlmodel import SQLModel, Field


class PictureRecord(SQLModel, table=True):
    """Schema of the pictures table. Queries go through the record store."""

    __tablename__ = "pictures"
    __table_args__ = {"sqlite_autoincrement": True}

    id: Optional[int] = Field(default=None, primary_key=True)
    filename: str = Field(max_length=255, unique=True)
    original_name: str = Field(max_length=255)
    description: str = Field(default="", sa_column_kwargs={"server_default": ""})
    file_size: int
    mime_type: str = Field(max_length=50, index=True)
    width: Optional[int] = None
    height: Optional[int] = None
    upload_date: Optional[datetime] = Field(
        default=None,
        index=True,
        sa_column_kwargs={"server_default": text("CURRENT_TIMESTAMP")},
    )
    updated_date: Optional[datetime] = Field(
        default=None,
        sa_column_kwargs={"server_default": text("CURRENT_TIMESTAMP")},
    )

    def __repr__(self):
        return f"<PictureRecord(id={self.id}, filename={self.filename})>"
