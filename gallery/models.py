import mimetypes
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class Category(BaseModel):
    id: int = Field(..., description="Unique identifier for the category")
    name: str = Field(..., description="Human-readable name of the category")
    color: str = Field("#3b82f6", description="Badge color")
    description: Optional[str] = Field("", description="Free text shown next to the category")
    image_count: int = Field(0, description="Number of images currently in the category")


class ImageEntry(BaseModel):
    id: int = Field(..., description="Server-assigned identifier")
    filename: str = Field(..., description="Stored object name")
    original_name: str = Field(..., description="File name as uploaded")
    file_size: int = Field(0, ge=0)
    mime_type: str = Field("image/jpeg")
    description: Optional[str] = None
    theme: Optional[str] = None
    category_id: Optional[int] = None
    category_name: Optional[str] = None
    category_color: Optional[str] = None
    upload_date: Optional[datetime] = None
    row_order: Optional[int] = None


class Pagination(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    page: int = 1
    limit: int = 50
    total: int = 0
    total_pages: int = Field(0, alias="totalPages")


class ImagePage(BaseModel):
    items: List[ImageEntry]
    pagination: Pagination


class BulkImage(BaseModel):
    id: int
    name: str
    data: bytes = Field(..., description="Raw image bytes (base64 on the wire)")
    type: str = "application/octet-stream"


@dataclass(frozen=True)
class ImageFile:
    """An image held in memory, either picked by the user or produced by compression."""
    name: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)

    @classmethod
    def from_path(cls, path: Union[str, Path]) -> "ImageFile":
        path = Path(path)
        content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        return cls(name=path.name, content_type=content_type, data=path.read_bytes())
