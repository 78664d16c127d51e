import asyncio
import io
import os
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Set

import pytest
from PIL import Image

from gallery.api import UNSET, CategoryInUse, NotFound, ServerError
from gallery.config import Settings
from gallery.models import BulkImage, Category, ImageEntry, ImageFile, ImagePage, Pagination


def make_image_bytes(width: int, height: int, fmt: str = "PNG", noise: bool = True) -> bytes:
    """Noise does not compress, which makes it easy to get past the size threshold"""
    if noise:
        img = Image.frombytes("RGB", (width, height), os.urandom(width * height * 3))
    else:
        img = Image.new("RGB", (width, height), (120, 30, 200))
    buf = io.BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()


def make_file(name: str = "photo.png", data: Optional[bytes] = None, content_type: str = "image/png") -> ImageFile:
    return ImageFile(name=name, content_type=content_type, data=data if data is not None else b"x" * 10)


class FakeGalleryAPI:
    """In-memory stand-in for the gallery data service."""

    def __init__(self):
        self.images: Dict[int, ImageEntry] = {}
        self.blobs: Dict[int, bytes] = {}
        self.categories: Dict[int, Category] = {
            1: Category(id=1, name="Nature", color="#22c55e"),
            2: Category(id=2, name="City", color="#ef4444"),
        }
        self.calls: List[tuple] = []
        self.update_error: Optional[Exception] = None
        self.update_gate: Optional[asyncio.Event] = None
        self.delete_failures: Set[int] = set()
        self.upload_error: Optional[Exception] = None
        self.bulk_error: Optional[Exception] = None
        self.list_error: Optional[Exception] = None
        self._next_id = 1

    def add_image(self, name: str = "img.jpg", description: str = "", theme: str = "",
                  category_id: Optional[int] = None, data: bytes = b"\xff\xd8data") -> ImageEntry:
        image_id = self._next_id
        self._next_id += 1
        entry = ImageEntry(
            id=image_id,
            filename=f"{image_id}-{name}",
            original_name=name,
            file_size=len(data),
            mime_type="image/jpeg",
            description=description,
            theme=theme,
            category_id=category_id,
            upload_date=datetime(2024, 1, 1) + timedelta(minutes=image_id),
            row_order=image_id,
        )
        self.images[image_id] = entry
        self.blobs[image_id] = data
        return entry

    def _decorate(self, entry: ImageEntry) -> ImageEntry:
        category = self.categories.get(entry.category_id) if entry.category_id else None
        return entry.model_copy(update={
            "category_name": category.name if category else None,
            "category_color": category.color if category else None,
        })

    async def list_images(self, page=1, limit=50, category=None, search=None) -> ImagePage:
        self.calls.append(("list_images", page, limit, category, search))
        if self.list_error:
            raise self.list_error
        items = [self._decorate(e) for e in self.images.values()]
        if category and category != "all":
            items = [e for e in items if e.category_name == category]
        if search:
            items = [e for e in items if search in (e.description or "") or search in e.original_name]
        items.sort(key=lambda e: e.upload_date, reverse=True)
        total = len(items)
        start = (page - 1) * limit
        return ImagePage(
            items=items[start:start + limit],
            pagination=Pagination(page=page, limit=limit, total=total, totalPages=-(-total // limit)),
        )

    async def upload_batch(self, files, descriptions, themes, category_ids, on_progress=None):
        self.calls.append(("upload_batch", list(files), list(descriptions), list(themes), list(category_ids)))
        if on_progress:
            on_progress(0)
            on_progress(50)
        if self.upload_error:
            raise self.upload_error
        if on_progress:
            on_progress(100)
        created = []
        for f, d, t, c in zip(files, descriptions, themes, category_ids):
            created.append(self.add_image(f.name, d, t, c, f.data))
        return created

    async def update_image(self, image_id, description=UNSET, theme=UNSET, category_id=UNSET):
        self.calls.append(("update_image", image_id, description, theme, category_id))
        if self.update_gate:
            await self.update_gate.wait()
        if self.update_error:
            raise self.update_error
        fields = {k: v for k, v in (("description", description), ("theme", theme), ("category_id", category_id))
                  if v is not UNSET}
        self.images[image_id] = self.images[image_id].model_copy(update=fields)

    async def delete_image(self, image_id):
        self.calls.append(("delete_image", image_id))
        await asyncio.sleep(0)
        if image_id in self.delete_failures:
            raise ServerError("Failed to delete image", 500)
        if image_id not in self.images:
            raise NotFound("Image not found", 404, reported=True)
        del self.images[image_id]
        self.blobs.pop(image_id, None)

    async def fetch_image_bytes(self, image_id, download=False):
        if image_id not in self.images:
            raise NotFound("Image not found", 404, reported=True)
        entry = self.images[image_id]
        return self.blobs[image_id], entry.mime_type, entry.original_name

    async def bulk_fetch_images(self, ids):
        self.calls.append(("bulk_fetch_images", list(ids)))
        if self.bulk_error:
            raise self.bulk_error
        return [
            BulkImage(id=i, name=self.images[i].original_name, data=self.blobs[i], type=self.images[i].mime_type)
            for i in ids if i in self.images
        ]

    async def list_categories(self):
        counts = {}
        for entry in self.images.values():
            if entry.category_id:
                counts[entry.category_id] = counts.get(entry.category_id, 0) + 1
        return [c.model_copy(update={"image_count": counts.get(c.id, 0)})
                for c in sorted(self.categories.values(), key=lambda c: c.name)]

    async def create_category(self, name, color="#3b82f6", description=""):
        category_id = max(self.categories, default=0) + 1
        category = Category(id=category_id, name=name, color=color, description=description)
        self.categories[category_id] = category
        return category

    async def update_category(self, category_id, **fields):
        if category_id not in self.categories:
            raise NotFound("Category not found", 404, reported=True)
        self.categories[category_id] = self.categories[category_id].model_copy(update=fields)

    async def delete_category(self, category_id):
        in_use = sum(1 for e in self.images.values() if e.category_id == category_id)
        if in_use:
            raise CategoryInUse("Category is in use", 400, image_count=in_use)
        del self.categories[category_id]

    async def aclose(self):
        pass


@pytest.fixture
def settings(tmp_path):
    return Settings(
        backend_url="http://testserver/api",
        error_display_seconds=0.05,
        message_display_seconds=5.0,
        download_dir=tmp_path / "downloads",
        download_stagger_seconds=0,
        _env_file=None,
    )


@pytest.fixture
def fake_api():
    return FakeGalleryAPI()
