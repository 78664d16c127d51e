import logging
from typing import Dict, List, Optional

from gallery.api import CategoryInUse, GalleryAPI, GalleryAPIError, error_message
from gallery.messages import Notifier
from gallery.models import Category

logger = logging.getLogger(__name__)

DEFAULT_COLOR = "#3b82f6"


class CategoryManager:
    def __init__(self, api: GalleryAPI, notifier: Notifier):
        self.api = api
        self.notifier = notifier
        self.categories: List[Category] = []

    async def load(self) -> bool:
        try:
            self.categories = await self.api.list_categories()
            return True
        except GalleryAPIError as e:
            logger.error(f"Load categories error: {e.message}")
            return False

    def by_id(self, category_id: Optional[int]) -> Optional[Category]:
        if category_id is None:
            return None
        return next((c for c in self.categories if c.id == category_id), None)

    def by_name(self, name: str) -> Optional[Category]:
        return next((c for c in self.categories if c.name == name), None)

    def total_images(self) -> int:
        return sum(c.image_count for c in self.categories)

    def counts(self) -> Dict[str, int]:
        return {c.name: c.image_count for c in self.categories}

    async def create(self, name: str, color: str = DEFAULT_COLOR, description: str = "") -> Optional[Category]:
        name = (name or "").strip()
        if not name:
            self.notifier.error("Category name is required.")
            return None
        try:
            category = await self.api.create_category(name, color or DEFAULT_COLOR, (description or "").strip())
        except GalleryAPIError as e:
            self.notifier.error(error_message(e, "Failed to create category"))
            return None

        self.notifier.success("Category created successfully!")
        await self.load()
        return category

    async def update(self, category_id: int, **fields) -> bool:
        fields = {k: v for k, v in fields.items() if v is not None}
        if "name" in fields:
            fields["name"] = fields["name"].strip()
            if not fields["name"]:
                self.notifier.error("Category name is required.")
                return False
        if not fields:
            self.notifier.error("Nothing to update.")
            return False
        try:
            await self.api.update_category(category_id, **fields)
        except GalleryAPIError as e:
            self.notifier.error(error_message(e, "Failed to update category"))
            return False

        self.notifier.success("Category updated successfully!")
        await self.load()
        return True

    async def delete(self, category_id: int) -> bool:
        try:
            await self.api.delete_category(category_id)
        except CategoryInUse as e:
            self.notifier.error(f"Cannot delete category: {e.image_count} image(s) still use it.")
            return False
        except GalleryAPIError as e:
            self.notifier.error(error_message(e, "Failed to delete category"))
            return False

        self.notifier.success("Category deleted successfully!")
        await self.load()
        return True
