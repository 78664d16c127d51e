import logging
from typing import List, Optional

from gallery.api import GalleryAPI, GalleryAPIError
from gallery.config import Settings, get_settings
from gallery.editing import Row, RowEditController
from gallery.messages import Notifier
from gallery.query import QueryState
from gallery.selection import SelectionTracker
from gallery.services.bulk import BulkOperationCoordinator
from gallery.services.categories import CategoryManager
from gallery.services.compressor import ImageCompressor
from gallery.services.upload import UploadPipeline
from gallery.staging import UploadStagingArea

logger = logging.getLogger(__name__)


class GalleryState:
    """Everything the grid view needs, wired together.

    A view holds one instance and routes user events to its components by
    row id or staged-file index; it never owns state of its own.
    """

    def __init__(self, api: Optional[GalleryAPI] = None, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.api = api or GalleryAPI(self.settings)
        self.notifier = Notifier(display_seconds=self.settings.message_display_seconds)

        self.query = QueryState(self.settings.allowed_page_sizes)
        self.selection = SelectionTracker()
        self.categories = CategoryManager(self.api, self.notifier)
        self.staging = UploadStagingArea(self.notifier)
        self.editor = RowEditController(
            self.api,
            self.notifier,
            self.settings,
            category_lookup=self.categories.by_id,
            on_deleted=self.refresh,
        )
        self.uploader = UploadPipeline(
            self.api,
            ImageCompressor(self.settings),
            self.notifier,
            on_uploaded=self.refresh,
        )
        self.bulk = BulkOperationCoordinator(self.api, self.notifier, self.settings, on_changed=self.refresh)

    async def aclose(self):
        await self.api.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()

    @property
    def rows(self) -> List[Row]:
        return list(self.editor.rows.values())

    async def reload(self) -> bool:
        """Fetch the current page and re-render: rows go back to read-only, selection is cleared."""
        try:
            page = await self.api.list_images(**self.query.params())
        except GalleryAPIError as e:
            logger.error(f"Load images error: {e.message}")
            self.notifier.error("Failed to load images")
            return False

        self.editor.load(page.items)
        self.selection.set_rows(self.editor.ids)
        self.query.update(page.pagination)
        return True

    async def refresh(self) -> bool:
        await self.categories.load()
        return await self.reload()

    # Query changes that trigger a re-fetch

    async def search(self, text: str) -> bool:
        self.query.set_search(text)
        return await self.reload()

    async def select_category(self, name: str) -> bool:
        self.query.set_category(name)
        return await self.reload()

    async def change_page_size(self, size: int) -> bool:
        self.query.set_page_size(size)
        return await self.reload()

    async def go_to_page(self, page: int) -> bool:
        if not self.query.go_to_page(page):
            return False
        return await self.reload()

    # Bulk actions act on the current selection

    async def delete_selected(self, confirm):
        return await self.bulk.bulk_delete(self.selection.selected, confirm)

    async def download_selected(self):
        return await self.bulk.bulk_download(self.selection.selected)
