import asyncio
import logging
import os
import zipfile
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Awaitable, Callable, List, Optional, Sequence, Set

from gallery.api import GalleryAPI, GalleryAPIError, error_message
from gallery.config import Settings, get_settings
from gallery.messages import Notifier
from gallery.models import BulkImage

logger = logging.getLogger(__name__)


@dataclass
class BulkResult:
    succeeded: int = 0
    failed: int = 0

    @property
    def total(self) -> int:
        return self.succeeded + self.failed

    def summary(self) -> str:
        return f"{self.succeeded} succeeded, {self.failed} failed"


def unique_name(name: str, taken: Set[str]) -> str:
    """'a.jpg', 'a (2).jpg', 'a (3).jpg', ..."""
    name = os.path.basename(name) or "image"
    candidate = name
    stem, ext = os.path.splitext(name)
    n = 2
    while candidate in taken:
        candidate = f"{stem} ({n}){ext}"
        n += 1
    taken.add(candidate)
    return candidate


class BulkOperationCoordinator:
    def __init__(
        self,
        api: GalleryAPI,
        notifier: Notifier,
        settings: Optional[Settings] = None,
        on_changed: Optional[Callable[[], Awaitable[None]]] = None,
    ):
        settings = settings or get_settings()
        self.api = api
        self.notifier = notifier
        self.download_dir = Path(settings.download_dir)
        self.stagger_seconds = settings.download_stagger_seconds
        self.archive_downloads = settings.archive_downloads
        self.on_changed = on_changed

    async def _delete_one(self, image_id: int) -> bool:
        try:
            await self.api.delete_image(image_id)
            return True
        except GalleryAPIError as e:
            logger.warning(f"Bulk delete of image {image_id} failed: {e.message}")
            return False

    async def bulk_delete(self, ids: Sequence[int], confirm: Callable[[str], bool]) -> Optional[BulkResult]:
        ids = list(ids)
        if not ids:
            self.notifier.error("Please select images to delete.")
            return None
        if not confirm(f"Delete {len(ids)} selected image(s)? This action cannot be undone."):
            return None

        outcomes = await asyncio.gather(*(self._delete_one(i) for i in ids), return_exceptions=True)
        result = BulkResult()
        for outcome in outcomes:
            if outcome is True:
                result.succeeded += 1
            else:
                if isinstance(outcome, BaseException):
                    logger.error(f"Unexpected bulk delete error: {outcome!r}")
                result.failed += 1

        if result.succeeded == 0:
            self.notifier.error(f"Failed to delete {result.failed} image(s). Please try again.")
            return result

        if result.failed:
            # partial outcome
            self.notifier.info(f"Bulk delete finished: {result.summary()}")
        else:
            self.notifier.success(f"Deleted {result.succeeded} image(s): {result.summary()}")
        if self.on_changed:
            await self.on_changed()
        return result

    async def bulk_download(self, ids: Sequence[int]) -> List[Path]:
        ids = list(ids)
        if not ids:
            self.notifier.error("Please select images to download.")
            return []

        try:
            images = await self.api.bulk_fetch_images(ids)
        except GalleryAPIError as e:
            self.notifier.error(error_message(e, "Failed to download selected images."))
            return []
        if not images:
            self.notifier.error("No images were returned for download.")
            return []

        taken = await self._prepare_download_dir()
        if taken is None:
            return []

        if self.archive_downloads:
            try:
                path = await asyncio.to_thread(self._write_archive, images)
                self.notifier.success(f"Downloaded {len(images)} image(s) to {path.name}")
                return [path]
            except Exception as e:
                logger.warning(f"Archive creation failed, downloading files one by one: {str(e)}")

        paths = await self._write_each(images, taken)
        if not paths:
            self.notifier.error("Failed to download selected images.")
        elif len(paths) < len(images):
            self.notifier.info(f"Downloaded {len(paths)} of {len(images)} image(s) individually")
        else:
            self.notifier.success(f"Downloaded {len(paths)} image(s) individually")
        return paths

    def _existing_names(self) -> Set[str]:
        self.download_dir.mkdir(parents=True, exist_ok=True)
        return {p.name for p in self.download_dir.iterdir()}

    async def _prepare_download_dir(self) -> Optional[Set[str]]:
        """Create the download folder and return the names already in it, or None if it is unusable"""
        try:
            return await asyncio.to_thread(self._existing_names)
        except OSError as e:
            logger.error(f"Download folder {self.download_dir} is not usable: {str(e)}")
            self.notifier.error(f"Cannot save downloads to {self.download_dir}.")
            return None

    def _write_archive(self, images: List[BulkImage]) -> Path:
        stamp = datetime.now().strftime("%Y%m%d-%H%M%S")
        path = self.download_dir / f"images-{stamp}.zip"
        taken: Set[str] = set()
        try:
            with zipfile.ZipFile(path, "w", zipfile.ZIP_DEFLATED) as zipf:
                for image in images:
                    zipf.writestr(unique_name(image.name, taken), image.data)
        except Exception:
            # no half-written archives left behind
            path.unlink(missing_ok=True)
            raise
        return path

    async def _write_each(self, images: List[BulkImage], taken: Set[str]) -> List[Path]:
        paths = []
        for i, image in enumerate(images):
            if i:
                await asyncio.sleep(self.stagger_seconds)
            path = self.download_dir / unique_name(image.name, taken)
            try:
                await asyncio.to_thread(path.write_bytes, image.data)
            except OSError as e:
                logger.error(f"Could not save {path}: {str(e)}")
                continue
            paths.append(path)
        return paths

    async def download_image(self, image_id: int) -> Optional[Path]:
        try:
            data, _, name = await self.api.fetch_image_bytes(image_id, download=True)
        except GalleryAPIError as e:
            self.notifier.error(error_message(e, "Failed to download image."))
            return None

        taken = await self._prepare_download_dir()
        if taken is None:
            return None
        path = self.download_dir / unique_name(name, taken)
        try:
            await asyncio.to_thread(path.write_bytes, data)
        except OSError as e:
            logger.error(f"Could not save {path}: {str(e)}")
            self.notifier.error(f"Failed to save {path.name}.")
            return None
        self.notifier.success(f"Downloaded {path.name}")
        return path
