import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, List, Optional

from gallery.api import GalleryAPI, NetworkError, RequestTimeout, ServerError, error_message
from gallery.messages import Notifier
from gallery.models import ImageEntry
from gallery.services.compressor import ImageCompressor
from gallery.staging import UploadStagingArea

logger = logging.getLogger(__name__)

TIMEOUT = "timeout"
SERVER = "server"
NETWORK = "network"
UNEXPECTED = "unexpected"


@dataclass
class UploadResult:
    ok: bool
    created: List[ImageEntry] = field(default_factory=list)
    failure: Optional[str] = None
    message: str = ""


class UploadPipeline:
    def __init__(
        self,
        api: GalleryAPI,
        compressor: ImageCompressor,
        notifier: Notifier,
        on_uploaded: Optional[Callable[[], Awaitable[None]]] = None,
    ):
        self.api = api
        self.compressor = compressor
        self.notifier = notifier
        self.on_uploaded = on_uploaded
        self.in_progress = False
        self.progress = 0

    def _report(self, percent: int, on_progress: Optional[Callable[[int], None]]):
        # never move backwards
        if percent < self.progress:
            return
        self.progress = min(100, percent)
        if on_progress:
            on_progress(self.progress)

    async def _compress_all(self, staging: UploadStagingArea) -> None:
        staged = list(staging.files)
        results = await asyncio.gather(*(self.compressor.compress(s.file) for s in staged))
        for item, result in zip(staged, results):
            item.compressed = result if result is not item.file else None

    async def submit(
        self,
        staging: UploadStagingArea,
        on_progress: Optional[Callable[[int], None]] = None,
    ) -> UploadResult:
        if staging.is_empty:
            message = "Please select files to upload."
            self.notifier.error(message)
            return UploadResult(ok=False, failure="validation", message=message)

        self.in_progress = True
        self.progress = 0
        try:
            await self._compress_all(staging)

            # Metadata is read now, so edits made after staging are honoured
            staged = list(staging.files)
            created = await self.api.upload_batch(
                files=[s.payload for s in staged],
                descriptions=[s.description.strip() for s in staged],
                themes=[s.theme.strip() for s in staged],
                category_ids=[s.category_id for s in staged],
                on_progress=lambda p: self._report(p, on_progress),
            )
        except RequestTimeout:
            return self._fail(TIMEOUT, "Upload timed out. Please check your connection and try again.")
        except ServerError as e:
            return self._fail(SERVER, error_message(e, "Upload failed on the server. Please try again."))
        except NetworkError:
            return self._fail(NETWORK, "Network error: could not reach the server. Please try again.")
        except Exception as e:
            logger.exception(f"Image upload failed: {str(e)}")
            return self._fail(UNEXPECTED, "Failed to upload images. Please try again.")
        finally:
            self.in_progress = False

        self._report(100, on_progress)
        message = f"Successfully uploaded {len(created)} image(s)!"
        self.notifier.success(message)
        staging.clear()
        if self.on_uploaded:
            await self.on_uploaded()
        return UploadResult(ok=True, created=created, message=message)

    def _fail(self, kind: str, message: str) -> UploadResult:
        self.notifier.error(message)
        return UploadResult(ok=False, failure=kind, message=message)
