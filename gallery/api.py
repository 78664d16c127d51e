import base64
import logging
import re
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import httpx

from gallery.config import Settings, get_settings
from gallery.models import BulkImage, Category, ImageEntry, ImageFile, ImagePage, Pagination

logger = logging.getLogger(__name__)

UPLOAD_CHUNK_SIZE = 64 * 1024
_FILENAME_RE = re.compile(r'filename="?([^";]+)"?')


class _Unset:
    def __repr__(self):
        return "UNSET"


UNSET: Any = _Unset()


class GalleryAPIError(Exception):
    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class RequestTimeout(GalleryAPIError):
    pass


class NetworkError(GalleryAPIError):
    pass


class ServerError(GalleryAPIError):
    """The data service answered, but with a failure."""

    def __init__(self, message: str, status_code: int, reported: bool = False):
        super().__init__(message)
        self.status_code = status_code
        # True when message is the service's own error text
        self.reported = reported


class NotFound(ServerError):
    pass


class CategoryInUse(ServerError):
    def __init__(self, message: str, status_code: int, image_count: int):
        super().__init__(message, status_code, reported=True)
        self.image_count = image_count


async def _iter_with_progress(body: bytes, on_progress: Optional[Callable[[int], None]]):
    total = len(body)
    sent = 0
    last = 0
    if on_progress:
        on_progress(0)
    for start in range(0, total, UPLOAD_CHUNK_SIZE):
        chunk = body[start:start + UPLOAD_CHUNK_SIZE]
        yield chunk
        sent += len(chunk)
        percent = round(sent * 100 / total)
        if on_progress and percent > last:
            last = percent
            on_progress(percent)


class GalleryAPI:
    """Async client for the gallery data service.

    All responses use the envelope ``{"success": bool, "data": ..., "error": str}``.
    Transport failures are mapped onto :class:`RequestTimeout` and
    :class:`NetworkError`; failures reported by the service raise :class:`ServerError`.
    """

    def __init__(self, settings: Optional[Settings] = None, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.settings = settings or get_settings()
        self._client = httpx.AsyncClient(
            base_url=self.settings.backend_url.rstrip("/"),
            timeout=self.settings.request_timeout,
            follow_redirects=True,
            transport=transport,
        )

    async def aclose(self):
        await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()

    async def _send(self, request: httpx.Request, what: str) -> httpx.Response:
        try:
            return await self._client.send(request)
        except httpx.TimeoutException as e:
            logger.error(f"Timed out trying to {what}: {str(e)}")
            raise RequestTimeout(f"Timed out trying to {what}") from e
        except httpx.RequestError as e:
            logger.error(f"Network error trying to {what}: {str(e)}")
            raise NetworkError(f"Could not reach the server to {what}") from e

    async def _request(self, method: str, url: str, what: str, **kwargs) -> httpx.Response:
        request = self._client.build_request(method, url, **kwargs)
        return await self._send(request, what)

    def _unwrap(self, response: httpx.Response, what: str) -> Dict[str, Any]:
        try:
            body = response.json()
        except ValueError:
            body = None
        if not isinstance(body, dict):
            body = {}

        if response.status_code < 400 and body.get("success", True):
            return body

        logger.error(f"Failed to {what}: {response.status_code} - {response.text}")
        error_msg = body.get("error")
        fallback = f"Failed to {what}"
        if response.status_code == 404:
            raise NotFound(error_msg or fallback, 404, reported=bool(error_msg))
        if "image_count" in body:
            count = int(body["image_count"])
            raise CategoryInUse(
                error_msg or f"Category is still used by {count} image(s)",
                response.status_code,
                image_count=count,
            )
        raise ServerError(error_msg or fallback, response.status_code, reported=bool(error_msg))

    # ---- Images ----

    async def list_images(
        self,
        page: int = 1,
        limit: int = 50,
        category: Optional[str] = None,
        search: Optional[str] = None,
    ) -> ImagePage:
        params: Dict[str, Any] = {"page": page, "limit": limit}
        if category and category != "all":
            params["category"] = category
        if search:
            params["search"] = search

        response = await self._request("GET", "/images", "fetch images", params=params)
        body = self._unwrap(response, "fetch images")
        items = [ImageEntry(**doc) for doc in body.get("data") or []]
        pagination = body.get("pagination") or {"page": page, "limit": limit, "total": len(items), "totalPages": 1}
        return ImagePage(items=items, pagination=Pagination(**pagination))

    async def upload_batch(
        self,
        files: Sequence[ImageFile],
        descriptions: Sequence[str],
        themes: Sequence[str],
        category_ids: Sequence[Optional[int]],
        on_progress: Optional[Callable[[int], None]] = None,
    ) -> List[ImageEntry]:
        """Send every file in one multipart request.

        The four sequences are index aligned: file ``i`` is described by
        ``descriptions[i]``, ``themes[i]`` and ``category_ids[i]``.
        """
        if not (len(files) == len(descriptions) == len(themes) == len(category_ids)):
            raise ValueError("files and metadata lists must have the same length")

        form_files = [("images", (f.name, f.data, f.content_type)) for f in files]
        form_data = {
            "descriptions": list(descriptions),
            "themes": list(themes),
            "category_ids": ["" if c is None else str(c) for c in category_ids],
        }
        # Encode once to learn the exact body size, then stream it so progress can be reported
        encoded = self._client.build_request("POST", "/upload", data=form_data, files=form_files)
        body = encoded.read()
        request = self._client.build_request(
            "POST",
            "/upload",
            content=_iter_with_progress(body, on_progress),
            headers={
                "Content-Type": encoded.headers["Content-Type"],
                "Content-Length": str(len(body)),
            },
            timeout=self.settings.upload_timeout,
        )
        response = await self._send(request, "upload images")
        logger.info(f"Upload response: {response.status_code}")
        body_json = self._unwrap(response, "upload images")
        return [ImageEntry(**doc) for doc in body_json.get("data") or []]

    async def update_image(
        self,
        image_id: int,
        description: Any = UNSET,
        theme: Any = UNSET,
        category_id: Any = UNSET,
    ) -> None:
        payload = {
            key: value
            for key, value in (("description", description), ("theme", theme), ("category_id", category_id))
            if value is not UNSET
        }
        if not payload:
            raise ValueError("update_image needs at least one field")
        response = await self._request("PUT", f"/images/{image_id}", "update image", json=payload)
        self._unwrap(response, "update image")

    async def delete_image(self, image_id: int) -> None:
        response = await self._request("DELETE", f"/images/{image_id}", "delete image")
        self._unwrap(response, "delete image")

    async def fetch_image_bytes(self, image_id: int, download: bool = False) -> Tuple[bytes, str, str]:
        """Return ``(data, mime_type, original_name)`` for one image."""
        url = f"/images/{image_id}/{'download' if download else 'file'}"
        response = await self._request("GET", url, "fetch image")
        if response.status_code != 200:
            self._unwrap(response, "fetch image")
            raise ServerError("Failed to fetch image", response.status_code)

        disposition = response.headers.get("Content-Disposition", "")
        match = _FILENAME_RE.search(disposition)
        name = match.group(1) if match else f"image-{image_id}"
        mime_type = response.headers.get("Content-Type", "application/octet-stream").split(";")[0]
        return response.content, mime_type, name

    async def bulk_fetch_images(self, ids: Sequence[int]) -> List[BulkImage]:
        response = await self._request("POST", "/images/bulk-download", "fetch images", json={"ids": list(ids)})
        body = self._unwrap(response, "fetch images")
        return [
            BulkImage(
                id=item["id"],
                name=item["name"],
                data=base64.b64decode(item["data"]),
                type=item.get("type") or "application/octet-stream",
            )
            for item in body.get("data") or []
        ]

    # ---- Categories ----

    async def list_categories(self) -> List[Category]:
        response = await self._request("GET", "/categories", "fetch categories")
        body = self._unwrap(response, "fetch categories")
        return [Category(**doc) for doc in body.get("data") or []]

    async def create_category(self, name: str, color: str = "#3b82f6", description: str = "") -> Category:
        payload = {"name": name, "color": color, "description": description}
        response = await self._request("POST", "/categories", "create category", json=payload)
        body = self._unwrap(response, "create category")
        return Category(**body["data"])

    async def update_category(self, category_id: int, **fields) -> None:
        if not fields:
            raise ValueError("update_category needs at least one field")
        response = await self._request("PUT", f"/categories/{category_id}", "update category", json=fields)
        self._unwrap(response, "update category")

    async def delete_category(self, category_id: int) -> None:
        response = await self._request("DELETE", f"/categories/{category_id}", "delete category")
        self._unwrap(response, "delete category")


def error_message(error: GalleryAPIError, fallback: str) -> str:
    """The service's own error text when it sent one, otherwise fallback"""
    return error.message if getattr(error, "reported", False) else fallback
