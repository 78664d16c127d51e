from typing import Any, Dict, List, Optional, Sequence

from gallery.models import Pagination

ALL_CATEGORIES = "all"
PAGE_WINDOW = 5


class QueryState:
    """Page, page size, category filter and search text for the grid."""

    def __init__(self, page_sizes: Sequence[int] = (50, 25, 100)):
        if not page_sizes:
            raise ValueError("page_sizes must not be empty")
        self.allowed_page_sizes = list(page_sizes)
        self.page = 1
        self.page_size = self.allowed_page_sizes[0]
        self.category = ALL_CATEGORIES
        self.search = ""
        self.total = 0
        self.total_pages = 1

    # Filter changes always go back to the first page

    def set_search(self, text: Optional[str]) -> None:
        self.search = (text or "").strip()
        self.page = 1

    def set_category(self, name: Optional[str]) -> None:
        self.category = name or ALL_CATEGORIES
        self.page = 1

    def set_page_size(self, size: int) -> None:
        if size not in self.allowed_page_sizes:
            raise ValueError(f"Page size must be one of {self.allowed_page_sizes}")
        self.page_size = size
        self.page = 1

    def go_to_page(self, page: int) -> bool:
        if 1 <= page <= self.total_pages:
            self.page = page
            return True
        return False

    def next_page(self) -> bool:
        return self.go_to_page(self.page + 1)

    def previous_page(self) -> bool:
        return self.go_to_page(self.page - 1)

    def update(self, pagination: Pagination) -> None:
        self.total = pagination.total
        self.total_pages = max(1, pagination.total_pages)
        self.page = max(1, pagination.page)

    def params(self) -> Dict[str, Any]:
        params: Dict[str, Any] = {"page": self.page, "limit": self.page_size}
        if self.category != ALL_CATEGORIES:
            params["category"] = self.category
        if self.search:
            params["search"] = self.search
        return params

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    def page_window(self) -> List[int]:
        start = max(1, self.page - PAGE_WINDOW // 2)
        end = min(self.total_pages, self.page + PAGE_WINDOW // 2)
        return list(range(start, end + 1))

    def summary(self) -> str:
        if not self.total:
            return "Showing 0 of 0 images"
        start = (self.page - 1) * self.page_size + 1
        end = min(self.page * self.page_size, self.total)
        return f"Showing {start}-{end} of {self.total} images"
