from enum import Enum
from typing import Iterable, List, Set


class SelectAllState(str, Enum):
    UNCHECKED = "unchecked"
    CHECKED = "checked"
    INDETERMINATE = "indeterminate"


class SelectionTracker:
    """Checkbox selection over the rows currently rendered.

    Selection does not survive a re-render: ``set_rows`` starts from an empty set.
    """

    def __init__(self, row_ids: Iterable[int] = ()):
        self.row_ids: List[int] = []
        self._selected: Set[int] = set()
        self.set_rows(row_ids)

    def set_rows(self, row_ids: Iterable[int]) -> None:
        self.row_ids = list(row_ids)
        self._selected = set()

    def toggle(self, row_id: int) -> bool:
        if row_id not in self.row_ids:
            return False
        if row_id in self._selected:
            self._selected.discard(row_id)
        else:
            self._selected.add(row_id)
        return row_id in self._selected

    def select(self, row_id: int) -> None:
        if row_id in self.row_ids:
            self._selected.add(row_id)

    def deselect(self, row_id: int) -> None:
        self._selected.discard(row_id)

    def select_all(self) -> None:
        self._selected = set(self.row_ids)

    def deselect_all(self) -> None:
        self._selected = set()

    def is_selected(self, row_id: int) -> bool:
        return row_id in self._selected

    @property
    def selected(self) -> List[int]:
        return [row_id for row_id in self.row_ids if row_id in self._selected]

    @property
    def count(self) -> int:
        return len(self._selected)

    @property
    def indicator(self) -> SelectAllState:
        if not self._selected:
            return SelectAllState.UNCHECKED
        if len(self._selected) == len(self.row_ids):
            return SelectAllState.CHECKED
        return SelectAllState.INDETERMINATE

    @property
    def bulk_enabled(self) -> bool:
        return self.count > 0

    def label(self) -> str:
        return f"{self.count} selected"
