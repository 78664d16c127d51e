"""Per-row edit state machine for the image grid.

A row is READ_ONLY until the user enters edit mode; description, theme and
category then become editable together and are saved or cancelled together::

    READ_ONLY -> EDITING -> SAVING -> READ_ONLY
                    |           \\-> ERROR -> READ_ONLY
                    \\-> READ_ONLY (cancel)

Only rows with a live :class:`EditSession` are out of READ_ONLY. ERROR goes
back to READ_ONLY once the error window elapses or the user tries to edit the
row again.
"""
import asyncio
import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Awaitable, Callable, Dict, Iterable, List, Optional

from gallery.api import GalleryAPI, GalleryAPIError, error_message
from gallery.config import Settings, get_settings
from gallery.messages import Notifier
from gallery.models import Category, ImageEntry

logger = logging.getLogger(__name__)

FIELDS = ("description", "theme", "category_id")
PRIMARY_FIELD = "description"

DELETE_CONFIRMATION = (
    "Delete entire row?\n\n"
    "This will permanently delete both the image and its description. "
    "This action cannot be undone."
)


class EditState(str, Enum):
    READ_ONLY = "read_only"
    EDITING = "editing"
    SAVING = "saving"
    ERROR = "error"


class EditStateError(Exception):
    pass


@dataclass(frozen=True)
class RowValues:
    description: str = ""
    theme: str = ""
    category_id: Optional[int] = None


@dataclass
class Row:
    entry: ImageEntry
    values: RowValues
    category_name: Optional[str] = None
    category_color: Optional[str] = None

    @property
    def id(self) -> int:
        return self.entry.id

    @classmethod
    def from_entry(cls, entry: ImageEntry) -> "Row":
        return cls(
            entry=entry,
            values=RowValues(entry.description or "", entry.theme or "", entry.category_id),
            category_name=entry.category_name,
            category_color=entry.category_color,
        )


@dataclass
class EditSession:
    state: EditState
    snapshot: RowValues
    focused_field: Optional[str] = PRIMARY_FIELD
    error_timer: Optional[asyncio.TimerHandle] = None


class RowEditController:
    def __init__(
        self,
        api: GalleryAPI,
        notifier: Notifier,
        settings: Optional[Settings] = None,
        category_lookup: Optional[Callable[[Optional[int]], Optional[Category]]] = None,
        on_deleted: Optional[Callable[[], Awaitable[None]]] = None,
    ):
        settings = settings or get_settings()
        self.api = api
        self.notifier = notifier
        self.error_display_seconds = settings.error_display_seconds
        self.delete_policy = settings.delete_policy
        self.category_lookup = category_lookup
        self.on_deleted = on_deleted
        self.rows: Dict[int, Row] = {}
        self.sessions: Dict[int, EditSession] = {}

    # ---- Rows ----

    def load(self, entries: Iterable[ImageEntry]) -> None:
        """Replace all rows with freshly fetched entries; every row goes back to READ_ONLY."""
        for session in self.sessions.values():
            if session.error_timer:
                session.error_timer.cancel()
        self.sessions = {}
        self.rows = {entry.id: Row.from_entry(entry) for entry in entries}

    @property
    def ids(self) -> List[int]:
        return list(self.rows)

    def row(self, row_id: int) -> Row:
        try:
            return self.rows[row_id]
        except KeyError:
            raise EditStateError(f"Unknown row {row_id}") from None

    def state(self, row_id: int) -> EditState:
        self.row(row_id)
        session = self.sessions.get(row_id)
        return session.state if session else EditState.READ_ONLY

    def is_editable(self, row_id: int) -> bool:
        return self.state(row_id) == EditState.EDITING

    def focused_field(self, row_id: int) -> Optional[str]:
        session = self.sessions.get(row_id)
        return session.focused_field if session and session.state == EditState.EDITING else None

    def _editing_session(self, row_id: int) -> EditSession:
        state = self.state(row_id)
        if state != EditState.EDITING:
            raise EditStateError(f"Row {row_id} is not being edited ({state.value})")
        return self.sessions[row_id]

    def _end_session(self, row_id: int) -> None:
        session = self.sessions.pop(row_id, None)
        if session and session.error_timer:
            session.error_timer.cancel()

    # ---- Transitions ----

    def enter_edit(self, row_id: int) -> EditSession:
        row = self.row(row_id)
        session = self.sessions.get(row_id)
        if session:
            if session.state == EditState.EDITING:
                return session
            if session.state == EditState.SAVING:
                raise EditStateError(f"Row {row_id} is being saved")
            # a new edit attempt dismisses the error
            self._end_session(row_id)

        session = EditSession(state=EditState.EDITING, snapshot=row.values)
        self.sessions[row_id] = session
        return session

    def set_field(self, row_id: int, name: str, value) -> None:
        self._editing_session(row_id)
        if name not in FIELDS:
            raise ValueError(f"Unknown field: {name}")
        if name == "category_id":
            value = int(value) if value not in (None, "") else None
        else:
            value = value or ""
        row = self.rows[row_id]
        row.values = replace(row.values, **{name: value})

    def cancel_edit(self, row_id: int) -> None:
        session = self._editing_session(row_id)
        self.rows[row_id].values = session.snapshot
        self._end_session(row_id)

    async def save(self, row_id: int) -> bool:
        """Save description, theme and category of one row in a single update call."""
        session = self._editing_session(row_id)
        row = self.rows[row_id]
        values = RowValues(
            description=row.values.description.strip(),
            theme=row.values.theme.strip(),
            category_id=row.values.category_id,
        )
        row.values = values
        session.state = EditState.SAVING

        try:
            await self.api.update_image(
                row_id,
                description=values.description,
                theme=values.theme,
                category_id=values.category_id,
            )
        except Exception as e:
            if not isinstance(e, GalleryAPIError):
                logger.exception(f"Unexpected error saving row {row_id}: {str(e)}")
            if self.sessions.get(row_id) is not session:
                # rows were reloaded while the call was in flight
                return False
            self._fail_save(row_id, session, e)
            return False

        if self.sessions.get(row_id) is not session:
            return True
        self._commit(row, values)
        self._end_session(row_id)
        logger.info(f"Row {row_id} saved")
        return True

    save_all = save

    def _commit(self, row: Row, values: RowValues) -> None:
        row.values = values
        row.entry = row.entry.model_copy(
            update={"description": values.description, "theme": values.theme, "category_id": values.category_id}
        )
        category = self.category_lookup(values.category_id) if self.category_lookup else None
        row.category_name = category.name if category else None
        row.category_color = category.color if category else None

    def _fail_save(self, row_id: int, session: EditSession, error: Exception) -> None:
        self.rows[row_id].values = session.snapshot
        session.state = EditState.ERROR
        session.focused_field = None
        reason = error_message(error, "") if isinstance(error, GalleryAPIError) else ""
        if reason:
            self.notifier.error(f"Failed to update row: {reason}. Changes reverted.")
        else:
            self.notifier.error("Failed to update row. Changes reverted.")

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        session.error_timer = loop.call_later(self.error_display_seconds, self._expire_error, row_id, session)

    def _expire_error(self, row_id: int, session: EditSession) -> None:
        if self.sessions.get(row_id) is session and session.state == EditState.ERROR:
            del self.sessions[row_id]

    # ---- Delete ----

    def can_delete(self, row_id: int) -> bool:
        if self.delete_policy == "always":
            self.row(row_id)
            return True
        return self.state(row_id) in (EditState.EDITING, EditState.SAVING)

    async def delete_row(self, row_id: int, confirm: Callable[[str], bool]) -> bool:
        if not self.can_delete(row_id):
            self.notifier.error("Click edit on this row before deleting it.")
            return False
        if not confirm(DELETE_CONFIRMATION):
            return False

        try:
            await self.api.delete_image(row_id)
        except GalleryAPIError as e:
            logger.error(f"Delete row {row_id} failed: {e.message}")
            self.notifier.error("Failed to delete row. Please try again.")
            return False

        self._end_session(row_id)
        self.rows.pop(row_id, None)
        self.notifier.success("Row deleted successfully")
        if self.on_deleted:
            await self.on_deleted()
        return True
