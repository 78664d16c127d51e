import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional

from gallery.messages import Notifier
from gallery.models import ImageFile
from gallery.utils.formatting import format_file_size, is_valid_image

logger = logging.getLogger(__name__)


@dataclass
class StagedFile:
    file: ImageFile
    description: str = ""
    theme: str = ""
    category_id: Optional[int] = None
    compressed: Optional[ImageFile] = None

    @property
    def payload(self) -> ImageFile:
        """What gets uploaded: the compressed replacement if there is one"""
        return self.compressed or self.file

    @property
    def size_label(self) -> str:
        return format_file_size(self.file.size)


class UploadStagingArea:
    """Files picked by the user but not submitted yet."""

    def __init__(self, notifier: Notifier):
        self.notifier = notifier
        self.files: List[StagedFile] = []

    def __len__(self):
        return len(self.files)

    def __iter__(self):
        return iter(self.files)

    def __getitem__(self, index: int) -> StagedFile:
        return self.files[index]

    @property
    def is_empty(self) -> bool:
        return not self.files

    def add_files(self, candidates: Iterable[ImageFile]) -> int:
        valid = [f for f in candidates if is_valid_image(f.content_type, f.size)]
        if not valid:
            self.notifier.error("Please select valid image files.")
            return 0

        self.files.extend(StagedFile(file=f) for f in valid)
        logger.info(f"Staged {len(valid)} file(s), {len(self.files)} pending")
        return len(valid)

    def remove_file(self, index: int) -> None:
        del self.files[index]
        if not self.files:
            self.clear()

    def clear(self) -> None:
        self.files = []
