import logging
from pathlib import Path

from console.helpers import print_message, print_progress
from gallery.models import ImageFile
from gallery.state import GalleryState

logger = logging.getLogger(__name__)


def _per_file(values, index):
    """One value per file, or the last given value for the rest"""
    if not values:
        return None
    return values[index] if index < len(values) else values[-1]


async def upload_images(state: GalleryState, args) -> int:
    candidates = []
    for path in args.files:
        try:
            candidates.append(ImageFile.from_path(path))
        except OSError as e:
            print(f"⚠️ Skipping {path}: {e.strerror}")

    added = state.staging.add_files(candidates)
    if not added:
        print_message(state)
        return 1

    for index, staged in enumerate(state.staging):
        staged.description = _per_file(args.description, index) or ""
        staged.theme = _per_file(args.theme, index) or ""
        staged.category_id = _per_file(args.category_id, index) or None
        print(f"  📎 {staged.file.name} ({staged.size_label})")

    logger.info(f"Uploading {len(state.staging)} file(s)")
    result = await state.uploader.submit(state.staging, on_progress=print_progress)
    if result.ok:
        # the pipeline posted a new message while reloading, show the upload outcome
        print(f"✅ {result.message}")
        for entry in result.created:
            print(f"  🆔 {entry.id}: {entry.original_name}")
        return 0
    print()
    print_message(state)
    return 1


def register(subparsers):
    p = subparsers.add_parser("upload", help="Upload images in one batch")
    p.add_argument("files", type=Path, nargs="+")
    p.add_argument("--description", action="append", help="Repeat once per file")
    p.add_argument("--theme", action="append", help="Repeat once per file")
    p.add_argument("--category-id", type=int, action="append", help="Repeat once per file")
    p.set_defaults(handler=upload_images)
