import logging
from pathlib import Path

from console.helpers import make_confirm, print_message, render_rows
from gallery.editing import EditStateError
from gallery.state import GalleryState

logger = logging.getLogger(__name__)


async def list_images(state: GalleryState, args) -> int:
    """Show one page of the grid"""
    if args.limit:
        state.query.set_page_size(args.limit)
    state.query.set_category(args.category)
    state.query.set_search(args.search)
    await state.categories.load()
    if not await state.reload():
        print_message(state)
        return 1

    if args.page != 1:
        if not state.query.go_to_page(args.page):
            print(f"⚠️ Page {args.page} does not exist (1-{state.query.total_pages}).")
            return 1
        if not await state.reload():
            print_message(state)
            return 1

    print(render_rows(state))
    return 0


async def edit_image(state: GalleryState, args) -> int:
    """Edit description, theme and category of one row and save them together"""
    await state.refresh()
    if args.id not in state.editor.rows:
        # not on the first page; fetch a large page to find it
        state.query.set_page_size(max(state.query.allowed_page_sizes))
        await state.reload()
    if args.id not in state.editor.rows:
        print(f"❌ Image {args.id} not found.")
        return 1

    try:
        state.editor.enter_edit(args.id)
        if args.description is not None:
            state.editor.set_field(args.id, "description", args.description)
        if args.theme is not None:
            state.editor.set_field(args.id, "theme", args.theme)
        if args.category_id is not None:
            state.editor.set_field(args.id, "category_id", args.category_id or None)
    except (EditStateError, ValueError) as e:
        print(f"⚠️ {str(e)}")
        return 1

    ok = await state.editor.save_all(args.id)
    if ok:
        row = state.editor.row(args.id)
        print(f"✅ Saved row {args.id}: category {row.category_name or 'No Category'}")
        return 0
    print_message(state)
    return 1


async def delete_images(state: GalleryState, args) -> int:
    await state.refresh()
    confirm = make_confirm(args.yes)
    if len(args.ids) == 1 and args.ids[0] in state.editor.rows:
        image_id = args.ids[0]
        # single-row delete goes through edit mode like in the grid
        state.editor.enter_edit(image_id)
        ok = await state.editor.delete_row(image_id, confirm)
        print_message(state)
        return 0 if ok else 1

    result = await state.bulk.bulk_delete(args.ids, confirm)
    print_message(state)
    return 0 if result and result.failed == 0 else 1


async def download_images(state: GalleryState, args) -> int:
    if args.out:
        state.bulk.download_dir = args.out
    if len(args.ids) == 1:
        path = await state.bulk.download_image(args.ids[0])
        print_message(state)
        return 0 if path else 1

    paths = await state.bulk.bulk_download(args.ids)
    print_message(state)
    for path in paths:
        print(f"  💾 {path}")
    return 0 if paths else 1


def register(subparsers):
    p = subparsers.add_parser("list", help="List images")
    p.add_argument("--page", type=int, default=1)
    p.add_argument("--limit", type=int, default=None)
    p.add_argument("--category", default="all")
    p.add_argument("--search", default="")
    p.set_defaults(handler=list_images)

    p = subparsers.add_parser("edit", help="Edit description, theme and category of an image")
    p.add_argument("id", type=int)
    p.add_argument("--description")
    p.add_argument("--theme")
    p.add_argument("--category-id", type=int, help="0 clears the category")
    p.set_defaults(handler=edit_image)

    p = subparsers.add_parser("delete", help="Delete one or more images")
    p.add_argument("ids", type=int, nargs="+")
    p.add_argument("--yes", action="store_true", help="Do not ask for confirmation")
    p.set_defaults(handler=delete_images)

    p = subparsers.add_parser("download", help="Download one or more images")
    p.add_argument("ids", type=int, nargs="+")
    p.add_argument("--out", type=Path, default=None)
    p.set_defaults(handler=download_images)
