from console.helpers import print_message
from gallery.state import GalleryState


async def list_categories(state: GalleryState, args) -> int:
    """List categories with their image counts"""
    if not await state.categories.load():
        print("❌ Failed to fetch categories.")
        return 1

    print(f"📁 All Images ({state.categories.total_images()})")
    for cat in state.categories.categories:
        line = f"  - {cat.name} [{cat.id}] {cat.color} ({cat.image_count})"
        if cat.description:
            line += f": {cat.description}"
        print(line)
    return 0


async def create_category(state: GalleryState, args) -> int:
    category = await state.categories.create(args.name, args.color, args.description)
    print_message(state)
    return 0 if category else 1


async def update_category(state: GalleryState, args) -> int:
    ok = await state.categories.update(args.id, name=args.name, color=args.color, description=args.description)
    print_message(state)
    return 0 if ok else 1


async def delete_category(state: GalleryState, args) -> int:
    ok = await state.categories.delete(args.id)
    print_message(state)
    return 0 if ok else 1


def register(subparsers):
    p = subparsers.add_parser("categories", help="List or manage categories")
    p.set_defaults(handler=list_categories)
    actions = p.add_subparsers(dest="action")

    c = actions.add_parser("create")
    c.add_argument("name")
    c.add_argument("--color", default="#3b82f6")
    c.add_argument("--description", default="")
    c.set_defaults(handler=create_category)

    u = actions.add_parser("update")
    u.add_argument("id", type=int)
    u.add_argument("--name")
    u.add_argument("--color")
    u.add_argument("--description")
    u.set_defaults(handler=update_category)

    d = actions.add_parser("delete")
    d.add_argument("id", type=int)
    d.set_defaults(handler=delete_category)
