from typing import Callable

from gallery.messages import ERROR, SUCCESS
from gallery.state import GalleryState
from gallery.utils.formatting import format_file_size, truncate


def make_confirm(assume_yes: bool = False) -> Callable[[str], bool]:
    """Ask on the terminal unless --yes was given"""
    def confirm(prompt: str) -> bool:
        if assume_yes:
            return True
        answer = input(f"⚠️ {prompt}\n\nAre you sure you want to continue? [y/N] ")
        return answer.strip().lower() in ("y", "yes")
    return confirm


def print_message(state: GalleryState) -> None:
    message = state.notifier.current
    if not message:
        return
    icon = {SUCCESS: "✅", ERROR: "❌"}.get(message.level, "ℹ️")
    print(f"{icon} {message.text}")


def print_progress(percent: int) -> None:
    bar = "#" * (percent // 5)
    print(f"\r📤 [{bar:<20}] {percent:3d}%", end="", flush=True)
    if percent >= 100:
        print()


def render_rows(state: GalleryState) -> str:
    if not state.rows:
        return "No images found. Try adjusting your filters or upload some images!"

    query = state.query
    lines = []
    for index, row in enumerate(state.rows):
        number = (query.page - 1) * query.page_size + index + 1
        entry = row.entry
        kind = entry.mime_type.split("/")[-1].upper()
        category = row.category_name or "No Category"
        when = entry.upload_date.strftime("%Y-%m-%d %H:%M") if entry.upload_date else "-"
        lines.append(
            f"{number:>4}. [{entry.id}] {truncate(entry.original_name, 30):<33} "
            f"{format_file_size(entry.file_size):>9} {kind:<5} {when}  📁 {category}"
        )
        if row.values.description:
            lines.append(f"      📝 {truncate(row.values.description, 70)}")
        if row.values.theme:
            lines.append(f"      🏷️ {truncate(row.values.theme, 70)}")

    pages = " ".join(f"[{p}]" if p == query.page else str(p) for p in query.page_window())
    lines.append("")
    lines.append(f"{query.summary()}  |  Pages: {pages}")
    return "\n".join(lines)
