import html

SIZE_UNITS = ["B", "KB", "MB", "GB"]


def format_file_size(size: int) -> str:
    """Human readable size with base 1024 units, e.g. 1536 -> '1.5 KB'"""
    if size <= 0:
        return "0 B"
    i = 0
    while size >= 1024 ** (i + 1) and i < len(SIZE_UNITS) - 1:
        i += 1
    value = round(size / 1024 ** i, 1)
    # 1.0 KB reads as 1 KB
    text = f"{value:.1f}".rstrip("0").rstrip(".")
    return f"{text} {SIZE_UNITS[i]}"


def truncate(text: str, length: int) -> str:
    return text[:length] + "..." if len(text) > length else text


def escape_html(text: str) -> str:
    return html.escape(text or "", quote=True)


def is_valid_image(content_type: str, size: int) -> bool:
    """Accept anything declared as image/* with at least one byte"""
    return bool(content_type) and content_type.startswith("image/") and size > 0
