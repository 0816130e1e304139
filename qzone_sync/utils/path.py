"""
Utilities for naming album directories and downloaded item files.
"""

from pathlib import Path

from pathvalidate import sanitize_filename

from qzone_sync.models.album import Item

ITEM_TIME_FORMAT = "%Y-%m-%d %H-%M-%S"


def sanitize_album_name(name: str) -> str:
    """Turns an album name into a safe directory name."""
    return sanitize_filename(name, platform="universal").strip() or "untitled"


def album_dir(save_root: Path, album_name: str) -> Path:
    return save_root / sanitize_album_name(album_name)


def media_extension(content_type: str | None) -> str:
    """
    Derives a file extension from a Content-Type header, e.g.
    ``image/jpeg; charset=binary`` -> ``jpeg``.
    """
    if not content_type:
        return ""
    mime = content_type.split(";", 1)[0].strip()
    _, _, subtype = mime.partition("/")
    return sanitize_filename(subtype.strip().lower())


def item_filename(item: Item, extension: str) -> str:
    """
    Builds ``<time>.<item id>.<extension>``. The item id is embedded verbatim
    since later runs look it up in directory listings.
    """
    stem = f"{item.timestamp.strftime(ITEM_TIME_FORMAT)}.{item.id}"
    return f"{stem}.{extension}" if extension else stem
