"""
Conversion between object keys and the paths shown to users.

All media of a scope lives under ``<media prefix>/<scope>/``. Paths relative to that base
(e.g. ``photos/2024``) are what the browser shows and what the listing cache is keyed on.
Folders only exist as key prefixes, so a folder key always ends with a slash.
"""

from urllib.parse import quote

MEDIA_PREFIX = "media"
THUMBNAIL_PREFIX = "thumbnails"
THUMBNAIL_SUFFIX = ".thumb.jpg"

IMAGE_EXTENSIONS = ("jpg", "jpeg", "png", "gif", "webp")
VIDEO_EXTENSIONS = ("mp4", "webm", "mov")


def normalize_trailing_slash(path: str) -> str:
    """Add a trailing slash to a non-empty path. The empty string is the root and stays empty."""
    return path if path == "" or path.endswith("/") else f"{path}/"


def build_base_path(scope: str, relative_path: str | None = None, media_prefix: str = MEDIA_PREFIX) -> str:
    """
    Build the key prefix of a folder of this scope

    >>> build_base_path("user-123", "photos/2024")
    'media/user-123/photos/2024/'
    """
    base = f"{media_prefix}/{scope}/"
    if not relative_path:
        return base
    return f"{base}{normalize_trailing_slash(relative_path)}"


def extract_relative_path(full_path: str, scope: str, media_prefix: str = MEDIA_PREFIX) -> str | None:
    """
    Inverse of build_base_path. Returns None if full_path is not in the media of this scope,
    which is not the same as the root of the scope (the empty string).
    """
    base = build_base_path(scope, media_prefix=media_prefix)
    if full_path == base[:-1]:
        return ""
    if not full_path.startswith(base):
        return None
    return full_path[len(base) :].rstrip("/")


def is_full_storage_path(path: str, scope: str, media_prefix: str = MEDIA_PREFIX) -> bool:
    return extract_relative_path(path, scope, media_prefix=media_prefix) is not None



def get_parent_path(key: str) -> str:
    """
    The prefix of the folder containing this key, with trailing slash ("" for a top level key)

    >>> get_parent_path("photos/2024/image.jpg")
    'photos/2024/'
    >>> get_parent_path("photos/")
    ''
    """
    head, sep, _tail = key.removesuffix("/").rpartition("/")
    return f"{head}{sep}"


def get_name(key: str) -> str:
    return key.removesuffix("/").rpartition("/")[2]


def build_renamed_key(current_key: str, new_name: str) -> str:
    return f"{get_parent_path(current_key)}{new_name}"


def build_renamed_prefix(current_prefix: str, new_name: str) -> str:
    return f"{get_parent_path(current_prefix)}{new_name.removesuffix('/')}/"


def encode_for_copy_source(path: str) -> str:
    """
    Percent-encode every segment of a key, keeping the slashes.

    The CopySource of a copy request is sent as a single header value, and non-ascii
    characters in it are rejected unless encoded.

    >>> encode_for_copy_source("media/abc/日本語 1.jpg")
    'media/abc/%E6%97%A5%E6%9C%AC%E8%AA%9E%201.jpg'
    """
    return "/".join(quote(segment, safe="") for segment in path.split("/"))


def get_file_extension(filename: str) -> str:
    _base, dot, ext = filename.rpartition(".")
    return ext.lower() if dot else ""


def is_image_file(filename: str) -> bool:
    return get_file_extension(filename) in IMAGE_EXTENSIONS


def is_video_file(filename: str) -> bool:
    return get_file_extension(filename) in VIDEO_EXTENSIONS


def is_thumbnail_target(filename: str) -> bool:
    return is_image_file(filename) or is_video_file(filename)


def thumbnail_key(
    original_key: str,
    media_prefix: str = MEDIA_PREFIX,
    thumbnail_prefix: str = THUMBNAIL_PREFIX,
    suffix: str = THUMBNAIL_SUFFIX,
) -> str:
    """
    The key under which the thumbnail process stores the thumbnail of an object

    >>> thumbnail_key("media/abc123/photos/image.jpg")
    'thumbnails/abc123/photos/image.jpg.thumb.jpg'
    """
    if not original_key.startswith(f"{media_prefix}/"):
        raise ValueError(f"Key {original_key!r} should start with {media_prefix}/")
    return f"{thumbnail_prefix}/{original_key[len(media_prefix) + 1:]}{suffix}"
