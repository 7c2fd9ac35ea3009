from typing import Iterable

from mediavault.models import StorageItem

MAX_NAME_LENGTH = 100


class InvalidItemName(ValueError):
    pass


def validate_item_name(name: str, max_length: int = MAX_NAME_LENGTH) -> str:
    """Check that name can be used for a file or folder, and return it without surrounding whitespace"""
    normalized = name.strip()
    if normalized == "":
        raise InvalidItemName("Please provide a name")
    if "/" in normalized or "\\" in normalized:
        raise InvalidItemName("Names cannot contain slashes")
    if len(normalized) > max_length:
        raise InvalidItemName(f"Names cannot be longer than {max_length} characters")
    return normalized


def validate_rename(
    new_name: str, item: StorageItem, existing_items: Iterable[StorageItem], max_length: int = MAX_NAME_LENGTH
) -> str:
    normalized = validate_item_name(new_name, max_length=max_length)
    if normalized == item.name:
        raise InvalidItemName("The name was not changed")
    for existing in existing_items:
        if existing.type == item.type and existing.key != item.key and existing.name == normalized:
            raise InvalidItemName(f"A {item.type} named {normalized!r} already exists")
    return normalized


def split_filename(filename: str) -> tuple[str, str]:
    """
    Split into base name and extension (including the dot). Dotfiles like .gitignore have no extension.

    >>> split_filename("photo.final.jpg")
    ('photo.final', '.jpg')
    """
    base, dot, ext = filename.rpartition(".")
    if not dot or not base:
        return filename, ""
    return base, f".{ext}"


def generate_unique_filename(original_name: str, existing_names: Iterable[str], max_length: int = MAX_NAME_LENGTH) -> str:
    """
    Return original_name if it is not used yet, otherwise the first free "name (n).ext"

    >>> generate_unique_filename("a.jpg", ["a.jpg", "a (1).jpg"])
    'a (2).jpg'
    """
    existing = set(existing_names)
    if original_name not in existing:
        return original_name
    base, ext = split_filename(original_name)
    counter = 1
    while (candidate := f"{base} ({counter}){ext}") in existing:
        counter += 1
    if len(candidate) > max_length:
        raise InvalidItemName(f"Cannot upload {original_name!r}: a numbered name would be longer than {max_length} characters")
    return candidate
