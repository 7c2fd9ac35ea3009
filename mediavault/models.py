from datetime import datetime
from typing import Annotated, Literal

from pydantic import BaseModel, Field, computed_field

from mediavault.paths import is_image_file, is_video_file

ItemType = Literal["file", "folder"]
FileCategory = Literal["folder", "image", "video", "file"]

Scope = Annotated[str, Field(pattern=r"^[^/]+$", title="Scope (user namespace)")]


class StorageItem(BaseModel):
    """One entry of a folder listing. Folders have a key ending in a slash."""

    key: str
    name: str
    type: ItemType
    size: int | None = None
    last_modified: datetime | None = None
    content_type: str | None = None

    @property
    def is_folder(self) -> bool:
        return self.type == "folder"

    @computed_field  # type: ignore[prop-decorator]
    @property
    def category(self) -> FileCategory:
        """Category for display, using the stored content type if there is one and the extension otherwise"""
        if self.is_folder:
            return "folder"
        if self.content_type:
            if self.content_type.startswith("image/"):
                return "image"
            if self.content_type.startswith("video/"):
                return "video"
        if is_image_file(self.name):
            return "image"
        if is_video_file(self.name):
            return "video"
        return "file"


class SessionContext(BaseModel):
    """
    The state of one browser session that operations act on: whose objects (scope),
    which folder is being shown (current_path, relative to the scope root, "" for the root)
    and which items are selected.
    """

    scope: Scope
    current_path: str = ""
    selection: set[str] = Field(default_factory=set)


class MoveTriple(BaseModel):
    """A single unit of copy work: where an object is, where it goes, and how to name it to the user."""

    source_path: str
    dest_path: str
    relative_name: str


class OperationProgress(BaseModel):
    current: int
    total: int


class BatchOperationResult(BaseModel):
    success: bool
    succeeded: int = 0
    failed: int = 0
    error: str | None = None
    warning: str | None = None
    failed_items: list[str] = Field(default_factory=list)
    duplicates: list[str] | None = None


class RenameFileResult(BaseModel):
    success: bool
    error: str | None = None
    warning: str | None = None


class RenameFolderResult(BatchOperationResult):
    # mirrors failed_items
    failed_files: list[str] = Field(default_factory=list)


class DeleteFailure(BaseModel):
    key: str
    error: str


class DeleteResult(BaseModel):
    succeeded: list[str] = Field(default_factory=list)
    failed: list[DeleteFailure] = Field(default_factory=list)
