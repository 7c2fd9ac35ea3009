"""API Endpoints for browsing and changing the media of a scope."""

from typing import Annotated

from fastapi import APIRouter, Body, Depends, Path, Query, UploadFile, status
from pydantic import BaseModel, Field

from mediavault.api.common import get_operations
from mediavault.models import (
    BatchOperationResult,
    DeleteResult,
    RenameFileResult,
    RenameFolderResult,
    SessionContext,
    StorageItem,
)
from mediavault.operations.service import StorageOperations

app_items = APIRouter(prefix="/scope/{scope}", tags=["items"])

ScopeParam = Annotated[str, Path(pattern=r"^[^/]+$", description="The scope (user namespace) to operate on")]
PathQuery = Annotated[str, Query(description="Folder path relative to the scope root, empty for the root")]


class CreateFolderBody(BaseModel):
    path: str = Field("", description="Folder to create the new folder in")
    name: str = Field(description="Name of the new folder")


class MoveBody(BaseModel):
    path: str = Field("", description="Folder currently shown, where the items are moved from")
    items: list[StorageItem] | None = Field(None, description="Files and folders to move (default: the selection)")
    selection: list[str] = Field(default_factory=list, description="Keys of the selected items in the current folder")
    destination: str = Field(description="Destination folder, as a path relative to the scope root or a full key prefix")


class RenameBody(BaseModel):
    path: str = Field("", description="Folder currently shown")
    item: StorageItem = Field(description="File or folder to rename")
    new_name: str = Field(description="The new name (without any path)")


class DeleteBody(BaseModel):
    path: str = Field("", description="Folder currently shown")
    items: list[StorageItem] | None = Field(
        None, description="Files and folders to delete, folders including their contents (default: the selection)"
    )
    selection: list[str] = Field(default_factory=list, description="Keys of the selected items in the current folder")


class KeyResponse(BaseModel):
    key: str


class UrlResponse(BaseModel):
    url: str | None


@app_items.get("/items")
async def list_items(
    scope: ScopeParam, path: PathQuery = "", operations: StorageOperations = Depends(get_operations)
) -> list[StorageItem]:
    """
    List the files and folders directly inside a folder, folders first.
    """
    return await operations.list_items(SessionContext(scope=scope, current_path=path))


@app_items.get("/folders")
async def list_folders(
    scope: ScopeParam, path: PathQuery = "", operations: StorageOperations = Depends(get_operations)
) -> list[StorageItem]:
    """
    List only the folders directly inside a folder (e.g. to choose a move destination).
    """
    return await operations.list_folders(SessionContext(scope=scope, current_path=path))


@app_items.post("/folders", status_code=status.HTTP_201_CREATED)
async def create_folder(
    scope: ScopeParam,
    body: Annotated[CreateFolderBody, Body(...)],
    operations: StorageOperations = Depends(get_operations),
) -> KeyResponse:
    """
    Create an empty folder.
    """
    key = await operations.create_folder(SessionContext(scope=scope, current_path=body.path), body.name)
    return KeyResponse(key=key)


@app_items.post("/upload", status_code=status.HTTP_201_CREATED)
async def upload_file(
    scope: ScopeParam,
    file: UploadFile,
    path: PathQuery = "",
    operations: StorageOperations = Depends(get_operations),
) -> KeyResponse:
    """
    Upload a file into a folder. If the name is taken, a number is added to it.
    """
    data = await file.read()
    context = SessionContext(scope=scope, current_path=path)
    key = await operations.upload_file(context, file.filename or "", data, content_type=file.content_type)
    return KeyResponse(key=key)


@app_items.post("/move", response_model_exclude_none=True)
async def move_items(
    scope: ScopeParam,
    body: Annotated[MoveBody, Body(...)],
    operations: StorageOperations = Depends(get_operations),
) -> BatchOperationResult:
    """
    Move files and folders to another folder. Nothing is moved if any of them already exists at the destination.
    """
    context = SessionContext(scope=scope, current_path=body.path, selection=set(body.selection))
    return await operations.move_items(context, body.items, body.destination)


@app_items.post("/rename", response_model=None)
async def rename_item(
    scope: ScopeParam,
    body: Annotated[RenameBody, Body(...)],
    operations: StorageOperations = Depends(get_operations),
) -> RenameFolderResult | RenameFileResult:
    """
    Rename a file or a folder.
    """
    context = SessionContext(scope=scope, current_path=body.path)
    return await operations.rename_item(context, body.item, body.new_name)


@app_items.post("/delete")
async def delete_items(
    scope: ScopeParam,
    body: Annotated[DeleteBody, Body(...)],
    operations: StorageOperations = Depends(get_operations),
) -> DeleteResult:
    """
    Delete files and folders, including everything inside the folders.
    """
    context = SessionContext(scope=scope, current_path=body.path, selection=set(body.selection))
    return await operations.remove_items(context, body.items)


@app_items.post("/refresh", status_code=status.HTTP_204_NO_CONTENT)
async def refresh(scope: ScopeParam, path: PathQuery = "", operations: StorageOperations = Depends(get_operations)):
    """
    Forget the cached listing of a folder, so the next listing reads it from the store again.
    """
    operations.refresh(SessionContext(scope=scope, current_path=path))


@app_items.get("/presigned")
async def presigned_get(
    scope: ScopeParam,
    key: str = Query(description="Full key of the file"),
    operations: StorageOperations = Depends(get_operations),
) -> UrlResponse:
    """
    Get a temporary url to view or download a file.
    """
    return UrlResponse(url=await operations.presigned_url(SessionContext(scope=scope), key))


@app_items.get("/thumbnail")
async def thumbnail(
    scope: ScopeParam,
    key: str = Query(description="Full key of the image or video"),
    operations: StorageOperations = Depends(get_operations),
) -> UrlResponse:
    """
    Get a temporary url for the thumbnail of an image or video (null for other files).
    The thumbnail might not have been generated yet.
    """
    return UrlResponse(url=await operations.thumbnail_url(SessionContext(scope=scope), key))
