# src/berth_board/api/v1/endpoints/posts.py
"""Post-related endpoints for the Berth Board API."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status
from pydantic import TypeAdapter, ValidationError
from sqlalchemy.orm import Session

from berth_board.core.settings import settings
from berth_board.db.session import get_db
from berth_board.repositories.post_repo import PostRepository
from berth_board.schemas.post import (
    AttachmentReposition,
    PostCreate,
    PostListResponse,
    PostResponse,
    PostUpdate,
)
from berth_board.services.attachments import AttachmentLayout, AttachmentReconciler, UploadedBlob
from berth_board.services.errors import ErrorKind, PostServiceError
from berth_board.services.file_store import FileStore, get_file_store
from berth_board.services.post_service import PostService

router = APIRouter(prefix="/posts", tags=["posts"])

_REPOSITIONS = TypeAdapter(list[AttachmentReposition])
_DELETIONS = TypeAdapter(list[str])

_STATUS_BY_KIND = {
    ErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.IO: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def get_attachment_layout() -> AttachmentLayout:
    """Return the attachment layout rooted at the configured storage root."""
    return AttachmentLayout(settings.storage_root)


SessionDep = Annotated[Session, Depends(get_db)]
LayoutDep = Annotated[AttachmentLayout, Depends(get_attachment_layout)]
FileStoreDep = Annotated[FileStore, Depends(get_file_store)]


def get_post_service(db: SessionDep, layout: LayoutDep, file_store: FileStoreDep) -> PostService:
    """Build the post service for one request."""
    return PostService(PostRepository(db), AttachmentReconciler(layout, file_store))


PostServiceDep = Annotated[PostService, Depends(get_post_service)]
UploadsForm = Annotated[list[UploadFile] | None, File(description="Image attachments")]


def _http_error(exc: PostServiceError) -> HTTPException:
    return HTTPException(status_code=_STATUS_BY_KIND[exc.kind], detail=str(exc))


def _parse_json_field(adapter: TypeAdapter, raw: str | None, field: str) -> list:
    """Decode a JSON array submitted as a multipart form field."""
    if raw is None or not raw.strip():
        return []
    try:
        return adapter.validate_json(raw)
    except ValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid {field}: {exc.errors()[0]['msg']}",
        ) from exc


async def _read_uploads(files: list[UploadFile] | None) -> list[UploadedBlob]:
    uploads = []
    for upload in files or []:
        uploads.append(UploadedBlob(data=await upload.read(), filename=upload.filename or ""))
    return uploads


@router.get("/", response_model=PostListResponse)
async def list_posts(
    service: PostServiceDep,
    search: str | None = Query(None, description="Case-insensitive text to match"),
    page: int = Query(-1, description="Zero-based page; negative means the first page"),
) -> PostListResponse:
    """List posts, most recently updated first, one page at a time."""
    try:
        return await service.list_posts(search, page)
    except PostServiceError as exc:
        raise _http_error(exc) from exc


@router.get("/{post_id}", response_model=PostResponse)
async def get_post(post_id: str, service: PostServiceDep) -> PostResponse:
    """Get a specific post by ID.

    Raises:
        HTTPException: If the post does not exist
    """
    try:
        return await service.get_post(post_id)
    except PostServiceError as exc:
        raise _http_error(exc) from exc


@router.post("/", response_model=PostResponse, status_code=status.HTTP_201_CREATED)
async def create_post(
    service: PostServiceDep,
    title: Annotated[str, Form(max_length=500)] = "",
    text: Annotated[str, Form()] = "",
    vessel_code: Annotated[str | None, Form()] = None,
    bay: Annotated[str | None, Form()] = None,
    is_hold: Annotated[bool, Form()] = True,
    is_ld: Annotated[bool, Form()] = True,
    files: UploadsForm = None,
) -> PostResponse:
    """Create a post; uploaded files become attachments in submission order."""
    data = PostCreate(
        title=title,
        text=text,
        vessel_code=vessel_code,
        bay=bay,
        is_hold=is_hold,
        is_ld=is_ld,
    )
    uploads = await _read_uploads(files)
    try:
        return await service.create_post(data, uploads)
    except PostServiceError as exc:
        raise _http_error(exc) from exc


@router.put("/{post_id}", response_model=PostResponse)
async def update_post(
    post_id: str,
    service: PostServiceDep,
    title: Annotated[str | None, Form(max_length=500)] = None,
    text: Annotated[str | None, Form()] = None,
    vessel_code: Annotated[str | None, Form()] = None,
    bay: Annotated[str | None, Form()] = None,
    is_hold: Annotated[bool | None, Form()] = None,
    is_ld: Annotated[bool | None, Form()] = None,
    changed_attachments: Annotated[
        str | None, Form(description='JSON array of {"index": int, "reference": str}')
    ] = None,
    deleted_attachments: Annotated[
        str | None, Form(description="JSON array of attachment references")
    ] = None,
    files: UploadsForm = None,
) -> PostResponse:
    """Edit a post and reconcile its attachments.

    Existing attachments listed in ``changed_attachments`` are kept at the
    given positions, references in ``deleted_attachments`` are removed, and
    uploaded files fill the remaining positions in submission order.
    """
    data = PostUpdate(
        title=title,
        text=text,
        vessel_code=vessel_code,
        bay=bay,
        is_hold=is_hold,
        is_ld=is_ld,
        changed_attachments=_parse_json_field(
            _REPOSITIONS, changed_attachments, "changed_attachments"
        ),
        deleted_attachments=_parse_json_field(
            _DELETIONS, deleted_attachments, "deleted_attachments"
        ),
    )
    uploads = await _read_uploads(files)
    try:
        return await service.update_post(post_id, data, uploads)
    except PostServiceError as exc:
        raise _http_error(exc) from exc


@router.delete("/{post_id}", response_model=PostResponse)
async def delete_post(post_id: str, service: PostServiceDep) -> PostResponse:
    """Delete a post together with its attachment directory."""
    try:
        return await service.delete_post(post_id)
    except PostServiceError as exc:
        raise _http_error(exc) from exc
