"""Service layer sequencing post persistence and attachment storage."""
from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError

from berth_board.core.settings import settings
from berth_board.models.post import POST_STATUS_ACTIVE, Post
from berth_board.repositories.post_repo import PostRepository
from berth_board.schemas.post import PostCreate, PostListResponse, PostResponse, PostUpdate
from berth_board.services.attachments import (
    AttachmentReconciler,
    RepositionInstruction,
    UploadedBlob,
)
from berth_board.services.errors import (
    AttachmentValidationError,
    ErrorKind,
    PostNotFoundError,
    PostServiceError,
    PostStoreError,
)
from berth_board.services.locks import IdentityLocks, get_post_locks
from berth_board.utils.ids import new_post_id

logger = logging.getLogger(__name__)


def to_post_out(post: Post) -> PostResponse:
    """Convert a Post ORM instance to an API schema."""
    return PostResponse.model_validate(post)


class PostService:
    """Create, edit, read, list and delete posts with their attachments.

    Edits and deletes of one post are serialized through a per-identity lock
    held from before the first filesystem step until after the store commit.
    The store and the filesystem are not updated atomically: a failure part
    way through an edit leaves already-applied file changes in place while the
    persisted attachment list keeps its previous value.
    """

    def __init__(
        self,
        repo: PostRepository,
        reconciler: AttachmentReconciler,
        *,
        locks: IdentityLocks | None = None,
        max_upload_files: int | None = None,
    ) -> None:
        self.repo = repo
        self.reconciler = reconciler
        self.locks = locks if locks is not None else get_post_locks()
        self.max_upload_files = (
            max_upload_files if max_upload_files is not None else settings.max_upload_files
        )

    async def create_post(
        self, data: PostCreate, uploads: Sequence[UploadedBlob] = ()
    ) -> PostResponse:
        """Persist a new post and place its uploads as attachments ``1..N``."""
        self._check_upload_count(uploads, "create_post", None)
        post_id = new_post_id()

        async with self.locks.hold(post_id):
            with self._store("create_post", post_id):
                self.repo.create(
                    post_id,
                    status=POST_STATUS_ACTIVE,
                    attachments=[],
                    **data.model_dump(),
                )
            try:
                attachments = await self.reconciler.place(post_id, uploads)
            except PostServiceError:
                logger.error("Placing attachments for new post %s failed", post_id, exc_info=True)
                self.repo.rollback()
                raise
            with self._store("create_post", post_id):
                post = self.repo.update(post_id, attachments=attachments)
                self.repo.commit()

        logger.info("Created post %s with %d attachments", post_id, len(attachments))
        return to_post_out(post)

    async def update_post(
        self, post_id: str, data: PostUpdate, uploads: Sequence[UploadedBlob] = ()
    ) -> PostResponse:
        """Reconcile attachments and apply field changes to an existing post.

        Raises:
            PostNotFoundError: No post with this identity.
            AttachmentValidationError: Malformed instructions; nothing was touched.
            AttachmentStorageError: A filesystem step failed.
            PostStoreError: The store write failed after reconciliation.
        """
        self._check_upload_count(uploads, "update_post", post_id)

        async with self.locks.hold(post_id):
            post = self._require(post_id, "update_post")
            existing = list(post.attachments or [])
            repositions = [
                RepositionInstruction(index=item.index, reference=item.reference)
                for item in data.changed_attachments
            ]
            try:
                attachments = await self.reconciler.reconcile(
                    post_id,
                    repositions=repositions,
                    deletions=data.deleted_attachments,
                    uploads=uploads,
                    existing=existing,
                )
            except PostServiceError as exc:
                if exc.kind is ErrorKind.IO:
                    logger.error(
                        "Reconciling attachments for post %s failed", post_id, exc_info=True
                    )
                raise

            with self._store("update_post", post_id):
                post = self.repo.update(post_id, attachments=attachments, **data.field_changes())
                self.repo.commit()

        logger.info("Updated post %s: %d -> %d attachments", post_id, len(existing), len(attachments))
        return to_post_out(post)

    async def get_post(self, post_id: str) -> PostResponse:
        """Return a single post or raise PostNotFoundError."""
        return to_post_out(self._require(post_id, "get_post"))

    async def list_posts(self, search: str | None = None, page: int = -1) -> PostListResponse:
        """Return one page of posts matching the optional search text."""
        with self._store("list_posts", None):
            posts = self.repo.search(search, page)
        return PostListResponse(posts=[to_post_out(post) for post in posts])

    async def delete_post(self, post_id: str) -> PostResponse:
        """Remove the attachment directory, then the stored row.

        The row deletion is the commit point: if removing the directory fails
        the row stays in place.
        """
        async with self.locks.hold(post_id):
            post = self._require(post_id, "delete_post")
            snapshot = to_post_out(post)
            await self.reconciler.purge(post_id)
            with self._store("delete_post", post_id):
                self.repo.delete(post_id)
                self.repo.commit()

        logger.info("Deleted post %s", post_id)
        return snapshot

    def _require(self, post_id: str, operation: str) -> Post:
        with self._store(operation, post_id):
            post = self.repo.get_by_id(post_id)
        if post is None:
            raise PostNotFoundError("Post not found", operation=operation, post_id=post_id)
        return post

    def _check_upload_count(
        self, uploads: Sequence[UploadedBlob], operation: str, post_id: str | None
    ) -> None:
        if len(uploads) > self.max_upload_files:
            raise AttachmentValidationError(
                f"At most {self.max_upload_files} files may be uploaded at once",
                operation=operation,
                post_id=post_id,
            )

    @contextmanager
    def _store(self, operation: str, post_id: str | None) -> Iterator[None]:
        try:
            yield
        except SQLAlchemyError as exc:
            self.repo.rollback()
            raise PostStoreError(
                f"store operation failed: {exc}", operation=operation, post_id=post_id
            ) from exc
