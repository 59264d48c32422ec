"""Data access helpers for working with posts."""
from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from berth_board.core.settings import settings
from berth_board.models.post import Post

__all__ = ["PostRepository", "DEFAULT_SEARCH_FIELDS"]

DEFAULT_SEARCH_FIELDS: tuple[str, ...] = ("title", "text", "vessel_code", "bay")
MUTABLE_FIELDS = frozenset(
    {"title", "text", "vessel_code", "bay", "is_hold", "is_ld", "attachments"}
)


def _like_pattern(term: str) -> str:
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class PostRepository:
    """Thin wrapper around database access for post entities."""

    def __init__(
        self,
        session: Session,
        *,
        search_fields: Sequence[str] = DEFAULT_SEARCH_FIELDS,
        page_size: int | None = None,
    ) -> None:
        """Initialize the repository with a SQLAlchemy session.

        Args:
            session: Session used for all queries.
            search_fields: Post columns matched by `search`.
            page_size: Rows per page; defaults to the configured page size.
        """
        self.session = session
        self.search_fields = tuple(search_fields)
        self.page_size = page_size if page_size is not None else settings.page_size

    def get_by_id(self, post_id: str) -> Post | None:
        """Return a post by identifier."""
        return self.session.get(Post, post_id)

    def create(self, post_id: str, **fields: Any) -> Post:
        """Insert a new post and return the persisted ORM instance."""
        post = Post(id=post_id, **fields)
        self.session.add(post)
        self.session.flush()
        return post

    def update(self, post_id: str, **fields: Any) -> Post | None:
        """Apply field changes to a post; returns None if it does not exist."""
        unknown = set(fields) - MUTABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update fields: {', '.join(sorted(unknown))}")
        post = self.get_by_id(post_id)
        if post is None:
            return None
        for name, value in fields.items():
            setattr(post, name, value)
        self.session.flush()
        return post

    def delete(self, post_id: str) -> Post | None:
        """Remove a post; returns the removed instance or None if absent."""
        post = self.get_by_id(post_id)
        if post is None:
            return None
        self.session.delete(post)
        self.session.flush()
        return post

    def search(self, query: str | None, page: int) -> list[Post]:
        """Return one page of posts, most recently updated first.

        A blank query matches every post. A negative page means "first page"
        just like page 0; both skip nothing.
        """
        stmt = select(Post)
        term = (query or "").strip()
        if term:
            pattern = _like_pattern(term)
            stmt = stmt.where(
                or_(
                    *(
                        getattr(Post, field).ilike(pattern, escape="\\")
                        for field in self.search_fields
                    )
                )
            )
        stmt = stmt.order_by(Post.updated_at.desc(), Post.id.desc()).limit(self.page_size)
        if page >= 0:
            stmt = stmt.offset(page * self.page_size)
        return list(self.session.scalars(stmt))

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()
