# src/berth_board/schemas/__init__.py
"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .post import (
    AttachmentReposition,
    PostCreate,
    PostListResponse,
    PostResponse,
    PostUpdate,
)

__all__ = [
    "AttachmentReposition",
    "PostCreate", "PostListResponse", "PostResponse", "PostUpdate",
]
