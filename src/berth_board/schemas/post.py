# src/berth_board/schemas/post.py
"""Post-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class PostCreate(BaseModel):
    """Schema for the text fields of a new post."""

    title: str = Field("", max_length=500, description="Post title")
    text: str = Field("", description="Post body")
    vessel_code: str | None = Field(None, description="Vessel code")
    bay: str | None = Field(None, description="Bay number")
    is_hold: bool = Field(True, description="Hold (True) or deck (False)")
    is_ld: bool = Field(True, description="Loading (True) or discharging (False)")


class AttachmentReposition(BaseModel):
    """Keep an existing attachment and move it to a new position."""

    index: int = Field(..., ge=0, description="Zero-based target position")
    reference: str = Field(..., min_length=1, description="Existing attachment reference")


class PostUpdate(BaseModel):
    """Schema for editing a post. Fields left as None are not changed."""

    title: str | None = Field(None, max_length=500)
    text: str | None = None
    vessel_code: str | None = None
    bay: str | None = None
    is_hold: bool | None = None
    is_ld: bool | None = None
    changed_attachments: list[AttachmentReposition] = Field(
        default_factory=list,
        description="Existing attachments to keep, with their new positions",
    )
    deleted_attachments: list[str] = Field(
        default_factory=list,
        description="Attachment references to remove from storage",
    )

    def field_changes(self) -> dict[str, object]:
        """Return the scalar fields that were supplied."""
        return self.model_dump(
            exclude_none=True,
            exclude={"changed_attachments", "deleted_attachments"},
        )


class PostResponse(BaseModel):
    """Schema for post information returned by the API."""

    id: str
    title: str
    text: str
    attachments: list[str]
    vessel_code: str | None
    bay: str | None
    is_hold: bool
    is_ld: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PostListResponse(BaseModel):
    """One page of posts, most recently updated first."""

    posts: list[PostResponse] = Field(default_factory=list)
