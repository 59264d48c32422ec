# src/berth_board/models/post.py
"""SQLAlchemy model for community posts."""

from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from berth_board.db.session import Base
from berth_board.db.time import utcnow

POST_STATUS_ACTIVE = 1


class Post(Base):
    """A community entry with optional ordered image attachments.

    The identifier is generated by the service layer before the first write,
    because the attachment directory is named after it.
    """

    __tablename__ = "post"

    id: Mapped[str] = mapped_column(String(24), primary_key=True)
    title: Mapped[str] = mapped_column(Text, nullable=False, default="")
    text: Mapped[str] = mapped_column(Text, nullable=False, default="")

    # Relative storage paths in display order; never contains gaps.
    attachments: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)

    # Vessel/bay metadata, opaque to attachment handling.
    vessel_code: Mapped[str | None] = mapped_column(Text, nullable=True)
    bay: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_hold: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_ld: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    status: Mapped[int] = mapped_column(Integer, nullable=False, default=POST_STATUS_ACTIVE)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow, index=True
    )
