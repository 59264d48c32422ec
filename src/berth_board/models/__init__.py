# src/berth_board/models/__init__.py
"""SQLAlchemy models for the Berth Board application."""

from .post import Post

__all__ = ["Post"]
