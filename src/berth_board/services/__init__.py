# src/berth_board/services/__init__.py
"""Business logic services for the Berth Board application."""

from .attachments import AttachmentLayout, AttachmentReconciler, RepositionInstruction, UploadedBlob
from .file_store import FileStore
from .locks import IdentityLocks
from .post_service import PostService

__all__ = [
    "AttachmentLayout",
    "AttachmentReconciler",
    "FileStore",
    "IdentityLocks",
    "PostService",
    "RepositionInstruction",
    "UploadedBlob",
]
