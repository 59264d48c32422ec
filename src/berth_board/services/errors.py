"""Exception types raised by the post and attachment services.

Every exception carries an `ErrorKind` so the API layer can translate it
into a single response category without inspecting concrete types.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(Enum):
    """Failure categories surfaced to callers."""

    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    IO = "io"


class PostServiceError(RuntimeError):
    """Base exception for post and attachment failures.

    Attributes:
        kind: Category used by the API layer to pick a response status.
        operation: Name of the operation that failed (e.g. ``"update_post"``).
        post_id: Identity of the affected post, when known.
    """

    kind: ErrorKind = ErrorKind.IO

    def __init__(
        self,
        message: str,
        *,
        operation: str | None = None,
        post_id: str | None = None,
    ) -> None:
        self.message = message
        self.operation = operation
        self.post_id = post_id
        super().__init__(self.describe())

    def describe(self) -> str:
        """Return the message prefixed with operation and identity context."""
        context = [part for part in (self.operation, self.post_id) if part]
        if not context:
            return self.message
        return f"{' '.join(context)}: {self.message}"


class AttachmentValidationError(PostServiceError):
    """Raised for malformed reposition or deletion instructions.

    Always raised before any filesystem mutation takes place.
    """

    kind = ErrorKind.VALIDATION


class PostNotFoundError(PostServiceError):
    """Raised when the targeted post identity does not exist."""

    kind = ErrorKind.NOT_FOUND


class AttachmentStorageError(PostServiceError):
    """Raised when a filesystem operation fails unexpectedly.

    Changes applied before the failure are not rolled back.
    """

    kind = ErrorKind.IO


class PostStoreError(PostServiceError):
    """Raised when the persistence backend fails."""

    kind = ErrorKind.IO
