"""Attachment placement and reconciliation for posts.

Attachments live under ``{storage_root}/{post_id}/`` and are persisted as
references relative to the storage root's parent, e.g.
``dbFiles/65f0c1a2e4b0a1b2c3d4e5f6/1-1718000000000.jpg``. The leading ordinal
in each canonical filename always matches the attachment's 1-based position
in the persisted list.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import TypeVar

from berth_board.db.time import epoch_millis
from berth_board.services.errors import AttachmentStorageError, AttachmentValidationError
from berth_board.services.file_store import FileStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

_CANONICAL_NAME = re.compile(r"^(?P<ordinal>\d+)-(?P<timestamp>\d+)")


@dataclass(frozen=True)
class UploadedBlob:
    """Raw upload content plus the client-supplied filename."""

    data: bytes
    filename: str

    @property
    def extension(self) -> str:
        """Return the filename extension including the leading dot, or ''."""
        return PurePosixPath(self.filename.replace("\\", "/")).suffix


@dataclass(frozen=True)
class RepositionInstruction:
    """Move the attachment known by `reference` to position `index`."""

    index: int
    reference: str


class AttachmentLayout:
    """Maps post identities and filenames to disk paths and references."""

    def __init__(self, root: Path | str) -> None:
        self.root = Path(root).resolve()
        self.prefix = self.root.name

    def post_directory(self, post_id: str) -> Path:
        return self.root / post_id

    def reference(self, post_id: str, filename: str) -> str:
        return f"{self.prefix}/{post_id}/{filename}"

    def resolve(self, post_id: str, reference: str) -> Path:
        """Return the absolute path behind a reference owned by `post_id`.

        Raises:
            AttachmentValidationError: If the reference does not name a file
                directly inside the post's attachment directory.
        """
        parts = reference.split("/")
        if (
            len(parts) != 3
            or parts[0] != self.prefix
            or parts[1] != post_id
            or parts[2] in ("", ".", "..")
            or "\\" in parts[2]
        ):
            raise AttachmentValidationError(
                f"Attachment reference {reference!r} does not belong to this post",
                post_id=post_id,
            )
        return self.post_directory(post_id) / parts[2]

    @staticmethod
    def canonical_name(ordinal: int, timestamp: int, extension: str) -> str:
        return f"{ordinal}-{timestamp}{extension}"

    @staticmethod
    def temporary_name(timestamp: int, slot: int, extension: str) -> str:
        return f"temp_{timestamp}_{slot}{extension}"

    @staticmethod
    def timestamp_of(reference: str) -> int | None:
        """Return the timestamp embedded in a canonical reference, if any."""
        match = _CANONICAL_NAME.match(PurePosixPath(reference).name)
        return int(match.group("timestamp")) if match else None


class AttachmentReconciler:
    """Computes ordered attachment lists and applies the matching file moves."""

    def __init__(
        self,
        layout: AttachmentLayout,
        file_store: FileStore,
        clock: Callable[[], int] = epoch_millis,
    ) -> None:
        self.layout = layout
        self.file_store = file_store
        self._clock = clock

    async def place(self, post_id: str, uploads: Sequence[UploadedBlob]) -> list[str]:
        """Write a fresh post's uploads as ``1..N`` sharing one timestamp.

        Returns:
            References in upload order.
        """
        directory = self.layout.post_directory(post_id)
        await self._io("ensure_directory", post_id, self.file_store.ensure_directory(directory))

        timestamp = self._clock()
        references: list[str] = []
        for position, upload in enumerate(uploads):
            filename = self.layout.canonical_name(position + 1, timestamp, upload.extension)
            await self._io("write", post_id, self.file_store.write(directory / filename, upload.data))
            references.append(self.layout.reference(post_id, filename))

        logger.debug("Placed %d attachments for post %s", len(references), post_id)
        return references

    async def reconcile(
        self,
        post_id: str,
        *,
        repositions: Sequence[RepositionInstruction] = (),
        deletions: Sequence[str] = (),
        uploads: Sequence[UploadedBlob] = (),
        existing: Sequence[str] = (),
    ) -> list[str]:
        """Rebuild a post's attachment list from instructions and new uploads.

        Phases run in a fixed order: delete, placement, normalization. The
        working set is sparse; empty positions left after placement are
        skipped during normalization and do not consume an ordinal, so the
        result is always compacted to ``1..N``.

        Args:
            post_id: Identity of the post being edited.
            repositions: Existing references to keep, with their target index.
                A later instruction for the same index replaces an earlier one.
            deletions: References to remove from disk regardless of position.
            uploads: New files, consumed in arrival order into empty positions.
            existing: The post's current references; only used to keep new
                canonical names from colliding with names already on disk.

        Returns:
            The new ordered list of references.

        Raises:
            AttachmentValidationError: Malformed instructions. Raised before any
                filesystem mutation.
            AttachmentStorageError: A filesystem step failed. Earlier steps are
                not rolled back.
        """
        deletions = [reference for reference in deletions if reference]
        deletion_paths = self._validate(post_id, repositions, deletions)
        directory = self.layout.post_directory(post_id)

        await self._io("ensure_directory", post_id, self.file_store.ensure_directory(directory))

        for path in deletion_paths:
            await self._io("delete", post_id, self.file_store.delete_if_exists(path))

        max_index = max((item.index for item in repositions), default=-1)
        length = max(max_index + 1, len(repositions) + len(uploads))

        working: dict[int, str] = {}
        for item in repositions:
            working[item.index] = item.reference

        pending = iter(uploads)
        for slot in range(length):
            if slot in working:
                continue
            upload = next(pending, None)
            if upload is None:
                break
            filename = self.layout.temporary_name(self._clock(), slot, upload.extension)
            await self._io("write", post_id, self.file_store.write(directory / filename, upload.data))
            working[slot] = self.layout.reference(post_id, filename)

        present: list[tuple[int, Path]] = []
        for slot in sorted(working):
            source = self.layout.resolve(post_id, working[slot])
            if not await self._io("exists", post_id, self.file_store.exists(source)):
                logger.warning(
                    "Skipping missing attachment %s for post %s", working[slot], post_id
                )
                continue
            present.append((slot, source))

        # Only names that are actually on disk can collide with the new ones.
        timestamp = self._normalization_timestamp(
            [source.name for _, source in present] + list(existing)
        )
        attachments: list[str] = []
        for slot, source in present:
            filename = self.layout.canonical_name(
                len(attachments) + 1, timestamp, source.suffix
            )
            try:
                await self.file_store.rename(source, directory / filename)
            except FileNotFoundError:
                logger.warning(
                    "Attachment %s vanished before rename for post %s", working[slot], post_id
                )
                continue
            except OSError as exc:
                raise AttachmentStorageError(
                    f"rename failed: {exc}", operation="rename", post_id=post_id
                ) from exc
            attachments.append(self.layout.reference(post_id, filename))

        logger.debug(
            "Reconciled post %s: %d kept, %d deleted, %d uploaded -> %d attachments",
            post_id,
            len(repositions),
            len(deletion_paths),
            len(uploads),
            len(attachments),
        )
        return attachments

    async def purge(self, post_id: str) -> None:
        """Remove a post's whole attachment directory; silent if absent."""
        directory = self.layout.post_directory(post_id)
        await self._io("delete_tree", post_id, self.file_store.delete_tree(directory))

    def _validate(
        self,
        post_id: str,
        repositions: Sequence[RepositionInstruction],
        deletions: Sequence[str],
    ) -> list[Path]:
        """Check instructions and return the resolved deletion paths."""
        targets: dict[str, int] = {}
        for item in repositions:
            if isinstance(item.index, bool) or not isinstance(item.index, int) or item.index < 0:
                raise AttachmentValidationError(
                    f"Reposition index must be a non-negative integer, got {item.index!r}",
                    operation="reconcile",
                    post_id=post_id,
                )
            self.layout.resolve(post_id, item.reference)
            previous = targets.setdefault(item.reference, item.index)
            if previous != item.index:
                raise AttachmentValidationError(
                    f"Attachment {item.reference!r} repositioned to both "
                    f"{previous} and {item.index}",
                    operation="reconcile",
                    post_id=post_id,
                )

        paths = []
        for reference in deletions:
            if reference in targets:
                raise AttachmentValidationError(
                    f"Attachment {reference!r} is both repositioned and deleted",
                    operation="reconcile",
                    post_id=post_id,
                )
            paths.append(self.layout.resolve(post_id, reference))
        return paths

    def _normalization_timestamp(self, references: Sequence[str]) -> int:
        # Strictly newer than any name still on disk, so renames never overwrite.
        newest = max(
            (ts for ts in map(self.layout.timestamp_of, references) if ts is not None),
            default=-1,
        )
        return max(self._clock(), newest + 1)

    @staticmethod
    async def _io(operation: str, post_id: str, awaitable: Awaitable[T]) -> T:
        try:
            return await awaitable
        except OSError as exc:
            raise AttachmentStorageError(
                f"{operation} failed: {exc}", operation=operation, post_id=post_id
            ) from exc
