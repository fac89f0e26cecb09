"""
Blob Storage

Filesystem-backed storage for document blobs. Locators are POSIX-style
relative names (e.g. "<application_id>/transcript-1700000000000-123456789.pdf")
resolved under a single root directory. The Document metadata row is the only
record of which locator belongs to which document.

File operations run in a worker thread so request handlers never block the
event loop.
"""

import asyncio
import logging
import os
from collections.abc import Iterator
from datetime import UTC, datetime
from pathlib import Path

from admissions.core.config import settings

logger = logging.getLogger(__name__)


class InvalidLocatorError(ValueError):
    """Raised when a locator would escape the storage root."""


class LocalBlobStorage:
    """Stores blobs as plain files under a root directory."""

    def __init__(self, root: str | Path):
        self.root = Path(root).resolve()

    def path_for(self, locator: str) -> Path:
        """Resolve a locator to an absolute path inside the root."""
        if not locator or locator.startswith(("/", "\\")):
            raise InvalidLocatorError(f"Invalid locator: {locator!r}")
        path = (self.root / locator).resolve()
        if self.root not in path.parents:
            raise InvalidLocatorError(f"Locator escapes storage root: {locator!r}")
        return path

    def _write(self, locator: str, data: bytes) -> None:
        path = self.path_for(locator)
        path.parent.mkdir(parents=True, exist_ok=True)
        # "xb" refuses to overwrite an existing blob
        with open(path, "xb") as fh:
            fh.write(data)

    def _delete(self, locator: str) -> bool:
        path = self.path_for(locator)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        parent = path.parent
        if parent != self.root:
            try:
                parent.rmdir()
            except OSError:
                pass  # directory still holds other blobs
        return True

    async def write(self, locator: str, data: bytes) -> None:
        """Write a new blob. Fails if the locator already exists."""
        await asyncio.to_thread(self._write, locator, data)
        logger.debug(f"Wrote blob {locator} ({len(data)} bytes)")

    async def delete(self, locator: str) -> bool:
        """
        Delete a blob.

        Idempotent: a missing blob is not an error.

        Returns:
            True if a blob was removed, False if it was already absent
        """
        removed = await asyncio.to_thread(self._delete, locator)
        if removed:
            logger.debug(f"Deleted blob {locator}")
        return removed

    async def exists(self, locator: str) -> bool:
        return await asyncio.to_thread(self.path_for(locator).is_file)

    def iter_locators(self) -> Iterator[str]:
        """Yield the locator of every blob currently stored."""
        if not self.root.exists():
            return
        for dirpath, _dirnames, filenames in os.walk(self.root):
            for filename in filenames:
                full = Path(dirpath) / filename
                yield full.relative_to(self.root).as_posix()

    async def list_locators(self) -> list[str]:
        """Locators of every stored blob, collected off the event loop."""
        return await asyncio.to_thread(lambda: list(self.iter_locators()))

    def _modified_at(self, locator: str) -> datetime:
        stat = self.path_for(locator).stat()
        return datetime.fromtimestamp(stat.st_mtime, tz=UTC)

    async def modified_at(self, locator: str) -> datetime:
        """Last modification time of a blob (UTC)."""
        return await asyncio.to_thread(self._modified_at, locator)


_storage: LocalBlobStorage | None = None


def get_storage() -> LocalBlobStorage:
    """
    FastAPI dependency returning the configured blob storage.

    Override with app.dependency_overrides to substitute a different root.
    """
    global _storage
    if _storage is None:
        _storage = LocalBlobStorage(settings.upload_dir)
    return _storage


__all__ = ["LocalBlobStorage", "InvalidLocatorError", "get_storage"]
