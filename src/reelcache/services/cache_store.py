"""
Filesystem-level storage for one media cache directory.

Each ``CacheStore`` owns a single directory (videos or images). Files are
stored under their original asset filename and the directory listing is the
index: an entry exists iff a regular file with exactly that name is present.
Writes go to a hidden temp file and are renamed into place on success, so a
concurrent presence check never sees a partial download.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import AsyncIterable
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional
from uuid import uuid4

from pydantic import BaseModel

from reelcache.exceptions import DirectoryUnavailable, InvalidFilename, WriteFailed
from reelcache.models.enums import AssetKind

logger = logging.getLogger(__name__)

_TEMP_MARKER = ".part-"

SNAPSHOT_TTL_SECONDS = 5.0
"""Maximum age of the in-memory listing before the directory is rescanned."""


class CacheEntry(BaseModel):
    """A cached file as seen on disk.

    Attributes
    ----------
    filename : str
        Original asset filename.
    kind : AssetKind
        Directory namespace the file lives in.
    size_bytes : int
        File size from ``stat()``.
    modified_at : datetime
        Modification time from ``stat()`` (UTC).
    """

    filename: str
    kind: AssetKind
    size_bytes: int
    modified_at: datetime


class CacheStore:
    """Presence checks, atomic writes, deletes and listing for one directory.

    Parameters
    ----------
    directory : Path
        Directory holding the cached files.
    kind : AssetKind
        Asset kind stored in this directory.
    snapshot_ttl : float
        Seconds a directory listing is reused before rescanning, so files
        added or removed by hand show up without a restart.
    """

    def __init__(
        self,
        directory: Path,
        kind: AssetKind,
        snapshot_ttl: float = SNAPSHOT_TTL_SECONDS,
    ) -> None:
        self._directory = directory
        self._kind = kind
        self._snapshot_ttl = snapshot_ttl
        self._snapshot: Optional[List[CacheEntry]] = None
        self._snapshot_at = 0.0
        # Bumped by every mutation; a scan that overlaps one is not kept.
        self._generation = 0

    @property
    def directory(self) -> Path:
        return self._directory

    @property
    def kind(self) -> AssetKind:
        return self._kind

    # ------------------------------------------------------------------
    # Directory management
    # ------------------------------------------------------------------

    def ensure_directory(self) -> None:
        """Create the directory and drop temp files left by a crash.

        Raises
        ------
        DirectoryUnavailable
            If the directory cannot be created.
        """
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise DirectoryUnavailable(str(self._directory), exc) from exc

        for leftover in self._directory.glob(f".*{_TEMP_MARKER}*"):
            self._discard(leftover)
        self.invalidate()

    # ------------------------------------------------------------------
    # Paths and presence
    # ------------------------------------------------------------------

    def path(self, filename: str) -> Path:
        """Return ``directory / filename`` without touching the filesystem.

        Raises
        ------
        InvalidFilename
            If the name is empty, hidden, or would escape the directory.
        """
        if (
            not filename
            or filename.startswith(".")
            or "/" in filename
            or "\\" in filename
            or "\x00" in filename
        ):
            raise InvalidFilename(filename)
        return self._directory / filename

    async def exists(self, filename: str) -> bool:
        """True iff a regular file with exactly this name is cached."""
        return await asyncio.to_thread(self.path(filename).is_file)

    async def entry(self, filename: str) -> Optional[CacheEntry]:
        """Stat a single cached file, or ``None`` if absent."""
        return await asyncio.to_thread(self._stat_entry, self.path(filename))

    def _stat_entry(self, path: Path) -> Optional[CacheEntry]:
        try:
            if not path.is_file():
                return None
            stat = path.stat()
        except FileNotFoundError:
            return None
        return CacheEntry(
            filename=path.name,
            kind=self._kind,
            size_bytes=stat.st_size,
            modified_at=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
        )

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------

    def invalidate(self) -> None:
        """Forget the cached directory listing."""
        self._generation += 1
        self._snapshot = None

    async def list(self, *, fresh: bool = False) -> List[CacheEntry]:
        """List cached files with size and modification time.

        A scan result is reused until a mutation through this store or until
        it is ``snapshot_ttl`` seconds old. A scan that overlapped a write or
        delete is returned to its caller but not kept.

        Parameters
        ----------
        fresh : bool
            Always rescan the directory (default ``False``).
        """
        snapshot = self._snapshot
        if (
            not fresh
            and snapshot is not None
            and time.monotonic() - self._snapshot_at < self._snapshot_ttl
        ):
            return list(snapshot)

        generation = self._generation
        entries = await asyncio.to_thread(self._scan)
        if generation == self._generation:
            self._snapshot = entries
            self._snapshot_at = time.monotonic()
        return list(entries)

    def _scan(self) -> List[CacheEntry]:
        if not self._directory.is_dir():
            return []
        entries: List[CacheEntry] = []
        for path in self._directory.iterdir():
            if path.name.startswith("."):
                continue
            entry = self._stat_entry(path)
            if entry is not None:
                entries.append(entry)
        return entries

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    async def write(
        self,
        filename: str,
        chunks: AsyncIterable[bytes],
    ) -> CacheEntry:
        """Stream *chunks* into the cache under *filename* atomically.

        Bytes are written to a hidden temp file in the same directory, then
        renamed onto the target. On any failure the temp file is removed and
        an existing cached copy is left untouched.

        Parameters
        ----------
        filename : str
            Target filename.
        chunks : AsyncIterable[bytes]
            Source byte stream.

        Returns
        -------
        CacheEntry
            The newly written entry.

        Raises
        ------
        WriteFailed
            If the temp file cannot be written or renamed.
        Exception
            Errors raised by the source stream propagate unchanged after
            cleanup.
        """
        target = self.path(filename)
        tmp_path = target.with_name(f".{filename}{_TEMP_MARKER}{uuid4().hex}")

        try:
            handle = await asyncio.to_thread(tmp_path.open, "wb")
        except OSError as exc:
            logger.error("Cannot open temp file %s", tmp_path, exc_info=True)
            raise WriteFailed(filename, exc) from exc

        try:
            try:
                async for chunk in chunks:
                    if chunk:
                        await asyncio.to_thread(handle.write, chunk)
            finally:
                await asyncio.to_thread(handle.close)
            await asyncio.to_thread(tmp_path.replace, target)
        except OSError as exc:
            self._discard(tmp_path)
            logger.error("Disk error writing cached file %s", target, exc_info=True)
            raise WriteFailed(filename, exc) from exc
        except BaseException:
            self._discard(tmp_path)
            raise
        finally:
            self.invalidate()

        entry = await self.entry(filename)
        if entry is None:
            raise WriteFailed(filename, FileNotFoundError(str(target)))
        return entry

    async def delete(self, filename: str) -> bool:
        """Delete a cached file; returns whether a file was removed.

        Idempotent: a missing file is not an error. Other ``OSError``s
        propagate.
        """
        path = self.path(filename)
        try:
            await asyncio.to_thread(path.unlink)
        except FileNotFoundError:
            return False
        finally:
            self.invalidate()
        logger.debug("Deleted cached %s: %s", self._kind.value, filename)
        return True

    async def clear(self) -> int:
        """Delete every cached file; returns the number removed.

        In-progress temp files are left alone so concurrent downloads can
        still complete.
        """
        removed = 0
        for entry in await self.list(fresh=True):
            try:
                if await self.delete(entry.filename):
                    removed += 1
            except OSError:
                logger.warning(
                    "Failed to delete cached file: %s",
                    entry.filename,
                    exc_info=True,
                )
        return removed

    @staticmethod
    def _discard(path: Path) -> None:
        try:
            path.unlink(missing_ok=True)
        except OSError:
            logger.warning("Failed to remove temp file %s", path, exc_info=True)
