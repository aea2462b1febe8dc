"""Revision-guarded snapshot writer for the program store."""

import asyncio
import logging

import aiosqlite

from ..db.repositories import KeyValueRepository, StoredBlob

logger = logging.getLogger(__name__)

PROGRAM_STORE_KEY = "program_store_v1"
SCHEMA_VERSION = 1


class SnapshotPersistenceStore:
    """Single writer that only accepts snapshots newer than the last one.

    Writes are serialized through one lock, so a write issued with revision 5
    that reaches the writer after revision 7 was accepted is dropped. The
    order in which writes finish never decides the stored state; the order
    in which they were issued does.
    """

    def __init__(self, repository: KeyValueRepository, key: str = PROGRAM_STORE_KEY):
        self.repository = repository
        self.key = key
        self.last_written_revision = 0
        self._lock = asyncio.Lock()

    async def read(self) -> StoredBlob | None:
        """Read the stored snapshot and sync the revision floor to it."""
        try:
            blob = await self.repository.get(self.key)
        except (aiosqlite.Error, OSError):
            logger.exception("Failed to read program store snapshot")
            return None
        if blob is not None:
            self.last_written_revision = max(self.last_written_revision, blob.revision)
        return blob

    async def write_if_current(self, payload: str, revision: int) -> bool:
        """Persist ``payload`` unless a newer revision has been accepted.

        Failures are logged and reported as False; they never raise.
        """
        async with self._lock:
            if revision < self.last_written_revision:
                logger.debug(
                    "Dropping stale snapshot revision %d (last written %d)",
                    revision,
                    self.last_written_revision,
                )
                return False

            try:
                written = await self.repository.put(self.key, payload, revision)
            except (aiosqlite.Error, OSError):
                logger.exception("Failed to persist program store revision %d", revision)
                return False

            if not written:
                logger.debug("Stored snapshot is newer than revision %d; write skipped", revision)
                return False

            self.last_written_revision = revision
            return True
