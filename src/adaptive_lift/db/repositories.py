"""Data access layer for adaptive-lift."""

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

import aiosqlite

from .engine import get_db_path


@dataclass
class StoredBlob:
    """A value read back from the key-value store."""

    key: str
    value: str
    revision: int
    updated_at: datetime | None = None


class KeyValueRepository:
    """Repository for opaque, revision-tagged blobs."""

    def __init__(self, db_path: Path | None = None):
        self.db_path = db_path or get_db_path()

    async def get(self, key: str) -> StoredBlob | None:
        """Get a blob by key."""
        async with aiosqlite.connect(self.db_path) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute("SELECT * FROM kv_store WHERE key = ?", (key,))
            row = await cursor.fetchone()
            if row is None:
                return None
            return StoredBlob(
                key=row["key"],
                value=row["value"],
                revision=row["revision"],
                updated_at=(
                    datetime.fromisoformat(row["updated_at"]) if row["updated_at"] else None
                ),
            )

    async def put(self, key: str, value: str, revision: int) -> bool:
        """Store a blob unless a newer revision is already stored.

        Returns:
            True if the row was written, False if it was stale
        """
        async with aiosqlite.connect(self.db_path) as db:
            cursor = await db.execute(
                """
                INSERT INTO kv_store (key, value, revision, updated_at)
                VALUES (?, ?, ?, CURRENT_TIMESTAMP)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    revision = excluded.revision,
                    updated_at = CURRENT_TIMESTAMP
                WHERE excluded.revision >= kv_store.revision
                """,
                (key, value, revision),
            )
            await db.commit()
            return cursor.rowcount > 0

