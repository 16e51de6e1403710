"""
SQLite design repository.

One SQLite file per bot under data_dir. Records are append-only; the
draft and production pointers live in a single row that is only updated
inside BEGIN IMMEDIATE transactions, which gives the compare-and-swap on
the draft and the atomic production flip.

Invariants:
    - One SQLite file per bot
    - All writes are single transactions (BEGIN IMMEDIATE ... COMMIT)
    - versions rows are never updated or deleted

How to change safely:
    - Schema migrations must be backward compatible
    - Keep the pointer check and the version insert in one transaction

Table schema:
    versions:
        - bot_id TEXT
        - version_id TEXT (ULID)
        - status TEXT
        - checksum TEXT
        - data BLOB (canonical JSON)
        - created_at INTEGER (Unix ms)
        - PRIMARY KEY (bot_id, version_id)

    pointers:
        - bot_id TEXT PRIMARY KEY
        - draft_version_id TEXT
        - production_version_id TEXT
        - updated_at INTEGER (Unix ms)
"""

from __future__ import annotations

import asyncio
import logging
import sqlite3
import time
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import List, Optional

from ..errors import ConcurrencyConflictError, PromotionNotFoundError
from .types import VersionedRecord, VersionStatus

logger = logging.getLogger(__name__)


class SqliteDesignRepository:
    """Per-bot SQLite DesignRepository.

    Thread safety:
        Each operation opens its own connection. Writers serialize through
        BEGIN IMMEDIATE; an asyncio lock serializes coroutines in-process.

    Example:
        >>> repo = SqliteDesignRepository("/var/lib/flowkit")
        >>> await repo.commit_draft("bot1", record, expected_version_id=None)
    """

    SCHEMA_VERSION = 1

    def __init__(
        self,
        data_dir: str,
        wal_mode: bool = True,
        busy_timeout_ms: int = 5000,
    ) -> None:
        """Initialize the repository.

        Args:
            data_dir: Directory for SQLite database files
            wal_mode: Enable SQLite WAL mode
            busy_timeout_ms: SQLite busy timeout
        """
        self.data_dir = Path(data_dir)
        self.wal_mode = wal_mode
        self.busy_timeout_ms = busy_timeout_ms
        self._lock = asyncio.Lock()

    def _get_db_path(self, bot_id: str) -> Path:
        # Sanitize bot_id to prevent path traversal
        safe_id = "".join(c for c in bot_id if c.isalnum() or c in "-_")
        return self.data_dir / f"bot_{safe_id}.db"

    def exists(self, bot_id: str) -> bool:
        return self._get_db_path(bot_id).exists()

    @contextmanager
    def _get_connection(self, bot_id: str) -> Iterator[sqlite3.Connection]:
        """Open a configured connection, ensuring the schema exists.

        The schema statements are idempotent, so a file left without tables
        (for example by a crash between create and schema setup) is repaired
        on the next connection.
        """
        db_path = self._get_db_path(bot_id)
        db_path.parent.mkdir(parents=True, exist_ok=True)

        conn = sqlite3.connect(
            str(db_path),
            timeout=self.busy_timeout_ms / 1000.0,
            isolation_level=None,  # Autocommit by default, explicit transactions
        )
        conn.row_factory = sqlite3.Row

        try:
            conn.execute(f"PRAGMA busy_timeout = {self.busy_timeout_ms}")
            if self.wal_mode:
                conn.execute("PRAGMA journal_mode = WAL")
            conn.execute("PRAGMA synchronous = NORMAL")
            self._create_schema(conn)
            yield conn
        finally:
            conn.close()

    def _create_schema(self, conn: sqlite3.Connection) -> None:
        conn.executescript("""
            CREATE TABLE IF NOT EXISTS schema_version (
                version INTEGER PRIMARY KEY,
                applied_at INTEGER NOT NULL
            );

            CREATE TABLE IF NOT EXISTS versions (
                bot_id TEXT NOT NULL,
                version_id TEXT NOT NULL,
                status TEXT NOT NULL,
                checksum TEXT NOT NULL,
                data BLOB NOT NULL,
                created_at INTEGER NOT NULL,
                PRIMARY KEY (bot_id, version_id)
            );

            CREATE INDEX IF NOT EXISTS idx_versions_created ON versions(bot_id, created_at);

            CREATE TABLE IF NOT EXISTS pointers (
                bot_id TEXT PRIMARY KEY,
                draft_version_id TEXT,
                production_version_id TEXT,
                updated_at INTEGER NOT NULL
            );

            INSERT OR IGNORE INTO schema_version (version, applied_at)
            VALUES (1, strftime('%s', 'now') * 1000);
        """)

    @staticmethod
    def _row_to_record(row: sqlite3.Row) -> VersionedRecord:
        return VersionedRecord(
            version_id=row["version_id"],
            status=VersionStatus(row["status"]),
            checksum=row["checksum"],
            data=bytes(row["data"]),
            created_at=row["created_at"],
        )

    def _pointer_record(self, bot_id: str, column: str) -> Optional[VersionedRecord]:
        if not self.exists(bot_id):
            return None
        with self._get_connection(bot_id) as conn:
            row = conn.execute(
                f"""
                SELECT v.* FROM pointers p
                JOIN versions v ON v.bot_id = p.bot_id AND v.version_id = p.{column}
                WHERE p.bot_id = ?
                """,
                (bot_id,),
            ).fetchone()
        return self._row_to_record(row) if row else None

    async def get_draft(self, bot_id: str) -> Optional[VersionedRecord]:
        return self._pointer_record(bot_id, "draft_version_id")

    async def get_active_production(self, bot_id: str) -> Optional[VersionedRecord]:
        return self._pointer_record(bot_id, "production_version_id")

    async def commit_draft(
        self,
        bot_id: str,
        record: VersionedRecord,
        expected_version_id: Optional[str],
    ) -> None:
        now = int(time.time() * 1000)
        async with self._lock:
            with self._get_connection(bot_id) as conn:
                conn.execute("BEGIN IMMEDIATE")
                try:
                    row = conn.execute(
                        "SELECT draft_version_id FROM pointers WHERE bot_id = ?",
                        (bot_id,),
                    ).fetchone()
                    current = row["draft_version_id"] if row else None
                    if current != expected_version_id:
                        raise ConcurrencyConflictError(bot_id, expected_version_id, current)

                    conn.execute(
                        """
                        INSERT INTO versions (bot_id, version_id, status, checksum, data, created_at)
                        VALUES (?, ?, ?, ?, ?, ?)
                        """,
                        (
                            bot_id,
                            record.version_id,
                            record.status.value,
                            record.checksum,
                            record.data,
                            record.created_at,
                        ),
                    )
                    conn.execute(
                        """
                        INSERT INTO pointers (bot_id, draft_version_id, production_version_id, updated_at)
                        VALUES (?, ?, NULL, ?)
                        ON CONFLICT(bot_id) DO UPDATE SET
                            draft_version_id = excluded.draft_version_id,
                            updated_at = excluded.updated_at
                        """,
                        (bot_id, record.version_id, now),
                    )
                    conn.execute("COMMIT")
                except Exception:
                    conn.execute("ROLLBACK")
                    raise

        logger.debug("Committed draft", extra={"bot_id": bot_id, "version_id": record.version_id})

    async def promote(self, bot_id: str, version_id: str) -> None:
        if not self.exists(bot_id):
            raise PromotionNotFoundError(bot_id, version_id)
        now = int(time.time() * 1000)
        async with self._lock:
            with self._get_connection(bot_id) as conn:
                conn.execute("BEGIN IMMEDIATE")
                try:
                    found = conn.execute(
                        "SELECT 1 FROM versions WHERE bot_id = ? AND version_id = ?",
                        (bot_id, version_id),
                    ).fetchone()
                    if not found:
                        raise PromotionNotFoundError(bot_id, version_id)
                    conn.execute(
                        "UPDATE pointers SET production_version_id = ?, updated_at = ? WHERE bot_id = ?",
                        (version_id, now, bot_id),
                    )
                    conn.execute("COMMIT")
                except Exception:
                    conn.execute("ROLLBACK")
                    raise

    async def get_version(self, bot_id: str, version_id: str) -> Optional[VersionedRecord]:
        if not self.exists(bot_id):
            return None
        with self._get_connection(bot_id) as conn:
            row = conn.execute(
                "SELECT * FROM versions WHERE bot_id = ? AND version_id = ?",
                (bot_id, version_id),
            ).fetchone()
        return self._row_to_record(row) if row else None

    async def list_versions(self, bot_id: str) -> List[VersionedRecord]:
        if not self.exists(bot_id):
            return []
        with self._get_connection(bot_id) as conn:
            rows = conn.execute(
                "SELECT * FROM versions WHERE bot_id = ? ORDER BY rowid",
                (bot_id,),
            ).fetchall()
        return [self._row_to_record(r) for r in rows]
