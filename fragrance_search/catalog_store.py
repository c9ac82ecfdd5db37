"""SQLite catalog store backing the search snapshot."""
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, List, Optional

import aiosqlite

from fragrance_search.config import DEFAULT_DB_PATH
from fragrance_search.models import CatalogRecord

_COLUMNS = "id, name, brand, year, concentration, rating, popularity, verified"


class CatalogStore:
    """Async SQLite store for fragrance catalog records."""

    def __init__(self, db_path: Optional[Path] = None):
        """Initialize the catalog store.

        Args:
            db_path: Path to SQLite database. Defaults to ~/.fragrance-search/catalog.db
        """
        self.db_path = db_path or DEFAULT_DB_PATH
        self._connection: Optional[aiosqlite.Connection] = None

    async def initialize(self) -> None:
        """Initialize the database, creating tables if needed."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self._connection = await aiosqlite.connect(self.db_path)
        self._connection.row_factory = aiosqlite.Row

        await self._connection.execute("""
            CREATE TABLE IF NOT EXISTS fragrances (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                brand TEXT NOT NULL,
                year INTEGER,
                concentration TEXT,
                rating REAL,
                popularity REAL,
                verified INTEGER NOT NULL DEFAULT 0,
                last_updated TIMESTAMP
            )
        """)

        # Snapshot fetch order
        await self._connection.execute("""
            CREATE INDEX IF NOT EXISTS idx_popularity_rating
            ON fragrances(popularity DESC, rating DESC)
        """)

        await self._connection.commit()

    async def close(self) -> None:
        """Close the database connection."""
        if self._connection:
            await self._connection.close()
            self._connection = None

    def _require_connection(self) -> aiosqlite.Connection:
        if not self._connection:
            raise RuntimeError("Database not initialized. Call initialize() first.")
        return self._connection

    async def upsert_records(self, records: Iterable[CatalogRecord]) -> int:
        """Insert or replace catalog records.

        Args:
            records: Records to store, keyed by id

        Returns:
            Number of records written
        """
        connection = self._require_connection()
        now = datetime.now(timezone.utc).isoformat()
        rows = [
            (
                record.id,
                record.name,
                record.brand,
                record.year,
                record.concentration,
                record.rating,
                record.popularity,
                int(record.verified),
                now,
            )
            for record in records
        ]

        await connection.executemany(f"""
            INSERT INTO fragrances ({_COLUMNS}, last_updated)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                name = excluded.name,
                brand = excluded.brand,
                year = excluded.year,
                concentration = excluded.concentration,
                rating = excluded.rating,
                popularity = excluded.popularity,
                verified = excluded.verified,
                last_updated = excluded.last_updated
        """, rows)
        await connection.commit()

        return len(rows)

    async def get_record(self, record_id: str) -> Optional[CatalogRecord]:
        """Get a catalog record by id.

        Returns:
            The record or None if not found
        """
        connection = self._require_connection()
        cursor = await connection.execute(
            f"SELECT {_COLUMNS} FROM fragrances WHERE id = ?",
            (record_id,)
        )
        row = await cursor.fetchone()

        if row is None:
            return None

        return CatalogRecord.from_mapping(dict(row))

    async def delete_record(self, record_id: str) -> bool:
        """Delete a catalog record.

        Returns:
            True if deleted, False if not found
        """
        connection = self._require_connection()
        cursor = await connection.execute(
            "DELETE FROM fragrances WHERE id = ?",
            (record_id,)
        )
        await connection.commit()

        return cursor.rowcount > 0

    async def count(self) -> int:
        connection = self._require_connection()
        cursor = await connection.execute("SELECT COUNT(*) FROM fragrances")
        row = await cursor.fetchone()
        return row[0]

    async def fetch_all_catalog_records(self) -> List[CatalogRecord]:
        """Every record, most popular first, then best rated.

        Records without a popularity or rating sort after those with one.
        """
        connection = self._require_connection()
        cursor = await connection.execute(f"""
            SELECT {_COLUMNS} FROM fragrances
            ORDER BY COALESCE(popularity, -1) DESC, COALESCE(rating, -1) DESC
        """)
        rows = await cursor.fetchall()

        return [CatalogRecord.from_mapping(dict(row)) for row in rows]
