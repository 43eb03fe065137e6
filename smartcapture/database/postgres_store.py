"""Record store on a single PostgreSQL JSONB table."""

import psycopg
from psycopg.rows import dict_row
from psycopg.types.json import Jsonb

from smartcapture.database.base import BaseRecordStore, Record
from smartcapture.database.connection import get_connection
from smartcapture.database.exceptions import PersistenceError

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS capture_records (
    collection TEXT NOT NULL,
    id TEXT NOT NULL,
    data JSONB NOT NULL,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    PRIMARY KEY (collection, id)
)
"""


class PostgresRecordStore(BaseRecordStore):
    """Stores each record as one JSONB row keyed by (collection, id)."""

    async def ensure_schema(self) -> None:
        try:
            async with get_connection() as conn:
                await conn.execute(SCHEMA_SQL)
                await conn.commit()
        except psycopg.Error as exc:
            raise PersistenceError(f"Failed to create schema: {exc}") from exc

    async def save(self, collection: str, record_id: str, record: Record) -> None:
        try:
            async with get_connection() as conn:
                await conn.execute(
                    """
                    INSERT INTO capture_records (collection, id, data)
                    VALUES (%s, %s, %s)
                    ON CONFLICT (collection, id)
                    DO UPDATE SET data = EXCLUDED.data, updated_at = NOW()
                    """,
                    (collection, record_id, Jsonb(record)),
                )
                await conn.commit()
        except psycopg.Error as exc:
            raise PersistenceError(f"Failed to save {collection}/{record_id}: {exc}") from exc

    async def load_all(self, collection: str, filters: Record | None = None) -> list[Record]:
        try:
            async with get_connection() as conn:
                async with conn.cursor(row_factory=dict_row) as cur:
                    await cur.execute(
                        """
                        SELECT data
                        FROM capture_records
                        WHERE collection = %s
                          AND data @> %s
                        ORDER BY created_at, id
                        """,
                        (collection, Jsonb(filters or {})),
                    )
                    rows = await cur.fetchall()
        except psycopg.Error as exc:
            raise PersistenceError(f"Failed to load {collection}: {exc}") from exc
        return [row["data"] for row in rows]

    async def delete(self, collection: str, record_id: str) -> bool:
        try:
            async with get_connection() as conn:
                cur = await conn.execute(
                    "DELETE FROM capture_records WHERE collection = %s AND id = %s",
                    (collection, record_id),
                )
                await conn.commit()
        except psycopg.Error as exc:
            raise PersistenceError(f"Failed to delete {collection}/{record_id}: {exc}") from exc
        return cur.rowcount > 0
