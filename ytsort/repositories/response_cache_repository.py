from __future__ import annotations

from typing import Protocol

from ytsort.repositories.common import utc_now_iso
from ytsort.repositories.database import Database


class KeyValueStore(Protocol):
    def get_item(self, key: str) -> str | None:
        ...

    def set_item(self, key: str, value: str) -> None:
        ...


class ResponseCacheRepository:
    """String-keyed, string-valued store backing the response cache.

    Entries never expire; the only way to drop them is to delete the database.
    """

    def __init__(self, db: Database) -> None:
        self._db = db

    def get_item(self, key: str) -> str | None:
        with self._db.connection() as conn:
            row = conn.execute(
                """
                SELECT value_text
                FROM response_cache
                WHERE cache_key = ?
                """,
                (key,),
            ).fetchone()

        if row is None:
            return None
        raw_value = row["value_text"]
        if not isinstance(raw_value, str):
            return None
        return raw_value

    def set_item(self, key: str, value: str) -> None:
        with self._db.connection() as conn:
            conn.execute(
                """
                INSERT INTO response_cache (cache_key, value_text, created_at)
                VALUES (?, ?, ?)
                ON CONFLICT(cache_key) DO UPDATE SET
                    value_text = excluded.value_text,
                    created_at = excluded.created_at
                """,
                (key, value, utc_now_iso()),
            )

    def count(self) -> int:
        with self._db.connection() as conn:
            row = conn.execute("SELECT COUNT(*) AS total FROM response_cache").fetchone()
        return int(row["total"]) if row is not None else 0
