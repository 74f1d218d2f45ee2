from __future__ import annotations

from transcript_harvester.repositories.common import utc_now_iso
from transcript_harvester.repositories.database import Database


class StateRepository:
    """Single-value key/value rows in the `app_state` table."""

    def __init__(self, db: Database) -> None:
        self._db = db

    def get_value(self, key: str) -> str | None:
        with self._db.connection() as conn:
            row = conn.execute(
                """
                SELECT value_text
                FROM app_state
                WHERE state_key = ?
                """,
                (key,),
            ).fetchone()

        if row is None:
            return None
        raw_value = row["value_text"]
        if not isinstance(raw_value, str):
            return None
        return raw_value

    def set_value(self, key: str, value: str) -> None:
        with self._db.connection() as conn:
            conn.execute(
                """
                INSERT INTO app_state (state_key, value_text, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT(state_key) DO UPDATE SET
                    value_text = excluded.value_text,
                    updated_at = excluded.updated_at
                """,
                (key, value, utc_now_iso()),
            )

    def delete_value(self, key: str) -> None:
        with self._db.connection() as conn:
            conn.execute("DELETE FROM app_state WHERE state_key = ?", (key,))
