from __future__ import annotations

from typing import Optional

import aiosqlite


class Database:
    def __init__(self, path: str):
        self.path = path
        self.conn: Optional[aiosqlite.Connection] = None

    @classmethod
    async def connect(cls, path: str) -> "Database":
        db = cls(path)
        db.conn = await aiosqlite.connect(path)
        db.conn.row_factory = aiosqlite.Row
        if path != ":memory:":
            await db.conn.execute("PRAGMA journal_mode=WAL")
        await db.conn.execute("PRAGMA synchronous=NORMAL")
        await db.conn.execute("PRAGMA busy_timeout=5000")
        return db

    async def init(self) -> None:
        assert self.conn is not None
        await self.conn.execute(
            """
            CREATE TABLE IF NOT EXISTS state (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL
            )
            """
        )
        await self.conn.commit()

    async def close(self) -> None:
        if self.conn is not None:
            await self.conn.close()
            self.conn = None

    async def set_state(self, key: str, value: str) -> None:
        assert self.conn is not None
        await self.conn.execute(
            """
            INSERT INTO state (key, value)
            VALUES (?, ?)
            ON CONFLICT(key) DO UPDATE SET value = excluded.value
            """,
            (key, value),
        )
        await self.conn.commit()

    async def get_state(self, key: str) -> Optional[str]:
        assert self.conn is not None
        cur = await self.conn.execute(
            "SELECT value FROM state WHERE key = ?",
            (key,),
        )
        row = await cur.fetchone()
        await cur.close()
        return row["value"] if row else None

    async def get_state_int(self, key: str, default: int = 0) -> int:
        value = await self.get_state(key)
        if value is None:
            return default
        try:
            return int(value)
        except ValueError:
            return default

    async def increment_state_int(self, key: str, amount: int) -> int:
        current = await self.get_state_int(key, 0)
        new_value = current + amount
        await self.set_state(key, str(new_value))
        return new_value
