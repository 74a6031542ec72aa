"""SqliteLocalStore -- 沙箱安全的本地 KV 存储

file: 与扩展页等无法使用 Cookie 的场景下的持久化实现。
domain / secure / path 属性对本地存储无意义，忽略；max_age 映射为 expires_at。
"""

import time
from pathlib import Path

import aiosqlite

from ..models.storage import CookieEntry
from .sqlite_init import init_db


class SqliteLocalStore:
    """KeyValueStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    @property
    def conn(self) -> aiosqlite.Connection:
        return self._conn

    async def get(self, name: str) -> str | None:
        cursor = await self._conn.execute(
            "SELECT value FROM kv WHERE key = ? AND expires_at > ?",
            (name, int(time.time())),
        )
        row = await cursor.fetchone()
        return row[0] if row else None

    async def set(self, entry: CookieEntry) -> None:
        await self._conn.execute(
            """
            INSERT INTO kv (key, value, expires_at) VALUES (?, ?, ?)
            ON CONFLICT(key) DO UPDATE SET
                value = excluded.value,
                expires_at = excluded.expires_at
            """,
            (entry.name, entry.value, int(time.time()) + entry.max_age),
        )
        await self._conn.commit()

    async def remove(self, name: str) -> None:
        await self._conn.execute("DELETE FROM kv WHERE key = ?", (name,))
        await self._conn.commit()

    async def close(self) -> None:
        await self._conn.close()


async def open_local_store(db_path: str | Path) -> SqliteLocalStore:
    """打开（必要时创建）本地 KV 存储

    Args:
        db_path: SQLite 数据库文件路径，":memory:" 表示内存库
    """
    if str(db_path) != ":memory:":
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    conn = await aiosqlite.connect(str(db_path))
    await init_db(conn)
    return SqliteLocalStore(conn)
