"""SQLite 数据库初始化 -- 本地 KV 存储

PRAGMA 配置 + kv 表 DDL。
使用 aiosqlite 异步操作。
"""

import aiosqlite

# kv 表 DDL（expires_at 为 Unix 秒）
_KV_DDL = """
CREATE TABLE IF NOT EXISTS kv (
    key         TEXT PRIMARY KEY,
    value       TEXT NOT NULL,
    expires_at  INTEGER NOT NULL
);
"""

_KV_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_kv_expires_at ON kv(expires_at);",
]


async def init_db(conn: aiosqlite.Connection) -> None:
    """初始化数据库：设置 PRAGMA + 创建表 + 创建索引

    Args:
        conn: aiosqlite 数据库连接
    """
    await conn.execute("PRAGMA journal_mode = WAL;")
    await conn.execute("PRAGMA busy_timeout = 5000;")

    await conn.execute(_KV_DDL)
    for idx_sql in _KV_INDEXES:
        await conn.execute(idx_sql)

    await conn.commit()
