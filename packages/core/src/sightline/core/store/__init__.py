"""Sightline Core Store -- 持久化实现

提供工厂函数按页面协议创建会话级 StorageAdapter。
"""

from pathlib import Path

import httpx

from ..config import get_local_store_path
from ..models.enums import StoreKind
from ..models.page import PageContext
from .adapter import SANDBOX_SCHEMES, StorageAdapter, select_store_kind
from .cookie_store import CookieStore
from .identity_store import IdentityStore
from .local_store import SqliteLocalStore, open_local_store
from .protocols import KeyValueStore
from .sqlite_init import init_db


async def create_storage(
    page: PageContext,
    cookies: httpx.Cookies | None = None,
    local_store_path: str | Path | None = None,
) -> StorageAdapter:
    """创建 StorageAdapter（每个会话只决定一次存储机制）

    Args:
        page: 当前页面
        cookies: Cookie 模式下共享的 cookie jar
        local_store_path: 本地模式下的 SQLite 路径，None 时读取配置

    Returns:
        StorageAdapter 实例
    """
    kind = select_store_kind(page)
    if kind is StoreKind.LOCAL:
        store: KeyValueStore = await open_local_store(
            local_store_path or get_local_store_path()
        )
    else:
        store = CookieStore(page.hostname, cookies)
    return StorageAdapter(store, page, kind)


__all__ = [
    "StorageAdapter",
    "create_storage",
    "select_store_kind",
    "SANDBOX_SCHEMES",
    "KeyValueStore",
    "CookieStore",
    "SqliteLocalStore",
    "open_local_store",
    "IdentityStore",
    "init_db",
]
