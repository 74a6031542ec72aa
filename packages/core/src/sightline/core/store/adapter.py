"""StorageAdapter -- 带跨子域写入与回读校验的 KV 访问层

write() 先以最宽可注册域写入，立即回读；回读失败则去掉 domain 以 host-only 重写
（处理数字 IP、单标签主机等受限场景）。
所有异常在此层吞掉并记录 debug 日志，调用方只会看到 "值不存在" / False。
"""

import json
from typing import Any

import structlog

from ..domain import top_domain
from ..models.enums import StoreKind
from ..models.page import PageContext
from ..models.storage import CookieEntry
from .protocols import KeyValueStore

log = structlog.get_logger()

# 沙箱协议：无法使用 Cookie
SANDBOX_SCHEMES = frozenset({"file:", "chrome-extension:", "moz-extension:"})


def select_store_kind(page: PageContext) -> StoreKind:
    """按页面协议选择持久化机制"""
    return StoreKind.LOCAL if page.scheme in SANDBOX_SCHEMES else StoreKind.COOKIE


class StorageAdapter:
    """会话级持久化访问入口"""

    def __init__(self, store: KeyValueStore, page: PageContext, kind: StoreKind) -> None:
        self._store = store
        self._page = page
        self._kind = kind
        self._domain: str | None = None

    @property
    def kind(self) -> StoreKind:
        return self._kind

    @property
    def store(self) -> KeyValueStore:
        return self._store

    async def cookie_domain(self) -> str:
        """写入用的共享域（带前导点），无可用共享域时返回空串；结果缓存"""
        if self._kind is StoreKind.LOCAL:
            return ""
        if self._domain is None:
            level = await top_domain(self._page.url, self._store)
            self._domain = f".{level}" if level else ""
            log.debug("store_domain_resolved", href=self._page.url, domain=self._domain)
        return self._domain

    async def read(self, key: str) -> str | None:
        try:
            return await self._store.get(key)
        except Exception as e:
            log.debug("store_read_failed", key=key, error=str(e))
            return None

    async def read_json(self, key: str) -> Any:
        """读取 JSON 值，缺失或无法解析时返回 None"""
        raw = await self.read(key)
        if not raw:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            log.debug("store_json_malformed", key=key)
            return None

    async def write(self, key: str, value: str) -> bool:
        """写入并回读校验

        Returns:
            写入后能否立即回读
        """
        try:
            domain = await self.cookie_domain()
            entry = CookieEntry(name=key, value=value, domain=domain or None)
            log.debug("store_write", key=key, domain=entry.domain)
            await self._store.set(entry)
            if await self._store.get(key) == value:
                return True

            # 回退：host-only 重写
            fallback = entry.model_copy(update={"domain": None})
            log.debug("store_write_fallback", key=key)
            await self._store.set(fallback)
            return await self._store.get(key) == value
        except Exception as e:
            log.debug("store_write_failed", key=key, error=str(e))
            return False

    async def write_json(self, key: str, value: Any) -> bool:
        return await self.write(key, json.dumps(value, separators=(",", ":")))

    async def remove(self, key: str) -> None:
        try:
            await self._store.remove(key)
        except Exception as e:
            log.debug("store_remove_failed", key=key, error=str(e))
