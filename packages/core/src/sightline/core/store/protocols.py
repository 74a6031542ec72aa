"""Store Protocol 接口定义

KeyValueStore 是 Cookie 与本地 KV 两种持久化机制的共同接口，
使用 Python Protocol 实现结构化子类型（duck typing）。
"""

from typing import Protocol

from ..models.storage import CookieEntry


class KeyValueStore(Protocol):
    """底层持久化能力（Cookie 或沙箱安全的本地存储）"""

    async def get(self, name: str) -> str | None:
        """读取当前页面可见的值，不存在返回 None"""
        ...

    async def set(self, entry: CookieEntry) -> None:
        """写入条目；不被接受的写入静默丢弃（与浏览器行为一致）"""
        ...

    async def remove(self, name: str) -> None:
        """删除当前页面可见的同名条目"""
        ...
