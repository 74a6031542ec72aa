"""Identity 包测试 fixtures"""

import asyncio

import pytest
from sightline.core.models import Identity, PageContext
from sightline.core.store import CookieStore, StorageAdapter, select_store_kind


class ScriptedLookup:
    """按域名预设结果的对等域查询替身

    results[domain] 为返回的 ID（str / None）或要抛出的异常。
    hold() 过的域名在 release() 之前不会完成。
    """

    def __init__(self, results: dict[str, str | None | Exception]) -> None:
        self.results = results
        self.requested: list[str] = []
        self.completed: list[str] = []
        self._gates: dict[str, asyncio.Event] = {}

    def hold(self, *domains: str) -> None:
        for domain in domains:
            self._gates[domain] = asyncio.Event()

    def release(self, domain: str) -> None:
        self._gates[domain].set()

    async def fetch_id(self, domain: str, write_key: str) -> str | None:
        self.requested.append(domain)
        gate = self._gates.get(domain)
        if gate is not None:
            await gate.wait()
        self.completed.append(domain)
        result = self.results[domain]
        if isinstance(result, Exception):
            raise result
        return result


async def settle(rounds: int = 5) -> None:
    """让已就绪的 task 跑完当前步骤"""
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def storage(https_page: PageContext) -> StorageAdapter:
    kind = select_store_kind(https_page)
    return StorageAdapter(CookieStore(https_page.hostname), https_page, kind)


@pytest.fixture
def identity() -> Identity:
    return Identity(anonymous_id="anon-1")


@pytest.fixture
def scripted_lookup():
    """ScriptedLookup 构造器"""
    return ScriptedLookup


@pytest.fixture
def settle_tasks():
    return settle
