"""全局 pytest 配置 -- 页面/配置 fixture + 临时 SQLite 数据库 fixture + Mock HTTP 传输"""

import json
from collections.abc import AsyncGenerator, Callable
from pathlib import Path

import aiosqlite
import httpx
import pytest
import pytest_asyncio
from sightline.core.config import TrackerConfig
from sightline.core.models import PageContext

Handler = Callable[[httpx.Request], httpx.Response]


class RecordingTransport(httpx.MockTransport):
    """记录所有请求的 MockTransport"""

    def __init__(self, handler: Handler) -> None:
        self.requests: list[httpx.Request] = []

        def _record(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(_record)

    def bodies(self) -> list[dict]:
        """已记录请求的 JSON 正文"""
        return [json.loads(r.content) for r in self.requests]


@pytest.fixture
def tracker_config() -> TrackerConfig:
    """测试用采集配置"""
    return TrackerConfig(apiKey="wk_test", apiHost="api.seg.test")


@pytest.fixture
def https_page() -> PageContext:
    """普通 https 页面"""
    return PageContext(url="https://app.example/landing", user_agent="pytest-agent/1.0")


@pytest.fixture
def tmp_db_path(tmp_path: Path) -> Path:
    """提供临时 SQLite 数据库路径"""
    return tmp_path / "test.db"


@pytest_asyncio.fixture
async def db_conn(tmp_db_path: Path) -> AsyncGenerator[aiosqlite.Connection, None]:
    """提供已初始化的临时 SQLite 数据库连接"""
    from sightline.core.store.sqlite_init import init_db

    conn = await aiosqlite.connect(str(tmp_db_path))
    await init_db(conn)
    yield conn
    await conn.close()


@pytest.fixture
def make_transport() -> type[RecordingTransport]:
    """RecordingTransport 构造器：make_transport(handler)"""
    return RecordingTransport


@pytest.fixture
def ok_transport() -> RecordingTransport:
    """所有请求都返回 200 的传输"""
    return RecordingTransport(lambda request: httpx.Response(200, json={}))


@pytest_asyncio.fixture
async def http_client(ok_transport: RecordingTransport) -> AsyncGenerator[httpx.AsyncClient, None]:
    """挂载 ok_transport 的 httpx 客户端"""
    async with httpx.AsyncClient(transport=ok_transport) as client:
        yield client
