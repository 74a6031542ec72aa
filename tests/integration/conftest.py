"""集成测试共享 fixture"""

import os
from collections.abc import AsyncGenerator
from pathlib import Path

import httpx
import pytest
import pytest_asyncio


class PeerNetwork:
    """模拟采集端点 + 对等域 ID 服务

    对等域按域名保存访客 ID，None 表示该域没有见过此访客；
    Exception 表示该域不可达。
    """

    def __init__(self, peers: dict[str, str | None | Exception]) -> None:
        self.peers = peers
        self.lookups: list[str] = []
        self.collected: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if request.url.path.startswith("/v1/id/"):
            self.lookups.append(request.url.host)
            answer = self.peers.get(request.url.host)
            if isinstance(answer, Exception):
                raise httpx.ConnectError(str(answer), request=request)
            return httpx.Response(200, json={"id": answer})
        self.collected.append(request)
        return httpx.Response(200, json={"success": True})

    def paths(self) -> list[str]:
        return [r.url.path for r in self.collected]


@pytest.fixture
def network() -> PeerNetwork:
    return PeerNetwork({"a.example": "X", "b.example": None})


@pytest_asyncio.fixture
async def browser(network: PeerNetwork) -> AsyncGenerator[httpx.AsyncClient, None]:
    """同一浏览器档案：共享 cookie jar 的 httpx 客户端"""
    async with httpx.AsyncClient(transport=httpx.MockTransport(network)) as client:
        yield client


@pytest.fixture
def sightline_env(tmp_path: Path):
    """通过环境变量提供配置"""
    os.environ["SIGHTLINE_API_KEY"] = "wk_env"
    os.environ["SIGHTLINE_API_HOST"] = "api.seg.test"
    os.environ["SIGHTLINE_CROSS_DOMAIN_ID_SERVERS"] = "a.example,b.example"
    os.environ["SIGHTLINE_LOCAL_STORE_PATH"] = str(tmp_path / "kv.db")
    yield
    for name in (
        "SIGHTLINE_API_KEY",
        "SIGHTLINE_API_HOST",
        "SIGHTLINE_CROSS_DOMAIN_ID_SERVERS",
        "SIGHTLINE_LOCAL_STORE_PATH",
    ):
        os.environ.pop(name, None)
