"""Tracker 应用测试配置"""

from collections.abc import AsyncGenerator

import httpx
import pytest
import pytest_asyncio


def collector_handler(peer_ids: dict[str, str | None] | None = None):
    """采集端点一律 200；/v1/id/ 请求按对等域名返回预设 ID"""
    peer_ids = peer_ids or {}

    def _handle(request: httpx.Request) -> httpx.Response:
        if request.url.path.startswith("/v1/id/"):
            return httpx.Response(200, json={"id": peer_ids.get(request.url.host)})
        return httpx.Response(200, json={"success": True})

    return _handle


@pytest.fixture
def collector(make_transport):
    """挂载 collector_handler 的 RecordingTransport（无对等域 ID）"""
    return make_transport(collector_handler())


@pytest_asyncio.fixture
async def collector_http(collector) -> AsyncGenerator[httpx.AsyncClient, None]:
    async with httpx.AsyncClient(transport=collector) as client:
        yield client


@pytest.fixture
def peer_collector(make_transport):
    """a.example 返回 X、b.example 返回空"""
    return make_transport(collector_handler({"a.example": "X", "b.example": None}))
