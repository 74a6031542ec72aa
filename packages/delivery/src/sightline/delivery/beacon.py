"""BeaconTransport -- best-effort 的 fire-and-forget 投递

语义对齐浏览器 sendBeacon：send() 立即返回是否被平台接受，
实际传输在后台 task 中完成，结果不可见（失败只记日志）。
"""

import asyncio

import httpx
import structlog
from sightline.core.config import BEACON_MAX_BYTES

log = structlog.get_logger()


class BeaconTransport:
    """后台 POST 投递"""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        max_bytes: int = BEACON_MAX_BYTES,
    ) -> None:
        self._http = http_client
        self._max_bytes = max_bytes
        self._pending: set[asyncio.Task] = set()

    @property
    def available(self) -> bool:
        """当前是否有可调度的事件循环"""
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            return False
        return True

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def send(self, url: str, body: str) -> bool:
        """提交一个 beacon

        Returns:
            True 表示已接受并排队传输；False 表示被拒绝（载荷过大或不可用）
        """
        data = body.encode("utf-8")
        if len(data) > self._max_bytes:
            log.info("beacon_rejected", url=url, size=len(data), max_bytes=self._max_bytes)
            return False
        if not self.available:
            return False

        task = asyncio.create_task(self._transmit(url, data))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return True

    async def _transmit(self, url: str, data: bytes) -> None:
        try:
            resp = await self._http.post(
                url,
                content=data,
                headers={"Content-Type": "text/plain"},
            )
            log.debug("beacon_sent", url=url, status_code=resp.status_code)
        except httpx.HTTPError as e:
            # fire-and-forget：无调用方可接收错误
            log.warning("beacon_failed", url=url, error=str(e))

    async def flush(self) -> None:
        """等待所有已提交的 beacon 传输完成"""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
