"""CollectorClient -- 采集端点 HTTP 调用封装

POST text/plain + JSON 正文。连接类错误包装为 TransportError，
非 2xx 包装为 CollectorHTTPError（以状态短语为键）。
"""

import json
import time
from typing import Any

import httpx
import structlog

from .exceptions import CollectorHTTPError, TransportError

log = structlog.get_logger()

TEXT_PLAIN_HEADERS = {"Content-Type": "text/plain"}


def encode_body(payload: dict[str, Any]) -> str:
    """消息 -> JSON 文本正文"""
    return json.dumps(payload, separators=(",", ":"), ensure_ascii=False)


class CollectorClient:
    """采集端点客户端"""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        timeout_s: float = 30,
    ) -> None:
        """
        Args:
            http_client: 共享的 httpx 异步客户端（由会话持有）
            timeout_s: 请求超时（秒）
        """
        self._http = http_client
        self._timeout_s = timeout_s

    async def post(
        self,
        url: str,
        payload: dict[str, Any],
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        """发送一条消息

        Raises:
            TransportError: 网络失败或超时
            CollectorHTTPError: 非 2xx 响应
        """
        start_time = time.monotonic()
        try:
            resp = await self._http.post(
                url,
                content=encode_body(payload).encode("utf-8"),
                headers=headers or TEXT_PLAIN_HEADERS,
                timeout=self._timeout_s,
            )
        except httpx.HTTPError as e:
            log.warning(
                "collector_unreachable",
                url=url,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise TransportError(url=url, original_error=e) from e

        duration_ms = int((time.monotonic() - start_time) * 1000)
        if not resp.is_success:
            log.warning(
                "collector_rejected",
                url=url,
                status_code=resp.status_code,
                duration_ms=duration_ms,
            )
            raise CollectorHTTPError(url, resp.status_code, resp.reason_phrase)

        log.debug("collector_accepted", url=url, duration_ms=duration_ms)
        return resp
