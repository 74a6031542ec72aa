"""PeerLookupClient -- 对等域跨域 ID 查询

GET https://{peer}/v1/id/{writeKey}，携带会话 cookie（credentials），
期望 JSON 响应 {"id": string | null}。
"""

import httpx
import structlog

from .exceptions import PeerLookupError

log = structlog.get_logger()


class PeerLookupClient:
    """对等域查询客户端"""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        timeout_s: float = 10,
    ) -> None:
        """
        Args:
            http_client: 共享 httpx 客户端，其 cookie jar 即请求携带的 credentials
            timeout_s: 单个查询超时（秒）
        """
        self._http = http_client
        self._timeout_s = timeout_s

    @staticmethod
    def lookup_url(domain: str, write_key: str) -> str:
        return f"https://{domain}/v1/id/{write_key}"

    async def fetch_id(self, domain: str, write_key: str) -> str | None:
        """查询对等域上的跨域 ID

        Returns:
            非空 ID；对等域明确表示没有 ID 时返回 None

        Raises:
            PeerLookupError: 网络失败、超时、非 2xx 或响应无法解析
        """
        url = self.lookup_url(domain, write_key)
        try:
            resp = await self._http.get(url, timeout=self._timeout_s)
        except httpx.HTTPError as e:
            log.info("peer_lookup_unreachable", domain=domain, error=str(e))
            raise PeerLookupError(domain, str(e) or type(e).__name__) from e

        if not resp.is_success:
            log.info("peer_lookup_rejected", domain=domain, status_code=resp.status_code)
            raise PeerLookupError(domain, resp.reason_phrase, resp.status_code)

        try:
            body = resp.json()
        except ValueError as e:
            raise PeerLookupError(domain, "invalid JSON", resp.status_code) from e

        found = body.get("id") if isinstance(body, dict) else None
        log.debug("peer_lookup_completed", domain=domain, found=bool(found))
        return str(found) if found else None
