"""DeliveryDispatcher -- 标准化 + 投递路径选择

投递路径严格按优先级：
  a. 已配置持久化重试队列 -> 入队后返回（结果由队列 processed 事件上报，不调用 callback）
  b. 已配置 beacon 且平台可用 -> sendBeacon；被拒绝（如载荷过大）时本次调用内退回 c
  c. 同步请求 -> callback(error, result)

传输错误不重试（重试由队列负责），也不向调用方抛出。
消息无法标准化时不发送，以 InvalidMessageError 经 callback / DeliveryResult.error 上报。
"""

from collections.abc import Callable, Mapping
from typing import Any

import structlog
from pydantic import ValidationError
from sightline.core.config import TrackerConfig
from sightline.core.models import DeliveryTransport, Identity, PageContext, QueueItem
from sightline.core.normalizer import MessageNormalizer
from ulid import ULID

from .beacon import BeaconTransport
from .client import TEXT_PLAIN_HEADERS, CollectorClient, encode_body
from .exceptions import DeliveryError, InvalidMessageError
from .models import DeliveryResult
from .queue import RetryQueue

log = structlog.get_logger()

DeliveryCallback = Callable[[DeliveryError | None, DeliveryResult], None]


def scheme_for(page_scheme: str) -> str:
    """页面协议恰为 http: 时用 http:，其余（https:、file:、扩展页等）一律 https:"""
    return "http:" if page_scheme == "http:" else "https:"


class DeliveryDispatcher:
    """出站消息分发器"""

    def __init__(
        self,
        config: TrackerConfig,
        page: PageContext,
        normalizer: MessageNormalizer,
        client: CollectorClient,
        beacon: BeaconTransport | None = None,
        retry_queue: RetryQueue | None = None,
    ) -> None:
        """
        Args:
            config: 采集配置（apiHost / beacon / retryQueue）
            page: 当前页面（决定 URL 协议）
            normalizer: 消息标准化器
            client: 同步请求客户端
            beacon: beacon 能力，None 表示平台不支持
            retry_queue: 持久化重试队列，None 表示未接入
        """
        self._config = config
        self._page = page
        self._normalizer = normalizer
        self._client = client
        self._beacon = beacon
        self._retry_queue = retry_queue

    def url_for(self, endpoint_path: str) -> str:
        """拼接采集端点绝对 URL"""
        return f"{scheme_for(self._page.scheme)}//{self._config.api_host}{endpoint_path}"

    async def dispatch(
        self,
        endpoint_path: str,
        raw_message: Mapping[str, Any],
        identity: Identity,
        callback: DeliveryCallback | None = None,
    ) -> DeliveryResult:
        """标准化并投递一条消息

        Args:
            endpoint_path: 端点路径（/p /i /g /t /a）
            raw_message: 原始调用
            identity: 当前访客身份
            callback: 可选回调 (error, result)；队列路径不调用

        Returns:
            DeliveryResult
        """
        url = self.url_for(endpoint_path)
        try:
            message = await self._normalizer.normalize(raw_message, identity)
        except ValidationError as e:
            # 未发送；transport 记为 request，结果只经 error 上报
            log.warning("message_invalid", url=url, error_count=e.error_count())
            result = DeliveryResult(
                transport=DeliveryTransport.REQUEST,
                url=url,
                error=InvalidMessageError(str(e)),
            )
            self._notify(callback, result)
            return result
        payload = message.to_wire()

        with structlog.contextvars.bound_contextvars(
            dispatch_id=str(ULID()),
            message_id=message.message_id,
        ):
            # a. 持久化重试队列
            if self._config.retry_queue and self._retry_queue is not None:
                self._retry_queue.add_item(
                    QueueItem(url=url, headers=dict(TEXT_PLAIN_HEADERS), payload=payload)
                )
                log.debug("message_enqueued", url=url)
                return DeliveryResult(
                    transport=DeliveryTransport.QUEUE,
                    url=url,
                    message_id=message.message_id,
                )

            # b. beacon
            if self._config.beacon and self._beacon is not None and self._beacon.available:
                if self._beacon.send(url, encode_body(payload)):
                    log.debug("message_beaconed", url=url)
                    result = DeliveryResult(
                        transport=DeliveryTransport.BEACON,
                        url=url,
                        message_id=message.message_id,
                    )
                    self._notify(callback, result)
                    return result
                log.info("beacon_fallback_to_request", url=url)

            # c. 同步请求
            try:
                resp = await self._client.post(url, payload, dict(TEXT_PLAIN_HEADERS))
            except DeliveryError as e:
                result = DeliveryResult(
                    transport=DeliveryTransport.REQUEST,
                    url=url,
                    message_id=message.message_id,
                    error=e,
                )
            else:
                result = DeliveryResult(
                    transport=DeliveryTransport.REQUEST,
                    url=url,
                    message_id=message.message_id,
                    response=resp,
                )
            log.debug("message_sent", url=url, ok=result.ok, status_code=result.status_code)
            self._notify(callback, result)
            return result

    @staticmethod
    def _notify(callback: DeliveryCallback | None, result: DeliveryResult) -> None:
        if callback is None:
            return
        try:
            callback(result.error, result)
        except Exception as e:
            log.error(
                "delivery_callback_failed",
                error=str(e),
                error_type=type(e).__name__,
            )
