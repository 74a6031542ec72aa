"""持久化重试队列接口 -- 仅定义本包消费的接口

队列引擎本身是外部协作方：以命名空间 + 单项处理器构造，
提供 start/stop/add_item，并在每项处理完成后触发 processed(error, response)。
QueueProcessor 在发送前刷新 sentAt，避免时钟偏差导致采集端拒收。
"""

from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from typing import Protocol

import httpx
import structlog
from sightline.core.models import QueueItem

from .client import CollectorClient
from .exceptions import DeliveryError

log = structlog.get_logger()

DoneCallback = Callable[[DeliveryError | None, httpx.Response | None], None]
ProcessedListener = Callable[[DeliveryError | None, httpx.Response | None], None]


class RetryQueue(Protocol):
    """持久化、至少一次投递的重试队列"""

    def start(self) -> None:
        """开始处理队列"""
        ...

    def stop(self) -> None:
        """停止处理队列"""
        ...

    def add_item(self, item: QueueItem) -> None:
        """入队一个投递项"""
        ...

    def on_processed(self, listener: ProcessedListener) -> None:
        """注册 processed(error, response) 监听器，每项完成时触发一次"""
        ...


class QueueProcessor:
    """队列单项处理器：(item, done) -> None"""

    def __init__(self, client: CollectorClient) -> None:
        self._client = client

    async def __call__(self, item: QueueItem, done: DoneCallback) -> None:
        # 发送前刷新 sentAt
        item.payload["sentAt"] = datetime.now(UTC).isoformat()
        try:
            resp = await self._client.post(item.url, item.payload, item.headers)
        except DeliveryError as e:
            log.info("queue_item_failed", url=item.url, error=str(e))
            done(e, None)
            return
        done(None, resp)


QueueFactory = Callable[[str, Callable[[QueueItem, DoneCallback], Awaitable[None]]], RetryQueue]
