"""Tracker 装配 -- 会话组件创建

create_tracker(): 存储选择 + Identity 加载 + Normalizer / Dispatcher / Resolver 组装。
调用方随后 await tracker.initialize() 触发启动时的跨域 ID 解析。
"""

from collections.abc import Iterable
from pathlib import Path

import httpx
import structlog
from sightline.core.config import RETRY_QUEUE_NAMESPACE, TrackerConfig, load_tracker_config
from sightline.core.models import PageContext
from sightline.core.normalizer import MessageNormalizer
from sightline.core.store import IdentityStore, create_storage
from sightline.delivery import (
    BeaconTransport,
    CollectorClient,
    DeliveryDispatcher,
    DeliveryError,
    QueueFactory,
    QueueProcessor,
    RetryQueue,
)
from sightline.identity import PeerLookupClient

from .services.tracker_service import Tracker

log = structlog.get_logger()


def _log_processed(error: DeliveryError | None, response: httpx.Response | None) -> None:
    if error is not None:
        log.warning("queue_item_processed", ok=False, error=str(error))
    else:
        log.debug(
            "queue_item_processed",
            ok=True,
            status_code=response.status_code if response is not None else None,
        )


async def create_tracker(
    page: PageContext,
    config: TrackerConfig | None = None,
    *,
    http_client: httpx.AsyncClient | None = None,
    queue_factory: QueueFactory | None = None,
    bundled_integrations: Iterable[str] = (),
    local_store_path: str | Path | None = None,
) -> Tracker:
    """创建采集会话

    Args:
        page: 当前页面
        config: 采集配置，None 时从环境变量加载
        http_client: 共享 httpx 客户端，None 时自建并在 aclose() 时关闭
        queue_factory: 外部持久化重试队列工厂 (namespace, processor) -> RetryQueue
        bundled_integrations: 宿主激活的集成名称
        local_store_path: 沙箱模式下本地存储路径

    Returns:
        Tracker 实例（尚未 initialize）
    """
    config = config or load_tracker_config()
    owns_http_client = http_client is None
    http = http_client or httpx.AsyncClient()

    # Cookie 模式下与 httpx 共享 jar，对等域查询即携带 credentials
    storage = await create_storage(page, http.cookies, local_store_path)
    identity = await IdentityStore(storage).load()

    client = CollectorClient(http, timeout_s=config.request_timeout_s)
    beacon = BeaconTransport(http) if config.beacon else None

    retry_queue: RetryQueue | None = None
    if config.retry_queue:
        if queue_factory is None:
            log.warning("retry_queue_unavailable", reason="no queue factory supplied")
        else:
            retry_queue = queue_factory(RETRY_QUEUE_NAMESPACE, QueueProcessor(client))
            retry_queue.on_processed(_log_processed)

    normalizer = MessageNormalizer(
        config,
        page,
        storage,
        bundled_integrations=bundled_integrations,
    )
    dispatcher = DeliveryDispatcher(
        config,
        page,
        normalizer,
        client,
        beacon=beacon,
        retry_queue=retry_queue,
    )
    lookup = PeerLookupClient(http, timeout_s=config.cross_domain_lookup_timeout_s)

    log.info(
        "tracker_created",
        api_host=config.api_host,
        store=storage.kind.value,
        beacon=beacon is not None,
        retry_queue=retry_queue is not None,
    )
    return Tracker(
        config,
        page,
        storage,
        identity,
        dispatcher,
        lookup,
        http,
        owns_http_client=owns_http_client,
        beacon=beacon,
        retry_queue=retry_queue,
    )
