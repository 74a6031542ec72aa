"""Tracker -- 会话级上下文

持有 Identity / StorageAdapter / Dispatcher / Resolver，替代全局的
"当前用户" 对象：Identity 显式传入标准化与投递调用。

宿主分发流程：
1. invoke(action, payload) 按 ActionType 预处理载荷
2. identify 携带 userId 时更新并持久化 Identity
3. Dispatcher 标准化并选择投递路径
"""

from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

import httpx
import structlog
from sightline.core.config import TrackerConfig
from sightline.core.models import ActionType, Identity, PageContext
from sightline.core.store import IdentityStore, SqliteLocalStore, StorageAdapter
from sightline.delivery import (
    BeaconTransport,
    DeliveryCallback,
    DeliveryDispatcher,
    DeliveryResult,
    RetryQueue,
)
from sightline.identity import (
    CompletionCallback,
    CrossDomainIdentityResolver,
    PeerLookupClient,
)

from .actions import prepare_action

log = structlog.get_logger()


class Tracker:
    """采集会话"""

    def __init__(
        self,
        config: TrackerConfig,
        page: PageContext,
        storage: StorageAdapter,
        identity: Identity,
        dispatcher: DeliveryDispatcher,
        lookup: PeerLookupClient,
        http_client: httpx.AsyncClient,
        owns_http_client: bool = False,
        beacon: BeaconTransport | None = None,
        retry_queue: RetryQueue | None = None,
    ) -> None:
        self.config = config
        self.page = page
        self.storage = storage
        self.identity = identity
        self.dispatcher = dispatcher
        self._identity_store = IdentityStore(storage)
        self._http = http_client
        self._owns_http_client = owns_http_client
        self._beacon = beacon
        self._retry_queue = retry_queue
        self.resolver = CrossDomainIdentityResolver(
            config,
            page,
            storage,
            identity,
            lookup,
            on_resolved=self._on_identity_resolved,
        )

    async def initialize(self, callback: CompletionCallback | None = None) -> Identity:
        """启动：开始处理重试队列，运行跨域 ID 解析（每个会话一次）"""
        if self._retry_queue is not None:
            self._retry_queue.start()
        identity = await self.resolver.initialize(callback)
        log.info(
            "tracker_initialized",
            store=self.storage.kind.value,
            resolver_state=self.resolver.state.value,
        )
        return identity

    async def invoke(
        self,
        action: ActionType | str,
        payload: Mapping[str, Any],
        callback: DeliveryCallback | None = None,
    ) -> DeliveryResult:
        """宿主分发入口：一种动作类型对应一个端点"""
        action = ActionType(action)
        message = prepare_action(action, payload, self.identity)

        if action is ActionType.IDENTIFY and message.get("userId"):
            user_id = str(message["userId"])
            if user_id != self.identity.user_id:
                self.identity.user_id = user_id
                await self._identity_store.save_user_id(user_id)

        log.debug("invoke", action=action.value)
        return await self.dispatcher.dispatch(
            action.endpoint,
            message,
            self.identity,
            callback,
        )

    async def page(
        self,
        category: str | None = None,
        name: str | None = None,
        properties: Mapping[str, Any] | None = None,
        options: Mapping[str, Any] | None = None,
        callback: DeliveryCallback | None = None,
    ) -> DeliveryResult:
        payload = _base_payload(options)
        payload["properties"] = dict(properties or {})
        if category is not None:
            payload["category"] = category
        if name is not None:
            payload["name"] = name
        return await self.invoke(ActionType.PAGE, payload, callback)

    async def identify(
        self,
        user_id: str | None = None,
        traits: Mapping[str, Any] | None = None,
        options: Mapping[str, Any] | None = None,
        callback: DeliveryCallback | None = None,
    ) -> DeliveryResult:
        payload = _base_payload(options)
        if user_id is not None:
            payload["userId"] = user_id
        if traits:
            payload["traits"] = dict(traits)
        return await self.invoke(ActionType.IDENTIFY, payload, callback)

    async def group(
        self,
        group_id: str,
        traits: Mapping[str, Any] | None = None,
        options: Mapping[str, Any] | None = None,
        callback: DeliveryCallback | None = None,
    ) -> DeliveryResult:
        payload = _base_payload(options)
        payload["groupId"] = group_id
        payload["traits"] = dict(traits or {})
        return await self.invoke(ActionType.GROUP, payload, callback)

    async def track(
        self,
        event: str,
        properties: Mapping[str, Any] | None = None,
        options: Mapping[str, Any] | None = None,
        callback: DeliveryCallback | None = None,
    ) -> DeliveryResult:
        payload = _base_payload(options)
        payload["event"] = event
        payload["properties"] = dict(properties or {})
        return await self.invoke(ActionType.TRACK, payload, callback)

    async def alias(
        self,
        to: str,
        from_: str | None = None,
        options: Mapping[str, Any] | None = None,
        callback: DeliveryCallback | None = None,
    ) -> DeliveryResult:
        payload = _base_payload(options)
        payload["to"] = to
        if from_ is not None:
            payload["from"] = from_
        return await self.invoke(ActionType.ALIAS, payload, callback)

    async def aclose(self) -> None:
        """等待进行中的查询、停止队列、等待 beacon、释放自有资源"""
        # 查询 task 可能仍在发送解析后的 identify，需先于队列与 beacon 收尾
        await self.resolver.aclose()
        if self._retry_queue is not None:
            self._retry_queue.stop()
        if self._beacon is not None:
            await self._beacon.flush()
        if isinstance(self.storage.store, SqliteLocalStore):
            await self.storage.store.close()
        if self._owns_http_client:
            await self._http.aclose()

    async def _on_identity_resolved(self, identity: Identity) -> None:
        # crossDomainId 已写入 identity.traits，由 identify 预处理合并
        await self.invoke(ActionType.IDENTIFY, _base_payload(None))


def _base_payload(options: Mapping[str, Any] | None) -> dict[str, Any]:
    payload: dict[str, Any] = {"timestamp": datetime.now(UTC).isoformat()}
    if options is not None:
        payload["options"] = dict(options)
    return payload
