"""MessageNormalizer -- 原始调用 -> NormalizedMessage

流程:
1. options 迁移为 context（不覆盖调用方显式给出的 context）
2. writeKey / userAgent / library（调用方覆盖优先）
3. 查询串 -> campaign（调用方已给出则跳过）
4. referrer：查询串 > 缓存；与调用方 referrer 合并（调用方字段优先）并写回缓存
5. userId / anonymousId 来自当前 Identity
6. sentAt / _metadata
7. messageId = 前缀 + md5(消息 JSON + uuid4)
8. context.amp.id 来自缓存

不向调用方抛出异常；缓存的 referrer JSON 损坏按缺失处理。
"""

import copy
import hashlib
import json
import uuid
from collections.abc import Callable, Iterable, Mapping
from datetime import UTC, datetime
from typing import Any

import structlog

from .campaign import ad_params, utm_params
from .config import (
    AMP_ID_KEY,
    LIBRARY_NAME,
    LIBRARY_VERSION,
    MESSAGE_ID_PREFIX,
    REFERRER_KEY,
    TrackerConfig,
)
from .models.identity import Identity
from .models.message import NormalizedMessage
from .models.page import PageContext
from .store.adapter import StorageAdapter

log = structlog.get_logger()

QueryParser = Callable[[str], Any]


def generate_message_id(message: Mapping[str, Any]) -> str:
    """基于消息内容摘要 + 新鲜随机数生成 messageId

    同一结构的消息重复发送也会得到不同的 ID。
    """
    serialized = json.dumps(message, sort_keys=True, default=str)
    digest = hashlib.md5((serialized + str(uuid.uuid4())).encode("utf-8")).hexdigest()
    return f"{MESSAGE_ID_PREFIX}{digest}"


class MessageNormalizer:
    """消息标准化器"""

    def __init__(
        self,
        config: TrackerConfig,
        page: PageContext,
        storage: StorageAdapter,
        bundled_integrations: Iterable[str] = (),
        utm_parser: QueryParser = utm_params,
        ad_parser: QueryParser = ad_params,
    ) -> None:
        """
        Args:
            config: 采集配置
            page: 当前页面
            storage: 会话持久化
            bundled_integrations: 宿主当前激活的集成名称（用于 _metadata）
            utm_parser: UTM 参数解析器
            ad_parser: 广告 click id 解析器
        """
        self._config = config
        self._page = page
        self._storage = storage
        self._bundled = list(bundled_integrations)
        self._utm_parser = utm_parser
        self._ad_parser = ad_parser

    async def normalize(
        self,
        raw: Mapping[str, Any],
        identity: Identity,
    ) -> NormalizedMessage:
        """标准化一条原始调用

        Args:
            raw: 原始调用（page/identify/group/track/alias 形态），可带 context/options
            identity: 当前访客身份

        Returns:
            NormalizedMessage
        """
        log.debug("normalize", keys=sorted(raw.keys()))
        msg: dict[str, Any] = copy.deepcopy(dict(raw))

        options = msg.pop("options", None)
        context = msg.pop("context", None)
        if context is None:
            context = options if options is not None else {}
        if not isinstance(context, Mapping):
            log.debug("normalize_context_ignored", context_type=type(context).__name__)
            context = {}
        context = dict(context)

        msg["writeKey"] = self._config.api_key
        context["userAgent"] = self._page.user_agent
        if not context.get("library"):
            context["library"] = {"name": LIBRARY_NAME, "version": LIBRARY_VERSION}

        query = self._page.search
        if query and not context.get("campaign"):
            campaign = self._utm_parser(query)
            if campaign:
                context["campaign"] = campaign

        referrer = await self._resolve_referrer(query, context.get("referrer"))
        if referrer:
            context["referrer"] = referrer

        user_id = msg.get("userId") or identity.user_id
        if user_id:
            msg["userId"] = user_id
        else:
            msg.pop("userId", None)
        msg["anonymousId"] = identity.anonymous_id
        msg["sentAt"] = datetime.now(UTC)

        msg.pop("_metadata", None)
        if self._config.add_bundled_metadata:
            msg["_metadata"] = {
                "bundled": list(self._bundled),
                "unbundled": list(self._config.unbundled_integrations),
            }

        msg["context"] = context
        msg.pop("messageId", None)
        msg["messageId"] = generate_message_id(msg)

        amp_id = await self._storage.read(AMP_ID_KEY)
        if amp_id:
            context["amp"] = {"id": amp_id}

        normalized = NormalizedMessage.model_validate(msg)
        log.debug("normalized", message_id=normalized.message_id)
        return normalized

    async def _resolve_referrer(
        self,
        query: str,
        supplied: Any,
    ) -> Any:
        """解析 referrer：查询串优先，其次缓存；调用方字段在合并时优先

        调用方给出非 mapping 的 referrer 时整体以调用方为准。
        """
        stored = await self._storage.read_json(REFERRER_KEY)
        if not isinstance(stored, dict):
            stored = None

        ad = self._ad_parser(query) if query else None
        ad = ad or stored
        if not ad:
            return None

        await self._storage.write_json(REFERRER_KEY, ad)

        if supplied is None:
            return ad
        if not isinstance(supplied, Mapping):
            return supplied
        return {**ad, **supplied}
