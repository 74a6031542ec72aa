"""IdentityStore -- 访客身份的持久化读写

身份字段分散在独立 key 下（与 Normalizer 的 referrer 缓存 key 不相交），
写入顺序无依赖，last-writer-wins。
"""

import uuid
from datetime import datetime

import structlog

from ..config import (
    ANONYMOUS_ID_KEY,
    CROSS_DOMAIN_FROM_KEY,
    CROSS_DOMAIN_ID_KEY,
    CROSS_DOMAIN_TS_KEY,
    LEGACY_CROSS_DOMAIN_FROM_KEY,
    LEGACY_CROSS_DOMAIN_ID_KEY,
    LEGACY_CROSS_DOMAIN_TS_KEY,
    USER_ID_KEY,
)
from ..models.identity import Identity
from .adapter import StorageAdapter

log = structlog.get_logger()

# (id, fromDomain, ts)；旧 key 只在迁移没能写入新 key 时仍存在
_CROSS_DOMAIN_KEY_SETS = (
    (CROSS_DOMAIN_ID_KEY, CROSS_DOMAIN_FROM_KEY, CROSS_DOMAIN_TS_KEY),
    (LEGACY_CROSS_DOMAIN_ID_KEY, LEGACY_CROSS_DOMAIN_FROM_KEY, LEGACY_CROSS_DOMAIN_TS_KEY),
)


class IdentityStore:
    """Identity 持久化"""

    def __init__(self, storage: StorageAdapter) -> None:
        self._storage = storage

    async def load(self) -> Identity:
        """加载已持久化的身份；没有 anonymous_id 时生成 uuid4 并写回"""
        anonymous_id = await self._storage.read(ANONYMOUS_ID_KEY)
        if not anonymous_id:
            anonymous_id = str(uuid.uuid4())
            await self._storage.write(ANONYMOUS_ID_KEY, anonymous_id)
            log.debug("anonymous_id_created", anonymous_id=anonymous_id)

        identity = Identity(
            anonymous_id=anonymous_id,
            user_id=await self._storage.read(USER_ID_KEY) or None,
        )
        await self.load_cross_domain(identity)
        return identity

    async def load_cross_domain(self, identity: Identity) -> bool:
        """把已缓存的跨域 ID 填入 identity

        Returns:
            是否存在缓存的跨域 ID
        """
        for id_key, from_key, ts_key in _CROSS_DOMAIN_KEY_SETS:
            xid = await self._storage.read(id_key)
            if xid:
                break
        else:
            return False
        identity.cross_domain_id = xid
        identity.from_domain = await self._storage.read(from_key) or None
        ts = await self._storage.read(ts_key)
        if ts:
            try:
                identity.resolved_at = datetime.fromisoformat(ts)
            except ValueError:
                log.debug("cross_domain_ts_malformed", value=ts)
        return True

    async def save_user_id(self, user_id: str) -> None:
        await self._storage.write(USER_ID_KEY, user_id)

    async def save_anonymous_id(self, anonymous_id: str) -> None:
        await self._storage.write(ANONYMOUS_ID_KEY, anonymous_id)

    async def save_cross_domain(
        self,
        cross_domain_id: str,
        from_domain: str,
        resolved_at: datetime,
    ) -> None:
        await self._storage.write(CROSS_DOMAIN_ID_KEY, cross_domain_id)
        await self._storage.write(CROSS_DOMAIN_FROM_KEY, from_domain)
        await self._storage.write(CROSS_DOMAIN_TS_KEY, resolved_at.isoformat())
