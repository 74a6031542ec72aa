"""旧 key 迁移 -- 废弃的跨域 ID key 一次性改名

xdid / xdid_domain / xdid_ts -> sl_xid / sl_xid_fd / sl_xid_ts，
全部复制成功后才清除旧 key。幂等：旧 key 不存在或新 key 已存在时不做改写。
"""

import structlog
from sightline.core.config import (
    CROSS_DOMAIN_FROM_KEY,
    CROSS_DOMAIN_ID_KEY,
    CROSS_DOMAIN_TS_KEY,
    LEGACY_CROSS_DOMAIN_FROM_KEY,
    LEGACY_CROSS_DOMAIN_ID_KEY,
    LEGACY_CROSS_DOMAIN_TS_KEY,
)
from sightline.core.store import StorageAdapter

log = structlog.get_logger()

# 旧 key -> 新 key
LEGACY_KEY_MAP: dict[str, str] = {
    LEGACY_CROSS_DOMAIN_ID_KEY: CROSS_DOMAIN_ID_KEY,
    LEGACY_CROSS_DOMAIN_FROM_KEY: CROSS_DOMAIN_FROM_KEY,
    LEGACY_CROSS_DOMAIN_TS_KEY: CROSS_DOMAIN_TS_KEY,
}


async def migrate_legacy_keys(storage: StorageAdapter) -> bool:
    """迁移旧的跨域 ID key

    Returns:
        True 表示本次执行了迁移
    """
    legacy_id = await storage.read(LEGACY_CROSS_DOMAIN_ID_KEY)
    if not legacy_id:
        return False

    current_id = await storage.read(CROSS_DOMAIN_ID_KEY)
    if not current_id:
        for old_key, new_key in LEGACY_KEY_MAP.items():
            value = await storage.read(old_key)
            if value and not await storage.write(new_key, value):
                # 新 key 写不进去时保留旧 key，旧值是访客 ID 的唯一副本
                log.warning("legacy_cross_domain_id_copy_failed", key=new_key)
                return False

    for old_key in LEGACY_KEY_MAP:
        await storage.remove(old_key)

    log.info("legacy_cross_domain_id_migrated", copied=not current_id)
    return not current_id
