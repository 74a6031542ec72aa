"""Identity Domain Model

anonymous_id 初始化后始终存在；cross_domain_id 每个浏览器档案至多设置一次，
之后不可变（仅旧 key 迁移路径例外）。
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Identity(BaseModel):
    """访客身份 -- 由会话持有，显式传入 Normalizer 和 Dispatcher"""

    model_config = ConfigDict(populate_by_name=True)

    user_id: str | None = Field(default=None, alias="userId")
    anonymous_id: str = Field(alias="anonymousId", min_length=1)
    cross_domain_id: str | None = Field(default=None, alias="crossDomainId")
    from_domain: str | None = Field(default=None, alias="fromDomain")
    resolved_at: datetime | None = Field(default=None, alias="resolvedAt")
    traits: dict[str, Any] = Field(
        default_factory=dict,
        description="待合并到下一次 identify 的 traits",
    )
