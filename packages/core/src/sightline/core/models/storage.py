"""CookieEntry -- 单条持久化写入的参数"""

from pydantic import BaseModel, ConfigDict, Field

from ..config import COOKIE_MAX_AGE_S


class CookieEntry(BaseModel):
    """持久化条目

    domain 为 None 表示 host-only 写入。
    """

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(min_length=1)
    value: str
    domain: str | None = Field(default=None, description="共享域，如 .example.com")
    max_age: int = Field(default=COOKIE_MAX_AGE_S, alias="maxAge", description="有效期（秒）")
    secure: bool = False
    path: str = "/"
