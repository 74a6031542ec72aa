"""NormalizedMessage Domain Model

出站消息的规范格式。字段名在 Python 侧为 snake_case，
通过 alias 序列化为线上的 camelCase（writeKey / anonymousId / sentAt ...）。
调用方附带的其他字段（event / properties / traits 等）原样透传。
调用方可覆盖的 context 字段（library / referrer / campaign）结构不符时按原值保留，不报错。
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class LibraryInfo(BaseModel):
    """发送方库信息"""

    model_config = ConfigDict(extra="allow")

    name: str | None = Field(default=None, description="库名称")
    version: str | None = Field(default=None, description="库版本")


class ReferrerInfo(BaseModel):
    """广告来源（click id）"""

    model_config = ConfigDict(extra="allow")

    id: str | int | None = Field(default=None, description="来源 click id")
    type: str | None = Field(default=None, description="来源网络类型")


class AmpInfo(BaseModel):
    """AMP 客户端信息"""

    id: str = Field(description="AMP client id")


class BundleMetadata(BaseModel):
    """打包集成元数据"""

    bundled: list[str] = Field(default_factory=list, description="已激活集成")
    unbundled: list[str] = Field(default_factory=list, description="未打包目的地")


class MessageContext(BaseModel):
    """消息上下文，允许调用方附加任意字段"""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    user_agent: str | None = Field(default=None, alias="userAgent")
    library: LibraryInfo | Any = Field(default=None, union_mode="left_to_right")
    campaign: dict[str, Any] | Any = Field(default=None, union_mode="left_to_right")
    referrer: ReferrerInfo | Any = Field(default=None, union_mode="left_to_right")
    amp: AmpInfo | None = None


class NormalizedMessage(BaseModel):
    """NormalizedMessage -- 投递到采集端点的消息"""

    model_config = ConfigDict(extra="allow", populate_by_name=True, coerce_numbers_to_str=True)

    write_key: str = Field(alias="writeKey", description="项目写入密钥")
    anonymous_id: str = Field(alias="anonymousId", min_length=1)
    user_id: str | None = Field(default=None, alias="userId")
    context: MessageContext = Field(default_factory=MessageContext)
    sent_at: datetime = Field(alias="sentAt", description="发送时间")
    message_id: str = Field(alias="messageId", min_length=1, description="每次发送唯一")
    metadata: BundleMetadata | None = Field(default=None, alias="_metadata")

    def to_wire(self) -> dict[str, Any]:
        """序列化为线上 JSON 结构（camelCase，省略空字段）"""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
