"""QueueItem -- Dispatcher 产出、外部持久化重试队列消费的投递项"""

from typing import Any

from pydantic import BaseModel, Field


class QueueItem(BaseModel):
    """重试队列投递项"""

    url: str = Field(description="采集端点绝对 URL")
    headers: dict[str, str] = Field(default_factory=dict, description="请求头")
    payload: dict[str, Any] = Field(description="线上格式消息（JSON 可序列化）")
