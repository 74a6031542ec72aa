"""数据模型 -- DeliveryResult

Dispatcher 的异步结果，等价于回调的 (error, response)。
"""

import httpx
from pydantic import BaseModel, ConfigDict, Field
from sightline.core.models import DeliveryTransport

from .exceptions import DeliveryError


class DeliveryResult(BaseModel):
    """一次 dispatch 的结果

    - queue: 已交给重试队列，结果稍后由队列 processed 事件上报
    - beacon: 平台已接受发送，无响应可读
    - request: 同步请求完成，response 或 error 二者之一
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    transport: DeliveryTransport = Field(description="实际使用的投递路径")
    url: str = Field(description="采集端点绝对 URL")
    message_id: str = Field(default="", description="本次发送的 messageId")
    error: DeliveryError | None = Field(default=None, description="投递错误")
    response: httpx.Response | None = Field(default=None, description="HTTP 响应")

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def status_code(self) -> int | None:
        return self.response.status_code if self.response is not None else None
