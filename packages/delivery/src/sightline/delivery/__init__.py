"""Sightline Delivery -- 出站消息投递层

packages/delivery 的公开接口导出。
"""

# 核心组件
from .beacon import BeaconTransport
from .client import TEXT_PLAIN_HEADERS, CollectorClient, encode_body
from .dispatcher import DeliveryCallback, DeliveryDispatcher, scheme_for

# 异常
from .exceptions import CollectorHTTPError, DeliveryError, InvalidMessageError, TransportError

# 数据模型
from .models import DeliveryResult

# 重试队列接口
from .queue import DoneCallback, ProcessedListener, QueueFactory, QueueProcessor, RetryQueue

__all__ = [
    "DeliveryResult",
    "DeliveryDispatcher",
    "DeliveryCallback",
    "CollectorClient",
    "BeaconTransport",
    "RetryQueue",
    "QueueFactory",
    "QueueProcessor",
    "ProcessedListener",
    "DoneCallback",
    "TEXT_PLAIN_HEADERS",
    "encode_body",
    "scheme_for",
    "DeliveryError",
    "TransportError",
    "CollectorHTTPError",
    "InvalidMessageError",
]
