"""Delivery 异常体系

投递错误只通过 DeliveryResult / callback / 队列 processed 事件上报，
Dispatcher 不向调用方抛出。
"""


class DeliveryError(Exception):
    """Delivery 包基础异常"""

    def __init__(self, message: str, recoverable: bool = True) -> None:
        """
        Args:
            message: 错误描述
            recoverable: 是否可通过重试（持久化队列）恢复
        """
        super().__init__(message)
        self.recoverable = recoverable


class TransportError(DeliveryError):
    """采集端点不可达（连接失败、超时、DNS 解析失败等）"""

    def __init__(self, url: str, original_error: Exception) -> None:
        """
        Args:
            url: 请求地址
            original_error: 原始异常
        """
        super().__init__(f"采集端点不可达: {url} -- {original_error}", recoverable=True)
        self.url = url
        self.original_error = original_error


class CollectorHTTPError(DeliveryError):
    """采集端点返回非 2xx"""

    def __init__(self, url: str, status_code: int, reason: str) -> None:
        super().__init__(reason or f"HTTP {status_code}", recoverable=status_code >= 500)
        self.url = url
        self.status_code = status_code
        self.reason = reason


class InvalidMessageError(DeliveryError):
    """调用方消息无法标准化，未发送；重试同一载荷也不会成功"""

    def __init__(self, reason: str) -> None:
        super().__init__(f"消息无法标准化: {reason}", recoverable=False)
        self.reason = reason
