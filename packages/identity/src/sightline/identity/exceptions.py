"""Identity 异常体系

单个对等域查询失败（PeerLookupError）不会使整体解析失败；
只有全部查询结束且零可用结果、至少一个出错时，才以 IdentityResolutionError 上报。
"""


class IdentityError(Exception):
    """Identity 包基础异常"""

    def __init__(self, message: str, recoverable: bool = True) -> None:
        """
        Args:
            message: 错误描述
            recoverable: 调用方能否手动重新发起解析
        """
        super().__init__(message)
        self.recoverable = recoverable


class PeerLookupError(IdentityError):
    """对等域 ID 查询失败（网络错误、超时、非 2xx、响应不是 JSON）"""

    def __init__(
        self,
        domain: str,
        reason: str,
        status_code: int | None = None,
    ) -> None:
        """
        Args:
            domain: 对等域名
            reason: 失败原因（非 2xx 时为状态短语）
            status_code: HTTP 状态码，网络错误时为 None
        """
        super().__init__(f"{domain}: {reason}", recoverable=True)
        self.domain = domain
        self.reason = reason
        self.status_code = status_code


class IdentityResolutionError(IdentityError):
    """跨域 ID 解析失败 -- 携带最后一个对等域错误"""

    def __init__(self, last_error: Exception | None) -> None:
        super().__init__(
            f"跨域 ID 解析失败: {last_error}",
            recoverable=True,
        )
        self.last_error = last_error
