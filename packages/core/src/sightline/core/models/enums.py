"""枚举定义

包含 ActionType（动作类型 -> 端点路径）、ResolverState 状态机、
DeliveryTransport 投递路径，以及 VALID_TRANSITIONS 合法流转映射。
"""

from enum import StrEnum


class ActionType(StrEnum):
    """宿主分发的动作类型"""

    PAGE = "page"
    IDENTIFY = "identify"
    GROUP = "group"
    TRACK = "track"
    ALIAS = "alias"

    @property
    def endpoint(self) -> str:
        """采集端点路径"""
        return ACTION_ENDPOINTS[self]


ACTION_ENDPOINTS: dict[ActionType, str] = {
    ActionType.PAGE: "/p",
    ActionType.IDENTIFY: "/i",
    ActionType.GROUP: "/g",
    ActionType.TRACK: "/t",
    ActionType.ALIAS: "/a",
}


class ResolverState(StrEnum):
    """跨域 ID Resolver 状态机"""

    IDLE = "IDLE"
    RACING = "RACING"
    RESOLVED = "RESOLVED"
    FAILED = "FAILED"


VALID_TRANSITIONS: dict[ResolverState, set[ResolverState]] = {
    ResolverState.IDLE: {ResolverState.RACING, ResolverState.RESOLVED},
    ResolverState.RACING: {ResolverState.RESOLVED, ResolverState.FAILED},
    # 失败后允许手动重新发起
    ResolverState.FAILED: {ResolverState.RACING},
    # 跨域 ID 一旦确定不可变
    ResolverState.RESOLVED: set(),
}


class DeliveryTransport(StrEnum):
    """投递路径"""

    QUEUE = "queue"
    BEACON = "beacon"
    REQUEST = "request"


class StoreKind(StrEnum):
    """持久化机制"""

    COOKIE = "cookie"
    LOCAL = "local"


def validate_transition(from_state: ResolverState, to_state: ResolverState) -> bool:
    """验证 Resolver 状态流转是否合法"""
    return to_state in VALID_TRANSITIONS.get(from_state, set())
