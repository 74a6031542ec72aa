"""Sightline Core Domain Models -- 公共类型导出

所有公共模型类型从此入口导入。
"""

from .enums import (
    ACTION_ENDPOINTS,
    VALID_TRANSITIONS,
    ActionType,
    DeliveryTransport,
    ResolverState,
    StoreKind,
    validate_transition,
)
from .identity import Identity
from .message import (
    AmpInfo,
    BundleMetadata,
    LibraryInfo,
    MessageContext,
    NormalizedMessage,
    ReferrerInfo,
)
from .page import PageContext
from .queue import QueueItem
from .storage import CookieEntry

__all__ = [
    # 枚举
    "ActionType",
    "ACTION_ENDPOINTS",
    "ResolverState",
    "DeliveryTransport",
    "StoreKind",
    # 状态机
    "VALID_TRANSITIONS",
    "validate_transition",
    # Identity
    "Identity",
    # Message
    "NormalizedMessage",
    "MessageContext",
    "LibraryInfo",
    "ReferrerInfo",
    "AmpInfo",
    "BundleMetadata",
    # Page
    "PageContext",
    # Queue
    "QueueItem",
    # Storage
    "CookieEntry",
]
