"""动作分发表 -- ActionType -> 载荷预处理函数

有限的标签分发：每种动作类型对应一个纯函数，不做运行时方法名拼接查找。
"""

import copy
from collections.abc import Callable, Mapping
from typing import Any

from sightline.core.models import ActionType, Identity

ActionHandler = Callable[[dict[str, Any], Identity], dict[str, Any]]


def _prepare_page(payload: dict[str, Any], identity: Identity) -> dict[str, Any]:
    return payload


def _prepare_identify(payload: dict[str, Any], identity: Identity) -> dict[str, Any]:
    # 待补充的身份 traits（如 crossDomainId）合并进来，调用方字段优先
    supplied = payload.get("traits")
    if supplied is not None and not isinstance(supplied, Mapping):
        # 结构不符的 traits 原样发送，不做合并
        return payload
    traits = {**identity.traits, **(supplied or {})}
    if traits:
        payload["traits"] = traits
    return payload


def _prepare_group(payload: dict[str, Any], identity: Identity) -> dict[str, Any]:
    return payload


def _prepare_track(payload: dict[str, Any], identity: Identity) -> dict[str, Any]:
    payload.pop("traits", None)
    return payload


def _prepare_alias(payload: dict[str, Any], identity: Identity) -> dict[str, Any]:
    payload["previousId"] = (
        payload.get("previousId")
        or payload.get("from")
        or identity.user_id
        or identity.anonymous_id
    )
    user_id = payload.get("userId") or payload.get("to")
    if user_id:
        payload["userId"] = user_id
    payload.pop("from", None)
    payload.pop("to", None)
    return payload


ACTION_HANDLERS: dict[ActionType, ActionHandler] = {
    ActionType.PAGE: _prepare_page,
    ActionType.IDENTIFY: _prepare_identify,
    ActionType.GROUP: _prepare_group,
    ActionType.TRACK: _prepare_track,
    ActionType.ALIAS: _prepare_alias,
}


def prepare_action(
    action: ActionType,
    payload: Mapping[str, Any],
    identity: Identity,
) -> dict[str, Any]:
    """按动作类型预处理载荷（不修改调用方传入的对象）"""
    return ACTION_HANDLERS[action](copy.deepcopy(dict(payload)), identity)
