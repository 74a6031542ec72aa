"""查询串解析 -- UTM 活动参数与广告 click id

Normalizer 通过可注入的解析函数调用这里的默认实现。
"""

from urllib.parse import parse_qsl

# utm_* 参数 -> campaign 字段
_UTM_FIELDS = {
    "utm_source": "source",
    "utm_medium": "medium",
    "utm_term": "term",
    "utm_content": "content",
    "utm_campaign": "name",
}

# 广告网络 click id 参数 -> referrer.type
AD_NETWORKS = {
    "btid": "dataxu",
    "urid": "millennial-media",
}


def _parse(query: str) -> list[tuple[str, str]]:
    return parse_qsl(query.lstrip("?"), keep_blank_values=False)


def utm_params(query: str) -> dict[str, str]:
    """解析 UTM 参数，返回 {source, medium, term, content, name} 的子集"""
    campaign: dict[str, str] = {}
    for key, value in _parse(query):
        field = _UTM_FIELDS.get(key.lower())
        if field:
            campaign[field] = value
    return campaign


def ad_params(query: str) -> dict[str, str] | None:
    """解析广告 click id，返回 {id, type}；无已知参数时返回 None"""
    for key, value in _parse(query):
        network = AD_NETWORKS.get(key.lower())
        if network:
            return {"id": value, "type": network}
    return None
