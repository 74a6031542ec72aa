"""域名工具 -- 可注册顶级域计算

公共后缀按 Public Suffix List（tldextract 自带快照，不联网）判断；
不在列表中的 TLD（如 .example / .test）按最后一级标签视为后缀。

registrable_domain(): 纯字符串推导，用于对等域名去重。
top_domain(): 按浏览器行为探测可写 Cookie 的最宽域（从最短可注册域开始逐级试写）。
"""

import ipaddress
from typing import TYPE_CHECKING
from urllib.parse import urlsplit

import tldextract

from .models.storage import CookieEntry

if TYPE_CHECKING:
    from .store.protocols import KeyValueStore

_MARKER_COOKIE = "__tld__"

# 只用 ICANN 段：herokuapp.com 等私有后缀按普通域处理，由 dev 主机规则兜底
_extract = tldextract.TLDExtract(suffix_list_urls=())


def is_ip_address(host: str) -> bool:
    """host 是否为 IPv4/IPv6 字面量"""
    try:
        ipaddress.ip_address(host.strip("[]"))
    except ValueError:
        return False
    return True


def hostname_of(url_or_host: str) -> str:
    """从 URL 或裸域名中提取小写 hostname"""
    if "://" not in url_or_host:
        url_or_host = f"http://{url_or_host}"
    return (urlsplit(url_or_host).hostname or "").lower()


def is_public_suffix(host: str) -> bool:
    """host 本身是否为公共后缀（com、co.uk、com.au ...）"""
    host = host.strip(".").lower()
    if not host or is_ip_address(host):
        return False
    parts = _extract(host)
    if parts.suffix:
        return not parts.domain
    return "." not in host


def registrable_domain(url_or_host: str) -> str:
    """公共后缀加一级标签（eTLD+1）

    IP 地址、单标签主机和公共后缀本身原样返回。
    """
    host = hostname_of(url_or_host)
    if not host or is_ip_address(host):
        return host
    parts = _extract(host)
    if parts.suffix:
        return f"{parts.domain}.{parts.suffix}" if parts.domain else host
    labels = host.split(".")
    return ".".join(labels[-2:])


def candidate_levels(host: str) -> list[str]:
    """由短到长列出可尝试的 Cookie 域（从可注册域开始，不含公共后缀）"""
    if not host or is_ip_address(host) or is_public_suffix(host):
        return []
    labels = host.split(".")
    base = len(registrable_domain(host).split("."))
    return [".".join(labels[i:]) for i in range(len(labels) - base, -1, -1)]


async def top_domain(url: str, store: "KeyValueStore") -> str:
    """探测当前页面可写 Cookie 的最宽域

    依次在每一级域上写入探测 Cookie，第一个可回读的即为结果，随后清除探测值。

    Returns:
        不带前导点的域名；IP、单标签主机或全部失败时返回空串
    """
    for level in candidate_levels(hostname_of(url)):
        entry = CookieEntry(name=_MARKER_COOKIE, value="1", domain=f".{level}", max_age=60)
        await store.set(entry)
        if await store.get(_MARKER_COOKIE):
            await store.remove(_MARKER_COOKIE)
            return level
    return ""
