"""CookieStore -- 页面作用域的 Cookie 存储

基于 httpx.Cookies（内部为 http.cookiejar.CookieJar），按浏览器规则
校验 domain 属性：domain 必须与页面 host 域匹配，且不能是 IP 或公共后缀（com、co.uk 等），
否则写入被静默丢弃。同一个 jar 可直接作为 httpx 请求的 credentials 使用。
"""

import time
from http.cookiejar import Cookie
from urllib.parse import quote, unquote

import httpx

from ..domain import is_ip_address, is_public_suffix
from ..models.storage import CookieEntry


class CookieStore:
    """KeyValueStore 的 Cookie 实现"""

    def __init__(self, host: str, cookies: httpx.Cookies | None = None) -> None:
        """
        Args:
            host: 当前页面 hostname
            cookies: 共享的 cookie jar，None 时新建
        """
        self._host = host.lower()
        self.cookies = cookies if cookies is not None else httpx.Cookies()

    def accepts_domain(self, domain: str | None) -> bool:
        """判断 domain 属性能否被当前 host 接受"""
        if domain is None:
            return True
        bare = domain.lstrip(".").lower()
        if not bare or "." not in bare or is_public_suffix(bare):
            return False
        if is_ip_address(self._host):
            return False
        return self._host == bare or self._host.endswith(f".{bare}")

    def _visible(self, cookie: Cookie) -> bool:
        if cookie.is_expired():
            return False
        if not cookie.domain_specified:
            return cookie.domain == self._host
        bare = cookie.domain.lstrip(".")
        return self._host == bare or self._host.endswith(f".{bare}")

    def _matching(self, name: str) -> list[Cookie]:
        found = [c for c in self.cookies.jar if c.name == name and self._visible(c)]
        # 更具体的域优先
        return sorted(found, key=lambda c: len(c.domain.lstrip(".")), reverse=True)

    async def get(self, name: str) -> str | None:
        matches = self._matching(name)
        if not matches or matches[0].value is None:
            return None
        return unquote(matches[0].value)

    async def set(self, entry: CookieEntry) -> None:
        if not self.accepts_domain(entry.domain):
            return

        if entry.domain is None:
            domain, specified = self._host, False
        else:
            domain, specified = f".{entry.domain.lstrip('.').lower()}", True

        cookie = Cookie(
            version=0,
            name=entry.name,
            value=quote(entry.value, safe=""),
            port=None,
            port_specified=False,
            domain=domain,
            domain_specified=specified,
            domain_initial_dot=specified,
            path=entry.path,
            path_specified=True,
            secure=entry.secure,
            expires=int(time.time()) + entry.max_age,
            discard=False,
            comment=None,
            comment_url=None,
            rest={},
            rfc2109=False,
        )
        self.cookies.jar.set_cookie(cookie)

    async def remove(self, name: str) -> None:
        for cookie in self._matching(name):
            self.cookies.jar.clear(cookie.domain, cookie.path, cookie.name)
