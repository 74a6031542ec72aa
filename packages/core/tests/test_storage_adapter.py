"""CookieStore + StorageAdapter 测试

覆盖：
1. 浏览器式 domain 校验（IP / 单标签 / 非匹配域写入被丢弃）
2. 共享域写入 + 回读校验 + host-only 回退
3. 存储机制按页面协议选择
4. 底层异常被吞掉
"""

import pytest
from sightline.core.models import CookieEntry, PageContext, StoreKind
from sightline.core.store import CookieStore, StorageAdapter, select_store_kind


class _DomainRejectingStore(CookieStore):
    """模拟浏览器拒绝共享域写入（探测 cookie 除外）"""

    async def set(self, entry: CookieEntry) -> None:
        if entry.domain is not None and entry.name != "__tld__":
            return
        await super().set(entry)


class _BrokenStore:
    async def get(self, name: str) -> str | None:
        raise RuntimeError("storage disabled")

    async def set(self, entry: CookieEntry) -> None:
        raise RuntimeError("storage disabled")

    async def remove(self, name: str) -> None:
        raise RuntimeError("storage disabled")


class TestCookieStore:
    """CookieStore 行为"""

    @pytest.mark.parametrize(
        "host,domain,accepted",
        [
            ("app.example.com", None, True),
            ("app.example.com", ".example.com", True),
            ("app.example.com", "app.example.com", True),
            ("app.example.com", ".other.com", False),
            ("app.example.com", ".com", False),
            ("shop.alpha.co.uk", ".co.uk", False),
            ("shop.alpha.co.uk", ".alpha.co.uk", True),
            ("m.gamma.com.au", ".com.au", False),
            ("dev", ".dev", False),
            ("127.0.0.1", ".0.0.1", False),
            ("127.0.0.1", "127.0.0.1", False),
        ],
    )
    def test_accepts_domain(self, host: str, domain: str | None, accepted: bool):
        assert CookieStore(host).accepts_domain(domain) is accepted

    async def test_round_trip_quotes_value(self):
        store = CookieStore("app.example.com")
        await store.set(CookieEntry(name="k", value='{"a": "b c;d"}'))
        assert await store.get("k") == '{"a": "b c;d"}'

    async def test_rejected_domain_silently_dropped(self):
        store = CookieStore("app.example.com")
        await store.set(CookieEntry(name="k", value="v", domain=".other.com"))
        assert await store.get("k") is None

    async def test_most_specific_domain_wins(self):
        store = CookieStore("app.example.com")
        await store.set(CookieEntry(name="k", value="wide", domain=".example.com"))
        await store.set(CookieEntry(name="k", value="narrow"))
        assert await store.get("k") == "narrow"

    async def test_cookie_from_other_host_invisible(self):
        jar_owner = CookieStore("a.example.com")
        await jar_owner.set(CookieEntry(name="k", value="v"))
        other = CookieStore("b.example.com", jar_owner.cookies)
        assert await other.get("k") is None

    async def test_shared_domain_visible_to_sibling(self):
        jar_owner = CookieStore("a.example.com")
        await jar_owner.set(CookieEntry(name="k", value="v", domain=".example.com"))
        sibling = CookieStore("b.example.com", jar_owner.cookies)
        assert await sibling.get("k") == "v"

    async def test_expired_invisible(self):
        store = CookieStore("app.example.com")
        await store.set(CookieEntry(name="k", value="v", max_age=-1))
        assert await store.get("k") is None

    async def test_remove_clears_all_visible(self):
        store = CookieStore("app.example.com")
        await store.set(CookieEntry(name="k", value="wide", domain=".example.com"))
        await store.set(CookieEntry(name="k", value="narrow"))
        await store.remove("k")
        assert await store.get("k") is None


class TestSelectStoreKind:
    """存储机制选择"""

    @pytest.mark.parametrize(
        "url,kind",
        [
            ("https://app.example/", StoreKind.COOKIE),
            ("http://dev:3000/", StoreKind.COOKIE),
            ("file:///tmp/index.html", StoreKind.LOCAL),
            ("chrome-extension://abcdef/popup.html", StoreKind.LOCAL),
            ("moz-extension://abcdef/popup.html", StoreKind.LOCAL),
        ],
    )
    def test_kind_by_scheme(self, url: str, kind: StoreKind):
        assert select_store_kind(PageContext(url=url)) is kind


class TestStorageAdapterWrite:
    """write() 共享域写入与回退"""

    async def test_shared_domain_on_subdomain(self, cookie_adapter):
        storage = cookie_adapter("https://www.shop.example.com/")
        assert await storage.cookie_domain() == ".example.com"
        assert await storage.write("k", "v") is True
        assert await storage.read("k") == "v"

        sibling = CookieStore("blog.example.com", storage.store.cookies)
        assert await sibling.get("k") == "v"

    async def test_shared_domain_under_multi_part_suffix(self, cookie_adapter):
        storage = cookie_adapter("https://shop.alpha.co.uk/")
        assert await storage.cookie_domain() == ".alpha.co.uk"
        assert await storage.write("k", "v") is True

        other_site = CookieStore("www.beta.co.uk", storage.store.cookies)
        assert await other_site.get("k") is None

    @pytest.mark.parametrize(
        "url",
        ["http://dev:3000/", "http://127.0.0.1:8000/", "https://app.herokuapp.com/"],
    )
    async def test_persists_on_restricted_hosts(self, cookie_adapter, url: str):
        storage = cookie_adapter(url)
        assert await storage.write("sl_user_id", "user-1") is True
        assert await storage.read("sl_user_id") == "user-1"

    async def test_single_label_host_has_no_shared_domain(self, cookie_adapter):
        storage = cookie_adapter("http://dev:3000/")
        assert await storage.cookie_domain() == ""

    async def test_fallback_to_host_only(self):
        page = PageContext(url="https://app.example.com/")
        store = _DomainRejectingStore(page.hostname)
        storage = StorageAdapter(store, page, StoreKind.COOKIE)

        assert await storage.cookie_domain() == ".example.com"
        assert await storage.write("k", "v") is True
        assert await storage.read("k") == "v"
        cookie = next(c for c in store.cookies.jar if c.name == "k")
        assert cookie.domain_specified is False

    async def test_readback_rejects_stale_value(self):
        """共享域写入失败时不能被已有旧值掩盖"""
        page = PageContext(url="https://app.example.com/")
        store = _DomainRejectingStore(page.hostname)
        await CookieStore.set(store, CookieEntry(name="k", value="old"))
        storage = StorageAdapter(store, page, StoreKind.COOKIE)

        assert await storage.write("k", "new") is True
        assert await storage.read("k") == "new"

    async def test_write_json_round_trip(self, https_storage):
        assert await https_storage.write_json("k", {"id": "abc", "type": "dataxu"}) is True
        assert await https_storage.read_json("k") == {"id": "abc", "type": "dataxu"}

    async def test_read_json_malformed(self, https_storage):
        await https_storage.write("k", "{not json")
        assert await https_storage.read_json("k") is None

    async def test_read_json_missing(self, https_storage):
        assert await https_storage.read_json("missing") is None

    async def test_remove(self, https_storage):
        await https_storage.write("k", "v")
        await https_storage.remove("k")
        assert await https_storage.read("k") is None


class TestStorageAdapterErrors:
    """底层存储异常不向调用方传播"""

    async def test_errors_swallowed(self, https_page):
        storage = StorageAdapter(_BrokenStore(), https_page, StoreKind.COOKIE)
        assert await storage.read("k") is None
        assert await storage.read_json("k") is None
        assert await storage.write("k", "v") is False
        await storage.remove("k")

    async def test_local_kind_has_no_cookie_domain(self, https_page):
        storage = StorageAdapter(_BrokenStore(), https_page, StoreKind.LOCAL)
        assert await storage.cookie_domain() == ""
