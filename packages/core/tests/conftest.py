"""packages/core 测试配置 -- 存储层 fixture"""

from collections.abc import Callable

import pytest
from sightline.core.models import PageContext
from sightline.core.store import CookieStore, StorageAdapter, select_store_kind


@pytest.fixture
def cookie_adapter() -> Callable[[str], StorageAdapter]:
    """按页面 URL 构造基于 CookieStore 的 StorageAdapter"""

    def _make(url: str) -> StorageAdapter:
        page = PageContext(url=url)
        return StorageAdapter(CookieStore(page.hostname), page, select_store_kind(page))

    return _make


@pytest.fixture
def https_storage(https_page: PageContext) -> StorageAdapter:
    """https 页面上的 Cookie 存储"""
    kind = select_store_kind(https_page)
    return StorageAdapter(CookieStore(https_page.hostname), https_page, kind)
