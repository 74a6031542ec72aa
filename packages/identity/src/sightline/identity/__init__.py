"""Sightline Identity -- 跨域访客身份解析

packages/identity 的公开接口导出。
"""

from .exceptions import IdentityError, IdentityResolutionError, PeerLookupError
from .lookup import PeerLookupClient
from .migration import LEGACY_KEY_MAP, migrate_legacy_keys
from .resolver import CompletionCallback, CrossDomainIdentityResolver, OnResolved

__all__ = [
    "CrossDomainIdentityResolver",
    "CompletionCallback",
    "OnResolved",
    "PeerLookupClient",
    "migrate_legacy_keys",
    "LEGACY_KEY_MAP",
    "IdentityError",
    "IdentityResolutionError",
    "PeerLookupError",
]
