"""CrossDomainIdentityResolver -- 跨域 ID 竞速解析

状态机: IDLE -> RACING -> RESOLVED | FAILED（FAILED 可手动重新发起）

协议:
1. 候选列表：配置的对等域，排除与当前页面同一可注册域的条目
2. 候选为空 -> 本地生成 ID（fromDomain = 当前 host）
3. 否则并发向每个候选发起查询，记录已发出 N / 已完成 F
4. 第一个返回非空 ID 的查询获胜；其余查询不取消，完成后忽略（至多一个赢家）
5. 单个查询出错只计入 F 并记录为最后错误，不直接判负
6. F == N 且无赢家：有任何错误 -> FAILED 并上报最后错误；全部干净返回空 -> 本地生成
7. RESOLVED 时持久化 ID / 来源域 / 时间戳，写入 identity traits，
   回调恰好调用一次，并触发 on_resolved（identify 补充）

首胜判定在单次事件循环回合内同步 check-and-set，不跨 await。
"""

import asyncio
import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum

import structlog
from sightline.core.config import TrackerConfig
from sightline.core.domain import registrable_domain
from sightline.core.models import Identity, PageContext, ResolverState, validate_transition
from sightline.core.store import IdentityStore, StorageAdapter

from .exceptions import IdentityError, IdentityResolutionError
from .lookup import PeerLookupClient
from .migration import migrate_legacy_keys

log = structlog.get_logger()

CompletionCallback = Callable[[IdentityError | None, Identity | None], None]
OnResolved = Callable[[Identity], Awaitable[None]]


class _Decision(StrEnum):
    WIN = "win"
    MINT = "mint"
    FAIL = "fail"


@dataclass
class _Race:
    """单次竞速的计数与首胜标记"""

    issued: int
    outcome: asyncio.Future
    callbacks: list[CompletionCallback] = field(default_factory=list)
    finished: int = 0
    errors: int = 0
    last_error: Exception | None = None
    decided: bool = False


class CrossDomainIdentityResolver:
    """跨域 ID 解析器"""

    def __init__(
        self,
        config: TrackerConfig,
        page: PageContext,
        storage: StorageAdapter,
        identity: Identity,
        lookup: PeerLookupClient,
        on_resolved: OnResolved | None = None,
    ) -> None:
        """
        Args:
            config: 采集配置（apiKey / crossDomainIdServers）
            page: 当前页面
            storage: 会话持久化
            identity: 会话持有的访客身份（解析结果写入此对象）
            lookup: 对等域查询客户端
            on_resolved: 解析成功后的异步钩子（identify 补充）
        """
        self._config = config
        self._page = page
        self._storage = storage
        self._identity_store = IdentityStore(storage)
        self._identity = identity
        self._lookup = lookup
        self._on_resolved = on_resolved
        self._state = ResolverState.IDLE
        self._race: _Race | None = None
        self._inflight: set[asyncio.Task] = set()

    @property
    def state(self) -> ResolverState:
        return self._state

    @property
    def identity(self) -> Identity:
        return self._identity

    def candidates(self) -> list[str]:
        """去重并排除与当前页面同可注册域的对等域"""
        own = registrable_domain(self._page.hostname)
        result: list[str] = []
        for domain in self._config.cross_domain_id_servers:
            domain = domain.strip().lower()
            if not domain or domain in result:
                continue
            if registrable_domain(domain) == own:
                continue
            result.append(domain)
        return result

    async def initialize(self, callback: CompletionCallback | None = None) -> Identity:
        """启动时调用：旧 key 迁移 -> 读缓存 -> 必要时发起竞速

        解析失败通过 callback 上报，这里不抛出。
        """
        if self._state is ResolverState.RESOLVED:
            return self._identity

        await migrate_legacy_keys(self._storage)

        if await self._identity_store.load_cross_domain(self._identity):
            self._transition(ResolverState.RESOLVED)
            log.debug(
                "cross_domain_id_cached",
                cross_domain_id=self._identity.cross_domain_id,
                from_domain=self._identity.from_domain,
            )
            return self._identity

        if not self._config.cross_domain_id_servers:
            return self._identity

        try:
            return await self.resolve(callback)
        except IdentityResolutionError as e:
            log.warning("cross_domain_id_unresolved", error=str(e))
            return self._identity

    async def resolve(self, callback: CompletionCallback | None = None) -> Identity:
        """发起（或加入进行中的）跨域 ID 竞速

        Returns:
            已解析的 Identity

        Raises:
            IdentityResolutionError: 全部查询结束、无 ID 且至少一个出错
        """
        if self._state is ResolverState.RESOLVED:
            if callback is not None:
                self._invoke(callback, None, self._identity)
            return self._identity

        if self._race is not None and not self._race.outcome.done():
            if callback is not None:
                self._race.callbacks.append(callback)
            return await asyncio.shield(self._race.outcome)

        self._transition(ResolverState.RACING)
        candidates = self.candidates()
        race = _Race(
            issued=len(candidates),
            outcome=asyncio.get_running_loop().create_future(),
            callbacks=[callback] if callback is not None else [],
        )
        self._race = race

        if not candidates:
            log.info("cross_domain_no_candidates", host=self._page.hostname)
            await self._resolve_with(race, str(uuid.uuid4()), self._page.hostname)
        else:
            log.info("cross_domain_race_started", candidates=candidates)
            for domain in candidates:
                task = asyncio.create_task(self._run_lookup(race, domain))
                self._inflight.add(task)
                task.add_done_callback(self._inflight.discard)

        return await asyncio.shield(race.outcome)

    async def aclose(self) -> None:
        """等待尚未完成的查询（落败者）结束"""
        if self._inflight:
            await asyncio.gather(*list(self._inflight), return_exceptions=True)

    async def _run_lookup(self, race: _Race, domain: str) -> None:
        found: str | None = None
        error: Exception | None = None
        try:
            found = await self._lookup.fetch_id(domain, self._config.api_key)
        except Exception as e:
            error = e

        decision = self._record(race, found, error)
        if decision is _Decision.WIN:
            await self._resolve_with(race, found, domain)
        elif decision is _Decision.MINT:
            await self._resolve_with(race, str(uuid.uuid4()), self._page.hostname)
        elif decision is _Decision.FAIL:
            self._fail(race)

    @staticmethod
    def _record(
        race: _Race,
        found: str | None,
        error: Exception | None,
    ) -> _Decision | None:
        """记录一次查询完成，返回本次是否决定了竞速结果（同步，不可 await）"""
        race.finished += 1
        if error is not None:
            race.errors += 1
            race.last_error = error
        if race.decided:
            return None
        if found:
            race.decided = True
            return _Decision.WIN
        if race.finished == race.issued:
            race.decided = True
            return _Decision.FAIL if race.errors else _Decision.MINT
        return None

    async def _resolve_with(self, race: _Race, cross_domain_id: str, from_domain: str) -> None:
        now = datetime.now(UTC)
        identity = self._identity
        identity.cross_domain_id = cross_domain_id
        identity.from_domain = from_domain
        identity.resolved_at = now
        identity.traits["crossDomainId"] = cross_domain_id
        self._transition(ResolverState.RESOLVED)

        await self._identity_store.save_cross_domain(cross_domain_id, from_domain, now)
        log.info(
            "cross_domain_id_resolved",
            cross_domain_id=cross_domain_id,
            from_domain=from_domain,
            finished=race.finished,
            issued=race.issued,
        )

        race.outcome.set_result(identity)
        for callback in race.callbacks:
            self._invoke(callback, None, identity)

        if self._on_resolved is not None:
            try:
                await self._on_resolved(identity)
            except Exception as e:
                log.error(
                    "cross_domain_on_resolved_failed",
                    error=str(e),
                    error_type=type(e).__name__,
                )

    def _fail(self, race: _Race) -> None:
        error = IdentityResolutionError(race.last_error)
        self._transition(ResolverState.FAILED)
        log.warning(
            "cross_domain_race_failed",
            errors=race.errors,
            issued=race.issued,
            last_error=str(race.last_error),
        )
        race.outcome.set_exception(error)
        for callback in race.callbacks:
            self._invoke(callback, error, None)

    def _transition(self, to_state: ResolverState) -> None:
        if not validate_transition(self._state, to_state):
            raise IdentityError(
                f"非法状态流转: {self._state} -> {to_state}",
                recoverable=False,
            )
        self._state = to_state

    @staticmethod
    def _invoke(
        callback: CompletionCallback,
        error: IdentityError | None,
        identity: Identity | None,
    ) -> None:
        try:
            callback(error, identity)
        except Exception as e:
            log.error(
                "cross_domain_callback_failed",
                error=str(e),
                error_type=type(e).__name__,
            )
