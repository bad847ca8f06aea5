"""
목적: 식별자별 커넥션 풀 레지스트리를 제공한다.
설명: 같은 식별자로 요청하면 같은 풀을 돌려주고, 동시 첫 요청도 초기화는 한 번만 실행한다.
디자인 패턴: 레지스트리 패턴, 싱글턴(식별자 단위)
참조: src/redis_connection_pool/core/pool/facade.py
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Mapping, Optional, Union
from uuid import uuid4

from redis_connection_pool.core.pool.facade import RedisConnectionPool
from redis_connection_pool.core.pool.model import PoolConfig, PoolState
from redis_connection_pool.shared.logging import Logger, create_default_logger

PoolConfigInput = Union[PoolConfig, Mapping[str, Any], None]


class PoolRegistry:
    """커넥션 풀 레지스트리 구현체.

    전역 변수 대신 명시적으로 소유하고 주입하는 객체이다. 애플리케이션의
    여러 부분이 풀 객체를 주고받지 않고도 식별자로 같은 풀을 공유한다.

    Args:
        logger: 레지스트리와 새로 만드는 풀에 넘길 로거.
        redis_module: 새로 만드는 풀에 넘길 Redis 모듈(테스트 주입용).
    """

    def __init__(self, logger: Optional[Logger] = None, redis_module: Any = None) -> None:
        self._logger = logger or create_default_logger("PoolRegistry")
        self._redis_module = redis_module
        self._pools: Dict[str, RedisConnectionPool] = {}
        self._initializing: Dict[str, asyncio.Future] = {}

    def __contains__(self, uid: object) -> bool:
        return uid in self._pools

    def __len__(self) -> int:
        return len(self._pools)

    def uids(self) -> List[str]:
        """등록된 풀 식별자 목록을 반환한다."""

        return list(self._pools)

    def get(self, uid: str) -> Optional[RedisConnectionPool]:
        """등록된 풀을 반환한다. 없으면 None."""

        return self._pools.get(uid)

    async def get_or_create(
        self,
        uid: Optional[str] = None,
        config: PoolConfigInput = None,
    ) -> RedisConnectionPool:
        """풀을 조회하거나 새로 만들어 초기화한 뒤 반환한다.

        이미 등록된 식별자라면 `config` 는 무시된다(재설정하지 않는다).
        초기화가 실패하면 등록을 되돌리고 기다리던 모든 호출자에게 예외를 전달한다.
        """

        uid = uid or uuid4().hex
        pool = self._pools.get(uid)
        if pool is not None and pool.state is PoolState.CLOSED:
            # registry.remove() 없이 직접 종료된 풀은 없는 것으로 본다.
            self._logger.info(f"종료된 풀을 새 풀로 교체합니다: {uid}")
            del self._pools[uid]
            pool = None
        if pool is None:
            pool = RedisConnectionPool(
                uid=uid,
                config=self._resolve_config(config),
                logger=self._logger,
                redis_module=self._redis_module,
            )
            self._pools[uid] = pool
            self._initializing[uid] = asyncio.ensure_future(self._initialize(uid, pool))
            self._logger.debug(f"새 커넥션 풀을 등록했습니다: {uid}")
        elif config is not None:
            self._logger.debug(f"이미 등록된 풀이라 설정을 무시합니다: {uid}")

        pending = self._initializing.get(uid)
        if pending is not None:
            await asyncio.shield(pending)
        return pool

    async def remove(self, uid: str, shutdown: bool = True) -> Optional[RedisConnectionPool]:
        """풀 등록을 해제한다. `shutdown` 이 True이면 풀도 종료한다."""

        pool = self._pools.pop(uid, None)
        if pool is None:
            return None
        pending = self._initializing.get(uid)
        if pending is not None:
            await asyncio.gather(asyncio.shield(pending), return_exceptions=True)
        if shutdown:
            await pool.shutdown()
        self._logger.info(f"커넥션 풀 등록을 해제했습니다: {uid}")
        return pool

    async def shutdown_all(self) -> None:
        """등록된 모든 풀을 순서대로 종료하고 레지스트리를 비운다."""

        for uid in list(self._pools):
            await self.remove(uid, shutdown=True)

    async def _initialize(self, uid: str, pool: RedisConnectionPool) -> None:
        try:
            await pool.initialize()
        except BaseException:
            if self._pools.get(uid) is pool:
                del self._pools[uid]
            self._logger.error(f"커넥션 풀 초기화에 실패해 등록을 취소했습니다: {uid}")
            raise
        finally:
            if self._initializing.get(uid) is asyncio.current_task():
                del self._initializing[uid]

    def _resolve_config(self, config: PoolConfigInput) -> PoolConfig:
        if config is None:
            return PoolConfig()
        if isinstance(config, PoolConfig):
            return config
        return PoolConfig.model_validate(dict(config))


_default_registry: Optional[PoolRegistry] = None


def get_default_registry() -> PoolRegistry:
    """프로세스 기본 레지스트리를 반환한다."""

    global _default_registry
    if _default_registry is None:
        _default_registry = PoolRegistry()
    return _default_registry


async def get_or_create_pool(
    uid: Optional[str] = None,
    config: PoolConfigInput = None,
    registry: Optional[PoolRegistry] = None,
) -> RedisConnectionPool:
    """레지스트리에서 풀을 조회하거나 새로 만들어 반환한다.

    Args:
        uid: 풀 식별자. 생략하면 새로 생성되며 `pool.uid` 로 확인할 수 있다.
        config: `PoolConfig` 또는 `{"max_clients": 10, "redis": {...}}` 형태의 매핑.
        registry: 사용할 레지스트리. 생략하면 프로세스 기본 레지스트리를 쓴다.
    """

    return await (registry or get_default_registry()).get_or_create(uid=uid, config=config)
