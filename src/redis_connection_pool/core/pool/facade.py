"""
목적: 커넥션 풀 위의 Redis 명령 퍼사드를 제공한다.
설명: 모든 명령은 커넥션 대여 → 명령 1회 실행 → 반납 순서를 따르며,
      결과는 Redis 응답을 그대로 돌려준다.
디자인 패턴: 퍼사드 패턴, 커맨드 패턴
참조: src/redis_connection_pool/core/pool/manager.py, src/redis_connection_pool/core/pool/registry.py
"""

from __future__ import annotations

import asyncio
from typing import Any, Optional, Sequence, Union
from uuid import uuid4

from redis import exceptions as redis_exceptions

from redis_connection_pool.core.pool.manager import ConnectionPoolManager
from redis_connection_pool.core.pool.model import PoolConfig, PoolState, PoolStats
from redis_connection_pool.integrations.redis.connection import RedisConnectionFactory
from redis_connection_pool.shared.const import SharedConst
from redis_connection_pool.shared.exceptions import (
    CommandError,
    PoolClosedError,
    PoolConnectionError,
)
from redis_connection_pool.shared.logging import LogContext, Logger, create_default_logger

_TRANSPORT_ERRORS = (redis_exceptions.ConnectionError, redis_exceptions.TimeoutError, OSError)


class RedisConnectionPool:
    """Redis 커넥션 풀 퍼사드.

    호출자는 커넥션을 직접 대여/반납하지 않는다. 명령 메서드가 매번
    커넥션을 빌려 명령 하나를 실행하고 성공/실패와 무관하게 돌려준다.

    Args:
        uid: 풀 식별자. 생략하면 자동 생성한다.
        config: 풀 설정.
        logger: 주입 가능한 로거.
        redis_module: 커넥션 팩토리에 넘길 Redis 모듈(테스트 주입용).
    """

    def __init__(
        self,
        uid: Optional[str] = None,
        config: Optional[PoolConfig] = None,
        logger: Optional[Logger] = None,
        redis_module: Any = None,
    ) -> None:
        self._uid = uid or uuid4().hex
        self._config = config or PoolConfig()
        base_logger = logger or create_default_logger("RedisConnectionPool")
        self._logger = base_logger.with_context(LogContext(pool_id=self._uid))
        self._redis_module = redis_module
        self._manager: Optional[ConnectionPoolManager] = None
        self._state = PoolState.UNINITIALIZED
        self._lifecycle_lock = asyncio.Lock()

    async def __aenter__(self) -> "RedisConnectionPool":
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.shutdown()

    @property
    def uid(self) -> str:
        """풀 식별자를 반환한다."""

        return self._uid

    @property
    def config(self) -> PoolConfig:
        """풀 설정을 반환한다."""

        return self._config

    @property
    def state(self) -> PoolState:
        """풀 상태를 반환한다."""

        if self._manager is None:
            return self._state
        return self._manager.state

    @property
    def manager(self) -> ConnectionPoolManager:
        """초기화된 풀 관리자를 반환한다."""

        return self._require_manager()

    def stats(self) -> PoolStats:
        """풀 통계를 반환한다."""

        if self._manager is None:
            return PoolStats(max_clients=self._config.max_clients, state=self._state)
        return self._manager.stats()

    async def initialize(self) -> None:
        """풀을 초기화한다. 여러 번, 동시에 호출해도 초기화는 한 번만 일어난다."""

        async with self._lifecycle_lock:
            if self._state is PoolState.CLOSED:
                raise PoolClosedError(
                    "종료된 풀은 다시 초기화할 수 없습니다.", metadata={"pool_id": self._uid}
                )
            if self._state is not PoolState.UNINITIALIZED:
                return
            self._state = PoolState.INITIALIZING
            factory = RedisConnectionFactory(
                settings=self._config.redis,
                logger=self._logger,
                redis_module=self._redis_module,
            )
            manager = ConnectionPoolManager(
                factory=factory,
                max_clients=self._config.max_clients,
                logger=self._logger,
            )
            try:
                await manager.warm(self._config.min_clients)
            except BaseException:
                self._state = PoolState.UNINITIALIZED
                await manager.clear()
                raise
            self._manager = manager
            self._state = PoolState.READY
            self._logger.info(
                "커넥션 풀이 초기화되었습니다.",
                metadata={
                    "max_clients": self._config.max_clients,
                    "url": self._config.redis.redacted_url(),
                },
            )

    async def shutdown(self) -> None:
        """드레인 후 모든 커넥션을 닫는다. 두 단계는 순서대로 실행한다."""

        async with self._lifecycle_lock:
            if self._state is PoolState.CLOSED:
                return
            if self._manager is None:
                self._state = PoolState.CLOSED
                return
            self._logger.info(
                "커넥션 풀을 종료합니다.",
                metadata=self._manager.stats().model_dump(mode="json"),
            )
            await self._manager.drain()
            await self._manager.clear()
            self._state = PoolState.CLOSED

    async def get(self, key: str) -> Any:
        """GET 명령을 실행한다."""

        return await self._execute("GET", key)

    async def set(self, key: str, value: Any, ttl: int = 0) -> Any:
        """SET 명령을 실행한다. ttl(초)이 0보다 크면 EX 옵션을 붙인다."""

        if ttl > 0:
            return await self._execute("SET", key, value, "EX", ttl)
        return await self._execute("SET", key, value)

    async def delete(self, key: str) -> Any:
        """DEL 명령을 실행하고 삭제된 키 수를 반환한다."""

        return await self._execute("DEL", key)

    async def expire(self, key: str, ttl: int) -> Any:
        """EXPIRE 명령을 실행한다."""

        return await self._execute("EXPIRE", key, ttl)

    async def ttl(self, key: str) -> Any:
        """TTL 명령을 실행한다."""

        return await self._execute("TTL", key)

    async def incr(self, key: str) -> Any:
        """INCR 명령을 실행한다."""

        return await self._execute("INCR", key)

    async def keys(self, pattern: str) -> Any:
        """KEYS 명령을 실행한다."""

        return await self._execute("KEYS", pattern)

    async def hget(self, key: str, field: str) -> Any:
        return await self._execute("HGET", key, field)

    async def hset(self, key: str, field: str, value: Any) -> Any:
        return await self._execute("HSET", key, field, value)

    async def hgetall(self, key: str) -> Any:
        return await self._execute("HGETALL", key)

    async def hdel(self, key: str, fields: Union[str, Sequence[str]]) -> Any:
        """HDEL 명령을 실행한다. 필드 하나는 문자열로 넘겨도 된다."""

        if isinstance(fields, str):
            fields = [fields]
        return await self._execute("HDEL", key, *fields)

    async def lpush(self, key: str, value: Any) -> Any:
        return await self._execute("LPUSH", key, value)

    async def rpush(self, key: str, value: Any) -> Any:
        return await self._execute("RPUSH", key, value)

    async def blpop(self, key: str) -> Any:
        """BLPOP 명령을 무한 대기로 실행한다.

        값이 들어올 때까지 커넥션 하나를 점유하므로 그동안 풀 여유가 줄어든다.
        """

        return await self._execute("BLPOP", key, SharedConst.BLOCKING_POP_TIMEOUT)

    async def brpop(self, key: str) -> Any:
        """BRPOP 명령을 무한 대기로 실행한다."""

        return await self._execute("BRPOP", key, SharedConst.BLOCKING_POP_TIMEOUT)

    async def send_command(self, name: str, args: Optional[Sequence[Any]] = None) -> Any:
        """임의의 Redis 명령을 검증 없이 그대로 전달한다.

        Example:
            await pool.send_command("ECHO", ["Hello Redis"])
        """

        return await self._execute(name, *(args or ()))

    async def _execute(self, name: str, *args: Any) -> Any:
        manager = self._require_manager()
        async with manager.connection() as client:
            try:
                return await client.execute_command(name, *args)
            except redis_exceptions.ResponseError as exc:
                raise CommandError(
                    f"Redis가 {name} 명령을 거부했습니다: {exc}",
                    original=exc,
                    metadata={"command": name, "pool_id": self._uid},
                ) from exc
            except _TRANSPORT_ERRORS as exc:
                self._logger.error(
                    f"{name} 실행 중 연결이 끊겼습니다: {exc}",
                    metadata={"command": name},
                )
                raise PoolConnectionError(
                    f"{name} 실행 중 Redis 연결이 끊겼습니다.",
                    original=exc,
                    metadata={"command": name, "pool_id": self._uid},
                ) from exc

    def _require_manager(self) -> ConnectionPoolManager:
        if self._state is PoolState.CLOSED:
            raise PoolClosedError(
                "커넥션 풀이 닫혔습니다.", metadata={"pool_id": self._uid}
            )
        if self._manager is None:
            raise RuntimeError("커넥션 풀이 초기화되지 않았습니다. initialize()를 먼저 await 하세요.")
        return self._manager
