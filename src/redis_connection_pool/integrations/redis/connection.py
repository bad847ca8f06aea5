"""
목적: 풀에 넣을 Redis 커넥션을 생성/폐기하는 팩토리를 제공한다.
설명: 커넥션 하나당 단일 소켓 클라이언트를 만들고, 생성 중복을 상태 머신과 락으로 막는다.
디자인 패턴: 팩토리 패턴, 상태 패턴
참조: src/redis_connection_pool/integrations/redis/model.py, src/redis_connection_pool/core/pool/manager.py
"""

from __future__ import annotations

import asyncio
from enum import Enum
from typing import Any, Optional
from uuid import uuid4

import redis.asyncio as redis_asyncio
from redis import exceptions as redis_exceptions

from redis_connection_pool.integrations.redis.model import RedisSettings
from redis_connection_pool.shared.exceptions import (
    ConcurrentInitializationError,
    PoolClosedError,
    PoolConnectionError,
)
from redis_connection_pool.shared.logging import Logger, create_default_logger

_TRANSPORT_ERRORS = (redis_exceptions.ConnectionError, redis_exceptions.TimeoutError, OSError)


class FactoryState(str, Enum):
    """커넥션 팩토리 상태 열거형."""

    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"
    CLOSED = "closed"


class RedisConnectionFactory:
    """Redis 커넥션 팩토리 구현체.

    `create()` 는 연결과 인증이 끝난 클라이언트를 돌려주거나 예외를 던진다.
    이벤트 리스너를 남기지 않는 단일 완료 신호이다.

    Args:
        settings: Redis 접속 설정.
        logger: 주입 가능한 로거.
        redis_module: `Redis.from_url` 을 제공하는 모듈. 기본값은 `redis.asyncio`.
    """

    def __init__(
        self,
        settings: Optional[RedisSettings] = None,
        logger: Optional[Logger] = None,
        redis_module: Any = None,
    ) -> None:
        self._settings = settings or RedisSettings()
        self._logger = logger or create_default_logger("RedisConnectionFactory")
        self._redis = redis_module or redis_asyncio
        self._state = FactoryState.UNINITIALIZED
        self._lock = asyncio.Lock()
        self._created = 0

    @property
    def settings(self) -> RedisSettings:
        """접속 설정을 반환한다."""

        return self._settings

    @property
    def state(self) -> FactoryState:
        """현재 팩토리 상태를 반환한다."""

        return self._state

    @property
    def created_count(self) -> int:
        """지금까지 생성에 성공한 커넥션 수를 반환한다."""

        return self._created

    async def create(self) -> Any:
        """새 커넥션을 연결해 반환한다.

        Raises:
            ConcurrentInitializationError: 다른 생성이 진행 중인 경우.
            PoolClosedError: 팩토리가 닫힌 경우.
            PoolConnectionError: 연결 또는 인증에 실패한 경우.
        """

        if self._state is FactoryState.CLOSED:
            raise PoolClosedError("닫힌 커넥션 팩토리입니다.")
        if self._state is FactoryState.INITIALIZING or self._lock.locked():
            self._logger.error(
                "커넥션 생성이 이미 진행 중입니다. 풀 초기화를 await 했는지 확인하세요."
            )
            raise ConcurrentInitializationError(
                "커넥션 생성이 이미 진행 중입니다.",
                metadata={"url": self._settings.redacted_url()},
            )
        previous = self._state
        self._state = FactoryState.INITIALIZING
        async with self._lock:
            try:
                client = await self._connect()
            except BaseException:
                if self._state is FactoryState.INITIALIZING:
                    self._state = previous
                raise
            if self._state is FactoryState.INITIALIZING:
                self._state = FactoryState.READY
            return client

    async def destroy(self, client: Any) -> None:
        """커넥션을 닫는다. 이미 끊긴 커넥션이면 로그만 남긴다."""

        try:
            await client.aclose()
        except _TRANSPORT_ERRORS as exc:
            self._logger.warning(
                f"이미 닫힌 커넥션을 정리했습니다: {exc}",
                metadata={"connection_id": self.connection_id(client)},
            )
            return
        self._logger.debug(
            "커넥션이 종료되었습니다.",
            metadata={"connection_id": self.connection_id(client)},
        )

    def close(self) -> None:
        """팩토리를 닫아 이후 생성을 막는다."""

        self._state = FactoryState.CLOSED

    @staticmethod
    def connection_id(client: Any) -> Optional[str]:
        """로그용 커넥션 식별자를 반환한다."""

        return getattr(client, "_pool_connection_id", None)

    async def _connect(self) -> Any:
        url = self._settings.resolve_url()
        client = self._redis.Redis.from_url(
            url,
            single_connection_client=True,
            **self._settings.client_kwargs(),
        )
        connection_id = uuid4().hex[:8]
        self._logger.debug(
            "Redis 연결 중",
            metadata={"url": self._settings.redacted_url(), "connection_id": connection_id},
        )
        try:
            await client.initialize()
            await client.ping()
        except (redis_exceptions.RedisError, OSError) as exc:
            await self._discard_half_open(client)
            self._logger.error(
                f"Redis 연결에 실패했습니다: {exc}",
                metadata={"url": self._settings.redacted_url()},
            )
            raise PoolConnectionError(
                "Redis 연결에 실패했습니다.",
                original=exc,
                metadata={"url": self._settings.redacted_url()},
            ) from exc
        client._pool_connection_id = connection_id
        self._created += 1
        self._logger.info(
            "Redis 연결이 준비되었습니다.",
            metadata={"connection_id": connection_id},
        )
        return client

    async def _discard_half_open(self, client: Any) -> None:
        try:
            await client.aclose()
        except (redis_exceptions.RedisError, OSError) as exc:
            self._logger.debug(f"반쯤 열린 커넥션 정리 실패: {exc}")
