"""
목적: 상한이 있는 Redis 커넥션 풀 관리자를 제공한다.
설명: 대여(acquire)/반납(release)/폐기(discard)/드레인(drain)/정리(clear)를 담당하며
      대기자는 FIFO 순서로 커넥션을 넘겨받는다.
디자인 패턴: 오브젝트 풀 패턴
참조: src/redis_connection_pool/integrations/redis/connection.py, src/redis_connection_pool/core/pool/model.py
"""

from __future__ import annotations

import asyncio
from collections import deque
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Deque, Dict, Optional

from redis import exceptions as redis_exceptions

from redis_connection_pool.core.pool.model import PoolState, PoolStats
from redis_connection_pool.integrations.redis.connection import RedisConnectionFactory
from redis_connection_pool.shared.const import SharedConst
from redis_connection_pool.shared.exceptions import (
    PoolClosedError,
    PoolConnectionError,
    PoolExhaustedError,
)
from redis_connection_pool.shared.logging import Logger, create_default_logger

# 대기자에게 "커넥션 대신 생성 슬롯을 넘긴다"는 신호
_CREATE_SLOT = object()

# 이 예외로 끝난 커넥션은 상태를 믿을 수 없으므로 풀에 돌려놓지 않는다.
_BROKEN_CONNECTION_ERRORS = (
    PoolConnectionError,
    redis_exceptions.ConnectionError,
    redis_exceptions.TimeoutError,
    OSError,
    asyncio.CancelledError,
)


class ConnectionPoolManager:
    """Redis 커넥션 풀 관리자 구현체.

    불변식: idle + in_use + pending 은 항상 `max_clients` 이하이다.

    Args:
        factory: 커넥션 생성/폐기를 담당하는 팩토리.
        max_clients: 최대 커넥션 수.
        logger: 주입 가능한 로거.
    """

    def __init__(
        self,
        factory: RedisConnectionFactory,
        max_clients: int = SharedConst.DEFAULT_MAX_CLIENTS,
        logger: Optional[Logger] = None,
    ) -> None:
        if max_clients < 1:
            raise ValueError("max_clients는 1 이상이어야 합니다.")
        self._factory = factory
        self._max_clients = max_clients
        self._logger = logger or create_default_logger("ConnectionPoolManager")
        self._idle: Deque[Any] = deque()
        self._in_use: Dict[int, Any] = {}
        self._pending = 0
        self._waiters: Deque[asyncio.Future] = deque()
        self._create_lock = asyncio.Lock()
        self._drained = asyncio.Event()
        self._state = PoolState.READY

    @property
    def max_clients(self) -> int:
        """최대 커넥션 수를 반환한다."""

        return self._max_clients

    @property
    def state(self) -> PoolState:
        """풀 상태를 반환한다."""

        return self._state

    def stats(self) -> PoolStats:
        """현재 풀 통계를 반환한다."""

        return PoolStats(
            max_clients=self._max_clients,
            idle=len(self._idle),
            in_use=len(self._in_use),
            pending=self._pending,
            waiting=sum(1 for waiter in self._waiters if not waiter.done()),
            state=self._state,
        )

    async def acquire(self) -> Any:
        """커넥션을 대여한다.

        빈 커넥션이 없고 상한에 도달했으면 반납될 때까지 기다린다.

        Raises:
            PoolClosedError: 드레인 중이거나 닫힌 풀인 경우.
            PoolExhaustedError: 새 커넥션 생성에 실패한 경우.
        """

        self._ensure_accepting()
        if not self._has_waiters():
            if self._idle:
                return self._lend(self._idle.popleft())
            if self._size() < self._max_clients:
                self._pending += 1
                return self._lend(await self._create_in_slot())

        waiter = asyncio.get_running_loop().create_future()
        self._waiters.append(waiter)
        self._logger.debug("커넥션 반납을 기다립니다.", metadata=self._snapshot())
        try:
            granted = await waiter
        except asyncio.CancelledError:
            await self._abandon(waiter)
            raise
        if granted is _CREATE_SLOT:
            return self._lend(await self._create_in_slot())
        return granted

    async def release(self, client: Any) -> None:
        """대여한 커넥션을 반납한다. 가장 오래 기다린 대기자에게 먼저 넘긴다."""

        if self._in_use.pop(id(client), None) is None:
            raise ValueError("이 풀에서 대여한 커넥션이 아닙니다.")
        if self._state is PoolState.CLOSED:
            await self._factory.destroy(client)
            return
        self._put_back(client)
        self._notify_if_drained()

    async def discard(self, client: Any) -> None:
        """끊기거나 상태를 믿을 수 없는 커넥션을 폐기하고 슬롯을 비운다."""

        if self._in_use.pop(id(client), None) is None:
            raise ValueError("이 풀에서 대여한 커넥션이 아닙니다.")
        self._logger.warning(
            "커넥션을 폐기합니다.",
            metadata={"connection_id": self._factory.connection_id(client)},
        )
        self._hand_over_slot()
        self._notify_if_drained()
        await self._factory.destroy(client)

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[Any]:
        """대여 → 사용 → 반납을 보장하는 컨텍스트 매니저."""

        client = await self.acquire()
        try:
            yield client
        except _BROKEN_CONNECTION_ERRORS:
            await self.discard(client)
            raise
        except BaseException:
            await self.release(client)
            raise
        await self.release(client)

    async def warm(self, count: int) -> None:
        """빈 커넥션을 최대 `count` 개까지 미리 연다."""

        target = min(count, self._max_clients)
        while self._state is PoolState.READY and self._size() < target:
            self._pending += 1
            self._put_back(await self._create_in_slot())
        self._logger.info(f"커넥션 {len(self._idle)}개를 미리 열었습니다.")

    async def drain(self) -> None:
        """새 대여를 막고, 대여 중인 커넥션이 모두 반납될 때까지 기다린다."""

        if self._state is PoolState.READY:
            self._state = PoolState.DRAINING
            self._logger.info("풀 드레인을 시작합니다.", metadata=self._snapshot())
        while self._outstanding():
            self._drained.clear()
            await self._drained.wait()
        self._logger.info("풀 드레인이 끝났습니다.")

    async def clear(self) -> None:
        """빈 커넥션을 모두 닫고 풀을 닫는다. 이후 대여는 실패한다."""

        if self._state is PoolState.CLOSED:
            return
        if self._state is PoolState.DRAINING:
            await self.drain()
        self._state = PoolState.CLOSED
        self._factory.close()
        while self._waiters:
            waiter = self._waiters.popleft()
            if not waiter.done():
                waiter.set_exception(PoolClosedError("커넥션 풀이 닫혔습니다."))
        idle = list(self._idle)
        self._idle.clear()
        for client in idle:
            await self._factory.destroy(client)
        self._logger.info(
            f"풀이 닫혔습니다. 빈 커넥션 {len(idle)}개를 정리했습니다.",
            metadata=self._snapshot(),
        )

    def _ensure_accepting(self) -> None:
        if self._state is PoolState.DRAINING:
            raise PoolClosedError("드레인 중인 풀은 새 대여를 받지 않습니다.")
        if self._state is PoolState.CLOSED:
            raise PoolClosedError("커넥션 풀이 닫혔습니다.")

    def _size(self) -> int:
        return len(self._idle) + len(self._in_use) + self._pending

    def _outstanding(self) -> bool:
        return bool(self._in_use) or self._pending > 0 or any(
            not waiter.done() for waiter in self._waiters
        )

    def _has_waiters(self) -> bool:
        while self._waiters and self._waiters[0].done():
            self._waiters.popleft()
        return bool(self._waiters)

    def _lend(self, client: Any) -> Any:
        self._in_use[id(client)] = client
        return client

    async def _create_in_slot(self) -> Any:
        # 호출 전에 _pending 으로 슬롯을 예약해 두어야 한다.
        try:
            async with self._create_lock:
                client = await self._factory.create()
        except BaseException as exc:
            self._pending -= 1
            self._hand_over_slot()
            self._notify_if_drained()
            if isinstance(exc, PoolConnectionError):
                raise PoolExhaustedError(
                    "새 커넥션을 만들 수 없습니다.",
                    original=exc,
                    metadata=self._snapshot(),
                ) from exc
            raise
        self._pending -= 1
        if self._state is PoolState.CLOSED:
            self._notify_if_drained()
            await self._factory.destroy(client)
            raise PoolClosedError("커넥션 생성 중에 풀이 닫혔습니다.")
        return client

    def _put_back(self, client: Any) -> None:
        while self._waiters:
            waiter = self._waiters.popleft()
            if waiter.done():
                continue
            self._lend(client)
            waiter.set_result(client)
            return
        self._idle.append(client)

    def _hand_over_slot(self) -> None:
        if self._state is PoolState.CLOSED:
            return
        while self._waiters:
            waiter = self._waiters.popleft()
            if waiter.done():
                continue
            self._pending += 1
            waiter.set_result(_CREATE_SLOT)
            return

    async def _abandon(self, waiter: asyncio.Future) -> None:
        # 취소된 대기자가 이미 받은 커넥션이나 슬롯은 다음 대기자에게 넘긴다.
        if waiter.done() and not waiter.cancelled() and waiter.exception() is None:
            granted = waiter.result()
            if granted is _CREATE_SLOT:
                self._pending -= 1
                self._hand_over_slot()
            elif self._state is PoolState.CLOSED:
                self._in_use.pop(id(granted), None)
                await self._factory.destroy(granted)
            else:
                self._in_use.pop(id(granted), None)
                self._put_back(granted)
        else:
            try:
                self._waiters.remove(waiter)
            except ValueError:
                pass
        self._notify_if_drained()

    def _notify_if_drained(self) -> None:
        if not self._outstanding():
            self._drained.set()

    def _snapshot(self) -> dict:
        return self.stats().model_dump(mode="json")
