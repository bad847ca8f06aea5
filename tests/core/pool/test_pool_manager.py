"""
목적: 커넥션 풀 관리자의 대여/반납/드레인/정리 동작을 검증한다.
설명: 상한 유지, FIFO 대기, 취소된 대기자 정리, 폐기 후 슬롯 양도, 종료 흐름을 확인한다.
디자인 패턴: 오브젝트 풀 패턴, 테스트 대역
참조: src/redis_connection_pool/core/pool/manager.py, tests/conftest.py
"""

from __future__ import annotations

import asyncio

import pytest

from redis_connection_pool.core.pool import ConnectionPoolManager, PoolState
from redis_connection_pool.integrations.redis import RedisConnectionFactory
from redis_connection_pool.shared.exceptions import (
    PoolClosedError,
    PoolConnectionError,
    PoolExhaustedError,
)
from redis_connection_pool.shared.logging import InMemoryLogger


def _build_manager(fake_redis_module, max_clients: int) -> ConnectionPoolManager:
    logger = InMemoryLogger(name="manager-test")
    factory = RedisConnectionFactory(logger=logger, redis_module=fake_redis_module)
    return ConnectionPoolManager(factory=factory, max_clients=max_clients, logger=logger)


@pytest.mark.asyncio
async def test_released_connection_is_reused(fake_redis_module) -> None:
    """반납된 커넥션이 다음 대여에 재사용되는지 확인한다."""

    manager = _build_manager(fake_redis_module, max_clients=2)

    client = await manager.acquire()
    stats = manager.stats()
    assert (stats.idle, stats.in_use, stats.available) == (0, 1, 1)

    await manager.release(client)
    assert manager.stats().idle == 1

    assert await manager.acquire() is client
    assert len(fake_redis_module.clients) == 1


@pytest.mark.asyncio
async def test_acquire_waits_when_pool_is_full(fake_redis_module, fake_redis_server) -> None:
    """상한에 도달하면 반납까지 기다리고 반납된 커넥션을 넘겨받는지 확인한다."""

    manager = _build_manager(fake_redis_module, max_clients=2)
    first = await manager.acquire()
    await manager.acquire()

    waiting = asyncio.create_task(manager.acquire())
    await asyncio.sleep(0)

    assert not waiting.done()
    assert manager.stats().waiting == 1
    assert manager.stats().available == 0

    await manager.release(first)

    assert await waiting is first
    assert manager.stats().idle == 0
    assert manager.stats().in_use == 2
    assert fake_redis_server.peak_connections == 2


@pytest.mark.asyncio
async def test_waiters_are_served_in_fifo_order(fake_redis_module) -> None:
    """대기자가 도착 순서대로 커넥션을 받는지 확인한다."""

    manager = _build_manager(fake_redis_module, max_clients=1)
    client = await manager.acquire()
    served: list[str] = []

    async def _borrow(name: str) -> None:
        borrowed = await manager.acquire()
        served.append(name)
        await manager.release(borrowed)

    first = asyncio.create_task(_borrow("first"))
    await asyncio.sleep(0)
    second = asyncio.create_task(_borrow("second"))
    await asyncio.sleep(0)

    await manager.release(client)
    await asyncio.gather(first, second)

    assert served == ["first", "second"]
    assert len(fake_redis_module.clients) == 1


@pytest.mark.asyncio
async def test_concurrent_acquires_create_connections_one_at_a_time(
    fake_redis_module, fake_redis_server
) -> None:
    """빈 풀에 동시에 대여해도 생성이 직렬화되어 모두 성공하는지 확인한다."""

    fake_redis_server.connect_delay = 0.01
    manager = _build_manager(fake_redis_module, max_clients=3)

    clients = await asyncio.gather(*(manager.acquire() for _ in range(3)))

    assert len({id(client) for client in clients}) == 3
    assert fake_redis_server.peak_connections == 3
    assert manager.stats().size == 3


@pytest.mark.asyncio
async def test_cancelled_waiter_does_not_leak(fake_redis_module) -> None:
    """취소된 대기자가 대기열과 커넥션을 점유하지 않는지 확인한다."""

    manager = _build_manager(fake_redis_module, max_clients=1)
    client = await manager.acquire()

    waiting = asyncio.create_task(manager.acquire())
    await asyncio.sleep(0)
    waiting.cancel()
    with pytest.raises(asyncio.CancelledError):
        await waiting

    assert manager.stats().waiting == 0

    await manager.release(client)

    assert manager.stats().idle == 1
    assert await manager.acquire() is client


@pytest.mark.asyncio
async def test_discard_hands_slot_to_waiter(fake_redis_module) -> None:
    """폐기된 커넥션 자리를 대기자가 새 커넥션으로 채우는지 확인한다."""

    manager = _build_manager(fake_redis_module, max_clients=1)
    broken = await manager.acquire()

    waiting = asyncio.create_task(manager.acquire())
    await asyncio.sleep(0)

    await manager.discard(broken)
    replacement = await waiting

    assert replacement is not broken
    assert broken.closed is True
    assert manager.stats().size == 1
    assert manager.stats().in_use == 1


@pytest.mark.asyncio
async def test_failed_creation_raises_exhausted_and_frees_slot(
    fake_redis_module, fake_redis_server
) -> None:
    """생성 실패 시 풀 고갈 예외가 발생하고 슬롯이 반환되는지 확인한다."""

    fake_redis_server.refuse_connections = True
    manager = _build_manager(fake_redis_module, max_clients=1)

    with pytest.raises(PoolExhaustedError) as exc_info:
        await manager.acquire()

    assert isinstance(exc_info.value, PoolConnectionError)
    assert isinstance(exc_info.value.original, PoolConnectionError)
    assert manager.stats().size == 0

    fake_redis_server.refuse_connections = False
    client = await manager.acquire()
    assert client.connected is True


@pytest.mark.asyncio
async def test_connection_context_releases_or_discards(fake_redis_module) -> None:
    """컨텍스트 매니저가 일반 예외는 반납하고 연결 예외는 폐기하는지 확인한다."""

    manager = _build_manager(fake_redis_module, max_clients=1)

    with pytest.raises(ValueError):
        async with manager.connection() as client:
            raise ValueError("사용자 코드 실패")

    assert manager.stats().idle == 1
    assert client.closed is False

    with pytest.raises(PoolConnectionError):
        async with manager.connection() as reused:
            assert reused is client
            raise PoolConnectionError("연결 끊김")

    assert client.closed is True
    assert manager.stats().size == 0


@pytest.mark.asyncio
async def test_release_rejects_foreign_connection(fake_redis_module) -> None:
    """대여하지 않은 커넥션 반납을 거부하는지 확인한다."""

    manager = _build_manager(fake_redis_module, max_clients=1)

    with pytest.raises(ValueError):
        await manager.release(object())


@pytest.mark.asyncio
async def test_warm_opens_idle_connections(fake_redis_module) -> None:
    """미리 열기가 상한을 넘지 않는지 확인한다."""

    manager = _build_manager(fake_redis_module, max_clients=2)

    await manager.warm(5)

    assert manager.stats().idle == 2
    assert len(fake_redis_module.clients) == 2


@pytest.mark.asyncio
async def test_drain_waits_for_borrowed_connections(fake_redis_module, fake_redis_server) -> None:
    """드레인이 새 대여를 막고 반납을 기다린 뒤 정리가 모든 커넥션을 닫는지 확인한다."""

    manager = _build_manager(fake_redis_module, max_clients=2)
    client = await manager.acquire()

    draining = asyncio.create_task(manager.drain())
    await asyncio.sleep(0)

    assert manager.state is PoolState.DRAINING
    with pytest.raises(PoolClosedError):
        await manager.acquire()
    assert not draining.done()

    await manager.release(client)
    await draining
    await manager.clear()

    assert manager.state is PoolState.CLOSED
    assert fake_redis_server.open_connections == 0
    with pytest.raises(PoolClosedError):
        await manager.acquire()


@pytest.mark.asyncio
async def test_clear_fails_waiters_and_closes_late_returns(fake_redis_module, fake_redis_server) -> None:
    """정리 시 대기자는 실패하고 늦게 반납된 커넥션은 닫히는지 확인한다."""

    manager = _build_manager(fake_redis_module, max_clients=1)
    client = await manager.acquire()

    waiting = asyncio.create_task(manager.acquire())
    await asyncio.sleep(0)

    await manager.clear()

    with pytest.raises(PoolClosedError):
        await waiting

    await manager.release(client)

    assert client.closed is True
    assert fake_redis_server.open_connections == 0
