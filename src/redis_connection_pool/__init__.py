"""
목적: redis_connection_pool 패키지 공개 API를 제공한다.
설명: 호출자가 커넥션을 직접 대여/반납하지 않도록 풀 레지스트리와 명령 퍼사드를 노출한다.
디자인 패턴: 퍼사드
참조: src/redis_connection_pool/core/pool/__init__.py, src/redis_connection_pool/integrations/redis/__init__.py

Example:
    pool = await get_or_create_pool("cache", {"max_clients": 10, "redis": {"host": "127.0.0.1"}})
    await pool.set("greeting", "hello", ttl=60)
    value = await pool.get("greeting")
    await pool.shutdown()
"""

from redis_connection_pool.core.pool import (
    ConnectionPoolManager,
    PoolConfig,
    PoolRegistry,
    PoolState,
    PoolStats,
    RedisConnectionPool,
    get_default_registry,
    get_or_create_pool,
)
from redis_connection_pool.integrations.redis import FactoryState, RedisConnectionFactory, RedisSettings
from redis_connection_pool.shared.exceptions import (
    CommandError,
    ConcurrentInitializationError,
    PoolClosedError,
    PoolConnectionError,
    PoolExhaustedError,
    RedisPoolError,
)

__all__ = [
    "get_or_create_pool",
    "get_default_registry",
    "PoolRegistry",
    "RedisConnectionPool",
    "ConnectionPoolManager",
    "RedisConnectionFactory",
    "FactoryState",
    "PoolConfig",
    "PoolState",
    "PoolStats",
    "RedisSettings",
    "RedisPoolError",
    "PoolConnectionError",
    "PoolExhaustedError",
    "ConcurrentInitializationError",
    "PoolClosedError",
    "CommandError",
]
