"""
목적: 커넥션 풀 모듈 공개 API를 제공한다.
설명: 풀 설정/상태/통계 모델과 관리자, 퍼사드, 레지스트리를 노출한다.
디자인 패턴: 퍼사드
참조: src/redis_connection_pool/core/pool/model.py, src/redis_connection_pool/core/pool/manager.py,
      src/redis_connection_pool/core/pool/facade.py, src/redis_connection_pool/core/pool/registry.py
"""

from redis_connection_pool.core.pool.facade import RedisConnectionPool
from redis_connection_pool.core.pool.manager import ConnectionPoolManager
from redis_connection_pool.core.pool.model import PoolConfig, PoolState, PoolStats
from redis_connection_pool.core.pool.registry import (
    PoolRegistry,
    get_default_registry,
    get_or_create_pool,
)

__all__ = [
    "PoolConfig",
    "PoolState",
    "PoolStats",
    "ConnectionPoolManager",
    "RedisConnectionPool",
    "PoolRegistry",
    "get_default_registry",
    "get_or_create_pool",
]
