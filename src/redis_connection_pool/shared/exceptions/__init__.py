"""
목적: 예외 모듈 공개 API를 제공한다.
설명: 외부에서 사용할 예외 모델, 베이스 클래스, 풀 예외 체계를 노출한다.
디자인 패턴: 퍼사드
참조: src/redis_connection_pool/shared/exceptions/models.py, src/redis_connection_pool/shared/exceptions/base.py, src/redis_connection_pool/shared/exceptions/pool_errors.py
"""

from redis_connection_pool.shared.exceptions.base import BaseAppException
from redis_connection_pool.shared.exceptions.models import ExceptionDetail
from redis_connection_pool.shared.exceptions.pool_errors import (
    CommandError,
    ConcurrentInitializationError,
    PoolClosedError,
    PoolConnectionError,
    PoolExhaustedError,
    RedisPoolError,
)

__all__ = [
    "BaseAppException",
    "ExceptionDetail",
    "RedisPoolError",
    "PoolConnectionError",
    "PoolExhaustedError",
    "ConcurrentInitializationError",
    "PoolClosedError",
    "CommandError",
]
