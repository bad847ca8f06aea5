"""
목적: Redis 연동 모듈 공개 API를 제공한다.
설명: 접속 설정 모델과 커넥션 팩토리를 노출한다.
디자인 패턴: 퍼사드
참조: src/redis_connection_pool/integrations/redis/connection.py, src/redis_connection_pool/integrations/redis/model.py
"""

from redis_connection_pool.integrations.redis.connection import FactoryState, RedisConnectionFactory
from redis_connection_pool.integrations.redis.model import RedisSettings

__all__ = ["FactoryState", "RedisConnectionFactory", "RedisSettings"]
