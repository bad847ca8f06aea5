"""
목적: 공통 상수 집합을 제공한다.
설명: 설정 로더와 커넥션 풀이 공유하는 기본값을 정의한다.
디자인 패턴: 상수 객체
참조: src/redis_connection_pool/shared/config/loader.py, src/redis_connection_pool/core/pool/model.py
"""


class SharedConst:
    """공통 상수 집합이다.

    Attributes:
        DEFAULT_ENCODING: 기본 파일 인코딩.
        ENV_NESTED_DELIMITER: 환경 변수 키를 중첩 경로로 해석하는 구분자.
        POOL_ENV_PREFIX: 풀 설정 환경 변수 접두사.
        REDIS_ENV_PREFIX: Redis 접속 설정 환경 변수 접두사.
        DEFAULT_MAX_CLIENTS: 풀 최대 커넥션 수 기본값.
        DEFAULT_MIN_CLIENTS: 초기화 시 미리 여는 커넥션 수 기본값.
        DEFAULT_REDIS_HOST: Redis 기본 호스트.
        DEFAULT_REDIS_PORT: Redis 기본 포트.
        BLOCKING_POP_TIMEOUT: BLPOP/BRPOP 대기 시간(0은 무한 대기).
    """

    DEFAULT_ENCODING = "utf-8"
    ENV_NESTED_DELIMITER = "__"
    POOL_ENV_PREFIX = "REDIS_POOL__"
    REDIS_ENV_PREFIX = "REDIS_"
    DEFAULT_MAX_CLIENTS = 5
    DEFAULT_MIN_CLIENTS = 0
    DEFAULT_REDIS_HOST = "127.0.0.1"
    DEFAULT_REDIS_PORT = 6379
    BLOCKING_POP_TIMEOUT = 0


__all__ = ["SharedConst"]
