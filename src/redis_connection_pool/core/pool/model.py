"""
목적: 커넥션 풀 모델을 정의한다.
설명: 풀 설정, 풀 상태, 풀 통계 스냅샷을 Pydantic으로 제공한다.
디자인 패턴: 데이터 전송 객체(DTO)
참조: src/redis_connection_pool/core/pool/manager.py, src/redis_connection_pool/core/pool/facade.py
"""

from __future__ import annotations

from enum import Enum
from typing import Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator

from redis_connection_pool.integrations.redis.model import RedisSettings
from redis_connection_pool.shared.config import ConfigLoader
from redis_connection_pool.shared.const import SharedConst


class PoolState(str, Enum):
    """커넥션 풀 상태 열거형."""

    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"
    DRAINING = "draining"
    CLOSED = "closed"


class PoolConfig(BaseModel):
    """커넥션 풀 설정 모델이다. 생성 후에는 바꿀 수 없다.

    Args:
        max_clients: 동시에 살아 있을 수 있는 최대 커넥션 수.
        min_clients: 초기화 시 미리 열어 둘 커넥션 수.
        redis: Redis 접속 설정.
    """

    model_config = ConfigDict(frozen=True)

    max_clients: int = Field(default=SharedConst.DEFAULT_MAX_CLIENTS, ge=1)
    min_clients: int = Field(default=SharedConst.DEFAULT_MIN_CLIENTS, ge=0)
    redis: RedisSettings = Field(default_factory=RedisSettings)

    @model_validator(mode="after")
    def _check_bounds(self) -> "PoolConfig":
        if self.min_clients > self.max_clients:
            raise ValueError("min_clients는 max_clients보다 클 수 없습니다.")
        return self

    @classmethod
    def from_env(
        cls,
        prefix: str = SharedConst.POOL_ENV_PREFIX,
        environ: Optional[Mapping[str, str]] = None,
    ) -> "PoolConfig":
        """환경 변수로 풀 설정을 만든다.

        `REDIS_POOL__MAX_CLIENTS=10`, `REDIS_POOL__REDIS__HOST=cache` 형식을 읽는다.
        """

        return (
            ConfigLoader()
            .add_env(prefix=prefix, environ=environ, parse_values=False)
            .build_model(cls)
        )


class PoolStats(BaseModel):
    """커넥션 풀 통계 스냅샷이다.

    Args:
        max_clients: 최대 커넥션 수.
        idle: 대기 중인 커넥션 수.
        in_use: 명령 실행에 대여된 커넥션 수.
        pending: 생성 중인 커넥션 수.
        waiting: 커넥션을 기다리는 호출자 수.
        state: 풀 상태.
    """

    max_clients: int
    idle: int = 0
    in_use: int = 0
    pending: int = 0
    waiting: int = 0
    state: PoolState = PoolState.UNINITIALIZED

    @computed_field  # type: ignore[prop-decorator]
    @property
    def size(self) -> int:
        """풀이 소유한 커넥션 수(생성 중 포함)."""

        return self.idle + self.in_use + self.pending

    @computed_field  # type: ignore[prop-decorator]
    @property
    def available(self) -> int:
        """기다리지 않고 얻을 수 있는 커넥션 수."""

        return self.idle + max(self.max_clients - self.size, 0)
