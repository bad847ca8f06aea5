"""
목적: 커넥션 풀 예외 체계를 정의한다.
설명: 연결 실패, 풀 고갈, 동시 생성, 종료된 풀 사용, 명령 실패를 구분한다.
디자인 패턴: 도메인 예외 객체
참조: src/redis_connection_pool/shared/exceptions/base.py, src/redis_connection_pool/core/pool/manager.py
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from redis_connection_pool.shared.exceptions.base import BaseAppException
from redis_connection_pool.shared.exceptions.models import ExceptionDetail


class RedisPoolError(BaseAppException):
    """커넥션 풀 예외의 공통 부모 클래스이다.

    하위 클래스는 `CODE`, `HINT`, `RETRYABLE` 만 지정하고, 호출부는 메시지와
    메타데이터만 넘긴다.
    """

    CODE = "POOL-ERROR"
    HINT: Optional[str] = None
    RETRYABLE = False

    def __init__(
        self,
        message: str,
        original: Optional[BaseException] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        detail = ExceptionDetail(
            code=self.CODE,
            cause=str(original) if original is not None else None,
            hint=self.HINT,
            retryable=self.RETRYABLE,
            metadata=metadata or {},
        )
        super().__init__(message=message, detail=detail, original=original)


class PoolConnectionError(RedisPoolError):
    """Redis 연결 수립 또는 유지에 실패했다(네트워크 오류, 인증 거부)."""

    CODE = "POOL-CONNECTION"
    HINT = "Redis 주소와 인증 정보를 확인하세요. 재시도 정책은 호출자가 결정합니다."
    RETRYABLE = True


class PoolExhaustedError(PoolConnectionError):
    """빈 커넥션이 없고 새 커넥션 생성도 실패했다."""

    CODE = "POOL-EXHAUSTED"


class ConcurrentInitializationError(RedisPoolError):
    """같은 풀에서 커넥션 생성이 이미 진행 중이다."""

    CODE = "POOL-CONCURRENT-INIT"
    HINT = "풀 초기화를 await 했는지, 팩토리를 풀 밖에서 직접 호출하지 않았는지 확인하세요."


class PoolClosedError(RedisPoolError):
    """드레인 중이거나 종료된 풀에 작업을 요청했다."""

    CODE = "POOL-CLOSED"
    HINT = "shutdown() 이후에는 새 풀을 생성해야 합니다."


class CommandError(RedisPoolError):
    """Redis가 개별 명령을 거부했다(잘못된 인자, 타입 불일치 등)."""

    CODE = "POOL-COMMAND"

    @property
    def command(self) -> Optional[str]:
        """실패한 명령 이름을 반환한다."""

        return self.detail.metadata.get("command")
