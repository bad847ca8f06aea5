"""
목적: 로거 인터페이스와 기본 구현체를 제공한다.
설명: 저장소 주입형 로거와 인메모리/표준 logging 연동 저장소를 포함한다.
디자인 패턴: 전략 패턴, 저장소 패턴
참조: src/redis_connection_pool/shared/logging/models.py
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections import deque
from datetime import datetime, timezone
from typing import Deque, List, Optional

from .models import LogContext, LogLevel, LogRecord

_DEFAULT_MAX_RECORDS = 1000


class LogRepository(ABC):
    """로그 저장소 인터페이스."""

    @abstractmethod
    def add(self, record: LogRecord) -> None:
        """로그 레코드를 저장한다."""

    @abstractmethod
    def list(self) -> List[LogRecord]:
        """저장된 로그를 반환한다."""


class InMemoryLogRepository(LogRepository):
    """인메모리 로그 저장소 구현체.

    장기 실행 풀에서 메모리가 늘어나지 않도록 최근 `max_records`개만 보관한다.
    """

    def __init__(self, max_records: int = _DEFAULT_MAX_RECORDS) -> None:
        if max_records <= 0:
            raise ValueError("max_records는 1 이상이어야 합니다.")
        self._records: Deque[LogRecord] = deque(maxlen=max_records)

    def add(self, record: LogRecord) -> None:
        self._records.append(record)

    def list(self) -> List[LogRecord]:
        return list(self._records)


class StandardLogRepository(InMemoryLogRepository):
    """표준 logging 모듈로 레코드를 전달하는 저장소 구현체.

    호스트 애플리케이션의 logging 설정을 그대로 따르며, 최근 레코드는
    인메모리로도 보관한다.
    """

    def add(self, record: LogRecord) -> None:
        super().add(record)
        target = logging.getLogger(record.logger_name)
        level = record.level.to_stdlib()
        if not target.isEnabledFor(level):
            return
        extra = {"log_metadata": record.metadata}
        if record.context is not None:
            extra["log_context"] = record.context.model_dump(exclude_none=True)
        target.log(level, self._format(record), extra=extra)

    def _format(self, record: LogRecord) -> str:
        if record.context is None or record.context.pool_id is None:
            return record.message
        return f"[{record.context.pool_id}] {record.message}"


class Logger(ABC):
    """로거 인터페이스."""

    @abstractmethod
    def log(
        self,
        level: LogLevel,
        message: str,
        context: Optional[LogContext] = None,
        metadata: Optional[dict] = None,
    ) -> None:
        """로그를 기록한다."""

    @abstractmethod
    def with_context(self, context: LogContext) -> "Logger":
        """컨텍스트가 합쳐진 새 로거를 반환한다."""

    def debug(self, message: str, metadata: Optional[dict] = None) -> None:
        self.log(LogLevel.DEBUG, message, metadata=metadata)

    def info(self, message: str, metadata: Optional[dict] = None) -> None:
        self.log(LogLevel.INFO, message, metadata=metadata)

    def warning(self, message: str, metadata: Optional[dict] = None) -> None:
        self.log(LogLevel.WARNING, message, metadata=metadata)

    def error(self, message: str, metadata: Optional[dict] = None) -> None:
        self.log(LogLevel.ERROR, message, metadata=metadata)

    def critical(self, message: str, metadata: Optional[dict] = None) -> None:
        self.log(LogLevel.CRITICAL, message, metadata=metadata)


class InMemoryLogger(Logger):
    """저장소 주입형 기본 로거 구현체."""

    def __init__(
        self,
        name: str,
        repository: Optional[LogRepository] = None,
        base_context: Optional[LogContext] = None,
    ) -> None:
        self._name = name
        self._repository = repository or InMemoryLogRepository()
        self._base_context = base_context

    @property
    def name(self) -> str:
        """로거 이름을 반환한다."""

        return self._name

    @property
    def repository(self) -> LogRepository:
        """저장소를 반환한다."""

        return self._repository

    def log(
        self,
        level: LogLevel,
        message: str,
        context: Optional[LogContext] = None,
        metadata: Optional[dict] = None,
    ) -> None:
        record = LogRecord(
            level=level,
            message=message,
            timestamp=datetime.now(timezone.utc),
            logger_name=self._name,
            context=self._merge_context(context),
            metadata=metadata or {},
        )
        self._repository.add(record)

    def with_context(self, context: LogContext) -> "Logger":
        return InMemoryLogger(
            name=self._name,
            repository=self._repository,
            base_context=self._merge_context(context),
        )

    def _merge_context(self, context: Optional[LogContext]) -> Optional[LogContext]:
        if self._base_context is None:
            return context
        if context is None:
            return self._base_context
        return LogContext(
            pool_id=context.pool_id or self._base_context.pool_id,
            connection_id=context.connection_id or self._base_context.connection_id,
            tags={**self._base_context.tags, **context.tags},
        )


def create_default_logger(name: str) -> InMemoryLogger:
    """표준 logging으로 전달되는 기본 로거를 생성한다."""

    return InMemoryLogger(name=name, repository=StandardLogRepository())
