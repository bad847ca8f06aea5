"""
목적: 테스트 공통 환경/픽스처/로깅 훅을 제공한다.
설명: .env 로딩과 REDIS_URL 조합, 인메모리 Redis 대역(fake) 모듈, 라이브 Redis 픽스처를 함께 제공한다.
디자인 패턴: 테스트 픽스처 + 테스트 훅 + 테스트 대역
참조: src/redis_connection_pool/integrations/redis/connection.py, pyproject.toml
"""

from __future__ import annotations

import asyncio
import fnmatch
import logging
import math
import os
import time
from pathlib import Path
from types import SimpleNamespace
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urlparse

import pytest
from dotenv import load_dotenv
from redis import exceptions as redis_exceptions


_LOGGER = logging.getLogger("tests")
_PROJECT_ROOT = Path(__file__).resolve().parents[1]


def _load_env_files() -> None:
    """환경 변수 파일이 있으면 로딩한다."""

    env_path = _PROJECT_ROOT / ".env"
    if not env_path.exists():
        _LOGGER.info(".env 파일이 없어 기본 환경 변수만 사용합니다.")
        return
    load_dotenv(env_path, override=False)


def _set_if_missing(key: str, value: str | None) -> None:
    """환경 변수가 없을 때만 값을 설정한다."""

    if not value:
        return
    if not os.getenv(key):
        os.environ[key] = value


def _build_redis_url() -> str | None:
    """Redis URL을 조합한다."""

    host = os.getenv("REDIS_HOST", "127.0.0.1")
    port = os.getenv("REDIS_PORT", "6379")
    db = os.getenv("REDIS_DB", "0")
    password = os.getenv("REDIS_PW")
    if password:
        return f"redis://:{password}@{host}:{port}/{db}"
    return f"redis://{host}:{port}/{db}"


_load_env_files()
_set_if_missing("REDIS_URL", _build_redis_url())


class FakeRedisServer:
    """명령 퍼사드 검증용 인메모리 Redis 서버 대역이다.

    풀이 넘기는 명령을 문자열/해시/리스트 자료구조로 흉내 내고,
    동시에 열린 커넥션 수의 최댓값을 기록한다.
    """

    def __init__(self) -> None:
        self.strings: Dict[str, str] = {}
        self.hashes: Dict[str, Dict[str, str]] = {}
        self.lists: Dict[str, List[str]] = {}
        self.expires_at: Dict[str, float] = {}
        self.password: Optional[str] = None
        self.refuse_connections = False
        self.connect_delay = 0.0
        self.open_connections = 0
        self.peak_connections = 0
        self.commands: List[Tuple[str, tuple]] = []
        self._list_changed = asyncio.Condition()

    async def push(self, key: str, *values: str, left: bool = False) -> int:
        """테스트 코드가 풀을 거치지 않고 리스트에 값을 넣는다."""

        return await self.execute("LPUSH" if left else "RPUSH", (key, *values))

    async def execute(self, name: str, args: tuple) -> Any:
        self.commands.append((name, args))
        self._expire_keys()
        handler = getattr(self, f"_cmd_{name.lower()}", None)
        if handler is None:
            raise redis_exceptions.ResponseError(f"unknown command '{name}'")
        return await handler(*args)

    def _expire_keys(self) -> None:
        now = time.monotonic()
        for key in [key for key, deadline in self.expires_at.items() if deadline <= now]:
            self._drop(key)

    def _exists(self, key: str) -> bool:
        return key in self.strings or key in self.hashes or key in self.lists

    def _drop(self, key: str) -> bool:
        self.expires_at.pop(key, None)
        removed = False
        for store in (self.strings, self.hashes, self.lists):
            if store.pop(key, None) is not None:
                removed = True
        return removed

    def _check_type(self, key: str, store: dict) -> None:
        if self._exists(key) and key not in store:
            raise redis_exceptions.ResponseError(
                "WRONGTYPE Operation against a key holding the wrong kind of value"
            )

    async def _cmd_ping(self) -> bool:
        return True

    async def _cmd_echo(self, message: Any) -> str:
        return str(message)

    async def _cmd_get(self, key: str) -> Optional[str]:
        self._check_type(key, self.strings)
        return self.strings.get(key)

    async def _cmd_set(self, key: str, value: Any, *options: Any) -> bool:
        self._drop(key)
        self.strings[key] = str(value)
        if options:
            if len(options) != 2 or str(options[0]).upper() != "EX" or int(options[1]) <= 0:
                raise redis_exceptions.ResponseError("invalid expire time in 'set' command")
            self.expires_at[key] = time.monotonic() + int(options[1])
        return True

    async def _cmd_del(self, *keys: str) -> int:
        return sum(1 for key in keys if self._drop(key))

    async def _cmd_expire(self, key: str, seconds: Any) -> int:
        if not self._exists(key):
            return 0
        self.expires_at[key] = time.monotonic() + int(seconds)
        return 1

    async def _cmd_ttl(self, key: str) -> int:
        if not self._exists(key):
            return -2
        deadline = self.expires_at.get(key)
        if deadline is None:
            return -1
        return math.ceil(deadline - time.monotonic())

    async def _cmd_incr(self, key: str) -> int:
        self._check_type(key, self.strings)
        try:
            value = int(self.strings.get(key, "0")) + 1
        except ValueError as exc:
            raise redis_exceptions.ResponseError("value is not an integer or out of range") from exc
        self.strings[key] = str(value)
        return value

    async def _cmd_keys(self, pattern: str) -> List[str]:
        names = [*self.strings, *self.hashes, *self.lists]
        return sorted(name for name in names if fnmatch.fnmatchcase(name, pattern))

    async def _cmd_hset(self, key: str, field: str, value: Any) -> int:
        self._check_type(key, self.hashes)
        bucket = self.hashes.setdefault(key, {})
        created = field not in bucket
        bucket[field] = str(value)
        return int(created)

    async def _cmd_hget(self, key: str, field: str) -> Optional[str]:
        self._check_type(key, self.hashes)
        return self.hashes.get(key, {}).get(field)

    async def _cmd_hgetall(self, key: str) -> Dict[str, str]:
        self._check_type(key, self.hashes)
        return dict(self.hashes.get(key, {}))

    async def _cmd_hdel(self, key: str, *fields: str) -> int:
        self._check_type(key, self.hashes)
        bucket = self.hashes.get(key, {})
        removed = sum(1 for field in fields if bucket.pop(field, None) is not None)
        if key in self.hashes and not bucket:
            self._drop(key)
        return removed

    async def _cmd_lpush(self, key: str, *values: Any) -> int:
        return await self._push(key, values, left=True)

    async def _cmd_rpush(self, key: str, *values: Any) -> int:
        return await self._push(key, values, left=False)

    async def _cmd_blpop(self, key: str, timeout: Any) -> List[str]:
        return await self._blocking_pop(key, left=True)

    async def _cmd_brpop(self, key: str, timeout: Any) -> List[str]:
        return await self._blocking_pop(key, left=False)

    async def _push(self, key: str, values: tuple, left: bool) -> int:
        self._check_type(key, self.lists)
        items = self.lists.setdefault(key, [])
        for value in values:
            if left:
                items.insert(0, str(value))
            else:
                items.append(str(value))
        async with self._list_changed:
            self._list_changed.notify_all()
        return len(items)

    async def _blocking_pop(self, key: str, left: bool) -> List[str]:
        async with self._list_changed:
            await self._list_changed.wait_for(lambda: bool(self.lists.get(key)))
            items = self.lists[key]
            value = items.pop(0) if left else items.pop()
            if not items:
                self._drop(key)
            return [key, value]


class FakeRedisClient:
    """`redis.asyncio.Redis` 단일 커넥션 클라이언트 대역이다."""

    def __init__(self, server: FakeRedisServer, url: str, options: Dict[str, Any]) -> None:
        self.server = server
        self.url = url
        self.options = options
        self.connected = False
        self.closed = False
        self.broken = False

    async def initialize(self) -> "FakeRedisClient":
        await asyncio.sleep(self.server.connect_delay)
        if self.server.refuse_connections:
            raise redis_exceptions.ConnectionError("Error 111 connecting to fake:6379. Connection refused.")
        if self.server.password is not None and urlparse(self.url).password != self.server.password:
            raise redis_exceptions.AuthenticationError("invalid username-password pair or user is disabled.")
        self.connected = True
        self.server.open_connections += 1
        self.server.peak_connections = max(self.server.peak_connections, self.server.open_connections)
        return self

    async def ping(self) -> bool:
        return await self.execute_command("PING")

    async def execute_command(self, name: str, *args: Any) -> Any:
        if self.closed or self.broken:
            raise redis_exceptions.ConnectionError("Connection closed by server.")
        await asyncio.sleep(0)
        return await self.server.execute(name.upper(), args)

    async def aclose(self) -> None:
        if self.closed:
            return
        self.closed = True
        if self.connected:
            self.connected = False
            self.server.open_connections -= 1
        if self.broken:
            raise redis_exceptions.ConnectionError("Connection reset by peer")


class FakeRedisModule:
    """`redis.asyncio` 모듈 자리에 주입하는 대역이다."""

    def __init__(self, server: FakeRedisServer) -> None:
        self.server = server
        self.clients: List[FakeRedisClient] = []
        self.Redis = SimpleNamespace(from_url=self._from_url)

    def _from_url(self, url: str, **options: Any) -> FakeRedisClient:
        client = FakeRedisClient(self.server, url, options)
        self.clients.append(client)
        return client

    @property
    def open_clients(self) -> List[FakeRedisClient]:
        return [client for client in self.clients if client.connected and not client.closed]


@pytest.fixture
def fake_redis_server() -> FakeRedisServer:
    """인메모리 Redis 서버 대역을 반환한다."""

    return FakeRedisServer()


@pytest.fixture
def fake_redis_module(fake_redis_server: FakeRedisServer) -> FakeRedisModule:
    """팩토리에 주입할 Redis 모듈 대역을 반환한다."""

    return FakeRedisModule(fake_redis_server)


@pytest.fixture
def redis_url() -> str:
    """라이브 Redis URL을 반환한다. 접속할 수 없으면 테스트를 건너뛴다."""

    import redis

    url = os.getenv("REDIS_URL")
    if not url:
        pytest.skip("REDIS_URL이 설정되어 있지 않습니다.")
    client = redis.Redis.from_url(url, socket_connect_timeout=1)
    try:
        client.ping()
    except (redis_exceptions.RedisError, OSError) as exc:
        pytest.skip(f"Redis에 접속할 수 없습니다: {exc}")
    finally:
        client.close()
    return url


def pytest_sessionstart(session) -> None:  # noqa: D401 - pytest 훅 시그니처 유지
    """테스트 세션 시작을 로깅한다."""

    _LOGGER.info("테스트 세션 시작")


def pytest_sessionfinish(session, exitstatus: int) -> None:  # noqa: D401 - pytest 훅 시그니처 유지
    """테스트 세션 종료를 로깅한다."""

    _LOGGER.info("테스트 세션 종료 (exitstatus=%s)", exitstatus)


def pytest_runtest_logreport(report) -> None:  # noqa: D401 - pytest 훅 시그니처 유지
    """테스트 결과를 로깅한다."""

    if report.when != "call":
        return
    if report.passed:
        _LOGGER.info("테스트 완료: %s", report.nodeid)
        return
    if report.skipped:
        _LOGGER.warning("테스트 스킵: %s", report.nodeid)
        return
    _LOGGER.error("테스트 실패: %s", report.nodeid)
