"""
목적: Redis 접속 설정 모델을 정의한다.
설명: URL 또는 호스트/포트/인증 조각을 받아 클라이언트 생성 인자로 변환한다.
디자인 패턴: 데이터 전송 객체(DTO)
참조: src/redis_connection_pool/integrations/redis/connection.py
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional
from urllib.parse import quote, urlsplit, urlunsplit

from pydantic import BaseModel, ConfigDict, Field

from redis_connection_pool.shared.config import ConfigLoader
from redis_connection_pool.shared.const import SharedConst


class RedisSettings(BaseModel):
    """Redis 접속 설정 모델이다.

    풀은 이 값을 해석하지 않고 커넥션 팩토리에 그대로 넘긴다.

    Args:
        url: 완성된 접속 URL. 지정되면 host/port/db/인증 조각보다 우선한다.
        host: Redis 호스트.
        port: Redis 포트.
        db: 데이터베이스 번호.
        username: ACL 사용자 이름.
        password: 비밀번호.
        ssl: True이면 `rediss://` 로 접속한다.
        socket_timeout: 명령 소켓 타임아웃(초). None이면 무제한.
        socket_connect_timeout: 연결 타임아웃(초).
        decode_responses: 응답을 str로 디코딩할지 여부.
        client_name: `CLIENT SETNAME` 으로 등록할 이름.
    """

    model_config = ConfigDict(frozen=True, coerce_numbers_to_str=True)

    url: Optional[str] = None
    host: str = SharedConst.DEFAULT_REDIS_HOST
    port: int = Field(default=SharedConst.DEFAULT_REDIS_PORT, ge=1, le=65535)
    db: int = Field(default=0, ge=0)
    username: Optional[str] = None
    password: Optional[str] = None
    ssl: bool = False
    socket_timeout: Optional[float] = Field(default=None, gt=0)
    socket_connect_timeout: Optional[float] = Field(default=None, gt=0)
    decode_responses: bool = True
    client_name: Optional[str] = None

    @classmethod
    def from_env(
        cls,
        prefix: str = SharedConst.REDIS_ENV_PREFIX,
        environ: Optional[Mapping[str, str]] = None,
    ) -> "RedisSettings":
        """`REDIS_HOST`, `REDIS_PORT`, `REDIS_URL` 같은 환경 변수로 설정을 만든다."""

        loader = ConfigLoader().add_env(
            prefix=prefix, environ=environ, nested=False, parse_values=False
        )
        known = set(cls.model_fields)
        values = {key: value for key, value in loader.build().items() if key in known}
        return cls.model_validate(values)

    def resolve_url(self) -> str:
        """접속 URL을 반환한다."""

        if self.url:
            return self.url
        scheme = "rediss" if self.ssl else "redis"
        auth = ""
        if self.username and self.password:
            auth = f"{quote(self.username, safe='')}:{quote(self.password, safe='')}@"
        elif self.password:
            auth = f":{quote(self.password, safe='')}@"
        elif self.username:
            auth = f"{quote(self.username, safe='')}@"
        return f"{scheme}://{auth}{self.host}:{self.port}/{self.db}"

    def client_kwargs(self) -> Dict[str, Any]:
        """`Redis.from_url` 에 넘길 키워드 인자를 반환한다."""

        kwargs: Dict[str, Any] = {"decode_responses": self.decode_responses}
        if self.socket_timeout is not None:
            kwargs["socket_timeout"] = self.socket_timeout
        if self.socket_connect_timeout is not None:
            kwargs["socket_connect_timeout"] = self.socket_connect_timeout
        if self.client_name:
            kwargs["client_name"] = self.client_name
        return kwargs

    def redacted_url(self) -> str:
        """비밀번호를 가린 접속 URL을 반환한다. `url` 에 들어 있는 비밀번호도 가린다."""

        url = self.resolve_url()
        parts = urlsplit(url)
        if parts.password is None:
            return url
        userinfo, _, hostinfo = parts.netloc.rpartition("@")
        username = userinfo.partition(":")[0]
        return urlunsplit(parts._replace(netloc=f"{username}:***@{hostinfo}"))
