"""
목적: 풀 설정 로더를 제공한다.
설명: dict/JSON 파일/환경 변수를 병합한 뒤 Pydantic 설정 모델로 검증한다.
디자인 패턴: 빌더 패턴
참조: src/redis_connection_pool/core/pool/model.py, src/redis_connection_pool/integrations/redis/model.py
"""

from __future__ import annotations

import json
import os
from typing import Any, Dict, Mapping, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from redis_connection_pool.shared.const import SharedConst
from redis_connection_pool.shared.logging import Logger, create_default_logger

ModelT = TypeVar("ModelT", bound=BaseModel)


class ConfigLoader:
    """설정 로더 구현체이다.

    나중에 추가된 소스가 앞선 소스를 덮어쓰며, 중첩 사전은 재귀적으로 병합한다.

    Args:
        logger: 주입 가능한 로거.
    """

    _DEFAULT_ENCODING = SharedConst.DEFAULT_ENCODING
    _DEFAULT_ENV_DELIMITER = SharedConst.ENV_NESTED_DELIMITER

    def __init__(self, logger: Optional[Logger] = None) -> None:
        self._logger = logger or create_default_logger("ConfigLoader")
        self._sources: list[Dict[str, Any]] = []

    def add_dict(self, data: Optional[Mapping[str, Any]]) -> "ConfigLoader":
        """딕셔너리 설정을 추가한다."""

        if not data:
            return self
        self._sources.append(dict(data))
        return self

    def add_json_file(
        self,
        path: str,
        required: bool = False,
        encoding: Optional[str] = None,
    ) -> "ConfigLoader":
        """JSON 파일 설정을 추가한다."""

        if not path:
            raise ValueError("path는 비어 있을 수 없습니다.")
        if not os.path.exists(path):
            if required:
                raise FileNotFoundError(path)
            self._logger.warning(f"설정 파일이 없어 건너뜁니다: {path}")
            return self
        with open(path, "r", encoding=encoding or self._DEFAULT_ENCODING) as handle:
            try:
                payload = json.load(handle)
            except json.JSONDecodeError as exc:
                raise ValueError("JSON 설정 파일 파싱에 실패했습니다.") from exc
        if not isinstance(payload, dict):
            raise ValueError("JSON 설정 파일은 최상위가 객체여야 합니다.")
        self._sources.append(payload)
        return self

    def add_env(
        self,
        prefix: str = "",
        delimiter: Optional[str] = None,
        lowercase_keys: bool = True,
        environ: Optional[Mapping[str, str]] = None,
        nested: bool = True,
        parse_values: bool = True,
    ) -> "ConfigLoader":
        """환경 변수 설정을 추가한다.

        `REDIS_POOL__REDIS__HOST=cache` 는 접두사 `REDIS_POOL__` 기준으로
        `{"redis": {"host": "cache"}}` 로 해석된다. `parse_values` 가 False이면
        값을 문자열 그대로 두고 타입 변환은 Pydantic 모델에 맡긴다.
        """

        delimiter = delimiter or self._DEFAULT_ENV_DELIMITER
        source = os.environ if environ is None else environ
        env_data: Dict[str, Any] = {}
        for key, value in source.items():
            if prefix and not key.startswith(prefix):
                continue
            trimmed = key[len(prefix) :] if prefix else key
            raw_parts = trimmed.split(delimiter) if nested else [trimmed]
            parts = [part for part in raw_parts if part]
            if lowercase_keys:
                parts = [part.lower() for part in parts]
            if not parts:
                continue
            parsed = self._parse_value(value) if parse_values else value
            self._assign_nested(env_data, parts, parsed)
        if env_data:
            self._sources.append(env_data)
        return self

    def build(self, overrides: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        """수집된 설정을 병합해 반환한다."""

        merged: Dict[str, Any] = {}
        for source in self._sources:
            merged = self._merge(merged, source)
        if overrides:
            merged = self._merge(merged, dict(overrides))
        return merged

    def build_model(
        self,
        model_type: Type[ModelT],
        overrides: Optional[Mapping[str, Any]] = None,
    ) -> ModelT:
        """병합된 설정을 Pydantic 모델로 검증해 반환한다."""

        merged = self.build(overrides)
        try:
            return model_type.model_validate(merged)
        except ValidationError as exc:
            self._logger.error(
                f"설정 검증에 실패했습니다: {model_type.__name__}",
                metadata={"errors": exc.errors(include_url=False)},
            )
            raise

    def _assign_nested(self, root: Dict[str, Any], keys: list[str], value: Any) -> None:
        current = root
        for part in keys[:-1]:
            if not isinstance(current.get(part), dict):
                current[part] = {}
            current = current[part]
        current[keys[-1]] = value

    def _merge(self, base: Dict[str, Any], incoming: Dict[str, Any]) -> Dict[str, Any]:
        merged = dict(base)
        for key, value in incoming.items():
            if isinstance(merged.get(key), dict) and isinstance(value, dict):
                merged[key] = self._merge(merged[key], value)
            else:
                merged[key] = value
        return merged

    def _parse_value(self, raw: str) -> Any:
        lowered = raw.strip().lower()
        if lowered in {"true", "false"}:
            return lowered == "true"
        if lowered in {"null", "none", ""}:
            return None
        try:
            if "." in raw:
                return float(raw)
            return int(raw)
        except ValueError:
            pass
        if raw.startswith(("{", "[")):
            try:
                return json.loads(raw)
            except json.JSONDecodeError:
                return raw
        return raw
