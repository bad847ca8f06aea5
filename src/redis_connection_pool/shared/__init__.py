"""
목적: 공통 모듈 패키지를 정의한다.
설명: 로깅/예외/설정/상수 하위 패키지를 묶는다.
디자인 패턴: 패키지 초기화
참조: src/redis_connection_pool/shared/logging/__init__.py
"""
