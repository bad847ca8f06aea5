"""
목적: 커넥션 풀 핵심 로직 패키지를 정의한다.
설명: 풀 관리자, 명령 퍼사드, 레지스트리를 묶는다.
디자인 패턴: 패키지 초기화
참조: src/redis_connection_pool/core/pool/__init__.py
"""
