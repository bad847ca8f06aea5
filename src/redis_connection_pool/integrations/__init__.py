"""
목적: 외부 시스템 연동 패키지를 정의한다.
설명: 백엔드 저장소(Redis) 연동 모듈을 묶는다.
디자인 패턴: 패키지 초기화
참조: src/redis_connection_pool/integrations/redis/__init__.py
"""
