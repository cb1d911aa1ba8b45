# backend/app/core/exceptions.py

from typing import Dict, Optional


class StudyTimerError(Exception):
    """서비스 공통 예외"""


class NotFoundError(StudyTimerError):
    """종료할 세션을 찾지 못함 (resolver cascade 전 단계 실패)"""


class StoreUnavailable(StudyTimerError):
    """MongoDB 호출 실패. Start/Stop 요청 자체를 실패시킵니다."""


class ConfigError(StudyTimerError):
    """
    동기화 대상 DB 스키마에 필수 역할(title, 날짜)이 없음.
    진단용으로 발견된 속성 목록({이름: 타입})을 함께 들고 다닙니다.
    """

    def __init__(self, message: str, properties: Optional[Dict[str, str]] = None):
        super().__init__(message)
        self.properties = properties or {}


class SyncFailure(StudyTimerError):
    """외부(Notion) 호출 실패. SyncBridge 밖으로 전파되지 않습니다."""
