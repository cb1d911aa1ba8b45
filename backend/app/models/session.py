# 파일 위치: backend/app/models/session.py

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


def ensure_aware_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """
    naive datetime이 들어오는 케이스 방어.
    naive면 UTC로 간주해서 tzinfo를 붙임.
    """
    if dt is None:
        return dt
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def compute_duration_minutes(started_at: datetime, ended_at: datetime) -> float:
    """
    duration을 분 단위로 계산.
    시계 오차 등으로 음수가 나오면 0.0으로 고정 (예외를 던지지 않음)
    """
    sec = (ensure_aware_utc(ended_at) - ensure_aware_utc(started_at)).total_seconds()
    return max(sec, 0.0) / 60.0


class SessionInDB(BaseModel):
    """
    MongoDB의 'sessions' 컬렉션에 저장되는 문서.
    duration은 저장하지 않고 started_at/ended_at으로 매번 다시 계산합니다.
    """
    id: str = Field(..., alias="_id")  # MongoDB의 '_id'(ObjectId)를 문자열로
    id_str: Optional[str] = None  # _id의 문자열 사본 (타입 불일치 대비 보조 키)
    subject: str = ""
    started_at: datetime
    ended_at: Optional[datetime] = None  # None이면 진행 중(open)

    class Config:
        populate_by_name = True

    @classmethod
    def from_doc(cls, doc: Dict[str, Any]) -> "SessionInDB":
        return cls(
            _id=str(doc["_id"]),
            id_str=doc.get("id_str"),
            subject=doc.get("subject") or "",
            started_at=ensure_aware_utc(doc["started_at"]),
            ended_at=ensure_aware_utc(doc.get("ended_at")),
        )

    @property
    def is_open(self) -> bool:
        return self.ended_at is None

    @property
    def duration(self) -> Optional[float]:
        if self.ended_at is None:
            return None
        return compute_duration_minutes(self.started_at, self.ended_at)


class ClosedSession(BaseModel):
    """
    SessionResolver가 종료 처리한 결과.
    matched_by: 어떤 cascade 단계에서 매칭되었는지 (로그/디버깅용)
    """
    id: str
    subject: str = ""
    started_at: datetime
    ended_at: datetime
    duration: float  # 분 단위, 음수 없음
    matched_by: str

    @classmethod
    def from_doc(cls, doc: Dict[str, Any], matched_by: str) -> "ClosedSession":
        session = SessionInDB.from_doc(doc)
        return cls(
            id=session.id,
            subject=session.subject,
            started_at=session.started_at,
            ended_at=session.ended_at,
            duration=compute_duration_minutes(session.started_at, session.ended_at),
            matched_by=matched_by,
        )
