# 파일 위치: backend/app/schemas/session.py

from datetime import datetime
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, Field

from app.schemas.sync import SyncResult

# --- API 요청(Request) 스키마 ---

class SessionStart(BaseModel):
    """
    [요청] POST /start
    subject는 선택. 길이 초과분은 저장 시 잘립니다.
    """
    subject: Optional[str] = None


class SessionStop(BaseModel):
    """
    [요청] POST /stop
    id는 없어도 됨 (가장 최근 진행 중 세션 종료).
    문자열 / {"$oid": ...} 등 형태가 제각각이라 Any로 받고 resolver에서 정규화합니다.
    """
    id: Optional[Any] = Field(default=None, validation_alias=AliasChoices("id", "_id", "sessionId"))


# --- API 응답(Response) 스키마 ---

class SessionStarted(BaseModel):
    ok: bool = True
    id: str
    started_at: datetime = Field(..., alias="startedAt")

    class Config:
        populate_by_name = True


class SessionStopped(BaseModel):
    """
    [응답] POST /stop 성공 시
    sync는 참고용. 실패해도 ok=True 입니다.
    """
    ok: bool = True
    id: str
    ended_at: datetime = Field(..., alias="endedAt")
    duration: float  # 분 단위
    sync: Optional[SyncResult] = None

    class Config:
        populate_by_name = True


class SessionRead(BaseModel):
    """
    [응답] GET /sessions 항목
    duration은 저장값이 아니라 started_at/ended_at으로 계산한 값 (분 단위)
    """
    id: str
    subject: str = ""
    started_at: datetime = Field(..., alias="startedAt")
    ended_at: Optional[datetime] = Field(default=None, alias="endedAt")
    duration: Optional[float] = None

    class Config:
        populate_by_name = True
