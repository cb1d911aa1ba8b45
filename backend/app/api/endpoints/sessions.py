# backend/app/api/endpoints/sessions.py

from typing import List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status

from app.api.deps import get_session_service
from app.core.exceptions import NotFoundError, StoreUnavailable
from app.schemas.session import SessionRead, SessionStart, SessionStarted, SessionStop, SessionStopped
from app.services.session_service import SessionService

router = APIRouter(tags=["Sessions"])


# --------------------------------------------------------------------------
# POST /start
# 설명: 새 공부 세션 시작 (진행 중 상태로 저장)
# --------------------------------------------------------------------------
@router.post("/start", response_model=SessionStarted)
async def start_session(
    body: Optional[SessionStart] = Body(default=None),
    service: SessionService = Depends(get_session_service),
):
    subject = body.subject if body else None
    try:
        session = await service.start(subject)
    except StoreUnavailable:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="START_FAILED")
    return SessionStarted(id=session.id, started_at=session.started_at)


# --------------------------------------------------------------------------
# POST /stop
# 설명: 세션 종료. id가 없거나 맞지 않으면 가장 최근 진행 중 세션을 종료
#       Notion 동기화 실패는 응답 성공 여부에 영향 없음
# --------------------------------------------------------------------------
@router.post("/stop", response_model=SessionStopped)
async def stop_session(
    body: Optional[SessionStop] = Body(default=None),
    service: SessionService = Depends(get_session_service),
):
    identifier = body.id if body else None
    try:
        closed, sync_result = await service.stop(identifier)
    except NotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="NOT_FOUND")
    except StoreUnavailable:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="STOP_FAILED")

    return SessionStopped(
        id=closed.id,
        ended_at=closed.ended_at,
        duration=closed.duration,
        sync=sync_result,
    )


# --------------------------------------------------------------------------
# GET /sessions?limit=50
# 설명: 최근 세션 목록 (최신순)
# --------------------------------------------------------------------------
@router.get("/sessions", response_model=List[SessionRead])
async def list_sessions(
    limit: int = Query(50, ge=1, le=500),
    service: SessionService = Depends(get_session_service),
):
    try:
        sessions = await service.list_recent(limit)
    except StoreUnavailable:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="LIST_FAILED")

    return [
        SessionRead(
            id=s.id,
            subject=s.subject,
            started_at=s.started_at,
            ended_at=s.ended_at,
            duration=s.duration,
        )
        for s in sessions
    ]


# --------------------------------------------------------------------------
# GET /sessions/{session_id}
# 설명: 세션 1개 조회 (ObjectId / 문자열 키 모두 허용)
# --------------------------------------------------------------------------
@router.get("/sessions/{session_id}", response_model=SessionRead)
async def read_session(
    session_id: str,
    service: SessionService = Depends(get_session_service),
):
    try:
        session = await service.get(session_id)
    except StoreUnavailable:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="READ_FAILED")
    if session is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="NOT_FOUND")

    return SessionRead(
        id=session.id,
        subject=session.subject,
        started_at=session.started_at,
        ended_at=session.ended_at,
        duration=session.duration,
    )
