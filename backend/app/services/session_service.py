# backend/app/services/session_service.py

import logging
from typing import Any, List

from app.crud.sessions import SessionStore
from app.models.session import ClosedSession, SessionInDB
from app.schemas.sync import SyncResult
from app.services.resolver import SessionResolver
from app.services.sync_bridge import SyncBridge

logger = logging.getLogger(__name__)


class SessionService:
    """
    Start / Stop 오케스트레이션.
    Stop은 세션 종료가 성공하면 동기화 결과와 무관하게 성공입니다.
    """

    def __init__(self, store: SessionStore, bridge: SyncBridge, resolver: SessionResolver | None = None):
        self.store = store
        self.bridge = bridge
        self.resolver = resolver or SessionResolver(store)

    async def start(self, subject: str | None = None) -> SessionInDB:
        session = await self.store.create(subject)
        logger.info("session started id=%s subject=%r", session.id, session.subject)
        return session

    async def stop(self, identifier: Any = None) -> tuple[ClosedSession, SyncResult]:
        # NotFoundError / StoreUnavailable는 그대로 전파
        closed = await self.resolver.resolve(identifier)
        logger.info(
            "session stopped id=%s via=%s duration=%.2fmin",
            closed.id, closed.matched_by, closed.duration,
        )
        result = await self._sync(closed)
        return closed, result

    async def _sync(self, closed: ClosedSession) -> SyncResult:
        try:
            result = await self.bridge.sync(closed)
        except Exception as e:
            # 예상 못한 오류도 Stop 응답에는 영향 없음
            logger.exception("unexpected sync error for session %s", closed.id)
            result = SyncResult.failed(f"unexpected: {e}")

        if result.status == "failed":
            logger.warning("sync failed for session %s: %s", closed.id, result.reason)
        else:
            logger.info("sync %s for session %s (%s)", result.status, closed.id, result.record_id or result.reason)
        return result

    async def get(self, session_id: str) -> SessionInDB | None:
        return await self.store.get(session_id)

    async def list_recent(self, limit: int = 50) -> List[SessionInDB]:
        return await self.store.list_recent(limit)
