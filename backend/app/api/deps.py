from fastapi import Depends, HTTPException, Request, status

from app.core.config import Settings, get_settings
from app.crud.sessions import SessionStore
from app.services.session_service import SessionService
from app.services.sync_bridge import SyncBridge


def get_session_store(request: Request, settings: Settings = Depends(get_settings)) -> SessionStore:
    """
    lifespan에서 연결한 Mongo 핸들로 SessionStore를 만듭니다.
    """
    mongo = getattr(request.app.state, "mongo", None)
    if mongo is None:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Database connection failed")
    return SessionStore(mongo.sessions, subject_max_length=settings.SUBJECT_MAX_LENGTH)


def get_sync_bridge(request: Request) -> SyncBridge:
    # 설정이 없으면 lifespan에서 client 없는 bridge가 올라감 (항상 skipped)
    bridge = getattr(request.app.state, "sync_bridge", None)
    return bridge or SyncBridge()


def get_session_service(
    store: SessionStore = Depends(get_session_store),
    bridge: SyncBridge = Depends(get_sync_bridge),
) -> SessionService:
    return SessionService(store, bridge)
