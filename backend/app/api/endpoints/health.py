# backend/app/api/endpoints/health.py

import logging

from fastapi import APIRouter, Depends, Request

from app.api.deps import get_sync_bridge
from app.core.exceptions import ConfigError, SyncFailure
from app.schemas.sync import SyncCheckResponse
from app.services.sync_bridge import SyncBridge

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])


@router.get("/health")
async def health_check(request: Request):
    """
    [운영] 헬스 체크
    - 서버 생존 여부 + Mongo 연결 여부를 빠르게 확인하기 위한 엔드포인트
    """
    mongo_ok = False
    mongo_error = None

    mongo = getattr(request.app.state, "mongo", None)
    try:
        if mongo is None:
            raise RuntimeError("MongoDB not initialized")
        await mongo.db.command("ping")
        mongo_ok = True
    except Exception as e:
        mongo_error = str(e)

    return {
        "ok": True,
        "status": "ok" if mongo_ok else "degraded",
        "mongo": mongo_ok,
        "mongo_error": mongo_error,
    }


@router.get("/sync/check", response_model=SyncCheckResponse)
async def sync_check(bridge: SyncBridge = Depends(get_sync_bridge)):
    """
    [운영] Notion 동기화 진단
    - Stop 응답에는 설정 오류가 드러나지 않으므로 여기서 스키마 매핑 결과를 확인
    """
    if not bridge.configured:
        return SyncCheckResponse(configured=False, ok=False, error="not-configured")

    try:
        schema_map = await bridge.check()
    except ConfigError as e:
        return SyncCheckResponse(configured=True, ok=False, error=str(e), properties=e.properties)
    except SyncFailure as e:
        logger.warning("sync check failed: %s", e)
        return SyncCheckResponse(configured=True, ok=False, error=str(e))

    return SyncCheckResponse(
        configured=True,
        ok=True,
        schema_map=schema_map,
        properties={name: p.type for name, p in schema_map.properties.items()},
    )
