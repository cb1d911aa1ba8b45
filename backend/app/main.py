# main.py
import logging
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.endpoints import health, sessions
from app.core.config import get_settings
from app.core.logging import setup_logging
from app.db.mongo import close_mongo_connection, connect_to_mongo
from app.services.notion import NotionClient
from app.services.sync_bridge import SyncBridge

load_dotenv()

logger = logging.getLogger(__name__)


def build_sync_bridge(settings) -> SyncBridge:
    """
    Notion 설정이 없으면 client 없는 bridge (모든 동기화 skipped: not-configured)
    """
    if not settings.sync_configured:
        logger.info("Notion sync not configured. Sessions will be stored in MongoDB only.")
        return SyncBridge()
    return SyncBridge(
        client=NotionClient.from_settings(settings),
        database_id=settings.NOTION_DATABASE_ID,
        tag_property=settings.NOTION_TAG_PROPERTY,
        tag_value=settings.NOTION_TAG_VALUE,
        default_title=settings.DEFAULT_TITLE,
        title_prefix=settings.TITLE_PREFIX,
    )


# [수명 주기 관리] DB / Notion 클라이언트 연결 및 해제
@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    setup_logging(settings.LOG_LEVEL)
    logger.info("Running in %s mode", settings.ENVIRONMENT)

    # Startup 로직
    app.state.mongo = await connect_to_mongo(settings)
    app.state.sync_bridge = build_sync_bridge(settings)
    yield
    # Shutdown 로직
    if app.state.sync_bridge.client is not None:
        await app.state.sync_bridge.client.aclose()
    await close_mongo_connection(app.state.mongo)


def create_app() -> FastAPI:
    app = FastAPI(title="Study Timer Backend", lifespan=lifespan)

    # CORS: 프론트엔드 접근 허용
    app.add_middleware(
        CORSMiddleware,
        allow_origins=get_settings().cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/")
    async def read_root():
        return {"message": "Backend is running!"}

    app.include_router(health.router)
    app.include_router(sessions.router)
    return app


app = create_app()
