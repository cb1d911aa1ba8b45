# backend/app/db/mongo.py

import logging

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection, AsyncIOMotorDatabase

from app.core.config import Settings

logger = logging.getLogger(__name__)


class MongoHandle:
    """
    lifespan에서 만들어 app.state에 올려두는 연결 핸들.
    전역 변수 대신 의존성 주입으로 넘겨서 테스트에서 가짜 컬렉션으로 교체할 수 있게 합니다.
    """

    def __init__(self, client: AsyncIOMotorClient, db: AsyncIOMotorDatabase, collection_name: str):
        self.client = client
        self.db = db
        self.collection_name = collection_name

    @property
    def sessions(self) -> AsyncIOMotorCollection:
        return self.db[self.collection_name]


async def connect_to_mongo(settings: Settings) -> MongoHandle:
    client = AsyncIOMotorClient(settings.MONGO_URI, tz_aware=True)
    db = client[settings.MONGO_DB_NAME]
    logger.info("MongoDB connected (db=%s, collection=%s)", settings.MONGO_DB_NAME, settings.MONGO_COLLECTION)
    return MongoHandle(client, db, settings.MONGO_COLLECTION)


async def close_mongo_connection(handle: MongoHandle | None) -> None:
    if handle is not None:
        handle.client.close()
        logger.info("MongoDB connection closed")
