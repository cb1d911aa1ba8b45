# backend/app/crud/sessions.py

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from bson import ObjectId
from pymongo import ReturnDocument
from pymongo.errors import PyMongoError

from app.core.exceptions import StoreUnavailable
from app.models.session import SessionInDB

logger = logging.getLogger(__name__)

Update = Union[Dict[str, Any], List[Dict[str, Any]]]
Sort = Sequence[Tuple[str, int]]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _truncate_subject(subject: Optional[str], max_length: int) -> str:
    """
    CRUD 안전망: 공백 정리 + 길이 제한
    """
    if subject is None:
        return ""
    if not isinstance(subject, str):
        subject = str(subject)
    return subject.strip()[:max_length]


def close_if_open(ended_at: datetime) -> List[Dict[str, Any]]:
    """
    ended_at이 비어 있을 때만 채우는 update pipeline.
    이미 닫힌 세션의 종료 시각은 덮어쓰지 않습니다.
    """
    return [{"$set": {"ended_at": {"$ifNull": ["$ended_at", ended_at]}}}]


class SessionStore:
    """
    sessions 컬렉션 얇은 래퍼.
    - 모든 종료 처리는 find_one_and_update 한 번으로 (읽기+쓰기 원자적)
    - PyMongoError는 StoreUnavailable로 변환
    """

    def __init__(self, collection, subject_max_length: int = 200):
        self.collection = collection
        self.subject_max_length = subject_max_length

    # CREATE (START)
    async def create(self, subject: Optional[str]) -> SessionInDB:
        oid = ObjectId()
        doc = {
            "_id": oid,
            "id_str": str(oid),
            "subject": _truncate_subject(subject, self.subject_max_length),
            "started_at": _utcnow(),
            "ended_at": None,
        }
        try:
            await self.collection.insert_one(doc)
        except PyMongoError as e:
            logger.error("insert_one failed: %s", e, exc_info=True)
            raise StoreUnavailable("Failed to create session") from e
        return SessionInDB.from_doc(doc)

    # 원자적 매칭 + 종료
    async def find_one_and_update(
        self,
        query: Dict[str, Any],
        update: Update,
        sort: Optional[Sort] = None,
    ) -> Optional[Dict[str, Any]]:
        """
        조건에 맞는 문서 1개를 원자적으로 갱신하고, 갱신 후 문서를 반환합니다.
        매칭 실패 시 None.
        """
        kwargs: Dict[str, Any] = {"return_document": ReturnDocument.AFTER}
        if sort:
            kwargs["sort"] = list(sort)
        try:
            return await self.collection.find_one_and_update(query, update, **kwargs)
        except PyMongoError as e:
            logger.error("find_one_and_update failed (query=%s): %s", query, e, exc_info=True)
            raise StoreUnavailable("Failed to update session") from e

    # READ ONE
    async def get(self, session_id: str) -> Optional[SessionInDB]:
        # ObjectId / 문자열 키 둘 다 허용
        session_id = (session_id or "").strip()
        if not session_id:
            return None
        key = {"$in": [ObjectId(session_id), session_id]} if ObjectId.is_valid(session_id) else session_id
        try:
            doc = await self.collection.find_one({"_id": key})
        except PyMongoError as e:
            raise StoreUnavailable("Failed to read session") from e
        return SessionInDB.from_doc(doc) if doc else None

    # READ ALL (최신순)
    async def list_recent(self, limit: int = 50) -> List[SessionInDB]:
        safe_limit = max(1, min(limit, 500))
        try:
            cursor = self.collection.find({}).sort("started_at", -1).limit(safe_limit)
            docs = await cursor.to_list(length=safe_limit)
        except PyMongoError as e:
            logger.error("list_recent failed: %s", e, exc_info=True)
            raise StoreUnavailable("Failed to list sessions") from e
        return [SessionInDB.from_doc(d) for d in docs]
