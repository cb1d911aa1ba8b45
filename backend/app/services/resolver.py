# backend/app/services/resolver.py
"""
Stop 요청이 어떤 세션을 가리키는지 찾아서 정확히 1개만 종료합니다.

클라이언트가 보내는 id는 없거나, 형식이 깨졌거나, 이미 닫힌 세션일 수 있어서
아래 matcher를 순서대로 시도하고 처음 성공한 결과를 사용합니다.

  1. primary_open   : _id 일치 (ObjectId 또는 문자열 키) + 진행 중인 세션만
  2. primary_any    : _id 일치 (이미 닫혔으면 종료 시각 유지)
  3. shadow_id      : 문자열 사본(id_str) 일치
  4. latest_open    : 가장 최근에 시작한 진행 중 세션
  5. latest_any     : 가장 최근 세션 (종료 시각 없으면 채움)

모든 matcher는 find_one_and_update 한 번으로 매칭과 종료를 동시에 처리합니다.
동시에 들어온 Stop 요청 두 개가 같은 세션을 둘 다 "성공"으로 보는 일이 없도록
별도 find -> update 조합은 쓰지 않습니다.
"""

import logging
import re
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, List, Optional, Tuple

from bson import ObjectId

from app.core.exceptions import NotFoundError
from app.crud.sessions import SessionStore, close_if_open
from app.models.session import ClosedSession

logger = logging.getLogger(__name__)

Matcher = Callable[[Optional[str], SessionStore, datetime], Awaitable[Optional[ClosedSession]]]

_OBJECT_ID_REPR = re.compile(r"""^ObjectId\(\s*["']?([0-9a-fA-F]{24})["']?\s*\)$""")
_ID_KEYS = ("$oid", "id", "_id", "sessionId", "session_id")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def normalize_identifier(raw: Any) -> Optional[str]:
    """
    다양한 형태의 id를 문자열 하나로 정규화.
    - None / 빈 문자열 / 해석 불가 -> None (예외 없음)
    - ObjectId, {"$oid": ...}, {"id": ...}, 'ObjectId("...")' 모두 허용
    """
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, ObjectId):
        return str(raw)
    if isinstance(raw, dict):
        for key in _ID_KEYS:
            if key in raw:
                return normalize_identifier(raw[key])
        return None
    if isinstance(raw, (int, float)):
        return str(raw)
    if not isinstance(raw, str):
        return None

    s = raw.strip().strip('"').strip("'").strip()
    if not s:
        return None
    m = _OBJECT_ID_REPR.match(s)
    if m:
        return m.group(1).lower()
    if ObjectId.is_valid(s):
        return s.lower()
    return s


def _primary_key(identifier: Optional[str]) -> Any:
    """
    _id 조건. ObjectId로 저장된 문서와 문자열 키로 저장된 문서 둘 다 매칭합니다.
    """
    if not identifier:
        return None
    if ObjectId.is_valid(identifier):
        return {"$in": [ObjectId(identifier), identifier]}
    return identifier


# --------------------------------------------------------------------------
# matcher들: (identifier, store, now) -> Optional[ClosedSession]
# --------------------------------------------------------------------------

async def match_primary_open(identifier, store: SessionStore, now: datetime):
    key = _primary_key(identifier)
    if key is None:
        return None
    doc = await store.find_one_and_update(
        {"_id": key, "ended_at": None},
        {"$set": {"ended_at": now}},
    )
    return ClosedSession.from_doc(doc, "primary_open") if doc else None


async def match_primary_any(identifier, store: SessionStore, now: datetime):
    # 중복/경합 요청으로 이미 닫힌 세션: 기존 종료 시각을 그대로 돌려줌
    key = _primary_key(identifier)
    if key is None:
        return None
    doc = await store.find_one_and_update({"_id": key}, close_if_open(now))
    return ClosedSession.from_doc(doc, "primary_any") if doc else None


async def match_shadow_id(identifier, store: SessionStore, now: datetime):
    if not identifier:
        return None
    doc = await store.find_one_and_update({"id_str": identifier}, close_if_open(now))
    return ClosedSession.from_doc(doc, "shadow_id") if doc else None


async def match_latest_open(identifier, store: SessionStore, now: datetime):
    doc = await store.find_one_and_update(
        {"ended_at": None},
        {"$set": {"ended_at": now}},
        sort=[("started_at", -1)],
    )
    return ClosedSession.from_doc(doc, "latest_open") if doc else None


async def match_latest_any(identifier, store: SessionStore, now: datetime):
    # 진행 중 세션이 하나도 없을 때의 마지막 안전망 (동시 Start와는 경합 가능)
    doc = await store.find_one_and_update(
        {},
        close_if_open(now),
        sort=[("started_at", -1)],
    )
    return ClosedSession.from_doc(doc, "latest_any") if doc else None


DEFAULT_MATCHERS: List[Tuple[str, Matcher]] = [
    ("primary_open", match_primary_open),
    ("primary_any", match_primary_any),
    ("shadow_id", match_shadow_id),
    ("latest_open", match_latest_open),
    ("latest_any", match_latest_any),
]


class SessionResolver:
    def __init__(
        self,
        store: SessionStore,
        matchers: Optional[List[Tuple[str, Matcher]]] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.store = store
        self.matchers = matchers if matchers is not None else DEFAULT_MATCHERS
        self.clock = clock or _utcnow

    async def resolve(self, raw_identifier: Any = None) -> ClosedSession:
        identifier = normalize_identifier(raw_identifier)
        now = self.clock()

        for name, matcher in self.matchers:
            closed = await matcher(identifier, self.store, now)
            if closed is not None:
                logger.debug("resolved session %s via %s (requested=%r)", closed.id, name, identifier)
                return closed

        raise NotFoundError("No session to stop")
