"""
Pytest configuration and fixtures.

MongoDB / Notion 없이 돌 수 있도록
- FakeCollection: SessionStore가 쓰는 Motor 컬렉션 API 일부를 메모리로 구현
- FakeNotion: httpx.MockTransport 기반 Notion API 흉내
"""

import asyncio
import copy
import json
import os
from typing import Any, Dict, List, Optional

import httpx
import pytest
from pymongo import ReturnDocument
from pymongo.errors import ServerSelectionTimeoutError

# app.main import 전에 필수 환경 변수 설정
os.environ.setdefault("MONGO_URI", "mongodb://localhost:27017")
os.environ.pop("NOTION_TOKEN", None)
os.environ.pop("NOTION_DATABASE_ID", None)

from app.crud.sessions import SessionStore
from app.services.notion import NotionClient
from app.services.sync_bridge import SyncBridge

# --------------------------------------------------------------------------
# Fake MongoDB
# --------------------------------------------------------------------------

def _get(doc: Dict[str, Any], key: str) -> Any:
    return doc.get(key)


def _match_value(actual: Any, expected: Any) -> bool:
    if isinstance(expected, dict) and "$in" in expected:
        return any(actual == v for v in expected["$in"])
    return actual == expected


def _matches(doc: Dict[str, Any], query: Dict[str, Any]) -> bool:
    return all(_match_value(_get(doc, k), v) for k, v in query.items())


def _eval(doc: Dict[str, Any], expr: Any) -> Any:
    # update pipeline 표현식 중 테스트에 필요한 것만: "$field", {"$ifNull": [a, b]}
    if isinstance(expr, str) and expr.startswith("$"):
        return doc.get(expr[1:])
    if isinstance(expr, dict) and "$ifNull" in expr:
        first, fallback = expr["$ifNull"]
        value = _eval(doc, first)
        return _eval(doc, fallback) if value is None else value
    return expr


def _apply_update(doc: Dict[str, Any], update: Any) -> None:
    if isinstance(update, list):
        for stage in update:
            for field, expr in stage["$set"].items():
                doc[field] = _eval(doc, expr)
        return
    for field, value in update.get("$set", {}).items():
        doc[field] = value


def _sort_docs(docs: List[Dict[str, Any]], sort: List[tuple]) -> List[Dict[str, Any]]:
    result = list(docs)
    for key, direction in reversed(sort):
        # None은 가장 작은 값 취급 (Mongo 정렬과 동일)
        result.sort(key=lambda d: (d.get(key) is not None, d.get(key)), reverse=direction < 0)
    return result


class FakeCursor:
    def __init__(self, docs: List[Dict[str, Any]]):
        self._docs = docs

    def sort(self, key, direction=1):
        self._docs = _sort_docs(self._docs, [(key, direction)])
        return self

    def limit(self, n: int):
        self._docs = self._docs[:n]
        return self

    async def to_list(self, length: Optional[int] = None):
        return [copy.deepcopy(d) for d in self._docs[:length]]


class FakeCollection:
    def __init__(self):
        self.docs: List[Dict[str, Any]] = []

    async def insert_one(self, doc: Dict[str, Any]):
        self.docs.append(copy.deepcopy(doc))

    async def find_one(self, query: Dict[str, Any]):
        for d in self.docs:
            if _matches(d, query):
                return copy.deepcopy(d)
        return None

    def find(self, query: Optional[Dict[str, Any]] = None):
        return FakeCursor([d for d in self.docs if _matches(d, query or {})])

    async def find_one_and_update(self, query, update, sort=None, return_document=ReturnDocument.BEFORE):
        # 다른 코루틴에 양보한 뒤, 매칭+갱신은 await 없이 한 번에 (원자적)
        await asyncio.sleep(0)
        candidates = [d for d in self.docs if _matches(d, query)]
        if sort:
            candidates = _sort_docs(candidates, sort)
        if not candidates:
            return None
        target = candidates[0]
        before = copy.deepcopy(target)
        _apply_update(target, update)
        return copy.deepcopy(target if return_document == ReturnDocument.AFTER else before)


class BrokenCollection:
    """모든 호출이 PyMongoError (DB 다운 상황)"""

    def _fail(self, *args, **kwargs):
        raise ServerSelectionTimeoutError("no servers available")

    async def insert_one(self, *args, **kwargs):
        self._fail()

    async def find_one(self, *args, **kwargs):
        self._fail()

    async def find_one_and_update(self, *args, **kwargs):
        self._fail()

    def find(self, *args, **kwargs):
        self._fail()


@pytest.fixture
def collection() -> FakeCollection:
    return FakeCollection()


@pytest.fixture
def store(collection) -> SessionStore:
    return SessionStore(collection, subject_max_length=200)


# --------------------------------------------------------------------------
# Fake Notion
# --------------------------------------------------------------------------

DATABASE_ID = "db-sessions"


class FakeNotion:
    """
    databases: {database_id: {속성 이름: 속성 정의}}
    pages:     {database_id: [page dict]}
    """

    def __init__(self):
        self.databases: Dict[str, Dict[str, Any]] = {}
        self.pages: Dict[str, List[Dict[str, Any]]] = {}
        self.created: List[Dict[str, Any]] = []
        self.requests: List[httpx.Request] = []
        self.fail_create: Optional[int] = None

    def add_database(self, database_id: str, properties: Dict[str, str], **extra: Dict[str, Any]):
        props = {}
        for name, ptype in properties.items():
            prop = {"id": name.lower(), "type": ptype, ptype: {}}
            if name in extra:
                prop.update(extra[name])
            props[name] = prop
        self.databases[database_id] = props

    def add_page(self, database_id: str, page_id: str, title: str):
        self.pages.setdefault(database_id, []).append({"id": page_id, "title": title})

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path.replace("/v1", "", 1)
        parts = [p for p in path.split("/") if p]

        if request.method == "GET" and parts[0] == "databases":
            db = self.databases.get(parts[1])
            if db is None:
                return httpx.Response(404, json={"object": "error", "message": "Could not find database"})
            return httpx.Response(200, json={"object": "database", "id": parts[1], "properties": db})

        if request.method == "POST" and parts[0] == "databases" and parts[-1] == "query":
            body = json.loads(request.content or b"{}")
            wanted = body.get("filter", {}).get("title", {}).get("equals")
            results = [p for p in self.pages.get(parts[1], []) if p["title"] == wanted]
            return httpx.Response(200, json={"results": results})

        if request.method == "POST" and parts == ["pages"]:
            if self.fail_create:
                return httpx.Response(self.fail_create, json={"object": "error", "message": "validation_error"})
            body = json.loads(request.content)
            self.created.append(body)
            return httpx.Response(200, json={"object": "page", "id": f"page-{len(self.created)}"})

        return httpx.Response(404, json={"object": "error", "message": "unknown route"})


@pytest.fixture
def fake_notion() -> FakeNotion:
    return FakeNotion()


@pytest.fixture
async def notion_client(fake_notion):
    client = NotionClient(token="secret", transport=httpx.MockTransport(fake_notion.handler))
    yield client
    await client.aclose()


@pytest.fixture
def bridge(notion_client) -> SyncBridge:
    return SyncBridge(client=notion_client, database_id=DATABASE_ID)
