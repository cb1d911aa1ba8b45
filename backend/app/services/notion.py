# backend/app/services/notion.py
"""
Notion REST API 최소 클라이언트.
스키마 조회 / 페이지 생성 / relation 대상 검색만 사용합니다.
재시도는 하지 않고 타임아웃은 httpx 클라이언트 설정을 따릅니다.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from app.core.config import Settings
from app.core.exceptions import SyncFailure
from app.schemas.sync import PropertySpec

logger = logging.getLogger(__name__)


class NotionClient:
    def __init__(
        self,
        token: str,
        base_url: str = "https://api.notion.com/v1",
        version: str = "2022-06-28",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers={
                "Authorization": f"Bearer {token}",
                "Notion-Version": version,
                "Content-Type": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_settings(cls, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None) -> "NotionClient":
        return cls(
            token=settings.NOTION_TOKEN or "",
            base_url=settings.NOTION_API_URL,
            version=settings.NOTION_VERSION,
            timeout=settings.NOTION_TIMEOUT,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, json: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        try:
            resp = await self._client.request(method, path, json=json)
        except httpx.HTTPError as e:
            raise SyncFailure(f"{method} {path} failed: {e}") from e

        if resp.status_code >= 400:
            # Notion 에러 응답: {"object": "error", "code": ..., "message": ...}
            try:
                body = resp.json()
            except ValueError:
                body = None
            message = body.get("message", resp.text) if isinstance(body, dict) else resp.text
            raise SyncFailure(f"{method} {path} -> {resp.status_code}: {message}")

        try:
            data = resp.json()
        except ValueError as e:
            raise SyncFailure(f"{method} {path} returned non-JSON body") from e
        if not isinstance(data, dict):
            raise SyncFailure(f"{method} {path} returned {type(data).__name__}, expected object")
        return data

    # 스키마 조회: {속성 이름 -> PropertySpec}
    async def retrieve_schema(self, database_id: str) -> Dict[str, PropertySpec]:
        data = await self._request("GET", f"/databases/{database_id}")
        raw_props = data.get("properties")
        if not isinstance(raw_props, dict):
            raise SyncFailure(f"database {database_id} has no properties")

        schema: Dict[str, PropertySpec] = {}
        for name, prop in raw_props.items():
            if not isinstance(prop, dict):
                continue
            ptype = prop.get("type", "")
            relation = prop.get("relation") if ptype == "relation" else None
            schema[name] = PropertySpec(
                name=name,
                type=ptype,
                relation_database_id=(relation or {}).get("database_id"),
            )
        return schema

    # 페이지(레코드) 생성 -> page id
    async def create_record(self, database_id: str, properties: Dict[str, Any]) -> str:
        data = await self._request(
            "POST",
            "/pages",
            json={"parent": {"database_id": database_id}, "properties": properties},
        )
        page_id = data.get("id")
        if not page_id:
            raise SyncFailure("page created without id")
        return page_id

    async def query_database(self, database_id: str, filter: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        body: Dict[str, Any] = {"page_size": 10}
        if filter:
            body["filter"] = filter
        data = await self._request("POST", f"/databases/{database_id}/query", json=body)
        return data.get("results") or []

    async def find_page_by_title(self, database_id: str, title: str) -> Optional[str]:
        """
        relation 대상 DB에서 title이 일치하는 페이지 id 1개를 찾습니다.
        """
        schema = await self.retrieve_schema(database_id)
        title_prop = next((p.name for p in schema.values() if p.type == "title"), None)
        if title_prop is None:
            return None
        results = await self.query_database(
            database_id,
            {"property": title_prop, "title": {"equals": title}},
        )
        return results[0].get("id") if results else None
