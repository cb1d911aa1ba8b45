# backend/app/services/sync_bridge.py
"""
종료된 세션을 외부 DB(Notion) 레코드 1건으로 보냅니다. (best-effort)

- 설정이 없으면 네트워크 호출 없이 skipped
- 스키마 조회/매핑/생성 중 실패는 모두 SyncResult(failed)로 변환
- 재시도 없음
"""

import logging
from typing import Any, Dict, Optional

from app.core.exceptions import ConfigError, SyncFailure
from app.models.session import ClosedSession
from app.schemas.sync import SchemaMap, SyncResult
from app.services.schema_mapper import SchemaMapper

logger = logging.getLogger(__name__)


def _rich_text(content: str) -> list:
    return [{"text": {"content": content}}]


class SyncBridge:
    def __init__(
        self,
        client=None,
        database_id: Optional[str] = None,
        tag_property: Optional[str] = None,
        tag_value: Optional[str] = None,
        default_title: str = "Study Session",
        title_prefix: str = "Study: ",
    ):
        self.client = client
        self.database_id = database_id
        self.tag_value = tag_value
        self.default_title = default_title
        self.title_prefix = title_prefix
        self.mapper = SchemaMapper(client, tag_property) if client is not None else None

    @property
    def configured(self) -> bool:
        return self.client is not None and bool(self.database_id)

    def title_for(self, session: ClosedSession) -> str:
        if session.subject:
            return f"{self.title_prefix}{session.subject}"
        return self.default_title

    def build_properties(self, session: ClosedSession, schema_map: SchemaMap) -> Dict[str, Any]:
        started = session.started_at.isoformat()
        ended = session.ended_at.isoformat()

        props: Dict[str, Any] = {
            schema_map.title: {"title": _rich_text(self.title_for(session))},
        }

        if schema_map.uses_pair:
            props[schema_map.start_date] = {"date": {"start": started}}
            props[schema_map.end_date] = {"date": {"start": ended}}
        elif schema_map.date_range:
            props[schema_map.date_range] = {"date": {"start": started, "end": ended}}

        if schema_map.duration_minutes:
            props[schema_map.duration_minutes] = {"number": round(session.duration, 2)}
        if schema_map.duration_hours:
            props[schema_map.duration_hours] = {"number": round(session.duration / 60.0, 3)}
        if schema_map.subject and session.subject:
            props[schema_map.subject] = {"rich_text": _rich_text(session.subject)}
        return props

    async def _resolve_tag(self, schema_map: SchemaMap) -> Optional[Dict[str, Any]]:
        """
        tag_relation 역할 값 생성.
        - select / multi_select: 이름 그대로
        - relation: 대상 DB에서 title로 페이지를 찾아 연결 (못 찾거나 조회 실패 시 생략)
        """
        if not schema_map.tag_relation or not self.tag_value:
            return None
        spec = schema_map.properties.get(schema_map.tag_relation)
        if spec is None:
            return None
        if spec.type == "select":
            return {"select": {"name": self.tag_value}}
        if spec.type == "multi_select":
            return {"multi_select": [{"name": self.tag_value}]}
        if spec.type == "relation" and spec.relation_database_id:
            try:
                page_id = await self.client.find_page_by_title(spec.relation_database_id, self.tag_value)
            except SyncFailure as e:
                # 연결은 선택 사항: 조회 실패 시 태그 없이 레코드 생성
                logger.warning("relation lookup failed, creating record without %r: %s", schema_map.tag_relation, e)
                return None
            if page_id:
                return {"relation": [{"id": page_id}]}
            logger.info("no relation target %r in %s", self.tag_value, spec.relation_database_id)
        return None

    async def push(self, session: ClosedSession, schema_map: SchemaMap) -> SyncResult:
        if not self.configured:
            return SyncResult.skipped("not-configured")
        try:
            props = self.build_properties(session, schema_map)
            tag = await self._resolve_tag(schema_map)
            if tag is not None:
                props[schema_map.tag_relation] = tag
            record_id = await self.client.create_record(self.database_id, props)
        except SyncFailure as e:
            return SyncResult.failed(str(e))
        return SyncResult.ok(record_id)

    async def sync(self, session: ClosedSession) -> SyncResult:
        """
        스키마 조회 -> 매핑 -> push. 어떤 실패도 밖으로 던지지 않습니다.
        """
        if not self.configured:
            return SyncResult.skipped("not-configured")
        try:
            schema_map = await self.mapper.discover(self.database_id)
        except ConfigError as e:
            return SyncResult.failed(f"config: {e}")
        except SyncFailure as e:
            return SyncResult.failed(f"discovery: {e}")
        return await self.push(session, schema_map)

    async def check(self) -> SchemaMap:
        """진단용: 매핑 결과를 그대로 반환하고 오류는 호출자에게 던집니다."""
        if not self.configured:
            raise ConfigError("Sync destination is not configured")
        return await self.mapper.discover(self.database_id)
