# 파일 위치: backend/app/schemas/sync.py

from typing import Dict, Literal, Optional

from pydantic import BaseModel, Field


class PropertySpec(BaseModel):
    """
    외부 DB(Notion) 속성 하나의 이름/타입.
    relation 타입이면 연결 대상 DB id도 함께 보관합니다.
    """
    name: str
    type: str
    relation_database_id: Optional[str] = None


class SchemaMap(BaseModel):
    """
    의미 역할 -> 외부 DB 속성 이름 매핑.
    동기화할 때마다 새로 만들고 캐시하지 않습니다.
    """
    title: str
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    date_range: Optional[str] = None
    duration_minutes: Optional[str] = None
    duration_hours: Optional[str] = None
    subject: Optional[str] = None
    tag_relation: Optional[str] = None

    # 매핑에 사용된 전체 스키마 (relation 대상 조회 등에 사용)
    properties: Dict[str, PropertySpec] = Field(default_factory=dict)

    @property
    def uses_pair(self) -> bool:
        return bool(self.start_date and self.end_date)


class SyncResult(BaseModel):
    """
    [응답] 동기화 결과. Stop 응답의 성공 여부에는 영향을 주지 않습니다.
    """
    status: Literal["ok", "skipped", "failed"]
    reason: Optional[str] = None
    record_id: Optional[str] = None

    @classmethod
    def ok(cls, record_id: str) -> "SyncResult":
        return cls(status="ok", record_id=record_id)

    @classmethod
    def skipped(cls, reason: str) -> "SyncResult":
        return cls(status="skipped", reason=reason)

    @classmethod
    def failed(cls, reason: str) -> "SyncResult":
        return cls(status="failed", reason=reason)


class SyncCheckResponse(BaseModel):
    """
    [응답] GET /sync/check
    설정 오류는 Stop 응답에 드러나지 않으므로 여기서 확인합니다.
    """
    configured: bool
    ok: bool
    error: Optional[str] = None
    schema_map: Optional[SchemaMap] = None
    properties: Dict[str, str] = Field(default_factory=dict)
