from functools import lru_cache
from typing import List, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    MONGO_URI: str
    MONGO_DB_NAME: str = "studytimer"
    MONGO_COLLECTION: str = "sessions"

    # 세션 subject 최대 길이 (초과분은 잘라서 저장)
    SUBJECT_MAX_LENGTH: int = 200

    # Notion 동기화 (토큰/DB ID가 없으면 동기화는 skipped 처리)
    NOTION_TOKEN: Optional[str] = None
    NOTION_DATABASE_ID: Optional[str] = None
    NOTION_API_URL: str = "https://api.notion.com/v1"
    NOTION_VERSION: str = "2022-06-28"
    NOTION_TIMEOUT: float = 10.0
    NOTION_TAG_PROPERTY: Optional[str] = None  # tag-relation 역할 강제 지정
    NOTION_TAG_VALUE: Optional[str] = None  # 연결할 태그/계정 이름

    DEFAULT_TITLE: str = "Study Session"
    TITLE_PREFIX: str = "Study: "

    LOG_LEVEL: str = "INFO"
    ENVIRONMENT: str = "development"
    CORS_ORIGINS: str = "http://localhost:3000"

    class Config:
        env_file = ".env"
        extra = "ignore"

    @property
    def cors_origins(self) -> List[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def sync_configured(self) -> bool:
        return bool(self.NOTION_TOKEN and self.NOTION_DATABASE_ID)


@lru_cache
def get_settings() -> Settings:
    return Settings()
