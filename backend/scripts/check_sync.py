import asyncio
import json
import os
import sys

# 경로 설정
sys.path.append(os.path.join(os.path.dirname(__file__), ".."))

from dotenv import load_dotenv

from app.core.config import get_settings
from app.core.exceptions import ConfigError, SyncFailure
from app.core.logging import setup_logging
from app.main import build_sync_bridge


async def main() -> int:
    """
    Notion 동기화 대상 DB의 스키마 매핑 결과를 출력합니다.
    사용법: python scripts/check_sync.py
    """
    load_dotenv()
    settings = get_settings()
    setup_logging(settings.LOG_LEVEL)

    bridge = build_sync_bridge(settings)
    if not bridge.configured:
        print("NOTION_TOKEN / NOTION_DATABASE_ID not set. Sync is disabled.")
        return 1

    try:
        schema_map = await bridge.check()
    except ConfigError as e:
        print(f"Config error: {e}")
        print("Discovered properties:")
        for name, ptype in e.properties.items():
            print(f"  - {name}: {ptype}")
        return 2
    except SyncFailure as e:
        print(f"Notion request failed: {e}")
        return 3
    finally:
        await bridge.client.aclose()

    print(json.dumps(schema_map.model_dump(exclude={"properties"}), indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
