# backend/app/services/schema_mapper.py
"""
외부 DB 스키마 자동 매핑.

속성 이름/타입을 읽어서 의미 역할(title, 시작/종료 날짜, 분/시간, subject, 태그)에
어떤 속성을 쓸지 정합니다. 규칙은 ROLE_RULES 테이블에 선언되어 있고,
역할마다 앞에 있는 규칙이 우선입니다.
"""

import logging
import re
from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Optional, Set

from app.core.exceptions import ConfigError
from app.schemas.sync import PropertySpec, SchemaMap

logger = logging.getLogger(__name__)

DATE_TYPES = frozenset({"date"})
NUMBER_TYPES = frozenset({"number"})
TEXT_TYPES = frozenset({"rich_text"})
TAG_TYPES = frozenset({"relation", "select", "multi_select"})


@dataclass(frozen=True)
class PropertyRule:
    types: FrozenSet[str]
    pattern: Optional[str] = None  # 없으면 해당 타입의 첫 번째 속성

    def matches(self, prop: PropertySpec) -> bool:
        if prop.type not in self.types:
            return False
        if self.pattern is None:
            return True
        return re.search(self.pattern, prop.name, re.IGNORECASE) is not None


# 역할 -> 규칙 목록 (순서 = 우선순위). 평가 순서도 이 dict 순서를 따름
ROLE_RULES: Dict[str, List[PropertyRule]] = {
    "title": [PropertyRule(frozenset({"title"}))],
    "start_date": [PropertyRule(DATE_TYPES, r"\b(start|begin)")],
    "end_date": [PropertyRule(DATE_TYPES, r"\b(end|finish)")],
    "duration_minutes": [PropertyRule(NUMBER_TYPES, r"min(?!imum)")],
    "duration_hours": [PropertyRule(NUMBER_TYPES, r"hour|duration")],
    "subject": [
        PropertyRule(TEXT_TYPES, r"^\s*subject\s*$"),
        PropertyRule(TEXT_TYPES),
    ],
    "tag_relation": [PropertyRule(TAG_TYPES, r"wallet|tag")],
}

# start/end 쌍이 없을 때만 사용
DATE_RANGE_RULES: List[PropertyRule] = [
    PropertyRule(DATE_TYPES, r"^\s*date\s*$"),
    PropertyRule(DATE_TYPES),
]


def pick(props: List[PropertySpec], rules: List[PropertyRule], claimed: Set[str]) -> Optional[str]:
    """규칙 순서대로, 아직 다른 역할이 가져가지 않은 첫 속성 이름"""
    for rule in rules:
        for prop in props:
            if prop.name in claimed:
                continue
            if rule.matches(prop):
                return prop.name
    return None


def classify(
    properties: Dict[str, PropertySpec],
    tag_property: Optional[str] = None,
) -> SchemaMap:
    """
    스키마 -> SchemaMap.
    title이 없거나, 날짜(start/end 쌍 또는 range)가 없으면 ConfigError.
    """
    props = list(properties.values())
    claimed: Set[str] = set()
    roles: Dict[str, Optional[str]] = {}

    for role, rules in ROLE_RULES.items():
        if role == "tag_relation" and tag_property:
            # 명시적 설정이 이름 규칙보다 우선
            override = properties.get(tag_property)
            if override is not None and override.type in TAG_TYPES:
                roles[role] = override.name
                claimed.add(override.name)
                continue
            logger.warning("NOTION_TAG_PROPERTY=%r not found or not a relation/select", tag_property)
        name = pick(props, rules, claimed)
        roles[role] = name
        if name is not None:
            claimed.add(name)

    if not (roles["start_date"] and roles["end_date"]):
        # 쌍이 불완전하면 둘 다 버리고 range 하나로
        roles["start_date"] = None
        roles["end_date"] = None
        roles["date_range"] = pick(props, DATE_RANGE_RULES, set())

    discovered = {p.name: p.type for p in props}
    if not roles["title"]:
        raise ConfigError("Destination has no title property", discovered)
    if not (roles["start_date"] or roles.get("date_range")):
        raise ConfigError("Destination has no usable date property", discovered)

    return SchemaMap(properties=properties, **roles)


class SchemaMapper:
    def __init__(self, client, tag_property: Optional[str] = None):
        self.client = client
        self.tag_property = tag_property

    async def discover(self, database_id: str) -> SchemaMap:
        properties = await self.client.retrieve_schema(database_id)
        schema_map = classify(properties, self.tag_property)
        logger.debug("schema map for %s: %s", database_id, schema_map.model_dump(exclude={"properties"}))
        return schema_map
