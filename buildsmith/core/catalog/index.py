"""카탈로그 인덱스: 아이템 정의 로드/정규화 + 읽기 전용 조회

원시 레코드는 이 경계에서 한 번만 정규화된다:
- 스탯 키: 채널명, 신규 별칭(weapons/health/...), 스탯 해시
- 희귀도: 이름, 서수(1~5), tier_type(2~6)
- enum 문자열: 대소문자 무시
"""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional

from buildsmith.core.errors import ConfigurationError
from buildsmith.core.stats.models import StatChannel, normalize_channel

from .models import (
    ClassType,
    Element,
    ItemDefinition,
    ItemKind,
    Rarity,
    Slot,
)

logger = logging.getLogger(__name__)

MIN_MENTION_LENGTH = 3  # 이보다 짧은 이름은 본문 매칭 제외

# 매니페스트 tierType → 서수
TIER_TYPE_RARITY: dict[int, Rarity] = {
    2: Rarity.COMMON,
    3: Rarity.UNCOMMON,
    4: Rarity.RARE,
    5: Rarity.LEGENDARY,
    6: Rarity.EXOTIC,
}

RARITY_NAMES: dict[str, Rarity] = {
    "common": Rarity.COMMON,
    "basic": Rarity.COMMON,
    "uncommon": Rarity.UNCOMMON,
    "rare": Rarity.RARE,
    "legendary": Rarity.LEGENDARY,
    "exotic": Rarity.EXOTIC,
}


def _enum_value(enum_cls, raw: Any, default):
    if raw is None or raw == "":
        return default
    return enum_cls(str(raw).strip().lower())


def _normalize_category(raw: Any) -> str:
    return re.sub(r"[\s\-]+", "_", str(raw or "").strip().lower())


def _parse_rarity(raw: Mapping[str, Any]) -> Rarity:
    if "tier_type" in raw:
        return TIER_TYPE_RARITY[int(raw["tier_type"])]
    value = raw.get("rarity", Rarity.LEGENDARY)
    if isinstance(value, Rarity):
        return value
    if isinstance(value, int):
        return Rarity(value)
    text = str(value).strip().lower()
    if text.isdigit():
        return Rarity(int(text))
    return RARITY_NAMES[text]


def _parse_stats(raw: Mapping[Any, Any]) -> dict[StatChannel, int]:
    """스탯 키 정규화. 알 수 없는 키는 ValueError."""
    stats: dict[StatChannel, int] = {}
    for key, value in raw.items():
        channel = normalize_channel(key)
        if channel is None:
            raise ValueError(f"unknown stat key {key!r}")
        stats[channel] = stats.get(channel, 0) + int(value)
    return stats


def normalize_record(item_id: str, raw: Mapping[str, Any]) -> ItemDefinition:
    """원시 레코드 → ItemDefinition. 잘못된 레코드는 KeyError/ValueError."""
    tuned = raw.get("tuned_channel")
    tuned_channel = normalize_channel(tuned) if tuned else None
    if tuned and tuned_channel is None:
        raise ValueError(f"unknown tuned channel {tuned!r}")

    gear_tier = int(raw.get("gear_tier", 1))
    if not 1 <= gear_tier <= 5:
        raise ValueError(f"gear_tier {gear_tier} out of range")

    return ItemDefinition(
        item_id=str(item_id),
        name=str(raw["name"]),
        kind=ItemKind(str(raw["kind"]).strip().lower()),
        slot=_enum_value(Slot, raw.get("slot"), Slot.NONE),
        category=_normalize_category(raw.get("category")),
        rarity=_parse_rarity(raw),
        class_affinity=_enum_value(ClassType, raw.get("class_affinity"), ClassType.ANY),
        damage_element=_enum_value(Element, raw.get("damage_element"), Element.NONE),
        description=str(raw.get("description", "")),
        stat_contributions=_parse_stats(raw.get("stat_contributions", raw.get("stats", {}))),
        gear_tier=gear_tier,
        masterworked=bool(raw.get("masterworked", False)),
        tuned_channel=tuned_channel,
    )


class CatalogIndex:
    """
    아이템 정의 인덱스.
    로드 후 불변: 선언 순서(로드 순서)를 보존한다.
    """

    def __init__(self) -> None:
        self._items: dict[str, ItemDefinition] = {}
        self._order: dict[str, int] = {}

    # === 로드 ===

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Mapping[str, Any] | ItemDefinition]) -> CatalogIndex:
        """item_id → 레코드 매핑으로 생성."""
        index = cls()
        index._load_records(mapping.items(), source="mapping")
        return index

    def load_from_json(self, path: str | Path) -> int:
        """catalog JSON 로드. 반환: 로드된 수량.

        최상위는 {item_id: record} 객체 또는 item_id를 포함한 레코드 배열.
        """
        path = Path(path)
        try:
            with path.open("r", encoding="utf-8") as f:
                raw = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"Cannot read catalog {path}: {e}") from e

        if isinstance(raw, dict) and "items" in raw:
            raw = raw["items"]
        if isinstance(raw, list):
            pairs = [(r.get("item_id", "?"), r) for r in raw if isinstance(r, dict)]
        else:
            pairs = list(raw.items())
        return self._load_records(pairs, source=str(path))

    def _load_records(self, pairs: Iterable[tuple[str, Any]], source: str) -> int:
        count = 0
        for item_id, raw in pairs:
            try:
                if isinstance(raw, ItemDefinition):
                    item = raw
                else:
                    item = normalize_record(item_id, raw)
            except (KeyError, ValueError, TypeError) as e:
                logger.warning("Failed to load catalog item %s: %s", item_id, e)
                continue
            if item.item_id in self._items:
                logger.warning("Duplicate catalog item overwritten: %s", item.item_id)
            else:
                self._order[item.item_id] = len(self._order)
            self._items[item.item_id] = item
            count += 1

        logger.info("Loaded %d catalog items from %s", count, source)
        return count

    def require_loaded(self) -> None:
        """빈 카탈로그면 ConfigurationError."""
        if not self._items:
            raise ConfigurationError("Item catalog is empty or not loaded")

    # === 조회 ===

    def get(self, item_id: str) -> Optional[ItemDefinition]:
        """O(1) 조회. 없으면 None."""
        return self._items.get(item_id)

    def all(self) -> list[ItemDefinition]:
        return list(self._items.values())

    def count(self) -> int:
        return len(self._items)

    def declaration_order(self, item_id: str) -> int:
        return self._order.get(item_id, len(self._order))

    def by_kind(self, kind: ItemKind) -> list[ItemDefinition]:
        return [i for i in self._items.values() if i.kind == kind]

    def by_slot(self, slot: Slot) -> list[ItemDefinition]:
        return [i for i in self._items.values() if i.slot == slot]

    def by_category(self, category: str) -> list[ItemDefinition]:
        category = _normalize_category(category)
        return [i for i in self._items.values() if i.category == category]

    def by_rarity(self, rarity: Rarity) -> list[ItemDefinition]:
        return [i for i in self._items.values() if i.rarity == rarity]

    def candidates(
        self,
        kind: ItemKind,
        slot: Optional[Slot] = None,
        target_class: ClassType = ClassType.ANY,
        allowed_ids: Optional[set[str]] = None,
        exclude_exotic: bool = False,
    ) -> list[ItemDefinition]:
        """슬롯 후보 (선언 순서).

        allowed_ids가 주어지면 인벤토리 필터로 사용.
        """
        result = []
        for item in self._items.values():
            if item.kind != kind:
                continue
            if slot is not None and item.slot != slot:
                continue
            if not item.fits_class(target_class):
                continue
            if allowed_ids is not None and item.item_id not in allowed_ids:
                continue
            if exclude_exotic and item.is_exotic:
                continue
            result.append(item)
        return result

    def item_names(self) -> dict[str, str]:
        """item_id → 이름"""
        return {item_id: item.name for item_id, item in self._items.items()}

    def find_mentions(self, text: str) -> list[str]:
        """본문에 언급된 아이템 이름 → item_id 목록 (등장 순서)."""
        result: list[str] = []
        for _, _, item_id in self.find_mention_spans(text):
            if item_id not in result:
                result.append(item_id)
        return result

    def find_mention_spans(self, text: str) -> list[tuple[int, int, str]]:
        """(start, end, item_id) 목록 (위치 순).

        가장 긴 이름 우선. 겹치는 짧은 이름은 버린다.
        """
        lowered = text.lower()
        spans: list[tuple[int, int, str]] = []
        for item_id, item in self._items.items():
            name = item.name.strip().lower()
            if len(name) < MIN_MENTION_LENGTH:
                continue
            pattern = r"(?<!\w)" + re.escape(name) + r"(?!\w)"
            for match in re.finditer(pattern, lowered):
                spans.append((match.start(), match.end(), item_id))

        spans.sort(key=lambda s: (-(s[1] - s[0]), s[0], s[2]))
        accepted: list[tuple[int, int, str]] = []
        for start, end, item_id in spans:
            if any(start < a_end and a_start < end for a_start, a_end, _ in accepted):
                continue
            accepted.append((start, end, item_id))
        return sorted(accepted)
