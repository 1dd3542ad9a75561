"""빌드 의도 모델 (DB 무관)"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from buildsmith.core.catalog.models import ClassType
from buildsmith.core.stats.models import StatChannel

DEFAULT_ACTIVITY = "general"
DEFAULT_ELEMENT = "any"
DEFAULT_PLAYSTYLE = "balanced"


@dataclass
class BuildOptions:
    """요청 옵션: 파싱 결과보다 우선."""

    locked_item_id: Optional[str] = None
    use_inventory_only: bool = False
    inventory_item_ids: list[str] = field(default_factory=list)
    activity: Optional[str] = None
    class_type: Optional[str] = None
    element: Optional[str] = None
    include_alternatives: bool = False

    @classmethod
    def from_dict(cls, raw: Optional[dict[str, Any]]) -> BuildOptions:
        raw = raw or {}
        return cls(
            locked_item_id=raw.get("locked_item_id"),
            use_inventory_only=bool(raw.get("use_inventory_only", False)),
            inventory_item_ids=list(raw.get("inventory_item_ids") or []),
            activity=raw.get("activity"),
            class_type=raw.get("class_type"),
            element=raw.get("element"),
            include_alternatives=bool(raw.get("include_alternatives", False)),
        )


@dataclass(frozen=True)
class BuildIntent:
    """자유 텍스트 요청의 정규화 결과"""

    raw_text: str = ""
    target_class: ClassType = ClassType.ANY
    element: str = DEFAULT_ELEMENT
    activity: str = DEFAULT_ACTIVITY
    playstyle: str = DEFAULT_PLAYSTYLE
    priority_stats: tuple[StatChannel, ...] = ()
    numeric_constraints: dict[StatChannel, int] = field(default_factory=dict)  # 원문 그대로, 클램프 없음
    locked_items: tuple[str, ...] = ()
    use_inventory_only: bool = False
    inventory_item_ids: tuple[str, ...] = ()
    weapon_types: tuple[str, ...] = ()
    matched_keywords: tuple[str, ...] = ()
    confidence: float = 0.5
    include_alternatives: bool = False

    def to_dict(self) -> dict:
        return {
            "raw_text": self.raw_text,
            "target_class": self.target_class.value,
            "element": self.element,
            "activity": self.activity,
            "playstyle": self.playstyle,
            "priority_stats": [ch.value for ch in self.priority_stats],
            "numeric_constraints": {
                ch.value: v for ch, v in sorted(
                    self.numeric_constraints.items(), key=lambda kv: kv[0].value
                )
            },
            "locked_items": list(self.locked_items),
            "use_inventory_only": self.use_inventory_only,
            "inventory_item_ids": list(self.inventory_item_ids),
            "weapon_types": list(self.weapon_types),
            "matched_keywords": list(self.matched_keywords),
            "confidence": self.confidence,
            "include_alternatives": self.include_alternatives,
        }
