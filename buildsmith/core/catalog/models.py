"""카탈로그 도메인 모델 (DB 무관)"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from buildsmith.core.stats.models import StatChannel


class ItemKind(str, Enum):
    WEAPON = "weapon"
    ARMOR = "armor"
    MOD = "mod"
    SUBCLASS_COMPONENT = "subclass_component"
    CONSUMABLE = "consumable"


class Slot(str, Enum):
    KINETIC = "kinetic"
    ENERGY = "energy"
    POWER = "power"
    HELMET = "helmet"
    ARMS = "arms"
    CHEST = "chest"
    LEGS = "legs"
    CLASS_ITEM = "class_item"
    NONE = "none"


WEAPON_SLOTS: tuple[Slot, ...] = (Slot.KINETIC, Slot.ENERGY, Slot.POWER)
ARMOR_SLOTS: tuple[Slot, ...] = (
    Slot.HELMET,
    Slot.ARMS,
    Slot.CHEST,
    Slot.LEGS,
    Slot.CLASS_ITEM,
)


class Rarity(int, Enum):
    COMMON = 1
    UNCOMMON = 2
    RARE = 3
    LEGENDARY = 4
    EXOTIC = 5


class ClassType(str, Enum):
    ANY = "any"
    TITAN = "titan"
    HUNTER = "hunter"
    WARLOCK = "warlock"


class Element(str, Enum):
    KINETIC = "kinetic"
    SOLAR = "solar"
    ARC = "arc"
    VOID = "void"
    STASIS = "stasis"
    STRAND = "strand"
    NONE = "none"


# 서브클래스 원소 (kinetic/none 제외)
SUBCLASS_ELEMENTS: tuple[Element, ...] = (
    Element.SOLAR,
    Element.ARC,
    Element.VOID,
    Element.STASIS,
    Element.STRAND,
)


@dataclass(frozen=True)
class ItemDefinition:
    """아이템 정의: 불변. CatalogIndex가 소유."""

    item_id: str
    name: str
    kind: ItemKind
    slot: Slot = Slot.NONE
    category: str = ""  # "rocket_launcher", "armor_mod", "aspect", ...
    rarity: Rarity = Rarity.LEGENDARY
    class_affinity: ClassType = ClassType.ANY
    damage_element: Element = Element.NONE
    description: str = ""  # 트리거/효과 키워드 마이닝 대상

    # 스탯
    stat_contributions: dict[StatChannel, int] = field(default_factory=dict)
    gear_tier: int = 1  # 1~5, 5 = 퍼펙트 티어
    masterworked: bool = False
    tuned_channel: Optional[StatChannel] = None

    @property
    def is_exotic(self) -> bool:
        return self.rarity == Rarity.EXOTIC

    def fits_class(self, class_type: ClassType) -> bool:
        """any 양쪽 허용."""
        return (
            class_type == ClassType.ANY
            or self.class_affinity == ClassType.ANY
            or self.class_affinity == class_type
        )

    def to_dict(self) -> dict:
        return {
            "item_id": self.item_id,
            "name": self.name,
            "kind": self.kind.value,
            "slot": self.slot.value,
            "category": self.category,
            "rarity": self.rarity.name.lower(),
            "class_affinity": self.class_affinity.value,
            "damage_element": self.damage_element.value,
            "stat_contributions": {
                ch.value: v for ch, v in sorted(
                    self.stat_contributions.items(), key=lambda kv: kv[0].value
                )
            },
            "gear_tier": self.gear_tier,
            "masterworked": self.masterworked,
            "tuned_channel": self.tuned_channel.value if self.tuned_channel else None,
        }
