"""빌드 조립 결과 모델: 전부 to_dict()로 JSON 직렬화 가능"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from buildsmith.core.catalog.models import ItemDefinition, Slot
from buildsmith.core.rules.models import Conflict, Synergy
from buildsmith.core.stats.models import StatChannel, StatTotals


class DiagnosticKind(str, Enum):
    NO_CANDIDATE = "no_candidate"
    INFEASIBLE_CONSTRAINT = "infeasible_constraint"
    LOCKED_ITEM_REJECTED = "locked_item_rejected"
    PARSE_AMBIGUITY = "parse_ambiguity"


@dataclass(frozen=True)
class Diagnostic:
    kind: DiagnosticKind
    message: str
    slot: Optional[str] = None

    def to_dict(self) -> dict:
        return {"kind": self.kind.value, "slot": self.slot, "message": self.message}


@dataclass(frozen=True)
class CandidateScore:
    item: ItemDefinition
    score: float
    reasons: tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {
            "item_id": self.item.item_id,
            "name": self.item.name,
            "score": round(self.score, 2),
            "reasons": list(self.reasons),
        }


@dataclass(frozen=True)
class SlotAssignment:
    slot: Slot
    item: Optional[ItemDefinition]
    score: float = 0.0
    reasons: tuple[str, ...] = ()
    locked: bool = False
    candidates: tuple[CandidateScore, ...] = ()  # 대안 요청 시 상위 후보

    def to_dict(self) -> dict:
        data = {
            "slot": self.slot.value,
            "item": self.item.to_dict() if self.item else None,
            "score": round(self.score, 2),
            "reasons": list(self.reasons),
            "locked": self.locked,
        }
        if self.candidates:
            data["candidates"] = [c.to_dict() for c in self.candidates]
        return data


@dataclass(frozen=True)
class SubclassConfig:
    element: str
    name: str
    components: dict[str, tuple[str, ...]] = field(default_factory=dict)  # 카테고리 → item_id

    def to_dict(self) -> dict:
        return {
            "element": self.element,
            "name": self.name,
            "components": {cat: list(ids) for cat, ids in sorted(self.components.items())},
        }


@dataclass(frozen=True)
class ChosenMod:
    item: ItemDefinition
    category: str
    score: float
    reasons: tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {
            "item_id": self.item.item_id,
            "name": self.item.name,
            "category": self.category,
            "score": round(self.score, 2),
            "reasons": list(self.reasons),
        }


@dataclass(frozen=True)
class Build:
    """조립된 빌드: 슬롯 비어 있음(None) 허용"""

    name: str
    description: str
    activity: str
    playstyle: str
    subclass: SubclassConfig
    weapons: tuple[SlotAssignment, ...]
    armor: tuple[SlotAssignment, ...]
    mods: tuple[ChosenMod, ...]
    archetype_id: str
    stats: StatTotals
    raw_stats: dict[StatChannel, int] = field(default_factory=dict)
    synergies: tuple[Synergy, ...] = ()
    conflicts: tuple[Conflict, ...] = ()
    diagnostics: tuple[Diagnostic, ...] = ()
    subclass_items: tuple[ItemDefinition, ...] = ()

    def assignments(self) -> tuple[SlotAssignment, ...]:
        return self.weapons + self.armor

    def equipped_weapons(self) -> list[ItemDefinition]:
        return [a.item for a in self.weapons if a.item is not None]

    def equipped_armor(self) -> list[ItemDefinition]:
        return [a.item for a in self.armor if a.item is not None]

    def empty_slots(self) -> list[Slot]:
        return [a.slot for a in self.assignments() if a.item is None]

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "description": self.description,
            "activity": self.activity,
            "playstyle": self.playstyle,
            "archetype_id": self.archetype_id,
            "subclass": self.subclass.to_dict(),
            "weapons": [a.to_dict() for a in self.weapons],
            "armor": [a.to_dict() for a in self.armor],
            "mods": [m.to_dict() for m in self.mods],
            "stats": self.stats.to_dict(),
            "synergies": [s.to_dict() for s in self.synergies],
            "conflicts": [c.to_dict() for c in self.conflicts],
            "diagnostics": [d.to_dict() for d in self.diagnostics],
        }
