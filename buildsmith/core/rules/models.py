"""규칙 베이스 모델: 트리거, 효과, 시너지 패턴, 충돌 규칙"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class StackingMode(str, Enum):
    ADDITIVE = "additive"
    MULTIPLICATIVE = "multiplicative"
    MULTIPLICATIVE_CAPPED = "multiplicative_capped"
    OVERWRITE = "overwrite"


class Resolution(str, Enum):
    HIGHEST_MAGNITUDE = "highest_magnitude"
    LONGEST_DURATION = "longest_duration"
    PRIORITY_ORDER = "priority_order"
    ADDITIVE_CAP = "additive_cap"


class EntryKind(str, Enum):
    TRIGGER = "trigger"
    EFFECT = "effect"


class Strength(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class DetectionKind(str, Enum):
    STAT = "stat"
    ELEMENT = "element"
    ACTIVITY = "activity"
    TRIGGER_CHAIN = "trigger-chain"


def strength_from_ratio(value: float) -> Strength:
    """0~1 패턴 강도 → 등급"""
    if value >= 0.85:
        return Strength.HIGH
    if value >= 0.7:
        return Strength.MEDIUM
    return Strength.LOW


@dataclass(frozen=True)
class TriggerDef:
    trigger_id: str
    name: str
    reliability: float  # 0~1
    frequency: str = "medium"
    contexts: tuple[str, ...] = ()


@dataclass(frozen=True)
class EffectDef:
    effect_id: str
    name: str
    impact: float  # 0~1
    stacking: StackingMode = StackingMode.ADDITIVE
    cap: Optional[float] = None
    tie_break: str = "magnitude"  # overwrite 전용: "magnitude" | "duration"
    category: str = ""


@dataclass(frozen=True)
class SynergyPattern:
    pattern_id: str
    triggers: tuple[str, ...]
    effects: tuple[str, ...]
    strength: float
    sustainability: float
    description: str = ""


@dataclass(frozen=True)
class ConflictRule:
    rule_id: str
    kind: EntryKind
    side_a: str
    side_b: str
    resolution: Resolution
    priority: tuple[str, ...] = ()  # priority_order 전용 (앞쪽 우선)
    cap: Optional[float] = None  # additive_cap 전용
    description: str = ""


@dataclass(frozen=True)
class ActiveEntry:
    """활성 트리거/효과 1건. 충돌 해소·스태킹 입력."""

    entry_id: str
    name: str  # 트리거/효과 id
    kind: EntryKind = EntryKind.EFFECT
    magnitude: float = 0.0
    duration: float = 0.0
    source: str = ""  # 제공 아이템 id


@dataclass(frozen=True)
class PatternMatch:
    pattern_id: str
    trigger_coverage: float
    effect_coverage: float
    overall_match: float
    strength: float
    sustainability: float
    description: str = ""

    def to_dict(self) -> dict:
        return {
            "pattern": self.pattern_id,
            "trigger_coverage": round(self.trigger_coverage, 4),
            "effect_coverage": round(self.effect_coverage, 4),
            "overall_match": round(self.overall_match, 4),
            "strength": self.strength,
            "sustainability": self.sustainability,
        }


@dataclass(frozen=True)
class StackResult:
    effect_id: str
    value: float
    capped_by_limit: bool
    stacking: StackingMode
    count: int
    kept_entry: Optional[str] = None  # overwrite일 때 남은 항목

    def to_dict(self) -> dict:
        return {
            "effect": self.effect_id,
            "value": round(self.value, 6),
            "capped_by_limit": self.capped_by_limit,
            "stacking": self.stacking.value,
            "count": self.count,
        }


@dataclass(frozen=True)
class AppliedResolution:
    """실제로 발동한 충돌 규칙 기록"""

    rule_id: str
    resolution: Resolution
    winner: str
    loser: str
    dropped_entries: tuple[str, ...] = ()


@dataclass(frozen=True)
class ActivityRelevance:
    activity: str
    score: float
    high_value: tuple[str, ...] = ()
    medium_value: tuple[str, ...] = ()
    low_value: tuple[str, ...] = ()


@dataclass(frozen=True)
class MinedComponents:
    """아이템 설명에서 추출한 트리거/효과"""

    item_id: str
    triggers: tuple[str, ...] = ()
    effects: tuple[str, ...] = ()


@dataclass(frozen=True)
class Synergy:
    synergy_id: str
    kind: DetectionKind
    strength: Strength
    description: str
    involved_ids: tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {
            "id": self.synergy_id,
            "kind": self.kind.value,
            "strength": self.strength.value,
            "description": self.description,
            "involved_ids": list(self.involved_ids),
        }


@dataclass(frozen=True)
class Conflict:
    conflict_id: str
    kind: DetectionKind
    strength: Strength
    description: str
    involved_ids: tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {
            "id": self.conflict_id,
            "kind": self.kind.value,
            "strength": self.strength.value,
            "description": self.description,
            "involved_ids": list(self.involved_ids),
        }


@dataclass
class DetectionResult:
    synergies: list[Synergy] = field(default_factory=list)
    conflicts: list[Conflict] = field(default_factory=list)
