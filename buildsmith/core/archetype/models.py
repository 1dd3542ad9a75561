"""방어구 아키타입 모델"""

from __future__ import annotations

from dataclasses import dataclass, field

from buildsmith.core.stats.models import StatChannel

PRIMARY_WEIGHT = 10
SECONDARY_WEIGHT = 5
OTHER_WEIGHT = 1


@dataclass(frozen=True)
class Archetype:
    """스탯 우선순위 템플릿: (주 채널, 보조 채널) + 가중치"""

    archetype_id: str
    name: str
    primary: StatChannel
    secondary: StatChannel
    description: str = ""
    min_tiers: dict[StatChannel, int] = field(default_factory=dict)
    activities: tuple[str, ...] = ()
    playstyles: tuple[str, ...] = ()
    primary_weight: int = PRIMARY_WEIGHT
    secondary_weight: int = SECONDARY_WEIGHT
    other_weight: int = OTHER_WEIGHT

    def weight(self, channel: StatChannel) -> int:
        if channel == self.primary:
            return self.primary_weight
        if channel == self.secondary:
            return self.secondary_weight
        return self.other_weight

    @property
    def stats(self) -> tuple[StatChannel, StatChannel]:
        return (self.primary, self.secondary)

    def to_dict(self) -> dict:
        return {
            "id": self.archetype_id,
            "name": self.name,
            "primary": self.primary.value,
            "secondary": self.secondary.value,
            "description": self.description,
        }


@dataclass(frozen=True)
class ArchetypeScore:
    archetype: Archetype
    score: int
    reasons: tuple[str, ...] = ()


@dataclass(frozen=True)
class ArchetypeRecommendation:
    primary: ArchetypeScore
    alternatives: tuple[ArchetypeScore, ...] = ()
    reasoning: tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {
            "primary": {**self.primary.archetype.to_dict(), "score": self.primary.score},
            "alternatives": [
                {**alt.archetype.to_dict(), "score": alt.score} for alt in self.alternatives
            ],
            "reasoning": list(self.reasoning),
        }


@dataclass(frozen=True)
class FeasibilityConstraints:
    """달성 가능 최대 티어 계산 조건"""

    allow_top_tier_armor: bool = True
    allow_stat_mods: bool = True
    required: dict[StatChannel, int] = field(default_factory=dict)  # 채널 → 요구 스탯 값


@dataclass(frozen=True)
class Feasibility:
    feasible: bool
    max_tier: int
    unmet_channels: tuple[StatChannel, ...] = ()
