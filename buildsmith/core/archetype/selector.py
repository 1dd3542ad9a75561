"""방어구 아키타입 선택기

archetypes.json 로드 → 의도 기반 추천, 방어구 조각 점수, 달성 가능성 판정.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

from buildsmith.core.catalog.models import ItemDefinition
from buildsmith.core.errors import ConfigurationError
from buildsmith.core.intent.models import BuildIntent
from buildsmith.core.stats.calculations import PERFECT_GEAR_TIER, tier
from buildsmith.core.stats.models import MAX_TIER, StatChannel, normalize_channel

from .models import (
    OTHER_WEIGHT,
    PRIMARY_WEIGHT,
    SECONDARY_WEIGHT,
    Archetype,
    ArchetypeRecommendation,
    ArchetypeScore,
    Feasibility,
    FeasibilityConstraints,
)

logger = logging.getLogger(__name__)

# 추천 점수 가중치
ACTIVITY_MATCH = 25
PLAYSTYLE_MATCH = 20
PRIMARY_OVERLAP = 15
SECONDARY_OVERLAP = 8

ALTERNATIVE_COUNT = 2
TOP_TIER_PIECE_BONUS = 50

# 달성 가능 최대치 (스탯 값)
BASE_MAX = 100
TOP_TIER_BONUS = 25
STAT_MOD_BONUS = 50


class ArchetypeSelector:
    """
    아키타입 저장소 + 선택 로직.
    선언 순서를 보존한다 (동점 처리 기준).
    """

    def __init__(self) -> None:
        self._archetypes: list[Archetype] = []
        self._base_max = BASE_MAX
        self._top_tier_bonus = TOP_TIER_BONUS
        self._stat_mod_bonus = STAT_MOD_BONUS

    def load_from_json(self, path: str | Path) -> int:
        """archetypes.json 로드. 반환: 로드된 수량."""
        path = Path(path)
        try:
            with path.open("r", encoding="utf-8") as f:
                raw = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"Cannot read archetype table {path}: {e}") from e
        return self.load_from_dict(raw)

    def load_from_dict(self, raw: dict) -> int:
        weights = raw.get("default_weights", {})
        feas = raw.get("feasibility", {})
        self._base_max = int(feas.get("base_max", BASE_MAX))
        self._top_tier_bonus = int(feas.get("top_tier_bonus", TOP_TIER_BONUS))
        self._stat_mod_bonus = int(feas.get("stat_mod_bonus", STAT_MOD_BONUS))

        count = 0
        for r in raw.get("archetypes", []):
            try:
                primary = normalize_channel(r["primary"])
                secondary = normalize_channel(r["secondary"])
                if primary is None or secondary is None:
                    raise ValueError("unknown primary/secondary channel")
                min_tiers = {}
                for key, value in r.get("min_tiers", {}).items():
                    channel = normalize_channel(key)
                    if channel is None:
                        raise ValueError(f"unknown channel {key!r}")
                    min_tiers[channel] = int(value)
                archetype = Archetype(
                    archetype_id=r["id"],
                    name=r.get("name", r["id"]),
                    primary=primary,
                    secondary=secondary,
                    description=r.get("description", ""),
                    min_tiers=min_tiers,
                    activities=tuple(r.get("activities", [])),
                    playstyles=tuple(r.get("playstyles", [])),
                    primary_weight=int(weights.get("primary", PRIMARY_WEIGHT)),
                    secondary_weight=int(weights.get("secondary", SECONDARY_WEIGHT)),
                    other_weight=int(weights.get("other", OTHER_WEIGHT)),
                )
                self._archetypes.append(archetype)
                count += 1
            except (KeyError, ValueError) as e:
                logger.warning("Failed to load archetype %s: %s", r.get("id", "?"), e)

        logger.info("Loaded %d archetypes", count)
        return count

    def all(self) -> list[Archetype]:
        return list(self._archetypes)

    def get(self, archetype_id: str) -> Optional[Archetype]:
        return next((a for a in self._archetypes if a.archetype_id == archetype_id), None)

    # === 추천 ===

    def score_archetype(self, archetype: Archetype, intent: BuildIntent) -> ArchetypeScore:
        score = 0
        reasons: list[str] = []
        if intent.activity in archetype.activities:
            score += ACTIVITY_MATCH
            reasons.append(f"suited to {intent.activity}")
        if intent.playstyle in archetype.playstyles:
            score += PLAYSTYLE_MATCH
            reasons.append(f"fits {intent.playstyle} playstyle")
        if archetype.primary in intent.priority_stats:
            score += PRIMARY_OVERLAP
            reasons.append(f"primary stat {archetype.primary.value} requested")
        if archetype.secondary in intent.priority_stats:
            score += SECONDARY_OVERLAP
            reasons.append(f"secondary stat {archetype.secondary.value} requested")
        return ArchetypeScore(archetype=archetype, score=score, reasons=tuple(reasons))

    def recommend(self, intent: BuildIntent) -> ArchetypeRecommendation:
        """최고 점수 1개 + 대안 2개. 동점은 선언 순서."""
        if not self._archetypes:
            raise ConfigurationError("No archetypes loaded")

        scored = [self.score_archetype(a, intent) for a in self._archetypes]
        ranked = sorted(enumerate(scored), key=lambda pair: (-pair[1].score, pair[0]))
        ordered = [s for _, s in ranked]
        best = ordered[0]

        reasoning = [f"{best.archetype.name} scored {best.score}"]
        reasoning.extend(best.reasons)
        if best.score == 0:
            reasoning.append("no specific match; using first declared archetype")

        return ArchetypeRecommendation(
            primary=best,
            alternatives=tuple(ordered[1 : 1 + ALTERNATIVE_COUNT]),
            reasoning=tuple(reasoning),
        )

    # === 조각 점수 ===

    @staticmethod
    def score_piece(piece: ItemDefinition, intent: BuildIntent, archetype: Archetype) -> float:
        """Σ 기여 × (수치 제약 또는 아키타입 가중치) + 최상위 조각 보너스."""
        score = 0.0
        for channel, value in piece.stat_contributions.items():
            multiplier = intent.numeric_constraints.get(channel) or archetype.weight(channel)
            score += value * multiplier
        if piece.gear_tier >= PERFECT_GEAR_TIER or piece.masterworked:
            score += TOP_TIER_PIECE_BONUS
        return score

    # === 달성 가능성 ===

    def max_achievable_tier(self, constraints: FeasibilityConstraints) -> int:
        ceiling = self._base_max
        if constraints.allow_top_tier_armor:
            ceiling += self._top_tier_bonus
        if constraints.allow_stat_mods:
            ceiling += self._stat_mod_bonus
        return min(MAX_TIER, tier(ceiling))

    def feasibility(
        self, archetype: Archetype, constraints: Optional[FeasibilityConstraints] = None
    ) -> Feasibility:
        """최소 티어 요구 vs 달성 가능 최대 티어."""
        constraints = constraints or FeasibilityConstraints()
        max_tier = self.max_achievable_tier(constraints)

        needed: dict[StatChannel, int] = dict(archetype.min_tiers)
        for channel, value in constraints.required.items():
            needed[channel] = max(needed.get(channel, 0), tier(value))

        unmet = tuple(
            sorted((ch for ch, t in needed.items() if t > max_tier), key=lambda ch: ch.value)
        )
        return Feasibility(feasible=not unmet, max_tier=max_tier, unmet_channels=unmet)
