"""점수 축: 축마다 순수 함수 1개, 전부 0~100

stat_optimization   집중 스탯의 티어 달성률 + 효율
synergy_strength    탐지된 시너지 강도 합
activity_fit        활동별 최소 스탯 충족도
weapon_synergy      무기 타입 활동 친화도 + 원소 일관성
armor_optimization  아키타입 최소 티어 대비 달성도
exotic_utilization  그룹별 엑조틱 활용
"""

from __future__ import annotations

from typing import Iterable, Sequence

from buildsmith.core.archetype.models import Archetype
from buildsmith.core.assembly.models import Build
from buildsmith.core.catalog.models import ARMOR_SLOTS, Element, ItemDefinition
from buildsmith.core.rules.models import Synergy
from buildsmith.core.stats.calculations import effect_tier, efficiency, tier_score
from buildsmith.core.stats.models import StatChannel, StatTotals
from buildsmith.core.tables import ScoringTables


def _clamp(value: float) -> float:
    return max(0.0, min(100.0, value))


def stat_optimization(totals: StatTotals, focus: Sequence[StatChannel]) -> float:
    if not focus:
        return 0.0
    per_stat = [
        min(100.0, tier_score(totals.get(ch)) + efficiency(totals.get(ch)) * 10) for ch in focus
    ]
    return _clamp(sum(per_stat) / len(per_stat))


def synergy_strength(synergies: Iterable[Synergy], points: dict[str, float]) -> float:
    return _clamp(sum(points.get(s.strength.value, 0) for s in synergies))


def activity_fit(totals: StatTotals, thresholds: dict[StatChannel, int]) -> float:
    """임계값 충족 시 만점, 아니면 value/threshold 비율. 임계값 없으면 100."""
    if not thresholds:
        return 100.0
    credits = []
    for channel, minimum in thresholds.items():
        value = totals.get(channel)
        credits.append(1.0 if minimum <= 0 or value >= minimum else value / minimum)
    return _clamp(sum(credits) / len(credits) * 100)


def weapon_synergy(build: Build, tables: ScoringTables) -> float:
    if not build.weapons:
        return 0.0
    affinities = [
        tables.affinity(build.activity, a.item.category) if a.item is not None else 0.0
        for a in build.weapons
    ]
    score = sum(affinities) / len(affinities)
    if any(w.damage_element.value == build.subclass.element for w in build.equipped_weapons()):
        score += tables.element_coherence_bonus
    return _clamp(score)


def armor_optimization(build: Build, archetype: Archetype) -> float:
    """최소 티어 달성 비율(아키타입 가중) × 장착 슬롯 비율."""
    filled = len(build.equipped_armor()) / len(ARMOR_SLOTS)
    if archetype.min_tiers:
        weighted = 0.0
        weight_sum = 0.0
        for channel, minimum in archetype.min_tiers.items():
            weight = archetype.weight(channel)
            achieved = effect_tier(build.stats.get(channel))
            weighted += weight * (1.0 if minimum <= 0 else min(1.0, achieved / minimum))
            weight_sum += weight
        ratio = weighted / weight_sum
    else:
        ratio = sum(tier_score(build.stats.get(ch)) for ch in archetype.stats) / 200
    return _clamp(ratio * filled * 100)


def _exotic_group_score(
    exotics: list[ItemDefinition], build: Build, tables: ScoringTables, key_of
) -> float:
    cfg = tables.exotic_score
    exotic = exotics[0]
    score = cfg["one"]
    fitting = tables.exotic_activity_categories.get(build.activity)
    if fitting is None or key_of(exotic) in fitting:
        score += cfg["activity_fit"]
    if exotic.damage_element in (Element.NONE, Element.KINETIC) or (
        exotic.damage_element.value == build.subclass.element
    ):
        score += cfg["element_fit"]
    score -= cfg["duplicate_penalty"] * (len(exotics) - 1)
    return score


def exotic_utilization(build: Build, tables: ScoringTables) -> float:
    """엑조틱 없음 = 기본값. 있으면 그룹(무기/방어구)별 점수 평균."""
    weapons = [w for w in build.equipped_weapons() if w.is_exotic]
    armor = [a for a in build.equipped_armor() if a.is_exotic]
    if not weapons and not armor:
        return _clamp(tables.exotic_score["none"])

    groups = []
    if weapons:
        groups.append(_exotic_group_score(weapons, build, tables, lambda i: i.category))
    if armor:
        groups.append(_exotic_group_score(armor, build, tables, lambda i: i.slot.value))
    return _clamp(sum(groups) / len(groups))
