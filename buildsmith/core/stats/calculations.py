"""스탯 계산: 티어, 효율, 합산

전부 순수 함수: 외부 의존 없음.
"""

from __future__ import annotations

from typing import Iterable, TYPE_CHECKING

from .models import (
    CHANNEL_ORDER,
    MAX_TIER,
    STAT_MAX,
    TIER_SIZE,
    StatChannel,
    StatTotals,
)

if TYPE_CHECKING:
    from buildsmith.core.catalog.models import ItemDefinition

MASTERWORK_BONUS = 2  # 마스터워크: 모든 채널 +2
TUNING_BONUS = 5  # 퍼펙트 티어: 튜닝 채널 +5
PERFECT_GEAR_TIER = 5


def tier(value: int) -> int:
    """floor(value / 10). 상한 없음: 효과 티어는 effect_tier 사용."""
    return value // TIER_SIZE


def effect_tier(value: int) -> int:
    """효과 티어. 0~20 클램프."""
    return max(0, min(MAX_TIER, tier(value)))


def efficiency(value: int) -> float:
    """티어 경계에 정확히 맞을수록 1.

    value % 10 == 0 → 1, 아니면 (10 - value % 10) / 10.
    """
    remainder = value % TIER_SIZE
    if remainder == 0:
        return 1.0
    return (TIER_SIZE - remainder) / TIER_SIZE


def piece_bonus(item: "ItemDefinition") -> dict[StatChannel, int]:
    """장비 1개의 마스터워크/튜닝 보너스.

    퍼펙트 티어(gear_tier 5) + 튜닝 채널 → 해당 채널 +5.
    그 외 마스터워크 → 모든 채널 +2.
    """
    if item.gear_tier >= PERFECT_GEAR_TIER and item.tuned_channel is not None:
        return {item.tuned_channel: TUNING_BONUS}
    if item.masterworked:
        return {channel: MASTERWORK_BONUS for channel in CHANNEL_ORDER}
    return {}


def aggregate_raw(items: Iterable["ItemDefinition"]) -> dict[StatChannel, int]:
    """클램프 전 채널별 합계."""
    totals = {channel: 0 for channel in CHANNEL_ORDER}
    for item in items:
        if item is None:
            continue
        for channel, value in item.stat_contributions.items():
            totals[channel] += value
        for channel, bonus in piece_bonus(item).items():
            totals[channel] += bonus
    return totals


def aggregate(items: Iterable["ItemDefinition"]) -> StatTotals:
    """장착 아이템 스탯 합산 → StatTotals (0~200 클램프)."""
    return StatTotals.from_mapping(aggregate_raw(items))


def wasted_points(raw: dict[StatChannel, int]) -> dict[StatChannel, int]:
    """상한(200) 초과로 버려지는 포인트."""
    return {ch: value - STAT_MAX for ch, value in raw.items() if value > STAT_MAX}


def tier_score(value: int) -> float:
    """티어 달성률 0~100."""
    return effect_tier(value) / MAX_TIER * 100
