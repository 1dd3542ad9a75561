"""스탯 채널 & 합계 모델 (DB 무관)

스케일: 확장 0~200. 티어 = floor(value / 10), 최대 20.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterator, Mapping, Optional, Union

STAT_MIN = 0
STAT_MAX = 200
TIER_SIZE = 10
MAX_TIER = STAT_MAX // TIER_SIZE  # 20
SECONDARY_THRESHOLD = 100  # 보조 효과 해금 경계 (고정 상수)


class StatChannel(str, Enum):
    MOBILITY = "mobility"
    RESILIENCE = "resilience"
    RECOVERY = "recovery"
    DISCIPLINE = "discipline"
    INTELLECT = "intellect"
    STRENGTH = "strength"


CHANNEL_ORDER: tuple[StatChannel, ...] = tuple(StatChannel)

# 신규 스탯 명칭 → 기존 6채널
CHANNEL_ALIASES: dict[str, StatChannel] = {
    "weapons": StatChannel.MOBILITY,
    "health": StatChannel.RESILIENCE,
    "class": StatChannel.RECOVERY,
    "super": StatChannel.INTELLECT,
    "grenade": StatChannel.DISCIPLINE,
    "melee": StatChannel.STRENGTH,
}

# 매니페스트 스탯 해시
CHANNEL_HASHES: dict[int, StatChannel] = {
    2996146975: StatChannel.MOBILITY,
    392767087: StatChannel.RESILIENCE,
    1943323491: StatChannel.RECOVERY,
    1735777505: StatChannel.INTELLECT,
    144602215: StatChannel.DISCIPLINE,
    4244567218: StatChannel.STRENGTH,
}


def normalize_channel(key: Union[str, int, StatChannel]) -> Optional[StatChannel]:
    """채널명/별칭/해시 → StatChannel. 알 수 없으면 None."""
    if isinstance(key, StatChannel):
        return key
    if isinstance(key, int):
        return CHANNEL_HASHES.get(key)
    text = str(key).strip().lower()
    if text.isdigit():
        return CHANNEL_HASHES.get(int(text))
    try:
        return StatChannel(text)
    except ValueError:
        return CHANNEL_ALIASES.get(text)


@dataclass(frozen=True)
class StatTotals:
    """6채널 합계. 각 채널 0~200."""

    mobility: int = 0
    resilience: int = 0
    recovery: int = 0
    discipline: int = 0
    intellect: int = 0
    strength: int = 0

    def __post_init__(self) -> None:
        for channel in CHANNEL_ORDER:
            value = getattr(self, channel.value)
            if not STAT_MIN <= value <= STAT_MAX:
                raise ValueError(f"{channel.value}={value} out of range")

    @classmethod
    def from_mapping(cls, values: Mapping[StatChannel, int]) -> StatTotals:
        """채널별 값 → StatTotals. 범위 밖은 클램프."""
        return cls(
            **{
                ch.value: max(STAT_MIN, min(STAT_MAX, int(values.get(ch, 0))))
                for ch in CHANNEL_ORDER
            }
        )

    def get(self, channel: StatChannel) -> int:
        return getattr(self, channel.value)

    def items(self) -> Iterator[tuple[StatChannel, int]]:
        for channel in CHANNEL_ORDER:
            yield channel, getattr(self, channel.value)

    def to_dict(self) -> dict[str, int]:
        return {channel.value: value for channel, value in self.items()}


@dataclass(frozen=True)
class StatEffects:
    """특정 채널 값에서의 효과 조회 결과"""

    channel: StatChannel
    value: int
    tier: int
    effect: str  # 도달한 최고 브레이크포인트 설명
    unlocked_effects: tuple[str, ...] = ()
    next_breakpoint: Optional[int] = None  # 다음 브레이크포인트 스탯 값
    next_breakpoint_gap: Optional[int] = None  # 다음 브레이크포인트까지 필요 포인트
    secondary_unlocked: bool = False

    def to_dict(self) -> dict:
        return {
            "channel": self.channel.value,
            "value": self.value,
            "tier": self.tier,
            "effect": self.effect,
            "unlocked_effects": list(self.unlocked_effects),
            "next_breakpoint": self.next_breakpoint,
            "next_breakpoint_gap": self.next_breakpoint_gap,
            "secondary_unlocked": self.secondary_unlocked,
        }


@dataclass(frozen=True)
class BreakpointSuggestion:
    """다음 브레이크포인트 근접 안내"""

    channel: StatChannel
    value: int
    target: int
    points_needed: int
    effect: str = ""

    def to_dict(self) -> dict:
        return {
            "channel": self.channel.value,
            "value": self.value,
            "target": self.target,
            "points_needed": self.points_needed,
            "effect": self.effect,
        }
