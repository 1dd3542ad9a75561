"""스탯 모델: 채널, 티어, 합산, 브레이크포인트"""

from .breakpoints import BreakpointTable
from .calculations import (
    aggregate,
    aggregate_raw,
    effect_tier,
    efficiency,
    tier,
    tier_score,
    wasted_points,
)
from .models import (
    CHANNEL_ORDER,
    MAX_TIER,
    SECONDARY_THRESHOLD,
    STAT_MAX,
    BreakpointSuggestion,
    StatChannel,
    StatEffects,
    StatTotals,
    normalize_channel,
)

__all__ = [
    "BreakpointSuggestion",
    "BreakpointTable",
    "CHANNEL_ORDER",
    "MAX_TIER",
    "SECONDARY_THRESHOLD",
    "STAT_MAX",
    "StatChannel",
    "StatEffects",
    "StatTotals",
    "aggregate",
    "aggregate_raw",
    "effect_tier",
    "efficiency",
    "normalize_channel",
    "tier",
    "tier_score",
    "wasted_points",
]
