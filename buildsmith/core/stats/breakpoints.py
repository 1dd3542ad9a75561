"""스탯 브레이크포인트 테이블: stat_breakpoints.json 로드 + 효과 조회"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

from buildsmith.core.errors import ConfigurationError

from .calculations import effect_tier
from .models import (
    SECONDARY_THRESHOLD,
    STAT_MAX,
    BreakpointSuggestion,
    StatChannel,
    StatEffects,
    StatTotals,
    normalize_channel,
)

logger = logging.getLogger(__name__)

DEFAULT_SUGGESTION_REACH = 10  # 이 이내면 제안


@dataclass(frozen=True)
class Breakpoint:
    value: int
    effect: str


@dataclass(frozen=True)
class ChannelBreakpoints:
    channel: StatChannel
    label: str
    breakpoints: tuple[Breakpoint, ...]  # value 오름차순
    secondary_effects: tuple[str, ...] = ()


class BreakpointTable:
    """채널별 브레이크포인트. 로드 후 불변."""

    def __init__(self) -> None:
        self._channels: dict[StatChannel, ChannelBreakpoints] = {}

    def load_from_json(self, path: str | Path) -> int:
        """stat_breakpoints.json 로드. 반환: 로드된 채널 수."""
        path = Path(path)
        try:
            with path.open("r", encoding="utf-8") as f:
                raw = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"Cannot read breakpoint table {path}: {e}") from e
        return self.load_from_dict(raw)

    def load_from_dict(self, raw: dict) -> int:
        count = 0
        for key, data in raw.get("channels", {}).items():
            channel = normalize_channel(key)
            if channel is None:
                logger.warning("Unknown stat channel in breakpoint table: %s", key)
                continue
            try:
                points = sorted(
                    (
                        Breakpoint(value=int(bp["value"]), effect=str(bp["effect"]))
                        for bp in data.get("breakpoints", [])
                    ),
                    key=lambda bp: bp.value,
                )
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Failed to load breakpoints %s: %s", key, e)
                continue
            self._channels[channel] = ChannelBreakpoints(
                channel=channel,
                label=data.get("label", channel.value),
                breakpoints=tuple(points),
                secondary_effects=tuple(data.get("secondary_effects", [])),
            )
            count += 1

        logger.info("Loaded %d stat breakpoint channels", count)
        return count

    def get(self, channel: StatChannel) -> Optional[ChannelBreakpoints]:
        return self._channels.get(channel)

    def effects_at(self, channel: StatChannel, value: int) -> StatEffects:
        """채널 값에서 해금된 효과 + 다음 브레이크포인트."""
        value = max(0, min(STAT_MAX, value))
        table = self._channels.get(channel)
        points = table.breakpoints if table else ()

        unlocked = [bp.effect for bp in points if bp.value <= value]
        upcoming = next((bp for bp in points if bp.value > value), None)
        secondary = value >= SECONDARY_THRESHOLD
        if secondary and table:
            unlocked.extend(f"secondary:{name}" for name in table.secondary_effects)

        return StatEffects(
            channel=channel,
            value=value,
            tier=effect_tier(value),
            effect=next((bp.effect for bp in reversed(points) if bp.value <= value), "none"),
            unlocked_effects=tuple(unlocked),
            next_breakpoint=upcoming.value if upcoming else None,
            next_breakpoint_gap=(upcoming.value - value) if upcoming else None,
            secondary_unlocked=secondary,
        )

    def breakpoint_suggestions(
        self,
        totals: StatTotals,
        channels: Iterable[StatChannel],
        reach: int = DEFAULT_SUGGESTION_REACH,
    ) -> list[BreakpointSuggestion]:
        """다음 브레이크포인트가 reach 이내인 채널 안내."""
        suggestions: list[BreakpointSuggestion] = []
        seen: set[StatChannel] = set()
        for channel in channels:
            if channel in seen:
                continue
            seen.add(channel)
            effects = self.effects_at(channel, totals.get(channel))
            gap = effects.next_breakpoint_gap
            if gap is None or gap > reach:
                continue
            table = self._channels[channel]
            target_effect = next(
                bp.effect for bp in table.breakpoints if bp.value == effects.next_breakpoint
            )
            suggestions.append(
                BreakpointSuggestion(
                    channel=channel,
                    value=effects.value,
                    target=effects.next_breakpoint,
                    points_needed=gap,
                    effect=target_effect,
                )
            )
        return suggestions
