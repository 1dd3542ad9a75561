"""시너지 & 트리거 규칙 베이스

rule_base.json을 로드하고 제네릭 평가 함수를 제공한다:
- 시너지 패턴 매칭 (커버리지)
- 효과 스태킹 (additive / multiplicative / multiplicative_capped / overwrite)
- 충돌 해소 (highest_magnitude / longest_duration / priority_order / additive_cap)

결정성: 모든 폴딩 전에 id 기준 정렬. 입력 순서와 무관하게 같은 결과.
"""

from __future__ import annotations

import json
import logging
import math
from collections import defaultdict
from pathlib import Path
from typing import Iterable, Optional

from buildsmith.core.errors import ConfigurationError

from .models import (
    ActiveEntry,
    ActivityRelevance,
    AppliedResolution,
    ConflictRule,
    EffectDef,
    EntryKind,
    PatternMatch,
    Resolution,
    StackingMode,
    StackResult,
    SynergyPattern,
    TriggerDef,
)

logger = logging.getLogger(__name__)

MIN_PATTERN_MATCH = 0.4  # 초과해야 매칭으로 인정
DEFAULT_RELEVANCE_ACTIVITY = "general_pve"

# 활동 관련도 가중치
HIGH_VALUE = 1.0
MEDIUM_VALUE = 0.6
LOW_VALUE = 0.2
NEUTRAL_VALUE = 0.4


class RuleBase:
    """
    규칙 베이스. 로드 후 불변.
    """

    def __init__(self) -> None:
        self.version: str = ""
        self._triggers: dict[str, TriggerDef] = {}
        self._effects: dict[str, EffectDef] = {}
        self._patterns: dict[str, SynergyPattern] = {}
        self._conflicts: dict[str, ConflictRule] = {}
        self._activity_aliases: dict[str, str] = {}
        self._activity_relevance: dict[str, dict[str, tuple[str, ...]]] = {}
        self.trigger_keywords: dict[str, tuple[str, ...]] = {}
        self.effect_keywords: dict[str, tuple[str, ...]] = {}

    # === 로드 ===

    def load_from_json(self, path: str | Path) -> int:
        """rule_base.json 로드. 반환: 로드된 규칙 총수."""
        path = Path(path)
        try:
            with path.open("r", encoding="utf-8") as f:
                raw = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"Cannot read rule base {path}: {e}") from e
        return self.load_from_dict(raw)

    def load_from_dict(self, raw: dict) -> int:
        self.version = str(raw.get("version", ""))

        for r in raw.get("triggers", []):
            try:
                trig = TriggerDef(
                    trigger_id=r["id"],
                    name=r.get("name", r["id"]),
                    reliability=float(r["reliability"]),
                    frequency=r.get("frequency", "medium"),
                    contexts=tuple(r.get("contexts", [])),
                )
                self._triggers[trig.trigger_id] = trig
            except (KeyError, ValueError) as e:
                logger.warning("Failed to load trigger %s: %s", r.get("id", "?"), e)

        for r in raw.get("effects", []):
            try:
                cap = r.get("cap")
                eff = EffectDef(
                    effect_id=r["id"],
                    name=r.get("name", r["id"]),
                    impact=float(r["impact"]),
                    stacking=StackingMode(r.get("stacking", "additive")),
                    cap=float(cap) if cap is not None else None,
                    tie_break=r.get("tie_break", "magnitude"),
                    category=r.get("category", ""),
                )
                self._effects[eff.effect_id] = eff
            except (KeyError, ValueError) as e:
                logger.warning("Failed to load effect %s: %s", r.get("id", "?"), e)

        for r in raw.get("synergy_patterns", []):
            try:
                pattern = SynergyPattern(
                    pattern_id=r["id"],
                    triggers=tuple(r["triggers"]),
                    effects=tuple(r["effects"]),
                    strength=float(r["strength"]),
                    sustainability=float(r.get("sustainability", r["strength"])),
                    description=r.get("description", ""),
                )
                if not pattern.triggers or not pattern.effects:
                    raise ValueError("pattern needs triggers and effects")
                self._patterns[pattern.pattern_id] = pattern
            except (KeyError, ValueError) as e:
                logger.warning("Failed to load synergy pattern %s: %s", r.get("id", "?"), e)

        for r in raw.get("conflict_rules", []):
            try:
                cap = r.get("cap")
                rule = ConflictRule(
                    rule_id=r["id"],
                    kind=EntryKind(r.get("kind", "trigger")),
                    side_a=r["a"],
                    side_b=r["b"],
                    resolution=Resolution(r["resolution"]),
                    priority=tuple(r.get("priority", [])),
                    cap=float(cap) if cap is not None else None,
                    description=r.get("description", ""),
                )
                self._conflicts[rule.rule_id] = rule
            except (KeyError, ValueError) as e:
                logger.warning("Failed to load conflict rule %s: %s", r.get("id", "?"), e)

        self._activity_aliases = dict(raw.get("activity_aliases", {}))
        self._activity_relevance = {
            activity: {tier: tuple(names) for tier, names in tiers.items()}
            for activity, tiers in raw.get("activity_relevance", {}).items()
        }
        self.trigger_keywords = {k: tuple(v) for k, v in raw.get("trigger_keywords", {}).items()}
        self.effect_keywords = {k: tuple(v) for k, v in raw.get("effect_keywords", {}).items()}

        count = len(self._triggers) + len(self._effects) + len(self._patterns) + len(self._conflicts)
        logger.info(
            "Loaded rule base v%s: %d triggers, %d effects, %d patterns, %d conflict rules",
            self.version,
            len(self._triggers),
            len(self._effects),
            len(self._patterns),
            len(self._conflicts),
        )
        return count

    # === 조회 ===

    def get_trigger(self, trigger_id: str) -> Optional[TriggerDef]:
        return self._triggers.get(trigger_id)

    def get_effect(self, effect_id: str) -> Optional[EffectDef]:
        return self._effects.get(effect_id)

    def get_pattern(self, pattern_id: str) -> Optional[SynergyPattern]:
        return self._patterns.get(pattern_id)

    def patterns(self) -> list[SynergyPattern]:
        return list(self._patterns.values())

    def conflict_rules(self) -> list[ConflictRule]:
        return [self._conflicts[k] for k in sorted(self._conflicts)]

    # === 패턴 매칭 ===

    def find_matching_patterns(
        self, triggers: Iterable[str], effects: Iterable[str]
    ) -> list[PatternMatch]:
        """커버리지 > 0.4 패턴. overall_match 내림차순, 동률은 id."""
        trigger_set = set(triggers)
        effect_set = set(effects)
        matches: list[PatternMatch] = []
        for pattern in self._patterns.values():
            t_cov = sum(1 for t in pattern.triggers if t in trigger_set) / len(pattern.triggers)
            e_cov = sum(1 for e in pattern.effects if e in effect_set) / len(pattern.effects)
            overall = (t_cov + e_cov) / 2
            if overall > MIN_PATTERN_MATCH:
                matches.append(
                    PatternMatch(
                        pattern_id=pattern.pattern_id,
                        trigger_coverage=t_cov,
                        effect_coverage=e_cov,
                        overall_match=overall,
                        strength=pattern.strength,
                        sustainability=pattern.sustainability,
                        description=pattern.description,
                    )
                )
        matches.sort(key=lambda m: (-m.overall_match, m.pattern_id))
        return matches

    def missing_components(
        self, pattern_id: str, triggers: Iterable[str], effects: Iterable[str]
    ) -> Optional[dict[str, list[str]]]:
        """패턴 완성에 부족한 트리거/효과. 모르는 패턴이면 None."""
        pattern = self._patterns.get(pattern_id)
        if pattern is None:
            return None
        trigger_set, effect_set = set(triggers), set(effects)
        return {
            "triggers": [t for t in pattern.triggers if t not in trigger_set],
            "effects": [e for e in pattern.effects if e not in effect_set],
        }

    # === 스태킹 ===

    def stack_effects(self, instances: Iterable[ActiveEntry]) -> dict[str, StackResult]:
        """효과 id별 스태킹 결과.

        multiplicative 계열 값은 비율(0.2 = +20%)로 반환.
        """
        grouped: dict[str, list[ActiveEntry]] = defaultdict(list)
        for inst in instances:
            grouped[inst.name].append(inst)

        results: dict[str, StackResult] = {}
        for effect_id in sorted(grouped):
            members = sorted(grouped[effect_id], key=lambda e: (e.entry_id, e.magnitude))
            effect = self._effects.get(effect_id)
            if effect is None:
                logger.debug("Unknown effect %s stacked additively", effect_id)
                effect = EffectDef(effect_id=effect_id, name=effect_id, impact=0.5)
            results[effect_id] = _fold(effect, members)
        return results

    # === 충돌 해소 ===

    def resolve_conflicts(self, active: Iterable[ActiveEntry]) -> list[ActiveEntry]:
        """충돌 규칙 적용 후 살아남은 항목 (name, id 순)."""
        survivors, _ = self.resolve_conflicts_detailed(active)
        return survivors

    def resolve_conflicts_detailed(
        self, active: Iterable[ActiveEntry]
    ) -> tuple[list[ActiveEntry], list[AppliedResolution]]:
        """resolve_conflicts + 발동한 규칙 기록."""
        entries = sorted(active, key=lambda e: (e.name, e.entry_id))
        applied: list[AppliedResolution] = []

        for rule in self.conflict_rules():
            side_a = [e for e in entries if e.name == rule.side_a and e.kind == rule.kind]
            side_b = [e for e in entries if e.name == rule.side_b and e.kind == rule.kind]
            if not side_a or not side_b:
                continue

            if rule.resolution == Resolution.ADDITIVE_CAP:
                merged = _merge_capped(rule, side_a, side_b)
                dropped = {e.entry_id for e in side_a + side_b}
                entries = [e for e in entries if e.entry_id not in dropped] + [merged]
                entries.sort(key=lambda e: (e.name, e.entry_id))
                applied.append(
                    AppliedResolution(
                        rule_id=rule.rule_id,
                        resolution=rule.resolution,
                        winner=rule.side_a,
                        loser=rule.side_b,
                        dropped_entries=tuple(sorted(e.entry_id for e in side_b)),
                    )
                )
                continue

            a_wins = _side_a_wins(rule, side_a, side_b)
            losers = side_b if a_wins else side_a
            dropped = {e.entry_id for e in losers}
            entries = [e for e in entries if e.entry_id not in dropped]
            applied.append(
                AppliedResolution(
                    rule_id=rule.rule_id,
                    resolution=rule.resolution,
                    winner=rule.side_a if a_wins else rule.side_b,
                    loser=rule.side_b if a_wins else rule.side_a,
                    dropped_entries=tuple(sorted(dropped)),
                )
            )
            logger.debug("Conflict %s resolved: %s kept", rule.rule_id, applied[-1].winner)

        return entries, applied

    # === 활동 관련도 ===

    def canonical_activity(self, activity: str) -> str:
        return self._activity_aliases.get(activity, DEFAULT_RELEVANCE_ACTIVITY)

    def activity_relevance(
        self, activity: str, triggers: Iterable[str], effects: Iterable[str] = ()
    ) -> ActivityRelevance:
        """트리거/효과의 활동 관련도 평균 (0~1)."""
        key = self.canonical_activity(activity)
        table = self._activity_relevance.get(key)
        names = list(triggers) + list(effects)
        if table is None:
            return ActivityRelevance(activity=key, score=0.5)

        high, medium, low = [], [], []
        total = 0.0
        for name in names:
            if name in table.get("high_value", ()):
                total += HIGH_VALUE
                high.append(name)
            elif name in table.get("medium_value", ()):
                total += MEDIUM_VALUE
                medium.append(name)
            elif name in table.get("low_value", ()):
                total += LOW_VALUE
                low.append(name)
            else:
                total += NEUTRAL_VALUE

        return ActivityRelevance(
            activity=key,
            score=total / len(names) if names else 0.0,
            high_value=tuple(high),
            medium_value=tuple(medium),
            low_value=tuple(low),
        )

    def trigger_reliability(self, triggers: Iterable[str], activity: str) -> float:
        """활동 관련도로 가중한 트리거 신뢰도 평균."""
        weighted = 0.0
        total_weight = 0.0
        for trigger_id in sorted(set(triggers)):
            trig = self._triggers.get(trigger_id)
            if trig is None:
                continue
            weight = self.activity_relevance(activity, [trigger_id]).score
            weighted += trig.reliability * weight
            total_weight += weight
        return weighted / total_weight if total_weight else 0.0


def _fold(effect: EffectDef, members: list[ActiveEntry]) -> StackResult:
    values = [m.magnitude for m in members]
    kept = None

    if effect.stacking == StackingMode.OVERWRITE:
        if effect.tie_break == "duration":
            best = max(members, key=lambda m: (m.duration, m.magnitude, _neg_id(m)))
        else:
            best = max(members, key=lambda m: (m.magnitude, m.duration, _neg_id(m)))
        raw = best.magnitude
        kept = best.entry_id
    elif effect.stacking in (StackingMode.MULTIPLICATIVE, StackingMode.MULTIPLICATIVE_CAPPED):
        raw = math.prod(1 + v / 100 for v in values) - 1
    else:
        raw = sum(values)

    capped = effect.cap is not None and raw >= effect.cap
    value = min(raw, effect.cap) if effect.cap is not None else raw
    return StackResult(
        effect_id=effect.effect_id,
        value=value,
        capped_by_limit=capped,
        stacking=effect.stacking,
        count=len(members),
        kept_entry=kept,
    )


def _neg_id(entry: ActiveEntry) -> tuple:
    # max() 동률 시 id가 작은 쪽
    return tuple(-ord(c) for c in entry.entry_id)


def _side_a_wins(rule: ConflictRule, side_a: list[ActiveEntry], side_b: list[ActiveEntry]) -> bool:
    """동률이면 a."""
    if rule.resolution == Resolution.HIGHEST_MAGNITUDE:
        return max(e.magnitude for e in side_a) >= max(e.magnitude for e in side_b)
    if rule.resolution == Resolution.LONGEST_DURATION:
        return max(e.duration for e in side_a) >= max(e.duration for e in side_b)
    # priority_order: 목록에 없으면 최하위
    order = {name: i for i, name in enumerate(rule.priority)}
    rank_a = order.get(rule.side_a, len(order))
    rank_b = order.get(rule.side_b, len(order))
    return rank_a <= rank_b


def _merge_capped(
    rule: ConflictRule, side_a: list[ActiveEntry], side_b: list[ActiveEntry]
) -> ActiveEntry:
    """additive_cap: a 합계 − b 합계, [0, cap] 클램프 → a 측 단일 항목."""
    net = sum(e.magnitude for e in side_a) - sum(e.magnitude for e in side_b)
    if rule.cap is not None:
        net = min(net, rule.cap)
    first = min(side_a, key=lambda e: e.entry_id)
    return ActiveEntry(
        entry_id=first.entry_id,
        name=rule.side_a,
        kind=rule.kind,
        magnitude=max(0.0, net),
        duration=max(e.duration for e in side_a),
        source=first.source,
    )
