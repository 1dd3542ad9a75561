"""빌드 시너지/충돌 탐지: detection_rules.json 선언 규칙 평가

각 규칙은 "check" 타입 하나를 가지며, 같은 타입의 규칙은 같은 평가 함수를 공유한다.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional

from buildsmith.core.catalog.models import SUBCLASS_ELEMENTS, ItemDefinition
from buildsmith.core.errors import ConfigurationError
from buildsmith.core.stats.models import STAT_MAX, StatChannel, StatTotals

from .mining import active_entries, mine_item
from .models import (
    Conflict,
    DetectionKind,
    DetectionResult,
    Strength,
    Synergy,
    strength_from_ratio,
)
from .rulebook import RuleBase

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BuildContext:
    """탐지 입력: 조립된 빌드의 스냅샷"""

    totals: StatTotals
    raw_totals: dict[StatChannel, int]
    focus_stats: tuple[StatChannel, ...]
    element: str  # 서브클래스 원소
    activity: str
    weapons: tuple[ItemDefinition, ...] = ()
    items: tuple[ItemDefinition, ...] = ()  # 장착 전체


@dataclass(frozen=True)
class DetectionRule:
    rule_id: str
    kind: DetectionKind
    check: str
    strength: Optional[Strength] = None
    description: str = ""
    params: dict = field(default_factory=dict)


# check → (rule, context, rule_base) → 발견 목록 (id, strength, description, involved)
Finding = tuple[str, Strength, str, tuple[str, ...]]
CheckFn = Callable[[DetectionRule, BuildContext, RuleBase], list[Finding]]


def _channels(rule: DetectionRule) -> list[StatChannel]:
    return [StatChannel(c) for c in rule.params.get("channels", [])]


def _check_stats_at_least(rule: DetectionRule, ctx: BuildContext, _rb: RuleBase) -> list[Finding]:
    channels = _channels(rule)
    threshold = int(rule.params.get("threshold", 50))
    focus_mode = rule.params.get("focus", "none")
    if focus_mode == "all" and not all(ch in ctx.focus_stats for ch in channels):
        return []
    if focus_mode == "any" and not any(ch in ctx.focus_stats for ch in channels):
        return []
    if all(ctx.totals.get(ch) >= threshold for ch in channels):
        return [(rule.rule_id, rule.strength, rule.description, tuple(ch.value for ch in channels))]
    return []


def _check_element_stat(rule: DetectionRule, ctx: BuildContext, _rb: RuleBase) -> list[Finding]:
    if ctx.element != rule.params.get("element"):
        return []
    threshold = int(rule.params.get("threshold", 50))
    hit = [ch.value for ch in _channels(rule) if ctx.totals.get(ch) >= threshold]
    if hit:
        return [(rule.rule_id, rule.strength, rule.description, (ctx.element, *hit))]
    return []


def _check_activity_stats(rule: DetectionRule, ctx: BuildContext, _rb: RuleBase) -> list[Finding]:
    if ctx.activity not in rule.params.get("activities", []):
        return []
    threshold = int(rule.params.get("threshold", 50))
    channels = _channels(rule)
    if all(ctx.totals.get(ch) >= threshold for ch in channels):
        return [(rule.rule_id, rule.strength, rule.description, tuple(ch.value for ch in channels))]
    return []


def _check_pattern_match(rule: DetectionRule, ctx: BuildContext, rb: RuleBase) -> list[Finding]:
    mined = [mine_item(rb, item) for item in ctx.items]
    triggers = {t for m in mined for t in m.triggers}
    effects = {e for m in mined for e in m.effects}
    findings: list[Finding] = []
    for match in rb.find_matching_patterns(triggers, effects):
        pattern = rb.get_pattern(match.pattern_id)
        names = set(pattern.triggers) | set(pattern.effects)
        involved = tuple(
            sorted(m.item_id for m in mined if names & (set(m.triggers) | set(m.effects)))
        )
        findings.append(
            (
                match.pattern_id,
                strength_from_ratio(match.strength * match.overall_match),
                match.description or rule.description,
                involved,
            )
        )
    return findings


def _check_stat_overflow(rule: DetectionRule, ctx: BuildContext, _rb: RuleBase) -> list[Finding]:
    wasted = {ch: v - STAT_MAX for ch, v in ctx.raw_totals.items() if v > STAT_MAX}
    if not wasted:
        return []
    detail = ", ".join(f"{ch.value} +{pts}" for ch, pts in sorted(wasted.items(), key=lambda kv: kv[0].value))
    return [
        (
            rule.rule_id,
            rule.strength,
            f"{rule.description} ({detail})",
            tuple(sorted(ch.value for ch in wasted)),
        )
    ]


def _check_element_mismatch(rule: DetectionRule, ctx: BuildContext, _rb: RuleBase) -> list[Finding]:
    elemental = [w for w in ctx.weapons if w.damage_element in SUBCLASS_ELEMENTS]
    if not elemental or ctx.element in ("any", ""):
        return []
    if any(w.damage_element.value == ctx.element for w in elemental):
        return []
    return [(rule.rule_id, rule.strength, rule.description, tuple(sorted(w.item_id for w in elemental)))]


def _check_weapon_categories(rule: DetectionRule, ctx: BuildContext, _rb: RuleBase) -> list[Finding]:
    if ctx.activity not in rule.params.get("activities", []):
        return []
    bad = [w for w in ctx.weapons if w.category in rule.params.get("categories", [])]
    if not bad:
        return []
    return [(rule.rule_id, rule.strength, rule.description, tuple(sorted(w.item_id for w in bad)))]


def _check_rule_conflicts(rule: DetectionRule, ctx: BuildContext, rb: RuleBase) -> list[Finding]:
    entries = active_entries(rb, ctx.items)
    by_id = {e.entry_id: e for e in entries}
    _, applied = rb.resolve_conflicts_detailed(entries)
    findings: list[Finding] = []
    for res in applied:
        involved = sorted({by_id[e].source for e in res.dropped_entries if e in by_id})
        findings.append(
            (
                res.rule_id,
                rule.strength,
                f"{rule.description}: {res.winner} over {res.loser}",
                tuple(involved),
            )
        )
    return findings


CHECKS: dict[str, CheckFn] = {
    "stats_at_least": _check_stats_at_least,
    "element_stat": _check_element_stat,
    "activity_stats": _check_activity_stats,
    "pattern_match": _check_pattern_match,
    "stat_overflow": _check_stat_overflow,
    "element_mismatch": _check_element_mismatch,
    "weapon_categories": _check_weapon_categories,
    "rule_conflicts": _check_rule_conflicts,
}

_RESERVED = {"id", "kind", "check", "strength", "description"}


class DetectionRules:
    """탐지 규칙 집합. 로드 후 불변."""

    def __init__(self) -> None:
        self._synergy_rules: list[DetectionRule] = []
        self._conflict_rules: list[DetectionRule] = []

    def load_from_json(self, path: str | Path) -> int:
        """detection_rules.json 로드. 반환: 규칙 수."""
        path = Path(path)
        try:
            with path.open("r", encoding="utf-8") as f:
                raw = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"Cannot read detection rules {path}: {e}") from e
        return self.load_from_dict(raw)

    def load_from_dict(self, raw: dict) -> int:
        self._synergy_rules = self._parse(raw.get("synergies", []))
        self._conflict_rules = self._parse(raw.get("conflicts", []))
        count = len(self._synergy_rules) + len(self._conflict_rules)
        logger.info("Loaded %d detection rules", count)
        return count

    @staticmethod
    def _parse(records: list[dict]) -> list[DetectionRule]:
        rules = []
        for r in records:
            try:
                if r["check"] not in CHECKS:
                    raise ValueError(f"unknown check {r['check']!r}")
                strength = r.get("strength")
                rules.append(
                    DetectionRule(
                        rule_id=r["id"],
                        kind=DetectionKind(r["kind"]),
                        check=r["check"],
                        strength=Strength(strength) if strength else None,
                        description=r.get("description", ""),
                        params={k: v for k, v in r.items() if k not in _RESERVED},
                    )
                )
            except (KeyError, ValueError) as e:
                logger.warning("Failed to load detection rule %s: %s", r.get("id", "?"), e)
        return rules

    def detect(self, context: BuildContext, rule_base: RuleBase) -> DetectionResult:
        """시너지/충돌 목록. 각각 (kind, id) 순."""
        synergies = [
            Synergy(
                synergy_id=fid,
                kind=rule.kind,
                strength=strength,
                description=desc,
                involved_ids=involved,
            )
            for rule in self._synergy_rules
            for fid, strength, desc, involved in CHECKS[rule.check](rule, context, rule_base)
        ]
        conflicts = [
            Conflict(
                conflict_id=fid,
                kind=rule.kind,
                strength=strength,
                description=desc,
                involved_ids=involved,
            )
            for rule in self._conflict_rules
            for fid, strength, desc, involved in CHECKS[rule.check](rule, context, rule_base)
        ]
        synergies.sort(key=lambda s: (s.kind.value, s.synergy_id))
        conflicts.sort(key=lambda c: (c.kind.value, c.conflict_id))
        return DetectionResult(synergies=synergies, conflicts=conflicts)
