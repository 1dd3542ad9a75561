"""모드 선택: scoring_tables.json의 mod_rules 평가, 카테고리별 상한"""

from __future__ import annotations

from buildsmith.core.archetype.models import Archetype
from buildsmith.core.catalog.index import CatalogIndex
from buildsmith.core.catalog.models import ItemDefinition, ItemKind
from buildsmith.core.intent.models import BuildIntent
from buildsmith.core.stats.models import StatChannel
from buildsmith.core.tables import ModRule, ScoringTables

from .models import ChosenMod


def _boost_targets(rule: ModRule, intent: BuildIntent, archetype: Archetype) -> set[StatChannel]:
    if rule.boosts == "priority_stats":
        return set(intent.priority_stats)
    if rule.boosts == "archetype_primary":
        return {archetype.primary}
    if rule.boosts == "archetype_secondary":
        return {archetype.secondary}
    return set()


def _rule_matches(rule: ModRule, mod: ItemDefinition, intent: BuildIntent, archetype: Archetype) -> bool:
    if rule.activities and intent.activity not in rule.activities:
        return False
    if rule.playstyles and intent.playstyle not in rule.playstyles:
        return False
    if rule.boosts:
        targets = _boost_targets(rule, intent, archetype)
        if not any(v > 0 and ch in targets for ch, v in mod.stat_contributions.items()):
            return False
    if rule.keywords:
        text = f"{mod.name} {mod.description}".lower()
        if not any(k in text for k in rule.keywords):
            return False
    return bool(rule.boosts or rule.keywords)


def score_mod(
    mod: ItemDefinition, intent: BuildIntent, archetype: Archetype, tables: ScoringTables
) -> tuple[float, tuple[str, ...]]:
    score = 0.0
    reasons: list[str] = []
    for rule in tables.mod_rules:
        if _rule_matches(rule, mod, intent, archetype):
            score += rule.score
            reasons.append(rule.rule_id)
    return score, tuple(reasons)


def choose_mods(
    catalog: CatalogIndex,
    intent: BuildIntent,
    archetype: Archetype,
    tables: ScoringTables,
) -> list[ChosenMod]:
    """카테고리별 상위 N개 (점수 > 0). 동점은 희귀도, 선언 순서."""
    scored: dict[str, list[ChosenMod]] = {cat: [] for cat in tables.mod_caps}
    for mod in catalog.by_kind(ItemKind.MOD):
        if mod.category not in scored or not mod.fits_class(intent.target_class):
            continue
        score, reasons = score_mod(mod, intent, archetype, tables)
        if score > 0:
            scored[mod.category].append(
                ChosenMod(item=mod, category=mod.category, score=score, reasons=reasons)
            )

    chosen: list[ChosenMod] = []
    for category, cap in tables.mod_caps.items():
        ranked = sorted(
            scored[category],
            key=lambda m: (-m.score, -m.item.rarity.value, catalog.declaration_order(m.item.item_id)),
        )
        chosen.extend(ranked[:cap])
    return chosen
