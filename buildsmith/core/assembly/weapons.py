"""무기 후보 점수

base + (활동 친화도 − 50) / 2 + 요청 타입 + 플레이스타일 + 엑조틱 + 원소 일치, 0~100 클램프.
"""

from __future__ import annotations

from buildsmith.core.catalog.models import ItemDefinition
from buildsmith.core.intent.models import BuildIntent
from buildsmith.core.tables import ScoringTables

from .models import CandidateScore


def score_weapon(item: ItemDefinition, intent: BuildIntent, tables: ScoringTables) -> CandidateScore:
    weights = tables.weapon_score
    reasons: list[str] = []

    affinity = tables.affinity(intent.activity, item.category)
    score = weights["base"] + (affinity - 50) / 2
    reasons.append(f"{item.category or 'weapon'} affinity {affinity:.0f} for {intent.activity}")

    if item.category in intent.weapon_types:
        score += weights["requested_type"]
        reasons.append("requested weapon type")
    if item.category in tables.playstyle_weapons.get(intent.playstyle, ()):
        score += weights["playstyle_fit"]
        reasons.append(f"fits {intent.playstyle} playstyle")
    if item.is_exotic:
        score += weights["exotic"]
        reasons.append("exotic")
    if intent.element not in ("any", "") and item.damage_element.value == intent.element:
        score += weights["element_match"]
        reasons.append(f"{intent.element} element")

    return CandidateScore(item=item, score=max(0.0, min(100.0, score)), reasons=tuple(reasons))
