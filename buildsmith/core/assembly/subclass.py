"""서브클래스 선택: 원소 점수 + 카테고리별 구성요소"""

from __future__ import annotations

import logging

from buildsmith.core.catalog.index import CatalogIndex
from buildsmith.core.catalog.models import SUBCLASS_ELEMENTS, ItemDefinition, ItemKind
from buildsmith.core.intent.models import BuildIntent
from buildsmith.core.tables import ScoringTables

from .models import SubclassConfig

logger = logging.getLogger(__name__)


def _keyword_hits(item: ItemDefinition, keywords: list[str]) -> int:
    text = item.description.lower()
    return sum(1 for k in keywords if k in text)


def choose_subclass(
    catalog: CatalogIndex, intent: BuildIntent, tables: ScoringTables
) -> tuple[SubclassConfig, list[ItemDefinition]]:
    """원소 선택 후 구성요소 선정. 반환: (설정, 구성요소 아이템)."""
    cfg = tables.subclass
    keywords = [k.lower() for k in cfg.get("playstyle_keywords", {}).get(intent.playstyle, [])]
    element_match = float(cfg.get("element_match", 100))
    hit_score = float(cfg.get("keyword_hit", 5))
    canonical = tables.canonical_element

    components = [
        c
        for c in catalog.by_kind(ItemKind.SUBCLASS_COMPONENT)
        if c.fits_class(intent.target_class)
    ]

    # 원소 점수
    scores: dict[str, float] = {}
    for element in SUBCLASS_ELEMENTS:
        score = element_match if intent.element == element.value else 0.0
        score += hit_score * sum(
            _keyword_hits(c, keywords) for c in components if c.damage_element == element
        )
        scores[element.value] = score

    order = [e.value for e in SUBCLASS_ELEMENTS]
    # 동점: 정식 원소(solar) 우선, 그다음 선언 순서
    element = max(order, key=lambda e: (scores[e], e == canonical, -order.index(e)))
    logger.debug("Subclass element scores: %s → %s", scores, element)

    # 카테고리별 구성요소
    limits: dict[str, int] = cfg.get("component_limits", {})
    by_category: dict[str, list[ItemDefinition]] = {}
    for comp in components:
        if comp.damage_element.value == element:
            by_category.setdefault(comp.category, []).append(comp)

    chosen: dict[str, tuple[str, ...]] = {}
    chosen_items: list[ItemDefinition] = []
    for category in sorted(by_category):
        ranked = sorted(
            by_category[category],
            key=lambda c: (
                -_keyword_hits(c, keywords),
                -c.rarity.value,
                catalog.declaration_order(c.item_id),
            ),
        )
        picked = ranked[: int(limits.get(category, 1))]
        chosen[category] = tuple(c.item_id for c in picked)
        chosen_items.extend(picked)

    names = cfg.get("names", {}).get(element, {})
    name = names.get(intent.target_class.value) or names.get("any") or element.title()

    return SubclassConfig(element=element, name=name, components=chosen), chosen_items
