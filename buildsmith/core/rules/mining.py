"""아이템 설명 → 트리거/효과 추출

규칙 베이스의 키워드 테이블로 매칭.
"""

from __future__ import annotations

import re
from typing import Iterable

from buildsmith.core.catalog.models import ItemDefinition

from .models import ActiveEntry, EntryKind, MinedComponents
from .rulebook import RuleBase

# 설명에 수치가 없을 때 사용하는 효과 기본 크기
DEFAULT_EFFECT_MAGNITUDE = 10.0
PERCENT_PATTERN = re.compile(r"(\d+(?:\.\d+)?)\s*%")
DURATION_PATTERN = re.compile(r"(\d+(?:\.\d+)?)\s*(?:s|sec|seconds)\b", re.IGNORECASE)


def _keyword_hits(text: str, table: dict[str, tuple[str, ...]]) -> tuple[str, ...]:
    hits = []
    for name in sorted(table):
        for keyword in table[name]:
            if re.search(r"\b" + re.escape(keyword.lower()), text):
                hits.append(name)
                break
    return tuple(hits)


def mine_text(rule_base: RuleBase, item_id: str, text: str) -> MinedComponents:
    """설명 텍스트에서 트리거/효과 키워드 추출."""
    lowered = text.lower()
    return MinedComponents(
        item_id=item_id,
        triggers=_keyword_hits(lowered, rule_base.trigger_keywords),
        effects=_keyword_hits(lowered, rule_base.effect_keywords),
    )


def mine_item(rule_base: RuleBase, item: ItemDefinition) -> MinedComponents:
    return mine_text(rule_base, item.item_id, item.description)


def active_entries(
    rule_base: RuleBase, items: Iterable[ItemDefinition]
) -> list[ActiveEntry]:
    """장착 아이템 → 활성 트리거/효과 항목.

    효과 크기는 설명의 첫 백분율, 지속시간은 첫 초 단위 수치.
    트리거 크기는 규칙 베이스의 신뢰도.
    """
    entries: list[ActiveEntry] = []
    for item in items:
        mined = mine_item(rule_base, item)
        pct = PERCENT_PATTERN.search(item.description)
        dur = DURATION_PATTERN.search(item.description)
        magnitude = float(pct.group(1)) if pct else DEFAULT_EFFECT_MAGNITUDE
        duration = float(dur.group(1)) if dur else 0.0

        for trigger_id in mined.triggers:
            trig = rule_base.get_trigger(trigger_id)
            entries.append(
                ActiveEntry(
                    entry_id=f"{item.item_id}:{trigger_id}",
                    name=trigger_id,
                    kind=EntryKind.TRIGGER,
                    magnitude=trig.reliability if trig else 0.5,
                    source=item.item_id,
                )
            )
        for effect_id in mined.effects:
            entries.append(
                ActiveEntry(
                    entry_id=f"{item.item_id}:{effect_id}",
                    name=effect_id,
                    kind=EntryKind.EFFECT,
                    magnitude=magnitude,
                    duration=duration,
                    source=item.item_id,
                )
            )
    return entries
