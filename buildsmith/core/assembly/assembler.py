"""빌드 조립기

슬롯 카테고리별 1패스 (서브클래스 → 무기 → 방어구 → 모드):
1. 잠금 아이템을 먼저 배치 (점수 면제, reasons=("locked",))
2. 남은 슬롯은 후보 점수 최댓값. 동점은 희귀도 높은 쪽, 그다음 선언 순서
3. 후보가 없으면 슬롯은 None + no_candidate 진단 (오류 아님)
4. 그룹(무기/방어구)당 엑조틱 최대 1개. 여러 슬롯의 최선이 엑조틱이면
   차선 대비 이득이 가장 큰 슬롯만 엑조틱 유지

순수 변환: 카탈로그와 테이블은 읽기 전용.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from buildsmith.core.archetype.models import Archetype
from buildsmith.core.archetype.selector import ArchetypeSelector
from buildsmith.core.catalog.index import CatalogIndex
from buildsmith.core.catalog.models import (
    ARMOR_SLOTS,
    WEAPON_SLOTS,
    ItemDefinition,
    ItemKind,
    Slot,
)
from buildsmith.core.intent.models import BuildIntent
from buildsmith.core.rules.detection import BuildContext, DetectionRules
from buildsmith.core.rules.rulebook import RuleBase
from buildsmith.core.stats.calculations import aggregate_raw, piece_bonus
from buildsmith.core.stats.models import STAT_MAX, StatChannel, StatTotals
from buildsmith.core.tables import ScoringTables

from .models import (
    Build,
    CandidateScore,
    ChosenMod,
    Diagnostic,
    DiagnosticKind,
    SlotAssignment,
)
from .mods import choose_mods
from .subclass import choose_subclass
from .weapons import score_weapon

logger = logging.getLogger(__name__)

AMBIGUITY_CONFIDENCE = 0.4
MAX_LISTED_CANDIDATES = 3

Scorer = Callable[[ItemDefinition], CandidateScore]


class BuildAssembler:
    """의도 + 아키타입 → Build"""

    def __init__(
        self,
        catalog: CatalogIndex,
        selector: ArchetypeSelector,
        rule_base: RuleBase,
        detection: DetectionRules,
        tables: ScoringTables,
    ) -> None:
        self._catalog = catalog
        self._selector = selector
        self._rule_base = rule_base
        self._detection = detection
        self._tables = tables

    def assemble(self, intent: BuildIntent, archetype: Archetype) -> Build:
        diagnostics: list[Diagnostic] = []
        if intent.confidence < AMBIGUITY_CONFIDENCE:
            diagnostics.append(
                Diagnostic(
                    kind=DiagnosticKind.PARSE_AMBIGUITY,
                    message=(
                        f"Request is ambiguous (confidence {intent.confidence:.2f}); "
                        "defaults were applied"
                    ),
                )
            )
        allowed = set(intent.inventory_item_ids) if intent.use_inventory_only else None

        # 1. 서브클래스
        subclass, subclass_items = choose_subclass(self._catalog, intent, self._tables)

        # 2. 잠금 → 무기 → 방어구
        locked = self._resolve_locked(intent, diagnostics)
        weapons = self._fill_group(
            WEAPON_SLOTS,
            ItemKind.WEAPON,
            locked,
            intent,
            allowed,
            lambda item: score_weapon(item, intent, self._tables),
            diagnostics,
        )
        armor = self._fill_group(
            ARMOR_SLOTS,
            ItemKind.ARMOR,
            locked,
            intent,
            allowed,
            lambda item: self._score_armor(item, intent, archetype),
            diagnostics,
        )

        # 3. 모드
        mods = choose_mods(self._catalog, intent, archetype, self._tables)

        # 4. 스탯 (방어구 + 모드 + 서브클래스 구성요소)
        stat_items = [a.item for a in armor if a.item is not None]
        stat_items += [m.item for m in mods] + subclass_items
        raw = aggregate_raw(stat_items)
        totals = StatTotals.from_mapping(raw)
        diagnostics.extend(self._check_constraints(intent, allowed, locked, mods, subclass_items))

        # 5. 시너지/충돌
        equipped_weapons = tuple(a.item for a in weapons if a.item is not None)
        context = BuildContext(
            totals=totals,
            raw_totals=raw,
            focus_stats=intent.priority_stats or archetype.stats,
            element=subclass.element,
            activity=intent.activity,
            weapons=equipped_weapons,
            items=equipped_weapons + tuple(stat_items),
        )
        detected = self._detection.detect(context, self._rule_base)

        logger.debug(
            "Assembled %s build: %d/%d slots filled, %d diagnostics",
            archetype.archetype_id,
            sum(1 for a in weapons + armor if a.item is not None),
            len(weapons) + len(armor),
            len(diagnostics),
        )
        return Build(
            name=f"{archetype.name} {subclass.name}",
            description=(
                f"{intent.playstyle.replace('_', ' ')} {intent.activity} build "
                f"prioritizing {archetype.primary.value} and {archetype.secondary.value}"
            ),
            activity=intent.activity,
            playstyle=intent.playstyle,
            subclass=subclass,
            weapons=weapons,
            armor=armor,
            mods=tuple(mods),
            archetype_id=archetype.archetype_id,
            stats=totals,
            raw_stats=raw,
            synergies=tuple(detected.synergies),
            conflicts=tuple(detected.conflicts),
            diagnostics=tuple(diagnostics),
            subclass_items=tuple(subclass_items),
        )

    # === 잠금 아이템 ===

    def _resolve_locked(
        self, intent: BuildIntent, diagnostics: list[Diagnostic]
    ) -> dict[Slot, ItemDefinition]:
        locked: dict[Slot, ItemDefinition] = {}
        exotic_groups: set[ItemKind] = set()

        def reject(item_id: str, reason: str, slot: Optional[Slot] = None) -> None:
            diagnostics.append(
                Diagnostic(
                    kind=DiagnosticKind.LOCKED_ITEM_REJECTED,
                    message=f"Locked item {item_id} rejected: {reason}",
                    slot=slot.value if slot else None,
                )
            )

        for item_id in intent.locked_items:
            item = self._catalog.get(item_id)
            if item is None:
                reject(item_id, "not in catalog")
            elif item.kind not in (ItemKind.WEAPON, ItemKind.ARMOR) or item.slot == Slot.NONE:
                reject(item_id, "not a weapon or armor piece")
            elif not item.fits_class(intent.target_class):
                reject(item_id, f"{item.class_affinity.value} only", item.slot)
            elif item.slot in locked:
                reject(item_id, f"slot already holds {locked[item.slot].name}", item.slot)
            elif item.is_exotic and item.kind in exotic_groups:
                reject(item_id, f"another exotic {item.kind.value} is already locked", item.slot)
            else:
                locked[item.slot] = item
                if item.is_exotic:
                    exotic_groups.add(item.kind)
        return locked

    # === 슬롯 그룹 채우기 ===

    def _rank(self, scored: list[CandidateScore]) -> list[CandidateScore]:
        return sorted(
            scored,
            key=lambda cs: (
                -cs.score,
                -cs.item.rarity.value,
                self._catalog.declaration_order(cs.item.item_id),
            ),
        )

    def _fill_group(
        self,
        slots: tuple[Slot, ...],
        kind: ItemKind,
        locked: dict[Slot, ItemDefinition],
        intent: BuildIntent,
        allowed: Optional[set[str]],
        scorer: Scorer,
        diagnostics: list[Diagnostic],
    ) -> tuple[SlotAssignment, ...]:
        group_has_exotic = any(locked[s].is_exotic for s in slots if s in locked)

        ranked_by_slot: dict[Slot, list[CandidateScore]] = {}
        for slot in slots:
            if slot in locked:
                continue
            candidates = self._catalog.candidates(
                kind,
                slot=slot,
                target_class=intent.target_class,
                allowed_ids=allowed,
                exclude_exotic=group_has_exotic,
            )
            ranked_by_slot[slot] = self._rank([scorer(c) for c in candidates])

        keeper = self._exotic_slot(slots, ranked_by_slot)

        assignments: list[SlotAssignment] = []
        for slot in slots:
            if slot in locked:
                assignments.append(
                    SlotAssignment(slot=slot, item=locked[slot], reasons=("locked",), locked=True)
                )
                continue

            ranked = ranked_by_slot[slot]
            if slot != keeper:
                ranked = [c for c in ranked if not c.item.is_exotic]
            if not ranked:
                exotic_blocked = bool(ranked_by_slot[slot])
                message = (
                    f"Only exotic {kind.value} candidates exist for {slot.value} "
                    "and the exotic limit is reached"
                    if exotic_blocked
                    else f"No {kind.value} candidate for {slot.value}"
                )
                diagnostics.append(
                    Diagnostic(kind=DiagnosticKind.NO_CANDIDATE, message=message, slot=slot.value)
                )
                assignments.append(SlotAssignment(slot=slot, item=None, reasons=("no candidate",)))
                logger.debug("Slot %s left empty", slot.value)
                continue

            best = ranked[0]
            assignments.append(
                SlotAssignment(
                    slot=slot,
                    item=best.item,
                    score=best.score,
                    reasons=best.reasons,
                    candidates=tuple(ranked[:MAX_LISTED_CANDIDATES])
                    if intent.include_alternatives
                    else (),
                )
            )
            logger.debug("Slot %s → %s (%.1f)", slot.value, best.item.item_id, best.score)
        return tuple(assignments)

    @staticmethod
    def _exotic_slot(
        slots: tuple[Slot, ...], ranked_by_slot: dict[Slot, list[CandidateScore]]
    ) -> Optional[Slot]:
        """엑조틱을 유지할 슬롯. 차선(비엑조틱) 대비 이득이 가장 큰 곳, 동률은 슬롯 순서."""
        exotic_slots = [s for s in slots if ranked_by_slot.get(s) and ranked_by_slot[s][0].item.is_exotic]
        if not exotic_slots:
            return None

        def margin(slot: Slot) -> float:
            ranked = ranked_by_slot[slot]
            fallback = next((c for c in ranked if not c.item.is_exotic), None)
            return ranked[0].score - fallback.score if fallback else float("inf")

        return max(exotic_slots, key=lambda s: (margin(s), -slots.index(s)))

    def _score_armor(
        self, item: ItemDefinition, intent: BuildIntent, archetype: Archetype
    ) -> CandidateScore:
        score = self._selector.score_piece(item, intent, archetype)
        reasons = [f"{archetype.name} stat weights"]
        if intent.numeric_constraints:
            reasons.append("weighted by requested stat values")
        if item.gear_tier >= 5 or item.masterworked:
            reasons.append("top-tier piece")
        return CandidateScore(item=item, score=score, reasons=tuple(reasons))

    # === 수치 제약 ===

    def _check_constraints(
        self,
        intent: BuildIntent,
        allowed: Optional[set[str]],
        locked: dict[Slot, ItemDefinition],
        mods: list[ChosenMod],
        subclass_items: list[ItemDefinition],
    ) -> list[Diagnostic]:
        """슬롯별 최대 기여 합으로도 도달 못 하는 수치 제약."""
        diagnostics: list[Diagnostic] = []
        mod_slots = sum(self._tables.mod_caps.values())
        for channel, required in sorted(intent.numeric_constraints.items(), key=lambda kv: kv[0].value):
            reachable = self._max_reachable(channel, intent, allowed, locked, mod_slots, subclass_items)
            if required > STAT_MAX or required > reachable:
                diagnostics.append(
                    Diagnostic(
                        kind=DiagnosticKind.INFEASIBLE_CONSTRAINT,
                        message=(
                            f"{channel.value} {required} requested but at most "
                            f"{min(reachable, STAT_MAX)} is reachable"
                        ),
                    )
                )
        return diagnostics

    def _max_reachable(
        self,
        channel: StatChannel,
        intent: BuildIntent,
        allowed: Optional[set[str]],
        locked: dict[Slot, ItemDefinition],
        mod_slots: int,
        subclass_items: list[ItemDefinition],
    ) -> int:
        def value(item: ItemDefinition) -> int:
            return item.stat_contributions.get(channel, 0) + piece_bonus(item).get(channel, 0)

        total = 0
        for slot in ARMOR_SLOTS:
            if slot in locked:
                total += value(locked[slot])
                continue
            candidates = self._catalog.candidates(
                ItemKind.ARMOR, slot=slot, target_class=intent.target_class, allowed_ids=allowed
            )
            total += max((value(c) for c in candidates), default=0)

        mod_values = sorted(
            (
                value(m)
                for m in self._catalog.by_kind(ItemKind.MOD)
                if m.category in self._tables.mod_caps and m.fits_class(intent.target_class)
            ),
            reverse=True,
        )
        total += sum(v for v in mod_values[:mod_slots] if v > 0)
        total += sum(value(item) for item in subclass_items)
        return min(total, STAT_MAX)
