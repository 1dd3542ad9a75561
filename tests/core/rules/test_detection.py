"""시너지/충돌 탐지 테스트"""

from __future__ import annotations

from buildsmith.core.catalog.models import Element, ItemDefinition, ItemKind, Slot
from buildsmith.core.rules.detection import BuildContext, DetectionRules
from buildsmith.core.rules.models import DetectionKind, Strength
from buildsmith.core.rules.rulebook import RuleBase
from buildsmith.core.stats.models import StatChannel, StatTotals


def _context(
    totals: StatTotals | None = None,
    raw: dict[StatChannel, int] | None = None,
    focus: tuple[StatChannel, ...] = (),
    element: str = "solar",
    activity: str = "general",
    weapons: tuple[ItemDefinition, ...] = (),
    items: tuple[ItemDefinition, ...] = (),
) -> BuildContext:
    totals = totals or StatTotals()
    return BuildContext(
        totals=totals,
        raw_totals=raw if raw is not None else {ch: totals.get(ch) for ch in StatChannel},
        focus_stats=focus,
        element=element,
        activity=activity,
        weapons=weapons,
        items=items or weapons,
    )


def _weapon(item_id: str, element: Element, category: str = "pulse_rifle") -> ItemDefinition:
    return ItemDefinition(
        item_id=item_id,
        name=item_id,
        kind=ItemKind.WEAPON,
        slot=Slot.ENERGY,
        category=category,
        damage_element=element,
    )


def _armor(item_id: str, description: str) -> ItemDefinition:
    return ItemDefinition(
        item_id=item_id, name=item_id, kind=ItemKind.ARMOR, slot=Slot.HELMET, description=description
    )


def _ids(findings) -> list[str]:
    return [f.synergy_id if hasattr(f, "synergy_id") else f.conflict_id for f in findings]


class TestSynergies:
    def test_stat_synergy_requires_focus(self, detection: DetectionRules, rule_base: RuleBase):
        totals = StatTotals(discipline=70, strength=80)
        focused = detection.detect(
            _context(totals, focus=(StatChannel.DISCIPLINE, StatChannel.STRENGTH), element="none"),
            rule_base,
        )
        unfocused = detection.detect(_context(totals, element="none"), rule_base)
        assert "ability_loop" in _ids(focused.synergies)
        assert "ability_loop" not in _ids(unfocused.synergies)

    def test_element_synergy(self, detection: DetectionRules, rule_base: RuleBase):
        result = detection.detect(_context(StatTotals(recovery=50), element="solar"), rule_base)
        synergy = next(s for s in result.synergies if s.synergy_id == "solar_healing")
        assert synergy.kind == DetectionKind.ELEMENT
        assert synergy.strength == Strength.MEDIUM
        assert synergy.involved_ids == ("solar", "recovery")

    def test_element_synergy_other_element(self, detection: DetectionRules, rule_base: RuleBase):
        result = detection.detect(_context(StatTotals(recovery=90), element="arc"), rule_base)
        assert "solar_healing" not in _ids(result.synergies)

    def test_activity_synergy(self, detection: DetectionRules, rule_base: RuleBase):
        totals = StatTotals(recovery=60, resilience=50)
        raid = detection.detect(_context(totals, activity="raid"), rule_base)
        pvp = detection.detect(_context(totals, activity="pvp"), rule_base)
        assert "raid_survivability" in _ids(raid.synergies)
        assert "raid_survivability" not in _ids(pvp.synergies)

    def test_synergies_sorted_by_kind_then_id(self, detection: DetectionRules, rule_base: RuleBase):
        totals = StatTotals(recovery=70, resilience=70, intellect=70)
        result = detection.detect(
            _context(totals, focus=(StatChannel.INTELLECT, StatChannel.RECOVERY), activity="raid"),
            rule_base,
        )
        keys = [(s.kind.value, s.synergy_id) for s in result.synergies]
        assert keys == sorted(keys)
        assert _ids(result.synergies) == ["raid_survivability", "solar_healing", "super_focus"]

    def test_trigger_chain_from_descriptions(self, detection: DetectionRules, rule_base: RuleBase):
        items = (
            _armor("helm", "Grenade kills grant armor charge."),
            _armor("arms", "Armor charge restores grenade energy and reduces cooldown."),
        )
        result = detection.detect(_context(element="none", items=items), rule_base)
        chain = next(s for s in result.synergies if s.synergy_id == "infinite_grenade_loop")
        assert chain.kind == DetectionKind.TRIGGER_CHAIN
        assert chain.strength == Strength.HIGH
        assert chain.involved_ids == ("arms", "helm")


class TestConflicts:
    def test_stat_overflow(self, detection: DetectionRules, rule_base: RuleBase):
        result = detection.detect(
            _context(StatTotals(resilience=200), raw={StatChannel.RESILIENCE: 230}, element="none"),
            rule_base,
        )
        conflict = next(c for c in result.conflicts if c.conflict_id == "stat_overflow")
        assert conflict.involved_ids == ("resilience",)
        assert "resilience +30" in conflict.description

    def test_element_mismatch(self, detection: DetectionRules, rule_base: RuleBase):
        weapons = (_weapon("kin", Element.KINETIC), _weapon("arc", Element.ARC))
        mismatch = detection.detect(_context(element="solar", weapons=weapons), rule_base)
        matching = detection.detect(_context(element="arc", weapons=weapons), rule_base)
        conflict = next(c for c in mismatch.conflicts if c.conflict_id == "element_mismatch")
        assert conflict.involved_ids == ("arc",)
        assert "element_mismatch" not in _ids(matching.conflicts)

    def test_kinetic_only_weapons_no_mismatch(self, detection: DetectionRules, rule_base: RuleBase):
        result = detection.detect(
            _context(element="void", weapons=(_weapon("kin", Element.KINETIC),)), rule_base
        )
        assert "element_mismatch" not in _ids(result.conflicts)

    def test_weapon_category_in_pvp(self, detection: DetectionRules, rule_base: RuleBase):
        weapons = (_weapon("mg", Element.ARC, category="machine_gun"),)
        result = detection.detect(_context(element="arc", activity="pvp", weapons=weapons), rule_base)
        conflict = next(c for c in result.conflicts if c.conflict_id == "pvp_heavy_weapons")
        assert conflict.involved_ids == ("mg",)

    def test_rule_conflict_between_items(self, detection: DetectionRules, rule_base: RuleBase):
        items = (
            _armor("legs", "Sprint to move quickly."),
            _armor("chest", "Crouch to gain an overshield."),
        )
        result = detection.detect(_context(element="none", items=items), rule_base)
        conflict = next(c for c in result.conflicts if c.conflict_id == "movement_stance")
        assert conflict.kind == DetectionKind.TRIGGER_CHAIN
        assert conflict.involved_ids == ("legs",)
        assert "crouching over sprinting" in conflict.description

    def test_clean_build_has_no_conflicts(self, detection: DetectionRules, rule_base: RuleBase):
        result = detection.detect(_context(StatTotals(recovery=50), element="none"), rule_base)
        assert result.conflicts == []


class TestLoading:
    def test_unknown_check_skipped(self):
        rules = DetectionRules()
        count = rules.load_from_dict(
            {
                "synergies": [
                    {"id": "ok", "kind": "stat", "check": "stat_overflow", "strength": "low"},
                    {"id": "bad", "kind": "stat", "check": "telepathy"},
                ],
                "conflicts": [{"id": "bad_kind", "kind": "vibes", "check": "stat_overflow"}],
            }
        )
        assert count == 1
