"""스탯 모델 테스트: 티어, 효율, 합산, 브레이크포인트"""

from __future__ import annotations

import pytest

from buildsmith.core.catalog.models import ItemDefinition, ItemKind, Slot
from buildsmith.core.stats.breakpoints import BreakpointTable
from buildsmith.core.stats.calculations import (
    aggregate,
    aggregate_raw,
    effect_tier,
    efficiency,
    tier,
    tier_score,
    wasted_points,
)
from buildsmith.core.stats.models import (
    SECONDARY_THRESHOLD,
    StatChannel,
    StatTotals,
    normalize_channel,
)


def _make_piece(
    stats: dict[StatChannel, int],
    gear_tier: int = 1,
    masterworked: bool = False,
    tuned: StatChannel | None = None,
) -> ItemDefinition:
    return ItemDefinition(
        item_id="piece",
        name="Piece",
        kind=ItemKind.ARMOR,
        slot=Slot.HELMET,
        stat_contributions=stats,
        gear_tier=gear_tier,
        masterworked=masterworked,
        tuned_channel=tuned,
    )


# ── tier / efficiency ────────────────────────────────────────


class TestTier:
    @pytest.mark.parametrize("value", [0, 9, 10, 55, 99, 100, 137, 200])
    def test_tier_is_floor_of_tenth(self, value):
        assert tier(value) == value // 10

    def test_effect_tier_capped_at_twenty(self):
        assert effect_tier(200) == 20
        assert effect_tier(250) == 20
        assert effect_tier(-5) == 0

    @pytest.mark.parametrize("value", [0, 10, 70, 100, 200])
    def test_efficiency_exact_boundary(self, value):
        assert efficiency(value) == 1.0

    def test_efficiency_partial(self):
        assert efficiency(71) == pytest.approx(0.9)
        assert efficiency(79) == pytest.approx(0.1)
        assert efficiency(75) == pytest.approx(0.5)

    def test_tier_score(self):
        assert tier_score(100) == pytest.approx(50.0)
        assert tier_score(200) == pytest.approx(100.0)


# ── channels ─────────────────────────────────────────────────


class TestChannels:
    def test_legacy_names(self):
        assert normalize_channel("Recovery") == StatChannel.RECOVERY

    def test_new_aliases(self):
        assert normalize_channel("weapons") == StatChannel.MOBILITY
        assert normalize_channel("health") == StatChannel.RESILIENCE
        assert normalize_channel("class") == StatChannel.RECOVERY
        assert normalize_channel("super") == StatChannel.INTELLECT
        assert normalize_channel("grenade") == StatChannel.DISCIPLINE
        assert normalize_channel("melee") == StatChannel.STRENGTH

    def test_stat_hash(self):
        assert normalize_channel(1943323491) == StatChannel.RECOVERY
        assert normalize_channel("392767087") == StatChannel.RESILIENCE

    def test_unknown(self):
        assert normalize_channel("luck") is None
        assert normalize_channel(12345) is None


# ── aggregation ──────────────────────────────────────────────


class TestAggregate:
    def test_sums_contributions(self):
        totals = aggregate(
            [
                _make_piece({StatChannel.RECOVERY: 20, StatChannel.MOBILITY: 10}),
                _make_piece({StatChannel.RECOVERY: 15}),
            ]
        )
        assert totals.recovery == 35
        assert totals.mobility == 10
        assert totals.strength == 0

    def test_masterwork_adds_two_everywhere(self):
        totals = aggregate([_make_piece({StatChannel.RECOVERY: 20}, masterworked=True)])
        assert totals.recovery == 22
        assert totals.mobility == 2
        assert totals.strength == 2

    def test_tuned_perfect_tier_adds_five_to_one_channel(self):
        totals = aggregate(
            [
                _make_piece(
                    {StatChannel.RECOVERY: 20},
                    gear_tier=5,
                    masterworked=True,
                    tuned=StatChannel.INTELLECT,
                )
            ]
        )
        # 튜닝 보너스가 마스터워크 보너스를 대체
        assert totals.intellect == 5
        assert totals.recovery == 20
        assert totals.mobility == 0

    def test_clamped_to_scale(self):
        pieces = [_make_piece({StatChannel.RESILIENCE: 90}) for _ in range(3)]
        raw = aggregate_raw(pieces)
        totals = aggregate(pieces)
        assert raw[StatChannel.RESILIENCE] == 270
        assert totals.resilience == 200
        assert wasted_points(raw) == {StatChannel.RESILIENCE: 70}

    def test_negative_clamped_to_zero(self):
        totals = aggregate([_make_piece({StatChannel.DISCIPLINE: -10})])
        assert totals.discipline == 0

    def test_none_items_skipped(self):
        totals = aggregate([None, _make_piece({StatChannel.RECOVERY: 10})])
        assert totals.recovery == 10

    def test_stat_totals_rejects_out_of_range(self):
        with pytest.raises(ValueError):
            StatTotals(recovery=201)

    def test_to_dict(self):
        totals = StatTotals(recovery=50, mobility=20)
        assert totals.to_dict()["recovery"] == 50
        assert sum(totals.to_dict().values()) == 70


# ── breakpoints ──────────────────────────────────────────────


class TestBreakpoints:
    def test_effects_below_secondary(self, breakpoints: BreakpointTable):
        effects = breakpoints.effects_at(StatChannel.MOBILITY, 55)
        assert effects.tier == 5
        assert effects.effect == "handling +5%"
        assert effects.next_breakpoint == 70
        assert effects.next_breakpoint_gap == 15
        assert effects.secondary_unlocked is False
        assert not any(e.startswith("secondary:") for e in effects.unlocked_effects)

    def test_secondary_unlocks_at_threshold(self, breakpoints: BreakpointTable):
        effects = breakpoints.effects_at(StatChannel.MOBILITY, SECONDARY_THRESHOLD)
        assert effects.secondary_unlocked is True
        assert "secondary:boss_damage" in effects.unlocked_effects

    def test_zero_value(self, breakpoints: BreakpointTable):
        effects = breakpoints.effects_at(StatChannel.RESILIENCE, 0)
        assert effects.effect == "none"
        assert effects.unlocked_effects == ()
        assert effects.next_breakpoint == 30

    def test_max_value_has_no_next(self, breakpoints: BreakpointTable):
        effects = breakpoints.effects_at(StatChannel.RESILIENCE, 200)
        assert effects.tier == 20
        assert effects.next_breakpoint is None
        assert effects.next_breakpoint_gap is None

    def test_suggestions_within_reach(self, breakpoints: BreakpointTable):
        totals = StatTotals(recovery=65, mobility=35)
        suggestions = breakpoints.breakpoint_suggestions(
            totals, [StatChannel.RECOVERY, StatChannel.MOBILITY]
        )
        assert [s.channel for s in suggestions] == [StatChannel.RECOVERY]
        assert suggestions[0].target == 70
        assert suggestions[0].points_needed == 5

    def test_load_from_dict_skips_unknown_channel(self):
        table = BreakpointTable()
        count = table.load_from_dict(
            {
                "channels": {
                    "luck": {"breakpoints": [{"value": 10, "effect": "x"}]},
                    "recovery": {"breakpoints": [{"value": 50, "effect": "regen"}]},
                }
            }
        )
        assert count == 1
        assert table.effects_at(StatChannel.RECOVERY, 50).effect == "regen"
