"""아키타입 선택기 테스트: 추천, 조각 점수, 달성 가능성"""

from __future__ import annotations

import pytest

from buildsmith.core.archetype.models import FeasibilityConstraints
from buildsmith.core.archetype.selector import ArchetypeSelector
from buildsmith.core.catalog.models import ItemDefinition, ItemKind, Slot
from buildsmith.core.errors import ConfigurationError
from buildsmith.core.intent.models import BuildIntent
from buildsmith.core.stats.models import StatChannel


def _piece(masterworked: bool = False) -> ItemDefinition:
    return ItemDefinition(
        item_id="helm",
        name="Helm",
        kind=ItemKind.ARMOR,
        slot=Slot.HELMET,
        stat_contributions={StatChannel.RESILIENCE: 20, StatChannel.RECOVERY: 10},
        masterworked=masterworked,
    )


class TestRecommend:
    def test_tie_broken_by_declaration_order(self, selector: ArchetypeSelector):
        rec = selector.recommend(BuildIntent(activity="raid", playstyle="defensive"))
        assert rec.primary.archetype.archetype_id == "fortress"
        assert rec.primary.score == 45
        assert rec.alternatives[0].archetype.archetype_id == "regenerator"

    def test_priority_stats_break_tie(self, selector: ArchetypeSelector):
        rec = selector.recommend(
            BuildIntent(activity="raid", playstyle="defensive", priority_stats=(StatChannel.RECOVERY,))
        )
        # regenerator: 25 + 20 + 주 채널 15
        assert rec.primary.archetype.archetype_id == "regenerator"
        assert rec.primary.score == 60

    def test_raid_dps(self, selector: ArchetypeSelector):
        rec = selector.recommend(BuildIntent(activity="raid", playstyle="dps"))
        assert rec.primary.archetype.archetype_id == "berserker"
        assert [a.archetype.archetype_id for a in rec.alternatives] == ["marksman", "fortress"]
        assert "suited to raid" in rec.reasoning

    def test_defaults_prefer_balanced_general(self, selector: ArchetypeSelector):
        rec = selector.recommend(BuildIntent())
        assert rec.primary.archetype.archetype_id == "jack_of_all_trades"

    def test_zero_score_falls_back_to_first(self, selector: ArchetypeSelector):
        rec = selector.recommend(BuildIntent(activity="moon", playstyle="sleepy"))
        assert rec.primary.archetype.archetype_id == "fortress"
        assert rec.primary.score == 0
        assert any("no specific match" in r for r in rec.reasoning)

    def test_empty_selector_raises(self):
        with pytest.raises(ConfigurationError):
            ArchetypeSelector().recommend(BuildIntent())

    def test_to_dict(self, selector: ArchetypeSelector):
        data = selector.recommend(BuildIntent(activity="raid", playstyle="dps")).to_dict()
        assert data["primary"]["id"] == "berserker"
        assert data["primary"]["score"] == 45
        assert len(data["alternatives"]) == 2


class TestScorePiece:
    def test_weighted_by_archetype(self, selector: ArchetypeSelector):
        fortress = selector.get("fortress")
        assert ArchetypeSelector.score_piece(_piece(), BuildIntent(), fortress) == pytest.approx(250)

    def test_numeric_constraint_overrides_weight(self, selector: ArchetypeSelector):
        fortress = selector.get("fortress")
        intent = BuildIntent(numeric_constraints={StatChannel.RECOVERY: 100})
        assert ArchetypeSelector.score_piece(_piece(), intent, fortress) == pytest.approx(1200)

    def test_top_tier_bonus(self, selector: ArchetypeSelector):
        fortress = selector.get("fortress")
        assert ArchetypeSelector.score_piece(
            _piece(masterworked=True), BuildIntent(), fortress
        ) == pytest.approx(300)


class TestFeasibility:
    def test_max_tier(self, selector: ArchetypeSelector):
        assert selector.max_achievable_tier(FeasibilityConstraints()) == 17
        assert selector.max_achievable_tier(FeasibilityConstraints(allow_stat_mods=False)) == 12
        assert (
            selector.max_achievable_tier(
                FeasibilityConstraints(allow_top_tier_armor=False, allow_stat_mods=False)
            )
            == 10
        )

    def test_archetype_minimums_feasible(self, selector: ArchetypeSelector):
        result = selector.feasibility(selector.get("fortress"))
        assert result.feasible is True
        assert result.unmet_channels == ()

    def test_required_value_beyond_reach(self, selector: ArchetypeSelector):
        result = selector.feasibility(
            selector.get("fortress"),
            FeasibilityConstraints(required={StatChannel.RECOVERY: 190}),
        )
        assert result.feasible is False
        assert result.unmet_channels == (StatChannel.RECOVERY,)

    def test_minimums_at_base_ceiling(self, selector: ArchetypeSelector):
        result = selector.feasibility(
            selector.get("regenerator"),
            FeasibilityConstraints(allow_top_tier_armor=False, allow_stat_mods=False),
        )
        assert result.feasible is True
        assert result.max_tier == 10


class TestLoading:
    def test_bad_archetype_skipped(self):
        selector = ArchetypeSelector()
        count = selector.load_from_dict(
            {
                "archetypes": [
                    {"id": "ok", "primary": "recovery", "secondary": "mobility"},
                    {"id": "bad", "primary": "luck", "secondary": "mobility"},
                    {"id": "bad_tiers", "primary": "recovery", "secondary": "mobility", "min_tiers": {"luck": 3}},
                ]
            }
        )
        assert count == 1
        assert [a.archetype_id for a in selector.all()] == ["ok"]
        assert selector.get("bad") is None
