"""BuildEngine 통합 테스트: 파이프라인, 결정성, 대안, 번들 카탈로그"""

from __future__ import annotations

import dataclasses

import pytest

from buildsmith.config import DEFAULT_DATA_DIR
from buildsmith.core.catalog.index import CatalogIndex
from buildsmith.core.catalog.models import ClassType, Slot
from buildsmith.core.engine import BuildEngine, load_engine
from buildsmith.core.errors import ConfigurationError
from buildsmith.core.intent.models import BuildOptions
from buildsmith.core.stats.models import CHANNEL_ORDER

SAMPLE_CATALOG_PATH = DEFAULT_DATA_DIR / "sample_catalog.json"


@pytest.fixture()
def engine(make_engine, catalog_records, make_item) -> BuildEngine:
    catalog_records["ex_solar_rocket"] = make_item(
        "Solar Exotic Rocket", "weapon", "power", "rocket_launcher", rarity="exotic", damage_element="solar"
    )
    return make_engine(CatalogIndex.from_mapping(catalog_records))


def _assignment(result, slot: Slot):
    return next(a for a in result.build.assignments() if a.slot == slot)


class TestGenerate:
    def test_raid_dps_with_exotic_rocket(self, engine: BuildEngine):
        result = engine.generate("raid dps build")
        assert result.intent.activity == "raid"
        assert result.archetypes.primary.archetype.archetype_id == "berserker"
        power = _assignment(result, Slot.POWER)
        assert power.item.item_id == "ex_solar_rocket"
        assert power.score == pytest.approx(100)
        assert result.build.subclass.element == "solar"
        assert result.score.axes["exotic_utilization"] >= 90
        assert 0 <= result.score.overall_score <= 100

    def test_deterministic(self, engine: BuildEngine):
        first = engine.generate("raid dps build with 70 recovery").to_dict()
        second = engine.generate("raid dps build with 70 recovery").to_dict()
        assert first == second

    def test_stat_effects_for_every_channel(self, engine: BuildEngine):
        result = engine.generate("raid dps build")
        assert [e.channel for e in result.stat_effects] == list(CHANNEL_ORDER)

    def test_warnings_passed_through(self, engine: BuildEngine):
        result = engine.generate("raid and crucible build")
        assert any("mixes" in w for w in result.warnings)

    def test_empty_catalog_raises(self, make_engine):
        with pytest.raises(ConfigurationError):
            make_engine(CatalogIndex()).generate("raid dps build")

    def test_locked_item_from_text(self, engine: BuildEngine):
        result = engine.generate("raid build with test machine gun")
        power = _assignment(result, Slot.POWER)
        assert power.item.item_id == "pw_mg"
        assert power.locked is True

    def test_explicit_options(self, engine: BuildEngine):
        result = engine.generate("build", BuildOptions(activity="pvp", class_type="hunter"))
        assert result.intent.activity == "pvp"
        assert result.intent.target_class == ClassType.HUNTER
        assert result.build.activity == "pvp"


class TestAlternatives:
    def test_not_included_by_default(self, engine: BuildEngine):
        result = engine.generate("raid dps build")
        assert result.alternatives == ()
        assert "alternatives" not in result.to_dict()

    def test_included_on_request(self, engine: BuildEngine):
        result = engine.generate("raid dps build", BuildOptions(include_alternatives=True))
        assert [a.archetype_id for a in result.alternatives] == ["marksman", "fortress"]
        data = result.to_dict()
        assert len(data["alternatives"]) == 2
        assert "candidates" in data["build"]["weapons"][0]

    def test_max_alternatives(self, make_engine, basic_catalog):
        engine = make_engine(basic_catalog, max_alternatives=1)
        result = engine.generate("raid dps build", BuildOptions(include_alternatives=True))
        assert len(result.alternatives) == 1


class TestRescore:
    def test_score_matches_generate(self, engine: BuildEngine):
        result = engine.generate("raid dps build")
        assert engine.score(result.build, result.intent) == result.score

    def test_unknown_archetype_falls_back(self, engine: BuildEngine, caplog):
        result = engine.generate("raid dps build")
        orphan = dataclasses.replace(result.build, archetype_id="vanished")
        with caplog.at_level("WARNING"):
            report = engine.score(orphan, result.intent)
        assert "vanished" in caplog.text
        assert report == result.score


class TestLoadEngine:
    def test_sample_catalog(self):
        engine = load_engine(SAMPLE_CATALOG_PATH, DEFAULT_DATA_DIR)
        assert engine.catalog.count() > 50
        result = engine.generate("titan raid dps build with 100 recovery")
        assert result.intent.target_class == ClassType.TITAN
        for item in result.build.equipped_armor():
            assert item.class_affinity in (ClassType.ANY, ClassType.TITAN)
        assert result.build.empty_slots() == []
        assert 0 <= result.score.overall_score <= 100

    def test_sample_catalog_named_exotic(self):
        engine = load_engine(SAMPLE_CATALOG_PATH, DEFAULT_DATA_DIR)
        result = engine.generate("raid build around sunfire ordnance")
        power = _assignment(result, Slot.POWER)
        assert power.item.item_id == "w_sunfire_ordnance"
        assert power.locked is True

    def test_missing_tables(self, tmp_path):
        with pytest.raises(ConfigurationError):
            load_engine(SAMPLE_CATALOG_PATH, tmp_path)
