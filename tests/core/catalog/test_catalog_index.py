"""카탈로그 인덱스 테스트: 정규화, 조회, 이름 언급"""

from __future__ import annotations

import json

import pytest

from buildsmith.core.catalog.index import CatalogIndex, normalize_record
from buildsmith.core.catalog.models import ClassType, Element, ItemKind, Rarity, Slot
from buildsmith.core.errors import ConfigurationError
from buildsmith.core.stats.models import StatChannel


# ── normalize_record ─────────────────────────────────────────


class TestNormalizeRecord:
    def test_case_insensitive_enums(self):
        item = normalize_record(
            "x",
            {
                "name": "Sunfire",
                "kind": "Weapon",
                "slot": "POWER",
                "category": "Rocket Launcher",
                "rarity": "Exotic",
                "damage_element": "Solar",
            },
        )
        assert item.kind == ItemKind.WEAPON
        assert item.slot == Slot.POWER
        assert item.category == "rocket_launcher"
        assert item.rarity == Rarity.EXOTIC
        assert item.is_exotic
        assert item.damage_element == Element.SOLAR

    def test_stat_keys_by_alias_and_hash(self):
        item = normalize_record(
            "x",
            {
                "name": "Helm",
                "kind": "armor",
                "slot": "helmet",
                "stats": {"Health": 12, "1943323491": 8, "weapons": 4},
            },
        )
        assert item.stat_contributions == {
            StatChannel.RESILIENCE: 12,
            StatChannel.RECOVERY: 8,
            StatChannel.MOBILITY: 4,
        }

    def test_tier_type_rarity(self):
        item = normalize_record("x", {"name": "A", "kind": "armor", "tier_type": 6})
        assert item.rarity == Rarity.EXOTIC

    def test_numeric_rarity(self):
        item = normalize_record("x", {"name": "A", "kind": "armor", "rarity": 3})
        assert item.rarity == Rarity.RARE

    def test_defaults(self):
        item = normalize_record("x", {"name": "A", "kind": "mod"})
        assert item.slot == Slot.NONE
        assert item.rarity == Rarity.LEGENDARY
        assert item.class_affinity == ClassType.ANY
        assert item.gear_tier == 1
        assert item.tuned_channel is None

    def test_tuned_channel(self):
        item = normalize_record(
            "x", {"name": "A", "kind": "armor", "gear_tier": 5, "tuned_channel": "super"}
        )
        assert item.tuned_channel == StatChannel.INTELLECT

    @pytest.mark.parametrize(
        "raw",
        [
            {"kind": "armor"},
            {"name": "A"},
            {"name": "A", "kind": "spaceship"},
            {"name": "A", "kind": "armor", "stats": {"luck": 5}},
            {"name": "A", "kind": "armor", "gear_tier": 9},
            {"name": "A", "kind": "armor", "rarity": "mythic"},
        ],
    )
    def test_malformed_raises(self, raw):
        with pytest.raises((KeyError, ValueError)):
            normalize_record("x", raw)


# ── CatalogIndex ─────────────────────────────────────────────


class TestCatalogIndex:
    def test_malformed_records_skipped(self):
        catalog = CatalogIndex.from_mapping(
            {
                "good": {"name": "Good", "kind": "armor", "slot": "helmet"},
                "bad": {"name": "Bad", "kind": "unknown"},
            }
        )
        assert catalog.count() == 1
        assert catalog.get("good") is not None
        assert catalog.get("bad") is None

    def test_require_loaded(self):
        with pytest.raises(ConfigurationError):
            CatalogIndex().require_loaded()

    def test_declaration_order(self, basic_catalog: CatalogIndex):
        assert basic_catalog.declaration_order("kin_hc") < basic_catalog.declaration_order("kin_scout")
        assert [i.item_id for i in basic_catalog.by_slot(Slot.KINETIC)] == ["kin_hc", "kin_scout"]

    def test_queries(self, basic_catalog: CatalogIndex):
        assert len(basic_catalog.by_kind(ItemKind.WEAPON)) == 6
        assert [i.item_id for i in basic_catalog.by_category("armor_mod")] == ["mod_rec", "mod_res"]
        assert basic_catalog.by_rarity(Rarity.EXOTIC) == []
        assert basic_catalog.item_names()["pw_rocket"] == "Test Rocket"

    def test_candidates_filters(self):
        catalog = CatalogIndex.from_mapping(
            {
                "h1": {"name": "Titan Helm", "kind": "armor", "slot": "helmet", "class_affinity": "titan"},
                "h2": {"name": "Any Helm", "kind": "armor", "slot": "helmet"},
                "h3": {"name": "Exotic Helm", "kind": "armor", "slot": "helmet", "rarity": "exotic"},
                "a1": {"name": "Arms", "kind": "armor", "slot": "arms"},
            }
        )
        ids = lambda items: [i.item_id for i in items]  # noqa: E731
        assert ids(catalog.candidates(ItemKind.ARMOR, Slot.HELMET)) == ["h1", "h2", "h3"]
        assert ids(catalog.candidates(ItemKind.ARMOR, Slot.HELMET, ClassType.HUNTER)) == ["h2", "h3"]
        assert ids(catalog.candidates(ItemKind.ARMOR, Slot.HELMET, exclude_exotic=True)) == ["h1", "h2"]
        assert ids(
            catalog.candidates(ItemKind.ARMOR, Slot.HELMET, allowed_ids={"h3", "a1"})
        ) == ["h3"]

    def test_load_from_json_object_and_list(self, tmp_path):
        obj_path = tmp_path / "catalog.json"
        obj_path.write_text(
            json.dumps({"items": {"a": {"name": "A", "kind": "armor", "slot": "legs"}}}),
            encoding="utf-8",
        )
        list_path = tmp_path / "catalog_list.json"
        list_path.write_text(
            json.dumps([{"item_id": "b", "name": "B", "kind": "weapon", "slot": "kinetic"}]),
            encoding="utf-8",
        )
        catalog = CatalogIndex()
        assert catalog.load_from_json(obj_path) == 1
        assert catalog.load_from_json(list_path) == 1
        assert catalog.count() == 2

    def test_load_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError):
            CatalogIndex().load_from_json(tmp_path / "nope.json")


# ── find_mentions ────────────────────────────────────────────


class TestFindMentions:
    @pytest.fixture()
    def catalog(self) -> CatalogIndex:
        return CatalogIndex.from_mapping(
            {
                "star": {"name": "Star", "kind": "armor", "slot": "helmet"},
                "star_eater": {"name": "Star-Eater Scales", "kind": "armor", "slot": "legs"},
                "gjally": {"name": "Gjallarhorn", "kind": "weapon", "slot": "power"},
                "ab": {"name": "Ab", "kind": "armor", "slot": "arms"},
            }
        )

    def test_longest_match_wins(self, catalog: CatalogIndex):
        assert catalog.find_mentions("build around star-eater scales") == ["star_eater"]

    def test_order_of_appearance(self, catalog: CatalogIndex):
        assert catalog.find_mentions("gjallarhorn with star") == ["gjally", "star"]

    def test_word_boundaries(self, catalog: CatalogIndex):
        assert catalog.find_mentions("starlight build") == []

    def test_short_names_ignored(self, catalog: CatalogIndex):
        assert catalog.find_mentions("ab workout") == []

    def test_spans(self, catalog: CatalogIndex):
        assert catalog.find_mention_spans("Gjallarhorn!") == [(0, 11, "gjally")]
