"""Shared test fixtures.

Rule tables come from the bundled data directory; catalogs are built inline
per test so each scenario controls exactly which candidates exist.
"""

from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from buildsmith.core.archetype.selector import ArchetypeSelector
from buildsmith.core.catalog.index import CatalogIndex
from buildsmith.core.engine import BuildEngine
from buildsmith.core.intent.keywords import KeywordTable
from buildsmith.core.rules.detection import DetectionRules
from buildsmith.core.rules.rulebook import RuleBase
from buildsmith.core.stats.breakpoints import BreakpointTable
from buildsmith.core.tables import ScoringTables
from buildsmith.db.database import get_db
from buildsmith.main import app

DATA_DIR = Path(__file__).resolve().parent.parent / "buildsmith" / "data"

TEST_ENGINE = create_engine(
    "sqlite:///:memory:",
    connect_args={"check_same_thread": False},
)
TestSession = sessionmaker(bind=TEST_ENGINE, autocommit=False, autoflush=False)


def _override_get_db():
    db = TestSession()
    try:
        yield db
    finally:
        db.close()


app.dependency_overrides[get_db] = _override_get_db


def make_record(
    name: str,
    kind: str = "armor",
    slot: str = "none",
    category: str = "",
    rarity: str = "legendary",
    stats: dict[str, int] | None = None,
    **extra,
) -> dict:
    """카탈로그 원시 레코드 생성 헬퍼"""
    record = {
        "name": name,
        "kind": kind,
        "slot": slot,
        "category": category,
        "rarity": rarity,
        "stats": stats or {},
    }
    record.update(extra)
    return record


def basic_catalog_records() -> dict[str, dict]:
    """슬롯마다 후보 1~2개인 작은 카탈로그"""
    return {
        "kin_hc": make_record("Test Hand Cannon", "weapon", "kinetic", "hand_cannon", damage_element="kinetic"),
        "kin_scout": make_record("Test Scout", "weapon", "kinetic", "scout_rifle", damage_element="kinetic"),
        "en_pulse": make_record("Test Pulse", "weapon", "energy", "pulse_rifle", damage_element="solar"),
        "en_smg": make_record("Test SMG", "weapon", "energy", "submachine_gun", damage_element="arc"),
        "pw_rocket": make_record("Test Rocket", "weapon", "power", "rocket_launcher", damage_element="void"),
        "pw_mg": make_record("Test Machine Gun", "weapon", "power", "machine_gun", damage_element="void"),
        "helm_res": make_record("Res Helm", slot="helmet", stats={"resilience": 20, "recovery": 10}),
        "helm_mob": make_record("Mob Helm", slot="helmet", stats={"mobility": 20, "recovery": 10}),
        "arms_a": make_record("Basic Arms", slot="arms", stats={"resilience": 10, "recovery": 20}),
        "chest_a": make_record("Basic Chest", slot="chest", stats={"resilience": 20, "recovery": 10}),
        "legs_a": make_record("Basic Legs", slot="legs", stats={"recovery": 20, "mobility": 10}),
        "class_a": make_record("Basic Cloak", slot="class_item", stats={"recovery": 10, "resilience": 10}),
        "mod_rec": make_record("Recovery Mod", "mod", category="armor_mod", stats={"recovery": 10}),
        "mod_res": make_record("Resilience Mod", "mod", category="armor_mod", stats={"resilience": 10}),
    }


@pytest.fixture(scope="session")
def keywords() -> KeywordTable:
    table = KeywordTable()
    table.load_from_json(DATA_DIR / "intent_keywords.json")
    return table


@pytest.fixture(scope="session")
def breakpoints() -> BreakpointTable:
    table = BreakpointTable()
    table.load_from_json(DATA_DIR / "stat_breakpoints.json")
    return table


@pytest.fixture(scope="session")
def rule_base() -> RuleBase:
    rb = RuleBase()
    rb.load_from_json(DATA_DIR / "rule_base.json")
    return rb


@pytest.fixture(scope="session")
def detection() -> DetectionRules:
    rules = DetectionRules()
    rules.load_from_json(DATA_DIR / "detection_rules.json")
    return rules


@pytest.fixture(scope="session")
def selector() -> ArchetypeSelector:
    sel = ArchetypeSelector()
    sel.load_from_json(DATA_DIR / "archetypes.json")
    return sel


@pytest.fixture(scope="session")
def tables() -> ScoringTables:
    return ScoringTables.load_from_json(DATA_DIR / "scoring_tables.json")


@pytest.fixture()
def catalog_records() -> dict[str, dict]:
    return basic_catalog_records()


@pytest.fixture()
def make_item():
    """레코드 헬퍼를 테스트에 주입"""
    return make_record


@pytest.fixture()
def basic_catalog(catalog_records) -> CatalogIndex:
    return CatalogIndex.from_mapping(catalog_records)


@pytest.fixture()
def make_engine(keywords, breakpoints, rule_base, detection, selector, tables):
    """카탈로그 → BuildEngine 팩토리"""

    def _make(catalog: CatalogIndex, max_alternatives: int = 2) -> BuildEngine:
        return BuildEngine(
            catalog=catalog,
            keywords=keywords,
            breakpoints=breakpoints,
            rule_base=rule_base,
            detection=detection,
            selector=selector,
            tables=tables,
            max_alternatives=max_alternatives,
        )

    return _make


@pytest.fixture()
def client() -> TestClient:
    """FastAPI TestClient wired to an in-memory SQLite database."""
    return TestClient(app)


@pytest.fixture()
def db_session() -> Session:
    """Raw database session for direct DB assertions."""
    session = TestSession()
    try:
        yield session
    finally:
        session.close()
