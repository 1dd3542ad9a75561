"""점수/조립 규칙 테이블: scoring_tables.json 로드

조립기(무기 점수, 모드, 서브클래스)와 종합 점수기(가중치, 임계값)가 공유.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from buildsmith.core.errors import ConfigurationError
from buildsmith.core.stats.models import StatChannel, normalize_channel

logger = logging.getLogger(__name__)

AXES = (
    "stat_optimization",
    "synergy_strength",
    "activity_fit",
    "weapon_synergy",
    "armor_optimization",
    "exotic_utilization",
)

DEFAULT_WEIGHTS: dict[str, float] = {
    "stat_optimization": 25,
    "synergy_strength": 25,
    "activity_fit": 20,
    "weapon_synergy": 15,
    "armor_optimization": 10,
    "exotic_utilization": 5,
}

DEFAULT_THRESHOLDS: dict[str, float] = {
    "stat_optimization": 70,
    "synergy_strength": 60,
    "activity_fit": 65,
    "weapon_synergy": 60,
    "armor_optimization": 60,
    "exotic_utilization": 50,
}

DEFAULT_MOD_CAPS = {"armor_mod": 4, "weapon_mod": 2, "combat_mod": 3}
CANONICAL_ELEMENT = "solar"


@dataclass(frozen=True)
class ModRule:
    rule_id: str
    activities: tuple[str, ...] = ()  # 비어 있으면 조건 없음
    playstyles: tuple[str, ...] = ()
    boosts: str = ""  # "priority_stats" | "archetype_primary" | "archetype_secondary"
    keywords: tuple[str, ...] = ()
    score: float = 0.0


@dataclass
class ScoringTables:
    """scoring_tables.json 전체. load_from_json 후 읽기 전용."""

    weights: dict[str, dict[str, float]] = field(default_factory=lambda: {"default": dict(DEFAULT_WEIGHTS)})
    thresholds: dict[str, float] = field(default_factory=lambda: dict(DEFAULT_THRESHOLDS))
    strength_threshold: float = 80
    synergy_points: dict[str, float] = field(
        default_factory=lambda: {"high": 25, "medium": 15, "low": 8}
    )
    activity_thresholds: dict[str, dict[StatChannel, int]] = field(default_factory=dict)
    weapon_affinity: dict[str, dict[str, float]] = field(default_factory=dict)
    default_weapon_affinity: float = 50
    playstyle_weapons: dict[str, tuple[str, ...]] = field(default_factory=dict)
    weapon_score: dict[str, float] = field(
        default_factory=lambda: {
            "base": 50,
            "requested_type": 15,
            "playstyle_fit": 10,
            "exotic": 15,
            "element_match": 5,
        }
    )
    mod_caps: dict[str, int] = field(default_factory=lambda: dict(DEFAULT_MOD_CAPS))
    mod_rules: list[ModRule] = field(default_factory=list)
    subclass: dict[str, Any] = field(default_factory=dict)
    exotic_score: dict[str, float] = field(
        default_factory=lambda: {
            "none": 40,
            "one": 75,
            "activity_fit": 15,
            "element_fit": 10,
            "duplicate_penalty": 30,
        }
    )
    exotic_activity_categories: dict[str, tuple[str, ...]] = field(default_factory=dict)
    element_coherence_bonus: float = 10

    @classmethod
    def load_from_json(cls, path: str | Path) -> ScoringTables:
        path = Path(path)
        try:
            with path.open("r", encoding="utf-8") as f:
                raw = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"Cannot read scoring tables {path}: {e}") from e
        return cls.from_dict(raw)

    @classmethod
    def from_dict(cls, raw: dict) -> ScoringTables:
        tables = cls()
        if "weights" in raw:
            tables.weights = {
                key: {axis: float(w) for axis, w in weights.items() if axis in AXES}
                for key, weights in raw["weights"].items()
            }
            tables.weights.setdefault("default", dict(DEFAULT_WEIGHTS))
        tables.thresholds.update(
            {k: float(v) for k, v in raw.get("recommendation_thresholds", {}).items()}
        )
        tables.strength_threshold = float(raw.get("strength_threshold", tables.strength_threshold))
        tables.synergy_points.update(raw.get("synergy_points", {}))

        for activity, mins in raw.get("activity_thresholds", {}).items():
            parsed: dict[StatChannel, int] = {}
            for key, value in mins.items():
                channel = normalize_channel(key)
                if channel is None:
                    logger.warning("Unknown channel in activity thresholds: %s.%s", activity, key)
                    continue
                parsed[channel] = int(value)
            tables.activity_thresholds[activity] = parsed

        tables.weapon_affinity = {
            activity: {cat: float(v) for cat, v in cats.items()}
            for activity, cats in raw.get("weapon_affinity", {}).items()
        }
        tables.default_weapon_affinity = float(
            raw.get("default_weapon_affinity", tables.default_weapon_affinity)
        )
        tables.playstyle_weapons = {
            k: tuple(v) for k, v in raw.get("playstyle_weapons", {}).items()
        }
        tables.weapon_score.update(raw.get("weapon_score", {}))
        tables.mod_caps.update({k: int(v) for k, v in raw.get("mod_caps", {}).items()})

        for r in raw.get("mod_rules", []):
            try:
                when = r.get("when", {})
                select = r.get("select", {})
                tables.mod_rules.append(
                    ModRule(
                        rule_id=r["id"],
                        activities=tuple(when.get("activity", [])),
                        playstyles=tuple(when.get("playstyle", [])),
                        boosts=select.get("boosts", ""),
                        keywords=tuple(k.lower() for k in select.get("keywords", [])),
                        score=float(r["score"]),
                    )
                )
            except (KeyError, ValueError) as e:
                logger.warning("Failed to load mod rule %s: %s", r.get("id", "?"), e)

        tables.subclass = dict(raw.get("subclass", {}))
        tables.exotic_score.update(raw.get("exotic_score", {}))
        tables.exotic_activity_categories = {
            k: tuple(v) for k, v in raw.get("exotic_activity_categories", {}).items()
        }
        tables.element_coherence_bonus = float(
            raw.get("element_coherence_bonus", tables.element_coherence_bonus)
        )

        logger.info(
            "Loaded scoring tables: %d weight sets, %d mod rules",
            len(tables.weights),
            len(tables.mod_rules),
        )
        return tables

    # === 조회 ===

    def weights_for(self, activity: str) -> dict[str, float]:
        """활동별 가중치. 없는 축은 기본값으로 채움."""
        weights = dict(self.weights.get("default", DEFAULT_WEIGHTS))
        weights.update(self.weights.get(activity, {}))
        return {axis: weights.get(axis, DEFAULT_WEIGHTS[axis]) for axis in AXES}

    def affinity(self, activity: str, category: str) -> float:
        table = self.weapon_affinity.get(activity) or self.weapon_affinity.get("general", {})
        return table.get(category, self.default_weapon_affinity)

    def thresholds_for(self, activity: str) -> dict[StatChannel, int]:
        return self.activity_thresholds.get(activity) or self.activity_thresholds.get("general", {})

    @property
    def canonical_element(self) -> str:
        return self.subclass.get("canonical_element", CANONICAL_ELEMENT)
