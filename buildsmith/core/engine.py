"""
Build Engine - Composition Root
===============================
의도 파싱 → 아키타입 추천 → 빌드 조립 → 종합 점수

카탈로그 로드 1회당 1개 생성. 모든 협력 객체는 주입받고 읽기 전용으로 공유.
호출 간 상태 없음: 같은 카탈로그 + 같은 (text, options)면 같은 결과.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from buildsmith.core.archetype.models import Archetype, ArchetypeRecommendation
from buildsmith.core.archetype.selector import ArchetypeSelector
from buildsmith.core.assembly.assembler import BuildAssembler
from buildsmith.core.assembly.models import Build
from buildsmith.core.catalog.index import CatalogIndex
from buildsmith.core.intent.keywords import KeywordTable
from buildsmith.core.intent.models import BuildIntent, BuildOptions
from buildsmith.core.intent.parser import IntentParser
from buildsmith.core.rules.detection import DetectionRules
from buildsmith.core.rules.rulebook import RuleBase
from buildsmith.core.scoring.models import ScoreReport
from buildsmith.core.scoring.scorer import CompositeScorer
from buildsmith.core.stats.breakpoints import BreakpointTable
from buildsmith.core.stats.models import CHANNEL_ORDER, StatEffects
from buildsmith.core.tables import ScoringTables

logger = logging.getLogger(__name__)

DEFAULT_MAX_ALTERNATIVES = 2

# 규칙 테이블 파일명 (data 디렉토리 기준)
KEYWORDS_FILE = "intent_keywords.json"
BREAKPOINTS_FILE = "stat_breakpoints.json"
RULE_BASE_FILE = "rule_base.json"
DETECTION_FILE = "detection_rules.json"
ARCHETYPES_FILE = "archetypes.json"
SCORING_FILE = "scoring_tables.json"


@dataclass(frozen=True)
class AlternativeBuild:
    archetype_id: str
    build: Build
    score: ScoreReport

    def to_dict(self) -> dict:
        return {
            "archetype_id": self.archetype_id,
            "build": self.build.to_dict(),
            "score": self.score.to_dict(),
        }


@dataclass(frozen=True)
class BuildResult:
    """generate() 결과: to_dict()로 JSON 직렬화"""

    intent: BuildIntent
    build: Build
    score: ScoreReport
    archetypes: ArchetypeRecommendation
    stat_effects: tuple[StatEffects, ...] = ()
    warnings: tuple[str, ...] = ()
    alternatives: tuple[AlternativeBuild, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict:
        data = {
            "build": self.build.to_dict(),
            "score": self.score.to_dict(),
            "intent": self.intent.to_dict(),
            "archetypes": self.archetypes.to_dict(),
            "stat_effects": [e.to_dict() for e in self.stat_effects],
            "warnings": list(self.warnings),
        }
        if self.alternatives:
            data["alternatives"] = [a.to_dict() for a in self.alternatives]
        return data


class BuildEngine:
    """빌드 생성/점수 엔진"""

    def __init__(
        self,
        catalog: CatalogIndex,
        keywords: KeywordTable,
        breakpoints: BreakpointTable,
        rule_base: RuleBase,
        detection: DetectionRules,
        selector: ArchetypeSelector,
        tables: ScoringTables,
        max_alternatives: int = DEFAULT_MAX_ALTERNATIVES,
    ) -> None:
        self._catalog = catalog
        self._breakpoints = breakpoints
        self._selector = selector
        self._max_alternatives = max_alternatives
        self._parser = IntentParser(keywords, catalog)
        self._assembler = BuildAssembler(catalog, selector, rule_base, detection, tables)
        self._scorer = CompositeScorer(tables, breakpoints)

    @property
    def catalog(self) -> CatalogIndex:
        return self._catalog

    # === 파이프라인 ===

    def parse(self, text: Optional[str], options: Optional[BuildOptions] = None) -> BuildIntent:
        return self._parser.parse(text, options)

    def validate(self, intent: BuildIntent) -> list[str]:
        return self._parser.validate(intent)

    def generate(self, text: Optional[str], options: Optional[BuildOptions] = None) -> BuildResult:
        """텍스트 요청 → 빌드 + 점수. 빈 카탈로그면 ConfigurationError."""
        self._catalog.require_loaded()
        intent = self.parse(text, options)
        recommendation = self._selector.recommend(intent)
        archetype = recommendation.primary.archetype

        build = self._assembler.assemble(intent, archetype)
        report = self._scorer.score(build, intent, archetype)

        alternatives: list[AlternativeBuild] = []
        if intent.include_alternatives:
            for alt in recommendation.alternatives[: self._max_alternatives]:
                alt_build = self._assembler.assemble(intent, alt.archetype)
                alternatives.append(
                    AlternativeBuild(
                        archetype_id=alt.archetype.archetype_id,
                        build=alt_build,
                        score=self._scorer.score(alt_build, intent, alt.archetype),
                    )
                )

        logger.info(
            "Generated build %r (archetype=%s, score=%d, alternatives=%d)",
            build.name,
            archetype.archetype_id,
            report.overall_score,
            len(alternatives),
        )
        return BuildResult(
            intent=intent,
            build=build,
            score=report,
            archetypes=recommendation,
            stat_effects=tuple(
                self._breakpoints.effects_at(ch, build.stats.get(ch)) for ch in CHANNEL_ORDER
            ),
            warnings=tuple(self.validate(intent)),
            alternatives=tuple(alternatives),
        )

    def score(self, build: Build, intent: BuildIntent) -> ScoreReport:
        """조립된 빌드 재채점. 아키타입을 모르면 의도 기준 추천으로 대체."""
        return self._scorer.score(build, intent, self._archetype_for(build, intent))

    def _archetype_for(self, build: Build, intent: BuildIntent) -> Archetype:
        archetype = self._selector.get(build.archetype_id)
        if archetype is None:
            logger.warning("Unknown archetype %s, using recommendation", build.archetype_id)
            archetype = self._selector.recommend(intent).primary.archetype
        return archetype


def load_engine(
    catalog_path: str | Path,
    data_dir: str | Path,
    max_alternatives: int = DEFAULT_MAX_ALTERNATIVES,
) -> BuildEngine:
    """JSON 파일들로 엔진 구성. 테이블을 읽지 못하면 ConfigurationError."""
    data_dir = Path(data_dir)

    catalog = CatalogIndex()
    catalog.load_from_json(catalog_path)

    keywords = KeywordTable()
    keywords.load_from_json(data_dir / KEYWORDS_FILE)
    breakpoints = BreakpointTable()
    breakpoints.load_from_json(data_dir / BREAKPOINTS_FILE)
    rule_base = RuleBase()
    rule_base.load_from_json(data_dir / RULE_BASE_FILE)
    detection = DetectionRules()
    detection.load_from_json(data_dir / DETECTION_FILE)
    selector = ArchetypeSelector()
    selector.load_from_json(data_dir / ARCHETYPES_FILE)
    tables = ScoringTables.load_from_json(data_dir / SCORING_FILE)

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
