"""종합 점수기

overall = round(Σ 축점수·가중치 / Σ 가중치), 0~100 클램프.
가중치는 활동별 테이블(scoring_tables.json): 없는 활동은 default.
"""

from __future__ import annotations

import logging
from typing import Optional

from buildsmith.core.archetype.models import Archetype
from buildsmith.core.assembly.models import Build, DiagnosticKind
from buildsmith.core.intent.models import BuildIntent
from buildsmith.core.stats.breakpoints import BreakpointTable
from buildsmith.core.tables import AXES, ScoringTables

from . import axes
from .models import ScoreReport, grade_for

logger = logging.getLogger(__name__)

AXIS_LABELS = {
    "stat_optimization": "Stat optimization",
    "synergy_strength": "Synergy strength",
    "activity_fit": "Activity fit",
    "weapon_synergy": "Weapon synergy",
    "armor_optimization": "Armor optimization",
    "exotic_utilization": "Exotic utilization",
}

AXIS_ADVICE = {
    "stat_optimization": "Push priority stats to exact tier boundaries",
    "synergy_strength": "Pick mods and subclass pieces that share triggers",
    "activity_fit": "Raise the stats this activity expects",
    "weapon_synergy": "Use weapon types favored in this activity and match the subclass element",
    "armor_optimization": "Fill every armor slot with pieces weighted toward the archetype stats",
    "exotic_utilization": "Equip one exotic per group that suits the activity",
}


class CompositeScorer:
    """Build → ScoreReport. 상태 없음: 같은 입력이면 같은 결과."""

    def __init__(
        self, tables: ScoringTables, breakpoints: Optional[BreakpointTable] = None
    ) -> None:
        self._tables = tables
        self._breakpoints = breakpoints

    def axis_scores(
        self, build: Build, intent: BuildIntent, archetype: Archetype
    ) -> dict[str, float]:
        focus = intent.priority_stats or archetype.stats
        return {
            "stat_optimization": axes.stat_optimization(build.stats, focus),
            "synergy_strength": axes.synergy_strength(
                build.synergies, self._tables.synergy_points
            ),
            "activity_fit": axes.activity_fit(
                build.stats, self._tables.thresholds_for(build.activity)
            ),
            "weapon_synergy": axes.weapon_synergy(build, self._tables),
            "armor_optimization": axes.armor_optimization(build, archetype),
            "exotic_utilization": axes.exotic_utilization(build, self._tables),
        }

    def score(self, build: Build, intent: BuildIntent, archetype: Archetype) -> ScoreReport:
        scores = self.axis_scores(build, intent, archetype)
        weights = self._tables.weights_for(build.activity)

        total_weight = sum(weights[axis] for axis in AXES)
        if total_weight > 0:
            overall = round(sum(scores[axis] * weights[axis] for axis in AXES) / total_weight)
        else:
            overall = 0
        overall = max(0, min(100, overall))

        strengths: list[str] = []
        weaknesses: list[str] = []
        recommendations: list[str] = []

        for axis in AXES:
            value = scores[axis]
            label = AXIS_LABELS[axis]
            if value >= self._tables.strength_threshold:
                strengths.append(f"{label}: {value:.0f}")
            threshold = self._tables.thresholds.get(axis, 0)
            if value < threshold:
                weaknesses.append(f"{label} {value:.0f} is below {threshold:.0f}")
                recommendations.append(AXIS_ADVICE[axis])

        for conflict in build.conflicts:
            weaknesses.append(f"Conflict: {conflict.description}")
            recommendations.append(f"Resolve {conflict.conflict_id.replace('_', ' ')}")

        for slot in build.empty_slots():
            weaknesses.append(f"No item equipped in {slot.value}")
            recommendations.append(f"Acquire a {slot.value} item to fill the empty slot")

        for diagnostic in build.diagnostics:
            if diagnostic.kind == DiagnosticKind.INFEASIBLE_CONSTRAINT:
                weaknesses.append(diagnostic.message)
                recommendations.append("Lower the requested stat value or relax other locks")

        suggestions = ()
        if self._breakpoints is not None:
            focus = intent.priority_stats or archetype.stats
            suggestions = tuple(self._breakpoints.breakpoint_suggestions(build.stats, focus))
            for s in suggestions:
                recommendations.append(
                    f"Add {s.points_needed} {s.channel.value} to reach {s.target} ({s.effect})"
                )

        logger.debug("Scored %s: %d (%s)", build.name, overall, scores)
        return ScoreReport(
            axes=scores,
            weights=weights,
            overall_score=overall,
            grade=grade_for(overall),
            strengths=tuple(strengths),
            weaknesses=tuple(weaknesses),
            recommendations=tuple(recommendations),
            breakpoint_suggestions=suggestions,
        )
