"""종합 점수 결과 모델"""

from __future__ import annotations

from dataclasses import dataclass

from buildsmith.core.stats.models import BreakpointSuggestion

GRADE_CUTOFFS: tuple[tuple[int, str], ...] = (
    (90, "S"),
    (80, "A"),
    (70, "B"),
    (60, "C"),
    (50, "D"),
)


def grade_for(overall: int) -> str:
    for cutoff, grade in GRADE_CUTOFFS:
        if overall >= cutoff:
            return grade
    return "F"


@dataclass(frozen=True)
class ScoreReport:
    """6개 축 점수 + 가중 종합 점수 + 설명"""

    axes: dict[str, float]
    weights: dict[str, float]
    overall_score: int
    grade: str
    strengths: tuple[str, ...] = ()
    weaknesses: tuple[str, ...] = ()
    recommendations: tuple[str, ...] = ()
    breakpoint_suggestions: tuple[BreakpointSuggestion, ...] = ()

    def to_dict(self) -> dict:
        return {
            "overall_score": self.overall_score,
            "grade": self.grade,
            "axes": {axis: round(score, 2) for axis, score in self.axes.items()},
            "weights": dict(self.weights),
            "strengths": list(self.strengths),
            "weaknesses": list(self.weaknesses),
            "recommendations": list(self.recommendations),
            "breakpoint_suggestions": [s.to_dict() for s in self.breakpoint_suggestions],
        }
