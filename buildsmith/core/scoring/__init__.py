"""Composite Scorer: 6축 점수 + 등급 + 설명"""

from .models import ScoreReport, grade_for
from .scorer import CompositeScorer

__all__ = ["CompositeScorer", "ScoreReport", "grade_for"]
