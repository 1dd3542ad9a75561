"""방어구 아키타입 Core"""

from .models import (
    Archetype,
    ArchetypeRecommendation,
    ArchetypeScore,
    Feasibility,
    FeasibilityConstraints,
)
from .selector import ArchetypeSelector

__all__ = [
    "Archetype",
    "ArchetypeRecommendation",
    "ArchetypeScore",
    "ArchetypeSelector",
    "Feasibility",
    "FeasibilityConstraints",
]
