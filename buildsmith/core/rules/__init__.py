"""시너지 & 트리거 규칙 베이스 Core"""

from .detection import BuildContext, DetectionRules
from .mining import active_entries, mine_item, mine_text
from .models import (
    ActiveEntry,
    ActivityRelevance,
    Conflict,
    DetectionKind,
    DetectionResult,
    EntryKind,
    PatternMatch,
    Resolution,
    StackingMode,
    StackResult,
    Strength,
    Synergy,
)
from .rulebook import RuleBase

__all__ = [
    "ActiveEntry",
    "ActivityRelevance",
    "BuildContext",
    "Conflict",
    "DetectionKind",
    "DetectionResult",
    "DetectionRules",
    "EntryKind",
    "PatternMatch",
    "Resolution",
    "RuleBase",
    "StackResult",
    "StackingMode",
    "Strength",
    "Synergy",
    "active_entries",
    "mine_item",
    "mine_text",
]
