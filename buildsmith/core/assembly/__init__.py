"""빌드 조립 Core: 서브클래스, 무기, 방어구, 모드"""

from .assembler import BuildAssembler
from .models import (
    Build,
    CandidateScore,
    ChosenMod,
    Diagnostic,
    DiagnosticKind,
    SlotAssignment,
    SubclassConfig,
)
from .weapons import score_weapon

__all__ = [
    "Build",
    "BuildAssembler",
    "CandidateScore",
    "ChosenMod",
    "Diagnostic",
    "DiagnosticKind",
    "SlotAssignment",
    "SubclassConfig",
    "score_weapon",
]
