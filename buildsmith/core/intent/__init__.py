"""빌드 의도 파서 Core"""

from .keywords import KeywordTable
from .models import BuildIntent, BuildOptions
from .parser import IntentParser

__all__ = [
    "BuildIntent",
    "BuildOptions",
    "IntentParser",
    "KeywordTable",
]
