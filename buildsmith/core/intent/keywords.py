"""의도 키워드 테이블: intent_keywords.json 로드"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path

from buildsmith.core.errors import ConfigurationError

logger = logging.getLogger(__name__)

CATEGORIES = ("class", "activity", "element", "playstyle", "weapon_type", "stat")


@dataclass(frozen=True)
class KeywordEntry:
    category: str  # CATEGORIES 중 하나
    value: str  # 정규화 값 ("raid", "rocket_launcher", ...)
    keyword: str  # 소문자 매칭 문자열


class KeywordTable:
    """카테고리별 키워드 → 값 매핑. 로드 후 불변."""

    def __init__(self) -> None:
        self.build_phrases: tuple[str, ...] = ()
        self._entries: list[KeywordEntry] = []
        self._values: dict[str, tuple[str, ...]] = {c: () for c in CATEGORIES}

    def load_from_json(self, path: str | Path) -> int:
        """intent_keywords.json 로드. 반환: 키워드 수."""
        path = Path(path)
        try:
            with path.open("r", encoding="utf-8") as f:
                raw = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"Cannot read keyword table {path}: {e}") from e
        return self.load_from_dict(raw)

    def load_from_dict(self, raw: dict) -> int:
        self.build_phrases = tuple(p.lower() for p in raw.get("build_phrases", []))
        for category in CATEGORIES:
            mapping = raw.get(category, {})
            if not isinstance(mapping, dict):
                logger.warning("Keyword category %s is not a mapping: skipped", category)
                continue
            self._values[category] = tuple(mapping)
            for value, keywords in mapping.items():
                for keyword in keywords:
                    self._entries.append(
                        KeywordEntry(category=category, value=value, keyword=keyword.lower())
                    )

        logger.info("Loaded %d intent keywords", len(self._entries))
        return len(self._entries)

    def entries(self) -> list[KeywordEntry]:
        return list(self._entries)

    def values(self, category: str) -> tuple[str, ...]:
        """카테고리의 알려진 값 (선언 순서)."""
        return self._values.get(category, ())
