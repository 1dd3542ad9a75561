"""자유 텍스트 → BuildIntent

규칙 (독립 적용 후 병합):
1. 아이템 이름 언급 → 잠금 아이템 (가장 긴 이름 우선), 해당 구간은 이후 매칭에서 제외
2. 키워드 매칭: 대소문자 무시, 단어 단위 (복수형 s/es 허용). 겹치면 긴 키워드 우선
3. "<정수> <스탯명>" → 수치 제약 (원문 그대로, 클램프 없음)
4. confidence = 0.5 + 밀도 보너스 + 빌드 요청 문구 + 수치 제약 − 길이 페널티

예외를 던지지 않는다. 모호하면 confidence를 낮추고 기본값을 쓴다.
"""

from __future__ import annotations

import logging
import re
from typing import Optional

from buildsmith.core.catalog.index import CatalogIndex
from buildsmith.core.catalog.models import ClassType, Element
from buildsmith.core.stats.models import StatChannel

from .keywords import KeywordEntry, KeywordTable
from .models import (
    DEFAULT_ACTIVITY,
    DEFAULT_ELEMENT,
    DEFAULT_PLAYSTYLE,
    BuildIntent,
    BuildOptions,
)

logger = logging.getLogger(__name__)

BASE_CONFIDENCE = 0.5
DENSITY_FACTOR = 0.5
DENSITY_CAP = 0.25
BUILD_PHRASE_BONUS = 0.1
NUMERIC_BONUS = 0.05
LENGTH_PENALTY = 0.2
MIN_LENGTH = 10
MAX_LENGTH = 200

LOW_CONFIDENCE = 0.5
MAX_WEAPON_TYPES = 3
PVP_ACTIVITIES = ("pvp", "trials")
ENDGAME_PVE_ACTIVITIES = ("raid", "dungeon", "nightfall")

WORD_PATTERN = re.compile(r"\w+")
# "arc"가 "archetype"에 걸리지 않도록 단어 끝까지 고정
KEYWORD_SUFFIX = r"(?:s|es)?\b"


class IntentParser:
    """요청 텍스트 파서. 카탈로그/키워드 테이블 읽기 전용."""

    def __init__(self, keywords: KeywordTable, catalog: Optional[CatalogIndex] = None) -> None:
        self._keywords = keywords
        self._catalog = catalog
        self._stat_pattern = self._compile_stat_pattern()

    def _compile_stat_pattern(self) -> Optional[re.Pattern]:
        names = sorted(
            {e.keyword for e in self._keywords.entries() if e.category == "stat"},
            key=lambda k: (-len(k), k),
        )
        if not names:
            return None
        alternation = "|".join(re.escape(n) for n in names)
        return re.compile(r"\b(\d+)\s+(" + alternation + r")\b", re.IGNORECASE)

    # === 파싱 ===

    def parse(self, text: Optional[str], options: Optional[BuildOptions] = None) -> BuildIntent:
        text = text if isinstance(text, str) else ""
        options = options or BuildOptions()
        lowered = text.lower()

        # 잠금 아이템
        locked: list[str] = []
        if options.locked_item_id:
            locked.append(options.locked_item_id)
        masked = lowered
        if self._catalog is not None:
            for start, end, item_id in self._catalog.find_mention_spans(text):
                if item_id not in locked:
                    locked.append(item_id)
                masked = masked[:start] + " " * (end - start) + masked[end:]

        # 키워드
        hits = self._match_keywords(masked)
        by_category: dict[str, list[str]] = {}
        for _, entry in hits:
            values = by_category.setdefault(entry.category, [])
            if entry.value not in values:
                values.append(entry.value)

        # 수치 제약
        numeric: dict[StatChannel, int] = {}
        if self._stat_pattern is not None:
            stat_lookup = {
                e.keyword: e.value for e in self._keywords.entries() if e.category == "stat"
            }
            for match in self._stat_pattern.finditer(masked):
                channel = StatChannel(stat_lookup[match.group(2).lower()])
                numeric.setdefault(channel, int(match.group(1)))

        priority: list[StatChannel] = list(numeric)
        for value in by_category.get("stat", []):
            channel = StatChannel(value)
            if channel not in priority:
                priority.append(channel)

        matched = tuple(f"{entry.category}:{entry.value}" for _, entry in hits)
        matched = tuple(dict.fromkeys(matched))

        activity = self._first(by_category, "activity", DEFAULT_ACTIVITY)
        element = self._first(by_category, "element", DEFAULT_ELEMENT)
        class_value = self._first(by_category, "class", ClassType.ANY.value)

        activity = self._option_override("activity", options.activity, activity, self._known_activities())
        element = self._option_override(
            "element", options.element, element, [e.value for e in Element] + [DEFAULT_ELEMENT]
        )
        class_value = self._option_override(
            "class_type", options.class_type, class_value, [c.value for c in ClassType]
        )

        confidence = self._confidence(text, lowered, len(matched), bool(numeric))

        intent = BuildIntent(
            raw_text=text,
            target_class=ClassType(class_value),
            element=element,
            activity=activity,
            playstyle=self._first(by_category, "playstyle", DEFAULT_PLAYSTYLE),
            priority_stats=tuple(priority),
            numeric_constraints=numeric,
            locked_items=tuple(locked),
            use_inventory_only=options.use_inventory_only,
            inventory_item_ids=tuple(options.inventory_item_ids),
            weapon_types=tuple(by_category.get("weapon_type", [])),
            matched_keywords=matched,
            confidence=confidence,
            include_alternatives=options.include_alternatives,
        )
        logger.debug(
            "Parsed intent: activity=%s playstyle=%s confidence=%.2f",
            intent.activity,
            intent.playstyle,
            intent.confidence,
        )
        return intent

    def _match_keywords(self, masked: str) -> list[tuple[int, KeywordEntry]]:
        """겹치지 않는 키워드 매칭 (위치 순). 긴 키워드 우선."""
        spans: list[tuple[int, int, KeywordEntry]] = []
        for entry in self._keywords.entries():
            pattern = r"\b" + re.escape(entry.keyword) + KEYWORD_SUFFIX
            for m in re.finditer(pattern, masked):
                spans.append((m.start(), m.end(), entry))

        spans.sort(key=lambda s: (-(s[1] - s[0]), s[0], s[2].category, s[2].value))
        taken: list[tuple[int, int, KeywordEntry]] = []
        for start, end, entry in spans:
            if any(start < t_end and t_start < end for t_start, t_end, _ in taken):
                continue
            taken.append((start, end, entry))
        taken.sort(key=lambda s: (s[0], s[1]))
        return [(start, entry) for start, _, entry in taken]

    @staticmethod
    def _first(by_category: dict[str, list[str]], category: str, default: str) -> str:
        values = by_category.get(category)
        return values[0] if values else default

    def _known_activities(self) -> list[str]:
        return list(self._keywords.values("activity")) + [DEFAULT_ACTIVITY]

    @staticmethod
    def _option_override(name: str, option: Optional[str], parsed: str, allowed: list[str]) -> str:
        if not option:
            return parsed
        value = option.strip().lower()
        if value not in allowed:
            logger.warning("Ignoring unknown %s option: %s", name, option)
            return parsed
        return value

    def _confidence(self, text: str, lowered: str, matched_count: int, has_numeric: bool) -> float:
        words = WORD_PATTERN.findall(lowered)
        density = matched_count / len(words) if words else 0.0
        score = BASE_CONFIDENCE + min(DENSITY_CAP, density * DENSITY_FACTOR)
        phrases = self._keywords.build_phrases
        if any(re.search(r"\b" + re.escape(p) + KEYWORD_SUFFIX, lowered) for p in phrases):
            score += BUILD_PHRASE_BONUS
        if has_numeric:
            score += NUMERIC_BONUS
        if len(text.strip()) < MIN_LENGTH or len(text) > MAX_LENGTH:
            score -= LENGTH_PENALTY
        return round(max(0.0, min(1.0, score)), 4)

    # === 검증 ===

    def validate(self, intent: BuildIntent) -> list[str]:
        """모순/모호한 요청 경고."""
        warnings: list[str] = []
        activities = [
            k.split(":", 1)[1] for k in intent.matched_keywords if k.startswith("activity:")
        ]
        if any(a in PVP_ACTIVITIES for a in activities) and any(
            a in ENDGAME_PVE_ACTIVITIES for a in activities
        ):
            warnings.append(
                "Request mixes player-versus-player and endgame PvE activities; "
                f"optimizing for {intent.activity}"
            )
        if intent.confidence < LOW_CONFIDENCE:
            warnings.append("Request is vague; defaults were used for unspecified fields")
        if len(intent.weapon_types) > MAX_WEAPON_TYPES:
            warnings.append(
                f"{len(intent.weapon_types)} weapon types requested; only three weapon slots exist"
            )
        return warnings
