from __future__ import annotations

import logging
from typing import Iterable, List, Pattern, Sequence

from .config import ModerationConfig
from .models import Chapter
from .patterns import EXCLUDE_HEADING_PATTERNS, MAIN_HEADING_PATTERNS, heading_title, split_patterns

logger = logging.getLogger(__name__)


def _fullmatch_any(line: str, patterns: Sequence[Pattern[str]]) -> bool:
    return any(pattern.fullmatch(line) for pattern in patterns)


def _search_any(line: str, patterns: Sequence[Pattern[str]]) -> bool:
    return any(pattern.search(line) for pattern in patterns)


class AdFilter:
    """
    Drops advertising and boilerplate lines (promo notices, copyright lines,
    separator rules). Every pattern is applied, case-insensitively.
    """

    def __init__(self, config: ModerationConfig):
        self.patterns = config.compiled.ad

    def is_ad(self, line: str) -> bool:
        return _search_any(line, self.patterns)

    def filter(self, lines: Iterable[str]) -> List[str]:
        return [line for line in lines if not self.is_ad(line)]


class ChapterSplitter:
    """
    Partitions a line sequence into chapters.

    Headings are found in two passes: every main heading pattern is counted
    over the document and only the most frequent one (plus the side-story
    patterns) is used for the split. When too few headings turn up the
    document is cut into fixed-size "Part N" chunks instead.
    """

    def __init__(self, config: ModerationConfig):
        self.config = config
        self.ad_filter = AdFilter(config)

    def split(self, lines: Iterable[str]) -> List[Chapter]:
        all_lines = list(lines)
        if not all_lines:
            return []

        is_ad = [self.ad_filter.is_ad(line) for line in all_lines]
        kept_chars = sum(len(line) for line, ad in zip(all_lines, is_ad) if not ad)

        candidates = [
            i
            for i, line in enumerate(all_lines)
            if not is_ad[i] and not _search_any(line, EXCLUDE_HEADING_PATTERNS)
        ]
        best_main = self._detect_best_main_pattern(all_lines[i] for i in candidates)
        patterns = split_patterns(best_main)
        headings = [i for i in candidates if _fullmatch_any(all_lines[i], patterns)]

        if self._needs_fallback(len(headings), kept_chars):
            logger.info(
                "Falling back to %s-line chunks (%s headings found, %s characters)",
                self.config.fallback_chunk_size,
                len(headings),
                kept_chars,
            )
            return self._fallback_split(all_lines, is_ad)

        chapters = self._split_on_headings(all_lines, is_ad, headings)
        logger.debug("Split %s lines into %s chapters", len(all_lines), len(chapters))
        return chapters

    def _needs_fallback(self, heading_count: int, kept_chars: int) -> bool:
        if heading_count >= self.config.min_chapter_count:
            return False
        return heading_count == 0 or kept_chars >= self.config.fallback_min_characters

    def _detect_best_main_pattern(self, lines: Iterable[str]) -> int:
        counts = [0] * len(MAIN_HEADING_PATTERNS)
        for line in lines:
            for i, pattern in enumerate(MAIN_HEADING_PATTERNS):
                if pattern.fullmatch(line):
                    counts[i] += 1
        best_index, best_count = -1, 0
        for i, count in enumerate(counts):
            if count > best_count:
                best_index, best_count = i, count
        return best_index

    def _split_on_headings(
        self,
        lines: List[str],
        is_ad: List[bool],
        headings: List[int],
    ) -> List[Chapter]:
        chapters: List[Chapter] = []
        boundaries = headings + [len(lines)]

        first = headings[0] if headings else len(lines)
        leading = [line for line, ad in zip(lines[:first], is_ad[:first]) if not ad]
        if leading:
            chapters.append(Chapter(index=0, title=leading[0], lines=tuple(leading)))

        for start, end in zip(boundaries, boundaries[1:]):
            body = tuple(lines[i] for i in range(start, end) if not is_ad[i])
            chapters.append(Chapter(index=len(chapters), title=heading_title(lines[start]), lines=body))
        return chapters

    def _fallback_split(self, lines: List[str], is_ad: List[bool]) -> List[Chapter]:
        size = self.config.fallback_chunk_size
        chapters: List[Chapter] = []
        for number, start in enumerate(range(0, len(lines), size), start=1):
            body = tuple(lines[i] for i in range(start, min(start + size, len(lines))) if not is_ad[i])
            chapters.append(Chapter(index=number - 1, title=f"Part {number}", lines=body))
        return chapters

