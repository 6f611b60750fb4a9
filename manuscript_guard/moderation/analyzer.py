from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import List, Sequence, Tuple

from .config import ModerationConfig
from .models import AnalysisResult, Chapter, ChapterAnalysis, ChapterQuickScore

logger = logging.getLogger(__name__)


class ContentAnalyzer:
    """
    Scores chapters against the severity-weighted pattern lists.

    A line scores ``weight * occurrences`` summed over every pattern of every
    level. Only lines reaching ``line_score_threshold`` are flagged and count
    toward the chapter score; the rest are treated as noise. Chapters are
    scored independently, so large documents may be scored on a thread pool.
    The analyzer holds no mutable state and can be shared between threads.
    """

    def __init__(self, config: ModerationConfig):
        self.config = config
        self._patterns = config.compiled

    def score_line(self, line: str) -> float:
        cleaned = self._patterns.noise.sub("", line)
        if not cleaned.strip():
            return 0.0
        score = 0
        for level, pattern in self._patterns.severity:
            occurrences = sum(1 for match in pattern.finditer(cleaned) if match.end() > match.start())
            score += level.weight * occurrences
        return float(score)

    def analyze_chapter(self, chapter: Chapter) -> ChapterAnalysis:
        score = 0.0
        flagged: List[str] = []
        for line in chapter.lines:
            line_score = self.score_line(line)
            if line_score >= self.config.line_score_threshold and line_score > 0:
                score += line_score
                flagged.append(line)
        flagged_count = len(flagged)
        limit = self.config.explain_flagged_lines_limit
        if limit:
            flagged = flagged[:limit]
        return ChapterAnalysis(
            index=chapter.index,
            title=chapter.title,
            score=score,
            flagged_lines=tuple(flagged),
            flagged_threshold=self.config.chapter_score_threshold,
            flagged_lines_count=flagged_count,
        )

    def analyze_chapter_quick(self, lines: Sequence[str]) -> ChapterQuickScore:
        """Score a bare list of lines without keeping the flagged text."""
        score = 0.0
        flagged_count = 0
        for line in lines:
            line_score = self.score_line(line)
            if line_score >= self.config.line_score_threshold and line_score > 0:
                score += line_score
                flagged_count += 1
        return ChapterQuickScore(
            score=score,
            flagged_lines_count=flagged_count,
            is_flagged=score >= self.config.chapter_score_threshold,
        )

    def analyze(self, chapters: Sequence[Chapter]) -> AnalysisResult:
        if not chapters:
            return AnalysisResult.empty()

        analyses = self._analyze_all(chapters)

        total_score = sum(analysis.score for analysis in analyses)
        details = tuple(analysis for analysis in analyses if analysis.is_flagged)
        total_chapters = len(chapters)
        flagged_chapters = len(details)

        return AnalysisResult(
            total_score=total_score,
            flagged_chapters=flagged_chapters,
            total_chapters=total_chapters,
            flagged_rate=flagged_chapters / total_chapters if total_chapters else 0.0,
            total_characters=sum(chapter.character_count for chapter in chapters),
            summary=self.build_summary(chapters),
            details=details,
        )

    def build_summary(self, chapters: Sequence[Chapter]) -> str:
        max_length = self.config.summary_max_length
        parts: List[str] = []
        length = 0
        for chapter in chapters:
            for line in chapter.lines:
                if length >= max_length:
                    return "".join(parts)[:max_length]
                parts.append(line)
                length += len(line)
        return "".join(parts)[:max_length]

    def _analyze_all(self, chapters: Sequence[Chapter]) -> Tuple[ChapterAnalysis, ...]:
        if self._should_parallelize(len(chapters)):
            logger.debug("Scoring %s chapters in parallel", len(chapters))
            with ThreadPoolExecutor(max_workers=self.config.max_workers) as pool:
                # map() yields in submission order, which keeps chapter order.
                return tuple(pool.map(self.analyze_chapter, chapters))
        return tuple(self.analyze_chapter(chapter) for chapter in chapters)

    def _should_parallelize(self, chapter_count: int) -> bool:
        return (
            self.config.parallel_chapter_analysis
            and chapter_count > 1
            and chapter_count >= self.config.parallel_chapter_min_count
        )
