from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Tuple


class SeverityLevel(str, Enum):
    MILD = "mild"
    MODERATE = "moderate"
    SEVERE = "severe"

    @property
    def weight(self) -> int:
        return _SEVERITY_WEIGHTS[self]


_SEVERITY_WEIGHTS = {
    SeverityLevel.MILD: 1,
    SeverityLevel.MODERATE: 2,
    SeverityLevel.SEVERE: 3,
}


@dataclass(frozen=True)
class Chapter:
    index: int
    title: str
    lines: Tuple[str, ...] = ()

    @property
    def character_count(self) -> int:
        return sum(len(line) for line in self.lines)


@dataclass(frozen=True)
class ChapterAnalysis:
    index: int
    title: str
    score: float
    flagged_lines: Tuple[str, ...]
    flagged_threshold: float
    # Every line that met the line threshold, even when flagged_lines is capped.
    flagged_lines_count: int = 0

    @property
    def is_flagged(self) -> bool:
        return self.score >= self.flagged_threshold

    def to_dict(self) -> Dict[str, Any]:
        return {
            "index": self.index,
            "title": self.title,
            "score": self.score,
            "flaggedLines": list(self.flagged_lines),
            "flaggedLinesCount": self.flagged_lines_count,
            "isFlagged": self.is_flagged,
        }


@dataclass(frozen=True)
class ChapterQuickScore:
    score: float
    flagged_lines_count: int
    is_flagged: bool


@dataclass(frozen=True)
class AnalysisResult:
    total_score: float
    flagged_chapters: int
    total_chapters: int
    flagged_rate: float
    total_characters: int
    summary: str
    details: Tuple[ChapterAnalysis, ...] = field(default_factory=tuple)

    @classmethod
    def empty(cls) -> "AnalysisResult":
        return cls(
            total_score=0.0,
            flagged_chapters=0,
            total_chapters=0,
            flagged_rate=0.0,
            total_characters=0,
            summary="",
        )

    @property
    def flagged_rate_percent(self) -> str:
        return "%.1f%%" % (self.flagged_rate * 100)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalScore": self.total_score,
            "flaggedChapters": self.flagged_chapters,
            "totalChapters": self.total_chapters,
            "flaggedRate": self.flagged_rate,
            "totalCharacters": self.total_characters,
            "summary": self.summary,
            "details": [detail.to_dict() for detail in self.details],
        }

    def __str__(self) -> str:
        summary = self.summary if len(self.summary) <= 50 else self.summary[:50] + "..."
        return (
            f"AnalysisResult(totalScore={self.total_score}, "
            f"flaggedChapters={self.flagged_chapters}, "
            f"totalChapters={self.total_chapters}, "
            f"flaggedRate={self.flagged_rate_percent}, "
            f"totalCharacters={self.total_characters}, "
            f"summary='{summary}', "
            f"detailCount={len(self.details)})"
        )


@dataclass
class CacheItem:
    chapter_index: int
    chapter_title: str
    score: float
    flagged_lines_count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "chapterIndex": self.chapter_index,
            "chapterTitle": self.chapter_title,
            "score": self.score,
            "flaggedLinesCount": self.flagged_lines_count,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CacheItem":
        return cls(
            chapter_index=int(data["chapterIndex"]),
            chapter_title=str(data["chapterTitle"]),
            score=float(data["score"]),
            flagged_lines_count=int(data["flaggedLinesCount"]),
        )


def _now_millis() -> int:
    return int(time.time() * 1000)


@dataclass
class CachePayload:
    checked_chapters: int
    skipped_chapters: int
    flagged_items: List[CacheItem] = field(default_factory=list)
    updated_at: int = field(default_factory=_now_millis)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "checkedChapters": self.checked_chapters,
            "skippedChapters": self.skipped_chapters,
            "flaggedItems": [item.to_dict() for item in self.flagged_items],
            "updatedAt": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CachePayload":
        return cls(
            checked_chapters=int(data["checkedChapters"]),
            skipped_chapters=int(data["skippedChapters"]),
            flagged_items=[CacheItem.from_dict(item) for item in data.get("flaggedItems", [])],
            updated_at=int(data["updatedAt"]),
        )
