from __future__ import annotations

import codecs
import re
from dataclasses import dataclass, field
from functools import cached_property
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Pattern, Tuple

from .models import SeverityLevel
from .patterns import DEFAULT_AD_PATTERNS, DEFAULT_NOISE_PATTERN, DEFAULT_SEVERITY_PATTERNS


@dataclass(frozen=True)
class CompiledPatterns:
    ad: Tuple[Pattern[str], ...]
    severity: Tuple[Tuple[SeverityLevel, Pattern[str]], ...]
    noise: Pattern[str]


@dataclass(frozen=True)
class ModerationConfig:
    """
    Immutable settings for one moderation engine.

    Regular expressions are compiled lazily on first use and cached on the
    instance, so every splitter/analyzer sharing a config shares the same
    compiled patterns.
    """

    line_score_threshold: float = 2.0
    chapter_score_threshold: float = 3.5
    fallback_chunk_size: int = 20
    min_chapter_count: int = 5
    fallback_min_characters: int = 10_000
    target_charset: str = "utf-8"
    summary_max_length: int = 200
    ad_patterns: Tuple[str, ...] = DEFAULT_AD_PATTERNS
    # Read-only mapping; not part of the hash.
    severity_patterns: Mapping[SeverityLevel, Tuple[str, ...]] = field(
        default_factory=lambda: dict(DEFAULT_SEVERITY_PATTERNS), hash=False
    )
    noise_pattern: Optional[str] = DEFAULT_NOISE_PATTERN
    parallel_chapter_analysis: bool = True
    parallel_chapter_min_count: int = 8
    max_workers: Optional[int] = None
    explain_flagged_lines_limit: int = 0

    def __post_init__(self) -> None:
        for name in ("line_score_threshold", "chapter_score_threshold"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be non-negative")
        for name in (
            "min_chapter_count",
            "fallback_min_characters",
            "summary_max_length",
            "parallel_chapter_min_count",
            "explain_flagged_lines_limit",
        ):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be non-negative")
        if self.fallback_chunk_size < 1:
            raise ValueError("fallback_chunk_size must be at least 1")
        if self.max_workers is not None and self.max_workers < 1:
            raise ValueError("max_workers must be at least 1 when set")
        try:
            codecs.lookup(self.target_charset)
        except LookupError as exc:
            raise ValueError(f"Unknown charset: {self.target_charset}") from exc
        # Lists and dicts are accepted for convenience but stored read-only.
        object.__setattr__(self, "ad_patterns", tuple(self.ad_patterns))
        object.__setattr__(
            self,
            "severity_patterns",
            MappingProxyType(
                {SeverityLevel(level): tuple(regexes) for level, regexes in self.severity_patterns.items()}
            ),
        )
        # Fail at construction rather than on the first document.
        try:
            self.compiled
        except re.error as exc:
            raise ValueError(f"Invalid pattern in moderation config: {exc}") from exc

    @classmethod
    def defaults(cls) -> "ModerationConfig":
        return cls()

    @cached_property
    def compiled(self) -> CompiledPatterns:
        severity = []
        for level in SeverityLevel:
            for regex in self.severity_patterns.get(level, ()):
                severity.append((level, re.compile(regex)))
        return CompiledPatterns(
            ad=tuple(re.compile(regex, re.IGNORECASE) for regex in self.ad_patterns),
            severity=tuple(severity),
            noise=re.compile(self.noise_pattern or r"(?!)"),
        )

    def to_dict(self) -> Dict[str, object]:
        return {
            "lineScoreThreshold": self.line_score_threshold,
            "chapterScoreThreshold": self.chapter_score_threshold,
            "fallbackChunkSize": self.fallback_chunk_size,
            "minChapterCount": self.min_chapter_count,
            "fallbackMinCharacters": self.fallback_min_characters,
            "targetCharset": self.target_charset,
            "summaryMaxLength": self.summary_max_length,
            "adPatterns": list(self.ad_patterns),
        }
