from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional, Union

from .analyzer import ContentAnalyzer
from .config import ModerationConfig
from .errors import InvalidInputError
from .models import AnalysisResult
from .reader import LineSource, read_lines
from .splitter import ChapterSplitter

logger = logging.getLogger(__name__)


class ModerationService:
    """
    Single-call moderation API: reader -> splitter -> analyzer.

    The service only holds the immutable config and the stateless splitter
    and analyzer built from it, so one instance can be shared freely between
    threads.

    Example::

        service = ModerationService()
        result = service.analyze_file(Path("novel.txt"))
        print(result.flagged_rate_percent)
    """

    def __init__(self, config: Optional[ModerationConfig] = None):
        self.config = config or ModerationConfig.defaults()
        self.splitter = ChapterSplitter(self.config)
        self.analyzer = ContentAnalyzer(self.config)

    def analyze_file(self, path: Union[str, os.PathLike]) -> AnalysisResult:
        file_path = Path(path)
        if not file_path.exists():
            raise InvalidInputError(f"File not found: {file_path}")
        if not file_path.is_file():
            raise InvalidInputError(f"Not a regular file: {file_path}")

        source = read_lines(file_path, self.config.target_charset)
        source.open_check()
        logger.info("Analyzing %s", file_path)
        return self._run(source)

    def analyze_text(self, text: str) -> AnalysisResult:
        if not text or not text.strip():
            raise InvalidInputError("Text must not be empty")
        return self._run(read_lines(text))

    def analyze_bytes(self, data: bytes) -> AnalysisResult:
        if not data:
            raise InvalidInputError("Content must not be empty")
        source = read_lines(data, self.config.target_charset)
        if not any(True for _ in source):
            raise InvalidInputError("Content must not be blank")
        return self._run(source)

    def _run(self, source: LineSource) -> AnalysisResult:
        chapters = self.splitter.split(source)
        result = self.analyzer.analyze(chapters)
        logger.debug("Analysis finished: %s", result)
        return result
