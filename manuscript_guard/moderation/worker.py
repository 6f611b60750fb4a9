from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional, Sequence, Tuple

from .cache import ModerationCacheStore
from .models import AnalysisResult, CacheItem, CachePayload
from .reader import read_lines
from .service import ModerationService
from .storage import LocalManuscriptStorage, build_book_id

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TocChapter:
    index: int
    title: str
    content: Optional[str]


def payload_from_result(result: AnalysisResult) -> CachePayload:
    return CachePayload(
        checked_chapters=result.total_chapters,
        skipped_chapters=0,
        flagged_items=[
            CacheItem(
                chapter_index=detail.index,
                chapter_title=detail.title,
                score=detail.score,
                flagged_lines_count=detail.flagged_lines_count,
            )
            for detail in result.details
        ],
    )


class ModerationWorker:
    """
    Caller-level wrapper that consults the cache before running the engine
    and stores what it computes. Two entry points:

    - ``run_document`` analyses a whole manuscript file with the facade;
    - ``run_toc`` quick-scores already separated chapters (for books whose
      table of contents is known), skipping chapters without content.

    The worker is stateless; all state lives in the cache and storage.
    """

    def __init__(
        self,
        service: ModerationService,
        cache: ModerationCacheStore,
        storage: Optional[LocalManuscriptStorage] = None,
        max_workers: Optional[int] = None,
    ):
        self.service = service
        self.cache = cache
        self.storage = storage
        self.max_workers = max_workers

    def run_document(
        self,
        book_name: str,
        author: str,
        path: Path,
        force_refresh: bool = False,
    ) -> CachePayload:
        if not force_refresh:
            cached = self.cache.get(book_name, author)
            if cached is not None:
                logger.info("Cache hit for %s / %s", book_name, author)
                return cached

        try:
            result = self.service.analyze_file(path)
        except Exception:
            logger.exception("Moderation failed for %s / %s (%s)", book_name, author, path)
            raise

        if self.storage is not None:
            self.storage.write_report(build_book_id(book_name, author), result.to_dict())

        payload = payload_from_result(result)
        self.cache.put(book_name, author, payload)
        return payload

    def run_toc(
        self,
        book_name: str,
        author: str,
        chapters: Iterable[TocChapter],
        force_refresh: bool = False,
    ) -> CachePayload:
        if not force_refresh:
            cached = self.cache.get(book_name, author)
            if cached is not None:
                logger.info("Cache hit for %s / %s", book_name, author)
                return cached

        chapter_list = list(chapters)
        if not chapter_list:
            payload = CachePayload(checked_chapters=0, skipped_chapters=0)
            self.cache.put(book_name, author, payload)
            return payload

        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            outcomes = list(pool.map(self._score_toc_chapter, chapter_list))

        checked = sum(1 for checked, _ in outcomes if checked)
        flagged = [item for _, item in outcomes if item is not None]
        payload = CachePayload(
            checked_chapters=checked,
            skipped_chapters=len(outcomes) - checked,
            flagged_items=flagged,
        )
        logger.info(
            "TOC review for %s / %s: %s checked, %s skipped, %s flagged",
            book_name,
            author,
            payload.checked_chapters,
            payload.skipped_chapters,
            len(flagged),
        )
        self.cache.put(book_name, author, payload)
        return payload

    def invalidate(self, book_name: str, author: str) -> None:
        self.cache.remove(book_name, author)

    def _score_toc_chapter(self, chapter: TocChapter) -> Tuple[bool, Optional[CacheItem]]:
        if not chapter.content or not chapter.content.strip():
            return False, None
        lines: Sequence[str] = read_lines(chapter.content).to_list()
        if not lines:
            return False, None

        quick = self.service.analyzer.analyze_chapter_quick(lines)
        if not quick.is_flagged:
            return True, None
        return True, CacheItem(
            chapter_index=chapter.index,
            chapter_title=chapter.title,
            score=quick.score,
            flagged_lines_count=quick.flagged_lines_count,
        )
