"""
Moderation subsystem exports.
"""

from .analyzer import ContentAnalyzer
from .cache import (
    InMemoryKeyValueStore,
    KeyValueStore,
    ModerationCacheStore,
    RedisKeyValueStore,
    SqlAlchemyKeyValueStore,
    build_cache_key,
)
from .config import ModerationConfig
from .errors import InvalidInputError, ModerationError
from .job_queue import RQJobQueue, WorkerConfig, run_moderation_job
from .models import (
    AnalysisResult,
    CacheItem,
    CachePayload,
    Chapter,
    ChapterAnalysis,
    ChapterQuickScore,
    SeverityLevel,
)
from .reader import LineSource, read_lines
from .service import ModerationService
from .splitter import AdFilter, ChapterSplitter
from .storage import LocalManuscriptStorage, StoragePaths, build_book_id
from .worker import ModerationWorker, TocChapter, payload_from_result

__all__ = [
    "AdFilter",
    "AnalysisResult",
    "CacheItem",
    "CachePayload",
    "Chapter",
    "ChapterAnalysis",
    "ChapterQuickScore",
    "ChapterSplitter",
    "ContentAnalyzer",
    "InMemoryKeyValueStore",
    "InvalidInputError",
    "KeyValueStore",
    "LineSource",
    "LocalManuscriptStorage",
    "ModerationCacheStore",
    "ModerationConfig",
    "ModerationError",
    "ModerationService",
    "ModerationWorker",
    "RQJobQueue",
    "RedisKeyValueStore",
    "SeverityLevel",
    "SqlAlchemyKeyValueStore",
    "StoragePaths",
    "TocChapter",
    "WorkerConfig",
    "build_book_id",
    "build_cache_key",
    "payload_from_result",
    "read_lines",
    "run_moderation_job",
]
