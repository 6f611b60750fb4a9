from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path

from manuscript_guard.moderation import (
    LocalManuscriptStorage,
    ModerationCacheStore,
    ModerationConfig,
    ModerationService,
    RQJobQueue,
    StoragePaths,
    WorkerConfig,
)
from manuscript_guard.moderation.job_queue import build_key_value_store


def _database_url() -> str:
    return os.getenv("DATABASE_URL", "sqlite+pysqlite:///./data/moderation.db")


def _redis_url() -> str:
    return os.getenv("REDIS_URL", "redis://localhost:6379/0")


@lru_cache(maxsize=1)
def get_config() -> ModerationConfig:
    defaults = ModerationConfig.defaults()
    return ModerationConfig(
        line_score_threshold=float(os.getenv("MODERATION_LINE_THRESHOLD", defaults.line_score_threshold)),
        chapter_score_threshold=float(os.getenv("MODERATION_CHAPTER_THRESHOLD", defaults.chapter_score_threshold)),
        fallback_chunk_size=int(os.getenv("MODERATION_FALLBACK_CHUNK_SIZE", defaults.fallback_chunk_size)),
        min_chapter_count=int(os.getenv("MODERATION_MIN_CHAPTER_COUNT", defaults.min_chapter_count)),
        fallback_min_characters=int(
            os.getenv("MODERATION_FALLBACK_MIN_CHARACTERS", defaults.fallback_min_characters)
        ),
        target_charset=os.getenv("MODERATION_CHARSET", defaults.target_charset),
        summary_max_length=int(os.getenv("MODERATION_SUMMARY_MAX_LENGTH", defaults.summary_max_length)),
    )


@lru_cache(maxsize=1)
def get_service() -> ModerationService:
    return ModerationService(get_config())


@lru_cache(maxsize=1)
def get_cache() -> ModerationCacheStore:
    backend = os.getenv("CACHE_BACKEND", "sql")
    return ModerationCacheStore(build_key_value_store(backend, _database_url(), _redis_url()))


@lru_cache(maxsize=1)
def get_storage() -> LocalManuscriptStorage:
    root = Path(os.getenv("MANUSCRIPT_STORAGE_ROOT", "./data"))
    return LocalManuscriptStorage(StoragePaths(root))



@lru_cache(maxsize=1)
def get_job_queue() -> RQJobQueue:
    return RQJobQueue(_redis_url(), queue_name=os.getenv("MODERATION_QUEUE", "moderation-jobs"))


def get_worker_config() -> WorkerConfig:
    return WorkerConfig.from_moderation_config(
        get_config(),
        cache_backend=os.getenv("CACHE_BACKEND", "sql"),
        database_url=_database_url(),
        redis_url=_redis_url(),
        storage_root=os.getenv("MANUSCRIPT_STORAGE_ROOT", "./data"),
    )
