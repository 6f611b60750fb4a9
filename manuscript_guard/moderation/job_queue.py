from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Tuple

from redis import Redis
from rq import Queue, Worker

from .cache import (
    InMemoryKeyValueStore,
    KeyValueStore,
    ModerationCacheStore,
    RedisKeyValueStore,
    SqlAlchemyKeyValueStore,
    build_cache_key,
)
from .config import ModerationConfig
from .patterns import DEFAULT_AD_PATTERNS, DEFAULT_NOISE_PATTERN
from .service import ModerationService
from .storage import LocalManuscriptStorage, StoragePaths
from .worker import ModerationWorker


@dataclass
class WorkerConfig:
    """
    Picklable settings shipped with every RQ job. The moderation fields
    mirror ``ModerationConfig`` so a queued job analyses exactly like the
    synchronous routes do.
    """

    cache_backend: str = "sql"
    database_url: str = "sqlite+pysqlite:///./data/moderation.db"
    redis_url: str = "redis://localhost:6379/0"
    storage_root: Optional[str] = None
    line_score_threshold: float = 2.0
    chapter_score_threshold: float = 3.5
    fallback_chunk_size: int = 20
    min_chapter_count: int = 5
    fallback_min_characters: int = 10_000
    target_charset: str = "utf-8"
    summary_max_length: int = 200
    ad_patterns: Tuple[str, ...] = DEFAULT_AD_PATTERNS
    # Level value ("mild", ...) -> regexes; None keeps the built-in lists.
    severity_patterns: Optional[Dict[str, Tuple[str, ...]]] = None
    noise_pattern: Optional[str] = DEFAULT_NOISE_PATTERN
    max_workers: Optional[int] = None

    @classmethod
    def from_moderation_config(cls, config: ModerationConfig, **backend) -> "WorkerConfig":
        return cls(
            line_score_threshold=config.line_score_threshold,
            chapter_score_threshold=config.chapter_score_threshold,
            fallback_chunk_size=config.fallback_chunk_size,
            min_chapter_count=config.min_chapter_count,
            fallback_min_characters=config.fallback_min_characters,
            target_charset=config.target_charset,
            summary_max_length=config.summary_max_length,
            ad_patterns=tuple(config.ad_patterns),
            severity_patterns={level.value: tuple(regexes) for level, regexes in config.severity_patterns.items()},
            noise_pattern=config.noise_pattern,
            max_workers=config.max_workers,
            **backend,
        )

    def moderation_config(self) -> ModerationConfig:
        options = {}
        if self.severity_patterns is not None:
            options["severity_patterns"] = self.severity_patterns
        return ModerationConfig(
            line_score_threshold=self.line_score_threshold,
            chapter_score_threshold=self.chapter_score_threshold,
            fallback_chunk_size=self.fallback_chunk_size,
            min_chapter_count=self.min_chapter_count,
            fallback_min_characters=self.fallback_min_characters,
            target_charset=self.target_charset,
            summary_max_length=self.summary_max_length,
            ad_patterns=self.ad_patterns,
            noise_pattern=self.noise_pattern,
            max_workers=self.max_workers,
            **options,
        )


def build_key_value_store(backend: str, database_url: str, redis_url: str) -> KeyValueStore:
    if backend == "memory":
        return InMemoryKeyValueStore()
    if backend == "sql":
        return SqlAlchemyKeyValueStore(database_url)
    if backend == "redis":
        return RedisKeyValueStore.from_url(redis_url)
    raise ValueError(f"Unknown cache backend: {backend}")


def build_worker(config: WorkerConfig) -> ModerationWorker:
    store = build_key_value_store(config.cache_backend, config.database_url, config.redis_url)
    storage = LocalManuscriptStorage(StoragePaths(Path(config.storage_root))) if config.storage_root else None
    return ModerationWorker(
        service=ModerationService(config.moderation_config()),
        cache=ModerationCacheStore(store),
        storage=storage,
        max_workers=config.max_workers,
    )


def run_moderation_job(
    book_name: str,
    author: str,
    source_path: str,
    config: WorkerConfig,
    force_refresh: bool = False,
) -> dict:
    """
    RQ task entrypoint. Creates all required components, moderates the
    manuscript and returns the cache payload as a plain dict.
    """
    worker = build_worker(config)
    payload = worker.run_document(book_name, author, Path(source_path), force_refresh=force_refresh)
    return payload.to_dict()


class RQJobQueue:
    """
    Redis-backed job queue using RQ. The queue pushes jobs to Redis and workers
    can be started by calling `work()` in a dedicated process.
    """

    def __init__(self, redis_url: str = "redis://localhost:6379/0", queue_name: str = "moderation-jobs"):
        self.redis = Redis.from_url(redis_url)
        self.queue = Queue(queue_name, connection=self.redis)

    def enqueue_moderation_job(
        self,
        book_name: str,
        author: str,
        source_path: str,
        config: WorkerConfig,
        force_refresh: bool = False,
    ):
        """
        Enqueue a moderation job. The RQ job id is the cache key, so the same
        book is never queued twice under different ids.
        """
        return self.queue.enqueue(
            run_moderation_job,
            book_name,
            author,
            source_path,
            config,
            force_refresh,
            job_id=build_cache_key(book_name, author),
        )

    def get_job_status(self, job_id: str) -> Optional[dict]:
        job = self.queue.fetch_job(job_id)
        if job is None:
            return None
        status = job.get_status()
        return {
            "id": job.id,
            "status": getattr(status, "value", status),
            "result": job.return_value(),
            "error": job.exc_info,
        }

    def work(self):
        worker = Worker([self.queue], connection=self.redis)
        worker.work(with_scheduler=True)
