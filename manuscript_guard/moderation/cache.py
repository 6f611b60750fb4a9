from __future__ import annotations

import hashlib
import json
import logging
from datetime import datetime
from typing import Dict, Optional

from redis import Redis
from sqlalchemy import Column, DateTime, String, Text, create_engine, delete
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from .models import CachePayload

logger = logging.getLogger(__name__)

Base = declarative_base()

KEY_SEPARATOR = "#"


class CacheEntryModel(Base):
    __tablename__ = "moderation_cache"
    key = Column(String, primary_key=True)
    value = Column(Text)
    updated_at = Column(DateTime)


class KeyValueStore:
    """
    Narrow string key-value boundary the moderation cache is written against.
    Any durable map (file, database, remote) can implement it. A single put is
    expected to be atomic for its key; nothing else is coordinated.
    """

    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def put(self, key: str, value: str) -> None:
        raise NotImplementedError

    def remove(self, key: str) -> None:
        raise NotImplementedError


class InMemoryKeyValueStore(KeyValueStore):
    """
    Dict-backed store for local runs and tests.
    """

    def __init__(self):
        self.entries: Dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self.entries.get(key)

    def put(self, key: str, value: str) -> None:
        self.entries[key] = value

    def remove(self, key: str) -> None:
        self.entries.pop(key, None)


class SqlAlchemyKeyValueStore(KeyValueStore):
    """
    SQL-backed store using SQLAlchemy. Works with SQLite/Postgres URLs.
    """

    def __init__(self, database_url: str):
        self.engine = create_engine(database_url, future=True)
        Base.metadata.create_all(self.engine)
        self.SessionLocal = sessionmaker(bind=self.engine, expire_on_commit=False, future=True)

    def _session(self) -> Session:
        return self.SessionLocal()

    def get(self, key: str) -> Optional[str]:
        with self._session() as session:
            model = session.get(CacheEntryModel, key)
            return model.value if model else None

    def put(self, key: str, value: str) -> None:
        with self._session() as session:
            session.merge(CacheEntryModel(key=key, value=value, updated_at=datetime.utcnow()))
            session.commit()

    def remove(self, key: str) -> None:
        with self._session() as session:
            session.execute(delete(CacheEntryModel).where(CacheEntryModel.key == key))
            session.commit()


class RedisKeyValueStore(KeyValueStore):
    """
    Redis-backed store. Accepts any redis-py compatible client; values are
    stored as UTF-8 strings under ``prefix + key``.
    """

    def __init__(self, client, prefix: str = "moderation:"):
        self.client = client
        self.prefix = prefix

    @classmethod
    def from_url(cls, redis_url: str, prefix: str = "moderation:") -> "RedisKeyValueStore":
        return cls(Redis.from_url(redis_url), prefix=prefix)

    def get(self, key: str) -> Optional[str]:
        raw = self.client.get(self.prefix + key)
        if raw is None:
            return None
        return raw.decode("utf-8") if isinstance(raw, bytes) else raw

    def put(self, key: str, value: str) -> None:
        self.client.set(self.prefix + key, value)

    def remove(self, key: str) -> None:
        self.client.delete(self.prefix + key)


def build_cache_key(book_name: str, author: str) -> str:
    """MD5 hex digest of ``book_name#author``; stable across processes."""
    identity = f"{book_name}{KEY_SEPARATOR}{author}"
    return hashlib.md5(identity.encode("utf-8")).hexdigest()


class ModerationCacheStore:
    """
    Memoizes moderation payloads per book identity. Staleness is the
    caller's concern; ``updated_at`` on the payload is there to decide it.
    """

    def __init__(self, store: KeyValueStore):
        self.store = store

    build_cache_key = staticmethod(build_cache_key)

    def get(self, book_name: str, author: str) -> Optional[CachePayload]:
        key = build_cache_key(book_name, author)
        raw = self.store.get(key)
        if raw is None:
            return None
        try:
            return CachePayload.from_dict(json.loads(raw))
        except (ValueError, KeyError, TypeError) as exc:
            logger.warning("Ignoring unreadable cache entry %s: %s", key, exc)
            return None

    def put(self, book_name: str, author: str, payload: CachePayload) -> None:
        key = build_cache_key(book_name, author)
        self.store.put(key, json.dumps(payload.to_dict(), ensure_ascii=False))
        logger.debug("Cached moderation payload under %s", key)

    def remove(self, book_name: str, author: str) -> None:
        self.store.remove(build_cache_key(book_name, author))
