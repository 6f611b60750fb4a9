"""
Example: moderate a plain-text manuscript with the SQLite cache and local report storage.

Usage:
    python3 moderation_demo.py --txt /path/to/novel.txt --title "My Book" --author "Someone"
    python3 moderation_demo.py --rq-worker --redis-url redis://localhost:6379/0
"""

import argparse
import json
import logging
from pathlib import Path

from manuscript_guard.moderation import (
    InMemoryKeyValueStore,
    LocalManuscriptStorage,
    ModerationCacheStore,
    ModerationConfig,
    ModerationService,
    ModerationWorker,
    RQJobQueue,
    SqlAlchemyKeyValueStore,
    StoragePaths,
    build_book_id,
)


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--txt", type=Path, help="Path to the manuscript text file")
    parser.add_argument("--title", help="Book title")
    parser.add_argument("--author", default="", help="Book author")
    parser.add_argument("--charset", default="utf-8", help="Manuscript encoding")
    parser.add_argument("--db", default=Path("./data/moderation.db"), type=Path, help="SQLite cache path")
    parser.add_argument("--no-cache", action="store_true", help="Use a throwaway in-memory cache")
    parser.add_argument("--storage-root", default=Path("./data"), type=Path, help="Storage root for reports")
    parser.add_argument("--force", action="store_true", help="Ignore a cached result")
    parser.add_argument("--rq-worker", action="store_true", help="Run an RQ worker for queued moderation jobs")
    parser.add_argument("--redis-url", default="redis://localhost:6379/0", help="Redis URL for --rq-worker")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")

    if args.rq_worker:
        RQJobQueue(args.redis_url).work()
        return

    if args.txt is None or not args.title:
        parser.error("--txt and --title are required unless --rq-worker is given")
    if not args.txt.exists():
        raise FileNotFoundError(f"Manuscript not found: {args.txt}")

    if args.no_cache:
        store = InMemoryKeyValueStore()
    else:
        args.db.parent.mkdir(parents=True, exist_ok=True)
        store = SqlAlchemyKeyValueStore(f"sqlite+pysqlite:///{args.db}")

    storage = LocalManuscriptStorage(StoragePaths(args.storage_root))
    worker = ModerationWorker(
        service=ModerationService(ModerationConfig(target_charset=args.charset)),
        cache=ModerationCacheStore(store),
        storage=storage,
    )

    print(f"Moderating {args.txt}")
    payload = worker.run_document(args.title, args.author, args.txt, force_refresh=args.force)
    print(json.dumps(payload.to_dict(), ensure_ascii=False, indent=2))

    report = storage.read_report(build_book_id(args.title, args.author))
    if report is not None:
        print(f"Flagged {report['flaggedChapters']}/{report['totalChapters']} chapters")


if __name__ == "__main__":
    main()
