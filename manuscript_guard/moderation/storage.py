from __future__ import annotations

import hashlib
import json
import logging
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


@dataclass
class StoragePaths:
    root: Path

    def book_dir(self, book_id: str) -> Path:
        return self.root / "books" / str(book_id)

    def manuscript_path(self, book_id: str) -> Path:
        return self.book_dir(book_id) / "original.txt"

    def report_path(self, book_id: str) -> Path:
        return self.book_dir(book_id) / "report.json"


class LocalManuscriptStorage:
    """
    Manages filesystem layout for uploaded manuscripts and their reports.
    """

    def __init__(self, storage_paths: StoragePaths):
        self.paths = storage_paths

    def ensure_base_dirs(self, book_id: str) -> None:
        self.paths.book_dir(book_id).mkdir(parents=True, exist_ok=True)

    def save_manuscript(self, book_id: str, data: bytes) -> Path:
        self.ensure_base_dirs(book_id)
        target = self.paths.manuscript_path(book_id)
        target.write_bytes(data)
        return target

    def write_report(self, book_id: str, report: dict) -> Path:
        self.ensure_base_dirs(book_id)
        target = self.paths.report_path(book_id)
        with target.open("w", encoding="utf-8") as f:
            json.dump(report, f, ensure_ascii=False, indent=2)
        return target

    def read_report(self, book_id: str) -> Optional[dict]:
        path = self.paths.report_path(book_id)
        if not path.exists():
            return None
        with path.open("r", encoding="utf-8") as f:
            return json.load(f)

    def find_manuscript(self, book_id: str) -> Optional[Path]:
        path = self.paths.manuscript_path(book_id)
        return path if path.exists() else None

    def delete_book(self, book_id: str) -> None:
        book_dir = self.paths.book_dir(book_id)
        if book_dir.exists():
            shutil.rmtree(book_dir)
            logger.info("Removed stored files for %s", book_id)


def build_book_id(book_name: str, author: str = "") -> str:
    normalized = book_name.strip().lower()
    slug = "".join(ch if ch.isalnum() else "-" for ch in normalized).strip("-") or "book"
    digest = hashlib.md5(f"{normalized}#{author.strip().lower()}".encode("utf-8")).hexdigest()[:8]
    return f"{slug}-{digest}"
