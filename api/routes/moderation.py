from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile
from pydantic import BaseModel

from manuscript_guard.moderation import (
    InvalidInputError,
    LocalManuscriptStorage,
    ModerationCacheStore,
    ModerationService,
    build_book_id,
    build_cache_key,
    payload_from_result,
)

from api.dependencies import get_cache, get_service, get_storage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/moderation", tags=["moderation"])


class TextRequest(BaseModel):
    text: str


@router.post("/text")
def moderate_text(request: TextRequest, service: ModerationService = Depends(get_service)):
    try:
        result = service.analyze_text(request.text)
    except InvalidInputError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return result.to_dict()


@router.post("/upload")
async def upload_manuscript(
    file: UploadFile = File(...),
    title: str = Form(...),
    author: str = Form(""),
    service: ModerationService = Depends(get_service),
    cache: ModerationCacheStore = Depends(get_cache),
    storage: LocalManuscriptStorage = Depends(get_storage),
):
    if not title.strip():
        raise HTTPException(status_code=400, detail="Title must not be empty")
    data = await file.read()
    if not data:
        raise HTTPException(status_code=400, detail="Uploaded file is empty")

    book_id = build_book_id(title, author)
    try:
        path = storage.save_manuscript(book_id, data)
        result = service.analyze_file(path)
        storage.write_report(book_id, result.to_dict())
    except InvalidInputError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except OSError as exc:
        logger.exception("Failed to moderate upload %s", book_id)
        raise HTTPException(status_code=500, detail=f"Could not read manuscript: {exc}")

    cache.put(title, author, payload_from_result(result))
    return {
        "bookId": book_id,
        "cacheKey": build_cache_key(title, author),
        "result": result.to_dict(),
    }


@router.get("/cache")
def get_cached(
    book_name: str = Query(..., alias="bookName"),
    author: str = Query(""),
    cache: ModerationCacheStore = Depends(get_cache),
):
    payload = cache.get(book_name, author)
    if payload is None:
        raise HTTPException(status_code=404, detail=f"No cached result for {book_name} / {author}")
    return payload.to_dict()


@router.delete("/cache")
def delete_cached(
    book_name: str = Query(..., alias="bookName"),
    author: str = Query(""),
    cache: ModerationCacheStore = Depends(get_cache),
):
    cache.remove(book_name, author)
    return {"status": "removed", "cacheKey": build_cache_key(book_name, author)}
