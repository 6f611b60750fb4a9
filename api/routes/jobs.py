from __future__ import annotations

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile

from manuscript_guard.moderation import LocalManuscriptStorage, RQJobQueue, WorkerConfig, build_book_id

from api.dependencies import get_job_queue, get_storage, get_worker_config

router = APIRouter(prefix="/jobs", tags=["jobs"])


@router.post("")
async def enqueue_job(
    file: UploadFile = File(...),
    title: str = Form(...),
    author: str = Form(""),
    force_refresh: bool = Form(False),
    queue: RQJobQueue = Depends(get_job_queue),
    storage: LocalManuscriptStorage = Depends(get_storage),
    config: WorkerConfig = Depends(get_worker_config),
):
    data = await file.read()
    if not data:
        raise HTTPException(status_code=400, detail="Uploaded file is empty")

    book_id = build_book_id(title, author)
    path = storage.save_manuscript(book_id, data)
    job = queue.enqueue_moderation_job(title, author, str(path), config, force_refresh=force_refresh)
    return {"jobId": job.id, "bookId": book_id, "status": "queued"}


@router.get("/{job_id}")
def get_job(job_id: str, queue: RQJobQueue = Depends(get_job_queue)):
    status = queue.get_job_status(job_id)
    if status is None:
        raise HTTPException(status_code=404, detail=f"Job not found: {job_id}")
    return status
