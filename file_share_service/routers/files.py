from datetime import datetime
import time
from typing import List, Optional

from fastapi import APIRouter, Form, Depends, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import FileResponse
from starlette.datastructures import UploadFile

import schemas
from config import Settings, get_settings
from file_repository import FileRepository, UploadTooLargeError, get_file_repository
from logging_config import get_logger
from metadata_store import MetadataStore, get_metadata_store

logger = get_logger(__name__)

router = APIRouter(
    prefix="/api",
    tags=["files"],
)

@router.get("/files", response_model=List[schemas.FileRecordPublic])
async def list_files(store: MetadataStore = Depends(get_metadata_store)):
    files = store.list()
    logger.info(f"Listing {len(files)} file(s)")
    return files

@router.post("/upload", response_model=schemas.UploadResponse)
async def upload_file(
    request: Request,
    original_name: Optional[str] = Form(None, alias="originalName"),
    uploader: Optional[str] = Form(None),
    store: MetadataStore = Depends(get_metadata_store),
    repository: FileRepository = Depends(get_file_repository),
    current_settings: Settings = Depends(get_settings)
):
    form = await request.form()
    file = form.get("file")
    # Plain text values and empty file inputs do not count as a file part.
    if not isinstance(file, UploadFile) or not file.filename:
        logger.warning("Upload request without a 'file' part")
        raise HTTPException(status_code=400, detail="No file provided")

    display_name = original_name or file.filename
    logger.info(f"Upload request for filename: '{display_name}', content_type: '{file.content_type}'")

    try:
        file_id, size = await repository.save(file, file.filename, current_settings.MAX_UPLOAD_SIZE_BYTES)
    except UploadTooLargeError as e:
        logger.warning(f"Rejected upload '{display_name}': {e}")
        raise HTTPException(status_code=413, detail=f"File exceeds the maximum size of {e.max_bytes} bytes")
    except Exception:
        logger.exception(f"Error saving upload '{display_name}'")
        raise HTTPException(status_code=500, detail="File upload failed")

    now = datetime.now()
    record = schemas.FileRecord(
        name=display_name,
        size=size,
        type=file.content_type or "application/octet-stream",
        uploader=uploader or current_settings.DEFAULT_UPLOADER,
        date=now.strftime(current_settings.DATE_FORMAT),
        timestamp=int(time.time() * 1000),
        filename=file_id,
    )

    try:
        await run_in_threadpool(store.put, file_id, record)
    except Exception:
        logger.exception(f"Error saving metadata for '{display_name}' (ID: {file_id})")
        raise HTTPException(status_code=500, detail="File upload failed")

    logger.info(f"Saved '{record.name}' (ID: {file_id}, {size} bytes) uploaded by '{record.uploader}'")
    return schemas.UploadResponse(
        message="File uploaded",
        file=schemas.FileRecordPublic(id=file_id, **record.model_dump()),
    )

@router.get("/download/{file_id}")
async def download_file(
    file_id: str,
    store: MetadataStore = Depends(get_metadata_store),
    repository: FileRepository = Depends(get_file_repository)
):
    logger.info(f"Download request for file_id: {file_id}")
    record = store.get(file_id)
    if not record:
        logger.warning(f"File not found for download: ID {file_id}")
        raise HTTPException(status_code=404, detail="File not found")

    try:
        if not repository.exists(file_id):
            raise FileNotFoundError(file_id)
        stat_result = await run_in_threadpool(repository.stat, file_id)
    except FileNotFoundError:
        logger.error(f"File {file_id} has metadata but is missing from {repository.base_path}. Inconsistency!")
        raise HTTPException(status_code=404, detail="File not found on disk")
    except Exception:
        logger.exception(f"Error reading file {file_id}")
        raise HTTPException(status_code=500, detail="File download failed")

    return FileResponse(
        path=repository.path(file_id),
        filename=record.name,
        media_type=record.type,
        stat_result=stat_result
    )

@router.delete("/delete/{file_id}", response_model=schemas.DeleteResponse)
async def delete_file(
    file_id: str,
    store: MetadataStore = Depends(get_metadata_store),
    repository: FileRepository = Depends(get_file_repository)
):
    logger.info(f"Delete request for file_id: {file_id}")
    if file_id not in store:
        logger.warning(f"File not found for deletion: ID {file_id}")
        raise HTTPException(status_code=404, detail="File not found")

    try:
        await run_in_threadpool(repository.delete, file_id)
        removed = await run_in_threadpool(store.remove, file_id)
    except Exception:
        logger.exception(f"Error deleting file {file_id}")
        raise HTTPException(status_code=500, detail="File deletion failed")

    if not removed:
        logger.warning(f"File {file_id} was deleted by a concurrent request")
        raise HTTPException(status_code=404, detail="File not found")

    logger.info(f"Deleted file {file_id}")
    return schemas.DeleteResponse(message="File deleted")
