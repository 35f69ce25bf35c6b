# File: backend/pdf_scraper/api/endpoints/resumes.py
from datetime import datetime
from typing import Optional
import logging
import uuid

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile

from pdf_scraper.api.deps import (
    get_current_user_id,
    get_extraction_service,
    get_repository,
    http_error_for,
    read_pdf_upload,
)
from pdf_scraper.db.models import ResumeStatus
from pdf_scraper.db.repository import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, ResumeRepository
from pdf_scraper.schemas.extraction import ExtractionResponse
from pdf_scraper.schemas.resume import ResumeDetailResponse, ResumeListResponse, ResumeResponse
from pdf_scraper.services.extraction_service import ExtractionParams, ExtractionService
from pdf_scraper.services.storage import SupabaseStorage, build_storage_path, get_storage

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/upload", response_model=ExtractionResponse)
async def upload_resume(
    file: UploadFile = File(...),
    model: Optional[str] = Form(None),
    user_id: str = Depends(get_current_user_id),
    repository: ResumeRepository = Depends(get_repository),
    storage: SupabaseStorage = Depends(get_storage),
    service: ExtractionService = Depends(get_extraction_service),
):
    """Store a PDF, create its record and extract it in one request."""
    contents = await read_pdf_upload(file)
    file_name = file.filename or "document.pdf"
    storage_path = build_storage_path(user_id, uuid.uuid4().hex, file_name)

    try:
        await storage.upload_file(storage_path, contents)
    except Exception as e:
        logger.error(f"Error storing upload {file_name}: {e}")
        raise HTTPException(status_code=502, detail="Unable to store your resume file. Please try again")

    record = repository.create_resume(user_id=user_id, file_name=file_name, storage_path=storage_path)
    try:
        result = await service.extract_resume(
            ExtractionParams(resume_id=record.id, pdf_bytes=contents, file_name=file_name, model=model)
        )
    except Exception as e:
        raise http_error_for(e, repository)
    return ExtractionResponse(resume_id=result.resume_id, history_id=result.history_id, resume_data=result.resume_data)


@router.get("", response_model=ResumeListResponse)
def list_resumes(
    cursor: Optional[datetime] = Query(None),
    status: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    user_id: str = Depends(get_current_user_id),
    repository: ResumeRepository = Depends(get_repository),
):
    status_filter = None
    if status and status.upper() != "ALL":
        try:
            status_filter = ResumeStatus(status.upper())
        except ValueError:
            raise HTTPException(status_code=400, detail=f"Invalid status filter: {status}")

    page = repository.list_resumes(user_id, cursor=cursor, status=status_filter, search=search, limit=limit)
    return ResumeListResponse(
        items=[ResumeResponse.model_validate(item) for item in page["items"]],
        next_cursor=page["next_cursor"],
    )


@router.get("/{resume_id}", response_model=ResumeDetailResponse)
def get_resume(
    resume_id: str,
    user_id: str = Depends(get_current_user_id),
    repository: ResumeRepository = Depends(get_repository),
):
    record = repository.get_user_resume(resume_id, user_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Resume not found")
    return record


@router.delete("/{resume_id}")
async def delete_resume(
    resume_id: str,
    user_id: str = Depends(get_current_user_id),
    repository: ResumeRepository = Depends(get_repository),
    storage: SupabaseStorage = Depends(get_storage),
):
    record = repository.get_user_resume(resume_id, user_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Resume not found")

    storage_path = record.storage_path
    repository.delete_resume(resume_id)
    try:
        await storage.delete_file(storage_path)
    except Exception as e:
        logger.warning(f"Failed to delete stored file {storage_path}: {e}")
    return {"deleted": True, "id": resume_id}
