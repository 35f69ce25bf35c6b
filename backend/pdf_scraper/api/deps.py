# File: backend/pdf_scraper/api/deps.py
import logging

from fastapi import Depends, Header, HTTPException, UploadFile
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from pdf_scraper.core.config import settings
from pdf_scraper.core.exceptions import PipelineError
from pdf_scraper.db.database import get_db
from pdf_scraper.db.repository import ResumeRepository
from pdf_scraper.llm.openai_client import OpenAIClient
from pdf_scraper.services.extraction_service import ExtractionService

logger = logging.getLogger(__name__)


def get_current_user_id(x_user_id: str = Header(..., alias="X-User-Id")) -> str:
    """Caller identity set by the upstream auth gateway."""
    if not x_user_id.strip():
        raise HTTPException(status_code=401, detail="Missing user id")
    return x_user_id.strip()


def get_repository(db: Session = Depends(get_db)) -> ResumeRepository:
    return ResumeRepository(db)


def get_openai_client() -> OpenAIClient:
    try:
        return OpenAIClient()
    except ValueError as e:
        logger.error(f"OpenAI client unavailable: {e}")
        raise HTTPException(status_code=503, detail="Resume extraction is not configured")


def get_extraction_service(
    repository: ResumeRepository = Depends(get_repository),
    client: OpenAIClient = Depends(get_openai_client),
) -> ExtractionService:
    return ExtractionService(repository=repository, client=client)


async def read_pdf_upload(file: UploadFile) -> bytes:
    """Read an uploaded PDF, enforcing type and size limits."""
    file_name = file.filename or ""
    if file.content_type != "application/pdf" and not file_name.lower().endswith(".pdf"):
        raise HTTPException(status_code=400, detail="Only PDF files are supported")
    contents = await file.read()
    if not contents:
        raise HTTPException(status_code=400, detail="Uploaded file is empty")
    if len(contents) > settings.MAX_FILE_SIZE_BYTES:
        limit_mb = settings.MAX_FILE_SIZE_BYTES // (1024 * 1024)
        raise HTTPException(status_code=413, detail=f"File size must be less than {limit_mb}MB")
    return contents


def http_error_for(e: Exception, repository: ResumeRepository = None) -> HTTPException:
    """Translate pipeline errors into short, user-facing HTTP errors."""
    if isinstance(e, SQLAlchemyError) and repository is not None:
        repository.session.rollback()
    if isinstance(e, PipelineError):
        return HTTPException(status_code=e.status_code, detail=e.user_message)
    if isinstance(e, LookupError):
        return HTTPException(status_code=404, detail="Resume not found")
    logger.error(f"Unexpected extraction error: {e}")
    return HTTPException(status_code=500, detail="An unexpected error occurred while processing your resume")
