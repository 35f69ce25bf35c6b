# File: backend/pdf_scraper/api/endpoints/extract.py
import logging

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile

from pdf_scraper.api.deps import (
    get_current_user_id,
    get_extraction_service,
    get_repository,
    http_error_for,
    read_pdf_upload,
)
from pdf_scraper.db.repository import ResumeRepository
from pdf_scraper.schemas.extraction import (
    AnalysisResponse,
    ExtractionResponse,
    ExtractRequest,
    StrategiesResponse,
)
from pdf_scraper.services.extraction_service import ExtractionParams, ExtractionService
from pdf_scraper.services.extraction_strategies import strategy_catalog
from pdf_scraper.services.pdf_analyzer import PDFAnalyzer
from pdf_scraper.services.storage import SupabaseStorage, get_storage

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("", response_model=ExtractionResponse)
async def extract_resume(
    request: ExtractRequest,
    user_id: str = Depends(get_current_user_id),
    repository: ResumeRepository = Depends(get_repository),
    storage: SupabaseStorage = Depends(get_storage),
    service: ExtractionService = Depends(get_extraction_service),
):
    """Re-run extraction for a file that is already stored."""
    record = repository.get_by_storage_path(request.storage_path, user_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Resume not found")

    try:
        pdf_bytes = await storage.download_file(record.storage_path)
    except Exception as e:
        logger.error(f"Error downloading {record.storage_path}: {e}")
        raise HTTPException(status_code=502, detail="Unable to read your resume file. Please try again")

    try:
        result = await service.extract_resume(
            ExtractionParams(
                resume_id=record.id,
                pdf_bytes=pdf_bytes,
                file_name=record.file_name,
                model=request.model,
            )
        )
    except Exception as e:
        raise http_error_for(e, repository)
    return ExtractionResponse(resume_id=result.resume_id, history_id=result.history_id, resume_data=result.resume_data)


@router.post("/analyze", response_model=AnalysisResponse)
async def analyze_pdf(
    file: UploadFile = File(...),
    user_id: str = Depends(get_current_user_id),
):
    """Classify a PDF without extracting it."""
    contents = await read_pdf_upload(file)
    analysis = PDFAnalyzer().analyze(contents)
    return AnalysisResponse(**analysis.to_dict())


@router.get("/strategies", response_model=StrategiesResponse)
def list_strategies():
    return StrategiesResponse(strategies=strategy_catalog())
