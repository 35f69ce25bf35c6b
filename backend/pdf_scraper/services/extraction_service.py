"""
Extraction orchestrator.

Classifies the PDF, runs the matching strategy, validates the result and
records the outcome on both the resume record and a new extraction attempt.
Every run ends with record and attempt in the same terminal state.

Two runs against the same record must not overlap; nothing here locks.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from pdf_scraper.core.config import settings
from pdf_scraper.core.exceptions import PipelineError, ResumeValidationError
from pdf_scraper.db.repository import ResumeRepository
from pdf_scraper.llm.openai_client import OpenAIClient
from pdf_scraper.services.extraction_strategies import (
    BaseExtractionStrategy,
    ImageExtractionStrategy,
    TextExtractionStrategy,
)
from pdf_scraper.services.pdf_analyzer import ExtractionStrategy, PDFAnalysis, PDFAnalyzer
from pdf_scraper.services.pdf_rasterizer import PDFRasterizer
from pdf_scraper.services.resume_merger import merge
from pdf_scraper.services.resume_normalizer import ValidationResult, normalize, validate

logger = logging.getLogger(__name__)


@dataclass
class ExtractionParams:
    resume_id: str
    pdf_bytes: bytes
    file_name: str = "document.pdf"
    model: Optional[str] = None


@dataclass
class ExtractionResult:
    resume_id: str
    history_id: str
    resume_data: Dict[str, Any]


class ExtractionService:
    def __init__(
        self,
        repository: ResumeRepository,
        client: OpenAIClient,
        analyzer: Optional[PDFAnalyzer] = None,
        rasterizer: Optional[PDFRasterizer] = None,
        normalize_fn: Callable[[Any], Dict[str, Any]] = normalize,
        validate_fn: Callable[[Any], ValidationResult] = validate,
        merge_fn: Callable[[List[Any]], Dict[str, Any]] = merge,
        strategies: Optional[Dict[ExtractionStrategy, BaseExtractionStrategy]] = None,
        default_model: Optional[str] = None,
    ):
        self.repository = repository
        self.analyzer = analyzer or PDFAnalyzer()
        self.normalize_fn = normalize_fn
        self.validate_fn = validate_fn
        self.default_model = default_model or settings.OPENAI_MODEL
        self.strategies = strategies or {
            ExtractionStrategy.TEXT: TextExtractionStrategy(client),
            ExtractionStrategy.IMAGE: ImageExtractionStrategy(client, rasterizer or PDFRasterizer(), merge_fn),
        }

    def analyze_pdf(self, pdf_bytes: bytes) -> PDFAnalysis:
        return self.analyzer.analyze(pdf_bytes)

    def available_strategies(self) -> List[Dict[str, str]]:
        return [strategy.info() for strategy in self.strategies.values()]

    async def extract_resume(self, params: ExtractionParams) -> ExtractionResult:
        if self.repository.get_resume(params.resume_id) is None:
            raise LookupError(f"Resume {params.resume_id} not found")

        analysis = self.analyzer.analyze(params.pdf_bytes)
        strategy = self.strategies[analysis.recommended_strategy]
        model = params.model or self.default_model
        attempt = self.repository.create_attempt(params.resume_id, strategy.input_type, model)
        logger.info(
            f"Extracting resume {params.resume_id} ({params.file_name}) with {strategy.strategy.value}, "
            f"attempt {attempt.id}"
        )

        output = None
        try:
            output = await strategy.extract(params.pdf_bytes, params.file_name, model)
            result = self.validate_fn(self.normalize_fn(output.data))
        except Exception as e:
            logger.error(f"Extraction failed for resume {params.resume_id}: {e}")
            user_message = e.user_message if isinstance(e, PipelineError) else str(e)
            raw_response = getattr(e, "raw_response", None)
            if raw_response is None and output is not None:
                raw_response = output.raw_response
            self.repository.mark_failed(params.resume_id, user_message)
            self.repository.fail_attempt(attempt.id, str(e), raw_response=raw_response)
            raise

        if not result.ok:
            error = ResumeValidationError(result.errors, raw_response=output.raw_response)
            logger.error(f"Extraction for resume {params.resume_id} failed validation: {error.message}")
            self.repository.mark_failed(params.resume_id, error.user_message)
            self.repository.fail_attempt(attempt.id, error.message, raw_response=output.raw_response)
            raise error

        resume_data = result.document.to_json()
        self.repository.mark_completed(params.resume_id, resume_data)
        self.repository.complete_attempt(attempt.id, output.raw_response)
        logger.info(f"Resume {params.resume_id} extracted successfully (attempt {attempt.id})")
        return ExtractionResult(resume_id=params.resume_id, history_id=attempt.id, resume_data=resume_data)
