"""
The two extraction paths.

TEXT uploads the whole PDF and asks the model once (with one JSON retry).
IMAGE renders pages, runs one vision call per page and merges the fragments.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from pdf_scraper.db.models import InputType
from pdf_scraper.llm.openai_client import OpenAIClient
from pdf_scraper.services.pdf_analyzer import ExtractionStrategy
from pdf_scraper.services.pdf_rasterizer import PDFRasterizer
from pdf_scraper.services.resume_merger import merge

logger = logging.getLogger(__name__)


@dataclass
class StrategyOutput:
    data: Dict[str, Any]
    raw_response: str


class BaseExtractionStrategy(ABC):
    strategy: ExtractionStrategy
    name: str
    input_type: InputType
    processing_method: str
    description: str

    @abstractmethod
    async def extract(self, pdf_bytes: bytes, file_name: str, model: Optional[str]) -> StrategyOutput:
        ...

    @classmethod
    def info(cls) -> Dict[str, str]:
        return {
            "id": cls.strategy.value,
            "name": cls.name,
            "input_type": cls.input_type.value,
            "processing_method": cls.processing_method,
            "description": cls.description,
        }


class TextExtractionStrategy(BaseExtractionStrategy):
    strategy = ExtractionStrategy.TEXT
    name = "Text Extraction"
    input_type = InputType.TEXT
    processing_method = "openai-file-api"
    description = "Uploads the PDF and extracts structured data from its embedded text in a single call"

    def __init__(self, client: OpenAIClient):
        self.client = client

    async def extract(self, pdf_bytes: bytes, file_name: str, model: Optional[str]) -> StrategyOutput:
        result = await self.client.extract_document_json(pdf_bytes, file_name, model)
        if result.retried:
            logger.info("Document extraction needed the JSON retry")
        return StrategyOutput(data=result.data, raw_response=result.raw_response)


class ImageExtractionStrategy(BaseExtractionStrategy):
    strategy = ExtractionStrategy.IMAGE
    name = "Image Extraction"
    input_type = InputType.IMAGES
    processing_method = "openai-vision"
    description = "Renders each page to an image, reads it with a vision model and merges the page results"

    def __init__(
        self,
        client: OpenAIClient,
        rasterizer: PDFRasterizer,
        merge_fn: Callable[[List[Any]], Dict[str, Any]] = merge,
    ):
        self.client = client
        self.rasterizer = rasterizer
        self.merge_fn = merge_fn

    async def extract(self, pdf_bytes: bytes, file_name: str, model: Optional[str]) -> StrategyOutput:
        pages = self.rasterizer.convert_to_images(pdf_bytes)
        logger.info(f"Running vision extraction on {len(pages)} page(s) of {file_name}")
        vision = await self.client.extract_pages(pages, model)
        return StrategyOutput(data=self.merge_fn(vision.fragments), raw_response=vision.raw_response)


STRATEGY_CLASSES = (TextExtractionStrategy, ImageExtractionStrategy)


def strategy_catalog() -> List[Dict[str, str]]:
    """Strategy descriptions, available without a configured OpenAI client."""
    return [strategy_cls.info() for strategy_cls in STRATEGY_CLASSES]
