# File: backend/pdf_scraper/schemas/extraction.py
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ExtractRequest(CamelModel):
    storage_path: str
    model: Optional[str] = None


class ExtractionResponse(CamelModel):
    resume_id: str
    history_id: str
    resume_data: Dict[str, Any]


class AnalysisResponse(CamelModel):
    content_type: str
    text_ratio: float
    image_ratio: float
    page_count: int
    has_text: bool
    has_images: bool
    recommended_strategy: str


class StrategyInfo(CamelModel):
    id: str
    name: str
    input_type: str
    processing_method: str
    description: str


class StrategiesResponse(CamelModel):
    strategies: List[StrategyInfo]
