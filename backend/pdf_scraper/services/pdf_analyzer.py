"""
Fast pre-classification of PDF content.

Scans a bounded prefix of the raw byte stream for structural tokens instead
of parsing the document. Misrouting is expected occasionally; the chosen
extraction strategy is allowed to fail on its own.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger(__name__)


class PDFContentType(str, Enum):
    TEXT_BASED = "text-based"
    IMAGE_BASED = "image-based"
    SCANNED = "scanned"
    MIXED = "mixed"


class ExtractionStrategy(str, Enum):
    TEXT = "text-extraction"
    IMAGE = "image-extraction"


@dataclass(frozen=True)
class ClassifierThresholds:
    """Empirical tuning knobs, not derived from any labelled corpus."""
    scan_bytes: int = 10_000
    dominance_margin: float = 1.3
    empty_ratio: float = 0.5


@dataclass(frozen=True)
class PDFAnalysis:
    content_type: PDFContentType
    text_ratio: float
    image_ratio: float
    page_count: int
    has_text: bool
    has_images: bool
    recommended_strategy: ExtractionStrategy

    def to_dict(self) -> dict:
        return {
            "content_type": self.content_type.value,
            "text_ratio": self.text_ratio,
            "image_ratio": self.image_ratio,
            "page_count": self.page_count,
            "has_text": self.has_text,
            "has_images": self.has_images,
            "recommended_strategy": self.recommended_strategy.value,
        }


FALLBACK_ANALYSIS = PDFAnalysis(
    content_type=PDFContentType.TEXT_BASED,
    text_ratio=0.9,
    image_ratio=0.1,
    page_count=1,
    has_text=True,
    has_images=False,
    recommended_strategy=ExtractionStrategy.TEXT,
)

# Font resources and the begin-text / show-text operators
_TEXT_TOKENS = re.compile(r"/Font\b|(?<![A-Za-z])(?:BT|Tj|TJ)(?=\s)")
# Image XObjects and raster compression filters
_IMAGE_TOKENS = re.compile(r"/XObject\b|/Image\b|/DCTDecode\b|/JPXDecode\b")
# Filters produced by scanners and fax pipelines
_SCANNER_TOKENS = re.compile(r"/CCITTFaxDecode\b|/JBIG2Decode\b")
# /Type /Page but not /Type /Pages
_PAGE_TOKENS = re.compile(r"/Type\s*/Page(?![A-Za-z])")


class PDFAnalyzer:
    def __init__(self, thresholds: ClassifierThresholds = ClassifierThresholds()):
        self.thresholds = thresholds

    def analyze(self, pdf_bytes: bytes) -> PDFAnalysis:
        """Classify ``pdf_bytes``. Never raises; falls back to text-based."""
        try:
            return self._classify(pdf_bytes)
        except Exception as e:
            logger.warning(f"PDF analysis failed, using text-based fallback: {e}")
            return FALLBACK_ANALYSIS

    def _classify(self, pdf_bytes: bytes) -> PDFAnalysis:
        prefix = bytes(pdf_bytes[: self.thresholds.scan_bytes]).decode("latin-1")

        text_count = len(_TEXT_TOKENS.findall(prefix))
        scanner_count = len(_SCANNER_TOKENS.findall(prefix))
        image_count = len(_IMAGE_TOKENS.findall(prefix)) + scanner_count

        total = text_count + image_count
        if total:
            text_ratio = text_count / total
            image_ratio = image_count / total
        else:
            text_ratio = image_ratio = self.thresholds.empty_ratio

        margin = self.thresholds.dominance_margin
        image_type = PDFContentType.SCANNED if scanner_count else PDFContentType.IMAGE_BASED

        if total == 0 or image_count == 0:
            content_type, strategy = PDFContentType.TEXT_BASED, ExtractionStrategy.TEXT
        elif text_count == 0:
            content_type, strategy = PDFContentType.SCANNED, ExtractionStrategy.IMAGE
        elif text_count >= margin * image_count:
            content_type, strategy = PDFContentType.TEXT_BASED, ExtractionStrategy.TEXT
        elif image_count >= margin * text_count:
            content_type, strategy = image_type, ExtractionStrategy.IMAGE
        else:
            content_type = PDFContentType.MIXED
            strategy = ExtractionStrategy.IMAGE if image_count > text_count else ExtractionStrategy.TEXT

        analysis = PDFAnalysis(
            content_type=content_type,
            text_ratio=text_ratio,
            image_ratio=image_ratio,
            page_count=max(1, len(_PAGE_TOKENS.findall(prefix))),
            has_text=text_count > 0,
            has_images=image_count > 0,
            recommended_strategy=strategy,
        )
        logger.info(
            f"PDF analysis: {content_type.value} (text={text_ratio:.2f}, image={image_ratio:.2f}, "
            f"pages={analysis.page_count}) -> {strategy.value}"
        )
        return analysis
