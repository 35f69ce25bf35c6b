"""Render PDF pages to PNG images for the vision extraction path."""

import logging
from dataclasses import dataclass
from typing import List

import fitz  # PyMuPDF

from pdf_scraper.core.config import settings
from pdf_scraper.core.exceptions import RasterizationError

logger = logging.getLogger(__name__)


@dataclass
class PageImage:
    page_number: int  # 1-based
    image_bytes: bytes
    mime_type: str = "image/png"


class PDFRasterizer:
    def __init__(self, max_pages: int = None, scale: float = None):
        self.max_pages = max_pages if max_pages is not None else settings.MAX_PDF_PAGES
        self.scale = scale if scale is not None else settings.PDF_RENDER_SCALE

    def convert_to_images(self, pdf_bytes: bytes) -> List[PageImage]:
        """
        Render up to ``max_pages`` pages in page order.

        Pages past the cap are dropped. A page that fails to render is
        skipped; if nothing renders, RasterizationError is raised.
        """
        try:
            doc = fitz.open(stream=pdf_bytes, filetype="pdf")
        except Exception as e:
            logger.error(f"Could not open PDF for rasterization: {e}")
            raise RasterizationError(f"Could not open PDF: {e}") from e

        images: List[PageImage] = []
        try:
            total = len(doc)
            limit = min(total, self.max_pages)
            if total > limit:
                logger.info(f"PDF has {total} pages, rendering first {limit}")

            matrix = fitz.Matrix(self.scale, self.scale)
            for index in range(limit):
                try:
                    pix = doc[index].get_pixmap(matrix=matrix)
                    images.append(PageImage(page_number=index + 1, image_bytes=pix.tobytes("png")))
                except Exception as e:
                    logger.warning(f"Failed to render page {index + 1}: {e}")
        finally:
            doc.close()

        if not images:
            raise RasterizationError("No pages could be rendered")

        logger.info(f"Rendered {len(images)} page image(s) at {self.scale}x")
        return images
