# File: backend/pdf_scraper/llm/openai_client.py
"""
OpenAI gateway for résumé extraction.

Document mode uploads the PDF through the Files API and asks the Responses
API to analyze it. Vision mode sends one rendered page image per call.
Responses come back in a few envelope shapes depending on the API surface;
``decode_envelope`` turns the HTTP body into one of the envelope classes below.
"""

import asyncio
import base64
import json
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Dict, List, Optional, Union

import httpx

from pdf_scraper.core.config import settings
from pdf_scraper.core.exceptions import ModelCallError, ParseError, UploadError
from pdf_scraper.llm.prompts import DOCUMENT_EXTRACTION_PROMPT, JSON_RETRY_SUFFIX, PAGE_EXTRACTION_PROMPT
from pdf_scraper.services.pdf_rasterizer import PageImage

logger = logging.getLogger(__name__)


# ─── Response envelopes ──────────────────────────────────────────

@dataclass
class OutputTextEnvelope:
    """Responses API convenience field: ``{"output_text": "..."}``."""
    text: str


@dataclass
class ContentBlocksEnvelope:
    """Responses API item list: ``output[].content[]`` with an ``output_text`` block."""
    text: str


@dataclass
class ChatCompletionEnvelope:
    """Chat Completions shape: ``choices[0].message.content``."""
    text: str


@dataclass
class UnknownEnvelope:
    body: str


ModelEnvelope = Union[OutputTextEnvelope, ContentBlocksEnvelope, ChatCompletionEnvelope, UnknownEnvelope]


def decode_envelope(body: str) -> ModelEnvelope:
    try:
        payload = json.loads(body)
    except (TypeError, ValueError, RecursionError):
        return UnknownEnvelope(body=body or "")
    if not isinstance(payload, dict):
        return UnknownEnvelope(body=body)

    output_text = payload.get("output_text")
    if isinstance(output_text, str) and output_text:
        return OutputTextEnvelope(text=output_text)

    output = payload.get("output")
    if isinstance(output, list):
        for item in output:
            blocks = item.get("content") if isinstance(item, dict) else None
            if not isinstance(blocks, list):
                continue
            for block in blocks:
                if isinstance(block, dict) and block.get("type") == "output_text" and isinstance(block.get("text"), str):
                    return ContentBlocksEnvelope(text=block["text"])

    choices = payload.get("choices")
    if isinstance(choices, list) and choices and isinstance(choices[0], dict):
        message = choices[0].get("message")
        if isinstance(message, dict) and isinstance(message.get("content"), str):
            return ChatCompletionEnvelope(text=message["content"])

    return UnknownEnvelope(body=body)


def envelope_text(envelope: ModelEnvelope) -> str:
    if isinstance(envelope, (OutputTextEnvelope, ContentBlocksEnvelope, ChatCompletionEnvelope)):
        return envelope.text
    if isinstance(envelope, UnknownEnvelope):
        return ""
    raise TypeError(f"Unsupported envelope type: {type(envelope).__name__}")


def strip_code_fence(text: str) -> str:
    text = text.strip()
    if text.startswith("```json"):
        text = text[7:]
    elif text.startswith("```"):
        text = text[3:]
    if text.endswith("```"):
        text = text[:-3]
    return text.strip()


def parse_json_object(text: str) -> Optional[Dict[str, Any]]:
    """Parse model output as a JSON object, or return None."""
    if not text:
        return None
    try:
        data = json.loads(strip_code_fence(text))
    except (ValueError, RecursionError):
        return None
    return data if isinstance(data, dict) else None


# ─── Results ─────────────────────────────────────────────────────

@dataclass
class DocumentExtraction:
    data: Dict[str, Any]
    raw_response: str
    retried: bool = False


@dataclass
class PageExtraction:
    page_number: int
    data: Dict[str, Any]
    raw_response: str


@dataclass
class VisionExtraction:
    pages: List[PageExtraction] = field(default_factory=list)
    failed_pages: List[int] = field(default_factory=list)

    @property
    def fragments(self) -> List[Dict[str, Any]]:
        return [page.data for page in self.pages]

    @property
    def raw_response(self) -> str:
        return "\n".join(f"--- page {page.page_number} ---\n{page.raw_response}" for page in self.pages)


# ─── Client ──────────────────────────────────────────────────────

class OpenAIClient:
    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
        vision_concurrency: Optional[int] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.OPENAI_API_KEY
        if not self.api_key:
            raise ValueError("OPENAI_API_KEY environment variable not set")

        self.base_url = (base_url or settings.OPENAI_API_BASE).rstrip("/")
        self.model = model or settings.OPENAI_MODEL
        self.timeout = timeout if timeout is not None else settings.OPENAI_TIMEOUT
        self.vision_concurrency = max(1, vision_concurrency or settings.VISION_CONCURRENCY)
        self.transport = transport
        logger.info(f"Initialized OpenAIClient with model: {self.model}")

    def _http(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers={"Authorization": f"Bearer {self.api_key}"},
            timeout=self.timeout,
            transport=self.transport,
        )

    # ── Files ────────────────────────────────────────────────────

    async def upload_file(self, pdf_bytes: bytes, file_name: str = "document.pdf") -> str:
        """Upload a PDF to the Files API and return its file id."""
        logger.info(f"Uploading {file_name} ({len(pdf_bytes)} bytes) to OpenAI")
        try:
            async with self._http() as client:
                resp = await client.post(
                    "/files",
                    data={"purpose": "user_data"},
                    files={"file": (file_name or "document.pdf", pdf_bytes, "application/pdf")},
                )
        except httpx.HTTPError as e:
            logger.error(f"File upload request failed: {e}")
            raise UploadError(f"File upload request failed: {e}") from e

        if not resp.is_success:
            logger.error(f"File upload failed with status code {resp.status_code}: {resp.text}")
            raise UploadError(f"File upload failed with status code {resp.status_code}: {resp.text[:500]}")

        try:
            file_id = resp.json().get("id")
        except (ValueError, RecursionError):
            file_id = None
        if not file_id:
            logger.error(f"File upload response has no file id: {resp.text[:200]}")
            raise UploadError(
                "File upload response has no file id",
                user_message="Unable to prepare your resume for processing. Please try again",
            )
        logger.info(f"Uploaded file {file_id}")
        return file_id

    async def delete_file(self, file_id: str) -> None:
        """Best-effort delete of an uploaded file. Failures are only logged."""
        try:
            async with self._http() as client:
                resp = await client.delete(f"/files/{file_id}")
            if not resp.is_success:
                logger.warning(f"Failed to delete file {file_id}: status {resp.status_code}")
            else:
                logger.info(f"Deleted file {file_id}")
        except Exception as e:
            logger.warning(f"Failed to delete file {file_id}: {e}")

    @asynccontextmanager
    async def uploaded_file(self, pdf_bytes: bytes, file_name: str = "document.pdf") -> AsyncIterator[str]:
        """Upload for the duration of the block, delete on every exit path."""
        file_id = await self.upload_file(pdf_bytes, file_name)
        try:
            yield file_id
        finally:
            await self.delete_file(file_id)

    # ── Responses ────────────────────────────────────────────────

    async def create_response(self, content: List[Dict[str, Any]], model: Optional[str] = None) -> str:
        """POST one user turn to the Responses API and return the HTTP body."""
        model = model or self.model
        body = {
            "model": model,
            "temperature": 0,
            "text": {"format": {"type": "json_object"}},
            "input": [{"role": "user", "content": content}],
        }
        logger.info(f"Sending request to OpenAI Responses API with model: {model}")
        try:
            async with self._http() as client:
                resp = await client.post("/responses", json=body)
        except httpx.HTTPError as e:
            logger.error(f"Error in OpenAI request: {e}")
            raise ModelCallError(f"OpenAI request failed: {e}") from e

        if not resp.is_success:
            logger.error(f"API request failed with status code {resp.status_code}: {resp.text}")
            raise ModelCallError(f"API request failed with status code {resp.status_code}: {resp.text[:500]}")

        logger.info(f"Received response from OpenAI (first 100 chars): {resp.text[:100]}...")
        return resp.text

    async def analyze_document(self, file_id: str, prompt: str, model: Optional[str] = None) -> str:
        """Ask the model about an uploaded file; returns the extracted output text."""
        body = await self.create_response(
            [
                {"type": "input_text", "text": prompt},
                {"type": "input_file", "file_id": file_id},
            ],
            model,
        )
        envelope = decode_envelope(body)
        if isinstance(envelope, UnknownEnvelope):
            logger.warning(f"Unrecognized response envelope (first 200 chars): {body[:200]}")
        return envelope_text(envelope)

    async def extract_document_json(
        self,
        pdf_bytes: bytes,
        file_name: str = "document.pdf",
        model: Optional[str] = None,
    ) -> DocumentExtraction:
        """
        Document-mode extraction with a single remediation retry.

        If the first answer is not a JSON object the same file is queried
        once more with a stricter instruction. A second failure raises
        ParseError. The uploaded file is always deleted afterwards.
        """
        async with self.uploaded_file(pdf_bytes, file_name) as file_id:
            text = await self.analyze_document(file_id, DOCUMENT_EXTRACTION_PROMPT, model)
            data = parse_json_object(text)
            if data is not None:
                return DocumentExtraction(data=data, raw_response=text)

            logger.warning(f"Model output is not a JSON object, retrying once (first 100 chars): {text[:100]}")
            text = await self.analyze_document(file_id, DOCUMENT_EXTRACTION_PROMPT + JSON_RETRY_SUFFIX, model)
            data = parse_json_object(text)
            if data is None:
                logger.error("Model output is still not a JSON object after retry")
                raise ParseError("Unable to parse AI response as valid JSON", raw_response=text)
            return DocumentExtraction(data=data, raw_response=text, retried=True)

    # ── Vision ───────────────────────────────────────────────────

    async def analyze_image(self, page: PageImage, model: Optional[str] = None) -> PageExtraction:
        encoded = base64.b64encode(page.image_bytes).decode("ascii")
        body = await self.create_response(
            [
                {"type": "input_text", "text": PAGE_EXTRACTION_PROMPT},
                {"type": "input_image", "image_url": f"data:{page.mime_type};base64,{encoded}"},
            ],
            model,
        )
        envelope = decode_envelope(body)
        if isinstance(envelope, UnknownEnvelope):
            raise ParseError(f"Unrecognized response envelope for page {page.page_number}")
        text = envelope_text(envelope)
        data = parse_json_object(text)
        if data is None:
            raise ParseError(f"Page {page.page_number} output is not a JSON object", raw_response=text)
        return PageExtraction(page_number=page.page_number, data=data, raw_response=text)

    async def extract_pages(self, pages: List[PageImage], model: Optional[str] = None) -> VisionExtraction:
        """
        Vision-mode extraction, one call per page.

        At most ``vision_concurrency`` calls are in flight. A failed page is
        logged and skipped; results keep page order. Raises ModelCallError
        only when every page fails.
        """
        semaphore = asyncio.Semaphore(self.vision_concurrency)

        async def run(page: PageImage) -> Optional[PageExtraction]:
            async with semaphore:
                try:
                    return await self.analyze_image(page, model)
                except Exception as e:
                    logger.warning(f"Vision extraction failed for page {page.page_number}: {e}")
                    return None

        results = await asyncio.gather(*(run(page) for page in pages))

        extraction = VisionExtraction()
        for page, result in zip(pages, results):
            if result is None:
                extraction.failed_pages.append(page.page_number)
            else:
                extraction.pages.append(result)

        if not extraction.pages:
            raise ModelCallError(f"Vision extraction failed for all {len(pages)} page(s)")
        logger.info(
            f"Vision extraction succeeded for {len(extraction.pages)}/{len(pages)} page(s)"
            + (f", failed pages: {extraction.failed_pages}" if extraction.failed_pages else "")
        )
        return extraction
