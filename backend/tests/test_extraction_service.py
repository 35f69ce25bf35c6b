"""
Orchestrator end-to-end runs against a scripted OpenAI API and an
in-memory database.
"""

import asyncio
import json
import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import httpx
import pytest

from conftest import BASE_URL, FakeOpenAI, make_resume, make_text_pdf, output_text
from pdf_scraper.core.exceptions import (
    ModelCallError,
    ParseError,
    RasterizationError,
    ResumeValidationError,
    UploadError,
)
from pdf_scraper.db.models import AttemptStatus, InputType, ResumeStatus
from pdf_scraper.llm.openai_client import OpenAIClient
from pdf_scraper.services.extraction_service import ExtractionParams, ExtractionService
from pdf_scraper.services.pdf_analyzer import ExtractionStrategy, PDFAnalysis, PDFContentType
from pdf_scraper.services.pdf_rasterizer import PDFRasterizer


class ScannedAnalyzer:
    """Always routes to the image strategy."""

    def analyze(self, pdf_bytes):
        return PDFAnalysis(
            content_type=PDFContentType.SCANNED,
            text_ratio=0.0,
            image_ratio=1.0,
            page_count=2,
            has_text=False,
            has_images=True,
            recommended_strategy=ExtractionStrategy.IMAGE,
        )


def _run(service, record, pdf_bytes, model=None):
    return asyncio.run(
        service.extract_resume(
            ExtractionParams(resume_id=record.id, pdf_bytes=pdf_bytes, file_name="cv.pdf", model=model)
        )
    )


def _only_attempt(repository, record):
    attempts = repository.list_attempts(record.id)
    assert len(attempts) == 1
    return attempts[0]


def _assert_both_failed(repository, record):
    assert repository.get_resume(record.id).status == ResumeStatus.FAILED
    assert _only_attempt(repository, record).status == AttemptStatus.FAILED


class TestTextPath:

    def test_happy_path(self, repository, resume_record, text_pdf):
        fake = FakeOpenAI(responses=[(200, output_text(make_resume()))])
        service = ExtractionService(repository=repository, client=fake.client())

        result = _run(service, resume_record, text_pdf)

        assert result.resume_id == resume_record.id
        assert result.resume_data["profile"]["email"] == "jane.doe@example.com"
        assert result.resume_data["workExperiences"][0]["locationType"] == "HYBRID"

        record = repository.get_resume(resume_record.id)
        assert record.status == ResumeStatus.COMPLETED
        assert record.resume_data == result.resume_data
        assert record.error is None

        attempt = _only_attempt(repository, resume_record)
        assert attempt.id == result.history_id
        assert attempt.status == AttemptStatus.COMPLETED
        assert attempt.input_type == InputType.TEXT
        assert attempt.model == "gpt-4.1"
        assert json.loads(attempt.raw_response)["profile"]["name"] == "Jane"
        assert fake.deleted == ["file-abc"]

    def test_remediation_retry_succeeds(self, repository, resume_record, text_pdf):
        retry_text = json.dumps(make_resume(city="Hamburg"))
        fake = FakeOpenAI(responses=[
            (200, output_text("I found the following resume details: name Jane...")),
            (200, output_text(retry_text)),
        ])
        service = ExtractionService(repository=repository, client=fake.client())

        result = _run(service, resume_record, text_pdf)

        assert result.resume_data["profile"]["city"] == "Hamburg"
        assert len(fake.response_calls) == 2
        attempt = _only_attempt(repository, resume_record)
        assert attempt.status == AttemptStatus.COMPLETED
        assert attempt.raw_response == retry_text

    def test_validation_failure(self, repository, resume_record, text_pdf):
        resume = make_resume()
        del resume["profile"]["email"]
        fake = FakeOpenAI(responses=[(200, output_text(resume))])
        service = ExtractionService(repository=repository, client=fake.client())

        with pytest.raises(ResumeValidationError) as exc_info:
            _run(service, resume_record, text_pdf)

        error = exc_info.value
        assert "Could not extract all required information" in error.user_message
        assert any(v.startswith("profile.email") for v in error.violations)

        _assert_both_failed(repository, resume_record)
        record = repository.get_resume(resume_record.id)
        assert record.error == error.user_message
        attempt = _only_attempt(repository, resume_record)
        assert "profile.email" in attempt.error
        assert json.loads(attempt.raw_response)["profile"]["name"] == "Jane"

    def test_parse_failure_after_retry(self, repository, resume_record, text_pdf):
        fake = FakeOpenAI(responses=[(200, output_text("nope")), (200, output_text("still nope"))])
        service = ExtractionService(repository=repository, client=fake.client())

        with pytest.raises(ParseError):
            _run(service, resume_record, text_pdf)

        assert len(fake.response_calls) == 2
        _assert_both_failed(repository, resume_record)
        assert repository.get_resume(resume_record.id).error == ParseError.user_message
        assert _only_attempt(repository, resume_record).raw_response == "still nope"

    def test_upload_failure(self, repository, resume_record, text_pdf):
        fake = FakeOpenAI(upload_status=413, upload_body={"error": {"message": "too large"}})
        service = ExtractionService(repository=repository, client=fake.client())

        with pytest.raises(UploadError):
            _run(service, resume_record, text_pdf)

        _assert_both_failed(repository, resume_record)
        assert "413" in _only_attempt(repository, resume_record).error

    def test_network_failure(self, repository, resume_record, text_pdf):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        client = OpenAIClient(api_key="k", base_url=BASE_URL, transport=httpx.MockTransport(handler))
        service = ExtractionService(repository=repository, client=client)

        with pytest.raises(UploadError):
            _run(service, resume_record, text_pdf)
        _assert_both_failed(repository, resume_record)

    def test_overlong_year_is_dropped(self, repository, resume_record, text_pdf):
        resume = make_resume()
        resume["workExperiences"][0]["startYear"] = "1" * 5000
        fake = FakeOpenAI(responses=[(200, output_text(resume))])
        service = ExtractionService(repository=repository, client=fake.client())

        result = _run(service, resume_record, text_pdf)

        assert result.resume_data["workExperiences"][0]["startYear"] is None
        assert repository.get_resume(resume_record.id).status == ResumeStatus.COMPLETED
        assert _only_attempt(repository, resume_record).status == AttemptStatus.COMPLETED

    def test_normalizer_crash_fails_both_rows(self, repository, resume_record, text_pdf):
        def crashing_normalize(data):
            raise ValueError("cannot coerce model output")

        answer = json.dumps(make_resume())
        fake = FakeOpenAI(responses=[(200, output_text(answer))])
        service = ExtractionService(repository=repository, client=fake.client(), normalize_fn=crashing_normalize)

        with pytest.raises(ValueError):
            _run(service, resume_record, text_pdf)

        _assert_both_failed(repository, resume_record)
        attempt = _only_attempt(repository, resume_record)
        assert attempt.error == "cannot coerce model output"
        assert attempt.raw_response == answer

    def test_deeply_nested_answer_is_retried(self, repository, resume_record, text_pdf):
        fake = FakeOpenAI(responses=[(200, output_text("[" * 200000)), (200, output_text(make_resume()))])
        service = ExtractionService(repository=repository, client=fake.client())

        _run(service, resume_record, text_pdf)

        assert len(fake.response_calls) == 2
        assert repository.get_resume(resume_record.id).status == ResumeStatus.COMPLETED

    def test_model_override(self, repository, resume_record, text_pdf):
        fake = FakeOpenAI(responses=[(200, output_text(make_resume()))])
        service = ExtractionService(repository=repository, client=fake.client())

        _run(service, resume_record, text_pdf, model="gpt-4.1-mini")

        assert fake.response_calls[0]["model"] == "gpt-4.1-mini"
        assert _only_attempt(repository, resume_record).model == "gpt-4.1-mini"


class TestImagePath:

    def _service(self, repository, handler):
        client = OpenAIClient(api_key="k", base_url=BASE_URL, transport=httpx.MockTransport(handler))
        return ExtractionService(
            repository=repository,
            client=client,
            analyzer=ScannedAnalyzer(),
            rasterizer=PDFRasterizer(max_pages=5, scale=1),
        )

    def test_one_page_fails(self, repository, resume_record):
        calls = []

        def handler(request):
            calls.append(request)
            if len(calls) == 1:
                return httpx.Response(200, json=output_text(make_resume()))
            return httpx.Response(500, json={"error": {"message": "server error"}})

        service = self._service(repository, handler)
        result = _run(service, resume_record, make_text_pdf(pages=2))

        assert len(calls) == 2
        assert result.resume_data["profile"]["name"] == "Jane"
        assert repository.get_resume(resume_record.id).status == ResumeStatus.COMPLETED
        attempt = _only_attempt(repository, resume_record)
        assert attempt.status == AttemptStatus.COMPLETED
        assert attempt.input_type == InputType.IMAGES
        assert "--- page 1 ---" in attempt.raw_response
        assert "--- page 2 ---" not in attempt.raw_response

    def test_pages_are_merged(self, repository, resume_record):
        resume = make_resume()
        pages = [
            {"profile": resume["profile"], "workExperiences": resume["workExperiences"], "skills": ["Python"]},
            {"profile": {"name": "Jane", "city": ""}, "educations": resume["educations"], "skills": ["python", "Go"]},
        ]
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, json=output_text(pages[len(calls) - 1]))

        service = self._service(repository, handler)
        result = _run(service, resume_record, make_text_pdf(pages=2))

        data = result.resume_data
        assert data["profile"]["city"] == "Berlin"
        assert data["skills"] == ["Python", "Go"]
        assert len(data["workExperiences"]) == 1
        assert len(data["educations"]) == 1

    def test_all_pages_fail(self, repository, resume_record):
        service = self._service(repository, lambda request: httpx.Response(500, text="down"))

        with pytest.raises(ModelCallError):
            _run(service, resume_record, make_text_pdf(pages=2))
        _assert_both_failed(repository, resume_record)

    def test_unrenderable_pdf(self, repository, resume_record):
        service = self._service(repository, lambda request: httpx.Response(500))

        with pytest.raises(RasterizationError) as exc_info:
            _run(service, resume_record, b"%PDF-1.4 garbage")

        _assert_both_failed(repository, resume_record)
        assert repository.get_resume(resume_record.id).error == exc_info.value.user_message


class TestOrchestration:

    def test_rerun_creates_new_attempt(self, repository, resume_record, text_pdf):
        fake = FakeOpenAI(responses=[
            (200, output_text("garbage")),
            (200, output_text("garbage")),
            (200, output_text(make_resume())),
        ])
        service = ExtractionService(repository=repository, client=fake.client())

        with pytest.raises(ParseError):
            _run(service, resume_record, text_pdf)
        _run(service, resume_record, text_pdf)

        attempts = repository.list_attempts(resume_record.id)
        assert [a.status for a in attempts] == [AttemptStatus.FAILED, AttemptStatus.COMPLETED]
        record = repository.get_resume(resume_record.id)
        assert record.status == ResumeStatus.COMPLETED
        assert record.error is None

    def test_unknown_record(self, repository, text_pdf, fake_openai):
        service = ExtractionService(repository=repository, client=fake_openai.client())
        with pytest.raises(LookupError):
            asyncio.run(service.extract_resume(ExtractionParams(resume_id="missing", pdf_bytes=text_pdf)))
        assert fake_openai.uploads == []

    def test_analyze_pdf(self, repository, fake_openai, text_pdf):
        service = ExtractionService(repository=repository, client=fake_openai.client())
        assert service.analyze_pdf(text_pdf).recommended_strategy == ExtractionStrategy.TEXT

    def test_available_strategies(self, repository, fake_openai):
        service = ExtractionService(repository=repository, client=fake_openai.client())
        strategies = {s["id"]: s for s in service.available_strategies()}
        assert set(strategies) == {"text-extraction", "image-extraction"}
        assert strategies["text-extraction"]["input_type"] == "TEXT"
        assert strategies["image-extraction"]["input_type"] == "IMAGES"
