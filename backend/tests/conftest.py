"""
Shared fixtures: in-memory database, generated PDFs and a scripted
stand-in for the OpenAI HTTP API.
"""

import json
import os
import sys
from typing import Any, Dict, List, Optional, Tuple, Union

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

# Must be set before pdf_scraper.core.config is imported
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("OPENAI_API_KEY", "test-key")

import fitz  # PyMuPDF
import httpx
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from pdf_scraper.db.database import Base
from pdf_scraper.db.repository import ResumeRepository
from pdf_scraper.llm.openai_client import OpenAIClient

BASE_URL = "https://api.openai.test/v1"


# ── Sample data ─────────────────────────────────────────────────────

def make_resume(**profile_overrides) -> Dict[str, Any]:
    profile = {
        "name": "Jane",
        "surname": "Doe",
        "email": "jane.doe@example.com",
        "headline": "Backend Engineer",
        "professionalSummary": "Builds data pipelines.",
        "linkedIn": "https://linkedin.com/in/janedoe",
        "website": "",
        "country": "Germany",
        "city": "Berlin",
        "relocation": False,
        "remote": True,
    }
    profile.update(profile_overrides)
    return {
        "profile": profile,
        "workExperiences": [
            {
                "jobTitle": "Software Engineer",
                "employmentType": "FULL_TIME",
                "locationType": "HYBRID",
                "company": "Acme",
                "startMonth": 3,
                "startYear": 2019,
                "endMonth": None,
                "endYear": None,
                "current": True,
                "description": "Owned the billing service.",
            }
        ],
        "educations": [
            {
                "school": "TU Berlin",
                "degree": "MASTER",
                "major": "Computer Science",
                "startYear": 2015,
                "endYear": 2018,
                "current": False,
                "description": "",
            }
        ],
        "skills": ["Python", "PostgreSQL"],
        "licenses": [],
        "languages": [{"language": "English", "level": "ADVANCED"}],
        "achievements": [],
        "publications": [],
        "honors": [],
    }


def output_text(data: Union[Dict[str, Any], str]) -> Dict[str, Any]:
    """Responses API body carrying ``data`` in ``output_text``."""
    text = data if isinstance(data, str) else json.dumps(data)
    return {"id": "resp_1", "object": "response", "output_text": text}


# ── PDFs ────────────────────────────────────────────────────────────

def make_text_pdf(pages: int = 1, text: str = "Jane Doe - Backend Engineer") -> bytes:
    doc = fitz.open()
    for index in range(pages):
        page = doc.new_page()
        page.insert_text((72, 72), f"{text} (page {index + 1})", fontsize=12)
    data = doc.tobytes()
    doc.close()
    return data


@pytest.fixture
def text_pdf() -> bytes:
    return make_text_pdf()


# ── Database ────────────────────────────────────────────────────────

@pytest.fixture
def db_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db_session(db_engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def repository(db_session) -> ResumeRepository:
    return ResumeRepository(db_session)


@pytest.fixture
def resume_record(repository):
    return repository.create_resume(user_id="user-1", file_name="cv.pdf", storage_path="user-1/abc/cv.pdf")


# ── OpenAI stand-in ─────────────────────────────────────────────────

Scripted = Tuple[int, Union[Dict[str, Any], str]]


class FakeOpenAI:
    """
    Routes Files and Responses API calls to scripted answers.

    ``responses`` is consumed in call order, one ``(status, body)`` per
    POST /responses. Every request is recorded for assertions.
    """

    def __init__(
        self,
        responses: Optional[List[Scripted]] = None,
        upload_status: int = 200,
        upload_body: Optional[Dict[str, Any]] = None,
        delete_status: int = 200,
    ):
        self.responses = list(responses or [])
        self.upload_status = upload_status
        self.upload_body = upload_body if upload_body is not None else {"id": "file-abc", "object": "file"}
        self.delete_status = delete_status
        self.uploads: List[httpx.Request] = []
        self.response_calls: List[Dict[str, Any]] = []
        self.deleted: List[str] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if request.method == "POST" and path.endswith("/files"):
            self.uploads.append(request)
            return httpx.Response(self.upload_status, json=self.upload_body)
        if request.method == "DELETE" and "/files/" in path:
            self.deleted.append(path.rsplit("/", 1)[-1])
            return httpx.Response(self.delete_status, json={"deleted": self.delete_status == 200})
        if request.method == "POST" and path.endswith("/responses"):
            self.response_calls.append(json.loads(request.content))
            if not self.responses:
                return httpx.Response(500, json={"error": {"message": "no scripted response"}})
            status, body = self.responses.pop(0)
            if isinstance(body, str):
                return httpx.Response(status, text=body)
            return httpx.Response(status, json=body)
        return httpx.Response(404, json={"error": {"message": f"unexpected {request.method} {path}"}})

    def client(self, **kwargs) -> OpenAIClient:
        return OpenAIClient(
            api_key="test-key",
            base_url=BASE_URL,
            transport=httpx.MockTransport(self.handler),
            **kwargs,
        )

    def prompt_of(self, call_index: int) -> str:
        content = self.response_calls[call_index]["input"][0]["content"]
        return next(block["text"] for block in content if block["type"] == "input_text")


@pytest.fixture
def fake_openai() -> FakeOpenAI:
    return FakeOpenAI()
