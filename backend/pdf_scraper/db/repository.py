# File: backend/pdf_scraper/db/repository.py
"""
Data access for resume records and their extraction attempts.

Every write commits immediately. Database errors are not caught here;
they propagate to the caller and fail the request.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from pdf_scraper.core.config import settings
from pdf_scraper.db.models import (
    AttemptStatus,
    ExtractionAttempt,
    InputType,
    ResumeRecord,
    ResumeStatus,
)

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


def truncate(value: Optional[str], limit: int) -> Optional[str]:
    if value is None:
        return None
    return value[:limit]


class ResumeRepository:
    def __init__(self, session: Session):
        self.session = session

    # ── Resume records ──────────────────────────────────────────────

    def create_resume(self, user_id: str, file_name: str, storage_path: str) -> ResumeRecord:
        record = ResumeRecord(
            user_id=user_id,
            file_name=file_name,
            storage_path=storage_path,
            status=ResumeStatus.PENDING,
        )
        self.session.add(record)
        self.session.commit()
        self.session.refresh(record)
        logger.info(f"Created resume record {record.id} for user {user_id}")
        return record

    def get_resume(self, resume_id: str) -> Optional[ResumeRecord]:
        return self.session.get(ResumeRecord, resume_id)

    def get_user_resume(self, resume_id: str, user_id: str) -> Optional[ResumeRecord]:
        """Fetch a record only if it belongs to ``user_id``."""
        record = self.get_resume(resume_id)
        if record is None or record.user_id != user_id:
            return None
        return record

    def get_by_storage_path(self, storage_path: str, user_id: str) -> Optional[ResumeRecord]:
        return (
            self.session.query(ResumeRecord)
            .filter(ResumeRecord.storage_path == storage_path, ResumeRecord.user_id == user_id)
            .first()
        )

    def list_resumes(
        self,
        user_id: str,
        cursor: Optional[datetime] = None,
        status: Optional[ResumeStatus] = None,
        search: Optional[str] = None,
        limit: int = DEFAULT_PAGE_SIZE,
    ) -> Dict[str, Any]:
        """
        Newest-first page of a user's records.

        ``cursor`` is the ``uploaded_at`` of the last item of the previous
        page. Returns ``{"items": [...], "next_cursor": datetime | None}``.
        """
        limit = max(1, min(limit, MAX_PAGE_SIZE))
        query = self.session.query(ResumeRecord).filter(ResumeRecord.user_id == user_id)
        if status is not None:
            query = query.filter(ResumeRecord.status == status)
        if search:
            query = query.filter(ResumeRecord.file_name.ilike(f"%{search.strip()}%"))
        if cursor is not None:
            query = query.filter(ResumeRecord.uploaded_at < cursor)

        # One extra row tells us whether another page exists
        rows = (
            query.order_by(ResumeRecord.uploaded_at.desc(), ResumeRecord.id.desc())
            .limit(limit + 1)
            .all()
        )
        has_more = len(rows) > limit
        items = rows[:limit]
        next_cursor = items[-1].uploaded_at if has_more and items else None
        return {"items": items, "next_cursor": next_cursor}

    def mark_completed(self, resume_id: str, resume_data: Dict[str, Any]) -> ResumeRecord:
        record = self._require_resume(resume_id)
        record.status = ResumeStatus.COMPLETED
        record.resume_data = resume_data
        record.error = None
        self.session.commit()
        self.session.refresh(record)
        logger.info(f"Resume {resume_id} marked COMPLETED")
        return record

    def mark_failed(self, resume_id: str, error: str) -> ResumeRecord:
        record = self._require_resume(resume_id)
        record.status = ResumeStatus.FAILED
        record.error = truncate(error, settings.MAX_STORED_ERROR_CHARS)
        self.session.commit()
        self.session.refresh(record)
        logger.info(f"Resume {resume_id} marked FAILED: {record.error}")
        return record

    def delete_resume(self, resume_id: str) -> None:
        record = self._require_resume(resume_id)
        # ORM cascade covers backends without FK enforcement (SQLite)
        self.session.delete(record)
        self.session.commit()
        logger.info(f"Deleted resume {resume_id}")

    def _require_resume(self, resume_id: str) -> ResumeRecord:
        record = self.get_resume(resume_id)
        if record is None:
            raise LookupError(f"Resume {resume_id} not found")
        return record

    # ── Extraction attempts ─────────────────────────────────────────

    def create_attempt(self, resume_id: str, input_type: InputType, model: str) -> ExtractionAttempt:
        attempt = ExtractionAttempt(
            resume_id=resume_id,
            input_type=input_type,
            model=model,
            status=AttemptStatus.PENDING,
        )
        self.session.add(attempt)
        self.session.commit()
        self.session.refresh(attempt)
        logger.info(f"Started {input_type.value} attempt {attempt.id} for resume {resume_id} using {model}")
        return attempt

    def get_attempt(self, attempt_id: str) -> Optional[ExtractionAttempt]:
        return self.session.get(ExtractionAttempt, attempt_id)

    def list_attempts(self, resume_id: str) -> List[ExtractionAttempt]:
        return (
            self.session.query(ExtractionAttempt)
            .filter(ExtractionAttempt.resume_id == resume_id)
            .order_by(ExtractionAttempt.created_at)
            .all()
        )

    def complete_attempt(self, attempt_id: str, raw_response: str) -> ExtractionAttempt:
        attempt = self._require_pending_attempt(attempt_id)
        attempt.status = AttemptStatus.COMPLETED
        attempt.raw_response = truncate(raw_response, settings.MAX_STORED_RESPONSE_CHARS)
        self.session.commit()
        self.session.refresh(attempt)
        return attempt

    def fail_attempt(self, attempt_id: str, error: str, raw_response: Optional[str] = None) -> ExtractionAttempt:
        attempt = self._require_pending_attempt(attempt_id)
        attempt.status = AttemptStatus.FAILED
        attempt.error = truncate(error, settings.MAX_STORED_ERROR_CHARS)
        attempt.raw_response = truncate(raw_response, settings.MAX_STORED_RESPONSE_CHARS)
        self.session.commit()
        self.session.refresh(attempt)
        return attempt

    def _require_pending_attempt(self, attempt_id: str) -> ExtractionAttempt:
        attempt = self.get_attempt(attempt_id)
        if attempt is None:
            raise LookupError(f"Extraction attempt {attempt_id} not found")
        if attempt.status != AttemptStatus.PENDING:
            raise ValueError(
                f"Extraction attempt {attempt_id} already concluded as {attempt.status.value}"
            )
        return attempt
