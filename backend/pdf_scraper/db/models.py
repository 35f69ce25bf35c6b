# File: backend/pdf_scraper/db/models.py
import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Enum, ForeignKey, JSON, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from pdf_scraper.db.database import Base


def _new_id() -> str:
    return uuid.uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ResumeStatus(str, enum.Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class AttemptStatus(str, enum.Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class InputType(str, enum.Enum):
    TEXT = "TEXT"
    IMAGES = "IMAGES"
    HYBRID = "HYBRID"


class ResumeRecord(Base):
    __tablename__ = "resumes"

    id = Column(String(32), primary_key=True, default=_new_id)
    user_id = Column(String, index=True, nullable=False)
    storage_path = Column(String, nullable=False)
    file_name = Column(String, nullable=False)
    status = Column(Enum(ResumeStatus, name="resume_status"), nullable=False, default=ResumeStatus.PENDING)
    resume_data = Column(JSON, nullable=True)  # Validated résumé document, camelCase keys
    error = Column(Text, nullable=True)
    # Python-side default keeps sub-second ordering for cursor pagination
    uploaded_at = Column(DateTime(timezone=True), default=_utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    attempts = relationship(
        "ExtractionAttempt",
        back_populates="resume",
        cascade="all, delete-orphan",
        order_by="ExtractionAttempt.created_at",
    )


class ExtractionAttempt(Base):
    __tablename__ = "resume_histories"

    id = Column(String(32), primary_key=True, default=_new_id)
    resume_id = Column(String(32), ForeignKey("resumes.id", ondelete="CASCADE"), index=True, nullable=False)
    input_type = Column(Enum(InputType, name="input_type"), nullable=False)
    model = Column(String, nullable=False)
    status = Column(Enum(AttemptStatus, name="attempt_status"), nullable=False, default=AttemptStatus.PENDING)
    raw_response = Column(Text, nullable=True)  # Truncated model output
    error = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    resume = relationship("ResumeRecord", back_populates="attempts")
