# File: backend/pdf_scraper/core/exceptions.py
"""
Error categories raised by the extraction pipeline.

Every error carries two messages: ``message`` holds the diagnostic detail
that goes to logs and the attempt history, ``user_message`` is the short
sentence safe to show to the person who uploaded the file.
"""

from typing import List, Optional


class PipelineError(Exception):
    """Base class for extraction pipeline failures."""

    user_message = "Something went wrong while processing your resume. Please try again"
    status_code = 500

    def __init__(self, message: Optional[str] = None, user_message: Optional[str] = None):
        if user_message is not None:
            self.user_message = user_message
        self.message = message or self.user_message
        super().__init__(self.message)


class RasterizationError(PipelineError):
    user_message = "Failed to convert PDF pages to images. Please ensure the PDF is valid and try again."
    status_code = 422


class UploadError(PipelineError):
    user_message = "Unable to process your resume file. Please try again"
    status_code = 502


class ModelCallError(PipelineError):
    user_message = "Unable to analyze your resume. Please try again"
    status_code = 502


class ParseError(PipelineError):
    """The model twice returned text that is not a JSON object."""

    user_message = "We could not parse the extracted information from your resume. Please try again"
    status_code = 502

    def __init__(self, message: Optional[str] = None, raw_response: str = ""):
        super().__init__(message)
        self.raw_response = raw_response


class ResumeValidationError(PipelineError):
    user_message = (
        "Could not extract all required information from your resume. "
        "Please ensure your resume contains clear, readable text."
    )
    status_code = 422

    def __init__(self, violations: List[str], raw_response: str = ""):
        self.violations = list(violations)
        self.raw_response = raw_response
        super().__init__("Schema validation failed: " + "; ".join(self.violations))
