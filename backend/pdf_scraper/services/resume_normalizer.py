"""
Coerce loosely-typed model output into the résumé document shape, then
validate it strictly.

``normalize`` never raises: every malformed value degrades to a default.
Required strings are only trimmed, never invented, so a missing name or
email still fails ``validate``.
"""

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Type

from pydantic import ValidationError

from pdf_scraper.schemas.resume import (
    Degree,
    EmploymentType,
    LanguageLevel,
    LocationType,
    ResumeDocument,
)

logger = logging.getLogger(__name__)

DEFAULT_EMPLOYMENT_TYPE = EmploymentType.FULL_TIME
DEFAULT_LOCATION_TYPE = LocationType.ONSITE
DEFAULT_DEGREE = Degree.BACHELOR
DEFAULT_LANGUAGE_LEVEL = LanguageLevel.INTERMEDIATE

PROFILE_TEXT_FIELDS = ["headline", "professionalSummary", "country", "city"]
PROFILE_URL_FIELDS = ["linkedIn", "website"]
PROFILE_REQUIRED_FIELDS = ["name", "surname", "email"]

_INT_RE = re.compile(r"^[+-]?\d+$")
_SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.\-]*://")
_ENUM_SEPARATORS = re.compile(r"[\s\-]+")


# ── Scalar coercions ────────────────────────────────────────────────

def match_enum(value: Any, enum_cls: Type[Enum]) -> Optional[str]:
    """'full time' / 'Full-Time' -> 'FULL_TIME' if that is a member, else None."""
    if not isinstance(value, str):
        return None
    candidate = _ENUM_SEPARATORS.sub("_", value.strip()).upper()
    return candidate if candidate in enum_cls.__members__ else None


def coerce_enum(value: Any, enum_cls: Type[Enum], default: Enum) -> str:
    return match_enum(value, enum_cls) or default.value


def as_text(value: Any) -> str:
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            return str(value)
        except ValueError:
            # int too long for str() under the interpreter's digit limit
            return ""
    return ""


def as_int(value: Any) -> Optional[int]:
    """Integer-like values become int; anything else becomes None. Range is not checked."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str) and _INT_RE.match(value.strip()):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def as_bool(value: Any, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("true", "yes"):
            return True
        if lowered in ("false", "no"):
            return False
    return default


def as_url(value: Any) -> str:
    text = as_text(value)
    if text and not _SCHEME_RE.match(text):
        text = "https://" + text.lstrip("/")
    return text


def records(value: Any) -> List[Dict[str, Any]]:
    """List items that are objects; everything else is dropped."""
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


def _copy_required(source: Dict[str, Any], target: Dict[str, Any], keys: List[str]) -> None:
    for key in keys:
        if key not in source:
            continue
        value = source[key]
        target[key] = value.strip() if isinstance(value, str) else value


# ── Sections ────────────────────────────────────────────────────────

def normalize_profile(raw: Any) -> Dict[str, Any]:
    source = raw if isinstance(raw, dict) else {}
    profile: Dict[str, Any] = {}
    _copy_required(source, profile, PROFILE_REQUIRED_FIELDS)
    for key in PROFILE_TEXT_FIELDS:
        profile[key] = as_text(source.get(key))
    for key in PROFILE_URL_FIELDS:
        profile[key] = as_url(source.get(key))
    profile["relocation"] = as_bool(source.get("relocation"), False)
    profile["remote"] = as_bool(source.get("remote"), True)
    return profile


def normalize_work_experience(raw: Dict[str, Any]) -> Dict[str, Any]:
    item: Dict[str, Any] = {}
    _copy_required(raw, item, ["jobTitle", "company"])
    item["employmentType"] = coerce_enum(raw.get("employmentType"), EmploymentType, DEFAULT_EMPLOYMENT_TYPE)
    item["locationType"] = coerce_enum(raw.get("locationType"), LocationType, DEFAULT_LOCATION_TYPE)
    for key in ("startMonth", "startYear", "endMonth", "endYear"):
        item[key] = as_int(raw.get(key))
    item["current"] = as_bool(raw.get("current"), False)
    item["description"] = as_text(raw.get("description"))
    return item


def normalize_education(raw: Dict[str, Any]) -> Dict[str, Any]:
    item: Dict[str, Any] = {}
    _copy_required(raw, item, ["school", "major"])
    item["degree"] = coerce_enum(raw.get("degree"), Degree, DEFAULT_DEGREE)
    item["startYear"] = as_int(raw.get("startYear"))
    item["endYear"] = as_int(raw.get("endYear"))
    item["current"] = as_bool(raw.get("current"), False)
    item["description"] = as_text(raw.get("description"))
    return item


def normalize_license(raw: Dict[str, Any]) -> Dict[str, Any]:
    item: Dict[str, Any] = {}
    _copy_required(raw, item, ["name", "issuer"])
    item["issueYear"] = as_int(raw.get("issueYear"))
    item["description"] = as_text(raw.get("description"))
    return item


def normalize_language(raw: Dict[str, Any]) -> Dict[str, Any]:
    item: Dict[str, Any] = {}
    _copy_required(raw, item, ["language"])
    item["level"] = coerce_enum(raw.get("level"), LanguageLevel, DEFAULT_LANGUAGE_LEVEL)
    return item


def normalize_achievement(raw: Dict[str, Any]) -> Dict[str, Any]:
    item: Dict[str, Any] = {}
    _copy_required(raw, item, ["title", "organization"])
    item["achieveDate"] = as_text(raw.get("achieveDate"))
    item["description"] = as_text(raw.get("description"))
    return item


def normalize_publication(raw: Dict[str, Any]) -> Dict[str, Any]:
    item: Dict[str, Any] = {}
    _copy_required(raw, item, ["title", "publisher"])
    item["publicationDate"] = as_text(raw.get("publicationDate"))
    item["publicationUrl"] = as_url(raw.get("publicationUrl"))
    item["description"] = as_text(raw.get("description"))
    return item


def normalize_honor(raw: Dict[str, Any]) -> Dict[str, Any]:
    item: Dict[str, Any] = {}
    _copy_required(raw, item, ["title", "issuer"])
    item["issueMonth"] = as_int(raw.get("issueMonth"))
    item["issueYear"] = as_int(raw.get("issueYear"))
    item["description"] = as_text(raw.get("description"))
    return item


def normalize_skills(value: Any) -> List[str]:
    if isinstance(value, str):
        value = value.split(",")
    if not isinstance(value, list):
        return []
    skills = [as_text(skill) for skill in value]
    return [skill for skill in skills if skill]


LIST_SECTIONS = {
    "workExperiences": normalize_work_experience,
    "educations": normalize_education,
    "licenses": normalize_license,
    "languages": normalize_language,
    "achievements": normalize_achievement,
    "publications": normalize_publication,
    "honors": normalize_honor,
}


def normalize(raw: Any) -> Dict[str, Any]:
    """Coerce arbitrary model output into the document shape. Never raises."""
    source = raw if isinstance(raw, dict) else {}
    document: Dict[str, Any] = {"profile": normalize_profile(source.get("profile"))}
    for key, normalize_item in LIST_SECTIONS.items():
        document[key] = [normalize_item(item) for item in records(source.get(key))]
    document["skills"] = normalize_skills(source.get("skills"))
    return document


# ── Validation ──────────────────────────────────────────────────────

@dataclass
class ValidationResult:
    document: Optional[ResumeDocument] = None
    errors: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.document is not None


def _format_error(error: Dict[str, Any]) -> str:
    location = ".".join(str(part) for part in error.get("loc", ())) or "document"
    return f"{location}: {error.get('msg', 'invalid value')}"


def validate(data: Any) -> ValidationResult:
    """Strict schema check. Returns violations instead of raising."""
    try:
        document = ResumeDocument.model_validate(data)
    except ValidationError as e:
        errors = [_format_error(error) for error in e.errors()]
        logger.info(f"Resume validation failed with {len(errors)} violation(s)")
        return ValidationResult(errors=errors)
    return ValidationResult(document=document)
