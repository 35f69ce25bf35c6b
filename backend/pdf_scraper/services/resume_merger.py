"""
Combine per-page extraction fragments into one résumé document.

Vision extraction sees one page at a time, so the same entry often shows up
on several pages with different amounts of detail. Profile fields take the
first non-empty value in page order. List entries are de-duplicated by a
per-section key and the most informative duplicate is kept.
"""

import logging
from typing import Any, Callable, Dict, List, Optional, Tuple

from pdf_scraper.schemas.resume import LanguageLevel
from pdf_scraper.services.resume_normalizer import (
    LIST_SECTIONS,
    as_bool,
    match_enum,
    normalize,
    normalize_profile,
    records,
)

logger = logging.getLogger(__name__)

Entry = Dict[str, Any]


def _lower(value: Any) -> str:
    return value.strip().lower() if isinstance(value, str) else ""


def _key_part(value: Any) -> str:
    if value is None:
        return ""
    return _lower(value) if isinstance(value, str) else str(value)


# ── Profile ─────────────────────────────────────────────────────────

def merge_profiles(raw_profiles: List[Any]) -> Dict[str, Any]:
    """First non-empty string wins; booleans come from the first page that states them."""
    merged: Dict[str, Any] = {}
    for raw in raw_profiles:
        if not isinstance(raw, dict):
            continue
        normalized = normalize_profile(raw)
        for key, value in normalized.items():
            if isinstance(value, bool):
                if key not in merged and as_bool(raw.get(key), None) is not None:
                    merged[key] = value
            elif isinstance(value, str):
                if key not in merged or (value and not merged[key]):
                    merged[key] = value
            elif key not in merged:
                merged[key] = value
    return merged


# ── Lists ───────────────────────────────────────────────────────────

def _dedupe(
    entries: List[Tuple[Entry, Entry]],
    key_of: Callable[[Entry], Tuple],
    prefer: Optional[Callable[[Tuple[Entry, Entry], Tuple[Entry, Entry]], bool]] = None,
) -> List[Entry]:
    """
    ``entries`` are (raw, normalized) pairs in page order. Entries whose key
    is entirely empty are kept as-is. ``prefer(candidate, current)`` decides
    whether a later duplicate replaces the kept one; by default the first wins.
    """
    kept: List[Tuple[Entry, Entry]] = []
    index_by_key: Dict[Tuple, int] = {}
    for pair in entries:
        key = key_of(pair[1])
        if not any(key):
            kept.append(pair)
            continue
        if key not in index_by_key:
            index_by_key[key] = len(kept)
            kept.append(pair)
        elif prefer is not None and prefer(pair, kept[index_by_key[key]]):
            kept[index_by_key[key]] = pair
    return [normalized for _, normalized in kept]


def _work_key(entry: Entry) -> Tuple:
    return (
        _key_part(entry.get("company")),
        _key_part(entry.get("jobTitle")),
        _key_part(entry.get("startYear")),
        _key_part(entry.get("startMonth")),
    )


def _education_key(entry: Entry) -> Tuple:
    return (
        _key_part(entry.get("school")),
        _key_part(entry.get("degree")),
        _key_part(entry.get("startYear")),
    )


def _language_key(entry: Entry) -> Tuple:
    return (_key_part(entry.get("language")),)


def _title_key(entry: Entry) -> Tuple:
    if "title" in entry:
        return (_key_part(entry.get("title")),)
    return (_key_part(entry.get("name")),)


def _has_description(candidate, current) -> bool:
    return bool(candidate[1].get("description")) and not current[1].get("description")


def _longer_description(candidate, current) -> bool:
    return len(candidate[1].get("description") or "") > len(current[1].get("description") or "")


def _states_level(candidate, current) -> bool:
    return (
        match_enum(candidate[0].get("level"), LanguageLevel) is not None
        and match_enum(current[0].get("level"), LanguageLevel) is None
    )


SECTION_RULES = {
    "workExperiences": (_work_key, _has_description),
    "educations": (_education_key, _longer_description),
    "languages": (_language_key, _states_level),
    "licenses": (_title_key, None),
    "achievements": (_title_key, None),
    "publications": (_title_key, None),
    "honors": (_title_key, None),
}


def merge_skills(skill_lists: List[List[str]]) -> List[str]:
    seen = set()
    merged: List[str] = []
    for skills in skill_lists:
        for skill in skills:
            key = _lower(skill)
            if key and key not in seen:
                seen.add(key)
                merged.append(skill.strip())
    return merged


def merge(fragments: List[Any]) -> Dict[str, Any]:
    """Merge page fragments into one normalized document."""
    if len(fragments) == 1:
        return normalize(fragments[0])

    raws = [fragment if isinstance(fragment, dict) else {} for fragment in fragments]
    normalized = [normalize(raw) for raw in raws]

    document: Dict[str, Any] = {"profile": merge_profiles([raw.get("profile") for raw in raws])}
    for section in LIST_SECTIONS:
        key_of, prefer = SECTION_RULES[section]
        pairs = []
        for raw, norm in zip(raws, normalized):
            # records() applies the same filter normalize() used, so the lists line up
            pairs.extend(zip(records(raw.get(section)), norm[section]))
        document[section] = _dedupe(pairs, key_of, prefer)
    document["skills"] = merge_skills([norm["skills"] for norm in normalized])

    logger.info(
        f"Merged {len(fragments)} fragments: "
        f"{len(document['workExperiences'])} work experiences, "
        f"{len(document['educations'])} educations, {len(document['skills'])} skills"
    )
    # One more pass fills any profile defaults no page stated
    return normalize(document)
