"""Heuristic repair of structured resume fields

Oracle output is usually right but predictably wrong in a few places:
skill sentences listed as certifications, the degree type repeated as the
field of study, companies buried in descriptions. These are pure functions
over plain dicts so they can run on stored snapshots as well as fresh
parses.
"""

import re
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Iterable, List, Optional

from backend.app.core.logging import get_logger

logger = get_logger(__name__)

DURATION_PATTERN = re.compile(
    r'(\w+\s+)?(\d{4})\s*[-–]\s*(\w+\s+)?(\d{4}|present|current)',
    re.IGNORECASE
)

MONTHS = {
    'jan': 0, 'feb': 1, 'mar': 2, 'apr': 3, 'may': 4, 'jun': 5,
    'jul': 6, 'aug': 7, 'sep': 8, 'oct': 9, 'nov': 10, 'dec': 11,
}

# Phrases that mark a skill sentence rather than a certification name
SKILL_PHRASES = (
    'proficient in',
    'strong foundation',
    'experience with',
    'skilled in',
    'expertise in',
    'knowledge of',
)
MAX_CERTIFICATION_LENGTH = 100

COMPANY_PATTERN = re.compile(r'(?:\b(?:at|for)|@)\s+([A-Z][a-zA-Z\s&]+?)(?:\s*[-–]|\s*,|\s*$)')

DEGREE_TYPE_PATTERN = re.compile(r'^(bachelor|master|phd|doctorate|associate|diploma)', re.IGNORECASE)
DEGREE_FIELD_PATTERN = re.compile(r'\bin\s+([^,]+)', re.IGNORECASE)
INSTITUTION_FIELD_PATTERN = re.compile(r'\bof\s+([^,]+)', re.IGNORECASE)

PLACEHOLDER_VALUES = frozenset({
    'unknown candidate', 'john doe', 'jane doe', 'candidate name', 'your name',
    'n/a', 'not provided', 'not available', 'none', 'null', 'undefined',
})


def _month_index(token: Optional[str], default: int) -> int:
    if not token:
        return default
    return MONTHS.get(token.strip()[:3].lower(), default)


def duration_months(duration: Optional[str], today: Optional[date] = None) -> Optional[int]:
    """
    Months covered by a duration string such as "Nov 2020 - Oct 2022"

    Returns:
        Month count floored at zero, or None when the text has no date range
    """
    if not duration:
        return None

    text = duration.strip()
    match = DURATION_PATTERN.search(text)
    if not match:
        return None

    start_year = int(match.group(2))
    start_month = _month_index(match.group(1), 0)

    end_token = match.group(4)
    if end_token.lower() in ('present', 'current'):
        today = today or date.today()
        end_year, end_month = today.year, today.month - 1
    else:
        end_year = int(end_token)
        end_month = _month_index(match.group(3), 11)

    return max(0, (end_year - start_year) * 12 + (end_month - start_month))


def calculate_years_of_experience(entries: Iterable[Any], today: Optional[date] = None) -> float:
    """
    Total experience in years, rounded to one decimal

    Args:
        entries: Experience entries (dicts or objects with a ``duration``)
        today: Reference date for "Present"/"Current" ranges

    Returns:
        Years of experience; 0.0 when nothing parses
    """
    total_months = 0
    for entry in entries or []:
        duration = entry.get('duration') if isinstance(entry, dict) else getattr(entry, 'duration', None)
        months = duration_months(duration, today)
        if months is not None:
            total_months += months

    years = Decimal(total_months) / Decimal(12)
    return float(years.quantize(Decimal('0.1'), rounding=ROUND_HALF_UP))


def is_certification(value: Optional[str]) -> bool:
    if not value or not value.strip():
        return False
    if len(value) > MAX_CERTIFICATION_LENGTH:
        return False
    lowered = value.lower()
    return not any(phrase in lowered for phrase in SKILL_PHRASES)


def filter_certifications(certifications: Optional[Iterable[str]]) -> List[str]:
    """Drop skill sentences and overlong entries from a certification list"""
    candidates = list(certifications or [])
    kept = [cert for cert in candidates if is_certification(cert)]
    dropped = len(candidates) - len(kept)
    if dropped:
        logger.debug(f"Filtered {dropped} non-certification entries")
    return kept


def infer_company(entry: Dict[str, Any]) -> Optional[str]:
    """Recover a missing company name from phrases like 'Engineer at Acme Corp - ...'"""
    if entry.get('company') or not entry.get('description'):
        return entry.get('company') or None

    match = COMPANY_PATTERN.search(entry['description'])
    return match.group(1).strip() if match else None


def repair_field_of_study(entry: Dict[str, Any]) -> Optional[str]:
    """
    Replace a field of study that only repeats the degree type

    "Bachelor of Science" as a field is recovered from the "in <field>"
    clause of the degree, then the "of <field>" clause of the institution.
    """
    field = entry.get('field')
    if not field or not DEGREE_TYPE_PATTERN.match(field.strip()):
        return field

    for source, pattern in (
        (entry.get('degree'), DEGREE_FIELD_PATTERN),
        (entry.get('institution'), INSTITUTION_FIELD_PATTERN),
    ):
        if not source:
            continue
        match = pattern.search(source)
        if match:
            return match.group(1).strip()

    return field


def repair_experience(entry: Dict[str, Any]) -> Dict[str, str]:
    return {
        'company': infer_company(entry) or '',
        'title': entry.get('title') or '',
        'duration': entry.get('duration') or '',
        'description': entry.get('description') or '',
    }


def repair_education(entry: Dict[str, Any]) -> Dict[str, str]:
    return {
        'institution': entry.get('institution') or '',
        'degree': entry.get('degree') or '',
        'field': repair_field_of_study(entry) or '',
        'year': str(entry.get('year') or ''),
    }


def is_placeholder(value: Optional[str]) -> bool:
    return not value or not value.strip() or value.strip().lower() in PLACEHOLDER_VALUES


def has_placeholder_identity(first_name: Optional[str], last_name: Optional[str]) -> bool:
    """True when the name looks invented ("John Doe", "N/A", blank)"""
    full_name = ' '.join(part.strip() for part in (first_name, last_name) if part and part.strip())
    return is_placeholder(first_name) or is_placeholder(full_name)
